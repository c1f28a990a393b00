"""Vote tallies for polls and elections.

Works on any sequence of objects (or dicts) exposing an id and a vote
count, so both poll options and election candidates can use it. Nothing
here reorders the caller's sequence.
"""
from typing import Any, Iterable, Optional, Sequence


def _field(option: Any, name: str):
    if isinstance(option, dict):
        return option[name]
    return getattr(option, name)


def percentage(value: int, total: int) -> int:
    """Rounded percent of ``total``; 0 when nothing has been cast."""
    if total == 0:
        return 0
    return int(value * 100 / total + 0.5)


def total_votes(options: Iterable[Any]) -> int:
    return sum(_field(o, "votes") for o in options)


def vote_percentages(options: Sequence[Any]) -> dict[str, int]:
    total = total_votes(options)
    return {_field(o, "id"): percentage(_field(o, "votes"), total) for o in options}


def leading_option(options: Sequence[Any]) -> Optional[Any]:
    """Option with the most votes; the earliest one wins a tie."""
    best = None
    for option in options:
        if best is None or _field(option, "votes") > _field(best, "votes"):
            best = option
    return best
