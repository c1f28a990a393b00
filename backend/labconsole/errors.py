"""Domain errors for the lab console.

Each error is an ``HTTPException`` so the service layer can raise it directly
and FastAPI renders it without extra handlers. ``code`` is a stable
machine-readable name; ``detail`` carries the human message plus any
structured context (e.g. the conflicting reservations).
"""
from typing import Any, Optional

from fastapi import HTTPException, status


class LabError(HTTPException):
    """Base class for lab console failures scoped to a single operation."""

    code = "lab_error"
    status_code_default = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.context = context
        detail: dict[str, Any] = {"code": self.code, "message": message}
        detail.update(context)
        super().__init__(status_code=self.status_code_default, detail=detail)

    def __str__(self) -> str:
        return self.message


class ValidationError(LabError):
    code = "validation_error"
    status_code_default = status.HTTP_422_UNPROCESSABLE_CONTENT


class Conflict(LabError):
    code = "conflict"
    status_code_default = status.HTTP_409_CONFLICT


class Unauthorized(LabError):
    code = "unauthorized"
    status_code_default = status.HTTP_403_FORBIDDEN


class InvalidTransition(LabError):
    code = "invalid_transition"
    status_code_default = status.HTTP_400_BAD_REQUEST


class TooEarly(LabError):
    code = "too_early"
    status_code_default = status.HTTP_425_TOO_EARLY


class NotFound(LabError):
    code = "not_found"
    status_code_default = status.HTTP_404_NOT_FOUND

    def __init__(self, entity: str, entity_id: Optional[str] = None):
        super().__init__(f"{entity} not found", entity_id=entity_id)
