"""Tests for the availability calculator (pure, no database)."""
from datetime import timedelta

import pytest

from labconsole.errors import ValidationError
from labconsole.models.machine import Machine, MachineCategory, MachineStatus
from labconsole.models.reservation import Reservation, ReservationStatus
from labconsole.services.availability_service import check_availability
from tests.conftest import BASE_TIME

TEN = BASE_TIME.replace(hour=10)


def _machine(machine_id="m-1"):
    return Machine(machine_id=machine_id, name="Prusa", category=MachineCategory.printer, status=MachineStatus.idle)


def _reservation(reservation_id, start_hour, end_hour, status=ReservationStatus.approved, machine_id="m-1"):
    return Reservation(
        reservation_id=reservation_id,
        machine_id=machine_id,
        member_id="member-1",
        start_time_utc=TEN.replace(hour=start_hour),
        end_time_utc=TEN.replace(hour=end_hour),
        status=status,
    )


class TestConflictDetection:

    def test_overlapping_approved_reservation_conflicts(self):
        """10:00-12:00 approved; 11:00-13:00 candidate is unavailable and names it."""
        existing = _reservation("r-1", 10, 12)
        result = check_availability(_machine(), TEN.replace(hour=11), TEN.replace(hour=13), [existing])
        assert result["available"] is False
        assert result["conflicts"] == [existing]

    def test_pending_reservation_also_blocks(self):
        existing = _reservation("r-1", 10, 12, status=ReservationStatus.pending)
        result = check_availability(_machine(), TEN.replace(hour=11), TEN.replace(hour=12), [existing])
        assert result["available"] is False

    @pytest.mark.parametrize("status", [
        ReservationStatus.rejected,
        ReservationStatus.completed,
        ReservationStatus.cancelled,
    ])
    def test_terminal_reservations_never_conflict(self, status):
        existing = _reservation("r-1", 10, 12, status=status)
        result = check_availability(_machine(), TEN.replace(hour=11), TEN.replace(hour=13), [existing])
        assert result == {"available": True, "conflicts": []}

    def test_other_machines_ignored(self):
        existing = _reservation("r-1", 10, 12, machine_id="m-2")
        result = check_availability(_machine(), TEN, TEN.replace(hour=12), [existing])
        assert result["available"] is True

    def test_back_to_back_windows_are_free(self):
        existing = _reservation("r-1", 10, 12)
        result = check_availability(_machine(), TEN.replace(hour=12), TEN.replace(hour=14), [existing])
        assert result["available"] is True

    def test_conflicts_sorted_by_start(self):
        late = _reservation("late", 13, 14)
        early = _reservation("early", 10, 11)
        result = check_availability(_machine(), TEN, TEN.replace(hour=14), [late, early])
        assert [r.reservation_id for r in result["conflicts"]] == ["early", "late"]

    def test_exclude_reservation_id(self):
        own = _reservation("own", 10, 12, status=ReservationStatus.pending)
        result = check_availability(_machine(), TEN, TEN.replace(hour=12), [own], exclude_reservation_id="own")
        assert result["available"] is True

    def test_idempotent(self):
        existing = [_reservation("r-1", 10, 12), _reservation("r-2", 12, 13, status=ReservationStatus.rejected)]
        first = check_availability(_machine(), TEN.replace(hour=11), TEN.replace(hour=13), existing)
        second = check_availability(_machine(), TEN.replace(hour=11), TEN.replace(hour=13), existing)
        assert first == second
        assert existing[0].status == ReservationStatus.approved


class TestWindowValidation:

    def test_end_before_start_rejected(self):
        with pytest.raises(ValidationError):
            check_availability(_machine(), TEN.replace(hour=12), TEN, [])

    def test_empty_window_rejected(self):
        with pytest.raises(ValidationError):
            check_availability(_machine(), TEN, TEN, [])

    def test_exactly_max_duration_accepted(self):
        result = check_availability(_machine(), TEN, TEN + timedelta(hours=4), [])
        assert result["available"] is True

    def test_one_minute_over_max_rejected(self):
        with pytest.raises(ValidationError) as exc:
            check_availability(_machine(), TEN, TEN + timedelta(hours=4, minutes=1), [])
        assert exc.value.status_code == 422
        assert exc.value.detail["code"] == "validation_error"

    def test_custom_max_duration(self):
        with pytest.raises(ValidationError):
            check_availability(_machine(), TEN, TEN + timedelta(minutes=31), [], max_duration=timedelta(minutes=30))
