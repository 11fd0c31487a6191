"""
Unit tests for the availability engine.
"""

from datetime import date, datetime

import pytest
from fastapi import HTTPException

from models import Appointment
from services.availability_service import (
    AvailabilityService,
    compute_available_slots,
    generate_candidate_slots,
    is_slot_available,
)
from shared_types.catalog import LocationSchedule, Service, get_location_schedule

LOCATION_ID = "consultorio-paris-rizo"
MONDAY = date(2025, 3, 10)
SUNDAY = date(2025, 3, 9)

FULL_DAY = [
    "09:00", "09:30", "10:00", "10:30", "11:00", "11:30",
    "12:00", "12:30", "13:00", "13:30", "14:00", "14:30",
]


def make_appointment(
    appointment_id: int,
    start: datetime,
    status: str = "confirmed",
    service_id=None,
    location_id: str = LOCATION_ID
) -> Appointment:
    return Appointment(
        id=appointment_id,
        app_id="dental",
        patient_id=1,
        location_id=location_id,
        service_id=service_id,
        reason="first-visit",
        scheduled_at=start,
        status=status,
        notes="",
    )


@pytest.fixture
def schedule() -> LocationSchedule:
    return get_location_schedule(LOCATION_ID)


class TestCandidateGeneration:
    """Test candidate slot sequence generation."""

    def test_default_schedule_runs_nine_to_fifteen_exclusive(self, schedule):
        assert generate_candidate_slots(schedule) == FULL_DAY

    def test_custom_interval(self):
        custom = LocationSchedule(allowed_days=frozenset({1}), start_hour=8, end_hour=10, interval_minutes=45)
        assert generate_candidate_slots(custom) == ["08:00", "08:45", "09:30"]


class TestComputeAvailableSlots:
    """Test compute_available_slots behavior."""

    def test_closed_weekday_returns_nothing(self, schedule):
        assert compute_available_slots(SUNDAY, LOCATION_ID, [], schedule) == []

    def test_every_closed_weekday_returns_nothing(self):
        monday_only = LocationSchedule(allowed_days=frozenset({1}))
        for day in range(9, 16):  # Sunday 9th .. Saturday 15th
            target = date(2025, 3, day)
            result = compute_available_slots(target, LOCATION_ID, [], monday_only)
            if target == MONDAY:
                assert result == FULL_DAY
            else:
                assert result == []

    def test_unknown_location_returns_nothing(self):
        assert compute_available_slots(MONDAY, "nowhere", [], get_location_schedule("nowhere")) == []

    def test_open_day_without_appointments_returns_full_sequence(self, schedule):
        assert compute_available_slots(MONDAY, LOCATION_ID, [], schedule) == FULL_DAY

    def test_accepts_date_string(self, schedule):
        assert compute_available_slots("2025-03-10", LOCATION_ID, [], schedule) == FULL_DAY

    def test_single_slot_appointment_consumes_its_start_only(self, schedule):
        appointments = [make_appointment(1, datetime(2025, 3, 10, 10, 0))]

        result = compute_available_slots(MONDAY, LOCATION_ID, appointments, schedule)

        assert "10:00" not in result
        assert "09:30" in result
        assert "10:30" in result
        assert len(result) == len(FULL_DAY) - 1

    def test_two_slot_service_consumes_consecutive_slots(self, schedule):
        # srv-1 lasts 60 minutes: two 30-minute slots
        appointments = [make_appointment(1, datetime(2025, 3, 10, 11, 0), service_id="srv-1")]

        result = compute_available_slots(MONDAY, LOCATION_ID, appointments, schedule, slot_count=1)

        assert "11:00" not in result
        assert "11:30" not in result
        assert "12:00" in result
        assert "10:30" in result

    def test_multi_slot_request_needs_whole_window_free(self, schedule):
        appointments = [make_appointment(1, datetime(2025, 3, 10, 11, 0))]

        result = compute_available_slots(MONDAY, LOCATION_ID, appointments, schedule, slot_count=2)

        # 10:30 would need 10:30 and 11:00
        assert "10:30" not in result
        assert "11:00" not in result
        assert "11:30" in result
        assert "10:00" in result

    def test_no_partial_trailing_window(self, schedule):
        result = compute_available_slots(MONDAY, LOCATION_ID, [], schedule, slot_count=2)

        assert "14:30" not in result
        assert result[-1] == "14:00"

        result = compute_available_slots(MONDAY, LOCATION_ID, [], schedule, slot_count=3)
        assert result[-1] == "13:30"

    def test_cancelled_appointments_do_not_occupy(self, schedule):
        appointments = [make_appointment(1, datetime(2025, 3, 10, 10, 0), status="cancelled")]

        assert compute_available_slots(MONDAY, LOCATION_ID, appointments, schedule) == FULL_DAY

    @pytest.mark.parametrize("status", ["pending", "confirmed", "waiting_room", "in_progress", "finished", "blocked"])
    def test_non_cancelled_statuses_occupy(self, schedule, status):
        appointments = [make_appointment(1, datetime(2025, 3, 10, 9, 0), status=status)]

        assert "09:00" not in compute_available_slots(MONDAY, LOCATION_ID, appointments, schedule)

    def test_other_days_and_locations_are_ignored(self, schedule):
        appointments = [
            make_appointment(1, datetime(2025, 3, 11, 10, 0)),
            make_appointment(2, datetime(2025, 3, 10, 10, 0), location_id="otra-sede"),
        ]

        assert compute_available_slots(MONDAY, LOCATION_ID, appointments, schedule) == FULL_DAY

    def test_unknown_service_consumes_one_slot(self, schedule):
        appointments = [make_appointment(1, datetime(2025, 3, 10, 10, 0), service_id="srv-unknown")]

        result = compute_available_slots(MONDAY, LOCATION_ID, appointments, schedule)

        assert "10:00" not in result
        assert "10:30" in result

    def test_custom_service_catalog(self, schedule):
        services = {"long": Service(id="long", name="Cirugía", duration_minutes=90)}
        appointments = [make_appointment(1, datetime(2025, 3, 10, 9, 0), service_id="long")]

        result = compute_available_slots(MONDAY, LOCATION_ID, appointments, schedule, services=services)

        assert result[0] == "10:30"

    def test_excluded_appointment_is_ignored(self, schedule):
        appointments = [make_appointment(7, datetime(2025, 3, 10, 10, 0))]

        result = compute_available_slots(
            MONDAY, LOCATION_ID, appointments, schedule, exclude_appointment_id=7
        )

        assert result == FULL_DAY

    def test_result_is_deterministic(self, schedule):
        appointments = [
            make_appointment(1, datetime(2025, 3, 10, 12, 0), service_id="srv-1"),
            make_appointment(2, datetime(2025, 3, 10, 9, 30)),
        ]

        first = compute_available_slots(MONDAY, LOCATION_ID, appointments, schedule)
        second = compute_available_slots(MONDAY, LOCATION_ID, list(reversed(appointments)), schedule)

        assert first == second
        assert first == sorted(first)


class TestIsSlotAvailable:
    """Test the single-slot check."""

    def test_free_and_taken_slots(self, schedule):
        appointments = [make_appointment(1, datetime(2025, 3, 10, 11, 0), service_id="srv-1")]

        assert is_slot_available(MONDAY, "12:00", LOCATION_ID, appointments, schedule)
        assert not is_slot_available(MONDAY, "11:30", LOCATION_ID, appointments, schedule)

    def test_off_grid_time_is_not_available(self, schedule):
        assert not is_slot_available(MONDAY, "10:15", LOCATION_ID, [], schedule)


class TestAvailabilityServiceValidation:
    """Test request validation helpers."""

    def test_valid_request_returns_timestamp(self):
        schedule, scheduled_at = AvailabilityService.validate_slot_request(LOCATION_ID, "2025-03-10", "10:30")

        assert scheduled_at == datetime(2025, 3, 10, 10, 30)
        assert schedule.interval_minutes == 30

    @pytest.mark.parametrize("location_id,day,time", [
        ("nowhere", "2025-03-10", "10:00"),       # unknown location
        (LOCATION_ID, "2025-03-09", "10:00"),     # Sunday
        (LOCATION_ID, "10/03/2025", "10:00"),     # bad date
        (LOCATION_ID, "2025-03-10", "10am"),      # bad time
        (LOCATION_ID, "2025-03-10", "10:15"),     # not half-hour aligned
        (LOCATION_ID, "2025-03-10", "15:00"),     # after closing
        (LOCATION_ID, "2025-03-10", "08:30"),     # before opening
    ])
    def test_invalid_requests_are_rejected(self, location_id, day, time):
        with pytest.raises(HTTPException) as exc_info:
            AvailabilityService.validate_slot_request(location_id, day, time)
        assert exc_info.value.status_code == 400

    def test_slot_count_for_services(self, schedule):
        assert AvailabilityService.slot_count_for(None, schedule) == 1
        assert AvailabilityService.slot_count_for("srv-1", schedule) == 2
        assert AvailabilityService.slot_count_for("srv-2", schedule) == 1

    def test_unknown_service_is_rejected(self, schedule):
        with pytest.raises(HTTPException) as exc_info:
            AvailabilityService.slot_count_for("srv-x", schedule)
        assert exc_info.value.status_code == 400

    def test_unknown_location_schedule_is_404(self):
        with pytest.raises(HTTPException) as exc_info:
            AvailabilityService.get_schedule("nowhere")
        assert exc_info.value.status_code == 404
