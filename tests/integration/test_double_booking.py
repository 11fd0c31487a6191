"""
Integration tests for double-booking protection.

The in-transaction re-check catches sequential conflicts; the partial unique
index on active appointments catches a writer that skipped the check.
"""

from datetime import datetime

import pytest
from fastapi import HTTPException

from core.database import StoreConflictError
from models import Appointment, Patient
from services import AppointmentService, BookingService
from services.availability_service import AvailabilityService
from shared_types.booking import AppointmentDraft, PatientContact
from tests.conftest import APP_ID, LOCATION_ID, MONDAY


def _insert_raw(store, patient_id: int, status: str = "confirmed") -> Appointment:
    return store.insert(Appointment, [{
        "app_id": APP_ID,
        "patient_id": patient_id,
        "location_id": LOCATION_ID,
        "reason": "first-visit",
        "scheduled_at": datetime(2025, 3, 10, 10, 0),
        "status": status,
    }])[0]


class TestDoubleBooking:
    """Test that one start time holds at most one active appointment."""

    def test_unique_index_rejects_second_active_appointment(self, store):
        patient = store.insert(Patient, [{"app_id": APP_ID, "name": "Ana", "phone": "5512345678"}])[0]
        _insert_raw(store, patient.id)

        with pytest.raises(StoreConflictError):
            _insert_raw(store, patient.id)

    def test_unique_index_ignores_cancelled(self, store):
        patient = store.insert(Patient, [{"app_id": APP_ID, "name": "Ana", "phone": "5512345678"}])[0]
        _insert_raw(store, patient.id, status="cancelled")
        _insert_raw(store, patient.id, status="cancelled")

        assert _insert_raw(store, patient.id).status == "confirmed"

    def test_index_conflict_during_booking_becomes_409(self, store, monkeypatch):
        """Test the race where another writer commits between re-check and insert."""
        patient = store.insert(Patient, [{"app_id": APP_ID, "name": "Ana", "phone": "5512345678"}])[0]
        _insert_raw(store, patient.id)
        monkeypatch.setattr(AvailabilityService, "ensure_slot_free", staticmethod(lambda *args, **kwargs: None))
        draft = AppointmentDraft(location_id=LOCATION_ID, date=MONDAY, time="10:00", reason="first-visit")

        with pytest.raises(HTTPException) as exc_info:
            BookingService.book_appointment(
                store, APP_ID, draft, PatientContact(name="Luis Pérez", phone="5587654321")
            )

        assert exc_info.value.status_code == 409
        assert store.first(Patient, name="Luis Pérez") is None

    def test_sequential_bookings_for_every_slot(self, store):
        """Test that a fully booked day rejects one more booking."""
        times = ["09:00", "09:30", "10:00", "10:30", "11:00", "11:30",
                 "12:00", "12:30", "13:00", "13:30", "14:00", "14:30"]
        for index, time in enumerate(times):
            draft = AppointmentDraft(location_id=LOCATION_ID, date=MONDAY, time=time, reason="follow-up")
            BookingService.book_appointment(
                store, APP_ID, draft, PatientContact(name=f"Paciente {index}", phone=f"55000000{index:02d}")
            )

        for time in times:
            draft = AppointmentDraft(location_id=LOCATION_ID, date=MONDAY, time=time, reason="follow-up")
            with pytest.raises(HTTPException) as exc_info:
                BookingService.book_appointment(
                    store, APP_ID, draft, PatientContact(name="Tarde", phone="5599999999")
                )
            assert exc_info.value.status_code == 409

    def test_block_conflicts_with_booking(self, store):
        draft = AppointmentDraft(location_id=LOCATION_ID, date=MONDAY, time="10:00", reason="first-visit")
        BookingService.book_appointment(store, APP_ID, draft, PatientContact(name="Ana", phone="5512345678"))

        with pytest.raises(HTTPException) as exc_info:
            AppointmentService.block_slot(store, APP_ID, LOCATION_ID, MONDAY, "10:00")

        assert exc_info.value.status_code == 409
