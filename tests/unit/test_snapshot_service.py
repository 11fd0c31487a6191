"""
Unit tests for the in-memory schedule snapshot.
"""

from datetime import datetime

from models import Appointment, Patient
from services.snapshot_service import ScheduleSnapshot, refresh_snapshot


def _seed(store, app_id: str = "dental") -> None:
    patient = store.insert(Patient, [{"app_id": app_id, "name": "Ana", "phone": "5512345678"}])[0]
    store.insert(Appointment, [{
        "app_id": app_id,
        "patient_id": patient.id,
        "location_id": "consultorio-paris-rizo",
        "reason": "first-visit",
        "scheduled_at": datetime(2025, 3, 10, 10, 0),
        "status": "confirmed",
    }])


class TestScheduleSnapshot:
    """Test snapshot loading and refreshing."""

    def test_starts_empty_and_unloaded(self):
        snapshot = ScheduleSnapshot("dental")

        assert not snapshot.is_loaded
        assert snapshot.appointments == []
        assert snapshot.patients == []

    def test_refresh_loads_only_own_app(self, store):
        _seed(store, "dental")
        _seed(store, "otra-clinica")
        snapshot = ScheduleSnapshot("dental")

        snapshot.refresh(store)

        assert snapshot.is_loaded
        assert len(snapshot.appointments) == 1
        assert len(snapshot.patients) == 1
        assert snapshot.appointments[0].app_id == "dental"

    def test_ensure_loaded_fetches_once(self, store):
        snapshot = ScheduleSnapshot("dental")
        snapshot.ensure_loaded(store)
        _seed(store)

        snapshot.ensure_loaded(store)

        assert snapshot.appointments == []

    def test_refresh_replaces_contents(self, store):
        snapshot = ScheduleSnapshot("dental").ensure_loaded(store)
        _seed(store)

        refresh_snapshot(snapshot, store)

        assert len(snapshot.appointments) == 1

    def test_returned_lists_are_copies(self, store):
        _seed(store)
        snapshot = ScheduleSnapshot("dental").ensure_loaded(store)

        snapshot.appointments.clear()

        assert len(snapshot.appointments) == 1

    def test_refresh_snapshot_without_snapshot_is_noop(self, store):
        refresh_snapshot(None, store)
