"""
In-memory schedule snapshot.

Holds the most recently fetched appointments and patients of one app id. Every
successful mutation refreshes it, and the public availability endpoint reads
from it instead of querying the store on each request.
"""

import logging
import threading
from typing import List, Optional

from core.database import RecordStore
from models import Appointment, Patient

logger = logging.getLogger(__name__)


class ScheduleSnapshot:
    """Last known appointment and patient lists of an app id."""

    def __init__(self, app_id: str):
        self.app_id = app_id
        self._lock = threading.Lock()
        self._appointments: List[Appointment] = []
        self._patients: List[Patient] = []
        self._loaded = False

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def appointments(self) -> List[Appointment]:
        with self._lock:
            return list(self._appointments)

    @property
    def patients(self) -> List[Patient]:
        with self._lock:
            return list(self._patients)

    def refresh(self, store: RecordStore) -> None:
        """Re-fetch both lists and replace the snapshot as a whole."""
        with store.transaction() as tx:
            appointments = tx.select(Appointment, order_by=Appointment.scheduled_at, app_id=self.app_id)
            patients = tx.select(Patient, order_by=Patient.name, app_id=self.app_id)
        with self._lock:
            self._appointments = appointments
            self._patients = patients
            self._loaded = True
        logger.debug(
            f"Snapshot refreshed for {self.app_id}: "
            f"{len(appointments)} appointments, {len(patients)} patients"
        )

    def ensure_loaded(self, store: RecordStore) -> "ScheduleSnapshot":
        if not self._loaded:
            self.refresh(store)
        return self


def refresh_snapshot(snapshot: Optional[ScheduleSnapshot], store: RecordStore) -> None:
    """Refresh ``snapshot`` if one was given."""
    if snapshot is not None:
        snapshot.refresh(store)
