"""
Appointment service for the admin calendar.

Covers listing, status changes, edits (including reschedules), deletion and
manually blocked slots. Status changes follow the transition table in
``shared_types.appointment_status``; blocked slots only accept status changes.
"""

import logging
from datetime import date as date_type
from typing import Any, Dict, List, Optional, Union

from fastapi import HTTPException, status
from pydantic import ValidationError

from core.constants import BLOCKED_SLOT_NOTES
from core.database import RecordSession, RecordStore, StoreConflictError
from core.sentinels import MissingType
from models import Appointment
from services.availability_service import AvailabilityService
from services.patient_service import PatientService
from services.snapshot_service import ScheduleSnapshot, refresh_snapshot
from shared_types.appointment_status import (
    AppointmentReason,
    AppointmentStatus,
    can_transition,
    occupies_slot,
)
from shared_types.booking import AppointmentUpdate
from shared_types.clinical import SoapNote
from utils.datetime_utils import parse_date_string

logger = logging.getLogger(__name__)


def _parse_status(value: Union[str, AppointmentStatus]) -> AppointmentStatus:
    try:
        return AppointmentStatus(value)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Estado inválido: {value}"
        )


def _parse_day(value: Union[str, date_type]) -> date_type:
    if isinstance(value, date_type):
        return value
    try:
        return parse_date_string(value)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Fecha inválida (use YYYY-MM-DD)"
        )


class AppointmentService:
    """
    Service class for appointment operations.

    Contains business logic for appointment management used by the admin
    endpoints.
    """

    @staticmethod
    def list_appointments(
        store: RecordStore,
        app_id: str,
        location_id: Optional[str] = None,
        date: Optional[Union[str, date_type]] = None,
        include_cancelled: bool = True
    ) -> List[Appointment]:
        """
        List appointments of the app ordered by start time.

        Args:
            location_id: Optional location filter
            date: Optional day filter
            include_cancelled: Whether cancelled appointments are returned
        """
        filters: Dict[str, Any] = {"app_id": app_id}
        if location_id:
            filters["location_id"] = location_id
        appointments = store.select(Appointment, order_by=Appointment.scheduled_at, **filters)

        if date is not None:
            day = _parse_day(date)
            appointments = [a for a in appointments if a.scheduled_at.date() == day]
        if not include_cancelled:
            appointments = [a for a in appointments if occupies_slot(a.status)]
        return appointments

    @staticmethod
    def list_day_appointments(
        store: RecordStore,
        app_id: str,
        date: Union[str, date_type],
        location_id: Optional[str] = None
    ) -> List[Appointment]:
        """Calendar view of one day: everything except cancelled, sorted by time."""
        return AppointmentService.list_appointments(
            store, app_id, location_id=location_id, date=date, include_cancelled=False
        )

    @staticmethod
    def _get_appointment_in(tx: RecordSession, app_id: str, appointment_id: int) -> Appointment:
        appointment = tx.first(Appointment, app_id=app_id, id=appointment_id)
        if appointment is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Cita no encontrada"
            )
        return appointment

    @staticmethod
    def get_appointment(store: RecordStore, app_id: str, appointment_id: int) -> Appointment:
        """
        Get an appointment of the app.

        Raises:
            HTTPException: 404 if not found
        """
        with store.transaction() as tx:
            return AppointmentService._get_appointment_in(tx, app_id, appointment_id)

    @staticmethod
    def _check_transition(appointment: Appointment, target: AppointmentStatus) -> None:
        if not can_transition(appointment.status, target):
            logger.warning(
                f"Rejected status change of appointment {appointment.id}: "
                f"{appointment.status} -> {target.value}"
            )
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"No se puede cambiar el estado de '{appointment.status}' a '{target.value}'"
            )

    @staticmethod
    def update_status(
        store: RecordStore,
        app_id: str,
        appointment_id: int,
        new_status: Union[str, AppointmentStatus],
        snapshot: Optional[ScheduleSnapshot] = None
    ) -> Appointment:
        """
        Move an appointment to a new status.

        Re-applying the current status is a no-op. Cancelling a blocked slot
        unblocks it.

        Raises:
            HTTPException: 400 unknown status, 404 not found, 409 illegal transition
        """
        return AppointmentService.update_appointment(
            store, app_id, appointment_id, AppointmentUpdate(status=_parse_status(new_status).value), snapshot
        )

    @staticmethod
    def update_appointment(
        store: RecordStore,
        app_id: str,
        appointment_id: int,
        update: AppointmentUpdate,
        snapshot: Optional[ScheduleSnapshot] = None
    ) -> Appointment:
        """
        Apply a partial update to an appointment.

        Accepts status, notes, service_id, clinical_data and a reschedule
        (date and time together). A blocked slot only accepts status changes.
        Whenever the start or the service changes, the new window is checked
        against the location's other appointments.

        Raises:
            HTTPException: 400 invalid input, 404 not found, 409 for an illegal
                transition, an edit of a blocked slot, or an occupied window
        """
        wants_date = not isinstance(update.date, MissingType)
        wants_time = not isinstance(update.time, MissingType)
        if wants_date != wants_time:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Para reprogramar envíe fecha y hora"
            )

        patch: Dict[str, Any] = {}
        target_status: Optional[AppointmentStatus] = None
        if not isinstance(update.status, MissingType):
            target_status = _parse_status(update.status)
            patch["status"] = target_status.value
        if not isinstance(update.notes, MissingType):
            patch["notes"] = PatientService.normalize_notes(update.notes)
        if not isinstance(update.clinical_data, MissingType):
            patch["clinical_data"] = AppointmentService._normalize_clinical_data(update.clinical_data)
        if not isinstance(update.service_id, MissingType):
            patch["service_id"] = update.service_id or None

        try:
            with store.transaction() as tx:
                appointment = AppointmentService._get_appointment_in(tx, app_id, appointment_id)

                is_blocked = appointment.status == AppointmentStatus.BLOCKED.value
                if is_blocked and (set(patch) - {"status"} or wants_date):
                    raise HTTPException(
                        status_code=status.HTTP_409_CONFLICT,
                        detail="Los horarios bloqueados no se pueden editar"
                    )
                if target_status is not None:
                    AppointmentService._check_transition(appointment, target_status)
                    if target_status.value == appointment.status:
                        del patch["status"]

                moves = wants_date or "service_id" in patch
                resulting_status = target_status.value if target_status else appointment.status
                if moves and occupies_slot(resulting_status):
                    AppointmentService._check_new_window(tx, app_id, appointment, update, patch)
                else:
                    if wants_date:
                        _, patch["scheduled_at"] = AvailabilityService.validate_slot_request(
                            appointment.location_id, str(update.date), str(update.time)
                        )
                    if "service_id" in patch:
                        # No window to check, but the service must still exist
                        AvailabilityService.slot_count_for(
                            patch["service_id"], AvailabilityService.get_schedule(appointment.location_id)
                        )

                if patch:
                    tx.update(Appointment, {"app_id": app_id, "id": appointment_id}, patch)
                    appointment = AppointmentService._get_appointment_in(tx, app_id, appointment_id)
        except StoreConflictError:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="El horario seleccionado ya no está disponible"
            )

        if patch:
            logger.info(f"Updated appointment {appointment_id} fields: {sorted(patch)}")
            refresh_snapshot(snapshot, store)
        return appointment

    @staticmethod
    def _normalize_clinical_data(clinical_data: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        if clinical_data is None:
            return None
        try:
            return SoapNote.model_validate(clinical_data).to_store()
        except ValidationError as e:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Nota clínica inválida: {e.errors()[0]['msg']}"
            )

    @staticmethod
    def _check_new_window(
        tx: RecordSession,
        app_id: str,
        appointment: Appointment,
        update: AppointmentUpdate,
        patch: Dict[str, Any]
    ) -> None:
        """Validate the moved or resized window and add ``scheduled_at`` to ``patch``."""
        if isinstance(update.date, MissingType) or isinstance(update.time, MissingType):
            date_str, time_str = appointment.date, appointment.time
        else:
            date_str, time_str = update.date, update.time

        schedule, scheduled_at = AvailabilityService.validate_slot_request(
            appointment.location_id, date_str, time_str
        )
        service_id = patch["service_id"] if "service_id" in patch else appointment.service_id
        slot_count = AvailabilityService.slot_count_for(service_id, schedule)
        AvailabilityService.ensure_slot_free(
            tx,
            app_id,
            appointment.location_id,
            scheduled_at,
            slot_count,
            schedule,
            exclude_appointment_id=appointment.id,
        )
        if scheduled_at != appointment.scheduled_at:
            patch["scheduled_at"] = scheduled_at

    @staticmethod
    def delete_appointment(
        store: RecordStore,
        app_id: str,
        appointment_id: int,
        snapshot: Optional[ScheduleSnapshot] = None
    ) -> None:
        """
        Permanently delete an appointment.

        Raises:
            HTTPException: 404 if not found
        """
        with store.transaction() as tx:
            AppointmentService._get_appointment_in(tx, app_id, appointment_id)
            tx.delete(Appointment, app_id=app_id, id=appointment_id)
        logger.info(f"Deleted appointment {appointment_id}")
        refresh_snapshot(snapshot, store)

    @staticmethod
    def block_slot(
        store: RecordStore,
        app_id: str,
        location_id: str,
        date: str,
        time: str,
        snapshot: Optional[ScheduleSnapshot] = None
    ) -> Appointment:
        """
        Block one calendar slot so it cannot be booked.

        The block is an appointment with status 'blocked' owned by the block
        patient, which is created on first use.

        Raises:
            HTTPException: 400 invalid or closed slot, 409 if the slot is taken
        """
        schedule, scheduled_at = AvailabilityService.validate_slot_request(location_id, date, time)

        try:
            with store.transaction() as tx:
                block_patient = PatientService.get_or_create_block_patient(tx, app_id)
                AvailabilityService.ensure_slot_free(tx, app_id, location_id, scheduled_at, 1, schedule)
                appointment = tx.insert(Appointment, [{
                    "app_id": app_id,
                    "patient_id": block_patient.id,
                    "location_id": location_id,
                    "reason": AppointmentReason.SPECIFIC_SERVICE.value,
                    "scheduled_at": scheduled_at,
                    "status": AppointmentStatus.BLOCKED.value,
                    "notes": BLOCKED_SLOT_NOTES,
                }])[0]
        except StoreConflictError:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="El horario seleccionado ya no está disponible"
            )

        logger.info(f"Blocked slot {location_id} {appointment.date} {appointment.time}")
        refresh_snapshot(snapshot, store)
        return appointment
