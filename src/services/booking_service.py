"""
Booking service: public appointment booking with patient reconciliation.

A booking matches the submitted contact to an existing patient (by email, or
by name and phone when no email is given), overwrites that patient's contact
fields or creates a new patient, and inserts a confirmed appointment. Patient
write, slot re-check and appointment insert share one store transaction, so a
rejected appointment never leaves a half-created patient behind.
"""

import logging
from typing import Optional

from fastapi import HTTPException, status

from core.database import RecordStore, StoreConflictError
from models import Appointment, Patient
from services.availability_service import AvailabilityService
from services.patient_service import PatientService
from services.snapshot_service import ScheduleSnapshot, refresh_snapshot
from shared_types.appointment_status import AppointmentReason, AppointmentStatus
from shared_types.booking import AppointmentDraft, PatientContact

logger = logging.getLogger(__name__)


class BookingService:
    """Service class for public bookings."""

    @staticmethod
    def _validate_reason(draft: AppointmentDraft) -> AppointmentReason:
        try:
            reason = AppointmentReason(draft.reason)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Motivo de consulta inválido"
            )
        if reason == AppointmentReason.SPECIFIC_SERVICE and not (draft.service_name or "").strip():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Describa el servicio que necesita"
            )
        return reason

    @staticmethod
    def book_appointment(
        store: RecordStore,
        app_id: str,
        draft: AppointmentDraft,
        contact: PatientContact,
        snapshot: Optional[ScheduleSnapshot] = None
    ) -> Appointment:
        """
        Book an appointment for a contact, creating or updating the patient.

        Args:
            store: Record store
            app_id: Deployment scope
            draft: Requested location, day, time, reason and service
            contact: Submitted name, phone and optional email
            snapshot: Snapshot to refresh after the booking commits

        Returns:
            The created appointment (status 'confirmed')

        Raises:
            HTTPException: 400 for invalid input (checked before any store call),
                409 if the requested window is no longer free
        """
        reason = BookingService._validate_reason(draft)
        schedule, scheduled_at = AvailabilityService.validate_slot_request(
            draft.location_id, draft.date, draft.time
        )
        slot_count = AvailabilityService.slot_count_for(draft.service_id, schedule)
        contact = PatientService.validate_contact(contact)
        notes = PatientService.normalize_notes(draft.notes)

        try:
            with store.transaction() as tx:
                patient, match_kind = PatientService.find_matching_patient(tx, app_id, contact)
                if patient is not None:
                    # Always overwrite: the submitted contact is authoritative
                    tx.update(Patient, {"id": patient.id}, {
                        "name": contact.name,
                        "phone": contact.phone,
                        "email": contact.email,
                    })
                    patient_id = patient.id
                    logger.info(f"Booking matched patient {patient_id} by {match_kind}")
                else:
                    patient_id = tx.insert(Patient, [{
                        "app_id": app_id,
                        "name": contact.name,
                        "email": contact.email,
                        "phone": contact.phone,
                        "notes": "",
                    }])[0].id
                    logger.info(f"Booking created patient {patient_id} in {app_id}")

                AvailabilityService.ensure_slot_free(
                    tx, app_id, draft.location_id, scheduled_at, slot_count, schedule
                )

                appointment = tx.insert(Appointment, [{
                    "app_id": app_id,
                    "patient_id": patient_id,
                    "location_id": draft.location_id,
                    "service_id": draft.service_id or None,
                    "service_name": (
                        draft.service_name.strip()
                        if reason == AppointmentReason.SPECIFIC_SERVICE and draft.service_name
                        else None
                    ),
                    "reason": reason.value,
                    "scheduled_at": scheduled_at,
                    "status": AppointmentStatus.CONFIRMED.value,
                    "notes": notes,
                }])[0]
        except StoreConflictError:
            # Lost a race for the same start time; the partial unique index rejected it
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="El horario seleccionado ya no está disponible"
            )

        logger.info(
            f"Booked appointment {appointment.id} for patient {patient_id} at "
            f"{draft.location_id} {appointment.date} {appointment.time}"
        )
        refresh_snapshot(snapshot, store)
        return appointment
