"""
Patient service for shared patient business logic.

This module contains all patient-related business logic that is shared
between the public booking flow and the admin panel.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from fastapi import HTTPException, status
from pydantic import ValidationError

from core.constants import (
    BLOCK_PATIENT_EMAIL,
    BLOCK_PATIENT_NAME,
    BLOCK_PATIENT_NOTES,
    BLOCK_PATIENT_PHONE,
    MAX_NOTES_LENGTH,
    MIN_SEARCH_TERM_LENGTH,
    SEARCH_RESULT_LIMIT,
)
from core.database import RecordSession, RecordStore
from core.sentinels import MISSING, MissingType
from models import Appointment, Patient, PatientUpload
from services.snapshot_service import ScheduleSnapshot, refresh_snapshot
from shared_types.booking import PatientContact
from shared_types.clinical import MedicalHistory
from utils.file_storage import BlobStorage, BlobStorageError
from utils.patient_validators import validate_email_field, validate_name_field
from utils.phone_validator import validate_phone

logger = logging.getLogger(__name__)

MATCH_BY_EMAIL = "email"
MATCH_BY_NAME_PHONE = "name_phone"


def is_block_patient(patient: Patient) -> bool:
    """Whether ``patient`` is the reserved owner of blocked slots."""
    return patient.email == BLOCK_PATIENT_EMAIL


class PatientService:
    """
    Service class for patient operations.

    Contains business logic for patient management that is shared
    across different API endpoints.
    """

    @staticmethod
    def validate_contact(contact: PatientContact) -> PatientContact:
        """
        Validate and normalize submitted contact data.

        Returns:
            A new PatientContact with trimmed values and empty email as None

        Raises:
            HTTPException: 400 if a field is missing or malformed
        """
        try:
            name = validate_name_field(contact.name)
            phone = validate_phone(contact.phone)
            email = validate_email_field(contact.email)
        except ValueError as e:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=str(e)
            )

        if email is not None and email == BLOCK_PATIENT_EMAIL:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Este correo está reservado por el sistema"
            )
        return PatientContact(name=name, phone=phone, email=email)

    @staticmethod
    def find_matching_patient(
        tx: RecordSession,
        app_id: str,
        contact: PatientContact
    ) -> Tuple[Optional[Patient], str]:
        """
        Look up the existing patient for a contact.

        With an email, the patient whose email is exactly equal; otherwise the
        patient whose name and phone are both exactly equal. The block patient
        never matches.

        Returns:
            (patient or None, which rule was used)
        """
        if contact.email:
            match_kind = MATCH_BY_EMAIL
            patient = tx.first(Patient, app_id=app_id, email=contact.email)
        else:
            match_kind = MATCH_BY_NAME_PHONE
            patient = tx.first(Patient, app_id=app_id, name=contact.name, phone=contact.phone)

        if patient is not None and is_block_patient(patient):
            return None, match_kind
        return patient, match_kind

    @staticmethod
    def normalize_notes(notes: Optional[str]) -> str:
        notes = notes or ""
        if len(notes) > MAX_NOTES_LENGTH:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Las notas no pueden exceder {MAX_NOTES_LENGTH} caracteres"
            )
        return notes

    @staticmethod
    def _normalize_medical_history(medical_history: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        if medical_history is None:
            return None
        try:
            return MedicalHistory.model_validate(medical_history).to_store()
        except ValidationError as e:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Historia clínica inválida: {e.errors()[0]['msg']}"
            )

    @staticmethod
    def register_patient(
        store: RecordStore,
        app_id: str,
        contact: PatientContact,
        notes: Optional[str] = None,
        medical_history: Optional[Dict[str, Any]] = None,
        snapshot: Optional[ScheduleSnapshot] = None
    ) -> Patient:
        """
        Create a patient from the admin "new patient" form.

        Uses the same match rule as booking but refuses to update an existing
        patient.

        Raises:
            HTTPException: 400 for invalid input, 409 if the patient already exists
        """
        contact = PatientService.validate_contact(contact)
        notes = PatientService.normalize_notes(notes)
        history_doc = PatientService._normalize_medical_history(medical_history)

        with store.transaction() as tx:
            existing, match_kind = PatientService.find_matching_patient(tx, app_id, contact)
            if existing is not None:
                logger.warning(
                    f"Duplicate patient registration in {app_id} matched patient {existing.id} by {match_kind}"
                )
                if match_kind == MATCH_BY_EMAIL:
                    detail = "El paciente ya está registrado con este correo."
                else:
                    detail = "Ya existe un paciente con este nombre y teléfono."
                raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)

            patient = tx.insert(Patient, [{
                "app_id": app_id,
                "name": contact.name,
                "email": contact.email,
                "phone": contact.phone,
                "notes": notes,
                "medical_history": history_doc,
            }])[0]

        logger.info(f"Registered patient {patient.id} in {app_id}")
        refresh_snapshot(snapshot, store)
        return patient

    @staticmethod
    def list_patients(store: RecordStore, app_id: str, search: Optional[str] = None) -> List[Patient]:
        """
        List real patients of an app, ordered by name.

        Args:
            search: Optional case-insensitive substring filter on name or email
        """
        patients = store.select(Patient, order_by=Patient.name, app_id=app_id)
        patients = [p for p in patients if not is_block_patient(p)]
        if search and search.strip():
            needle = search.strip().lower()
            patients = [
                p for p in patients
                if needle in p.name.lower() or needle in (p.email or "").lower()
            ]
        return patients

    @staticmethod
    def search_patients(
        store: RecordStore,
        app_id: str,
        term: str,
        limit: int = SEARCH_RESULT_LIMIT
    ) -> List[Patient]:
        """Global search box: at most ``limit`` matches, none for terms under 2 characters."""
        term = (term or "").strip()
        if len(term) < MIN_SEARCH_TERM_LENGTH:
            return []
        return PatientService.list_patients(store, app_id, search=term)[:limit]

    @staticmethod
    def _get_patient_in(tx: RecordSession, app_id: str, patient_id: int) -> Patient:
        patient = tx.first(Patient, app_id=app_id, id=patient_id)
        if patient is None or is_block_patient(patient):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Paciente no encontrado"
            )
        return patient

    @staticmethod
    def get_patient(store: RecordStore, app_id: str, patient_id: int) -> Patient:
        """
        Get a patient of the app.

        Raises:
            HTTPException: 404 if not found (the block patient is never returned)
        """
        with store.transaction() as tx:
            return PatientService._get_patient_in(tx, app_id, patient_id)

    @staticmethod
    def get_patient_history(store: RecordStore, app_id: str, patient_id: int) -> List[Appointment]:
        """The patient's appointments, newest first."""
        appointments = store.select(Appointment, app_id=app_id, patient_id=patient_id)
        return sorted(appointments, key=lambda a: (a.scheduled_at, a.id), reverse=True)

    @staticmethod
    def get_last_location(store: RecordStore, app_id: str, patient_id: int) -> Optional[str]:
        """Location of the patient's most recent appointment, or None."""
        history = PatientService.get_patient_history(store, app_id, patient_id)
        return history[0].location_id if history else None

    @staticmethod
    def update_patient(
        store: RecordStore,
        app_id: str,
        patient_id: int,
        notes: Union[str, MissingType] = MISSING,
        medical_history: Union[Optional[Dict[str, Any]], MissingType] = MISSING,
        snapshot: Optional[ScheduleSnapshot] = None
    ) -> Patient:
        """
        Update a patient's notes and/or medical history.

        Only fields that are not MISSING change; ``medical_history=None`` clears it.
        """
        patch: Dict[str, Any] = {}
        if not isinstance(notes, MissingType):
            patch["notes"] = PatientService.normalize_notes(notes)
        if not isinstance(medical_history, MissingType):
            patch["medical_history"] = PatientService._normalize_medical_history(medical_history)

        with store.transaction() as tx:
            PatientService._get_patient_in(tx, app_id, patient_id)
            if patch:
                tx.update(Patient, {"app_id": app_id, "id": patient_id}, patch)
            patient = PatientService._get_patient_in(tx, app_id, patient_id)

        if patch:
            logger.info(f"Updated patient {patient_id} fields: {sorted(patch)}")
            refresh_snapshot(snapshot, store)
        return patient

    @staticmethod
    async def delete_patient(
        store: RecordStore,
        storage: BlobStorage,
        app_id: str,
        patient_id: int,
        snapshot: Optional[ScheduleSnapshot] = None
    ) -> int:
        """
        Delete a patient together with its appointments and uploads.

        Records are removed in one transaction. Blobs are removed after the
        commit; a blob failure is logged and does not restore the records.

        Returns:
            Number of appointments deleted with the patient
        """
        with store.transaction() as tx:
            PatientService._get_patient_in(tx, app_id, patient_id)
            uploads = tx.select(PatientUpload, app_id=app_id, patient_id=patient_id)
            deleted_appointments = tx.delete(Appointment, app_id=app_id, patient_id=patient_id)
            tx.delete(PatientUpload, app_id=app_id, patient_id=patient_id)
            tx.delete(Patient, app_id=app_id, id=patient_id)

        blob_paths = [upload.file_path for upload in uploads]
        if blob_paths:
            try:
                await storage.remove(blob_paths)
            except BlobStorageError as e:
                logger.error(f"Patient {patient_id} deleted but {len(blob_paths)} blob(s) remain: {e}")

        logger.info(
            f"Deleted patient {patient_id} with {deleted_appointments} appointment(s) "
            f"and {len(blob_paths)} upload(s)"
        )
        refresh_snapshot(snapshot, store)
        return deleted_appointments

    @staticmethod
    def get_or_create_block_patient(tx: RecordSession, app_id: str) -> Patient:
        """The reserved patient owning blocked slots, created on first use."""
        patient = tx.first(Patient, app_id=app_id, email=BLOCK_PATIENT_EMAIL)
        if patient is not None:
            return patient
        logger.info(f"Creating block patient for {app_id}")
        return tx.insert(Patient, [{
            "app_id": app_id,
            "name": BLOCK_PATIENT_NAME,
            "email": BLOCK_PATIENT_EMAIL,
            "phone": BLOCK_PATIENT_PHONE,
            "notes": BLOCK_PATIENT_NOTES,
        }])[0]
