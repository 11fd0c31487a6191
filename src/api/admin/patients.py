# pyright: reportMissingTypeStubs=false
"""
Patient Management API endpoints.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator, model_validator

from api.dependencies import get_app_id, get_snapshot, get_storage, get_store
from api.responses import (
    AppointmentResponse,
    MessageResponse,
    PatientDetailResponse,
    PatientListResponse,
    PatientResponse,
)
from auth.dependencies import UserContext, require_admin
from core.constants import MAX_NOTES_LENGTH, SEARCH_RESULT_LIMIT
from core.database import RecordStore
from core.sentinels import MISSING
from services import PatientService, ScheduleSnapshot
from shared_types.booking import PatientContact
from utils.file_storage import BlobStorage

logger = logging.getLogger(__name__)

router = APIRouter()


def _validate_notes(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    if len(v) > MAX_NOTES_LENGTH:
        raise ValueError(f'Las notas no pueden exceder {MAX_NOTES_LENGTH} caracteres')
    return v


class PatientCreateRequest(BaseModel):
    """Request model for registering a patient from the admin panel."""
    name: str
    phone: str
    email: Optional[str] = None
    notes: Optional[str] = None
    medical_history: Optional[Dict[str, Any]] = None

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, v: Optional[str]) -> Optional[str]:
        return _validate_notes(v)


class PatientUpdateRequest(BaseModel):
    """Request model for updating notes and/or medical history."""
    notes: Optional[str] = None
    medical_history: Optional[Dict[str, Any]] = None

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, v: Optional[str]) -> Optional[str]:
        return _validate_notes(v)

    @model_validator(mode='after')
    def validate_at_least_one_field(self):
        """Ensure at least one field is provided for update."""
        if not self.model_dump(exclude_unset=True):
            raise ValueError('Debe enviar al menos un campo para actualizar')
        return self


@router.get("/patients", summary="List all patients", response_model=PatientListResponse)
async def list_patients(
    search: Optional[str] = Query(None, max_length=200, description="Filter by name or email"),
    current_user: UserContext = Depends(require_admin),
    store: RecordStore = Depends(get_store),
    app_id: str = Depends(get_app_id)
) -> PatientListResponse:
    patients = PatientService.list_patients(store, app_id, search=search)
    return PatientListResponse(patients=[PatientResponse.from_patient(p) for p in patients])


@router.get("/patients/search", summary="Global patient search", response_model=PatientListResponse)
async def search_patients(
    q: str = Query("", max_length=200, description="At least 2 characters"),
    limit: int = Query(SEARCH_RESULT_LIMIT, ge=1, le=50),
    current_user: UserContext = Depends(require_admin),
    store: RecordStore = Depends(get_store),
    app_id: str = Depends(get_app_id)
) -> PatientListResponse:
    """
    Search the global search box. Each result carries the location of the
    patient's latest appointment so the panel can jump to it.
    """
    patients = PatientService.search_patients(store, app_id, q, limit=limit)
    return PatientListResponse(patients=[
        PatientResponse.from_patient(p, last_location_id=PatientService.get_last_location(store, app_id, p.id))
        for p in patients
    ])


@router.post(
    "/patients",
    summary="Register a patient",
    response_model=PatientResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_patient(
    request: PatientCreateRequest,
    current_user: UserContext = Depends(require_admin),
    store: RecordStore = Depends(get_store),
    snapshot: ScheduleSnapshot = Depends(get_snapshot),
    app_id: str = Depends(get_app_id)
) -> PatientResponse:
    """
    Register a new patient. Fails with 409 if the email, or the name and
    phone pair, already belongs to a patient.
    """
    patient = PatientService.register_patient(
        store,
        app_id,
        PatientContact(name=request.name, phone=request.phone, email=request.email),
        notes=request.notes,
        medical_history=request.medical_history,
        snapshot=snapshot,
    )
    return PatientResponse.from_patient(patient, history=[])


@router.get("/patients/{patient_id}", summary="Get patient with history", response_model=PatientDetailResponse)
async def get_patient(
    patient_id: int,
    current_user: UserContext = Depends(require_admin),
    store: RecordStore = Depends(get_store),
    app_id: str = Depends(get_app_id)
) -> PatientDetailResponse:
    patient = PatientService.get_patient(store, app_id, patient_id)
    history = PatientService.get_patient_history(store, app_id, patient_id)
    return PatientDetailResponse(
        patient=PatientResponse.from_patient(
            patient,
            history=history,
            last_location_id=history[0].location_id if history else None,
        ),
        appointments=[AppointmentResponse.from_appointment(a, patient.name) for a in history],
    )


@router.patch("/patients/{patient_id}", summary="Update patient notes or medical history", response_model=PatientResponse)
async def update_patient(
    patient_id: int,
    request: PatientUpdateRequest,
    current_user: UserContext = Depends(require_admin),
    store: RecordStore = Depends(get_store),
    snapshot: ScheduleSnapshot = Depends(get_snapshot),
    app_id: str = Depends(get_app_id)
) -> PatientResponse:
    provided = request.model_dump(exclude_unset=True)
    if 'notes' in provided and provided['notes'] is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Las notas no pueden ser nulas"
        )
    patient = PatientService.update_patient(
        store,
        app_id,
        patient_id,
        notes=provided.get('notes', MISSING),
        medical_history=provided.get('medical_history', MISSING),
        snapshot=snapshot,
    )
    return PatientResponse.from_patient(patient)


@router.delete("/patients/{patient_id}", summary="Delete patient and their records", response_model=MessageResponse)
async def delete_patient(
    patient_id: int,
    current_user: UserContext = Depends(require_admin),
    store: RecordStore = Depends(get_store),
    storage: BlobStorage = Depends(get_storage),
    snapshot: ScheduleSnapshot = Depends(get_snapshot),
    app_id: str = Depends(get_app_id)
) -> MessageResponse:
    """
    Delete a patient together with all their appointments and files.
    """
    deleted_appointments = await PatientService.delete_patient(
        store, storage, app_id, patient_id, snapshot=snapshot
    )
    logger.info(f"{current_user.email} deleted patient {patient_id}")
    return MessageResponse(
        message=f"Paciente eliminado junto con {deleted_appointments} cita(s)"
    )
