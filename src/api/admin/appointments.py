# pyright: reportMissingTypeStubs=false
"""
Appointment Management API endpoints.

Calendar listing, status changes, edits, deletion and blocked slots.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, model_validator

from api.dependencies import get_app_id, get_snapshot, get_store
from api.responses import AppointmentListResponse, AppointmentResponse, MessageResponse
from auth.dependencies import UserContext, require_admin
from core.database import RecordStore
from models import Appointment, Patient
from services import AppointmentService, ScheduleSnapshot
from shared_types.appointment_status import AppointmentStatus
from shared_types.booking import AppointmentUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


class StatusUpdateRequest(BaseModel):
    """Request model for a status change."""
    status: AppointmentStatus


class AppointmentUpdateRequest(BaseModel):
    """Request model for editing an appointment. Only sent fields change."""
    status: Optional[AppointmentStatus] = None
    notes: Optional[str] = None
    service_id: Optional[str] = None
    clinical_data: Optional[Dict[str, Any]] = None
    date: Optional[str] = None
    time: Optional[str] = None

    @model_validator(mode='after')
    def validate_at_least_one_field(self):
        """Ensure at least one field is provided for update."""
        if not self.model_dump(exclude_unset=True):
            raise ValueError('Debe enviar al menos un campo para actualizar')
        return self


class BlockSlotRequest(BaseModel):
    """Request model for blocking a calendar slot."""
    location_id: str
    date: str
    time: str


def _patient_names(store: RecordStore, app_id: str) -> Dict[int, str]:
    return {p.id: p.name for p in store.select(Patient, app_id=app_id)}


def _to_list_response(store: RecordStore, app_id: str, appointments: List[Appointment]) -> AppointmentListResponse:
    names = _patient_names(store, app_id)
    return AppointmentListResponse(appointments=[
        AppointmentResponse.from_appointment(a, names.get(a.patient_id)) for a in appointments
    ])


@router.get("/appointments", summary="List appointments", response_model=AppointmentListResponse)
async def list_appointments(
    location_id: Optional[str] = Query(None),
    date: Optional[str] = Query(None, description="Day in YYYY-MM-DD format"),
    include_cancelled: bool = Query(True),
    current_user: UserContext = Depends(require_admin),
    store: RecordStore = Depends(get_store),
    app_id: str = Depends(get_app_id)
) -> AppointmentListResponse:
    appointments = AppointmentService.list_appointments(
        store, app_id, location_id=location_id, date=date, include_cancelled=include_cancelled
    )
    return _to_list_response(store, app_id, appointments)


@router.get("/appointments/day", summary="Calendar view of one day", response_model=AppointmentListResponse)
async def list_day_appointments(
    date: str = Query(..., description="Day in YYYY-MM-DD format"),
    location_id: Optional[str] = Query(None),
    current_user: UserContext = Depends(require_admin),
    store: RecordStore = Depends(get_store),
    app_id: str = Depends(get_app_id)
) -> AppointmentListResponse:
    """Non-cancelled appointments and blocked slots of the day, ordered by time."""
    appointments = AppointmentService.list_day_appointments(store, app_id, date, location_id=location_id)
    return _to_list_response(store, app_id, appointments)


@router.post(
    "/appointments/block",
    summary="Block a calendar slot",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED
)
async def block_slot(
    request: BlockSlotRequest,
    current_user: UserContext = Depends(require_admin),
    store: RecordStore = Depends(get_store),
    snapshot: ScheduleSnapshot = Depends(get_snapshot),
    app_id: str = Depends(get_app_id)
) -> AppointmentResponse:
    appointment = AppointmentService.block_slot(
        store, app_id, request.location_id, request.date, request.time, snapshot=snapshot
    )
    logger.info(f"{current_user.email} blocked {request.location_id} {request.date} {request.time}")
    return AppointmentResponse.from_appointment(appointment)


@router.get("/appointments/{appointment_id}", summary="Get appointment", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: int,
    current_user: UserContext = Depends(require_admin),
    store: RecordStore = Depends(get_store),
    app_id: str = Depends(get_app_id)
) -> AppointmentResponse:
    appointment = AppointmentService.get_appointment(store, app_id, appointment_id)
    return AppointmentResponse.from_appointment(appointment, _patient_names(store, app_id).get(appointment.patient_id))


@router.put("/appointments/{appointment_id}/status", summary="Change appointment status", response_model=AppointmentResponse)
async def update_status(
    appointment_id: int,
    request: StatusUpdateRequest,
    current_user: UserContext = Depends(require_admin),
    store: RecordStore = Depends(get_store),
    snapshot: ScheduleSnapshot = Depends(get_snapshot),
    app_id: str = Depends(get_app_id)
) -> AppointmentResponse:
    """
    Move an appointment through its lifecycle. Illegal transitions return 409.
    """
    appointment = AppointmentService.update_status(
        store, app_id, appointment_id, request.status, snapshot=snapshot
    )
    return AppointmentResponse.from_appointment(appointment)


@router.patch("/appointments/{appointment_id}", summary="Edit appointment", response_model=AppointmentResponse)
async def update_appointment(
    appointment_id: int,
    request: AppointmentUpdateRequest,
    current_user: UserContext = Depends(require_admin),
    store: RecordStore = Depends(get_store),
    snapshot: ScheduleSnapshot = Depends(get_snapshot),
    app_id: str = Depends(get_app_id)
) -> AppointmentResponse:
    """
    Edit status, notes, service, clinical note, or reschedule (date and time together).
    """
    provided = request.model_dump(exclude_unset=True, mode="json")
    update = AppointmentUpdate(**provided)
    appointment = AppointmentService.update_appointment(store, app_id, appointment_id, update, snapshot=snapshot)
    return AppointmentResponse.from_appointment(appointment)


@router.delete("/appointments/{appointment_id}", summary="Delete appointment", response_model=MessageResponse)
async def delete_appointment(
    appointment_id: int,
    current_user: UserContext = Depends(require_admin),
    store: RecordStore = Depends(get_store),
    snapshot: ScheduleSnapshot = Depends(get_snapshot),
    app_id: str = Depends(get_app_id)
) -> MessageResponse:
    AppointmentService.delete_appointment(store, app_id, appointment_id, snapshot=snapshot)
    logger.info(f"{current_user.email} deleted appointment {appointment_id}")
    return MessageResponse(message="Cita eliminada")
