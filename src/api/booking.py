# pyright: reportMissingTypeStubs=false
"""
Public booking API endpoints.

Locations, services, slot availability and appointment booking for the
public booking site. No authentication is required.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator

from api.dependencies import get_app_id, get_snapshot, get_store
from api.responses import (
    AvailabilityResponse,
    BookingResponse,
    LocationListResponse,
    LocationResponse,
    ServiceListResponse,
    ServiceResponse,
)
from core.database import RecordStore
from services import AvailabilityService, BookingService, ScheduleSnapshot, compute_available_slots
from shared_types.booking import AppointmentDraft, PatientContact
from shared_types.catalog import LOCATIONS, SERVICES
from utils.datetime_utils import format_date, parse_date_string

logger = logging.getLogger(__name__)

router = APIRouter()


class BookingRequest(BaseModel):
    """Request model for a public booking."""
    location_id: str
    date: str  # YYYY-MM-DD
    time: str  # HH:MM
    reason: str  # first-visit | follow-up | specific-service
    service_id: Optional[str] = None
    service_name: Optional[str] = None
    notes: Optional[str] = None
    name: str
    phone: str
    email: Optional[str] = None

    @field_validator('location_id', 'date', 'time', 'reason')
    @classmethod
    def strip_required(cls, v: str) -> str:
        return v.strip()

    @field_validator('service_id', mode='before')
    @classmethod
    def empty_service_as_none(cls, v: Optional[str]) -> Optional[str]:
        """The booking form sends '' when no service is chosen."""
        if v is None or not str(v).strip():
            return None
        return str(v).strip()


@router.get("/locations", summary="List clinic locations", response_model=LocationListResponse)
async def list_locations() -> LocationListResponse:
    return LocationListResponse(locations=[LocationResponse.from_location(loc) for loc in LOCATIONS])


@router.get("/services", summary="List bookable services", response_model=ServiceListResponse)
async def list_services() -> ServiceListResponse:
    return ServiceListResponse(services=[ServiceResponse.from_service(svc) for svc in SERVICES])


@router.get(
    "/locations/{location_id}/slots",
    summary="Get available start times",
    response_model=AvailabilityResponse
)
async def get_available_slots(
    location_id: str,
    date: str = Query(..., description="Day in YYYY-MM-DD format"),
    service_id: Optional[str] = Query(None, description="Service whose duration the window must fit"),
    store: RecordStore = Depends(get_store),
    snapshot: ScheduleSnapshot = Depends(get_snapshot)
) -> AvailabilityResponse:
    """
    Start times at which a booking for ``service_id`` fits on ``date``.

    Computed from the in-memory schedule snapshot, which is loaded on first use
    and refreshed after every booking.
    """
    schedule = AvailabilityService.get_schedule(location_id)
    try:
        day = parse_date_string(date)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Fecha inválida (use YYYY-MM-DD)"
        )
    slot_count = AvailabilityService.slot_count_for(service_id, schedule)

    snapshot.ensure_loaded(store)
    slots = compute_available_slots(
        day,
        location_id,
        snapshot.appointments,
        schedule,
        slot_count=slot_count,
    )
    return AvailabilityResponse(
        location_id=location_id,
        date=format_date(day),
        service_id=service_id or None,
        slots=slots,
    )


@router.post(
    "/bookings",
    summary="Book an appointment",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_booking(
    request: BookingRequest,
    store: RecordStore = Depends(get_store),
    snapshot: ScheduleSnapshot = Depends(get_snapshot),
    app_id: str = Depends(get_app_id)
) -> BookingResponse:
    """
    Book an appointment, matching the contact to an existing patient or creating one.
    """
    draft = AppointmentDraft(
        location_id=request.location_id,
        date=request.date,
        time=request.time,
        reason=request.reason,
        service_id=request.service_id,
        service_name=request.service_name,
        notes=request.notes or "",
    )
    contact = PatientContact(name=request.name, phone=request.phone, email=request.email)

    appointment = BookingService.book_appointment(store, app_id, draft, contact, snapshot=snapshot)
    return BookingResponse(
        appointment_id=appointment.id,
        patient_id=appointment.patient_id,
        location_id=appointment.location_id,
        date=appointment.date,
        time=appointment.time,
        status=appointment.status,
    )
