"""
Shared response models for API endpoints.

This module contains Pydantic response models that are shared across
multiple API endpoints to ensure consistency and reduce duplication.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from models import AdminSession, Appointment, Patient
from services.dashboard_service import DashboardOverview
from services.patient_file_service import PatientFile
from shared_types.catalog import Location, Service


class LocationResponse(BaseModel):
    """Response model for a location and its weekly schedule."""
    id: str
    name: str
    address: str
    image: str
    allowed_days: List[int]  # 0=Sunday .. 6=Saturday
    start_hour: int
    end_hour: int
    interval_minutes: int

    @classmethod
    def from_location(cls, location: Location) -> "LocationResponse":
        return cls(
            id=location.id,
            name=location.name,
            address=location.address,
            image=location.image,
            allowed_days=sorted(location.schedule.allowed_days),
            start_hour=location.schedule.start_hour,
            end_hour=location.schedule.end_hour,
            interval_minutes=location.schedule.interval_minutes,
        )


class LocationListResponse(BaseModel):
    """Response model for listing locations."""
    locations: List[LocationResponse]


class ServiceResponse(BaseModel):
    """Response model for a catalog service."""
    id: str
    name: str
    description: Optional[str] = None
    duration_minutes: int
    price: Optional[float] = None
    slot_count: int

    @classmethod
    def from_service(cls, service: Service) -> "ServiceResponse":
        return cls(
            id=service.id,
            name=service.name,
            description=service.description,
            duration_minutes=service.duration_minutes,
            price=service.price,
            slot_count=service.slot_count(),
        )


class ServiceListResponse(BaseModel):
    """Response model for listing services."""
    services: List[ServiceResponse]


class AvailabilityResponse(BaseModel):
    """Response model for availability query."""
    location_id: str
    date: str
    service_id: Optional[str] = None
    slots: List[str]  # "HH:MM", ascending


class AppointmentResponse(BaseModel):
    """Response model for an appointment."""
    id: int
    patient_id: int
    location_id: str
    service_id: Optional[str] = None
    service_name: Optional[str] = None
    reason: str
    date: str
    time: str
    status: str
    notes: str
    clinical_data: Optional[Dict[str, Any]] = None
    patient_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_appointment(cls, appointment: Appointment, patient_name: Optional[str] = None) -> "AppointmentResponse":
        return cls(
            id=appointment.id,
            patient_id=appointment.patient_id,
            location_id=appointment.location_id,
            service_id=appointment.service_id,
            service_name=appointment.service_name,
            reason=appointment.reason,
            date=appointment.date,
            time=appointment.time,
            status=appointment.status,
            notes=appointment.notes or "",
            clinical_data=appointment.clinical_data,
            patient_name=patient_name,
            created_at=appointment.created_at,
            updated_at=appointment.updated_at,
        )


class AppointmentListResponse(BaseModel):
    """Response model for listing appointments."""
    appointments: List[AppointmentResponse]


class BookingResponse(BaseModel):
    """Response model for a public booking."""
    appointment_id: int
    patient_id: int
    location_id: str
    date: str
    time: str
    status: str


class PatientResponse(BaseModel):
    """Response model for patient information."""
    id: int
    name: str
    email: Optional[str] = None
    phone: str
    notes: str
    medical_history: Optional[Dict[str, Any]] = None
    created_at: datetime
    history: Optional[List[int]] = None  # appointment ids, newest first
    last_location_id: Optional[str] = None

    @classmethod
    def from_patient(
        cls,
        patient: Patient,
        history: Optional[List[Appointment]] = None,
        last_location_id: Optional[str] = None
    ) -> "PatientResponse":
        return cls(
            id=patient.id,
            name=patient.name,
            email=patient.email,
            phone=patient.phone,
            notes=patient.notes or "",
            medical_history=patient.medical_history,
            created_at=patient.created_at,
            history=[a.id for a in history] if history is not None else None,
            last_location_id=last_location_id,
        )


class PatientDetailResponse(BaseModel):
    """Response model for a patient with their appointment history."""
    patient: PatientResponse
    appointments: List[AppointmentResponse]


class PatientListResponse(BaseModel):
    """Response model for listing patients."""
    patients: List[PatientResponse]


class PatientFileResponse(BaseModel):
    """Response model for a patient attachment."""
    id: int
    patient_id: int
    file_name: str
    file_path: str
    file_type: str
    description: Optional[str] = None
    created_at: datetime
    public_url: str
    thumbnail_url: Optional[str] = None

    @classmethod
    def from_patient_file(cls, patient_file: PatientFile) -> "PatientFileResponse":
        upload = patient_file.upload
        return cls(
            id=upload.id,
            patient_id=upload.patient_id,
            file_name=upload.file_name,
            file_path=upload.file_path,
            file_type=upload.file_type,
            description=upload.description,
            created_at=upload.created_at,
            public_url=patient_file.public_url,
            thumbnail_url=patient_file.thumbnail_url,
        )


class PatientFileListResponse(BaseModel):
    """Response model for listing patient attachments."""
    files: List[PatientFileResponse]


class OverviewResponse(BaseModel):
    """Response model for the admin overview."""
    today: date
    today_count: int
    week_count: int
    active_patients: int
    active_locations: int
    today_appointments: List[AppointmentResponse]

    @classmethod
    def from_overview(cls, overview: DashboardOverview, patient_names: Dict[int, str]) -> "OverviewResponse":
        return cls(
            today=overview.today,
            today_count=overview.today_count,
            week_count=overview.week_count,
            active_patients=overview.active_patients,
            active_locations=overview.active_locations,
            today_appointments=[
                AppointmentResponse.from_appointment(a, patient_names.get(a.patient_id))
                for a in overview.today_appointments
            ],
        )


class SessionResponse(BaseModel):
    """Response model for an admin session."""
    email: str
    session_id: str
    expires_at: datetime

    @classmethod
    def from_session(cls, session: AdminSession) -> "SessionResponse":
        return cls(email=session.email, session_id=session.id, expires_at=session.expires_at)


class LoginResponse(BaseModel):
    """Response model for a successful admin sign-in."""
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    email: str


class MessageResponse(BaseModel):
    """Generic acknowledgement."""
    success: bool = True
    message: str
