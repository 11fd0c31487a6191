"""
Services package for shared business logic.

This package contains service classes that encapsulate business logic
shared across multiple API endpoints.
"""

from .availability_service import AvailabilityService, compute_available_slots, is_slot_available
from .snapshot_service import ScheduleSnapshot
from .patient_service import PatientService
from .booking_service import BookingService
from .appointment_service import AppointmentService
from .patient_file_service import PatientFileService
from .dashboard_service import DashboardService
from .auth_service import AuthService
from .jwt_service import JWTService

__all__ = [
    "AvailabilityService",
    "compute_available_slots",
    "is_slot_available",
    "ScheduleSnapshot",
    "PatientService",
    "BookingService",
    "AppointmentService",
    "PatientFileService",
    "DashboardService",
    "AuthService",
    "JWTService",
]
