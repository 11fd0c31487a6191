"""
Shared type definitions for the dental booking backend.

This module contains dataclasses, enums and pydantic documents that are used
across multiple services.
"""

from shared_types.appointment_status import AppointmentReason, AppointmentStatus
from shared_types.catalog import Location, LocationSchedule, Service
from shared_types.clinical import Address, MedicalHistory, SoapNote

__all__ = [
    "AppointmentReason",
    "AppointmentStatus",
    "Location",
    "LocationSchedule",
    "Service",
    "Address",
    "MedicalHistory",
    "SoapNote",
]
