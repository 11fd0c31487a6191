"""
Inputs of the booking and appointment-editing flows.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from core.sentinels import MISSING, MissingType


@dataclass
class PatientContact:
    """Contact data submitted with a booking or a patient registration."""
    name: str
    phone: str
    email: Optional[str] = None


@dataclass
class AppointmentDraft:
    """
    Requested appointment.

    ``service_name`` is the free-text description required when ``reason`` is
    'specific-service'; it is ignored for the other reasons.
    """
    location_id: str
    date: str  # YYYY-MM-DD
    time: str  # HH:MM
    reason: str
    service_id: Optional[str] = None
    service_name: Optional[str] = None
    notes: str = ""


@dataclass
class AppointmentUpdate:
    """
    Partial appointment update. Fields left as MISSING are not touched.

    ``date`` and ``time`` must be given together; ``None`` for ``service_id``
    or ``clinical_data`` clears the value.
    """
    status: Union[str, MissingType] = MISSING
    notes: Union[str, MissingType] = MISSING
    service_id: Union[Optional[str], MissingType] = MISSING
    clinical_data: Union[Optional[Dict[str, Any]], MissingType] = MISSING
    date: Union[str, MissingType] = MISSING
    time: Union[str, MissingType] = MISSING
