# Package initialization
# Import all models so every table is registered on Base.metadata
from .patient import Patient
from .appointment import Appointment
from .patient_upload import PatientUpload
from .admin_session import AdminSession

__all__ = [
    "Patient",
    "Appointment",
    "PatientUpload",
    "AdminSession",
]
