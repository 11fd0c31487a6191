"""
Patient model representing individuals who book and receive dental care.

Patients are created either by the public booking flow (match-or-create from
contact data) or by staff from the admin panel. Within one app id a patient is
identified by email when present, otherwise by the name and phone pair.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, String, Text, TIMESTAMP, Index
from sqlalchemy.orm import Mapped, mapped_column

from core.database import Base


class Patient(Base):
    """
    Patient entity scoped to one app id.

    Appointments and uploads reference the patient by id. There are no ORM
    relationships; services query related rows explicitly through the record
    store so records stay usable after their session closes.
    """

    __tablename__ = "patients"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    """Unique identifier for the patient."""

    app_id: Mapped[str] = mapped_column(String(64))
    """Deployment scope (tenant partition key) this patient belongs to."""

    name: Mapped[str] = mapped_column(String(255))
    """Full name of the patient, as submitted."""

    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    """Contact email. NULL when the patient did not provide one."""

    phone: Mapped[str] = mapped_column(String(50))
    """Contact phone number, as submitted."""

    notes: Mapped[str] = mapped_column(Text, default="", nullable=False)
    """Free-text notes about the patient. Empty string when none were given."""

    medical_history: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    """Structured medical history document (camelCase keys, see ``MedicalHistory``)."""

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    """Timestamp when the patient was first created."""

    __table_args__ = (
        Index('idx_patients_app_email', 'app_id', 'email'),
        Index('idx_patients_app_name_phone', 'app_id', 'name', 'phone'),
    )
