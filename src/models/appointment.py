"""
Appointment model representing a booked (or blocked) calendar slot.

An appointment starts at ``scheduled_at``, a naive wall-clock timestamp on the
location's 30-minute grid, and occupies as many consecutive grid slots as its
service needs. Blocked slots are appointments with status ``blocked`` owned by
the reserved block patient.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Index, String, Text, TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column
import sqlalchemy as sa

from core.database import Base
from utils.datetime_utils import split_timestamp


class Appointment(Base):
    """
    Appointment entity linking a patient to a location and start time.

    Only one non-cancelled appointment may start at a given location and
    timestamp; the partial unique index enforces this at the store level.
    Overlap of multi-slot windows is checked by the booking services inside
    the same transaction as the insert.
    """

    __tablename__ = "appointments"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    """Unique identifier for the appointment."""

    app_id: Mapped[str] = mapped_column(String(64))
    """Deployment scope (tenant partition key)."""

    patient_id: Mapped[int] = mapped_column(ForeignKey("patients.id"))
    """Reference to the patient who booked, or the block patient for blocked slots."""

    location_id: Mapped[str] = mapped_column(String(100))
    """Location slug from the static location table."""

    service_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    """Optional catalog service id. Decides how many slots the appointment occupies."""

    service_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    """Free-text service description, only for reason 'specific-service'."""

    reason: Mapped[str] = mapped_column(String(50))
    """Booking reason. Valid values: 'first-visit', 'follow-up', 'specific-service'."""

    scheduled_at: Mapped[datetime] = mapped_column(DateTime(timezone=False))
    """Naive local start time. No timezone conversion is applied in either direction."""

    status: Mapped[str] = mapped_column(String(50))
    """Current status. See ``shared_types.appointment_status.AppointmentStatus``."""

    notes: Mapped[str] = mapped_column(Text, default="", nullable=False)
    """Patient-provided or staff notes."""

    clinical_data: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    """Optional SOAP note recorded during the visit (camelCase keys, see ``SoapNote``)."""

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    """Timestamp when the appointment was created."""

    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    """Timestamp of the last change."""

    __table_args__ = (
        Index('idx_appointments_app_location_scheduled', 'app_id', 'location_id', 'scheduled_at'),
        Index('idx_appointments_patient', 'patient_id'),
        Index(
            'uq_appointments_active_slot',
            'app_id', 'location_id', 'scheduled_at',
            unique=True,
            sqlite_where=sa.text("status != 'cancelled'"),
            postgresql_where=sa.text("status != 'cancelled'"),
        ),
    )

    @property
    def date(self) -> str:
        """Appointment date as YYYY-MM-DD."""
        return split_timestamp(self.scheduled_at)[0]

    @property
    def time(self) -> str:
        """Appointment start time as HH:MM."""
        return split_timestamp(self.scheduled_at)[1]
