"""
Patient upload model.

Metadata for an attachment (X-ray, photo, PDF) stored in the ``patient_files``
blob bucket. The bytes live at ``file_path`` in the bucket.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import ForeignKey, Index, String, Text, TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column

from core.database import Base


class PatientUpload(Base):
    """Attachment metadata for one uploaded patient file."""
    __tablename__ = "patient_uploads"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    app_id: Mapped[str] = mapped_column(String(64))
    patient_id: Mapped[int] = mapped_column(ForeignKey("patients.id"))

    file_name: Mapped[str] = mapped_column(String(255))  # original client file name
    file_path: Mapped[str] = mapped_column(String(512))  # blob key: {patient_id}/{epoch_ms}.{ext}
    file_type: Mapped[str] = mapped_column(String(100))  # MIME type
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_patient_uploads_patient", "app_id", "patient_id"),
    )
