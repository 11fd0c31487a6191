"""
Patient file service: attachments stored in the ``patient_files`` bucket.
"""

import logging
import os
import time
from dataclasses import dataclass
from typing import List, Optional

from fastapi import HTTPException, status

from core import config
from core.constants import ALLOWED_UPLOAD_CONTENT_TYPES, THUMBNAIL_TRANSFORM
from core.database import RecordStore
from models import PatientUpload
from services.patient_service import PatientService
from utils.file_storage import BlobStorage, BlobStorageError

logger = logging.getLogger(__name__)


@dataclass
class PatientFile:
    """Upload metadata together with its resolved URLs."""
    upload: PatientUpload
    public_url: str
    thumbnail_url: Optional[str] = None  # images only


def is_allowed_content_type(content_type: Optional[str]) -> bool:
    """Images and PDF documents are accepted."""
    if not content_type:
        return False
    return any(
        content_type.startswith(allowed) if allowed.endswith("/") else content_type == allowed
        for allowed in ALLOWED_UPLOAD_CONTENT_TYPES
    )


def build_blob_path(patient_id: int, file_name: str, epoch_ms: Optional[int] = None) -> str:
    """
    Blob key for a new upload: ``{patient_id}/{epoch_ms}.{ext}``.

    The extension comes from the client file name; files without one get ``bin``.
    """
    if epoch_ms is None:
        epoch_ms = int(time.time() * 1000)
    ext = os.path.splitext(file_name or "")[1].lstrip(".").lower() or "bin"
    return f"{patient_id}/{epoch_ms}.{ext}"


class PatientFileService:
    """Service class for patient attachments."""

    @staticmethod
    def _to_patient_file(storage: BlobStorage, upload: PatientUpload) -> PatientFile:
        thumbnail_url = None
        if upload.file_type.startswith("image/"):
            thumbnail_url = storage.get_public_url(upload.file_path, transform=THUMBNAIL_TRANSFORM)
        return PatientFile(
            upload=upload,
            public_url=storage.get_public_url(upload.file_path),
            thumbnail_url=thumbnail_url,
        )

    @staticmethod
    async def upload_file(
        store: RecordStore,
        storage: BlobStorage,
        app_id: str,
        patient_id: int,
        file_name: str,
        content_type: Optional[str],
        content: bytes,
        description: Optional[str] = None
    ) -> PatientFile:
        """
        Store an attachment and record its metadata.

        The blob is uploaded first; if recording the metadata fails the blob
        is removed again.

        Raises:
            HTTPException: 400 for an unsupported type or empty file, 404 for an
                unknown patient, 413 when the file exceeds the size limit, 502
                when blob storage rejects the upload
        """
        if not is_allowed_content_type(content_type):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Solo se permiten imágenes y documentos PDF"
            )
        if not content:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="El archivo está vacío"
            )
        max_bytes = config.MAX_UPLOAD_SIZE_MB * 1024 * 1024
        if len(content) > max_bytes:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"El archivo excede el límite de {config.MAX_UPLOAD_SIZE_MB} MB"
            )

        PatientService.get_patient(store, app_id, patient_id)

        path = build_blob_path(patient_id, file_name)
        try:
            await storage.upload(path, content, content_type or "application/octet-stream")
        except BlobStorageError as e:
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail=f"Error al subir el archivo: {e}"
            )

        try:
            upload = store.insert(PatientUpload, [{
                "app_id": app_id,
                "patient_id": patient_id,
                "file_name": file_name,
                "file_path": path,
                "file_type": content_type,
                "description": description,
            }])[0]
        except Exception:
            logger.error(f"Recording upload {path} failed, removing orphaned blob")
            try:
                await storage.remove([path])
            except BlobStorageError:
                logger.exception(f"Could not remove orphaned blob {path}")
            raise

        logger.info(f"Uploaded file {upload.id} ({content_type}) for patient {patient_id}")
        return PatientFileService._to_patient_file(storage, upload)

    @staticmethod
    def list_files(store: RecordStore, storage: BlobStorage, app_id: str, patient_id: int) -> List[PatientFile]:
        """Attachments of a patient, newest first."""
        PatientService.get_patient(store, app_id, patient_id)
        uploads = store.select(PatientUpload, app_id=app_id, patient_id=patient_id)
        uploads.sort(key=lambda u: (u.created_at, u.id), reverse=True)
        return [PatientFileService._to_patient_file(storage, upload) for upload in uploads]

    @staticmethod
    async def delete_file(store: RecordStore, storage: BlobStorage, app_id: str, upload_id: int) -> None:
        """
        Delete an attachment.

        A blob storage failure is logged and the metadata is deleted anyway,
        so the file disappears from the patient's record.

        Raises:
            HTTPException: 404 if the upload does not exist
        """
        upload = store.first(PatientUpload, app_id=app_id, id=upload_id)
        if upload is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Archivo no encontrado"
            )

        try:
            await storage.remove([upload.file_path])
        except BlobStorageError as e:
            logger.error(f"Failed to remove blob {upload.file_path} for upload {upload_id}: {e}")

        store.delete(PatientUpload, app_id=app_id, id=upload_id)
        logger.info(f"Deleted file {upload_id} of patient {upload.patient_id}")
