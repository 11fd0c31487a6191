# pyright: reportMissingTypeStubs=false
"""
Patient file API endpoints.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from api.dependencies import get_app_id, get_storage, get_store
from api.responses import MessageResponse, PatientFileListResponse, PatientFileResponse
from auth.dependencies import UserContext, require_admin
from core.database import RecordStore
from services import PatientFileService
from utils.file_storage import BlobStorage

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/patients/{patient_id}/files", summary="List patient files", response_model=PatientFileListResponse)
async def list_files(
    patient_id: int,
    current_user: UserContext = Depends(require_admin),
    store: RecordStore = Depends(get_store),
    storage: BlobStorage = Depends(get_storage),
    app_id: str = Depends(get_app_id)
) -> PatientFileListResponse:
    files = PatientFileService.list_files(store, storage, app_id, patient_id)
    return PatientFileListResponse(files=[PatientFileResponse.from_patient_file(f) for f in files])


@router.post(
    "/patients/{patient_id}/files",
    summary="Upload a patient file",
    response_model=PatientFileResponse,
    status_code=status.HTTP_201_CREATED
)
async def upload_file(
    patient_id: int,
    file: UploadFile = File(...),
    description: Optional[str] = Form(None),
    current_user: UserContext = Depends(require_admin),
    store: RecordStore = Depends(get_store),
    storage: BlobStorage = Depends(get_storage),
    app_id: str = Depends(get_app_id)
) -> PatientFileResponse:
    """
    Upload an image or PDF for a patient.
    """
    content = await file.read()
    patient_file = await PatientFileService.upload_file(
        store,
        storage,
        app_id,
        patient_id,
        file_name=file.filename or "archivo",
        content_type=file.content_type,
        content=content,
        description=description,
    )
    return PatientFileResponse.from_patient_file(patient_file)


@router.delete("/files/{upload_id}", summary="Delete a patient file", response_model=MessageResponse)
async def delete_file(
    upload_id: int,
    current_user: UserContext = Depends(require_admin),
    store: RecordStore = Depends(get_store),
    storage: BlobStorage = Depends(get_storage),
    app_id: str = Depends(get_app_id)
) -> MessageResponse:
    await PatientFileService.delete_file(store, storage, app_id, upload_id)
    return MessageResponse(message="Archivo eliminado")
