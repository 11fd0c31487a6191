"""
Request-scoped dependencies for the API routers.

The record store, blob storage and schedule snapshot are created by the
application lifespan and stored on ``app.state``; these functions hand them to
endpoints and let tests swap them through ``app.dependency_overrides``.
"""

from fastapi import HTTPException, Request, status

from core import config
from core.database import RecordStore
from services.snapshot_service import ScheduleSnapshot
from utils.file_storage import BlobStorage


def get_store(request: Request) -> RecordStore:
    """The process-wide record store."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Record store is not available"
        )
    return store


def get_storage(request: Request) -> BlobStorage:
    """The configured blob storage backend."""
    storage = getattr(request.app.state, "storage", None)
    if storage is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Blob storage is not available"
        )
    return storage


def get_snapshot(request: Request) -> ScheduleSnapshot:
    """Schedule snapshot of the current app id, created on first use."""
    snapshot = getattr(request.app.state, "snapshot", None)
    if snapshot is None:
        snapshot = ScheduleSnapshot(config.APP_ID)
        request.app.state.snapshot = snapshot
    return snapshot


def get_app_id() -> str:
    """Deployment scope every query is filtered by."""
    return config.APP_ID
