# pyright: reportMissingTypeStubs=false
"""
Admin API modules.

This package contains the authenticated admin panel endpoints organized by domain.
"""

from fastapi import APIRouter

from api.admin.patients import router as patients_router
from api.admin.appointments import router as appointments_router
from api.admin.files import router as files_router
from api.admin.dashboard import router as dashboard_router

router = APIRouter()
router.include_router(patients_router)
router.include_router(appointments_router)
router.include_router(files_router)
router.include_router(dashboard_router)

__all__ = [
    'router',
    'patients_router',
    'appointments_router',
    'files_router',
    'dashboard_router',
]
