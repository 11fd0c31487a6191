# pyright: reportMissingTypeStubs=false
"""
Admin overview API endpoint.
"""

import logging
from datetime import date as date_type
from typing import Optional

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_app_id, get_store
from api.responses import OverviewResponse
from auth.dependencies import UserContext, require_admin
from core.database import RecordStore
from models import Patient
from services import DashboardService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/overview", summary="Admin overview metrics", response_model=OverviewResponse)
async def get_overview(
    today: Optional[date_type] = Query(None, description="Reference day; defaults to today in the clinic timezone"),
    current_user: UserContext = Depends(require_admin),
    store: RecordStore = Depends(get_store),
    app_id: str = Depends(get_app_id)
) -> OverviewResponse:
    overview = DashboardService.get_overview(store, app_id, today=today)
    names = {p.id: p.name for p in store.select(Patient, app_id=app_id)}
    return OverviewResponse.from_overview(overview, names)
