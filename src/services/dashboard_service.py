"""
Dashboard service for the admin overview.

Aggregates the headline numbers of the admin landing page. Cancelled
appointments and blocked slots are not counted as activity.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import List, Optional

from core.database import RecordStore
from models import Appointment
from shared_types.appointment_status import AppointmentStatus
from utils.datetime_utils import clinic_now, start_of_week

logger = logging.getLogger(__name__)

_INACTIVE_STATUSES = {AppointmentStatus.CANCELLED.value, AppointmentStatus.BLOCKED.value}


@dataclass
class DashboardOverview:
    """Headline metrics of the admin overview."""
    today: date
    today_count: int
    week_count: int
    active_patients: int
    active_locations: int
    today_appointments: List[Appointment] = field(default_factory=list)


class DashboardService:
    """
    Service class for dashboard metrics.
    """

    @staticmethod
    def get_overview(store: RecordStore, app_id: str, today: Optional[date] = None) -> DashboardOverview:
        """
        Compute the overview metrics.

        Args:
            store: Record store
            app_id: Deployment scope
            today: Reference day; defaults to today in the clinic's timezone

        Returns:
            Counts for today and the current week (Sunday to Saturday), the
            number of distinct patients and locations with any active
            appointment, and today's appointments ordered by time
        """
        if today is None:
            today = clinic_now().date()
        week_start = start_of_week(today)
        week_end = week_start + timedelta(days=7)

        appointments = store.select(Appointment, order_by=Appointment.scheduled_at, app_id=app_id)
        active = [a for a in appointments if a.status not in _INACTIVE_STATUSES]

        today_appointments = [a for a in active if a.scheduled_at.date() == today]
        week_count = sum(1 for a in active if week_start <= a.scheduled_at.date() < week_end)

        overview = DashboardOverview(
            today=today,
            today_count=len(today_appointments),
            week_count=week_count,
            active_patients=len({a.patient_id for a in active}),
            active_locations=len({a.location_id for a in active}),
            today_appointments=today_appointments,
        )
        logger.debug(
            f"Overview for {app_id} on {today}: {overview.today_count} today, "
            f"{overview.week_count} this week"
        )
        return overview
