"""
Availability service for slot computation and slot validation.

``compute_available_slots`` is the pure availability engine: given a day, a
location, the known appointments and the location's schedule it returns the
bookable start times. ``AvailabilityService`` wraps it with the request-facing
checks shared by public booking, slot blocking and rescheduling.
"""

import logging
from datetime import date as date_type, datetime
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple, Union

from fastapi import HTTPException, status

from core.database import RecordSession
from models import Appointment
from shared_types.appointment_status import occupies_slot
from shared_types.catalog import (
    LocationSchedule,
    Service,
    get_location_schedule,
    get_service,
    services_by_id,
)
from utils.datetime_utils import (
    format_date,
    parse_date_string,
    parse_time_string,
    weekday_sunday_first,
)

logger = logging.getLogger(__name__)


def generate_candidate_slots(schedule: LocationSchedule) -> List[str]:
    """
    Full candidate sequence of a day, e.g. ["09:00", "09:30", ..., "14:30"].

    Runs from ``start_hour`` up to but excluding ``end_hour``.
    """
    slots: List[str] = []
    minutes = schedule.start_hour * 60
    end_minutes = schedule.end_hour * 60
    while minutes < end_minutes:
        slots.append(f"{minutes // 60:02d}:{minutes % 60:02d}")
        minutes += schedule.interval_minutes
    return slots


def _to_minutes(hhmm: str) -> int:
    hours, minutes = hhmm.split(":")
    return int(hours) * 60 + int(minutes)


def _service_slot_count(
    service_id: Optional[str],
    services: Dict[str, Service],
    interval_minutes: int
) -> int:
    service = services.get(service_id) if service_id else None
    return service.slot_count(interval_minutes) if service else 1


def _occupied_slots(
    day: date_type,
    location_id: str,
    appointments: Iterable[Any],
    schedule: LocationSchedule,
    candidates: List[str],
    services: Dict[str, Service],
    exclude_appointment_id: Optional[int]
) -> Set[str]:
    occupied: Set[str] = set()
    interval = schedule.interval_minutes
    for appointment in appointments:
        if exclude_appointment_id is not None and appointment.id == exclude_appointment_id:
            continue
        if appointment.location_id != location_id:
            continue
        if appointment.scheduled_at.date() != day:
            continue
        if not occupies_slot(appointment.status):
            continue

        start = appointment.scheduled_at.hour * 60 + appointment.scheduled_at.minute
        end = start + _service_slot_count(appointment.service_id, services, interval) * interval
        # Marks by minute range so an off-grid start still blocks the slots it overlaps
        for candidate in candidates:
            if start <= _to_minutes(candidate) < end:
                occupied.add(candidate)
    return occupied


def compute_available_slots(
    date: Union[date_type, str],
    location_id: str,
    appointments: Iterable[Any],
    schedule: Optional[LocationSchedule],
    slot_count: int = 1,
    services: Optional[Dict[str, Service]] = None,
    exclude_appointment_id: Optional[int] = None
) -> List[str]:
    """
    Bookable start times at a location on one day, in ascending order.

    Args:
        date: Naive calendar day (``date`` or ``YYYY-MM-DD``)
        location_id: Location slug the appointments are matched against
        appointments: Known appointments of any status and any day
        schedule: The location's schedule, or None for an unknown location
        slot_count: Consecutive slots the new booking needs
        services: Service catalog used to size existing appointments
        exclude_appointment_id: Appointment to ignore (the one being moved)

    Returns:
        Start times ("HH:MM") whose whole window of ``slot_count`` slots is
        free and inside the day. Empty for an unknown location or a closed day.
    """
    if schedule is None:
        return []

    day = parse_date_string(date) if isinstance(date, str) else date
    if weekday_sunday_first(day) not in schedule.allowed_days:
        return []

    candidates = generate_candidate_slots(schedule)
    occupied = _occupied_slots(
        day,
        location_id,
        appointments,
        schedule,
        candidates,
        services if services is not None else services_by_id(),
        exclude_appointment_id,
    )

    needed = max(1, slot_count)
    available: List[str] = []
    for index, candidate in enumerate(candidates):
        window = candidates[index:index + needed]
        if len(window) < needed:
            break  # no partial trailing windows
        if not any(slot in occupied for slot in window):
            available.append(candidate)
    return available


def is_slot_available(
    date: Union[date_type, str],
    time: str,
    location_id: str,
    appointments: Iterable[Any],
    schedule: Optional[LocationSchedule],
    slot_count: int = 1,
    services: Optional[Dict[str, Service]] = None,
    exclude_appointment_id: Optional[int] = None
) -> bool:
    """Whether a booking needing ``slot_count`` slots may start at ``time``."""
    return time in compute_available_slots(
        date,
        location_id,
        appointments,
        schedule,
        slot_count=slot_count,
        services=services,
        exclude_appointment_id=exclude_appointment_id,
    )


class AvailabilityService:
    """
    Service class for availability operations.

    Validation helpers raise HTTPException with 400 for malformed or
    off-schedule requests and 409 when the requested window is taken.
    """

    @staticmethod
    def get_schedule(location_id: str) -> LocationSchedule:
        """Schedule of a known location, or 404."""
        schedule = get_location_schedule(location_id)
        if schedule is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Ubicación no encontrada"
            )
        return schedule

    @staticmethod
    def slot_count_for(service_id: Optional[str], schedule: LocationSchedule) -> int:
        """
        Slots needed by a service. Unknown ids are rejected; no service means one slot.
        """
        if not service_id:
            return 1
        service = get_service(service_id)
        if service is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Servicio no válido"
            )
        return service.slot_count(schedule.interval_minutes)

    @staticmethod
    def validate_slot_request(location_id: str, date: str, time: str) -> Tuple[LocationSchedule, datetime]:
        """
        Validate a requested start before any store access.

        Checks that the location is known, the date and time parse, the weekday
        is open and the time is on the location's grid.

        Returns:
            The location's schedule and the combined naive start timestamp

        Raises:
            HTTPException: 400 for any validation failure
        """
        schedule = get_location_schedule(location_id)
        if schedule is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Ubicación no válida"
            )

        try:
            day = parse_date_string(date)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Fecha inválida (use YYYY-MM-DD)"
            )
        try:
            start_time = parse_time_string(time)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Hora inválida (use HH:MM)"
            )

        if weekday_sunday_first(day) not in schedule.allowed_days:
            logger.info(f"Rejected closed weekday {format_date(day)} at {location_id}")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="La ubicación no atiende el día seleccionado"
            )

        normalized_time = f"{start_time.hour:02d}:{start_time.minute:02d}"
        # Ignore existing appointments: this only checks the time is a grid slot
        if normalized_time not in generate_candidate_slots(schedule):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Horario fuera del horario de atención"
            )

        return schedule, datetime.combine(day, start_time)

    @staticmethod
    def ensure_slot_free(
        tx: RecordSession,
        app_id: str,
        location_id: str,
        scheduled_at: datetime,
        slot_count: int,
        schedule: LocationSchedule,
        exclude_appointment_id: Optional[int] = None
    ) -> None:
        """
        Re-read the location's appointments inside ``tx`` and reject an overlap.

        Raises:
            HTTPException: 409 if any slot of the window is already occupied
        """
        existing = tx.select(Appointment, app_id=app_id, location_id=location_id)
        start = f"{scheduled_at.hour:02d}:{scheduled_at.minute:02d}"
        if not is_slot_available(
            scheduled_at.date(),
            start,
            location_id,
            existing,
            schedule,
            slot_count=slot_count,
            exclude_appointment_id=exclude_appointment_id,
        ):
            logger.warning(
                f"Slot conflict at {location_id} {scheduled_at.isoformat()} "
                f"({slot_count} slot(s))"
            )
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="El horario seleccionado ya no está disponible"
            )
