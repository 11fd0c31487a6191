"""
Static reference data: clinic locations and the services they offer.

Locations and services change only with a deploy, so they live in code rather
than in the record store. Every location books on the same 30-minute grid;
what differs per location is which weekdays it opens and its opening hours.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional

from core.constants import (
    DEFAULT_DAY_END_HOUR,
    DEFAULT_DAY_START_HOUR,
    SLOT_INTERVAL_MINUTES,
)


@dataclass(frozen=True)
class LocationSchedule:
    """
    Weekly booking schedule of one location.

    ``allowed_days`` uses 0=Sunday .. 6=Saturday. Candidate slots run from
    ``start_hour`` up to but excluding ``end_hour`` every ``interval_minutes``.
    """
    allowed_days: FrozenSet[int]
    start_hour: int = DEFAULT_DAY_START_HOUR
    end_hour: int = DEFAULT_DAY_END_HOUR
    interval_minutes: int = SLOT_INTERVAL_MINUTES


@dataclass(frozen=True)
class Location:
    """A clinic branch ("hospital" in the booking site)."""
    id: str
    name: str
    address: str
    image: str
    schedule: LocationSchedule = field(
        default_factory=lambda: LocationSchedule(allowed_days=frozenset({1, 2, 3, 4, 5, 6}))
    )


@dataclass(frozen=True)
class Service:
    """A bookable service. Its duration decides how many grid slots it occupies."""
    id: str
    name: str
    duration_minutes: int
    description: Optional[str] = None
    price: Optional[float] = None

    def slot_count(self, interval_minutes: int = SLOT_INTERVAL_MINUTES) -> int:
        return max(1, math.ceil(self.duration_minutes / interval_minutes))


LOCATIONS: List[Location] = [
    Location(
        id="consultorio-paris-rizo",
        name="Consultorio Paris Rizo",
        address="Dirección del Consultorio",
        image="/placeholder.svg",
        schedule=LocationSchedule(allowed_days=frozenset({1, 2, 3, 4, 5, 6})),  # Monday to Saturday
    ),
]

SERVICES: List[Service] = [
    Service(id="srv-1", name="Consulta General", duration_minutes=60),
    Service(id="srv-2", name="Consulta de Seguimiento", duration_minutes=30),
]

_LOCATIONS_BY_ID: Dict[str, Location] = {location.id: location for location in LOCATIONS}
_SERVICES_BY_ID: Dict[str, Service] = {service.id: service for service in SERVICES}


def get_location(location_id: str) -> Optional[Location]:
    return _LOCATIONS_BY_ID.get(location_id)


def get_location_schedule(location_id: str) -> Optional[LocationSchedule]:
    """Schedule for a location id, or None when the location is unknown."""
    location = get_location(location_id)
    return location.schedule if location else None


def get_service(service_id: Optional[str]) -> Optional[Service]:
    if not service_id:
        return None
    return _SERVICES_BY_ID.get(service_id)


def services_by_id() -> Dict[str, Service]:
    return dict(_SERVICES_BY_ID)
