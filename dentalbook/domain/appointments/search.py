"""
Appointment search - geographic, temporal, price and service-type filtering

The store narrows the corpus to unbooked future slots of verified practices
(plus a bounding box when a radius is given). Everything else runs here:
service/price matching, exact haversine distance, sorting and offset
pagination. Every sort key ends with appointment_id so identical queries
always page identically.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from ...errors import ValidationError
from ...models import Appointment, Practice
from ...services.geocoding_service import GeocodingService
from ...utils.geo import Coordinates, bounding_box, haversine_km
from .repository import AppointmentRepository
from .schemas import SearchFilters

logger = logging.getLogger(__name__)


@dataclass
class SearchMatch:
    appointment: Appointment
    practice: Practice
    distance_km: Optional[float] = None
    matched_price: Optional[float] = None


@dataclass
class SearchPage:
    results: list[SearchMatch]
    total: int
    limit: int
    offset: int


def build_filters(**options) -> SearchFilters:
    """Build SearchFilters, reporting bad options as a ValidationError"""
    try:
        return SearchFilters(**options)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or None
        raise ValidationError(first.get("msg", "Invalid search options"), field=field) from e


def matching_prices(services: dict, appointment_type: Optional[str]) -> list[float]:
    """Prices a filter is applied to: the matched type only, or every service"""
    if appointment_type:
        if appointment_type not in services:
            return []
        return [services[appointment_type]]
    return list(services.values())


def price_in_range(price: float, price_min: Optional[float], price_max: Optional[float]) -> bool:
    if price_min is not None and price < price_min:
        return False
    if price_max is not None and price > price_max:
        return False
    return True


def sort_matches(matches: list[SearchMatch], sort_by: str, appointment_type: Optional[str]) -> None:
    def tie(m: SearchMatch) -> str:
        return m.appointment.appointment_id

    def prices(m: SearchMatch) -> list[float]:
        return matching_prices(m.appointment.services or {}, appointment_type) or [0.0]

    if sort_by == "lowest_price":
        matches.sort(key=lambda m: (min(prices(m)), tie(m)))
    elif sort_by == "highest_price":
        matches.sort(key=lambda m: (-max(prices(m)), tie(m)))
    elif sort_by == "closest":
        matches.sort(
            key=lambda m: (m.distance_km if m.distance_km is not None else math.inf, tie(m))
        )
    else:
        matches.sort(key=lambda m: (m.appointment.start_time, tie(m)))


class SearchService:
    """Search & filter engine over the appointment corpus"""

    def __init__(self, db: Session, geocoder: GeocodingService):
        self.db = db
        self.geocoder = geocoder
        self.repo = AppointmentRepository()

    async def resolve_origin(self, filters: SearchFilters) -> Optional[Coordinates]:
        if filters.has_coordinates:
            return Coordinates(latitude=filters.lat, longitude=filters.lon)
        if filters.postcode:
            # GeocodeError propagates: an unknown postcode is not "no results"
            return await self.geocoder.geocode(filters.postcode)
        return None

    async def search(self, filters: SearchFilters, now: Optional[datetime] = None) -> SearchPage:
        """
        Run a search.

        Raises:
            ValidationError: distance filter or closest sort without a location
            GeocodeError: postcode could not be resolved
        """
        now = now or datetime.now()
        origin = await self.resolve_origin(filters)

        if origin is None:
            if filters.max_distance is not None:
                raise ValidationError(
                    "A location (lat/lon or postcode) is required to filter by distance",
                    field="max_distance",
                )
            if filters.sort_by == "closest":
                raise ValidationError(
                    "A location (lat/lon or postcode) is required to sort by distance",
                    field="sort_by",
                )

        bounds = None
        if origin and filters.max_distance is not None:
            bounds = bounding_box(origin.latitude, origin.longitude, filters.max_distance)

        candidates = self.repo.search_candidates(
            self.db,
            now=now,
            date_start=filters.date_start,
            date_end=filters.date_end,
            bounds=bounds,
        )

        price_filtered = filters.price_min is not None or filters.price_max is not None
        matches = []
        for appointment, practice in candidates:
            services = appointment.services or {}
            prices = matching_prices(services, filters.appointment_type)
            if filters.appointment_type and not prices:
                continue
            if price_filtered and not any(
                price_in_range(p, filters.price_min, filters.price_max) for p in prices
            ):
                continue

            distance = None
            if origin and practice.latitude is not None and practice.longitude is not None:
                distance = haversine_km(
                    origin.latitude, origin.longitude, practice.latitude, practice.longitude
                )
            if filters.max_distance is not None and (distance is None or distance > filters.max_distance):
                continue

            matches.append(
                SearchMatch(
                    appointment=appointment,
                    practice=practice,
                    distance_km=distance,
                    matched_price=prices[0] if filters.appointment_type else None,
                )
            )

        sort_matches(matches, filters.sort_by, filters.appointment_type)

        page = matches[filters.offset : filters.offset + filters.limit]
        logger.info(
            f"🔍 Search ({filters.sort_by}) matched {len(matches)} of {len(candidates)} candidate slot(s), "
            f"returning {len(page)}"
        )
        return SearchPage(results=page, total=len(matches), limit=filters.limit, offset=filters.offset)
