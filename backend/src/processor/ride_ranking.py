"""
Wait Time Tracker - Ride Ranking
Sort keys, day peak, average wait and busyness for a park's rides.

Sorting:
    rank() is a stable sort over one caller-selected field. Each field has
    an explicit projection (SORT_PROJECTIONS) that returns either an int or
    a str, never a mix, so comparisons within a field are well-defined.

    Closed/down rides project to a wait of -1, so they sort below any real
    wait in ascending order and after every operating ride in descending
    order.
"""

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple, Union
from zoneinfo import ZoneInfo

from classifier.land_classifier import LandClassifier, get_land_classifier
from models.ride import RideRecord, RideStatus
from models.snapshot import WaitTimesView
from processor.ride_history import forecast_for_hour, iter_today_forecast
from processor.wait_time_alerts import TriggeredAlert, WaitAlert, evaluate_alerts
from utils.config import (
    BUSYNESS_BUSY_MAX,
    BUSYNESS_MODERATE_MAX,
    BUSYNESS_QUIET_MAX,
    FORECAST_HEAT_BUSY_MAX,
    FORECAST_HEAT_MODERATE_MAX,
    FORECAST_HEAT_QUIET_MAX,
)
from utils.timezone import PARK_TZ, get_today_local


class SortField(Enum):
    """Columns a ride list can be ranked by."""
    NAME = "name"
    WAIT_TIME = "waitTime"
    LAND = "land"
    STATUS = "status"
    TICKET = "ticket"
    PEAK = "peak"
    FAVORITE = "favorite"


class SortDirection(Enum):
    ASC = "asc"
    DESC = "desc"


class BusynessTier(Enum):
    """Ordinal park crowd level."""
    QUIET = "Quiet"
    MODERATE = "Moderate"
    BUSY = "Busy"
    VERY_BUSY = "Very Busy"


# Legacy ticket class -> score; a better class sorts higher
TICKET_SCORES = {'E': 5, 'D': 4, 'C': 3, 'B': 2, 'A': 1}

# Wait projection for anything not OPERATING
NOT_OPERATING_WAIT = -1

# Local hours shown in the hourly forecast strip
FORECAST_HOURS = range(9, 22)


@dataclass(frozen=True)
class BusynessThresholds:
    """
    Upper bounds (exclusive, minutes) for each tier below VERY_BUSY.

    Quiet: avg < quiet_max
    Moderate: quiet_max <= avg < moderate_max
    Busy: moderate_max <= avg < busy_max
    Very Busy: avg >= busy_max
    """
    quiet_max: int
    moderate_max: int
    busy_max: int

    def __post_init__(self):
        if not (self.quiet_max <= self.moderate_max <= self.busy_max):
            raise ValueError(
                f"Busyness thresholds must be non-decreasing, got "
                f"{self.quiet_max}/{self.moderate_max}/{self.busy_max}"
            )


# Park-level average wait (header badge)
PARK_BUSYNESS_THRESHOLDS = BusynessThresholds(BUSYNESS_QUIET_MAX, BUSYNESS_MODERATE_MAX, BUSYNESS_BUSY_MAX)
# Per-hour forecast cells
FORECAST_HEAT_THRESHOLDS = BusynessThresholds(
    FORECAST_HEAT_QUIET_MAX, FORECAST_HEAT_MODERATE_MAX, FORECAST_HEAT_BUSY_MAX
)


def parse_sort_field(value: Union[str, SortField]) -> SortField:
    """
    Raises:
        ValueError: For an unknown field name
    """
    if isinstance(value, SortField):
        return value
    try:
        return SortField(value)
    except ValueError:
        valid = ', '.join(f.value for f in SortField)
        raise ValueError(f"Invalid sort field {value!r}; expected one of: {valid}")


def parse_sort_direction(value: Union[str, SortDirection]) -> SortDirection:
    """
    Raises:
        ValueError: For anything other than asc/desc
    """
    if isinstance(value, SortDirection):
        return value
    try:
        return SortDirection(str(value).lower())
    except ValueError:
        raise ValueError(f"Invalid sort direction {value!r}; expected 'asc' or 'desc'")


def wait_time_key(ride: RideRecord) -> int:
    """Standby wait when operating (0 if unreported), else -1."""
    if not ride.is_operating:
        return NOT_OPERATING_WAIT
    wait = ride.standby_wait
    return wait if wait is not None else 0


def day_peak(ride: RideRecord, today: Optional[date] = None, tz: Optional[ZoneInfo] = None) -> int:
    """
    Highest forecast wait dated today (park-local).

    Returns 0 when the ride has no forecast or no valid points for today;
    other days' points never count. Malformed points are ignored.
    """
    if not ride.forecast:
        return 0
    return max((wait for _, wait in iter_today_forecast(ride, today, tz)), default=0)


def ticket_score(ride: RideRecord, classifier: Optional[LandClassifier] = None) -> int:
    classifier = classifier or get_land_classifier()
    return TICKET_SCORES.get(classifier.get_ticket_class(ride.name), 0)


def average_wait(rides: Iterable[RideRecord]) -> int:
    """
    Mean standby wait over operating rides that report one, rounded half-up.

    Returns:
        Rounded mean in minutes, 0 if no ride qualifies
    """
    waits = [
        ride.standby_wait for ride in rides
        if ride.is_operating and ride.standby_wait is not None
    ]
    if not waits:
        return 0
    return int(math.floor(sum(waits) / len(waits) + 0.5))


def busyness_tier(avg: float, thresholds: BusynessThresholds = PARK_BUSYNESS_THRESHOLDS) -> BusynessTier:
    if avg < thresholds.quiet_max:
        return BusynessTier.QUIET
    if avg < thresholds.moderate_max:
        return BusynessTier.MODERATE
    if avg < thresholds.busy_max:
        return BusynessTier.BUSY
    return BusynessTier.VERY_BUSY


@dataclass(frozen=True)
class RankContext:
    """Inputs a projection may need beyond the ride itself."""
    favorites: FrozenSet[str] = frozenset()
    classifier: Optional[LandClassifier] = None
    today: Optional[date] = None
    tz: Optional[ZoneInfo] = None


SortKey = Union[int, str]

SORT_PROJECTIONS: Dict[SortField, Callable[[RideRecord, RankContext], SortKey]] = {
    SortField.NAME: lambda ride, ctx: ride.name,
    SortField.WAIT_TIME: lambda ride, ctx: wait_time_key(ride),
    SortField.LAND: lambda ride, ctx: (ctx.classifier or get_land_classifier()).get_land(ride.name),
    SortField.STATUS: lambda ride, ctx: ride.status or '',
    SortField.TICKET: lambda ride, ctx: ticket_score(ride, ctx.classifier),
    SortField.PEAK: lambda ride, ctx: day_peak(ride, ctx.today, ctx.tz),
    SortField.FAVORITE: lambda ride, ctx: 1 if ride.id in ctx.favorites else 0,
}


def rank(
    rides: Sequence[RideRecord],
    field: Union[str, SortField],
    direction: Union[str, SortDirection] = SortDirection.ASC,
    favorites: Optional[Iterable[str]] = None,
    classifier: Optional[LandClassifier] = None,
    today: Optional[date] = None,
    tz: Optional[ZoneInfo] = None
) -> List[RideRecord]:
    """
    Stable sort of rides by one field.

    Rides with equal keys keep their input order in both directions.

    Args:
        rides: Rides to sort (not modified)
        field: SortField or its wire name ("waitTime", "peak", ...)
        direction: SortDirection or "asc"/"desc"
        favorites: Ride ids the caller has starred (for SortField.FAVORITE)
        classifier: Land/ticket lookup (defaults to the static classifier)
        today: Calendar date for PEAK (defaults to park-local today)
        tz: Park timezone for PEAK

    Returns:
        New list in ranked order

    Raises:
        ValueError: For an unknown field or direction
    """
    sort_field = parse_sort_field(field)
    sort_direction = parse_sort_direction(direction)
    ctx = RankContext(
        favorites=frozenset(favorites or ()),
        classifier=classifier,
        today=today or get_today_local(tz or PARK_TZ),
        tz=tz
    )
    projection = SORT_PROJECTIONS[sort_field]
    keyed = [(projection(ride, ctx), ride) for ride in rides]
    keyed.sort(key=lambda item: item[0], reverse=sort_direction is SortDirection.DESC)
    return [ride for _, ride in keyed]


def filter_rides(
    rides: Iterable[RideRecord],
    search_query: str = '',
    include_refurbishment: bool = False
) -> List[RideRecord]:
    """
    Rides shown on the dashboard: attractions, not in refurbishment,
    whose name contains ``search_query`` (case-insensitive).
    """
    needle = (search_query or '').lower()
    return [
        ride for ride in rides
        if ride.is_attraction
        and (include_refurbishment or ride.status != RideStatus.REFURBISHMENT.value)
        and needle in ride.name.lower()
    ]


@dataclass(frozen=True)
class RankedRide:
    """A ride with the derived values the ride table displays."""
    ride: RideRecord
    wait_time: int
    peak: int
    land: str
    ticket_class: Optional[str]
    is_favorite: bool
    # (local hour, predicted wait, heat tier) for FORECAST_HOURS
    hourly_forecast: Tuple[Tuple[int, Optional[int], Optional[BusynessTier]], ...] = ()

    def to_dict(self) -> dict:
        return {
            **self.ride.to_dict(),
            'waitTimeRank': self.wait_time,
            'peak': self.peak,
            'land': self.land,
            'ticketClass': self.ticket_class,
            'isFavorite': self.is_favorite,
            'hourlyForecast': [
                {'hour': hour, 'waitTime': wait, 'heat': heat.value if heat else None}
                for hour, wait, heat in self.hourly_forecast
            ]
        }


def hourly_forecast(
    ride: RideRecord,
    today: Optional[date] = None,
    tz: Optional[ZoneInfo] = None,
    thresholds: BusynessThresholds = FORECAST_HEAT_THRESHOLDS
) -> Tuple[Tuple[int, Optional[int], Optional[BusynessTier]], ...]:
    """Forecast wait and heat tier for each hour in FORECAST_HOURS."""
    cells = []
    for hour in FORECAST_HOURS:
        wait = forecast_for_hour(ride, hour, today, tz)
        cells.append((hour, wait, busyness_tier(wait, thresholds) if wait is not None else None))
    return tuple(cells)


@dataclass(frozen=True)
class ParkView:
    """View model for one park's ride table and header."""
    park_id: str
    park_name: str
    timestamp: datetime
    sort_field: SortField
    sort_direction: SortDirection
    rides: List[RankedRide] = field(default_factory=list)
    average_wait: int = 0
    busyness: BusynessTier = BusynessTier.QUIET
    triggered_alerts: List[TriggeredAlert] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'park_id': self.park_id,
            'park_name': self.park_name,
            'timestamp': self.timestamp.isoformat(),
            'sort': self.sort_field.value,
            'direction': self.sort_direction.value,
            'average_wait': self.average_wait,
            'busyness': self.busyness.value,
            'rides': [r.to_dict() for r in self.rides],
            'alerts': [a.to_dict() for a in self.triggered_alerts]
        }


def build_park_view(
    view: WaitTimesView,
    park_id: str,
    field: Union[str, SortField] = SortField.FAVORITE,
    direction: Union[str, SortDirection] = SortDirection.DESC,
    favorites: Optional[Iterable[str]] = None,
    search_query: str = '',
    alerts: Optional[Iterable[WaitAlert]] = None,
    thresholds: BusynessThresholds = PARK_BUSYNESS_THRESHOLDS,
    classifier: Optional[LandClassifier] = None,
    today: Optional[date] = None,
    tz: Optional[ZoneInfo] = None
) -> Optional[ParkView]:
    """
    Rank one park's rides from the current snapshot.

    Defaults match the dashboard: favorites first, then upstream order.

    Returns:
        ParkView, or None if the park is not in the current snapshot

    Raises:
        ValueError: For an unknown sort field or direction
    """
    park = view.current.find_park(park_id)
    if park is None:
        return None

    sort_field = parse_sort_field(field)
    sort_direction = parse_sort_direction(direction)
    favorite_ids = frozenset(favorites or ())
    classifier = classifier or get_land_classifier()
    today = today or get_today_local(tz or PARK_TZ)

    visible = filter_rides(park.rides, search_query)
    ranked = rank(visible, sort_field, sort_direction, favorite_ids, classifier, today, tz)
    avg = average_wait(visible)

    return ParkView(
        park_id=park.id,
        park_name=park.name,
        timestamp=view.current.timestamp,
        sort_field=sort_field,
        sort_direction=sort_direction,
        rides=[
            RankedRide(
                ride=ride,
                wait_time=wait_time_key(ride),
                peak=day_peak(ride, today, tz),
                land=classifier.get_land(ride.name),
                ticket_class=classifier.get_ticket_class(ride.name),
                is_favorite=ride.id in favorite_ids,
                hourly_forecast=hourly_forecast(ride, today, tz)
            )
            for ride in ranked
        ],
        average_wait=avg,
        busyness=busyness_tier(avg, thresholds),
        triggered_alerts=evaluate_alerts(visible, alerts or ())
    )
