"""
Wait Time Tracker - Forecast and History Series
Turns a ride's forecast and the snapshot history into plottable series.

Forecast entries come straight from the upstream feed and are not trusted:
a point with a missing/unparseable time or a missing wait is skipped, never
raised to the caller.
"""

from datetime import date, datetime
from typing import Iterable, List, Optional, Tuple
from zoneinfo import ZoneInfo

from models.ride import ForecastPoint, RideRecord
from models.snapshot import Snapshot
from utils.timezone import PARK_TZ, get_today_local, parse_iso_timestamp, to_local_date


class MalformedForecastEntry(ValueError):
    """Raised when a forecast point cannot be placed in time or has no wait."""
    pass


def resolve_forecast_point(point: ForecastPoint, tz: Optional[ZoneInfo] = None) -> Tuple[datetime, int]:
    """
    Resolve a forecast point to (park-local datetime, wait minutes).

    Naive times are taken as already park-local.

    Raises:
        MalformedForecastEntry: If the time or wait is missing or unparseable
    """
    tz = tz or PARK_TZ
    if point.wait_time is None:
        raise MalformedForecastEntry(f"Forecast point has no waitTime: {point!r}")
    try:
        moment = parse_iso_timestamp(point.time)
    except (TypeError, ValueError) as e:
        raise MalformedForecastEntry(f"Forecast point has bad time {point.time!r}") from e
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=tz)
    return moment.astimezone(tz), point.wait_time


def iter_today_forecast(
    ride: RideRecord,
    today: Optional[date] = None,
    tz: Optional[ZoneInfo] = None
) -> Iterable[Tuple[datetime, int]]:
    """Yield (local time, wait) for each valid forecast point dated today."""
    tz = tz or PARK_TZ
    today = today or get_today_local(tz)
    for point in ride.forecast:
        try:
            moment, wait = resolve_forecast_point(point, tz)
        except MalformedForecastEntry:
            continue
        if to_local_date(moment, tz) == today:
            yield moment, wait


def today_forecast_series(
    ride: RideRecord,
    today: Optional[date] = None,
    tz: Optional[ZoneInfo] = None
) -> List[Tuple[datetime, int]]:
    """
    Today's forecast as a time-ordered series.

    Returns:
        List of (local datetime, predicted wait) sorted by time
    """
    return sorted(iter_today_forecast(ride, today, tz), key=lambda item: item[0])


def forecast_for_hour(
    ride: RideRecord,
    hour: int,
    today: Optional[date] = None,
    tz: Optional[ZoneInfo] = None
) -> Optional[int]:
    """
    Predicted wait for a given local hour today.

    Args:
        ride: Ride with forecast
        hour: Local hour of day (0-23)

    Returns:
        Wait minutes for the first forecast point in that hour, or None
    """
    for moment, wait in today_forecast_series(ride, today, tz):
        if moment.hour == hour:
            return wait
    return None


def ride_wait_history(history: Iterable[Snapshot], ride_id: str) -> List[Tuple[datetime, int]]:
    """
    Standby wait for one ride across the snapshot history.

    Snapshots where the ride is missing or has no standby wait are skipped.

    Returns:
        List of (snapshot timestamp, standby wait) in history order
    """
    series = []
    for snapshot in history:
        for park in snapshot.parks:
            ride = park.find_ride(ride_id)
            if ride is not None and ride.standby_wait is not None:
                series.append((snapshot.timestamp, ride.standby_wait))
                break
    return series
