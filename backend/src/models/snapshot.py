"""
Wait Time Tracker - Snapshot Models
A Snapshot is one refresh cycle's full multi-park wait-time data.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from .ride import RideRecord
from utils.timezone import UTC_TZ, format_iso_utc, parse_iso_timestamp


@dataclass(frozen=True)
class ParkSnapshot:
    """
    Live data for one park.

    ``rides`` keeps upstream order, which is not stable across fetches.
    """
    id: str
    name: str = ''
    rides: Tuple[RideRecord, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ParkSnapshot':
        live_data = data.get('liveData')
        rides = ()
        if isinstance(live_data, list):
            rides = tuple(RideRecord.from_dict(item) for item in live_data if isinstance(item, dict))
        park_id = data.get('id')
        name = data.get('name')
        return cls(
            id=park_id if isinstance(park_id, str) else '',
            name=name if isinstance(name, str) else '',
            rides=rides
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'liveData': [ride.to_dict() for ride in self.rides]
        }

    def find_ride(self, ride_id: str) -> Optional[RideRecord]:
        for ride in self.rides:
            if ride.id == ride_id:
                return ride
        return None


@dataclass(frozen=True)
class Snapshot:
    """
    Point-in-time wait data for every configured park.

    Immutable once created. ``timestamp`` is an aware UTC datetime.
    """
    timestamp: datetime
    parks: Tuple[ParkSnapshot, ...] = field(default_factory=tuple)

    def __post_init__(self):
        # Naive timestamps are UTC
        if self.timestamp.tzinfo is None:
            object.__setattr__(self, 'timestamp', self.timestamp.replace(tzinfo=UTC_TZ))
        object.__setattr__(self, 'parks', tuple(self.parks))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Snapshot':
        """
        Parse a persisted snapshot.

        Raises:
            ValueError: If the timestamp is missing or malformed
        """
        raw_timestamp = data.get('timestamp')
        try:
            timestamp = parse_iso_timestamp(raw_timestamp)
        except TypeError as e:
            raise ValueError(f"Snapshot has no usable timestamp: {raw_timestamp!r}") from e
        parks = data.get('parks')
        return cls(
            timestamp=timestamp,
            parks=tuple(
                ParkSnapshot.from_dict(p) for p in parks if isinstance(p, dict)
            ) if isinstance(parks, list) else ()
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'timestamp': format_iso_utc(self.timestamp),
            'parks': [park.to_dict() for park in self.parks]
        }

    def find_park(self, park_id: str) -> Optional[ParkSnapshot]:
        for park in self.parks:
            if park.id == park_id:
                return park
        return None

    def find_ride(self, ride_id: str) -> Optional[RideRecord]:
        """Find a ride in any park of this snapshot."""
        for park in self.parks:
            ride = park.find_ride(ride_id)
            if ride is not None:
                return ride
        return None


@dataclass(frozen=True)
class WaitTimesView:
    """
    Read-path result: the fresh snapshot plus the durable history.

    ``current`` is always the freshly fetched snapshot, whether or not it
    was persisted this cycle.
    """
    current: Snapshot
    history: Tuple[Snapshot, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'current': self.current.to_dict(),
            'history': [snapshot.to_dict() for snapshot in self.history]
        }


def snapshots_to_payload(snapshots: List[Snapshot]) -> List[Dict[str, Any]]:
    """Serialize a history list to its JSON-compatible form."""
    return [snapshot.to_dict() for snapshot in snapshots]
