"""
Wait Time Tracker - Ride Entity Model
Represents a single live ride record as returned by ThemeParks.wiki /live.

Every field may be missing on the wire. Parsing never raises on absent or
oddly-typed values; they become None (or an empty tuple) instead.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class RideStatus(Enum):
    """Ride status values from ThemeParks.wiki API."""
    OPERATING = "OPERATING"
    DOWN = "DOWN"
    CLOSED = "CLOSED"
    REFURBISHMENT = "REFURBISHMENT"


class EntityType(Enum):
    """Entity types carried in a park's liveData."""
    ATTRACTION = "ATTRACTION"
    SHOW = "SHOW"
    RESTAURANT = "RESTAURANT"


def _as_int(value: Any) -> Optional[int]:
    """Coerce a wire number to int, or None if it isn't one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    return None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    return None


def _as_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _compact(data: Dict[str, Any]) -> Dict[str, Any]:
    """Drop None values so serialized records mirror the wire shape."""
    return {k: v for k, v in data.items() if v is not None}


@dataclass(frozen=True)
class StandbyQueue:
    """Regular queue line."""
    wait_time: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StandbyQueue':
        return cls(wait_time=_as_int(data.get('waitTime')))

    def to_dict(self) -> Dict[str, Any]:
        return _compact({'waitTime': self.wait_time})


@dataclass(frozen=True)
class ReturnTimePrice:
    amount: Optional[float] = None
    currency: Optional[str] = None
    formatted: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ReturnTimePrice':
        return cls(
            amount=_as_float(data.get('amount')),
            currency=_as_str(data.get('currency')),
            formatted=_as_str(data.get('formatted'))
        )

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            'amount': self.amount,
            'currency': self.currency,
            'formatted': self.formatted
        })


@dataclass(frozen=True)
class PaidReturnTimeQueue:
    """Paid return window (Lightning Lane style)."""
    state: Optional[str] = None
    return_start: Optional[str] = None
    return_end: Optional[str] = None
    price: Optional[ReturnTimePrice] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PaidReturnTimeQueue':
        price = data.get('price')
        return cls(
            state=_as_str(data.get('state')),
            return_start=_as_str(data.get('returnStart')),
            return_end=_as_str(data.get('returnEnd')),
            price=ReturnTimePrice.from_dict(price) if isinstance(price, dict) else None
        )

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            'state': self.state,
            'returnStart': self.return_start,
            'returnEnd': self.return_end,
            'price': self.price.to_dict() if self.price else None
        })


@dataclass(frozen=True)
class BoardingGroupQueue:
    """Virtual queue boarding group state."""
    allocation_status: Optional[str] = None
    current_group_start: Optional[int] = None
    current_group_end: Optional[int] = None
    next_allocation_time: Optional[str] = None
    estimated_wait: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BoardingGroupQueue':
        return cls(
            allocation_status=_as_str(data.get('allocationStatus')),
            current_group_start=_as_int(data.get('currentGroupStart')),
            current_group_end=_as_int(data.get('currentGroupEnd')),
            next_allocation_time=_as_str(data.get('nextAllocationTime')),
            estimated_wait=_as_int(data.get('estimatedWait'))
        )

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            'allocationStatus': self.allocation_status,
            'currentGroupStart': self.current_group_start,
            'currentGroupEnd': self.current_group_end,
            'nextAllocationTime': self.next_allocation_time,
            'estimatedWait': self.estimated_wait
        })


@dataclass(frozen=True)
class Queue:
    """
    Queue state for a ride.

    The three parts are independent: a ride may have a boarding group and
    no standby line, or a paid return time and nothing else.
    """
    standby: Optional[StandbyQueue] = None
    paid_return_time: Optional[PaidReturnTimeQueue] = None
    boarding_group: Optional[BoardingGroupQueue] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Queue':
        standby = data.get('STANDBY')
        paid = data.get('PAID_RETURN_TIME')
        boarding = data.get('BOARDING_GROUP')
        return cls(
            standby=StandbyQueue.from_dict(standby) if isinstance(standby, dict) else None,
            paid_return_time=PaidReturnTimeQueue.from_dict(paid) if isinstance(paid, dict) else None,
            boarding_group=BoardingGroupQueue.from_dict(boarding) if isinstance(boarding, dict) else None
        )

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            'STANDBY': self.standby.to_dict() if self.standby else None,
            'PAID_RETURN_TIME': self.paid_return_time.to_dict() if self.paid_return_time else None,
            'BOARDING_GROUP': self.boarding_group.to_dict() if self.boarding_group else None
        })


@dataclass(frozen=True)
class ForecastPoint:
    """
    One predicted wait for a future hour.

    ``time`` is kept as the raw ISO string; it is parsed lazily by the
    ranking code so a malformed entry only drops that one point.
    """
    time: Optional[str] = None
    wait_time: Optional[int] = None
    percentage: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ForecastPoint':
        return cls(
            time=_as_str(data.get('time')),
            wait_time=_as_int(data.get('waitTime')),
            percentage=_as_float(data.get('percentage'))
        )

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            'time': self.time,
            'waitTime': self.wait_time,
            'percentage': self.percentage
        })


@dataclass(frozen=True)
class ScheduleWindow:
    """Operating hours or showtime window."""
    type: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ScheduleWindow':
        return cls(
            type=_as_str(data.get('type')),
            start_time=_as_str(data.get('startTime')),
            end_time=_as_str(data.get('endTime'))
        )

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            'type': self.type,
            'startTime': self.start_time,
            'endTime': self.end_time
        })


def _parse_list(value: Any, parser) -> Tuple:
    if not isinstance(value, list):
        return ()
    return tuple(parser(item) for item in value if isinstance(item, dict))


@dataclass(frozen=True)
class RideRecord:
    """
    Live ride/attraction/show/restaurant record.

    ``status`` and ``entity_type`` keep the raw wire strings so that values
    the API adds later survive a round trip through the history store.
    """
    id: str
    name: str = ''
    entity_type: Optional[str] = None
    park_id: Optional[str] = None
    external_id: Optional[str] = None
    status: Optional[str] = None
    last_updated: Optional[str] = None
    queue: Optional[Queue] = None
    forecast: Tuple[ForecastPoint, ...] = field(default_factory=tuple)
    operating_hours: Tuple[ScheduleWindow, ...] = field(default_factory=tuple)
    showtimes: Tuple[ScheduleWindow, ...] = field(default_factory=tuple)

    @property
    def is_operating(self) -> bool:
        return self.status == RideStatus.OPERATING.value

    @property
    def is_attraction(self) -> bool:
        return self.entity_type == EntityType.ATTRACTION.value

    @property
    def standby_wait(self) -> Optional[int]:
        """Standby wait in minutes, or None if the ride reports no standby line."""
        if self.queue is None or self.queue.standby is None:
            return None
        return self.queue.standby.wait_time

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RideRecord':
        """Parse a liveData entry. Missing fields become None/empty."""
        queue = data.get('queue')
        return cls(
            id=_as_str(data.get('id')) or '',
            name=_as_str(data.get('name')) or '',
            entity_type=_as_str(data.get('entityType')),
            park_id=_as_str(data.get('parkId')),
            external_id=_as_str(data.get('externalId')),
            status=_as_str(data.get('status')),
            last_updated=_as_str(data.get('lastUpdated')),
            queue=Queue.from_dict(queue) if isinstance(queue, dict) else None,
            forecast=_parse_list(data.get('forecast'), ForecastPoint.from_dict),
            operating_hours=_parse_list(data.get('operatingHours'), ScheduleWindow.from_dict),
            showtimes=_parse_list(data.get('showtimes'), ScheduleWindow.from_dict)
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize back to the ThemeParks.wiki camelCase shape."""
        return _compact({
            'id': self.id,
            'name': self.name,
            'entityType': self.entity_type,
            'parkId': self.park_id,
            'externalId': self.external_id,
            'status': self.status,
            'lastUpdated': self.last_updated,
            'queue': self.queue.to_dict() if self.queue else None,
            'forecast': [p.to_dict() for p in self.forecast] if self.forecast else None,
            'operatingHours': [w.to_dict() for w in self.operating_hours] if self.operating_hours else None,
            'showtimes': [w.to_dict() for w in self.showtimes] if self.showtimes else None
        })
