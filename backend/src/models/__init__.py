# Wait Time Tracker - Models Package

from .ride import (
    RideStatus,
    EntityType,
    StandbyQueue,
    PaidReturnTimeQueue,
    ReturnTimePrice,
    BoardingGroupQueue,
    Queue,
    ForecastPoint,
    ScheduleWindow,
    RideRecord,
)
from .snapshot import ParkSnapshot, Snapshot, WaitTimesView

__all__ = [
    'RideStatus',
    'EntityType',
    'StandbyQueue',
    'PaidReturnTimeQueue',
    'ReturnTimePrice',
    'BoardingGroupQueue',
    'Queue',
    'ForecastPoint',
    'ScheduleWindow',
    'RideRecord',
    'ParkSnapshot',
    'Snapshot',
    'WaitTimesView',
]
