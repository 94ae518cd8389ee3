"""
Wait Time Tracker - Wait Time Alerts
Evaluates caller-supplied alert rules against live ride data.

Alert rules are owned by the client (browser-local storage); this module
only evaluates them and never persists anything.
"""

from dataclasses import dataclass
from typing import Iterable, List

from models.ride import RideRecord


@dataclass(frozen=True)
class WaitAlert:
    """Notify when a ride's standby wait drops to ``max_wait`` minutes or less."""
    ride_id: str
    max_wait: int
    ride_name: str = ''

    @classmethod
    def parse(cls, rule: str) -> 'WaitAlert':
        """
        Parse a "ride_id:max_wait" rule string.

        Raises:
            ValueError: If the rule is not in ride_id:max_wait form
        """
        ride_id, sep, max_wait = rule.rpartition(':')
        if not sep or not ride_id:
            raise ValueError(f"Alert rule must be 'ride_id:max_wait', got {rule!r}")
        return cls(ride_id=ride_id, max_wait=int(max_wait))


@dataclass(frozen=True)
class TriggeredAlert:
    alert: WaitAlert
    ride: RideRecord
    wait_time: int

    def to_dict(self) -> dict:
        return {
            'ride_id': self.ride.id,
            'ride_name': self.ride.name or self.alert.ride_name,
            'wait_time': self.wait_time,
            'max_wait': self.alert.max_wait
        }


def evaluate_alerts(rides: Iterable[RideRecord], alerts: Iterable[WaitAlert]) -> List[TriggeredAlert]:
    """
    Find alerts whose ride is operating at or under the alert's threshold.

    A ride that is not OPERATING, or has no standby wait, never triggers.

    Returns:
        Triggered alerts in the order the alerts were given
    """
    by_id = {ride.id: ride for ride in rides}
    triggered = []
    for alert in alerts:
        ride = by_id.get(alert.ride_id)
        if ride is None or not ride.is_operating:
            continue
        wait = ride.standby_wait
        if wait is not None and wait <= alert.max_wait:
            triggered.append(TriggeredAlert(alert=alert, ride=ride, wait_time=wait))
    return triggered
