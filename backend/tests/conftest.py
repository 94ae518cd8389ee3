"""
Wait Time Tracker - pytest Configuration and Fixtures

Provides shared test fixtures for:
- Live ride / park payloads in the ThemeParks.wiki wire shape
- RideRecord and Snapshot builders
- Fake upstream client for orchestrator and API tests
- Log capture for the non-propagating JSON logger
"""

import sys
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock

import pytest

# Add src to path for imports
backend_src = Path(__file__).parent.parent / 'src'
if str(backend_src.absolute()) not in sys.path:
    sys.path.insert(0, str(backend_src.absolute()))

from models.ride import RideRecord
from models.snapshot import ParkSnapshot, Snapshot
from utils.logger import logger as app_logger


DISNEYLAND_ID = '7340550b-c14d-4def-80bb-acdb51d49a66'
DCA_ID = '832fcd51-ea19-4e77-85c7-75d5843b127c'


# ============================================================================
# Sample Data Fixtures
# ============================================================================

@pytest.fixture
def sample_ride_payload():
    """
    A single liveData entry as returned by /entity/{id}/live.

    Returns:
        Dictionary with an operating attraction, all queue types and a forecast
    """
    return {
        'id': 'space-mountain',
        'name': 'Space Mountain',
        'entityType': 'ATTRACTION',
        'parkId': DISNEYLAND_ID,
        'externalId': '353435',
        'status': 'OPERATING',
        'lastUpdated': '2025-06-01T17:58:10Z',
        'queue': {
            'STANDBY': {'waitTime': 45},
            'PAID_RETURN_TIME': {
                'state': 'AVAILABLE',
                'returnStart': '2025-06-01T12:15:00-07:00',
                'returnEnd': '2025-06-01T13:15:00-07:00',
                'price': {'amount': 2500, 'currency': 'USD', 'formatted': '$25.00'}
            }
        },
        'forecast': [
            {'time': '2025-06-01T09:00:00-07:00', 'waitTime': 30, 'percentage': 40},
            {'time': '2025-06-01T14:00:00-07:00', 'waitTime': 70, 'percentage': 95},
            {'time': '2025-06-02T14:00:00-07:00', 'waitTime': 90, 'percentage': 100}
        ],
        'operatingHours': [
            {'type': 'Operating', 'startTime': '2025-06-01T08:00:00-07:00', 'endTime': '2025-06-01T23:00:00-07:00'}
        ]
    }


@pytest.fixture
def sample_park_payload(sample_ride_payload):
    """
    Full /live response for Disneyland Park.

    Contains an operating ride, a closed ride, a boarding-group ride,
    a refurbishment and a show.
    """
    return {
        'id': DISNEYLAND_ID,
        'name': 'Disneyland Park',
        'entityType': 'PARK',
        'liveData': [
            sample_ride_payload,
            {
                'id': 'matterhorn',
                'name': 'Matterhorn Bobsleds',
                'entityType': 'ATTRACTION',
                'status': 'CLOSED',
                'queue': {'STANDBY': {'waitTime': None}}
            },
            {
                'id': 'rise',
                'name': 'Star Wars: Rise of the Resistance',
                'entityType': 'ATTRACTION',
                'status': 'OPERATING',
                'queue': {
                    'BOARDING_GROUP': {
                        'allocationStatus': 'AVAILABLE',
                        'currentGroupStart': 12,
                        'currentGroupEnd': 30,
                        'estimatedWait': 45
                    },
                    'STANDBY': {'waitTime': 15}
                }
            },
            {
                'id': 'splash',
                'name': "Tiana's Bayou Adventure",
                'entityType': 'ATTRACTION',
                'status': 'REFURBISHMENT'
            },
            {
                'id': 'fantasmic',
                'name': 'Fantasmic!',
                'entityType': 'SHOW',
                'status': 'OPERATING',
                'showtimes': [
                    {'type': 'Performance Time', 'startTime': '2025-06-01T21:00:00-07:00', 'endTime': '2025-06-01T21:25:00-07:00'}
                ]
            }
        ]
    }


@pytest.fixture
def make_ride():
    """
    Builder for RideRecord instances.

    Usage:
        ride = make_ride('alice', 'Alice', wait=20)
    """
    def _make(ride_id, name='', status='OPERATING', wait=None, entity_type='ATTRACTION', forecast=None):
        payload = {
            'id': ride_id,
            'name': name or ride_id,
            'entityType': entity_type,
            'status': status
        }
        if wait is not None:
            payload['queue'] = {'STANDBY': {'waitTime': wait}}
        if forecast is not None:
            payload['forecast'] = forecast
        return RideRecord.from_dict(payload)
    return _make


@pytest.fixture
def make_snapshot():
    """
    Builder for Snapshot instances.

    Usage:
        snapshot = make_snapshot(datetime(2025, 6, 1, 17, 0, tzinfo=timezone.utc))
    """
    def _make(timestamp, parks=None):
        if parks is None:
            parks = (ParkSnapshot(id=DISNEYLAND_ID, name='Disneyland Park'),)
        return Snapshot(timestamp=timestamp, parks=tuple(parks))
    return _make


@pytest.fixture
def base_time():
    """Whole-second UTC instant used as t0 in history tests."""
    return datetime(2025, 6, 1, 17, 0, 0, tzinfo=timezone.utc)


# ============================================================================
# Fake Collaborators
# ============================================================================

class FakeParkClient:
    """
    Stand-in for ThemeParksWikiClient.fetch_park_live.

    Args:
        parks: park_id -> ParkSnapshot (or an Exception to raise)
    """

    def __init__(self, parks):
        self.parks = dict(parks)
        self.calls = []
        self._lock = Lock()

    def fetch_park_live(self, park_id):
        with self._lock:
            self.calls.append(park_id)
        result = self.parks[park_id]
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def fake_client(make_ride):
    """Fake client serving both Disneyland Resort parks."""
    return FakeParkClient({
        DISNEYLAND_ID: ParkSnapshot(
            id=DISNEYLAND_ID,
            name='Disneyland Park',
            rides=(
                make_ride('space-mountain', 'Space Mountain', wait=45),
                make_ride('matterhorn', 'Matterhorn Bobsleds', status='CLOSED'),
                make_ride('small-world', "it's a small world", wait=5),
            )
        ),
        DCA_ID: ParkSnapshot(
            id=DCA_ID,
            name='Disney California Adventure',
            rides=(make_ride('racers', 'Radiator Springs Racers', wait=70),)
        )
    })


# ============================================================================
# Logging
# ============================================================================

@pytest.fixture
def app_logs(caplog):
    """
    Capture records from the application logger.

    The JSON logger does not propagate to root, so caplog's handler is
    attached to it directly.
    """
    app_logger.addHandler(caplog.handler)
    previous_level = app_logger.level
    app_logger.setLevel('DEBUG')
    try:
        yield caplog
    finally:
        app_logger.removeHandler(caplog.handler)
        app_logger.setLevel(previous_level)


@pytest.fixture
def fake_client_cls():
    """The FakeParkClient class, for tests that need custom park results."""
    return FakeParkClient
