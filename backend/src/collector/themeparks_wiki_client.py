"""
Wait Time Tracker - ThemeParks.wiki API Client
Fetches live park data (status, queues, forecasts) with retry logic using tenacity.

API Documentation: https://api.themeparks.wiki/docs/v1/
"""

import requests
from typing import Dict, Optional
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from models.snapshot import ParkSnapshot
from utils.config import (
    MAX_RETRY_ATTEMPTS,
    RETRY_BACKOFF_MULTIPLIER,
    THEMEPARKS_WIKI_API_BASE_URL,
    UPSTREAM_TIMEOUT_SECONDS,
)
from utils.logger import logger


class ThemeParksWikiClient:
    """
    Client for ThemeParks.wiki API with automatic retry logic.

    Transport failures (timeouts, dropped connections) are retried with
    exponential backoff; HTTP error statuses are raised immediately.
    """

    def __init__(self, base_url: str = THEMEPARKS_WIKI_API_BASE_URL, timeout: int = UPSTREAM_TIMEOUT_SECONDS):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            'User-Agent': 'WaitTimeTracker/1.0',
            'Accept': 'application/json'
        })

    @retry(
        stop=stop_after_attempt(MAX_RETRY_ATTEMPTS),
        wait=wait_exponential(multiplier=RETRY_BACKOFF_MULTIPLIER, min=1, max=10),
        retry=retry_if_exception_type((requests.Timeout, requests.ConnectionError)),
        reraise=True
    )
    def get_entity_live(self, entity_id: str) -> Dict:
        """
        Fetch live data (wait times, status, forecasts) for an entity.

        Args:
            entity_id: ThemeParks.wiki entity UUID (park)

        Returns:
            Raw JSON dictionary with a liveData array

        Raises:
            requests.HTTPError: If API returns error status
            requests.Timeout: If request times out (after retries)
            requests.ConnectionError: If the API is unreachable (after retries)
        """
        url = f"{self.base_url}/entity/{entity_id}/live"
        logger.debug(f"Fetching live data for entity {entity_id}")

        response = self.session.get(url, timeout=self.timeout)
        response.raise_for_status()

        return response.json()

    def fetch_park_live(self, park_id: str) -> ParkSnapshot:
        """
        Get parsed live data for every entity in a park.

        Unlike the dashboard filter, all entity types are kept so the stored
        history matches what the API returned.

        Args:
            park_id: ThemeParks.wiki park UUID

        Returns:
            ParkSnapshot in upstream order

        Raises:
            requests.RequestException: On any transport or HTTP failure
            ValueError: If the response body is not a JSON object
        """
        data = self.get_entity_live(park_id)
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected live payload for park {park_id}: {type(data).__name__}")

        park = ParkSnapshot.from_dict(data)
        if not park.id:
            park = ParkSnapshot(id=park_id, name=park.name, rides=park.rides)

        logger.debug(f"Parsed {len(park.rides)} live entities for park {park_id}")
        return park

    def close(self):
        """Close the HTTP session."""
        self.session.close()


# Singleton instance
_client: Optional[ThemeParksWikiClient] = None


def get_themeparks_wiki_client() -> ThemeParksWikiClient:
    """
    Get or create singleton ThemeParks.wiki API client.

    Returns:
        ThemeParksWikiClient instance
    """
    global _client
    if _client is None:
        _client = ThemeParksWikiClient()
    return _client
