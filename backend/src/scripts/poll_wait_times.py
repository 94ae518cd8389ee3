#!/usr/bin/env python3
"""
Wait Time Tracker - Wait Time Polling Script
Fetches live wait times for the configured parks and records them in the
snapshot history, either once or on a fixed interval.

Usage:
    python -m scripts.poll_wait_times --once
    python -m scripts.poll_wait_times --interval 60

Cron example (every minute, one cycle per run):
    * * * * * cd /path/to/backend/src && python -m scripts.poll_wait_times --once

The poller may share HISTORY_FILE_PATH with the web app: each append merges
what is already stored before writing.
"""

import argparse
import sys
import time
from pathlib import Path
from typing import List, Optional

# Add src to path
backend_src = Path(__file__).parent.parent
sys.path.insert(0, str(backend_src.absolute()))

from collector.refresh_orchestrator import RefreshOrchestrator, UpstreamUnavailable
from collector.scheduler import IntervalScheduler
from collector.themeparks_wiki_client import get_themeparks_wiki_client
from storage.medium import create_storage_medium
from storage.snapshot_store import SnapshotStore
from utils.config import (
    HISTORY_DEDUP_WINDOW_SECONDS,
    HISTORY_MAX_SNAPSHOTS,
    PARK_IDS,
    REFRESH_INTERVAL_SECONDS,
)
from utils.logger import logger


class WaitTimePoller:
    """
    Drives refresh cycles outside the web app.

    Args:
        orchestrator: Refresh orchestrator (default: live client plus configured store)
    """

    def __init__(self, orchestrator: Optional[RefreshOrchestrator] = None):
        if orchestrator is None:
            store = SnapshotStore(
                create_storage_medium(),
                dedup_window_seconds=HISTORY_DEDUP_WINDOW_SECONDS,
                max_snapshots=HISTORY_MAX_SNAPSHOTS
            )
            orchestrator = RefreshOrchestrator(get_themeparks_wiki_client(), store, PARK_IDS)
        self.orchestrator = orchestrator

    def run_once(self) -> bool:
        """Run a single cycle. Returns True if it succeeded."""
        logger.info("=" * 60)
        logger.info("WAIT TIME POLL")
        logger.info("=" * 60)
        try:
            view = self.orchestrator.refresh()
        except UpstreamUnavailable as e:
            logger.error(f"Poll failed: {e}")
            return False

        rides = sum(len(park.rides) for park in view.current.parks)
        logger.info(f"Parks fetched:       {len(view.current.parks)}")
        logger.info(f"Entities fetched:    {rides}")
        logger.info(f"History size:        {len(view.history)}")
        return True

    def run_forever(self, interval_seconds: float) -> None:
        """Tick on an interval until interrupted."""
        scheduler = IntervalScheduler(self.orchestrator, interval_seconds=interval_seconds)
        scheduler.start()
        try:
            while scheduler.is_running:
                time.sleep(1)
        except KeyboardInterrupt:
            logger.info("Interrupted, stopping poller")
        finally:
            scheduler.stop(timeout=5)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description='Poll live wait times into the snapshot history'
    )
    parser.add_argument(
        '--once',
        action='store_true',
        help='Run a single refresh cycle and exit'
    )
    parser.add_argument(
        '--interval',
        type=float,
        default=REFRESH_INTERVAL_SECONDS,
        help=f'Seconds between refresh cycles (default: {REFRESH_INTERVAL_SECONDS})'
    )

    args = parser.parse_args(argv)

    if args.interval <= 0:
        logger.error(f"Invalid interval: {args.interval}. Must be positive")
        return 2

    poller = WaitTimePoller()
    if args.once:
        return 0 if poller.run_once() else 1

    poller.run_forever(args.interval)
    return 0


if __name__ == '__main__':
    sys.exit(main())
