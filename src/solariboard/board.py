"""Refresh orchestrator for the departure board."""

import logging
import threading
from datetime import datetime
from typing import Callable, List, Optional

from .config import BoardConfig
from .mbta_client import MBTAAPIError, MBTAClient
from .models import BoardSnapshot, DisplayRow, Platform, Station
from .pipeline import enrich_trips, fetch_predictions, resolve_routes, resolve_stop

logger = logging.getLogger(__name__)

# Failures a refresh stage catches and logs
STAGE_ERRORS = (MBTAAPIError, AttributeError, KeyError, TypeError, ValueError)

IDLE = "idle"
REFRESHING = "refreshing"


def _local_now() -> datetime:
    return datetime.now().astimezone()


class Ticker:
    """Calls a function every `interval` seconds on a daemon thread."""

    def __init__(self, interval: float, callback: Callable[[], None], name: str = "ticker"):
        self.interval = interval
        self._callback = callback
        self._name = name
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop_event.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)
        self._thread = None

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval):
            try:
                self._callback()
            except Exception as e:
                logger.error(f"Ticker {self._name} callback failed: {e}", exc_info=True)


class SolariBoard:
    """
    Keeps a departure board for one station up to date.

    The board owns all displayed state. A fast clock tick advances the
    displayed time and, once the refresh interval has passed, starts a
    refresh cycle:

    - Resolve the station and its platforms (once per board)
    - Resolve the commuter rail routes serving it
    - Fetch predictions for those routes
    - Join predictions with trip data into display rows

    Only one cycle runs at a time. A failing stage is logged and ends the
    cycle, leaving the previous rows on the board.
    """

    def __init__(
        self,
        client: MBTAClient,
        config: Optional[BoardConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
        background: bool = True,
    ):
        """
        Initialize the board.

        Args:
            client: API client used by the pipeline stages.
            config: Board settings. Defaults to BoardConfig().
            clock: Returns the current time. Defaults to local aware now.
            background: If True, refresh cycles started by tick() run on a worker
                thread. If False they run inline.
        """
        self.client = client
        self.config = config or BoardConfig()
        self._clock = clock or _local_now
        self._background = background

        self._lock = threading.Lock()
        self._cancelled = threading.Event()
        self._ticker = Ticker(self.config.tick_interval, self.tick, name="solari-clock")
        self._worker: Optional[threading.Thread] = None

        self._state = IDLE
        self._sequence = 0
        self._last_started: Optional[datetime] = None

        self._station: Optional[Station] = None
        self._routes: List[str] = []
        self._rows: List[DisplayRow] = []
        self._current_time = self._clock()
        self._last_updated: Optional[datetime] = None

    @property
    def state(self) -> str:
        """IDLE or REFRESHING."""
        with self._lock:
            return self._state

    @property
    def station(self) -> Optional[Station]:
        with self._lock:
            return self._station

    @property
    def routes(self) -> List[str]:
        with self._lock:
            return list(self._routes)

    @property
    def platforms(self) -> List[Platform]:
        with self._lock:
            return list(self._station.platforms) if self._station else []

    def snapshot(self) -> BoardSnapshot:
        """Return an immutable view of the board for rendering."""
        with self._lock:
            return BoardSnapshot(
                stop_id=self.config.stop_id,
                station_name=self._station.name if self._station else "",
                current_time=self._current_time,
                last_updated=self._last_updated,
                rows=tuple(self._rows),
            )

    # Timers

    def start(self) -> None:
        """Start the clock and kick off the first refresh."""
        logger.info(f"Starting board for stop {self.config.stop_id}")
        self._cancelled.clear()
        self.tick()
        self._ticker.start()

    def stop(self) -> None:
        """Stop the clock and discard the results of any running refresh."""
        self._cancelled.set()
        self._ticker.stop()
        with self._lock:
            # Results of a cycle still in flight no longer match the sequence
            self._sequence += 1
            self._state = IDLE
            # The next start() refreshes right away
            self._last_started = None
        logger.info(f"Stopped board for stop {self.config.stop_id}")

    def wait(self, timeout: Optional[float] = None) -> None:
        """Block until the background refresh started last has finished."""
        worker = self._worker
        if worker is not None:
            worker.join(timeout)

    def tick(self) -> bool:
        """
        Advance the displayed time and start a refresh if one is due.

        Returns:
            True if a refresh cycle was started.
        """
        now = self._clock()
        with self._lock:
            self._current_time = now
            if self._state == REFRESHING:
                logger.debug("Refresh already running; skipping trigger")
                return False
            if self._last_started is not None:
                elapsed = (now - self._last_started).total_seconds()
                if elapsed < self.config.refresh_interval:
                    return False
            sequence = self._begin(now)

        if self._background:
            self._worker = threading.Thread(
                target=self._run_cycle, args=(sequence,), name=f"solari-refresh-{sequence}", daemon=True
            )
            self._worker.start()
        else:
            self._run_cycle(sequence)
        return True

    # Refresh cycle

    def refresh(self) -> bool:
        """
        Run one refresh cycle now, unless one is already running.

        Returns:
            True if new rows were committed to the board.
        """
        with self._lock:
            if self._state == REFRESHING:
                logger.debug("Refresh already running; skipping trigger")
                return False
            sequence = self._begin(self._clock())
        return self._run_cycle(sequence)

    def _begin(self, now: datetime) -> int:
        # Caller holds self._lock
        self._state = REFRESHING
        self._sequence += 1
        self._last_started = now
        return self._sequence

    def _run_cycle(self, sequence: int) -> bool:
        try:
            return self._run_stages(sequence)
        finally:
            with self._lock:
                if sequence == self._sequence:
                    self._state = IDLE

    def _is_current(self, sequence: int) -> bool:
        # Caller holds self._lock
        return sequence == self._sequence and not self._cancelled.is_set()

    def _run_stages(self, sequence: int) -> bool:
        stop_id = self.config.stop_id

        station = self.station
        if station is None or station.stop_id != stop_id:
            try:
                station = resolve_stop(self.client, stop_id)
            except STAGE_ERRORS as e:
                logger.error(f"Failed to load stop {stop_id}: {e}")
                return False
            with self._lock:
                if not self._is_current(sequence):
                    return False
                self._station = station

        try:
            routes = resolve_routes(self.client, stop_id, self.config.route_type)
        except STAGE_ERRORS as e:
            logger.error(f"Failed to load routes for {stop_id}: {e}")
            return False
        with self._lock:
            if not self._is_current(sequence):
                return False
            self._routes = routes

        try:
            predictions = fetch_predictions(self.client, stop_id, routes, station.platforms)
        except STAGE_ERRORS as e:
            logger.error(f"Failed to load predictions for {stop_id}: {e}")
            return False
        if self._cancelled.is_set():
            return False

        try:
            rows = enrich_trips(self.client, predictions)
        except STAGE_ERRORS as e:
            logger.error(f"Failed to load trips for {stop_id}: {e}")
            return False

        with self._lock:
            if not self._is_current(sequence):
                logger.debug(f"Discarding results of stale refresh {sequence}")
                return False
            self._rows = rows
            self._last_updated = self._clock()

        logger.info(f"Refreshed {station.name}: {len(rows)} departures")
        return True
