"""Periodic ticker: sample readings, compute risk, commit snapshots."""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, List, Optional, Sequence

from sentinel.config import TICK_INTERVAL_SECONDS
from sentinel.errors import MissingInstrumentError
from sentinel.events.alerts import detect_cme_alert
from sentinel.ingestion.readings import ReadingSource
from sentinel.instruments import Instrument, InstrumentReading
from sentinel.scoring import DEFAULT_RULES, DetectionTracker, ScoringRules, compute_risk
from .snapshot import TickSnapshot
from .snapshot_buffer import SnapshotBuffer

logger = logging.getLogger(__name__)


class Ticker:
    """
    Own the periodic tick: every interval, sample the reading source,
    recompute the risk index and append an immutable snapshot.

    Lifecycle is explicit: start() launches the loop on the running event
    loop, stop() ends it. A failing tick is logged and skipped.
    """

    def __init__(
        self,
        source: ReadingSource,
        buffer: SnapshotBuffer,
        rules: ScoringRules = DEFAULT_RULES,
        interval: float = TICK_INTERVAL_SECONDS,
        tracker: Optional[DetectionTracker] = None,
        required: Optional[Sequence[Instrument]] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.source = source
        self.buffer = buffer
        self.rules = rules
        self.interval = interval
        self.tracker = tracker
        self.required = required
        self.clock = clock

        self._task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None
        self._tick_count = 0
        self._failed_ticks = 0

    # -------------------------
    # Single tick
    # -------------------------
    def commit(self, readings: List[InstrumentReading], timestamp: float) -> Optional[TickSnapshot]:
        """Derive risk + alert from readings and append; None if buffer rejected it."""
        risk = compute_risk(readings, self.rules, self.required)
        alert = detect_cme_alert(risk, readings, timestamp, self.rules)
        snapshot = TickSnapshot(
            timestamp=timestamp,
            readings=tuple(readings),
            risk=risk,
            alert=alert,
        )
        if not self.buffer.append(snapshot):
            return None

        if self.tracker is not None:
            for reading in readings:
                self.tracker.observe(reading)

        self._tick_count += 1
        logger.info(
            "Committed tick risk=%.1f level=%s alert=%s buffer=%d",
            risk.score,
            risk.level.value,
            snapshot.cme_alert,
            self.buffer.size(),
        )
        return snapshot

    def step(self) -> Optional[TickSnapshot]:
        """Sample and commit synchronously."""
        timestamp = self.clock()
        return self.commit(self.source.sample(timestamp), timestamp)

    async def tick(self) -> Optional[TickSnapshot]:
        """Sample off the event loop (sources may block on I/O), then commit."""
        timestamp = self.clock()
        readings = await asyncio.to_thread(self.source.sample, timestamp)
        return self.commit(readings, timestamp)

    # -------------------------
    # Loop lifecycle
    # -------------------------
    async def run(self, max_ticks: Optional[int] = None) -> None:
        """Run the tick loop until stop() (or max_ticks attempts)."""
        if self._stop_event is None:
            self._stop_event = asyncio.Event()

        logger.info("Starting ticker (interval=%.2fs)", self.interval)
        attempts = 0
        while not self._stop_event.is_set():
            try:
                await self.tick()
            except MissingInstrumentError as exc:
                self._failed_ticks += 1
                logger.warning("Tick skipped: %s", exc)
            except Exception as exc:
                self._failed_ticks += 1
                logger.error("Tick failed: %s", exc, exc_info=True)

            attempts += 1
            if max_ticks is not None and attempts >= max_ticks:
                break

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass
        logger.info("Ticker stopped after %d committed tick(s)", self._tick_count)

    def start(self) -> asyncio.Task:
        """Launch the loop as a task on the running event loop."""
        if self.running:
            raise RuntimeError("Ticker already running")
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        """Signal the loop to exit and wait for it."""
        if self._stop_event is not None:
            self._stop_event.set()
        if self._task is not None:
            await self._task
            self._task = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def tick_count(self) -> int:
        return self._tick_count

    @property
    def failed_ticks(self) -> int:
        return self._failed_ticks
