"""Instrument reading sources: upstream telemetry API, static and mock data."""
from typing import Dict, List, Mapping, Optional, Sequence
import logging
import random
import time

import requests

from sentinel.config import MOCK_DATA_SEED
from sentinel.errors import InvalidReadingError
from sentinel.instruments import ALL_INSTRUMENTS, Instrument, InstrumentReading

logger = logging.getLogger(__name__)


class ReadingSource:
    """Supplies one reading per instrument for a tick."""

    def sample(self, timestamp: Optional[float] = None) -> List[InstrumentReading]:
        raise NotImplementedError

    def close(self) -> None:
        pass


# ============================================================================
# Telemetry API Reading Source
# ============================================================================

class ApiReadingSource(ReadingSource):
    """
    Poll an upstream telemetry service for the current readings.

    Expects GET {base_url}/readings to return
    {"timestamp": <epoch>, "STEP": 71.2, "SUIT": 55.0, ...}.
    """

    def __init__(self, base_url: str, timeout: float = 3.0, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        logger.info(f"Telemetry API reading source using {self.base_url}")

    def sample(self, timestamp: Optional[float] = None) -> List[InstrumentReading]:
        resp = self.session.get(f"{self.base_url}/readings", timeout=self.timeout)
        resp.raise_for_status()
        payload = resp.json()

        ts = payload.get("timestamp")
        if ts is None:
            ts = timestamp if timestamp is not None else time.time()

        readings = []
        for instrument in ALL_INSTRUMENTS:
            value = payload.get(instrument.value)
            if value is None:
                # Let the risk aggregator report the gap
                logger.warning(f"No {instrument.value} reading in telemetry payload")
                continue
            try:
                readings.append(InstrumentReading(instrument, value, ts))
            except InvalidReadingError as e:
                logger.error(f"Dropping malformed {instrument.value} reading: {e}")
        return readings

    def close(self) -> None:
        self.session.close()
        logger.info("Telemetry API reading source closed")


# ============================================================================
# Static Reading Source
# ============================================================================

class StaticReadingSource(ReadingSource):
    """Return the same values every tick (fixtures, demos)."""

    def __init__(self, values: Mapping):
        self.values: Dict[Instrument, float] = {
            Instrument.from_id(k): float(v) for k, v in values.items()
        }

    def sample(self, timestamp: Optional[float] = None) -> List[InstrumentReading]:
        ts = timestamp if timestamp is not None else time.time()
        return [InstrumentReading(inst, value, ts) for inst, value in self.values.items()]


# ============================================================================
# Mock Reading Source (for running without telemetry)
# ============================================================================

class MockReadingSource(ReadingSource):
    """
    Generate synthetic readings: uniform noise over a per-instrument baseline.

    Seeded, so a given seed always yields the same sequence of ticks.
    """

    # Lower bound of each instrument's range; values span [offset, offset + 100)
    OFFSETS = {
        Instrument.STEP: 50.0,
        Instrument.SUIT: 30.0,
        Instrument.PAPA: 20.0,
        Instrument.MAG: 40.0,
        Instrument.SOLEXS: 60.0,
        Instrument.SWISS: 45.0,
    }

    def __init__(
        self,
        seed: Optional[int] = None,
        spread: float = 100.0,
        instruments: Sequence[Instrument] = ALL_INSTRUMENTS,
    ):
        """
        Initialize mock source.

        Args:
            seed: Random seed for reproducibility
            spread: Width of the uniform range above each offset
            instruments: Instruments to emit readings for
        """
        self.seed = seed if seed is not None else MOCK_DATA_SEED
        self.spread = spread
        self.instruments = [Instrument.from_id(i) for i in instruments]
        self._rng = random.Random(self.seed)

    def sample(self, timestamp: Optional[float] = None) -> List[InstrumentReading]:
        ts = timestamp if timestamp is not None else time.time()
        return [
            InstrumentReading(inst, self._rng.random() * self.spread + self.OFFSETS[inst], ts)
            for inst in self.instruments
        ]

    def reset(self) -> None:
        """Restart the sequence from the seed."""
        self._rng = random.Random(self.seed)
