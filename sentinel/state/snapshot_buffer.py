"""Simple in-memory ring buffer for tick snapshots."""
from collections import deque
from threading import Lock
from typing import List, Optional
import logging

import pandas as pd

from .snapshot import TickSnapshot

logger = logging.getLogger(__name__)


class SnapshotBuffer:
    """Bounded append-only buffer for TickSnapshot objects."""

    def __init__(self, maxlen: int = 1800):
        self._buffer: deque[TickSnapshot] = deque(maxlen=maxlen)
        self._maxlen = maxlen
        self._lock = Lock()

    def append(self, snapshot: TickSnapshot) -> bool:
        """Append a new snapshot; drop non-monotonic ones. Returns True if stored."""
        with self._lock:
            if self._buffer and snapshot.timestamp <= self._buffer[-1].timestamp:
                logger.warning(
                    "Non-monotonic timestamp detected: new=%s last=%s — dropping snapshot",
                    snapshot.timestamp,
                    self._buffer[-1].timestamp,
                )
                return False
            self._buffer.append(snapshot)
            return True

    def latest(self) -> Optional[TickSnapshot]:
        """Return the most recent snapshot (or None)."""
        with self._lock:
            return self._buffer[-1] if self._buffer else None

    def history(self, n: Optional[int] = None) -> List[TickSnapshot]:
        """
        Return a copy of the last n snapshots (oldest→newest).

        Args:
            n: Number of items to return. None returns full buffer.
        """
        with self._lock:
            if not self._buffer:
                return []
            if n is None:
                return list(self._buffer)
            if n <= 0:
                return []
            return list(self._buffer)[-n:]

    def to_frame(self, n: Optional[int] = None) -> pd.DataFrame:
        """
        Tabular history for charting: one row per tick, one column per
        instrument plus risk_score, risk_level and cme_alert.
        """
        rows = []
        for snap in self.history(n):
            row = {"timestamp": snap.timestamp}
            row.update({r.instrument.value: r.value for r in snap.readings})
            row["risk_score"] = snap.risk.score
            row["risk_level"] = snap.risk.level.value
            row["cme_alert"] = snap.cme_alert
            rows.append(row)

        if not rows:
            return pd.DataFrame(columns=["timestamp", "risk_score", "risk_level", "cme_alert"])

        frame = pd.DataFrame(rows)
        frame["time"] = pd.to_datetime(frame["timestamp"], unit="s", utc=True)
        return frame

    def is_empty(self) -> bool:
        """True if buffer has no entries."""
        with self._lock:
            return len(self._buffer) == 0

    def size(self) -> int:
        """Current buffer length."""
        with self._lock:
            return len(self._buffer)

    def clear(self) -> None:
        with self._lock:
            self._buffer.clear()

    @property
    def maxlen(self) -> int:
        return self._maxlen
