"""
In-memory SENTINEL state tracking (tick snapshots, ring buffer, ticker).
"""

from .snapshot import TickSnapshot
from .snapshot_buffer import SnapshotBuffer
from .ticker import Ticker

__all__ = [
    "TickSnapshot",
    "SnapshotBuffer",
    "Ticker",
]
