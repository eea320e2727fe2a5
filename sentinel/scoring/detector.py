"""Threshold-based CME detection status per instrument."""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from threading import Lock
from typing import Dict, List, Optional, Sequence, Tuple
import logging

import numpy as np

from sentinel.instruments import Instrument, InstrumentReading
from .rules import DEFAULT_RULES, ScoringRules

logger = logging.getLogger(__name__)


class DetectionStatus(str, Enum):
    ACTIVE = "ACTIVE"
    MONITORING = "MONITORING"
    CLEAR = "CLEAR"


@dataclass(frozen=True)
class DetectionResult:
    status: DetectionStatus
    threshold: float
    is_event: bool
    confidence: float  # [0, 100]

    # Display-only counters maintained by DetectionTracker
    event_count: int = 0
    last_event_time: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "threshold": self.threshold,
            "is_event": self.is_event,
            "confidence": self.confidence,
            "event_count": self.event_count,
            "last_event_time": self.last_event_time,
        }


def detect(
    reading: InstrumentReading,
    threshold: Optional[float] = None,
    rules: ScoringRules = DEFAULT_RULES,
) -> DetectionStatus:
    """
    Tri-state status: ACTIVE above threshold, MONITORING above
    threshold * monitoring_ratio, CLEAR otherwise.

    threshold defaults to the instrument's override in rules, else
    rules.active_threshold.
    """
    if threshold is None:
        threshold = rules.threshold_for(reading.instrument)

    if reading.value > threshold:
        return DetectionStatus.ACTIVE
    if reading.value > threshold * rules.monitoring_ratio:
        return DetectionStatus.MONITORING
    return DetectionStatus.CLEAR


def is_event(reading: InstrumentReading, event_threshold: Optional[float] = None,
             rules: ScoringRules = DEFAULT_RULES) -> bool:
    """Binary event flag for consumers that only need yes/no."""
    if event_threshold is None:
        event_threshold = rules.event_threshold
    return reading.value > event_threshold


def detection_result(
    reading: InstrumentReading,
    rules: ScoringRules = DEFAULT_RULES,
    threshold: Optional[float] = None,
) -> DetectionResult:
    """Status, binary flag and confidence for one reading (no counters)."""
    if threshold is None:
        threshold = rules.threshold_for(reading.instrument)
    return DetectionResult(
        status=detect(reading, threshold, rules),
        threshold=threshold,
        is_event=is_event(reading, rules=rules),
        confidence=rules.detection_confidence(reading.value),
    )



def flag_anomalies(
    values: Sequence[float],
    rules: ScoringRules = DEFAULT_RULES,
) -> Tuple[Optional[float], List[bool]]:
    """
    Flag values that sit more than rules.anomaly_margin above the window mean.

    Returns (baseline, flags); baseline is None for an empty window.
    """
    if len(values) == 0:
        return None, []
    arr = np.asarray(values, dtype=float)
    baseline = float(arr.mean())
    flags = (arr > baseline + rules.anomaly_margin).tolist()
    return baseline, flags

class DetectionTracker:
    """Per-instrument ACTIVE counters for display; not an event log."""

    def __init__(self, rules: ScoringRules = DEFAULT_RULES):
        self.rules = rules
        self._counts: Dict[Instrument, int] = {}
        self._last_event: Dict[Instrument, float] = {}
        self._lock = Lock()

    def observe(self, reading: InstrumentReading) -> DetectionResult:
        """Evaluate a reading and bump counters when it is ACTIVE."""
        result = detection_result(reading, self.rules)
        with self._lock:
            if result.status is DetectionStatus.ACTIVE:
                self._counts[reading.instrument] = self._counts.get(reading.instrument, 0) + 1
                self._last_event[reading.instrument] = reading.timestamp
                logger.info(
                    "Detection ACTIVE %s value=%.2f threshold=%.1f count=%d",
                    reading.instrument.value,
                    reading.value,
                    result.threshold,
                    self._counts[reading.instrument],
                )
            return replace(
                result,
                event_count=self._counts.get(reading.instrument, 0),
                last_event_time=self._last_event.get(reading.instrument),
            )

    def event_count(self, instrument: Instrument) -> int:
        with self._lock:
            return self._counts.get(Instrument.from_id(instrument), 0)

    def last_event_time(self, instrument: Instrument) -> Optional[float]:
        with self._lock:
            return self._last_event.get(Instrument.from_id(instrument))

    def reset(self) -> None:
        """Clear all counters."""
        with self._lock:
            self._counts.clear()
            self._last_event.clear()
