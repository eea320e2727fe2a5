"""Single source of thresholds and formula constants for scoring."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional

from sentinel.instruments import Instrument


def _clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


@dataclass(frozen=True)
class ScoringRules:
    """
    Thresholds shared by the risk aggregator, classifier and detector.

    One instance is built at startup and injected everywhere so call sites
    cannot drift apart.
    """

    # Risk index: score = clamp((mean - risk_floor) / risk_span * 100, 0, 100)
    risk_floor: float = 40.0
    risk_span: float = 60.0
    # Exclusive upper bounds for LOW, MODERATE and HIGH; anything above is EXTREME
    level_low: float = 30.0
    level_moderate: float = 60.0
    level_high: float = 85.0
    cme_alert_threshold: float = 75.0

    # Detection tiers
    active_threshold: float = 75.0
    monitoring_ratio: float = 0.8
    instrument_thresholds: Dict[str, float] = field(default_factory=dict, hash=False)
    event_threshold: float = 65.0
    # History points above baseline + anomaly_margin are flagged
    anomaly_margin: float = 50.0

    # Classification cutoffs
    high_intensity: float = 80.0
    medium_intensity: float = 60.0
    earth_directed: float = 70.0
    fast_cme: float = 80.0
    slow_cme: float = 60.0

    # confidence = min(cap, base + slope * value), then clamped to [0, 100]
    confidence_base: float = 70.0
    confidence_slope: float = 0.3
    confidence_cap: float = 95.0
    detection_confidence_base: float = 60.0
    detection_confidence_slope: float = 0.4
    detection_confidence_cap: float = 98.0

    def __post_init__(self):
        if self.risk_span <= 0:
            raise ValueError(f"risk_span must be positive, got {self.risk_span}")
        if not (0 < self.monitoring_ratio < 1):
            raise ValueError(f"monitoring_ratio must be in (0, 1), got {self.monitoring_ratio}")
        if self.anomaly_margin < 0:
            raise ValueError(f"anomaly_margin must not be negative, got {self.anomaly_margin}")

    @classmethod
    def from_config(cls) -> "ScoringRules":
        """Build rules from sentinel.config (environment-driven)."""
        from sentinel import config

        return cls(
            risk_floor=config.RISK_FLOOR,
            risk_span=config.RISK_SPAN,
            cme_alert_threshold=config.CME_ALERT_THRESHOLD,
            active_threshold=config.ACTIVE_THRESHOLD,
            monitoring_ratio=config.MONITORING_RATIO,
            instrument_thresholds=dict(config.INSTRUMENT_THRESHOLDS),
            event_threshold=config.EVENT_THRESHOLD,
            anomaly_margin=config.ANOMALY_MARGIN,
        )

    def threshold_for(self, instrument: Optional[Instrument] = None) -> float:
        """Active threshold for an instrument (override or the shared default)."""
        if instrument is not None:
            override = self.instrument_thresholds.get(Instrument.from_id(instrument).value)
            if override is not None:
                return float(override)
        return self.active_threshold

    def classification_confidence(self, value: float) -> float:
        raw = min(self.confidence_cap, self.confidence_base + self.confidence_slope * value)
        return _clamp(raw, 0.0, 100.0)

    def detection_confidence(self, value: float) -> float:
        raw = min(
            self.detection_confidence_cap,
            self.detection_confidence_base + self.detection_confidence_slope * value,
        )
        return _clamp(raw, 0.0, 100.0)


DEFAULT_RULES = ScoringRules()
