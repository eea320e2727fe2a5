"""CME alert detection and alert reporting."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple
import logging

from sentinel.instruments import InstrumentReading
from sentinel.scoring import DEFAULT_RULES, DetectionStatus, RiskIndex, ScoringRules, detect

logger = logging.getLogger(__name__)

ARRIVAL_WINDOW_HOURS = (18, 72)


@dataclass(frozen=True)
class CMEAlert:
    timestamp: float
    risk_score: float
    risk_level: str
    active_instruments: Tuple[str, ...]
    severity: float  # [0, 1]

    @property
    def message(self) -> str:
        return generate_alert_message(self)

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "risk_score": self.risk_score,
            "risk_level": self.risk_level,
            "active_instruments": list(self.active_instruments),
            "severity": self.severity,
            "message": self.message,
        }


def detect_cme_alert(
    risk: RiskIndex,
    readings: Iterable[InstrumentReading],
    timestamp: float,
    rules: ScoringRules = DEFAULT_RULES,
) -> Optional[CMEAlert]:
    """
    Raise a CME alert when the risk score exceeds rules.cme_alert_threshold.

    Args:
        risk: Risk index for the tick
        readings: Readings the risk index was computed from
        timestamp: Tick timestamp
        rules: Scoring rules

    Returns:
        CMEAlert, or None when risk is below the alert threshold
    """
    if risk.score <= rules.cme_alert_threshold:
        return None

    active = tuple(
        r.instrument.value for r in readings
        if detect(r, rules=rules) is DetectionStatus.ACTIVE
    )
    severity = min(risk.score / 100.0, 1.0)

    alert = CMEAlert(
        timestamp=timestamp,
        risk_score=risk.score,
        risk_level=risk.level.value,
        active_instruments=active,
        severity=severity,
    )

    # Log based on severity
    if severity > 0.85:
        logger.critical(
            f"CRITICAL CME ALERT: risk={risk.score:.1f} level={risk.level.value} "
            f"active={','.join(active) or 'none'}"
        )
    else:
        logger.error(
            f"CME ALERT: risk={risk.score:.1f} level={risk.level.value} "
            f"active={','.join(active) or 'none'}"
        )

    return alert


def generate_alert_message(alert: CMEAlert) -> str:
    """
    Generate human-readable alert message.

    Args:
        alert: CME alert

    Returns:
        Alert message string
    """
    low, high = ARRIVAL_WINDOW_HOURS
    msg = (
        f"CME EVENT DETECTED: Coronal Mass Ejection in progress. "
        f"Estimated Earth arrival: {low}-{high} hours. "
        f"Monitor space weather conditions."
    )
    if alert.active_instruments:
        msg += f" Active instruments: {', '.join(alert.active_instruments)}."
    return msg


def summarize_alerts(alerts: List[CMEAlert]) -> Dict:
    """
    Summarize alerts for reporting.

    Args:
        alerts: List of alerts

    Returns:
        Summary dict
    """
    if not alerts:
        return {
            'total_alerts': 0,
            'max_risk_score': 0.0,
            'critical_count': 0,
            'instrument_counts': {}
        }

    scores = [a.risk_score for a in alerts]
    instruments = [name for a in alerts for name in a.active_instruments]

    return {
        'total_alerts': len(alerts),
        'max_risk_score': max(scores),
        'avg_risk_score': sum(scores) / len(scores),
        'critical_count': sum(1 for a in alerts if a.severity > 0.85),
        'first_timestamp': min(a.timestamp for a in alerts),
        'last_timestamp': max(a.timestamp for a in alerts),
        'instrument_counts': {
            name: instruments.count(name) for name in set(instruments)
        }
    }
