"""Risk scoring, classification, detection and forecast rules."""

from .rules import DEFAULT_RULES, ScoringRules
from .risk import RiskIndex, RiskLevel, compute_risk, risk_level
from .classifier import CMEType, Classification, Intensity, classify
from .detector import (
    DetectionResult,
    DetectionStatus,
    DetectionTracker,
    detect,
    detection_result,
    flag_anomalies,
    is_event,
)
from .forecast import Forecast, ForecastPoint, forecast, persistence_model

__all__ = [
    "DEFAULT_RULES",
    "ScoringRules",

    # Risk
    "RiskIndex",
    "RiskLevel",
    "compute_risk",
    "risk_level",

    # Classification
    "CMEType",
    "Classification",
    "Intensity",
    "classify",

    # Detection
    "DetectionResult",
    "DetectionStatus",
    "DetectionTracker",
    "detect",
    "detection_result",
    "flag_anomalies",
    "is_event",

    # Forecast
    "Forecast",
    "ForecastPoint",
    "forecast",
    "persistence_model",
]
