"""Deterministic single-instrument CME classification."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from sentinel.instruments import InstrumentReading
from .rules import DEFAULT_RULES, ScoringRules


class CMEType(str, Enum):
    FAST_HALO = "Fast Halo CME"
    FAST = "Fast CME"
    SLOW = "Slow CME"
    HALO = "Halo CME"
    PARTIAL = "Partial CME"
    NO_EVENT = "No Event"


class Intensity(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


@dataclass(frozen=True)
class Classification:
    cme_type: CMEType
    confidence: float  # [0, 100]
    intensity: Intensity
    earth_directed: bool
    rationale: str = ""

    def to_dict(self) -> dict:
        return {
            "cme_type": self.cme_type.value,
            "confidence": self.confidence,
            "intensity": self.intensity.value,
            "earth_directed": self.earth_directed,
            "rationale": self.rationale,
        }


def classify(reading: InstrumentReading, rules: ScoringRules = DEFAULT_RULES) -> Classification:
    """
    Classify one instrument reading using ordered value thresholds.

    Only the reading's own value is used; instruments are not correlated.
    """
    value = reading.value

    if value > rules.high_intensity:
        intensity = Intensity.HIGH
    elif value > rules.medium_intensity:
        intensity = Intensity.MEDIUM
    else:
        intensity = Intensity.LOW

    if value > rules.fast_cme:
        cme_type = CMEType.FAST_HALO
    elif value > rules.slow_cme:
        cme_type = CMEType.SLOW
    else:
        cme_type = CMEType.NO_EVENT

    earth_directed = value > rules.earth_directed

    rationale = (
        f"{reading.instrument.value} reading {value:.1f} -> {cme_type.value} "
        f"({intensity.value.lower()} intensity"
        f"{', earth-directed' if earth_directed else ''})"
    )

    return Classification(
        cme_type=cme_type,
        confidence=rules.classification_confidence(value),
        intensity=intensity,
        earth_directed=earth_directed,
        rationale=rationale,
    )
