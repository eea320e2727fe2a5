"""Unified CME risk index (UCRI) over one tick of instrument readings."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Optional, Sequence
import logging

import numpy as np

from sentinel.errors import MissingInstrumentError
from sentinel.instruments import ALL_INSTRUMENTS, Instrument, InstrumentReading
from .rules import DEFAULT_RULES, ScoringRules

logger = logging.getLogger(__name__)


class RiskLevel(str, Enum):
    LOW = "LOW"
    MODERATE = "MODERATE"
    HIGH = "HIGH"
    EXTREME = "EXTREME"


@dataclass(frozen=True)
class RiskIndex:
    score: float  # [0, 100]
    level: RiskLevel

    def to_dict(self) -> dict:
        return {"score": self.score, "level": self.level.value}


def risk_level(score: float, rules: ScoringRules = DEFAULT_RULES) -> RiskLevel:
    """Step function from score to level (exclusive upper bounds)."""
    if score < rules.level_low:
        return RiskLevel.LOW
    if score < rules.level_moderate:
        return RiskLevel.MODERATE
    if score < rules.level_high:
        return RiskLevel.HIGH
    return RiskLevel.EXTREME


def index_readings(
    readings: Iterable[InstrumentReading],
    required: Sequence[Instrument] = ALL_INSTRUMENTS,
) -> Dict[Instrument, InstrumentReading]:
    """
    Key readings by instrument and check the set is complete.

    Raises:
        MissingInstrumentError: a required instrument has no reading
        ValueError: an instrument appears more than once
    """
    by_instrument: Dict[Instrument, InstrumentReading] = {}
    for reading in readings:
        if reading.instrument in by_instrument:
            raise ValueError(f"Duplicate reading for {reading.instrument.value}")
        by_instrument[reading.instrument] = reading

    missing = [inst.value for inst in required if inst not in by_instrument]
    if missing:
        raise MissingInstrumentError(missing)
    return by_instrument


def compute_risk(
    readings: Iterable[InstrumentReading],
    rules: ScoringRules = DEFAULT_RULES,
    required: Optional[Sequence[Instrument]] = None,
) -> RiskIndex:
    """
    Reduce one tick of readings to a RiskIndex.

    Readings below rules.risk_floor contribute no risk; a mean of
    risk_floor + risk_span or more saturates at 100.
    """
    by_instrument = index_readings(readings, required if required is not None else ALL_INSTRUMENTS)

    values = np.array([r.value for r in by_instrument.values()], dtype=float)
    avg = float(values.mean())
    score = float(np.clip((avg - rules.risk_floor) / rules.risk_span * 100.0, 0.0, 100.0))
    level = risk_level(score, rules)

    logger.debug("Risk computed: mean=%.2f score=%.2f level=%s", avg, score, level.value)
    return RiskIndex(score=score, level=level)
