"""Forecast sequence contract around a black-box forecast model."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Tuple
import math

from sentinel.instruments import InstrumentReading

# (reading, step_index) -> (value, confidence); step_index starts at 0
ForecastModel = Callable[[InstrumentReading, int], Tuple[float, float]]


@dataclass(frozen=True)
class ForecastPoint:
    time: float  # epoch seconds
    value: float
    confidence: float  # [0, 1]

    def to_dict(self) -> dict:
        return {"time": self.time, "value": self.value, "confidence": self.confidence}


def persistence_model(base_confidence: float = 0.95, decay: float = 0.98) -> ForecastModel:
    """
    Baseline model: carry the current value forward, confidence decaying
    geometrically with lead time.
    """
    def _model(reading: InstrumentReading, step_index: int) -> Tuple[float, float]:
        return reading.value, base_confidence * decay ** (step_index + 1)

    return _model


class Forecast:
    """
    Lazy, restartable sequence of ForecastPoints.

    Each iteration calls the model afresh; there is no shared cursor.
    """

    def __init__(
        self,
        reading: InstrumentReading,
        horizon_steps: int,
        step_seconds: float,
        model: Optional[ForecastModel] = None,
    ):
        if horizon_steps < 1:
            raise ValueError("horizon_steps must be at least 1")
        if step_seconds <= 0:
            raise ValueError("step_seconds must be positive")
        self.reading = reading
        self.horizon_steps = int(horizon_steps)
        self.step_seconds = float(step_seconds)
        self.model = model or persistence_model()

    def __len__(self) -> int:
        return self.horizon_steps

    def __iter__(self) -> Iterator[ForecastPoint]:
        for i in range(self.horizon_steps):
            value, confidence = self.model(self.reading, i)
            value = float(value)
            if not math.isfinite(value):
                raise ValueError(f"Forecast model returned non-finite value at step {i}")
            confidence = float(confidence)
            confidence = 0.0 if math.isnan(confidence) else max(0.0, min(1.0, confidence))
            yield ForecastPoint(
                time=self.reading.timestamp + (i + 1) * self.step_seconds,
                value=value,
                confidence=confidence,
            )

    def to_list(self) -> List[ForecastPoint]:
        return list(self)


def forecast(
    reading: InstrumentReading,
    horizon_steps: int,
    step_seconds: float,
    model: Optional[ForecastModel] = None,
) -> Forecast:
    """Build a forecast of horizon_steps points spaced step_seconds apart."""
    return Forecast(reading, horizon_steps, step_seconds, model)
