"""Model prediction black box and its deterministic rule-based stand-in."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional
import asyncio
import logging

from sentinel.config import (
    FORECAST_HORIZON,
    FORECAST_STEP_SECONDS,
    PREDICTION_LATENCY_SECONDS,
)
from sentinel.instruments import InstrumentReading
from sentinel.scoring import (
    DEFAULT_RULES,
    Classification,
    DetectionResult,
    ForecastPoint,
    ScoringRules,
    classify,
    detection_result,
    forecast,
)
from sentinel.scoring.forecast import ForecastModel
from .registry import ModelKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelPrediction:
    model_ref: str
    kind: ModelKind
    classification: Optional[Classification] = None
    detection: Optional[DetectionResult] = None
    forecast: Optional[List[ForecastPoint]] = None

    def to_dict(self) -> dict:
        return {
            "model_ref": self.model_ref,
            "kind": self.kind.value,
            "classification": self.classification.to_dict() if self.classification else None,
            "detection": self.detection.to_dict() if self.detection else None,
            "forecast": [p.to_dict() for p in self.forecast] if self.forecast is not None else None,
        }


class Predictor:
    """
    Interface for model inference.

    Implementations may suspend (remote inference); callers treat predict
    as cancellable.
    """

    async def predict(self, ref: str, reading: InstrumentReading, kind: ModelKind) -> ModelPrediction:
        raise NotImplementedError


class RuleBasedPredictor(Predictor):
    """
    Predictor backed by the deterministic scoring rules.

    Stands in for trained models: identical readings always give identical
    predictions, whatever model reference is passed.
    """

    def __init__(
        self,
        rules: ScoringRules = DEFAULT_RULES,
        latency: float = PREDICTION_LATENCY_SECONDS,
        horizon_steps: int = FORECAST_HORIZON,
        step_seconds: float = FORECAST_STEP_SECONDS,
        forecast_model: Optional[ForecastModel] = None,
    ):
        self.rules = rules
        self.latency = latency
        self.horizon_steps = horizon_steps
        self.step_seconds = step_seconds
        self.forecast_model = forecast_model

    async def predict(self, ref: str, reading: InstrumentReading, kind: ModelKind) -> ModelPrediction:
        if self.latency > 0:
            await asyncio.sleep(self.latency)

        logger.debug("Predicting %s for %s with %s", kind.value, reading.instrument.value, ref)

        if kind is ModelKind.CLASSIFICATION:
            return ModelPrediction(ref, kind, classification=classify(reading, self.rules))
        if kind is ModelKind.DETECTION:
            return ModelPrediction(ref, kind, detection=detection_result(reading, self.rules))
        if kind is ModelKind.TIME_SERIES:
            points = forecast(reading, self.horizon_steps, self.step_seconds, self.forecast_model).to_list()
            return ModelPrediction(ref, kind, forecast=points)
        raise ValueError(f"Unsupported model kind: {kind}")
