"""Model registry, predictors and the on-demand inference service."""

from .registry import (
    MODEL_REGISTRY,
    SPECIALIZED_MODELS,
    InstrumentModel,
    ModelKind,
    ModelRegistry,
)
from .predictor import ModelPrediction, Predictor, RuleBasedPredictor
from .inference import InferenceService, PredictionSlot, SlotStatus

__all__ = [
    "MODEL_REGISTRY",
    "SPECIALIZED_MODELS",
    "InstrumentModel",
    "ModelKind",
    "ModelRegistry",
    "ModelPrediction",
    "Predictor",
    "RuleBasedPredictor",
    "InferenceService",
    "PredictionSlot",
    "SlotStatus",
]
