"""Cancellable per-instrument inference requests with last-good-result retention."""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, List, Optional, Set, Tuple
import asyncio
import logging
import time

from sentinel.config import PREDICTION_TIMEOUT_SECONDS
from sentinel.errors import PredictionCancelled, PredictionFailure
from sentinel.instruments import Instrument, InstrumentReading
from sentinel.scoring import Classification, DetectionResult, ForecastPoint
from .predictor import ModelPrediction, Predictor, RuleBasedPredictor
from .registry import ModelKind, ModelRegistry

logger = logging.getLogger(__name__)


class SlotStatus(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    OK = "ok"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class PredictionSlot:
    """Latest outcome for one (instrument, kind); result survives failures."""

    status: SlotStatus = SlotStatus.IDLE
    result: Optional[ModelPrediction] = None
    error: Optional[str] = None
    updated_at: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "result": self.result.to_dict() if self.result else None,
            "error": self.error,
            "updated_at": self.updated_at,
        }


class InferenceService:
    """
    Route on-demand predictions through the registry to a Predictor.

    Requests run as asyncio tasks so a caller (e.g. a closed detail view) can
    cancel them; nothing here touches tick-driven state.
    """

    def __init__(
        self,
        registry: Optional[ModelRegistry] = None,
        predictor: Optional[Predictor] = None,
        timeout: float = PREDICTION_TIMEOUT_SECONDS,
    ):
        self.registry = registry or ModelRegistry()
        self.predictor = predictor or RuleBasedPredictor()
        self.timeout = timeout
        self._slots: Dict[Tuple[Instrument, ModelKind], PredictionSlot] = {}
        self._inflight: Dict[Instrument, Set[asyncio.Task]] = {}
        self._cancelled: Set[asyncio.Task] = set()

    # -------------------------
    # Requests
    # -------------------------
    async def request(self, instrument, kind: ModelKind, reading: InstrumentReading) -> ModelPrediction:
        """
        Run one prediction.

        Raises:
            ModelUnavailableError: no model of this kind for the instrument
            PredictionFailure: predictor raised or timed out
            PredictionCancelled: request cancelled via cancel()
            ValueError: reading belongs to a different instrument
        """
        inst = Instrument.from_id(instrument)
        if reading.instrument != inst:
            raise ValueError(
                f"Reading for {reading.instrument.value} cannot be used for {inst.value}"
            )
        ref = self.registry.ref_for(inst, kind)

        task = asyncio.ensure_future(self._run(inst, kind, ref, reading))
        inflight = self._inflight.setdefault(inst, set())
        inflight.add(task)
        task.add_done_callback(inflight.discard)
        try:
            return await task
        except asyncio.CancelledError:
            if task not in self._cancelled:
                raise
            raise PredictionCancelled(inst.value, kind.value) from None
        finally:
            self._cancelled.discard(task)

    async def _run(self, inst: Instrument, kind: ModelKind, ref: str, reading: InstrumentReading) -> ModelPrediction:
        key = (inst, kind)
        self._slots[key] = replace(self.slot(inst, kind), status=SlotStatus.PENDING, error=None)

        try:
            result = await asyncio.wait_for(
                self.predictor.predict(ref, reading, kind),
                timeout=self.timeout,
            )
        except asyncio.CancelledError:
            self._slots[key] = replace(self._slots[key], status=SlotStatus.CANCELLED)
            logger.info("Prediction cancelled: %s %s", inst.value, kind.value)
            raise
        except asyncio.TimeoutError:
            reason = f"timed out after {self.timeout:.1f}s"
            self._record_failure(key, reason)
            raise PredictionFailure(inst.value, kind.value, reason) from None
        except Exception as exc:
            self._record_failure(key, str(exc))
            raise PredictionFailure(inst.value, kind.value, str(exc)) from exc

        self._slots[key] = PredictionSlot(
            status=SlotStatus.OK,
            result=result,
            error=None,
            updated_at=time.time(),
        )
        logger.debug("Prediction ok: %s %s via %s", inst.value, kind.value, ref)
        return result

    def _record_failure(self, key: Tuple[Instrument, ModelKind], reason: str) -> None:
        inst, kind = key
        self._slots[key] = replace(
            self._slots[key],
            status=SlotStatus.FAILED,
            error=reason,
            updated_at=time.time(),
        )
        logger.error("Prediction failed: %s %s - %s", inst.value, kind.value, reason)

    async def classify(self, instrument, reading: InstrumentReading) -> Classification:
        prediction = await self.request(instrument, ModelKind.CLASSIFICATION, reading)
        return prediction.classification

    async def detect(self, instrument, reading: InstrumentReading) -> DetectionResult:
        prediction = await self.request(instrument, ModelKind.DETECTION, reading)
        return prediction.detection

    async def forecast(self, instrument, reading: InstrumentReading) -> List[ForecastPoint]:
        prediction = await self.request(instrument, ModelKind.TIME_SERIES, reading)
        return prediction.forecast

    async def predict_all(self, instrument, reading: InstrumentReading) -> Dict[ModelKind, ModelPrediction]:
        """
        Run classification, detection and (when registered) forecast together.

        Failed kinds are left out of the result; their slots record the error.
        """
        inst = Instrument.from_id(instrument)
        kinds = [ModelKind.CLASSIFICATION, ModelKind.DETECTION]
        if self.registry.supports_forecast(inst):
            kinds.append(ModelKind.TIME_SERIES)

        outcomes = await asyncio.gather(
            *(self.request(inst, kind, reading) for kind in kinds),
            return_exceptions=True,
        )

        results: Dict[ModelKind, ModelPrediction] = {}
        for kind, outcome in zip(kinds, outcomes):
            if isinstance(outcome, (asyncio.CancelledError, PredictionCancelled)):
                raise outcome
            if isinstance(outcome, BaseException):
                logger.warning("predict_all: %s %s skipped (%s)", inst.value, kind.value, outcome)
                continue
            results[kind] = outcome
        return results

    # -------------------------
    # Cancellation & inspection
    # -------------------------
    def cancel(self, instrument) -> int:
        """Cancel every in-flight request for an instrument; return how many."""
        inst = Instrument.from_id(instrument)
        pending = [t for t in self._inflight.get(inst, set()) if not t.done()]
        for task in pending:
            self._cancelled.add(task)
            task.cancel()
        if pending:
            logger.info("Cancelled %d in-flight prediction(s) for %s", len(pending), inst.value)
        return len(pending)

    def in_flight(self, instrument) -> int:
        inst = Instrument.from_id(instrument)
        return sum(1 for t in self._inflight.get(inst, set()) if not t.done())

    def slot(self, instrument, kind: ModelKind) -> PredictionSlot:
        return self._slots.get((Instrument.from_id(instrument), kind), PredictionSlot())
