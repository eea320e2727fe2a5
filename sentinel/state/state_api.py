"""Read-only SENTINEL state APIs (pure Python and FastAPI adapters)."""
from dataclasses import replace
from typing import List, Optional
import logging
import time

try:
    from fastapi import APIRouter, HTTPException, Query
except ImportError as exc:  # pragma: no cover - optional dependency
    raise ImportError(
        "FastAPI is required for sentinel.state.state_api; install fastapi to use these endpoints"
    ) from exc

from sentinel.errors import ModelUnavailableError, PredictionCancelled, PredictionFailure
from sentinel.instruments import Instrument, InstrumentReading
from sentinel.models import InferenceService, ModelKind
from sentinel.scoring import DEFAULT_RULES, DetectionTracker, ScoringRules, detect, flag_anomalies
from .snapshot import TickSnapshot
from .snapshot_buffer import SnapshotBuffer

logger = logging.getLogger(__name__)

SNAPSHOT_BUFFER: Optional[SnapshotBuffer] = None
INFERENCE: Optional[InferenceService] = None
TRACKER: Optional[DetectionTracker] = None

router = APIRouter()


def register_buffer(buffer: SnapshotBuffer) -> None:
    global SNAPSHOT_BUFFER
    SNAPSHOT_BUFFER = buffer
    logger.info("Registered snapshot buffer (maxlen=%d)", buffer.maxlen)


def register_inference(service: InferenceService) -> None:
    global INFERENCE
    INFERENCE = service
    logger.info("Registered inference service")


def register_tracker(tracker: DetectionTracker) -> None:
    global TRACKER
    TRACKER = tracker


# -------------------------
# Pure Python snapshot API
# -------------------------
def get_latest_snapshot() -> Optional[TickSnapshot]:
    """Return the most recent tick snapshot (or None)."""
    if SNAPSHOT_BUFFER is None:
        return None
    return SNAPSHOT_BUFFER.latest()


def get_snapshot_history(n: int = 100) -> List[TickSnapshot]:
    """Return up to the last n snapshots (oldest → newest)."""
    if SNAPSHOT_BUFFER is None or n <= 0:
        return []
    return SNAPSHOT_BUFFER.history(n)


# -------------------------
# FastAPI helpers
# -------------------------
def _require_buffer() -> SnapshotBuffer:
    if SNAPSHOT_BUFFER is None:
        raise HTTPException(status_code=404, detail="No snapshot buffer registered")
    if SNAPSHOT_BUFFER.is_empty():
        raise HTTPException(status_code=404, detail="No state available")
    return SNAPSHOT_BUFFER


def _require_inference() -> InferenceService:
    if INFERENCE is None:
        raise HTTPException(status_code=503, detail="Inference service not available")
    return INFERENCE


def _resolve(instrument_id: str) -> Instrument:
    try:
        return Instrument.from_id(instrument_id)
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Unknown instrument: {instrument_id}") from None


def _rules() -> ScoringRules:
    if INFERENCE is None:
        return DEFAULT_RULES
    return getattr(INFERENCE.predictor, "rules", DEFAULT_RULES)


def _current_reading(instrument: Instrument) -> InstrumentReading:
    latest = _require_buffer().latest()
    reading = latest.reading(instrument) if latest else None
    if reading is None:
        raise HTTPException(status_code=404, detail=f"No reading for {instrument.value}")
    return reading


async def _predict(instrument_id: str, kind: ModelKind):
    service = _require_inference()
    instrument = _resolve(instrument_id)
    reading = _current_reading(instrument)
    try:
        return await service.request(instrument, kind, reading), reading
    except ModelUnavailableError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except (PredictionCancelled, PredictionFailure) as exc:
        previous = service.slot(instrument, kind).result
        raise HTTPException(
            status_code=409 if isinstance(exc, PredictionCancelled) else 502,
            detail={
                "error": str(exc),
                "previous": previous.to_dict() if previous else None,
            },
        )


# -------------------------
# State routes
# -------------------------
@router.get("/state/latest")
def get_latest_state():
    return _require_buffer().latest().to_dict()


@router.get("/state/history")
def get_state_history(limit: int = Query(500, ge=1, le=5000)):
    buffer = _require_buffer()
    return [snap.to_dict() for snap in buffer.history(limit)]


@router.get("/state/status")
def get_state_status():
    buffer = _require_buffer()
    latest = buffer.latest()
    last_ts = latest.timestamp if latest else None
    age = max(time.time() - float(last_ts), 0.0) if last_ts is not None else None

    return {
        "size": buffer.size(),
        "max_size": buffer.maxlen,
        "last_timestamp": last_ts,
        "age_seconds": age,
        "risk": latest.risk.to_dict() if latest else None,
    }


# -------------------------
# Instrument routes
# -------------------------
@router.get("/instruments")
def list_instruments():
    service = _require_inference()
    latest = SNAPSHOT_BUFFER.latest() if SNAPSHOT_BUFFER is not None else None
    rules = _rules()

    result = []
    for instrument in Instrument:
        reading = latest.reading(instrument) if latest else None
        try:
            models = service.registry.lookup(instrument).to_dict()
        except ModelUnavailableError:
            models = None
        status = detect(reading, rules=rules).value if reading is not None else None
        result.append({
            "id": instrument.value,
            "name": instrument.full_name,
            "models": models,
            "forecast_available": service.registry.supports_forecast(instrument),
            "value": reading.value if reading else None,
            "status": status,
        })
    return result


@router.get("/instruments/{instrument_id}/classification")
async def get_classification(instrument_id: str):
    prediction, reading = await _predict(instrument_id, ModelKind.CLASSIFICATION)
    return {"reading": reading.to_dict(), **prediction.to_dict()}


@router.get("/instruments/{instrument_id}/detection")
async def get_detection(instrument_id: str):
    prediction, reading = await _predict(instrument_id, ModelKind.DETECTION)
    payload = prediction.to_dict()
    if TRACKER is not None and prediction.detection is not None:
        detection = replace(
            prediction.detection,
            event_count=TRACKER.event_count(reading.instrument),
            last_event_time=TRACKER.last_event_time(reading.instrument),
        )
        payload["detection"] = detection.to_dict()
    return {"reading": reading.to_dict(), **payload}


@router.get("/instruments/{instrument_id}/forecast")
async def get_forecast(instrument_id: str, horizon: Optional[int] = Query(None, ge=1)):
    prediction, reading = await _predict(instrument_id, ModelKind.TIME_SERIES)
    payload = prediction.to_dict()
    if horizon is not None and payload["forecast"] is not None:
        payload["forecast"] = payload["forecast"][:horizon]
    return {"reading": reading.to_dict(), **payload}


@router.get("/instruments/{instrument_id}/history")
def get_instrument_history(instrument_id: str, limit: int = Query(120, ge=1, le=5000)):
    instrument = _resolve(instrument_id)
    buffer = _require_buffer()
    readings = [
        r for r in (snap.reading(instrument) for snap in buffer.history(limit))
        if r is not None
    ]
    baseline, flags = flag_anomalies([r.value for r in readings], _rules())
    return {
        "instrument": instrument.value,
        "baseline": baseline,
        "points": [
            {"timestamp": r.timestamp, "value": r.value, "anomaly": flag}
            for r, flag in zip(readings, flags)
        ],
    }


@router.get("/instruments/{instrument_id}/predictions")
def get_prediction_slots(instrument_id: str):
    service = _require_inference()
    instrument = _resolve(instrument_id)
    return {
        kind.value: service.slot(instrument, kind).to_dict()
        for kind in ModelKind
    }


@router.delete("/instruments/{instrument_id}/predictions")
async def cancel_predictions(instrument_id: str):
    service = _require_inference()
    instrument = _resolve(instrument_id)
    return {"instrument": instrument.value, "cancelled": service.cancel(instrument)}


@router.get("/models/availability")
def get_model_availability():
    service = _require_inference()
    return {
        **service.registry.validate_availability(),
        "specialized": dict(service.registry.specialized),
    }


def attach_to_app(app) -> None:
    """Include state routes on an existing FastAPI app."""
    app.include_router(router)
