"""FastAPI bootstrap wiring the SENTINEL ticker, buffer and inference service."""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from sentinel.config import MOCK_DATA_SEED, READINGS_API_URL, SNAPSHOT_BUFFER_SIZE, setup_logging
from sentinel.ingestion import ApiReadingSource, MockReadingSource, ReadingSource
from sentinel.models import InferenceService, ModelRegistry, RuleBasedPredictor
from sentinel.scoring import DetectionTracker, ScoringRules
from sentinel.state import SnapshotBuffer, Ticker, state_api


def default_source() -> ReadingSource:
    if READINGS_API_URL:
        return ApiReadingSource(READINGS_API_URL)
    return MockReadingSource(seed=MOCK_DATA_SEED)


def create_app(
    source: Optional[ReadingSource] = None,
    rules: Optional[ScoringRules] = None,
    inference: Optional[InferenceService] = None,
    interval: Optional[float] = None,
) -> FastAPI:
    rules = rules or ScoringRules.from_config()
    source = source or default_source()

    buffer = SnapshotBuffer(maxlen=SNAPSHOT_BUFFER_SIZE)
    tracker = DetectionTracker(rules)
    inference = inference or InferenceService(
        registry=ModelRegistry(),
        predictor=RuleBasedPredictor(rules=rules),
    )
    ticker_kwargs = {"interval": interval} if interval is not None else {}
    ticker = Ticker(source=source, buffer=buffer, rules=rules, tracker=tracker, **ticker_kwargs)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        ticker.start()
        try:
            yield
        finally:
            await ticker.stop()
            source.close()

    app = FastAPI(title="SENTINEL State API", version="0.1.0", lifespan=lifespan)
    app.state.ticker = ticker

    state_api.register_buffer(buffer)
    state_api.register_inference(inference)
    state_api.register_tracker(tracker)
    state_api.attach_to_app(app)

    return app


setup_logging()
app = create_app()
