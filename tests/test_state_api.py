import asyncio
import time

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from sentinel.ingestion import StaticReadingSource
from sentinel.instruments import Instrument, InstrumentReading
from sentinel.models import InferenceService, ModelKind, Predictor, RuleBasedPredictor, SlotStatus
from sentinel.scoring import DetectionTracker
from sentinel.state import SnapshotBuffer, Ticker, state_api


class BrokenPredictor(Predictor):
    async def predict(self, ref, reading, kind):
        raise RuntimeError("inference backend down")


def static_values(value=70.0, **overrides):
    values = {inst: value for inst in Instrument}
    for name, v in overrides.items():
        values[Instrument.from_id(name)] = v
    return values


@pytest.fixture
def wiring(monkeypatch):
    """Isolated buffer/inference/tracker with one committed tick."""
    buffer = SnapshotBuffer(maxlen=10)
    tracker = DetectionTracker()
    inference = InferenceService(predictor=RuleBasedPredictor(latency=0), timeout=1.0)
    ticker = Ticker(
        StaticReadingSource(static_values(70.0, STEP=85.0)),
        buffer,
        tracker=tracker,
        clock=iter(range(1000, 2000)).__next__,
    )
    ticker.step()

    monkeypatch.setattr(state_api, "SNAPSHOT_BUFFER", buffer, raising=True)
    monkeypatch.setattr(state_api, "INFERENCE", inference, raising=True)
    monkeypatch.setattr(state_api, "TRACKER", tracker, raising=True)

    app = FastAPI()
    state_api.attach_to_app(app)
    return TestClient(app), ticker, inference


def test_latest_state(wiring):
    client, _, _ = wiring
    resp = client.get("/state/latest")
    assert resp.status_code == 200
    body = resp.json()
    assert body["timestamp"] == 1000
    assert body["readings"]["STEP"] == 85.0
    assert body["risk"]["level"] in {"LOW", "MODERATE", "HIGH", "EXTREME"}


def test_history_and_status(wiring):
    client, ticker, _ = wiring
    ticker.step()
    ticker.step()

    history = client.get("/state/history", params={"limit": 2}).json()
    assert [h["timestamp"] for h in history] == [1001, 1002]

    status = client.get("/state/status").json()
    assert status["size"] == 3
    assert status["max_size"] == 10


def test_empty_buffer_is_404(monkeypatch):
    monkeypatch.setattr(state_api, "SNAPSHOT_BUFFER", SnapshotBuffer(), raising=True)
    app = FastAPI()
    state_api.attach_to_app(app)
    assert TestClient(app).get("/state/latest").status_code == 404


def test_classification_route(wiring):
    client, _, _ = wiring
    resp = client.get("/instruments/STEP/classification")
    assert resp.status_code == 200
    body = resp.json()
    assert body["classification"]["cme_type"] == "Fast Halo CME"
    assert body["classification"]["intensity"] == "High"
    assert body["reading"]["value"] == 85.0


def test_detection_route_includes_counters(wiring):
    client, _, _ = wiring
    body = client.get("/instruments/step/detection").json()
    assert body["detection"]["status"] == "ACTIVE"
    assert body["detection"]["event_count"] == 1
    assert body["detection"]["last_event_time"] == 1000


def test_forecast_route(wiring):
    client, _, inference = wiring
    body = client.get("/instruments/MAG/forecast").json()
    points = body["forecast"]
    assert len(points) == inference.predictor.horizon_steps
    assert all(0.0 <= p["confidence"] <= 1.0 for p in points)


def test_forecast_horizon_truncates(wiring):
    client, _, _ = wiring
    points = client.get("/instruments/STEP/forecast", params={"horizon": 3}).json()["forecast"]
    assert len(points) == 3
    assert [p["time"] for p in points] == sorted(p["time"] for p in points)


def test_forecast_unavailable_is_404(wiring):
    client, _, _ = wiring
    resp = client.get("/instruments/SUIT/forecast")
    assert resp.status_code == 404
    assert "time_series" in resp.json()["detail"]


def test_unknown_instrument_is_404(wiring):
    client, _, _ = wiring
    assert client.get("/instruments/HUBBLE/classification").status_code == 404


def test_prediction_failure_is_502(wiring, monkeypatch):
    client, _, _ = wiring
    broken = InferenceService(predictor=BrokenPredictor(), timeout=1.0)
    monkeypatch.setattr(state_api, "INFERENCE", broken, raising=True)

    resp = client.get("/instruments/PAPA/classification")
    assert resp.status_code == 502
    assert resp.json()["detail"]["previous"] is None

    slots = client.get("/instruments/PAPA/predictions").json()
    assert slots["classification"]["status"] == "failed"


def test_instrument_listing_and_model_availability(wiring):
    client, _, _ = wiring
    listing = client.get("/instruments").json()
    by_id = {item["id"]: item for item in listing}
    assert set(by_id) == {i.value for i in Instrument}
    assert by_id["STEP"]["status"] == "ACTIVE"
    assert by_id["SUIT"]["forecast_available"] is False
    assert by_id["SoLEXS"]["name"] == "Solar Low Energy X-ray Spectrometer"

    availability = client.get("/models/availability").json()
    assert availability["available"] is True
    assert "cme_arrival_prediction" in availability["specialized"]


def test_cancel_route_with_nothing_in_flight(wiring):
    client, _, _ = wiring
    assert client.delete("/instruments/MAG/predictions").json() == {"instrument": "MAG", "cancelled": 0}


def test_instrument_history_flags_anomalies(wiring):
    client, ticker, _ = wiring
    for ts in range(1001, 1005):
        readings = [
            InstrumentReading(inst, 10.0 if inst is Instrument.STEP else 70.0, ts)
            for inst in Instrument
        ]
        ticker.commit(readings, ts)

    body = client.get("/instruments/STEP/history").json()
    assert body["instrument"] == "STEP"
    assert body["baseline"] == pytest.approx(25.0)
    assert [p["timestamp"] for p in body["points"]] == [1000, 1001, 1002, 1003, 1004]
    assert [p["anomaly"] for p in body["points"]] == [True, False, False, False, False]

    recent = client.get("/instruments/STEP/history", params={"limit": 2}).json()
    assert [p["value"] for p in recent["points"]] == [10.0, 10.0]
    assert not any(p["anomaly"] for p in recent["points"])

    assert client.get("/instruments/HUBBLE/history").status_code == 404


@pytest.mark.asyncio
async def test_cancelled_request_answers_409_with_previous_result(wiring):
    _, _, inference = wiring
    app = FastAPI()
    state_api.attach_to_app(app)

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        first = await client.get("/instruments/STEP/classification")
        assert first.status_code == 200

        inference.predictor.latency = 10.0
        pending = asyncio.ensure_future(client.get("/instruments/STEP/classification"))
        for _ in range(100):
            await asyncio.sleep(0.01)
            if inference.in_flight(Instrument.STEP):
                break

        cancelled = await client.delete("/instruments/STEP/predictions")
        resp = await pending

    assert cancelled.json() == {"instrument": "STEP", "cancelled": 1}
    assert resp.status_code == 409
    detail = resp.json()["detail"]
    assert "cancelled" in detail["error"]
    assert detail["previous"]["classification"]["cme_type"] == "Fast Halo CME"
    assert inference.slot(Instrument.STEP, ModelKind.CLASSIFICATION).status == SlotStatus.CANCELLED


def test_app_lifespan_runs_ticker():
    from app import create_app

    app = create_app(
        source=StaticReadingSource(static_values(90.0)),
        inference=InferenceService(predictor=RuleBasedPredictor(latency=0)),
        interval=0.01,
    )
    with TestClient(app) as client:
        resp = None
        for _ in range(100):
            resp = client.get("/state/latest")
            if resp.status_code == 200:
                break
            time.sleep(0.02)
        assert resp.status_code == 200
        assert resp.json()["cme_alert"] is True
        assert app.state.ticker.running

    assert not app.state.ticker.running
