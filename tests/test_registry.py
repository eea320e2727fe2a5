import pytest

from sentinel.errors import ModelUnavailableError
from sentinel.instruments import Instrument
from sentinel.models import MODEL_REGISTRY, InstrumentModel, ModelKind, ModelRegistry


def test_lookup_returns_instrument_models():
    registry = ModelRegistry()
    entry = registry.lookup("STEP")
    assert entry.name == "Solar Terrestrial Environment Probe"
    assert entry.classification.endswith("step_classification.pkl")
    assert registry.ref_for(Instrument.STEP, ModelKind.TIME_SERIES).endswith("proton_flux_prediction.pkl")


def test_time_series_ref_gates_forecast():
    registry = ModelRegistry()
    with_forecast = {i for i in Instrument if registry.supports_forecast(i)}
    assert with_forecast == {Instrument.STEP, Instrument.PAPA, Instrument.MAG}

    with pytest.raises(ModelUnavailableError) as excinfo:
        registry.ref_for(Instrument.SUIT, ModelKind.TIME_SERIES)
    assert excinfo.value.kind == "time_series"


def test_missing_entry_raises_model_unavailable():
    entries = {k: v for k, v in MODEL_REGISTRY.items() if k is not Instrument.SWISS}
    registry = ModelRegistry(entries=entries)

    with pytest.raises(ModelUnavailableError) as excinfo:
        registry.lookup(Instrument.SWISS)
    assert "Models not found" in str(excinfo.value)
    assert registry.supports_forecast(Instrument.SWISS) is False

    with pytest.raises(ModelUnavailableError) as excinfo:
        registry.lookup("NOT_AN_INSTRUMENT")
    assert excinfo.value.__cause__ is None
    assert excinfo.value.__suppress_context__


def test_validate_availability():
    assert ModelRegistry().validate_availability() == {"available": True, "missing": []}

    entries = dict(MODEL_REGISTRY)
    entries[Instrument.MAG] = InstrumentModel(name="Magnetometer", classification="/models/mag.pkl", detection="")
    del entries[Instrument.SUIT]
    report = ModelRegistry(entries=entries).validate_availability()

    assert report["available"] is False
    assert "MAG detection model" in report["missing"]
    assert "SUIT models" in report["missing"]


def test_specialized_models_present():
    registry = ModelRegistry()
    assert set(registry.specialized) == {"unified_timeseries", "cme_arrival_prediction"}
