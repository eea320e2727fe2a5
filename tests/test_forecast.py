import math

import pytest

from sentinel.instruments import Instrument, InstrumentReading
from sentinel.scoring import forecast, persistence_model


def reading(value=70.0, ts=1000.0):
    return InstrumentReading(Instrument.MAG, value, ts)


def test_horizon_length_times_and_confidence():
    points = list(forecast(reading(), 24, 60.0))

    assert len(points) == 24
    times = [p.time for p in points]
    assert all(b > a for a, b in zip(times, times[1:]))
    assert times[0] == 1060.0
    assert times[-1] == 1000.0 + 24 * 60.0
    assert all(0.0 <= p.confidence <= 1.0 for p in points)


def test_forecast_is_restartable():
    fc = forecast(reading(), 5, 1.0)
    assert len(fc) == 5
    assert list(fc) == list(fc)
    assert fc.to_list() == list(fc)


def test_persistence_model_carries_value_and_decays_confidence():
    points = forecast(reading(42.0), 3, 1.0, persistence_model(0.9, 0.5)).to_list()
    assert [p.value for p in points] == [42.0, 42.0, 42.0]
    assert [p.confidence for p in points] == pytest.approx([0.45, 0.225, 0.1125])


def test_model_confidence_clamped():
    def model(r, i):
        return r.value + i, [1.7, -0.2, math.nan][i]

    points = forecast(reading(), 3, 1.0, model).to_list()
    assert [p.confidence for p in points] == [1.0, 0.0, 0.0]
    assert [p.value for p in points] == [70.0, 71.0, 72.0]


def test_non_finite_model_value_rejected():
    fc = forecast(reading(), 2, 1.0, lambda r, i: (math.inf, 0.5))
    with pytest.raises(ValueError):
        list(fc)


def test_invalid_horizon_rejected():
    with pytest.raises(ValueError):
        forecast(reading(), 0, 1.0)
    with pytest.raises(ValueError):
        forecast(reading(), 3, 0.0)
