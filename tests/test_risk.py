import random

import pytest

from sentinel.errors import InvalidReadingError, MissingInstrumentError
from sentinel.instruments import Instrument, InstrumentReading
from sentinel.scoring import RiskLevel, ScoringRules, compute_risk, risk_level

LEVEL_ORDER = [RiskLevel.LOW, RiskLevel.MODERATE, RiskLevel.HIGH, RiskLevel.EXTREME]


def make_readings(values, ts=1000.0):
    if not isinstance(values, dict):
        values = {inst: values for inst in Instrument}
    return [InstrumentReading(inst, value, ts) for inst, value in values.items()]


def test_dead_band_floor_is_zero():
    risk = compute_risk(make_readings(40.0))
    assert risk.score == 0.0
    assert risk.level == RiskLevel.LOW


def test_saturates_at_hundred():
    risk = compute_risk(make_readings(100.0))
    assert risk.score == 100.0
    assert risk.level == RiskLevel.EXTREME


def test_midpoint_mean_gives_fifty():
    values = {
        Instrument.STEP: 60.0,
        Instrument.SUIT: 80.0,
        Instrument.PAPA: 70.0,
        Instrument.MAG: 70.0,
        Instrument.SOLEXS: 70.0,
        Instrument.SWISS: 70.0,
    }
    risk = compute_risk(make_readings(values))
    assert risk.score == pytest.approx(50.0)
    assert risk.level == RiskLevel.MODERATE


def test_out_of_range_readings_are_clamped():
    assert compute_risk(make_readings(250.0)).score == 100.0
    assert compute_risk(make_readings(-80.0)).score == 0.0


def test_level_boundaries_are_exclusive_upper_bounds():
    assert risk_level(0.0) == RiskLevel.LOW
    assert risk_level(29.99) == RiskLevel.LOW
    assert risk_level(30.0) == RiskLevel.MODERATE
    assert risk_level(59.99) == RiskLevel.MODERATE
    assert risk_level(60.0) == RiskLevel.HIGH
    assert risk_level(84.99) == RiskLevel.HIGH
    assert risk_level(85.0) == RiskLevel.EXTREME
    assert risk_level(100.0) == RiskLevel.EXTREME


def test_score_bounded_and_level_monotonic_in_mean():
    rng = random.Random(7)
    samples = []
    for _ in range(200):
        values = {inst: rng.uniform(0.0, 100.0) for inst in Instrument}
        risk = compute_risk(make_readings(values))
        assert 0.0 <= risk.score <= 100.0
        assert risk.level in LEVEL_ORDER
        samples.append((sum(values.values()) / len(values), risk))

    samples.sort(key=lambda item: item[0])
    scores = [risk.score for _, risk in samples]
    levels = [LEVEL_ORDER.index(risk.level) for _, risk in samples]
    assert scores == sorted(scores)
    assert levels == sorted(levels)


def test_missing_instrument_fails_without_partial_score():
    readings = [r for r in make_readings(90.0) if r.instrument is not Instrument.SWISS]
    assert len(readings) == 5

    with pytest.raises(MissingInstrumentError) as excinfo:
        compute_risk(readings)
    assert excinfo.value.missing == ["SWISS"]


def test_duplicate_instrument_rejected():
    readings = make_readings(50.0) + [InstrumentReading(Instrument.MAG, 55.0, 1000.0)]
    with pytest.raises(ValueError):
        compute_risk(readings)


def test_custom_dead_band():
    rules = ScoringRules(risk_floor=20.0, risk_span=40.0)
    assert compute_risk(make_readings(40.0), rules).score == pytest.approx(50.0)


def test_non_finite_reading_rejected():
    with pytest.raises(InvalidReadingError):
        InstrumentReading(Instrument.STEP, float("nan"), 1.0)
    with pytest.raises(InvalidReadingError):
        InstrumentReading(Instrument.STEP, float("inf"), 1.0)


def test_reading_coerces_instrument_id():
    reading = InstrumentReading("solexs", "42.5", 3)
    assert reading.instrument is Instrument.SOLEXS
    assert reading.value == 42.5
    assert reading.timestamp == 3.0
