import pytest

from sentinel.instruments import Instrument, InstrumentReading
from sentinel.scoring import (
    DetectionStatus,
    DetectionTracker,
    ScoringRules,
    detect,
    detection_result,
    flag_anomalies,
    is_event,
)


def reading(value, instrument=Instrument.STEP, ts=1000.0):
    return InstrumentReading(instrument, value, ts)


def test_tri_state_with_default_threshold():
    assert detect(reading(76.0), threshold=75.0) == DetectionStatus.ACTIVE
    assert detect(reading(61.0)) == DetectionStatus.MONITORING
    assert detect(reading(50.0)) == DetectionStatus.CLEAR


def test_monitoring_band_is_fraction_of_threshold():
    assert detect(reading(60.5)) == DetectionStatus.MONITORING
    assert detect(reading(59.5)) == DetectionStatus.CLEAR
    assert detect(reading(75.0)) == DetectionStatus.MONITORING

    # threshold 90 -> monitoring above 72
    assert detect(reading(76.0), threshold=90.0) == DetectionStatus.MONITORING
    assert detect(reading(71.0), threshold=90.0) == DetectionStatus.CLEAR


def test_per_instrument_threshold_override():
    rules = ScoringRules(instrument_thresholds={"STEP": 80.0})
    assert detect(reading(78.0, Instrument.STEP), rules=rules) == DetectionStatus.MONITORING
    assert detect(reading(78.0, Instrument.MAG), rules=rules) == DetectionStatus.ACTIVE


def test_binary_event_flag():
    assert is_event(reading(66.0)) is True
    assert is_event(reading(65.0)) is False
    assert is_event(reading(66.0), event_threshold=70.0) is False


def test_detection_result_fields():
    result = detection_result(reading(50.0))
    assert result.status == DetectionStatus.CLEAR
    assert result.threshold == 75.0
    assert result.is_event is False
    assert result.confidence == pytest.approx(80.0)

    capped = detection_result(reading(100.0))
    assert capped.confidence == 98.0
    assert detection_result(reading(-400.0)).confidence == 0.0


def test_detect_is_deterministic():
    r = reading(68.2, Instrument.SWISS)
    assert detect(r) == detect(r)
    assert detection_result(r) == detection_result(r)


def test_tracker_counts_active_readings_only():
    tracker = DetectionTracker()

    tracker.observe(reading(80.0, ts=1.0))
    tracker.observe(reading(50.0, ts=2.0))
    result = tracker.observe(reading(90.0, ts=3.0))

    assert result.event_count == 2
    assert result.last_event_time == 3.0
    assert tracker.event_count(Instrument.STEP) == 2
    assert tracker.event_count(Instrument.MAG) == 0
    assert tracker.last_event_time(Instrument.MAG) is None

    tracker.reset()
    assert tracker.event_count(Instrument.STEP) == 0


def test_anomalies_flagged_above_window_mean():
    values = [20.0, 20.0, 20.0, 20.0, 90.0]
    baseline, flags = flag_anomalies(values)
    assert baseline == pytest.approx(34.0)
    assert flags == [False, False, False, False, True]

    _, tight = flag_anomalies(values, ScoringRules(anomaly_margin=10.0))
    assert tight == [False, False, False, False, True]

    _, loose = flag_anomalies(values, ScoringRules(anomaly_margin=60.0))
    assert not any(loose)


def test_anomalies_on_empty_window():
    assert flag_anomalies([]) == (None, [])
