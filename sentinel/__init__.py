"""
SENTINEL: Solar Event Intelligence for CME Monitoring

Turns per-tick readings from six Aditya-L1 instruments (STEP, SUIT, PAPA,
MAG, SoLEXS, SWISS) into a unified CME risk index, per-instrument CME
classifications, detection status and forecasts, served read-only over HTTP.
"""

__version__ = '0.1.0'

# Make key imports available at package level
from sentinel.config import (
    TICK_INTERVAL_SECONDS,
    FORECAST_HORIZON,
)
from sentinel.instruments import Instrument, InstrumentReading

__all__ = [
    '__version__',
    'TICK_INTERVAL_SECONDS',
    'FORECAST_HORIZON',
    'Instrument',
    'InstrumentReading',
]
