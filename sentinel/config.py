"""SENTINEL system configuration loaded from environment variables."""
import os
from typing import Dict, List, Tuple
from pathlib import Path
from dotenv import load_dotenv

# Load .env file if it exists
env_path = Path(__file__).parent.parent / '.env'
if env_path.exists():
    load_dotenv(env_path)


def _parse_thresholds(raw: str) -> Tuple[Dict[str, float], List[str]]:
    """Parse 'STEP=80,MAG=70' into ({'STEP': 80.0, 'MAG': 70.0}, []); bad entries go to the error list."""
    thresholds: Dict[str, float] = {}
    bad: List[str] = []
    for item in raw.split(','):
        item = item.strip()
        if not item:
            continue
        name, sep, value = item.partition('=')
        name = name.strip()
        try:
            parsed = float(value)
        except ValueError:
            parsed = None
        if not sep or not name or parsed is None:
            bad.append(item)
            continue
        thresholds[name] = parsed
    return thresholds, bad


# ============================================================================
# Ticker Configuration
# ============================================================================

TICK_INTERVAL_SECONDS = float(os.getenv('TICK_INTERVAL_SECONDS', '2.0'))
SNAPSHOT_BUFFER_SIZE = int(os.getenv('SNAPSHOT_BUFFER_SIZE', '1800'))

# ============================================================================
# Risk Index Parameters
# ============================================================================

# Readings below RISK_FLOOR contribute no risk; RISK_FLOOR + RISK_SPAN saturates
RISK_FLOOR = float(os.getenv('RISK_FLOOR', '40'))
RISK_SPAN = float(os.getenv('RISK_SPAN', '60'))

CME_ALERT_THRESHOLD = float(os.getenv('CME_ALERT_THRESHOLD', '75'))

# ============================================================================
# Detection Thresholds
# ============================================================================

ACTIVE_THRESHOLD = float(os.getenv('ACTIVE_THRESHOLD', '75'))
MONITORING_RATIO = float(os.getenv('MONITORING_RATIO', '0.8'))
EVENT_THRESHOLD = float(os.getenv('EVENT_THRESHOLD', '65'))
INSTRUMENT_THRESHOLDS, _BAD_THRESHOLDS = _parse_thresholds(
    os.getenv('INSTRUMENT_THRESHOLDS', '')
)
ANOMALY_MARGIN = float(os.getenv('ANOMALY_MARGIN', '50'))

# ============================================================================
# Forecast & Inference Configuration
# ============================================================================

FORECAST_HORIZON = int(os.getenv('FORECAST_HORIZON', '24'))
FORECAST_STEP_SECONDS = float(os.getenv('FORECAST_STEP_SECONDS', '60'))

PREDICTION_TIMEOUT_SECONDS = float(os.getenv('PREDICTION_TIMEOUT_SECONDS', '5.0'))
# Artificial delay for the rule-based predictor (0 disables it)
PREDICTION_LATENCY_SECONDS = float(os.getenv('PREDICTION_LATENCY_SECONDS', '0.5'))

# ============================================================================
# Reading Sources
# ============================================================================

READINGS_API_URL = os.getenv('READINGS_API_URL', '')
MOCK_DATA_SEED = int(os.getenv('MOCK_DATA_SEED', '42'))

# ============================================================================
# Logging Configuration
# ============================================================================

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
LOG_FILE = os.getenv('LOG_FILE', '')
LOG_FORMAT = os.getenv('LOG_FORMAT', 'detailed')

# ============================================================================
# Validation
# ============================================================================

def validate_config() -> None:
    """Validate configuration values."""
    errors = []

    known = {'STEP', 'SUIT', 'PAPA', 'MAG', 'SoLEXS', 'SWISS'}

    # Validate per-instrument thresholds
    if _BAD_THRESHOLDS:
        errors.append(f"INSTRUMENT_THRESHOLDS has malformed entries: {', '.join(_BAD_THRESHOLDS)}")

    if not set(INSTRUMENT_THRESHOLDS).issubset(known):
        errors.append("INSTRUMENT_THRESHOLDS names unknown instruments")

    # Validate risk parameters
    if RISK_SPAN <= 0:
        errors.append("RISK_SPAN must be positive")

    if not (0 <= CME_ALERT_THRESHOLD <= 100):
        errors.append("CME_ALERT_THRESHOLD must be between 0 and 100")

    # Validate detection thresholds
    if not (0 < MONITORING_RATIO < 1):
        errors.append("MONITORING_RATIO must be between 0 and 1 (exclusive)")

    if ANOMALY_MARGIN < 0:
        errors.append("ANOMALY_MARGIN must not be negative")

    # Validate ticker / forecast parameters
    if TICK_INTERVAL_SECONDS <= 0:
        errors.append("TICK_INTERVAL_SECONDS must be positive")

    if SNAPSHOT_BUFFER_SIZE < 1:
        errors.append("SNAPSHOT_BUFFER_SIZE must be at least 1")

    if FORECAST_HORIZON < 1:
        errors.append("FORECAST_HORIZON must be at least 1")

    if FORECAST_STEP_SECONDS <= 0:
        errors.append("FORECAST_STEP_SECONDS must be positive")

    if PREDICTION_TIMEOUT_SECONDS <= 0:
        errors.append("PREDICTION_TIMEOUT_SECONDS must be positive")

    if PREDICTION_LATENCY_SECONDS < 0:
        errors.append("PREDICTION_LATENCY_SECONDS must not be negative")

    if errors:
        raise ValueError(f"Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors))


# ============================================================================
# Logging Setup
# ============================================================================

def setup_logging() -> None:
    """Configure logging based on config settings."""
    import logging
    import sys

    # Map log level string to logging constant
    level = getattr(logging, LOG_LEVEL, logging.INFO)

    # Configure format
    if LOG_FORMAT == 'json':
        # JSON format for structured logging
        format_string = '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "name": "%(name)s", "message": "%(message)s"}'
    elif LOG_FORMAT == 'detailed':
        format_string = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    else:  # simple
        format_string = '%(levelname)s: %(message)s'

    handlers = []

    # Always log to stdout
    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(logging.Formatter(format_string))
    handlers.append(stdout_handler)

    # Optionally log to file
    if LOG_FILE:
        file_handler = logging.FileHandler(LOG_FILE)
        file_handler.setFormatter(logging.Formatter(format_string))
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        handlers=handlers,
        force=True
    )

    logging.getLogger('sentinel').setLevel(level)

    # Reduce noise from third-party libraries
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logging.getLogger('uvicorn.access').setLevel(logging.WARNING)


# Validate config on import
validate_config()
