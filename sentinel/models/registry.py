"""Registry mapping instruments to their trained model artifacts."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Mapping, Optional
import logging

from sentinel.errors import ModelUnavailableError
from sentinel.instruments import Instrument

logger = logging.getLogger(__name__)


class ModelKind(str, Enum):
    CLASSIFICATION = "classification"
    DETECTION = "detection"
    TIME_SERIES = "time_series"


@dataclass(frozen=True)
class InstrumentModel:
    name: str
    classification: str
    detection: str
    time_series: Optional[str] = None

    def ref(self, kind: ModelKind) -> Optional[str]:
        if kind is ModelKind.CLASSIFICATION:
            return self.classification
        if kind is ModelKind.DETECTION:
            return self.detection
        return self.time_series

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "classification": self.classification,
            "detection": self.detection,
            "time_series": self.time_series,
        }


MODEL_REGISTRY: Dict[Instrument, InstrumentModel] = {
    Instrument.STEP: InstrumentModel(
        name=Instrument.STEP.full_name,
        classification="/models/step_classification.pkl",
        detection="/models/step_detection.pkl",
        time_series="/models/proton_flux_prediction.pkl",
    ),
    Instrument.SUIT: InstrumentModel(
        name=Instrument.SUIT.full_name,
        classification="/models/suit_classification.pkl",
        detection="/models/suit_detection.pkl",
    ),
    Instrument.PAPA: InstrumentModel(
        name=Instrument.PAPA.full_name,
        classification="/models/papa_classification.pkl",
        detection="/models/papa_detection.pkl",
        time_series="/models/solar_wind_prediction.pkl",
    ),
    Instrument.MAG: InstrumentModel(
        name=Instrument.MAG.full_name,
        classification="/models/mag_classification.pkl",
        detection="/models/mag_detection.pkl",
        time_series="/models/magnetic_field_prediction.pkl",
    ),
    Instrument.SOLEXS: InstrumentModel(
        name=Instrument.SOLEXS.full_name,
        classification="/models/solexs_classification.pkl",
        detection="/models/solexs_detection.pkl",
    ),
    Instrument.SWISS: InstrumentModel(
        name=Instrument.SWISS.full_name,
        classification="/models/swiss_classification.pkl",
        detection="/models/swiss_detection.pkl",
    ),
}

# Cross-instrument artifacts
SPECIALIZED_MODELS: Dict[str, str] = {
    "unified_timeseries": "/models/unified_timeseries.pkl",
    "cme_arrival_prediction": "/models/cme_arrival_prediction.pkl",
}


class ModelRegistry:
    """Lookup of model references per instrument."""

    def __init__(
        self,
        entries: Optional[Mapping[Instrument, InstrumentModel]] = None,
        specialized: Optional[Mapping[str, str]] = None,
    ):
        self._entries = dict(entries if entries is not None else MODEL_REGISTRY)
        self.specialized = dict(specialized if specialized is not None else SPECIALIZED_MODELS)

    def lookup(self, instrument) -> InstrumentModel:
        """Return the registry entry or raise ModelUnavailableError."""
        try:
            key = Instrument.from_id(instrument)
        except ValueError:
            raise ModelUnavailableError(str(instrument)) from None
        entry = self._entries.get(key)
        if entry is None:
            raise ModelUnavailableError(key.value)
        return entry

    def ref_for(self, instrument, kind: ModelKind) -> str:
        """Model reference of a given kind; raises when absent."""
        entry = self.lookup(instrument)
        ref = entry.ref(kind)
        if not ref:
            raise ModelUnavailableError(Instrument.from_id(instrument).value, kind.value)
        return ref

    def supports_forecast(self, instrument) -> bool:
        try:
            return bool(self.lookup(instrument).time_series)
        except ModelUnavailableError:
            return False

    def instruments(self) -> List[Instrument]:
        return list(self._entries)

    def validate_availability(self) -> Dict:
        """
        Check every instrument has classification and detection models.

        Returns:
            Dict with 'available' (bool) and 'missing' (list of descriptions)
        """
        missing = []
        for instrument in Instrument:
            entry = self._entries.get(instrument)
            if entry is None:
                missing.append(f"{instrument.value} models")
                continue
            if not entry.classification:
                missing.append(f"{instrument.value} classification model")
            if not entry.detection:
                missing.append(f"{instrument.value} detection model")

        if missing:
            logger.warning("Model registry incomplete: %s", ", ".join(missing))

        return {
            "available": len(missing) == 0,
            "missing": missing,
        }
