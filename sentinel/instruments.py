"""Instrument identifiers and immutable per-tick readings."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import math

from sentinel.errors import InvalidReadingError


class Instrument(str, Enum):
    STEP = "STEP"
    SUIT = "SUIT"
    PAPA = "PAPA"
    MAG = "MAG"
    SOLEXS = "SoLEXS"
    SWISS = "SWISS"

    @property
    def full_name(self) -> str:
        return FULL_NAMES[self]

    @classmethod
    def from_id(cls, instrument_id: str) -> "Instrument":
        """Resolve an instrument id case-insensitively ('solexs' -> SoLEXS)."""
        if isinstance(instrument_id, Instrument):
            return instrument_id
        for member in cls:
            if member.value.lower() == str(instrument_id).strip().lower():
                return member
        raise ValueError(f"Unknown instrument: {instrument_id!r}")


FULL_NAMES = {
    Instrument.STEP: "Solar Terrestrial Environment Probe",
    Instrument.SUIT: "Solar Ultraviolet Imaging Telescope",
    Instrument.PAPA: "Plasma Analyser Package",
    Instrument.MAG: "Magnetometer",
    Instrument.SOLEXS: "Solar Low Energy X-ray Spectrometer",
    Instrument.SWISS: "Solar Wind Ion Spectrometer",
}

ALL_INSTRUMENTS = tuple(Instrument)


@dataclass(frozen=True)
class InstrumentReading:
    """One instrument's intensity reading (practically 0-100) at one tick."""

    instrument: Instrument
    value: float
    timestamp: float  # epoch seconds

    def __post_init__(self):
        # Coerce ids and numbers so readings parsed from JSON behave the same
        object.__setattr__(self, "instrument", Instrument.from_id(self.instrument))
        try:
            value = float(self.value)
        except (TypeError, ValueError) as exc:
            raise InvalidReadingError(
                f"Reading for {self.instrument.value} is not numeric: {self.value!r}"
            ) from exc
        if not math.isfinite(value):
            raise InvalidReadingError(
                f"Reading for {self.instrument.value} is not finite: {value}"
            )
        object.__setattr__(self, "value", value)
        object.__setattr__(self, "timestamp", float(self.timestamp))

    def to_dict(self) -> dict:
        return {
            "instrument": self.instrument.value,
            "value": self.value,
            "timestamp": self.timestamp,
        }
