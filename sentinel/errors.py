"""Exceptions raised by the SENTINEL core."""
from typing import Iterable, Optional


class SentinelError(Exception):
    """Base class for SENTINEL errors."""


class InvalidReadingError(SentinelError, ValueError):
    """Instrument reading value is not a finite number."""


class MissingInstrumentError(SentinelError):
    """Risk aggregation requested with an incomplete reading set."""

    def __init__(self, missing: Iterable[str]):
        self.missing = sorted(missing)
        super().__init__(f"Missing readings for instruments: {', '.join(self.missing)}")


class ModelUnavailableError(SentinelError):
    """No registry entry (or no model of the requested kind) for an instrument."""

    def __init__(self, instrument: str, kind: Optional[str] = None):
        self.instrument = instrument
        self.kind = kind
        if kind is None:
            message = f"Models not found for {instrument}"
        else:
            message = f"{kind} model not available for {instrument}"
        super().__init__(message)


class PredictionFailure(SentinelError):
    """A model prediction raised or timed out."""

    def __init__(self, instrument: str, kind: str, reason: str):
        self.instrument = instrument
        self.kind = kind
        self.reason = reason
        super().__init__(f"{kind} prediction failed for {instrument}: {reason}")


class PredictionCancelled(SentinelError):
    """An in-flight prediction was cancelled through InferenceService.cancel()."""

    def __init__(self, instrument: str, kind: str):
        self.instrument = instrument
        self.kind = kind
        super().__init__(f"{kind} prediction cancelled for {instrument}")
