"""Immutable per-tick snapshot of readings and the derived risk index."""
from dataclasses import dataclass
from typing import Optional, Tuple

from sentinel.events.alerts import CMEAlert
from sentinel.instruments import Instrument, InstrumentReading
from sentinel.scoring import RiskIndex


@dataclass(frozen=True)
class TickSnapshot:
    timestamp: float
    readings: Tuple[InstrumentReading, ...]
    risk: RiskIndex
    alert: Optional[CMEAlert] = None

    @property
    def cme_alert(self) -> bool:
        return self.alert is not None

    def reading(self, instrument) -> Optional[InstrumentReading]:
        inst = Instrument.from_id(instrument)
        for r in self.readings:
            if r.instrument is inst:
                return r
        return None

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "readings": {r.instrument.value: r.value for r in self.readings},
            "risk": self.risk.to_dict(),
            "cme_alert": self.cme_alert,
            "alert": self.alert.to_dict() if self.alert else None,
        }
