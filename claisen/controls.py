"""User controls: the forward rate input plus start/reset gating."""
from __future__ import annotations

from typing import Any, Dict


class ControlLockedError(RuntimeError):
    """Raised when the rate input is changed while a run has it disabled."""


class ControlSurface:
    """
    Live-bound rate input read by the integrator at the top of every tick.

    Values are not validated; whatever is set flows straight into the rate
    law. Starting a run disables the rate input and the start trigger until
    the run is stopped or reset.
    """

    def __init__(self, rate_constant: float):
        self.rate_constant = float(rate_constant)
        self.rate_enabled = True
        self.start_enabled = True

    def read_rate(self) -> float:
        return self.rate_constant

    def set_rate(self, value: float) -> None:
        if not self.rate_enabled:
            raise ControlLockedError("Rate input is disabled while the simulation runs")
        self.rate_constant = float(value)

    def lock(self) -> None:
        self.rate_enabled = False
        self.start_enabled = False

    def unlock(self) -> None:
        self.rate_enabled = True
        self.start_enabled = True

    def as_dict(self) -> Dict[str, Any]:
        return {
            "rate": self.rate_constant,
            "rate_enabled": self.rate_enabled,
            "start_enabled": self.start_enabled,
        }
