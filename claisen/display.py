"""Text shown next to the canvas: elapsed time and yield."""
from __future__ import annotations

from typing import Dict

from .config import SimConfig
from .kinetics import Concentrations, yield_percent


def format_time(t: float) -> str:
    return f"{t:.1f}"


def format_yield(percent: float) -> str:
    return f"{percent:.1f}"


class DisplayUpdater:
    """Formats the clock and the computed yield for the two text regions."""

    def __init__(self, config: SimConfig):
        self.initial_eta = config.initial_eta

    def render(self, t: float, c: Concentrations) -> Dict[str, str]:
        return {
            "time": format_time(t),
            "yield": format_yield(yield_percent(c.prod, self.initial_eta)),
        }
