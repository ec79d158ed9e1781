"""Simple configuration for the Claisen kinetics simulation."""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


@dataclass
class SimConfig:
    """Configuration for the kinetics simulation and its particle view."""

    # Integration
    time_step: float = 0.1
    max_time: float = 100.0
    initial_eta: float = 1.0

    # Rate constants (forward rate is only the starting value of the live input)
    default_rate: float = 0.5
    k_rev: float = 1.5     # enolate -> ethyl acetate
    k_couple: float = 1.0  # enolate + ethyl acetate -> product

    # Particle surface
    width: float = 600.0
    height: float = 400.0
    total_particles: int = 200
    particle_radius: float = 5.0
    particle_speed: float = 1.0  # px per tick
    resample_period: int = 5
    max_species_factor: int = 5  # Cap per species, in multiples of total_particles

    # Chart
    chart_resolution: float = 10.0
    chart_stride: int = 5
    chart_y_max: float = 1.1

    # Scheduling
    frame_interval: float = 1.0 / 60.0  # Delay between ticks
    client_buffer: int = 120  # Queued messages per WebSocket client
    seed: Optional[int] = None

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


DEFAULT_CONFIG = SimConfig()
