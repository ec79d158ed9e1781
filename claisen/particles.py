"""Cosmetic particle view of the concentrations.

The markers are a density illustration only. Counts are resampled from the
current concentrations now and then, and positions drift with simple
reflective motion. Nothing here feeds back into the kinetics.
"""
from __future__ import annotations

import math
from typing import Any, Dict, Optional

import numpy as np

from .config import SimConfig
from .kinetics import SPECIES, SPECIES_COLORS, Concentrations


def round_half_up(x: float) -> int:
    """Round to nearest integer with ties going up."""
    return int(math.floor(x + 0.5))


class ParticleAnimator:
    """Fixed-size pool of species markers on a ``width x height`` surface."""

    def __init__(self, config: SimConfig, rng: Optional[np.random.Generator] = None):
        self.config = config
        self.rng = rng if rng is not None else np.random.default_rng(config.seed)
        self.clear()

    @property
    def size(self) -> int:
        return int(self.species.shape[0])

    def clear(self) -> None:
        """Empty the pool; the next frame resamples it."""
        self.positions = np.zeros((0, 2))
        self.velocities = np.zeros((0, 2))
        self.species = np.zeros(0, dtype=int)

    def species_counts(self, c: Concentrations) -> Dict[str, int]:
        """
        Marker count per species, proportional to its concentration.

        Each count is capped at ``max_species_factor * total_particles`` and
        non-finite values (from extreme rate inputs) map to the cap or zero.
        """
        values = c.as_dict()
        total = self.config.total_particles
        cap = self.config.max_species_factor * total
        counts = {}
        for key in SPECIES:
            raw = np.nan_to_num(
                total * (values[key] / self.config.initial_eta),
                nan=0.0, posinf=cap, neginf=0.0,
            )
            counts[key] = round_half_up(min(max(float(raw), 0.0), cap))
        return counts

    def should_resample(self, t: float) -> bool:
        if self.size == 0:
            return True
        return math.floor(round(t, 6)) % self.config.resample_period == 0

    def resample(self, c: Concentrations) -> None:
        """Replace the pool with freshly placed markers."""
        counts = self.species_counts(c)
        self.species = np.concatenate([
            np.full(max(counts[key], 0), index, dtype=int)
            for index, key in enumerate(SPECIES)
        ])
        n = self.size
        self.positions = self.rng.uniform(
            [0.0, 0.0],
            [self.config.width, self.config.height],
            (n, 2),
        )
        speed = self.config.particle_speed
        self.velocities = self.rng.uniform(-speed, speed, (n, 2))

    def move(self) -> None:
        """Advance every marker by its velocity."""
        self.positions += self.velocities
        self._apply_boundaries()

    def _apply_boundaries(self) -> None:
        """Apply reflective boundary conditions."""
        # X boundaries
        left = self.positions[:, 0] < 0
        self.positions[left, 0] = -self.positions[left, 0]
        self.velocities[left, 0] = np.abs(self.velocities[left, 0])

        right = self.positions[:, 0] > self.config.width
        self.positions[right, 0] = 2 * self.config.width - self.positions[right, 0]
        self.velocities[right, 0] = -np.abs(self.velocities[right, 0])

        # Y boundaries
        bottom = self.positions[:, 1] < 0
        self.positions[bottom, 1] = -self.positions[bottom, 1]
        self.velocities[bottom, 1] = np.abs(self.velocities[bottom, 1])

        top = self.positions[:, 1] > self.config.height
        self.positions[top, 1] = 2 * self.config.height - self.positions[top, 1]
        self.velocities[top, 1] = -np.abs(self.velocities[top, 1])

    def update(self, t: float, c: Concentrations) -> None:
        """Per-tick work: resample on the coarse cadence, then move."""
        if self.should_resample(t):
            self.resample(c)
        self.move()

    def render(self) -> Dict[str, Any]:
        """Draw list for the canvas: one filled disk per marker."""
        return {
            "width": self.config.width,
            "height": self.config.height,
            "radius": self.config.particle_radius,
            "particles": [
                {
                    "species": SPECIES[int(self.species[i])],
                    "color": SPECIES_COLORS[SPECIES[int(self.species[i])]],
                    "x": float(self.positions[i, 0]),
                    "y": float(self.positions[i, 1]),
                }
                for i in range(self.size)
            ],
        }
