"""Rate law and explicit Euler update for the Claisen condensation toy model.

Ethyl acetate (EtA) is deprotonated to the enolate (Enol), which either
reverts or couples with another ethyl acetate to give ethyl acetoacetate
(Prod). All arithmetic is plain float math over three species.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

SPECIES: Tuple[str, ...] = ("EtA", "Enol", "Prod")

SPECIES_LABELS: Dict[str, str] = {
    "EtA": "Ethyl acetate",
    "Enol": "Enolate",
    "Prod": "Ethyl acetoacetate",
}

SPECIES_COLORS: Dict[str, str] = {
    "EtA": "#3498db",
    "Enol": "#e74c3c",
    "Prod": "#2ecc71",
}

# Two ethyl acetate molecules go into one ethyl acetoacetate.
PRODUCT_STOICHIOMETRY = 2.0


@dataclass(frozen=True)
class Concentrations:
    """Concentration state in mol/L."""
    eta: float
    enol: float = 0.0
    prod: float = 0.0

    @classmethod
    def initial(cls, eta: float = 1.0) -> "Concentrations":
        return cls(eta=eta, enol=0.0, prod=0.0)

    def as_dict(self) -> Dict[str, float]:
        return {"EtA": self.eta, "Enol": self.enol, "Prod": self.prod}


@dataclass(frozen=True)
class ReactionRates:
    """Instantaneous rates of the three elementary steps."""
    enol_formation: float
    enol_reverse: float
    coupling: float


def reaction_rates(
    c: Concentrations, k_fwd: float, k_rev: float, k_couple: float
) -> ReactionRates:
    """Evaluate the mass-action rate law at the current concentrations."""
    return ReactionRates(
        enol_formation=k_fwd * c.eta,
        enol_reverse=k_rev * c.enol,
        coupling=k_couple * c.enol * c.eta,
    )


def euler_step(
    c: Concentrations,
    k_fwd: float,
    k_rev: float,
    k_couple: float,
    dt: float,
) -> Concentrations:
    """
    Advance the concentrations by one explicit Euler step.

    Each species is clamped at zero independently. Mass balance is not
    restored, so coarse steps or extreme rates may drift.

    Args:
        c: Current concentrations
        k_fwd: Forward (enolate formation) rate constant
        k_rev: Enolate reversion rate constant
        k_couple: Coupling rate constant
        dt: Time step

    Returns:
        New concentrations
    """
    r = reaction_rates(c, k_fwd, k_rev, k_couple)

    d_eta = (-r.enol_formation + r.enol_reverse - r.coupling) * dt
    d_enol = (r.enol_formation - r.enol_reverse - r.coupling) * dt
    d_prod = r.coupling * dt

    return Concentrations(
        eta=max(0.0, c.eta + d_eta),
        enol=max(0.0, c.enol + d_enol),
        prod=max(0.0, c.prod + d_prod),
    )


def yield_percent(prod: float, initial_eta: float) -> float:
    """Product as a percentage of the theoretical maximum."""
    return (prod * PRODUCT_STOICHIOMETRY / initial_eta) * 100.0
