# MIT License (see LICENSE)
"""
Utilities for energy bookkeeping and conserved-quantity checks.

The adaptive step solver uses relative energy drift as its error signal:
in a closed system with no dissipation, total energy should stay constant
(within integration error), so any change is attributed to the integrator.
"""
from __future__ import annotations
from dataclasses import dataclass

import numpy as np

from ..constants import ENERGY_FLOOR


@dataclass(frozen=True)
class EnergyInfo:
    """
    Breakdown of a model's mechanical energy.

    Attributes:
        kinetic: Translational plus rotational kinetic energy.
        potential: Potential energy, including any user offset.
    """
    kinetic: float
    potential: float

    @property
    def total(self) -> float:
        return self.kinetic + self.potential


def relative_drift(e0: float, e1: float, floor: float = ENERGY_FLOOR) -> float:
    """
    Relative energy change |E1 - E0| / max(|E0|, floor).

    Returns infinity if either energy is not finite, so a blown-up state is
    always treated as out of tolerance.

    Args:
        e0: Reference energy (start of the advance).
        e1: Energy after the trial step.
        floor: Lower bound on the denominator for near-zero energies.
    """
    if not (np.isfinite(e0) and np.isfinite(e1)):
        return float("inf")
    return abs(e1 - e0) / max(abs(e0), floor)
