# MIT License (see LICENSE)
"""
Mass on a linear spring: the reference problem for solver accuracy.

Equations of motion (Hooke's law, no damping):
    dx/dt = v
    dv/dt = -(k/m)·x

Analytic solution with ω = sqrt(k/m):
    x(t) = x0·cos(ωt) + (v0/ω)·sin(ωt)
    v(t) = -x0·ω·sin(ωt) + v0·cos(ωt)

Total energy ½mv² + ½kx² is conserved, which makes this model a natural
test bed for the adaptive solver as well.
"""
from __future__ import annotations

import numpy as np

from ..core.invariants import EnergyInfo
from ..errors import InvalidState
from ..model import ODESim

VAR_NAMES = (
    "position",
    "velocity",
    "time",
    "kinetic_energy",
    "potential_energy",
    "total_energy",
)


class SpringOscillator(ODESim):
    """
    Simple harmonic oscillator.

    Attributes:
        mass: Mass of the block (> 0).
        stiffness: Spring constant k (> 0).
    """
    # 0  1  2     3   4   5
    # x, v, time, ke, pe, te
    POSITION, VELOCITY, TIME, KINETIC, POTENTIAL, TOTAL = range(6)

    def __init__(
        self,
        mass: float = 1.0,
        stiffness: float = 1.0,
        position: float = 1.0,
        velocity: float = 0.0,
    ) -> None:
        super().__init__(VAR_NAMES, computed=(self.KINETIC, self.POTENTIAL, self.TOTAL))
        if mass <= 0 or stiffness <= 0:
            raise ValueError("mass and stiffness must be > 0")
        self._mass = float(mass)
        self._stiffness = float(stiffness)
        self._x0 = float(position)
        self._v0 = float(velocity)
        self._state.write([position, velocity, 0.0, 0.0, 0.0, 0.0], continuous=True)
        self.modify_objects()
        self.save_initial_state()

    def __repr__(self) -> str:
        return f"SpringOscillator(mass={self._mass}, stiffness={self._stiffness})"

    @property
    def mass(self) -> float:
        return self._mass

    def set_mass(self, value: float) -> None:
        if value <= 0:
            raise ValueError("mass must be > 0")
        self._mass = float(value)
        # kinetic energy jumps without the state changing
        self._state.incr_sequence(self.KINETIC, self.TOTAL)
        self.modify_objects()

    @property
    def stiffness(self) -> float:
        return self._stiffness

    def set_stiffness(self, value: float) -> None:
        if value <= 0:
            raise ValueError("stiffness must be > 0")
        self._stiffness = float(value)
        self._state.incr_sequence(self.POTENTIAL, self.TOTAL)
        self.modify_objects()

    @property
    def omega(self) -> float:
        """Angular frequency sqrt(k/m)."""
        return float(np.sqrt(self._stiffness / self._mass))

    def analytic(self, t: float) -> tuple[float, float]:
        """Exact (position, velocity) at time t from the construction values."""
        w = self.omega
        c, s = np.cos(w * t), np.sin(w * t)
        x = self._x0 * c + (self._v0 / w) * s
        v = -self._x0 * w * s + self._v0 * c
        return float(x), float(v)

    def evaluate(self, vars: np.ndarray, change: np.ndarray, time_step: float) -> InvalidState | None:
        change[self.POSITION] = vars[self.VELOCITY]
        change[self.VELOCITY] = -(self._stiffness / self._mass) * vars[self.POSITION]
        change[self.TIME] = 1.0
        return None

    def energy_info(self, vars: np.ndarray) -> EnergyInfo:
        x, v = vars[self.POSITION], vars[self.VELOCITY]
        return EnergyInfo(
            kinetic=0.5 * self._mass * v * v,
            potential=0.5 * self._stiffness * x * x,
        )

    def energy(self, vars: np.ndarray) -> float:
        return float(self.energy_info(vars).total)

    def modify_objects(self) -> None:
        vars = self._state.read()
        ei = self.energy_info(vars)
        vars[self.KINETIC] = ei.kinetic
        vars[self.POTENTIAL] = ei.potential
        vars[self.TOTAL] = ei.total
        self._state.write(vars, continuous=True)
