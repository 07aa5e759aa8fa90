# MIT License (see LICENSE)
"""
A wheel carrying magnets that is pulled around by one fixed magnet.

The wheel (a uniform disk of radius R and mass m) spins freely about the
origin. Magnets are mounted at radius r_m, evenly spaced, with magnet 0 at
the top when the wheel angle is zero. A fixed magnet sits at p = (0, 0.9R).

Each wheel magnet at world position c feels an attraction towards p that
falls off with distance:
    F = strength · (p - c) / |p - c|²
and contributes torque τ = c × F about the axle. With I = ½mR²:
    dθ/dt = ω
    dω/dt = (Σ τ - damping·ω) / I

The matching potential is U = strength · Σ ln|p - c|, so with zero damping
½Iω² + U is conserved. When a magnet passes too close to the fixed magnet
the force is undefined and evaluate() reports InvalidState.
"""
from __future__ import annotations

import numpy as np

from ..core.invariants import EnergyInfo
from ..errors import InvalidState
from ..model import ODESim
from ..util import cross2, rotate

VAR_NAMES = (
    "angle",
    "angular_velocity",
    "time",
    "kinetic_energy",
    "potential_energy",
    "total_energy",
)


class MagnetWheel(ODESim):
    """
    Magnet wheel model.

    Attributes:
        radius: Wheel radius R.
        magnet_strength: Attraction constant.
        damping: Angular friction coefficient. Use 0 with the adaptive
                 solvers, which need a conservative model.
        min_distance: Closest approach treated as physical.
        magnets: Local positions of the wheel magnets, shape (n, 2).
    """
    # 0  1   2     3   4   5
    # a, w, time,  ke, pe, te
    ANGLE, ANGULAR_VELOCITY, TIME, KINETIC, POTENTIAL, TOTAL = range(6)

    def __init__(
        self,
        mass: float = 1.0,
        radius: float = 1.0,
        num_magnets: int = 12,
        magnet_radius: float | None = None,
        magnet_strength: float = 1.0,
        damping: float = 0.7,
        angle: float = 0.0,
        angular_velocity: float = 3.0,
        min_distance: float = 1e-6,
    ) -> None:
        super().__init__(VAR_NAMES, computed=(self.KINETIC, self.POTENTIAL, self.TOTAL))
        if mass <= 0 or radius <= 0:
            raise ValueError("mass and radius must be > 0")
        if num_magnets < 1:
            raise ValueError("need at least one magnet")
        self._mass = float(mass)
        self.radius = float(radius)
        self.magnet_strength = float(magnet_strength)
        self.damping = float(damping)
        self.min_distance = float(min_distance)
        r_m = 0.7 * self.radius if magnet_radius is None else float(magnet_radius)
        phi = 2 * np.pi * np.arange(num_magnets) / num_magnets
        self.magnets = np.column_stack([-r_m * np.sin(phi), r_m * np.cos(phi)])
        self.fixed_magnet = np.array([0.0, 0.9 * self.radius], dtype=np.float64)

        self._state.write([angle, angular_velocity, 0.0, 0.0, 0.0, 0.0], continuous=True)
        self.modify_objects()
        self.save_initial_state()

    def __repr__(self) -> str:
        return (f"MagnetWheel(mass={self._mass}, radius={self.radius}, "
                f"magnets={len(self.magnets)}, damping={self.damping})")

    @property
    def mass(self) -> float:
        return self._mass

    def set_mass(self, value: float) -> None:
        if value <= 0:
            raise ValueError("mass must be > 0")
        self._mass = float(value)
        # discontinuous change in energy
        self._state.incr_sequence(self.KINETIC, self.POTENTIAL, self.TOTAL)
        self.modify_objects()

    @property
    def inertia(self) -> float:
        """Moment of inertia of a uniform disk, I = ½mR²."""
        return 0.5 * self._mass * self.radius * self.radius

    def magnet_positions(self, angle: float) -> np.ndarray:
        """World positions of the wheel magnets at the given wheel angle."""
        return np.array([rotate(m, angle) for m in self.magnets])

    def evaluate(self, vars: np.ndarray, change: np.ndarray, time_step: float) -> InvalidState | None:
        w = vars[self.ANGULAR_VELOCITY]
        torque = -self.damping * w
        for c in self.magnet_positions(vars[self.ANGLE]):
            f = self.fixed_magnet - c
            d2 = float(np.dot(f, f))
            if d2 < self.min_distance * self.min_distance:
                return InvalidState("wheel magnet collides with fixed magnet", index=self.ANGLE)
            torque += cross2(c, self.magnet_strength * f / d2)
        change[self.ANGLE] = w
        change[self.ANGULAR_VELOCITY] = torque / self.inertia
        change[self.TIME] = 1.0
        return None

    def energy_info(self, vars: np.ndarray) -> EnergyInfo:
        w = vars[self.ANGULAR_VELOCITY]
        d2 = np.sum((self.magnet_positions(vars[self.ANGLE]) - self.fixed_magnet) ** 2, axis=1)
        with np.errstate(divide="ignore"):
            pe = 0.5 * self.magnet_strength * float(np.sum(np.log(d2)))
        return EnergyInfo(kinetic=0.5 * self.inertia * w * w, potential=pe)

    def energy(self, vars: np.ndarray) -> float:
        return float(self.energy_info(vars).total)

    def modify_objects(self) -> None:
        vars = self._state.read()
        ei = self.energy_info(vars)
        vars[self.KINETIC] = ei.kinetic
        vars[self.POTENTIAL] = ei.potential
        vars[self.TOTAL] = ei.total
        self._state.write(vars, continuous=True)
