# MIT License (see LICENSE)
"""
Core integration components.

This subpackage provides:
    - Fixed-step solvers: Euler, Modified Euler (Heun), Runge-Kutta 4.
    - AdaptiveStepSolver: energy-drift controlled sub-stepping around any
      fixed-step solver.
    - Energy bookkeeping helpers.

Typical usage:
    from diffeq_sim.core import RungeKutta, AdaptiveStepSolver

    solver = AdaptiveStepSolver(sim, sim, RungeKutta(sim))
    failure = solver.step(sim.state_vector(), 0.025)
"""
from .integrators import DiffEqSolver, EulersMethod, ModifiedEuler, RungeKutta
from .adaptive import AdaptiveConfig, AdaptiveStats, AdaptiveStepSolver
from .invariants import EnergyInfo, relative_drift

__all__ = [
    # Fixed-step solvers
    "DiffEqSolver",
    "EulersMethod",
    "ModifiedEuler",
    "RungeKutta",
    # Adaptive
    "AdaptiveConfig",
    "AdaptiveStats",
    "AdaptiveStepSolver",
    # Energy
    "EnergyInfo",
    "relative_drift",
]
