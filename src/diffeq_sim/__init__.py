# MIT License (see LICENSE)
"""
diffeq_sim - interchangeable ODE solvers for time-stepped physical models.

This package advances the state of a model governed by ordinary
differential equations, with several fixed-step methods and an adaptive
wrapper that sizes its steps to bound energy drift.

Main entry points:
    - StateVector: Named state variables with change-sequence counters.
    - ODESim / EnergySystem: What a model provides to the solvers.
    - EulersMethod, ModifiedEuler, RungeKutta: Fixed-step solvers.
    - AdaptiveStepSolver: Energy-drift controlled sub-stepping.
    - AdvanceStrategy: Steps a model and runs its bookkeeping.
    - SolverSelector: Swap the active solver by name, with notifications.

Submodules:
    - core: Solvers and energy helpers.
    - models: Sample models (spring oscillator, magnet wheel).

Example:
    from diffeq_sim import AdvanceStrategy, SolverSelector, RungeKutta
    from diffeq_sim.models import SpringOscillator

    sim = SpringOscillator(position=1.0)
    advance = AdvanceStrategy(sim, RungeKutta(sim))
    selector = SolverSelector(sim, advance, energy_system=sim)
    selector.select("rk4_adaptive")
    advance.run(10.0)
"""
import logging

from .types import StateVector
from .model import ODESim, EnergySystem
from .errors import (
    ShapeMismatch,
    InvalidState,
    IntegrationFailure,
    DivergenceFailure,
    UnknownSolver,
    SimulationError,
)
from .core import (
    DiffEqSolver,
    EulersMethod,
    ModifiedEuler,
    RungeKutta,
    AdaptiveConfig,
    AdaptiveStepSolver,
)
from .advance import AdvanceStrategy
from .selector import SolverSelector, SolverChanged, Subscription
from .profiler import Profiler
from .logging_utils import configure_logging

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # State and model interface
    "StateVector",
    "ODESim",
    "EnergySystem",
    # Solvers
    "DiffEqSolver",
    "EulersMethod",
    "ModifiedEuler",
    "RungeKutta",
    "AdaptiveConfig",
    "AdaptiveStepSolver",
    # Driving the simulation
    "AdvanceStrategy",
    "SolverSelector",
    "SolverChanged",
    "Subscription",
    "Profiler",
    "configure_logging",
    # Failures
    "ShapeMismatch",
    "InvalidState",
    "IntegrationFailure",
    "DivergenceFailure",
    "UnknownSolver",
    "SimulationError",
]
