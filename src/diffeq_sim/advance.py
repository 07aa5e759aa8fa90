# MIT License (see LICENSE)
"""
The advance loop that drives a model forward in time.

AdvanceStrategy is the collaborator callers talk to: it holds the model,
the active solver and the default time step. Each advance():
    1. Asks the active solver to step the model's StateVector.
    2. On success, lets the model refresh its computed slots
       (modify_objects), e.g. kinetic/potential/total energy.
    3. On failure, logs and returns the failure untouched. If an adaptive
       solver committed part of the advance before diverging, the computed
       slots are refreshed for the state it reached.

SolverSelector swaps `solver` at runtime; nothing else here cares which
solver is active.

Structure:
    - User creates a model and an AdvanceStrategy.
    - User calls advance() once per frame, or run(duration) for a batch.
"""
from __future__ import annotations
from dataclasses import dataclass
import logging

from .constants import DEFAULT_TIME_STEP
from .core.integrators import DiffEqSolver
from .errors import DivergenceFailure, SimulationError, StepFailure
from .model import ODESim
from .profiler import Profiler

logger = logging.getLogger(__name__)


@dataclass
class AdvanceStrategy:
    """
    Advances an ODESim with a swappable solver.

    Attributes:
        sim: The model being advanced.
        solver: Active solver (fixed-step or adaptive).
        time_step: Default step for advance() in simulated time units.
        profiler: Optional Profiler; records "solve" and "modify" sections
                  and counts "steps" and "failures".
    """
    sim: ODESim
    solver: DiffEqSolver
    time_step: float = DEFAULT_TIME_STEP
    profiler: Profiler | None = None

    def __post_init__(self) -> None:
        if not self.time_step > 0:
            raise ValueError(f"time_step must be > 0, got {self.time_step}")

    @property
    def time(self) -> float:
        """Elapsed simulated time, read from the model's time slot."""
        return self.sim.time

    def advance(self, time_step: float | None = None) -> StepFailure | None:
        """
        Advance the simulation by one step.

        Args:
            time_step: Step size; defaults to self.time_step.

        Returns:
            None on success, otherwise the solver's failure. The state is
            whatever the solver guarantees on failure (unchanged for
            fixed-step solvers, last accepted sub-step for adaptive ones).
        """
        dt = float(self.time_step if time_step is None else time_step)
        state = self.sim.state_vector()
        prof = self.profiler

        if prof:
            with prof.section("solve"):
                failure = self.solver.step(state, dt)
        else:
            failure = self.solver.step(state, dt)

        if failure is not None:
            logger.warning("advance by %g at t=%g failed: %s", dt, self.time, failure)
            if prof:
                prof.stats.incr("failures")
            # an adaptive solver may have committed part of the advance
            if isinstance(failure, DivergenceFailure) and failure.elapsed > 0:
                self.sim.modify_objects()
            return failure

        if prof:
            with prof.section("modify"):
                self.sim.modify_objects()
            prof.stats.incr("steps")
        else:
            self.sim.modify_objects()
        return None

    def run(self, duration: float) -> None:
        """
        Advance by `duration` in chunks of time_step; the last chunk is clipped.

        Raises:
            SimulationError: If any step fails. The failure is attached as
                `.failure`; steps completed before it remain applied.
        """
        elapsed = 0.0
        while elapsed < duration - 1e-12:
            dt = min(self.time_step, duration - elapsed)
            failure = self.advance(dt)
            if failure is not None:
                raise SimulationError(failure)
            elapsed += dt
