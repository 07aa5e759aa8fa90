# MIT License (see LICENSE)
"""
Adaptive step-size control driven by energy drift.

AdaptiveStepSolver wraps any fixed-step DiffEqSolver and covers a requested
advance H with as many sub-steps as needed to keep total energy within a
relative tolerance of its value at the start of the advance. The model
must be conservative: physical dissipation is indistinguishable from
integration error and is rejected as drift. For a conservative model this gives close-to-constant energy from a method that
is not itself energy conserving.

Per sub-step:
    1. Snapshot the state and try one step of the trial size.
    2. If the wrapped solver fails, or the drift |E1 - E0| / max(|E0|, ε)
       exceeds the share of the tolerance earned so far,
           tol · (covered + h) / H,
       restore the snapshot, shrink the trial step
       and try again. Too many retries, or a step below the minimum,
       ends the advance with a DivergenceFailure.
    3. Otherwise the sub-step is committed. If the drift was well under
       that share, the trial step grows for the *next* sub-step.

The last good trial step is remembered between calls, so the solver does not
rediscover a workable step size on every advance.
"""
from __future__ import annotations
from dataclasses import dataclass, field
import logging

import numpy as np

from ..constants import (
    DEFAULT_GROWTH_FACTOR,
    DEFAULT_GROWTH_THRESHOLD,
    DEFAULT_MAX_RETRIES,
    DEFAULT_MIN_STEP,
    DEFAULT_SHRINK_FACTOR,
    DEFAULT_TOLERANCE,
    ENERGY_FLOOR,
)
from ..errors import DivergenceFailure, IntegrationFailure, StepFailure
from ..model import EnergySystem, ODESim
from ..types import StateVector
from .integrators import DiffEqSolver
from .invariants import relative_drift

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdaptiveConfig:
    """
    Tuning knobs for AdaptiveStepSolver.

    Attributes:
        tolerance_energy_drift: Largest accepted relative energy drift (> 0).
        step_growth_factor: Trial step multiplier after an easy sub-step (> 1).
        step_shrink_factor: Trial step multiplier after a rejection, in (0, 1).
        max_retries: Rejections tolerated per sub-step (>= 1).
        min_step_size: Smallest sub-step allowed (> 0).
        growth_threshold: Grow only when drift < growth_threshold * tolerance.
        energy_floor: Lower bound on |E0| in the drift denominator.
    """
    tolerance_energy_drift: float = DEFAULT_TOLERANCE
    step_growth_factor: float = DEFAULT_GROWTH_FACTOR
    step_shrink_factor: float = DEFAULT_SHRINK_FACTOR
    max_retries: int = DEFAULT_MAX_RETRIES
    min_step_size: float = DEFAULT_MIN_STEP
    growth_threshold: float = DEFAULT_GROWTH_THRESHOLD
    energy_floor: float = ENERGY_FLOOR

    def __post_init__(self) -> None:
        """Reject knobs that would stall or invert the controller."""
        if not self.tolerance_energy_drift > 0:
            raise ValueError("tolerance_energy_drift must be > 0")
        if not self.step_growth_factor > 1:
            raise ValueError("step_growth_factor must be > 1")
        if not 0 < self.step_shrink_factor < 1:
            raise ValueError("step_shrink_factor must be in (0, 1)")
        if int(self.max_retries) != self.max_retries or self.max_retries < 1:
            raise ValueError("max_retries must be an integer >= 1")
        if not self.min_step_size > 0:
            raise ValueError("min_step_size must be > 0")
        if not 0 < self.growth_threshold < 1:
            raise ValueError("growth_threshold must be in (0, 1)")
        if not self.energy_floor > 0:
            raise ValueError("energy_floor must be > 0")


@dataclass
class AdaptiveStats:
    """
    Diagnostics for the most recent AdaptiveStepSolver.step() call.

    Attributes:
        substeps: Sizes of the accepted sub-steps, in order.
        energy_rejections: Sub-steps undone because drift was too large.
        solver_failures: Sub-steps the wrapped solver could not complete.
        max_drift: Largest drift among accepted sub-steps.
        covered: Simulated time of the accepted sub-steps; equals the
                 requested step exactly after a successful call.
    """
    substeps: list[float] = field(default_factory=list)
    energy_rejections: int = 0
    solver_failures: int = 0
    max_drift: float = 0.0
    covered: float = 0.0

    @property
    def accepted(self) -> int:
        return len(self.substeps)

    @property
    def rejected(self) -> int:
        return self.energy_rejections + self.solver_failures


class AdaptiveStepSolver(DiffEqSolver):
    """
    Energy-drift controlled wrapper around a fixed-step solver.

    Args:
        sim: Model being integrated (non-owning reference).
        energy_system: Reports total energy for a state; usually sim itself.
        solver: Fixed-step method used for each sub-step.
        config: Tuning knobs; defaults from constants.py.

    Example:
        sim = SpringOscillator()
        solver = AdaptiveStepSolver(sim, sim, RungeKutta(sim))
        failure = solver.step(sim.state_vector(), 0.1)
    """

    def __init__(
        self,
        sim: ODESim,
        energy_system: EnergySystem,
        solver: DiffEqSolver,
        config: AdaptiveConfig | None = None,
    ) -> None:
        if not isinstance(energy_system, EnergySystem):
            raise TypeError(f"{energy_system!r} does not provide energy()")
        self.sim = sim
        self.energy_system = energy_system
        self.solver = solver
        self.config = config if config is not None else AdaptiveConfig()
        self.name = f"{solver.name}_adaptive"
        self.order = solver.order
        self.stats = AdaptiveStats()
        self._last_step: float | None = None

    @property
    def last_step_size(self) -> float | None:
        """Trial step carried over to the next call (None until one succeeds)."""
        return self._last_step

    def reset(self) -> None:
        """Forget the remembered step size."""
        self._last_step = None

    def step(self, state: StateVector, step_size: float) -> StepFailure | None:
        """
        Advance state by exactly step_size using energy-checked sub-steps.

        Accepted sub-steps are committed as they go: if a DivergenceFailure
        is returned, the state holds the last accepted sub-step and the
        failure's `elapsed` says how far that is into the advance.

        The drift budget is shared out in proportion to progress, so a
        sub-step ending at time t into the advance may have drifted by at
        most tol · t / H. Early sub-steps cannot use up the whole budget.

        Returns:
            None on success (a zero or negative step is a no-op),
            DivergenceFailure if a bound was exceeded or step_size is not
            finite.
        """
        cfg = self.config
        H = float(step_size)
        self.stats = AdaptiveStats()
        if not np.isfinite(H):
            return self._diverged("non-finite step size", H, 0.0)
        if H <= 0.0:
            return None

        e0 = float(self.energy_system.energy(state.read()))
        if not np.isfinite(e0):
            return self._diverged("non-finite starting energy", H, 0.0)

        trial = H if self._last_step is None else min(self._last_step, H)
        remaining = H
        retries = 0
        last_failure: IntegrationFailure | None = None

        while remaining > 0.0:
            # absorb a tail shorter than min_step_size into this sub-step
            final = remaining - trial < cfg.min_step_size
            h = remaining if final else trial
            snapshot = state.read()

            failure = self.solver.step(state, h)
            if failure is None:
                e1 = float(self.energy_system.energy(state.read()))
                drift = relative_drift(e0, e1, cfg.energy_floor)
                # the final sub-step gets the full tolerance
                budget = cfg.tolerance_energy_drift if final else (
                    cfg.tolerance_energy_drift * (H - remaining + h) / H)
                if drift <= budget:
                    self.stats.substeps.append(h)
                    self.stats.max_drift = max(self.stats.max_drift, drift)
                    remaining = 0.0 if final else remaining - h
                    self.stats.covered = H - remaining
                    retries = 0
                    last_failure = None
                    if drift < cfg.growth_threshold * budget and trial < H:
                        trial = min(trial * cfg.step_growth_factor, H)
                    self._last_step = trial
                    continue
                state.write(snapshot, continuous=True)
                self.stats.energy_rejections += 1
                reason = f"energy drift {drift:.3g} exceeds budget {budget:.3g}"
            else:
                self.stats.solver_failures += 1
                last_failure = failure
                reason = str(failure)

            retries += 1
            trial = h * cfg.step_shrink_factor
            logger.debug("%s: rejected h=%g (%s), retry %d with h=%g",
                         self.name, h, reason, retries, trial)
            if retries > cfg.max_retries:
                return self._diverged(
                    f"no acceptable step after {cfg.max_retries} retries",
                    trial, H - remaining, last_failure,
                )
            if trial < cfg.min_step_size:
                return self._diverged(
                    f"step size fell below minimum {cfg.min_step_size:g}",
                    trial, H - remaining, last_failure,
                )
        return None

    def _diverged(
        self,
        reason: str,
        step_size: float,
        elapsed: float,
        cause: IntegrationFailure | None = None,
    ) -> DivergenceFailure:
        failure = DivergenceFailure(
            solver=self.name,
            reason=reason,
            step_size=step_size,
            elapsed=elapsed,
            cause=cause,
        )
        logger.warning("%s", failure)
        return failure
