# MIT License (see LICENSE)
"""
Fixed-step numerical integrators for ODE models.

This module provides time-stepping methods that advance a StateVector by
exactly one step of a caller-chosen size, using the model's evaluate() as
the right-hand side of dy/dt = f(y, t).

Available integrators:
- EulersMethod: 1 evaluation, first order (cheapest, least accurate)
- ModifiedEuler: Heun predictor-corrector, 2 evaluations, second order
- RungeKutta: classical RK4, 4 evaluations, fourth order

Every step is atomic. Stages are evaluated into scratch arrays and the state
is written once, after all stages succeed. A failed stage returns an
IntegrationFailure and leaves the state exactly as it was, so the caller
(usually AdaptiveStepSolver) can retry with a smaller step.

Reference:
    Runge-Kutta methods: https://en.wikipedia.org/wiki/Runge-Kutta_methods
    Heun's method: https://en.wikipedia.org/wiki/Heun%27s_method
"""
from __future__ import annotations
from abc import ABC, abstractmethod
import logging

import numpy as np

from ..errors import IntegrationFailure, InvalidState, StepFailure
from ..model import ODESim
from ..types import StateVector
from ..util import is_finite, to_name

logger = logging.getLogger(__name__)


class DiffEqSolver(ABC):
    """
    Common interface for every solver, fixed or adaptive.

    A solver holds no simulation data, only its algorithm parameters and a
    non-owning reference to the model it serves.

    Attributes:
        name: Stable, language-independent identifier used for selection.
        order: Order of accuracy of the method.
    """
    name: str = ""
    order: int = 0

    @abstractmethod
    def step(self, state: StateVector, step_size: float) -> StepFailure | None:
        """
        Advance state in place by step_size of simulated time.

        Returns:
            None on success, otherwise a failure describing what went wrong.
        """
        ...

    def name_equals(self, name: str) -> bool:
        return to_name(name) == self.name

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


def _evaluate(
    sim: ODESim,
    solver: str,
    stage: int,
    vars: np.ndarray,
    computed: np.ndarray,
    time_step: float,
) -> tuple[np.ndarray, IntegrationFailure | None]:
    """
    Evaluate the model's derivative at vars.

    Computed slots always get a zero derivative. A non-finite derivative is
    reported as InvalidState even if the model did not notice.

    Returns:
        Tuple (change, failure) where failure is None on success.
    """
    change = np.zeros_like(vars)
    err = sim.evaluate(vars, change, time_step)
    if err is None and not is_finite(change):
        bad = int(np.flatnonzero(~np.isfinite(change))[0])
        err = InvalidState("non-finite derivative", index=bad)
    if err is not None:
        logger.debug("%s stage %d at t+%g: %s", solver, stage, time_step, err)
        return change, IntegrationFailure(solver=solver, stage=stage, cause=err)
    change[computed] = 0.0
    return change, None


class EulersMethod(DiffEqSolver):
    """
    Explicit Euler: y(t+h) = y(t) + h·f(y(t), t).

    First order: halving h halves the global error.
    """
    name = "euler"
    order = 1

    def __init__(self, sim: ODESim) -> None:
        self.sim = sim

    def step(self, state: StateVector, step_size: float) -> IntegrationFailure | None:
        y0 = state.read()
        computed = state.computed_mask
        k1, failure = _evaluate(self.sim, self.name, 1, y0, computed, 0.0)
        if failure is not None:
            return failure
        state.write(y0 + step_size * k1, continuous=True)
        return None


class ModifiedEuler(DiffEqSolver):
    """
    Heun's predictor-corrector method (second order).

    Predicts the end state with a full Euler step, evaluates the derivative
    there, and averages it with the start derivative:

        k1 = f(y, t)
        k2 = f(y + h·k1, t + h)
        y(t+h) = y + (h/2)·(k1 + k2)
    """
    name = "modified_euler"
    order = 2

    def __init__(self, sim: ODESim) -> None:
        self.sim = sim

    def step(self, state: StateVector, step_size: float) -> IntegrationFailure | None:
        h = step_size
        y0 = state.read()
        computed = state.computed_mask

        k1, failure = _evaluate(self.sim, self.name, 1, y0, computed, 0.0)
        if failure is not None:
            return failure
        k2, failure = _evaluate(self.sim, self.name, 2, y0 + h * k1, computed, h)
        if failure is not None:
            return failure

        state.write(y0 + (h / 2.0) * (k1 + k2), continuous=True)
        return None


class RungeKutta(DiffEqSolver):
    """
    Classical 4th-order Runge-Kutta.

    RK4 evaluates derivatives at 4 points within the step (start, two
    midpoints, end) and combines them with weights (1, 2, 2, 1)/6 to achieve
    O(h⁵) local error. Stage order matters: each stage uses the previous
    stage's slope to build its intermediate state.

    Reference:
        https://en.wikipedia.org/wiki/Runge-Kutta_methods#The_Runge-Kutta_method
    """
    name = "rk4"
    order = 4

    def __init__(self, sim: ODESim) -> None:
        self.sim = sim

    def step(self, state: StateVector, step_size: float) -> IntegrationFailure | None:
        h = step_size
        y0 = state.read()
        computed = state.computed_mask

        # RK4 stages
        k1, failure = _evaluate(self.sim, self.name, 1, y0, computed, 0.0)
        if failure is not None:
            return failure
        k2, failure = _evaluate(self.sim, self.name, 2, y0 + 0.5 * h * k1, computed, 0.5 * h)
        if failure is not None:
            return failure
        k3, failure = _evaluate(self.sim, self.name, 3, y0 + 0.5 * h * k2, computed, 0.5 * h)
        if failure is not None:
            return failure
        k4, failure = _evaluate(self.sim, self.name, 4, y0 + h * k3, computed, h)
        if failure is not None:
            return failure

        # Weighted combination
        state.write(y0 + (h / 6.0) * (k1 + 2 * k2 + 2 * k3 + k4), continuous=True)
        return None
