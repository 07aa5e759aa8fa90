# MIT License (see LICENSE)
"""
Failure types for the integration framework.

Only programmer errors are raised inside the core:
    - ShapeMismatch: a state write of the wrong length.

Everything a caller may want to recover from is *returned* as a frozen
dataclass instead, so retry loops never depend on exceptions:
    - InvalidState: reported by a model's evaluate() (e.g. a derivative
      that would divide by a near-zero distance).
    - IntegrationFailure: a fixed-step solver could not complete a stage.
    - DivergenceFailure: the adaptive solver ran out of retries or hit the
      minimum step size.
    - UnknownSolver: SolverSelector.select() was given an unregistered name.

SimulationError wraps a returned failure for callers at the top of the
stack (AdvanceStrategy.run) that prefer to raise.
"""
from __future__ import annotations
from dataclasses import dataclass


class ShapeMismatch(ValueError):
    """A sequence of the wrong length was written to a StateVector."""

    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"expected {expected} values, got {actual}")


@dataclass(frozen=True)
class InvalidState:
    """
    The model cannot compute a derivative at the given state.

    Attributes:
        message: Human readable reason.
        index: Offending state slot, if the model knows it.
    """
    message: str
    index: int | None = None

    def __str__(self) -> str:
        if self.index is None:
            return self.message
        return f"{self.message} (slot {self.index})"


@dataclass(frozen=True)
class IntegrationFailure:
    """
    A fixed-step solver aborted a step; the state was left untouched.

    Attributes:
        solver: Name of the solver that failed.
        stage: 1-based derivative evaluation that failed.
        cause: What the model (or the finiteness check) reported.
    """
    solver: str
    stage: int
    cause: InvalidState

    def __str__(self) -> str:
        return f"{self.solver}: stage {self.stage} failed: {self.cause}"


@dataclass(frozen=True)
class DivergenceFailure:
    """
    The adaptive solver could not find an acceptable step.

    The state holds every sub-step accepted before the failure, so
    `elapsed` of the requested advance has already been integrated.

    Attributes:
        solver: Name of the adaptive solver.
        reason: Which bound was exceeded.
        step_size: Trial step size at the time of failure.
        elapsed: Simulated time covered before the failure.
        cause: Last IntegrationFailure from the wrapped solver, if any.
    """
    solver: str
    reason: str
    step_size: float
    elapsed: float = 0.0
    cause: IntegrationFailure | None = None

    def __str__(self) -> str:
        msg = f"{self.solver}: {self.reason} (h={self.step_size:g}, elapsed={self.elapsed:g})"
        if self.cause is not None:
            msg += f"; last failure: {self.cause}"
        return msg


@dataclass(frozen=True)
class UnknownSolver:
    """SolverSelector.select() was asked for a name it does not know."""
    name: str
    available: tuple[str, ...] = ()

    def __str__(self) -> str:
        return f"unknown solver: {self.name!r} (available: {', '.join(self.available)})"


# Anything a solver's step() may return instead of None.
StepFailure = IntegrationFailure | DivergenceFailure


class SimulationError(RuntimeError):
    """Raised by AdvanceStrategy.run() when a step fails; carries the failure."""

    def __init__(self, failure: StepFailure) -> None:
        self.failure = failure
        super().__init__(str(failure))
