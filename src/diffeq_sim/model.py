# MIT License (see LICENSE)
"""
Interfaces a physical model provides to the integration framework.

The framework never implements physics itself. It needs three things from a
model:
    - a StateVector to advance (state_vector()),
    - the right-hand side of the ODE (evaluate()),
    - optionally, the total energy of a state (EnergySystem.energy()),
      which enables the adaptive step solver.

Solvers hold a plain reference to the model; they never own it and must not
outlive it.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Protocol, runtime_checkable

import numpy as np

from .errors import InvalidState
from .types import StateVector


@runtime_checkable
class EnergySystem(Protocol):
    """A model that can report total mechanical energy for any state."""

    def energy(self, vars: np.ndarray) -> float:
        ...


class ODESim(ABC):
    """
    Base class for models integrated by DiffEqSolver implementations.

    Subclasses declare their variables at construction and implement
    evaluate(). Slot order is the order derivatives are written in.

    Example:
        class Decay(ODESim):
            def __init__(self):
                super().__init__(["x", "time"])

            def evaluate(self, vars, change, time_step):
                change[0] = -vars[0]
                change[1] = 1.0
                return None
    """

    def __init__(self, var_names, computed=()) -> None:
        self._state = StateVector(var_names)
        if computed:
            self._state.mark_computed(*computed)
        self._initial: np.ndarray | None = None

    def state_vector(self) -> StateVector:
        return self._state

    @abstractmethod
    def evaluate(
        self,
        vars: np.ndarray,
        change: np.ndarray,
        time_step: float,
    ) -> InvalidState | None:
        """
        Compute the time derivative of vars into change.

        Args:
            vars: State values to evaluate at (do not modify).
            change: Output array, same length as vars, zero-filled on entry.
            time_step: Offset in simulated time from the start of the
                current step (0 for the first stage).

        Returns:
            None on success, or InvalidState if the state is not physical.
        """
        ...

    def modify_objects(self) -> None:
        """
        Post-step bookkeeping: refresh computed slots from the new state.

        Called by AdvanceStrategy after every successful step. Default does
        nothing.
        """

    def save_initial_state(self) -> None:
        """Remember the current values so reset() can return to them."""
        self._initial = self._state.read()

    def reset(self) -> None:
        """Restore the saved initial state as a discontinuous edit."""
        if self._initial is not None:
            self._state.write(self._initial, continuous=False)
            self.modify_objects()

    @property
    def time(self) -> float:
        return self._state.time
