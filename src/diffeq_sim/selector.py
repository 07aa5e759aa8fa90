# MIT License (see LICENSE)
"""
Named registry of solvers with change notification.

SolverSelector builds one instance of every available solver for a model
and lets a caller (typically a UI choice control) switch the solver used by
an AdvanceStrategy by its language-independent name:

    euler, modified_euler, rk4                  always available
    modified_euler_adaptive, rk4_adaptive       only with an EnergySystem

The adaptive variants hold total energy constant, so only pass an energy
system for a conservative model (for example MagnetWheel(damping=0.0));
on a dissipative model every adaptive advance ends in a DivergenceFailure.

Observers subscribe with a callback and receive a SolverChanged event
exactly once per successful selection. The selector owns its subscriber
list; there is no global registry.
"""
from __future__ import annotations
from dataclasses import dataclass
import logging
from typing import Callable

from .advance import AdvanceStrategy
from .core.adaptive import AdaptiveConfig, AdaptiveStepSolver
from .core.integrators import DiffEqSolver, EulersMethod, ModifiedEuler, RungeKutta
from .errors import UnknownSolver
from .model import EnergySystem, ODESim
from .util import to_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SolverChanged:
    """Event sent to subscribers after the active solver changes."""
    name: str


class Subscription:
    """Handle returned by SolverSelector.subscribe(); call unsubscribe() to stop."""

    def __init__(self, selector: "SolverSelector", callback: Callable[[SolverChanged], None]) -> None:
        self._selector = selector
        self.callback = callback

    @property
    def active(self) -> bool:
        return self._selector.is_subscribed(self)

    def unsubscribe(self) -> None:
        self._selector.unsubscribe(self)


class SolverSelector:
    """
    Swap the active solver of an AdvanceStrategy by name.

    Args:
        sim: Model every registered solver integrates.
        advance: The strategy whose `solver` is swapped.
        energy_system: Enables the adaptive variants when given.
        config: AdaptiveConfig for the adaptive variants.
    """

    def __init__(
        self,
        sim: ODESim,
        advance: AdvanceStrategy,
        energy_system: EnergySystem | None = None,
        config: AdaptiveConfig | None = None,
    ) -> None:
        self._advance = advance
        solvers: list[DiffEqSolver] = [EulersMethod(sim), ModifiedEuler(sim), RungeKutta(sim)]
        if energy_system is not None:
            solvers.append(AdaptiveStepSolver(sim, energy_system, ModifiedEuler(sim), config))
            solvers.append(AdaptiveStepSolver(sim, energy_system, RungeKutta(sim), config))
        self._solvers: dict[str, DiffEqSolver] = {s.name: s for s in solvers}
        self._subscribers: list[Subscription] = []

    def names(self) -> list[str]:
        """Registered solver names, in registry order."""
        return list(self._solvers)

    def solver(self, name: str) -> DiffEqSolver | None:
        return self._solvers.get(to_name(name))

    def current(self) -> str:
        """Name of the solver the AdvanceStrategy is using now."""
        return self._advance.solver.name

    def select(self, name: str) -> UnknownSolver | None:
        """
        Make the named solver active.

        Selecting the solver that is already active does nothing and sends
        no notification.

        Returns:
            None on success, UnknownSolver if the name is not registered
            (the active solver is left unchanged).
        """
        if self._advance.solver.name_equals(name):
            return None
        solver = self.solver(name)
        if solver is None:
            return UnknownSolver(name=name, available=tuple(self._solvers))
        self._advance.solver = solver
        logger.info("solver changed to %s", solver.name)
        event = SolverChanged(solver.name)
        for sub in list(self._subscribers):
            sub.callback(event)
        return None

    def subscribe(self, callback: Callable[[SolverChanged], None]) -> Subscription:
        sub = Subscription(self, callback)
        self._subscribers.append(sub)
        return sub

    def unsubscribe(self, subscription: Subscription) -> None:
        """Stop notifying a subscriber; unknown or repeated calls are ignored."""
        if subscription in self._subscribers:
            self._subscribers.remove(subscription)

    def is_subscribed(self, subscription: Subscription) -> bool:
        return subscription in self._subscribers
