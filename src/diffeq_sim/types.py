# MIT License (see LICENSE)
"""
Core type definitions for the integration framework.

Defines StateVector: the ordered, named set of scalar variables that fully
describes a simulation at one instant. Solvers read a snapshot, compute a
new value for every slot, and write it back in a single call.

Each slot carries a change-sequence counter. A *discontinuous* write (a
parameter edit, a reset, a user drag) bumps the counter of every slot whose
value changed, telling observers such as graphs or trail renderers that
they must not interpolate across the jump. A *continuous* write (a normal
integration step) leaves the counters alone.
"""
from __future__ import annotations

import numpy as np

from .errors import ShapeMismatch
from .util import f64


class StateVector:
    """
    Ordered, named, mutable array of float64 state variables.

    Attributes:
        names: Slot names, fixed at construction.
        time_index: Index of the elapsed-time slot, or -1 if there is none.

    A subset of slots may be marked *computed* (e.g. kinetic or total
    energy). Solvers treat their derivative as zero; the model recomputes
    them in its post-step bookkeeping.
    """

    def __init__(self, names, values=None, time_name: str = "time") -> None:
        self.names: tuple[str, ...] = tuple(names)
        if len(set(self.names)) != len(self.names):
            raise ValueError(f"duplicate variable names: {self.names}")
        n = len(self.names)
        self._values = np.zeros(n, dtype=np.float64)
        self._sequence = np.zeros(n, dtype=np.int64)
        self._computed = np.zeros(n, dtype=bool)
        self.time_index = self.names.index(time_name) if time_name in self.names else -1
        if values is not None:
            self.write(values, continuous=True)

    def __len__(self) -> int:
        return len(self.names)

    def __repr__(self) -> str:
        pairs = ", ".join(f"{k}={v:.6g}" for k, v in zip(self.names, self._values))
        return f"StateVector({pairs})"

    def index_of(self, name: str) -> int:
        """Index of the slot with the given name; KeyError if absent."""
        try:
            return self.names.index(name)
        except ValueError:
            raise KeyError(name) from None

    def read(self) -> np.ndarray:
        """Snapshot of all slot values (a copy; mutating it has no effect)."""
        return self._values.copy()

    def value(self, index: int) -> float:
        return float(self._values[self._check(index)])

    def write(self, values, continuous: bool) -> None:
        """
        Replace every slot value.

        Args:
            values: Sequence with exactly len(self) numbers.
            continuous: False for edits that break continuity; bumps the
                sequence counter of every slot whose value changed.

        Raises:
            ShapeMismatch: If values has the wrong length.
        """
        new = f64(values).reshape(-1)
        if new.shape[0] != len(self):
            raise ShapeMismatch(len(self), new.shape[0])
        if not continuous:
            old = self._values
            changed = (old != new) & ~(np.isnan(old) & np.isnan(new))
            self._sequence[changed] += 1
        self._values = new

    def set_value(self, index: int, value: float, continuous: bool = False) -> None:
        """Change one slot; discontinuous by default since this is an edit."""
        vals = self.read()
        vals[self._check(index)] = value
        self.write(vals, continuous=continuous)

    def mark_computed(self, *indices: int) -> None:
        """Designate slots that are derived by the model, never integrated."""
        for i in indices:
            self._computed[self._check(i)] = True

    @property
    def computed_mask(self) -> np.ndarray:
        return self._computed.copy()

    def is_computed(self, index: int) -> bool:
        return bool(self._computed[self._check(index)])

    def incr_sequence(self, *indices: int) -> None:
        """
        Signal a discontinuity without changing values.

        Used when a model parameter changes (e.g. mass), which changes the
        meaning of derived slots like energy even though the stored numbers
        have not been recomputed yet. With no arguments, bumps every slot.
        """
        if not indices:
            self._sequence += 1
            return
        for i in indices:
            self._sequence[self._check(i)] += 1

    def sequence(self, index: int) -> int:
        return int(self._sequence[self._check(index)])

    def sequences(self) -> np.ndarray:
        return self._sequence.copy()

    @property
    def time(self) -> float:
        """Elapsed simulated time; 0.0 when there is no time slot."""
        if self.time_index < 0:
            return 0.0
        return float(self._values[self.time_index])

    def _check(self, index: int) -> int:
        if not -len(self) <= index < len(self):
            raise IndexError(f"slot {index} out of range for {len(self)} variables")
        return index
