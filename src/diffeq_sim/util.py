# MIT License (see LICENSE)
"""
Small numeric and naming helpers shared across the package.

Vector helpers operate on 2D vectors represented as numpy arrays of
shape (2,); they are used by the sample models for wheel geometry.
"""
from __future__ import annotations

import numpy as np


def f64(x) -> np.ndarray:
    """
    Convert any array-like to a float64 numpy array.

    Used throughout the codebase to ensure consistent numeric precision
    and allow tuple/list inputs for state values.
    """
    return np.array(x, dtype=np.float64)


def is_finite(x) -> bool:
    """True if every element of x is finite (no NaN or infinity)."""
    return bool(np.all(np.isfinite(x)))


def to_name(text: str) -> str:
    """
    Normalize a solver or variable name to its language-independent form.

    Lower-cases and maps spaces and dashes to underscores, so that
    "Runge-Kutta", "runge kutta" and "RUNGE_KUTTA" compare equal.
    """
    return text.strip().lower().replace(" ", "_").replace("-", "_")


def cross2(a: np.ndarray, b: np.ndarray) -> float:
    """
    2D cross product (scalar result): a × b = ax*by - ay*bx.

    Positive result means b is counterclockwise from a. For a lever arm
    a and a force b this is the torque about the origin.
    """
    return float(a[0] * b[1] - a[1] * b[0])


def rotate(point: tuple[float, float] | np.ndarray, angle: float) -> np.ndarray:
    """Rotate a point counterclockwise about the origin by angle radians."""
    c, s = np.cos(angle), np.sin(angle)
    px, py = point[0], point[1]
    return np.array([px * c - py * s, px * s + py * c], dtype=np.float64)
