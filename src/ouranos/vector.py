"""
3D vector helpers.

Thin, stateless wrappers over numpy so the physics modules read like the
equations they implement. Every function returns a new array.
"""

import numpy as np

from .config import config


def zero() -> np.ndarray:
    """Return a fresh zero vector."""
    return np.zeros(3)


def add(a, b) -> np.ndarray:
    return np.add(a, b, dtype=float)


def subtract(a, b) -> np.ndarray:
    return np.subtract(a, b, dtype=float)


def scale(v, s: float) -> np.ndarray:
    return np.multiply(v, s, dtype=float)


def dot(a, b) -> float:
    return float(np.dot(a, b))


def cross(a, b) -> np.ndarray:
    return np.cross(a, b).astype(float)


def magnitude_squared(v) -> float:
    v = np.asarray(v, dtype=float)
    return float(np.dot(v, v))


def magnitude(v) -> float:
    return float(np.linalg.norm(v))


def normalize(v) -> np.ndarray:
    """
    Unit vector along ``v``.

    Returns the zero vector when ``|v|`` is below ``config.VECTOR_EPSILON``
    instead of dividing by (nearly) zero.
    """
    v = np.asarray(v, dtype=float)
    mag = np.linalg.norm(v)
    if mag < config.VECTOR_EPSILON:
        return np.zeros(3)
    return v / mag


def distance(a, b) -> float:
    return float(np.linalg.norm(np.subtract(a, b, dtype=float)))
