"""
Utility functions for the Ouranos package.
"""

import math
import warnings
from typing import Type

import numpy as np

from .config import config
from .exceptions import ValidationError


def validation_error(message: str, error_class: Type[Exception] = ValueError):
    """
    Raise error or warn based on config.STRICT_VALIDATION.

    This function provides consistent behavior for soft sanity checks
    across the package. When STRICT_VALIDATION is True (default), raises
    the specified exception. When False, issues a UserWarning instead.

    Hard validation (non-positive mass, negative time scale, e >= 1 given
    to the Kepler propagator) always raises and does not go through here.

    Parameters
    ----------
    message : str
        Validation error message
    error_class : Type[Exception], optional
        Exception class to raise if STRICT_VALIDATION is True.
        Default: ValueError

    Raises
    ------
    Exception (of type error_class)
        If config.STRICT_VALIDATION is True

    Warns
    -----
    UserWarning
        If config.STRICT_VALIDATION is False

    Examples
    --------
    >>> from ouranos.utils import validation_error
    >>> from ouranos import config
    >>> config.STRICT_VALIDATION = True
    >>> validation_error("J2 coefficient seems unrealistic")  # Raises ValueError

    >>> config.STRICT_VALIDATION = False
    >>> validation_error("J2 coefficient seems unrealistic")  # Issues warning
    """
    if config.STRICT_VALIDATION:
        raise error_class(message)
    else:
        warnings.warn(message, UserWarning, stacklevel=2)


def as_vector(value, name: str = "vector") -> np.ndarray:
    """
    Coerce ``value`` into a finite float array of shape (3,).

    Returns a new array; the input is never aliased. Raises ValidationError
    for the wrong shape or non-finite components.
    """
    vec = np.array(value, dtype=float).reshape(-1)
    if vec.shape != (3,):
        raise ValidationError(f"{name} must have 3 components, got shape {vec.shape}")
    if not np.all(np.isfinite(vec)):
        raise ValidationError(f"{name} contains NaN or Inf: {vec}")
    return vec


def wrap_angle(angle: float) -> float:
    """Wrap an angle into [0, 2pi)."""
    wrapped = math.fmod(angle, 2.0 * math.pi)
    if wrapped < 0.0:
        wrapped += 2.0 * math.pi
    # fmod of a tiny negative number can round up to exactly 2pi
    if wrapped >= 2.0 * math.pi:
        wrapped = 0.0
    return wrapped
