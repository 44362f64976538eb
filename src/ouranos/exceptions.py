"""
Exception hierarchy for the Ouranos package.

Validation problems subclass ``ValueError`` and lookup failures subclass
``KeyError`` so callers that only know the builtin types still catch them.
Degenerate geometry (near-zero separations, zero vectors) is never an
exception; those paths return zero vectors.
"""


class OuranosError(Exception):
    """Base class for all errors raised by Ouranos."""


class ValidationError(OuranosError, ValueError):
    """Invalid input or configuration, fatal to the offending call only."""


class UnboundOrbitError(ValidationError):
    """
    Orbit is parabolic or hyperbolic (e >= 1).

    The closed-form Kepler propagator only handles elliptic orbits.
    This is a property of the input, not a numerical failure.
    """


class KeplerConvergenceError(OuranosError, RuntimeError):
    """Kepler's equation solver produced a non-finite eccentric anomaly."""


class BodyNotFoundError(OuranosError, KeyError):
    """No body with the requested id is registered."""

    def __str__(self):
        # KeyError.__str__ quotes its argument, keep messages readable
        return str(self.args[0]) if self.args else ""


class RegistryDesyncError(OuranosError, RuntimeError):
    """
    The orchestrator, integrator and perturbation registries disagree.

    Indicates an internal invariant violation (a programming error), not a
    recoverable user error.
    """
