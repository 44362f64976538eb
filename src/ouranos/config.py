"""
Ouranos Settings
================

Two kinds of configuration live here.

``config`` is a single mutable ``OuranosConfig`` shared by the whole
package. It holds numerical knobs: comparison tolerances for orbital
elements, the thresholds used to snap nearly circular or nearly equatorial
orbits, the Kepler solver limits and the separations below which geometry
is treated as degenerate.

``PhysicsConfig``, ``PerturbationConfig`` and ``CoordinateConfig`` are
frozen blocks passed to one component each. Physical constants (G, c, AU)
belong to these blocks, so two simulations can run with different values.

Examples
--------
>>> import ouranos
>>> ouranos.config.KEPLER_ITERATIONS = 20
>>> ouranos.config.reset()

>>> with ouranos.temp_config(STRICT_VALIDATION=False):
...     body = ouranos.Body(mass=1.0, j2=2.0)   # warns instead of raising

>>> from ouranos.config import PhysicsConfig
>>> integrator = ouranos.NBodyIntegrator(PhysicsConfig(softening=0.0))
"""

from dataclasses import dataclass, asdict, fields, replace
from contextlib import contextmanager
from typing import Any, Dict
import math

from . import constants
from .exceptions import ValidationError


@dataclass
class OuranosConfig:
    """
    Package-wide numerical settings.

    Attributes
    ----------
    EQUALITY_RTOL, EQUALITY_ATOL : float
        Tolerances used when comparing orbital elements and satellites.
        Defaults: 1e-12, 1e-14
    HASH_DECIMALS : int
        Read-only; rounding applied before hashing, derived from
        EQUALITY_ATOL so that equal objects share a hash
    SNAP_TO_ZERO_THRESHOLD : float
        Recovered node and periapsis angles this close to 0 (mod 2pi)
        are set to 0. Default: 1e-10
    SNAP_TO_CIRCULAR : float
        Recovered eccentricities below this become 0. Default: 1e-8
    SNAP_TO_EQUATORIAL : float
        Recovered inclinations within this of 0 or pi are snapped.
        Default: 1e-8
    STRICT_VALIDATION : bool
        Soft sanity checks raise when True and warn when False.
        Default: True
    VECTOR_EPSILON : float
        Shortest vector ``vector.normalize`` will scale. Default: 1e-12
    MIN_SEPARATION : float
        Separation [m] under which perturbation terms vanish. Default: 1e-6
    KEPLER_ITERATIONS : int
        Newton iteration cap for Kepler's equation. Default: 10
    KEPLER_TOLERANCE : float
        Newton step [rad] that ends iteration early. Default: 1e-14
    """

    EQUALITY_RTOL: float = 1e-12
    EQUALITY_ATOL: float = 1e-14

    SNAP_TO_ZERO_THRESHOLD: float = 1e-10
    SNAP_TO_CIRCULAR: float = 1e-8
    SNAP_TO_EQUATORIAL: float = 1e-8

    STRICT_VALIDATION: bool = True

    VECTOR_EPSILON: float = 1e-12
    MIN_SEPARATION: float = 1e-6

    KEPLER_ITERATIONS: int = 10
    KEPLER_TOLERANCE: float = 1e-14

    _GROUPS = (
        ('Element comparison', ('EQUALITY_RTOL', 'EQUALITY_ATOL', 'HASH_DECIMALS')),
        ('Orbit snapping', ('SNAP_TO_ZERO_THRESHOLD', 'SNAP_TO_CIRCULAR',
                            'SNAP_TO_EQUATORIAL')),
        ('Degenerate geometry', ('VECTOR_EPSILON', 'MIN_SEPARATION')),
        ('Kepler solver', ('KEPLER_ITERATIONS', 'KEPLER_TOLERANCE')),
        ('Validation', ('STRICT_VALIDATION',)),
    )

    @property
    def HASH_DECIMALS(self) -> int:
        """Decimals kept when hashing: two orders coarser than EQUALITY_ATOL."""
        return max(-math.floor(math.log10(self.EQUALITY_ATOL)) - 2, 0)

    def reset(self):
        """Restore every setting to its default."""
        for f in fields(self):
            setattr(self, f.name, f.default)

    def __repr__(self):
        lines = ["OuranosConfig:"]
        for title, names in self._GROUPS:
            lines.append(f"  {title}:")
            lines.extend(f"    {name} = {getattr(self, name)}" for name in names)
        return "\n".join(lines)


config = OuranosConfig()


@contextmanager
def temp_config(**kwargs):
    """
    Override settings of the global ``config`` inside a ``with`` block.

    The previous values come back on exit, including when the block raises.

    Examples
    --------
    >>> with ouranos.temp_config(KEPLER_ITERATIONS=50):
    ...     E = ouranos.solve_kepler(3.0, 0.95)

    Raises
    ------
    AttributeError
        For a name that is not an OuranosConfig field
    """
    valid = [f.name for f in fields(config)]
    unknown = [key for key in kwargs if key not in valid]
    if unknown:
        raise AttributeError(
            f"OuranosConfig has no attribute {unknown[0]!r}. Valid attributes: {valid}")
    saved = {key: getattr(config, key) for key in kwargs}
    for key, value in kwargs.items():
        setattr(config, key, value)
    try:
        yield config
    finally:
        for key, value in saved.items():
            setattr(config, key, value)


"""
Component configuration blocks.
Frozen; setters hand components a new instance from dataclasses.replace().
"""
class _ConfigBlock:
    """Shared dict round-trip for the frozen configuration dataclasses."""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValidationError(
                f"Unknown {cls.__name__} keys: {sorted(unknown)}. "
                f"Valid keys: {sorted(known)}"
            )
        return cls(**data)

    def updated(self, **changes):
        """Return a copy with ``changes`` applied (validated on creation)."""
        return replace(self, **changes)


@dataclass(frozen=True)
class PhysicsConfig(_ConfigBlock):
    """
    Parameters of the N-body force model and integrator.

    Attributes
    ----------
    G : float
        Gravitational constant [m^3 kg^-1 s^-2]
    c : float
        Speed of light [m/s], used for the Lorentz factor scaling
    use_relativistic : bool
        Scale pairwise forces by the product of the Lorentz factors
    softening : float
        Softening length [m] added in quadrature to each separation
    time_step : float
        Default RK4 step [s] used when ``step()`` is called without one
    """
    G: float = constants.G
    c: float = constants.C
    use_relativistic: bool = False
    softening: float = 1e6
    time_step: float = 3600.0

    def __post_init__(self):
        if not self.G > 0:
            raise ValidationError(f"Gravitational constant must be positive, got {self.G}")
        if not self.c > 0:
            raise ValidationError(f"Speed of light must be positive, got {self.c}")
        if not self.softening >= 0:
            raise ValidationError(f"Softening length must be non-negative, got {self.softening}")
        if not self.time_step > 0:
            raise ValidationError(f"Time step must be positive, got {self.time_step}")


@dataclass(frozen=True)
class PerturbationConfig(_ConfigBlock):
    """
    Parameters and enable flags of the perturbation model.

    Attributes
    ----------
    G, c : float
        Gravitational constant and speed of light (SI)
    au : float
        Astronomical unit [m], reference distance for radiation pressure
    use_third_body : bool
        Enable direct plus indirect third-body gravity
    use_relativistic : bool
        Enable the Schwarzschild precession term
    use_non_spherical : bool
        Enable J2 oblateness
    use_atmospheric_drag : bool
        Enable exponential-atmosphere drag
    use_solar_radiation : bool
        Enable solar radiation pressure
    """
    G: float = constants.G
    c: float = constants.C
    au: float = constants.AU
    use_third_body: bool = True
    use_relativistic: bool = False
    use_non_spherical: bool = True
    use_atmospheric_drag: bool = False
    use_solar_radiation: bool = False

    def __post_init__(self):
        if not self.G > 0:
            raise ValidationError(f"Gravitational constant must be positive, got {self.G}")
        if not self.c > 0:
            raise ValidationError(f"Speed of light must be positive, got {self.c}")
        if not self.au > 0:
            raise ValidationError(f"Astronomical unit must be positive, got {self.au}")


@dataclass(frozen=True)
class CoordinateConfig(_ConfigBlock):
    """
    Reference epoch and constants for coordinate transforms.

    Attributes
    ----------
    epoch : float
        Reference epoch as seconds since J2000.0 (0.0 is J2000 itself)
    obliquity : float
        Obliquity of the ecliptic [rad]
    au : float
        Astronomical unit [m]
    """
    epoch: float = 0.0
    obliquity: float = constants.J2000_OBLIQUITY
    au: float = constants.AU

    def __post_init__(self):
        if not math.isfinite(self.epoch):
            raise ValidationError(f"Epoch must be finite, got {self.epoch}")
        if not self.au > 0:
            raise ValidationError(f"Astronomical unit must be positive, got {self.au}")
