'''Orbital mechanics core for the Ouranos simulation package
Body class definition plus category and capability tags'''

import math
import uuid
from dataclasses import dataclass
from enum import Enum, Flag, auto
from typing import Any, Dict, Optional

import numpy as np

from . import constants
from .exceptions import ValidationError
from .orbital_elements import OrbitalElements
from .perturbations import AtmoParams
from .satellite import Satellite
from .utils import as_vector, validation_error


# define an enumerated list of body categories
class BodyCategory(Enum):
    STAR = 'star'
    PLANET = 'planet'
    MOON = 'moon'
    ASTEROID = 'asteroid'
    COMET = 'comet'
    SPACECRAFT = 'spacecraft'
    GENERIC = 'generic'


class Capability(Flag):
    """Physics roles a body plays, independent of its category."""
    NONE = 0
    GRAVITY_SOURCE = auto()     # perturbs other bodies' Keplerian orbits
    OBLATE = auto()             # non-zero J2


# categories that perturb others unless told otherwise
_DEFAULT_GRAVITY_SOURCES = frozenset((BodyCategory.STAR, BodyCategory.PLANET))


@dataclass(frozen=True)
class BodyParams:
    """
    Immutable physical parameters for a celestial body.

    Attributes
    ----------
    mass : float
        Mass [kg]
    radius : float
        Equatorial radius [m]
    j2 : float, optional
        J2 zonal harmonic coefficient [dimensionless]
    rotation_rate : float, optional
        Angular rotation rate [rad/s]
    name : str, optional
    """
    mass: float
    radius: float
    j2: float = 0.0
    rotation_rate: float = 0.0
    name: Optional[str] = None

    def __post_init__(self):
        if not (self.mass > 0 and math.isfinite(self.mass)):
            raise ValidationError(f"Mass must be positive, got {self.mass}")
        if not self.radius >= 0:
            raise ValidationError(f"Radius must be non-negative, got {self.radius}")
        if abs(self.j2) > 1:
            validation_error(f"J2 coefficient seems unrealistic: {self.j2}",
                             ValidationError)

    def mu(self, G: float = constants.G) -> float:
        """Gravitational parameter G*M [m^3/s^2]"""
        return G * self.mass


class Body:
    """
    A gravitating body tracked by the simulation.

    Position, velocity and acceleration are absolute (inertial frame).
    ``orbit``, when present, is relative to the body named by ``parent_id``
    and drives the body in Keplerian propagation mode.

    Parameters
    ----------
    mass : float
        Mass [kg], > 0
    radius : float, optional
        Equatorial radius [m], >= 0
    position, velocity : array-like, optional
        Initial absolute state [m], [m/s]
    name : str, optional
        Display name; defaults to the id
    body_id : str, optional
        Unique, stable identifier; generated when omitted
    j2 : float, optional
        Oblateness coefficient
    parent_id : str, optional
        Id of the body this one's orbit is relative to. Cycles are rejected
        when the body joins a :class:`~ouranos.SolarSystem`
    orbit : OrbitalElements, optional
        Keplerian elements relative to the parent
    category : BodyCategory or str, optional
        Bookkeeping tag; default 'generic'
    gravity_source : bool, optional
        Whether the body perturbs others. Defaults to True for stars and
        planets
    satellite : Satellite, optional
        Surface properties for drag and radiation pressure
    atmosphere : AtmoParams, optional
        Atmosphere used when this body is the central body of a drag term
    """

    # ========== CONSTRUCTION ==========
    def __init__(self, mass: float, radius: float = 0.0,
                 position=(0.0, 0.0, 0.0), velocity=(0.0, 0.0, 0.0),
                 name: Optional[str] = None, body_id: Optional[str] = None,
                 j2: float = 0.0, parent_id: Optional[str] = None,
                 orbit: Optional[OrbitalElements] = None,
                 category='generic', gravity_source: Optional[bool] = None,
                 satellite: Optional[Satellite] = None,
                 atmosphere: Optional[AtmoParams] = None):
        if not (mass > 0 and math.isfinite(mass)):
            raise ValidationError(f"Body mass must be positive, got {mass}")
        if not (radius >= 0 and math.isfinite(radius)):
            raise ValidationError(f"Body radius must be non-negative, got {radius}")
        if not math.isfinite(j2):
            raise ValidationError(f"J2 must be finite, got {j2}")
        if abs(j2) > 1:
            validation_error(f"J2 coefficient seems unrealistic: {j2}", ValidationError)

        self._id = str(body_id) if body_id is not None else uuid.uuid4().hex
        self.name = name if name is not None else self._id
        self._mass = float(mass)
        self._radius = float(radius)
        self._j2 = float(j2)
        self._category = self._parse_category(category)
        self._gravity_source = gravity_source
        self._parent_id = parent_id
        self.position = position
        self.velocity = velocity
        self.acceleration = np.zeros(3)
        self.orbit = orbit
        self.satellite = satellite
        self.atmosphere = atmosphere

    @classmethod
    def from_params(cls, params: BodyParams, **kwargs) -> 'Body':
        """
        Build a body from a :class:`BodyParams` preset.

        Keyword arguments are passed through to the constructor (state,
        id, parent, orbit, category...).
        """
        kwargs.setdefault('name', params.name)
        return cls(mass=params.mass, radius=params.radius, j2=params.j2, **kwargs)

    # ========== PROPERTY ACCESS ==========
    @property
    def id(self) -> str:
        return self._id

    @property
    def mass(self) -> float:
        """Mass [kg]"""
        return self._mass

    @property
    def radius(self) -> float:
        """Equatorial radius [m]"""
        return self._radius

    @property
    def j2(self) -> float:
        return self._j2

    @property
    def category(self) -> BodyCategory:
        return self._category

    @property
    def parent_id(self) -> Optional[str]:
        """Id of the reference body for ``orbit``; change via SolarSystem.set_parent"""
        return self._parent_id

    @property
    def position(self) -> np.ndarray:
        """Absolute position [m]"""
        return self._position

    @position.setter
    def position(self, value):
        self._position = as_vector(value, "position")

    @property
    def velocity(self) -> np.ndarray:
        """Absolute velocity [m/s]"""
        return self._velocity

    @velocity.setter
    def velocity(self, value):
        self._velocity = as_vector(value, "velocity")

    @property
    def acceleration(self) -> np.ndarray:
        """Acceleration from the last update [m/s^2]"""
        return self._acceleration

    @acceleration.setter
    def acceleration(self, value):
        self._acceleration = as_vector(value, "acceleration")

    @property
    def orbit(self) -> Optional[OrbitalElements]:
        return self._orbit

    @orbit.setter
    def orbit(self, value: Optional[OrbitalElements]):
        if value is not None and not isinstance(value, OrbitalElements):
            raise TypeError(f"orbit must be OrbitalElements or None, got {type(value)}")
        self._orbit = value

    @property
    def capabilities(self) -> Capability:
        caps = Capability.NONE
        if self.is_gravity_source:
            caps |= Capability.GRAVITY_SOURCE
        if self.is_oblate:
            caps |= Capability.OBLATE
        return caps

    @property
    def is_gravity_source(self) -> bool:
        if self._gravity_source is not None:
            return bool(self._gravity_source)
        return self._category in _DEFAULT_GRAVITY_SOURCES

    @property
    def is_oblate(self) -> bool:
        return self._j2 != 0.0

    # ========== DERIVED QUANTITIES ==========
    def gravitational_parameter(self, G: float = constants.G) -> float:
        return G * self._mass

    def momentum(self) -> np.ndarray:
        return self._mass * self._velocity

    def kinetic_energy(self) -> float:
        return 0.5 * self._mass * float(np.dot(self._velocity, self._velocity))

    def angular_momentum(self, origin=(0.0, 0.0, 0.0)) -> np.ndarray:
        """Angular momentum about ``origin`` [kg m^2/s]"""
        return np.cross(self._position - as_vector(origin, "origin"), self.momentum())

    # ========== SERIALIZATION ==========
    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self._id,
            'name': self.name,
            'category': self._category.value,
            'mass': self._mass,
            'radius': self._radius,
            'j2': self._j2,
            'parent_id': self._parent_id,
            'gravity_source': self._gravity_source,
            'position': self._position.tolist(),
            'velocity': self._velocity.tolist(),
            'acceleration': self._acceleration.tolist(),
            'orbit': self._orbit.to_dict() if self._orbit is not None else None,
            'satellite': self.satellite.to_dict() if self.satellite is not None else None,
            'atmosphere': self.atmosphere.to_dict() if self.atmosphere is not None else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Body':
        orbit = data.get('orbit')
        satellite = data.get('satellite')
        atmosphere = data.get('atmosphere')
        body = cls(
            mass=data['mass'],
            radius=data.get('radius', 0.0),
            position=data.get('position', (0.0, 0.0, 0.0)),
            velocity=data.get('velocity', (0.0, 0.0, 0.0)),
            name=data.get('name'),
            body_id=data['id'],
            j2=data.get('j2', 0.0),
            parent_id=data.get('parent_id'),
            orbit=OrbitalElements.from_dict(orbit) if orbit is not None else None,
            category=data.get('category', 'generic'),
            gravity_source=data.get('gravity_source'),
            satellite=Satellite.from_dict(satellite) if satellite is not None else None,
            atmosphere=AtmoParams.from_dict(atmosphere) if atmosphere is not None else None,
        )
        if data.get('acceleration') is not None:
            body.acceleration = data['acceleration']
        return body

    # ========== SPECIAL METHODS ==========
    def __repr__(self):
        parent = f", parent='{self._parent_id}'" if self._parent_id else ""
        return (f"Body('{self._id}', name='{self.name}', "
                f"category='{self._category.value}', mass={self._mass:.4e} kg{parent})")

    # ========== STATIC METHODS ==========
    @staticmethod
    def _parse_category(category):
        """Convert string or enum to BodyCategory enum"""
        if isinstance(category, BodyCategory):
            return category
        elif isinstance(category, str):
            type_map = {c.value: c for c in BodyCategory}
            type_map.update({
                'sun': BodyCategory.STAR,
                'dwarf_planet': BodyCategory.PLANET,
                'satellite': BodyCategory.MOON,
                'probe': BodyCategory.SPACECRAFT,
                'body': BodyCategory.GENERIC,
            })
            key = category.lower()
            if key in type_map:
                return type_map[key]
            else:
                raise ValidationError(f"Unknown body category '{category}'. "
                                      f"Use: {list(type_map.keys())}")
        else:
            raise TypeError(f"category must be BodyCategory or str, "
                            f"got {type(category)}")
