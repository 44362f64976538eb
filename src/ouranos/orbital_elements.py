'''Orbital mechanics core for the Ouranos simulation package
OrbitalElements class definition'''

import math
from typing import Any, Dict, Optional

import numpy as np

from . import constants
from .config import config
from .coordinates import TimeLike, to_seconds
from .exceptions import UnboundOrbitError, ValidationError


class OrbitalElements:
    """
    Classical Keplerian elements of a closed (elliptic) orbit.

    Elements are stored as ``[a, e, i, raan, w, M0]`` in SI units and
    radians, relative to the central body whose mass is carried alongside.
    OrbitalElements is immutable; extract values through the properties or
    numpy indexing and build a new instance (or use :meth:`replace`) to change.

    Period, semi-major axis and central mass always satisfy Kepler's third
    law when one of them is derived: supply ``period`` without
    ``central_mass`` and the mass is derived, otherwise the period is.
    """
    _PARAMS = ('a', 'e', 'i', 'raan', 'w', 'M0')

    # ========== CONSTRUCTION ==========
    def __init__(self, elements=None, epoch: TimeLike = 0.0,
                 central_mass: Optional[float] = None,
                 period: Optional[float] = None,
                 G: float = constants.G, validate: bool = True, **kwargs):
        """
        Create orbital elements.

        Can be called in two ways:

        1. Array-based:
        OrbitalElements([1.496e11, 0.0167, 0.0, 0.0, 1.796, 0.0],
                        central_mass=1.989e30)

        2. Named parameters:
        OrbitalElements(a=1.496e11, e=0.0167, i=0.0, raan=0.0, w=1.796,
                        M0=0.0, central_mass=1.989e30)

        Parameters
        ----------
        elements : array-like, optional
            6-element array [a, e, i, raan, w, M0]
        epoch : datetime or float, optional
            Time at which the mean anomaly equals M0, as a datetime or
            seconds since J2000. Default: J2000
        central_mass : float, optional
            Mass of the central body [kg]. Derived from ``period`` when
            only the period is given, otherwise defaults to one solar mass
        period : float, optional
            Orbital period [s]. Derived from a and central_mass when omitted
        G : float, optional
            Gravitational constant [m^3 kg^-1 s^-2]
        validate : bool, optional
            Whether to validate elements (default True)
        **kwargs : dict
            Named parameters a, e, i, raan, w, M0

        Raises
        ------
        ValidationError
            Non-finite values, a <= 0, e < 0, non-positive central mass
            or period, inclination outside [0, pi]
        UnboundOrbitError
            e >= 1 (parabolic or hyperbolic)
        """
        if elements is not None:
            if kwargs:
                raise ValueError("Provide either an elements array or named "
                                 "parameters, not both")
            self.elements = np.array(elements, dtype=float).reshape(-1)
        elif kwargs:
            self.elements = self._from_named_params(kwargs)
        else:
            raise ValueError(
                "Must provide either an elements array or named parameters "
                f"{list(self._PARAMS)}"
            )
        # Ensure immutability of elements array
        self.elements.flags.writeable = False

        self._epoch = to_seconds(epoch)
        self._G = float(G)
        if not self._G > 0:
            raise ValidationError(f"Gravitational constant must be positive, got {G}")

        if validate:
            self._validate()

        a = self.elements[0]
        if central_mass is None and period is not None:
            if not period > 0:
                raise ValidationError(f"Period must be positive, got {period}")
            # Kepler's third law solved for the central mass
            central_mass = 4.0 * math.pi**2 * a**3 / (self._G * period**2)
        elif central_mass is None:
            central_mass = constants.SOLAR_MASS
        if not (central_mass > 0 and math.isfinite(central_mass)):
            raise ValidationError(f"Central mass must be positive, got {central_mass}")
        self._central_mass = float(central_mass)

        if period is None:
            period = 2.0 * math.pi * math.sqrt(a**3 / (self._G * self._central_mass))
        if not (period > 0 and math.isfinite(period)):
            raise ValidationError(f"Period must be positive, got {period}")
        self._period = float(period)

    # ========== VALIDATION ==========
    def _validate(self):
        """Check elements describe a closed orbit"""
        if len(self.elements) != 6:
            raise ValidationError("Orbital elements must be 6-element vector")
        if not np.all(np.isfinite(self.elements)):
            raise ValidationError("Elements contain NaN or Inf")
        a, e, i, raan, w, M0 = self.elements
        if a <= 0:
            raise ValidationError(f"Semi-major axis must be positive, got a={a}")
        if e < 0:
            raise ValidationError(f"Eccentricity must be non-negative, got e={e}")
        if e >= 1:
            raise UnboundOrbitError(
                f"Eccentricity e={e} describes an unbound orbit; the Keplerian "
                f"propagator requires 0 <= e < 1")
        if i < 0 or i > np.pi:
            raise ValidationError(f"Inclination must lie in [0, pi], got i={i}")

    @classmethod
    def _from_named_params(cls, kwargs):
        missing = [k for k in cls._PARAMS if k not in kwargs]
        unknown = [k for k in kwargs if k not in cls._PARAMS]
        if missing or unknown:
            raise ValueError(
                f"Could not build Keplerian elements from parameters: "
                f"{list(kwargs.keys())}\n"
                f"Required: {list(cls._PARAMS)}"
            )
        return np.array([kwargs[k] for k in cls._PARAMS], dtype=float)

    # ========== FACTORY METHODS ==========
    @classmethod
    def from_numpy(cls, array, epoch: TimeLike = 0.0, central_mass=None,
                   G: float = constants.G, validate: bool = True):
        """
        Create list of OrbitalElements from NumPy array.

        Parameters
        ----------
        array : np.ndarray
            Array of shape (n_orbits, 6)

        Returns
        -------
        list of OrbitalElements
        """
        array = np.asarray(array, dtype=float)
        if array.ndim != 2 or array.shape[1] != 6:
            raise ValueError(f"Array must have shape (n, 6), got {array.shape}")
        return [cls(row, epoch=epoch, central_mass=central_mass, G=G,
                    validate=validate) for row in array]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'OrbitalElements':
        """Rebuild elements from :meth:`to_dict` output."""
        params = {k: data[k] for k in cls._PARAMS}
        return cls(epoch=data.get('epoch', 0.0),
                   central_mass=data.get('central_mass'),
                   period=data.get('period'),
                   G=data.get('G', constants.G),
                   **params)

    def to_dict(self) -> Dict[str, Any]:
        data = {k: float(v) for k, v in zip(self._PARAMS, self.elements)}
        data.update(epoch=self._epoch, period=self._period,
                    central_mass=self._central_mass, G=self._G)
        return data

    # ========== PROPERTY ACCESS ==========
    @property
    def a(self) -> float:
        """Semi-major axis [m]"""
        return float(self.elements[0])

    @property
    def e(self) -> float:
        """Eccentricity"""
        return float(self.elements[1])

    @property
    def i(self) -> float:
        """Inclination [rad]"""
        return float(self.elements[2])

    @property
    def raan(self) -> float:
        """Longitude of ascending node [rad]"""
        return float(self.elements[3])

    @property
    def w(self) -> float:
        """Argument of periapsis [rad]"""
        return float(self.elements[4])

    @property
    def M0(self) -> float:
        """Mean anomaly at epoch [rad]"""
        return float(self.elements[5])

    @property
    def epoch(self) -> float:
        """Epoch [s since J2000]"""
        return self._epoch

    @property
    def central_mass(self) -> float:
        """Central body mass [kg]"""
        return self._central_mass

    @property
    def G(self) -> float:
        return self._G

    @property
    def mu(self) -> float:
        """Gravitational parameter G*M [m^3/s^2]"""
        return self._G * self._central_mass

    @property
    def period(self) -> float:
        """Orbital period [s]"""
        return self._period

    # ========== ORBITAL PROPERTIES ==========
    def mean_motion(self) -> float:
        """Mean motion 2pi/T [rad/s]"""
        return 2.0 * math.pi / self._period

    def semi_latus_rectum(self) -> float:
        return self.a * (1.0 - self.e**2)

    def periapsis(self) -> float:
        """Periapsis distance [m]"""
        return self.a * (1.0 - self.e)

    def apoapsis(self) -> float:
        """Apoapsis distance [m]"""
        return self.a * (1.0 + self.e)

    def specific_energy(self) -> float:
        """Specific orbital energy -mu/2a [J/kg]"""
        return -self.mu / (2.0 * self.a)

    def specific_angular_momentum(self) -> float:
        """Specific angular momentum magnitude sqrt(mu p) [m^2/s]"""
        return math.sqrt(self.mu * self.semi_latus_rectum())

    # ========== UTILITY METHODS ==========
    def copy(self) -> 'OrbitalElements':
        """Create a deep copy of the orbital elements"""
        return OrbitalElements(self.elements.copy(), epoch=self._epoch,
                               central_mass=self._central_mass,
                               period=self._period, G=self._G, validate=False)

    def replace(self, **changes) -> 'OrbitalElements':
        """
        Return new elements with some values changed.

        Changing a, central_mass or G re-derives the period unless a
        period is passed explicitly.
        """
        data = self.to_dict()
        if ({'a', 'central_mass', 'G'} & set(changes)) and 'period' not in changes:
            data.pop('period')
        unknown = set(changes) - set(data) - {'period'}
        if unknown:
            raise ValueError(f"Unknown OrbitalElements fields: {sorted(unknown)}")
        data.update(changes)
        return OrbitalElements.from_dict(data)

    # ========== BATCH OPERATIONS ==========
    class Batch:
        """
        Batch operations on collections of OrbitalElements.
        """
        @staticmethod
        def periods(orbits):
            """Get orbital periods for multiple orbits"""
            return np.array([o.period for o in orbits])

        @staticmethod
        def to_numpy(orbits):
            """
            Convert list of OrbitalElements to NumPy array.

            Returns
            -------
            np.ndarray
                Array of shape (n_orbits, 6)
            """
            if not orbits:
                return np.empty((0, 6))
            return np.array([o.elements for o in orbits])

        @staticmethod
        def to_dataframe(orbits, index=None):
            """
            Convert list of OrbitalElements to pandas DataFrame.

            Parameters
            ----------
            orbits : list of OrbitalElements
            index : array-like, optional
                Index for the DataFrame (e.g., body ids).
                If None, uses integer index.

            Returns
            -------
            pd.DataFrame
                Columns a, e, i, raan, w, M0, epoch, period, central_mass
            """
            import pandas as pd

            columns = list(OrbitalElements._PARAMS) + ['epoch', 'period', 'central_mass']
            if not orbits:
                return pd.DataFrame(columns=columns)
            if index is not None and len(index) != len(orbits):
                raise ValueError(
                    f"Index length ({len(index)}) must match "
                    f"number of orbits ({len(orbits)})"
                )
            rows = [list(o.elements) + [o.epoch, o.period, o.central_mass]
                    for o in orbits]
            return pd.DataFrame(rows, columns=columns, index=index)

    # ========== SPECIAL METHODS ==========
    def __len__(self):
        return 6

    def __getitem__(self, key):
        return self.elements[key]

    def __iter__(self):
        return iter(self.elements)

    def __repr__(self):
        return (f"OrbitalElements({self.elements.tolist()}, epoch={self._epoch}, "
                f"central_mass={self._central_mass:.6e})")

    def __str__(self):
        a, e, i, raan, w, M0 = self.elements
        return (f"Keplerian Elements:\n"
                f"  a     = {a:16.6e} m\n"
                f"  e     = {e:16.8f}\n"
                f"  i     = {np.degrees(i):16.6f}°\n"
                f"  RAAN  = {np.degrees(raan):16.6f}°\n"
                f"  ω     = {np.degrees(w):16.6f}°\n"
                f"  M0    = {np.degrees(M0):16.6f}°\n"
                f"  T     = {self._period / constants.SECONDS_PER_DAY:16.6f} d")

    def __eq__(self, other):
        if not isinstance(other, OrbitalElements):
            return False
        return (np.allclose(self.elements, other.elements,
                            rtol=config.EQUALITY_RTOL, atol=config.EQUALITY_ATOL)
                and np.isclose(self._epoch, other._epoch,
                               rtol=config.EQUALITY_RTOL, atol=config.EQUALITY_ATOL)
                and np.isclose(self._central_mass, other._central_mass,
                               rtol=config.EQUALITY_RTOL, atol=config.EQUALITY_ATOL))

    def __hash__(self):
        # angles only; a and mass span too many magnitudes to round safely
        rounded = tuple(round(x, config.HASH_DECIMALS) for x in self.elements[1:])
        return hash(rounded)
