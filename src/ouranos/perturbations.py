'''Orbital mechanics core for the Ouranos simulation package
PerturbationModel class definition and supporting dataclasses'''

import logging
import math
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Optional

import numpy as np

from . import constants, vector
from .config import PerturbationConfig, config
from .exceptions import BodyNotFoundError, ValidationError
from .orbital_elements import OrbitalElements
from .satellite import Satellite
from .utils import as_vector

logger = logging.getLogger(__name__)

"""
Core dataclasses for perturbation model inputs and outputs.
"""
@dataclass(frozen=True)
class AtmoParams:
    """
    Immutable parameters for exponential atmosphere model.

    The density profile follows: rho(r) = rho0 * exp(-(r - r0)/H)

    Attributes
    ----------
    rho0 : float
        Reference density at the reference radius [kg/m^3]
    H : float
        Scale height [m]
    r0 : float
        Reference radius [m], normally the body's equatorial radius.
        Below it the drag term is zero
    rotation_rate : float, optional
        Rotation rate of the atmosphere about the central body's +z axis
        [rad/s]. Drag acts on velocity relative to the co-rotating air.
        Default: 0.0 (non-rotating)

    Notes
    -----
    This is a simple exponential model suitable for preliminary analysis.
    """
    rho0: float
    H: float
    r0: float
    rotation_rate: float = 0.0

    def __post_init__(self):
        """Validate parameters."""
        if not self.rho0 > 0:
            raise ValidationError(f"Reference density must be positive, got {self.rho0}")
        if not self.H > 0:
            raise ValidationError(f"Scale height must be positive, got {self.H}")
        if not self.r0 > 0:
            raise ValidationError(f"Reference radius must be positive, got {self.r0}")
        if not math.isfinite(self.rotation_rate):
            raise ValidationError(f"Rotation rate must be finite, got {self.rotation_rate}")

    def density(self, r: float) -> float:
        """Density [kg/m^3] at distance r [m] from the body's center."""
        return self.rho0 * math.exp(-(r - self.r0) / self.H)

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AtmoParams':
        return cls(**data)


@dataclass
class PerturbingBody:
    """
    Registry entry for a body whose gravity perturbs others.

    A projection of an orchestrator body (id, mass, state, shape) refreshed
    every time the source body moves.

    Attributes
    ----------
    id : str
    name : str
    mass : float
        Mass [kg], > 0
    position, velocity : np.ndarray
        Absolute state [m], [m/s]
    j2 : float
        Oblateness coefficient
    radius : float
        Equatorial radius [m]
    """
    id: str
    name: str
    mass: float
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))
    j2: float = 0.0
    radius: float = 0.0

    def __post_init__(self):
        if not self.mass > 0:
            raise ValidationError(f"Perturbing body mass must be positive, got {self.mass}")
        if self.radius < 0:
            raise ValidationError(f"Radius must be non-negative, got {self.radius}")
        self.position = as_vector(self.position, "position")
        self.velocity = as_vector(self.velocity, "velocity")

    @classmethod
    def from_body(cls, body) -> 'PerturbingBody':
        """Snapshot any object exposing id, name, mass, position, velocity, j2, radius."""
        return cls(id=body.id, name=body.name, mass=body.mass,
                   position=body.position, velocity=body.velocity,
                   j2=body.j2, radius=body.radius)


@dataclass(frozen=True)
class SecularRates:
    """
    Orbit-averaged rates of change of the Keplerian elements [per second].

    Angle rates are rad/s. Only the node and periapsis precess under the
    J2 and circular-coplanar third-body models, the rest stay zero.
    """
    da_dt: float = 0.0
    de_dt: float = 0.0
    di_dt: float = 0.0
    draan_dt: float = 0.0
    dw_dt: float = 0.0
    dM_dt: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


class PerturbationModel:
    """
    Accelerations beyond the two-body point-mass term.

    Third-body gravity, J2 oblateness, first-order Schwarzschild
    precession, exponential-atmosphere drag and solar radiation pressure,
    each gated by its flag in :class:`~ouranos.config.PerturbationConfig`.
    Degenerate geometry (separations below ``config.MIN_SEPARATION``,
    negligible speeds) yields the zero vector rather than an error.

    Parameters
    ----------
    config : PerturbationConfig, optional
        Physical constants and enable flags. Defaults to
        ``PerturbationConfig()`` (third body and J2 on)

    Examples
    --------
    >>> model = PerturbationModel()
    >>> model.add_perturbing_body(PerturbingBody('moon', 'Moon', 7.342e22,
    ...                                          position=[3.844e8, 0, 0]))
    >>> a = model.calculate_total_perturbation([7e6, 0, 0], [0, 7.5e3, 0], earth)
    """

    def __init__(self, config: Optional[PerturbationConfig] = None):
        self._config = config if config is not None else PerturbationConfig()
        self._bodies: Dict[str, PerturbingBody] = {}

    # ========== CONFIGURATION ==========
    @property
    def config(self) -> PerturbationConfig:
        return self._config

    @config.setter
    def config(self, value: PerturbationConfig):
        if not isinstance(value, PerturbationConfig):
            raise TypeError(f"config must be PerturbationConfig, got {type(value)}")
        self._config = value

    def update_config(self, **changes):
        """Swap in a new configuration with ``changes`` applied."""
        self._config = self._config.updated(**changes)

    # ========== REGISTRY ==========
    def add_perturbing_body(self, body: PerturbingBody):
        """
        Register a perturbing body.

        Raises
        ------
        ValidationError
            If a body with the same id is already registered
        """
        if not isinstance(body, PerturbingBody):
            body = PerturbingBody.from_body(body)
        if body.id in self._bodies:
            raise ValidationError(f"Perturbing body '{body.id}' is already registered")
        self._bodies[body.id] = body
        logger.debug("Registered perturbing body %s", body.id)

    def update_perturbing_body(self, body_id: str, **changes):
        """
        Refresh fields (position, velocity, mass, j2, radius) of an entry.

        Raises
        ------
        BodyNotFoundError
            If no perturbing body has this id
        """
        entry = self.get_perturbing_body(body_id)
        unknown = set(changes) - {'name', 'mass', 'position', 'velocity', 'j2', 'radius'}
        if unknown:
            raise ValueError(f"Cannot update perturbing body fields {sorted(unknown)}")
        if 'mass' in changes and not changes['mass'] > 0:
            raise ValidationError(f"Perturbing body mass must be positive, got {changes['mass']}")
        for key, value in changes.items():
            if key in ('position', 'velocity'):
                value = as_vector(value, key)
            setattr(entry, key, value)

    def remove_perturbing_body(self, body_id: str):
        if body_id not in self._bodies:
            raise BodyNotFoundError(f"No perturbing body with id '{body_id}'")
        del self._bodies[body_id]
        logger.debug("Removed perturbing body %s", body_id)

    def clear_perturbing_bodies(self):
        self._bodies.clear()

    def get_perturbing_body(self, body_id: str) -> PerturbingBody:
        try:
            return self._bodies[body_id]
        except KeyError:
            raise BodyNotFoundError(f"No perturbing body with id '{body_id}'") from None

    def has_perturbing_body(self, body_id: str) -> bool:
        return body_id in self._bodies

    @property
    def perturbing_bodies(self) -> List[PerturbingBody]:
        """Registered entries in registration order"""
        return list(self._bodies.values())

    @property
    def perturbing_body_ids(self) -> List[str]:
        return list(self._bodies)

    # ========== INDIVIDUAL TERMS ==========
    def calculate_third_body_perturbation(self, position, central_position,
                                          perturber) -> np.ndarray:
        """
        Differential gravity of a third body on an orbit about a central body.

        ``a = G m (u_bp / d^2 - u_cp / D^2)`` with ``u_bp, d`` the unit vector
        and distance from the body to the perturber and ``u_cp, D`` the same
        from the central body to the perturber (direct minus indirect term).

        Parameters
        ----------
        position, central_position : array-like
            Absolute positions of the body and its central body [m]
        perturber : PerturbingBody
            Anything with ``mass`` and ``position``

        Returns
        -------
        np.ndarray
            Acceleration [m/s^2]; zero when any separation is below
            ``config.MIN_SEPARATION``
        """
        pos = as_vector(position, "position")
        central = as_vector(central_position, "central_position")
        pert = as_vector(perturber.position, "perturber position")

        r_bp = pert - pos
        r_cp = pert - central
        d = np.linalg.norm(r_bp)
        D = np.linalg.norm(r_cp)
        if (d < config.MIN_SEPARATION or D < config.MIN_SEPARATION
                or vector.distance(pos, central) < config.MIN_SEPARATION):
            return np.zeros(3)
        gm = self._config.G * perturber.mass
        return gm * (r_bp / d**3 - r_cp / D**3)

    def calculate_j2_perturbation(self, rel_position, central) -> np.ndarray:
        """
        Oblateness acceleration of the central body's J2 zonal harmonic.

        Parameters
        ----------
        rel_position : array-like
            Position relative to the central body, in its equatorial frame [m]
        central : Body or PerturbingBody
            Anything with ``mass``, ``radius`` and ``j2``

        Returns
        -------
        np.ndarray
            Acceleration [m/s^2]; exactly zero when J2 is zero or the term
            is disabled
        """
        j2 = getattr(central, 'j2', 0.0) or 0.0
        if not self._config.use_non_spherical or j2 == 0.0:
            return np.zeros(3)
        x, y, z = as_vector(rel_position, "rel_position")
        r = math.sqrt(x * x + y * y + z * z)
        if r < config.MIN_SEPARATION:
            return np.zeros(3)
        mu = self._config.G * central.mass
        R = central.radius
        # Common factor: (3/2) * J2 * mu * R^2 / r^5
        factor = 1.5 * j2 * mu * R**2 / r**5
        z2_r2 = z**2 / r**2
        return factor * np.array([x * (5.0 * z2_r2 - 1.0),
                                  y * (5.0 * z2_r2 - 1.0),
                                  z * (5.0 * z2_r2 - 3.0)])

    def calculate_relativistic_perturbation(self, rel_position, rel_velocity,
                                            central_mass: float) -> np.ndarray:
        """
        First-order post-Newtonian (Schwarzschild) acceleration.

        ``a = rs / (2 r^3) [(4 mu / r - v^2) r_vec + 4 (r . v) v_vec]`` with
        ``rs = 2 G M / c^2``. Zero when the term is disabled.
        """
        if not self._config.use_relativistic:
            return np.zeros(3)
        rvec = as_vector(rel_position, "rel_position")
        vvec = as_vector(rel_velocity, "rel_velocity")
        r = np.linalg.norm(rvec)
        if r < config.MIN_SEPARATION:
            return np.zeros(3)
        mu = self._config.G * central_mass
        rs = 2.0 * mu / self._config.c**2
        v2 = np.dot(vvec, vvec)
        return rs / (2.0 * r**3) * ((4.0 * mu / r - v2) * rvec
                                    + 4.0 * np.dot(rvec, vvec) * vvec)

    def calculate_atmospheric_drag(self, rel_position, rel_velocity,
                                   atmosphere: Optional[AtmoParams],
                                   satellite: Optional[Satellite]) -> np.ndarray:
        """
        Drag in an exponential atmosphere.

        ``a = -1/2 rho(r) (Cd A / m) |v_rel| v_rel`` where ``v_rel`` is the
        velocity relative to the co-rotating atmosphere. Zero when disabled,
        when either input is missing, below the reference radius, or when
        the relative speed is negligible.
        """
        if (not self._config.use_atmospheric_drag or atmosphere is None
                or satellite is None):
            return np.zeros(3)
        rvec = as_vector(rel_position, "rel_position")
        vvec = as_vector(rel_velocity, "rel_velocity")
        r = np.linalg.norm(rvec)
        if r < atmosphere.r0:
            return np.zeros(3)
        # v_rel = v - omega x r, rotation about +z
        omega = np.array([0.0, 0.0, atmosphere.rotation_rate])
        v_rel = vvec - np.cross(omega, rvec)
        speed = np.linalg.norm(v_rel)
        if speed < 1e-6:
            return np.zeros(3)
        rho = atmosphere.density(r)
        return -0.5 * rho * satellite.ballistic_coefficient * speed * v_rel

    def calculate_solar_radiation_pressure(self, position, sun_position,
                                           satellite: Optional[Satellite]) -> np.ndarray:
        """
        Radiation pressure of a fully illuminated flat plate facing the Sun.

        4.56e-6 N/m^2 at 1 AU, inverse-square in distance, scaled by
        ``A (1 + reflectivity) / m`` and directed away from the Sun. Zero
        when disabled or when either input is missing.
        """
        if (not self._config.use_solar_radiation or sun_position is None
                or satellite is None):
            return np.zeros(3)
        d_vec = as_vector(position, "position") - as_vector(sun_position, "sun_position")
        d = vector.magnitude(d_vec)
        if d < config.MIN_SEPARATION:
            return np.zeros(3)
        pressure = constants.SOLAR_PRESSURE_AT_1AU * (self._config.au / d)**2
        accel = pressure * satellite.cross_section * (1.0 + satellite.reflectivity) / satellite.mass
        return accel * vector.normalize(d_vec)

    # ========== COMBINED ==========
    def calculate_total_perturbation(self, position, velocity, central_body,
                                     atmosphere: Optional[AtmoParams] = None,
                                     sun_position=None,
                                     satellite: Optional[Satellite] = None,
                                     exclude: Iterable[str] = ()) -> np.ndarray:
        """
        Sum of every enabled perturbation term.

        Parameters
        ----------
        position, velocity : array-like
            Absolute state of the perturbed body [m], [m/s]
        central_body : Body or PerturbingBody
            Body the orbit is referred to (needs id, mass, radius, j2,
            position, velocity)
        atmosphere : AtmoParams, optional
            Central body atmosphere; drag contributes zero without it
        sun_position : array-like, optional
            Absolute Sun position; radiation pressure contributes zero
            without it
        satellite : Satellite, optional
            Surface properties; drag and radiation pressure need it
        exclude : iterable of str, optional
            Perturbing body ids to skip, typically the body's own id

        Returns
        -------
        np.ndarray
            Acceleration [m/s^2]; the exact zero vector when every flag
            is disabled
        """
        pos = as_vector(position, "position")
        vel = as_vector(velocity, "velocity")
        central_pos = as_vector(central_body.position, "central position")
        central_vel = as_vector(central_body.velocity, "central velocity")
        rel_pos = pos - central_pos
        rel_vel = vel - central_vel

        total = np.zeros(3)
        if self._config.use_third_body:
            skip = set(exclude)
            skip.add(getattr(central_body, 'id', None))
            for perturber in self._bodies.values():
                if perturber.id in skip:
                    continue
                total += self.calculate_third_body_perturbation(pos, central_pos, perturber)
        total += self.calculate_j2_perturbation(rel_pos, central_body)
        total += self.calculate_relativistic_perturbation(rel_pos, rel_vel,
                                                          central_body.mass)
        total += self.calculate_atmospheric_drag(rel_pos, rel_vel, atmosphere, satellite)
        total += self.calculate_solar_radiation_pressure(pos, sun_position, satellite)
        return total

    # ========== SECULAR RATES ==========
    def calculate_secular_rates(self, elements: OrbitalElements, central_body,
                                perturbing_bodies: Optional[Iterable] = None) -> SecularRates:
        """
        Orbit-averaged node and periapsis drift.

        J2 contributes ``draan/dt = -3/2 n J2 (R/p)^2 cos i`` and
        ``dw/dt = 3/4 n J2 (R/p)^2 (5 cos^2 i - 1)``. Each perturber farther
        out than the orbit contributes the circular coplanar approximation
        with factor ``3/4 (G m_p / a_p^3) / n``. Diagnostic only; not part
        of the per-step propagation.

        Parameters
        ----------
        elements : OrbitalElements
            Orbit about ``central_body``
        central_body : Body or PerturbingBody
            Needs id, radius, j2 and position
        perturbing_bodies : iterable, optional
            Defaults to the registered perturbing bodies other than the
            central body

        Returns
        -------
        SecularRates
        """
        a, e, i = elements.a, elements.e, elements.i
        n = elements.mean_motion()
        p = a * (1.0 - e * e)
        cos_i, sin_i = math.cos(i), math.sin(i)

        draan = 0.0
        dw = 0.0
        j2 = getattr(central_body, 'j2', 0.0) or 0.0
        if j2 != 0.0:
            ratio = (central_body.radius / p)**2
            draan += -1.5 * n * j2 * ratio * cos_i
            dw += 0.75 * n * j2 * ratio * (5.0 * cos_i**2 - 1.0)

        if perturbing_bodies is None:
            central_id = getattr(central_body, 'id', None)
            perturbing_bodies = [b for b in self._bodies.values() if b.id != central_id]
        central_pos = as_vector(central_body.position, "central position")
        for perturber in perturbing_bodies:
            a_p = np.linalg.norm(as_vector(perturber.position, "perturber position")
                                 - central_pos)
            # only outer perturbers fit the circular coplanar model
            if a_p < config.MIN_SEPARATION or a >= a_p:
                continue
            factor = 0.75 * (self._config.G * perturber.mass / a_p**3) / n
            draan += -factor * cos_i
            dw += factor * (2.0 - 2.5 * sin_i**2)

        return SecularRates(draan_dt=draan, dw_dt=dw, dM_dt=n)

    def __repr__(self):
        return (f"PerturbationModel(bodies={len(self._bodies)}, "
                f"config={self._config!r})")
