'''Orbital mechanics core for the Ouranos simulation package
Analytic Keplerian propagation: Kepler's equation, anomaly conversions,
state-vector/element inversion and orbit geometry'''

import logging
import math
from typing import Tuple

import numpy as np

from . import constants
from .config import config
from .coordinates import TimeLike, to_seconds
from .exceptions import KeplerConvergenceError, UnboundOrbitError, ValidationError
from .orbital_elements import OrbitalElements
from .utils import as_vector, wrap_angle

logger = logging.getLogger(__name__)


# ========== KEPLER'S EQUATION ==========
def solve_kepler(M: float, e: float) -> float:
    """
    Solve Kepler's equation ``E - e sin(E) = M`` for the eccentric anomaly.

    Newton-Raphson starting from ``E0 = M``, running at most
    ``config.KEPLER_ITERATIONS`` iterations and stopping early once the
    correction drops below ``config.KEPLER_TOLERANCE``.

    Parameters
    ----------
    M : float
        Mean anomaly [rad]
    e : float
        Eccentricity, 0 <= e < 1

    Returns
    -------
    float
        Eccentric anomaly [rad]

    Raises
    ------
    UnboundOrbitError
        If e >= 1 (parabolic or hyperbolic orbit)
    ValidationError
        If e < 0 or an input is not finite
    KeplerConvergenceError
        If the iteration produced a non-finite value

    Notes
    -----
    The default iteration count is ample for e < 0.9. Accuracy degrades
    silently for very eccentric orbits; raise ``KEPLER_ITERATIONS`` via
    :func:`ouranos.temp_config` if needed.
    """
    if not (math.isfinite(M) and math.isfinite(e)):
        raise ValidationError(f"Kepler solver inputs must be finite, got M={M}, e={e}")
    if e < 0:
        raise ValidationError(f"Eccentricity must be non-negative, got e={e}")
    if e >= 1:
        raise UnboundOrbitError(
            f"Kepler's equation solver requires e < 1, got e={e}")

    E = M
    for _ in range(config.KEPLER_ITERATIONS):
        delta = (E - e * math.sin(E) - M) / (1.0 - e * math.cos(E))
        E -= delta
        if abs(delta) < config.KEPLER_TOLERANCE:
            break
    if not math.isfinite(E):
        raise KeplerConvergenceError(
            f"Kepler solver diverged for M={M}, e={e}")
    return E


def true_anomaly_from_eccentric(E: float, e: float) -> float:
    """True anomaly [rad] for an eccentric anomaly, same revolution."""
    return 2.0 * math.atan2(math.sqrt(1.0 + e) * math.sin(E / 2.0),
                            math.sqrt(1.0 - e) * math.cos(E / 2.0))


def eccentric_from_true_anomaly(nu: float, e: float) -> float:
    """Eccentric anomaly [rad] for a true anomaly, same revolution."""
    return 2.0 * math.atan2(math.sqrt(1.0 - e) * math.sin(nu / 2.0),
                            math.sqrt(1.0 + e) * math.cos(nu / 2.0))


def mean_from_eccentric(E: float, e: float) -> float:
    return E - e * math.sin(E)


# ========== KEPLER'S THIRD LAW ==========
def orbital_period(a: float, central_mass: float, G: float = constants.G) -> float:
    """Period [s] of an orbit with semi-major axis a [m] about central_mass [kg]."""
    if a <= 0 or central_mass <= 0:
        raise ValidationError(
            f"Semi-major axis and central mass must be positive, "
            f"got a={a}, M={central_mass}")
    return 2.0 * math.pi * math.sqrt(a**3 / (G * central_mass))


def semi_major_axis_from_period(period: float, central_mass: float,
                                G: float = constants.G) -> float:
    """Semi-major axis [m] for an orbit of the given period [s]."""
    if period <= 0 or central_mass <= 0:
        raise ValidationError(
            f"Period and central mass must be positive, "
            f"got T={period}, M={central_mass}")
    return (G * central_mass * period**2 / (4.0 * math.pi**2)) ** (1.0 / 3.0)


# ========== STATE VECTORS <-> ELEMENTS ==========
def eccentricity_vector(position, velocity, mu: float) -> np.ndarray:
    """Eccentricity vector ``(v x h)/mu - r_hat`` pointing at periapsis."""
    rvec = as_vector(position, "position")
    vvec = as_vector(velocity, "velocity")
    hvec = np.cross(rvec, vvec)
    return np.cross(vvec, hvec) / mu - rvec / np.linalg.norm(rvec)


def _perifocal_dcm(raan: float, i: float, w: float) -> np.ndarray:
    """Direction cosine matrix Rz(raan) Rx(i) Rz(w), perifocal to inertial."""
    # rotation about z-axis by RAAN
    R3_raan = np.array([
        [np.cos(raan), -np.sin(raan), 0],
        [np.sin(raan),  np.cos(raan), 0],
        [0,             0,            1]
    ])
    # rotation about x-axis by inclination
    R1_i = np.array([
        [1,  0,          0         ],
        [0,  np.cos(i), -np.sin(i) ],
        [0,  np.sin(i),  np.cos(i) ]
    ])
    # rotation about z-axis by argument of periapsis
    R3_w = np.array([
        [np.cos(w), -np.sin(w), 0],
        [np.sin(w),  np.cos(w), 0],
        [0,          0,         1]
    ])
    return R3_raan @ R1_i @ R3_w


def _snap_angle(angle: float) -> float:
    """Wrap into [0, 2pi); angles within SNAP_TO_ZERO_THRESHOLD of 0 become 0."""
    angle = wrap_angle(angle)
    if min(angle, 2.0 * math.pi - angle) < config.SNAP_TO_ZERO_THRESHOLD:
        return 0.0
    return angle


def orbital_elements_from_state_vectors(position, velocity, central_mass: float,
                                        epoch: TimeLike = 0.0,
                                        G: float = constants.G) -> OrbitalElements:
    """
    Osculating Keplerian elements for a relative state vector.

    Adapts the node/periapsis construction of Flores & Fantino (Advances in
    Space Research v.75, pp.4910), replacing the true anomaly with the mean
    anomaly at ``epoch``. Near-circular and near-equatorial states are
    snapped (``config.SNAP_TO_CIRCULAR``, ``config.SNAP_TO_EQUATORIAL``) so
    the undefined angles come out as zero and the round trip through
    :class:`KeplerianOrbit` reproduces the input. Node and periapsis angles
    within ``config.SNAP_TO_ZERO_THRESHOLD`` of zero are set to zero.

    Parameters
    ----------
    position, velocity : array-like
        State relative to the central body [m], [m/s]
    central_mass : float
        Central body mass [kg]
    epoch : datetime or float, optional
        Time the state refers to; becomes the epoch of the elements
    G : float, optional
        Gravitational constant

    Returns
    -------
    OrbitalElements

    Raises
    ------
    UnboundOrbitError
        If the specific orbital energy is non-negative
    ValidationError
        For a zero position, zero angular momentum (rectilinear motion)
        or a non-positive central mass
    """
    if central_mass <= 0:
        raise ValidationError(f"Central mass must be positive, got {central_mass}")
    rvec = as_vector(position, "position")
    vvec = as_vector(velocity, "velocity")
    mu = G * central_mass

    r = np.linalg.norm(rvec)
    if r < config.VECTOR_EPSILON:
        raise ValidationError("Cannot derive orbital elements at zero separation")
    hvec = np.cross(rvec, vvec)
    h = np.linalg.norm(hvec)
    if h < config.VECTOR_EPSILON:
        raise ValidationError(
            "Cannot derive orbital elements for rectilinear motion (h = 0)")

    energy = np.dot(vvec, vvec) / 2.0 - mu / r
    if energy >= 0:
        raise UnboundOrbitError(
            f"State vectors describe an unbound orbit (energy {energy:.6e} J/kg)")
    # find semimajor axis from energy equation
    a = -mu / (2.0 * energy)

    # calculate inclination
    i = math.atan2(math.hypot(hvec[0], hvec[1]), hvec[2])
    # find longitude of ascending node, undefined for equatorial orbits
    if math.hypot(hvec[0], hvec[1]) / h < config.SNAP_TO_EQUATORIAL:
        raan = 0.0
        i = 0.0 if hvec[2] > 0 else math.pi
    else:
        raan = math.atan2(hvec[0], -hvec[1])
    # line of nodes and an intermediate in-plane vector
    nhat = np.array([math.cos(raan), math.sin(raan), 0.0])
    bhat = np.cross(hvec / h, nhat)

    evec = np.cross(vvec, hvec) / mu - rvec / r
    e = float(np.linalg.norm(evec))
    if e >= 1:
        raise UnboundOrbitError(f"State vectors describe an unbound orbit (e={e})")
    # argument of periapsis, undefined for circular orbits
    if e < config.SNAP_TO_CIRCULAR:
        e = 0.0
        w = 0.0
    else:
        w = math.atan2(np.dot(evec, bhat), np.dot(evec, nhat))
    # argument of latitude minus periapsis gives the true anomaly
    u = math.atan2(np.dot(rvec, bhat), np.dot(rvec, nhat))
    nu = u - w
    E = eccentric_from_true_anomaly(nu, e)
    M0 = wrap_angle(mean_from_eccentric(E, e))

    return OrbitalElements([a, e, i, _snap_angle(raan), _snap_angle(w), M0],
                           epoch=epoch, central_mass=central_mass, G=G)


# ========== PROPAGATOR ==========
class KeplerianOrbit:
    """
    Closed-form two-body propagator for an elliptic orbit.

    Positions and velocities are relative to the central body, in the
    inertial frame obtained by rotating the perifocal frame through
    ``Rz(raan) Rx(i) Rz(w)``.

    Parameters
    ----------
    elements : OrbitalElements
        Elements of the orbit (0 <= e < 1 by construction)

    Examples
    --------
    >>> from ouranos import KeplerianOrbit, OrbitalElements
    >>> orbit = KeplerianOrbit(OrbitalElements(a=1.496e11, e=0.0, i=0.0,
    ...                                        raan=0.0, w=0.0, M0=0.0))
    >>> r, v = orbit.state_at(86400.0)
    """

    def __init__(self, elements: OrbitalElements):
        if not isinstance(elements, OrbitalElements):
            raise TypeError(f"elements must be OrbitalElements, got {type(elements)}")
        self._elements = elements
        self._dcm = _perifocal_dcm(elements.raan, elements.i, elements.w)
        self._dcm.flags.writeable = False

    @property
    def elements(self) -> OrbitalElements:
        return self._elements

    # ========== ANOMALIES ==========
    def mean_anomaly_at(self, t: TimeLike) -> float:
        """Mean anomaly M0 + 2pi (t - epoch)/T, wrapped into [0, 2pi)."""
        el = self._elements
        dt = to_seconds(t) - el.epoch
        return wrap_angle(el.M0 + 2.0 * math.pi * dt / el.period)

    def eccentric_anomaly_at(self, t: TimeLike) -> float:
        return solve_kepler(self.mean_anomaly_at(t), self._elements.e)

    def true_anomaly_at(self, t: TimeLike) -> float:
        """True anomaly [rad] in [0, 2pi)."""
        E = self.eccentric_anomaly_at(t)
        return wrap_angle(true_anomaly_from_eccentric(E, self._elements.e))

    # ========== STATE ==========
    def _perifocal_state(self, E: float) -> Tuple[np.ndarray, np.ndarray]:
        a, e = self._elements.a, self._elements.e
        cos_E, sin_E = math.cos(E), math.sin(E)
        root = math.sqrt(1.0 - e * e)
        rvec = np.array([a * (cos_E - e), a * root * sin_E, 0.0])
        # rate of change of E is n / (1 - e cos E)
        E_dot = self._elements.mean_motion() / (1.0 - e * cos_E)
        vvec = np.array([-a * sin_E * E_dot, a * root * cos_E * E_dot, 0.0])
        return rvec, vvec

    def state_at(self, t: TimeLike) -> Tuple[np.ndarray, np.ndarray]:
        """
        Position [m] and velocity [m/s] relative to the central body at t.

        Parameters
        ----------
        t : datetime or float
            Absolute time (datetime or seconds since J2000)
        """
        rvec, vvec = self._perifocal_state(self.eccentric_anomaly_at(t))
        return self._dcm @ rvec, self._dcm @ vvec

    def position_at(self, t: TimeLike) -> np.ndarray:
        return self.state_at(t)[0]

    def velocity_at(self, t: TimeLike) -> np.ndarray:
        return self.state_at(t)[1]

    def radius_at(self, t: TimeLike) -> float:
        """Orbital radius a (1 - e cos E) [m]."""
        E = self.eccentric_anomaly_at(t)
        return self._elements.a * (1.0 - self._elements.e * math.cos(E))

    # ========== GEOMETRY ==========
    def apsides(self) -> Tuple[float, float]:
        """Periapsis and apoapsis distances [m]."""
        return self._elements.periapsis(), self._elements.apoapsis()

    def velocity_at_distance(self, r: float) -> float:
        """
        Orbital speed at distance r from vis-viva, sqrt(mu (2/r - 1/a)).

        Raises
        ------
        ValidationError
            If r lies outside [periapsis, apoapsis]
        """
        rp, ra = self.apsides()
        tol = config.EQUALITY_RTOL * ra
        if r < rp - tol or r > ra + tol:
            raise ValidationError(
                f"Distance {r} m is outside the orbit [{rp}, {ra}] m")
        el = self._elements
        return math.sqrt(max(el.mu * (2.0 / r - 1.0 / el.a), 0.0))

    def time_of_flight(self, nu1: float, nu2: float) -> float:
        """
        Time [s] to travel forward from true anomaly nu1 to nu2.

        The result lies in [0, T): passing periapsis is accounted for by
        wrapping the mean anomaly difference.
        """
        e = self._elements.e
        M1 = mean_from_eccentric(eccentric_from_true_anomaly(nu1, e), e)
        M2 = mean_from_eccentric(eccentric_from_true_anomaly(nu2, e), e)
        return wrap_angle(M2 - M1) / self._elements.mean_motion()

    def __repr__(self):
        return f"KeplerianOrbit({self._elements!r})"
