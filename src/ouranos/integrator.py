'''Orbital mechanics core for the Ouranos simulation package
NBodyIntegrator class definition'''

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Union

import numpy as np

from .config import PhysicsConfig, config
from .exceptions import BodyNotFoundError, ValidationError
from .utils import as_vector

logger = logging.getLogger(__name__)


@dataclass
class BodyState:
    """
    Snapshot of one integrated body.

    Attributes
    ----------
    id : str
    mass : float
        Mass [kg], > 0
    position, velocity, acceleration : np.ndarray
        Absolute state [m], [m/s], [m/s^2]
    """
    id: str
    mass: float
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))
    acceleration: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self):
        if not (self.mass > 0 and math.isfinite(self.mass)):
            raise ValidationError(
                f"Body '{self.id}' mass must be positive and finite, got {self.mass}")
        self.position = as_vector(self.position, "position")
        self.velocity = as_vector(self.velocity, "velocity")
        self.acceleration = as_vector(self.acceleration, "acceleration")

    def copy(self) -> 'BodyState':
        return BodyState(self.id, self.mass, self.position.copy(),
                         self.velocity.copy(), self.acceleration.copy())

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'mass': self.mass,
            'position': self.position.tolist(),
            'velocity': self.velocity.tolist(),
            'acceleration': self.acceleration.tolist(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BodyState':
        return cls(id=data['id'], mass=data['mass'],
                   position=data.get('position', (0.0, 0.0, 0.0)),
                   velocity=data.get('velocity', (0.0, 0.0, 0.0)),
                   acceleration=data.get('acceleration', (0.0, 0.0, 0.0)))


def potential_energy(masses, positions, G: float, softening: float) -> float:
    """
    Pairwise gravitational potential energy [J] consistent with the
    softened force law.

    ``U = -G m1 m2 atan(s / r) / s`` per pair, reducing to
    ``-G m1 m2 / r`` when the softening length s is zero (coincident
    pairs are then skipped).
    """
    m = np.asarray(masses, dtype=float)
    pos = np.asarray(positions, dtype=float).reshape(-1, 3)
    potential = 0.0
    for i in range(len(m) - 1):
        r = np.linalg.norm(pos[i + 1:] - pos[i], axis=1)
        gm = G * m[i] * m[i + 1:]
        if softening > 0:
            potential -= float(np.sum(gm * np.arctan2(softening, r) / softening))
        else:
            valid = r >= config.VECTOR_EPSILON
            potential -= float(np.sum(gm[valid] / r[valid]))
    return potential


@dataclass(frozen=True)
class Energy:
    """Kinetic, potential and total mechanical energy [J]."""
    kinetic: float
    potential: float

    @property
    def total(self) -> float:
        return self.kinetic + self.potential


@dataclass(frozen=True)
class CenterOfMass:
    """Barycenter position [m], velocity [m/s] and total mass [kg]."""
    position: np.ndarray
    velocity: np.ndarray
    mass: float


class NBodyIntegrator:
    """
    Direct-summation gravitational N-body integrator.

    Forces follow ``F = G m1 m2 / (r^2 + s^2)`` along the separation, with
    ``s`` the softening length, optionally scaled by the product of both
    bodies' Lorentz factors. Each pair is evaluated once and applied to
    both bodies (Newton's third law). Time stepping is classic fixed-step
    fourth-order Runge-Kutta; all bodies are committed together at the end
    of a step.

    Parameters
    ----------
    config : PhysicsConfig, optional
        G, c, softening, relativistic flag and default step

    Notes
    -----
    Bodies must be added or removed between steps. Accuracy degrades with
    large steps; nothing is raised for that.

    Examples
    --------
    >>> integrator = NBodyIntegrator(PhysicsConfig(softening=0.0))
    >>> integrator.add_body('sun', 1.989e30)
    >>> integrator.add_body('earth', 5.972e24, [1.496e11, 0, 0], [0, 29780, 0])
    >>> integrator.step(3600.0)
    """

    def __init__(self, config: Optional[PhysicsConfig] = None):
        self._config = config if config is not None else PhysicsConfig()
        self._bodies: Dict[str, BodyState] = {}
        self._time = 0.0

    # ========== CONFIGURATION ==========
    @property
    def config(self) -> PhysicsConfig:
        return self._config

    @config.setter
    def config(self, value: PhysicsConfig):
        if not isinstance(value, PhysicsConfig):
            raise TypeError(f"config must be PhysicsConfig, got {type(value)}")
        self._config = value

    def update_config(self, **changes):
        """Swap in a new configuration with ``changes`` applied."""
        self._config = self._config.updated(**changes)

    @property
    def time(self) -> float:
        """Integrated time since construction or the last set_state [s]"""
        return self._time

    # ========== REGISTRY ==========
    def add_body(self, body_id: str, mass: float, position=(0.0, 0.0, 0.0),
                 velocity=(0.0, 0.0, 0.0)):
        """
        Register a body.

        Raises
        ------
        ValidationError
            If mass <= 0, the state is not finite, or the id is taken
        """
        if body_id in self._bodies:
            raise ValidationError(f"Body '{body_id}' is already registered")
        self._bodies[body_id] = BodyState(body_id, mass, position, velocity)
        logger.debug("Integrator registered body %s", body_id)

    def update_body(self, body_id: str, mass: Optional[float] = None,
                    position=None, velocity=None):
        """Overwrite part of a registered body's state."""
        current = self._get(body_id)
        self._bodies[body_id] = BodyState(
            body_id,
            current.mass if mass is None else mass,
            current.position if position is None else position,
            current.velocity if velocity is None else velocity,
            current.acceleration,
        )

    def remove_body(self, body_id: str):
        self._get(body_id)
        del self._bodies[body_id]
        logger.debug("Integrator removed body %s", body_id)

    def clear_bodies(self):
        self._bodies.clear()

    def get_body(self, body_id: str) -> BodyState:
        """Copy of a body's state."""
        return self._get(body_id).copy()

    def has_body(self, body_id: str) -> bool:
        return body_id in self._bodies

    @property
    def body_ids(self) -> List[str]:
        return list(self._bodies)

    @property
    def body_count(self) -> int:
        return len(self._bodies)

    def _get(self, body_id: str) -> BodyState:
        try:
            return self._bodies[body_id]
        except KeyError:
            raise BodyNotFoundError(f"Integrator has no body with id '{body_id}'") from None

    # ========== FORCE MODEL ==========
    def _arrays(self):
        states = list(self._bodies.values())
        masses = np.array([s.mass for s in states])
        pos = np.array([s.position for s in states]).reshape(-1, 3)
        vel = np.array([s.velocity for s in states]).reshape(-1, 3)
        return states, masses, pos, vel

    def _lorentz_factors(self, vel: np.ndarray) -> np.ndarray:
        if not self._config.use_relativistic:
            return np.ones(len(vel))
        beta2 = np.sum(vel**2, axis=1) / self._config.c**2
        if np.any(beta2 >= 1.0):
            raise ValidationError("Body speed reaches the speed of light; "
                                  "Lorentz factor is undefined")
        return 1.0 / np.sqrt(1.0 - beta2)

    def _accelerations(self, masses: np.ndarray, pos: np.ndarray,
                       vel: np.ndarray) -> np.ndarray:
        """Acceleration of every body, shape (n, 3)."""
        n = len(masses)
        forces = np.zeros((n, 3))
        if n < 2:
            return forces
        G = self._config.G
        s2 = self._config.softening**2
        gamma = self._lorentz_factors(vel)

        # each pair once: body i against every j > i
        for i in range(n - 1):
            sep = pos[i + 1:] - pos[i]
            r2 = np.sum(sep**2, axis=1)
            r = np.sqrt(r2)
            coincident = r < config.VECTOR_EPSILON
            mag = G * masses[i] * masses[i + 1:] * gamma[i] * gamma[i + 1:]
            mag = np.divide(mag, (r2 + s2) * r, out=np.zeros_like(r),
                            where=~coincident)
            F = mag[:, None] * sep
            forces[i] += F.sum(axis=0)
            forces[i + 1:] -= F
        return forces / masses[:, None]

    def calculate_accelerations(self) -> Dict[str, np.ndarray]:
        """
        Evaluate and store accelerations for the current positions.

        Returns
        -------
        dict
            Body id to acceleration [m/s^2]
        """
        states, masses, pos, vel = self._arrays()
        acc = self._accelerations(masses, pos, vel)
        for state, a in zip(states, acc):
            state.acceleration = a.copy()
        return {s.id: s.acceleration.copy() for s in states}

    # ========== INTEGRATION ==========
    def step(self, dt: Optional[float] = None):
        """
        Advance every body by one RK4 step.

        Parameters
        ----------
        dt : float, optional
            Step size [s]; defaults to ``config.time_step``

        Raises
        ------
        ValidationError
            If dt is not finite
        """
        if dt is None:
            dt = self._config.time_step
        dt = float(dt)
        if not math.isfinite(dt):
            raise ValidationError(f"Time step must be finite, got {dt}")
        if not self._bodies:
            self._time += dt
            return

        states, m, x0, v0 = self._arrays()
        # 1-2-2-1 Runge-Kutta on (position, velocity)
        k1x, k1v = v0, self._accelerations(m, x0, v0)
        x, v = x0 + 0.5 * dt * k1x, v0 + 0.5 * dt * k1v
        k2x, k2v = v, self._accelerations(m, x, v)
        x, v = x0 + 0.5 * dt * k2x, v0 + 0.5 * dt * k2v
        k3x, k3v = v, self._accelerations(m, x, v)
        x, v = x0 + dt * k3x, v0 + dt * k3v
        k4x, k4v = v, self._accelerations(m, x, v)

        new_x = x0 + dt / 6.0 * (k1x + 2.0 * k2x + 2.0 * k3x + k4x)
        new_v = v0 + dt / 6.0 * (k1v + 2.0 * k2v + 2.0 * k3v + k4v)
        new_a = self._accelerations(m, new_x, new_v)

        # commit all bodies together
        for state, xi, vi, ai in zip(states, new_x, new_v, new_a):
            state.position = xi.copy()
            state.velocity = vi.copy()
            state.acceleration = ai.copy()
        self._time += dt

    # ========== STATE ==========
    def get_state(self) -> List[BodyState]:
        """Deterministic snapshot of every body, in registration order."""
        return [s.copy() for s in self._bodies.values()]

    def set_state(self, states: Iterable[Union[BodyState, Dict[str, Any]]],
                  time: Optional[float] = None):
        """
        Replace the whole body set.

        Every entry is validated before anything is replaced, so a bad
        snapshot leaves the integrator untouched.
        """
        new_bodies: Dict[str, BodyState] = {}
        for entry in states:
            state = (entry.copy() if isinstance(entry, BodyState)
                     else BodyState.from_dict(entry))
            if state.id in new_bodies:
                raise ValidationError(f"Duplicate body id '{state.id}' in state")
            new_bodies[state.id] = state
        self._bodies = new_bodies
        if time is not None:
            self._time = float(time)

    # ========== DIAGNOSTICS ==========
    def calculate_total_energy(self) -> Energy:
        """Kinetic plus pairwise (softened) potential energy."""
        states, m, pos, vel = self._arrays()
        kinetic = 0.5 * float(np.sum(m * np.sum(vel**2, axis=1)))
        potential = potential_energy(m, pos, self._config.G, self._config.softening)
        return Energy(kinetic=kinetic, potential=potential)

    def calculate_center_of_mass(self) -> CenterOfMass:
        states, m, pos, vel = self._arrays()
        total = float(np.sum(m))
        if total == 0.0:
            return CenterOfMass(np.zeros(3), np.zeros(3), 0.0)
        return CenterOfMass(position=(m[:, None] * pos).sum(axis=0) / total,
                            velocity=(m[:, None] * vel).sum(axis=0) / total,
                            mass=total)

    def calculate_total_momentum(self) -> np.ndarray:
        states, m, pos, vel = self._arrays()
        return (m[:, None] * vel).sum(axis=0) if len(m) else np.zeros(3)

    def to_dataframe(self):
        """
        Body table indexed by id.

        Returns
        -------
        pd.DataFrame
            Columns mass, x, y, z, vx, vy, vz, ax, ay, az
        """
        import pandas as pd

        columns = ['mass', 'x', 'y', 'z', 'vx', 'vy', 'vz', 'ax', 'ay', 'az']
        rows = [[s.mass, *s.position, *s.velocity, *s.acceleration]
                for s in self._bodies.values()]
        df = pd.DataFrame(rows, columns=columns, index=list(self._bodies))
        df.index.name = 'id'
        return df

    # ========== SPECIAL METHODS ==========
    def __len__(self):
        return len(self._bodies)

    def __contains__(self, body_id):
        return body_id in self._bodies

    def __repr__(self):
        return (f"NBodyIntegrator(bodies={len(self._bodies)}, "
                f"softening={self._config.softening}, "
                f"relativistic={self._config.use_relativistic})")
