'''Orbital mechanics core for the Ouranos simulation package
SolarSystem orchestrator class definition'''

import json
import logging
import math
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Union

import numpy as np

from .body import Body, BodyCategory
from .config import CoordinateConfig, PerturbationConfig, PhysicsConfig
from .coordinates import CoordinateTransform, TimeLike, to_datetime, to_seconds
from .exceptions import (BodyNotFoundError, RegistryDesyncError,
                         UnboundOrbitError, ValidationError)
from .integrator import BodyState, CenterOfMass, Energy, NBodyIntegrator, potential_energy
from .kepler import KeplerianOrbit, orbital_elements_from_state_vectors
from .perturbations import PerturbationModel, PerturbingBody
from .utils import as_vector

logger = logging.getLogger(__name__)


# define an enumerated list of propagation modes
class PropagationMode(Enum):
    NBODY = 'nbody'             # direct RK4 integration of all bodies
    KEPLERIAN = 'keplerian'     # analytic orbits plus perturbations


class ReferenceFrame(Enum):
    INERTIAL = 'inertial'
    BODY_CENTERED = 'body-centered'


class SolarSystem:
    """
    Simulation orchestrator.

    Owns the body store, advances simulated time and propagates bodies
    either by direct N-body integration or by analytic Keplerian orbits
    corrected with perturbation accelerations. The parent/child hierarchy
    is rebuilt from each body's ``parent_id`` after every change.

    Every body is mirrored into the :class:`NBodyIntegrator`; gravity
    sources and oblate bodies are also mirrored into the
    :class:`PerturbationModel`. Adds and removes touch all registries or
    none of them.

    Parameters
    ----------
    physics : PhysicsConfig, optional
        N-body force model configuration
    perturbation_config : PerturbationConfig, optional
        Perturbation constants and enable flags
    coordinate_config : CoordinateConfig, optional
        Epoch, obliquity and AU; the epoch is the default start time
    time : datetime or float, optional
        Start time (datetime or seconds since J2000). Defaults to the
        coordinate epoch
    time_scale : float, optional
        Simulated seconds per real second, >= 0. Default: 1.0
    mode : PropagationMode or str, optional
        'keplerian' (default) or 'nbody'
    use_perturbations : bool, optional
        Apply perturbations in Keplerian mode. Default: True
    paused : bool, optional
    bodies : iterable of Body, optional
        Bodies added at construction, in order
    name : str, optional

    Examples
    --------
    >>> system = SolarSystem(physics=PhysicsConfig(softening=0.0), mode='nbody')
    >>> system.add_body(Body(1.989e30, body_id='sun', category='star'))
    >>> system.update(3600.0)
    """

    # ========== CONSTRUCTION ==========
    def __init__(self, physics: Optional[PhysicsConfig] = None,
                 perturbation_config: Optional[PerturbationConfig] = None,
                 coordinate_config: Optional[CoordinateConfig] = None,
                 time: Optional[TimeLike] = None, time_scale: float = 1.0,
                 mode='keplerian', use_perturbations: bool = True,
                 paused: bool = False, bodies: Optional[Iterable[Body]] = None,
                 name: str = 'Unnamed Solar System'):
        self.name = name
        self._physics = physics if physics is not None else PhysicsConfig()
        self._integrator = NBodyIntegrator(self._physics)
        self._perturbations = PerturbationModel(perturbation_config)
        self._coordinates = CoordinateTransform(coordinate_config)

        self._time = (to_seconds(time) if time is not None
                      else self._coordinates.epoch)
        self._time_scale = self._validate_time_scale(time_scale)
        self._mode = self._parse_mode(mode)
        self._use_perturbations = bool(use_perturbations)
        self._paused = bool(paused)

        self._bodies: Dict[str, Body] = {}
        self._parents: Dict[str, Optional[str]] = {}
        self._children: Dict[str, List[str]] = {}
        self._roots: List[str] = []
        self._order: List[str] = []

        self._reference_body_id: Optional[str] = None
        self._reference_frame = ReferenceFrame.INERTIAL

        if bodies is not None:
            self.add_bodies(bodies)

    # ========== PROPERTY ACCESS ==========
    @property
    def time(self) -> float:
        """Simulation time [s since J2000]"""
        return self._time

    @property
    def date(self) -> datetime:
        """Simulation time as a UTC datetime"""
        return to_datetime(self._time)

    @property
    def time_scale(self) -> float:
        return self._time_scale

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def mode(self) -> PropagationMode:
        return self._mode

    @property
    def use_nbody(self) -> bool:
        return self._mode == PropagationMode.NBODY

    @property
    def use_perturbations(self) -> bool:
        return self._use_perturbations

    @property
    def physics(self) -> PhysicsConfig:
        return self._physics

    @property
    def perturbation_config(self) -> PerturbationConfig:
        return self._perturbations.config

    @property
    def coordinate_config(self) -> CoordinateConfig:
        return self._coordinates.config

    @property
    def integrator(self) -> NBodyIntegrator:
        return self._integrator

    @property
    def perturbations(self) -> PerturbationModel:
        return self._perturbations

    @property
    def coordinates(self) -> CoordinateTransform:
        return self._coordinates

    @property
    def bodies(self) -> List[Body]:
        """Registered bodies in insertion order"""
        return list(self._bodies.values())

    # ========== BODY REGISTRY ==========
    def add_body(self, body: Body, place_from_orbit: bool = True) -> Body:
        """
        Register a body with the orchestrator, integrator and, for gravity
        sources and oblate bodies, the perturbation model.

        Parameters
        ----------
        body : Body
        place_from_orbit : bool, optional
            When the body carries an orbit whose parent is registered (or
            which has no parent), overwrite its state with the orbit state
            at the current time before registering. Default: True

        Raises
        ------
        ValidationError
            Duplicate id or a parent chain that loops back to the body
        RegistryDesyncError
            The id is already known to the integrator or perturbation
            model but not to the orchestrator
        """
        if not isinstance(body, Body):
            raise TypeError(f"Expected Body, got {type(body)}")
        body_id = body.id
        if body_id in self._bodies:
            raise ValidationError(f"Body '{body_id}' is already registered")
        if (self._integrator.has_body(body_id)
                or self._perturbations.has_perturbing_body(body_id)):
            raise RegistryDesyncError(
                f"Body '{body_id}' is registered with a physics component "
                f"but not with the orchestrator")
        self._check_parent(body_id, body.parent_id)

        if place_from_orbit and body.orbit is not None:
            parent = self._bodies.get(body.parent_id) if body.parent_id else None
            if body.parent_id is None or parent is not None:
                self._place_from_orbit(body, parent, self._time)

        self._bodies[body_id] = body
        try:
            self._integrator.add_body(body_id, body.mass, body.position, body.velocity)
            if self._needs_perturbing_entry(body):
                self._perturbations.add_perturbing_body(PerturbingBody.from_body(body))
        except Exception:
            # roll back whatever registrations succeeded
            self._bodies.pop(body_id, None)
            if self._integrator.has_body(body_id):
                self._integrator.remove_body(body_id)
            if self._perturbations.has_perturbing_body(body_id):
                self._perturbations.remove_perturbing_body(body_id)
            raise
        self._rebuild_hierarchy()
        logger.debug("Added body %s (%s)", body_id, body.category.value)
        return body

    def add_bodies(self, bodies: Iterable[Body]) -> List[Body]:
        return [self.add_body(body) for body in bodies]

    def remove_body(self, body: Union[Body, str]) -> Body:
        """
        Remove a body from every registry.

        Children keep their ``parent_id`` and become roots until a body
        with that id is registered again.

        Raises
        ------
        BodyNotFoundError
            No registry knows the id
        RegistryDesyncError
            Only some registries know the id
        """
        body_id = body.id if isinstance(body, Body) else body
        removed = self._locate(body_id)
        del self._bodies[body_id]
        self._integrator.remove_body(body_id)
        if self._perturbations.has_perturbing_body(body_id):
            self._perturbations.remove_perturbing_body(body_id)
        if self._reference_body_id == body_id:
            self._reference_body_id = None
        self._rebuild_hierarchy()
        logger.debug("Removed body %s", body_id)
        return removed

    def get_body(self, body_id: str) -> Body:
        """
        Raises
        ------
        BodyNotFoundError, RegistryDesyncError
        """
        return self._locate(body_id)

    def has_body(self, body_id: str) -> bool:
        return body_id in self._bodies

    def get_body_by_name(self, name: str) -> Optional[Body]:
        """First body with this name, or None."""
        for body in self._bodies.values():
            if body.name == name:
                return body
        return None

    def get_bodies_by_category(self, category) -> List[Body]:
        category = Body._parse_category(category)
        return [b for b in self._bodies.values() if b.category == category]

    def _locate(self, body_id: str) -> Body:
        in_system = body_id in self._bodies
        in_integrator = self._integrator.has_body(body_id)
        in_perturbations = self._perturbations.has_perturbing_body(body_id)
        if not (in_system or in_integrator or in_perturbations):
            raise BodyNotFoundError(f"No body with id '{body_id}'")
        if not (in_system and in_integrator):
            raise RegistryDesyncError(
                f"Body '{body_id}' registries out of sync: orchestrator={in_system}, "
                f"integrator={in_integrator}, perturbations={in_perturbations}")
        body = self._bodies[body_id]
        if in_perturbations != self._needs_perturbing_entry(body):
            raise RegistryDesyncError(
                f"Body '{body_id}' perturbation registration is out of sync")
        return body

    @staticmethod
    def _needs_perturbing_entry(body: Body) -> bool:
        return body.is_gravity_source or body.is_oblate

    # ========== HIERARCHY ==========
    def _check_parent(self, body_id: str, parent_id: Optional[str]):
        """Reject self-parenting and parent chains that return to body_id."""
        seen = set()
        current = parent_id
        while current is not None and current not in seen:
            if current == body_id:
                raise ValidationError(
                    f"Parent '{parent_id}' would create a cycle through '{body_id}'")
            seen.add(current)
            parent = self._bodies.get(current)
            current = parent.parent_id if parent is not None else None

    def _rebuild_hierarchy(self):
        """Replace the parent/child snapshot from the bodies' parent ids."""
        parents: Dict[str, Optional[str]] = {}
        children: Dict[str, List[str]] = {body_id: [] for body_id in self._bodies}
        roots: List[str] = []
        for body_id, body in self._bodies.items():
            parent_id = body.parent_id if body.parent_id in self._bodies else None
            parents[body_id] = parent_id
            if parent_id is None:
                roots.append(body_id)
            else:
                children[parent_id].append(body_id)
        # parents before children
        order: List[str] = []
        stack = list(reversed(roots))
        while stack:
            body_id = stack.pop()
            order.append(body_id)
            stack.extend(reversed(children[body_id]))
        self._parents = parents
        self._children = children
        self._roots = roots
        self._order = order

    def parent_of(self, body_id: str) -> Optional[Body]:
        """Resolved parent body, or None for a root."""
        self._locate(body_id)
        parent_id = self._parents.get(body_id)
        return self._bodies[parent_id] if parent_id is not None else None

    def children_of(self, body_id: str) -> List[Body]:
        self._locate(body_id)
        return [self._bodies[c] for c in self._children.get(body_id, [])]

    def roots(self) -> List[Body]:
        return [self._bodies[r] for r in self._roots]

    def set_parent(self, body_id: str, parent_id: Optional[str]):
        """
        Re-parent a body.

        A body carrying an orbit gets osculating elements about the new
        parent (or none if the relative state is unbound).

        Raises
        ------
        BodyNotFoundError
            Unknown body or parent id
        ValidationError
            The new parent would create a cycle
        """
        body = self._locate(body_id)
        parent = self._locate(parent_id) if parent_id is not None else None
        self._check_parent(body_id, parent_id)
        body._parent_id = parent_id
        if body.orbit is not None:
            body.orbit = self._osculating_orbit(body, parent)
        self._rebuild_hierarchy()

    # ========== SIMULATION CONTROL ==========
    def pause(self):
        self._paused = True

    def resume(self):
        self._paused = False

    def toggle_pause(self) -> bool:
        self._paused = not self._paused
        return self._paused

    def update(self, delta_time: float):
        """
        Advance the simulation by ``delta_time`` real seconds.

        No-op while paused. Otherwise the step is scaled by the time scale,
        bodies are propagated in the current mode, the perturbing-body
        entries are refreshed and the hierarchy rebuilt. The clock and body
        states change only if the whole step succeeds.

        Raises
        ------
        ValidationError
            If delta_time is negative or not finite, or the step fails
            (e.g. a body at or above the speed of light)
        RegistryDesyncError
            If a body is missing from the integrator in N-body mode
        """
        if self._paused:
            return
        delta_time = float(delta_time)
        if not (math.isfinite(delta_time) and delta_time >= 0):
            raise ValidationError(f"delta_time must be finite and >= 0, got {delta_time}")
        dt = delta_time * self._time_scale
        new_time = self._time + dt
        if self._mode == PropagationMode.NBODY:
            self._update_nbody(dt)
        else:
            self._update_keplerian(new_time, dt)
        self._time = new_time
        self._refresh_perturbing_bodies()
        self._rebuild_hierarchy()

    def _update_nbody(self, dt: float):
        missing = [b for b in self._bodies if not self._integrator.has_body(b)]
        if missing:
            raise RegistryDesyncError(f"Integrator lost bodies {missing}")
        if dt > 0:
            self._integrator.step(dt)
        for body_id, body in self._bodies.items():
            state = self._integrator.get_body(body_id)
            body.position = state.position
            body.velocity = state.velocity
            body.acceleration = state.acceleration

    def _update_keplerian(self, time: float, dt: float):
        """Propagate orbits to ``time``; on failure restore every body and entry."""
        saved = {body_id: (b.position, b.velocity, b.acceleration, b.orbit)
                 for body_id, b in self._bodies.items()}
        try:
            self._propagate_keplerian(time, dt)
        except Exception:
            for body_id, (r, v, a, orbit) in saved.items():
                body = self._bodies[body_id]
                body.position, body.velocity, body.acceleration = r, v, a
                body.orbit = orbit
            self._refresh_perturbing_bodies()
            raise

    def _propagate_keplerian(self, time: float, dt: float):
        orbiting = []
        # place every body first so perturbers are current
        for body_id in self._order:
            body = self._bodies[body_id]
            if body.orbit is None:
                continue
            parent_id = self._parents[body_id]
            parent = self._bodies[parent_id] if parent_id is not None else None
            self._place_from_orbit(body, parent, time)
            if self._perturbations.has_perturbing_body(body_id):
                self._perturbations.update_perturbing_body(
                    body_id, position=body.position, velocity=body.velocity)
            orbiting.append((body, parent))

        sun_position = self._sun_position()
        kicked = []
        for body, parent in orbiting:
            rel = body.position - (parent.position if parent is not None else 0.0)
            r = np.linalg.norm(rel)
            accel = -body.orbit.mu * rel / r**3 if r > 0 else np.zeros(3)
            if self._use_perturbations and parent is not None:
                perturbation = self._perturbations.calculate_total_perturbation(
                    body.position, body.velocity, parent,
                    atmosphere=parent.atmosphere, sun_position=sun_position,
                    satellite=body.satellite, exclude=(body.id,))
                accel = accel + perturbation
                if dt > 0 and np.any(perturbation):
                    kicked.append((body, parent, body.velocity + perturbation * dt))
            body.acceleration = accel

        # new elements against the parents' unkicked states
        orbits = [self._reosculated(body, parent, velocity, time)
                  for body, parent, velocity in kicked]
        for (body, _, velocity), orbit in zip(kicked, orbits):
            body.velocity = velocity
            body.orbit = orbit

    def _place_from_orbit(self, body: Body, parent: Optional[Body], time: float):
        rel_r, rel_v = KeplerianOrbit(body.orbit).state_at(time)
        if parent is not None:
            body.position = parent.position + rel_r
            body.velocity = parent.velocity + rel_v
        else:
            body.position = rel_r
            body.velocity = rel_v

    def _reosculated(self, body: Body, parent: Body, velocity, time: float):
        """Osculating elements after a velocity change, or the old ones if unbound."""
        try:
            return orbital_elements_from_state_vectors(
                body.position - parent.position, velocity - parent.velocity,
                body.orbit.central_mass, epoch=time, G=body.orbit.G)
        except UnboundOrbitError:
            logger.warning("Body %s became unbound from %s; keeping previous elements",
                           body.id, parent.id)
            return body.orbit

    def _osculating_orbit(self, body: Body, parent: Optional[Body]):
        """Elements for the body's current state about parent (or the origin)."""
        central_mass = parent.mass if parent is not None else (
            body.orbit.central_mass if body.orbit is not None else None)
        if central_mass is None:
            return None
        rel_r = body.position - (parent.position if parent is not None else 0.0)
        rel_v = body.velocity - (parent.velocity if parent is not None else 0.0)
        try:
            return orbital_elements_from_state_vectors(
                rel_r, rel_v, central_mass, epoch=self._time, G=self._physics.G)
        except ValidationError as exc:
            logger.warning("No closed orbit for body %s: %s", body.id, exc)
            return None

    def _refresh_perturbing_bodies(self):
        for body_id, body in self._bodies.items():
            if self._perturbations.has_perturbing_body(body_id):
                self._perturbations.update_perturbing_body(
                    body_id, position=body.position, velocity=body.velocity)

    def _sun_position(self):
        for body in self._bodies.values():
            if body.category == BodyCategory.STAR:
                return body.position
        return None

    # ========== MODE SWITCHING ==========
    def set_mode(self, mode):
        """
        Switch propagation mode, reseeding the destination propagator.

        Entering N-body mode loads every body's current state into the
        integrator. Leaving it replaces each orbiting body's elements with
        osculating elements of its current state (None when unbound). Keplerian
        mode never moves a body without an orbit, so those bodies are brought
        to rest.
        """
        mode = self._parse_mode(mode)
        if mode == self._mode:
            return
        if mode == PropagationMode.NBODY:
            self._seed_integrator()
        else:
            for body_id in self._order:
                body = self._bodies[body_id]
                parent_id = self._parents[body_id]
                if parent_id is None and body.orbit is None:
                    continue
                parent = self._bodies[parent_id] if parent_id is not None else None
                body.orbit = self._osculating_orbit(body, parent)
            for body in self._bodies.values():
                if body.orbit is None:
                    body.velocity = np.zeros(3)
            self._refresh_perturbing_bodies()
        self._mode = mode
        logger.debug("Propagation mode set to %s", mode.value)

    def toggle_nbody(self) -> bool:
        self.set_mode(PropagationMode.KEPLERIAN if self.use_nbody
                      else PropagationMode.NBODY)
        return self.use_nbody

    def _seed_integrator(self):
        self._integrator.set_state(
            [BodyState(b.id, b.mass, b.position, b.velocity, b.acceleration)
             for b in self._bodies.values()],
            time=self._time)

    # ========== SETTERS ==========
    def set_time_scale(self, scale: float):
        """
        Raises
        ------
        ValidationError
            If scale is negative or not finite; state is left unchanged
        """
        self._time_scale = self._validate_time_scale(scale)

    def set_time(self, t: TimeLike):
        self._time = to_seconds(t)

    def set_gravitational_constant(self, G: float):
        physics = self._physics.updated(G=G)
        perturbation = self._perturbations.config.updated(G=G)
        self._apply_physics(physics)
        self._perturbations.config = perturbation

    def set_speed_of_light(self, c: float):
        physics = self._physics.updated(c=c)
        perturbation = self._perturbations.config.updated(c=c)
        self._apply_physics(physics)
        self._perturbations.config = perturbation

    def set_softening(self, softening: float):
        self._apply_physics(self._physics.updated(softening=softening))

    def set_relativistic(self, enabled: bool):
        """Toggle Lorentz-factor force scaling in the N-body integrator."""
        self._apply_physics(self._physics.updated(use_relativistic=bool(enabled)))

    def set_time_step(self, time_step: float):
        self._apply_physics(self._physics.updated(time_step=time_step))

    def _apply_physics(self, physics: PhysicsConfig):
        self._physics = physics
        self._integrator.config = physics

    def toggle_perturbations(self) -> bool:
        self._use_perturbations = not self._use_perturbations
        return self._use_perturbations

    def set_perturbation_flags(self, **flags):
        """
        Enable or disable individual perturbation terms.

        Accepts the ``use_*`` fields of PerturbationConfig, e.g.
        ``set_perturbation_flags(use_atmospheric_drag=True)``.
        """
        bad = [k for k in flags if not k.startswith('use_')]
        if bad:
            raise ValidationError(f"Not perturbation flags: {bad}")
        try:
            self._perturbations.update_config(**{k: bool(v) for k, v in flags.items()})
        except TypeError as exc:
            raise ValidationError(str(exc)) from exc

    def set_coordinate_config(self, **changes):
        self._coordinates.update_config(**changes)

    # ========== REFERENCE FRAME ==========
    @property
    def reference_body(self) -> Optional[Body]:
        if self._reference_body_id is None:
            return None
        return self._bodies.get(self._reference_body_id)

    @property
    def reference_frame(self) -> ReferenceFrame:
        return self._reference_frame

    def set_reference_body(self, body: Union[Body, str, None]):
        if body is None:
            self._reference_body_id = None
            return
        body_id = body.id if isinstance(body, Body) else body
        self._locate(body_id)
        self._reference_body_id = body_id

    def set_reference_frame(self, frame):
        if isinstance(frame, ReferenceFrame):
            self._reference_frame = frame
            return
        try:
            self._reference_frame = ReferenceFrame(str(frame).lower())
        except ValueError:
            raise ValidationError(
                f"Unknown reference frame '{frame}'. "
                f"Use: {[f.value for f in ReferenceFrame]}") from None

    def transform_to_reference_frame(self, position) -> np.ndarray:
        """Inertial position to the current reference frame."""
        position = as_vector(position, "position")
        reference = self.reference_body
        if reference is None or self._reference_frame == ReferenceFrame.INERTIAL:
            return position
        return position - reference.position

    def transform_from_reference_frame(self, position) -> np.ndarray:
        """Reference-frame position back to the inertial frame."""
        position = as_vector(position, "position")
        reference = self.reference_body
        if reference is None or self._reference_frame == ReferenceFrame.INERTIAL:
            return position
        return position + reference.position

    # ========== DIAGNOSTICS ==========
    def _state_arrays(self):
        bodies = list(self._bodies.values())
        masses = np.array([b.mass for b in bodies])
        pos = np.array([b.position for b in bodies]).reshape(-1, 3)
        vel = np.array([b.velocity for b in bodies]).reshape(-1, 3)
        return masses, pos, vel

    def calculate_total_mass(self) -> float:
        return float(sum(b.mass for b in self._bodies.values()))

    def calculate_center_of_mass(self) -> CenterOfMass:
        m, pos, vel = self._state_arrays()
        total = float(np.sum(m))
        if total == 0.0:
            return CenterOfMass(np.zeros(3), np.zeros(3), 0.0)
        return CenterOfMass(position=(m[:, None] * pos).sum(axis=0) / total,
                            velocity=(m[:, None] * vel).sum(axis=0) / total,
                            mass=total)

    def calculate_total_angular_momentum(self) -> np.ndarray:
        """Total angular momentum about the origin [kg m^2/s]"""
        total = np.zeros(3)
        for body in self._bodies.values():
            total += body.angular_momentum()
        return total

    def calculate_total_energy(self) -> Energy:
        """Kinetic plus softened pairwise potential of the current body states."""
        m, pos, vel = self._state_arrays()
        kinetic = 0.5 * float(np.sum(m * np.sum(vel**2, axis=1)))
        potential = potential_energy(m, pos, self._physics.G, self._physics.softening)
        return Energy(kinetic=kinetic, potential=potential)

    # ========== SNAPSHOT ==========
    def to_dict(self) -> Dict[str, Any]:
        """Flat, JSON-compatible snapshot sufficient to resume stepping."""
        return {
            'name': self.name,
            'time': self.date.isoformat(),
            'time_seconds': self._time,
            'time_scale': self._time_scale,
            'paused': self._paused,
            'use_nbody': self.use_nbody,
            'use_perturbations': self._use_perturbations,
            'reference_body_id': self._reference_body_id,
            'reference_frame': self._reference_frame.value,
            'physics': self._physics.to_dict(),
            'perturbations': self._perturbations.config.to_dict(),
            'coordinates': self._coordinates.config.to_dict(),
            'bodies': [b.to_dict() for b in self._bodies.values()],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SolarSystem':
        """Rebuild a system from :meth:`to_dict` output."""
        time = data.get('time_seconds')
        if time is None and data.get('time') is not None:
            time = datetime.fromisoformat(data['time'])
        system = cls(
            physics=PhysicsConfig.from_dict(data.get('physics', {})),
            perturbation_config=PerturbationConfig.from_dict(data.get('perturbations', {})),
            coordinate_config=CoordinateConfig.from_dict(data.get('coordinates', {})),
            time=time,
            time_scale=data.get('time_scale', 1.0),
            mode=PropagationMode.NBODY if data.get('use_nbody') else PropagationMode.KEPLERIAN,
            use_perturbations=data.get('use_perturbations', True),
            paused=data.get('paused', False),
            name=data.get('name', 'Unnamed Solar System'),
        )
        for body_data in data.get('bodies', []):
            system.add_body(Body.from_dict(body_data), place_from_orbit=False)
        system._integrator.set_state(
            [BodyState(b.id, b.mass, b.position, b.velocity, b.acceleration)
             for b in system._bodies.values()],
            time=system._time)
        if data.get('reference_body_id') is not None:
            system.set_reference_body(data['reference_body_id'])
        system.set_reference_frame(data.get('reference_frame', 'inertial'))
        return system

    def to_json(self, **kwargs) -> str:
        return json.dumps(self.to_dict(), **kwargs)

    @classmethod
    def from_json(cls, text: str) -> 'SolarSystem':
        return cls.from_dict(json.loads(text))

    def to_dataframe(self):
        """
        Body table indexed by id.

        Returns
        -------
        pd.DataFrame
            name, category, parent_id, mass, radius, j2, state components
            and orbital elements (NaN for bodies without an orbit)
        """
        import pandas as pd

        element_names = ['a', 'e', 'i', 'raan', 'w', 'M0']
        rows = []
        for body in self._bodies.values():
            row = {
                'name': body.name,
                'category': body.category.value,
                'parent_id': body.parent_id,
                'mass': body.mass,
                'radius': body.radius,
                'j2': body.j2,
            }
            for prefix, vec in (('', body.position), ('v', body.velocity),
                                ('a', body.acceleration)):
                for axis, value in zip('xyz', vec):
                    row[prefix + axis] = value
            elements = body.orbit.elements if body.orbit is not None else [np.nan] * 6
            row.update(zip(element_names, elements))
            rows.append(row)
        df = pd.DataFrame(rows, index=list(self._bodies))
        df.index.name = 'id'
        return df

    # ========== SPECIAL METHODS ==========
    def __len__(self):
        return len(self._bodies)

    def __contains__(self, body_id):
        return body_id in self._bodies

    def __iter__(self):
        return iter(list(self._bodies.values()))

    def __repr__(self):
        state = 'paused' if self._paused else 'running'
        return (f"SolarSystem('{self.name}', bodies={len(self._bodies)}, "
                f"mode='{self._mode.value}', {state}, t={self.date.isoformat()})")

    # ========== STATIC METHODS ==========
    @staticmethod
    def _validate_time_scale(scale) -> float:
        try:
            value = float(scale)
        except (TypeError, ValueError):
            raise ValidationError(f"Time scale must be a number, got {scale!r}") from None
        if not (math.isfinite(value) and value >= 0):
            raise ValidationError(f"Time scale must be finite and >= 0, got {scale}")
        return value

    @staticmethod
    def _parse_mode(mode):
        """Convert string or enum to PropagationMode enum"""
        if isinstance(mode, PropagationMode):
            return mode
        elif isinstance(mode, str):
            type_map = {
                'nbody': PropagationMode.NBODY,
                'n-body': PropagationMode.NBODY,
                'NBODY': PropagationMode.NBODY,
                'keplerian': PropagationMode.KEPLERIAN,
                'kepler': PropagationMode.KEPLERIAN,
                'kep': PropagationMode.KEPLERIAN,
                'KEPLERIAN': PropagationMode.KEPLERIAN,
            }
            if mode in type_map:
                return type_map[mode]
            else:
                raise ValidationError(f"Unknown propagation mode '{mode}'. "
                                      f"Use: {list(type_map.keys())}")
        else:
            raise TypeError(f"mode must be PropagationMode or str, got {type(mode)}")
