"""
Ouranos: Gravitational N-Body and Keplerian Simulation Core

A Python package for simulating stars, planets, moons and spacecraft under
mutual gravity, either by direct N-body integration or by analytic Keplerian
propagation with perturbations.
"""
import logging

# Configuration and errors
from .config import (config, temp_config, PhysicsConfig, PerturbationConfig,
                     CoordinateConfig)
from .exceptions import (OuranosError, ValidationError, UnboundOrbitError,
                         KeplerConvergenceError, BodyNotFoundError,
                         RegistryDesyncError)

# Core classes
from .coordinates import CoordinateTransform, J2000, to_seconds, to_datetime
from .orbital_elements import OrbitalElements, OrbitalElements as OE
from .kepler import (KeplerianOrbit, solve_kepler,
                     orbital_elements_from_state_vectors)
from .satellite import Satellite, Satellite as Sat
from .perturbations import (PerturbationModel, PerturbingBody, AtmoParams,
                            SecularRates)
from .integrator import NBodyIntegrator, BodyState, Energy, CenterOfMass
from .body import Body, BodyCategory, Capability, BodyParams
from .system import SolarSystem, PropagationMode, ReferenceFrame

# Commonly-used celestial bodies and systems
from .defaults import (SUN, EARTH, MOON, MARS, EARTH_STD_ATMO,
                       sun_earth_system, earth_moon_system, inner_solar_system)

# Package metadata
__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

# Define what gets imported with "from ouranos import *"
__all__ = [
    # Configuration
    "config",
    "temp_config",
    "PhysicsConfig",
    "PerturbationConfig",
    "CoordinateConfig",
    # Errors
    "OuranosError",
    "ValidationError",
    "UnboundOrbitError",
    "KeplerConvergenceError",
    "BodyNotFoundError",
    "RegistryDesyncError",
    # Classes
    "CoordinateTransform",
    "OrbitalElements",
    "KeplerianOrbit",
    "Satellite",
    "PerturbationModel",
    "PerturbingBody",
    "AtmoParams",
    "SecularRates",
    "NBodyIntegrator",
    "BodyState",
    "Energy",
    "CenterOfMass",
    "Body",
    "BodyCategory",
    "Capability",
    "BodyParams",
    "SolarSystem",
    "PropagationMode",
    "ReferenceFrame",
    # Functions
    "J2000",
    "to_seconds",
    "to_datetime",
    "solve_kepler",
    "orbital_elements_from_state_vectors",
    "sun_earth_system",
    "earth_moon_system",
    "inner_solar_system",
    # Abbreviations
    "OE",
    "Sat",
    # Constants
    "SUN",
    "EARTH",
    "MOON",
    "MARS",
    "EARTH_STD_ATMO",
]
