"""Shared fixtures for the Ouranos test suite."""

import numpy as np
import pytest

from ouranos import Body, PhysicsConfig, SolarSystem, config
from ouranos.constants import AU, G, SOLAR_MASS

EARTH_MASS = 5.9722e24


@pytest.fixture(autouse=True)
def reset_config():
    """Restore package-wide settings after every test."""
    yield
    config.reset()


@pytest.fixture
def sun_earth_bodies():
    """Sun and Earth on a circular orbit with zero total momentum."""
    v_rel = np.sqrt(G * (SOLAR_MASS + EARTH_MASS) / AU)
    total = SOLAR_MASS + EARTH_MASS
    sun = Body(SOLAR_MASS, radius=6.957e8, body_id='sun', category='star',
               position=[-AU * EARTH_MASS / total, 0.0, 0.0],
               velocity=[0.0, -v_rel * EARTH_MASS / total, 0.0])
    earth = Body(EARTH_MASS, radius=6.378e6, body_id='earth', category='planet',
                 parent_id='sun',
                 position=[AU * SOLAR_MASS / total, 0.0, 0.0],
                 velocity=[0.0, v_rel * SOLAR_MASS / total, 0.0])
    return sun, earth


@pytest.fixture
def nbody_system(sun_earth_bodies):
    """Unsoftened N-body Sun-Earth system."""
    system = SolarSystem(physics=PhysicsConfig(softening=0.0), mode='nbody')
    system.add_bodies(sun_earth_bodies)
    return system
