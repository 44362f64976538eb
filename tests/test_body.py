"""
Test suite for Body, BodyParams and the category / capability tags.
"""

import numpy as np
import pytest

from ouranos import (Body, BodyCategory, BodyParams, Capability, OE, Satellite,
                     AtmoParams, ValidationError, temp_config, EARTH)
from ouranos.constants import G


class TestConstruction:

    def test_defaults(self):
        body = Body(1.0e20)
        assert body.radius == 0.0
        assert body.j2 == 0.0
        assert body.category is BodyCategory.GENERIC
        assert body.parent_id is None
        assert body.orbit is None
        assert np.array_equal(body.position, np.zeros(3))
        assert np.array_equal(body.acceleration, np.zeros(3))

    def test_generated_ids_are_unique(self):
        assert Body(1.0).id != Body(1.0).id

    def test_name_defaults_to_id(self):
        body = Body(1.0, body_id='rock')
        assert body.name == 'rock'

    @pytest.mark.parametrize("kwargs, message", [
        ({'mass': 0.0}, "mass must be positive"),
        ({'mass': -5.0}, "mass must be positive"),
        ({'mass': 1.0, 'radius': -1.0}, "radius must be non-negative"),
    ])
    def test_rejects_bad_values(self, kwargs, message):
        with pytest.raises(ValidationError, match=message):
            Body(**kwargs)

    def test_unrealistic_j2_strict(self):
        with pytest.raises(ValidationError, match="unrealistic"):
            Body(1.0, j2=2.0)

    def test_unrealistic_j2_lenient(self):
        with temp_config(STRICT_VALIDATION=False):
            with pytest.warns(UserWarning, match="unrealistic"):
                body = Body(1.0, j2=2.0)
        assert body.j2 == 2.0

    def test_state_is_copied(self):
        position = np.array([1.0, 2.0, 3.0])
        body = Body(1.0, position=position)
        position[0] = 99.0
        assert body.position[0] == 1.0

    def test_rejects_bad_vector(self):
        with pytest.raises(ValueError, match="3 components"):
            Body(1.0, position=[1.0, 2.0])

    def test_orbit_type_checked(self):
        with pytest.raises(TypeError, match="OrbitalElements"):
            Body(1.0, orbit=[1, 0, 0, 0, 0, 0])


class TestCategory:

    @pytest.mark.parametrize("text, expected", [
        ('star', BodyCategory.STAR), ('Planet', BodyCategory.PLANET),
        ('sun', BodyCategory.STAR), ('probe', BodyCategory.SPACECRAFT),
    ])
    def test_parse(self, text, expected):
        assert Body(1.0, category=text).category is expected

    def test_unknown_category(self):
        with pytest.raises(ValidationError, match="Unknown body category"):
            Body(1.0, category='nebula')

    def test_wrong_type(self):
        with pytest.raises(TypeError):
            Body(1.0, category=3)


class TestCapabilities:

    def test_stars_and_planets_are_gravity_sources(self):
        assert Body(1.0, category='star').is_gravity_source
        assert Body(1.0, category='planet').is_gravity_source
        assert not Body(1.0, category='spacecraft').is_gravity_source

    def test_override(self):
        moon = Body(1.0, category='moon', gravity_source=True)
        assert moon.capabilities & Capability.GRAVITY_SOURCE
        planet = Body(1.0, category='planet', gravity_source=False)
        assert not planet.is_gravity_source

    def test_oblate(self):
        body = Body(1.0, j2=1e-3)
        assert body.is_oblate
        assert body.capabilities == Capability.OBLATE

    def test_none(self):
        assert Body(1.0).capabilities == Capability.NONE


class TestDerivedQuantities:

    def test_momentum_and_energy(self):
        body = Body(2.0, velocity=[3.0, 4.0, 0.0])
        assert np.array_equal(body.momentum(), [6.0, 8.0, 0.0])
        assert body.kinetic_energy() == 25.0

    def test_angular_momentum(self):
        body = Body(2.0, position=[1.0, 0.0, 0.0], velocity=[0.0, 1.0, 0.0])
        assert np.array_equal(body.angular_momentum(), [0.0, 0.0, 2.0])
        assert np.array_equal(body.angular_momentum(origin=[1.0, 0.0, 0.0]), np.zeros(3))

    def test_gravitational_parameter(self):
        assert Body(1e24).gravitational_parameter() == pytest.approx(G * 1e24)


class TestBodyParams:

    def test_from_params(self):
        earth = Body.from_params(EARTH, body_id='earth', category='planet')
        assert earth.mass == EARTH.mass
        assert earth.radius == EARTH.radius
        assert earth.j2 == EARTH.j2
        assert earth.name == 'Earth'

    def test_validation(self):
        with pytest.raises(ValidationError, match="Mass"):
            BodyParams(mass=0.0, radius=1.0)

    def test_mu(self):
        assert EARTH.mu() == pytest.approx(G * EARTH.mass)


class TestSerialization:

    def test_round_trip(self):
        body = Body(7.342e22, radius=1.738e6, name='Moon', body_id='moon',
                    category='moon', parent_id='earth', j2=2.027e-4,
                    position=[3.8e8, 0, 0], velocity=[0, 1.0e3, 0],
                    orbit=OE(a=3.844e8, e=0.05, i=0.1, raan=0, w=0, M0=0,
                             central_mass=5.9722e24),
                    satellite=Satellite(mass=1.0, drag_coeff=2.0, cross_section=1.0),
                    atmosphere=AtmoParams(rho0=1e-12, H=1e4, r0=1.738e6))
        body.acceleration = [1.0, 2.0, 3.0]
        back = Body.from_dict(body.to_dict())
        assert back.id == 'moon'
        assert back.category is BodyCategory.MOON
        assert back.parent_id == 'earth'
        assert back.orbit == body.orbit
        assert back.satellite == body.satellite
        assert back.atmosphere == body.atmosphere
        assert np.array_equal(back.position, body.position)
        assert np.array_equal(back.acceleration, [1.0, 2.0, 3.0])

    def test_repr(self):
        text = repr(Body(1.0, body_id='rock', parent_id='sun'))
        assert "'rock'" in text and "parent='sun'" in text
