"""
Test suite for the SolarSystem orchestrator.

Tests cover:
- Body registry kept in sync across orchestrator, integrator and
  perturbation model
- Parent/child hierarchy
- Running / paused states and time scaling
- Keplerian and N-body propagation, and switching between them
- Configuration setters, reference frames, diagnostics
- Snapshot round trips (dict, JSON, DataFrame)
"""

import math
from datetime import datetime, timezone

import numpy as np
import pytest

from ouranos import (SolarSystem, Body, OE, KeplerianOrbit, PhysicsConfig,
                     PerturbationConfig, PropagationMode, ReferenceFrame,
                     CenterOfMass, J2000)
from ouranos.constants import AU, G, SOLAR_MASS

EARTH_MASS = 5.9722e24


@pytest.fixture
def keplerian_system():
    """Sun at rest with Earth on an analytic orbit, perturbations off."""
    system = SolarSystem(use_perturbations=False)
    system.add_body(Body(SOLAR_MASS, body_id='sun', category='star'))
    system.add_body(Body(EARTH_MASS, body_id='earth', category='planet', parent_id='sun',
                         orbit=OE(a=AU, e=0.0167, i=0.0, raan=0.0, w=1.8, M0=0.3)))
    return system


class TestConstruction:

    def test_defaults(self):
        system = SolarSystem()
        assert system.time == 0.0
        assert system.date == J2000
        assert system.time_scale == 1.0
        assert system.mode is PropagationMode.KEPLERIAN
        assert not system.use_nbody
        assert system.use_perturbations
        assert not system.paused
        assert len(system) == 0

    def test_start_time_from_datetime(self):
        system = SolarSystem(time=datetime(2000, 1, 2, 12, tzinfo=timezone.utc))
        assert system.time == 86400.0

    def test_bodies_at_construction(self):
        system = SolarSystem(bodies=[Body(1.0, body_id='a'), Body(1.0, body_id='b')])
        assert [b.id for b in system] == ['a', 'b']

    def test_mode_strings(self):
        assert SolarSystem(mode='nbody').use_nbody
        assert SolarSystem(mode='kepler').mode is PropagationMode.KEPLERIAN


class TestRegistry:

    def test_add_registers_everywhere(self, keplerian_system):
        system = keplerian_system
        for body_id in ('sun', 'earth'):
            assert system.has_body(body_id)
            assert system.integrator.has_body(body_id)
            assert system.perturbations.has_perturbing_body(body_id)

    def test_spacecraft_not_a_perturber(self, keplerian_system):
        craft = Body(500.0, body_id='craft', category='spacecraft', position=[2 * AU, 0, 0])
        keplerian_system.add_body(craft)
        assert keplerian_system.integrator.has_body('craft')
        assert not keplerian_system.perturbations.has_perturbing_body('craft')

    def test_add_places_from_orbit(self, keplerian_system):
        earth = keplerian_system.get_body('earth')
        expected = KeplerianOrbit(earth.orbit).position_at(0.0)
        assert np.allclose(earth.position, expected)

    def test_remove_unregisters_everywhere(self, keplerian_system):
        removed = keplerian_system.remove_body('earth')
        assert removed.id == 'earth'
        assert not keplerian_system.has_body('earth')
        assert not keplerian_system.integrator.has_body('earth')
        assert not keplerian_system.perturbations.has_perturbing_body('earth')

    def test_remove_by_object(self, keplerian_system):
        earth = keplerian_system.get_body('earth')
        keplerian_system.remove_body(earth)
        assert 'earth' not in keplerian_system

    def test_lookup_helpers(self, keplerian_system):
        keplerian_system.get_body('earth').name = 'Terra'
        assert keplerian_system.get_body_by_name('Terra').id == 'earth'
        assert keplerian_system.get_body_by_name('Vulcan') is None
        stars = keplerian_system.get_bodies_by_category('star')
        assert [b.id for b in stars] == ['sun']
        assert len(keplerian_system.bodies) == 2


class TestHierarchy:

    def test_roots_and_children(self, keplerian_system):
        system = keplerian_system
        assert [b.id for b in system.roots()] == ['sun']
        assert [b.id for b in system.children_of('sun')] == ['earth']
        assert system.parent_of('earth').id == 'sun'
        assert system.parent_of('sun') is None

    def test_orphan_becomes_root(self, keplerian_system):
        keplerian_system.remove_body('sun')
        assert [b.id for b in keplerian_system.roots()] == ['earth']
        assert keplerian_system.get_body('earth').parent_id == 'sun'

    def test_set_parent(self, keplerian_system):
        system = keplerian_system
        system.add_body(Body(1e20, body_id='rock', category='asteroid',
                             position=[AU + 1e9, 0, 0], velocity=[0, 3.0e4, 0]))
        system.set_parent('rock', 'sun')
        assert system.parent_of('rock').id == 'sun'
        assert [b.id for b in system.children_of('sun')] == ['earth', 'rock']
        system.set_parent('rock', None)
        assert system.parent_of('rock') is None

    def test_set_parent_re_derives_orbit(self, keplerian_system):
        system = keplerian_system
        system.add_body(Body(1e20, body_id='rock', parent_id='sun',
                             orbit=OE(a=2 * AU, e=0.1, i=0.0, raan=0.0, w=0.0, M0=0.0)))
        system.set_parent('rock', 'earth')
        rock = system.get_body('rock')
        # far outside Earth's sphere of influence, unbound about Earth
        assert rock.orbit is None


class TestSimulationControl:

    def test_pause_resume(self):
        system = SolarSystem()
        system.pause()
        assert system.paused
        system.resume()
        assert not system.paused
        assert system.toggle_pause() is True
        assert system.toggle_pause() is False

    def test_paused_update_is_bit_identical(self, nbody_system):
        nbody_system.pause()
        before = nbody_system.to_dict()
        nbody_system.update(0.1)
        assert nbody_system.to_dict() == before

    def test_time_scale(self, keplerian_system):
        keplerian_system.set_time_scale(86400.0)
        keplerian_system.update(2.0)
        assert keplerian_system.time == 2 * 86400.0

    def test_set_time(self):
        system = SolarSystem()
        system.set_time(datetime(2000, 1, 1, 13))
        assert system.time == 3600.0


class TestKeplerianPropagation:

    def test_follows_analytic_orbit(self, keplerian_system):
        keplerian_system.update(1e6)
        earth = keplerian_system.get_body('earth')
        orbit = KeplerianOrbit(earth.orbit)
        assert np.array_equal(earth.position, orbit.position_at(1e6))
        assert np.array_equal(earth.velocity, orbit.velocity_at(1e6))

    def test_acceleration_is_two_body(self, keplerian_system):
        keplerian_system.update(1e6)
        earth = keplerian_system.get_body('earth')
        r = np.linalg.norm(earth.position)
        assert np.allclose(earth.acceleration, -G * SOLAR_MASS * earth.position / r**3)

    def test_children_follow_parent(self):
        system = SolarSystem(use_perturbations=False)
        system.add_body(Body(SOLAR_MASS, body_id='sun', category='star'))
        system.add_body(Body(EARTH_MASS, body_id='earth', category='planet', parent_id='sun',
                             orbit=OE(a=AU, e=0.0, i=0.0, raan=0.0, w=0.0, M0=0.0)))
        system.add_body(Body(7.342e22, body_id='moon', category='moon', parent_id='earth',
                             orbit=OE(a=3.844e8, e=0.0, i=0.0, raan=0.0, w=0.0, M0=0.0,
                                      central_mass=EARTH_MASS)))
        system.update(5e6)
        earth, moon = system.get_body('earth'), system.get_body('moon')
        assert np.linalg.norm(moon.position - earth.position) == pytest.approx(3.844e8)

    def test_perturbations_re_osculate(self):
        """A perturbed orbit gets fresh elements at the current time."""
        system = SolarSystem(perturbation_config=PerturbationConfig(use_non_spherical=True))
        system.add_body(Body(EARTH_MASS, radius=6.378e6, j2=1.08e-3, body_id='earth',
                             category='planet'))
        system.add_body(Body(420e3, body_id='iss', category='spacecraft', parent_id='earth',
                             orbit=OE(a=6.778e6, e=0.001, i=0.9, raan=0.0, w=0.0, M0=0.0,
                                      central_mass=EARTH_MASS)))
        original = system.get_body('iss').orbit
        system.update(60.0)
        updated = system.get_body('iss').orbit
        assert updated.epoch == 60.0
        assert updated != original

    def test_perturbations_off_keeps_elements(self, keplerian_system):
        original = keplerian_system.get_body('earth').orbit
        keplerian_system.update(60.0)
        assert keplerian_system.get_body('earth').orbit is original

    def test_perturbers_current_during_step(self, monkeypatch):
        """Every perturbation sees each perturber at this step's position."""
        from ouranos import inner_solar_system
        system = inner_solar_system(time_scale=86400.0)
        calculate = system.perturbations.calculate_total_perturbation
        seen = []

        def record(*args, **kwargs):
            seen.append({p.id: p.position.copy()
                         for p in system.perturbations.perturbing_bodies})
            return calculate(*args, **kwargs)

        monkeypatch.setattr(system.perturbations, 'calculate_total_perturbation', record)
        system.update(1.0)
        assert len(seen) == 5
        for entries in seen:
            for body_id, position in entries.items():
                assert np.array_equal(position, system.get_body(body_id).position)

    def test_perturbations_use_new_time(self):
        system = SolarSystem(time_scale=86400.0)
        system.add_body(Body(SOLAR_MASS, radius=6.957e8, j2=2e-7, body_id='sun',
                             category='star'))
        system.add_body(Body(EARTH_MASS, body_id='earth', category='planet',
                             parent_id='sun',
                             orbit=OE(a=AU, e=0.0167, i=0.1, raan=0.0, w=1.8, M0=0.3)))
        system.update(1.0)
        assert system.get_body('earth').orbit.epoch == 86400.0


class TestNBodyPropagation:

    def test_update_steps_integrator(self, nbody_system):
        nbody_system.update(3600.0)
        assert nbody_system.time == 3600.0
        earth = nbody_system.get_body('earth')
        state = nbody_system.integrator.get_body('earth')
        assert np.array_equal(earth.position, state.position)
        assert earth.position[1] > 0

    def test_energy_drift(self, nbody_system):
        e0 = nbody_system.calculate_total_energy().total
        for _ in range(1000):
            nbody_system.update(3600.0)
        e1 = nbody_system.calculate_total_energy().total
        assert abs((e1 - e0) / e0) < 1e-6

    def test_center_of_mass_fixed(self, nbody_system):
        com0 = nbody_system.calculate_center_of_mass()
        assert isinstance(com0, CenterOfMass)
        for _ in range(1000):
            nbody_system.update(3600.0)
        com1 = nbody_system.calculate_center_of_mass()
        assert np.linalg.norm(com1.position - com0.position) / AU < 1e-6


class TestModeSwitching:

    def test_enter_nbody_reseeds(self, keplerian_system):
        keplerian_system.update(1e6)
        keplerian_system.set_mode('nbody')
        earth = keplerian_system.get_body('earth')
        state = keplerian_system.integrator.get_body('earth')
        assert np.array_equal(state.position, earth.position)
        assert np.array_equal(state.velocity, earth.velocity)
        assert keplerian_system.integrator.time == 1e6

    def test_leave_nbody_re_derives_elements(self, nbody_system):
        nbody_system.update(86400.0)
        nbody_system.set_mode(PropagationMode.KEPLERIAN)
        earth = nbody_system.get_body('earth')
        assert earth.orbit is not None
        assert earth.orbit.epoch == 86400.0
        assert earth.orbit.a == pytest.approx(AU, rel=1e-4)
        sun = nbody_system.get_body('sun')
        assert sun.orbit is None

    def test_leave_nbody_rests_bodies_without_orbit(self, nbody_system):
        """Bodies Keplerian mode cannot move carry no velocity."""
        nbody_system.update(86400.0)
        assert np.any(nbody_system.get_body('sun').velocity)
        nbody_system.set_mode('keplerian')
        assert np.array_equal(nbody_system.get_body('sun').velocity, np.zeros(3))
        assert np.array_equal(
            nbody_system.perturbations.get_perturbing_body('sun').velocity, np.zeros(3))
        nbody_system.update(3600.0)
        earth = nbody_system.get_body('earth')
        expected = KeplerianOrbit(earth.orbit).velocity_at(nbody_system.time)
        assert np.array_equal(earth.velocity, expected)

    def test_toggle(self, keplerian_system):
        assert keplerian_system.toggle_nbody() is True
        assert keplerian_system.use_nbody
        assert keplerian_system.toggle_nbody() is False

    def test_same_mode_is_no_op(self, keplerian_system):
        orbit = keplerian_system.get_body('earth').orbit
        keplerian_system.set_mode('keplerian')
        assert keplerian_system.get_body('earth').orbit is orbit


class TestSetters:

    def test_gravitational_constant(self):
        system = SolarSystem()
        system.set_gravitational_constant(1.0)
        assert system.physics.G == 1.0
        assert system.integrator.config.G == 1.0
        assert system.perturbation_config.G == 1.0

    def test_speed_of_light(self):
        system = SolarSystem()
        system.set_speed_of_light(1e6)
        assert system.physics.c == 1e6
        assert system.perturbation_config.c == 1e6

    def test_softening_and_relativistic(self):
        system = SolarSystem()
        system.set_softening(0.0)
        system.set_relativistic(True)
        system.set_time_step(60.0)
        assert system.integrator.config == PhysicsConfig(softening=0.0, use_relativistic=True,
                                                        time_step=60.0)

    def test_toggle_perturbations(self):
        system = SolarSystem()
        assert system.toggle_perturbations() is False
        assert not system.use_perturbations

    def test_perturbation_flags(self):
        system = SolarSystem()
        system.set_perturbation_flags(use_atmospheric_drag=True, use_third_body=False)
        assert system.perturbation_config.use_atmospheric_drag
        assert not system.perturbation_config.use_third_body

    def test_coordinate_config(self):
        system = SolarSystem()
        system.set_coordinate_config(obliquity=0.0)
        assert system.coordinates.obliquity == 0.0


class TestReferenceFrame:

    def test_body_centered(self, keplerian_system):
        system = keplerian_system
        earth = system.get_body('earth')
        system.set_reference_body('earth')
        system.set_reference_frame('body-centered')
        assert system.reference_frame is ReferenceFrame.BODY_CENTERED
        assert system.reference_body is earth
        local = system.transform_to_reference_frame(earth.position)
        assert np.array_equal(local, np.zeros(3))
        assert np.allclose(system.transform_from_reference_frame(local), earth.position)

    def test_inertial_is_identity(self, keplerian_system):
        keplerian_system.set_reference_body('earth')
        point = [1.0, 2.0, 3.0]
        assert np.array_equal(keplerian_system.transform_to_reference_frame(point), point)

    def test_removing_reference_body_clears_it(self, keplerian_system):
        keplerian_system.set_reference_body('earth')
        keplerian_system.remove_body('earth')
        assert keplerian_system.reference_body is None


class TestDiagnostics:

    def test_total_mass(self, keplerian_system):
        assert keplerian_system.calculate_total_mass() == SOLAR_MASS + EARTH_MASS

    def test_angular_momentum_along_orbit_normal(self, keplerian_system):
        L = keplerian_system.calculate_total_angular_momentum()
        assert L[2] > 0
        assert abs(L[0]) < 1e-9 * L[2] and abs(L[1]) < 1e-9 * L[2]

    def test_energy_matches_integrator(self, nbody_system):
        system_energy = nbody_system.calculate_total_energy()
        integrator_energy = nbody_system.integrator.calculate_total_energy()
        assert system_energy.total == pytest.approx(integrator_energy.total, rel=1e-14)

    def test_empty_system(self):
        system = SolarSystem()
        assert system.calculate_total_mass() == 0.0
        assert system.calculate_center_of_mass().mass == 0.0


class TestSnapshot:

    def test_dict_keys(self, keplerian_system):
        data = keplerian_system.to_dict()
        assert data['time'] == '2000-01-01T12:00:00+00:00'
        assert data['time_seconds'] == 0.0
        assert data['use_nbody'] is False
        assert [b['id'] for b in data['bodies']] == ['sun', 'earth']
        assert data['bodies'][1]['category'] == 'planet'
        assert data['bodies'][1]['orbit']['a'] == AU

    def test_json_round_trip_nbody(self, nbody_system):
        nbody_system.update(3600.0)
        restored = SolarSystem.from_json(nbody_system.to_json())
        assert restored.to_dict() == nbody_system.to_dict()
        nbody_system.update(3600.0)
        restored.update(3600.0)
        for a, b in zip(nbody_system, restored):
            assert np.array_equal(a.position, b.position)
            assert np.array_equal(a.velocity, b.velocity)

    def test_json_round_trip_keplerian(self):
        from ouranos import inner_solar_system
        system = inner_solar_system(time_scale=3600.0)
        system.update(10.0)
        system.set_reference_body('earth')
        system.set_reference_frame('body-centered')
        restored = SolarSystem.from_json(system.to_json())
        assert restored.reference_body.id == 'earth'
        assert restored.time_scale == 3600.0
        system.update(10.0)
        restored.update(10.0)
        for a, b in zip(system, restored):
            assert np.array_equal(a.position, b.position)
            assert a.orbit == b.orbit

    def test_from_dict_uses_iso_time(self):
        system = SolarSystem.from_dict({'time': '2000-01-02T12:00:00+00:00'})
        assert system.time == 86400.0

    def test_to_dataframe(self, keplerian_system):
        df = keplerian_system.to_dataframe()
        assert list(df.index) == ['sun', 'earth']
        assert df.index.name == 'id'
        assert df.loc['earth', 'category'] == 'planet'
        assert df.loc['earth', 'a'] == AU
        assert math.isnan(df.loc['sun', 'a'])

    def test_repr(self, keplerian_system):
        assert "bodies=2" in repr(keplerian_system)
