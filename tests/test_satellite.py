"""
Test suite for Satellite class.

Tests cover:
- Valid construction patterns
- Parameter validation
- Derived properties and serialization
- Special methods (__repr__, __eq__, __hash__)
"""

import pytest

from ouranos import Satellite, ValidationError


class TestConstruction:
    """Test valid Satellite construction patterns."""

    def test_basic_construction(self):
        """Satellite can be constructed with valid parameters."""
        sat = Satellite(mass=500.0, drag_coeff=2.2, cross_section=5.0)

        assert sat.mass == 500.0
        assert sat.drag_coeff == 2.2
        assert sat.cross_section == 5.0
        assert sat.reflectivity == 0.3

    def test_construction_with_name(self):
        sat = Satellite(mass=500.0, drag_coeff=2.2, cross_section=5.0, name="TestSat")
        assert sat.name == "TestSat"

    def test_construction_without_name(self):
        sat = Satellite(mass=500.0, drag_coeff=2.2, cross_section=5.0)
        assert sat.name is None


class TestValidation:
    """Invalid parameters raise ValidationError."""

    @pytest.mark.parametrize("kwargs, message", [
        ({'mass': 0.0}, "Mass"),
        ({'drag_coeff': -1.0}, "Drag coefficient"),
        ({'cross_section': 0.0}, "Cross-sectional area"),
        ({'reflectivity': 1.5}, "Reflectivity"),
    ])
    def test_rejects(self, kwargs, message):
        params = dict(mass=500.0, drag_coeff=2.2, cross_section=5.0)
        params.update(kwargs)
        with pytest.raises(ValidationError, match=message):
            Satellite(**params)

    def test_is_value_error(self):
        with pytest.raises(ValueError):
            Satellite(mass=-1.0, drag_coeff=2.2, cross_section=5.0)


class TestProperties:

    def test_ballistic_coefficient(self):
        sat = Satellite(mass=500.0, drag_coeff=2.0, cross_section=5.0)
        assert sat.ballistic_coefficient == pytest.approx(0.02)

    def test_read_only(self):
        sat = Satellite(mass=500.0, drag_coeff=2.2, cross_section=5.0)
        with pytest.raises(AttributeError):
            sat.mass = 1.0

    def test_dict_round_trip(self):
        sat = Satellite(mass=500.0, drag_coeff=2.2, cross_section=5.0,
                        reflectivity=0.8, name="Sail")
        assert Satellite.from_dict(sat.to_dict()) == sat


class TestSpecialMethods:

    def test_repr(self):
        sat = Satellite(mass=500.0, drag_coeff=2.2, cross_section=5.0, name="TestSat")
        text = repr(sat)
        assert "TestSat" in text
        assert "500.00 kg" in text

    def test_equality(self):
        a = Satellite(mass=500.0, drag_coeff=2.2, cross_section=5.0)
        b = Satellite(mass=500.0, drag_coeff=2.2, cross_section=5.0)
        c = Satellite(mass=501.0, drag_coeff=2.2, cross_section=5.0)
        assert a == b
        assert a != c
        assert a != "not a satellite"

    def test_hash(self):
        a = Satellite(mass=500.0, drag_coeff=2.2, cross_section=5.0)
        b = Satellite(mass=500.0, drag_coeff=2.2, cross_section=5.0)
        assert hash(a) == hash(b)
        assert len({a, b}) == 1
