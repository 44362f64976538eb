'''Orbital mechanics core for the Ouranos simulation package
Satellite class definition'''

from typing import Any, Dict, Optional

import numpy as np

from .config import config
from .exceptions import ValidationError


class Satellite:
    """
    Represents a small body's physical properties for non-gravitational
    force modeling.

    Supplies the inputs of the atmospheric drag and solar radiation
    pressure terms. The body's own mass is used for gravity; this mass is
    the one the surface forces act on, which lets a spacecraft carry a
    ballistic description independent of how it is registered.

    Parameters
    ----------
    mass : float
        Satellite mass [kg]
    drag_coeff : float
        Dimensionless drag coefficient (typically 2.0-2.5 for satellites)
    cross_section : float
        Reference cross-sectional area for drag and radiation pressure [m^2]
    reflectivity : float, optional
        Surface reflectivity in [0, 1]; radiation pressure scales with
        (1 + reflectivity). Default: 0.3
    name : str, optional
        Satellite identifier
    """

    def __init__(
        self,
        mass: float,
        drag_coeff: float,
        cross_section: float,
        reflectivity: float = 0.3,
        name: Optional[str] = None
    ):
        # Validate inputs
        if not mass > 0:
            raise ValidationError(f"Mass must be positive, got {mass}")
        if not drag_coeff > 0:
            raise ValidationError(f"Drag coefficient must be positive, got {drag_coeff}")
        if not cross_section > 0:
            raise ValidationError(f"Cross-sectional area must be positive, "
                                  f"got {cross_section}")
        if not 0.0 <= reflectivity <= 1.0:
            raise ValidationError(f"Reflectivity must lie in [0, 1], got {reflectivity}")

        self._mass = float(mass)
        self._drag_coeff = float(drag_coeff)
        self._cross_section = float(cross_section)
        self._reflectivity = float(reflectivity)
        self._name = name

    @property
    def mass(self) -> float:
        """Satellite mass [kg]"""
        return self._mass

    @property
    def drag_coeff(self) -> float:
        """Drag coefficient (dimensionless)"""
        return self._drag_coeff

    @property
    def cross_section(self) -> float:
        """Reference cross-sectional area [m^2]"""
        return self._cross_section

    @property
    def reflectivity(self) -> float:
        """Surface reflectivity (dimensionless)"""
        return self._reflectivity

    @property
    def name(self) -> Optional[str]:
        """Satellite identifier"""
        return self._name

    @property
    def ballistic_coefficient(self) -> float:
        """Cd * A / m [m^2/kg]"""
        return self._drag_coeff * self._cross_section / self._mass

    def to_dict(self) -> Dict[str, Any]:
        return {
            'mass': self._mass,
            'drag_coeff': self._drag_coeff,
            'cross_section': self._cross_section,
            'reflectivity': self._reflectivity,
            'name': self._name,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Satellite':
        return cls(**data)

    def __repr__(self) -> str:
        name_str = f"'{self.name}'" if self.name else "unnamed"
        return (f"Satellite({name_str}, mass={self.mass:.2f} kg, "
                f"Cd={self.drag_coeff:.2f}, A={self.cross_section:.2f} m², "
                f"reflectivity={self.reflectivity:.2f})")

    def __eq__(self, other) -> bool:
        if not isinstance(other, Satellite):
            return NotImplemented
        mine = np.array([self.mass, self.drag_coeff, self.cross_section, self.reflectivity])
        theirs = np.array([other.mass, other.drag_coeff, other.cross_section,
                           other.reflectivity])
        return (np.allclose(mine, theirs, rtol=config.EQUALITY_RTOL,
                            atol=config.EQUALITY_ATOL)
                and self.name == other.name)

    def __hash__(self) -> int:
        # drag coefficient and reflectivity are O(1); mass and area are left
        # out so equal-within-tolerance satellites share a hash
        return hash((round(self.drag_coeff, config.HASH_DECIMALS),
                     round(self.reflectivity, config.HASH_DECIMALS),
                     self.name))
