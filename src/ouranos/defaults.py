"""
Default Bodies, Orbits and Systems
==================================

Preset BodyParams for major Solar System bodies, a standard atmosphere
model, mean J2000 orbits and factory functions for common simulations.

All values are SI (kg, m, s, rad). The factories build a fresh
SolarSystem on every call and forward keyword arguments to its
constructor.

Examples
--------
>>> from ouranos import sun_earth_system, inner_solar_system
>>> system = sun_earth_system(mode='nbody')
>>> planets = inner_solar_system(time_scale=86400.0)
"""
import numpy as np

from . import constants
from .body import Body, BodyParams
from .orbital_elements import OrbitalElements
from .perturbations import AtmoParams
from .system import SolarSystem
from .utils import wrap_angle

"""
Predefined Solar System bodies
Radii, J2 and rotation rates from Vallado, Fundamentals of Astrodynamics,
Fifth Edition, 2022, Appendix D; masses from the IAU nominal values
"""
SUN = BodyParams(
    mass=constants.SOLAR_MASS,
    radius=6.957e8,
    j2=2.2e-7,
    rotation_rate=2.865e-6,
    name='Sun'
)

MERCURY = BodyParams(
    mass=3.3011e23,
    radius=2.4390e6,
    j2=6.0e-5,
    rotation_rate=1.24001e-6,
    name='Mercury'
)

VENUS = BodyParams(
    mass=4.8675e24,
    radius=6.0520e6,
    j2=2.7e-5,
    rotation_rate=-2.9926e-7,
    name='Venus'
)

EARTH = BodyParams(
    mass=5.9722e24,
    radius=6.3781363e6,
    j2=1.0826269e-3,
    rotation_rate=7.2921150e-5,
    name='Earth'
)

MOON = BodyParams(
    mass=7.342e22,
    radius=1.738e6,
    j2=2.027e-4,
    rotation_rate=2.661700e-6,
    name='Moon'
)

MARS = BodyParams(
    mass=6.4171e23,
    radius=3.3972e6,
    j2=1.964e-3,
    rotation_rate=7.0882181e-5,
    name='Mars'
)

JUPITER = BodyParams(
    mass=1.89813e27,
    radius=7.1492e7,
    j2=1.475e-2,
    rotation_rate=1.7585e-4,
    name='Jupiter'
)

SATURN = BodyParams(
    mass=5.6832e26,
    radius=6.0268e7,
    j2=1.645e-2,
    rotation_rate=1.662e-4,
    name='Saturn'
)

"""
Predefined standard atmosphere models
"""
EARTH_STD_ATMO = AtmoParams(
    rho0=1.225,
    H=8500.0,
    r0=6378137.0,
    rotation_rate=EARTH.rotation_rate
)


def _mean_orbit(a_au, e, i_deg, raan_deg, lon_peri_deg, mean_lon_deg):
    """Heliocentric orbit from mean elements (longitudes of periapsis and of the body)."""
    return OrbitalElements(
        a=a_au * constants.AU, e=e, i=np.radians(i_deg),
        raan=np.radians(raan_deg),
        w=wrap_angle(np.radians(lon_peri_deg - raan_deg)),
        M0=wrap_angle(np.radians(mean_lon_deg - lon_peri_deg)),
        epoch=0.0, central_mass=SUN.mass
    )


"""
Predefined orbits
Mean J2000 ecliptic elements (Standish, JPL approximate planetary positions)
"""
MERCURY_ORBIT = _mean_orbit(0.38709927, 0.20563593, 7.00497902,
                            48.33076593, 77.45779628, 252.25032350)
VENUS_ORBIT = _mean_orbit(0.72333566, 0.00677672, 3.39467605,
                          76.67984255, 131.60246718, 181.97909950)
EARTH_ORBIT = _mean_orbit(1.00000261, 0.01671123, 0.0,
                          0.0, 102.93768193, 100.46457166)
MARS_ORBIT = _mean_orbit(1.52371034, 0.09339410, 1.84969142,
                         49.55953891, -23.94362959, -4.55343205)
JUPITER_ORBIT = _mean_orbit(5.20288700, 0.04838624, 1.30439695,
                            100.47390909, 14.72847983, 34.39644051)
SATURN_ORBIT = _mean_orbit(9.53667594, 0.05386179, 2.48599187,
                           113.66242448, 92.59887831, 49.95424423)

MOON_ORBIT = OrbitalElements(
    a=3.844e8, e=0.0549, i=np.radians(5.145),
    raan=np.radians(125.08), w=np.radians(318.15), M0=np.radians(135.27),
    epoch=0.0, central_mass=EARTH.mass
)

ISS_ORBIT = OrbitalElements(
    a=6.778e6, e=0.0001, i=np.radians(51.6),
    raan=0.0, w=0.0, M0=0.0, central_mass=EARTH.mass
)


def _sun():
    return Body.from_params(SUN, body_id='sun', category='star')


def _earth(parent_id='sun'):
    return Body.from_params(EARTH, body_id='earth', category='planet',
                            parent_id=parent_id,
                            orbit=EARTH_ORBIT if parent_id else None,
                            atmosphere=EARTH_STD_ATMO)


def sun_earth_system(**kwargs):
    """
    Create a Sun-Earth system.

    The Sun sits at rest at the origin; Earth is placed on its mean J2000
    orbit at the system's start time.

    Parameters
    ----------
    **kwargs
        Passed to :class:`~ouranos.SolarSystem` (mode, time, physics...)

    Returns
    -------
    SolarSystem
    """
    kwargs.setdefault('name', 'Sun-Earth')
    system = SolarSystem(**kwargs)
    system.add_bodies([_sun(), _earth()])
    return system


def earth_moon_system(**kwargs):
    """
    Create an Earth-Moon system.

    Earth sits at rest at the origin with its standard atmosphere; the
    Moon follows its mean orbit about Earth.

    Returns
    -------
    SolarSystem
    """
    kwargs.setdefault('name', 'Earth-Moon')
    system = SolarSystem(**kwargs)
    system.add_bodies([
        _earth(parent_id=None),
        Body.from_params(MOON, body_id='moon', category='moon',
                         parent_id='earth', orbit=MOON_ORBIT),
    ])
    return system


def inner_solar_system(**kwargs):
    """
    Create the Sun, the four terrestrial planets and the Moon.

    Planets follow their mean J2000 orbits about the Sun; the Moon orbits
    Earth.

    Returns
    -------
    SolarSystem
    """
    kwargs.setdefault('name', 'Inner Solar System')
    system = SolarSystem(**kwargs)
    system.add_bodies([
        _sun(),
        Body.from_params(MERCURY, body_id='mercury', category='planet',
                         parent_id='sun', orbit=MERCURY_ORBIT),
        Body.from_params(VENUS, body_id='venus', category='planet',
                         parent_id='sun', orbit=VENUS_ORBIT),
        _earth(),
        Body.from_params(MOON, body_id='moon', category='moon',
                         parent_id='earth', orbit=MOON_ORBIT),
        Body.from_params(MARS, body_id='mars', category='planet',
                         parent_id='sun', orbit=MARS_ORBIT),
    ])
    return system
