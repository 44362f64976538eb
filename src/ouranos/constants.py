"""
Physical Constants
==================

Process-wide default values in SI units. Components never read these
directly at runtime; they are copied into the configuration dataclasses in
:mod:`ouranos.config` when a component is constructed.
"""

import math

# Gravitation and light
G = 6.67430e-11              # m^3 kg^-1 s^-2
C = 299792458.0              # m/s

# Distances
AU = 1.495978707e11          # m

# Masses
SOLAR_MASS = 1.98892e30      # kg

# Solar radiation pressure at 1 AU for a perfectly absorbing surface
SOLAR_PRESSURE_AT_1AU = 4.56e-6  # N/m^2

# Time
SECONDS_PER_DAY = 86400.0
DAYS_PER_JULIAN_CENTURY = 36525.0
J2000_JULIAN_DAY = 2451545.0

# Mean obliquity of the ecliptic at J2000 (23.4392911 deg)
J2000_OBLIQUITY = math.radians(23.4392911)

# IAU J2000 equatorial -> galactic rotation matrix
EQUATORIAL_TO_GALACTIC = (
    (-0.0548755604162154, -0.8734370902348850, -0.4838350155487132),
    ( 0.4941094278755837, -0.4448296299600112,  0.7469822444972189),
    (-0.8676661490190047, -0.1980763734312015,  0.4559837761750669),
)

TWO_PI = 2.0 * math.pi
