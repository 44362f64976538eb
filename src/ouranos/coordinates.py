'''Coordinate and time transformations for the orbital mechanics core
CoordinateTransform class definition plus epoch helpers'''

import math
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple, Union

import numpy as np

from . import constants
from .config import CoordinateConfig
from .utils import wrap_angle

# J2000.0 reference epoch (treated as UTC)
J2000 = datetime(2000, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

TimeLike = Union[datetime, float, int]

# ========== EPOCH HELPERS ==========
def _as_utc(date: datetime) -> datetime:
    """Interpret naive datetimes as UTC and convert aware ones to UTC."""
    if date.tzinfo is None:
        return date.replace(tzinfo=timezone.utc)
    return date.astimezone(timezone.utc)

def to_seconds(t: TimeLike) -> float:
    """
    Convert an absolute time to seconds since J2000.0.

    Parameters
    ----------
    t : datetime or float
        A datetime (naive values are taken as UTC) or a number that is
        already seconds since J2000.0

    Returns
    -------
    float
        Seconds since J2000.0
    """
    if isinstance(t, datetime):
        return (_as_utc(t) - J2000) / timedelta(seconds=1)
    if isinstance(t, bool):
        raise TypeError("Time must be a datetime or seconds since J2000, got bool")
    if isinstance(t, (int, float, np.floating, np.integer)):
        value = float(t)
        if not math.isfinite(value):
            raise ValueError(f"Time must be finite, got {t}")
        return value
    raise TypeError(f"Time must be a datetime or seconds since J2000, got {type(t)}")

def to_datetime(seconds: float) -> datetime:
    """Convert seconds since J2000.0 to a UTC datetime (microsecond resolution)."""
    return J2000 + timedelta(seconds=float(seconds))

class CoordinateTransform:
    """
    Time and reference-frame conversions used by the physics core.

    All angles are radians. The transform is stateless apart from its
    immutable :class:`~ouranos.config.CoordinateConfig` (epoch, obliquity,
    AU), so one instance can be shared freely.

    Parameters
    ----------
    config : CoordinateConfig, optional
        Reference epoch, ecliptic obliquity and AU length.
        Defaults to J2000 values.
    """

    def __init__(self, config: Optional[CoordinateConfig] = None):
        self._config = config if config is not None else CoordinateConfig()

    # ========== PROPERTY ACCESS ==========
    @property
    def config(self) -> CoordinateConfig:
        return self._config

    @property
    def epoch(self) -> float:
        """Reference epoch [s since J2000]"""
        return self._config.epoch

    @property
    def obliquity(self) -> float:
        """Obliquity of the ecliptic [rad]"""
        return self._config.obliquity

    @property
    def au(self) -> float:
        """Astronomical unit [m]"""
        return self._config.au

    def update_config(self, **changes):
        """Replace configuration values (epoch, obliquity, au)."""
        self._config = self._config.updated(**changes)

    # ========== TIME ==========
    @staticmethod
    def julian_day(date: TimeLike) -> float:
        """
        Fractional Julian Day for a date.

        Uses the Meeus Gregorian-calendar algorithm. J2000.0
        (2000-01-01T12:00:00Z) maps to exactly 2451545.0.

        Parameters
        ----------
        date : datetime or float
            Datetime (naive is UTC) or seconds since J2000
        """
        if not isinstance(date, datetime):
            return constants.J2000_JULIAN_DAY + to_seconds(date) / constants.SECONDS_PER_DAY
        date = _as_utc(date)
        year, month = date.year, date.month
        if month <= 2:
            year -= 1
            month += 12
        a = year // 100
        b = 2 - a + a // 4
        jd = (math.floor(365.25 * (year + 4716)) + math.floor(30.6001 * (month + 1))
              + date.day + b - 1524.5)
        day_seconds = (date.hour * 3600 + date.minute * 60 + date.second
                       + date.microsecond * 1e-6)
        return jd + day_seconds / constants.SECONDS_PER_DAY

    @classmethod
    def greenwich_mean_sidereal_time(cls, date: TimeLike) -> float:
        """Greenwich Mean Sidereal Time [rad] in [0, 2pi) (IAU 1982 model)."""
        jd = cls.julian_day(date)
        T = (jd - constants.J2000_JULIAN_DAY) / constants.DAYS_PER_JULIAN_CENTURY
        gmst = (67310.54841 + (876600.0 * 3600.0 + 8640184.812866) * T
                + 0.093104 * T**2 - 6.2e-6 * T**3)
        gmst = math.fmod(gmst, constants.SECONDS_PER_DAY)
        if gmst < 0:
            gmst += constants.SECONDS_PER_DAY
        return wrap_angle(gmst / constants.SECONDS_PER_DAY * constants.TWO_PI)

    @classmethod
    def local_sidereal_time(cls, date: TimeLike, longitude: float) -> float:
        """
        Local Sidereal Time [rad] in [0, 2pi).

        Parameters
        ----------
        date : datetime or float
            Observation time
        longitude : float
            Observer longitude [rad], east positive
        """
        return wrap_angle(cls.greenwich_mean_sidereal_time(date) + longitude)

    # ========== SPHERICAL / CARTESIAN ==========
    @staticmethod
    def spherical_to_cartesian(r: float, theta: float, phi: float) -> np.ndarray:
        """
        Physics-convention spherical to Cartesian.

        theta is the polar angle from +z, phi the azimuth from +x.
        ``r == 0`` maps to the origin whatever the angles are.
        """
        if r == 0:
            return np.zeros(3)
        sin_t = math.sin(theta)
        return np.array([r * sin_t * math.cos(phi),
                         r * sin_t * math.sin(phi),
                         r * math.cos(theta)])

    @staticmethod
    def cartesian_to_spherical(vec) -> Tuple[float, float, float]:
        """
        Cartesian to physics-convention spherical ``(r, theta, phi)``.

        At the origin the angles are undefined; this degenerate case returns
        ``(0.0, nan, nan)`` rather than raising.
        """
        x, y, z = (float(c) for c in vec)
        r = math.sqrt(x * x + y * y + z * z)
        if r == 0:
            return 0.0, math.nan, math.nan
        theta = math.acos(max(-1.0, min(1.0, z / r)))
        phi = math.atan2(y, x)
        return r, theta, phi

    @staticmethod
    def ra_dec_to_vector(ra: float, dec: float) -> np.ndarray:
        """Unit direction vector for a right ascension / declination pair."""
        return np.array([math.cos(dec) * math.cos(ra),
                         math.cos(dec) * math.sin(ra),
                         math.sin(dec)])

    @staticmethod
    def vector_to_ra_dec(vec) -> Tuple[float, float]:
        """Right ascension in [0, 2pi) and declination of a direction vector."""
        x, y, z = (float(c) for c in vec)
        r = math.sqrt(x * x + y * y + z * z)
        if r == 0:
            return math.nan, math.nan
        dec = math.asin(max(-1.0, min(1.0, z / r)))
        ra = wrap_angle(math.atan2(y, x))
        return ra, dec

    # ========== CELESTIAL FRAMES ==========
    def _ecliptic_rotation(self) -> np.ndarray:
        """Rotation about +x by the obliquity: equatorial -> ecliptic."""
        eps = self.obliquity
        c, s = math.cos(eps), math.sin(eps)
        return np.array([
            [1.0, 0.0, 0.0],
            [0.0,   c,   s],
            [0.0,  -s,   c],
        ])

    def equatorial_to_ecliptic(self, ra: float, dec: float) -> Tuple[float, float]:
        """
        Equatorial (ra, dec) to ecliptic (longitude, latitude).

        Returns
        -------
        tuple of float
            Ecliptic longitude in [0, 2pi) and latitude [rad]
        """
        vec = self._ecliptic_rotation() @ self.ra_dec_to_vector(ra, dec)
        return self.vector_to_ra_dec(vec)

    def ecliptic_to_equatorial(self, longitude: float, latitude: float) -> Tuple[float, float]:
        """
        Ecliptic (longitude, latitude) to equatorial (ra, dec).

        Returns
        -------
        tuple of float
            Right ascension in [0, 2pi) and declination [rad]
        """
        vec = self._ecliptic_rotation().T @ self.ra_dec_to_vector(longitude, latitude)
        return self.vector_to_ra_dec(vec)

    def equatorial_to_galactic(self, ra: float, dec: float) -> Tuple[float, float]:
        """J2000 equatorial (ra, dec) to galactic (l, b)."""
        rot = np.array(constants.EQUATORIAL_TO_GALACTIC)
        return self.vector_to_ra_dec(rot @ self.ra_dec_to_vector(ra, dec))

    def galactic_to_equatorial(self, l: float, b: float) -> Tuple[float, float]:
        """Galactic (l, b) to J2000 equatorial (ra, dec)."""
        rot = np.array(constants.EQUATORIAL_TO_GALACTIC)
        return self.vector_to_ra_dec(rot.T @ self.ra_dec_to_vector(l, b))

    @staticmethod
    def equatorial_to_horizontal(ra: float, dec: float, lst: float,
                                 latitude: float) -> Tuple[float, float]:
        """
        Equatorial to horizontal coordinates.

        Parameters
        ----------
        ra, dec : float
            Right ascension and declination [rad]
        lst : float
            Local sidereal time [rad]
        latitude : float
            Observer latitude [rad]

        Returns
        -------
        tuple of float
            Azimuth in [0, 2pi) measured from North through East,
            and altitude [rad]
        """
        ha = lst - ra
        sin_alt = (math.sin(dec) * math.sin(latitude)
                   + math.cos(dec) * math.cos(latitude) * math.cos(ha))
        alt = math.asin(max(-1.0, min(1.0, sin_alt)))
        az = math.atan2(-math.cos(dec) * math.sin(ha),
                        math.sin(dec) * math.cos(latitude)
                        - math.cos(dec) * math.sin(latitude) * math.cos(ha))
        return wrap_angle(az), alt

    @staticmethod
    def horizontal_to_equatorial(azimuth: float, altitude: float, lst: float,
                                 latitude: float) -> Tuple[float, float]:
        """
        Horizontal (azimuth from North through East, altitude) to
        equatorial (ra in [0, 2pi), dec).
        """
        sin_dec = (math.sin(altitude) * math.sin(latitude)
                   + math.cos(altitude) * math.cos(latitude) * math.cos(azimuth))
        dec = math.asin(max(-1.0, min(1.0, sin_dec)))
        ha = math.atan2(-math.sin(azimuth) * math.cos(altitude),
                        math.sin(altitude) * math.cos(latitude)
                        - math.cos(altitude) * math.sin(latitude) * math.cos(azimuth))
        return wrap_angle(lst - ha), dec

    @staticmethod
    def heliocentric_to_geocentric(heliocentric, earth_position) -> np.ndarray:
        return np.subtract(heliocentric, earth_position, dtype=float)

    @staticmethod
    def geocentric_to_heliocentric(geocentric, earth_position) -> np.ndarray:
        return np.add(geocentric, earth_position, dtype=float)

    # ========== UNITS ==========
    def au_to_meters(self, au: float) -> float:
        return au * self.au

    def meters_to_au(self, meters: float) -> float:
        return meters / self.au

    @staticmethod
    def hours_to_radians(hours: float) -> float:
        return hours * math.pi / 12.0

    @staticmethod
    def radians_to_hours(radians: float) -> float:
        return radians * 12.0 / math.pi

    @staticmethod
    def hms_to_hours(hours: float, minutes: float, seconds: float) -> float:
        """Hours, minutes, seconds to decimal hours."""
        return _sexagesimal_to_decimal(hours, minutes, seconds)

    @staticmethod
    def hours_to_hms(decimal_hours: float) -> Tuple[int, int, float]:
        """
        Decimal hours to ``(hours, minutes, seconds)``.

        Round-trips exactly with :meth:`hms_to_hours` for well-formed input
        (0 <= minutes, seconds < 60), down to nanosecond resolution.
        """
        return _decimal_to_sexagesimal(decimal_hours)

    @staticmethod
    def dms_to_degrees(degrees: float, arcminutes: float, arcseconds: float) -> float:
        """Degrees, arcminutes, arcseconds to decimal degrees."""
        return _sexagesimal_to_decimal(degrees, arcminutes, arcseconds)

    @staticmethod
    def degrees_to_dms(decimal_degrees: float) -> Tuple[int, int, float]:
        """Decimal degrees to ``(degrees, arcminutes, arcseconds)``."""
        return _decimal_to_sexagesimal(decimal_degrees)

    # ========== SPECIAL METHODS ==========
    def __repr__(self):
        return (f"CoordinateTransform(epoch={self.epoch}, "
                f"obliquity={self.obliquity:.10f}, au={self.au:.6e})")

def _sexagesimal_to_decimal(whole: float, minutes: float, seconds: float) -> float:
    # a negative sign on any component applies to the whole value
    sign = -1.0 if (whole < 0 or minutes < 0 or seconds < 0) else 1.0
    return sign * (abs(whole) + abs(minutes) / 60.0 + abs(seconds) / 3600.0)

def _decimal_to_sexagesimal(value: float) -> Tuple[int, int, float]:
    negative = value < 0
    # round to nanoseconds first so 1.3333.. h does not become 1h 19m 59.99..s
    total = round(abs(value) * 3600.0, 9)
    whole = int(total // 3600)
    remainder = total - whole * 3600
    minutes = int(remainder // 60)
    seconds = round(remainder - minutes * 60, 9)
    if negative:
        # sign goes on the leading nonzero component
        if whole:
            whole = -whole
        elif minutes:
            minutes = -minutes
        else:
            seconds = -seconds
    return whole, minutes, seconds
