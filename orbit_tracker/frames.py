"""
Frame conversion: TEME inertial position to geodetic coordinates.

The sub-satellite longitude is the right ascension of the position vector minus
Greenwich Mean Sidereal Time. It is returned raw, in (-540, 180] degrees;
wrapping into (-180, 180] is left to the consumer (see telemetry.normalize_longitude).

Latitude and altitude are rotation invariant about the polar axis, so they are
computed directly from the inertial vector with an iterative Bowring solution on
the WGS-84 ellipsoid.

References:
    Vallado, D. A. (2013). Fundamentals of Astrodynamics and Applications (4th ed.), Alg. 15.
"""

import math
from datetime import datetime
from typing import Sequence, Tuple

import numpy as np
from sgp4.api import jday

from orbit_tracker.clock import ensure_utc
from orbit_tracker.config import SECONDS_PER_DAY, WGS84_A_KM, WGS84_B_KM, WGS84_E2
from orbit_tracker.models import GeodeticSample

TWOPI = 2.0 * math.pi
J2000_JD = 2451545.0


def datetime_to_jd_fr(dt: datetime) -> Tuple[float, float]:
    """
    Convert datetime to Julian date and fraction.

    Args:
        dt: Datetime object; naive values are taken as UTC

    Returns:
        Tuple of (julian_day, fraction) as expected by Satrec.sgp4
    """
    dt = ensure_utc(dt)
    seconds = dt.second + dt.microsecond / 1e6
    return jday(dt.year, dt.month, dt.day, dt.hour, dt.minute, seconds)


def gmst(dt: datetime) -> float:
    """
    Greenwich Mean Sidereal Time (IAU-82), in radians within [0, 2*pi).

    UT1 is approximated by UTC, which is well inside display accuracy.
    """
    jd, fr = datetime_to_jd_fr(dt)
    T = (jd - J2000_JD + fr) / 36525.0

    gmst_sec = (
        67310.54841 +
        (876600.0 * 3600.0 + 8640184.812866) * T +
        0.093104 * T * T -
        6.2e-6 * T * T * T
    )

    return (gmst_sec % SECONDS_PER_DAY) * (TWOPI / SECONDS_PER_DAY)


def geodetic_latitude_altitude(r: Sequence[float]) -> Tuple[float, float]:
    """
    Geodetic latitude (deg) and altitude (km) from a geocentric position vector.

    Uses Bowring's method; usually converges in 2-3 iterations.
    """
    a = WGS84_A_KM
    b = WGS84_B_KM
    e2 = WGS84_E2
    ep2 = e2 / (1.0 - e2)

    x, y, z = (float(c) for c in r)
    p = math.hypot(x, y)

    # Handle pole cases
    if p < 1e-10:
        lat = math.pi / 2.0 if z >= 0 else -math.pi / 2.0
        return math.degrees(lat), abs(z) - b

    theta = math.atan2(z * a, p * b)
    lat = theta
    for _ in range(5):
        sin_theta = math.sin(theta)
        cos_theta = math.cos(theta)

        lat = math.atan2(
            z + ep2 * b * sin_theta ** 3,
            p - e2 * a * cos_theta ** 3,
        )

        # Parametric latitude for the next pass
        new_theta = math.atan2(b * math.sin(lat), a * math.cos(lat))
        if abs(new_theta - theta) < 1e-12:
            break
        theta = new_theta

    cos_lat = math.cos(lat)
    sin_lat = math.sin(lat)
    N = a / math.sqrt(1.0 - e2 * sin_lat * sin_lat)

    if cos_lat > 1e-10:
        alt = p / cos_lat - N
    else:
        alt = z / sin_lat - N * (1.0 - e2)

    return math.degrees(lat), alt


def raw_longitude(r: Sequence[float], dt: datetime) -> float:
    """Right ascension minus GMST in degrees, not wrapped."""
    return math.degrees(math.atan2(float(r[1]), float(r[0])) - gmst(dt))


def teme_to_geodetic(r: Sequence[float], dt: datetime) -> GeodeticSample:
    """
    Convert a TEME position to geodetic coordinates at ``dt``.

    Args:
        r: Position vector [x, y, z] in km
        dt: Epoch of the position

    Returns:
        GeodeticSample with a raw (unwrapped) longitude
    """
    if not np.all(np.isfinite(np.asarray(r, dtype=float))):
        raise ValueError(f"Non-finite position vector: {list(r)}")

    lat, alt = geodetic_latitude_altitude(r)
    return GeodeticSample(
        latitude_deg=lat,
        longitude_deg=raw_longitude(r, dt),
        altitude_km=alt,
    )
