"""
Unit Tests for Frame Conversion

Run with:
    python -m pytest tests/test_frames.py -v
"""

import math
import unittest
from datetime import datetime, timedelta, timezone

from orbit_tracker.config import WGS84_A_KM, WGS84_B_KM, WGS84_E2
from orbit_tracker.frames import (
    datetime_to_jd_fr,
    geodetic_latitude_altitude,
    gmst,
    raw_longitude,
    teme_to_geodetic,
)

J2000 = datetime(2000, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def geodetic_to_cartesian(lat_deg, lon_deg, alt_km):
    """Forward transform used to build test points."""
    lat = math.radians(lat_deg)
    lon = math.radians(lon_deg)
    N = WGS84_A_KM / math.sqrt(1.0 - WGS84_E2 * math.sin(lat) ** 2)
    return (
        (N + alt_km) * math.cos(lat) * math.cos(lon),
        (N + alt_km) * math.cos(lat) * math.sin(lon),
        (N * (1.0 - WGS84_E2) + alt_km) * math.sin(lat),
    )


class TestSiderealTime(unittest.TestCase):
    """Test Julian date and GMST."""

    def test_julian_date_at_j2000(self):
        jd, fr = datetime_to_jd_fr(J2000)
        self.assertAlmostEqual(jd + fr, 2451545.0, places=9)

    def test_gmst_at_j2000(self):
        """GMST at J2000.0 is 280.46061837 degrees."""
        self.assertAlmostEqual(math.degrees(gmst(J2000)), 280.46061837, places=6)

    def test_gmst_advances_one_sidereal_day(self):
        """Earth turns ~360.9856 degrees per solar day."""
        start = math.degrees(gmst(J2000))
        after = math.degrees(gmst(J2000 + timedelta(days=1)))
        self.assertAlmostEqual((after - start) % 360.0, 0.98564736, places=4)

    def test_gmst_range(self):
        for hours in range(0, 48, 5):
            angle = gmst(J2000 + timedelta(hours=hours, minutes=7))
            self.assertGreaterEqual(angle, 0.0)
            self.assertLess(angle, 2.0 * math.pi)


class TestGeodeticConversion(unittest.TestCase):
    """Test inertial to geodetic conversion."""

    def test_equator(self):
        lat, alt = geodetic_latitude_altitude((WGS84_A_KM + 400.0, 0.0, 0.0))
        self.assertAlmostEqual(lat, 0.0, places=9)
        self.assertAlmostEqual(alt, 400.0, places=6)

    def test_pole(self):
        lat, alt = geodetic_latitude_altitude((0.0, 0.0, WGS84_B_KM + 500.0))
        self.assertAlmostEqual(lat, 90.0, places=9)
        self.assertAlmostEqual(alt, 500.0, places=6)

        lat, alt = geodetic_latitude_altitude((0.0, 0.0, -(WGS84_B_KM + 500.0)))
        self.assertAlmostEqual(lat, -90.0, places=9)

    def test_round_trip_mid_latitudes(self):
        """Geodetic latitude (not geocentric) and ellipsoidal height are recovered."""
        for lat_deg, lon_deg, alt_km in [(45.0, 10.0, 100.0), (-51.6, -120.0, 420.0), (80.0, 170.0, 800.0)]:
            lat, alt = geodetic_latitude_altitude(geodetic_to_cartesian(lat_deg, lon_deg, alt_km))
            self.assertAlmostEqual(lat, lat_deg, places=8)
            self.assertAlmostEqual(alt, alt_km, places=5)

    def test_longitude_is_not_wrapped(self):
        """Right ascension 0 at J2000 maps to -280.46 degrees, left raw."""
        lon = raw_longitude((7000.0, 0.0, 0.0), J2000)
        self.assertAlmostEqual(lon, -280.46061837, places=5)

    def test_teme_to_geodetic(self):
        sample = teme_to_geodetic((WGS84_A_KM + 400.0, 0.0, 0.0), J2000)

        self.assertAlmostEqual(sample.latitude_deg, 0.0, places=9)
        self.assertAlmostEqual(sample.altitude_km, 400.0, places=6)
        self.assertAlmostEqual(sample.longitude_deg, -280.46061837, places=5)

    def test_non_finite_position_is_rejected(self):
        with self.assertRaises(ValueError):
            teme_to_geodetic((float("nan"), 0.0, 0.0), J2000)


if __name__ == "__main__":
    unittest.main()
