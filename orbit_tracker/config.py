"""
Tracker Configuration and Constants

This module contains physical constants, fallback TLE data and the runtime
settings used throughout the tracker.

Constants:
    WGS-84 ellipsoid parameters for the geodetic conversion. SGP4 itself runs on
    the WGS-72 constants built into the sgp4 library.

Fallback TLE Data:
    Hardcoded ISS TLE data for demonstrations and testing when live data is unavailable.

    IMPORTANT: Update this TLE data periodically for accuracy.
    - Low Earth Orbit (LEO) satellites: Update weekly
    - Medium Earth Orbit (MEO): Update monthly
    - Geostationary (GEO): Update quarterly

    Sources for updated TLEs:
    - Space-Track.org (requires free registration)
    - CelesTrak.org (public access)

Settings:
    TrackerSettings can be built from environment variables with
    TrackerSettings.from_env(). Every variable is optional:

    ORBIT_TRACKER_UPDATE_INTERVAL_S    telemetry refresh period (default 1.0)
    ORBIT_TRACKER_PATH_POINTS          path sample count (default 360)
    ORBIT_TRACKER_PATH_STEP_S          spacing between path samples (default 60)
    ORBIT_TRACKER_MAX_EPOCH_AGE_DAYS   propagation span either side of the TLE epoch (default 30)
    ORBIT_TRACKER_LOG_LEVEL            logging level name (default INFO)
"""

import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field

# WGS-84 ellipsoid
WGS84_A_KM: float = 6378.137  # Equatorial radius (km)
WGS84_F: float = 1.0 / 298.257223563  # Flattening
WGS84_B_KM: float = WGS84_A_KM * (1.0 - WGS84_F)  # Polar radius (km)
WGS84_E2: float = 2.0 * WGS84_F - WGS84_F * WGS84_F  # First eccentricity squared

SECONDS_PER_DAY: float = 86400.0
MINUTES_PER_DAY: float = 1440.0

# Fallback ISS TLE for demonstrations and testing
# Last updated: 2025-08-18
FALLBACK_ISS_TLE: str = (
    "ISS (ZARYA)\n"
    "1 25544U 98067A   25230.51041667  .00002182  00000-0  13103-3 0  9996\n"
    "2 25544  51.6416  45.1234 0002329  75.6910 284.4861 15.50000000123457\n"
)

ENV_PREFIX = "ORBIT_TRACKER_"


class TrackerSettings(BaseModel):
    """Runtime settings with validation"""

    update_interval_s: float = Field(1.0, gt=0)
    path_points: int = Field(360, gt=0)
    path_step_s: float = Field(60.0, gt=0)
    max_epoch_age_days: float = Field(30.0, gt=0)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "TrackerSettings":
        """
        Build settings from ORBIT_TRACKER_* environment variables.

        Args:
            environ: Mapping to read instead of os.environ

        Returns:
            Validated settings; unset variables keep their defaults
        """
        environ = os.environ if environ is None else environ
        values = {}
        for field_name in cls.model_fields:
            raw = environ.get(ENV_PREFIX + field_name.upper())
            if raw is not None and raw.strip():
                values[field_name] = raw.strip()
        return cls(**values)
