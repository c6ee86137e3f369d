"""
Data models for the tracker.

All models are frozen pydantic models: a record is replaced wholesale, never
mutated in place.

Units:
- positions in km, velocities in km/s (TEME inertial frame)
- angles in degrees, altitude in km above the WGS-84 ellipsoid
- timestamps are timezone-aware UTC datetimes
"""

import math
from datetime import datetime, timedelta
from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field


class OrbitalElementRecord(BaseModel):
    """Decoded two-line element set"""

    model_config = ConfigDict(frozen=True)

    name: str
    norad_id: int
    catalog_number: str
    classification: str
    international_designator: str
    epoch: datetime
    epoch_year: int
    epoch_days: float
    mean_motion_dot: float  # rev/day^2, first derivative / 2
    mean_motion_ddot: float  # rev/day^3, second derivative / 6
    bstar: float  # 1/earth radii
    element_number: int
    inclination_deg: float
    raan_deg: float
    eccentricity: float
    arg_perigee_deg: float
    mean_anomaly_deg: float
    mean_motion_rev_per_day: float
    revolution_number: int
    line1: str
    line2: str

    @property
    def orbital_period_minutes(self) -> float:
        return 1440.0 / self.mean_motion_rev_per_day

    def age_at(self, epoch: datetime) -> timedelta:
        """Signed time from the element set epoch to ``epoch``."""
        return epoch - self.epoch

    def to_lines(self) -> Tuple[str, str]:
        return self.line1, self.line2

    def to_text(self) -> str:
        return f"{self.name}\n{self.line1}\n{self.line2}\n"


class StateVector(BaseModel):
    """Inertial (TEME) state at one epoch"""

    model_config = ConfigDict(frozen=True)

    epoch: datetime
    position_km: Tuple[float, float, float]
    velocity_kms: Tuple[float, float, float]

    @property
    def speed_kms(self) -> float:
        vx, vy, vz = self.velocity_kms
        return math.sqrt(vx * vx + vy * vy + vz * vz)


class GeodeticSample(BaseModel):
    """Geodetic position; longitude may be raw or normalized depending on producer"""

    model_config = ConfigDict(frozen=True)

    latitude_deg: float = Field(ge=-90.0, le=90.0)
    longitude_deg: float
    altitude_km: float


class TelemetryRecord(BaseModel):
    """User-facing telemetry for one instant"""

    model_config = ConfigDict(frozen=True)

    name: str
    norad_id: int
    latitude_deg: float
    longitude_deg: float = Field(gt=-180.0, le=180.0)
    altitude_km: float
    speed_kms: float  # inertial speed, not ground speed
    timestamp: datetime


class PathSample(BaseModel):
    """
    Ground path around a center instant.

    ``points[i]`` was computed at ``epochs[i]``; epochs whose propagation failed
    are absent from both tuples. Longitudes are left raw (not wrapped into
    (-180, 180]), so renderers handle antimeridian crossings themselves.
    """

    model_config = ConfigDict(frozen=True)

    center: datetime
    step_seconds: float
    requested_points: int
    points: Tuple[GeodeticSample, ...]
    epochs: Tuple[datetime, ...]

    @property
    def dropped_points(self) -> int:
        return self.requested_points - len(self.points)
