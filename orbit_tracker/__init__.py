"""
Orbit Tracker Package

Near-real-time tracking of a single orbiting object from a two-line element set.

Modules:
    tle_parser: TLE validation and decomposition into element records
    catalog: Lookup of element sets inside bulk catalog text
    propagator: SGP4 propagation to arbitrary epochs
    frames: Sidereal time and inertial to geodetic conversion
    telemetry: Live telemetry sampling
    path_sampler: Past/future ground path sampling
    scheduler: Cancellable periodic telemetry updates
    session: Tracking session lifecycle

References:
    Vallado, D. A., Crawford, P., Hujsak, R., & Kelso, T. S. (2006).
    Revisiting Spacetrack Report #3. AIAA 2006-6753.
"""

from orbit_tracker.propagator import EpochOutOfRange, PropagationError, Propagator
from orbit_tracker.session import TrackingManager, TrackingSession
from orbit_tracker.tle_parser import InvalidTleFormat, parse_tle, parse_tle_text

__version__ = "1.0.0"

__all__ = [
    "EpochOutOfRange",
    "InvalidTleFormat",
    "PropagationError",
    "Propagator",
    "TrackingManager",
    "TrackingSession",
    "parse_tle",
    "parse_tle_text",
]
