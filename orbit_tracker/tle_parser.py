"""
TLE Parser Module

Validates Two-Line Element (TLE) text and decomposes it into an immutable
OrbitalElementRecord.

Accepted input is two data lines, optionally preceded by a name line. Lines are
trimmed and blank lines discarded before the line count is checked. No numeric
propagation happens here; the sgp4 library is only used to confirm that its
initialiser accepts the element set.
"""

import logging
from typing import List, Optional

from sgp4.api import Satrec
from sgp4.conveniences import sat_epoch_datetime

from orbit_tracker.models import OrbitalElementRecord

logger = logging.getLogger(__name__)

TLE_LINE_LENGTH = 69


class InvalidTleFormat(ValueError):
    """Raised when TLE text is malformed or incomplete."""


def tle_checksum(line: str) -> int:
    """
    Calculate the modulo-10 TLE checksum.

    Digits count their value, minus signs count one, everything else zero.
    """
    checksum = 0
    for char in line[:68]:
        if char.isdigit():
            checksum += int(char)
        elif char == "-":
            checksum += 1
    return checksum % 10


def normalize_lines(text: str) -> List[str]:
    """Trim every line and drop the empty ones."""
    return [line.strip() for line in text.splitlines() if line.strip()]


def parse_tle_text(text: str) -> OrbitalElementRecord:
    """
    Parse two- or three-line TLE text.

    Args:
        text: Raw TLE text, optionally with a leading name line

    Returns:
        OrbitalElementRecord

    Raises:
        InvalidTleFormat: on any line count other than two or three, or when
            the data lines fail validation
    """
    if not isinstance(text, str):
        raise InvalidTleFormat(f"TLE text must be a string, got {type(text).__name__}")

    lines = normalize_lines(text)

    if len(lines) == 2:
        return parse_tle(lines[0], lines[1])
    if len(lines) == 3:
        return parse_tle(lines[1], lines[2], name=lines[0])

    raise InvalidTleFormat(
        f"Expected 2 or 3 non-empty lines, got {len(lines)}"
    )


def parse_tle(line1: str, line2: str, name: Optional[str] = None) -> OrbitalElementRecord:
    """
    Validate a pair of TLE data lines and decode their fields.

    Args:
        line1: First data line
        line2: Second data line
        name: Display name; synthesized from the catalog number when missing

    Returns:
        OrbitalElementRecord holding the original lines unchanged
    """
    line1 = line1.strip()
    line2 = line2.strip()

    _check_line(line1, "1")
    _check_line(line2, "2")

    if line1[2:7] != line2[2:7]:
        raise InvalidTleFormat(
            f"Catalog numbers differ between lines: {line1[2:7]!r} vs {line2[2:7]!r}"
        )

    try:
        satellite = Satrec.twoline2rv(line1, line2)
    except (ValueError, IndexError) as e:
        raise InvalidTleFormat(f"SGP4 rejected element set: {e}") from e

    if name is not None:
        name = _clean_name(name)
    if not name:
        name = f"NORAD {satellite.satnum}"

    try:
        record = OrbitalElementRecord(
            name=name,
            norad_id=satellite.satnum,
            catalog_number=line1[2:7].strip(),
            classification=line1[7].strip() or "U",
            international_designator=line1[9:17].strip(),
            epoch=sat_epoch_datetime(satellite),
            epoch_year=int(line1[18:20]),
            epoch_days=float(line1[20:32]),
            mean_motion_dot=float(line1[33:43]),
            mean_motion_ddot=_implied_decimal(line1[44:52]),
            bstar=_implied_decimal(line1[53:61]),
            element_number=_int_field(line1[64:68]),
            inclination_deg=float(line2[8:16]),
            raan_deg=float(line2[17:25]),
            eccentricity=float("0." + line2[26:33].strip()),
            arg_perigee_deg=float(line2[34:42]),
            mean_anomaly_deg=float(line2[43:51]),
            mean_motion_rev_per_day=float(line2[52:63]),
            revolution_number=_int_field(line2[63:68]),
            line1=line1,
            line2=line2,
        )
    except ValueError as e:
        raise InvalidTleFormat(f"Unparseable TLE field: {e}") from e

    if record.mean_motion_rev_per_day <= 0.0:
        raise InvalidTleFormat(f"Mean motion must be positive, got {record.mean_motion_rev_per_day}")

    logger.debug(f"Parsed TLE for {record.name} (NORAD {record.norad_id})")
    return record


def _check_line(line: str, number: str) -> None:
    if len(line) != TLE_LINE_LENGTH:
        raise InvalidTleFormat(
            f"Line {number} must be {TLE_LINE_LENGTH} characters, got {len(line)}"
        )
    if line[0] != number or line[1] != " ":
        raise InvalidTleFormat(f"Line {number} must start with '{number} ': {line[:2]!r}")

    expected = line[68]
    if not expected.isdigit():
        raise InvalidTleFormat(f"Line {number} checksum is not a digit: {expected!r}")
    actual = tle_checksum(line)
    if actual != int(expected):
        raise InvalidTleFormat(
            f"Line {number} checksum mismatch: expected {expected}, computed {actual}"
        )


def _clean_name(name: str) -> str:
    """Strip the '0 ' marker used by three-line (3LE) catalog output."""
    name = name.strip()
    if name.startswith("0 "):
        name = name[2:].strip()
    return name


def _implied_decimal(field: str) -> float:
    """
    Parse TLE exponential notation with an implied leading decimal point.

    ' 21844-3' -> 0.21844e-3, '-11606-4' -> -0.11606e-4
    """
    field = field.strip()
    if not field:
        return 0.0

    sign = 1.0
    if field[0] in "+-":
        sign = -1.0 if field[0] == "-" else 1.0
        field = field[1:]

    mantissa, exponent = field[:-2], field[-2:]
    return sign * float("0." + mantissa.replace(" ", "0")) * 10.0 ** int(exponent)


def _int_field(field: str) -> int:
    field = field.strip()
    return int(field) if field else 0
