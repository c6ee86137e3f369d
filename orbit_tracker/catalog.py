"""
Bulk catalog lookup.

Splits the text of a bulk element list (CelesTrak/Space-Track style, with or
without name lines) into individual element sets and resolves one of them by
name or catalog number. Fetching the list is left to the caller.
"""

import logging
from typing import Iterator, List, Optional

from orbit_tracker.models import OrbitalElementRecord
from orbit_tracker.tle_parser import InvalidTleFormat, normalize_lines, parse_tle

logger = logging.getLogger(__name__)


def _is_data_line(line: str, number: str) -> bool:
    return line.startswith(number + " ")


def split_element_sets(text: str) -> List[str]:
    """
    Split bulk catalog text into per-object TLE texts.

    Each returned entry is two or three lines joined by newlines and can be
    passed to parse_tle_text(). Stray lines that do not belong to a line 1 /
    line 2 pair are ignored.
    """
    lines = normalize_lines(text)
    entries = []
    i = 0
    while i < len(lines) - 1:
        if _is_data_line(lines[i], "1") and _is_data_line(lines[i + 1], "2"):
            name = None
            if i > 0 and not _is_data_line(lines[i - 1], "2") and not _is_data_line(lines[i - 1], "1"):
                name = lines[i - 1]
            entry = [lines[i], lines[i + 1]]
            if name is not None:
                entry.insert(0, name)
            entries.append("\n".join(entry))
            i += 2
        else:
            i += 1
    return entries


def iter_records(text: str) -> Iterator[OrbitalElementRecord]:
    """Yield every valid element set in ``text``; invalid ones are logged and skipped."""
    for entry in split_element_sets(text):
        lines = entry.split("\n")
        name = lines[0] if len(lines) == 3 else None
        try:
            yield parse_tle(lines[-2], lines[-1], name=name)
        except InvalidTleFormat as e:
            logger.warning(f"Skipping invalid catalog entry {lines[-2][2:7]!r}: {e}")


def find_by_name(text: str, query: str) -> Optional[OrbitalElementRecord]:
    """
    First element set whose name contains ``query`` (case insensitive).
    """
    needle = query.strip().upper()
    if not needle:
        return None
    for record in iter_records(text):
        if needle in record.name.upper():
            return record
    return None


def find_by_catalog_number(text: str, norad_id: int) -> Optional[OrbitalElementRecord]:
    """Element set with the given NORAD catalog number."""
    for record in iter_records(text):
        if record.norad_id == int(norad_id):
            return record
    return None
