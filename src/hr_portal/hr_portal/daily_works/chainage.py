"""Road chainage parsing and jurisdiction lookup.

A chainage is written ``K<km>+<metres>`` (``K24+800``); a location is a
single chainage or a ``start-end`` range, optionally with a prefix
(``SCK0+220``) or a trailing note (``K13 TOLL``).
"""
from __future__ import annotations

import logging
import re
from typing import Iterable, Optional

from ..core.constants import MAX_LOCATION_KM
from .model import Jurisdiction

logger = logging.getLogger(__name__)

_POINT = r"[A-Z]*K[0-9]+(?:\+[0-9]+(?:\.[0-9]+)?)?"
LOCATION_RE = re.compile(rf"({_POINT})\s*-\s*({_POINT})|({_POINT})")
CHAINAGE_RE = re.compile(r"K(\d+)(?:\+(\d+(?:\.\d+)?))?")
START_RE = re.compile(r"^K(\d+)")


def chainage_to_float(chainage: str) -> float:
    """``K05+900`` -> 5.9; anything unparseable -> 0.0."""
    m = CHAINAGE_RE.search((chainage or "").strip().upper())
    if not m:
        return 0.0
    return int(m.group(1)) + (float(m.group(2)) / 1000 if m.group(2) else 0.0)


def split_location(location: str) -> tuple[Optional[str], Optional[str]]:
    m = LOCATION_RE.search((location or "").upper())
    if not m:
        return None, None
    if m.group(1):
        return m.group(1), m.group(2)
    return m.group(3), None


def is_valid_location(location: str) -> bool:
    m = START_RE.match((location or "").strip().upper())
    return bool(m) and 0 <= int(m.group(1)) <= MAX_LOCATION_KM


def find_jurisdiction(location: str, jurisdictions: Iterable[Jurisdiction]) -> Optional[Jurisdiction]:
    start, end = split_location(location)
    if not start:
        logger.debug("No chainage pattern in location %r", location)
        return None

    start_km = chainage_to_float(start)
    end_km = chainage_to_float(end) if end else None

    for j in jurisdictions:
        low, high = chainage_to_float(j.start_chainage), chainage_to_float(j.end_chainage)
        if low <= start_km <= high:
            return j
        if end_km is not None and low <= end_km <= high:
            return j

    logger.debug("No jurisdiction covers location %r", location)
    return None
