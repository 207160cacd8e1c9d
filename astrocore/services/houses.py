from __future__ import annotations

from typing import Sequence

from .constants import normalize_lon
from .errors import ShapeInvariantViolated

HOUSE_COUNT = 12


def validate_cusps(cusps: Sequence[float]) -> None:
    if cusps is None or len(cusps) != HOUSE_COUNT:
        count = None if cusps is None else len(cusps)
        raise ShapeInvariantViolated(f"Expected {HOUSE_COUNT} house cusps, got {count}")


def house_of(lon: float, cusps: Sequence[float]) -> int:
    # Cusps are ordered house 1..12 and wrap once around the circle.
    # House i spans [cusp_i, cusp_{i+1}) walking forward from cusp_i; the
    # last span closes on cusp_1.
    validate_cusps(cusps)
    nlon = normalize_lon(lon)
    for i in range(HOUSE_COUNT):
        start = cusps[i]
        end = cusps[(i + 1) % HOUSE_COUNT]
        if end <= start:
            end += 360.0
        wrapped = nlon + 360.0 if nlon < start else nlon
        if start <= wrapped < end:
            return i + 1
    # Unreachable for a consistent partition; fall back to the first house.
    return 1
