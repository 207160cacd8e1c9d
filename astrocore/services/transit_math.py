"""Wrap-aware angle arithmetic shared by the event solver.

These utilities are intentionally kept free of heavy runtime dependencies so
they can be unit-tested without requiring the Swiss Ephemeris bindings.
"""

from __future__ import annotations

from typing import List


def ang_diff(target: float, lon: float) -> float:
    """Return ``lon - target`` folded into [-180, 180).

    Positive values mean ``lon`` lies ahead of ``target`` in zodiacal order.
    The value changes sign exactly when a body moving through ``target``
    crosses it, which is what the root-finder brackets on.
    """

    return ((lon - target) % 360.0 + 540.0) % 360.0 - 180.0


def aspect_targets(natal_lon: float, aspect_angle: float) -> List[float]:
    """Longitudes a transiting body must reach to perfect the aspect.

    Conjunction and opposition have a single target; every other aspect
    can be made from either side of the natal point.
    """

    if aspect_angle % 360.0 == 0.0:
        return [natal_lon % 360.0]
    if aspect_angle % 360.0 == 180.0:
        return [(natal_lon + 180.0) % 360.0]
    return [(natal_lon + aspect_angle) % 360.0, (natal_lon - aspect_angle) % 360.0]


__all__ = ["ang_diff", "aspect_targets"]
