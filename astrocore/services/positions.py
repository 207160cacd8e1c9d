"""Value types and the protocol every position source implements.

Kept apart from :mod:`ephem` so the engines import no native binding.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Protocol


@dataclass(frozen=True, slots=True)
class BodyPosition:
    longitude: float
    speed: float


@dataclass(frozen=True, slots=True)
class HouseCusps:
    cusps: List[float]
    ascendant: float
    midheaven: float


class PositionSource(Protocol):
    """What the engines need from an ephemeris. Tests supply fakes."""

    def body_position(self, jd: float, body: str) -> BodyPosition: ...

    def houses(self, jd: float, lat: float, lon: float, system: str = "placidus") -> HouseCusps: ...


__all__ = ["BodyPosition", "HouseCusps", "PositionSource"]
