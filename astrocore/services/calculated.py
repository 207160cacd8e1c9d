"""Calculated chart features that need no further ephemeris calls.

* South Node: the point opposite the North Node.
* Sect: day when the Sun is above the horizon (houses 7-12), else night.
* Part of Fortune: ``Asc + Moon - Sun`` by day, ``Asc + Sun - Moon`` by night.
* Emphasis: per-sign and per-house body counts, with stelliums at three or more.
* Patterns: grand trines and T-squares among the ten classical bodies.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from itertools import combinations
from typing import Dict, FrozenSet, List, Literal, Optional, Sequence, Set, Tuple, Union

from .aspects import AspectPlacement
from .constants import CLASSICAL_BODIES, normalize_lon, sign_name_from_lon
from .errors import MissingReferencePoint
from .placements import ChartPlacements

Sect = Literal["day", "night"]

NORTH_NODE = "North Node"
STELLIUM_MIN = 3


@dataclass(frozen=True, slots=True)
class CalculatedPoint:
    longitude: float
    sign: str
    house: Optional[int]


@dataclass(frozen=True, slots=True)
class Stellium:
    type: Literal["sign", "house"]
    name: Union[str, int]
    bodies: List[str]


@dataclass(frozen=True, slots=True)
class Emphasis:
    house_emphasis: List[Tuple[int, int]]
    sign_emphasis: List[Tuple[str, int]]
    stelliums: List[Stellium]


@dataclass(frozen=True, slots=True)
class AspectPattern:
    type: Literal["grand_trine", "t_square"]
    bodies: List[str]


@dataclass(frozen=True, slots=True)
class CalculatedSummary:
    south_node: CalculatedPoint
    sect: Sect
    part_of_fortune: Optional[CalculatedPoint]
    emphasis: Emphasis
    patterns: List[AspectPattern] = field(default_factory=list)


def _point(placements: ChartPlacements, lon: float) -> CalculatedPoint:
    lon = normalize_lon(lon)
    return CalculatedPoint(longitude=lon, sign=sign_name_from_lon(lon), house=placements.house_for(lon))


def opposite_point(placements: ChartPlacements, reference: str = NORTH_NODE) -> CalculatedPoint:
    body = placements.body(reference)
    if body is None or body.longitude is None:
        raise MissingReferencePoint(f"{reference} not found or missing longitude")
    return _point(placements, body.longitude + 180.0)


def chart_sect(placements: ChartPlacements) -> Sect:
    sun = placements.body("Sun")
    if sun is None or sun.house is None:
        return "night"
    return "day" if 7 <= sun.house <= 12 else "night"


def part_of_fortune(placements: ChartPlacements, sect: Sect) -> Optional[CalculatedPoint]:
    asc = placements.angles.ascendant.longitude
    sun = placements.body("Sun")
    moon = placements.body("Moon")
    if asc is None or sun is None or moon is None:
        return None
    if sect == "day":
        lon = asc + moon.longitude - sun.longitude
    else:
        lon = asc + sun.longitude - moon.longitude
    return _point(placements, lon)


def emphasis(placements: ChartPlacements) -> Emphasis:
    by_sign: Dict[str, List[str]] = defaultdict(list)
    by_house: Dict[int, List[str]] = defaultdict(list)
    for body in placements.bodies:
        if body.sign:
            by_sign[body.sign].append(body.name)
        if body.house is not None:
            by_house[body.house].append(body.name)

    sign_emphasis = sorted(
        ((sign, len(names)) for sign, names in by_sign.items()),
        key=lambda item: item[1],
        reverse=True,
    )
    house_emphasis = sorted(
        ((house, len(names)) for house, names in sorted(by_house.items())),
        key=lambda item: item[1],
        reverse=True,
    )

    stelliums: List[Stellium] = []
    for sign, names in by_sign.items():
        if len(names) >= STELLIUM_MIN:
            stelliums.append(Stellium(type="sign", name=sign, bodies=sorted(names)))
    for house, names in sorted(by_house.items()):
        if len(names) >= STELLIUM_MIN:
            stelliums.append(Stellium(type="house", name=house, bodies=sorted(names)))

    return Emphasis(house_emphasis=house_emphasis, sign_emphasis=sign_emphasis, stelliums=stelliums)


def _aspect_index(aspects: Sequence[AspectPlacement]) -> Dict[FrozenSet[str], str]:
    return {frozenset(a.between): a.type for a in aspects}


def detect_patterns(aspects: Sequence[AspectPlacement]) -> List[AspectPattern]:
    if not aspects:
        return []

    index = _aspect_index(aspects)

    def kind(a: str, b: str) -> Optional[str]:
        return index.get(frozenset((a, b)))

    candidates: List[str] = []
    for aspect in aspects:
        for name in aspect.between:
            if name in CLASSICAL_BODIES and name not in candidates:
                candidates.append(name)

    patterns: List[AspectPattern] = []
    seen: Set[Tuple[str, Tuple[str, ...]]] = set()

    def add(pattern_type: str, trio: Tuple[str, str, str]) -> None:
        key = (pattern_type, tuple(sorted(trio)))
        if key in seen:
            return
        seen.add(key)
        patterns.append(AspectPattern(type=pattern_type, bodies=list(key[1])))

    for trio in combinations(candidates, 3):
        p1, p2, p3 = trio
        if kind(p1, p2) == kind(p1, p3) == kind(p2, p3) == "trine":
            add("grand_trine", trio)

        # Each pair takes a turn as the opposition; the apex squares both ends.
        for (a, b), apex in (((p1, p2), p3), ((p1, p3), p2), ((p2, p3), p1)):
            if kind(a, b) == "opposition" and kind(a, apex) == "square" and kind(b, apex) == "square":
                add("t_square", trio)

    return patterns


def compute_calculated(
    placements: ChartPlacements, aspects: Sequence[AspectPlacement]
) -> CalculatedSummary:
    sect = chart_sect(placements)
    return CalculatedSummary(
        south_node=opposite_point(placements),
        sect=sect,
        part_of_fortune=part_of_fortune(placements, sect),
        emphasis=emphasis(placements),
        patterns=detect_patterns(aspects),
    )


__all__ = [
    "AspectPattern",
    "CalculatedPoint",
    "CalculatedSummary",
    "Emphasis",
    "Stellium",
    "chart_sect",
    "compute_calculated",
    "detect_patterns",
    "emphasis",
    "opposite_point",
    "part_of_fortune",
]
