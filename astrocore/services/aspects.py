from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from .placements import BodyPlacement


@dataclass(frozen=True, slots=True)
class AspectDefinition:
    type: str
    angle: float
    orb: float


# Order matters: classification stops at the first definition within orb.
MAJOR_ASPECTS: Tuple[AspectDefinition, ...] = (
    AspectDefinition("conjunction", 0.0, 8.0),
    AspectDefinition("sextile", 60.0, 6.0),
    AspectDefinition("square", 90.0, 6.0),
    AspectDefinition("trine", 120.0, 7.0),
    AspectDefinition("opposition", 180.0, 8.0),
)


@dataclass(frozen=True, slots=True)
class AspectPlacement:
    between: Tuple[str, str]
    type: str
    orb: float
    exact_angle: float


def _angle_diff(a: float, b: float) -> float:
    """Return the minimal angular distance between two longitudes."""

    diff = abs(a - b) % 360.0
    if diff > 180.0:
        diff = 360.0 - diff
    return diff


def classify_separation(
    separation: float, definitions: Sequence[AspectDefinition] = MAJOR_ASPECTS
) -> Optional[Tuple[AspectDefinition, float]]:
    for definition in definitions:
        orb = abs(separation - definition.angle)
        if orb <= definition.orb:
            return definition, orb
    return None


def find_aspects(
    bodies: Iterable[BodyPlacement],
    definitions: Sequence[AspectDefinition] = MAJOR_ASPECTS,
) -> List[AspectPlacement]:
    placed = [b for b in bodies if b.longitude is not None]
    res: List[AspectPlacement] = []
    for i in range(len(placed)):
        for j in range(i + 1, len(placed)):
            p1, p2 = placed[i], placed[j]
            d = _angle_diff(p1.longitude, p2.longitude)
            match = classify_separation(d, definitions)
            if match is None:
                continue
            definition, orb = match
            res.append(
                AspectPlacement(
                    between=(p1.name, p2.name),
                    type=definition.type,
                    orb=orb,
                    exact_angle=d,
                )
            )
    return res
