"""Derived chart summary: balances, dominance rankings, chart ruler.

Scoring
-------
Signs start with one point per body in the sign, gain +2 each for holding
the Sun, the Moon and the ascendant, and for every aspect gain
``0.5 / max(orb, 0.25)`` per participating body that sits in the sign.

Bodies start at zero, gain +2 for being the Sun, the Moon or the chart
ruler, +1 in an angular house, and ``0.5 + 1 / max(orb, 0.25)`` for every
aspect they take part in.

Scores are rounded to two decimals before ranking. Ranking uses a stable
sort, so ties keep zodiac order (signs) or placement order (bodies).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

from .aspects import AspectPlacement
from .constants import ANGULAR_HOUSES, ELEMENTS, MODALITIES, RULERS, SIGN_NAMES, UNKNOWN_SIGN
from .placements import ChartPlacements

TOP_N = 3
TOP_ASPECTS = 10
MIN_ORB = 0.25


@dataclass(frozen=True, slots=True)
class ElementBalance:
    fire: int = 0
    earth: int = 0
    air: int = 0
    water: int = 0


@dataclass(frozen=True, slots=True)
class ModalityBalance:
    cardinal: int = 0
    fixed: int = 0
    mutable: int = 0


@dataclass(frozen=True, slots=True)
class DerivedSummary:
    element_balance: ElementBalance
    modality_balance: ModalityBalance
    dominant_signs: List[Tuple[str, float]]
    dominant_bodies: List[Tuple[str, float]]
    chart_ruler: str
    top_aspects: List[AspectPlacement] = field(default_factory=list)


def element_balance(placements: ChartPlacements) -> ElementBalance:
    counts = {"fire": 0, "earth": 0, "air": 0, "water": 0}
    for body in placements.bodies:
        element = ELEMENTS.get(body.sign)
        if element:
            counts[element] += 1
    return ElementBalance(**counts)


def modality_balance(placements: ChartPlacements) -> ModalityBalance:
    counts = {"cardinal": 0, "fixed": 0, "mutable": 0}
    for body in placements.bodies:
        modality = MODALITIES.get(body.sign)
        if modality:
            counts[modality] += 1
    return ModalityBalance(**counts)


def chart_ruler(placements: ChartPlacements) -> str:
    return RULERS.get(placements.angles.ascendant.sign, UNKNOWN_SIGN)


def _ranked(scores: Dict[str, float]) -> List[Tuple[str, float]]:
    rounded = [(name, round(score, 2)) for name, score in scores.items()]
    rounded.sort(key=lambda item: item[1], reverse=True)
    return rounded[:TOP_N]


def dominant_signs(
    placements: ChartPlacements, aspects: Sequence[AspectPlacement]
) -> List[Tuple[str, float]]:
    scores: Dict[str, float] = {sign: 0.0 for sign in SIGN_NAMES}
    sign_of: Dict[str, str] = {}

    for body in placements.bodies:
        if body.sign in scores:
            scores[body.sign] += 1
            sign_of[body.name] = body.sign

    for luminary in ("Sun", "Moon"):
        sign = sign_of.get(luminary)
        if sign:
            scores[sign] += 2

    asc_sign = placements.angles.ascendant.sign
    if asc_sign in scores:
        scores[asc_sign] += 2

    for aspect in aspects:
        bonus = 0.5 / max(aspect.orb, MIN_ORB)
        for name in aspect.between:
            sign = sign_of.get(name)
            if sign:
                scores[sign] += bonus

    return _ranked(scores)


def dominant_bodies(
    placements: ChartPlacements, aspects: Sequence[AspectPlacement], ruler: str
) -> List[Tuple[str, float]]:
    scores: Dict[str, float] = {}
    for body in placements.bodies:
        score = 0.0
        if body.name == "Sun":
            score += 2
        if body.name == "Moon":
            score += 2
        if body.name == ruler:
            score += 2
        if body.house in ANGULAR_HOUSES:
            score += 1
        scores[body.name] = score

    for aspect in aspects:
        bonus = 0.5 + 1.0 / max(aspect.orb, MIN_ORB)
        for name in aspect.between:
            scores[name] = scores.get(name, 0.0) + bonus

    return _ranked(scores)


def top_aspects(aspects: Sequence[AspectPlacement], limit: int = TOP_ASPECTS) -> List[AspectPlacement]:
    return sorted(aspects, key=lambda a: a.orb)[:limit]


def compute_derived(placements: ChartPlacements, aspects: Sequence[AspectPlacement]) -> DerivedSummary:
    ruler = chart_ruler(placements)
    return DerivedSummary(
        element_balance=element_balance(placements),
        modality_balance=modality_balance(placements),
        dominant_signs=dominant_signs(placements, aspects),
        dominant_bodies=dominant_bodies(placements, aspects, ruler),
        chart_ruler=ruler,
        top_aspects=top_aspects(aspects),
    )


__all__ = [
    "DerivedSummary",
    "ElementBalance",
    "ModalityBalance",
    "chart_ruler",
    "compute_derived",
    "dominant_bodies",
    "dominant_signs",
    "element_balance",
    "modality_balance",
    "top_aspects",
]
