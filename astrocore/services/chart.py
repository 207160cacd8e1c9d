from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from .aspects import AspectPlacement, find_aspects
from .calculated import CalculatedSummary, compute_calculated
from .derived import DerivedSummary, compute_derived
from .positions import PositionSource
from .observability import Tracer, default_tracer
from .placements import BirthInstant, ChartPlacements, Location, compute_placements


@dataclass(frozen=True, slots=True)
class BirthChart:
    placements: ChartPlacements
    aspects: List[AspectPlacement]
    derived: DerivedSummary
    calculated: CalculatedSummary


def compute_chart(
    provider: PositionSource,
    birth: BirthInstant,
    location: Location,
    house_system: str = "placidus",
    tracer: Optional[Tracer] = None,
) -> BirthChart:
    """Placements, then aspects, then the derived and calculated summaries."""

    tracer = tracer or default_tracer()
    placements = compute_placements(provider, birth, location, house_system, tracer=tracer)
    aspects = find_aspects(placements.bodies)
    tracer.event("aspects_found", count=len(aspects))
    derived = compute_derived(placements, aspects)
    calculated = compute_calculated(placements, aspects)
    tracer.event(
        "chart_computed",
        jd=placements.julian_day,
        bodies=len(placements.bodies),
        houses=len(placements.houses),
        chart_ruler=derived.chart_ruler,
        sect=calculated.sect,
    )
    return BirthChart(placements=placements, aspects=aspects, derived=derived, calculated=calculated)


__all__ = ["BirthChart", "compute_chart"]
