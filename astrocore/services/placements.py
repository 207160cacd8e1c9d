"""Placement engine: bodies, houses and angles for one birth instant.

Per-body and per-house provider failures are absorbed so a chart degrades
to what can be computed. A malformed house table is not absorbed: partial
cusp data cannot be mapped, so it aborts the chart.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

from .constants import CHART_BODIES, UNKNOWN_SIGN, fmt_deg, normalize_lon, sign_name_from_lon
from .positions import PositionSource
from .errors import ProviderLookupFailed
from .houses import house_of, validate_cusps
from .observability import Tracer, default_tracer
from .timescale import to_jd_utc

CHART_SYSTEM = "western_tropical_placidus"


def chart_system(house_system: str) -> str:
    return f"western_tropical_{house_system.lower()}"


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class BirthInstant:
    date: str  # YYYY-MM-DD
    time: str  # HH:MM or HH:MM:SS, local wall clock
    timezone: str  # IANA name

    def julian_day(self) -> float:
        return to_jd_utc(self.date, self.time, self.timezone)


@dataclass(frozen=True, slots=True)
class KnownLocation:
    latitude: float
    longitude: float


@dataclass(frozen=True, slots=True)
class UnknownLocation:
    pass


Location = Union[KnownLocation, UnknownLocation]

UNKNOWN_LOCATION = UnknownLocation()


def location_from_coordinates(lat: Optional[float], lon: Optional[float]) -> Location:
    """Map raw coordinates to a :data:`Location`.

    ``(0, 0)``, missing and non-finite values mean the birthplace is unknown;
    they are never treated as a point on the equator.
    """

    if lat is None or lon is None:
        return UNKNOWN_LOCATION
    try:
        lat_f, lon_f = float(lat), float(lon)
    except (TypeError, ValueError):
        return UNKNOWN_LOCATION
    if not (math.isfinite(lat_f) and math.isfinite(lon_f)):
        return UNKNOWN_LOCATION
    if lat_f == 0.0 and lon_f == 0.0:
        return UNKNOWN_LOCATION
    return KnownLocation(latitude=lat_f, longitude=lon_f)


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class BodyPlacement:
    name: str
    sign: str
    longitude: float
    house: Optional[int]
    retrograde: bool
    speed: Optional[float] = None


@dataclass(frozen=True, slots=True)
class HousePlacement:
    house: int
    sign_on_cusp: str
    cusp_longitude: float


@dataclass(frozen=True, slots=True)
class AngleRecord:
    sign: str
    longitude: Optional[float] = None

    @property
    def resolved(self) -> bool:
        return self.longitude is not None


UNRESOLVED_ANGLE = AngleRecord(sign=UNKNOWN_SIGN, longitude=None)


@dataclass(frozen=True, slots=True)
class Angles:
    ascendant: AngleRecord = UNRESOLVED_ANGLE
    midheaven: AngleRecord = UNRESOLVED_ANGLE
    descendant: AngleRecord = UNRESOLVED_ANGLE
    ic: AngleRecord = UNRESOLVED_ANGLE

    @property
    def resolved(self) -> bool:
        return self.ascendant.resolved and self.midheaven.resolved


@dataclass(frozen=True, slots=True)
class ChartPlacements:
    julian_day: float
    bodies: List[BodyPlacement]
    houses: List[HousePlacement] = field(default_factory=list)
    angles: Angles = field(default_factory=Angles)
    system: str = CHART_SYSTEM

    def body(self, name: str) -> Optional[BodyPlacement]:
        for placement in self.bodies:
            if placement.name == name:
                return placement
        return None

    @property
    def cusps(self) -> List[float]:
        return [h.cusp_longitude for h in self.houses]

    def house_for(self, lon: float) -> Optional[int]:
        """House of an arbitrary longitude, or ``None`` without a house table."""

        cusps = self.cusps
        if len(cusps) != 12:
            return None
        return house_of(lon, cusps)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


def _angle(lon: float) -> AngleRecord:
    lon = normalize_lon(lon)
    return AngleRecord(sign=sign_name_from_lon(lon), longitude=lon)


def compute_houses(
    provider: PositionSource,
    jd: float,
    location: KnownLocation,
    house_system: str = "placidus",
    tracer: Optional[Tracer] = None,
):
    """Return ``(houses, angles)``; empty houses and unresolved angles on provider failure.

    Raises :class:`~astrocore.services.errors.ShapeInvariantViolated` when the
    provider answers with anything but 12 cusps.
    """

    tracer = tracer or default_tracer()
    try:
        result = provider.houses(jd, location.latitude, location.longitude, house_system)
    except ProviderLookupFailed as exc:
        tracer.warning("houses_lookup_failed", jd=jd, house_system=house_system, error=str(exc))
        return [], Angles()

    cusps = list(result.cusps) if result.cusps is not None else None
    if cusps is None or len(cusps) != 12:
        tracer.error("houses_shape_invalid", jd=jd, count=None if cusps is None else len(cusps))
    validate_cusps(cusps)

    houses = [
        HousePlacement(
            house=i + 1,
            sign_on_cusp=sign_name_from_lon(cusp),
            cusp_longitude=normalize_lon(cusp),
        )
        for i, cusp in enumerate(cusps)
    ]
    asc = normalize_lon(result.ascendant)
    mc = normalize_lon(result.midheaven)
    angles = Angles(
        ascendant=_angle(asc),
        midheaven=_angle(mc),
        descendant=_angle(asc + 180.0),
        ic=_angle(mc + 180.0),
    )
    tracer.event(
        "houses_computed",
        jd=jd,
        house_system=house_system,
        ascendant=fmt_deg(asc),
        midheaven=fmt_deg(mc),
    )
    return houses, angles


def compute_placements(
    provider: PositionSource,
    birth: BirthInstant,
    location: Location,
    house_system: str = "placidus",
    bodies: Sequence[str] = CHART_BODIES,
    tracer: Optional[Tracer] = None,
) -> ChartPlacements:
    """Compute body, house and angle placements for ``birth`` at ``location``."""

    tracer = tracer or default_tracer()
    jd = birth.julian_day()
    tracer.event(
        "birth_instant_resolved",
        date=birth.date,
        time=birth.time,
        timezone=birth.timezone,
        jd=jd,
    )

    houses: List[HousePlacement] = []
    angles = Angles()
    if isinstance(location, KnownLocation):
        houses, angles = compute_houses(provider, jd, location, house_system, tracer)
    else:
        tracer.event("location_unknown", jd=jd)

    cusps = [h.cusp_longitude for h in houses]
    placed: List[BodyPlacement] = []
    for name in bodies:
        try:
            pos = provider.body_position(jd, name)
        except ProviderLookupFailed as exc:
            tracer.error("body_lookup_failed", body=name, jd=jd, error=str(exc))
            continue
        lon = normalize_lon(pos.longitude)
        house = house_of(lon, cusps) if cusps else None
        placed.append(
            BodyPlacement(
                name=name,
                sign=sign_name_from_lon(lon),
                longitude=lon,
                house=house,
                retrograde=pos.speed < 0,
                speed=pos.speed,
            )
        )
        tracer.event("body_placed", body=name, position=fmt_deg(lon), house=house)

    return ChartPlacements(
        julian_day=jd,
        bodies=placed,
        houses=houses,
        angles=angles,
        system=chart_system(house_system),
    )


__all__ = [
    "Angles",
    "AngleRecord",
    "BirthInstant",
    "BodyPlacement",
    "CHART_SYSTEM",
    "ChartPlacements",
    "HousePlacement",
    "KnownLocation",
    "Location",
    "UNKNOWN_LOCATION",
    "UnknownLocation",
    "compute_houses",
    "chart_system",
    "compute_placements",
    "location_from_coordinates",
]
