"""Exact-moment solvers for yearly astronomical events.

Every finder follows the same two stages:

1. Step through the year at a fixed cadence and look for a sign change in
   some quantity between consecutive samples (the zodiac sign, the speed,
   or the wrap-aware distance to a target longitude).
2. Hand the bracketing interval to :func:`bracket_and_solve`, which halves
   it until it is narrower than ``precision`` days (1e-5 d is under a second).

A finder never raises for "nothing found"; intervals without a bracketed
root are the common case and simply produce no event. Lookup failures for a
single sample are reported to the tracer and that sample is skipped; a
failure while refining abandons that bracket with a warning.
"""

from __future__ import annotations

import dataclasses
import os
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from .constants import SIGN_NAMES, sign_index_from_lon, sign_name_from_lon
from .positions import BodyPosition, PositionSource
from .errors import ProviderLookupFailed, ScanDeadlineExceeded
from .observability import Tracer, default_tracer
from .timescale import jd_to_datetime, year_bounds
from .transit_math import ang_diff, aspect_targets

ValueFunction = Callable[[float], float]

DEFAULT_PRECISION = 0.00001  # ~0.86 seconds
DEFAULT_MAX_ITERATIONS = 100
DUPLICATE_WINDOW_DAYS = 1.0
CROSSING_GUARD_DEG = 90.0

DEFAULT_WORKERS = int(os.getenv("SOLVER_WORKERS", "4"))

SOLVER_BODIES = [
    "Sun",
    "Moon",
    "Mercury",
    "Venus",
    "Mars",
    "Jupiter",
    "Saturn",
    "Uranus",
    "Neptune",
    "Pluto",
    "Chiron",
]

# Sun and Moon never station.
RETROGRADE_BODIES = [
    "Mercury",
    "Venus",
    "Mars",
    "Jupiter",
    "Saturn",
    "Uranus",
    "Neptune",
    "Pluto",
    "Chiron",
]

ASPECT_ANGLES: Dict[str, float] = {
    "conjunction": 0.0,
    "sextile": 60.0,
    "square": 90.0,
    "trine": 120.0,
    "opposition": 180.0,
}

SEASONS = {
    "Aries": "spring_equinox",
    "Cancer": "summer_solstice",
    "Libra": "fall_equinox",
    "Capricorn": "winter_solstice",
}

TRANSIT_BODIES = ["Jupiter", "Saturn", "Uranus", "Neptune", "Pluto", "Chiron"]
NATAL_TARGETS = ["Sun", "Moon", "Mercury", "Venus", "Mars", "Jupiter", "Saturn"]


# ---------------------------------------------------------------------------
# Event records
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SolverResult:
    julian_day: float
    timestamp: datetime
    longitude: float
    speed: Optional[float]


@dataclass(frozen=True, slots=True)
class SignIngressEvent(SolverResult):
    body: str
    sign: str
    previous_sign: str


@dataclass(frozen=True, slots=True)
class SeasonIngressEvent(SolverResult):
    season: str
    sign: str


@dataclass(frozen=True, slots=True)
class StationEvent(SolverResult):
    body: str
    station_type: str  # "retrograde" | "direct"
    sign: str


@dataclass(frozen=True, slots=True)
class ExactAspectEvent(SolverResult):
    transit_body: str
    natal_body: str
    natal_longitude: float
    aspect_type: str
    aspect_angle: float
    is_retrograde: bool
    pass_number: int


@dataclass(frozen=True, slots=True)
class GlobalEvents:
    year: int
    season_ingresses: List[SeasonIngressEvent]
    sign_ingresses: List[SignIngressEvent]
    stations: List[StationEvent]


@dataclass(frozen=True, slots=True)
class NatalPoint:
    name: str
    longitude: Optional[float]


# ---------------------------------------------------------------------------
# Generic bracket + binary search
# ---------------------------------------------------------------------------


def bracket_and_solve(
    value_fn: ValueFunction,
    low: float,
    high: float,
    target: float = 0.0,
    precision: float = DEFAULT_PRECISION,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> Optional[float]:
    """Find ``x`` in ``[low, high]`` where ``value_fn(x) == target``.

    Returns ``None`` when the endpoints do not bracket a sign change. The
    search stops after ``max_iterations`` halvings or once the interval is
    narrower than ``precision``.
    """

    value_low = value_fn(low) - target
    value_high = value_fn(high) - target

    if value_low * value_high > 0:
        return None

    for _ in range(max_iterations):
        mid = (low + high) / 2.0
        value_mid = value_fn(mid) - target

        if abs(high - low) < precision:
            return mid

        if value_low * value_mid <= 0:
            high = mid
            value_high = value_mid
        else:
            low = mid
            value_low = value_mid

    return (low + high) / 2.0


# ---------------------------------------------------------------------------
# Sampling helpers
# ---------------------------------------------------------------------------


def _check_deadline(deadline: Optional[float]) -> None:
    if deadline is not None and time.monotonic() > deadline:
        raise ScanDeadlineExceeded("Year scan exceeded its deadline")


def _position(
    provider: PositionSource, body: str, jd: float, tracer: Tracer
) -> Optional[BodyPosition]:
    try:
        return provider.body_position(jd, body)
    except ProviderLookupFailed as exc:
        tracer.error("solver_lookup_failed", body=body, jd=jd, error=str(exc))
        return None


def _steps(
    provider: PositionSource,
    body: str,
    jd_start: float,
    jd_end: float,
    step_days: float,
    tracer: Tracer,
    deadline: Optional[float],
) -> Iterator[Tuple[float, BodyPosition, float, BodyPosition]]:
    """Yield consecutive successful samples ``(jd0, pos0, jd1, pos1)``."""

    if step_days <= 0:
        raise ValueError("step_days must be positive")

    prev_jd = jd_start
    prev = _position(provider, body, prev_jd, tracer)
    if prev is None:
        return

    current = jd_start
    while current < jd_end:
        _check_deadline(deadline)
        nxt_jd = current + step_days
        nxt = _position(provider, body, nxt_jd, tracer)
        current = nxt_jd
        if nxt is None:
            continue
        yield prev_jd, prev, nxt_jd, nxt
        prev_jd, prev = nxt_jd, nxt


# Value functions raise ProviderLookupFailed; _solve drops the bracket.


def _longitude_fn(provider: PositionSource, body: str, target_lon: float) -> ValueFunction:
    def value(jd: float) -> float:
        return ang_diff(target_lon, provider.body_position(jd, body).longitude)

    return value


def _speed_fn(provider: PositionSource, body: str) -> ValueFunction:
    def value(jd: float) -> float:
        return provider.body_position(jd, body).speed

    return value


def _solve(
    value_fn: ValueFunction, jd0: float, jd1: float, tracer: Tracer, name: str, **fields
) -> Optional[float]:
    """Bracket ``[jd0, jd1]``; ``None`` (with a warning) if it fails or brackets nothing."""

    try:
        exact_jd = bracket_and_solve(value_fn, jd0, jd1)
    except ProviderLookupFailed as exc:
        tracer.warning(name, jd0=jd0, jd1=jd1, error=str(exc), **fields)
        return None
    if exact_jd is None:
        tracer.warning(name, jd0=jd0, jd1=jd1, **fields)
    return exact_jd


def _changes_sign(v0: float, v1: float) -> bool:
    # A zero on the trailing sample counts; a zero on the leading sample was
    # already counted by the previous pair.
    return v0 < 0 <= v1 or v0 > 0 >= v1


def ingress_step(body: str) -> float:
    return 0.5 if body == "Moon" else 1.0


def crossed_boundary(prev_index: int, next_index: int) -> float:
    """Sign boundary crossed when moving from ``prev_index`` to ``next_index``.

    Direct motion enters the next sign at its own cusp; retrograde motion
    leaves the previous sign through that sign's cusp.
    """

    if (next_index - prev_index) % 12 == 1:
        return (next_index * 30.0) % 360.0
    return (prev_index * 30.0) % 360.0


# ---------------------------------------------------------------------------
# Sign ingresses
# ---------------------------------------------------------------------------


def find_sign_ingresses(
    provider: PositionSource,
    body: str,
    year: int,
    step_days: Optional[float] = None,
    *,
    tracer: Optional[Tracer] = None,
    deadline: Optional[float] = None,
) -> List[SignIngressEvent]:
    tracer = tracer or default_tracer()
    if body not in SOLVER_BODIES:
        tracer.error("solver_unknown_body", body=body)
        return []

    step = step_days if step_days is not None else ingress_step(body)
    jd_start, jd_end = year_bounds(year)
    events: List[SignIngressEvent] = []

    for jd0, pos0, jd1, pos1 in _steps(provider, body, jd_start, jd_end, step, tracer, deadline):
        prev_index = sign_index_from_lon(pos0.longitude)
        next_index = sign_index_from_lon(pos1.longitude)
        if prev_index == next_index:
            continue

        boundary = crossed_boundary(prev_index, next_index)
        exact_jd = _solve(
            _longitude_fn(provider, body, boundary), jd0, jd1, tracer,
            "ingress_not_bracketed", body=body, boundary=boundary,
        )
        if exact_jd is None:
            continue
        exact = _position(provider, body, exact_jd, tracer)
        if exact is None:
            continue
        events.append(
            SignIngressEvent(
                julian_day=exact_jd,
                timestamp=jd_to_datetime(exact_jd),
                longitude=exact.longitude,
                speed=exact.speed,
                body=body,
                sign=SIGN_NAMES[next_index],
                previous_sign=SIGN_NAMES[prev_index],
            )
        )

    tracer.event("sign_ingresses_found", body=body, year=year, count=len(events))
    return events


def find_season_ingresses(
    provider: PositionSource,
    year: int,
    *,
    tracer: Optional[Tracer] = None,
    deadline: Optional[float] = None,
    sun_ingresses: Optional[Sequence[SignIngressEvent]] = None,
) -> List[SeasonIngressEvent]:
    """Equinoxes and solstices: the Sun's ingresses into the cardinal signs.

    ``sun_ingresses`` lets a batch reuse a Sun scan it already ran.
    """

    if sun_ingresses is None:
        sun_ingresses = find_sign_ingresses(provider, "Sun", year, 1.0, tracer=tracer, deadline=deadline)
    return [
        SeasonIngressEvent(
            julian_day=e.julian_day,
            timestamp=e.timestamp,
            longitude=e.longitude,
            speed=e.speed,
            season=SEASONS[e.sign],
            sign=e.sign,
        )
        for e in sun_ingresses
        if e.sign in SEASONS
    ]


# ---------------------------------------------------------------------------
# Stations
# ---------------------------------------------------------------------------


def find_stations(
    provider: PositionSource,
    body: str,
    year: int,
    step_days: float = 1.0,
    *,
    tracer: Optional[Tracer] = None,
    deadline: Optional[float] = None,
) -> List[StationEvent]:
    tracer = tracer or default_tracer()
    if body not in RETROGRADE_BODIES:
        tracer.warning("solver_body_does_not_retrograde", body=body)
        return []

    jd_start, jd_end = year_bounds(year)
    events: List[StationEvent] = []
    speed_fn = _speed_fn(provider, body)

    for jd0, pos0, jd1, pos1 in _steps(provider, body, jd_start, jd_end, step_days, tracer, deadline):
        if not _changes_sign(pos0.speed, pos1.speed):
            continue
        exact_jd = _solve(speed_fn, jd0, jd1, tracer, "station_not_bracketed", body=body)
        if exact_jd is None:
            continue
        exact = _position(provider, body, exact_jd, tracer)
        if exact is None:
            continue
        station_type = "retrograde" if pos0.speed > 0 else "direct"
        events.append(
            StationEvent(
                julian_day=exact_jd,
                timestamp=jd_to_datetime(exact_jd),
                longitude=exact.longitude,
                speed=exact.speed,
                body=body,
                station_type=station_type,
                sign=sign_name_from_lon(exact.longitude),
            )
        )

    tracer.event("stations_found", body=body, year=year, count=len(events))
    return events


# ---------------------------------------------------------------------------
# Exact transit-to-natal alignments
# ---------------------------------------------------------------------------


def find_exact_aspects(
    provider: PositionSource,
    transit_body: str,
    natal_longitude: float,
    natal_body: str,
    aspect_type: str,
    year: int,
    step_days: float = 1.0,
    *,
    tracer: Optional[Tracer] = None,
    deadline: Optional[float] = None,
) -> List[ExactAspectEvent]:
    """Every moment in ``year`` when ``transit_body`` perfects the aspect.

    A slow body can cross the same target up to three times around a
    retrograde loop; all hits are returned in date order and numbered as
    passes 1, 2, ...
    """

    tracer = tracer or default_tracer()
    if transit_body not in SOLVER_BODIES:
        tracer.error("solver_unknown_body", body=transit_body)
        return []
    angle = ASPECT_ANGLES.get(aspect_type)
    if angle is None:
        tracer.error("solver_unknown_aspect", aspect=aspect_type)
        return []

    jd_start, jd_end = year_bounds(year)
    events: List[ExactAspectEvent] = []

    for target in aspect_targets(natal_longitude, angle):
        value_fn = _longitude_fn(provider, transit_body, target)
        last_hit: Optional[float] = None

        for jd0, pos0, jd1, pos1 in _steps(
            provider, transit_body, jd_start, jd_end, step_days, tracer, deadline
        ):
            d0 = ang_diff(target, pos0.longitude)
            d1 = ang_diff(target, pos1.longitude)
            # Far-side sign flips (at +/-180) are not crossings.
            if not (_changes_sign(d0, d1) and abs(d0) < CROSSING_GUARD_DEG and abs(d1) < CROSSING_GUARD_DEG):
                continue

            exact_jd = _solve(
                value_fn, jd0, jd1, tracer, "aspect_not_bracketed",
                body=transit_body, target=target,
            )
            if exact_jd is None:
                continue
            if last_hit is not None and abs(exact_jd - last_hit) <= DUPLICATE_WINDOW_DAYS:
                continue
            exact = _position(provider, transit_body, exact_jd, tracer)
            if exact is None:
                continue

            events.append(
                ExactAspectEvent(
                    julian_day=exact_jd,
                    timestamp=jd_to_datetime(exact_jd),
                    longitude=exact.longitude,
                    speed=exact.speed,
                    transit_body=transit_body,
                    natal_body=natal_body,
                    natal_longitude=natal_longitude,
                    aspect_type=aspect_type,
                    aspect_angle=angle,
                    is_retrograde=exact.speed < 0,
                    pass_number=0,
                )
            )
            last_hit = exact_jd

    events.sort(key=lambda e: e.julian_day)
    return [dataclasses.replace(e, pass_number=i + 1) for i, e in enumerate(events)]


# ---------------------------------------------------------------------------
# Batch generation
# ---------------------------------------------------------------------------


def generate_global_events_for_year(
    provider: PositionSource,
    year: int,
    *,
    workers: Optional[int] = None,
    tracer: Optional[Tracer] = None,
    deadline: Optional[float] = None,
) -> GlobalEvents:
    """Season ingresses, every body's sign ingresses, and every station in ``year``.

    Each (body, event kind) scan is independent and runs on a thread pool;
    results are merged and ordered by Julian Day.
    """

    tracer = tracer or default_tracer()
    tracer.event("global_events_started", year=year)

    with ThreadPoolExecutor(max_workers=max(1, workers or DEFAULT_WORKERS)) as pool:
        ingress_futures = {
            body: pool.submit(
                find_sign_ingresses, provider, body, year, ingress_step(body),
                tracer=tracer, deadline=deadline,
            )
            for body in SOLVER_BODIES
        }
        station_futures = [
            pool.submit(find_stations, provider, body, year, tracer=tracer, deadline=deadline)
            for body in RETROGRADE_BODIES
        ]
        ingresses_by_body = {body: fut.result() for body, fut in ingress_futures.items()}
        stations = [event for fut in station_futures for event in fut.result()]

    sign_ingresses = [event for body in SOLVER_BODIES for event in ingresses_by_body[body]]
    sign_ingresses.sort(key=lambda e: e.julian_day)
    stations.sort(key=lambda e: e.julian_day)
    seasons = find_season_ingresses(provider, year, sun_ingresses=ingresses_by_body["Sun"])

    tracer.event(
        "global_events_finished",
        year=year,
        season_ingresses=len(seasons),
        sign_ingresses=len(sign_ingresses),
        stations=len(stations),
    )
    return GlobalEvents(
        year=year,
        season_ingresses=seasons,
        sign_ingresses=sign_ingresses,
        stations=stations,
    )


def generate_user_transits_for_year(
    provider: PositionSource,
    natal_points: Sequence[NatalPoint],
    year: int,
    aspect_types: Sequence[str] = ("conjunction", "opposition", "square", "trine", "sextile"),
    *,
    transit_bodies: Sequence[str] = TRANSIT_BODIES,
    natal_targets: Sequence[str] = NATAL_TARGETS,
    workers: Optional[int] = None,
    tracer: Optional[Tracer] = None,
    deadline: Optional[float] = None,
) -> List[ExactAspectEvent]:
    """Exact hits of slow transiting bodies to the key natal points."""

    tracer = tracer or default_tracer()
    jobs = [
        (transit, point, aspect)
        for transit in transit_bodies
        for point in natal_points
        if point.name in natal_targets and point.longitude is not None
        for aspect in aspect_types
    ]

    with ThreadPoolExecutor(max_workers=max(1, workers or DEFAULT_WORKERS)) as pool:
        futures = [
            pool.submit(
                find_exact_aspects, provider, transit, point.longitude, point.name, aspect, year,
                tracer=tracer, deadline=deadline,
            )
            for transit, point, aspect in jobs
        ]
        events = [event for fut in futures for event in fut.result()]

    events.sort(key=lambda e: e.julian_day)
    tracer.event("user_transits_finished", year=year, count=len(events))
    return events


__all__ = [
    "ASPECT_ANGLES",
    "ExactAspectEvent",
    "GlobalEvents",
    "NatalPoint",
    "RETROGRADE_BODIES",
    "SOLVER_BODIES",
    "SeasonIngressEvent",
    "SignIngressEvent",
    "SolverResult",
    "StationEvent",
    "bracket_and_solve",
    "crossed_boundary",
    "find_exact_aspects",
    "find_season_ingresses",
    "find_sign_ingresses",
    "find_stations",
    "generate_global_events_for_year",
    "generate_user_transits_for_year",
]
