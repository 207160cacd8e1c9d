from fastapi import APIRouter, HTTPException, Query

from ..schemas import (
    UserTransitsRequest,
    GlobalEventsResponse,
    UserTransitsResponse,
    SignIngressOut,
    SeasonIngressOut,
    StationOut,
    ExactAspectOut,
)
from ..services import ephem
from ..services.solvers import (
    ASPECT_ANGLES,
    GlobalEvents,
    NatalPoint,
    generate_global_events_for_year,
    generate_user_transits_for_year,
)

router = APIRouter(prefix="/v1/events", tags=["events"])

MIN_YEAR, MAX_YEAR = 1900, 2100


def _check_year(year: int) -> None:
    if year < MIN_YEAR or year > MAX_YEAR:
        raise HTTPException(status_code=400, detail=f"Invalid year. Must be between {MIN_YEAR} and {MAX_YEAR}.")


def _base(e) -> dict:
    return {
        "jd": e.julian_day,
        "timestamp": e.timestamp.isoformat(),
        "lon": round(e.longitude, 6),
        "speed": None if e.speed is None else round(e.speed, 6),
    }


def global_events_payload(events: GlobalEvents, backend: str = None) -> GlobalEventsResponse:
    return GlobalEventsResponse(
        meta={"year": events.year, "backend": backend, "engine_version": ephem.ENGINE_VERSION},
        season_ingresses=[SeasonIngressOut(**_base(e), season=e.season, sign=e.sign) for e in events.season_ingresses],
        sign_ingresses=[
            SignIngressOut(**_base(e), body=e.body, sign=e.sign, previous_sign=e.previous_sign)
            for e in events.sign_ingresses
        ],
        stations=[
            StationOut(**_base(e), body=e.body, station_type=e.station_type, sign=e.sign) for e in events.stations
        ],
    )


@router.get("/global", response_model=GlobalEventsResponse)
def global_events_route(year: int = Query(...)):
    _check_year(year)
    provider = ephem.get_provider()
    events = generate_global_events_for_year(provider, year)
    return global_events_payload(events, backend=getattr(provider, "backend", None))


@router.post("/transits", response_model=UserTransitsResponse)
def user_transits_route(req: UserTransitsRequest):
    _check_year(req.year)
    unknown = [a for a in req.aspect_types if a not in ASPECT_ANGLES]
    if unknown:
        raise HTTPException(status_code=400, detail=f"Unknown aspect types: {', '.join(unknown)}")

    provider = ephem.get_provider()
    points = [NatalPoint(name=p.name, longitude=p.longitude) for p in req.natal_points]
    events = generate_user_transits_for_year(provider, points, req.year, req.aspect_types)
    return UserTransitsResponse(
        meta={"year": req.year, "aspect_types": req.aspect_types, "count": len(events)},
        events=[
            ExactAspectOut(
                **_base(e),
                transit_body=e.transit_body,
                natal_body=e.natal_body,
                natal_lon=e.natal_longitude,
                aspect=e.aspect_type,
                aspect_angle=e.aspect_angle,
                retro=e.is_retrograde,
                pass_number=e.pass_number,
            )
            for e in events
        ],
    )
