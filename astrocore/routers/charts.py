from fastapi import APIRouter, HTTPException
import logging

from ..schemas import ComputeRequest, ComputeResponse, BodyOut, HouseOut, AnglesOut, AspectOut, MetaOut
from ..services import ephem
from ..services.chart import compute_chart
from ..services.errors import InvalidBirthInput, MissingReferencePoint, ShapeInvariantViolated
from ..services.observability import LoggingTracer, RecordingTracer, TeeTracer
from ..services.placements import BirthInstant, UnknownLocation, location_from_coordinates

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/charts", tags=["charts"])


def _aspect_out(a) -> AspectOut:
    return AspectOut(p1=a.between[0], p2=a.between[1], type=a.type, orb=round(a.orb, 4), exact_angle=round(a.exact_angle, 4))


def _angle_out(a) -> dict:
    return {"sign": a.sign, "lon": None if a.longitude is None else round(a.longitude, 4)}


def _point_out(p):
    if p is None:
        return None
    return {"lon": round(p.longitude, 4), "sign": p.sign, "house": p.house}


def _warnings(recorder: RecordingTracer, location) -> list:
    warnings = []
    if isinstance(location, UnknownLocation):
        warnings.append("Birth location unknown; houses and angles not computed.")
    for level, name, fields in recorder.records:
        if level == "event":
            continue
        if name == "body_lookup_failed":
            warnings.append(f"{fields.get('body')} position unavailable; omitted.")
        elif name == "houses_lookup_failed":
            warnings.append("House lookup failed; houses and angles not computed.")
        else:
            warnings.append(name)
    return warnings


@router.post("/compute", response_model=ComputeResponse)
def compute_chart_route(req: ComputeRequest):
    provider = ephem.get_provider()
    birth = BirthInstant(date=req.date, time=req.time, timezone=req.timezone)
    location = location_from_coordinates(req.lat, req.lon)
    recorder = RecordingTracer()
    tracer = TeeTracer(LoggingTracer(), recorder)

    try:
        chart = compute_chart(provider, birth, location, req.house_system, tracer=tracer)
    except InvalidBirthInput as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except MissingReferencePoint as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except ShapeInvariantViolated as exc:
        logger.error("chart_shape_invalid", extra={"error": str(exc)})
        raise HTTPException(status_code=500, detail="House data malformed")

    placements, derived, calc = chart.placements, chart.derived, chart.calculated
    angles = placements.angles

    bodies = [
        BodyOut(
            name=b.name,
            sign=b.sign,
            lon=round(b.longitude, 4),
            house=b.house,
            retro=b.retrograde,
            speed=None if b.speed is None else round(b.speed, 6),
        )
        for b in placements.bodies
    ]
    houses = [HouseOut(num=h.house, sign=h.sign_on_cusp, cusp_lon=round(h.cusp_longitude, 4)) for h in placements.houses]

    derived_out = {
        "element_balance": {
            "fire": derived.element_balance.fire,
            "earth": derived.element_balance.earth,
            "air": derived.element_balance.air,
            "water": derived.element_balance.water,
        },
        "modality_balance": {
            "cardinal": derived.modality_balance.cardinal,
            "fixed": derived.modality_balance.fixed,
            "mutable": derived.modality_balance.mutable,
        },
        "dominant_signs": derived.dominant_signs,
        "dominant_bodies": derived.dominant_bodies,
        "chart_ruler": derived.chart_ruler,
        "top_aspects": [_aspect_out(a) for a in derived.top_aspects],
    }
    calculated_out = {
        "south_node": _point_out(calc.south_node),
        "sect": calc.sect,
        "part_of_fortune": _point_out(calc.part_of_fortune),
        "emphasis": {
            "house_emphasis": calc.emphasis.house_emphasis,
            "sign_emphasis": calc.emphasis.sign_emphasis,
            "stelliums": [
                {"type": s.type, "name": str(s.name), "bodies": s.bodies} for s in calc.emphasis.stelliums
            ],
        },
        "patterns": [{"type": p.type, "bodies": p.bodies} for p in calc.patterns],
    }

    warnings = _warnings(recorder, location)
    meta = MetaOut(
        engine_version=ephem.ENGINE_VERSION,
        system=placements.system,
        house_system=req.house_system,
        backend=getattr(provider, "backend", None),
        warnings=(warnings or None),
    )
    return ComputeResponse(
        meta=meta,
        julian_day=placements.julian_day,
        angles=AnglesOut(
            ascendant=_angle_out(angles.ascendant),
            midheaven=_angle_out(angles.midheaven),
            descendant=_angle_out(angles.descendant),
            ic=_angle_out(angles.ic),
        ),
        houses=houses,
        bodies=bodies,
        aspects=[_aspect_out(a) for a in chart.aspects],
        derived=derived_out,
        calculated=calculated_out,
    )
