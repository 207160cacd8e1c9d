import logging

import pytest

from astrocore.services.chart import compute_chart
from astrocore.services.errors import MissingReferencePoint, ProviderLookupFailed
from astrocore.services.observability import LoggingTracer, RecordingTracer, TeeTracer
from astrocore.services.placements import BirthInstant, KnownLocation, UnknownLocation
from astrocore.services.positions import BodyPosition, HouseCusps

BIRTH = BirthInstant(date="1990-01-01", time="12:00", timezone="Europe/London")

# Sun/Moon/Mars in mutual trine; Venus opposes the Sun.
LONGITUDES = {
    "Sun": 10.0,
    "Moon": 130.0,
    "Mercury": 20.0,
    "Venus": 191.0,
    "Mars": 250.0,
    "Jupiter": 70.0,
    "Saturn": 300.0,
    "Uranus": 40.0,
    "Neptune": 335.0,
    "Pluto": 225.0,
    "North Node": 160.0,
    "Chiron": 100.0,
}


class FakeProvider:
    def __init__(self, fail_bodies=()):
        self.fail_bodies = set(fail_bodies)

    def body_position(self, jd, body):
        if body in self.fail_bodies:
            raise ProviderLookupFailed(f"{body} unavailable", target=body, julian_day=jd)
        return BodyPosition(longitude=LONGITUDES[body], speed=1.0)

    def houses(self, jd, lat, lon, system="placidus"):
        return HouseCusps(cusps=[(i * 30.0 + 15.0) % 360 for i in range(12)], ascendant=15.0, midheaven=285.0)


def test_chart_with_location():
    tracer = RecordingTracer()
    chart = compute_chart(FakeProvider(), BIRTH, KnownLocation(51.5, -0.12), tracer=tracer)

    assert len(chart.placements.houses) == 12
    assert chart.derived.chart_ruler == "Mars"
    assert chart.calculated.south_node.longitude == pytest.approx(340.0)
    assert chart.calculated.sect == "day"
    assert ("grand_trine", ["Mars", "Moon", "Sun"]) in [(p.type, p.bodies) for p in chart.calculated.patterns]
    assert tracer.names()[-1] == "chart_computed"


def test_chart_without_location():
    chart = compute_chart(FakeProvider(), BIRTH, UnknownLocation())

    assert chart.placements.houses == []
    assert chart.derived.chart_ruler == "Unknown"
    assert chart.calculated.part_of_fortune is None
    assert chart.calculated.south_node.house is None
    assert len(chart.aspects) > 0


def test_chart_without_north_node():
    with pytest.raises(MissingReferencePoint):
        compute_chart(FakeProvider(fail_bodies={"North Node"}), BIRTH, UnknownLocation())


def test_logging_tracer_emits_structured_records(caplog):
    with caplog.at_level(logging.DEBUG, logger="astrocore.trace"):
        LoggingTracer().event("body_placed", body="Sun")
        LoggingTracer().warning("houses_lookup_failed", jd=1.0)

    assert [r.getMessage() for r in caplog.records] == ["body_placed", "houses_lookup_failed"]
    assert caplog.records[0].trace == {"body": "Sun"}
    assert caplog.records[1].levelno == logging.WARNING


def test_tee_tracer_forwards_to_every_tracer():
    first, second = RecordingTracer(), RecordingTracer()
    tee = TeeTracer(first, second)
    tee.event("a", x=1)
    tee.error("b")

    assert first.records == second.records == [("event", "a", {"x": 1}), ("error", "b", {})]
