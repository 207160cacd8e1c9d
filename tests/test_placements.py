import math

import pytest

from astrocore.services.errors import ProviderLookupFailed, ShapeInvariantViolated
from astrocore.services.observability import RecordingTracer
from astrocore.services.placements import (
    BirthInstant,
    KnownLocation,
    UnknownLocation,
    compute_placements,
    location_from_coordinates,
)
from astrocore.services.positions import BodyPosition, HouseCusps

BIRTH = BirthInstant(date="1990-01-01", time="12:00", timezone="Europe/London")

LONGITUDES = {
    "Sun": 280.5,
    "Moon": 15.0,
    "Mercury": 265.0,
    "Venus": 300.0,
    "Mars": 230.0,
    "Jupiter": 96.0,
    "Saturn": 286.0,
    "Uranus": 275.0,
    "Neptune": 282.0,
    "Pluto": 225.0,
    "North Node": 315.0,
    "Chiron": 100.0,
}


class FakeProvider:
    def __init__(self, cusps=None, fail_bodies=(), fail_houses=False):
        self.cusps = cusps if cusps is not None else [float(i * 30) for i in range(12)]
        self.fail_bodies = set(fail_bodies)
        self.fail_houses = fail_houses
        self.house_calls = 0

    def body_position(self, jd, body):
        if body in self.fail_bodies:
            raise ProviderLookupFailed(f"{body} unavailable", target=body, julian_day=jd)
        speed = -0.1 if body == "Jupiter" else 1.0
        return BodyPosition(longitude=LONGITUDES[body], speed=speed)

    def houses(self, jd, lat, lon, system="placidus"):
        self.house_calls += 1
        if self.fail_houses:
            raise ProviderLookupFailed("houses unavailable", target="houses", julian_day=jd)
        return HouseCusps(cusps=self.cusps, ascendant=5.0, midheaven=275.0)


@pytest.mark.parametrize(
    "lat, lon",
    [(0, 0), (0.0, 0.0), (None, 10.0), (51.5, None), (math.nan, 1.0), (1.0, math.inf), ("x", 1.0)],
)
def test_sentinel_coordinates_mean_unknown_location(lat, lon):
    assert isinstance(location_from_coordinates(lat, lon), UnknownLocation)


def test_real_coordinates_are_known():
    assert location_from_coordinates(0.0, 10.0) == KnownLocation(latitude=0.0, longitude=10.0)
    assert location_from_coordinates("51.5", "-0.12") == KnownLocation(latitude=51.5, longitude=-0.12)


def test_unknown_location_gives_signs_only():
    provider = FakeProvider()
    chart = compute_placements(provider, BIRTH, location_from_coordinates(0, 0))

    assert provider.house_calls == 0
    assert len(chart.bodies) == 12
    assert all(b.sign != "Unknown" for b in chart.bodies)
    assert all(b.house is None for b in chart.bodies)
    assert chart.houses == []
    assert not chart.angles.resolved
    assert chart.angles.ascendant.sign == "Unknown"
    assert chart.angles.ascendant.longitude is None


def test_known_location_gives_twelve_houses_and_angles():
    chart = compute_placements(FakeProvider(), BIRTH, KnownLocation(51.5, -0.12))

    assert [h.house for h in chart.houses] == list(range(1, 13))
    assert chart.houses[0].sign_on_cusp == "Aries"
    assert chart.angles.ascendant.longitude == 5.0
    assert chart.angles.descendant.longitude == 185.0
    assert chart.angles.descendant.sign == "Libra"
    assert chart.angles.ic.longitude == 95.0
    assert chart.body("Sun").house == 10
    assert chart.body("Moon").house == 1
    assert chart.system == "western_tropical_placidus"


def test_retrograde_follows_speed_sign():
    chart = compute_placements(FakeProvider(), BIRTH, UnknownLocation())
    assert chart.body("Jupiter").retrograde is True
    assert chart.body("Sun").retrograde is False


def test_failed_body_is_omitted_and_traced():
    tracer = RecordingTracer()
    chart = compute_placements(FakeProvider(fail_bodies={"Chiron"}), BIRTH, UnknownLocation(), tracer=tracer)

    assert chart.body("Chiron") is None
    assert len(chart.bodies) == 11
    assert "body_lookup_failed" in tracer.names("error")


def test_failed_house_lookup_is_not_fatal():
    tracer = RecordingTracer()
    chart = compute_placements(FakeProvider(fail_houses=True), BIRTH, KnownLocation(51.5, -0.12), tracer=tracer)

    assert chart.houses == []
    assert not chart.angles.resolved
    assert len(chart.bodies) == 12
    assert "houses_lookup_failed" in tracer.names("warning")


def test_short_house_table_aborts_the_chart():
    provider = FakeProvider(cusps=[float(i * 30) for i in range(11)])
    with pytest.raises(ShapeInvariantViolated):
        compute_placements(provider, BIRTH, KnownLocation(51.5, -0.12))


@pytest.mark.parametrize(
    "house_system, label",
    [("placidus", "western_tropical_placidus"), ("koch", "western_tropical_koch"), ("whole_sign", "western_tropical_whole_sign")],
)
def test_system_label_follows_house_system(house_system, label):
    chart = compute_placements(FakeProvider(), BIRTH, KnownLocation(51.5, -0.12), house_system=house_system)
    assert chart.system == label
