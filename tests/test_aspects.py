import itertools

import pytest

from astrocore.services import aspects
from astrocore.services.placements import BodyPlacement
from astrocore.services.constants import sign_name_from_lon


def _body(name, lon):
    return BodyPlacement(name=name, sign=sign_name_from_lon(lon), longitude=lon, house=None, retrograde=False)


def test_separation_is_always_between_0_and_180():
    lons = [0.0, 0.5, 45.0, 179.9, 180.0, 180.1, 270.0, 359.99]
    for a, b in itertools.product(lons, repeat=2):
        d = aspects._angle_diff(a, b)
        assert 0.0 <= d <= 180.0


def test_angle_diff_takes_the_short_way_round():
    assert aspects._angle_diff(350.0, 10.0) == pytest.approx(20.0)
    assert aspects._angle_diff(10.0, 350.0) == pytest.approx(20.0)


@pytest.mark.parametrize("sep, orb", [(120.0, 0.0), (125.0, 5.0)])
def test_trine_within_orb(sep, orb):
    found = aspects.find_aspects([_body("Sun", 10.0), _body("Moon", 10.0 + sep)])
    assert len(found) == 1
    assert found[0].type == "trine"
    assert found[0].orb == pytest.approx(orb)
    assert found[0].between == ("Sun", "Moon")


def test_128_degrees_is_no_aspect():
    assert aspects.find_aspects([_body("Sun", 10.0), _body("Moon", 138.0)]) == []


def test_first_matching_definition_wins():
    overlapping = (
        aspects.AspectDefinition("wide", 0.0, 10.0),
        aspects.AspectDefinition("narrow", 5.0, 10.0),
    )
    definition, orb = aspects.classify_separation(4.0, overlapping)
    assert definition.type == "wide"
    assert orb == 4.0


def test_pairs_follow_placement_order():
    bodies = [_body("Sun", 0.0), _body("Moon", 90.0), _body("Mars", 180.0)]
    found = aspects.find_aspects(bodies)
    assert [(a.between, a.type) for a in found] == [
        (("Sun", "Moon"), "square"),
        (("Sun", "Mars"), "opposition"),
        (("Moon", "Mars"), "square"),
    ]
