import pytest

from astrocore.services.transit_math import ang_diff, aspect_targets


def test_ang_diff_is_signed_and_wraps():
    assert ang_diff(30.0, 31.0) == pytest.approx(1.0)
    assert ang_diff(30.0, 29.0) == pytest.approx(-1.0)
    # Crossing 0° Aries from Pisces.
    assert ang_diff(0.0, 359.0) == pytest.approx(-1.0)
    assert ang_diff(0.0, 1.0) == pytest.approx(1.0)


def test_ang_diff_range():
    for lon in range(0, 360, 7):
        assert -180.0 <= ang_diff(123.0, float(lon)) < 180.0


def test_conjunction_and_opposition_have_one_target():
    assert aspect_targets(350.0, 0.0) == [350.0]
    assert aspect_targets(350.0, 180.0) == [170.0]


def test_other_aspects_have_two_targets():
    assert aspect_targets(10.0, 90.0) == [100.0, 280.0]
    assert aspect_targets(300.0, 120.0) == [60.0, 180.0]
