import os

import pytest

pytest.importorskip("swisseph")

from astrocore.services import ephem, solvers
from astrocore.services.errors import ProviderLookupFailed


@pytest.fixture(scope="module")
def provider():
    return ephem.EphemerisProvider(backend="moseph")


def test_sun_at_j2000(provider):
    pos = provider.body_position(2451545.0, "Sun")
    assert pos.longitude == pytest.approx(280.37, abs=0.05)
    assert 0.9 < pos.speed < 1.1


def test_unknown_body_is_a_lookup_failure(provider):
    with pytest.raises(ProviderLookupFailed) as exc:
        provider.body_position(2451545.0, "Vulcan")
    assert exc.value.target == "Vulcan"


def test_houses_have_twelve_cusps(provider):
    result = provider.houses(2451545.0, 51.5, -0.12)
    assert len(result.cusps) == 12
    assert result.cusps[0] == pytest.approx(result.ascendant)


def test_backend_name_defaults_to_swieph(monkeypatch):
    monkeypatch.delenv("EPHEMERIS_BACKEND", raising=False)
    assert ephem.backend_name() == "swieph"
    assert ephem.backend_name("MOSEPH") == "moseph"


def test_init_paths_ignores_missing_directory(tmp_path):
    ephem.init_paths(os.fspath(tmp_path / "missing"))
    ephem.init_paths(None)


def test_spring_equinox_2024(provider):
    seasons = solvers.find_season_ingresses(provider, 2024)
    spring = seasons[0]
    assert spring.season == "spring_equinox"
    assert (spring.timestamp.month, spring.timestamp.day, spring.timestamp.hour) == (3, 20, 3)


def test_jupiter_stations_retrograde_in_october_2024(provider):
    stations = solvers.find_stations(provider, "Jupiter", 2024)
    assert [(s.station_type, s.timestamp.month) for s in stations] == [("retrograde", 10)]
    assert stations[0].sign == "Gemini"
