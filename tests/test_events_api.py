import pytest

pytest.importorskip("swisseph")

from fastapi.testclient import TestClient
from astrocore.app import app
from astrocore.services import ephem
from astrocore.services.positions import BodyPosition
from astrocore.services.timescale import year_bounds

client = TestClient(app)

START, _ = year_bounds(2024)


class SteadyProvider:
    """Every body moves 1 deg/day from 280.3 deg, except Saturn which hovers around 100 deg."""

    backend = "fake"

    def body_position(self, jd, body):
        if body == "Saturn":
            return BodyPosition(longitude=100.0 + 0.5 * (jd - START - 10.3), speed=0.5)
        return BodyPosition(longitude=(280.3 + (jd - START)) % 360.0, speed=1.0)

    def houses(self, jd, lat, lon, system="placidus"):
        raise NotImplementedError


@pytest.mark.parametrize("year", [1899, 2101])
def test_global_year_out_of_range(year):
    r = client.get("/v1/events/global", params={"year": year})
    assert r.status_code == 400


def test_global_events(monkeypatch):
    monkeypatch.setattr(ephem, "get_provider", lambda: SteadyProvider())
    r = client.get("/v1/events/global", params={"year": 2024})
    assert r.status_code == 200, r.text
    j = r.json()
    assert j["meta"]["year"] == 2024
    assert [s["season"] for s in j["season_ingresses"]] == [
        "spring_equinox",
        "summer_solstice",
        "fall_equinox",
        "winter_solstice",
    ]
    assert j["season_ingresses"][0]["timestamp"].startswith("2024-03-")
    assert j["stations"] == []
    jds = [e["jd"] for e in j["sign_ingresses"]]
    assert jds == sorted(jds)


def test_user_transits(monkeypatch):
    monkeypatch.setattr(ephem, "get_provider", lambda: SteadyProvider())
    body = {
        "year": 2024,
        "natal_points": [{"name": "Sun", "longitude": 100.0}, {"name": "Moon"}],
        "aspect_types": ["conjunction"],
    }
    r = client.post("/v1/events/transits", json=body)
    assert r.status_code == 200, r.text
    events = r.json()["events"]
    saturn = [e for e in events if e["transit_body"] == "Saturn"]
    assert len(saturn) == 1
    assert saturn[0]["natal_body"] == "Sun"
    assert saturn[0]["pass_number"] == 1
    assert saturn[0]["retro"] is False
    assert saturn[0]["jd"] == pytest.approx(START + 10.3, abs=1e-4)


def test_user_transits_reject_unknown_aspect():
    body = {"year": 2024, "natal_points": [{"name": "Sun", "longitude": 10.0}], "aspect_types": ["quintile"]}
    r = client.post("/v1/events/transits", json=body)
    assert r.status_code == 400


def test_user_transits_year_out_of_range():
    body = {"year": 1850, "natal_points": [{"name": "Sun", "longitude": 10.0}]}
    r = client.post("/v1/events/transits", json=body)
    assert r.status_code == 400
