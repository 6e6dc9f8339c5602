from __future__ import annotations

from fastapi.testclient import TestClient


def test_health_endpoint(api_client: TestClient) -> None:
    response = api_client.get("/health")
    assert response.status_code == 200
    payload = response.json()
    assert payload == {"ok": True, "ephemeris": "kepler", "default_tz": "Europe/Warsaw"}


def test_moon_phase_endpoint(api_client: TestClient) -> None:
    response = api_client.get("/moon/phase", params={"at": "2025-03-16T00:00:00"})
    assert response.status_code == 200
    payload = response.json()
    assert payload["phase"] == "Waning Gibbous"
    assert payload["at"] == "2025-03-16T00:00:00+01:00"
    assert 16.9 < payload["age_days"] < 17.0


def test_moon_riseset_endpoint(api_client: TestClient) -> None:
    response = api_client.get(
        "/moon/riseset",
        params={"lat": 51.1, "lon": 17.03, "day": "2025-03-16", "tz": "Europe/Warsaw"},
    )
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ok"
    assert payload["moonrise_local"].startswith("2025-03-16T")
    assert payload["moonrise_local"].endswith("+01:00")
    assert payload["moonset_utc"].endswith("Z")
    assert payload["ephemeris"] == "kepler"


def test_sun_phenomenon_endpoint_reports_fallback(api_client: TestClient) -> None:
    response = api_client.get(
        "/sun/phenomenon",
        params={
            "lat": 51.1,
            "lon": 17.03,
            "day": "2025-06-21",
            "phenomenon": "Astronomical_Dusk",
        },
    )
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "fallback"
    assert payload["requested"] == "astronomical_dusk"
    assert payload["computed"] == "nautical_dusk"
    assert payload["tz"] == "Europe/Warsaw"
    assert payload["time_local"].endswith("+02:00")


def test_sun_phenomenon_endpoint_reports_absence(api_client: TestClient) -> None:
    response = api_client.get(
        "/sun/phenomenon",
        params={"lat": 70.0, "lon": 20.0, "day": "2025-06-21", "phenomenon": "sunset"},
    )
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "absent"
    assert payload["time_local"] is None
    assert payload["computed"] is None


def test_unknown_phenomenon_is_bad_request(api_client: TestClient) -> None:
    response = api_client.get(
        "/sun/phenomenon",
        params={"lat": 0, "lon": 0, "day": "2025-03-20", "phenomenon": "teatime"},
    )
    assert response.status_code == 400
    payload = response.json()
    assert payload["ok"] is False
    assert payload["code"] == "http_400"
    assert "teatime" in payload["error"]


def test_unknown_time_zone_is_bad_request(api_client: TestClient) -> None:
    response = api_client.get(
        "/moon/riseset",
        params={"lat": 0, "lon": 0, "day": "2025-03-20", "tz": "Nowhere/Special"},
    )
    assert response.status_code == 400
    assert response.json()["code"] == "http_400"


def test_validation_error(api_client: TestClient) -> None:
    response = api_client.get(
        "/moon/riseset",
        params={"lat": 95, "lon": 0, "day": "2025-10-21"},
    )
    assert response.status_code == 422
    payload = response.json()
    assert payload["code"] == "validation_error"
    assert payload["ok"] is False


def test_almanac_endpoint(api_client: TestClient) -> None:
    response = api_client.get(
        "/almanac",
        params={"lat": 51.1, "lon": 17.03, "day": "2025-03-16", "days": 2},
    )
    assert response.status_code == 200
    payload = response.json()
    assert [day["day"] for day in payload["days"]] == ["2025-03-16", "2025-03-17"]
    first = payload["days"][0]
    assert first["moon_phase"] == "Waning Gibbous"
    assert set(first["sun"]) == {
        "astronomical_dawn",
        "astronomical_dusk",
        "nautical_dawn",
        "nautical_dusk",
        "civil_dawn",
        "civil_dusk",
        "sunrise",
        "sunset",
    }
    assert first["sun"]["sunrise"]["status"] == "found"


def test_almanac_endpoint_limits_days(api_client: TestClient) -> None:
    response = api_client.get(
        "/almanac",
        params={"lat": 51.1, "lon": 17.03, "day": "2025-03-16", "days": 8},
    )
    assert response.status_code == 400
    assert "7" in response.json()["error"]
