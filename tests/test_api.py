"""
tests.test_api

End-to-end request pipeline tests over the HTTP surface.

Responsibilities:
- Check the pipeline order (version, then authentication/authorization, then negotiation).
- Check problem responses carry the right status, kind and extensions.
- Exercise the point-of-interest CRUD flow against the seeded database.
"""

from __future__ import annotations

import io
import xml.etree.ElementTree as ET
from datetime import timedelta

import httpx
import pytest
from helpers import bearer, log_events

from city_info.api.app import create_app
from city_info.api.deps import city_info_repository
from city_info.auth.jwt import JwtConfig
from city_info.settings import Settings


async def _city_id(client: httpx.AsyncClient, token: str, name: str) -> int:
    r = await client.get("/api/v1/cities", headers=bearer(token))
    assert r.status_code == 200
    return next(c["id"] for c in r.json() if c["name"] == name)


@pytest.mark.asyncio
async def test_missing_token_is_challenged_before_negotiation(client: httpx.AsyncClient) -> None:
    r = await client.get("/api/v1/cities", headers={"Accept": "application/pdf"})

    assert r.status_code == 401
    assert r.headers["content-type"].startswith("application/problem+json")
    assert r.headers["www-authenticate"] == "Bearer"
    assert r.headers["api-supported-versions"] == "1.0, 2.0"
    body = r.json()
    assert body["status"] == 401
    assert body["type"].endswith("/unauthorized")


@pytest.mark.asyncio
async def test_problem_trace_id_matches_generated_request_id(client: httpx.AsyncClient) -> None:
    r = await client.get("/api/v1/cities")

    assert r.status_code == 401
    request_id = r.headers["x-request-id"]
    assert request_id
    assert r.json()["traceId"] == request_id


@pytest.mark.asyncio
async def test_list_cities_restricted_view_json(client: httpx.AsyncClient, make_token) -> None:
    r = await client.get("/api/v1/cities", headers=bearer(make_token()))

    assert r.status_code == 200
    assert r.headers["content-type"].startswith("application/json")
    cities = r.json()
    assert [c["name"] for c in cities] == ["Antwerp", "New York City", "Paris"]
    for city in cities:
        assert set(city) == {"id", "name", "description"}


@pytest.mark.asyncio
async def test_city_with_points_of_interest(client: httpx.AsyncClient, make_token) -> None:
    token = make_token()
    antwerp = await _city_id(client, token, "Antwerp")

    r = await client.get(
        f"/api/v2/cities/{antwerp}",
        params={"includePointsOfInterest": "true"},
        headers=bearer(token),
    )
    assert r.status_code == 200
    city = r.json()
    assert city["name"] == "Antwerp"
    assert city["numberOfPointsOfInterest"] == 2
    assert [p["name"] for p in city["pointsOfInterest"]] == [
        "Cathedral of Our Lady",
        "Antwerp Central Station",
    ]

    r = await client.get(f"/api/v2/cities/{antwerp}", headers=bearer(token))
    assert set(r.json()) == {"id", "name", "description"}


@pytest.mark.asyncio
async def test_city_as_xml(client: httpx.AsyncClient, make_token) -> None:
    token = make_token()
    antwerp = await _city_id(client, token, "Antwerp")

    r = await client.get(
        f"/api/v1/cities/{antwerp}",
        params={"includePointsOfInterest": "true"},
        headers={**bearer(token), "Accept": "application/xml"},
    )
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("application/xml")
    root = ET.fromstring(r.content)
    assert root.tag == "CityDto"
    assert root.findtext("Name") == "Antwerp"
    assert root.findtext("NumberOfPointsOfInterest") == "2"
    assert len(root.find("PointsOfInterest")) == 2


@pytest.mark.asyncio
async def test_accept_quality_ranking_picks_xml(client: httpx.AsyncClient, make_token) -> None:
    r = await client.get(
        "/api/v1/cities",
        headers={**bearer(make_token()), "Accept": "application/json;q=0.5, application/xml"},
    )
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("application/xml")
    assert ET.fromstring(r.content).tag == "ArrayOfCityWithoutPointsOfInterestDto"


@pytest.mark.asyncio
async def test_unsupported_media_type_is_not_acceptable(
    client: httpx.AsyncClient, make_token
) -> None:
    r = await client.get(
        "/api/v1/cities", headers={**bearer(make_token()), "Accept": "application/pdf"}
    )
    assert r.status_code == 406
    body = r.json()
    assert body["type"].endswith("/not-acceptable")
    assert "application/xml" in body["supportedMediaTypes"]


@pytest.mark.asyncio
async def test_caller_from_other_city_is_forbidden(
    client: httpx.AsyncClient, make_token, log_stream: io.StringIO
) -> None:
    r = await client.get("/api/v1/cities", headers=bearer(make_token("jdoe", city="Paris")))

    assert r.status_code == 403
    assert r.json()["type"].endswith("/forbidden")
    denied = [e for e in log_events(log_stream) if e["event"] == "authz.denied"]
    assert denied and denied[0]["policy"] == "MustBeFromAntwerp"


@pytest.mark.asyncio
async def test_token_failures_look_identical_to_caller(
    client: httpx.AsyncClient, make_token, settings: Settings, log_stream: io.StringIO
) -> None:
    expired = make_token(ttl=timedelta(minutes=-5))
    foreign = make_token(
        cfg=JwtConfig(
            alg=settings.jwt_alg,
            issuer="https://someone-else.test",
            audience=settings.jwt_audience,
            secret=settings.jwt_secret,
        )
    )

    r1 = await client.get("/api/v1/cities", headers=bearer(expired))
    r2 = await client.get("/api/v1/cities", headers=bearer(foreign))

    assert r1.status_code == r2.status_code == 401
    assert r1.json()["detail"] == r2.json()["detail"]
    assert "expired" not in r1.text.lower()
    assert "issuer" not in r2.text.lower()

    reasons = [e["reason"] for e in log_events(log_stream) if e["event"] == "auth.token_rejected"]
    assert reasons == ["ExpiredToken", "UntrustedIssuer"]


@pytest.mark.asyncio
async def test_unregistered_version_is_bad_request(tmp_path, log_stream: io.StringIO) -> None:
    settings = Settings(
        env="dev",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'v1-only.db'}",
        api_versions=["1.0"],
    )
    app = create_app(settings=settings, log_stream=log_stream)

    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            r = await client.get("/api/v2/cities")

    assert r.status_code == 400
    assert r.headers["api-supported-versions"] == "1.0"
    body = r.json()
    assert body["type"].endswith("/bad-request")
    assert body["supportedVersions"] == ["1.0"]


@pytest.mark.asyncio
async def test_unversioned_path_uses_default_version(
    client: httpx.AsyncClient, make_token
) -> None:
    token = make_token()
    r = await client.get("/api/cities", headers=bearer(token))
    assert r.status_code == 200

    # Points of interest are only served from 2.0; the default is 1.0.
    antwerp = await _city_id(client, token, "Antwerp")
    r = await client.get(f"/api/cities/{antwerp}/pointsofinterest", headers=bearer(token))
    assert r.status_code == 400
    assert r.json()["supportedVersions"] == ["1.0", "2.0"]


@pytest.mark.asyncio
async def test_points_of_interest_not_served_in_v1(client: httpx.AsyncClient, make_token) -> None:
    token = make_token()
    antwerp = await _city_id(client, token, "Antwerp")

    r = await client.get(f"/api/v1/cities/{antwerp}/pointsofinterest", headers=bearer(token))
    assert r.status_code == 400

    r = await client.get(f"/api/v2/cities/{antwerp}/pointsofinterest", headers=bearer(token))
    assert r.status_code == 200
    assert len(r.json()) == 2


@pytest.mark.asyncio
async def test_points_of_interest_of_other_city_are_forbidden(
    client: httpx.AsyncClient, make_token
) -> None:
    token = make_token()
    paris = await _city_id(client, token, "Paris")

    r = await client.get(f"/api/v2/cities/{paris}/pointsofinterest", headers=bearer(token))
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_unknown_city_is_not_found(client: httpx.AsyncClient, make_token) -> None:
    r = await client.get("/api/v1/cities/9999", headers=bearer(make_token()))
    assert r.status_code == 404
    assert r.json()["type"].endswith("/not-found")


@pytest.mark.asyncio
async def test_point_of_interest_lifecycle(
    client: httpx.AsyncClient, make_token, log_stream: io.StringIO
) -> None:
    token = make_token()
    antwerp = await _city_id(client, token, "Antwerp")
    base = f"/api/v2/cities/{antwerp}/pointsofinterest"

    r = await client.post(
        base,
        json={"name": "Rubenshuis", "description": "Home and studio of Peter Paul Rubens."},
        headers=bearer(token),
    )
    assert r.status_code == 201
    created = r.json()
    assert created["name"] == "Rubenshuis"
    assert r.headers["location"].endswith(f"{base}/{created['id']}")

    item = f"{base}/{created['id']}"
    r = await client.get(item, headers=bearer(token))
    assert r.status_code == 200
    assert r.json() == created

    r = await client.put(item, json={"name": "Rubens House"}, headers=bearer(token))
    assert r.status_code == 204
    r = await client.get(item, headers=bearer(token))
    assert r.json() == {"id": created["id"], "name": "Rubens House", "description": None}

    r = await client.patch(
        item,
        json=[{"op": "replace", "path": "/description", "value": "Baroque painter's house."}],
        headers=bearer(token),
    )
    assert r.status_code == 204
    r = await client.get(item, headers=bearer(token))
    assert r.json()["description"] == "Baroque painter's house."

    r = await client.delete(item, headers=bearer(token))
    assert r.status_code == 204
    r = await client.get(item, headers=bearer(token))
    assert r.status_code == 404

    mails = [e for e in log_events(log_stream) if e["event"] == "mail.sent"]
    assert len(mails) == 1
    assert mails[0]["transport"] == "local"
    assert "Rubens House" in mails[0]["message"]


@pytest.mark.asyncio
async def test_control_characters_survive_as_well_formed_xml(
    client: httpx.AsyncClient, make_token
) -> None:
    token = make_token()
    antwerp = await _city_id(client, token, "Antwerp")
    base = f"/api/v2/cities/{antwerp}/pointsofinterest"

    r = await client.post(
        base, json={"name": "Carillon", "description": "Rings\u0007 hourly."}, headers=bearer(token)
    )
    assert r.status_code == 201
    assert r.json()["description"] == "Rings\u0007 hourly."

    r = await client.get(
        f"{base}/{r.json()['id']}", headers={**bearer(token), "Accept": "application/xml"}
    )
    assert r.status_code == 200
    root = ET.fromstring(r.content)
    assert root.findtext("Name") == "Carillon"
    assert root.findtext("Description") == "Rings hourly."


@pytest.mark.asyncio
async def test_invalid_point_of_interest_is_rejected(
    client: httpx.AsyncClient, make_token
) -> None:
    token = make_token()
    antwerp = await _city_id(client, token, "Antwerp")
    base = f"/api/v2/cities/{antwerp}/pointsofinterest"

    r = await client.post(base, json={"name": ""}, headers=bearer(token))
    assert r.status_code == 422
    assert r.json()["errors"][0]["field"] == "name"

    r = await client.post(
        "/api/v2/cities/9999/pointsofinterest", json={"name": "x"}, headers=bearer(token)
    )
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_patch_rejects_bad_documents(client: httpx.AsyncClient, make_token) -> None:
    token = make_token()
    antwerp = await _city_id(client, token, "Antwerp")
    base = f"/api/v2/cities/{antwerp}/pointsofinterest"
    pois = (await client.get(base, headers=bearer(token))).json()
    item = f"{base}/{pois[0]['id']}"

    r = await client.patch(item, json=[{"op": "remove", "path": "/name"}], headers=bearer(token))
    assert r.status_code == 400
    assert r.json()["type"].endswith("/invalid-patch")

    r = await client.patch(
        item, json=[{"op": "replace", "path": "/unknown", "value": 1}], headers=bearer(token)
    )
    assert r.status_code == 400

    r = await client.patch(
        item, json=[{"op": "replace", "path": "/name", "value": "x" * 51}], headers=bearer(token)
    )
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_swagger_documents_are_served(client: httpx.AsyncClient) -> None:
    r = await client.get("/swagger/v2/swagger.json")
    assert r.status_code == 200
    assert r.json()["info"]["version"] == "2.0"

    r = await client.get("/swagger/v9/swagger.json")
    assert r.status_code == 404

    r = await client.get("/swagger")
    assert r.status_code == 200
    assert "/swagger/v1/swagger.json" in r.text


@pytest.mark.asyncio
async def test_authenticate_issues_usable_token(client: httpx.AsyncClient) -> None:
    r = await client.post(
        "/api/authentication/authenticate",
        json={"userName": "kvinckier", "givenName": "Kevin", "city": "Antwerp"},
    )
    assert r.status_code == 200
    token = r.json()["access_token"]

    r = await client.get("/api/v1/cities", headers=bearer(token))
    assert r.status_code == 200


class _FailingRepository:
    async def get_cities(self) -> list:
        raise RuntimeError("connection reset by peer")


@pytest.mark.asyncio
async def test_unhandled_error_keeps_pipeline_headers(
    app, make_token, log_stream: io.StringIO
) -> None:
    app.dependency_overrides[city_info_repository] = _FailingRepository
    async with app.router.lifespan_context(app):
        # The error is re-raised past the response; only the response is of interest here.
        transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
            r = await c.get(
                "/api/v1/cities",
                headers={**bearer(make_token()), "x-request-id": "req-500"},
            )

    assert r.status_code == 500
    assert r.headers["content-type"].startswith("application/problem+json")
    assert r.headers["api-supported-versions"] == "1.0, 2.0"
    assert r.headers["x-request-id"] == "req-500"
    body = r.json()
    assert body["traceId"] == "req-500"
    assert "connection reset" not in r.text
    failures = [e for e in log_events(log_stream) if e["event"] == "request.unhandled_error"]
    assert failures[0]["request_id"] == "req-500"


# --- Module Notes -----------------------------------------------------------
# City ids are looked up by name; seeding order is not part of the contract.
