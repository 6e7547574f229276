"""
Test suite for the HTTP boundary.
Covers Host-to-site mapping and the 401 refusal.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from sitenv.bootstrap import site_for_host
from sitenv.main import app


def client_for(host: str) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url=f"http://{host}")


@pytest.mark.asyncio
async def test_config_for_known_host(api_environ):
    """A host in the site matrix resolves to that site's database."""
    async with client_for("europa.earth.test") as client:
        response = await client.get("/config")

    assert response.status_code == 200
    data = response.json()
    assert data["db_name"] == "europa"
    assert data["domain_current_site"] == "earth.example"
    assert data["db_host"] == "db.internal"
    assert "X-Request-ID" in response.headers


@pytest.mark.asyncio
async def test_config_ignores_port(api_environ):
    async with client_for("antarctica.earth.example:8080") as client:
        response = await client.get("/config")

    assert response.status_code == 200
    assert response.json()["db_name"] == "antarctica"


@pytest.mark.asyncio
async def test_unknown_host_is_unauthorized(api_environ):
    """Unknown hosts fall back to the default site, which is refused."""
    async with client_for("unknown.example") as client:
        response = await client.get("/config")

    assert response.status_code == 401
    assert response.text == "Unauthorized"


@pytest.mark.asyncio
async def test_unresolvable_database_name_is_server_error(api_environ):
    api_environ["DATABASE_NAME"] = "***"

    async with client_for("europa.earth.example") as client:
        response = await client.get("/config")

    assert response.status_code == 500
    assert response.json() == {"detail": "Database name could not be computed."}


@pytest.mark.asyncio
async def test_sites_listing(api_environ):
    async with client_for("europa.earth.example") as client:
        response = await client.get("/sites")

    assert response.status_code == 200
    data = response.json()
    assert data["multi_site"] is True
    assert data["domains"] == ["earth.example", "earth.test"]
    assert data["sites"] == {
        "antarctica.earth.example": "antarctica",
        "antarctica.earth.test": "antarctica",
        "europa.earth.example": "europa",
        "europa.earth.test": "europa",
    }


@pytest.mark.asyncio
async def test_health_live():
    async with client_for("test") as client:
        response = await client.get("/health/live")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_metrics_exposes_resolution_counter(api_environ):
    async with client_for("europa.earth.example") as client:
        await client.get("/config")
        response = await client.get("/metrics")

    assert response.status_code == 200
    assert "database_name_resolutions_total" in response.text
    assert "http_requests_total" in response.text


@pytest.mark.asyncio
async def test_config_never_returns_password(api_environ):
    """Credentials stay out of the HTTP response; the Host header is client-controlled."""
    async with client_for("europa.earth.example") as client:
        response = await client.get("/config")

    assert response.status_code == 200
    data = response.json()
    assert "db_password" not in data
    assert "pass" not in data.values()
    assert data["db_user"] == "user"


@pytest.mark.asyncio
async def test_host_matching_ignores_case(api_environ):
    api_environ["DOMAINS"] = "Earth.Example"

    async with client_for("europa.Earth.Example") as client:
        response = await client.get("/config")

    assert response.status_code == 200
    assert response.json()["db_name"] == "europa"


def test_site_for_host_ignores_case(make_resolver):
    resolver = make_resolver({"SITES": "Europa", "DOMAINS": "Earth.Example,earth.test"})

    assert site_for_host(resolver, "EUROPA.earth.example:443") == "Europa"
    assert site_for_host(resolver, "europa.EARTH.TEST") == "Europa"
    assert site_for_host(resolver, "mars.earth.example") == "default"
