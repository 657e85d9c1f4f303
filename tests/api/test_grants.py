"""
Tests for Grant Opportunities API.
The Simpler.Grants.gov API is replaced with an httpx mock transport.
"""
import httpx
import pytest

from backend.api.grants import get_grant_search_client
from backend.main import app
from backend.services.grant_search import GrantSearchClient

pytestmark = pytest.mark.asyncio


def use_transport(handler, api_key="test-key") -> None:
    async def override():
        async with GrantSearchClient(
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
            api_key=api_key,
        ) as client:
            yield client

    app.dependency_overrides[get_grant_search_client] = override


class TestGrantSearch:
    """Tests for /api/grants."""

    async def test_filter_options(self, async_client):
        response = await async_client.get("/api/grants/filters")

        assert response.status_code == 200
        body = response.json()
        assert [a["value"] for a in body["agencies"]] == ["all", "HHS", "DOD", "NSF"]
        assert body["amount_presets"] == [100000, 500000, 1000000]

    async def test_requires_auth(self, async_client):
        response = await async_client.get("/api/grants/search")
        assert response.status_code == 401

    async def test_sample_search(self, async_client, auth_headers):
        use_transport(lambda request: httpx.Response(500), api_key="")

        response = await async_client.get(
            "/api/grants/search",
            params={"q": "tumor", "agency": "HHS", "max_amount": 600000},
            headers=auth_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["using_sample_data"] is True
        assert [g["opportunity_number"] for g in body["grants"]] == [
            "PAR-26-001",
            "RFA-CA-26-022",
            "PAR-26-045",
        ]
        assert body["grants"][0]["url"] == "https://www.grants.gov/search-results-detail/365089"

    async def test_live_search(self, async_client, auth_headers):
        record = {
            "opportunity_id": 500001,
            "opportunity_number": "PA-25-303",
            "opportunity_title": "Omnibus Solicitation for SBIR Grant Applications",
            "agency_code": "HHS-NIH11",
            "summary": {"close_date": "2026-01-05", "award_ceiling": 306872},
        }
        use_transport(lambda request: httpx.Response(200, json={"data": [record]}))

        response = await async_client.get("/api/grants/search", params={"q": "SBIR"}, headers=auth_headers)

        body = response.json()
        assert body["using_sample_data"] is False
        assert body["total"] == 1
        assert body["grants"][0]["close_date"] == "2026-01-05"

    async def test_negative_amount_rejected(self, async_client, auth_headers):
        response = await async_client.get(
            "/api/grants/search", params={"max_amount": -1}, headers=auth_headers
        )
        assert response.status_code == 422
