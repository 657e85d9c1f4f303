"""
Tests for Grant Opportunity Search.
Tests sample-data filtering and the Simpler.Grants.gov client against a mocked API.
"""
import json
from datetime import date

import httpx
import pytest
from tenacity import wait_none

from backend.schemas.grants import GrantSearchParams
from backend.services.grant_search import (
    SAMPLE_GRANTS,
    GrantSearchClient,
    days_until_deadline,
    filter_grants,
    grant_url,
    normalize_opportunity,
)


API_RECORD = {
    "opportunity_id": 500001,
    "opportunity_number": "PA-25-303",
    "opportunity_title": "Omnibus Solicitation for SBIR Grant Applications",
    "agency_code": "HHS-NIH11",
    "agency_name": "National Institutes of Health",
    "opportunity_status": "posted",
    "category": "discretionary",
    "summary": {
        "summary_description": "<p>Supports <b>small business</b> research.</p>",
        "close_date": "2026-01-05",
        "award_ceiling": 306872,
        "award_floor": None,
        "funding_instrument_type": "grant",
    },
}


def make_client(handler, api_key="test-key") -> GrantSearchClient:
    return GrantSearchClient(
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        api_key=api_key,
    )


def ids(grants) -> list[int]:
    return [g.opportunity_id for g in grants]


@pytest.fixture
def no_retry_wait(monkeypatch):
    monkeypatch.setattr(GrantSearchClient._post_search.retry, "wait", wait_none())


class TestHelpers:
    def test_grant_url(self):
        assert grant_url(365089) == "https://www.grants.gov/search-results-detail/365089"

    @pytest.mark.parametrize(
        "close,expected",
        [
            (date(2026, 3, 15), 14),
            (date(2026, 3, 1), 0),
            (date(2026, 2, 27), -2),
            (None, None),
        ],
    )
    def test_days_until_deadline(self, close, expected):
        assert days_until_deadline(close, today=date(2026, 3, 1)) == expected

    def test_normalize_flattens_summary(self):
        grant = normalize_opportunity(API_RECORD)

        assert grant.opportunity_id == 500001
        assert grant.close_date == date(2026, 1, 5)
        assert grant.award_ceiling == 306872
        assert grant.award_floor is None
        assert grant.summary_description == "Supports small business research."
        assert grant.funding_instrument_type == "grant"

    def test_normalize_tolerates_missing_fields(self):
        grant = normalize_opportunity({"opportunity_id": 7, "opportunity_title": None, "agency_code": None})

        assert grant.opportunity_title == ""
        assert grant.agency_code == ""
        assert grant.close_date is None


class TestFilterGrants:
    """Tests for sample-data filtering."""

    def test_sorted_by_close_date(self):
        results = filter_grants(SAMPLE_GRANTS, GrantSearchParams())
        assert ids(results) == [365102, 365089, 365141, 365115, 365128]

    def test_query_matches_title_or_summary(self):
        assert ids(filter_grants(SAMPLE_GRANTS, GrantSearchParams(query="PANCREATIC"))) == [365102]
        assert ids(filter_grants(SAMPLE_GRANTS, GrantSearchParams(query="neuroblastoma"))) == [365141]

    def test_agency_prefix(self):
        results = filter_grants(SAMPLE_GRANTS, GrantSearchParams(agency="DOD"))
        assert ids(results) == [365115]

        assert len(filter_grants(SAMPLE_GRANTS, GrantSearchParams(agency="HHS"))) == 4
        assert filter_grants(SAMPLE_GRANTS, GrantSearchParams(agency="NSF")) == []

    def test_max_amount(self):
        results = filter_grants(SAMPLE_GRANTS, GrantSearchParams(max_amount=500000))
        assert ids(results) == [365089, 365128]

    def test_max_amount_keeps_unknown_ceiling(self):
        grants = [normalize_opportunity({"opportunity_id": 1}), *SAMPLE_GRANTS]
        results = filter_grants(grants, GrantSearchParams(max_amount=100000))
        assert ids(results) == [1]

    def test_open_ended_sorted_last(self):
        grants = [normalize_opportunity({"opportunity_id": 1}), *SAMPLE_GRANTS[:2]]
        assert ids(filter_grants(grants, GrantSearchParams())) == [365102, 365089, 1]


@pytest.mark.asyncio
class TestGrantSearchClient:
    """Tests for the live search and its sample fallback."""

    async def test_without_key_uses_samples(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("API should not be called without a key")

        async with make_client(handler, api_key="") as client:
            response = await client.search(GrantSearchParams(query="tumor"), today=date(2026, 3, 1))

        assert response.using_sample_data is True
        assert response.total == 3
        assert response.grants[0].opportunity_id == 365089
        assert response.grants[0].days_until_deadline == 14
        assert response.grants[0].url.endswith("/365089")

    async def test_live_search(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["key"] = request.headers.get("X-API-Key")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"data": [API_RECORD]})

        async with make_client(handler) as client:
            response = await client.search(GrantSearchParams(query="SBIR"))

        assert response.using_sample_data is False
        assert ids(response.grants) == [500001]
        assert seen["path"] == "/v1/opportunities/search"
        assert seen["key"] == "test-key"
        assert seen["body"]["query"] == "SBIR"
        assert seen["body"]["pagination"]["page_size"] == 50
        assert seen["body"]["filters"] == {"opportunity_status": {"one_of": ["posted", "forecasted"]}}

    async def test_blank_query_defaults(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"data": []})

        async with make_client(handler) as client:
            response = await client.search(GrantSearchParams())

        assert seen["body"]["query"] == "cancer research"
        assert response.total == 0
        assert response.using_sample_data is False

    async def test_live_results_are_filtered_by_agency(self):
        other = {**API_RECORD, "opportunity_id": 2, "agency_code": "NSF"}

        async with make_client(lambda r: httpx.Response(200, json={"data": [API_RECORD, other]})) as client:
            response = await client.search(GrantSearchParams(agency="NSF"))

        assert ids(response.grants) == [2]

    async def test_api_error_falls_back_to_samples(self):
        async with make_client(lambda r: httpx.Response(401)) as client:
            response = await client.search(GrantSearchParams(agency="DOD"))

        assert response.using_sample_data is True
        assert ids(response.grants) == [365115]

    async def test_timeouts_fall_back_to_samples(self, no_retry_wait):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            raise httpx.ConnectTimeout("timed out", request=request)

        async with make_client(handler) as client:
            response = await client.search(GrantSearchParams())

        assert response.using_sample_data is True
        assert response.total == 5
        assert len(calls) == 3

    async def test_non_json_body_falls_back_to_samples(self):
        async with make_client(lambda r: httpx.Response(200, text="<html>maintenance</html>")) as client:
            response = await client.search(GrantSearchParams())

        assert response.using_sample_data is True
