"""
Grant Opportunity Search
Searches open funding opportunities on Simpler.Grants.gov.

Without an API key, or when the API cannot be reached, a fixed set of
sample NIH/DOD opportunities is searched instead and the response is
marked ``using_sample_data``.
"""

import re
from datetime import date
from typing import Any, Optional

import httpx
import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from backend.core.config import settings
from backend.schemas.grants import (
    AgencyOption,
    GrantOpportunity,
    GrantResult,
    GrantSearchParams,
    GrantSearchResponse,
)

logger = structlog.get_logger(__name__)

DEFAULT_QUERY = "cancer research"
PAGE_SIZE = 50
OPEN_STATUSES = ["posted", "forecasted"]

AGENCIES = [
    AgencyOption(value="all", label="All Agencies"),
    AgencyOption(value="HHS", label="HHS (NIH/NCI)"),
    AgencyOption(value="DOD", label="Department of Defense"),
    AgencyOption(value="NSF", label="National Science Foundation"),
]

AMOUNT_PRESETS = [100000, 500000, 1000000]

HTML_TAG = re.compile(r"<[^>]+>")


SAMPLE_GRANTS = [
    GrantOpportunity(
        opportunity_id=365089,
        opportunity_number="PAR-26-001",
        opportunity_title="Research on Solid Tumor Immunotherapy Resistance Mechanisms",
        agency_code="HHS-NIH-NCI",
        agency_name="National Cancer Institute",
        close_date=date(2026, 3, 15),
        award_ceiling=500000,
        award_floor=150000,
        summary_description=(
            "This funding opportunity supports research to understand mechanisms of "
            "resistance to immunotherapy in solid tumors."
        ),
        category="Discretionary",
        funding_instrument_type="Grant",
    ),
    GrantOpportunity(
        opportunity_id=365102,
        opportunity_number="RFA-CA-26-015",
        opportunity_title="Early Detection of Pancreatic Cancer",
        agency_code="HHS-NIH-NCI",
        agency_name="National Cancer Institute",
        close_date=date(2026, 2, 28),
        award_ceiling=750000,
        award_floor=200000,
        summary_description=(
            "This initiative supports development of novel approaches for early detection "
            "of pancreatic ductal adenocarcinoma (PDAC)."
        ),
        category="Discretionary",
        funding_instrument_type="Grant",
    ),
    GrantOpportunity(
        opportunity_id=365115,
        opportunity_number="W81XWH-26-BCRP-001",
        opportunity_title="Breast Cancer Research Program - Breakthrough Award",
        agency_code="DOD",
        agency_name="Department of Defense - CDMRP",
        close_date=date(2026, 4, 10),
        award_ceiling=1000000,
        award_floor=500000,
        summary_description=(
            "The Breakthrough Award supports promising research that has high potential "
            "to lead to breakthroughs in breast cancer."
        ),
        category="Discretionary",
        funding_instrument_type="Cooperative Agreement",
    ),
    GrantOpportunity(
        opportunity_id=365128,
        opportunity_number="PAR-26-045",
        opportunity_title="Tumor Microenvironment Network (TMEN) Research",
        agency_code="HHS-NIH-NCI",
        agency_name="National Cancer Institute",
        close_date=date(2026, 5, 1),
        award_ceiling=350000,
        award_floor=100000,
        summary_description=(
            "This program supports collaborative research on the tumor microenvironment "
            "across multiple solid tumor types."
        ),
        category="Discretionary",
        funding_instrument_type="Grant",
    ),
    GrantOpportunity(
        opportunity_id=365141,
        opportunity_number="RFA-CA-26-022",
        opportunity_title="Pediatric Solid Tumor Translational Research",
        agency_code="HHS-NIH-NCI",
        agency_name="National Cancer Institute",
        close_date=date(2026, 3, 30),
        award_ceiling=600000,
        award_floor=250000,
        summary_description=(
            "Supports translational research in pediatric solid tumors including "
            "neuroblastoma, Wilms tumor, osteosarcoma."
        ),
        category="Discretionary",
        funding_instrument_type="Grant",
    ),
]


# =============================================================================
# Helpers
# =============================================================================


def grant_url(opportunity_id: int) -> str:
    return f"https://www.grants.gov/search-results-detail/{opportunity_id}"


def days_until_deadline(close_date: Optional[date], today: Optional[date] = None) -> Optional[int]:
    """Whole days to the close date; negative once it has passed, None when open-ended."""
    if close_date is None:
        return None
    return (close_date - (today or date.today())).days


def strip_html(text: Optional[str]) -> Optional[str]:
    if text is None:
        return None
    return " ".join(HTML_TAG.sub(" ", text).split())


def normalize_opportunity(record: dict[str, Any]) -> GrantOpportunity:
    """
    Flatten an API record.

    The API nests close date, award range and description under
    ``summary``; top-level keys win when both are present.
    """
    summary = record.get("summary") or {}
    merged = {**summary, **{k: v for k, v in record.items() if k != "summary"}}
    merged["summary_description"] = strip_html(merged.get("summary_description"))
    merged["agency_code"] = merged.get("agency_code") or merged.get("agency") or ""
    for key in ("opportunity_number", "opportunity_title"):
        merged[key] = merged.get(key) or ""
    return GrantOpportunity.model_validate(merged)


def filter_grants(
    grants: list[GrantOpportunity],
    params: GrantSearchParams,
    match_query: bool = True,
) -> list[GrantOpportunity]:
    """
    Apply search filters and sort by close date (open-ended last).

    ``max_amount`` keeps opportunities whose ceiling is unknown.
    """
    results = list(grants)

    query = params.query.strip().lower()
    if match_query and query:
        results = [
            g for g in results
            if query in g.opportunity_title.lower() or query in (g.summary_description or "").lower()
        ]

    if params.agency and params.agency != "all":
        results = [g for g in results if g.agency_code.startswith(params.agency)]

    if params.max_amount is not None:
        results = [g for g in results if g.award_ceiling is None or g.award_ceiling <= params.max_amount]

    results.sort(key=lambda g: (g.close_date is None, g.close_date or date.max))
    return results


def to_result(grant: GrantOpportunity, today: Optional[date] = None) -> GrantResult:
    return GrantResult(
        **grant.model_dump(),
        days_until_deadline=days_until_deadline(grant.close_date, today),
        url=grant_url(grant.opportunity_id),
    )


# =============================================================================
# Search Client
# =============================================================================


class GrantSearchClient:
    """Async client for the Simpler.Grants.gov opportunity search."""

    def __init__(self, http_client: Optional[httpx.AsyncClient] = None, api_key: Optional[str] = None):
        self.http_client = http_client
        self._owns_client = http_client is None
        self.api_key = api_key if api_key is not None else settings.simpler_grants_api_key

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client."""
        if self.http_client is None:
            self.http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(settings.grant_search_timeout),
                headers={
                    "Accept": "application/json",
                    "Content-Type": "application/json",
                    "User-Agent": f"{settings.app_name}/{settings.app_version} (grant-search)",
                },
            )
        return self.http_client

    async def close(self) -> None:
        if self.http_client and self._owns_client:
            await self.http_client.aclose()
            self.http_client = None

    async def __aenter__(self) -> "GrantSearchClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError)),
        reraise=True,
        before_sleep=lambda retry_state: structlog.get_logger().warning(
            "grant_search_retry",
            attempt=retry_state.attempt_number,
            wait=retry_state.next_action.sleep,
        ),
    )
    async def _post_search(self, query: str) -> dict[str, Any]:
        client = await self._get_http_client()
        response = await client.post(
            f"{settings.simpler_grants_api_url}/v1/opportunities/search",
            headers={"X-API-Key": self.api_key},
            json={
                "query": query or DEFAULT_QUERY,
                "pagination": {
                    "page_offset": 1,
                    "page_size": PAGE_SIZE,
                    "sort_order": [{"order_by": "close_date", "sort_direction": "ascending"}],
                },
                "filters": {"opportunity_status": {"one_of": OPEN_STATUSES}},
            },
        )
        response.raise_for_status()
        return response.json()

    async def fetch_live(self, query: str) -> list[GrantOpportunity]:
        """
        Raises:
            httpx.HTTPError: On network/HTTP errors after retries
            ValueError: Body is not JSON or a record does not validate
        """
        data = await self._post_search(query)
        return [normalize_opportunity(record) for record in data.get("data") or []]

    async def search(self, params: GrantSearchParams, today: Optional[date] = None) -> GrantSearchResponse:
        """Search live opportunities, falling back to the sample set."""
        grants: Optional[list[GrantOpportunity]] = None
        if self.api_key:
            try:
                grants = filter_grants(await self.fetch_live(params.query), params, match_query=False)
            except (httpx.HTTPError, ValueError) as e:
                # pydantic.ValidationError is a ValueError
                logger.warning("Grant search API failed, using sample data", error=str(e))

        using_sample_data = grants is None
        if using_sample_data:
            grants = filter_grants(SAMPLE_GRANTS, params)

        results = [to_result(g, today) for g in grants]
        logger.info("Grant search", query=params.query, results=len(results), sample=using_sample_data)
        return GrantSearchResponse(grants=results, total=len(results), using_sample_data=using_sample_data)
