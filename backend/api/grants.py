"""
Grant Opportunities API Endpoints
Funding opportunity search for choosing where to apply.
"""
import logging
from typing import Annotated, AsyncGenerator, Optional

from fastapi import APIRouter, Depends, Query

from backend.api.deps import CurrentUser
from backend.schemas.grants import GrantFilterOptions, GrantSearchParams, GrantSearchResponse
from backend.services.grant_search import AGENCIES, AMOUNT_PRESETS, GrantSearchClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/grants", tags=["Grant Opportunities"])


async def get_grant_search_client() -> AsyncGenerator[GrantSearchClient, None]:
    """Search client scoped to the request."""
    async with GrantSearchClient() as client:
        yield client


GrantSearchDep = Annotated[GrantSearchClient, Depends(get_grant_search_client)]


@router.get("/filters", response_model=GrantFilterOptions)
async def filter_options() -> GrantFilterOptions:
    return GrantFilterOptions(agencies=AGENCIES, amount_presets=AMOUNT_PRESETS)


@router.get("/search", response_model=GrantSearchResponse)
async def search_grants(
    current_user: CurrentUser,
    client: GrantSearchDep,
    q: str = Query("", max_length=200),
    agency: str = Query("all"),
    max_amount: Optional[int] = Query(None, ge=0),
) -> GrantSearchResponse:
    """
    Search posted and forecasted opportunities, soonest deadline first.

    Serves sample opportunities (``using_sample_data``) when no API key is
    configured or the search API is unavailable.
    """
    params = GrantSearchParams(query=q, agency=agency, max_amount=max_amount)
    response = await client.search(params)
    logger.info(f"Grant search by user {current_user.id}: {response.total} results")
    return response
