"""
References API Endpoints
Store bibliography entries and verify them against PubMed and Crossref.
"""
import logging
from datetime import datetime, timezone
from typing import Annotated, AsyncGenerator, List
from uuid import UUID

import httpx
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select

from backend.api.deps import AsyncSessionDep, CurrentUser
from backend.api.utils.auth import get_owned_application, get_owned_reference
from backend.core.exceptions import ExternalServiceError
from backend.models import ReferenceEntry
from backend.schemas.references import (
    PubMedSearchResponse,
    ReferenceCreate,
    ReferenceListResponse,
    ReferenceResponse,
)
from backend.services.references import ReferenceVerifier, parse_reference_text

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/references", tags=["References"])


async def get_reference_verifier() -> AsyncGenerator[ReferenceVerifier, None]:
    """Lookup client scoped to the request."""
    async with ReferenceVerifier() as verifier:
        yield verifier


VerifierDep = Annotated[ReferenceVerifier, Depends(get_reference_verifier)]


@router.get("", response_model=ReferenceListResponse)
async def list_references(
    db: AsyncSessionDep,
    current_user: CurrentUser,
    application_id: UUID = Query(...),
) -> ReferenceListResponse:
    await get_owned_application(db, application_id, current_user)
    result = await db.execute(
        select(ReferenceEntry)
        .where(ReferenceEntry.application_id == application_id)
        .order_by(ReferenceEntry.created_at)
    )
    references = [ReferenceResponse.model_validate(r) for r in result.scalars().all()]
    return ReferenceListResponse(references=references, total=len(references))


@router.post("", response_model=List[ReferenceResponse], status_code=status.HTTP_201_CREATED)
async def add_references(
    request: ReferenceCreate,
    db: AsyncSessionDep,
    current_user: CurrentUser,
) -> List[ReferenceResponse]:
    """
    Add references from pasted text.

    A bibliography is split into one entry per reference, with PMID and
    DOI pulled out where present. Entries start as ``pending``.
    """
    await get_owned_application(db, request.application_id, current_user)

    entries = [
        ReferenceEntry(
            application_id=request.application_id,
            reference_text=parsed.reference_text,
            pmid=parsed.pmid,
            doi=parsed.doi,
            verification_status="pending",
        )
        for parsed in parse_reference_text(request.reference_text)
    ]
    db.add_all(entries)
    await db.flush()

    logger.info(f"Added {len(entries)} references to application {request.application_id}")
    return [ReferenceResponse.model_validate(e) for e in entries]


@router.get("/search", response_model=PubMedSearchResponse)
async def search_pubmed(
    current_user: CurrentUser,
    verifier: VerifierDep,
    q: str = Query(..., min_length=2, description="PubMed search terms"),
    limit: int = Query(20, ge=1, le=100),
) -> PubMedSearchResponse:
    try:
        articles = await verifier.search(q, retmax=limit)
    except (httpx.HTTPError, ValueError) as e:
        raise ExternalServiceError("PubMed", str(e)) from e
    return PubMedSearchResponse(references=articles)


@router.post("/{reference_id}/verify", response_model=ReferenceResponse)
async def verify_reference(
    reference_id: UUID,
    db: AsyncSessionDep,
    current_user: CurrentUser,
    verifier: VerifierDep,
) -> ReferenceResponse:
    """
    Verify a reference by PMID, then DOI, then a PubMed title search.

    A PMID discovered by the title search is stored on the entry.
    """
    reference = await get_owned_reference(db, reference_id, current_user)
    outcome = await verifier.verify(reference.reference_text, reference.pmid, reference.doi)

    reference.verification_status = outcome.status
    reference.verification_result = outcome.result.model_dump() if outcome.result else None
    reference.verified_at = datetime.now(timezone.utc)
    if outcome.pmid:
        reference.pmid = outcome.pmid

    await db.flush()
    return ReferenceResponse.model_validate(reference)


@router.delete("/{reference_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_reference(
    reference_id: UUID,
    db: AsyncSessionDep,
    current_user: CurrentUser,
) -> None:
    reference = await get_owned_reference(db, reference_id, current_user)
    await db.delete(reference)
