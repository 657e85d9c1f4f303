"""
Reference Schemas
Bibliography entries and their verification against PubMed and Crossref.
"""
from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


VerificationStatus = Literal["pending", "verified", "not_found"]


class ParsedReference(BaseModel):
    """One entry split out of a pasted bibliography."""
    reference_text: str
    pmid: Optional[str] = None
    doi: Optional[str] = None


class VerificationResult(BaseModel):
    """Bibliographic record returned by the lookup service."""
    title: str = ""
    authors: List[str] = Field(default_factory=list)
    journal: str = ""
    year: Optional[int] = None
    citation_count: Optional[int] = None
    source: Literal["pubmed", "crossref"]


class VerificationOutcome(BaseModel):
    status: VerificationStatus
    result: Optional[VerificationResult] = None
    pmid: Optional[str] = None
    doi: Optional[str] = None


class ReferenceCreate(BaseModel):
    """Add one reference, or paste a bibliography to add several."""
    application_id: UUID
    reference_text: str = Field(..., min_length=1)


class ReferenceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    application_id: UUID
    reference_text: str
    pmid: Optional[str] = None
    doi: Optional[str] = None
    verification_status: str
    verification_result: Optional[dict] = None
    verified_at: Optional[datetime] = None


class ReferenceListResponse(BaseModel):
    references: List[ReferenceResponse]
    total: int


class PubMedArticle(BaseModel):
    """Search hit from PubMed."""
    pmid: str
    title: str = ""
    authors: str = ""
    journal: str = ""
    year: Optional[int] = None
    doi: Optional[str] = None


class PubMedSearchResponse(BaseModel):
    references: List[PubMedArticle]
