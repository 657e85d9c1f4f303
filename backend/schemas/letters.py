"""
Letter Schemas
Support, consultant and vendor letter generation.
"""
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field


LetterType = Literal["support", "consultant", "vendor"]


class LetterRequest(BaseModel):
    """Fields merged into a letter template."""
    type: str = Field(..., description="support, consultant or vendor")
    recipient_name: str
    recipient_title: str = ""
    recipient_institution: str
    project_title: str
    pi_name: str
    pi_institution: str
    grant_mechanism: str
    collaboration_details: Optional[str] = None
    consultant_expertise: Optional[str] = None
    consultant_role: Optional[str] = None
    consultant_effort: Optional[str] = None
    consultant_rate: Optional[float] = None
    vendor_product: Optional[str] = None
    vendor_commitment: Optional[str] = None
    custom_paragraphs: List[str] = Field(default_factory=list)
    refine: bool = Field(False, description="Polish the drafted letter with the LLM")


class LetterResponse(BaseModel):
    letter: str
    type: LetterType
    refined: bool = False


class LetterInfoResponse(BaseModel):
    letter_types: List[str]
    required_fields: Dict[str, List[str]]
