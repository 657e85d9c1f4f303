"""
Compliance Schemas
Pydantic models for section compliance checks and application validation.
"""
from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


IssueType = Literal["error", "warning"]


# =============================================================================
# Section Compliance
# =============================================================================

class ComplianceIssue(BaseModel):
    """A single compliance finding for a section."""
    type: IssueType
    code: str = Field(..., description="Machine-readable code, e.g. PAGE_LIMIT_EXCEEDED")
    message: str
    field: Optional[str] = None
    suggestion: Optional[str] = None


class ComplianceResult(BaseModel):
    """Compliance outcome for one section."""
    is_compliant: bool
    issues: List[ComplianceIssue]
    score: int = Field(..., ge=0, le=100)


class ComplianceCheckRequest(BaseModel):
    """Ad-hoc compliance check for text that is not stored in a section."""
    content: str
    section_type: str = Field(..., description="Section type key, e.g. 'specific_aims'")


# =============================================================================
# Application Validation
# =============================================================================

class ValidationIssue(BaseModel):
    """A validation finding, optionally tied to a section title."""
    type: IssueType
    message: str
    section: Optional[str] = None


class ApplicationValidationResponse(BaseModel):
    """Stored result of validating a whole application."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    application_id: UUID
    errors: List[str]
    warnings: List[str]
    is_valid: bool
    created_at: datetime
    can_export: bool = False
