"""
Application Schemas
Pydantic models for applications, sections, attachments and section versions.
"""
from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _enum_value(value):
    return getattr(value, "value", value)


# =============================================================================
# Sections
# =============================================================================

class SectionResponse(BaseModel):
    """A narrative section with its compliance state."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    application_id: UUID
    type: str
    title: str
    content: str
    page_limit: int
    page_count: int
    required_headings: Optional[List[str]] = None
    is_valid: bool
    is_complete: bool
    order_index: int
    updated_at: Optional[datetime] = None


class SectionUpdate(BaseModel):
    """Save section content, optionally snapshotting a version."""
    content: str
    save_version: bool = Field(False, description="Store the new content as a section version")
    version_source: Literal["user", "ai-generated", "ai-modified"] = "user"
    change_description: Optional[str] = None


class SectionVersionCreate(BaseModel):
    content: str
    source: Literal["user", "ai-generated", "ai-modified"] = "user"
    change_description: Optional[str] = None


class SectionVersionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    section_id: UUID
    content: str
    source: str
    change_description: Optional[str] = None
    created_at: datetime

    source_value = field_validator("source", mode="before")(_enum_value)


# =============================================================================
# Attachments
# =============================================================================

class AttachmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    application_id: UUID
    name: str
    file_url: Optional[str] = None
    required: bool
    status: str

    status_value = field_validator("status", mode="before")(_enum_value)


class AttachmentUpdate(BaseModel):
    status: Optional[Literal["pending", "uploaded"]] = None
    file_url: Optional[str] = None


# =============================================================================
# Applications
# =============================================================================

class ApplicationCreate(BaseModel):
    """Create an application; sections and attachments are seeded from the mechanism."""
    title: str = Field(..., min_length=1, max_length=500)
    mechanism: str = Field(..., description="Mechanism id, e.g. 'R43' or 'STTR_FAST_TRACK'")


class ApplicationUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    status: Optional[Literal["draft", "complete"]] = None


class ApplicationSummary(BaseModel):
    """Application row for list views."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    mechanism: str
    status: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    status_value = field_validator("status", mode="before")(_enum_value)


class ApplicationResponse(ApplicationSummary):
    """Application with its sections and attachments."""
    sections: List[SectionResponse] = Field(default_factory=list)
    attachments: List[AttachmentResponse] = Field(default_factory=list)


class ApplicationListResponse(BaseModel):
    applications: List[ApplicationSummary]
    total: int
