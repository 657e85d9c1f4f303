"""
GrantIQ Database Models
SQLAlchemy ORM models for grant application drafting.
"""
import enum
import uuid
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import (
    JSON,
    TIMESTAMP,
    Boolean,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class ApplicationStatus(enum.Enum):
    """Enum for application drafting status."""

    DRAFT = "draft"
    COMPLETE = "complete"


class AttachmentStatus(enum.Enum):
    """Enum for attachment upload status."""

    PENDING = "pending"
    UPLOADED = "uploaded"


class VersionSource(enum.Enum):
    """Where a section version's content came from."""

    USER = "user"
    AI_GENERATED = "ai-generated"
    AI_MODIFIED = "ai-modified"


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


class User(Base):
    """
    User accounts for grant writers.

    Stores authentication credentials and basic profile information.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        doc="Unique identifier for the user",
    )
    email: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        unique=True,
        doc="User email address (used for login)",
    )
    password_hash: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        doc="Bcrypt hashed password",
    )
    name: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        doc="User's full name",
    )
    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="user",
        doc="Account role: 'user' or 'admin' (admins may override the export gate)",
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=datetime.utcnow,
        doc="Account creation timestamp",
    )

    # Relationships
    applications: Mapped[list["Application"]] = relationship(
        "Application",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"


class Application(Base):
    """
    A grant application being drafted for one NIH mechanism.

    Sections and attachment placeholders are seeded from the mechanism's
    rule table when the application is created.
    """

    __tablename__ = "applications"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        doc="Unique identifier for the application",
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        doc="Reference to the owning user",
    )
    title: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        doc="Project title",
    )
    mechanism: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        doc="Funding mechanism id (e.g., 'R43', 'STTR_FAST_TRACK')",
    )
    status: Mapped[ApplicationStatus] = mapped_column(
        Enum(ApplicationStatus, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ApplicationStatus.DRAFT,
        doc="Drafting status",
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=datetime.utcnow,
        doc="When the application was created",
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        doc="When the application was last updated",
    )

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="applications")
    sections: Mapped[list["Section"]] = relationship(
        "Section",
        back_populates="application",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Section.order_index",
    )
    attachments: Mapped[list["Attachment"]] = relationship(
        "Attachment",
        back_populates="application",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    validation_results: Mapped[list["ValidationResult"]] = relationship(
        "ValidationResult",
        back_populates="application",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    budget_items: Mapped[list["BudgetItem"]] = relationship(
        "BudgetItem",
        back_populates="application",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    references: Mapped[list["ReferenceEntry"]] = relationship(
        "ReferenceEntry",
        back_populates="application",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (Index("ix_applications_user_id", user_id),)

    def __repr__(self) -> str:
        return f"<Application(id={self.id}, mechanism='{self.mechanism}')>"


class Section(Base):
    """
    One narrative section of an application (Specific Aims, Research Strategy...).

    Besides the prose, a section carries the aims architecture the user
    builds in the editor and the cached structural score, risk assessment
    and dependency map computed from it.
    """

    __tablename__ = "sections"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        doc="Unique identifier for the section",
    )
    application_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
        doc="Reference to the parent application",
    )
    type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        doc="Section type key (e.g., 'specific_aims', 'research_strategy')",
    )
    title: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        doc="Display title",
    )
    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
        doc="Section body (HTML or plain text)",
    )
    page_limit: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        doc="Page limit for this section (0 means no limit)",
    )
    page_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        doc="Estimated page count at 3000 characters per page",
    )
    required_headings: Mapped[Optional[list[str]]] = mapped_column(
        JSON,
        nullable=True,
        doc="Headings the section must contain",
    )
    is_valid: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        doc="Whether the last save passed section validation",
    )
    is_complete: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        doc="Whether the section has content and is valid",
    )
    order_index: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        doc="Display order within the application",
    )
    architecture: Mapped[Optional[dict[str, Any]]] = mapped_column(
        JSON,
        nullable=True,
        doc="Aims architecture: central hypothesis, innovation, aims",
    )
    dependency_map: Mapped[Optional[dict[str, Any]]] = mapped_column(
        JSON,
        nullable=True,
        doc="Inferred aim dependencies and domino risk",
    )
    score: Mapped[Optional[dict[str, Any]]] = mapped_column(
        JSON,
        nullable=True,
        doc="Last structural score",
    )
    risk: Mapped[Optional[dict[str, Any]]] = mapped_column(
        JSON,
        nullable=True,
        doc="Last risk assessment",
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=datetime.utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    # Relationships
    application: Mapped["Application"] = relationship("Application", back_populates="sections")
    versions: Mapped[list["SectionVersion"]] = relationship(
        "SectionVersion",
        back_populates="section",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="SectionVersion.created_at.desc()",
    )

    __table_args__ = (Index("ix_sections_application_id", application_id),)

    def __repr__(self) -> str:
        return f"<Section(id={self.id}, type='{self.type}')>"


class SectionVersion(Base):
    """Snapshot of a section's content, kept for history and restore."""

    __tablename__ = "section_versions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    section_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("sections.id", ondelete="CASCADE"),
        nullable=False,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    source: Mapped[VersionSource] = mapped_column(
        Enum(VersionSource, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=VersionSource.USER,
        doc="Whether the user or the AI produced this content",
    )
    change_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=datetime.utcnow,
    )

    section: Mapped["Section"] = relationship("Section", back_populates="versions")

    __table_args__ = (Index("ix_section_versions_section_id", section_id),)


class Attachment(Base):
    """Required or optional attachment placeholder for an application."""

    __tablename__ = "attachments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    application_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(Text, nullable=False, doc="Attachment name")
    file_url: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        doc="Location of the uploaded file",
    )
    required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    status: Mapped[AttachmentStatus] = mapped_column(
        Enum(AttachmentStatus, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=AttachmentStatus.PENDING,
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=datetime.utcnow,
    )

    application: Mapped["Application"] = relationship("Application", back_populates="attachments")

    __table_args__ = (Index("ix_attachments_application_id", application_id),)


class ValidationResult(Base):
    """Outcome of an application-level validation run."""

    __tablename__ = "validation_results"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    application_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
    )
    errors: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    warnings: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    is_valid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=datetime.utcnow,
    )

    application: Mapped["Application"] = relationship(
        "Application", back_populates="validation_results"
    )


class BudgetItem(Base):
    """A persisted budget line with its written justification."""

    __tablename__ = "budget_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    application_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
    )
    fiscal_year: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
        doc="Budget period (1-based)",
    )
    category: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        doc="personnel, equipment, supplies, travel, consultant, subcontract or other",
    )
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    amount: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    justification: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=datetime.utcnow,
    )

    application: Mapped["Application"] = relationship("Application", back_populates="budget_items")

    __table_args__ = (Index("ix_budget_items_application_id", application_id),)


class ReferenceEntry(Base):
    """A bibliography entry and the result of verifying it against PubMed/Crossref."""

    __tablename__ = "reference_entries"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    application_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
    )
    reference_text: Mapped[str] = mapped_column(Text, nullable=False)
    pmid: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    doi: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    verification_status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="pending",
        doc="pending, verified or not_found",
    )
    verification_result: Mapped[Optional[dict[str, Any]]] = mapped_column(
        JSON,
        nullable=True,
        doc="Title, authors, journal and year returned by the lookup",
    )
    verified_at: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=datetime.utcnow,
    )

    application: Mapped["Application"] = relationship("Application", back_populates="references")

    __table_args__ = (Index("ix_reference_entries_application_id", application_id),)
