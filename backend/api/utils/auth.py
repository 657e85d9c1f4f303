"""Authorization utilities for API endpoints."""

from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from backend.models import Application, Attachment, ReferenceEntry, Section, User


def _ensure_owner(owner_id: UUID, user: User, resource: str) -> None:
    if owner_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Not authorized to access this {resource}",
        )


async def get_owned_application(db: AsyncSession, application_id: UUID, user: User) -> Application:
    """
    Load an application with its sections and attachments.

    Raises:
        HTTPException 404 if the application does not exist
        HTTPException 403 if the user does not own it
    """
    result = await db.execute(
        select(Application)
        .where(Application.id == application_id)
        .options(selectinload(Application.sections), selectinload(Application.attachments))
    )
    application = result.scalar_one_or_none()

    if application is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Application not found",
        )

    _ensure_owner(application.user_id, user, "application")
    return application


async def get_owned_section(db: AsyncSession, section_id: UUID, user: User) -> Section:
    """Load a section whose application belongs to ``user``."""
    result = await db.execute(
        select(Section)
        .where(Section.id == section_id)
        .options(selectinload(Section.application))
    )
    section = result.scalar_one_or_none()

    if section is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Section not found",
        )

    _ensure_owner(section.application.user_id, user, "section")
    return section


async def get_owned_attachment(db: AsyncSession, attachment_id: UUID, user: User) -> Attachment:
    """Load an attachment whose application belongs to ``user``."""
    result = await db.execute(
        select(Attachment)
        .where(Attachment.id == attachment_id)
        .options(selectinload(Attachment.application))
    )
    attachment = result.scalar_one_or_none()

    if attachment is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Attachment not found",
        )

    _ensure_owner(attachment.application.user_id, user, "attachment")
    return attachment


async def get_owned_reference(db: AsyncSession, reference_id: UUID, user: User) -> ReferenceEntry:
    """Load a reference whose application belongs to ``user``."""
    result = await db.execute(
        select(ReferenceEntry)
        .where(ReferenceEntry.id == reference_id)
        .options(selectinload(ReferenceEntry.application))
    )
    reference = result.scalar_one_or_none()

    if reference is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Reference not found",
        )

    _ensure_owner(reference.application.user_id, user, "reference")
    return reference
