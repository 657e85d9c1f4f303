"""
Attachments API Endpoints
Track upload status of the application package's attachments.
"""
import logging
from uuid import UUID

from fastapi import APIRouter

from backend.api.deps import AsyncSessionDep, CurrentUser
from backend.api.utils.auth import get_owned_attachment
from backend.models import AttachmentStatus
from backend.schemas.applications import AttachmentResponse, AttachmentUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/attachments", tags=["Attachments"])


@router.put("/{attachment_id}", response_model=AttachmentResponse)
async def update_attachment(
    attachment_id: UUID,
    data: AttachmentUpdate,
    db: AsyncSessionDep,
    current_user: CurrentUser,
) -> AttachmentResponse:
    """
    Update an attachment's file location or status.

    Setting a ``file_url`` without a status marks the attachment uploaded.
    """
    attachment = await get_owned_attachment(db, attachment_id, current_user)

    if data.file_url is not None:
        attachment.file_url = data.file_url
        if data.status is None:
            attachment.status = AttachmentStatus.UPLOADED
    if data.status is not None:
        attachment.status = AttachmentStatus(data.status)

    await db.flush()
    return AttachmentResponse.model_validate(attachment)
