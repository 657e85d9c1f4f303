"""
Applications API Endpoints
Create, list, validate and export grant applications.
"""
import json
import logging
from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Query, Response, status
from sqlalchemy import func, select

from backend.api.deps import AsyncSessionDep, CurrentUser
from backend.api.utils.auth import get_owned_application
from backend.core.exceptions import AuthorizationError, ConflictError
from backend.models import Application, ApplicationStatus, ValidationResult
from backend.schemas.applications import (
    ApplicationCreate,
    ApplicationListResponse,
    ApplicationResponse,
    ApplicationSummary,
    ApplicationUpdate,
)
from backend.schemas.architecture import ExportGateResult
from backend.schemas.compliance import ApplicationValidationResponse
from backend.services.applications import build_application, check_application_gate
from backend.services.compliance import can_export, validate_application
from backend.services.export import (
    DOCX_MEDIA_TYPE,
    application_to_dict,
    application_to_docx,
    export_filename,
)
from backend.services.export_gate import default_gate_options

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/applications", tags=["Applications"])


def _gate_options(current_user, override: bool):
    if override and current_user.role != "admin":
        raise AuthorizationError("Only administrators can override the export gate")
    return default_gate_options(admin_override=override)


# =============================================================================
# CRUD
# =============================================================================


@router.get("", response_model=ApplicationListResponse)
async def list_applications(
    db: AsyncSessionDep,
    current_user: CurrentUser,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
) -> ApplicationListResponse:
    """List the current user's applications, newest first."""
    base = select(Application).where(Application.user_id == current_user.id)

    total = await db.scalar(select(func.count()).select_from(base.subquery()))
    result = await db.execute(
        base.order_by(Application.created_at.desc()).limit(limit).offset(offset)
    )
    applications = result.scalars().all()

    return ApplicationListResponse(
        applications=[ApplicationSummary.model_validate(a) for a in applications],
        total=total or 0,
    )


@router.post("", response_model=ApplicationResponse, status_code=status.HTTP_201_CREATED)
async def create_application(
    data: ApplicationCreate,
    db: AsyncSessionDep,
    current_user: CurrentUser,
) -> ApplicationResponse:
    """
    Create an application.

    Sections (with page limits and required headings) and attachment
    placeholders are seeded from the chosen mechanism.
    """
    application = build_application(current_user.id, data.title, data.mechanism)
    db.add(application)
    await db.flush()

    logger.info(f"Created {data.mechanism} application {application.id} for user {current_user.id}")
    return ApplicationResponse.model_validate(application)


@router.get("/{application_id}", response_model=ApplicationResponse)
async def get_application(
    application_id: UUID,
    db: AsyncSessionDep,
    current_user: CurrentUser,
) -> ApplicationResponse:
    """Application with its sections and attachments."""
    application = await get_owned_application(db, application_id, current_user)
    return ApplicationResponse.model_validate(application)


@router.patch("/{application_id}", response_model=ApplicationResponse)
async def update_application(
    application_id: UUID,
    data: ApplicationUpdate,
    db: AsyncSessionDep,
    current_user: CurrentUser,
) -> ApplicationResponse:
    """Rename an application or change its status."""
    application = await get_owned_application(db, application_id, current_user)

    if data.title is not None:
        application.title = data.title
    if data.status is not None:
        application.status = ApplicationStatus(data.status)

    await db.flush()
    return ApplicationResponse.model_validate(application)


@router.delete("/{application_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_application(
    application_id: UUID,
    db: AsyncSessionDep,
    current_user: CurrentUser,
) -> None:
    """Delete an application and everything it owns."""
    application = await get_owned_application(db, application_id, current_user)
    await db.delete(application)
    logger.info(f"Deleted application {application_id}")


# =============================================================================
# Validation & Export
# =============================================================================


@router.post("/{application_id}/validate", response_model=ApplicationValidationResponse)
async def validate(
    application_id: UUID,
    db: AsyncSessionDep,
    current_user: CurrentUser,
) -> ApplicationValidationResponse:
    """
    Validate every section and required attachment.

    The result is stored so the latest validation can be shown later.
    """
    application = await get_owned_application(db, application_id, current_user)
    issues = validate_application(application.mechanism, application.sections, application.attachments)

    def describe(issue) -> str:
        return f"{issue.section}: {issue.message}" if issue.section else issue.message

    record = ValidationResult(
        application_id=application.id,
        errors=[describe(i) for i in issues if i.type == "error"],
        warnings=[describe(i) for i in issues if i.type == "warning"],
        is_valid=can_export(issues),
    )
    db.add(record)
    await db.flush()

    response = ApplicationValidationResponse.model_validate(record)
    response.can_export = record.is_valid
    return response


@router.get("/{application_id}/export-gate", response_model=ExportGateResult)
async def export_gate(
    application_id: UUID,
    db: AsyncSessionDep,
    current_user: CurrentUser,
    override: bool = Query(False, description="Admin override of hard-gate blockers"),
) -> ExportGateResult:
    """Warnings and blockers that apply to exporting this application."""
    application = await get_owned_application(db, application_id, current_user)
    return check_application_gate(application, _gate_options(current_user, override))


@router.get("/{application_id}/export")
async def export_application(
    application_id: UUID,
    db: AsyncSessionDep,
    current_user: CurrentUser,
    format: Literal["json", "docx"] = Query("json"),
    override: bool = Query(False, description="Admin override of hard-gate blockers"),
) -> Response:
    """
    Download the application as JSON or DOCX.

    Returns 409 when the export gate blocks and no override was given.
    """
    application = await get_owned_application(db, application_id, current_user)

    gate = check_application_gate(application, _gate_options(current_user, override))
    if not gate.can_export:
        raise ConflictError(gate.banner.message if gate.banner else "Export blocked")

    data = application_to_dict(application, author=current_user.name or current_user.email)
    data["export_warnings"] = gate.warnings

    if format == "docx":
        content = application_to_docx(data)
        media_type = DOCX_MEDIA_TYPE
    else:
        content = json.dumps(data, indent=2).encode()
        media_type = "application/json"

    filename = export_filename(application.title, format)
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
