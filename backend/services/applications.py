"""
Application Service
Creates applications from mechanism templates and maintains section state.
"""

import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from backend.core.exceptions import NotFoundError, ValidationError
from backend.models import (
    Application,
    Attachment,
    AttachmentStatus,
    Section,
    SectionVersion,
    VersionSource,
)
from backend.schemas.architecture import (
    ArchitectureData,
    DependencyMapData,
    ExportGateOptions,
    ExportGateResult,
    RiskData,
    ScoreData,
)
from backend.services.compliance import estimate_page_count
from backend.services.export_gate import check_export_gate, get_export_banner
from backend.services.mechanisms import get_mechanism

logger = logging.getLogger(__name__)


def build_application(user_id: UUID, title: str, mechanism: str) -> Application:
    """
    New application with sections and attachment placeholders seeded from the mechanism.

    Raises:
        ValidationError: Unknown mechanism id
    """
    config = get_mechanism(mechanism)
    if config is None:
        raise ValidationError(f"Invalid mechanism selected: {mechanism}")

    application = Application(user_id=user_id, title=title, mechanism=mechanism)
    application.sections = [
        Section(
            type=section.type,
            title=section.title,
            content="",
            page_limit=section.page_limit,
            page_count=0,
            required_headings=list(section.required_headings) or None,
            is_valid=True,
            is_complete=False,
            order_index=index,
        )
        for index, section in enumerate(config.sections)
    ]
    application.attachments = [
        Attachment(name=a.name, required=a.required, status=AttachmentStatus.PENDING)
        for a in config.attachments
    ]
    return application


def headings_present(content: str, required_headings: Optional[list[str]]) -> bool:
    """True when every required heading appears (case-insensitive) in the content."""
    if not required_headings:
        return True
    content_lower = content.lower()
    return all(heading.lower() in content_lower for heading in required_headings)


def apply_section_content(section: Section, content: str) -> Section:
    """
    Store new content and recompute page count, validity and completeness.

    A page limit of 0 means the section has no limit.
    """
    page_count = estimate_page_count(content)
    within_limit = not section.page_limit or page_count <= section.page_limit

    section.content = content
    section.page_count = page_count
    section.is_valid = within_limit and headings_present(content, section.required_headings)
    section.is_complete = bool(content and content.strip())
    section.updated_at = datetime.now(timezone.utc)
    return section


def snapshot_version(
    section: Section,
    source: str = "user",
    change_description: Optional[str] = None,
    content: Optional[str] = None,
) -> SectionVersion:
    """Version holding ``content`` (default: the section's current content)."""
    return SectionVersion(
        section_id=section.id,
        content=section.content if content is None else content,
        source=VersionSource(source),
        change_description=change_description,
    )


async def restore_version(db: AsyncSession, section: Section, version_id: UUID) -> SectionVersion:
    """
    Make a stored version the section's content.

    The restore itself is recorded as a new version so history is never rewritten.

    Raises:
        NotFoundError: Version does not belong to the section
    """
    version = await db.get(SectionVersion, version_id)
    if version is None or version.section_id != section.id:
        raise NotFoundError("Section version", str(version_id))

    apply_section_content(section, version.content)
    restored = snapshot_version(
        section,
        source=getattr(version.source, "value", version.source),
        change_description=f"Restored version from {version.created_at:%Y-%m-%d %H:%M}",
    )
    db.add(restored)
    logger.info(f"Restored section {section.id} to version {version_id}")
    return restored


# =============================================================================
# Export Gate
# =============================================================================


def section_gate_inputs(section: Section) -> tuple[
    Optional[ArchitectureData], Optional[ScoreData], Optional[RiskData], Optional[DependencyMapData]
]:
    """Parse the JSON architecture columns stored on a section."""
    return (
        ArchitectureData.model_validate(section.architecture) if section.architecture else None,
        ScoreData.model_validate(section.score) if section.score else None,
        RiskData.model_validate(section.risk) if section.risk else None,
        DependencyMapData.model_validate(section.dependency_map) if section.dependency_map else None,
    )


def check_application_gate(application: Application, options: ExportGateOptions) -> ExportGateResult:
    """
    Run the export gate over the application's architecture.

    The gate is evaluated for the section that carries an architecture
    (normally Specific Aims). With none defined, the gate runs on empty
    inputs so the missing architecture is reported.
    """
    with_architecture = [s for s in application.sections if s.architecture]
    if not with_architecture:
        return check_export_gate(None, None, None, None, options)

    warnings: list[str] = []
    blockers: list[str] = []
    for section in with_architecture:
        result = check_export_gate(*section_gate_inputs(section), options)
        prefix = f"{section.title}: " if len(with_architecture) > 1 else ""
        warnings.extend(prefix + w for w in result.warnings)
        blockers.extend(prefix + b for b in result.blockers)

    combined = ExportGateResult(
        can_export=options.admin_override or not blockers,
        warnings=warnings,
        blockers=blockers,
        requires_override=bool(blockers) and not options.admin_override,
    )
    combined.banner = get_export_banner(combined)
    return combined
