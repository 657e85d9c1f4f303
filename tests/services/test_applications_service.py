"""
Tests for Application Service.
Tests mechanism seeding, section state, versions and the application export gate.
"""
import uuid
from datetime import datetime, timezone

import pytest

from backend.core.exceptions import NotFoundError, ValidationError
from backend.models import Section, SectionVersion, VersionSource
from backend.schemas.architecture import ExportGateOptions
from backend.services.applications import (
    apply_section_content,
    build_application,
    check_application_gate,
    headings_present,
    restore_version,
    snapshot_version,
)

NOW = datetime(2025, 1, 15, tzinfo=timezone.utc)


def make_section(**overrides) -> Section:
    data = {
        "id": uuid.uuid4(),
        "type": "research_strategy",
        "title": "Research Strategy",
        "content": "",
        "page_limit": 6,
        "page_count": 0,
        "required_headings": ["Significance", "Innovation", "Approach"],
        "is_valid": True,
        "is_complete": False,
        "order_index": 1,
    }
    data.update(overrides)
    return Section(**data)


class TestBuildApplication:
    """Tests for seeding from a mechanism."""

    def test_phase_one_sections(self):
        application = build_application(uuid.uuid4(), "TREM2 Agonism", "R43")

        assert [s.type for s in application.sections] == [
            "specific_aims",
            "research_strategy",
            "commercialization_plan",
        ]
        assert [s.page_limit for s in application.sections] == [1, 6, 12]
        assert [s.order_index for s in application.sections] == [0, 1, 2]
        assert application.sections[0].required_headings is None
        assert application.sections[1].required_headings == ["Significance", "Innovation", "Approach"]

    def test_sttr_attachments_include_partnership(self):
        sbir = build_application(uuid.uuid4(), "A", "R43")
        sttr = build_application(uuid.uuid4(), "A", "R41")

        assert len(sttr.attachments) == len(sbir.attachments) + 1
        assert all(a.status.value == "pending" for a in sttr.attachments)

    def test_phase_two_has_progress_report(self):
        application = build_application(uuid.uuid4(), "A", "R44")
        assert application.sections[-1].type == "progress_report"

    def test_invalid_mechanism(self):
        with pytest.raises(ValidationError, match="Invalid mechanism selected: R01"):
            build_application(uuid.uuid4(), "A", "R01")


class TestSectionContent:
    """Tests for recomputing section state on save."""

    def test_valid_content(self):
        section = make_section()
        apply_section_content(section, "Significance ... Innovation ... Approach ...")

        assert section.page_count == 1
        assert section.is_valid is True
        assert section.is_complete is True

    def test_over_page_limit(self):
        section = make_section(page_limit=1)
        apply_section_content(section, "Significance Innovation Approach " + "x" * 3000)

        assert section.page_count == 2
        assert section.is_valid is False

    def test_missing_heading(self):
        section = make_section()
        apply_section_content(section, "Significance and Approach only")
        assert section.is_valid is False

    def test_no_page_limit(self):
        section = make_section(page_limit=0, required_headings=None)
        apply_section_content(section, "x" * 30000)

        assert section.page_count == 10
        assert section.is_valid is True

    def test_whitespace_is_not_complete(self):
        section = make_section(required_headings=None)
        apply_section_content(section, "   \n")
        assert section.is_complete is False

    @pytest.mark.parametrize(
        "content,headings,expected",
        [
            ("SIGNIFICANCE", ["Significance"], True),
            ("anything", None, True),
            ("anything", [], True),
            ("Innovation", ["Significance", "Innovation"], False),
        ],
    )
    def test_headings_present(self, content, headings, expected):
        assert headings_present(content, headings) is expected


class TestSnapshotVersion:
    def test_defaults_to_current_content(self):
        section = make_section(content="Current")
        version = snapshot_version(section)

        assert version.content == "Current"
        assert version.source == VersionSource.USER
        assert version.section_id == section.id

    def test_explicit_content_and_source(self):
        section = make_section(content="Current")
        version = snapshot_version(section, "ai-modified", "Rewrite", content="Rewritten")

        assert version.content == "Rewritten"
        assert version.source == VersionSource.AI_MODIFIED
        assert version.change_description == "Rewrite"


@pytest.mark.asyncio
class TestRestoreVersion:
    """Tests for restoring stored versions."""

    async def test_restore(self, async_session, db_user):
        application = build_application(db_user.id, "A", "R43")
        async_session.add(application)
        await async_session.flush()

        section = application.sections[0]
        version = SectionVersion(
            section_id=section.id,
            content="Old aims",
            source=VersionSource.AI_GENERATED,
            created_at=NOW,
        )
        async_session.add(version)
        await async_session.flush()

        restored = await restore_version(async_session, section, version.id)

        assert section.content == "Old aims"
        assert section.is_complete is True
        assert restored.source == VersionSource.AI_GENERATED
        assert restored.change_description == "Restored version from 2025-01-15 00:00"

    async def test_version_of_other_section(self, async_session, db_user):
        application = build_application(db_user.id, "A", "R43")
        async_session.add(application)
        await async_session.flush()

        version = SectionVersion(section_id=application.sections[1].id, content="x", source=VersionSource.USER)
        async_session.add(version)
        await async_session.flush()

        with pytest.raises(NotFoundError):
            await restore_version(async_session, application.sections[0], version.id)


class TestApplicationGate:
    """Tests for the export gate over an application's sections."""

    def test_no_architecture_soft(self):
        application = build_application(uuid.uuid4(), "A", "R43")

        result = check_application_gate(application, ExportGateOptions())

        assert result.can_export is True
        assert "Architecture not defined - aims and hypotheses not specified" in result.warnings
        assert result.banner.type == "warning"

    def test_no_architecture_hard(self):
        application = build_application(uuid.uuid4(), "A", "R43")

        result = check_application_gate(application, ExportGateOptions(hard_gate_enabled=True))

        assert result.can_export is False
        assert result.requires_override is True
        assert result.banner.message.startswith("Export blocked: Architecture not defined")

    def test_scored_architecture_passes(self, sample_architecture):
        application = build_application(uuid.uuid4(), "A", "R43")
        aims = application.sections[0]
        aims.architecture = sample_architecture
        aims.score = {
            "structural_score": 90,
            "completeness": 100,
            "coherence": 80,
            "falsifiability": 100,
            "endpoint_clarity": 52,
            "label": "Excellent",
            "last_calculated": NOW.isoformat(),
        }

        result = check_application_gate(application, ExportGateOptions(hard_gate_enabled=True))

        assert result.can_export is True
        assert result.blockers == []
        assert result.banner is None

    def test_override(self):
        application = build_application(uuid.uuid4(), "A", "R43")
        application.sections[0].architecture = {"central_hypothesis": "", "aims": []}

        result = check_application_gate(
            application, ExportGateOptions(hard_gate_enabled=True, admin_override=True)
        )

        assert result.can_export is True
        assert result.requires_override is False
        assert result.blockers

    def test_multiple_sections_are_prefixed(self, sample_architecture):
        application = build_application(uuid.uuid4(), "A", "R43")
        application.sections[0].architecture = sample_architecture
        application.sections[1].architecture = sample_architecture

        result = check_application_gate(application, ExportGateOptions())

        assert "Specific Aims: Structural score not calculated" in result.warnings
        assert "Research Strategy: Structural score not calculated" in result.warnings
