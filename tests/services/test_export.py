"""
Tests for Export Service.
Tests filenames, the JSON representation and DOCX rendering.
"""
import io
import uuid

import pytest
from docx import Document

from backend.models import ApplicationStatus
from backend.services.applications import apply_section_content, build_application
from backend.services.export import application_to_dict, application_to_docx, export_filename


@pytest.fixture
def application():
    application = build_application(uuid.uuid4(), "TREM2 Agonism: A New Hope", "R43")
    application.status = ApplicationStatus.DRAFT
    apply_section_content(application.sections[0], "Aim 1 paragraph.\n\nAim 2 paragraph.")
    return application


class TestExportFilename:
    @pytest.mark.parametrize(
        "title,ext,expected",
        [
            ("TREM2 Agonism: A New Hope", "docx", "TREM2_Agonism__A_New_Hope.docx"),
            ("", "json", "application.json"),
            ("x" * 80, "csv", "x" * 50 + ".csv"),
            ("TREM2 \u2014 \u03b1-synuclein \"study\"", "csv", "TREM2_____synuclein__study_.csv"),
            ("   ", "json", "application.json"),
        ],
    )
    def test_sanitized(self, title, ext, expected):
        assert export_filename(title, ext) == expected


class TestApplicationToDict:
    def test_structure(self, application):
        data = application_to_dict(application, author="Dr. Jane Smith")

        assert data["mechanism_name"] == "SBIR Phase I (R43)"
        assert data["status"] == "draft"
        assert data["author"] == "Dr. Jane Smith"
        assert [s["type"] for s in data["sections"]] == [
            "specific_aims",
            "research_strategy",
            "commercialization_plan",
        ]
        assert data["sections"][0]["is_complete"] is True
        assert data["attachments"][0] == {
            "name": "PHS 398 Cover Page Supplement",
            "required": True,
            "status": "pending",
        }

    def test_sections_follow_order_index(self, application):
        application.sections[0].order_index = 5

        data = application_to_dict(application)
        assert data["sections"][-1]["type"] == "specific_aims"


class TestApplicationToDocx:
    """Tests for Word rendering."""

    def test_readable_document(self, application):
        content = application_to_docx(application_to_dict(application, author="Dr. Jane Smith"))

        document = Document(io.BytesIO(content))
        texts = [p.text for p in document.paragraphs]

        assert texts[0] == "TREM2 Agonism: A New Hope"
        assert "Specific Aims" in texts
        assert "Aim 1 paragraph." in texts
        assert "Aim 2 paragraph." in texts
        assert texts.count("[Section not yet written]") == 2
        assert any("Author: Dr. Jane Smith" in t for t in texts)

    def test_nih_formatting(self, application):
        document = Document(io.BytesIO(application_to_docx(application_to_dict(application))))

        assert document.styles["Normal"].font.name == "Arial"
        assert document.styles["Normal"].font.size.pt == 11
        assert document.sections[0].left_margin.inches == 0.5

    def test_control_characters_are_stripped(self, application):
        application.title = "Page\x0bBreak Study"
        apply_section_content(application.sections[0], "Page one\x0cPage two\x00")

        document = Document(io.BytesIO(application_to_docx(application_to_dict(application))))
        texts = [p.text for p in document.paragraphs]

        assert texts[0] == "PageBreak Study"
        assert "Page onePage two" in texts
