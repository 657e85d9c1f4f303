"""
Tests for Document Review Service.
Tests text extraction, section detection and scoring, and the overall review.
"""
import fitz
import pytest

from backend.services.document_review import (
    REVIEW_SECTIONS,
    analyze_document,
    analyze_section,
    detect_grant_type,
    extract_document_text,
    extract_project_title,
    get_fundability_rating,
)

SECTIONS = {section.name: section for section in REVIEW_SECTIONS}

STRONG_PROPOSAL = """Project Title: Precision Sepsis Diagnostics at the Point of Care
SBIR Phase I application

Specific Aims
Our long-term goal is to cut sepsis mortality. The objective of this proposal is to test the hypothesis
that a host-response panel identifies sepsis within one hour.
Aim 1: validate the panel. Aim 2: build the cartridge.

Significance
Sepsis has high mortality and prevalence; clinical teams face an unmet need for rapid tests, and this
gap harms patients. The public health impact and clinical relevance are substantial.

Innovation
This is the first novel cartridge of its kind, a unique new approach with patent protection that could
transform the diagnostic paradigm.

Approach
Research strategy and experimental design: preliminary data (Figure 1) support feasibility. The timeline
spans 12 months with milestones. Statistical power and sample size were computed. Alternative strategies
address risk. Each assay includes a placebo control. Methods are standard.

Investigators
Our team brings expertise and experience from 40 publications, an established collaboration with the
university, and mentor-led training.

Environment
Facilities include a BSL-2 laboratory, shared equipment and instrument cores, and institutional support
resources.

Budget
The budget justification covers personnel costs of $120,000, fringe and indirect (F&A) costs, and
funding for supplies.
"""


class TestExtraction:
    """Tests for text extraction and metadata detection."""

    def test_pdf_text(self):
        doc = fitz.open()
        page = doc.new_page()
        page.insert_text((72, 72), "Specific Aims of the proposal")
        pdf_bytes = doc.tobytes()
        doc.close()

        assert "Specific Aims of the proposal" in extract_document_text(pdf_bytes)

    def test_non_pdf_decoded_as_text(self):
        assert extract_document_text(b"Plain text grant") == "Plain text grant"

    @pytest.mark.parametrize(
        "text,grant_type",
        [
            ("An SBIR and STTR fast-track", "SBIR/STTR Fast-Track"),
            ("SBIR Phase I", "SBIR"),
            ("STTR Phase II", "STTR"),
            ("NIH R01 renewal", "NIH R01"),
            ("R21 exploratory", "NIH R21"),
            ("SF424 form", "Federal Grant (SF-424)"),
            ("A foundation proposal", "Grant Application"),
        ],
    )
    def test_detect_grant_type(self, text, grant_type):
        assert detect_grant_type(text) == grant_type

    def test_labelled_title(self):
        text = "Cover\nProject Title: Precision Sepsis Diagnostics\nMore"
        assert extract_project_title(text) == "Precision Sepsis Diagnostics"

    def test_first_heading_fallback(self):
        text = "short\nA Heading That Is Long Enough To Count\nbody"
        assert extract_project_title(text) == "A Heading That Is Long Enough To Count"

    def test_untitled(self):
        assert extract_project_title("x\ny") == "Untitled Grant Application"


class TestAnalyzeSection:
    """Tests for per-section scoring."""

    def test_section_not_detected(self):
        result = analyze_section("Only one keyword: budget", SECTIONS["Budget"])

        assert result["score"] == 0
        assert result["status"] == "missing"
        assert result["recommendations"] == ["Add a dedicated Budget section with clear headers"]

    def test_base_score_only(self):
        result = analyze_section("budget and cost overview", SECTIONS["Budget"])

        # floor(10 * 0.5), no quality signals
        assert result["score"] == 5
        assert result["status"] == "needs_work"
        assert "Provide detailed budget justification for each category" in result["recommendations"]

    def test_all_signals(self):
        text = "Specific aims. Objective 1 tests our hypothesis. Our long-term goal is a cure."
        result = analyze_section(text, SECTIONS["Specific Aims"])

        # 7 + 3 + 2 + 2
        assert result["score"] == 14
        assert result["status"] == "excellent"
        assert result["recommendations"] == []

    @pytest.mark.parametrize("section", REVIEW_SECTIONS, ids=lambda s: s.name)
    def test_score_never_exceeds_max(self, section):
        result = analyze_section(STRONG_PROPOSAL, section)
        assert 0 <= result["score"] <= section.max_score


class TestAnalyzeDocument:
    """Tests for the overall review."""

    @pytest.mark.parametrize(
        "score,rating",
        [(100, "High"), (80, "High"), (79, "Medium"), (60, "Medium"), (40, "Low"), (39, "Needs Major Revision")],
    )
    def test_fundability_rating(self, score, rating):
        assert get_fundability_rating(score) == rating

    def test_empty_document(self):
        review = analyze_document("")

        assert review["overall_score"] == 0
        assert review["fundability_rating"] == "Needs Major Revision"
        assert len(review["sections"]) == 7
        assert len(review["top_priorities"]) == 3
        # Highest-weighted section first
        assert review["top_priorities"][0] == "Add a dedicated Approach section with clear headers"

    def test_strong_proposal(self):
        review = analyze_document(STRONG_PROPOSAL)

        assert review["grant_type"] == "SBIR"
        assert review["project_title"] == "Precision Sepsis Diagnostics at the Point of Care"
        assert review["overall_score"] >= 80
        assert review["fundability_rating"] == "High"
        assert all(s["status"] != "missing" for s in review["sections"])
        assert 0 < len(review["strengths_overall"]) <= 5
