"""
Tests for Letter Service.
Tests letter templates, dates and optional LLM refinement.
"""
from datetime import date

import pytest

from backend.core.exceptions import ValidationError
from backend.schemas.letters import LetterRequest
from backend.services.letters import format_letter_date, generate_letter, render_letter
from backend.services.llm_client import LLMError


def letter_request(**overrides) -> LetterRequest:
    data = {
        "type": "support",
        "recipient_name": "Dr. Alan Grant",
        "recipient_title": "Chair of Neurology",
        "recipient_institution": "State University",
        "project_title": "TREM2 Agonism in Alzheimer's Disease",
        "pi_name": "Dr. Jane Smith",
        "pi_institution": "NeuroStart Inc.",
        "grant_mechanism": "SBIR Phase I",
    }
    data.update(overrides)
    return LetterRequest(**data)


class TestFormatLetterDate:
    @pytest.mark.parametrize(
        "on,expected",
        [
            (date(2025, 3, 5), "March 5, 2025"),
            (date(2024, 12, 31), "December 31, 2024"),
        ],
    )
    def test_long_date(self, on, expected):
        assert format_letter_date(on) == expected


class TestRenderLetter:
    """Tests for template rendering."""

    def test_support_letter(self):
        letter = render_letter(letter_request(), on=date(2025, 3, 5))

        assert letter.startswith("State University\nChair of Neurology\n")
        assert "March 5, 2025" in letter
        assert 'RE: Letter of Support for "TREM2 Agonism in Alzheimer\'s Disease"' in letter
        assert "submitted by Dr. Jane Smith at NeuroStart Inc." in letter
        assert "established collaborative relationship with Dr. Jane Smith's research team" in letter
        assert letter.endswith("Sincerely,\n\nDr. Alan Grant\nChair of Neurology\nState University")

    def test_consultant_letter(self):
        letter = render_letter(
            letter_request(
                type="consultant",
                consultant_expertise="20 years in microglia biology",
                consultant_effort="10 days per year",
                consultant_rate=1500.0,
            )
        )

        assert "Consultant Commitment Letter" in letter
        assert "20 years in microglia biology" in letter
        assert "I commit to providing 10 days per year at a rate of $1500/day" in letter

    def test_consultant_defaults(self):
        letter = render_letter(letter_request(type="consultant"))
        assert "I commit to providing 5% annual effort" in letter

    def test_vendor_letter_with_custom_paragraphs(self):
        letter = render_letter(
            letter_request(
                type="vendor",
                vendor_product="GMP-grade antibody lots",
                custom_paragraphs=["First extra.", "Second extra."],
            )
        )

        assert letter.count("To Whom It May Concern") == 1
        assert "GMP-grade antibody lots" in letter
        assert "First extra.\n\nSecond extra." in letter

    def test_invalid_type(self):
        with pytest.raises(ValidationError, match="Invalid letter type"):
            render_letter(letter_request(type="reference"))


@pytest.mark.asyncio
class TestGenerateLetter:
    """Tests for generation with and without refinement."""

    async def test_without_refine(self, mock_llm_client):
        response = await generate_letter(letter_request())

        assert response.type == "support"
        assert response.refined is False
        mock_llm_client.complete_text.assert_not_called()

    async def test_refined(self, mock_llm_client):
        mock_llm_client.complete_text.return_value = "  Polished letter.  "

        response = await generate_letter(letter_request(refine=True))

        assert response.letter == "Polished letter."
        assert response.refined is True

    async def test_refine_failure_returns_template(self, mock_llm_client):
        mock_llm_client.complete_text.side_effect = LLMError("down")

        response = await generate_letter(letter_request(refine=True))

        assert response.refined is False
        assert "Letter of Support" in response.letter
