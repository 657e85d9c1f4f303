"""
Tests for Resubmission Service.
The LLM client is mocked; tests cover the values computed around its replies.
"""
import pytest

from backend.core.exceptions import ExternalServiceError, ValidationError
from backend.schemas.resubmission import (
    CoverLetterRequest,
    ParsedSummary,
    QualityCheckRequest,
    ResponseStrategy,
    SectionRewriteRequest,
    StrategyRequest,
)
from backend.services.llm_client import LLMError
from backend.services.resubmission import remaining_page_budget, resubmission_service

SUMMARY_TEXT = (
    "RESUME AND SUMMARY OF DISCUSSION: The application proposes TREM2 agonism. "
    "Reviewers noted limited preliminary data and an underpowered Aim 2. Overall Impact 45."
)

PARSED = {
    "overall_impact_score": 45,
    "criterion_scores": [{"criterion": "Approach", "score": 5}],
    "critiques": [
        {
            "id": "c1",
            "criterion": "approach",
            "reviewer": "Reviewer 2",
            "text": "Aim 2 is underpowered.",
            "severity": "must-address",
        }
    ],
    "resume_synopsis": "Enthusiasm was moderated by feasibility concerns.",
}


class TestRemainingPageBudget:
    @pytest.mark.parametrize(
        "total,limit,expected",
        [
            (3.5, 12, 7.5),
            (0, 12, 11.0),
            (14, 12, 0.0),
            (2, 6, 3.0),
        ],
    )
    def test_budget(self, total, limit, expected):
        assert remaining_page_budget(total, limit) == expected


@pytest.mark.asyncio
class TestParseSummary:
    async def test_short_text_rejected(self, mock_llm_client):
        with pytest.raises(ValidationError):
            await resubmission_service.parse_summary("Too short to be a summary statement.")

        mock_llm_client.complete_json.assert_not_called()

    async def test_parse(self, mock_llm_client):
        mock_llm_client.complete_json.return_value = PARSED

        parsed = await resubmission_service.parse_summary(SUMMARY_TEXT)

        assert parsed.overall_impact_score == 45
        assert parsed.critiques[0].severity == "must-address"
        assert SUMMARY_TEXT in mock_llm_client.complete_json.call_args.args[1]

    async def test_model_failure_raises(self, mock_llm_client):
        mock_llm_client.complete_json.side_effect = LLMError("rate limited")

        with pytest.raises(ExternalServiceError):
            await resubmission_service.parse_summary(SUMMARY_TEXT)

    async def test_wrong_shape_raises(self, mock_llm_client):
        mock_llm_client.complete_json.return_value = {"critiques": [{"text": "no id"}]}

        with pytest.raises(ExternalServiceError):
            await resubmission_service.parse_summary(SUMMARY_TEXT)


@pytest.mark.asyncio
class TestStrategy:
    async def test_page_totals_are_computed(self, mock_llm_client):
        mock_llm_client.complete_json.return_value = {
            "suggestions": [
                {"critique_id": "c1", "response": "Add power analysis", "page_estimate": 1.5},
                {"critique_id": "c2", "response": "New pilot data", "page_estimate": 2},
            ],
            "total_page_estimate": 99,
            "remaining_page_budget": 99,
        }

        plan = await resubmission_service.strategy(StrategyRequest(parsed_summary=ParsedSummary(**PARSED)))

        assert plan.total_page_estimate == 3.5
        assert plan.remaining_page_budget == 7.5


@pytest.mark.asyncio
class TestRewrite:
    async def test_rewrite_keeps_request_fields(self, mock_llm_client):
        revised = "x" * 3001
        mock_llm_client.complete_json.return_value = {"revised_text": revised, "changes": ["Added power analysis"]}

        result = await resubmission_service.rewrite_section(
            SectionRewriteRequest(
                section_name="Approach",
                original_text="Aim 2 uses n=5 per group.",
                critiques_to_address=["Aim 2 is underpowered."],
            )
        )

        assert result.section_name == "Approach"
        assert result.original_text == "Aim 2 uses n=5 per group."
        assert result.page_count == 2
        assert result.changes == ["Added power analysis"]


@pytest.mark.asyncio
class TestCoverLetter:
    @pytest.mark.parametrize(
        "words,page_estimate,within_limit",
        [
            (250, 0.5, True),
            (500, 1.0, True),
            (650, 1.3, False),
        ],
    )
    async def test_word_count(self, mock_llm_client, words, page_estimate, within_limit):
        mock_llm_client.complete_json.return_value = {"content": " ".join(["word"] * words), "word_count": 1}

        letter = await resubmission_service.cover_letter(
            CoverLetterRequest(parsed_summary=ParsedSummary(**PARSED), response_strategy=ResponseStrategy())
        )

        assert letter.word_count == words
        assert letter.page_estimate == page_estimate
        assert letter.within_limit is within_limit


@pytest.mark.asyncio
class TestQualityCheck:
    async def test_deltas(self, mock_llm_client):
        mock_llm_client.complete_json.return_value = {
            "scores": [
                {"criterion": "Approach", "original_score": 5, "projected_score": 3},
                {"criterion": "Innovation", "original_score": None, "projected_score": 2},
            ],
            "overall_original": 45,
            "overall_projected": 30,
            "overall_delta": 0,
            "checklist": [{"item": "All major critiques addressed", "completed": True}],
        }

        result = await resubmission_service.quality_check(
            QualityCheckRequest(parsed_summary=ParsedSummary(**PARSED), response_strategy=ResponseStrategy())
        )

        assert [s.delta for s in result.scores] == [-2, None]
        assert result.overall_delta == -15
        assert result.checklist[0].completed is True
