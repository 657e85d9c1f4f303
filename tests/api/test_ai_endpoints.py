"""
Tests for the AI critique, grant builder and letter endpoints.
The LLM is mocked throughout.
"""
import pytest

from backend.services.ai_writing import REVIEWER_PERSONAS
from backend.services.llm_client import LLMError

pytestmark = pytest.mark.asyncio


class TestCritiqueEndpoints:
    """Tests for /api/ai-critique."""

    async def test_critique(self, async_client, auth_headers, mock_llm_client):
        mock_llm_client.complete_json.return_value = {"score": 2, "score_label": "Outstanding"}

        response = await async_client.post(
            "/api/ai-critique",
            json={"content": "Our aims...", "section_type": "specific_aims"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["score"] == 2

    async def test_critique_falls_back_when_model_fails(self, async_client, auth_headers, mock_llm_client):
        mock_llm_client.complete_json.side_effect = LLMError("down")

        response = await async_client.post(
            "/api/ai-critique", json={"content": "Our aims..."}, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["summary"] == "Unable to generate critique."

    async def test_empty_content_rejected(self, async_client, auth_headers):
        response = await async_client.post("/api/ai-critique", json={"content": ""}, headers=auth_headers)
        assert response.status_code == 422

    async def test_rewrite_saved_as_version(self, async_client, auth_headers, mock_llm_client):
        application = (
            await async_client.post(
                "/api/applications", json={"title": "A", "mechanism": "R43"}, headers=auth_headers
            )
        ).json()
        section_id = application["sections"][0]["id"]
        mock_llm_client.complete_json.return_value = {
            "rewritten_content": "Sharper aims.",
            "improvement_summary": "Tightened",
        }

        response = await async_client.post(
            "/api/ai-critique/rewrite",
            json={"content": "Loose aims.", "save_as_version_for": section_id},
            headers=auth_headers,
        )
        assert response.json()["rewritten_content"] == "Sharper aims."

        versions = (
            await async_client.get(f"/api/sections/{section_id}/versions", headers=auth_headers)
        ).json()
        assert len(versions) == 1
        assert versions[0]["source"] == "ai-modified"
        assert versions[0]["content"] == "Sharper aims."
        assert versions[0]["change_description"] == "Tightened"

        section = (await async_client.get(f"/api/sections/{section_id}", headers=auth_headers)).json()
        assert section["content"] == ""

    async def test_rewrite_with_invalid_section_id(self, async_client, auth_headers):
        response = await async_client.post(
            "/api/ai-critique/rewrite",
            json={"content": "Loose aims.", "save_as_version_for": "not-a-uuid"},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "save_as_version_for must be a section id"

    async def test_bulk(self, async_client, auth_headers, mock_llm_client):
        mock_llm_client.complete_json.return_value = {"score": 2}

        response = await async_client.post(
            "/api/ai-critique/bulk",
            json={
                "documents": [
                    {"section": "Specific Aims", "content": "a"},
                    {"section": "Approach", "content": "b"},
                ]
            },
            headers=auth_headers,
        )

        body = response.json()
        assert body["overall_score"] == 2.0
        assert body["fundable"] is True

    async def test_personas(self, async_client):
        response = await async_client.get("/api/ai-critique/personas")

        assert response.status_code == 200
        assert [p["name"] for p in response.json()] == [p["name"] for p in REVIEWER_PERSONAS]

    async def test_reviewers(self, async_client, auth_headers, mock_llm_client):
        mock_llm_client.complete_json.return_value = {"score": 3, "overall_impression": "Solid"}

        response = await async_client.post(
            "/api/ai-critique/reviewers",
            json={"section_content": "Approach text", "personas": ["The Skeptic"]},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["simulations"][0]["persona"] == "The Skeptic"


class TestGrantBuilderEndpoints:
    """Tests for /api/grant-builder."""

    async def test_info(self, async_client):
        response = await async_client.get("/api/grant-builder")

        body = response.json()
        assert [m["id"] for m in body["modules"]] == ["title", "hypothesis", "aims"]
        assert "sbir1" in [f["id"] for f in body["funding_mechanisms"]]

    async def test_suggest_aims(self, async_client, auth_headers):
        response = await async_client.post(
            "/api/grant-builder",
            json={"type": "aims", "data": {"num_aims": 2}},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert len(response.json()["aims"]) == 2

    async def test_validate_aims(self, async_client, auth_headers):
        response = await async_client.post(
            "/api/grant-builder",
            json={"type": "validate_aims", "data": {"aims": [{"scientific_question": "short"}]}},
            headers=auth_headers,
        )

        body = response.json()
        assert body["is_valid"] is False
        assert "Aim 1: Scientific question is too vague or missing" in body["issues"]

    async def test_unknown_type(self, async_client, auth_headers):
        response = await async_client.post(
            "/api/grant-builder", json={"type": "budget", "data": {}}, headers=auth_headers
        )
        assert response.status_code == 422


class TestLetterEndpoints:
    """Tests for /api/letters."""

    LETTER = {
        "type": "vendor",
        "recipient_name": "Pat Doe",
        "recipient_institution": "Acme Reagents",
        "project_title": "Rapid Sepsis Assay",
        "pi_name": "Dr. Lee",
        "pi_institution": "SepsisCo",
        "grant_mechanism": "SBIR Phase I",
    }

    async def test_info(self, async_client):
        response = await async_client.get("/api/letters")

        body = response.json()
        assert body["letter_types"] == ["support", "consultant", "vendor"]
        assert "vendor_product" in body["required_fields"]["vendor"]

    async def test_generate(self, async_client, auth_headers):
        response = await async_client.post("/api/letters", json=self.LETTER, headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["type"] == "vendor"
        assert "Vendor Commitment Letter" in response.json()["letter"]

    async def test_invalid_type(self, async_client, auth_headers):
        response = await async_client.post(
            "/api/letters", json={**self.LETTER, "type": "reference"}, headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid letter type"


class TestResubmissionEndpoints:
    """Tests for /api/resubmission."""

    SUMMARY = "SUMMARY OF DISCUSSION: " + "Reviewers questioned the statistical power of Aim 2. " * 3

    async def test_parse(self, async_client, auth_headers, mock_llm_client):
        mock_llm_client.complete_json.return_value = {
            "overall_impact_score": 40,
            "critiques": [{"id": "c1", "text": "Underpowered", "severity": "must-address"}],
        }

        response = await async_client.post(
            "/api/resubmission/parse", json={"summary_text": self.SUMMARY}, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["critiques"][0]["criterion"] == "approach"

    async def test_parse_short_text(self, async_client, auth_headers, mock_llm_client):
        response = await async_client.post(
            "/api/resubmission/parse", json={"summary_text": "Too short"}, headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Summary statement text too short"

    async def test_model_failure_is_bad_gateway(self, async_client, auth_headers, mock_llm_client):
        mock_llm_client.complete_json.side_effect = LLMError("down")

        response = await async_client.post(
            "/api/resubmission/audit",
            json={"grant_text": "Aims...", "parsed_summary": {}},
            headers=auth_headers,
        )

        assert response.status_code == 502
        assert response.json()["message"] == "AI model request failed: could not complete audit"

    async def test_strategy_page_limit(self, async_client, auth_headers, mock_llm_client):
        mock_llm_client.complete_json.return_value = {
            "suggestions": [{"critique_id": "c1", "page_estimate": 2}],
        }

        response = await async_client.post(
            "/api/resubmission/strategy",
            json={"parsed_summary": {}, "page_limit": 6},
            headers=auth_headers,
        )

        assert response.json()["remaining_page_budget"] == 3.0

    async def test_rewrite_needs_critiques(self, async_client, auth_headers):
        response = await async_client.post(
            "/api/resubmission/rewrite",
            json={"section_name": "Approach", "original_text": "Text", "critiques_to_address": []},
            headers=auth_headers,
        )
        assert response.status_code == 422


class TestAnalysisEndpoints:
    """Tests for /api/analysis."""

    async def test_feasibility(self, async_client, auth_headers, mock_llm_client):
        mock_llm_client.complete_json.return_value = {
            "overall_feasibility_score": 62,
            "scope_issues": [{"type": "overloaded", "description": "Aim 1 has five sub-aims", "severity": "high"}],
            "aim_analysis": [{"aim_number": 1, "complexity": "overloaded", "contingency_needed": True}],
        }

        response = await async_client.post(
            "/api/analysis/feasibility",
            json={"specific_aims": "Aim 1...", "timeline": "2 years"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["overall_feasibility_score"] == 62
        assert body["timeline_assessment"] == {"realistic": True, "concerns": []}
        assert "TIMELINE: 2 years" in mock_llm_client.complete_json.call_args.args[1]

    async def test_feasibility_bad_reply(self, async_client, auth_headers, mock_llm_client):
        mock_llm_client.complete_json.return_value = {"overall_feasibility_score": 140}

        response = await async_client.post(
            "/api/analysis/feasibility", json={"specific_aims": "Aim 1..."}, headers=auth_headers
        )

        assert response.status_code == 502

    async def test_novelty_risk(self, async_client, auth_headers, mock_llm_client):
        mock_llm_client.complete_json.return_value = {
            "novelty_score": 35,
            "textbook_statements": ["Alzheimer's disease is the most common dementia."],
        }

        response = await async_client.post(
            "/api/analysis/novelty-risk",
            json={"title": "TREM2", "content": "Alzheimer's disease is the most common dementia."},
            headers=auth_headers,
        )

        assert response.json()["risk_level"] == "high"

    async def test_requires_authentication(self, async_client):
        response = await async_client.post("/api/analysis/novelty-risk", json={"content": "x"})
        assert response.status_code == 401
