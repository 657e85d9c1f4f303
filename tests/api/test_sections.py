"""
Tests for Sections API.
Tests content saves, compliance, architecture scoring and version history.
"""
import pytest
import pytest_asyncio

from backend.core.config import settings

pytestmark = pytest.mark.asyncio

STRATEGY_TEXT = "Significance\nSepsis kills.\n\nInnovation\nNew assay.\n\nApproach\nWe will measure lactate."


@pytest_asyncio.fixture
async def application(async_client, auth_headers):
    response = await async_client.post(
        "/api/applications",
        json={"title": "Rapid Sepsis Assay", "mechanism": "R43"},
        headers=auth_headers,
    )
    return response.json()


def section_of(application, section_type):
    return next(s for s in application["sections"] if s["type"] == section_type)


class TestSectionContent:
    """Tests for saving section content."""

    async def test_save_valid_content(self, async_client, auth_headers, application):
        section = section_of(application, "research_strategy")

        response = await async_client.put(
            f"/api/sections/{section['id']}",
            json={"content": STRATEGY_TEXT},
            headers=auth_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["page_count"] == 1
        assert body["is_valid"] is True
        assert body["is_complete"] is True

    async def test_missing_heading_is_invalid(self, async_client, auth_headers, application):
        section = section_of(application, "research_strategy")

        response = await async_client.put(
            f"/api/sections/{section['id']}",
            json={"content": "Approach only"},
            headers=auth_headers,
        )
        assert response.json()["is_valid"] is False

    async def test_over_page_limit(self, async_client, auth_headers, application):
        section = section_of(application, "specific_aims")

        response = await async_client.put(
            f"/api/sections/{section['id']}",
            json={"content": "x" * 3001},
            headers=auth_headers,
        )

        assert response.json()["page_count"] == 2
        assert response.json()["is_valid"] is False

    async def test_other_user_is_forbidden(self, async_client, other_headers, application):
        section = section_of(application, "specific_aims")

        response = await async_client.get(f"/api/sections/{section['id']}", headers=other_headers)
        assert response.status_code == 403


class TestCompliance:
    async def test_check_unsaved_text(self, async_client, auth_headers):
        response = await async_client.post(
            "/api/sections/compliance/check",
            json={"content": "x" * 4000, "section_type": "specific_aims"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["is_compliant"] is False
        assert "PAGE_LIMIT_EXCEEDED" in [i["code"] for i in body["issues"]]

    async def test_saved_section(self, async_client, auth_headers, application):
        section = section_of(application, "research_strategy")
        await async_client.put(
            f"/api/sections/{section['id']}", json={"content": "Approach only"}, headers=auth_headers
        )

        response = await async_client.post(f"/api/sections/{section['id']}/compliance", headers=auth_headers)

        codes = [i["code"] for i in response.json()["issues"]]
        assert codes.count("MISSING_HEADING") == 2


class TestArchitecture:
    """Tests for architecture storage and scoring."""

    async def test_score_and_gate(self, async_client, auth_headers, application, sample_architecture, monkeypatch):
        monkeypatch.setattr(settings, "export_hard_gate_enabled", True)
        section = section_of(application, "specific_aims")

        saved = await async_client.put(
            f"/api/sections/{section['id']}/architecture",
            json=sample_architecture,
            headers=auth_headers,
        )
        assert saved.status_code == 200
        assert saved.json()["score"] is None

        response = await async_client.post(f"/api/sections/{section['id']}/score", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["score"]["structural_score"] == 90
        assert body["score"]["label"] == "Excellent"
        assert body["dependencies"]["dependencies"] == []
        assert body["risk"]["overall_risk"] == "low"

        stored = await async_client.get(f"/api/sections/{section['id']}/architecture", headers=auth_headers)
        assert stored.json()["score"]["structural_score"] == 90
        assert stored.json()["dependency_map"]["domino_risk"] == 0.0

        gate = await async_client.get(
            f"/api/applications/{application['id']}/export-gate", headers=auth_headers
        )
        assert gate.json()["can_export"] is True
        assert gate.json()["blockers"] == []

    async def test_score_without_architecture(self, async_client, auth_headers, application):
        section = section_of(application, "specific_aims")

        response = await async_client.post(f"/api/sections/{section['id']}/score", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["score"]["completeness"] == 0
        assert body["score"]["structural_score"] == 45
        assert body["risk"]["overall_risk"] == "critical"
        assert [f["type"] for f in body["risk"]["flags"]] == ["MISSING_AIMS"]


class TestVersions:
    """Tests for version history."""

    async def test_save_with_version(self, async_client, auth_headers, application):
        section = section_of(application, "specific_aims")

        await async_client.put(
            f"/api/sections/{section['id']}",
            json={"content": "Aims v1", "save_version": True, "change_description": "First draft"},
            headers=auth_headers,
        )
        response = await async_client.get(f"/api/sections/{section['id']}/versions", headers=auth_headers)

        versions = response.json()
        assert len(versions) == 1
        assert versions[0]["content"] == "Aims v1"
        assert versions[0]["source"] == "user"
        assert versions[0]["change_description"] == "First draft"

    async def test_restore(self, async_client, auth_headers, application):
        section = section_of(application, "specific_aims")
        base = f"/api/sections/{section['id']}"

        created = await async_client.post(
            f"{base}/versions",
            json={"content": "Generated aims", "source": "ai-generated"},
            headers=auth_headers,
        )
        assert created.status_code == 201
        await async_client.put(base, json={"content": "Edited aims"}, headers=auth_headers)

        restored = await async_client.post(
            f"{base}/versions/{created.json()['id']}/restore", headers=auth_headers
        )

        assert restored.status_code == 200
        assert restored.json()["content"] == "Generated aims"
        versions = (await async_client.get(f"{base}/versions", headers=auth_headers)).json()
        assert len(versions) == 2
        assert {v["source"] for v in versions} == {"ai-generated"}

    async def test_restore_unknown_version(self, async_client, auth_headers, application):
        section = section_of(application, "specific_aims")

        response = await async_client.post(
            f"/api/sections/{section['id']}/versions/00000000-0000-0000-0000-000000000000/restore",
            headers=auth_headers,
        )
        assert response.status_code == 404
