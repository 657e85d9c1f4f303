"""
AI Writing Service
LLM-backed critique, rewrite and reviewer simulation for grant sections.

Every call builds a prompt, asks the configured model for JSON and parses
it into a schema. Model or parse failures are logged and replaced by a
fixed fallback so the editor never breaks on an upstream outage.
"""

import asyncio
import json
from typing import Optional

import pydantic
import structlog

from backend.core.config import settings
from backend.schemas.ai_writing import (
    DEFAULT_GRANT_TYPE,
    BulkCritiqueResponse,
    BulkDocument,
    CritiqueResult,
    ReviewerSimulation,
    ReviewerSimulationResponse,
    RewriteResult,
    SectionCritique,
)
from backend.services.llm_client import LLMError, get_llm_client

logger = structlog.get_logger(__name__)

# NIH scale: average at or below this is considered fundable
FUNDABLE_SCORE_THRESHOLD = 3.0
CRITICAL_SECTION_SCORE = 6

REVIEWER_PERSONAS = [
    {
        "name": "The Methodologist",
        "expertise": "Biostatistics and research design",
        "style": "Detail-oriented, questions every statistical choice",
        "focus": ["statistical power", "sample size", "controls", "reproducibility"],
    },
    {
        "name": "The Skeptic",
        "expertise": "Senior investigator, 30+ years experience",
        "style": "Questioning, challenges assumptions, looks for gaps",
        "focus": ["feasibility", "preliminary data", "alternative explanations", "pitfalls"],
    },
    {
        "name": "The Innovator",
        "expertise": "Technology development and translation",
        "style": "Forward-thinking, values novelty and impact",
        "focus": ["innovation", "significance", "translational potential", "future directions"],
    },
    {
        "name": "The Clinician",
        "expertise": "Clinical research and patient outcomes",
        "style": "Practical, focused on clinical relevance",
        "focus": ["clinical significance", "patient impact", "real-world applicability", "ethics"],
    },
]


CRITIQUE_SYSTEM_PROMPT = """You are an expert NIH grant reviewer with decades of experience on study sections.
Provide a rigorous, detailed critique of grant application sections using NIH review criteria.

Your critique MUST include:
1. An overall score from 1-10 (1=exceptional, 9=poor, following NIH scoring conventions where lower is better)
2. Detailed strengths (what works well)
3. Detailed weaknesses (what needs improvement)
4. Specific, actionable suggestions for improvement
5. Assessment of scientific rigor, innovation, and feasibility

Be thorough but constructive. Identify both major and minor issues.

Return your response as JSON:
{
  "score": <number 1-10>,
  "score_label": "<Exceptional/Outstanding/Excellent/Very Good/Good/Satisfactory/Fair/Marginal/Poor>",
  "summary": "<2-3 sentence overall assessment>",
  "strengths": ["<strength 1>", "<strength 2>"],
  "weaknesses": ["<weakness 1>", "<weakness 2>"],
  "suggestions": [
    {
      "category": "<Significance/Innovation/Approach/Clarity/Other>",
      "issue": "<specific issue identified>",
      "recommendation": "<actionable recommendation>",
      "priority": "<High/Medium/Low>"
    }
  ],
  "section_specific_feedback": {
    "significance": "<feedback on significance if applicable>",
    "innovation": "<feedback on innovation if applicable>",
    "approach": "<feedback on approach if applicable>",
    "investigators": "<feedback on investigator qualifications if mentioned>",
    "environment": "<feedback on environment if mentioned>"
  }
}"""

REWRITE_SYSTEM_PROMPT = """You are an expert grant writer who has successfully secured millions in NIH funding.
Rewrite the provided grant section to dramatically improve its competitiveness while maintaining the scientific content.

Focus on:
- Stronger opening hooks
- Clearer articulation of significance and innovation
- More compelling narrative flow
- Elimination of jargon and unclear passages
- Stronger transitions between ideas
- More confident, assertive language
- Better alignment with NIH review criteria

Return your response as JSON:
{
  "rewritten_content": "<the improved text>",
  "changes": [
    {
      "type": "<Clarity/Impact/Structure/Language/Specificity>",
      "description": "<what was changed and why>"
    }
  ],
  "improvement_summary": "<brief summary of key improvements made>"
}"""


def fallback_critique() -> CritiqueResult:
    return CritiqueResult(score=5, score_label="Good", summary="Unable to generate critique.")


def fallback_rewrite(content: str) -> RewriteResult:
    return RewriteResult(rewritten_content=content, improvement_summary="Unable to generate rewrite.")


def summarize_bulk_scores(scores: list[float]) -> str:
    """One-line verdict for a set of section scores on the NIH 1-9 scale."""
    if not scores:
        return "No sections could be reviewed."

    average = sum(scores) / len(scores)
    critical = sum(1 for s in scores if s >= CRITICAL_SECTION_SCORE)

    if average <= 2:
        return "Your application is highly competitive. Focus on final polish and formatting compliance."
    if average <= 4:
        focus = f"{critical} section(s) with critical issues" if critical else "suggested improvements"
        return f"Your application shows promise. Address {focus} to strengthen competitiveness."
    return (
        f"Your application needs significant revision. "
        f"{critical} section(s) require major rework before submission."
    )


class AIWritingService:
    """Service for LLM critique and rewriting of grant sections."""

    async def generate_critique(
        self,
        content: str,
        section_type: str,
        grant_type: str = DEFAULT_GRANT_TYPE,
    ) -> CritiqueResult:
        """Critique a section using NIH review criteria, with a fixed fallback."""
        try:
            return await self._critique(content, section_type, grant_type)
        except (LLMError, pydantic.ValidationError) as e:
            logger.error("Failed to generate critique", section_type=section_type, error=str(e))
            return fallback_critique()

    async def _critique(self, content: str, section_type: str, grant_type: str) -> CritiqueResult:
        """
        Raises:
            LLMError: Model call failed or returned no JSON
            pydantic.ValidationError: Reply did not match the critique shape
        """
        user_prompt = f"""Provide a comprehensive NIH-style review critique of this {section_type} section from a {grant_type} grant application:

---
{content}
---

Evaluate using standard NIH review criteria. Be rigorous and specific."""

        data = await get_llm_client().complete_json(
            CRITIQUE_SYSTEM_PROMPT,
            user_prompt,
            temperature=settings.critique_temperature,
        )
        return CritiqueResult.model_validate(data)

    async def generate_rewrite(
        self,
        content: str,
        section_type: str,
        grant_type: str = DEFAULT_GRANT_TYPE,
    ) -> RewriteResult:
        """Rewrite a section for competitiveness, keeping its science intact."""
        user_prompt = f"""Rewrite this {section_type} section from a {grant_type} grant application to make it more competitive:

---
{content}
---

Maintain the core scientific content while dramatically improving the writing quality and persuasiveness."""

        try:
            data = await get_llm_client().complete_json(
                REWRITE_SYSTEM_PROMPT,
                user_prompt,
                temperature=settings.rewrite_temperature,
            )
            result = RewriteResult.model_validate(data)
        except (LLMError, pydantic.ValidationError) as e:
            logger.error("Failed to generate rewrite", section_type=section_type, error=str(e))
            return fallback_rewrite(content)

        if not result.rewritten_content.strip():
            return fallback_rewrite(content)
        return result

    async def bulk_critique(
        self,
        documents: list[BulkDocument],
        grant_type: str = "SBIR Phase I",
    ) -> BulkCritiqueResponse:
        """
        Critique several sections concurrently.

        Sections the model could not critique are listed in
        ``failed_sections`` and left out of the aggregate score.
        """
        results = await asyncio.gather(
            *(self._critique(doc.content, doc.section, grant_type) for doc in documents),
            return_exceptions=True,
        )

        reviews = []
        failed = []
        for doc, result in zip(documents, results):
            if isinstance(result, Exception):
                logger.error("Bulk critique section failed", section=doc.section, error=str(result))
                failed.append(doc.section)
                continue
            reviews.append(SectionCritique(section=doc.section, critique=result))

        scores = [r.critique.score for r in reviews]
        average: Optional[float] = round(sum(scores) / len(scores), 1) if scores else None

        return BulkCritiqueResponse(
            reviews=reviews,
            overall_score=average,
            fundable=average is not None and average <= FUNDABLE_SCORE_THRESHOLD,
            summary=summarize_bulk_scores(scores),
            failed_sections=failed,
        )

    async def simulate_reviewers(
        self,
        section_content: str,
        architecture: Optional[dict] = None,
        personas: Optional[list[str]] = None,
    ) -> ReviewerSimulationResponse:
        """Ask each reviewer persona for a critique, in parallel."""
        personas = personas or ["all"]
        selected = (
            REVIEWER_PERSONAS
            if "all" in personas
            else [p for p in REVIEWER_PERSONAS if p["name"] in personas]
        )

        simulations = await asyncio.gather(
            *(self._simulate_persona(p, section_content, architecture) for p in selected)
        )
        return ReviewerSimulationResponse(
            simulations=list(simulations),
            personas_used=[p["name"] for p in selected],
        )

    async def _simulate_persona(
        self,
        persona: dict,
        content: str,
        architecture: Optional[dict],
    ) -> ReviewerSimulation:
        architecture_context = (
            f"\n\nThe applicant has defined this architecture:\n{json.dumps(architecture, indent=2)}"
            if architecture
            else ""
        )
        system_prompt = f"""You are "{persona['name']}", a grant reviewer with expertise in {persona['expertise']}.
Your review style: {persona['style']}
You focus on: {', '.join(persona['focus'])}

Provide a realistic NIH study section review from this perspective. Be constructive but rigorous.

Return JSON:
{{
  "overall_impression": "<1-2 sentences>",
  "score": <1-9, NIH scale where 1=exceptional>,
  "strengths": ["<strength>"],
  "weaknesses": ["<weakness>"],
  "questions": ["<question for applicant>"],
  "must_address": ["<critical issue that must be addressed>"]
}}"""
        user_prompt = f"""Review this grant section as {persona['name']}:

---
{content}
---
{architecture_context}

Provide your critique from your specific perspective and expertise."""

        try:
            data = await get_llm_client().complete_json(system_prompt, user_prompt, temperature=0.6)
            return ReviewerSimulation(persona=persona["name"], expertise=persona["expertise"], **{
                k: v for k, v in data.items() if k not in ("persona", "expertise", "error")
            })
        except (LLMError, pydantic.ValidationError, TypeError) as e:
            logger.error("Reviewer simulation failed", persona=persona["name"], error=str(e))
            return ReviewerSimulation(
                persona=persona["name"],
                expertise=persona["expertise"],
                error="Failed to generate review",
            )

    async def generate_budget_justification(
        self,
        category: str,
        description: str,
        amount: float,
        grant_type: Optional[str] = None,
    ) -> str:
        """
        Write a 2-3 sentence justification for a budget line.

        Raises:
            LLMError: If the model fails; there is no sensible fallback text
        """
        sponsor = grant_type or "NIH"
        prompt = f"""Generate a brief, professional budget justification for an {sponsor} grant application.

Category: {category}
Description: {description or 'N/A'}
Amount: ${amount:,.0f}

Write 2-3 sentences explaining why this cost is necessary for the research project. Be specific and align with NIH guidelines. Do not include the amount in the justification."""

        text = await get_llm_client().complete_text(
            "You write concise, compliant NIH budget justifications.",
            prompt,
            temperature=0.5,
            max_tokens=200,
        )
        return text.strip()


# Singleton instance
ai_writing_service = AIWritingService()
