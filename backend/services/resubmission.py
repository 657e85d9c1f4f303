"""
Resubmission Service
Turns an NIH summary statement into a resubmission plan: parse the review,
audit the application, plan responses, rewrite sections, draft the
Introduction and project the revised scores.

Unlike the editor critique, these steps feed one another, so model or
parse failures raise instead of returning placeholders.
"""

import json
from typing import Optional, Type, TypeVar

import pydantic
import structlog

from backend.core.exceptions import ExternalServiceError, ValidationError
from backend.schemas.resubmission import (
    MIN_SUMMARY_LENGTH,
    AuditRequest,
    AuditResult,
    CoverLetter,
    CoverLetterRequest,
    ParsedSummary,
    QualityCheckRequest,
    QualityCheckResult,
    ResponseStrategy,
    SectionRewrite,
    SectionRewriteRequest,
    StrategyRequest,
)
from backend.services.compliance import estimate_page_count
from backend.services.llm_client import LLMError, get_llm_client

logger = structlog.get_logger(__name__)

T = TypeVar("T", bound=pydantic.BaseModel)

# Grant text sent to the auditor is capped to keep prompts in budget
MAX_AUDIT_CHARS = 15000
INTRODUCTION_PAGES = 1
WORDS_PER_PAGE = 500

RESUBMISSION_SYSTEM_PROMPT = """You are an experienced NIH study section member helping an investigator
prepare an A1 resubmission. Answer with a single JSON object using exactly the keys requested."""


def _dump(value) -> str:
    return json.dumps(value, indent=2, default=str)


def remaining_page_budget(total_page_estimate: float, page_limit: int = 12) -> float:
    """Pages left in the Research Strategy after the planned changes and the Introduction."""
    return max(0.0, page_limit - INTRODUCTION_PAGES - total_page_estimate)


def count_words(text: str) -> int:
    return len(text.split())


class ResubmissionService:
    """LLM-backed resubmission workflow."""

    async def _ask(self, schema: Type[T], prompt: str, temperature: float, step: str) -> T:
        try:
            data = await get_llm_client().complete_json(
                RESUBMISSION_SYSTEM_PROMPT,
                prompt,
                temperature=temperature,
                max_tokens=4000,
            )
            return schema.model_validate(data)
        except (LLMError, pydantic.ValidationError) as e:
            logger.warning("Resubmission step failed", step=step, error=str(e))
            raise ExternalServiceError("AI model", f"could not complete {step}") from e

    async def parse_summary(self, summary_text: str) -> ParsedSummary:
        """
        Extract scores and critiques from a pasted summary statement.

        Raises:
            ValidationError: Summary text shorter than 100 characters
            ExternalServiceError: Model failed or replied with the wrong shape
        """
        if not summary_text or len(summary_text.strip()) < MIN_SUMMARY_LENGTH:
            raise ValidationError("Summary statement text too short")

        prompt = f"""Analyze this NIH Summary Statement and extract structured information.

Summary Statement:
{summary_text}

Return JSON with this exact structure:
{{
  "overall_impact_score": <number>,
  "criterion_scores": [
    {{"criterion": "Significance", "score": <1-9>}},
    {{"criterion": "Innovation", "score": <1-9>}},
    {{"criterion": "Approach", "score": <1-9>}},
    {{"criterion": "Investigators", "score": <1-9>}},
    {{"criterion": "Environment", "score": <1-9>}}
  ],
  "critiques": [
    {{
      "id": "<unique-id>",
      "criterion": "<significance|innovation|approach|investigators|environment>",
      "reviewer": "Reviewer 1",
      "text": "<critique text>",
      "severity": "<must-address|consider>"
    }}
  ],
  "resume_synopsis": "<extracted resume/synopsis section>"
}}

Categorize as "must-address" if it is a weakness or concern, "consider" if minor or a suggestion."""

        parsed = await self._ask(ParsedSummary, prompt, temperature=0.2, step="parse")
        logger.info("Parsed summary statement", critiques=len(parsed.critiques))
        return parsed

    async def audit(self, request: AuditRequest) -> AuditResult:
        """Independent audit that looks past what the panel flagged."""
        prompt = f"""Conduct an independent audit of this grant application, going BEYOND what the reviewers identified.

Grant Text:
{request.grant_text[:MAX_AUDIT_CHARS]}

Previous Review Summary:
{_dump(request.parsed_summary.model_dump())}

Identify issues the reviewers may have missed. Return JSON:
{{
  "findings": [
    {{
      "id": "<unique-id>",
      "category": "<category>",
      "finding": "<what you found>",
      "recommendation": "<how to fix>",
      "priority": "<critical|important|minor>"
    }}
  ],
  "preliminary_data_gaps": ["<gap>"],
  "suggested_new_data": ["<data that would strengthen the application>"],
  "missed_opportunities": ["<opportunities not addressed>"]
}}

Focus on rigor, reproducibility, feasibility, preliminary data quality, innovation claims and statistical power."""

        return await self._ask(AuditResult, prompt, temperature=0.3, step="audit")

    async def strategy(self, request: StrategyRequest) -> ResponseStrategy:
        """
        Point-by-point response plan.

        The page total is recomputed from the suggestions and the remaining
        budget is derived here rather than trusted from the model.
        """
        audit = request.audit_results.model_dump() if request.audit_results else None
        prompt = f"""Generate a response strategy for this NIH grant resubmission.

Parsed Critiques:
{_dump(request.parsed_summary.model_dump())}

Audit Findings:
{_dump(audit)}

For each critique, provide a point-by-point response strategy. Return JSON:
{{
  "suggestions": [
    {{
      "critique_id": "<id>",
      "response": "<detailed response strategy>",
      "priority": "<critical|important|minor>",
      "structural_changes": ["<change>"],
      "page_estimate": <estimated pages needed>
    }}
  ]
}}

Prioritize critical weaknesses. Be specific about what to add or change."""

        plan = await self._ask(ResponseStrategy, prompt, temperature=0.3, step="strategy")
        plan.total_page_estimate = round(sum(s.page_estimate for s in plan.suggestions), 2)
        plan.remaining_page_budget = remaining_page_budget(plan.total_page_estimate, request.page_limit)
        return plan

    async def rewrite_section(self, request: SectionRewriteRequest) -> SectionRewrite:
        strategy = request.response_strategy.model_dump() if request.response_strategy else None
        critiques = "\n".join(request.critiques_to_address)
        prompt = f"""Rewrite this grant section to address the specified critiques.

Section: {request.section_name}

Original Text:
{request.original_text}

Critiques to Address:
{critiques}

Response Strategy Context:
{_dump(strategy)}

Return JSON:
{{
  "revised_text": "<improved version addressing critiques>",
  "changes": ["<change>"]
}}

Make substantive improvements while maintaining scientific accuracy."""

        data = await self._ask(_RewriteReply, prompt, temperature=0.4, step="rewrite")
        return SectionRewrite(
            section_name=request.section_name,
            original_text=request.original_text,
            revised_text=data.revised_text,
            changes=data.changes,
            page_count=estimate_page_count(data.revised_text),
        )

    async def cover_letter(self, request: CoverLetterRequest) -> CoverLetter:
        """Draft the one-page Introduction to the Resubmission."""
        prompt = f"""Generate an NIH-compliant Introduction to the Resubmission Application.

Previous Review:
{_dump(request.parsed_summary.model_dump())}

Response Strategy:
{_dump(request.response_strategy.model_dump())}

Section Changes Made:
{_dump([r.model_dump() for r in request.section_rewrites])}

Write a 1-page (max {WORDS_PER_PAGE} words) introduction that thanks reviewers, summarizes major
changes point-by-point and references the pages where changes appear.
Use the sections Opening, Summary of Major Changes, Specific Responses, Closing.

Return JSON: {{"content": "<the letter text>"}}"""

        data = await self._ask(_LetterReply, prompt, temperature=0.3, step="cover letter")
        words = count_words(data.content)
        return CoverLetter(
            content=data.content,
            word_count=words,
            page_estimate=round(words / WORDS_PER_PAGE, 2),
            within_limit=words <= WORDS_PER_PAGE,
        )

    async def quality_check(self, request: QualityCheckRequest) -> QualityCheckResult:
        """Simulated panel re-score; deltas are projected minus original."""
        letter = request.cover_letter.model_dump() if request.cover_letter else None
        prompt = f"""Conduct a quality check on this grant resubmission, simulating an NIH review panel.

Original Review:
{_dump(request.parsed_summary.model_dump())}

Response Strategy Used:
{_dump(request.response_strategy.model_dump())}

Revised Sections:
{_dump([r.model_dump() for r in request.section_rewrites])}

Cover Letter:
{_dump(letter)}

Score the revised application on each criterion (1-9, lower is better). Return JSON:
{{
  "scores": [
    {{"criterion": "Significance", "original_score": <from parsed summary>, "projected_score": <estimate>}}
  ],
  "overall_original": <original impact score>,
  "overall_projected": <projected impact score>,
  "remaining_risks": ["<risk>"],
  "checklist": [
    {{"item": "All major critiques addressed", "completed": <true|false>}},
    {{"item": "Introduction within 1 page", "completed": <true|false>}},
    {{"item": "New data/analysis added", "completed": <true|false>}},
    {{"item": "Statistical concerns resolved", "completed": <true|false>}},
    {{"item": "Feasibility improved", "completed": <true|false>}}
  ]
}}

Be realistic: scores rarely improve by more than 2-3 points."""

        result = await self._ask(QualityCheckResult, prompt, temperature=0.3, step="quality check")
        for score in result.scores:
            score.delta = _delta(score.original_score, score.projected_score)
        result.overall_delta = _delta(result.overall_original, result.overall_projected)
        return result


class _RewriteReply(pydantic.BaseModel):
    revised_text: str
    changes: list[str] = []


class _LetterReply(pydantic.BaseModel):
    content: str


def _delta(original: Optional[float], projected: Optional[float]) -> Optional[float]:
    if original is None or projected is None:
        return None
    return round(projected - original, 2)


resubmission_service = ResubmissionService()
