"""
Application Analysis Service
Model-assisted scope/feasibility and novelty-risk reads of draft text.
"""

import pydantic
import structlog

from backend.core.config import settings
from backend.core.exceptions import ExternalServiceError
from backend.schemas.analysis import (
    FeasibilityRequest,
    FeasibilityResult,
    NoveltyRiskRequest,
    NoveltyRiskResult,
)
from backend.services.llm_client import LLMError, get_llm_client

logger = structlog.get_logger(__name__)

ANALYSIS_SYSTEM_PROMPT = """You are a senior NIH reviewer assessing draft grant applications.
Answer with a single JSON object using exactly the keys requested."""

LOW_RISK_NOVELTY = 70
MODERATE_RISK_NOVELTY = 40


def novelty_risk_level(novelty_score: int) -> str:
    """Risk band for a 0-100 novelty score when the model leaves it out."""
    if novelty_score >= LOW_RISK_NOVELTY:
        return "low"
    if novelty_score >= MODERATE_RISK_NOVELTY:
        return "moderate"
    return "high"


async def _analyze(prompt: str, schema, kind: str):
    try:
        data = await get_llm_client().complete_json(
            ANALYSIS_SYSTEM_PROMPT,
            prompt,
            temperature=settings.critique_temperature,
            max_tokens=3000,
        )
        return schema.model_validate(data)
    except (LLMError, pydantic.ValidationError) as e:
        logger.warning("Application analysis failed", kind=kind, error=str(e))
        raise ExternalServiceError("AI model", f"{kind} analysis failed") from e


async def assess_feasibility(request: FeasibilityRequest) -> FeasibilityResult:
    """
    Flag overloaded or interdependent aims, unrealistic timelines and
    resource gaps.

    Raises:
        ExternalServiceError: Model failed or replied with the wrong shape
    """
    prompt = f"""Analyze scope and feasibility for this grant application.

SPECIFIC AIMS:
{request.specific_aims}

RESEARCH STRATEGY:
{request.research_strategy}

TIMELINE: {request.timeline or 'Not specified'}
BUDGET: {request.budget or 'Not specified'}

Analyze for:
1. Overloaded aims (too many objectives per aim)
2. Interdependent aims without contingency plans
3. Unrealistic timelines
4. Resource/expertise feasibility

Return:
{{
  "overall_feasibility_score": <0-100>,
  "scope_issues": [
    {{"type": "overloaded|interdependent|timeline|resource", "description": "...", "severity": "high|medium|low"}}
  ],
  "aim_analysis": [
    {{"aim_number": 1, "complexity": "appropriate|overloaded", "dependencies": ["..."], "contingency_needed": <true|false>}}
  ],
  "timeline_assessment": {{"realistic": <true|false>, "concerns": ["..."]}},
  "recommendations": ["specific suggestions"],
  "reviewer_concerns": ["what reviewers might flag"]
}}"""

    return await _analyze(prompt, FeasibilityResult, "feasibility")


async def assess_novelty_risk(request: NoveltyRiskRequest) -> NoveltyRiskResult:
    """
    Detect textbook statements, confirmatory framing and incremental
    positioning.

    Raises:
        ExternalServiceError: Model failed or replied with the wrong shape
    """
    prompt = f"""Assess novelty risk for this grant application.

TITLE: {request.title}
CONTENT:
{request.content}

Detect:
1. Textbook-level statements (commonly known facts)
2. Confirmatory framing (confirming what is known vs discovering new)
3. Lack of innovative positioning
4. Incremental vs transformative approach

Return:
{{
  "novelty_score": <0-100>,
  "risk_level": "low|moderate|high",
  "textbook_statements": ["phrases that sound like textbook content"],
  "confirmatory_framing": ["statements that confirm rather than discover"],
  "innovative_elements": ["genuinely novel aspects found"],
  "missing_innovation": ["areas where innovation claims are weak"],
  "reviewer_perception": "how reviewers will likely perceive novelty",
  "suggestions_to_strengthen": ["specific ways to improve novelty positioning"]
}}"""

    result = await _analyze(prompt, NoveltyRiskResult, "novelty risk")
    if result.risk_level is None:
        result.risk_level = novelty_risk_level(result.novelty_score)
    return result
