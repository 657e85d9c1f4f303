"""
Grant Builder Service
Guided construction of the title, gap statement, hypothesis and aims.

Every module has a deterministic template so the builder works without a
model. When AI is requested the LLM is tried first and the template is the
fallback.
"""

from typing import Any

import pydantic
import structlog

from backend.core.config import settings
from backend.core.exceptions import ValidationError
from backend.schemas.grant_builder import (
    AimsInput,
    AimsResult,
    AimsValidationResult,
    BuilderAim,
    BuilderModule,
    FundingMechanismInfo,
    GapStatementInput,
    GapStatementResult,
    HypothesisInput,
    HypothesisResult,
    ValidateAimsInput,
)
from backend.services.llm_client import LLMError, get_llm_client

logger = structlog.get_logger(__name__)


BUILDER_MODULES = [
    BuilderModule(
        id="title",
        name="Title & Concept Clarity",
        required_fields=["working_title", "disease_area", "what_is_known", "critical_gaps"],
        outputs=["refined_title", "gap_statement", "impact_paragraph"],
    ),
    BuilderModule(
        id="hypothesis",
        name="Hypothesis Generation",
        required_fields=["gap_statement"],
        outputs=["central_hypothesis", "mechanistic_framing", "clinical_implication"],
        validation_criteria=["resolves_gap", "is_testable", "is_falsifiable"],
    ),
    BuilderModule(
        id="aims",
        name="Specific Aims Builder",
        required_fields=["central_hypothesis"],
        outputs=["aims"],
        validation_criteria=[
            "clear_question",
            "testable_outcome",
            "links_to_hypothesis",
            "no_exploratory_vagueness",
        ],
    ),
]

FUNDING_MECHANISMS = [
    FundingMechanismInfo(id="r01", name="NIH R01", max_aims=3, emphasizes=["innovation", "approach"]),
    FundingMechanismInfo(
        id="sbir1", name="SBIR Phase I", max_aims=2, emphasizes=["commercialization", "feasibility"]
    ),
    FundingMechanismInfo(
        id="sbir2", name="SBIR Phase II", max_aims=3, emphasizes=["commercialization", "scalability"]
    ),
    FundingMechanismInfo(
        id="dod", name="DoD CDMRP", max_aims=3, emphasizes=["military relevance", "translational potential"]
    ),
]

TESTABLE_WORDS = ("measure", "determine", "demonstrate", "show", "establish", "quantify", "assess")
VAGUE_WORDS = ("explore", "investigate broadly", "examine various", "look at")

AIM_SCAFFOLDS = {
    1: {
        "scientific_question": "Establish proof-of-concept for the proposed mechanism",
        "expected_outcome": "Demonstration of target engagement and preliminary efficacy",
        "experimental_model": "In vitro cellular models",
        "links_to_hypothesis": "Tests the fundamental premise of the hypothesis",
    },
    2: {
        "scientific_question": "Validate findings in a more complex disease model",
        "expected_outcome": "Confirmation of in vitro results in disease-relevant context",
        "experimental_model": "In vivo animal models or ex vivo human samples",
        "links_to_hypothesis": "Extends hypothesis testing to translational models",
    },
}
TRANSLATIONAL_SCAFFOLD = {
    "scientific_question": "Determine translational potential and optimize for clinical development",
    "expected_outcome": "IND-enabling data or clinical development pathway",
    "experimental_model": "GLP studies or clinical samples",
    "links_to_hypothesis": "Validates clinical relevance of hypothesis",
}

BUILDER_SYSTEM_PROMPT = """You are an expert NIH grant writing coach helping a scientist build a
fundable application one module at a time. Write in confident, precise scientific prose.
Respond only with the JSON object requested."""


# =============================================================================
# Templates
# =============================================================================


def template_gap_statement(data: GapStatementInput) -> GapStatementResult:
    gap_statement = (
        f"While {data.what_is_known[:100].lower()}, significant gaps remain in our understanding of "
        f"{data.what_is_unknown[:100].lower()}. Specifically, {data.critical_gaps}. "
        f"This gap is critical because {data.clinical_importance[:150].lower()}."
    )

    approach = (
        "elucidate key mechanisms"
        if "mechanism" in data.critical_gaps
        else "develop novel therapeutic approaches"
    )
    outcome = (
        "significantly improve patient outcomes"
        if "patient" in data.clinical_importance.lower()
        else "transform the treatment landscape"
    )
    impact_paragraph = (
        f"The proposed research addresses a critical unmet need in {data.disease_area}. "
        f"By targeting {data.target}, this project will {approach} that have the potential to {outcome}. "
        f"The clinical and commercial implications of this work extend to {data.disease_area} "
        f"patients who currently lack effective treatment options."
    )

    refined_title = None
    if data.target and data.disease_area:
        refined_title = f"Targeting {data.target} as a Novel Therapeutic Strategy for {data.disease_area}"

    return GapStatementResult(
        gap_statement=gap_statement,
        impact_paragraph=impact_paragraph,
        refined_title=refined_title,
    )


def template_hypothesis(data: HypothesisInput) -> HypothesisResult:
    intervention = f"targeting {data.target}" if data.target else "our proposed intervention"
    modulation = f"modulation of {data.target}" if data.target else "targeted intervention"

    return HypothesisResult(
        hypothesis=(
            f"We hypothesize that {intervention} will effectively address the identified knowledge gap "
            f"by providing mechanistic insight into {data.disease_area} pathophysiology, ultimately "
            f"leading to improved therapeutic outcomes."
        ),
        mechanistic_framing=(
            f"The proposed mechanism involves {modulation}, which we predict will result in measurable "
            f"changes to disease-relevant endpoints. This mechanistic understanding will provide the "
            f"foundation for rational therapeutic development."
        ),
        clinical_implication=(
            f"If validated, this hypothesis will establish {data.target or 'our approach'} as a viable "
            f"therapeutic target for {data.disease_area}. This would represent a significant advancement "
            f"in the field, potentially leading to novel treatment options for patients who currently "
            f"have limited therapeutic choices."
        ),
    )


def suggest_aims(data: AimsInput) -> AimsResult:
    """Aim scaffolds: proof of concept, disease model, then translational."""
    aims = [
        BuilderAim(id=str(i), **AIM_SCAFFOLDS.get(i, TRANSLATIONAL_SCAFFOLD))
        for i in range(1, data.num_aims + 1)
    ]
    return AimsResult(aims=aims)


def validate_aims(data: ValidateAimsInput) -> AimsValidationResult:
    """Check each aim for a clear, testable, hypothesis-linked question."""
    issues: list[str] = []
    warnings: list[str] = []
    passed: list[str] = []

    for number, aim in enumerate(data.aims, start=1):
        if len(aim.scientific_question) < 20:
            issues.append(f"Aim {number}: Scientific question is too vague or missing")
        else:
            passed.append(f"Aim {number}: Has clear scientific question")

        outcome = aim.expected_outcome.lower()
        if any(word in outcome for word in TESTABLE_WORDS):
            passed.append(f"Aim {number}: Has measurable outcome")
        else:
            warnings.append(f"Aim {number}: Expected outcome may not be easily measurable")

        if len(aim.links_to_hypothesis) < 10:
            issues.append(f"Aim {number}: Missing clear link to central hypothesis")

        question = aim.scientific_question.lower()
        if any(word in question for word in VAGUE_WORDS):
            warnings.append(
                f"Aim {number}: Question may be too exploratory - consider making more specific"
            )

    if len(data.aims) >= 2:
        passed.append("Multiple aims provide comprehensive coverage")

        if (
            "vivo" in data.aims[0].experimental_model.lower()
            and "vitro" in data.aims[1].experimental_model.lower()
        ):
            warnings.append("Consider reordering: in vitro studies typically precede in vivo work")

    return AimsValidationResult(
        is_valid=not issues,
        issues=issues,
        warnings=warnings,
        passed=passed,
        coherence_score=max(0, 100 - len(issues) * 20 - len(warnings) * 10),
    )


# =============================================================================
# Service
# =============================================================================


class GrantBuilderService:
    """Dispatches builder modules, optionally drafting with the LLM."""

    async def generate(self, generation_type: str, data: dict[str, Any], use_ai: bool = False):
        """
        Run one builder module.

        Raises:
            ValidationError: Unknown type or malformed module inputs
        """
        try:
            if generation_type == "gap_statement":
                return await self.gap_statement(GapStatementInput.model_validate(data), use_ai)
            if generation_type == "hypothesis":
                return await self.hypothesis(HypothesisInput.model_validate(data), use_ai)
            if generation_type == "aims":
                return suggest_aims(AimsInput.model_validate(data))
            if generation_type == "validate_aims":
                return validate_aims(ValidateAimsInput.model_validate(data))
        except pydantic.ValidationError as e:
            raise ValidationError(f"Invalid {generation_type} input: {e.errors()[0]['msg']}") from e

        raise ValidationError("Unknown generation type")

    async def gap_statement(self, data: GapStatementInput, use_ai: bool = False) -> GapStatementResult:
        if use_ai:
            prompt = f"""Draft the gap statement for a grant on {data.disease_area or 'this disease area'}.

What is known: {data.what_is_known}
What is unknown: {data.what_is_unknown}
Critical gaps: {data.critical_gaps}
Clinical importance: {data.clinical_importance}
Target: {data.target}

Return JSON:
{{
  "gap_statement": "<2-3 sentences>",
  "impact_paragraph": "<one paragraph on impact>",
  "refined_title": "<concise project title>"
}}"""
            result = await self._draft(prompt, GapStatementResult)
            if result is not None:
                return result
        return template_gap_statement(data)

    async def hypothesis(self, data: HypothesisInput, use_ai: bool = False) -> HypothesisResult:
        if use_ai:
            prompt = f"""Write a falsifiable central hypothesis that resolves this gap.

Gap statement: {data.gap_statement}
Working title: {data.title}
Disease area: {data.disease_area}
Target: {data.target}

Return JSON:
{{
  "hypothesis": "<one sentence, testable and falsifiable>",
  "mechanistic_framing": "<2 sentences>",
  "clinical_implication": "<2 sentences>"
}}"""
            result = await self._draft(prompt, HypothesisResult)
            if result is not None:
                return result
        return template_hypothesis(data)

    async def _draft(self, prompt: str, schema):
        try:
            data = await get_llm_client().complete_json(
                BUILDER_SYSTEM_PROMPT,
                prompt,
                temperature=settings.generation_temperature,
            )
            return schema.model_validate(data)
        except (LLMError, pydantic.ValidationError) as e:
            logger.warning("Builder draft failed, using template", schema=schema.__name__, error=str(e))
            return None


# Singleton instance
grant_builder_service = GrantBuilderService()
