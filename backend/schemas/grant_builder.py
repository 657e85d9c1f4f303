"""
Grant Builder Schemas
Request/response models for the guided title, hypothesis and aims builder.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


GenerationType = Literal["gap_statement", "hypothesis", "aims", "validate_aims"]


class GapStatementInput(BaseModel):
    """Inputs for the Title & Concept Clarity module."""
    what_is_known: str = ""
    what_is_unknown: str = ""
    critical_gaps: str = ""
    clinical_importance: str = ""
    disease_area: str = ""
    target: str = ""


class GapStatementResult(BaseModel):
    gap_statement: str
    impact_paragraph: str
    refined_title: Optional[str] = None


class HypothesisInput(BaseModel):
    """Inputs for the Hypothesis Generation module."""
    gap_statement: str = ""
    disease_area: str = ""
    target: str = ""
    title: str = ""


class HypothesisResult(BaseModel):
    hypothesis: str
    mechanistic_framing: str
    clinical_implication: str


class AimsInput(BaseModel):
    """Inputs for the Specific Aims Builder module."""
    hypothesis: str = ""
    gap_statement: str = ""
    num_aims: int = Field(3, ge=1, le=5)


class BuilderAim(BaseModel):
    """A specific aim scaffold in the builder."""
    id: str = ""
    scientific_question: str = ""
    expected_outcome: str = ""
    experimental_model: str = ""
    links_to_hypothesis: str = ""


class AimsResult(BaseModel):
    aims: List[BuilderAim]


class ValidateAimsInput(BaseModel):
    aims: List[BuilderAim] = Field(default_factory=list)
    hypothesis: str = ""
    gap_statement: str = ""


class AimsValidationResult(BaseModel):
    is_valid: bool
    issues: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    passed: List[str] = Field(default_factory=list)
    coherence_score: int


class GrantBuilderRequest(BaseModel):
    """Dispatch request: ``type`` selects the module, ``data`` holds its inputs."""
    type: GenerationType
    data: dict = Field(default_factory=dict)
    use_ai: bool = Field(False, description="Ask the LLM first, falling back to templates")


class BuilderModule(BaseModel):
    id: str
    name: str
    required_fields: List[str]
    outputs: List[str]
    validation_criteria: List[str] = Field(default_factory=list)


class FundingMechanismInfo(BaseModel):
    id: str
    name: str
    max_aims: int
    emphasizes: List[str]


class GrantBuilderInfoResponse(BaseModel):
    modules: List[BuilderModule]
    funding_mechanisms: List[FundingMechanismInfo]
