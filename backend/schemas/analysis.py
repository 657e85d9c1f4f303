"""
Application Analysis Schemas
Feasibility and novelty-risk assessments of draft application text.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class FeasibilityRequest(BaseModel):
    specific_aims: str = Field(..., min_length=1)
    research_strategy: str = ""
    timeline: Optional[str] = None
    budget: Optional[str] = None


class ScopeIssue(BaseModel):
    type: Literal["overloaded", "interdependent", "timeline", "resource"]
    description: str
    severity: Literal["high", "medium", "low"] = "medium"


class AimAnalysis(BaseModel):
    aim_number: int = Field(..., ge=1)
    complexity: Literal["appropriate", "overloaded"] = "appropriate"
    dependencies: List[str] = Field(default_factory=list)
    contingency_needed: bool = False


class TimelineAssessment(BaseModel):
    realistic: bool = True
    concerns: List[str] = Field(default_factory=list)


class FeasibilityResult(BaseModel):
    overall_feasibility_score: int = Field(..., ge=0, le=100)
    scope_issues: List[ScopeIssue] = Field(default_factory=list)
    aim_analysis: List[AimAnalysis] = Field(default_factory=list)
    timeline_assessment: TimelineAssessment = Field(default_factory=TimelineAssessment)
    recommendations: List[str] = Field(default_factory=list)
    reviewer_concerns: List[str] = Field(default_factory=list)


class NoveltyRiskRequest(BaseModel):
    title: str = ""
    content: str = Field(..., min_length=1)


class NoveltyRiskResult(BaseModel):
    novelty_score: int = Field(..., ge=0, le=100)
    risk_level: Optional[Literal["low", "moderate", "high"]] = None
    textbook_statements: List[str] = Field(default_factory=list)
    confirmatory_framing: List[str] = Field(default_factory=list)
    innovative_elements: List[str] = Field(default_factory=list)
    missing_innovation: List[str] = Field(default_factory=list)
    reviewer_perception: str = ""
    suggestions_to_strengthen: List[str] = Field(default_factory=list)
