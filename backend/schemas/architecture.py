"""
Aims Architecture Schemas
Pydantic models for the aims architecture and the analyses derived from it.
"""
from datetime import datetime
from typing import List, Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, Field


RiskSeverity = Literal["low", "medium", "high", "critical"]
DependencyType = Literal["sequential", "parallel", "conditional"]


# =============================================================================
# Architecture
# =============================================================================

class Aim(BaseModel):
    """A specific aim as entered in the architecture editor."""
    id: str = Field(default_factory=lambda: str(uuid4()))
    title: str = ""
    hypothesis: str = ""
    is_falsifiable: bool = False
    endpoints: List[str] = Field(default_factory=list)
    rationale: str = ""

    def valid_endpoints(self) -> List[str]:
        """Endpoints that are not blank."""
        return [e for e in self.endpoints if e.strip()]


class ArchitectureData(BaseModel):
    """Central hypothesis, innovation statement and the list of aims."""
    central_hypothesis: str = ""
    innovation_statement: str = ""
    aims: List[Aim] = Field(default_factory=list)


# =============================================================================
# Structural Score
# =============================================================================

class ScoreData(BaseModel):
    """Deterministic structural score of an architecture."""
    structural_score: int = Field(..., ge=0, le=100)
    completeness: int = Field(..., ge=0, le=100)
    coherence: int = Field(..., ge=0, le=100)
    falsifiability: int = Field(..., ge=0, le=100)
    endpoint_clarity: int = Field(0, ge=0, le=100)
    label: Optional[str] = None
    last_calculated: datetime


# =============================================================================
# Dependencies
# =============================================================================

class DependencyEdge(BaseModel):
    """A dependency from one aim to another."""
    from_aim_id: str
    to_aim_id: str
    type: DependencyType = "sequential"
    description: Optional[str] = None
    weight: Optional[float] = Field(None, ge=0, le=1)


class DependencyAnalysis(BaseModel):
    """Inferred dependencies and the cascading-failure risk they imply."""
    dependencies: List[DependencyEdge] = Field(default_factory=list)
    domino_risk: float = Field(0.0, ge=0, le=1)
    critical_path: List[str] = Field(default_factory=list)
    independent_aims: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class DependencyMapData(BaseModel):
    """Persisted subset of a dependency analysis."""
    dependencies: List[DependencyEdge] = Field(default_factory=list)
    domino_risk: float = Field(0.0, ge=0, le=1)


# =============================================================================
# Risk
# =============================================================================

class RiskFlag(BaseModel):
    """A single risk detected in the architecture or content."""
    type: str
    severity: RiskSeverity
    message: str
    aim_id: Optional[str] = None
    recommendation: Optional[str] = None


class RiskData(BaseModel):
    """All risk flags plus the rolled-up risk level."""
    flags: List[RiskFlag] = Field(default_factory=list)
    overall_risk: RiskSeverity = "low"
    last_analyzed: datetime


# =============================================================================
# Export Gate
# =============================================================================

class ExportGateOptions(BaseModel):
    """Gate policy: soft warnings by default, hard blocking when enabled."""
    hard_gate_enabled: bool = False
    admin_override: bool = False
    minimum_score: int = Field(50, ge=0, le=100)


class ExportBanner(BaseModel):
    """Banner shown above the export button."""
    type: Literal["info", "warning", "error"]
    message: str


class ExportGateResult(BaseModel):
    """Whether an application may be exported and why not."""
    can_export: bool
    warnings: List[str] = Field(default_factory=list)
    blockers: List[str] = Field(default_factory=list)
    requires_override: bool = False
    banner: Optional[ExportBanner] = None


# =============================================================================
# API Payloads
# =============================================================================

class ArchitectureResponse(BaseModel):
    """Architecture plus cached analyses for a section."""
    section_id: str
    architecture: Optional[ArchitectureData] = None
    score: Optional[ScoreData] = None
    risk: Optional[RiskData] = None
    dependency_map: Optional[DependencyMapData] = None


class ScoreResponse(BaseModel):
    """Result of scoring a section's architecture."""
    score: ScoreData
    dependencies: DependencyAnalysis
    risk: RiskData
    recommendations: List[str]
