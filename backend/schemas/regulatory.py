"""
Regulatory Schemas
Human subjects and vertebrate animals sections and their checklists.
"""
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from backend.schemas.compliance import ValidationIssue


# =============================================================================
# Human Subjects
# =============================================================================

class SexCounts(BaseModel):
    males: int = Field(0, ge=0)
    females: int = Field(0, ge=0)


class EthnicityCounts(BaseModel):
    hispanic: int = Field(0, ge=0)
    non_hispanic: int = Field(0, ge=0)


class InclusionPlan(BaseModel):
    """Planned enrollment; each breakdown should total the target."""
    target_enrollment: int = Field(0, ge=0)
    sex: SexCounts = Field(default_factory=SexCounts)
    race: Dict[str, int] = Field(default_factory=dict)
    ethnicity: EthnicityCounts = Field(default_factory=EthnicityCounts)


class HumanSubjectsData(BaseModel):
    involves_human_subjects: Optional[bool] = None
    is_clinical_trial: Optional[bool] = None
    exemption_category: str = ""
    risk_level: Optional[Literal["minimal", "greater_than_minimal"]] = None
    vulnerable_populations: List[str] = Field(default_factory=list)
    inclusion_plan: InclusionPlan = Field(default_factory=InclusionPlan)
    protection_plan: str = ""
    data_privacy_plan: str = ""
    informed_consent_process: str = ""
    irb_status: Literal["approved", "pending", "exempt", "not_submitted"] = "not_submitted"
    irb_protocol_number: Optional[str] = None


# =============================================================================
# Vertebrate Animals
# =============================================================================

class PainCategories(BaseModel):
    """USDA pain categories: C no pain, D pain with relief, E pain without relief."""
    category_c: int = Field(0, ge=0)
    category_d: int = Field(0, ge=0)
    category_e: int = Field(0, ge=0)

    @property
    def total(self) -> int:
        return self.category_c + self.category_d + self.category_e


class VertebrateAnimalsData(BaseModel):
    involves_animals: Optional[bool] = None
    species: List[str] = Field(default_factory=list)
    total_number: int = Field(0, ge=0)
    justification: str = ""
    veterinary_care: str = ""
    procedures_description: str = ""
    pain_categories: PainCategories = Field(default_factory=PainCategories)
    euthanasia_method: str = ""
    alternatives_considered: str = ""
    iacuc_status: Literal["approved", "pending", "not_submitted"] = "not_submitted"
    iacuc_protocol_number: Optional[str] = None


# =============================================================================
# Checklist Results
# =============================================================================

class RegulatoryChecklistItem(BaseModel):
    item_id: str
    title: str
    required: bool = True
    weight: float = 1.0
    completed: bool = False


class RegulatoryReview(BaseModel):
    """Checklist progress and findings for one regulatory section."""
    applicable: Optional[bool]
    items: List[RegulatoryChecklistItem]
    progress_percent: float
    issues: List[ValidationIssue] = Field(default_factory=list)
    ready: bool


class ExemptionCategory(BaseModel):
    id: str
    name: str
    description: str


class RegulatoryOptions(BaseModel):
    exemption_categories: List[ExemptionCategory]
    vulnerable_populations: List[str]
