"""
Budget Schemas
Pydantic models for the budget wizard API.
"""
from datetime import datetime
from typing import Dict, List, Literal, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


DirectCostCategory = Literal["equipment", "supplies", "travel", "consultant", "subcontract", "other"]


# =============================================================================
# Grant Rule Schemas
# =============================================================================

class GrantRuleResponse(BaseModel):
    """Budget rules for a funding program."""
    id: str
    name: str
    full_name: str
    max_budget: Optional[int] = None
    subcontract_limit: Optional[float] = None
    salary_cap_per_year: Optional[int] = None
    fringe_rate: float
    indirect_rate: float
    indirect_base: Literal["MTDC", "TDC"]
    equipment_threshold: int
    notes: List[str]
    budget_emphasis: List[str]
    typical_allocation: Dict[str, str]


class GrantRuleListResponse(BaseModel):
    """All budget rule tables."""
    rules: List[GrantRuleResponse]
    personnel_roles: List[str]
    last_updated: str


class ConversionNotesResponse(BaseModel):
    """What changes when a budget is moved from one program to another."""
    from_grant_type: str
    to_grant_type: str
    notes: List[str]


# =============================================================================
# Budget State Schemas
# =============================================================================

class PersonnelItem(BaseModel):
    """One person on the budget."""
    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str = ""
    role: str = ""
    base_salary: float = Field(0, ge=0, description="Annual institutional base salary")
    effort_percent: float = Field(100, ge=0, le=100)
    fringe_rate: Optional[float] = Field(
        None, ge=0, le=1, description="Informational; the program or custom fringe rate is applied"
    )
    months: float = Field(12, ge=0, le=60)


class DirectCostItem(BaseModel):
    """A non-personnel direct cost line."""
    id: str = Field(default_factory=lambda: str(uuid4()))
    category: DirectCostCategory
    description: str = ""
    amount: float = Field(0, ge=0)
    justification: str = ""


class BudgetState(BaseModel):
    """Full wizard state; totals are recomputed from this on every request."""
    project_title: str = ""
    grant_type: str = ""
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    duration: int = Field(12, ge=1, le=60, description="Project duration in months")
    personnel: List[PersonnelItem] = Field(default_factory=list)
    direct_costs: List[DirectCostItem] = Field(default_factory=list)
    custom_fringe_rate: Optional[float] = Field(None, ge=0, le=1)
    custom_indirect_rate: Optional[float] = Field(None, ge=0, le=1)


class BudgetTotals(BaseModel):
    """Computed budget totals."""
    personnel_salaries: float = 0.0
    personnel_fringe: float = 0.0
    personnel_total: float = 0.0
    equipment: float = 0.0
    supplies: float = 0.0
    travel: float = 0.0
    consultants: float = 0.0
    subcontracts: float = 0.0
    other_direct: float = 0.0
    total_direct_costs: float = 0.0
    indirect_base: float = 0.0
    indirect_rate: float = 0.0
    indirect_costs: float = 0.0
    total_budget: float = 0.0


class BudgetComplianceIssue(BaseModel):
    """A rule violation (error) or advisory (warning) for the budget."""
    type: Literal["error", "warning"]
    category: str
    message: str
    field: Optional[str] = None


class BudgetCalculationResponse(BaseModel):
    """Totals plus compliance findings for a budget state."""
    totals: BudgetTotals
    issues: List[BudgetComplianceIssue]
    is_compliant: bool
    rule: Optional[GrantRuleResponse] = None


# =============================================================================
# Justification Schemas
# =============================================================================

class BudgetJustificationRequest(BaseModel):
    """Request an LLM-written justification for one budget line."""
    category: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    amount: float = Field(..., ge=0)
    grant_type: Optional[str] = None


class BudgetJustificationResponse(BaseModel):
    """Generated justification text."""
    justification: str


# =============================================================================
# Persisted Budget Items
# =============================================================================

class BudgetItemInput(BaseModel):
    """A budget line to persist against an application."""
    fiscal_year: int = Field(1, ge=1, le=10)
    category: str
    description: str = ""
    amount: float = Field(0, ge=0)
    justification: Optional[str] = None


class BudgetItemsReplaceRequest(BaseModel):
    """Replace every stored budget line for an application."""
    application_id: UUID
    items: List[BudgetItemInput]


class BudgetItemResponse(BudgetItemInput):
    """Stored budget line."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    application_id: UUID
    created_at: datetime
