"""
Budget Calculator Service
Computes grant budgets against program-specific rules.

This service handles:
- Program rule tables (caps, fringe and indirect rates, indirect base)
- Personnel cost calculation with salary caps
- Direct cost roll-up and indirect (F&A) cost calculation on MTDC or TDC
- Budget compliance checks
- CSV and JSON export
"""

import csv
import io
from dataclasses import asdict, dataclass, field
from typing import Any, Optional

from backend.schemas.budgets import (
    BudgetComplianceIssue,
    BudgetState,
    BudgetTotals,
)

RULES_LAST_UPDATED = "January 2026"

DEFAULT_FRINGE_RATE = 0.30
DEFAULT_INDIRECT_RATE = 0.50

# Portion of each subcontract included in MTDC
MTDC_SUBCONTRACT_ALLOWANCE = 25000

PERSONNEL_ROLES = [
    "Principal Investigator",
    "Co-Investigator",
    "Postdoctoral Fellow",
    "Graduate Student",
    "Research Associate",
    "Research Technician",
    "Lab Manager",
    "Data Analyst",
    "Project Coordinator",
]


# =============================================================================
# Grant Rules
# =============================================================================


@dataclass(frozen=True)
class GrantRule:
    """Budget rules for one funding program."""

    id: str
    name: str
    full_name: str
    max_budget: Optional[int]
    subcontract_limit: Optional[float]
    salary_cap_per_year: Optional[int]
    fringe_rate: float
    indirect_rate: float
    indirect_base: str  # "MTDC" or "TDC"
    notes: list[str] = field(default_factory=list)
    budget_emphasis: list[str] = field(default_factory=list)
    typical_allocation: dict[str, str] = field(default_factory=dict)
    equipment_threshold: int = 5000

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


GRANT_RULES: dict[str, GrantRule] = {
    "sbir-phase1": GrantRule(
        id="sbir-phase1",
        name="SBIR Phase I",
        full_name="Small Business Innovation Research - Phase I",
        max_budget=275000,
        subcontract_limit=0.33,
        salary_cap_per_year=None,
        fringe_rate=0.30,
        indirect_rate=0.50,
        indirect_base="MTDC",
        notes=["Maximum award: $275,000", "Subcontracts ≤33% of total"],
        budget_emphasis=[
            "Feasibility demonstration",
            "Proof-of-concept R&D",
            "Minimal equipment (use existing)",
        ],
        typical_allocation={"personnel": "50-60%", "supplies": "15-25%", "subcontracts": "10-33%", "travel": "2-5%"},
    ),
    "sbir-phase2": GrantRule(
        id="sbir-phase2",
        name="SBIR Phase II",
        full_name="Small Business Innovation Research - Phase II",
        max_budget=1750000,
        subcontract_limit=0.33,
        salary_cap_per_year=None,
        fringe_rate=0.30,
        indirect_rate=0.50,
        indirect_base="MTDC",
        notes=["Maximum award: $1,750,000", "Subcontracts ≤33% of total"],
        budget_emphasis=["Full R&D and prototyping", "Commercialization planning", "Equipment for scale-up"],
        typical_allocation={"personnel": "45-55%", "equipment": "10-20%", "supplies": "15-20%", "subcontracts": "10-25%"},
    ),
    "sbir-fasttrack": GrantRule(
        id="sbir-fasttrack",
        name="SBIR Fast Track",
        full_name="Small Business Innovation Research - Fast Track (Phase I/II)",
        max_budget=2025000,
        subcontract_limit=0.33,
        salary_cap_per_year=None,
        fringe_rate=0.30,
        indirect_rate=0.50,
        indirect_base="MTDC",
        notes=["Phase I: $275K + Phase II: $1.75M", "Single application", "Must meet Phase I milestones"],
        budget_emphasis=[
            "Clear Phase I/II budget split",
            "Milestone-driven spending",
            "Commercialization-ready by end",
        ],
        typical_allocation={"personnel": "50-55%", "equipment": "8-15%", "supplies": "15-20%", "subcontracts": "15-30%"},
    ),
    "sttr-phase1": GrantRule(
        id="sttr-phase1",
        name="STTR Phase I",
        full_name="Small Business Technology Transfer - Phase I",
        max_budget=275000,
        subcontract_limit=0.40,
        salary_cap_per_year=None,
        fringe_rate=0.30,
        indirect_rate=0.50,
        indirect_base="MTDC",
        notes=["Maximum award: $275,000", "Research institution ≥30% of work", "Subcontracts can be ≤40%"],
        budget_emphasis=[
            "Strong academic collaboration",
            "Leverage university resources",
            "Technology transfer focus",
        ],
        typical_allocation={"personnel": "40-50%", "subcontracts": "30-40%", "supplies": "10-20%", "travel": "3-5%"},
    ),
    "sttr-phase2": GrantRule(
        id="sttr-phase2",
        name="STTR Phase II",
        full_name="Small Business Technology Transfer - Phase II",
        max_budget=1750000,
        subcontract_limit=0.40,
        salary_cap_per_year=None,
        fringe_rate=0.30,
        indirect_rate=0.50,
        indirect_base="MTDC",
        notes=["Maximum award: $1,750,000", "Research institution ≥30% of work"],
        budget_emphasis=[
            "Continued university partnership",
            "Scale technology from lab",
            "Bridge academic to commercial",
        ],
        typical_allocation={"personnel": "40-50%", "subcontracts": "30-40%", "equipment": "10-15%", "supplies": "10-15%"},
    ),
    "sttr-fasttrack": GrantRule(
        id="sttr-fasttrack",
        name="STTR Fast Track",
        full_name="Small Business Technology Transfer - Fast Track (Phase I/II)",
        max_budget=2025000,
        subcontract_limit=0.40,
        salary_cap_per_year=None,
        fringe_rate=0.30,
        indirect_rate=0.50,
        indirect_base="MTDC",
        notes=["Phase I: $275K + Phase II: $1.75M", "Research institution ≥30% of work"],
        budget_emphasis=[
            "Sustained research partnership",
            "Phased technology development",
            "Clear IP transfer plan",
        ],
        typical_allocation={"personnel": "40-50%", "subcontracts": "30-40%", "equipment": "8-12%", "supplies": "10-15%"},
    ),
    "r01": GrantRule(
        id="r01",
        name="NIH R01",
        full_name="NIH Research Project Grant (R01)",
        max_budget=250000,
        subcontract_limit=None,
        salary_cap_per_year=228000,
        fringe_rate=0.32,
        indirect_rate=0.55,
        indirect_base="MTDC",
        notes=["Modular: $250K/year direct costs", "Salary Cap: $228,000 (Jan 2026)"],
        budget_emphasis=[
            "Heavy personnel investment",
            "Research trainees encouraged",
            "Rigorous scientific methods",
        ],
        typical_allocation={"personnel": "60-75%", "supplies": "15-25%", "travel": "3-5%", "equipment": "0-10%"},
    ),
    "nci": GrantRule(
        id="nci",
        name="NCI R01",
        full_name="National Cancer Institute Research Project Grant (R01)",
        max_budget=250000,
        subcontract_limit=None,
        salary_cap_per_year=228000,
        fringe_rate=0.32,
        indirect_rate=0.55,
        indirect_base="MTDC",
        notes=["Modular: $250K/year direct costs", "Salary Cap: $228,000", "Cancer-specific focus"],
        budget_emphasis=[
            "Cancer research expertise",
            "Biospecimen costs common",
            "Multi-site collaborations valued",
        ],
        typical_allocation={"personnel": "60-70%", "supplies": "15-25%", "travel": "3-5%", "subcontracts": "5-15%"},
    ),
    "dod-sbir-phase1": GrantRule(
        id="dod-sbir-phase1",
        name="DOD SBIR Phase I",
        full_name="Department of Defense SBIR - Phase I",
        max_budget=314363,
        subcontract_limit=0.33,
        salary_cap_per_year=None,
        fringe_rate=0.30,
        indirect_rate=0.45,
        indirect_base="MTDC",
        notes=["Maximum award: $314,363", "Lower indirect rate (45%)", "Check dodsbirsttr.mil"],
        budget_emphasis=[
            "Defense application focus",
            "Prototype orientation",
            "Security clearance costs if needed",
        ],
        typical_allocation={"personnel": "50-60%", "supplies": "15-25%", "travel": "5-8%", "equipment": "5-15%"},
    ),
    "dod-sbir-phase2": GrantRule(
        id="dod-sbir-phase2",
        name="DOD SBIR Phase II",
        full_name="Department of Defense SBIR - Phase II",
        max_budget=1800000,
        subcontract_limit=0.33,
        salary_cap_per_year=None,
        fringe_rate=0.30,
        indirect_rate=0.45,
        indirect_base="MTDC",
        notes=["Maximum award: $1,800,000", "Lower indirect rate (45%)", "Phase III transition planning"],
        budget_emphasis=["Prototype to product", "Field testing costs", "Manufacturing readiness"],
        typical_allocation={"personnel": "45-55%", "equipment": "15-25%", "supplies": "10-20%", "travel": "5-10%"},
    ),
    "cprit": GrantRule(
        id="cprit",
        name="CPRIT",
        full_name="Cancer Prevention Research Institute of Texas",
        max_budget=None,
        subcontract_limit=None,
        salary_cap_per_year=None,
        fringe_rate=0.28,
        indirect_rate=0.05,
        indirect_base="TDC",
        notes=["Texas institutions only", "Indirect capped at 5%", "No budget ceiling"],
        budget_emphasis=[
            "Maximize direct costs (low indirect)",
            "Texas-based jobs prioritized",
            "Cancer prevention/research focus",
        ],
        typical_allocation={"personnel": "65-80%", "supplies": "10-20%", "equipment": "5-15%", "travel": "2-5%"},
    ),
}

# Notes shown when a user switches an in-progress budget to another program
GRANT_CONVERSION_NOTES: dict[str, dict[str, list[str]]] = {
    "sbir-phase1": {
        "dod-sbir-phase1": [
            "Budget limit increases to $314,363",
            "Indirect rate decreases to 45%",
            "Review DOD-specific requirements",
        ],
        "sttr-phase1": [
            "Subcontract limit increases to 40%",
            "Research institution must perform 30% of work",
        ],
    },
    "dod-sbir-phase1": {
        "sbir-phase1": [
            "Budget limit decreases to $275,000",
            "Indirect rate increases to 50%",
            "NIH-specific formatting required",
        ],
    },
    "sttr-phase1": {
        "sbir-phase1": [
            "Subcontract limit decreases to 33%",
            "No research institution requirement",
        ],
    },
}


def get_grant_rule(grant_type: str) -> Optional[GrantRule]:
    """Return the rule table for a program, or None when unknown."""
    return GRANT_RULES.get(grant_type)


def list_grant_rules() -> list[GrantRule]:
    return list(GRANT_RULES.values())


def get_conversion_notes(from_type: str, to_type: str) -> list[str]:
    return GRANT_CONVERSION_NOTES.get(from_type, {}).get(to_type, [])


# =============================================================================
# Calculations
# =============================================================================


def format_currency(amount: float) -> str:
    """Format dollars with thousands separators and no cents."""
    return f"${amount:,.0f}"


def calculate_personnel_cost(
    base_salary: float,
    effort_percent: float,
    fringe_rate: float,
    months: float,
) -> dict[str, float]:
    """
    Cost of one person for the budget period.

    Args:
        base_salary: Annual salary (already capped if the program has a cap)
        effort_percent: Percent effort on the project (0-100)
        fringe_rate: Fringe benefit rate as a fraction
        months: Months on the project

    Returns:
        Dict with salary, fringe and total
    """
    salary = (base_salary * effort_percent / 100) * (months / 12)
    fringe = salary * fringe_rate
    return {"salary": salary, "fringe": fringe, "total": salary + fringe}


def resolve_rates(state: BudgetState) -> tuple[float, float]:
    """Fringe and indirect rates: custom override, then program rule, then defaults."""
    rule = get_grant_rule(state.grant_type)
    fringe_rate = state.custom_fringe_rate
    if fringe_rate is None:
        fringe_rate = rule.fringe_rate if rule else DEFAULT_FRINGE_RATE
    indirect_rate = state.custom_indirect_rate
    if indirect_rate is None:
        indirect_rate = rule.indirect_rate if rule else DEFAULT_INDIRECT_RATE
    return fringe_rate, indirect_rate


def _category_total(state: BudgetState, category: str) -> float:
    return sum(item.amount for item in state.direct_costs if item.category == category)


def calculate_budget_totals(state: BudgetState) -> BudgetTotals:
    """
    Roll up personnel and direct costs and apply indirect costs.

    For MTDC programs the indirect base excludes equipment and the portion
    of subcontract spending above $25,000. TDC programs (and unknown
    programs) apply the indirect rate to total direct costs.
    """
    rule = get_grant_rule(state.grant_type)
    fringe_rate, indirect_rate = resolve_rates(state)

    personnel_salaries = 0.0
    personnel_fringe = 0.0
    for person in state.personnel:
        salary = person.base_salary
        if rule and rule.salary_cap_per_year:
            salary = min(salary, rule.salary_cap_per_year)
        cost = calculate_personnel_cost(salary, person.effort_percent, fringe_rate, person.months)
        personnel_salaries += cost["salary"]
        personnel_fringe += cost["fringe"]

    personnel_total = personnel_salaries + personnel_fringe
    equipment = _category_total(state, "equipment")
    supplies = _category_total(state, "supplies")
    travel = _category_total(state, "travel")
    consultants = _category_total(state, "consultant")
    subcontracts = _category_total(state, "subcontract")
    other_direct = _category_total(state, "other")

    total_direct = personnel_total + equipment + supplies + travel + consultants + subcontracts + other_direct

    indirect_base = total_direct
    if rule and rule.indirect_base == "MTDC":
        indirect_base -= equipment
        indirect_base -= max(0.0, subcontracts - MTDC_SUBCONTRACT_ALLOWANCE)

    indirect_costs = indirect_base * indirect_rate

    return BudgetTotals(
        personnel_salaries=personnel_salaries,
        personnel_fringe=personnel_fringe,
        personnel_total=personnel_total,
        equipment=equipment,
        supplies=supplies,
        travel=travel,
        consultants=consultants,
        subcontracts=subcontracts,
        other_direct=other_direct,
        total_direct_costs=total_direct,
        indirect_base=indirect_base,
        indirect_rate=indirect_rate,
        indirect_costs=indirect_costs,
        total_budget=total_direct + indirect_costs,
    )


def validate_budget_compliance(
    state: BudgetState,
    totals: BudgetTotals,
) -> list[BudgetComplianceIssue]:
    """Check a computed budget against its program's caps and limits."""
    rule = get_grant_rule(state.grant_type)
    if not rule:
        return []

    issues: list[BudgetComplianceIssue] = []

    if rule.max_budget and totals.total_budget > rule.max_budget:
        issues.append(
            BudgetComplianceIssue(
                type="error",
                category="Budget Cap",
                message=(
                    f"Total budget ({format_currency(totals.total_budget)}) exceeds maximum "
                    f"allowed ({format_currency(rule.max_budget)})"
                ),
            )
        )

    if rule.subcontract_limit and totals.subcontracts > 0 and totals.total_budget > 0:
        subcontract_share = totals.subcontracts / totals.total_budget
        if subcontract_share > rule.subcontract_limit:
            issues.append(
                BudgetComplianceIssue(
                    type="error",
                    category="Subcontract Limit",
                    message=(
                        f"Subcontracts ({subcontract_share * 100:.1f}%) exceed "
                        f"{rule.subcontract_limit * 100:.0f}% limit"
                    ),
                )
            )

    if rule.salary_cap_per_year:
        for person in state.personnel:
            if person.base_salary > rule.salary_cap_per_year:
                issues.append(
                    BudgetComplianceIssue(
                        type="warning",
                        category="Salary Cap",
                        message=f"{person.name}'s salary exceeds NIH cap. Budget will use capped amount.",
                        field=person.id,
                    )
                )

    if not state.personnel:
        issues.append(
            BudgetComplianceIssue(
                type="warning",
                category="Personnel",
                message="No personnel added to budget",
            )
        )

    return issues


# =============================================================================
# Export
# =============================================================================


def budget_to_csv(totals: BudgetTotals) -> str:
    """Render the budget summary as CSV (Category, Description, Amount)."""
    rows = [
        ["Category", "Description", "Amount"],
        ["Personnel - Salaries", "", f"{totals.personnel_salaries:.2f}"],
        ["Personnel - Fringe", "", f"{totals.personnel_fringe:.2f}"],
        ["Equipment", "", f"{totals.equipment:.2f}"],
        ["Supplies", "", f"{totals.supplies:.2f}"],
        ["Travel", "", f"{totals.travel:.2f}"],
        ["Consultants", "", f"{totals.consultants:.2f}"],
        ["Subcontracts", "", f"{totals.subcontracts:.2f}"],
        ["Other Direct", "", f"{totals.other_direct:.2f}"],
        ["", "Total Direct Costs", f"{totals.total_direct_costs:.2f}"],
        ["Indirect Costs (F&A)", "", f"{totals.indirect_costs:.2f}"],
        ["", "GRAND TOTAL", f"{totals.total_budget:.2f}"],
    ]
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerows(rows)
    return buffer.getvalue()


def budget_to_export_json(
    state: BudgetState,
    totals: BudgetTotals,
    issues: list[BudgetComplianceIssue],
) -> dict[str, Any]:
    """Full budget document for JSON download."""
    rule = get_grant_rule(state.grant_type)
    errors = [i for i in issues if i.type == "error"]
    warnings = [i for i in issues if i.type == "warning"]
    return {
        "project": {
            "title": state.project_title,
            "grant_type": state.grant_type,
            "grant_name": rule.full_name if rule else None,
            "duration": state.duration,
        },
        "personnel": [p.model_dump() for p in state.personnel],
        "direct_costs": [c.model_dump() for c in state.direct_costs],
        "totals": totals.model_dump(),
        "compliance": {
            "errors": len(errors),
            "warnings": len(warnings),
            "issues": [i.model_dump() for i in issues],
        },
    }
