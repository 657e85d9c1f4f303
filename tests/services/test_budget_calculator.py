"""
Tests for Budget Calculator Service.
Tests rule lookups, cost roll-ups, MTDC handling, compliance and export.
"""
import csv
import io

import pytest

from backend.schemas.budgets import BudgetState, DirectCostItem, PersonnelItem
from backend.services.budget_calculator import (
    budget_to_csv,
    budget_to_export_json,
    calculate_budget_totals,
    calculate_personnel_cost,
    format_currency,
    get_conversion_notes,
    get_grant_rule,
    list_grant_rules,
    resolve_rates,
    validate_budget_compliance,
)


@pytest.fixture
def phase1_state() -> BudgetState:
    """SBIR Phase I budget with equipment and a subcontract above the MTDC allowance."""
    return BudgetState(
        project_title="Rapid Sepsis Assay",
        grant_type="sbir-phase1",
        personnel=[
            PersonnelItem(id="p1", name="Dr. Lee", role="PI", base_salary=100000, effort_percent=50, months=12)
        ],
        direct_costs=[
            DirectCostItem(category="equipment", description="Plate reader", amount=10000),
            DirectCostItem(category="supplies", description="Reagents", amount=20000),
            DirectCostItem(category="subcontract", description="University lab", amount=40000),
        ],
    )


class TestGrantRules:
    """Tests for the rule tables."""

    def test_known_rule(self):
        rule = get_grant_rule("r01")

        assert rule is not None
        assert rule.salary_cap_per_year == 228000
        assert rule.fringe_rate == 0.32
        assert rule.indirect_base == "MTDC"

    def test_unknown_rule_returns_none(self):
        assert get_grant_rule("not-a-program") is None

    def test_rule_ids_are_unique(self):
        ids = [rule.id for rule in list_grant_rules()]
        assert len(ids) == len(set(ids))

    def test_conversion_notes(self):
        notes = get_conversion_notes("sbir-phase1", "dod-sbir-phase1")
        assert "Indirect rate decreases to 45%" in notes

    def test_conversion_notes_unknown_pair(self):
        assert get_conversion_notes("r01", "cprit") == []


class TestPersonnelCost:
    """Tests for per-person cost."""

    def test_half_effort_full_year(self):
        cost = calculate_personnel_cost(100000, 50, 0.30, 12)

        assert cost["salary"] == pytest.approx(50000)
        assert cost["fringe"] == pytest.approx(15000)
        assert cost["total"] == pytest.approx(65000)

    def test_partial_year(self):
        cost = calculate_personnel_cost(120000, 100, 0.0, 6)
        assert cost["total"] == pytest.approx(60000)


class TestResolveRates:
    """Tests for fringe/indirect rate resolution."""

    def test_custom_rates_win(self):
        state = BudgetState(grant_type="r01", custom_fringe_rate=0.2, custom_indirect_rate=0.1)
        assert resolve_rates(state) == (0.2, 0.1)

    def test_rule_rates(self):
        assert resolve_rates(BudgetState(grant_type="cprit")) == (0.28, 0.05)

    def test_defaults_for_unknown_program(self):
        assert resolve_rates(BudgetState(grant_type="foundation")) == (0.30, 0.50)

    def test_zero_custom_rate_is_respected(self):
        """A custom rate of 0 is a real override, not a missing value."""
        state = BudgetState(grant_type="r01", custom_fringe_rate=0.0)
        assert resolve_rates(state)[0] == 0.0


class TestCalculateBudgetTotals:
    """Tests for budget roll-up."""

    def test_mtdc_excludes_equipment_and_large_subcontracts(self, phase1_state):
        totals = calculate_budget_totals(phase1_state)

        assert totals.personnel_total == pytest.approx(65000)
        assert totals.total_direct_costs == pytest.approx(135000)
        # 135000 - 10000 equipment - (40000 - 25000) subcontract excess
        assert totals.indirect_base == pytest.approx(110000)
        assert totals.indirect_costs == pytest.approx(55000)
        assert totals.total_budget == pytest.approx(190000)

    def test_tdc_for_unknown_program(self):
        state = BudgetState(
            grant_type="foundation",
            custom_fringe_rate=0.2,
            custom_indirect_rate=0.1,
            personnel=[PersonnelItem(name="Tech", base_salary=100000, effort_percent=100, months=6)],
            direct_costs=[
                DirectCostItem(category="equipment", amount=5000),
                DirectCostItem(category="supplies", amount=1000),
            ],
        )
        totals = calculate_budget_totals(state)

        assert totals.personnel_total == pytest.approx(60000)
        assert totals.indirect_base == pytest.approx(66000)
        assert totals.indirect_costs == pytest.approx(6600)
        assert totals.total_budget == pytest.approx(72600)

    def test_salary_cap_applied(self):
        state = BudgetState(
            grant_type="r01",
            personnel=[PersonnelItem(name="PI", base_salary=300000, effort_percent=100, months=12)],
        )
        totals = calculate_budget_totals(state)

        assert totals.personnel_salaries == pytest.approx(228000)
        assert totals.personnel_fringe == pytest.approx(228000 * 0.32)

    def test_empty_budget(self):
        totals = calculate_budget_totals(BudgetState(grant_type="sbir-phase1"))

        assert totals.total_budget == 0
        assert totals.indirect_rate == 0.50


class TestBudgetCompliance:
    """Tests for budget compliance checks."""

    def test_compliant_budget(self, phase1_state):
        totals = calculate_budget_totals(phase1_state)
        assert validate_budget_compliance(phase1_state, totals) == []

    def test_over_cap_and_salary_cap(self):
        state = BudgetState(
            grant_type="r01",
            personnel=[PersonnelItem(id="pi", name="Dr. Cap", base_salary=300000, effort_percent=100)],
        )
        issues = validate_budget_compliance(state, calculate_budget_totals(state))
        categories = {issue.category: issue for issue in issues}

        assert categories["Budget Cap"].type == "error"
        assert "exceeds maximum allowed ($250,000)" in categories["Budget Cap"].message
        assert categories["Salary Cap"].type == "warning"
        assert categories["Salary Cap"].field == "pi"

    def test_subcontract_limit(self):
        state = BudgetState(
            grant_type="sbir-phase1",
            direct_costs=[DirectCostItem(category="subcontract", amount=100000)],
        )
        issues = validate_budget_compliance(state, calculate_budget_totals(state))
        messages = [i.message for i in issues]

        assert any("exceed 33% limit" in m for m in messages)
        assert "No personnel added to budget" in messages

    def test_unknown_program_has_no_rules(self):
        state = BudgetState(grant_type="foundation")
        assert validate_budget_compliance(state, calculate_budget_totals(state)) == []


class TestBudgetExport:
    """Tests for CSV/JSON export."""

    def test_format_currency(self):
        assert format_currency(1234567.89) == "$1,234,568"

    def test_csv_rows(self, phase1_state):
        rows = list(csv.reader(io.StringIO(budget_to_csv(calculate_budget_totals(phase1_state)))))

        assert rows[0] == ["Category", "Description", "Amount"]
        assert ["Equipment", "", "10000.00"] in rows
        assert rows[-1] == ["", "GRAND TOTAL", "190000.00"]

    def test_json_document(self, phase1_state):
        totals = calculate_budget_totals(phase1_state)
        issues = validate_budget_compliance(phase1_state, totals)
        document = budget_to_export_json(phase1_state, totals, issues)

        assert document["project"]["grant_name"] == "Small Business Innovation Research - Phase I"
        assert len(document["direct_costs"]) == 3
        assert document["compliance"] == {"errors": 0, "warnings": 0, "issues": []}
