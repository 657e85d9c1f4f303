"""
Budget API Endpoints
Grant rule tables, budget calculation and compliance, export and stored budget lines.
"""

import json
import logging
from typing import List, Literal
from uuid import UUID

from fastapi import APIRouter, Query, Response
from sqlalchemy import delete, select

from backend.api.deps import AsyncSessionDep, CurrentUser
from backend.api.utils.auth import get_owned_application
from backend.core.exceptions import ExternalServiceError, NotFoundError
from backend.models import BudgetItem
from backend.schemas.budgets import (
    BudgetCalculationResponse,
    BudgetItemResponse,
    BudgetItemsReplaceRequest,
    BudgetJustificationRequest,
    BudgetJustificationResponse,
    BudgetState,
    ConversionNotesResponse,
    GrantRuleListResponse,
    GrantRuleResponse,
)
from backend.services.ai_writing import ai_writing_service
from backend.services.budget_calculator import (
    PERSONNEL_ROLES,
    RULES_LAST_UPDATED,
    budget_to_csv,
    budget_to_export_json,
    calculate_budget_totals,
    get_conversion_notes,
    get_grant_rule,
    list_grant_rules,
    validate_budget_compliance,
)
from backend.services.export import export_filename
from backend.services.llm_client import LLMError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/budgets", tags=["Budgets"])


# =============================================================================
# Rule Tables
# =============================================================================


@router.get("/rules", response_model=GrantRuleListResponse)
async def list_rules() -> GrantRuleListResponse:
    """Budget caps, fringe/indirect rates and notes for every program."""
    return GrantRuleListResponse(
        rules=[GrantRuleResponse(**rule.to_dict()) for rule in list_grant_rules()],
        personnel_roles=PERSONNEL_ROLES,
        last_updated=RULES_LAST_UPDATED,
    )


@router.get("/rules/{grant_type}", response_model=GrantRuleResponse)
async def get_rule(grant_type: str) -> GrantRuleResponse:
    rule = get_grant_rule(grant_type)
    if rule is None:
        raise NotFoundError("Grant rule", grant_type)
    return GrantRuleResponse(**rule.to_dict())


@router.get("/conversion", response_model=ConversionNotesResponse)
async def conversion_notes(
    from_type: str = Query(..., alias="from"),
    to_type: str = Query(..., alias="to"),
) -> ConversionNotesResponse:
    """What changes when converting a budget from one program to another."""
    return ConversionNotesResponse(
        from_grant_type=from_type,
        to_grant_type=to_type,
        notes=get_conversion_notes(from_type, to_type),
    )


# =============================================================================
# Calculation & Export
# =============================================================================


@router.post("/calculate", response_model=BudgetCalculationResponse)
async def calculate(state: BudgetState) -> BudgetCalculationResponse:
    """
    Compute personnel, direct, indirect and total costs, then check them
    against the program's caps.
    """
    totals = calculate_budget_totals(state)
    issues = validate_budget_compliance(state, totals)
    rule = get_grant_rule(state.grant_type)

    return BudgetCalculationResponse(
        totals=totals,
        issues=issues,
        is_compliant=not any(i.type == "error" for i in issues),
        rule=GrantRuleResponse(**rule.to_dict()) if rule else None,
    )


@router.post("/export")
async def export_budget(
    state: BudgetState,
    format: Literal["csv", "json"] = Query("csv"),
) -> Response:
    """Download the budget summary as CSV or the full budget as JSON."""
    totals = calculate_budget_totals(state)
    filename = export_filename(state.project_title, format, suffix="_budget", default="budget")

    if format == "json":
        issues = validate_budget_compliance(state, totals)
        content = json.dumps(budget_to_export_json(state, totals, issues), indent=2)
        media_type = "application/json"
    else:
        content = budget_to_csv(totals)
        media_type = "text/csv"

    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# =============================================================================
# Stored Budget Lines
# =============================================================================


@router.get("/items", response_model=List[BudgetItemResponse])
async def list_items(
    db: AsyncSessionDep,
    current_user: CurrentUser,
    application_id: UUID = Query(...),
) -> List[BudgetItemResponse]:
    """Budget lines stored for an application, by fiscal year."""
    await get_owned_application(db, application_id, current_user)
    result = await db.execute(
        select(BudgetItem)
        .where(BudgetItem.application_id == application_id)
        .order_by(BudgetItem.fiscal_year, BudgetItem.created_at)
    )
    return [BudgetItemResponse.model_validate(item) for item in result.scalars().all()]


@router.post("/items", response_model=List[BudgetItemResponse])
async def replace_items(
    request: BudgetItemsReplaceRequest,
    db: AsyncSessionDep,
    current_user: CurrentUser,
) -> List[BudgetItemResponse]:
    """Replace every stored budget line for the application."""
    await get_owned_application(db, request.application_id, current_user)

    await db.execute(delete(BudgetItem).where(BudgetItem.application_id == request.application_id))
    items = [
        BudgetItem(application_id=request.application_id, **item.model_dump())
        for item in request.items
    ]
    db.add_all(items)
    await db.flush()

    logger.info(f"Stored {len(items)} budget items for application {request.application_id}")
    return [BudgetItemResponse.model_validate(item) for item in items]


@router.post("/justify", response_model=BudgetJustificationResponse)
async def justify(
    request: BudgetJustificationRequest,
    current_user: CurrentUser,
) -> BudgetJustificationResponse:
    """Draft a short justification for one budget line."""
    try:
        justification = await ai_writing_service.generate_budget_justification(
            request.category,
            request.description,
            request.amount,
            request.grant_type,
        )
    except LLMError as e:
        raise ExternalServiceError("Budget justification", str(e)) from e

    return BudgetJustificationResponse(justification=justification)
