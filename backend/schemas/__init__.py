"""
GrantIQ Pydantic Schemas
Request/Response models for API endpoints.
"""
from backend.schemas.applications import (
    ApplicationCreate,
    ApplicationResponse,
    ApplicationUpdate,
    SectionResponse,
    SectionUpdate,
)
from backend.schemas.architecture import (
    ArchitectureData,
    ExportGateOptions,
    ExportGateResult,
    RiskData,
    ScoreData,
)
from backend.schemas.auth import (
    Token,
    TokenData,
    UserCreate,
    UserLogin,
    UserResponse,
)
from backend.schemas.budgets import (
    BudgetState,
    BudgetTotals,
)

__all__ = [
    # Applications
    "ApplicationCreate",
    "ApplicationResponse",
    "ApplicationUpdate",
    "SectionResponse",
    "SectionUpdate",
    # Architecture
    "ArchitectureData",
    "ExportGateOptions",
    "ExportGateResult",
    "RiskData",
    "ScoreData",
    # Auth
    "Token",
    "TokenData",
    "UserCreate",
    "UserLogin",
    "UserResponse",
    # Budgets
    "BudgetState",
    "BudgetTotals",
]
