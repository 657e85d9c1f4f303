"""
Backend services for grant drafting, compliance and external lookups.
"""

from backend.services.ai_writing import (
    AIWritingService,
    ai_writing_service,
)
from backend.services.budget_calculator import (
    calculate_budget_totals,
    get_grant_rule,
    validate_budget_compliance,
)
from backend.services.compliance import (
    validate_application,
    validate_section,
)
from backend.services.export_gate import (
    check_export_gate,
    get_export_banner,
)
from backend.services.grant_builder import (
    GrantBuilderService,
    grant_builder_service,
)
from backend.services.llm_client import (
    LLMClient,
    LLMError,
    get_llm_client,
)
from backend.services.mechanisms import (
    get_mechanism,
    list_mechanisms,
)
from backend.services.references import ReferenceVerifier

__all__ = [
    # AI writing
    "AIWritingService",
    "ai_writing_service",
    # Budgets
    "calculate_budget_totals",
    "get_grant_rule",
    "validate_budget_compliance",
    # Compliance
    "validate_application",
    "validate_section",
    # Export gate
    "check_export_gate",
    "get_export_banner",
    # Grant builder
    "GrantBuilderService",
    "grant_builder_service",
    # LLM
    "LLMClient",
    "LLMError",
    "get_llm_client",
    # Mechanisms
    "get_mechanism",
    "list_mechanisms",
    # References
    "ReferenceVerifier",
]
