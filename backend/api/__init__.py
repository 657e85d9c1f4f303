"""
GrantIQ API Routers
FastAPI router modules for the grant application assistant.
"""
from backend.api import (
    ai_critique,
    analysis,
    applications,
    attachments,
    auth,
    budgets,
    grant_builder,
    grants,
    health,
    letters,
    mechanisms,
    references,
    regulatory,
    resubmission,
    review,
    sections,
)

__all__ = [
    "ai_critique",
    "analysis",
    "applications",
    "attachments",
    "auth",
    "budgets",
    "grant_builder",
    "grants",
    "health",
    "letters",
    "mechanisms",
    "references",
    "regulatory",
    "resubmission",
    "review",
    "sections",
]
