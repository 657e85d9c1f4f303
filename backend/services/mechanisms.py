"""
NIH Mechanism Rule Tables
Static configuration for SBIR/STTR submission mechanisms.

This module holds:
- Section layouts and page limits per mechanism
- Required and optional attachments per mechanism
- Standalone NIH section page limits and required headings
- NIH formatting requirements
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Optional


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class SectionConfig:
    """Layout rules for one narrative section."""

    type: str
    title: str
    page_limit: int
    description: str
    required_headings: tuple[str, ...] = ()


@dataclass(frozen=True)
class AttachmentConfig:
    """An attachment the application package must (or may) include."""

    name: str
    required: bool
    description: str


@dataclass(frozen=True)
class MechanismConfig:
    """Everything needed to seed a new application for a mechanism."""

    id: str
    name: str
    description: str
    sections: tuple[SectionConfig, ...]
    attachments: tuple[AttachmentConfig, ...] = field(default_factory=tuple)

    @property
    def program(self) -> str:
        """'STTR' for technology transfer mechanisms, otherwise 'SBIR'."""
        return "STTR" if self.id in STTR_MECHANISMS else "SBIR"

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["program"] = self.program
        return data


# =============================================================================
# Attachments
# =============================================================================

BASE_ATTACHMENTS: tuple[AttachmentConfig, ...] = (
    AttachmentConfig("PHS 398 Cover Page Supplement", True, "Cover page with project information"),
    AttachmentConfig("Project Summary/Abstract", True, "30 lines max, no proprietary info"),
    AttachmentConfig("Project Narrative", True, "2-3 sentences for public health relevance"),
    AttachmentConfig("Facilities & Other Resources", True, "Describe available facilities"),
    AttachmentConfig("Equipment", True, "List major equipment"),
    AttachmentConfig("Biographical Sketch", True, "For all senior/key personnel"),
    AttachmentConfig("Budget Justification", True, "Detailed budget narrative"),
    AttachmentConfig("Authentication of Key Resources", False, "If applicable"),
    AttachmentConfig("Letters of Support", False, "From collaborators/consultants"),
)

SBIR_ATTACHMENTS = BASE_ATTACHMENTS + (
    AttachmentConfig("SBIR/STTR Information", True, "Company info and certifications"),
)

STTR_ATTACHMENTS = SBIR_ATTACHMENTS + (
    AttachmentConfig(
        "Research Institution Letter",
        True,
        "Commitment letter from research institution",
    ),
)


# =============================================================================
# Sections
# =============================================================================

RESEARCH_STRATEGY_HEADINGS = ("Significance", "Innovation", "Approach")


def _specific_aims() -> SectionConfig:
    return SectionConfig(
        type="specific_aims",
        title="Specific Aims",
        page_limit=1,
        description="State objectives and specific aims",
    )


def _research_strategy(page_limit: int) -> SectionConfig:
    return SectionConfig(
        type="research_strategy",
        title="Research Strategy",
        page_limit=page_limit,
        description="Significance, Innovation, and Approach sections",
        required_headings=RESEARCH_STRATEGY_HEADINGS,
    )


def _commercialization_plan() -> SectionConfig:
    return SectionConfig(
        type="commercialization_plan",
        title="Commercialization Plan",
        page_limit=12,
        description="Market analysis and commercialization strategy",
    )


def _progress_report(description: str) -> SectionConfig:
    return SectionConfig(
        type="progress_report",
        title="Progress Report",
        page_limit=6,
        description=description,
    )


# =============================================================================
# Mechanisms
# =============================================================================

STTR_MECHANISMS = frozenset({"R41", "R42", "STTR_FAST_TRACK"})

MECHANISMS: dict[str, MechanismConfig] = {
    "R43": MechanismConfig(
        id="R43",
        name="SBIR Phase I (R43)",
        description="Small Business Innovation Research Phase I - Feasibility study up to $293,697 total costs",
        sections=(_specific_aims(), _research_strategy(6), _commercialization_plan()),
        attachments=SBIR_ATTACHMENTS,
    ),
    "R44": MechanismConfig(
        id="R44",
        name="SBIR Phase II (R44)",
        description="Small Business Innovation Research Phase II - Full R&D up to $1,956,460 total costs",
        sections=(
            _specific_aims(),
            _research_strategy(12),
            _commercialization_plan(),
            _progress_report("Phase I accomplishments and milestones"),
        ),
        attachments=SBIR_ATTACHMENTS,
    ),
    "SBIR_FAST_TRACK": MechanismConfig(
        id="SBIR_FAST_TRACK",
        name="SBIR Fast-Track",
        description="Combined Phase I and II application",
        sections=(_specific_aims(), _research_strategy(12), _commercialization_plan()),
        attachments=SBIR_ATTACHMENTS,
    ),
    "R44_PHASE_IIB": MechanismConfig(
        id="R44_PHASE_IIB",
        name="SBIR Phase IIB",
        description="Competing continuation for additional Phase II funding",
        sections=(
            _specific_aims(),
            _research_strategy(12),
            _commercialization_plan(),
            _progress_report("Previous Phase II accomplishments"),
        ),
        attachments=SBIR_ATTACHMENTS,
    ),
    "R41": MechanismConfig(
        id="R41",
        name="STTR Phase I (R41)",
        description="Small Business Technology Transfer Phase I - Requires research institution partnership",
        sections=(_specific_aims(), _research_strategy(6), _commercialization_plan()),
        attachments=STTR_ATTACHMENTS,
    ),
    "R42": MechanismConfig(
        id="R42",
        name="STTR Phase II (R42)",
        description="Small Business Technology Transfer Phase II - Full R&D with research institution",
        sections=(
            _specific_aims(),
            _research_strategy(12),
            _commercialization_plan(),
            _progress_report("Phase I accomplishments and milestones"),
        ),
        attachments=STTR_ATTACHMENTS,
    ),
    "STTR_FAST_TRACK": MechanismConfig(
        id="STTR_FAST_TRACK",
        name="STTR Fast-Track",
        description="Combined STTR Phase I and II application",
        sections=(_specific_aims(), _research_strategy(12), _commercialization_plan()),
        attachments=STTR_ATTACHMENTS,
    ),
}


# =============================================================================
# Standalone Section Rules (used by the compliance checker)
# =============================================================================

# 0 means the section has no page limit
SECTION_PAGE_LIMITS: dict[str, int] = {
    "specific_aims": 1,
    "research_strategy": 12,
    "significance": 4,
    "innovation": 2,
    "approach": 6,
    "bibliography": 0,
    "facilities": 0,
    "equipment": 0,
    "biosketch": 5,
    "budget_justification": 0,
}

SECTION_REQUIRED_HEADINGS: dict[str, tuple[str, ...]] = {
    "specific_aims": ("Specific Aim 1", "Specific Aim 2"),
    "research_strategy": RESEARCH_STRATEGY_HEADINGS,
    "significance": ("Background", "Significance"),
    "innovation": ("Conceptual Innovation", "Technical Innovation", "Application Innovation"),
    "approach": (
        "Preliminary Studies",
        "Research Design",
        "Methods",
        "Timeline",
        "Potential Problems",
    ),
}

NIH_FORMATTING: dict[str, Any] = {
    "margins": "0.5 inches",
    "font": "Arial",
    "font_size": 11,
    "line_spacing": "single",
    "header_footer": "No headers/footers in page count",
}

# Characters per NIH page at 11pt Arial with half-inch margins
CHARS_PER_PAGE = 3000


# =============================================================================
# Lookups
# =============================================================================


def get_mechanism(mechanism_id: str) -> Optional[MechanismConfig]:
    """Return the mechanism config, or None for an unknown id."""
    return MECHANISMS.get(mechanism_id)


def list_mechanisms() -> list[MechanismConfig]:
    return list(MECHANISMS.values())
