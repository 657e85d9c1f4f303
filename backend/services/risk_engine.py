"""
Risk Engine Service
Flags structural, dependency and language risks in a Specific Aims section.
"""

import logging
import re
from collections import Counter
from datetime import datetime, timezone
from typing import Optional

from backend.schemas.architecture import ArchitectureData, DependencyMapData, RiskData, RiskFlag
from backend.services.dependency_graph import find_aim, title_keywords
from backend.services.structural_scoring import round_half_up

logger = logging.getLogger(__name__)

RED_FLAG_PATTERNS = (
    (re.compile(r"will fail|might fail|could fail", re.IGNORECASE), "Contains negative outcome language"),
    (re.compile(r"if time permits|time permitting", re.IGNORECASE), "Contains conditional timing language"),
    (re.compile(r"beyond the scope", re.IGNORECASE), "Mentions scope limitations"),
)


def _aim_label(title: str) -> str:
    return title or "Untitled"


def check_architecture_risks(arch: ArchitectureData) -> list[RiskFlag]:
    """Risks visible from the architecture alone."""
    if not arch.aims:
        # Nothing else can be judged without aims
        return [
            RiskFlag(
                type="MISSING_AIMS",
                severity="critical",
                message="No specific aims defined",
                recommendation="Define at least 2-3 specific aims with testable hypotheses",
            )
        ]

    flags = []

    if len(arch.aims) > 4:
        flags.append(
            RiskFlag(
                type="TOO_MANY_AIMS",
                severity="medium",
                message=f"{len(arch.aims)} aims may be too ambitious for typical funding period",
                recommendation="Consider consolidating to 2-4 focused aims",
            )
        )

    for aim in arch.aims:
        label = _aim_label(aim.title)
        if not aim.is_falsifiable:
            flags.append(
                RiskFlag(
                    type="NON_FALSIFIABLE",
                    severity="high",
                    message=f'Aim "{label}": Hypothesis marked as non-falsifiable',
                    aim_id=aim.id,
                    recommendation="Reframe hypothesis so it can be tested and potentially disproven",
                )
            )
        if not aim.valid_endpoints():
            flags.append(
                RiskFlag(
                    type="MISSING_ENDPOINTS",
                    severity="high",
                    message=f'Aim "{label}": No measurable endpoints defined',
                    aim_id=aim.id,
                    recommendation="Define specific, measurable outcomes for this aim",
                )
            )
        if aim.hypothesis and len(aim.hypothesis) < 50:
            flags.append(
                RiskFlag(
                    type="VAGUE_HYPOTHESIS",
                    severity="medium",
                    message=f'Aim "{label}": Hypothesis may be too brief',
                    aim_id=aim.id,
                    recommendation="Expand hypothesis with specific predictions and mechanisms",
                )
            )

    if len(arch.central_hypothesis) < 30:
        flags.append(
            RiskFlag(
                type="MISSING_CENTRAL_HYPOTHESIS",
                severity="high",
                message="Central hypothesis is missing or too brief",
                recommendation="Define a clear overarching hypothesis that unifies all aims",
            )
        )

    if len(arch.innovation_statement) < 20:
        flags.append(
            RiskFlag(
                type="MISSING_INNOVATION",
                severity="medium",
                message="Innovation statement is missing or too brief",
                recommendation="Clearly articulate what is novel about your approach",
            )
        )

    return flags


def check_dependency_risks(arch: ArchitectureData, deps: DependencyMapData) -> list[RiskFlag]:
    """Risks from aims that many others depend on, and from overall domino risk."""
    if len(arch.aims) < 2 or not deps.dependencies:
        return []

    flags = []
    incoming = Counter(d.to_aim_id for d in deps.dependencies if d.type == "sequential")

    for aim_id, count in incoming.items():
        if count < 2:
            continue
        aim = find_aim(arch.aims, aim_id)
        title = aim.title if aim and aim.title else "Unknown"
        flags.append(
            RiskFlag(
                type="DOMINO_DEPENDENCY",
                severity="high" if count >= 3 else "medium",
                message=f'Aim "{title}": {count} other aims depend on this sequentially',
                aim_id=aim_id,
                recommendation="Consider adding contingency plans or parallel alternatives",
            )
        )

    if deps.domino_risk > 0.6:
        flags.append(
            RiskFlag(
                type="HIGH_DOMINO_RISK",
                severity="critical" if deps.domino_risk > 0.8 else "high",
                message=f"High cascading failure risk ({round_half_up(deps.domino_risk * 100)}%)",
                recommendation="Restructure aims to reduce sequential dependencies",
            )
        )

    return flags


def check_content_risks(content: str, arch: ArchitectureData) -> list[RiskFlag]:
    """Risks from the section prose: aims not covered and hedging language."""
    flags = []
    content_lower = content.lower()

    for aim in arch.aims:
        if not aim.title:
            continue
        keywords = title_keywords(aim.title)
        found = [kw for kw in keywords if kw in content_lower]
        if len(found) < len(keywords) * 0.5:
            flags.append(
                RiskFlag(
                    type="AIM_CONTENT_MISMATCH",
                    severity="medium",
                    message=f'Aim "{aim.title}" may not be adequately addressed in content',
                    aim_id=aim.id,
                    recommendation="Ensure section content aligns with defined aims",
                )
            )

    for pattern, message in RED_FLAG_PATTERNS:
        if pattern.search(content):
            flags.append(
                RiskFlag(
                    type="LANGUAGE_RED_FLAG",
                    severity="low",
                    message=message,
                    recommendation="Consider rephrasing to project confidence",
                )
            )

    return flags


def calculate_overall_risk(flags: list[RiskFlag]) -> str:
    """Roll flags up into a single low/medium/high/critical level."""
    severities = Counter(f.severity for f in flags)
    if severities["critical"]:
        return "critical"
    if severities["high"] >= 2:
        return "high"
    if severities["high"] >= 1 or severities["medium"] >= 3:
        return "medium"
    return "low"


def analyze_risks(
    architecture: ArchitectureData,
    dependency_map: DependencyMapData,
    section_content: Optional[str] = None,
) -> RiskData:
    """
    Run every risk check.

    Args:
        architecture: Aims architecture
        dependency_map: Previously inferred dependencies and domino risk
        section_content: Optional section prose for content checks

    Returns:
        RiskData with all flags and the overall level
    """
    flags = check_architecture_risks(architecture)
    flags.extend(check_dependency_risks(architecture, dependency_map))
    if section_content:
        flags.extend(check_content_risks(section_content, architecture))

    overall = calculate_overall_risk(flags)
    logger.debug(f"Risk analysis: {len(flags)} flags, overall {overall}")
    return RiskData(flags=flags, overall_risk=overall, last_analyzed=datetime.now(timezone.utc))
