"""
Compliance Service
Rule-based compliance checking for grant sections and applications.

Section checks (page limits, recommended headings, placeholder text,
missing citations, weak language and jargon density) produce a 0-100
compliance score. Application checks validate every stored section plus
the mechanism's required attachments and decide whether export is allowed.
"""

import logging
import math
import re
from typing import Iterable, Optional, Protocol

from backend.schemas.compliance import ComplianceIssue, ComplianceResult, ValidationIssue
from backend.services.mechanisms import (
    CHARS_PER_PAGE,
    SECTION_PAGE_LIMITS,
    SECTION_REQUIRED_HEADINGS,
    get_mechanism,
)

logger = logging.getLogger(__name__)

WEAK_PHRASES = ("we hope to", "we will try to", "we might", "possibly", "perhaps")

PLACEHOLDER_PATTERNS = (
    re.compile(r"\[.*?\]"),
    re.compile(r"TODO", re.IGNORECASE),
    re.compile(r"TBD", re.IGNORECASE),
)
MISSING_CITATION_PATTERNS = (
    re.compile(r"\(\s*\?\s*\)"),
    re.compile(r"\[citation needed\]", re.IGNORECASE),
)

# Words longer than this count toward jargon density
JARGON_WORD_LENGTH = 12
JARGON_DENSITY_THRESHOLD = 0.15

ERROR_PENALTY = 20
WARNING_PENALTY = 5


# =============================================================================
# Section Compliance
# =============================================================================


def check_page_limit(content: str, section_type: str) -> Optional[ComplianceIssue]:
    """Flag content whose estimated length exceeds or nears the section's page limit."""
    limit = SECTION_PAGE_LIMITS.get(section_type)
    if not limit:
        return None

    estimated_pages = len(content) / CHARS_PER_PAGE

    if estimated_pages > limit:
        return ComplianceIssue(
            type="error",
            code="PAGE_LIMIT_EXCEEDED",
            message=f"Section exceeds {limit} page limit (estimated {estimated_pages:.1f} pages)",
            suggestion=(
                f"Reduce content by approximately "
                f"{math.ceil((estimated_pages - limit) * CHARS_PER_PAGE)} characters"
            ),
        )

    if estimated_pages > limit * 0.95:
        return ComplianceIssue(
            type="warning",
            code="PAGE_LIMIT_CLOSE",
            message=f"Section is close to {limit} page limit (estimated {estimated_pages:.1f} pages)",
            suggestion="Consider tightening prose to leave room for formatting adjustments",
        )

    return None


def check_required_headings(content: str, section_type: str) -> list[ComplianceIssue]:
    """Warn for each recommended heading that does not appear in the content."""
    required = SECTION_REQUIRED_HEADINGS.get(section_type)
    if not required:
        return []

    content_lower = content.lower()
    issues = []

    for heading in required:
        heading_lower = heading.lower()
        variants = (
            heading_lower,
            heading_lower.replace(" ", ": ", 1),
            heading_lower + ":",
        )
        if any(variant in content_lower for variant in variants):
            continue

        issues.append(
            ComplianceIssue(
                type="warning",
                code="MISSING_HEADING",
                message=f'Recommended heading "{heading}" not found',
                field=section_type,
                suggestion=f'Consider adding a "{heading}" section',
            )
        )

    return issues


def check_common_issues(content: str) -> list[ComplianceIssue]:
    """Placeholder text, missing citations, weak language and jargon density."""
    issues = []

    if any(pattern.search(content) for pattern in PLACEHOLDER_PATTERNS):
        issues.append(
            ComplianceIssue(
                type="error",
                code="PLACEHOLDER_TEXT",
                message="Contains placeholder text that must be replaced",
                suggestion="Replace all [bracketed] text, TODO, and TBD markers",
            )
        )

    if any(pattern.search(content) for pattern in MISSING_CITATION_PATTERNS):
        issues.append(
            ComplianceIssue(
                type="error",
                code="MISSING_CITATION",
                message="Contains missing citation markers",
                suggestion="Add proper citations for all referenced claims",
            )
        )

    content_lower = content.lower()
    weak_phrase = next((p for p in WEAK_PHRASES if p in content_lower), None)
    if weak_phrase:
        issues.append(
            ComplianceIssue(
                type="warning",
                code="WEAK_LANGUAGE",
                message=f'Contains weak language: "{weak_phrase}"',
                suggestion="Use more confident, assertive language",
            )
        )

    words = re.split(r"\s+", content)
    long_words = sum(1 for word in words if len(word) > JARGON_WORD_LENGTH)
    if long_words / len(words) > JARGON_DENSITY_THRESHOLD:
        issues.append(
            ComplianceIssue(
                type="warning",
                code="HIGH_JARGON",
                message="High density of complex/technical terms",
                suggestion="Consider simplifying language for broader reviewer audience",
            )
        )

    return issues


def compliance_score(issues: Iterable[ComplianceIssue]) -> int:
    """100 minus 20 per error and 5 per warning, floored at 0."""
    issues = list(issues)
    errors = sum(1 for i in issues if i.type == "error")
    warnings = sum(1 for i in issues if i.type == "warning")
    return max(0, 100 - errors * ERROR_PENALTY - warnings * WARNING_PENALTY)


def validate_section(content: str, section_type: str) -> ComplianceResult:
    """
    Run all section-level compliance checks.

    Args:
        content: Section text
        section_type: Section type key used to look up page limit and headings

    Returns:
        ComplianceResult; compliant when there are no errors
    """
    issues: list[ComplianceIssue] = []

    page_issue = check_page_limit(content, section_type)
    if page_issue:
        issues.append(page_issue)

    issues.extend(check_required_headings(content, section_type))
    issues.extend(check_common_issues(content))

    return ComplianceResult(
        is_compliant=not any(i.type == "error" for i in issues),
        issues=issues,
        score=compliance_score(issues),
    )


# =============================================================================
# Application Validation
# =============================================================================


class SectionLike(Protocol):
    title: str
    content: Optional[str]
    page_limit: int
    page_count: Optional[int]
    required_headings: Optional[list[str]]


class AttachmentLike(Protocol):
    name: str
    status: object
    required: bool


def estimate_page_count(content: Optional[str]) -> int:
    """Whole pages at 3000 characters per page; empty content is 0 pages."""
    if not content:
        return 0
    return math.ceil(len(content) / CHARS_PER_PAGE)


def validate_section_record(section: SectionLike) -> list[ValidationIssue]:
    """Validate a stored section against its own page limit and required headings."""
    issues = []

    if section.page_count and section.page_limit and section.page_count > section.page_limit:
        issues.append(
            ValidationIssue(
                type="error",
                section=section.title,
                message=f"Page limit exceeded: {section.page_count}/{section.page_limit} pages",
            )
        )

    if section.required_headings and section.content:
        content_lower = section.content.lower()
        for heading in section.required_headings:
            if heading.lower() not in content_lower:
                issues.append(
                    ValidationIssue(
                        type="error",
                        section=section.title,
                        message=f"Missing required heading: {heading}",
                    )
                )

    if not section.content or not section.content.strip():
        issues.append(ValidationIssue(type="warning", section=section.title, message="Section is empty"))

    return issues


def _status_value(status: object) -> str:
    return getattr(status, "value", status)


def validate_application(
    mechanism: str,
    sections: Iterable[SectionLike],
    attachments: Iterable[AttachmentLike],
) -> list[ValidationIssue]:
    """Validate every section and the mechanism's required attachments."""
    config = get_mechanism(mechanism)
    if not config:
        return [ValidationIssue(type="error", message="Invalid mechanism selected")]

    issues: list[ValidationIssue] = []
    for section in sections:
        issues.extend(validate_section_record(section))

    uploaded = {a.name for a in attachments if _status_value(a.status) == "uploaded"}
    for required in (a for a in config.attachments if a.required):
        if required.name not in uploaded:
            issues.append(
                ValidationIssue(type="error", message=f"Required attachment missing: {required.name}")
            )

    logger.debug(f"Validated {mechanism} application: {len(issues)} issues")
    return issues


def can_export(issues: Iterable[ValidationIssue]) -> bool:
    """Export is allowed when validation produced no errors."""
    return not any(i.type == "error" for i in issues)
