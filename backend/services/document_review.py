"""
Document Review Service
Heuristic mock review of a full grant document against NIH review criteria.
No AI required - uses keyword presence and regex quality indicators.

Each of the seven review sections is first detected (at least two of its
keywords must appear), then scored from a 50% base plus bonuses for
section-specific quality signals, capped at the section maximum.
"""

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Optional

import fitz  # PyMuPDF

logger = logging.getLogger(__name__)


# =============================================================================
# Review Criteria
# =============================================================================


@dataclass(frozen=True)
class QualityCheck:
    """A regex signal worth a fraction of the section's maximum score."""

    pattern: re.Pattern
    weight: float
    finding: str
    recommendation: Optional[str] = None


@dataclass(frozen=True)
class ReviewSection:
    """An NIH review criterion with its detection keywords and checks."""

    name: str
    max_score: int
    keywords: tuple[str, ...]
    checks: tuple[QualityCheck, ...] = field(default_factory=tuple)


def _check(pattern: str, weight: float, finding: str, recommendation: str = None) -> QualityCheck:
    return QualityCheck(re.compile(pattern, re.IGNORECASE), weight, finding, recommendation)


HAS_DATA = r"data|result|figure|table|evidence"
HAS_TIMELINE = r"year|month|phase|timeline|milestone"
HAS_QUANTITATIVE = r"\d+%|\d+ month|\$[\d,]+"

REVIEW_SECTIONS: tuple[ReviewSection, ...] = (
    ReviewSection(
        name="Specific Aims",
        max_score=15,
        keywords=("specific aims", "objective", "hypothesis", "goal"),
        checks=(
            _check(
                r"aim\s*[1-3]|objective\s*[1-3]",
                0.2,
                "Clear enumeration of aims detected",
                "Number your specific aims clearly (Aim 1, Aim 2, etc.)",
            ),
            _check(r"hypothesis", 0.15, "Hypothesis statement included", "Include a clear hypothesis statement"),
            _check(r"long.?term goal|overall goal", 0.15, "Long-term goals articulated"),
        ),
    ),
    ReviewSection(
        name="Significance",
        max_score=15,
        keywords=("significance", "importance", "impact", "public health", "clinical relevance"),
        checks=(
            _check(
                r"public health|clinical|patient",
                0.2,
                "Public health relevance addressed",
                "Emphasize the public health significance and potential clinical impact",
            ),
            _check(r"gap|unmet need|limitation", 0.15, "Knowledge gaps identified"),
            _check(
                r"survival|mortality|morbidity|prevalence",
                0.15,
                "Disease burden statistics included",
                "Include disease statistics (incidence, mortality, survival rates)",
            ),
        ),
    ),
    ReviewSection(
        name="Innovation",
        max_score=15,
        keywords=("innovation", "novel", "unique", "first", "new approach", "paradigm"),
        checks=(
            _check(r"first|novel|unique|new", 0.2, "Novel aspects highlighted"),
            _check(
                r"paradigm|transform|revolutionize",
                0.15,
                "Paradigm-shifting potential described",
                "Articulate how this work could shift current paradigms",
            ),
            _check(r"proprietary|patent|intellectual property", 0.15, "IP/proprietary technology mentioned"),
        ),
    ),
    ReviewSection(
        name="Approach",
        max_score=25,
        keywords=("approach", "research strategy", "methodology", "experimental design", "methods"),
        checks=(
            _check(HAS_DATA, 0.1, "Preliminary data referenced", "Include preliminary data to support feasibility"),
            _check(HAS_TIMELINE, 0.1, "Timeline/milestones included", "Add a clear timeline with milestones"),
            _check(
                r"statistical|power|sample size",
                0.1,
                "Statistical considerations addressed",
                "Include power analysis and sample size justification",
            ),
            _check(
                r"alternative|contingency|risk",
                0.1,
                "Alternative approaches considered",
                "Describe potential pitfalls and alternative strategies",
            ),
            _check(r"control|comparison|placebo", 0.1, "Appropriate controls described"),
        ),
    ),
    ReviewSection(
        name="Investigators",
        max_score=10,
        keywords=("investigator", "team", "expertise", "qualification", "biosketch", "experience"),
        checks=(
            _check(r"expertise|experience|publications", 0.2, "Team expertise documented"),
            _check(r"collaboration|partnership|consortium", 0.15, "Collaborations established"),
            _check(r"training|mentor", 0.15, "Training opportunities mentioned"),
        ),
    ),
    ReviewSection(
        name="Environment",
        max_score=10,
        keywords=("environment", "facilities", "resources", "equipment", "institutional support"),
        checks=(
            _check(
                r"facility|facilities|laboratory",
                0.2,
                "Facilities described",
                "Detail available facilities and resources",
            ),
            _check(r"equipment|instrument", 0.15, "Equipment resources listed"),
            _check(r"core|shared resource", 0.15, "Access to core facilities noted"),
        ),
    ),
    ReviewSection(
        name="Budget",
        max_score=10,
        keywords=("budget", "cost", "funding", "resources", "personnel costs"),
        checks=(
            _check(
                r"justification",
                0.2,
                "Budget justification included",
                "Provide detailed budget justification for each category",
            ),
            _check(HAS_QUANTITATIVE, 0.15, "Detailed cost breakdown provided"),
            _check(r"fringe|indirect|f&a", 0.15, "F&A/fringe rates addressed"),
        ),
    ),
)

FUNDABILITY_RATINGS = (
    (80, "High"),
    (60, "Medium"),
    (40, "Low"),
)

TITLE_PATTERNS = (
    re.compile(r"project title[:\s]*([^\n]+)", re.IGNORECASE),
    re.compile(r"descriptive title[:\s]*([^\n]+)", re.IGNORECASE),
    re.compile(r"title of project[:\s]*([^\n]+)", re.IGNORECASE),
    re.compile(r"targeting[^:]+:[^\n]*precision", re.IGNORECASE),
)


# =============================================================================
# Text Extraction
# =============================================================================


def extract_document_text(content: bytes) -> str:
    """
    Extract text from an uploaded document.

    PDFs are read with PyMuPDF; anything that fails to parse is decoded as
    UTF-8 text instead.
    """
    try:
        with fitz.open(stream=content, filetype="pdf") as doc:
            return "\n".join(page.get_text() for page in doc)
    except Exception as e:
        logger.warning(f"PDF parse failed, decoding upload as text: {e}")
        return content.decode("utf-8", errors="replace")


# =============================================================================
# Analysis
# =============================================================================


def detect_grant_type(text: str) -> str:
    lower = text.lower()
    if "sbir" in lower and "sttr" in lower:
        return "SBIR/STTR Fast-Track"
    if "sbir" in lower:
        return "SBIR"
    if "sttr" in lower:
        return "STTR"
    if "r01" in lower:
        return "NIH R01"
    if "r21" in lower:
        return "NIH R21"
    if "r03" in lower:
        return "NIH R03"
    if "nci" in lower:
        return "NCI Grant"
    if "sf 424" in lower or "sf424" in lower:
        return "Federal Grant (SF-424)"
    return "Grant Application"


def extract_project_title(text: str) -> str:
    """Find the project title from labelled lines, else the first plausible heading."""
    for pattern in TITLE_PATTERNS:
        match = pattern.search(text)
        if match:
            captured = match.group(1) if match.groups() else None
            return (captured or match.group(0)).strip()

    for line in text.split("\n")[:50]:
        if 20 < len(line) < 200 and line[0].isupper():
            return line.strip()

    return "Untitled Grant Application"


def _status_for(score: int, max_score: int) -> str:
    percent = score / max_score
    if percent >= 0.85:
        return "excellent"
    if percent >= 0.65:
        return "good"
    if percent >= 0.4:
        return "needs_work"
    return "missing"


def analyze_section(text: str, section: ReviewSection) -> dict[str, Any]:
    """Score one review section of the document."""
    lower = text.lower()
    keyword_matches = sum(1 for kw in section.keywords if kw in lower)

    if keyword_matches < 2:
        return {
            "name": section.name,
            "max_score": section.max_score,
            "score": 0,
            "status": "missing",
            "findings": [f"{section.name} section not clearly identified in document"],
            "recommendations": [f"Add a dedicated {section.name} section with clear headers"],
        }

    score = math.floor(section.max_score * 0.5)
    findings = []
    recommendations = []

    for check in section.checks:
        if check.pattern.search(text):
            score += math.floor(section.max_score * check.weight)
            findings.append(check.finding)
        elif check.recommendation:
            recommendations.append(check.recommendation)

    return {
        "name": section.name,
        "max_score": section.max_score,
        "score": min(score, section.max_score),
        "status": _status_for(score, section.max_score),
        "findings": findings,
        "recommendations": recommendations,
    }


def get_fundability_rating(overall_score: int) -> str:
    for threshold, rating in FUNDABILITY_RATINGS:
        if overall_score >= threshold:
            return rating
    return "Needs Major Revision"


def analyze_document(text: str) -> dict[str, Any]:
    """
    Run the full mock review.

    Returns:
        Dict with overall score (0-100), fundability rating, detected grant
        type and title, per-section results, strengths, weaknesses and the
        top three priorities.
    """
    sections = [analyze_section(text, section) for section in REVIEW_SECTIONS]

    total = sum(s["score"] for s in sections)
    max_possible = sum(s["max_score"] for s in sections)
    overall = int(math.floor(total / max_possible * 100 + 0.5))

    strengths = [
        finding
        for s in sections
        if s["status"] in ("excellent", "good")
        for finding in s["findings"][:2]
    ][:5]
    weaknesses = [
        rec
        for s in sections
        if s["status"] in ("needs_work", "missing")
        for rec in s["recommendations"][:2]
    ][:5]

    needing_work = sorted(
        (s for s in sections if s["status"] != "excellent"),
        key=lambda s: s["max_score"],
        reverse=True,
    )
    top_priorities = [
        s["recommendations"][0] if s["recommendations"] else f"Improve {s['name']} section"
        for s in needing_work[:3]
    ]

    return {
        "overall_score": overall,
        "fundability_rating": get_fundability_rating(overall),
        "grant_type": detect_grant_type(text),
        "project_title": extract_project_title(text),
        "sections": sections,
        "strengths_overall": strengths,
        "weaknesses_overall": weaknesses,
        "top_priorities": top_priorities,
    }
