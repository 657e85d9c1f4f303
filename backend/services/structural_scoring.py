"""
Structural Scoring Service
Deterministic scoring of a Specific Aims architecture.

The overall score is a weighted average of four 0-100 components:
- completeness (35%): are the central hypothesis, innovation statement and aims filled in
- coherence (20%): do aims carry rationales that connect them
- falsifiability (25%): are hypotheses testable and backed by endpoints
- endpoint clarity (20%): are endpoints numerous and specific
"""

import logging
import math
from datetime import datetime, timezone

from backend.schemas.architecture import ArchitectureData, ScoreData

logger = logging.getLogger(__name__)

WEIGHTS = {
    "completeness": 0.35,
    "coherence": 0.20,
    "falsifiability": 0.25,
    "endpoint_clarity": 0.20,
}

SCORE_LABELS = (
    (90, "Excellent"),
    (75, "Good"),
    (60, "Fair"),
    (40, "Needs Work"),
)


def round_half_up(value: float) -> int:
    """Round halves up (2.5 -> 3), unlike the built-in round()."""
    return int(math.floor(value + 0.5))


def _completeness(arch: ArchitectureData) -> int:
    total = 0
    checks = 0

    checks += 1
    if len(arch.central_hypothesis) > 50:
        total += 100
    elif arch.central_hypothesis:
        total += 50

    checks += 1
    if len(arch.innovation_statement) > 30:
        total += 100
    elif arch.innovation_statement:
        total += 50

    # 2-4 aims is the expected shape of an NIH application
    checks += 1
    aim_count = len(arch.aims)
    if 2 <= aim_count <= 4:
        total += 100
    elif aim_count in (1, 5):
        total += 70
    elif aim_count > 0:
        total += 40

    for aim in arch.aims:
        checks += 1
        if len(aim.title) > 10:
            total += 25
        if len(aim.hypothesis) > 30:
            total += 25
        if len(aim.rationale) > 20:
            total += 25
        if aim.valid_endpoints():
            total += 25

    return round_half_up(total / checks)


def _coherence(arch: ArchitectureData) -> int:
    if len(arch.aims) <= 1:
        return 100
    with_rationale = [a for a in arch.aims if len(a.rationale) > 20]
    return round_half_up(len(with_rationale) / len(arch.aims) * 100)


def _falsifiability(arch: ArchitectureData) -> int:
    if not arch.aims:
        return 100
    falsifiable_ratio = sum(1 for a in arch.aims if a.is_falsifiable) / len(arch.aims)
    endpoint_ratio = sum(1 for a in arch.aims if a.valid_endpoints()) / len(arch.aims)
    return round_half_up(falsifiable_ratio * 50 + endpoint_ratio * 50)


def _endpoint_clarity(arch: ArchitectureData) -> int:
    total = 0.0
    scored_aims = 0

    for aim in arch.aims:
        endpoints = [e for e in aim.endpoints if len(e.strip()) > 10]
        if not endpoints:
            continue
        scored_aims += 1
        count_bonus = min(len(endpoints), 3) / 3
        avg_length = sum(len(e) for e in endpoints) / len(endpoints)
        length_bonus = min(avg_length / 50, 1)
        total += count_bonus * 50 + length_bonus * 50

    if not scored_aims:
        return 0
    return round_half_up(total / scored_aims)


def compute_breakdown(arch: ArchitectureData) -> dict[str, int]:
    """Return every component score plus the weighted overall score."""
    breakdown = {
        "completeness": _completeness(arch),
        "coherence": _coherence(arch),
        "falsifiability": _falsifiability(arch),
        "endpoint_clarity": _endpoint_clarity(arch),
    }
    overall = sum(breakdown[key] * weight for key, weight in WEIGHTS.items())
    breakdown["overall"] = round_half_up(overall)
    return breakdown


def get_score_label(score: float) -> str:
    """Human label for a 0-100 structural score."""
    for threshold, label in SCORE_LABELS:
        if score >= threshold:
            return label
    return "Incomplete"


def calculate_structural_score(architecture: ArchitectureData) -> ScoreData:
    """Score an architecture and stamp the calculation time."""
    breakdown = compute_breakdown(architecture)
    logger.debug(f"Structural score breakdown: {breakdown}")
    return ScoreData(
        structural_score=breakdown["overall"],
        completeness=breakdown["completeness"],
        coherence=breakdown["coherence"],
        falsifiability=breakdown["falsifiability"],
        endpoint_clarity=breakdown["endpoint_clarity"],
        label=get_score_label(breakdown["overall"]),
        last_calculated=datetime.now(timezone.utc),
    )
