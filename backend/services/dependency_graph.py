"""
Dependency Graph Service
Infers dependencies between specific aims and estimates domino risk.

A "domino" aim is one whose failure cascades: later aims cannot proceed
without its results. Dependencies are inferred from the wording of each
aim's rationale and hypothesis; the longest sequential chain is found by
depth-first search over the (small) aim graph.
"""

import logging
import re
from collections import defaultdict
from typing import Optional

from backend.schemas.architecture import (
    Aim,
    ArchitectureData,
    DependencyAnalysis,
    DependencyEdge,
    DependencyMapData,
)

logger = logging.getLogger(__name__)

DEPENDENCY_KEYWORDS = (
    "based on",
    "depends on",
    "builds upon",
    "requires",
    "following",
    "after",
    "once",
    "upon completion",
    "results from",
    "informed by",
)

NUMBERED_AIM_PATTERN = re.compile(r"aim\s*\d", re.IGNORECASE)

INFERRED_EDGE_WEIGHT = 0.7
NUMBERING_EDGE_WEIGHT = 0.3


def title_keywords(title: str) -> list[str]:
    """Significant words of an aim title (longer than four characters)."""
    return [word for word in title.lower().split(" ") if len(word) > 4]


# =============================================================================
# Inference
# =============================================================================


def infer_dependencies(aims: list[Aim]) -> list[DependencyEdge]:
    """
    Infer aim-to-aim dependencies from free text.

    An aim depends on another when its rationale or hypothesis mentions a
    keyword from the other aim's title and uses dependency language
    ("based on", "requires", ...). When nothing is found and every title is
    numbered ("Aim 1 ..."), a weak sequential chain is assumed.
    """
    dependencies: list[DependencyEdge] = []

    for i, aim in enumerate(aims):
        text = f"{aim.rationale.lower()} {aim.hypothesis.lower()}"
        has_dependency_language = any(kw in text for kw in DEPENDENCY_KEYWORDS)
        if not has_dependency_language:
            continue

        for j, other in enumerate(aims):
            if i == j:
                continue
            if any(kw in text for kw in title_keywords(other.title)):
                dependencies.append(
                    DependencyEdge(
                        from_aim_id=other.id,
                        to_aim_id=aim.id,
                        type="sequential",
                        description=f"{aim.title} appears to depend on {other.title}",
                        weight=INFERRED_EDGE_WEIGHT,
                    )
                )

    all_numbered = all(NUMBERED_AIM_PATTERN.search(a.title) for a in aims)
    if all_numbered and not dependencies:
        for previous, current in zip(aims, aims[1:]):
            dependencies.append(
                DependencyEdge(
                    from_aim_id=previous.id,
                    to_aim_id=current.id,
                    type="sequential",
                    description="Inferred from aim numbering",
                    weight=NUMBERING_EDGE_WEIGHT,
                )
            )

    return dependencies


# =============================================================================
# Graph Traversal
# =============================================================================


def _sequential_adjacency(aims: list[Aim], dependencies: list[DependencyEdge]) -> dict[str, list[str]]:
    adjacency: dict[str, list[str]] = {aim.id: [] for aim in aims}
    for dep in dependencies:
        if dep.type == "sequential" and dep.from_aim_id in adjacency:
            adjacency[dep.from_aim_id].append(dep.to_aim_id)
    return adjacency


def find_critical_path(aims: list[Aim], dependencies: list[DependencyEdge]) -> list[str]:
    """Longest simple path of sequential dependencies, as a list of aim ids."""
    adjacency = _sequential_adjacency(aims, dependencies)
    longest: list[str] = []

    def dfs(aim_id: str, path: list[str]) -> None:
        nonlocal longest
        if len(path) > len(longest):
            longest = list(path)
        for next_id in adjacency.get(aim_id, []):
            if next_id not in path:
                path.append(next_id)
                dfs(next_id, path)
                path.pop()

    for aim in aims:
        dfs(aim.id, [aim.id])

    return longest


def find_longest_chain(aims: list[Aim], dependencies: list[DependencyEdge]) -> int:
    """Number of aims on the longest sequential chain (1 when there are no edges)."""
    return len(find_critical_path(aims, dependencies))


def calculate_domino_risk(aims: list[Aim], dependencies: list[DependencyEdge]) -> float:
    """
    Cascading failure risk in [0, 1].

    Weighted from the share of sequential edges (30%), the longest chain
    relative to the aim count (40%) and the largest number of incoming
    dependencies on one aim relative to the other aims (30%).
    """
    if len(aims) < 2 or not dependencies:
        return 0.0

    incoming: dict[str, int] = defaultdict(int)
    for dep in dependencies:
        incoming[dep.to_aim_id] += 1

    sequential_ratio = sum(1 for d in dependencies if d.type == "sequential") / len(dependencies)
    chain_ratio = find_longest_chain(aims, dependencies) / len(aims)
    concentration_ratio = max(incoming.values(), default=0) / (len(aims) - 1)

    risk = sequential_ratio * 0.3 + chain_ratio * 0.4 + concentration_ratio * 0.3
    return min(risk, 1.0)


# =============================================================================
# Recommendations
# =============================================================================


def generate_recommendations(
    aims: list[Aim],
    dependencies: list[DependencyEdge],
    domino_risk: float,
) -> list[str]:
    if not aims:
        return ["Define specific aims to enable dependency analysis"]

    recommendations = []

    if domino_risk > 0.7:
        recommendations.append(
            "High domino risk detected. Consider restructuring aims to reduce sequential dependencies."
        )
        recommendations.append("Add contingency plans for critical aims that others depend on.")

    if domino_risk > 0.5:
        recommendations.append("Consider making some aims parallel rather than sequential.")

    sequential = [d for d in dependencies if d.type == "sequential"]
    if len(sequential) == len(dependencies) and len(dependencies) > 2:
        recommendations.append(
            "All aims are sequentially dependent. Consider if some can proceed in parallel."
        )

    dependents: dict[str, int] = defaultdict(int)
    for dep in dependencies:
        dependents[dep.from_aim_id] += 1

    titles = {aim.id: aim.title for aim in aims}
    critical = [titles.get(aim_id) or aim_id for aim_id, count in dependents.items() if count >= 2]
    if critical:
        recommendations.append(
            f"Critical aims with multiple dependents: {', '.join(critical)}. "
            "Ensure robust preliminary data supports these."
        )

    return recommendations


# =============================================================================
# Public API
# =============================================================================


def analyze_dependencies(architecture: ArchitectureData) -> DependencyAnalysis:
    """Infer dependencies for an architecture and summarize the resulting risk."""
    aims = architecture.aims

    if len(aims) < 2:
        return DependencyAnalysis(independent_aims=[a.id for a in aims])

    dependencies = infer_dependencies(aims)
    domino_risk = calculate_domino_risk(aims, dependencies)
    dependent_ids = {d.to_aim_id for d in dependencies}

    analysis = DependencyAnalysis(
        dependencies=dependencies,
        domino_risk=domino_risk,
        critical_path=find_critical_path(aims, dependencies),
        independent_aims=[a.id for a in aims if a.id not in dependent_ids],
        recommendations=generate_recommendations(aims, dependencies, domino_risk),
    )
    logger.debug(
        f"Dependency analysis: {len(dependencies)} edges, domino risk {domino_risk:.2f}"
    )
    return analysis


def create_dependency_map(analysis: DependencyAnalysis) -> DependencyMapData:
    """Reduce an analysis to the shape persisted on the section."""
    return DependencyMapData(dependencies=analysis.dependencies, domino_risk=analysis.domino_risk)


def find_aim(aims: list[Aim], aim_id: str) -> Optional[Aim]:
    return next((a for a in aims if a.id == aim_id), None)
