"""
Tests for Dependency Graph Service.
Tests dependency inference, critical path and domino risk.
"""
import pytest

from backend.schemas.architecture import Aim, ArchitectureData, DependencyEdge
from backend.services.dependency_graph import (
    analyze_dependencies,
    calculate_domino_risk,
    create_dependency_map,
    find_critical_path,
    infer_dependencies,
    title_keywords,
)


def numbered_aims(count: int) -> list[Aim]:
    return [Aim(id=f"a{i}", title=f"Aim {i}: study part {i}") for i in range(1, count + 1)]


class TestInferDependencies:
    """Tests for dependency inference from aim text."""

    def test_title_keywords(self):
        assert title_keywords("Map the TREM2 signaling pathway") == ["trem2", "signaling", "pathway"]

    def test_dependency_language_with_title_keyword(self):
        aims = [
            Aim(id="a1", title="Define microglial signaling defects"),
            Aim(id="a2", title="Rescue plaque clearance", rationale="Builds upon the signaling defects we define"),
        ]
        deps = infer_dependencies(aims)

        assert len(deps) == 1
        assert deps[0].from_aim_id == "a1"
        assert deps[0].to_aim_id == "a2"
        assert deps[0].weight == 0.7

    def test_keyword_without_dependency_language(self):
        aims = [
            Aim(id="a1", title="Define microglial signaling defects"),
            Aim(id="a2", title="Rescue plaque clearance", rationale="Signaling matters for clearance"),
        ]
        assert infer_dependencies(aims) == []

    def test_numbered_titles_form_weak_chain(self):
        deps = infer_dependencies(numbered_aims(3))

        assert [(d.from_aim_id, d.to_aim_id) for d in deps] == [("a1", "a2"), ("a2", "a3")]
        assert all(d.weight == 0.3 for d in deps)

    def test_unnumbered_independent_aims(self, sample_architecture):
        arch = ArchitectureData.model_validate(sample_architecture)
        assert infer_dependencies(arch.aims) == []


class TestGraphMetrics:
    """Tests for critical path and domino risk."""

    def test_critical_path_follows_chain(self):
        aims = numbered_aims(3)
        assert find_critical_path(aims, infer_dependencies(aims)) == ["a1", "a2", "a3"]

    def test_cycle_does_not_loop(self):
        aims = [Aim(id="x"), Aim(id="y")]
        deps = [
            DependencyEdge(from_aim_id="x", to_aim_id="y"),
            DependencyEdge(from_aim_id="y", to_aim_id="x"),
        ]
        assert len(find_critical_path(aims, deps)) == 2

    def test_domino_risk_for_chain(self):
        aims = numbered_aims(3)
        # 0.3 * 1 (all sequential) + 0.4 * 3/3 + 0.3 * 1/2
        assert calculate_domino_risk(aims, infer_dependencies(aims)) == pytest.approx(0.85)

    def test_domino_risk_without_dependencies(self):
        assert calculate_domino_risk(numbered_aims(3), []) == 0.0
        assert calculate_domino_risk(numbered_aims(1), [DependencyEdge(from_aim_id="a", to_aim_id="b")]) == 0.0

    def test_parallel_edges_lower_risk(self):
        aims = numbered_aims(2)
        deps = [DependencyEdge(from_aim_id="a1", to_aim_id="a2", type="parallel")]
        # 0 sequential, chain of 1 aim out of 2, one incoming
        assert calculate_domino_risk(aims, deps) == pytest.approx(0.2 + 0.3)


class TestAnalyzeDependencies:
    """Tests for the full analysis."""

    def test_single_aim_is_independent(self):
        analysis = analyze_dependencies(ArchitectureData(aims=[Aim(id="only")]))

        assert analysis.dependencies == []
        assert analysis.independent_aims == ["only"]
        assert analysis.domino_risk == 0

    def test_chain_analysis(self):
        analysis = analyze_dependencies(ArchitectureData(aims=numbered_aims(3)))

        assert analysis.critical_path == ["a1", "a2", "a3"]
        assert analysis.independent_aims == ["a1"]
        assert any("High domino risk" in r for r in analysis.recommendations)
        assert any("parallel rather than sequential" in r for r in analysis.recommendations)

    def test_hub_aim_recommendation(self):
        aims = [
            Aim(id="hub", title="Build organoid platform"),
            Aim(id="b", title="Screen compounds", rationale="Requires the organoid platform"),
            Aim(id="c", title="Profile resistance", rationale="Based on organoid lines"),
        ]
        analysis = analyze_dependencies(ArchitectureData(aims=aims))

        assert any("Critical aims with multiple dependents: Build organoid platform" in r for r in analysis.recommendations)

    def test_dependency_map(self):
        analysis = analyze_dependencies(ArchitectureData(aims=numbered_aims(2)))
        dependency_map = create_dependency_map(analysis)

        assert dependency_map.domino_risk == analysis.domino_risk
        assert len(dependency_map.dependencies) == 1
