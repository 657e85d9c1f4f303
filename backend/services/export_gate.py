"""
Export Gate Service
Decides whether an application may be exported.

In soft mode (the default) every problem is reported as a warning. With
the hard gate enabled, structural problems become blockers that only an
admin override can bypass.
"""

import logging
from typing import Optional

from backend.core.config import settings
from backend.schemas.architecture import (
    ArchitectureData,
    DependencyMapData,
    ExportBanner,
    ExportGateOptions,
    ExportGateResult,
    RiskData,
    ScoreData,
)
from backend.services.structural_scoring import round_half_up

logger = logging.getLogger(__name__)


def default_gate_options(admin_override: bool = False) -> ExportGateOptions:
    """Gate options from configuration."""
    return ExportGateOptions(
        hard_gate_enabled=settings.export_hard_gate_enabled,
        admin_override=admin_override,
        minimum_score=settings.export_minimum_score,
    )


def check_export_gate(
    architecture: Optional[ArchitectureData],
    score: Optional[ScoreData],
    risk: Optional[RiskData],
    dependency_map: Optional[DependencyMapData],
    options: Optional[ExportGateOptions] = None,
) -> ExportGateResult:
    """Collect warnings and blockers for export."""
    opts = options or ExportGateOptions()
    warnings: list[str] = []
    blockers: list[str] = []

    def report(message: str) -> None:
        (blockers if opts.hard_gate_enabled else warnings).append(message)

    if not architecture or not architecture.aims:
        report("Architecture not defined - aims and hypotheses not specified")
    else:
        if not architecture.central_hypothesis:
            report("Central hypothesis not defined")

        non_falsifiable = [a for a in architecture.aims if not a.is_falsifiable]
        if non_falsifiable:
            report(f"{len(non_falsifiable)} aim(s) have non-falsifiable hypotheses")

        missing_endpoints = [a for a in architecture.aims if not a.valid_endpoints()]
        if missing_endpoints:
            report(f"{len(missing_endpoints)} aim(s) missing defined endpoints")

    if score is None:
        warnings.append("Structural score not calculated")
    elif score.structural_score < opts.minimum_score:
        report(f"Structural score ({score.structural_score}) below minimum ({opts.minimum_score})")

    if risk is not None:
        if risk.overall_risk == "critical":
            report("Critical risk level detected")
        elif risk.overall_risk == "high" and opts.hard_gate_enabled:
            warnings.append("High risk level - review risks before submission")

    if dependency_map and dependency_map.domino_risk > 0.7:
        message = f"High domino dependency risk ({round_half_up(dependency_map.domino_risk * 100)}%)"
        if opts.hard_gate_enabled and dependency_map.domino_risk > 0.8:
            blockers.append(message)
        else:
            warnings.append(message)

    result = ExportGateResult(
        can_export=opts.admin_override or not blockers,
        warnings=warnings,
        blockers=blockers,
        requires_override=bool(blockers) and not opts.admin_override,
    )
    result.banner = get_export_banner(result)

    if blockers:
        logger.info(f"Export gate: {len(blockers)} blocker(s), override={opts.admin_override}")
    return result


def get_export_banner(result: ExportGateResult) -> Optional[ExportBanner]:
    """Banner summarizing the gate result, or None when there is nothing to say."""
    if result.blockers:
        extra = len(result.blockers) - 1
        suffix = f" (+{extra} more issues)" if extra else ""
        return ExportBanner(type="error", message=f"Export blocked: {result.blockers[0]}{suffix}")

    if result.warnings:
        return ExportBanner(
            type="warning",
            message=f"{len(result.warnings)} issue(s) detected. Review Architecture tab before export.",
        )

    return None
