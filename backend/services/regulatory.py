"""
Regulatory Checklists
Completeness checks for the Human Subjects and Vertebrate Animals sections.
"""

import logging

from backend.schemas.compliance import ValidationIssue
from backend.schemas.regulatory import (
    ExemptionCategory,
    HumanSubjectsData,
    RegulatoryChecklistItem,
    RegulatoryReview,
    VertebrateAnimalsData,
)

logger = logging.getLogger(__name__)

HUMAN_SUBJECTS_SECTION = "Human Subjects"
VERTEBRATE_ANIMALS_SECTION = "Vertebrate Animals"

EXEMPTION_CATEGORIES = [
    ExemptionCategory(id="1", name="Category 1", description="Research in educational settings"),
    ExemptionCategory(id="2", name="Category 2", description="Educational tests, surveys, interviews, observation"),
    ExemptionCategory(id="3", name="Category 3", description="Benign behavioral interventions"),
    ExemptionCategory(id="4", name="Category 4", description="Secondary research with identifiable private information"),
    ExemptionCategory(id="5", name="Category 5", description="Federal demonstration projects"),
    ExemptionCategory(id="6", name="Category 6", description="Taste and food quality evaluation"),
    ExemptionCategory(id="7", name="Category 7", description="Storage or maintenance of identifiable data/specimens"),
    ExemptionCategory(id="8", name="Category 8", description="Secondary research with broad consent"),
]

VULNERABLE_POPULATIONS = [
    "Children/Minors",
    "Pregnant Women",
    "Prisoners",
    "Cognitively Impaired",
    "Economically Disadvantaged",
    "Educationally Disadvantaged",
    "Terminally Ill",
    "Students/Employees (potential coercion)",
]

# 45 CFR 46 subparts with additional protections
POPULATION_SUBPARTS = {
    "Pregnant Women": "B",
    "Prisoners": "C",
    "Children/Minors": "D",
}


def calculate_progress(items: list[RegulatoryChecklistItem]) -> float:
    """Calculate weighted completion percentage."""
    if not items:
        return 0.0

    total_weight = sum(item.weight for item in items)
    if total_weight == 0:
        return 0.0

    completed_weight = sum(item.weight for item in items if item.completed)
    return (completed_weight / total_weight) * 100.0


def _item(item_id: str, title: str, completed: bool, weight: float = 1.0) -> RegulatoryChecklistItem:
    return RegulatoryChecklistItem(item_id=item_id, title=title, weight=weight, completed=bool(completed))


def _filled(text: str) -> bool:
    return bool(text and text.strip())


def _review(applicable, items, issues) -> RegulatoryReview:
    ready = all(i.completed for i in items if i.required) and not any(i.type == "error" for i in issues)
    return RegulatoryReview(
        applicable=applicable,
        items=items,
        progress_percent=round(calculate_progress(items), 1),
        issues=issues,
        ready=ready,
    )


def _error(message: str, section: str) -> ValidationIssue:
    return ValidationIssue(type="error", message=message, section=section)


def _warning(message: str, section: str) -> ValidationIssue:
    return ValidationIssue(type="warning", message=message, section=section)


# =============================================================================
# Human Subjects
# =============================================================================


def _inclusion_issues(data: HumanSubjectsData) -> list[ValidationIssue]:
    plan = data.inclusion_plan
    target = plan.target_enrollment
    if target == 0:
        return []

    issues = []
    breakdowns = {
        "sex": plan.sex.males + plan.sex.females,
        "ethnicity": plan.ethnicity.hispanic + plan.ethnicity.non_hispanic,
    }
    if plan.race:
        breakdowns["race"] = sum(plan.race.values())

    for name, total in breakdowns.items():
        if total != target:
            issues.append(
                _error(
                    f"Inclusion enrollment by {name} totals {total}, expected {target}",
                    HUMAN_SUBJECTS_SECTION,
                )
            )
    return issues


def check_human_subjects(data: HumanSubjectsData) -> RegulatoryReview:
    """
    Checklist and findings for the Human Subjects section.

    A "no human subjects" answer completes the section.
    """
    answered = _item("involvement", "Human subjects involvement determined", data.involves_human_subjects is not None)
    if not data.involves_human_subjects:
        return _review(data.involves_human_subjects, [answered], [])

    plan = data.inclusion_plan
    items = [
        answered,
        _item("clinical_trial", "Clinical trial determination", data.is_clinical_trial is not None),
        _item("risk_level", "Risk level assessed", data.risk_level is not None),
        _item("protection_plan", "Protection of human subjects from research risks", _filled(data.protection_plan), 2.0),
        _item("informed_consent", "Informed consent process", _filled(data.informed_consent_process), 2.0),
        _item("data_privacy", "Data privacy and confidentiality plan", _filled(data.data_privacy_plan), 1.5),
        _item("inclusion_plan", "Inclusion enrollment plan", plan.target_enrollment > 0, 1.5),
        _item("irb", "IRB review submitted", data.irb_status != "not_submitted"),
    ]

    issues = []
    if data.is_clinical_trial:
        issues.append(
            _warning(
                "Clinical trials must be registered on ClinicalTrials.gov and need a Data and Safety Monitoring Plan",
                HUMAN_SUBJECTS_SECTION,
            )
        )

    for population in data.vulnerable_populations:
        subpart = POPULATION_SUBPARTS.get(population)
        if subpart:
            issues.append(
                _warning(
                    f"{population}: additional protections under 45 CFR 46 Subpart {subpart} apply",
                    HUMAN_SUBJECTS_SECTION,
                )
            )

    if data.exemption_category and data.risk_level == "greater_than_minimal":
        issues.append(_error("Exempt research must be minimal risk", HUMAN_SUBJECTS_SECTION))

    if data.irb_status == "exempt" and not data.exemption_category:
        issues.append(_error("Select the exemption category for exempt research", HUMAN_SUBJECTS_SECTION))

    issues.extend(_inclusion_issues(data))

    if data.irb_status == "not_submitted":
        issues.append(_warning("IRB protocol has not been submitted", HUMAN_SUBJECTS_SECTION))
    elif data.irb_status in ("approved", "pending") and not _filled(data.irb_protocol_number or ""):
        issues.append(_error("IRB protocol number is required once submitted", HUMAN_SUBJECTS_SECTION))

    review = _review(True, items, issues)
    logger.debug(f"Human subjects checklist at {review.progress_percent}% with {len(issues)} issues")
    return review


# =============================================================================
# Vertebrate Animals
# =============================================================================


def check_vertebrate_animals(data: VertebrateAnimalsData) -> RegulatoryReview:
    """
    Checklist and findings for the Vertebrate Animals section.

    Every animal must be assigned to exactly one pain category.
    """
    answered = _item("involvement", "Vertebrate animal involvement determined", data.involves_animals is not None)
    if not data.involves_animals:
        return _review(data.involves_animals, [answered], [])

    items = [
        answered,
        _item("species", "Species identified", any(_filled(s) for s in data.species)),
        _item("animal_numbers", "Number of animals", data.total_number > 0),
        _item("justification", "Justification for animal use", _filled(data.justification), 2.0),
        _item("procedures", "Description of procedures", _filled(data.procedures_description), 2.0),
        _item("veterinary_care", "Veterinary care", _filled(data.veterinary_care)),
        _item("euthanasia", "Method of euthanasia", _filled(data.euthanasia_method)),
        _item("alternatives", "Alternatives considered", _filled(data.alternatives_considered)),
        _item("iacuc", "IACUC review submitted", data.iacuc_status != "not_submitted"),
    ]

    issues = []
    pain_total = data.pain_categories.total
    if data.total_number > 0 and pain_total != data.total_number:
        issues.append(
            _error(
                f"Pain categories cover {pain_total} animals, expected {data.total_number}",
                VERTEBRATE_ANIMALS_SECTION,
            )
        )

    if data.pain_categories.category_e > 0 and not _filled(data.justification):
        issues.append(
            _error("Category E procedures require a scientific justification", VERTEBRATE_ANIMALS_SECTION)
        )

    if data.iacuc_status == "not_submitted":
        issues.append(_warning("IACUC protocol has not been submitted", VERTEBRATE_ANIMALS_SECTION))
    elif not _filled(data.iacuc_protocol_number or ""):
        issues.append(_error("IACUC protocol number is required once submitted", VERTEBRATE_ANIMALS_SECTION))

    return _review(True, items, issues)
