from __future__ import annotations

import logging

from pydantic import ValidationError

from jadwal.core.exceptions import ResourceNotFoundError, SchedulerError
from jadwal.schemas.schedule import GradePlan, StudyPlan, StudyPlans
from jadwal.services.store import KeyValueStore

logger = logging.getLogger(__name__)


def find_grade_plan(study_plans: StudyPlans, stage: str) -> GradePlan | None:
    """Return the plan for ``stage`` from whichever school level defines it."""
    for level in sorted(study_plans):
        grade = study_plans[level].grades.get(stage)
        if grade is not None:
            return grade
    return None


def _replace_grade(plan: StudyPlan, stage: str, subjects: dict[str, int]) -> StudyPlan:
    grades = dict(plan.grades)
    # GradePlan recomputes its total on construction, so subjects and total change together.
    grades[stage] = GradePlan(subjects=subjects)
    return StudyPlan(grades=grades)


def _grade_subjects(plan: StudyPlan, stage: str) -> dict[str, int]:
    grade = plan.grades.get(stage)
    if grade is None:
        raise ResourceNotFoundError("Grade", stage)
    return dict(grade.subjects)


def set_subject_count(plan: StudyPlan, stage: str, subject: str, count: int) -> StudyPlan:
    if count < 0:
        raise SchedulerError("Weekly lesson count must not be negative", details={"subject": subject})
    subjects = _grade_subjects(plan, stage)
    if subject not in subjects:
        raise ResourceNotFoundError("Subject", subject)
    subjects[subject] = count
    return _replace_grade(plan, stage, subjects)


def add_subject(plan: StudyPlan, stage: str, subject: str, count: int = 0) -> StudyPlan:
    name = subject.strip()
    if not name:
        raise SchedulerError("Subject name must not be empty")
    subjects = dict(plan.grades[stage].subjects) if stage in plan.grades else {}
    if name in subjects:
        raise SchedulerError(f"{name} is already part of the {stage} plan")
    subjects[name] = count
    return _replace_grade(plan, stage, subjects)


def remove_subject(plan: StudyPlan, stage: str, subject: str) -> StudyPlan:
    subjects = _grade_subjects(plan, stage)
    if subjects.pop(subject, None) is None:
        raise ResourceNotFoundError("Subject", subject)
    return _replace_grade(plan, stage, subjects)


def remove_grade(plan: StudyPlan, stage: str) -> StudyPlan:
    if stage not in plan.grades:
        raise ResourceNotFoundError("Grade", stage)
    return StudyPlan(grades={name: grade for name, grade in plan.grades.items() if name != stage})


def study_plans_path(root: str, owner_id: str) -> str:
    return f"{root}/{owner_id}"


def save_study_plans(store: KeyValueStore, path: str, study_plans: StudyPlans) -> None:
    store.set(path, {level: plan.model_dump() for level, plan in study_plans.items()})
    logger.info("Saved %d study plan level(s) to %s", len(study_plans), path)


def load_study_plans(store: KeyValueStore, path: str) -> StudyPlans | None:
    raw = store.get(path)
    if raw is None:
        return None
    try:
        return {level: StudyPlan.model_validate(plan) for level, plan in raw.items()}
    except (AttributeError, ValidationError) as exc:
        raise SchedulerError(f"Stored study plans at {path} are malformed") from exc
