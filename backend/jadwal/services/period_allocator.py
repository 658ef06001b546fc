from __future__ import annotations

from jadwal.schemas.schedule import StudyPlans
from jadwal.services.study_plans import find_grade_plan

SCHOOL_DAY_COUNT = 5


def allocate_periods(total_weekly_periods: int, days: int = SCHOOL_DAY_COUNT) -> list[int]:
    """Spread a weekly lesson total over the school days, earlier days first.

    ``27`` over five days gives ``[6, 6, 5, 5, 5]``.
    """
    if total_weekly_periods < 0:
        raise ValueError("Weekly period total must not be negative")
    if days < 1:
        raise ValueError("At least one school day is required")
    base_periods, extra = divmod(total_weekly_periods, days)
    return [base_periods + 1 if index < extra else base_periods for index in range(days)]


def max_weekly_total(study_plans: StudyPlans) -> int | None:
    totals = [grade.total for plan in study_plans.values() for grade in plan.grades.values()]
    return max(totals) if totals else None


def school_day_periods(
    study_plans: StudyPlans,
    days: list[str],
    *,
    default_weekly_lessons: int,
) -> dict[str, int]:
    """Periods in the shared daily grid, sized by the heaviest grade."""
    weekly = max_weekly_total(study_plans)
    if weekly is None:
        weekly = default_weekly_lessons
    return dict(zip(days, allocate_periods(weekly, len(days))))


def grade_day_targets(study_plans: StudyPlans, stage: str, days: list[str]) -> dict[str, int]:
    plan = find_grade_plan(study_plans, stage)
    weekly = plan.total if plan is not None else 0
    return dict(zip(days, allocate_periods(weekly, len(days))))
