"""Generation oracles: the component that proposes one grade's lessons for one day.

The orchestrator treats every oracle as untrusted. ``None`` means the oracle
could not produce a day for the grade.
"""
from __future__ import annotations

from collections import Counter
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
import logging
import math
from typing import Protocol

from jadwal.schemas.schedule import (
    Assignment,
    ClassData,
    ScheduleData,
    SchedulePeriod,
    StudyPlans,
    Teacher,
    TeacherUnavailability,
)
from jadwal.services.edit_engine import find_teacher_for
from jadwal.services.study_plans import find_grade_plan

logger = logging.getLogger(__name__)


class GenerationOracle(Protocol):
    def generate(
        self,
        *,
        day: str,
        grade: str,
        classes_in_grade: list[ClassData],
        todays_prior_assignments: list[SchedulePeriod],
        teacher_roster: list[Teacher],
        study_plans: StudyPlans,
        todays_total_periods: int,
        grade_target_periods: int,
        school_level: str,
        prior_days_schedule: ScheduleData,
        all_classes: list[ClassData],
        unavailability: TeacherUnavailability,
    ) -> list[SchedulePeriod] | None: ...


def unavailable_teachers(day: str, teachers: list[Teacher], unavailability: TeacherUnavailability) -> set[str]:
    """Names of teachers who cannot teach on ``day``; keys may be teacher ids or names."""
    names: set[str] = set()
    by_id = {teacher.id: teacher.name for teacher in teachers}
    for teacher_ref, days in unavailability.items():
        if day in days:
            names.add(by_id.get(teacher_ref, teacher_ref))
    return names


class GreedyOracle:
    """Deterministic period-by-period heuristic.

    For each class it walks the grade's periods in order and picks, among the
    subjects with weekly lessons still owed and a free, available teacher, the
    one not yet taught today with the most lessons outstanding. Core subjects
    win ties in the first half of the day; the rest win them in the second half.
    """

    def __init__(self, core_subjects: list[str] | None = None) -> None:
        self.core_subjects = set(core_subjects or [])

    def generate(
        self,
        *,
        day: str,
        grade: str,
        classes_in_grade: list[ClassData],
        todays_prior_assignments: list[SchedulePeriod],
        teacher_roster: list[Teacher],
        study_plans: StudyPlans,
        todays_total_periods: int,
        grade_target_periods: int,
        school_level: str,
        prior_days_schedule: ScheduleData,
        all_classes: list[ClassData],
        unavailability: TeacherUnavailability,
    ) -> list[SchedulePeriod] | None:
        plan = find_grade_plan(study_plans, grade)
        if plan is None:
            return None

        periods = min(grade_target_periods, todays_total_periods)
        early_cutoff = math.ceil(todays_total_periods / 2)
        blocked = unavailable_teachers(day, teacher_roster, unavailability)
        busy: dict[int, set[str]] = {
            row.period: {item.teacher for item in row.assignments.values()} for row in todays_prior_assignments
        }
        output: dict[int, dict[str, Assignment]] = {number: {} for number in range(1, periods + 1)}

        for class_data in sorted(classes_in_grade, key=lambda item: item.section):
            key = class_data.key
            taught = Counter(
                row.assignments[key].subject
                for rows in prior_days_schedule.values()
                for row in rows
                if key in row.assignments
            )
            teacher_for: dict[str, str] = {}
            for subject in class_data.subjects:
                if subject.name not in plan.subjects:
                    continue
                teacher = find_teacher_for(teacher_roster, class_data.id, subject.id)
                if teacher is not None and teacher.name not in blocked:
                    teacher_for[subject.name] = teacher.name

            remaining = {name: plan.subjects[name] - taught[name] for name in teacher_for}
            today: Counter[str] = Counter()

            for number in range(1, periods + 1):
                taken = busy.setdefault(number, set())
                candidates = [
                    name
                    for name, owed in remaining.items()
                    if owed > 0 and teacher_for[name] not in taken
                ]
                if not candidates:
                    logger.info("Greedy oracle found no lesson for %s period %d on %s", key, number, day)
                    return None
                early = number <= early_cutoff
                candidates.sort(
                    key=lambda name: (
                        today[name],
                        0 if (name in self.core_subjects) == early else 1,
                        -remaining[name],
                        name,
                    )
                )
                chosen = candidates[0]
                teacher_name = teacher_for[chosen]
                output[number][key] = Assignment(subject=chosen, teacher=teacher_name)
                taken.add(teacher_name)
                remaining[chosen] -= 1
                today[chosen] += 1

        return [SchedulePeriod(period=number, assignments=rows) for number, rows in output.items()]


class TimeoutOracle:
    """Fails a wrapped oracle call that runs longer than ``timeout_seconds``."""

    def __init__(self, inner: GenerationOracle, timeout_seconds: float) -> None:
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        self.inner = inner
        self.timeout_seconds = timeout_seconds

    def generate(
        self,
        *,
        day: str,
        grade: str,
        classes_in_grade: list[ClassData],
        todays_prior_assignments: list[SchedulePeriod],
        teacher_roster: list[Teacher],
        study_plans: StudyPlans,
        todays_total_periods: int,
        grade_target_periods: int,
        school_level: str,
        prior_days_schedule: ScheduleData,
        all_classes: list[ClassData],
        unavailability: TeacherUnavailability,
    ) -> list[SchedulePeriod] | None:
        executor = ThreadPoolExecutor(max_workers=1)
        future = executor.submit(
            self.inner.generate,
            day=day,
            grade=grade,
            classes_in_grade=classes_in_grade,
            todays_prior_assignments=todays_prior_assignments,
            teacher_roster=teacher_roster,
            study_plans=study_plans,
            todays_total_periods=todays_total_periods,
            grade_target_periods=grade_target_periods,
            school_level=school_level,
            prior_days_schedule=prior_days_schedule,
            all_classes=all_classes,
            unavailability=unavailability,
        )
        try:
            return future.result(timeout=self.timeout_seconds)
        except FutureTimeoutError:
            logger.warning(
                "Oracle timed out after %.1fs for %s on %s",
                self.timeout_seconds,
                grade,
                day,
            )
            return None
        finally:
            # Do not block on a call that is still running.
            executor.shutdown(wait=False)
