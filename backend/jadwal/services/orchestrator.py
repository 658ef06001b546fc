from __future__ import annotations

from collections import defaultdict
from copy import deepcopy
import logging

from jadwal.core.exceptions import SchedulerError
from jadwal.schemas.schedule import (
    ClassData,
    DayStatus,
    GenerationRun,
    ScheduleData,
    SchedulePeriod,
    StudyPlans,
    Teacher,
    TeacherUnavailability,
)
from jadwal.services.conflict_validator import ConflictValidator
from jadwal.services.edit_engine import EditEngine
from jadwal.services.oracle import GenerationOracle
from jadwal.services.period_allocator import grade_day_targets, school_day_periods
from jadwal.services.workspace import ScheduleWorkspace

logger = logging.getLogger(__name__)


class GradeRejected(Exception):
    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


def group_by_stage(classes: list[ClassData]) -> dict[str, list[ClassData]]:
    grouped: dict[str, list[ClassData]] = defaultdict(list)
    for item in classes:
        grouped[item.stage].append(item)
    return dict(grouped)


class DayOrchestrator:
    """Drives generation day by day and grade by grade.

    Days move ``pending -> generating -> done | failed``. A run started at
    index ``k`` clears and regenerates days ``k..`` and leaves earlier days as
    they were. The first failed grade marks its day ``failed`` and ends the
    run; completed days keep their lessons so the caller can fix inputs and
    resume from the failed day. Edits, undo, reset and restore are refused
    while a run is in progress.
    """

    def __init__(
        self,
        workspace: ScheduleWorkspace,
        oracle: GenerationOracle,
        *,
        edit_engine: EditEngine | None = None,
        validator: ConflictValidator | None = None,
        default_weekly_lessons: int = 35,
    ) -> None:
        self.workspace = workspace
        self.oracle = oracle
        self.validator = validator or ConflictValidator()
        self.edit_engine = edit_engine or EditEngine(workspace, self.validator)
        self.default_weekly_lessons = default_weekly_lessons

    def run(
        self,
        *,
        classes: list[ClassData],
        teachers: list[Teacher],
        study_plans: StudyPlans | None,
        school_level: str,
        unavailability: TeacherUnavailability | None = None,
        start_index: int = 0,
    ) -> GenerationRun:
        days = self.workspace.days
        if not study_plans:
            raise SchedulerError("Save a study plan before generating the timetable")
        if not 0 <= start_index < len(days):
            raise SchedulerError(
                f"Start day index must be between 0 and {len(days) - 1}",
                details={"start_index": start_index},
            )

        with self.workspace.lock:
            if self.workspace.generating:
                raise SchedulerError("Generation is already running for this timetable")
            self.workspace.generating = True
        try:
            return self._run(
                classes=classes,
                teachers=teachers,
                study_plans=study_plans,
                school_level=school_level,
                unavailability=unavailability or {},
                start_index=start_index,
            )
        finally:
            with self.workspace.lock:
                self.workspace.generating = False

    def _run(
        self,
        *,
        classes: list[ClassData],
        teachers: list[Teacher],
        study_plans: StudyPlans,
        school_level: str,
        unavailability: TeacherUnavailability,
        start_index: int,
    ) -> GenerationRun:
        days = self.workspace.days
        logger.info(
            "Generating timetable for owner %s from %s",
            self.workspace.owner_id,
            days[start_index],
        )

        with self.workspace.lock:
            working = self.workspace.snapshot()
            for index in range(start_index, len(days)):
                status = DayStatus.generating if index == start_index else DayStatus.pending
                self.workspace.statuses[days[index]] = status
                working.pop(days[index], None)
            self.edit_engine.commit(deepcopy(working))

        stages = group_by_stage(classes)
        grid = school_day_periods(study_plans, days, default_weekly_lessons=self.default_weekly_lessons)
        targets = {stage: grade_day_targets(study_plans, stage, days) for stage in stages}

        for index in range(start_index, len(days)):
            day = days[index]
            self.workspace.statuses[day] = DayStatus.generating
            prior_days: ScheduleData = {
                name: deepcopy(working[name]) for name in days[:index] if name in working
            }
            day_periods = [SchedulePeriod(period=number) for number in range(1, grid[day] + 1)]

            for stage in sorted(stages):
                target = targets[stage][day]
                if target == 0:
                    continue
                try:
                    self._generate_grade(
                        day=day,
                        stage=stage,
                        stage_classes=stages[stage],
                        day_periods=day_periods,
                        teachers=teachers,
                        study_plans=study_plans,
                        total_periods=grid[day],
                        target=target,
                        school_level=school_level,
                        prior_days=prior_days,
                        classes=classes,
                        unavailability=unavailability,
                    )
                except GradeRejected as exc:
                    self.workspace.statuses[day] = DayStatus.failed
                    logger.warning("Generation failed on %s for %s: %s", day, stage, exc.reason)
                    return GenerationRun(
                        start_index=start_index,
                        statuses=dict(self.workspace.statuses),
                        failed_day=day,
                        failed_grade=stage,
                        failure=exc.reason,
                    )

            working[day] = day_periods
            self.edit_engine.commit(deepcopy(working))
            self.workspace.statuses[day] = DayStatus.done
            logger.info("Generated %s for owner %s", day, self.workspace.owner_id)

        return GenerationRun(start_index=start_index, statuses=dict(self.workspace.statuses))

    def _generate_grade(
        self,
        *,
        day: str,
        stage: str,
        stage_classes: list[ClassData],
        day_periods: list[SchedulePeriod],
        teachers: list[Teacher],
        study_plans: StudyPlans,
        total_periods: int,
        target: int,
        school_level: str,
        prior_days: ScheduleData,
        classes: list[ClassData],
        unavailability: TeacherUnavailability,
    ) -> None:
        try:
            result = self.oracle.generate(
                day=day,
                grade=stage,
                classes_in_grade=list(stage_classes),
                todays_prior_assignments=deepcopy(day_periods),
                teacher_roster=teachers,
                study_plans=study_plans,
                todays_total_periods=total_periods,
                grade_target_periods=target,
                school_level=school_level,
                prior_days_schedule=deepcopy(prior_days),
                all_classes=classes,
                unavailability=unavailability,
            )
        except Exception as exc:
            logger.exception("Oracle raised for %s on %s", stage, day)
            raise GradeRejected(f"Oracle error: {exc}") from exc
        if not result:
            raise GradeRejected("Oracle returned no schedule")

        allowed_keys = {item.key for item in stage_classes}
        by_number = {row.period: row for row in day_periods}
        accepted: list[SchedulePeriod] = []
        for row in result:
            foreign = sorted(set(row.assignments) - allowed_keys)
            if foreign:
                raise GradeRejected(f"Oracle placed lessons for classes outside {stage}: {', '.join(foreign)}")
            if row.period not in by_number:
                logger.warning("Dropping period %d for %s on %s: outside the day grid", row.period, stage, day)
                continue
            accepted.append(row)

        check = self.validator.check_merge(day, day_periods, accepted)
        if check.is_blocking:
            raise GradeRejected(check.message)

        for row in accepted:
            by_number[row.period].assignments.update(row.assignments)
