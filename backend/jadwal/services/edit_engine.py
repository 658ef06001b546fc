from __future__ import annotations

from copy import deepcopy
import logging

from jadwal.core.exceptions import HardConflictError, MissingTeacherError, ResourceNotFoundError, SchedulerError
from jadwal.schemas.schedule import (
    Assignment,
    CellRef,
    ClassData,
    ConflictCheck,
    EditResult,
    ScheduleData,
    SchedulePeriod,
    Subject,
    Teacher,
)
from jadwal.services.conflict_validator import ConflictValidator, find_period
from jadwal.services.workspace import ScheduleWorkspace

logger = logging.getLogger(__name__)


def find_class_by_key(classes: list[ClassData], key: str) -> ClassData | None:
    for item in classes:
        if item.key == key:
            return item
    return None


def find_teacher_for(teachers: list[Teacher], class_id: str, subject_id: str) -> Teacher | None:
    for teacher in teachers:
        if any(a.class_id == class_id and a.subject_id == subject_id for a in teacher.assignments):
            return teacher
    return None


def _resolve_subject(class_data: ClassData, subject: str) -> Subject | None:
    for item in class_data.subjects:
        if item.id == subject:
            return item
    for item in class_data.subjects:
        if item.name == subject:
            return item
    return None


class EditEngine:
    """Conflict-checked edits with a linear undo history.

    Every committed change pushes the pre-change schedule onto the workspace
    history and marks the schedule as unpublished. A rejected edit leaves the
    schedule untouched.
    """

    def __init__(self, workspace: ScheduleWorkspace, validator: ConflictValidator | None = None) -> None:
        self.workspace = workspace
        self.validator = validator or ConflictValidator()

    def commit(self, schedule: ScheduleData) -> None:
        with self.workspace.lock:
            self.workspace.push_history()
            self.workspace.schedule = schedule
            self.workspace.publication.has_unpublished_changes = True

    def _row(self, schedule: ScheduleData, cell: CellRef) -> SchedulePeriod:
        if self.workspace.day_index(cell.day) < 0:
            raise SchedulerError(f"{cell.day} is not a school day", details={"cell": str(cell)})
        row = find_period(schedule.get(cell.day, []), cell.period)
        if row is None:
            raise SchedulerError(
                f"Period {cell.period} does not exist on {cell.day}",
                details={"cell": str(cell)},
            )
        return row

    def _reject_hard(self, check: ConflictCheck) -> None:
        if check.is_blocking:
            logger.warning("Rejected edit: %s", check.message)
            raise HardConflictError(check.message, details=check.model_dump(exclude_none=True))

    def move(self, source: CellRef, target: CellRef) -> EditResult:
        """Move the lesson in ``source`` to ``target``, swapping if ``target`` is filled."""
        if source == target:
            raise SchedulerError("Source and target cells are the same", details={"cell": str(source)})

        with self.workspace.lock:
            self.workspace.ensure_idle()
            candidate = deepcopy(self.workspace.schedule)
            source_row = self._row(candidate, source)
            target_row = self._row(candidate, target)

            moving = source_row.assignments.get(source.class_key)
            if moving is None:
                raise SchedulerError("Source cell is empty", details={"cell": str(source)})
            displaced = target_row.assignments.get(target.class_key)

            if displaced is not None:
                source_row.assignments[source.class_key] = displaced
            else:
                del source_row.assignments[source.class_key]
            target_row.assignments[target.class_key] = moving

            landed = [(target, moving)]
            if displaced is not None:
                landed.append((source, displaced))

            checks = [self.validator.check_placement(candidate, cell, item) for cell, item in landed]
            for check in checks:
                self._reject_hard(check)

            self.commit(candidate)
            action = "swap" if displaced is not None else "move"
            logger.info("Applied %s %s -> %s for owner %s", action, source, target, self.workspace.owner_id)
            return EditResult(
                action=action,
                warnings=[check for check in checks if check.outcome == "soft_warning"],
                history_depth=len(self.workspace.history),
            )

    def add(
        self,
        cell: CellRef,
        subject: str,
        classes: list[ClassData],
        teachers: list[Teacher],
    ) -> EditResult:
        """Place ``subject`` in an empty cell, taught by the teacher assigned to it for that class."""
        class_data = find_class_by_key(classes, cell.class_key)
        if class_data is None:
            raise ResourceNotFoundError("Class", cell.class_key)
        resolved = _resolve_subject(class_data, subject)
        if resolved is None:
            raise ResourceNotFoundError("Subject", subject)
        teacher = find_teacher_for(teachers, class_data.id, resolved.id)
        if teacher is None:
            raise MissingTeacherError(resolved.name, cell.class_key)

        with self.workspace.lock:
            self.workspace.ensure_idle()
            candidate = deepcopy(self.workspace.schedule)
            row = self._row(candidate, cell)
            if cell.class_key in row.assignments:
                raise SchedulerError("Cell already has a lesson", details={"cell": str(cell)})

            assignment = Assignment(subject=resolved.name, teacher=teacher.name)
            row.assignments[cell.class_key] = assignment
            check = self.validator.check_placement(candidate, cell, assignment)
            self._reject_hard(check)

            self.commit(candidate)
            logger.info("Added %s with %s at %s", resolved.name, teacher.name, cell)
            return EditResult(
                action="add",
                warnings=[check] if check.outcome == "soft_warning" else [],
                history_depth=len(self.workspace.history),
            )

    def undo(self) -> bool:
        with self.workspace.lock:
            self.workspace.ensure_idle()
            if not self.workspace.history:
                return False
            self.workspace.schedule = self.workspace.history.pop()
            self.workspace.publication.has_unpublished_changes = True
            return True
