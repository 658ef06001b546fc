from __future__ import annotations

from jadwal.schemas.schedule import Assignment, CellRef, ConflictCheck, ScheduleData, SchedulePeriod

OK = ConflictCheck(outcome="ok")


def find_period(periods: list[SchedulePeriod], period: int) -> SchedulePeriod | None:
    for item in periods:
        if item.period == period:
            return item
    return None


class ConflictValidator:
    """Stateless rule checks shared by generation and manual editing.

    The hard rule is per period: one teacher may hold at most one class in a
    given ``(day, period)``. The soft rule is advisory: the same subject twice
    for the same class on the same day.
    """

    def check_teacher(
        self,
        periods: list[SchedulePeriod],
        *,
        day: str,
        period: int,
        teacher: str,
        class_key: str,
    ) -> ConflictCheck:
        row = find_period(periods, period)
        if row is None:
            return OK
        for other_key, other in row.assignments.items():
            if other_key != class_key and other.teacher == teacher:
                return ConflictCheck(
                    outcome="hard_conflict",
                    day=day,
                    period=period,
                    class_key=class_key,
                    teacher=teacher,
                    subject=other.subject,
                    conflicting_class_key=other_key,
                    message=(
                        f"{teacher} already teaches {other_key} in period {period} on {day}"
                    ),
                )
        return OK

    def check_subject_repeat(
        self,
        periods: list[SchedulePeriod],
        *,
        day: str,
        period: int,
        class_key: str,
        subject: str,
    ) -> ConflictCheck:
        for row in periods:
            if row.period == period:
                continue
            other = row.assignments.get(class_key)
            if other is not None and other.subject == subject:
                return ConflictCheck(
                    outcome="soft_warning",
                    day=day,
                    period=period,
                    class_key=class_key,
                    subject=subject,
                    teacher=other.teacher,
                    message=f"{subject} is taught twice for {class_key} on {day}",
                )
        return OK

    def check_placement(self, schedule: ScheduleData, cell: CellRef, assignment: Assignment) -> ConflictCheck:
        """Check ``assignment`` sitting in ``cell`` of ``schedule``, hard rule first."""
        periods = schedule.get(cell.day, [])
        hard = self.check_teacher(
            periods,
            day=cell.day,
            period=cell.period,
            teacher=assignment.teacher,
            class_key=cell.class_key,
        )
        if hard.is_blocking:
            return hard
        return self.check_subject_repeat(
            periods,
            day=cell.day,
            period=cell.period,
            class_key=cell.class_key,
            subject=assignment.subject,
        )

    def check_merge(
        self,
        day: str,
        merged: list[SchedulePeriod],
        incoming: list[SchedulePeriod],
    ) -> ConflictCheck:
        """Hard rule for an oracle result against periods merged so far and within itself."""
        busy_by_period: dict[int, dict[str, str]] = {
            row.period: {item.teacher: key for key, item in row.assignments.items()} for row in merged
        }
        for row in incoming:
            busy = busy_by_period.setdefault(row.period, {})
            for key, item in row.assignments.items():
                holder = busy.get(item.teacher)
                if holder is not None and holder != key:
                    return ConflictCheck(
                        outcome="hard_conflict",
                        day=day,
                        period=row.period,
                        class_key=key,
                        teacher=item.teacher,
                        subject=item.subject,
                        conflicting_class_key=holder,
                        message=(
                            f"{item.teacher} is booked for both {holder} and {key} "
                            f"in period {row.period} on {day}"
                        ),
                    )
                busy[item.teacher] = key
        return OK

    def find_hard_conflicts(self, schedule: ScheduleData) -> list[ConflictCheck]:
        conflicts: list[ConflictCheck] = []
        for day, periods in schedule.items():
            for row in periods:
                seen: dict[str, str] = {}
                for key, item in row.assignments.items():
                    holder = seen.get(item.teacher)
                    if holder is not None:
                        conflicts.append(
                            ConflictCheck(
                                outcome="hard_conflict",
                                day=day,
                                period=row.period,
                                class_key=key,
                                teacher=item.teacher,
                                subject=item.subject,
                                conflicting_class_key=holder,
                                message=f"{item.teacher} is double-booked in period {row.period} on {day}",
                            )
                        )
                    else:
                        seen[item.teacher] = key
        return conflicts
