from __future__ import annotations

from jadwal.schemas.schedule import ScheduleData, TeacherLesson


def teacher_timetable(schedule: ScheduleData, teacher: str, days: list[str]) -> dict[str, list[TeacherLesson]]:
    """Invert the class timetable into one teacher's lessons per day, ordered by period."""
    view: dict[str, list[TeacherLesson]] = {day: [] for day in days}
    for day in days:
        for row in sorted(schedule.get(day, []), key=lambda item: item.period):
            for key, item in sorted(row.assignments.items()):
                if item.teacher == teacher:
                    view[day].append(TeacherLesson(period=row.period, class_key=key, subject=item.subject))
    return view
