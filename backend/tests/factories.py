from jadwal.core.exceptions import StoreFailureError
from jadwal.schemas.schedule import (
    Assignment,
    ClassData,
    GradePlan,
    SchedulePeriod,
    StudyPlan,
    Subject,
    Teacher,
    TeacherAssignment,
)

FIRST = "First Intermediate"
SECOND = "Second Intermediate"
FIRST_A = "First-Intermediate-A"
FIRST_B = "First-Intermediate-B"
SECOND_A = "Second-Intermediate-A"

MATH = Subject(id="s-math", name="Mathematics")
ARABIC = Subject(id="s-ar", name="Arabic")
ENGLISH = Subject(id="s-en", name="English")
SCIENCE = Subject(id="s-sci", name="Science")


def make_classes() -> list[ClassData]:
    return [
        ClassData(id="c1a", stage=FIRST, section="A", subjects=[MATH, ARABIC, ENGLISH]),
        ClassData(id="c1b", stage=FIRST, section="B", subjects=[MATH, ARABIC, ENGLISH]),
        ClassData(id="c2a", stage=SECOND, section="A", subjects=[MATH, ARABIC, ENGLISH, SCIENCE]),
    ]


def _teacher(teacher_id: str, name: str, *pairs: tuple[str, str]) -> Teacher:
    return Teacher(
        id=teacher_id,
        name=name,
        assignments=[TeacherAssignment(class_id=class_id, subject_id=subject_id) for class_id, subject_id in pairs],
    )


def make_teachers() -> list[Teacher]:
    """Every class has its own teacher per subject, so no period can ever clash."""
    return [
        _teacher("t1", "Ahmed", ("c1a", "s-math")),
        _teacher("t2", "Huda", ("c1b", "s-math")),
        _teacher("t3", "Khalid", ("c2a", "s-math")),
        _teacher("t4", "Fatima", ("c1a", "s-ar")),
        _teacher("t5", "Mona", ("c1b", "s-ar")),
        _teacher("t6", "Omar", ("c2a", "s-ar"), ("c2a", "s-sci")),
        _teacher("t7", "Sara", ("c1a", "s-en")),
        _teacher("t8", "Layla", ("c1b", "s-en")),
        _teacher("t9", "Yusuf", ("c2a", "s-en")),
    ]


def make_study_plans() -> dict[str, StudyPlan]:
    # Weekly totals 5 and 7: daily grid [2, 2, 1, 1, 1].
    return {
        "Intermediate": StudyPlan(
            grades={
                FIRST: GradePlan(subjects={"Mathematics": 2, "Arabic": 2, "English": 1}),
                SECOND: GradePlan(subjects={"Mathematics": 2, "Arabic": 2, "English": 1, "Science": 2}),
            }
        )
    }


def period(number: int, lessons: dict[str, tuple[str, str]] | None = None) -> SchedulePeriod:
    return SchedulePeriod(
        period=number,
        assignments={
            key: Assignment(subject=subject, teacher=teacher)
            for key, (subject, teacher) in (lessons or {}).items()
        },
    )


class ScriptedOracle:
    """Fills every class with its own teacher unless a ``(day, grade)`` script says otherwise.

    A scripted value may be a period list, ``None`` or an exception instance to raise.
    """

    def __init__(self, script: dict | None = None) -> None:
        self.script = script or {}
        self.calls: list[dict] = []

    def generate(self, **context):
        self.calls.append(context)
        key = (context["day"], context["grade"])
        if key in self.script:
            value = self.script[key]
            if isinstance(value, Exception):
                raise value
            return value
        periods = min(context["grade_target_periods"], context["todays_total_periods"])
        return [
            SchedulePeriod(
                period=number,
                assignments={
                    item.key: Assignment(subject="Mathematics", teacher=f"teacher-{item.key}")
                    for item in context["classes_in_grade"]
                },
            )
            for number in range(1, periods + 1)
        ]


class FailingStore:
    def get(self, path):
        raise StoreFailureError("get", path)

    def set(self, path, value):
        raise StoreFailureError("set", path)

    def update(self, path, partial):
        raise StoreFailureError("update", path)

    def remove(self, path):
        raise StoreFailureError("remove", path)
