from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator


def class_key(stage: str, section: str) -> str:
    return f"{stage.replace(' ', '-')}-{section}"


class Subject(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=200)


class ClassData(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    stage: str = Field(min_length=1, max_length=200)
    section: str = Field(min_length=1, max_length=50)
    subjects: list[Subject] = Field(default_factory=list)

    @property
    def key(self) -> str:
        return class_key(self.stage, self.section)


class TeacherAssignment(BaseModel):
    class_id: str = Field(alias="classId")
    subject_id: str = Field(alias="subjectId")

    model_config = {"populate_by_name": True}


class Teacher(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=200)
    assignments: list[TeacherAssignment] = Field(default_factory=list)


class Assignment(BaseModel):
    subject: str = Field(min_length=1)
    teacher: str = Field(min_length=1)


class SchedulePeriod(BaseModel):
    period: int = Field(ge=1)
    assignments: dict[str, Assignment] = Field(default_factory=dict)


ScheduleData = dict[str, list[SchedulePeriod]]
TeacherUnavailability = dict[str, set[str]]


class GradePlan(BaseModel):
    subjects: dict[str, int] = Field(default_factory=dict)
    total: int = 0

    @field_validator("subjects")
    @classmethod
    def validate_counts(cls, value: dict[str, int]) -> dict[str, int]:
        negative = [name for name, count in value.items() if count < 0]
        if negative:
            raise ValueError(f"Weekly counts must not be negative: {', '.join(negative)}")
        return value

    @model_validator(mode="after")
    def recompute_total(self) -> "GradePlan":
        self.total = sum(self.subjects.values())
        return self


class StudyPlan(BaseModel):
    grades: dict[str, GradePlan] = Field(default_factory=dict)


StudyPlans = dict[str, StudyPlan]


class DayStatus(str, Enum):
    pending = "pending"
    generating = "generating"
    done = "done"
    failed = "failed"


class Channel(str, Enum):
    staff = "staff"
    student = "student"


class CellRef(BaseModel):
    day: str
    period: int = Field(ge=1)
    class_key: str = Field(min_length=1)

    @classmethod
    def parse(cls, value: str) -> "CellRef":
        parts = value.split("|")
        if len(parts) != 3:
            raise ValueError(f"Cell reference must look like day|period|classKey, got {value!r}")
        day, period, key = parts
        try:
            period_number = int(period)
        except ValueError as exc:
            raise ValueError(f"Cell period must be an integer, got {period!r}") from exc
        return cls(day=day, period=period_number, class_key=key)

    def __str__(self) -> str:
        return f"{self.day}|{self.period}|{self.class_key}"


class ConflictCheck(BaseModel):
    outcome: Literal["ok", "hard_conflict", "soft_warning"]
    day: str | None = None
    period: int | None = None
    class_key: str | None = None
    teacher: str | None = None
    subject: str | None = None
    conflicting_class_key: str | None = None
    message: str = ""

    @property
    def is_blocking(self) -> bool:
        return self.outcome == "hard_conflict"


class EditResult(BaseModel):
    action: Literal["move", "swap", "add"]
    warnings: list[ConflictCheck] = Field(default_factory=list)
    history_depth: int


class GenerationRun(BaseModel):
    start_index: int
    statuses: dict[str, DayStatus]
    failed_day: str | None = None
    failed_grade: str | None = None
    failure: str | None = None

    @property
    def completed(self) -> bool:
        return self.failed_day is None


class PublicationState(BaseModel):
    has_unpublished_changes: bool = False
    last_published_at: dict[Channel, datetime] = Field(default_factory=dict)


class TeacherLesson(BaseModel):
    period: int
    class_key: str
    subject: str
