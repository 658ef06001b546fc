from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from jadwal.schemas.schedule import (
    CellRef,
    Channel,
    ClassData,
    ConflictCheck,
    DayStatus,
    SchedulePeriod,
    StudyPlan,
    Teacher,
)


def _coerce_cell(value: object) -> object:
    if isinstance(value, str):
        return CellRef.parse(value)
    return value


class GenerateRequest(BaseModel):
    classes: list[ClassData] = Field(default_factory=list)
    teachers: list[Teacher] = Field(default_factory=list)
    school_level: str = Field(default="", alias="schoolLevel")
    study_plans: dict[str, StudyPlan] | None = Field(default=None, alias="studyPlans")
    unavailability: dict[str, set[str]] = Field(default_factory=dict)
    start_index: int = Field(default=0, ge=0, alias="startIndex")

    model_config = {"populate_by_name": True}


class MoveRequest(BaseModel):
    source: CellRef
    target: CellRef

    @field_validator("source", "target", mode="before")
    @classmethod
    def parse_cells(cls, value: object) -> object:
        return _coerce_cell(value)


class AddLessonRequest(BaseModel):
    cell: CellRef
    subject: str = Field(min_length=1)
    classes: list[ClassData] = Field(default_factory=list)
    teachers: list[Teacher] = Field(default_factory=list)

    @field_validator("cell", mode="before")
    @classmethod
    def parse_cell(cls, value: object) -> object:
        return _coerce_cell(value)


class SubjectCountUpdate(BaseModel):
    count: int = Field(ge=0, le=60)


class ScheduleStateOut(BaseModel):
    owner_id: str
    schedule: dict[str, list[SchedulePeriod]]
    statuses: dict[str, DayStatus]
    has_unpublished_changes: bool
    history_depth: int
    last_published_at: dict[Channel, datetime] = Field(default_factory=dict)
    conflicts: list[ConflictCheck] = Field(default_factory=list)


class PublishResponse(BaseModel):
    channel: Channel
    published_at: datetime
    has_unpublished_changes: bool


class UndoResponse(BaseModel):
    undone: bool
    history_depth: int
