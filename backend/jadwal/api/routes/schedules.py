from fastapi import APIRouter, Depends, status

from jadwal.api.deps import get_channel_paths, get_oracle, get_store, get_workspace
from jadwal.core.config import Settings, get_settings
from jadwal.core.exceptions import SchedulerError
from jadwal.schemas.requests import (
    AddLessonRequest,
    GenerateRequest,
    MoveRequest,
    PublishResponse,
    ScheduleStateOut,
    SubjectCountUpdate,
    UndoResponse,
)
from jadwal.schemas.schedule import Channel, EditResult, GenerationRun, StudyPlan, TeacherLesson
from jadwal.services.conflict_validator import ConflictValidator
from jadwal.services.edit_engine import EditEngine
from jadwal.services.oracle import GenerationOracle
from jadwal.services.orchestrator import DayOrchestrator
from jadwal.services.publication import ChannelPaths, PublicationController
from jadwal.services.reset import ResetController
from jadwal.services.store import KeyValueStore
from jadwal.services.study_plans import (
    add_subject,
    load_study_plans,
    remove_grade,
    remove_subject,
    save_study_plans,
    set_subject_count,
    study_plans_path,
)
from jadwal.services.teacher_view import teacher_timetable
from jadwal.services.workspace import ScheduleWorkspace

router = APIRouter()


def _state(workspace: ScheduleWorkspace) -> ScheduleStateOut:
    with workspace.lock:
        return ScheduleStateOut(
            owner_id=workspace.owner_id,
            schedule=workspace.snapshot(),
            statuses=dict(workspace.statuses),
            has_unpublished_changes=workspace.publication.has_unpublished_changes,
            history_depth=len(workspace.history),
            last_published_at=dict(workspace.publication.last_published_at),
            conflicts=ConflictValidator().find_hard_conflicts(workspace.schedule),
        )


@router.get("/{owner_id}", response_model=ScheduleStateOut)
def get_schedule(workspace: ScheduleWorkspace = Depends(get_workspace)):
    return _state(workspace)


@router.post("/{owner_id}/generate", response_model=GenerationRun)
def generate_schedule(
    owner_id: str,
    payload: GenerateRequest,
    workspace: ScheduleWorkspace = Depends(get_workspace),
    oracle: GenerationOracle = Depends(get_oracle),
    store: KeyValueStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    study_plans = payload.study_plans
    if study_plans is None:
        study_plans = load_study_plans(store, study_plans_path(settings.study_plans_root, owner_id))
    orchestrator = DayOrchestrator(
        workspace,
        oracle,
        default_weekly_lessons=settings.default_weekly_lessons,
    )
    return orchestrator.run(
        classes=payload.classes,
        teachers=payload.teachers,
        study_plans=study_plans,
        school_level=payload.school_level,
        unavailability=payload.unavailability,
        start_index=payload.start_index,
    )


@router.post("/{owner_id}/moves", response_model=EditResult)
def move_lesson(payload: MoveRequest, workspace: ScheduleWorkspace = Depends(get_workspace)):
    return EditEngine(workspace).move(payload.source, payload.target)


@router.post("/{owner_id}/lessons", response_model=EditResult, status_code=status.HTTP_201_CREATED)
def add_lesson(payload: AddLessonRequest, workspace: ScheduleWorkspace = Depends(get_workspace)):
    return EditEngine(workspace).add(payload.cell, payload.subject, payload.classes, payload.teachers)


@router.post("/{owner_id}/undo", response_model=UndoResponse)
def undo_edit(workspace: ScheduleWorkspace = Depends(get_workspace)):
    undone = EditEngine(workspace).undo()
    return UndoResponse(undone=undone, history_depth=len(workspace.history))


@router.post("/{owner_id}/publish/{channel}", response_model=PublishResponse)
def publish_schedule(
    channel: Channel,
    workspace: ScheduleWorkspace = Depends(get_workspace),
    store: KeyValueStore = Depends(get_store),
    paths: ChannelPaths = Depends(get_channel_paths),
):
    published_at = PublicationController(workspace, store, paths).publish(channel)
    return PublishResponse(
        channel=channel,
        published_at=published_at,
        has_unpublished_changes=workspace.publication.has_unpublished_changes,
    )


@router.post("/{owner_id}/restore", response_model=ScheduleStateOut)
def restore_schedule(
    workspace: ScheduleWorkspace = Depends(get_workspace),
    store: KeyValueStore = Depends(get_store),
    paths: ChannelPaths = Depends(get_channel_paths),
):
    if not PublicationController(workspace, store, paths).restore():
        raise SchedulerError("No published timetable to restore")
    return _state(workspace)


@router.delete("/{owner_id}", status_code=status.HTTP_204_NO_CONTENT)
def reset_schedule(
    workspace: ScheduleWorkspace = Depends(get_workspace),
    store: KeyValueStore = Depends(get_store),
    paths: ChannelPaths = Depends(get_channel_paths),
):
    ResetController(workspace, store, paths).reset()


@router.get("/{owner_id}/teachers/{teacher}", response_model=dict[str, list[TeacherLesson]])
def get_teacher_timetable(teacher: str, workspace: ScheduleWorkspace = Depends(get_workspace)):
    with workspace.lock:
        return teacher_timetable(workspace.schedule, teacher, workspace.days)


@router.get("/{owner_id}/study-plans", response_model=dict[str, StudyPlan])
def get_study_plans(
    owner_id: str,
    store: KeyValueStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    return load_study_plans(store, study_plans_path(settings.study_plans_root, owner_id)) or {}


@router.put("/{owner_id}/study-plans", response_model=dict[str, StudyPlan])
def put_study_plans(
    owner_id: str,
    payload: dict[str, StudyPlan],
    store: KeyValueStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    save_study_plans(store, study_plans_path(settings.study_plans_root, owner_id), payload)
    return payload


@router.put("/{owner_id}/study-plans/{level}/{stage}/{subject}", response_model=StudyPlan)
def put_subject_count(
    owner_id: str,
    level: str,
    stage: str,
    subject: str,
    payload: SubjectCountUpdate,
    store: KeyValueStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    path = study_plans_path(settings.study_plans_root, owner_id)
    plans = load_study_plans(store, path) or {}
    plan = plans.get(level, StudyPlan())
    grade = plan.grades.get(stage)
    if grade is not None and subject in grade.subjects:
        plan = set_subject_count(plan, stage, subject, payload.count)
    else:
        plan = add_subject(plan, stage, subject, payload.count)
    plans[level] = plan
    save_study_plans(store, path, plans)
    return plan


@router.delete("/{owner_id}/study-plans/{level}/{stage}/{subject}", response_model=StudyPlan)
def delete_subject(
    owner_id: str,
    level: str,
    stage: str,
    subject: str,
    store: KeyValueStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    path = study_plans_path(settings.study_plans_root, owner_id)
    plans = load_study_plans(store, path) or {}
    if level not in plans:
        raise SchedulerError(f"No study plan saved for {level}")
    plans[level] = remove_subject(plans[level], stage, subject)
    save_study_plans(store, path, plans)
    return plans[level]


@router.delete("/{owner_id}/study-plans/{level}/{stage}", response_model=StudyPlan)
def delete_grade(
    owner_id: str,
    level: str,
    stage: str,
    store: KeyValueStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    path = study_plans_path(settings.study_plans_root, owner_id)
    plans = load_study_plans(store, path) or {}
    if level not in plans:
        raise SchedulerError(f"No study plan saved for {level}")
    plans[level] = remove_grade(plans[level], stage)
    save_study_plans(store, path, plans)
    return plans[level]
