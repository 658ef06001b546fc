from functools import lru_cache

from fastapi import Depends

from jadwal.core.config import Settings, get_settings
from jadwal.db.session import SessionLocal
from jadwal.services.oracle import GenerationOracle, GreedyOracle, TimeoutOracle
from jadwal.services.publication import ChannelPaths
from jadwal.services.store import KeyValueStore, SqlAlchemyKeyValueStore
from jadwal.services.workspace import ScheduleWorkspace, WorkspaceRegistry


def get_store() -> KeyValueStore:
    return SqlAlchemyKeyValueStore(SessionLocal)


@lru_cache
def get_registry() -> WorkspaceRegistry:
    settings = get_settings()
    return WorkspaceRegistry(settings.school_days, history_limit=settings.undo_history_limit)


def get_oracle(settings: Settings = Depends(get_settings)) -> GenerationOracle:
    oracle: GenerationOracle = GreedyOracle(settings.core_subjects)
    if settings.oracle_timeout_seconds:
        oracle = TimeoutOracle(oracle, settings.oracle_timeout_seconds)
    return oracle


def get_workspace(
    owner_id: str,
    registry: WorkspaceRegistry = Depends(get_registry),
) -> ScheduleWorkspace:
    return registry.get(owner_id)


def get_channel_paths(owner_id: str, settings: Settings = Depends(get_settings)) -> ChannelPaths:
    return ChannelPaths(
        owner_id,
        staff_root=settings.staff_channel_root,
        student_root=settings.student_channel_root,
    )
