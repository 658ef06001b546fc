from __future__ import annotations

from copy import deepcopy
from threading import RLock

from jadwal.core.exceptions import SchedulerError
from jadwal.schemas.schedule import DayStatus, PublicationState, ScheduleData


class ScheduleWorkspace:
    """In-memory state of one editing session.

    Generation, editing, publication and reset all act on the same workspace.
    ``lock`` serializes them so each operation sees and leaves a consistent
    schedule.
    """

    def __init__(self, owner_id: str, days: list[str], *, history_limit: int | None = None) -> None:
        if history_limit is not None and history_limit < 1:
            raise ValueError("history_limit must be at least 1 when set")
        self.owner_id = owner_id
        self.days = list(days)
        self.history_limit = history_limit
        self.lock = RLock()
        self.schedule: ScheduleData = {}
        self.history: list[ScheduleData] = []
        self.statuses: dict[str, DayStatus] = self.initial_statuses()
        self.publication = PublicationState()
        self.generating = False

    def initial_statuses(self) -> dict[str, DayStatus]:
        return {day: DayStatus.pending for day in self.days}

    def snapshot(self) -> ScheduleData:
        return deepcopy(self.schedule)

    def push_history(self) -> None:
        self.history.append(self.snapshot())
        if self.history_limit is not None and len(self.history) > self.history_limit:
            del self.history[0]

    def ensure_idle(self) -> None:
        """Refuse changes that a running generation would overwrite."""
        if self.generating:
            raise SchedulerError("Generation is running", details={"owner_id": self.owner_id})

    def has_done_day(self) -> bool:
        return any(status == DayStatus.done for status in self.statuses.values())

    def day_index(self, day: str) -> int:
        try:
            return self.days.index(day)
        except ValueError:
            return -1


class WorkspaceRegistry:
    def __init__(self, days: list[str], *, history_limit: int | None = None) -> None:
        self._days = list(days)
        self._history_limit = history_limit
        self._workspaces: dict[str, ScheduleWorkspace] = {}
        self._lock = RLock()

    def get(self, owner_id: str) -> ScheduleWorkspace:
        with self._lock:
            workspace = self._workspaces.get(owner_id)
            if workspace is None:
                workspace = ScheduleWorkspace(owner_id, self._days, history_limit=self._history_limit)
                self._workspaces[owner_id] = workspace
            return workspace

    def clear(self) -> None:
        with self._lock:
            self._workspaces.clear()
