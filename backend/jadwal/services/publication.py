from __future__ import annotations

from datetime import datetime, timezone
import logging

from pydantic import ValidationError

from jadwal.core.exceptions import PublicationPreconditionError, SchedulerError
from jadwal.schemas.schedule import Channel, DayStatus, ScheduleData, SchedulePeriod
from jadwal.services.store import KeyValueStore
from jadwal.services.workspace import ScheduleWorkspace

logger = logging.getLogger(__name__)


def serialize_schedule(schedule: ScheduleData) -> dict:
    return {day: [row.model_dump() for row in rows] for day, rows in schedule.items()}


def deserialize_schedule(raw: dict) -> ScheduleData:
    try:
        return {day: [SchedulePeriod.model_validate(row) for row in rows] for day, rows in raw.items()}
    except (AttributeError, TypeError, ValidationError) as exc:
        raise SchedulerError("Published schedule is malformed") from exc


class ChannelPaths:
    def __init__(self, owner_id: str, *, staff_root: str, student_root: str, meta_root: str = "publications") -> None:
        self.owner_id = owner_id
        self._roots = {Channel.staff: staff_root, Channel.student: student_root}
        self.meta = f"{meta_root}/{owner_id}"

    def for_channel(self, channel: Channel) -> str:
        return f"{self._roots[channel]}/{self.owner_id}"


class PublicationController:
    """Copies the in-memory schedule to the staff and student read channels.

    Channels are independent. Only a confirmed staff publish clears
    ``has_unpublished_changes``; a store failure propagates and leaves the
    publication state as it was.
    """

    def __init__(self, workspace: ScheduleWorkspace, store: KeyValueStore, paths: ChannelPaths) -> None:
        self.workspace = workspace
        self.store = store
        self.paths = paths

    def publish(self, channel: Channel) -> datetime:
        with self.workspace.lock:
            if not self.workspace.has_done_day():
                raise PublicationPreconditionError()
            path = self.paths.for_channel(channel)
            self.store.set(path, serialize_schedule(self.workspace.schedule))
            published_at = datetime.now(timezone.utc)
            self.store.update(self.paths.meta, {channel.value: published_at.isoformat()})

            self.workspace.publication.last_published_at[channel] = published_at
            if channel == Channel.staff:
                self.workspace.publication.has_unpublished_changes = False
            logger.info("Published timetable for owner %s to %s", self.workspace.owner_id, path)
            return published_at

    def restore(self) -> bool:
        """Load the published staff copy into the workspace, if there is one."""
        self.workspace.ensure_idle()
        raw = self.store.get(self.paths.for_channel(Channel.staff))
        if not raw:
            return False
        schedule = deserialize_schedule(raw)
        with self.workspace.lock:
            self.workspace.ensure_idle()
            self.workspace.schedule = schedule
            statuses = self.workspace.initial_statuses()
            for day in statuses:
                if schedule.get(day):
                    statuses[day] = DayStatus.done
            self.workspace.statuses = statuses
            self.workspace.publication.has_unpublished_changes = False
        logger.info("Restored published timetable for owner %s", self.workspace.owner_id)
        return True
