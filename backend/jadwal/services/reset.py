from __future__ import annotations

import logging

from jadwal.schemas.schedule import Channel, PublicationState
from jadwal.services.publication import ChannelPaths
from jadwal.services.store import KeyValueStore
from jadwal.services.workspace import ScheduleWorkspace

logger = logging.getLogger(__name__)


class ResetController:
    """Irreversibly wipes the timetable from memory and from both channels."""

    def __init__(self, workspace: ScheduleWorkspace, store: KeyValueStore, paths: ChannelPaths) -> None:
        self.workspace = workspace
        self.store = store
        self.paths = paths

    def reset(self) -> None:
        with self.workspace.lock:
            self.workspace.ensure_idle()
            self.workspace.schedule = {}
            self.workspace.history.clear()
            self.workspace.statuses = self.workspace.initial_statuses()
            self.workspace.publication = PublicationState()

            for channel in (Channel.staff, Channel.student):
                self.store.remove(self.paths.for_channel(channel))
            self.store.remove(self.paths.meta)
        logger.info("Reset timetable for owner %s", self.workspace.owner_id)
