"""Hierarchical key-value store used for published schedules and study plans.

Paths look like ``schedules/{owner_id}``. Values are JSON documents; writes are
last-writer-wins per path. Every backend failure surfaces as
:class:`StoreFailureError` so callers never mistake a failed write for success.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Protocol

from sqlalchemy import delete, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from jadwal.core.exceptions import StoreFailureError
from jadwal.models.store_entry import KeyValueEntry

logger = logging.getLogger(__name__)


def normalize_path(path: str) -> str:
    cleaned = "/".join(part for part in path.strip().split("/") if part)
    if not cleaned:
        raise ValueError("Store path must not be empty")
    return cleaned


class KeyValueStore(Protocol):
    def get(self, path: str) -> Any | None: ...

    def set(self, path: str, value: Any) -> None: ...

    def update(self, path: str, partial: dict[str, Any]) -> None: ...

    def remove(self, path: str) -> None: ...


class SqlAlchemyKeyValueStore:
    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def get(self, path: str) -> Any | None:
        key = normalize_path(path)
        try:
            with self._session_factory() as db:
                entry = db.get(KeyValueEntry, key)
                return None if entry is None else entry.value
        except SQLAlchemyError as exc:
            logger.exception("Store read failed for %s", key)
            raise StoreFailureError("get", key) from exc

    def set(self, path: str, value: Any) -> None:
        key = normalize_path(path)
        try:
            with self._session_factory() as db:
                entry = db.get(KeyValueEntry, key)
                if entry is None:
                    db.add(KeyValueEntry(path=key, value=value))
                else:
                    entry.value = value
                db.commit()
        except SQLAlchemyError as exc:
            logger.exception("Store write failed for %s", key)
            raise StoreFailureError("set", key) from exc

    def update(self, path: str, partial: dict[str, Any]) -> None:
        key = normalize_path(path)
        try:
            with self._session_factory() as db:
                entry = db.get(KeyValueEntry, key)
                if entry is None:
                    db.add(KeyValueEntry(path=key, value=dict(partial)))
                else:
                    current = entry.value if isinstance(entry.value, dict) else {}
                    # Reassign so the JSON column registers the change.
                    entry.value = {**current, **partial}
                db.commit()
        except SQLAlchemyError as exc:
            logger.exception("Store update failed for %s", key)
            raise StoreFailureError("update", key) from exc

    def remove(self, path: str) -> None:
        key = normalize_path(path)
        try:
            with self._session_factory() as db:
                db.execute(
                    delete(KeyValueEntry).where(
                        or_(KeyValueEntry.path == key, KeyValueEntry.path.startswith(f"{key}/"))
                    )
                )
                db.commit()
        except SQLAlchemyError as exc:
            logger.exception("Store remove failed for %s", key)
            raise StoreFailureError("remove", key) from exc
