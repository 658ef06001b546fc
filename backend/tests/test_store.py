import pytest
from sqlalchemy.exc import OperationalError

from jadwal.core.exceptions import StoreFailureError
from jadwal.services.store import SqlAlchemyKeyValueStore, normalize_path


def test_normalize_path():
    assert normalize_path("/schedules//abc/") == "schedules/abc"
    with pytest.raises(ValueError):
        normalize_path(" / ")


def test_set_get_and_overwrite(store):
    assert store.get("schedules/abc") is None

    store.set("schedules/abc", {"Sunday": []})
    store.set("/schedules/abc", {"Monday": []})

    assert store.get("schedules/abc") == {"Monday": []}


def test_update_merges_top_level_keys(store):
    store.update("publications/abc", {"staff": "2026-10-18T08:00:00+00:00"})
    store.update("publications/abc", {"student": "2026-10-18T09:00:00+00:00"})

    assert store.get("publications/abc") == {
        "staff": "2026-10-18T08:00:00+00:00",
        "student": "2026-10-18T09:00:00+00:00",
    }


def test_remove_deletes_path_and_children_only(store):
    store.set("schedules/abc", {"Sunday": []})
    store.set("schedules/abc/draft", {"Sunday": []})
    store.set("schedules/abcd", {"Sunday": []})

    store.remove("schedules/abc")

    assert store.get("schedules/abc") is None
    assert store.get("schedules/abc/draft") is None
    assert store.get("schedules/abcd") == {"Sunday": []}


def test_backend_errors_become_store_failures():
    class BrokenSession:
        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return False

        def get(self, *args):
            raise OperationalError("SELECT", {}, Exception("database is locked"))

    store = SqlAlchemyKeyValueStore(BrokenSession)

    with pytest.raises(StoreFailureError) as exc_info:
        store.get("schedules/abc")

    assert exc_info.value.status_code == 502
    assert exc_info.value.details == {"operation": "get", "path": "schedules/abc"}
