from jadwal.models.store_entry import KeyValueEntry  # noqa: F401
