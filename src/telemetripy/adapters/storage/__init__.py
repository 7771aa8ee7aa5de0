"""Storage adapters implementing core ports."""

from telemetripy.adapters.storage.sqlite_entries import SQLiteEntryStore

__all__ = ["SQLiteEntryStore"]
