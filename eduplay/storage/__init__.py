"""Persistence collaborator interface and the in-memory implementation"""

from eduplay.storage.base import RecordStore
from eduplay.storage.memory_store import InMemoryRecordStore

__all__ = ["RecordStore", "InMemoryRecordStore"]
