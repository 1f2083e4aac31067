"""Storage module for KV-Dict."""

from .scheduler import SnapshotScheduler
from .snapshot import SnapshotError, SnapshotFile
from .store import MultiValueStore

__all__ = ["MultiValueStore", "SnapshotError", "SnapshotFile", "SnapshotScheduler"]
