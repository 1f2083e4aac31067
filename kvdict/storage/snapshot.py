"""
Snapshot Persistence Module

Serializes the whole store to a single JSON file and reads it back.

File format:
    {"key": ["value1", "value2"], ...}

There is no version field; changing the format breaks existing files.
Writes go to a temporary file in the same directory which is then renamed
over the target, so a crash mid-write leaves the previous snapshot intact.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Union

from ..config.settings import settings

logger = logging.getLogger(__name__)

# Read once at import; os.umask can only be queried by setting it.
_UMASK = os.umask(0)
os.umask(_UMASK)

# Same permissions a freshly created file would get
FILE_MODE = 0o666 & ~_UMASK


class SnapshotError(Exception):
    """Raised when a snapshot file exists but cannot be decoded."""


class SnapshotFile:
    """
    A snapshot file at a fixed path.

    Usage:
        snapshot = SnapshotFile("./data.json")
        store.load(snapshot.load_or_initialize())
        ...
        snapshot.save(store.snapshot())

    Attributes:
        path: Location of the snapshot on disk
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path if path is not None else settings.DATA_FILE)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Dict[str, List[str]]:
        """
        Read and validate the snapshot.

        Returns:
            The stored mapping of key -> values

        Raises:
            SnapshotError: If the file content is not a valid snapshot
            OSError: If the file cannot be opened
        """
        logger.info(f"Loading snapshot from {self.path}")
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise SnapshotError(f"Couldn't decode snapshot {self.path}: {exc}") from exc

        return self._validate(raw)

    def save(self, mapping: Mapping[str, List[str]]) -> None:
        """
        Write the whole mapping, replacing any existing snapshot.

        Args:
            mapping: key -> values, typically from MultiValueStore.snapshot()

        Raises:
            OSError: If the temporary file cannot be written or renamed
        """
        directory = self.path.parent
        directory.mkdir(parents=True, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(
            dir=directory, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                # ensure_ascii keeps surrogate-escaped bytes representable
                json.dump(mapping, f, ensure_ascii=True)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_path, FILE_MODE)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

        logger.debug(f"Wrote {len(mapping)} keys to {self.path}")

    def initialize(self) -> None:
        """Create a snapshot holding an empty store."""
        logger.info(f"Initializing snapshot file {self.path}")
        self.save({})

    def load_or_initialize(self) -> Dict[str, List[str]]:
        """
        Load the snapshot, creating an empty one first if none exists.

        After this returns, a snapshot file is guaranteed to exist.
        """
        if not self.exists():
            logger.info(f"Snapshot {self.path} doesn't exist, creating one")
            self.initialize()
            return {}
        return self.load()

    def _validate(self, raw) -> Dict[str, List[str]]:
        if not isinstance(raw, dict):
            raise SnapshotError(f"Snapshot {self.path} is not a JSON object")

        for key, values in raw.items():
            if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
                raise SnapshotError(
                    f"Snapshot {self.path} has non-string values for key {key!r}"
                )
        return raw
