"""File-backed registry of generated SQL batches."""
import json
import logging
from collections import Counter
from pathlib import Path
from typing import Iterator, Optional

from .models import BATCH_STATUSES, BatchEntry, BatchStatus
from .utils import RegistryError, read_json, write_json_atomic

logger = logging.getLogger(__name__)


class BatchRegistry:
    """
    Ordered mapping of batch file name -> BatchEntry, persisted as JSON.

    File format (batch_configuration.json):
        {
          "batch_1.sql": {"file_name": "batch_1.sql", "row_count": 50, "status": "done"},
          "batch_2.sql": {"file_name": "batch_2.sql", "row_count": 50, "status": "pending"}
        }

    Insertion order is significant: the Nth entry covers the dataset rows
    that follow the rows of every earlier entry. Entries are never removed.
    """

    def __init__(self, path: Path | str, entries: Optional[dict[str, BatchEntry]] = None):
        self.path = Path(path)
        self._entries: dict[str, BatchEntry] = dict(entries or {})

    @classmethod
    def load(cls, path: Path | str) -> "BatchRegistry":
        """Load the registry from disk; a missing file is an empty registry."""
        path = Path(path)
        if not path.exists():
            logger.info(f"No batch registry at {path}, starting empty")
            return cls(path)

        try:
            raw = read_json(path)
        except json.JSONDecodeError as e:
            raise RegistryError(f"Failed to parse {path}: {e}") from e

        if not isinstance(raw, dict):
            raise RegistryError(f"{path}: expected a JSON object, got {type(raw).__name__}")

        entries = {}
        for key, value in raw.items():
            if isinstance(value, dict) and value.get('file_name', key) != key:
                raise RegistryError(
                    f"{path}: entry {key!r} names a different file {value['file_name']!r}"
                )
            try:
                entry = BatchEntry.from_dict({'file_name': key, **value})
            except (KeyError, TypeError, ValueError) as e:
                raise RegistryError(f"{path}: bad entry {key!r}: {e}") from e
            entries[key] = entry

        logger.info(f"Loaded batch registry with {len(entries)} entries")
        return cls(path, entries)

    def persist(self):
        """Atomically overwrite the registry file with the current state."""
        write_json_atomic(self.path, {name: e.to_dict() for name, e in self._entries.items()})
        logger.debug(f"Saved batch registry ({len(self._entries)} entries) to {self.path}")

    def add(self, entry: BatchEntry):
        """Append a new entry after all existing ones."""
        if entry.file_name in self._entries:
            raise RegistryError(f"Batch {entry.file_name!r} is already registered")
        self._entries[entry.file_name] = entry

    def get(self, file_name: str) -> Optional[BatchEntry]:
        return self._entries.get(file_name)

    def set_status(self, file_name: str, status: BatchStatus):
        if status not in BATCH_STATUSES:
            raise ValueError(f"Unknown batch status {status!r}")
        self._entries[file_name].status = status

    def entries(self) -> list[BatchEntry]:
        """Entries in insertion order."""
        return list(self._entries.values())

    def claimed_rows(self) -> int:
        """Total dataset rows covered by registered batches."""
        return sum(e.row_count for e in self._entries.values())

    def counts(self) -> dict[str, int]:
        """Number of entries per status (every status present, possibly 0)."""
        counter = Counter(e.status for e in self._entries.values())
        return {status: counter.get(status, 0) for status in BATCH_STATUSES}

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[BatchEntry]:
        return iter(self.entries())

    def __contains__(self, file_name: str) -> bool:
        return file_name in self._entries
