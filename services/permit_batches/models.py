"""Data models for the permit batch pipeline."""
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Literal, get_args

BatchStatus = Literal['pending', 'done', 'failed']

BATCH_STATUSES: tuple[str, ...] = get_args(BatchStatus)


@dataclass
class BatchEntry:
    """
    One registered unit of work.

    row_count is the width of the dataset slice this batch covers and is
    fixed when the entry is created. The slice start is implied by the
    entry's position in the registry.
    """
    file_name: str
    row_count: int
    status: BatchStatus = 'pending'

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "BatchEntry":
        """Create from dictionary (e.g., loaded from the registry file)."""
        status = data.get('status', 'pending')
        if status not in BATCH_STATUSES:
            raise ValueError(f"Unknown batch status {status!r} for {data.get('file_name')!r}")
        return cls(
            file_name=data['file_name'],
            row_count=int(data['row_count']),
            status=status,
        )


@dataclass
class BatchFile:
    """A SQL batch file written during reconciliation."""
    file: str
    rows: int


@dataclass
class ReconcileResult:
    """Outcome of one reconciliation pass."""
    rewritten: list[BatchFile] = field(default_factory=list)
    created: list[BatchFile] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.rewritten or self.created)


@dataclass
class RunSummary:
    """Statistics for one loader run."""
    processed: int = 0
    failed: int = 0
    skipped: int = 0
    missing: int = 0  # pending/failed entries whose SQL file was absent
    inserted_rows: int = 0
    total_batches: int = 0
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> dict:
        return asdict(self)

    def to_notification(self) -> dict:
        """Payload shape expected by the notification webhook."""
        return {
            'processedCount': self.processed,
            'failedCount': self.failed,
            'skippedCount': self.skipped,
            'totalBatches': self.total_batches,
            'timestamp': self.timestamp,
        }
