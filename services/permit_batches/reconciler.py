"""Bring the batch registry in line with the current permit dataset.

Failed batches get their SQL regenerated from the same row range they
covered when they were created; rows appended since the last run are cut
into new pending batches.
"""
import logging
from pathlib import Path
from typing import Any, Mapping, Sequence

from .models import BatchEntry, BatchFile, ReconcileResult
from .registry import BatchRegistry
from .serializer import DEFAULT_SCHEMA, TableSchema
from .sql_generator import chunk_records, render_insert
from .utils import ConsistencyError, RegistryError

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 50


def batch_file_name(index: int) -> str:
    """1-based batch number -> SQL file name."""
    return f"batch_{index}.sql"


class BatchReconciler:
    """
    Replays the registry against the dataset.

    Usage:
        registry = BatchRegistry.load("data/batch_configuration.json")
        reconciler = BatchReconciler(registry, "data/batches", chunk_size=50)
        result = reconciler.reconcile(permits)
    """

    def __init__(
        self,
        registry: BatchRegistry,
        batch_dir: Path | str,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        schema: TableSchema = DEFAULT_SCHEMA,
    ):
        if chunk_size < 1:
            raise ValueError(f"Chunk size must be >= 1, got {chunk_size}")
        self.registry = registry
        self.batch_dir = Path(batch_dir)
        self.chunk_size = chunk_size
        self.schema = schema

    def _write_sql(self, file_name: str, chunk: Sequence[Mapping[str, Any]]):
        (self.batch_dir / file_name).write_text(render_insert(chunk, self.schema), encoding='utf-8')

    def reconcile(self, dataset: Sequence[Mapping[str, Any]]) -> ReconcileResult:
        """
        Rewrite failed batches, create batches for the new tail, persist.

        Raises:
            ConsistencyError: dataset is shorter than the rows already
                registered (nothing is written in that case)
            RegistryError: a new batch name is already registered (nothing
                is written in that case)
        """
        claimed = self.registry.claimed_rows()
        if claimed > len(dataset):
            raise ConsistencyError(
                f"Dataset has {len(dataset)} records but registered batches cover {claimed}; "
                f"the dataset must only grow"
            )

        tail = dataset[claimed:]
        existing = len(self.registry)
        new_batches = [
            (batch_file_name(existing + idx + 1), chunk)
            for idx, chunk in enumerate(chunk_records(tail, self.chunk_size))
        ]
        taken = [name for name, _ in new_batches if name in self.registry]
        if taken:
            raise RegistryError(f"Batch name(s) already registered: {', '.join(taken)}")

        self.batch_dir.mkdir(parents=True, exist_ok=True)
        result = ReconcileResult()

        offset = 0
        for entry in self.registry:
            start, end = offset, offset + entry.row_count
            offset = end

            if entry.status != 'failed':
                continue

            chunk = dataset[start:end]
            if len(chunk) != entry.row_count:
                raise ConsistencyError(
                    f"{entry.file_name}: expected {entry.row_count} rows at [{start}:{end}], got {len(chunk)}"
                )
            self._write_sql(entry.file_name, chunk)
            result.rewritten.append(BatchFile(file=entry.file_name, rows=len(chunk)))
            logger.info(f"Rewrote failed batch {entry.file_name} (rows {start}-{end - 1})")

        for file_name, chunk in new_batches:
            self._write_sql(file_name, chunk)
            self.registry.add(BatchEntry(file_name=file_name, row_count=len(chunk), status='pending'))
            result.created.append(BatchFile(file=file_name, rows=len(chunk)))
            logger.info(f"Wrote {file_name} ({len(chunk)} rows)")

        if not tail:
            logger.info("No new permits since last run")

        self.registry.persist()
        return result
