"""Execute pending and failed SQL batches against the database."""
import logging
from pathlib import Path

from .database import SqlExecutor
from .models import BatchEntry, RunSummary
from .registry import BatchRegistry
from .utils import append_error_log

logger = logging.getLogger(__name__)


class BatchLoader:
    """
    Runs registered batches in registry order.

    Structure:
        batch_dir/    <- SQL files waiting to be loaded (pending or failed)
        done_dir/     <- SQL files that loaded successfully

    The registry is saved after every attempted batch, so a crash loses at
    most the status of the batch in flight.
    """

    def __init__(
        self,
        registry: BatchRegistry,
        executor: SqlExecutor,
        batch_dir: Path | str,
        done_dir: Path | str,
        error_log: Path | str,
    ):
        self.registry = registry
        self.executor = executor
        self.batch_dir = Path(batch_dir)
        self.done_dir = Path(done_dir)
        self.error_log = Path(error_log)

    def _run_one(self, entry: BatchEntry, summary: RunSummary):
        file_path = self.batch_dir / entry.file_name

        if not file_path.exists():
            # Status stays as-is; the operator has to restore or re-create the file
            logger.warning(f"Skipping {entry.file_name}: SQL file not found at {file_path}")
            summary.missing += 1
            return

        sql = file_path.read_text(encoding='utf-8')
        logger.info(f"Executing {entry.file_name} ({entry.row_count} rows, status={entry.status})")

        try:
            inserted = self.executor.execute(sql)
        except Exception as e:
            logger.error(f"Error processing {entry.file_name}: {e}")
            self.registry.set_status(entry.file_name, 'failed')
            append_error_log(self.error_log, f"Error processing {entry.file_name}", str(e))
            summary.failed += 1
        else:
            self.registry.set_status(entry.file_name, 'done')
            file_path.replace(self.done_dir / entry.file_name)
            summary.inserted_rows += inserted
            summary.processed += 1
            logger.info(f"Loaded {entry.file_name}: {inserted} rows inserted, moved to {self.done_dir.name}/")

        self.registry.persist()

    def run(self) -> RunSummary:
        """Attempt every pending/failed batch once and return run statistics."""
        self.done_dir.mkdir(parents=True, exist_ok=True)
        summary = RunSummary(total_batches=len(self.registry))

        for entry in self.registry:
            if entry.status == 'done':
                logger.debug(f"Skipping {entry.file_name}, already processed")
                summary.skipped += 1
                continue
            self._run_one(entry, summary)

        logger.info(
            f"Batch run complete: {summary.processed} processed, {summary.failed} failed, "
            f"{summary.skipped} skipped, {summary.inserted_rows} rows inserted"
        )
        return summary
