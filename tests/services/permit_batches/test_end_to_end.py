"""Reconcile + load across several runs with an in-memory executor."""
import pytest
from services.permit_batches.loader import BatchLoader
from services.permit_batches.reconciler import BatchReconciler
from services.permit_batches.registry import BatchRegistry


class FlakyExecutor:
    """Fails statements containing any of `poison` strings, counts the rest."""

    def __init__(self, poison=()):
        self.poison = set(poison)
        self.executed = []

    def execute(self, sql: str) -> int:
        if any(p in sql for p in self.poison):
            raise RuntimeError("invalid input syntax for type numeric")
        self.executed.append(sql)
        return sql.count("),\n(") + 1


@pytest.fixture
def paths(data_dir):
    return {
        "registry": data_dir / "batch_configuration.json",
        "batches": data_dir / "batches",
        "done": data_dir / "done",
        "errors": data_dir / "errors.log",
    }


def run_once(paths, permits, executor, chunk_size=50):
    """One pipeline run: fresh registry load, reconcile, load."""
    registry = BatchRegistry.load(paths["registry"])
    BatchReconciler(registry, paths["batches"], chunk_size=chunk_size).reconcile(permits)
    summary = BatchLoader(registry, executor, paths["batches"], paths["done"], paths["errors"]).run()
    return registry, summary


def test_failed_batch_retried_on_next_run(paths, permits_factory):
    permits = permits_factory(120)
    # "205 MAIN ST" only appears in batch_3 (rows 100-119)
    bad = FlakyExecutor(poison=["'205 MAIN ST'"])

    registry, summary = run_once(paths, permits, bad)

    assert [(e.row_count, e.status) for e in registry] == [(50, "done"), (50, "done"), (20, "failed")]
    assert (summary.processed, summary.failed, summary.skipped) == (2, 1, 0)
    assert summary.inserted_rows == 100
    failed_sql = (paths["batches"] / "batch_3.sql").read_text()
    assert paths["errors"].read_text().count("\n") == 1

    good = FlakyExecutor()
    registry, summary = run_once(paths, permits, good)

    assert good.executed == [failed_sql]
    assert (summary.processed, summary.failed, summary.skipped) == (1, 0, 2)
    assert summary.inserted_rows == 20
    assert [e.status for e in registry] == ["done", "done", "done"]
    assert sorted(p.name for p in paths["done"].iterdir()) == ["batch_1.sql", "batch_2.sql", "batch_3.sql"]
    assert not list(paths["batches"].iterdir())


def test_growth_between_runs(paths, permits_factory):
    permits = permits_factory(60)
    run_once(paths, permits, FlakyExecutor())

    permits += permits_factory(45, start=60)
    executor = FlakyExecutor()
    registry, summary = run_once(paths, permits, executor)

    assert [e.file_name for e in registry] == ["batch_1.sql", "batch_2.sql", "batch_3.sql"]
    assert [e.row_count for e in registry] == [50, 10, 45]
    assert len(executor.executed) == 1
    assert "'160 MAIN ST'" in executor.executed[0]
    assert (summary.processed, summary.skipped) == (1, 2)


def test_rerun_without_changes_does_nothing(paths, permits_factory):
    permits = permits_factory(80)
    run_once(paths, permits, FlakyExecutor())

    executor = FlakyExecutor()
    registry, summary = run_once(paths, permits, executor)

    assert executor.executed == []
    assert len(registry) == 2
    assert (summary.processed, summary.failed, summary.skipped) == (0, 0, 2)
