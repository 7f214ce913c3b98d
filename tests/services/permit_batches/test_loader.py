"""Tests for executing SQL batches."""
import json
from unittest.mock import MagicMock

import pytest
from services.permit_batches.loader import BatchLoader
from services.permit_batches.models import BatchEntry
from services.permit_batches.registry import BatchRegistry


@pytest.fixture
def layout(data_dir):
    """Registry with done/pending/failed entries and their files."""
    batch_dir = data_dir / "batches"
    batch_dir.mkdir()
    registry = BatchRegistry(data_dir / "batch_configuration.json")
    registry.add(BatchEntry(file_name="batch_1.sql", row_count=50, status="done"))
    registry.add(BatchEntry(file_name="batch_2.sql", row_count=50, status="pending"))
    registry.add(BatchEntry(file_name="batch_3.sql", row_count=20, status="failed"))
    (batch_dir / "batch_2.sql").write_text("INSERT 2;")
    (batch_dir / "batch_3.sql").write_text("INSERT 3;")
    return {
        "registry": registry,
        "batch_dir": batch_dir,
        "done_dir": data_dir / "done",
        "error_log": data_dir / "errors.log",
    }


def make_loader(layout, executor):
    return BatchLoader(
        layout["registry"], executor, layout["batch_dir"], layout["done_dir"], layout["error_log"]
    )


def test_successful_run(layout):
    executor = MagicMock()
    executor.execute.side_effect = [50, 18]

    summary = make_loader(layout, executor).run()

    assert [c.args[0] for c in executor.execute.call_args_list] == ["INSERT 2;", "INSERT 3;"]
    assert (summary.processed, summary.failed, summary.skipped) == (2, 0, 1)
    assert summary.inserted_rows == 68
    assert summary.total_batches == 3
    assert [e.status for e in layout["registry"]] == ["done", "done", "done"]
    assert (layout["done_dir"] / "batch_2.sql").read_text() == "INSERT 2;"
    assert not (layout["batch_dir"] / "batch_2.sql").exists()


def test_failure_is_isolated(layout):
    executor = MagicMock()
    executor.execute.side_effect = [RuntimeError('syntax error at or near "INSERT"'), 20]

    summary = make_loader(layout, executor).run()

    assert (summary.processed, summary.failed, summary.skipped) == (1, 1, 1)
    assert layout["registry"].get("batch_2.sql").status == "failed"
    assert layout["registry"].get("batch_3.sql").status == "done"
    # failed file stays where the reconciler can regenerate it
    assert (layout["batch_dir"] / "batch_2.sql").exists()
    assert not (layout["done_dir"] / "batch_2.sql").exists()


def test_failure_appends_error_log(layout):
    layout["error_log"].write_text("earlier line\n")
    executor = MagicMock()
    executor.execute.side_effect = [RuntimeError("duplicate key\nDETAIL: x"), 20]

    make_loader(layout, executor).run()

    lines = layout["error_log"].read_text().splitlines()
    assert lines[0] == "earlier line"
    assert len(lines) == 2
    assert "Error processing batch_2.sql: duplicate key DETAIL: x" in lines[1]


def test_registry_persisted_after_each_batch(layout):
    registry_path = layout["registry"].path
    seen = []

    def execute(sql):
        seen.append(json.loads(registry_path.read_text()) if registry_path.exists() else None)
        return 1

    executor = MagicMock()
    executor.execute.side_effect = execute
    make_loader(layout, executor).run()

    # nothing saved before the first batch, batch_2 saved before batch_3 runs
    assert seen[0] is None
    assert seen[1]["batch_2.sql"]["status"] == "done"
    assert seen[1]["batch_3.sql"]["status"] == "failed"
    assert json.loads(registry_path.read_text())["batch_3.sql"]["status"] == "done"


def test_missing_file_skipped_and_status_kept(layout):
    (layout["batch_dir"] / "batch_2.sql").unlink()
    executor = MagicMock()
    executor.execute.return_value = 20

    summary = make_loader(layout, executor).run()

    executor.execute.assert_called_once_with("INSERT 3;")
    assert summary.missing == 1
    assert (summary.processed, summary.failed, summary.skipped) == (1, 0, 1)
    assert layout["registry"].get("batch_2.sql").status == "pending"


def test_all_done_runs_nothing(layout):
    for name in ("batch_2.sql", "batch_3.sql"):
        layout["registry"].set_status(name, "done")
    executor = MagicMock()

    summary = make_loader(layout, executor).run()

    executor.execute.assert_not_called()
    assert summary.skipped == 3
    assert summary.to_notification()["totalBatches"] == 3
