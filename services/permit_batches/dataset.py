"""Permit dataset file access and ingestion of newly arrived permit files.

The dataset (latest_cleaned.json) is append-only: records already in it
never move, so registered batches keep pointing at the same rows.
"""
import json
import logging
from pathlib import Path

from .geocoder import Geocoder
from .utils import DataValidationError, read_json, write_json_atomic

logger = logging.getLogger(__name__)


def _extract_permits(data, source: Path) -> list[dict]:
    # Accept both a bare list and the {"permits": [...]} scraper envelope
    if isinstance(data, list):
        permits = data
    elif isinstance(data, dict) and isinstance(data.get('permits'), list):
        permits = data['permits']
    else:
        raise DataValidationError(f"{source}: expected a JSON list of permits")

    for i, record in enumerate(permits):
        if not isinstance(record, dict):
            raise DataValidationError(f"{source}: permit #{i} is {type(record).__name__}, expected an object")
    return permits


def load_dataset(path: Path | str) -> list[dict]:
    """Load the cleaned permit dataset; a missing file is an empty dataset."""
    path = Path(path)
    if not path.exists():
        logger.warning(f"Dataset {path} not found, treating as empty")
        return []
    permits = _extract_permits(read_json(path), path)
    logger.info(f"Loaded {len(permits)} permits from {path}")
    return permits


def save_dataset(path: Path | str, records: list[dict]):
    """Write the dataset as a bare JSON list; an envelope read by load_dataset is not kept."""
    write_json_atomic(path, records)
    logger.info(f"Saved {len(records)} permits to {path}")


def list_incoming(incoming_dir: Path | str) -> list[Path]:
    """JSON files waiting in the incoming folder, oldest name first."""
    incoming_dir = Path(incoming_dir)
    if not incoming_dir.exists():
        return []
    return sorted(p for p in incoming_dir.glob("*.json") if p.is_file())


def ingest_incoming(
    incoming_dir: Path | str,
    encoded_dir: Path | str,
    dataset_path: Path | str,
    geocoder: Geocoder,
) -> dict:
    """
    Geocode every incoming file and append its records to the dataset.

    For each incoming file: geocode, write the result to encoded_dir under
    the same name, append to the dataset and save it, then delete the
    incoming file. A file that fails stays in incoming_dir for the next run.

    Returns:
        {'files': n_ok, 'failed_files': [names], 'records': n_appended}
    """
    encoded_dir = Path(encoded_dir)
    files = list_incoming(incoming_dir)
    if not files:
        logger.info("No incoming files to process.")
        return {'files': 0, 'failed_files': [], 'records': 0}

    dataset = load_dataset(dataset_path)
    appended = 0
    ok = 0
    failed_files = []

    for path in files:
        try:
            records = _extract_permits(read_json(path), path)
            geocoded = geocoder.geocode_records(records)
            write_json_atomic(encoded_dir / path.name, geocoded)
        except (DataValidationError, json.JSONDecodeError, OSError) as e:
            logger.error(f"Error processing file {path.name}: {e}")
            failed_files.append(path.name)
            continue

        # The dataset must hold these records before the incoming copy goes away
        dataset.extend(geocoded)
        save_dataset(dataset_path, dataset)
        path.unlink()

        appended += len(geocoded)
        ok += 1
        logger.info(f"{path.name}: {len(geocoded)} permits geocoded and queued")

    return {'files': ok, 'failed_files': failed_files, 'records': appended}
