"""Shared helpers for the permit batch pipeline.

Logging setup, the append-only error log, atomic JSON writes and the
exception classes every stage raises.
"""
import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'
LOG_DATEFMT = '%H:%M:%S'


def setup_logging(verbose: bool = False):
    """Configure root logging the same way for every script."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
    )


# ============================================================
# FILES
# ============================================================

def read_json(path: Path | str) -> Any:
    with open(path, encoding='utf-8') as f:
        return json.load(f)


def write_json_atomic(path: Path | str, data: Any):
    """
    Write JSON to a temp file next to `path`, then rename over it.

    Readers never observe a half-written file.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix='.tmp', dir=path.parent)
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2)
            f.write('\n')
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def append_error_log(log_path: Path | str, context: str, message: str) -> str:
    """
    Append one timestamped line to the persistent error log.

    The log is never truncated here; rotation is left to the operator.
    Returns the line that was written.
    """
    log_path = Path(log_path)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(timezone.utc).isoformat()
    # Keep one entry per line even when the driver message is multi-line
    flat = ' '.join(str(message).split())
    line = f"{timestamp}: {context}: {flat}\n"
    with open(log_path, 'a', encoding='utf-8') as f:
        f.write(line)
    return line


# ============================================================
# EXCEPTIONS
# ============================================================

class PermitBatchError(Exception):
    """Base pipeline exception."""
    pass


class ConfigurationError(PermitBatchError, ValueError):
    """Required credential or setting missing/invalid."""
    pass


class DataValidationError(PermitBatchError):
    """Record is missing fields required for its stage."""
    pass


class ConsistencyError(PermitBatchError):
    """Dataset no longer covers the row ranges the registry claims."""
    pass


class RegistryError(PermitBatchError):
    """Registry file exists but cannot be read as a batch mapping."""
    pass


class GeocodeError(PermitBatchError):
    """Base geocoding failure."""
    pass


class RateLimitError(GeocodeError):
    """Provider asked us to slow down (HTTP 429 / OVER_QUERY_LIMIT)."""
    pass


class GeocodeDeniedError(GeocodeError):
    """Provider refused the request (bad key, quota exhausted)."""
    pass
