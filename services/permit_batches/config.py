"""Runtime settings from environment variables (.env supported)."""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .serializer import TableSchema, get_schema
from .utils import ConfigurationError

DEFAULT_DATA_DIR = "data"
DEFAULT_BATCH_SIZE = 50
DEFAULT_SCHEMA_NAME = "v2"


@dataclass
class BatchSettings:
    """Resolved paths, credentials and knobs for a pipeline run."""
    data_dir: Path
    dataset_file: Path
    batch_size: int = DEFAULT_BATCH_SIZE
    schema_name: str = DEFAULT_SCHEMA_NAME
    database_url: Optional[str] = None
    google_maps_api_key: Optional[str] = None
    notify_webhook_url: Optional[str] = None

    @property
    def batch_dir(self) -> Path:
        return self.data_dir / "batches"

    @property
    def done_dir(self) -> Path:
        return self.data_dir / "done"

    @property
    def registry_file(self) -> Path:
        return self.data_dir / "batch_configuration.json"

    @property
    def error_log(self) -> Path:
        return self.data_dir / "errors.log"

    @property
    def incoming_dir(self) -> Path:
        return self.data_dir / "incoming"

    @property
    def encoded_dir(self) -> Path:
        return self.data_dir / "encoded"

    @property
    def schema(self) -> TableSchema:
        return get_schema(self.schema_name)

    def require_database_url(self) -> str:
        if not self.database_url:
            raise ConfigurationError("DATABASE_URL environment variable not set")
        return self.database_url

    def require_google_maps_api_key(self) -> str:
        if not self.google_maps_api_key:
            raise ConfigurationError("GOOGLE_MAPS_API_KEY environment variable not set")
        return self.google_maps_api_key


def _parse_positive_int(name: str, raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")
    if value < 1:
        raise ConfigurationError(f"{name} must be >= 1, got {value}")
    return value


def load_settings(env: Optional[dict] = None, use_dotenv: bool = True) -> BatchSettings:
    """
    Build settings from the environment.

    Args:
        env: Mapping to read instead of os.environ (tests)
        use_dotenv: Load a .env file into os.environ first
    """
    if env is None:
        if use_dotenv:
            load_dotenv()
        env = os.environ

    data_dir = Path(env.get("PERMIT_DATA_DIR") or DEFAULT_DATA_DIR)
    dataset_file = Path(env.get("PERMIT_DATASET_FILE") or data_dir / "latest_cleaned.json")

    batch_size = DEFAULT_BATCH_SIZE
    if env.get("PERMIT_BATCH_SIZE"):
        batch_size = _parse_positive_int("PERMIT_BATCH_SIZE", env["PERMIT_BATCH_SIZE"])

    schema_name = (env.get("PERMIT_SCHEMA") or DEFAULT_SCHEMA_NAME).lower()
    try:
        get_schema(schema_name)
    except ValueError as e:
        raise ConfigurationError(str(e))

    return BatchSettings(
        data_dir=data_dir,
        dataset_file=dataset_file,
        batch_size=batch_size,
        schema_name=schema_name,
        database_url=env.get("DATABASE_URL") or None,
        google_maps_api_key=env.get("GOOGLE_MAPS_API_KEY") or None,
        notify_webhook_url=env.get("NOTIFY_WEBHOOK_URL") or None,
    )
