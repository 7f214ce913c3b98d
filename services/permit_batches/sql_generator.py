"""Render permit chunks into INSERT ... ON CONFLICT DO NOTHING statements."""
from typing import Any, Mapping, Optional, Sequence, TypeVar

from .serializer import DEFAULT_SCHEMA, TableSchema, serialize_row

T = TypeVar('T')


def chunk_records(records: Sequence[T], size: int) -> list[list[T]]:
    """Split records into consecutive chunks of `size` (last may be shorter)."""
    if size < 1:
        raise ValueError(f"Chunk size must be >= 1, got {size}")
    return [list(records[i:i + size]) for i in range(0, len(records), size)]


def render_insert(chunk: Sequence[Mapping[str, Any]], schema: TableSchema = DEFAULT_SCHEMA) -> str:
    """Render a single INSERT statement for one chunk of records."""
    if not chunk:
        raise ValueError("Cannot render an INSERT for an empty chunk")

    values = ",\n".join(serialize_row(record, schema)[0] for record in chunk)
    columns = ", ".join(schema.columns)
    return f"INSERT INTO {schema.table} ({columns}) VALUES\n{values} ON CONFLICT DO NOTHING;"


def generate_batch_sql(
    records: Sequence[Mapping[str, Any]],
    chunk_size: Optional[int] = None,
    schema: TableSchema = DEFAULT_SCHEMA,
) -> str:
    """
    Render records into one INSERT per chunk.

    Args:
        records: Permits in dataset order
        chunk_size: Rows per statement; None puts everything in one statement
        schema: Target table layout

    Returns:
        Statements separated by a blank line ('' for no records)
    """
    if not records:
        return ""
    size = chunk_size if chunk_size is not None else len(records)
    return "\n\n".join(render_insert(chunk, schema) for chunk in chunk_records(records, size))
