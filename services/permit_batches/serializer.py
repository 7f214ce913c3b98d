"""Permit record -> SQL value-group serialization.

Each table schema is an ordered list of (source field, column) pairs, so a
column and the value rendered for it can never drift apart.
"""
import hashlib
from dataclasses import dataclass
from typing import Any, Mapping

from .formatter import format_value

HASH_COLUMN = "data_hash"

# (source key in the cleaned JSON, column in construction_permits)
BASE_FIELDS = (
    ("County", "county"),
    ("Street Address", "street_address"),
    ("City", "city"),
    ("ZipCode", "zip_code"),
    ("State", "state"),
    ("Latitude", "latitude"),
    ("Longitude", "longitude"),
    ("Geocode Source", "geocode_source"),
    ("Contract Amount", "contract_amount"),
    ("Contract Date", "contract_date"),
    ("Contractor Name", "contractor_name"),
    ("Contractor Address", "contractor_address"),
    ("Contractor Phone", "contractor_phone"),
    ("Type", "permit_type"),
)

OWNER_FIELDS = (
    ("Owner Name", "owner_name"),
    ("Owner Phone", "owner_phone"),
)


@dataclass(frozen=True)
class TableSchema:
    """Target table layout for generated INSERT statements."""
    name: str
    table: str
    fields: tuple[tuple[str, str], ...]
    with_hash: bool = True

    @property
    def columns(self) -> list[str]:
        cols = [column for _, column in self.fields]
        if self.with_hash:
            cols.append(HASH_COLUMN)
        return cols


PERMITS_V2 = TableSchema(
    name="v2",
    table="construction_permits",
    fields=BASE_FIELDS + OWNER_FIELDS,
    with_hash=True,
)

# Older table without owner columns or the dedup hash
PERMITS_V1 = TableSchema(
    name="v1",
    table="construction_permits",
    fields=BASE_FIELDS,
    with_hash=False,
)

SCHEMAS = {schema.name: schema for schema in (PERMITS_V2, PERMITS_V1)}

DEFAULT_SCHEMA = PERMITS_V2


def get_schema(name: str) -> TableSchema:
    """Look up a schema by name ('v1' or 'v2')."""
    try:
        return SCHEMAS[name.lower()]
    except KeyError:
        raise ValueError(f"Unknown permit schema: {name!r} (expected one of {sorted(SCHEMAS)})")


def content_hash(row_text: str) -> str:
    """SHA-256 hex digest of a formatted row."""
    return hashlib.sha256(row_text.encode('utf-8')).hexdigest()


def serialize_row(record: Mapping[str, Any], schema: TableSchema = DEFAULT_SCHEMA) -> tuple[str, str]:
    """
    Serialize one permit into a SQL value-group.

    Missing keys are treated as NULL.

    Returns:
        (value_group, content_hash) where value_group is the parenthesized
        literal list and content_hash is the digest of the joined literals
        (the hash is appended as the last literal when the schema has a
        hash column)
    """
    row = ", ".join(
        format_value(record.get(field_name), field_name)
        for field_name, _ in schema.fields
    )
    digest = content_hash(row)

    if schema.with_hash:
        return f"({row}, '{digest}')", digest
    return f"({row})", digest
