"""SQL literal formatting for single permit field values."""
from typing import Any

NULL = "NULL"

CONTRACT_DATE_FIELD = "Contract Date"

# Placeholder strings the upstream sheets use for "no value"
NULL_SENTINELS = {"N/A", "NA"}


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _escape_sql_value(value: str) -> str:
    """Escape single quotes for a SQL string literal."""
    return value.replace("'", "''")


def format_value(value: Any, field_name: str) -> str:
    """
    Format one field value as a SQL literal.

    Args:
        value: Raw value from the permit record (str, number, None)
        field_name: Source key of the field, e.g. "Contract Date"

    Returns:
        'NULL' or a single-quoted, escaped literal

    Example:
        >>> format_value("O'Brien", "Contractor Name")
        "'O''Brien'"
        >>> format_value("2024-05-01T12:00:00Z", "Contract Date")
        "'2024-05-01 12:00:00+00'"
    """
    if value is None:
        return NULL

    if isinstance(value, str):
        value = value.strip()
        if value.upper() in NULL_SENTINELS:
            return NULL
        # ISO-8601 -> timestamptz literal
        if field_name == CONTRACT_DATE_FIELD:
            value = value.replace("T", " ", 1).replace("Z", "+00", 1)
        if value == "":
            return NULL

    return f"'{_escape_sql_value(_stringify(value))}'"
