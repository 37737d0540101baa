"""
Input Coercion Helpers

Small parsers shared by the routers and services for loosely typed JSON
input coming from the web and admin frontends.
"""

from datetime import UTC, datetime


def parse_positive_int(value: object) -> int | None:
    """
    Coerce an id-like value to a positive integer.

    Accepts ints, integral floats and numeric strings. Returns None for
    anything else, including booleans, zero and negative numbers.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, float):
        return int(value) if value.is_integer() and value > 0 else None
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.isdigit():
            number = int(stripped)
            return number if number > 0 else None
    return None


def resolve_id(value: object) -> int | None:
    """
    Resolve an id from a scalar or a nested ``{"id": ...}`` object.

    Frontends send either ``programId: 5``, ``program: 5`` or
    ``program: {"id": 5, ...}``; all three resolve to 5.
    """
    if isinstance(value, dict):
        return parse_positive_int(value.get("id"))
    return parse_positive_int(value)


def blank_to_none(value: str | None) -> str | None:
    """Return None for None or whitespace-only strings, else the trimmed value."""
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes; convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_datetime(value: object) -> datetime | None:
    """
    Parse an optional datetime value.

    None and empty strings mean "no value" and return None. ISO 8601 strings
    (with or without offset, ``Z`` suffix allowed) and datetime instances are
    accepted and normalised to UTC.

    Raises:
        ValueError: If a non-empty value cannot be parsed
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if not isinstance(value, str):
        raise ValueError(f"Unsupported datetime value: {value!r}")
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(text))
