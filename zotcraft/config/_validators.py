from __future__ import annotations

from typing import Any


def _validate_api_key(value: Any, *, name: str) -> str:
    """Normalize an optional API key; empty means "not configured"."""
    if value in (None, ""):
        return ""
    key = str(value).strip()
    if len(key) > 500:
        msg = f"{name} API key appears to be too long"
        raise ValueError(msg)
    if any(char in key for char in [" ", "\n", "\t"]):
        msg = f"{name} API key contains invalid characters"
        raise ValueError(msg)
    return key


def _optional_identifier(value: Any) -> str | None:
    if value is None:
        return None
    trimmed = str(value).strip()
    return trimmed or None


def _parse_bounded_int(value: Any, *, default: int, low: int, high: int, label: str) -> int:
    try:
        parsed = int(str(value if value not in (None, "") else default))
    except ValueError as exc:
        msg = f"{label} must be a valid integer"
        raise ValueError(msg) from exc
    if parsed < low or parsed > high:
        msg = f"{label} must be between {low} and {high}"
        raise ValueError(msg)
    return parsed


def _parse_origins(value: Any) -> tuple[str, ...]:
    if value in (None, ""):
        return ()
    values = value if isinstance(value, list | tuple) else str(value).split(",")
    return tuple(origin.strip() for origin in values if str(origin).strip())
