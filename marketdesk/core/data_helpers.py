"""
Centralized Data Conversion Helpers.

Safe type conversion utilities shared by the provider adapters.

Usage:
    from marketdesk.core.data_helpers import safe_float, safe_int, safe_date
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any


def _is_na(value: Any) -> bool:
    """Check if value is pandas NA/NaT."""
    import pandas as pd

    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        # Array-likes are never a single NA
        return False


def safe_float(value: Any, default: float | None = None) -> float | None:
    """
    Safely convert value to float.

    Handles None, NaN, Inf, pandas NA/NaT, and conversion errors gracefully.

    Args:
        value: Any value to convert
        default: Default to return if conversion fails

    Returns:
        Float value or default if conversion fails
    """
    if value is None or isinstance(value, bool):
        return default
    if _is_na(value):
        return default
    try:
        f = float(value)
        if f != f or f == float("inf") or f == float("-inf"):
            return default
        return f
    except (ValueError, TypeError):
        return default


def safe_int(value: Any, default: int | None = None) -> int | None:
    """Safely convert value to int (accepts float strings like "123.0")."""
    f = safe_float(value)
    if f is None:
        return default
    return int(f)


def safe_str(value: Any) -> str | None:
    """Convert to a stripped string, empty values become None."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def safe_date(value: Any) -> date | None:
    """
    Safely convert value to date.

    Handles datetime, date, pandas Timestamps, ISO strings, and epoch timestamps.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        if isinstance(value, str):
            return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
        if isinstance(value, (int, float)):
            return datetime.fromtimestamp(value, tz=timezone.utc).date()
    except (ValueError, TypeError, OSError):
        pass
    return None


def percent_to_fraction(value: Any) -> float | None:
    """Convert a 0-100 percentage to a 0-1 fraction (7.5 -> 0.075)."""
    f = safe_float(value)
    if f is None:
        return None
    return f / 100.0


async def run_in_executor(func: Any, *args: Any) -> Any:
    """
    Run a blocking function in the default thread pool.

    Use this to wrap blocking I/O calls (file access, sync libraries) in async code.
    """
    import asyncio

    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, func, *args)


__all__ = [
    "safe_float",
    "safe_int",
    "safe_str",
    "safe_date",
    "percent_to_fraction",
    "run_in_executor",
]
