"""
Utility functions for SalesOps Hub.
Atomic file writes, zero-safe arithmetic and date parsing shared by the analyzers.

Usage:
    from scripts.lib.utils import atomic_write_json, safe_div, parse_iso_date
"""
import json
import math
import os
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from scripts.lib.logger import setup_logger

logger = setup_logger(__name__)


def atomic_write_json(data: Dict, file_path: str | Path, indent: int = 2) -> bool:
    """
    Write JSON data to file atomically using temp file + rename.
    Prevents data corruption if the program crashes during write.

    Args:
        data: Dictionary to serialize as JSON.
        file_path: Target file path.
        indent: JSON indentation level.

    Returns:
        True if successful, False otherwise.
    """
    file_path = Path(file_path)
    temp_path = file_path.with_suffix(file_path.suffix + ".tmp")

    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)

        with open(temp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=indent, default=str)

        os.replace(temp_path, file_path)
        logger.debug("Atomically wrote JSON to %s", file_path)
        return True

    except (OSError, TypeError, ValueError) as e:
        logger.error("Failed to write JSON to %s: %s", file_path, e)
        if temp_path.exists():
            try:
                temp_path.unlink()
            except OSError:
                pass
        return False


def safe_div(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Zero-safe division."""
    if not denominator:
        return default
    return numerator / denominator


def safe_float(val: Any, default: float = 0.0) -> float:
    """Convert numbers or currency strings ("$2,500.00") to float."""
    if val is None or isinstance(val, bool):
        return default
    if isinstance(val, (int, float)):
        number = float(val)
    else:
        cleaned = re.sub(r"[$,\s]", "", str(val))
        if not cleaned:
            return default
        try:
            number = float(cleaned)
        except ValueError:
            return default
    # NaN and infinities never leave the boundary
    if number != number or number in (float("inf"), float("-inf")):
        return default
    return number


def parse_iso_date(value: Optional[str]) -> Optional[datetime]:
    """Parse a 'YYYY-MM-DD' (or full ISO-8601) string to a naive datetime.

    Returns None for empty or malformed input.
    """
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed.replace(tzinfo=None)


def round_half_up(value: float, digits: int = 1) -> float:
    """Round with halves going up: 12.25 -> 12.3, -12.25 -> -12.2."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def month_key(dt: Optional[datetime]) -> Optional[str]:
    """Format a datetime as a 'YYYY-MM' string."""
    if dt is None:
        return None
    return dt.strftime("%Y-%m")


def to_naive(dt: datetime) -> datetime:
    """Drop tzinfo so reference instants compare with parsed sheet dates."""
    return dt.replace(tzinfo=None) if dt.tzinfo is not None else dt
