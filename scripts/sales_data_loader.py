"""
Sales Records Loader
=====================

Reads the parsed sheet snapshot from data/raw/ and validates every row into a
typed CallRecord / SaleRecord before it reaches the merger.

Expected file shape:
    {
      "booked_calls":     [{...}, ...],
      "sale_submissions": [{...}, ...],
      "last_updated":     "2026-10-19T08:00:00Z"
    }

Rows that fail validation (unknown call status, non-object rows, ...) are
dropped and counted; the count is logged, the rows never reach the core.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

from models.sales_models import CallRecord, RawSalesData, SaleRecord
from scripts.lib.errors import DataFetchError, SchemaValidationError

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)


def _validate_rows(rows: Any, model: Type[RecordT], source: str) -> Tuple[List[RecordT], int]:
    """Validate each row, returning (records, dropped_count)."""
    if rows is None:
        return [], 0
    if not isinstance(rows, list):
        raise SchemaValidationError(f"'{source}' must be a list of rows", field=source)

    records: List[RecordT] = []
    dropped = 0
    for index, row in enumerate(rows):
        if not isinstance(row, dict):
            dropped += 1
            logger.debug("%s row %d is not an object; dropped", source, index)
            continue
        try:
            records.append(model.model_validate(row))
        except ValidationError as e:
            dropped += 1
            logger.debug("%s row %d failed validation: %s", source, index, e)
    return records, dropped


def parse_raw_sales_data(payload: Dict[str, Any]) -> RawSalesData:
    """Validate an in-memory snapshot into RawSalesData."""
    if not isinstance(payload, dict):
        raise SchemaValidationError("Sales snapshot must be a JSON object")

    calls, dropped_calls = _validate_rows(payload.get("booked_calls"), CallRecord, "booked_calls")
    sales, dropped_sales = _validate_rows(payload.get("sale_submissions"), SaleRecord, "sale_submissions")

    if dropped_calls or dropped_sales:
        logger.warning(
            "Dropped %d booked call row(s) and %d sale row(s) that failed validation",
            dropped_calls, dropped_sales,
        )

    last_updated = payload.get("last_updated") or ""
    return RawSalesData(
        booked_calls=calls,
        sale_submissions=sales,
        last_updated=str(last_updated),
    )


def load_raw_sales_data(path: str | Path) -> RawSalesData:
    """Load and validate a sales snapshot file.

    A missing file yields an empty snapshot so the dashboard still renders.

    Raises:
        DataFetchError: the file exists but cannot be read or is not JSON.
        SchemaValidationError: the JSON does not have the snapshot shape.
    """
    path = Path(path)
    if not path.exists():
        logger.warning("No sales snapshot at %s; returning empty record set.", path)
        return RawSalesData()

    logger.info("Loading sales records from %s", path)
    try:
        with open(path, "r", encoding="utf-8") as fh:
            payload = json.load(fh)
    except (OSError, json.JSONDecodeError) as e:
        raise DataFetchError(f"Could not read sales snapshot: {e}", source=str(path)) from e

    raw = parse_raw_sales_data(payload)
    logger.info(
        "Loaded: %d booked call(s), %d sale submission(s)",
        len(raw.booked_calls), len(raw.sale_submissions),
    )
    return raw

