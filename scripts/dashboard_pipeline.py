"""
SalesOps Hub — Dashboard Pipeline
===================================
Runs the whole sales dashboard computation for one filter selection:

    1. Load     — typed call / sale records from data/raw/
    2. Merge    — one Client per normalized name
    3. Aggregate — all-time dashboard
    4. Filter   — re-aggregate the clients inside the selected date range
    5. Compare  — aggregate the comparison window and diff the headline KPIs
    6. Save     — data/processed/dashboard_metrics.json

Nothing is cached between runs; every call recomputes from the records it is
given, so the same records, filter and reference instant always produce the
same dashboard.

Usage:
    python scripts/dashboard_pipeline.py                          # all time
    python scripts/dashboard_pipeline.py --range mtd              # month to date
    python scripts/dashboard_pipeline.py --range specificMonth --month 3 --year 2026
    python scripts/dashboard_pipeline.py --range custom --start 2026-09-01 --end 2026-09-30
    python scripts/dashboard_pipeline.py --closer "Dana Reyes"    # one closer's view
"""
from __future__ import annotations

import argparse
import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Path setup
# ---------------------------------------------------------------------------
SCRIPT_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = SCRIPT_DIR.parent
sys.path.insert(0, str(PROJECT_ROOT))

load_dotenv(PROJECT_ROOT / ".env")

from models.sales_models import (
    MAX_SELECTED_YEAR,
    MIN_SELECTED_YEAR,
    Client,
    ComparisonPeriod,
    DashboardData,
    DateBounds,
    DateFilterState,
    RawSalesData,
)
from scripts.client_merger import merge_clients
from scripts.date_ranges import (
    DATE_RANGE_TYPES,
    filter_clients_by_date,
    format_date_range_display,
    get_date_bounds,
    initial_filter_state,
    pick_custom_end,
    pick_custom_start,
    select_range,
    select_specific_month,
)
from scripts.lib.errors import ConfigError, HubError, PipelineStepError
from scripts.lib.utils import atomic_write_json, parse_iso_date, to_naive
from scripts.period_comparison import compare_period, get_comparison_period
from scripts.sales_data_loader import load_raw_sales_data
from scripts.sales_metrics_analyzer import aggregate

logger = logging.getLogger(__name__)

DEFAULT_INPUT = PROJECT_ROOT / "data" / "raw" / "sales_records.json"
DEFAULT_OUTPUT = PROJECT_ROOT / "data" / "processed" / "dashboard_metrics.json"


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------

def filter_and_reaggregate(
    all_clients: List[Client],
    bounds: DateBounds,
    now: Optional[datetime] = None,
    full: Optional[DashboardData] = None,
    config: Optional[Dict[str, Any]] = None,
    last_updated: Optional[str] = None,
) -> DashboardData:
    """Dashboard for the clients whose representative date is inside ``bounds``.

    Unbounded selections return the all-time aggregate; pass ``full`` to reuse
    one that was already computed.
    """
    if bounds.is_unbounded:
        if full is not None:
            return full
        return aggregate(all_clients, now=now, config=config, last_updated=last_updated)

    in_range = filter_clients_by_date(all_clients, bounds)
    logger.info(
        "Date filter kept %d of %d client(s)", len(in_range), len(all_clients),
    )
    return aggregate(in_range, now=now, config=config, last_updated=last_updated)


def filter_for_closer(
    data: DashboardData,
    closer: str,
    now: Optional[datetime] = None,
    config: Optional[Dict[str, Any]] = None,
    all_clients: Optional[List[Client]] = None,
    period: Optional[ComparisonPeriod] = None,
) -> DashboardData:
    """Scope a dashboard to the clients credited to one closer.

    Every aggregate is recomputed from that closer's clients. Comparisons are
    recomputed too, against the closer's own clients in ``period``; they need
    the unfiltered ``all_clients`` and are left empty without them.
    """
    own_clients = [c for c in data.clients if c.closer == closer]
    scoped = aggregate(own_clients, now=now, config=config, last_updated=data.last_updated)

    comparisons = None
    comparison_label = None
    if period is not None and all_clients is not None:
        comparison_label = period.label
        comparisons = compare_period(
            [c for c in all_clients if c.closer == closer],
            period.bounds,
            scoped.kpis,
            scoped.revenue_data,
            label=period.label,
            now=now,
            config=config,
        )

    return scoped.model_copy(update={
        "comparisons": comparisons,
        "comparison_label": comparison_label,
        "date_range_label": data.date_range_label,
    })


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

def build_dashboard(
    raw: RawSalesData,
    state: Optional[DateFilterState] = None,
    now: Optional[datetime] = None,
    config: Optional[Dict[str, Any]] = None,
    closer: Optional[str] = None,
) -> DashboardData:
    """Merge the records and build the dashboard for one filter selection.

    With ``closer`` set, every aggregate and comparison covers only that
    closer's clients.
    """
    now = to_naive(now or datetime.now())
    state = state or initial_filter_state(now)
    last_updated = raw.last_updated or now.isoformat()

    clients = merge_clients(raw.booked_calls, raw.sale_submissions)

    full = aggregate(clients, now=now, config=config, last_updated=last_updated)
    bounds = get_date_bounds(state, now)
    current = filter_and_reaggregate(
        clients, bounds, now=now, full=full, config=config, last_updated=last_updated,
    )

    period = get_comparison_period(state, now)
    if bounds.is_unbounded:
        period = None

    comparisons = None
    if period is not None and not closer:
        comparisons = compare_period(
            clients,
            period.bounds,
            current.kpis,
            current.revenue_data,
            label=period.label,
            now=now,
            config=config,
        )

    dashboard = current.model_copy(update={
        "comparisons": comparisons,
        "comparison_label": period.label if period is not None else None,
        "date_range_label": format_date_range_display(state, now),
    })

    if closer:
        logger.info("Scoping dashboard to closer '%s'", closer)
        dashboard = filter_for_closer(
            dashboard, closer, now=now, config=config, all_clients=clients, period=period,
        )
    return dashboard


def run_dashboard_pipeline(
    input_path: Optional[Path] = None,
    output_path: Optional[Path] = None,
    state: Optional[DateFilterState] = None,
    closer: Optional[str] = None,
    now: Optional[datetime] = None,
    config: Optional[Dict[str, Any]] = None,
) -> DashboardData:
    """Load records, build the dashboard and write it to ``output_path``.

    Returns the dashboard that was written.
    """
    input_path = Path(input_path or os.getenv("SALESOPS_RAW_FILE") or DEFAULT_INPUT)
    output_path = Path(output_path or os.getenv("SALESOPS_OUTPUT_FILE") or DEFAULT_OUTPUT)
    now = to_naive(now or datetime.now())

    logger.info("Starting dashboard pipeline")
    raw = load_raw_sales_data(input_path)

    try:
        dashboard = build_dashboard(raw, state=state, now=now, config=config, closer=closer)
    except HubError:
        raise
    except Exception as e:
        raise PipelineStepError("build_dashboard", cause=e) from e

    if not atomic_write_json(dashboard.model_dump(mode="json"), output_path):
        raise PipelineStepError("save_dashboard")

    logger.info(
        "Dashboard complete (%s): %d client(s), %d closer(s). Output saved to %s",
        dashboard.date_range_label, len(dashboard.clients),
        len(dashboard.closer_stats), output_path,
    )
    return dashboard


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def _parse_day(value: Optional[str], option: str) -> datetime:
    parsed = parse_iso_date(value)
    if parsed is None:
        raise ConfigError(f"{option} must be a YYYY-MM-DD date, got {value!r}", option=option)
    return parsed


def state_from_args(args: argparse.Namespace, now: datetime) -> DateFilterState:
    """Walk the filter state machine the same way the date picker does."""
    state = initial_filter_state(now)
    range_type = args.range

    if range_type not in DATE_RANGE_TYPES:
        raise ConfigError(f"Unknown date range '{range_type}'", option="--range")

    if range_type == "specificMonth":
        month = args.month if args.month is not None else now.month
        year = args.year if args.year is not None else now.year
        if not 1 <= month <= 12:
            raise ConfigError(f"--month must be 1-12, got {month}", option="--month")
        if not MIN_SELECTED_YEAR <= year <= MAX_SELECTED_YEAR:
            raise ConfigError(
                f"--year must be {MIN_SELECTED_YEAR}-{MAX_SELECTED_YEAR}, got {year}",
                option="--year",
            )
        return select_specific_month(state, month, year)

    if range_type == "custom":
        if not args.start or not args.end:
            raise ConfigError("A custom range needs both --start and --end", option="--range")
        state = pick_custom_start(state, _parse_day(args.start, "--start"))
        return pick_custom_end(state, _parse_day(args.end, "--end"))

    return select_range(state, range_type)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="SalesOps Hub dashboard pipeline")
    parser.add_argument("--input", type=Path, default=None, help="Sales snapshot JSON")
    parser.add_argument("--output", type=Path, default=None, help="Dashboard output JSON")
    parser.add_argument(
        "--range", default="all", choices=DATE_RANGE_TYPES, help="Date range preset",
    )
    parser.add_argument("--month", type=int, default=None, help="Month (1-12) for specificMonth")
    parser.add_argument("--year", type=int, default=None, help="Year for specificMonth")
    parser.add_argument("--start", default=None, help="Custom range start (YYYY-MM-DD)")
    parser.add_argument("--end", default=None, help="Custom range end (YYYY-MM-DD)")
    parser.add_argument("--closer", default=None, help="Scope the dashboard to one closer")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(
        level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    args = build_arg_parser().parse_args(argv)
    now = datetime.now()

    try:
        state = state_from_args(args, now)
        dashboard = run_dashboard_pipeline(
            input_path=args.input,
            output_path=args.output,
            state=state,
            closer=args.closer,
            now=now,
        )
    except HubError as e:
        logger.error("Dashboard pipeline failed: %s", e)
        return 1

    kpis = dashboard.kpis
    print(f"\n{dashboard.date_range_label}: {kpis.total_booked} booked, "
          f"{kpis.total_closed} closed, revenue {kpis.total_revenue:,.2f}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
