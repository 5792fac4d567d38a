"""
Period-over-Period Comparison
===============================

Compares the headline KPIs of the selected period against an earlier window
of the same shape.

Windows are aligned by elapsed time, not by whole periods: month-to-date on
the 19th compares against the 1st-19th of the previous month, quarter-to-date
against the same point of the previous quarter, and a custom N-day range
against the N days right before it. "All time" has nothing to compare to.

Dollar metrics report a percentage change; rate metrics (already 0-1
fractions) report a change in percentage points. A metric whose previous value
is zero or missing gets no comparison at all.

Exports:
    get_comparison_period, calculate_comparison, compare_period,
    format_comparison_display
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

from models.sales_models import (
    Client,
    ComparisonPeriod,
    ComparisonResult,
    DateBounds,
    DateFilterState,
    KPIComparisons,
    KPIs,
    RevenueData,
)
from scripts.date_ranges import (
    end_of_day,
    end_of_month,
    end_of_quarter,
    end_of_week,
    end_of_year,
    filter_clients_by_date,
    is_custom_complete,
    quarter_number,
    shift_months,
    short_day_label,
    start_of_day,
    start_of_month,
    start_of_quarter,
    start_of_week,
    start_of_year,
)
from scripts.lib.utils import to_naive
from scripts.sales_metrics_analyzer import aggregate

logger = logging.getLogger(__name__)


def get_comparison_period(
    state: DateFilterState,
    now: Optional[datetime] = None,
) -> Optional[ComparisonPeriod]:
    """Comparison window and its label for a filter selection.

    Returns None for all time and for a custom range that is still half-picked.
    """
    now = to_naive(now or datetime.now())
    range_type = state.date_range_type

    if range_type == "today":
        same_day_last_week = now - timedelta(weeks=1)
        return ComparisonPeriod(
            bounds=DateBounds(
                start=start_of_day(same_day_last_week),
                end=end_of_day(same_day_last_week),
            ),
            label=f"vs last {same_day_last_week.strftime('%a')}",
        )

    if range_type == "wtd":
        return ComparisonPeriod(
            bounds=DateBounds(
                start=start_of_week(now) - timedelta(weeks=1),
                end=end_of_day(now - timedelta(weeks=1)),
            ),
            label="vs last week",
        )

    if range_type == "mtd":
        # shift_months clamps, so Mar 31 compares against Feb 1-28
        same_point = shift_months(now, -1)
        start = start_of_month(same_point)
        end = end_of_day(same_point)
        return ComparisonPeriod(
            bounds=DateBounds(start=start, end=end),
            label=f"vs {short_day_label(start)}-{end.day}",
        )

    if range_type == "qtd":
        same_point = shift_months(now, -3)
        start = start_of_quarter(same_point)
        return ComparisonPeriod(
            bounds=DateBounds(start=start, end=end_of_day(same_point)),
            label=f"vs Q{quarter_number(start)}",
        )

    if range_type == "ytd":
        same_point = shift_months(now, -12)
        start = start_of_year(same_point)
        return ComparisonPeriod(
            bounds=DateBounds(start=start, end=end_of_day(same_point)),
            label=f"vs {start.year}",
        )

    if range_type == "lastWeek":
        start = start_of_week(now) - timedelta(weeks=2)
        end = end_of_week(start)
        return ComparisonPeriod(
            bounds=DateBounds(start=start, end=end),
            label=f"vs {short_day_label(start)}-{end.day}",
        )

    if range_type == "lastMonth":
        two_months_ago = shift_months(now, -2)
        return ComparisonPeriod(
            bounds=DateBounds(
                start=start_of_month(two_months_ago),
                end=end_of_month(two_months_ago),
            ),
            label=f"vs {two_months_ago.strftime('%B')}",
        )

    if range_type == "lastQuarter":
        two_quarters_ago = shift_months(now, -6)
        start = start_of_quarter(two_quarters_ago)
        return ComparisonPeriod(
            bounds=DateBounds(start=start, end=end_of_quarter(two_quarters_ago)),
            label=f"vs Q{quarter_number(start)}",
        )

    if range_type == "lastYear":
        two_years_ago = shift_months(now, -24)
        return ComparisonPeriod(
            bounds=DateBounds(
                start=start_of_year(two_years_ago),
                end=end_of_year(two_years_ago),
            ),
            label=f"vs {two_years_ago.year}",
        )

    if range_type == "specificMonth":
        year_before = datetime(state.selected_year - 1, state.selected_month, 1)
        return ComparisonPeriod(
            bounds=DateBounds(start=year_before, end=end_of_month(year_before)),
            label=f"vs {year_before.strftime('%b %Y')}",
        )

    if range_type == "custom":
        if not is_custom_complete(state):
            return None
        duration = (state.custom_end.date() - state.custom_start.date()).days
        # A range starting at the first calendar day has no earlier window
        if (state.custom_start.date() - date.min).days <= duration:
            return None
        previous_end = state.custom_start - timedelta(days=1)
        previous_start = previous_end - timedelta(days=duration)
        return ComparisonPeriod(
            bounds=DateBounds(
                start=start_of_day(previous_start),
                end=end_of_day(previous_end),
            ),
            label=f"vs {short_day_label(previous_start)} - {short_day_label(previous_end)}",
        )

    return None


def calculate_comparison(
    current_value: Optional[float],
    previous_value: Optional[float],
    label: str,
    is_rate_metric: bool = False,
) -> Optional[ComparisonResult]:
    """Change from ``previous_value`` to ``current_value``.

    Rates (0.45 == 45%) report percentage points, everything else a percent
    change. Returns None when there is no previous value to compare against.
    """
    if not previous_value:
        return None
    current_value = current_value or 0.0

    if is_rate_metric:
        change = (current_value - previous_value) * 100
        change_type = "points"
    else:
        change = (current_value - previous_value) / previous_value * 100
        change_type = "percent"

    return ComparisonResult(
        value=abs(change),
        is_positive=change >= 0,
        label=label,
        type=change_type,
    )


def compare_period(
    all_clients: List[Client],
    comparison_bounds: Optional[DateBounds],
    baseline_kpis: KPIs,
    baseline_revenue: RevenueData,
    label: str = "",
    now: Optional[datetime] = None,
    config: Optional[Dict[str, Any]] = None,
) -> Optional[KPIComparisons]:
    """Aggregate the comparison window and diff it against the current period.

    Args:
        all_clients: Every merged client (unfiltered).
        comparison_bounds: Window to compare against; None or unbounded means
            there is no comparison.
        baseline_kpis: KPIs of the currently selected period.
        baseline_revenue: Revenue totals of the currently selected period.
        label: Display label carried on every comparison, e.g. "vs Sep 1-19".
        now: Reference instant passed through to the aggregator.
        config: Aggregator config overrides.

    Returns:
        KPIComparisons, or None when no comparison applies.
    """
    if comparison_bounds is None or comparison_bounds.is_unbounded:
        return None

    previous_clients = filter_clients_by_date(all_clients, comparison_bounds)
    previous = aggregate(previous_clients, now=now, config=config, last_updated="")
    logger.debug(
        "Comparison window %s: %d client(s)", label or "(unlabelled)", len(previous_clients),
    )

    return KPIComparisons(
        total_revenue=calculate_comparison(
            baseline_revenue.total_revenue, previous.revenue_data.total_revenue, label,
        ),
        cash_collected=calculate_comparison(
            baseline_revenue.cash_collected, previous.revenue_data.cash_collected, label,
        ),
        avg_deal_size=calculate_comparison(
            baseline_revenue.avg_deal_size, previous.revenue_data.avg_deal_size, label,
        ),
        conversion_rate=calculate_comparison(
            baseline_kpis.conversion_rate, previous.kpis.conversion_rate, label,
            is_rate_metric=True,
        ),
        close_rate=calculate_comparison(
            baseline_kpis.close_rate, previous.kpis.close_rate, label,
            is_rate_metric=True,
        ),
    )


def format_comparison_display(comparison: ComparisonResult) -> str:
    """e.g. "↑ 12.5% vs Sep 1-19" or "↓ 3.0 pts vs Q2"."""
    arrow = "↑" if comparison.is_positive else "↓"
    if comparison.type == "points":
        value = f"{comparison.value:.1f} pts"
    else:
        value = f"{comparison.value:.1f}%"
    return f"{arrow} {value} {comparison.label}"
