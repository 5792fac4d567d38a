"""
Date Range Presets & Filter State
===================================

Turns a dashboard date filter selection into concrete [start, end] bounds and
decides which clients fall inside them.

Presets: all, today, wtd, mtd, qtd, ytd, lastWeek, lastMonth, lastQuarter,
lastYear, specificMonth, custom. Weeks start on Sunday. Bounds are inclusive:
starts sit at 00:00:00, ends at 23:59:59.999999.

Filter selection is a small state machine. Every transition returns a new
DateFilterState; "custom" only becomes an active bound once both the start and
the end have been picked.

All functions take the reference instant ``now`` explicitly.
"""

from __future__ import annotations

import calendar
from datetime import datetime, time, timedelta
from typing import Dict, List, Optional

from models.sales_models import Client, DateBounds, DateFilterState
from scripts.lib.utils import parse_iso_date, to_naive

DATE_RANGE_TYPES = (
    "all", "today", "wtd", "mtd", "qtd", "ytd",
    "lastWeek", "lastMonth", "lastQuarter", "lastYear",
    "specificMonth", "custom",
)

DATE_RANGE_LABELS: Dict[str, str] = {
    "all": "All Time",
    "today": "Today",
    "wtd": "Week to Date",
    "mtd": "Month to Date",
    "qtd": "Quarter to Date",
    "ytd": "Year to Date",
    "lastWeek": "Last Week",
    "lastMonth": "Last Month",
    "lastQuarter": "Last Quarter",
    "lastYear": "Last Year",
    "specificMonth": "Specific Month",
    "custom": "Custom Range",
}

DATE_RANGE_SHORT_LABELS: Dict[str, str] = {
    "all": "All",
    "today": "Today",
    "wtd": "WTD",
    "mtd": "MTD",
    "qtd": "QTD",
    "ytd": "YTD",
    "lastWeek": "Last Week",
    "lastMonth": "Last Month",
    "lastQuarter": "Last Quarter",
    "lastYear": "Last Year",
    "specificMonth": "Month",
    "custom": "Custom",
}

QUICK_FILTER_OPTIONS = ("all", "today", "wtd", "mtd", "qtd", "ytd")
PREVIOUS_PERIOD_OPTIONS = ("lastWeek", "lastMonth", "lastQuarter", "lastYear")

UNBOUNDED = DateBounds()


# ---------------------------------------------------------------------------
# Calendar arithmetic
# ---------------------------------------------------------------------------

def start_of_day(dt: datetime) -> datetime:
    return datetime.combine(dt.date(), time.min)


def end_of_day(dt: datetime) -> datetime:
    return datetime.combine(dt.date(), time.max)


def start_of_week(dt: datetime) -> datetime:
    """Sunday 00:00 of the week containing ``dt``."""
    days_since_sunday = (dt.weekday() + 1) % 7
    return start_of_day(dt - timedelta(days=days_since_sunday))


def end_of_week(dt: datetime) -> datetime:
    return end_of_day(start_of_week(dt) + timedelta(days=6))


def start_of_month(dt: datetime) -> datetime:
    return datetime(dt.year, dt.month, 1)


def end_of_month(dt: datetime) -> datetime:
    last_day = calendar.monthrange(dt.year, dt.month)[1]
    return end_of_day(datetime(dt.year, dt.month, last_day))


def start_of_quarter(dt: datetime) -> datetime:
    return datetime(dt.year, 3 * ((dt.month - 1) // 3) + 1, 1)


def end_of_quarter(dt: datetime) -> datetime:
    return end_of_month(shift_months(start_of_quarter(dt), 2))


def start_of_year(dt: datetime) -> datetime:
    return datetime(dt.year, 1, 1)


def end_of_year(dt: datetime) -> datetime:
    return end_of_day(datetime(dt.year, 12, 31))


def shift_months(dt: datetime, months: int) -> datetime:
    """Move ``dt`` by whole months, clamping the day to the target month's length.

    Mar 31 shifted by -1 lands on Feb 28 (or 29).
    """
    index = dt.year * 12 + (dt.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def quarter_number(dt: datetime) -> int:
    return (dt.month - 1) // 3 + 1


# ---------------------------------------------------------------------------
# Filter state machine
# ---------------------------------------------------------------------------

def _with(state: DateFilterState, changes: Dict[str, object]) -> DateFilterState:
    # Rebuild rather than model_copy so the month range is re-validated
    return DateFilterState(**{**state.model_dump(), **changes})


def initial_filter_state(now: Optional[datetime] = None) -> DateFilterState:
    """All time, with the specific-month picker parked on the current month."""
    now = now or datetime.now()
    return DateFilterState(
        date_range_type="all",
        selected_month=now.month,
        selected_year=now.year,
    )


def reset_filter(now: Optional[datetime] = None) -> DateFilterState:
    return initial_filter_state(now)


def select_range(state: DateFilterState, range_type: str) -> DateFilterState:
    """Pick a preset. Choosing "custom" starts a fresh two-step range pick."""
    if range_type == "custom":
        return _with(state, {
            "date_range_type": "custom", "custom_start": None, "custom_end": None,
        })
    return _with(state, {"date_range_type": range_type})


def select_specific_month(state: DateFilterState, month: int, year: int) -> DateFilterState:
    """Pick a calendar month (1-12) of a given year."""
    return _with(state, {
        "date_range_type": "specificMonth",
        "selected_month": month,
        "selected_year": year,
    })


def pick_custom_start(state: DateFilterState, day: datetime) -> DateFilterState:
    """First custom step: the range stays inactive until an end is picked."""
    return _with(state, {
        "date_range_type": "custom",
        "custom_start": to_naive(day),
        "custom_end": None,
    })


def pick_custom_end(state: DateFilterState, day: datetime) -> DateFilterState:
    """Second custom step. Without a start, the pick is taken as the start."""
    day = to_naive(day)
    if state.date_range_type != "custom" or state.custom_start is None:
        return pick_custom_start(state, day)
    start = state.custom_start
    if day < start:
        start, day = day, start
    return _with(state, {"custom_start": start, "custom_end": day})


def is_custom_complete(state: DateFilterState) -> bool:
    return state.custom_start is not None and state.custom_end is not None


def is_filter_active(state: DateFilterState) -> bool:
    """True when the selection narrows the client list at all."""
    if state.date_range_type == "all":
        return False
    if state.date_range_type == "custom":
        return is_custom_complete(state)
    return True


# ---------------------------------------------------------------------------
# Bounds
# ---------------------------------------------------------------------------

def get_date_bounds(state: DateFilterState, now: Optional[datetime] = None) -> DateBounds:
    """Concrete inclusive bounds for a filter selection."""
    now = to_naive(now or datetime.now())
    range_type = state.date_range_type

    if range_type == "all":
        return UNBOUNDED
    if range_type == "today":
        return DateBounds(start=start_of_day(now), end=end_of_day(now))
    if range_type == "wtd":
        return DateBounds(start=start_of_week(now), end=end_of_day(now))
    if range_type == "mtd":
        return DateBounds(start=start_of_month(now), end=end_of_day(now))
    if range_type == "qtd":
        return DateBounds(start=start_of_quarter(now), end=end_of_day(now))
    if range_type == "ytd":
        return DateBounds(start=start_of_year(now), end=end_of_day(now))
    if range_type == "lastWeek":
        last_week = now - timedelta(weeks=1)
        return DateBounds(start=start_of_week(last_week), end=end_of_week(last_week))
    if range_type == "lastMonth":
        last_month = shift_months(now, -1)
        return DateBounds(start=start_of_month(last_month), end=end_of_month(last_month))
    if range_type == "lastQuarter":
        last_quarter = shift_months(now, -3)
        return DateBounds(start=start_of_quarter(last_quarter), end=end_of_quarter(last_quarter))
    if range_type == "lastYear":
        last_year = shift_months(now, -12)
        return DateBounds(start=start_of_year(last_year), end=end_of_year(last_year))
    if range_type == "specificMonth":
        first = datetime(state.selected_year, state.selected_month, 1)
        return DateBounds(start=first, end=end_of_month(first))
    if range_type == "custom":
        # Half-picked ranges never filter anything
        if not is_custom_complete(state):
            return UNBOUNDED
        return DateBounds(
            start=start_of_day(state.custom_start),
            end=end_of_day(state.custom_end),
        )
    return UNBOUNDED


def representative_date(client: Client) -> Optional[str]:
    """The one date that places a client in a period: booking > purchase > call."""
    return client.booking_date or client.purchase_date or client.call_date


def is_date_in_range(date_str: Optional[str], bounds: DateBounds) -> bool:
    if bounds.is_unbounded:
        return True
    parsed = parse_iso_date(date_str)
    if parsed is None:
        return False
    if bounds.start is not None and parsed < to_naive(bounds.start):
        return False
    if bounds.end is not None and parsed > to_naive(bounds.end):
        return False
    return True


def filter_clients_by_date(clients: List[Client], bounds: DateBounds) -> List[Client]:
    """Clients whose representative date falls within ``bounds``."""
    if bounds.is_unbounded:
        return list(clients)
    return [c for c in clients if is_date_in_range(representative_date(c), bounds)]


# ---------------------------------------------------------------------------
# Display helpers
# ---------------------------------------------------------------------------

def short_day_label(dt: datetime) -> str:
    return f"{dt.strftime('%b')} {dt.day}"


def format_date_range_display(state: DateFilterState, now: Optional[datetime] = None) -> str:
    now = to_naive(now or datetime.now())
    bounds = get_date_bounds(state, now)
    range_type = state.date_range_type

    if bounds.is_unbounded:
        return DATE_RANGE_LABELS["all"]
    if range_type == "today":
        return f"{short_day_label(now)}, {now.year}"
    if range_type == "specificMonth":
        return datetime(state.selected_year, state.selected_month, 1).strftime("%B %Y")
    if range_type == "lastMonth":
        return shift_months(now, -1).strftime("%B %Y")
    if range_type == "lastQuarter":
        quarter_start = start_of_quarter(shift_months(now, -3))
        return f"Q{quarter_number(quarter_start)} {quarter_start.year}"
    if range_type == "lastYear":
        return str(now.year - 1)
    if bounds.start is not None and bounds.end is not None:
        return f"{short_day_label(bounds.start)} - {short_day_label(bounds.end)}, {bounds.end.year}"
    return DATE_RANGE_LABELS.get(range_type, range_type)


def previous_period_label(range_type: str, now: Optional[datetime] = None) -> str:
    now = to_naive(now or datetime.now())
    if range_type == "lastWeek":
        bounds = get_date_bounds(DateFilterState(date_range_type="lastWeek"), now)
        return f"Last Week ({short_day_label(bounds.start)} - {short_day_label(bounds.end)})"
    if range_type == "lastMonth":
        return f"Last Month ({shift_months(now, -1).strftime('%B %Y')})"
    if range_type == "lastQuarter":
        quarter_start = start_of_quarter(shift_months(now, -3))
        return f"Last Quarter (Q{quarter_number(quarter_start)} {quarter_start.year})"
    if range_type == "lastYear":
        return f"Last Year ({now.year - 1})"
    return DATE_RANGE_LABELS.get(range_type, range_type)


def available_years(now: Optional[datetime] = None) -> List[int]:
    """Current year plus the five before it, newest first."""
    now = now or datetime.now()
    return [now.year - offset for offset in range(6)]


def available_months() -> List[Dict[str, object]]:
    return [
        {"value": month, "label": calendar.month_name[month]}
        for month in range(1, 13)
    ]
