"""
SalesOps Hub — Sales Pipeline Pydantic Models
================================================

Typed records handed over by the sheet parsers (booked calls, sale
submissions), the merged Client entity, and every aggregate the dashboard
pipeline derives from them.
"""
from __future__ import annotations

from datetime import MAXYEAR, MINYEAR, datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from scripts.lib.utils import safe_float


CallStatus = Literal["Scheduled", "Attended", "No Show", "Rescheduled", "Cancelled"]
ClosedStatus = Literal["Closed", "Not Closed", "Pending"]
VibeType = Literal["Hot", "Warm", "Cold", "On Fence"]
ObjectionType = Literal["Price", "Timing", "Spouse", "Thinking", "Other"]
JourneyStage = Literal["booked", "attended", "closed", "paid"]
ComparisonType = Literal["percent", "points"]
DateRangeType = Literal[
    "all", "today", "wtd", "mtd", "qtd", "ytd",
    "lastWeek", "lastMonth", "lastQuarter", "lastYear",
    "specificMonth", "custom",
]

JOURNEY_STAGES = ("booked", "attended", "closed", "paid")

MIN_SELECTED_YEAR = MINYEAR + 1
MAX_SELECTED_YEAR = MAXYEAR


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


# ─── Source Records ─────────────────────────────────────────

def _clean_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


class CallRecord(BaseModel):
    """One row of the booked-calls log."""
    model_config = ConfigDict(frozen=True)

    client_name: str = ""
    client_email: str = ""
    client_phone: str = ""
    booking_date: str = ""
    call_date: str = ""
    call_status: Optional[CallStatus] = None
    closer: str = ""
    setter: str = ""
    expected_package: str = ""
    expected_price: float = 0.0
    closed_status: Optional[ClosedStatus] = None
    notes: str = ""
    currency: str = ""
    vibe: Optional[VibeType] = None
    objection: Optional[ObjectionType] = None
    last_contact: str = ""
    last_contact_notes: str = ""
    city: str = ""
    state: str = ""

    @field_validator(
        "client_name", "client_email", "client_phone", "booking_date", "call_date",
        "closer", "setter", "expected_package", "notes", "currency",
        "last_contact", "last_contact_notes", "city", "state",
        mode="before",
    )
    @classmethod
    def _text(cls, value: Any) -> str:
        return _clean_text(value)

    @field_validator("expected_price", mode="before")
    @classmethod
    def _price(cls, value: Any) -> float:
        return safe_float(value)

    @field_validator("call_status", "closed_status", "vibe", "objection", mode="before")
    @classmethod
    def _enum(cls, value: Any) -> Any:
        return _blank_to_none(value)


class SaleRecord(BaseModel):
    """One row of the sale-submission form."""
    model_config = ConfigDict(frozen=True)

    client_name: str = ""
    client_email: str = ""
    client_phone: str = ""
    booking_date: str = ""
    purchase_date: str = ""
    program: str = ""
    price: float = 0.0
    cash_collected: float = 0.0
    balance: float = 0.0
    payment_method: str = ""
    payment_status: str = ""
    notes: str = ""
    closer: str = ""
    setter: str = ""
    currency: str = ""

    @field_validator(
        "client_name", "client_email", "client_phone", "booking_date",
        "purchase_date", "program", "payment_method", "payment_status",
        "notes", "closer", "setter", "currency",
        mode="before",
    )
    @classmethod
    def _text(cls, value: Any) -> str:
        return _clean_text(value)

    @field_validator("price", "cash_collected", "balance", mode="before")
    @classmethod
    def _amount(cls, value: Any) -> float:
        return safe_float(value)


class RawSalesData(BaseModel):
    """Both record sources as handed over by the parsing layer."""
    booked_calls: List[CallRecord] = Field(default_factory=list)
    sale_submissions: List[SaleRecord] = Field(default_factory=list)
    last_updated: str = ""


# ─── Merged Client ──────────────────────────────────────────

class Client(BaseModel):
    """One client journey, merged from a call record and/or a sale record."""
    model_config = ConfigDict(frozen=True)

    email: str = ""
    name: str = ""
    phone: str = ""
    booking_date: Optional[str] = None
    call_date: Optional[str] = None
    call_status: Optional[CallStatus] = None
    closer: Optional[str] = None
    setter: Optional[str] = None
    expected_package: Optional[str] = None
    expected_price: float = 0.0
    closed_status: Optional[ClosedStatus] = None
    purchase_date: Optional[str] = None
    program: Optional[str] = None
    actual_price: float = 0.0
    cash_collected: float = 0.0
    balance: float = 0.0
    payment_method: Optional[str] = None
    currency: str = "USD"
    journey_stage: JourneyStage = "booked"
    days_to_close: Optional[int] = None
    is_converted: bool = False
    vibe: Optional[VibeType] = None
    objection: Optional[ObjectionType] = None
    last_contact: Optional[str] = None
    last_contact_notes: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    payment_status: Optional[str] = None
    notes: Optional[str] = None


# ─── Aggregates ─────────────────────────────────────────────

class CloserStats(BaseModel):
    name: str
    total_calls: int = 0
    attended: int = 0
    closed: int = 0
    revenue: float = 0.0
    cash_collected: float = 0.0
    close_rate: float = 0.0
    attendance_rate: float = 0.0
    avg_deal_size: float = 0.0


class FunnelStage(BaseModel):
    stage: str
    count: int = 0
    percentage: float = 0.0
    drop_off: int = 0


class RevenueData(BaseModel):
    total_revenue: float = 0.0
    cash_collected: float = 0.0
    outstanding_balance: float = 0.0
    avg_deal_size: float = 0.0
    total_deals: int = 0


class MonthlyRevenue(BaseModel):
    month: str
    revenue: float = 0.0
    cash_collected: float = 0.0
    deals: int = 0


class ActionItems(BaseModel):
    """Worklists holding the same Client instances as DashboardData.clients."""
    no_shows_to_rescue: List[Client] = Field(default_factory=list)
    warm_leads_to_close: List[Client] = Field(default_factory=list)
    unpaid_balances: List[Client] = Field(default_factory=list)
    stale_leads: List[Client] = Field(default_factory=list)


class KPIs(BaseModel):
    total_booked: int = 0
    total_attended: int = 0
    total_closed: int = 0
    total_paid: int = 0
    conversion_rate: float = 0.0
    attendance_rate: float = 0.0
    close_rate: float = 0.0
    total_revenue: float = 0.0
    avg_deal_size: float = 0.0


class TrendData(BaseModel):
    value: float
    is_positive: bool


class KPITrends(BaseModel):
    """Month-over-month change of the latest month against the one before."""
    revenue: Optional[TrendData] = None
    deals: Optional[TrendData] = None
    avg_deal_size: Optional[TrendData] = None
    cash_collected: Optional[TrendData] = None


class ComparisonResult(BaseModel):
    value: float = Field(description="Magnitude: percent change or percentage points")
    is_positive: bool
    label: str = Field(description='e.g. "vs Sep 1-19"')
    type: ComparisonType


class KPIComparisons(BaseModel):
    total_revenue: Optional[ComparisonResult] = None
    cash_collected: Optional[ComparisonResult] = None
    avg_deal_size: Optional[ComparisonResult] = None
    conversion_rate: Optional[ComparisonResult] = None
    close_rate: Optional[ComparisonResult] = None


class DashboardData(BaseModel):
    clients: List[Client] = Field(default_factory=list)
    closer_stats: List[CloserStats] = Field(default_factory=list)
    funnel_stages: List[FunnelStage] = Field(default_factory=list)
    revenue_data: RevenueData = Field(default_factory=RevenueData)
    monthly_revenue: List[MonthlyRevenue] = Field(default_factory=list)
    action_items: ActionItems = Field(default_factory=ActionItems)
    kpis: KPIs = Field(default_factory=KPIs)
    kpi_trends: KPITrends = Field(default_factory=KPITrends)
    last_updated: str = ""
    comparisons: Optional[KPIComparisons] = None
    comparison_label: Optional[str] = None
    date_range_label: str = "All Time"


# ─── Date Filtering ─────────────────────────────────────────

class DateBounds(BaseModel):
    """Inclusive [start, end] window; both None means all time."""
    model_config = ConfigDict(frozen=True)

    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @property
    def is_unbounded(self) -> bool:
        return self.start is None and self.end is None


class DateFilterState(BaseModel):
    """Selected preset plus the custom range and specific month sub-selections."""
    model_config = ConfigDict(frozen=True)

    date_range_type: DateRangeType = "all"
    custom_start: Optional[datetime] = None
    custom_end: Optional[datetime] = None
    selected_month: int = Field(1, ge=1, le=12)
    # The comparison window reaches one year back, so year 1 has no counterpart
    selected_year: int = Field(2000, ge=MIN_SELECTED_YEAR, le=MAX_SELECTED_YEAR)


class ComparisonPeriod(BaseModel):
    bounds: DateBounds
    label: str
