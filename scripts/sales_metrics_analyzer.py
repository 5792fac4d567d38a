"""
Sales Metrics Analyzer
=======================
Derives every dashboard aggregate from a merged client list: the booked →
attended → closed → paid funnel, the closer leaderboard, revenue totals and
the monthly series, action-item worklists, headline KPIs and month-over-month
trends.

All analyzers are pure: they read the client list and return new structures.
Time-dependent figures (stale leads) take an explicit reference instant so a
run can be replayed exactly.

Exports:
    FunnelAnalyzer, CloserAnalyzer, RevenueAnalyzer, ActionItemAnalyzer,
    KPIAnalyzer, TrendAnalyzer, aggregate, DEFAULT_CONFIG
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from models.sales_models import (
    ActionItems,
    Client,
    CloserStats,
    DashboardData,
    FunnelStage,
    KPIs,
    KPITrends,
    MonthlyRevenue,
    RevenueData,
    TrendData,
)
from scripts.lib.utils import month_key, parse_iso_date, round_half_up, safe_div, to_naive

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Default configuration
# ---------------------------------------------------------------------------
DEFAULT_CONFIG: Dict[str, Any] = {
    "stale_lead_threshold_days": 7,
}

ATTENDED_STAGES = frozenset({"attended", "closed", "paid"})
CONVERTED_STAGES = frozenset({"closed", "paid"})


def _merged_config(config: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    merged = dict(DEFAULT_CONFIG)
    if config:
        merged.update(config)
    return merged


def _stage_counts(clients: List[Client]) -> Dict[str, int]:
    """Cumulative counts: every client is booked, paid clients are also closed, ..."""
    return {
        "booked": len(clients),
        "attended": sum(1 for c in clients if c.journey_stage in ATTENDED_STAGES),
        "closed": sum(1 for c in clients if c.journey_stage in CONVERTED_STAGES),
        "paid": sum(1 for c in clients if c.journey_stage == "paid"),
    }


# ============================================================================
# Analyzer Classes
# ============================================================================

class FunnelAnalyzer:
    """Booked → Attended → Closed → Paid funnel with drop-off between stages."""

    STAGE_LABELS = (
        ("booked", "Booked"),
        ("attended", "Attended"),
        ("closed", "Closed"),
        ("paid", "Paid"),
    )

    def analyze(self, clients: List[Client]) -> List[FunnelStage]:
        counts = _stage_counts(clients)
        total = counts["booked"]

        stages: List[FunnelStage] = []
        previous: Optional[int] = None
        for key, label in self.STAGE_LABELS:
            count = counts[key]
            stages.append(FunnelStage(
                stage=label,
                count=count,
                percentage=safe_div(count, total),
                drop_off=0 if previous is None else previous - count,
            ))
            previous = count
        return stages


class CloserAnalyzer:
    """Per-closer leaderboard, ranked by revenue."""

    def analyze(self, clients: List[Client]) -> List[CloserStats]:
        by_closer: Dict[str, List[Client]] = defaultdict(list)
        for client in clients:
            if not client.closer:
                continue
            by_closer[client.closer].append(client)

        stats: List[CloserStats] = []
        for name, group in by_closer.items():
            total_calls = len(group)
            attended = sum(1 for c in group if c.call_status == "Attended")
            closed = sum(1 for c in group if c.is_converted)
            # Sums over the whole group: a sale with no cash and no "Closed"
            # call still counts toward the closer's revenue
            revenue = sum(c.actual_price for c in group)
            cash_collected = sum(c.cash_collected for c in group)

            stats.append(CloserStats(
                name=name,
                total_calls=total_calls,
                attended=attended,
                closed=closed,
                revenue=revenue,
                cash_collected=cash_collected,
                close_rate=safe_div(closed, attended),
                attendance_rate=safe_div(attended, total_calls),
                avg_deal_size=safe_div(revenue, closed),
            ))

        stats.sort(key=lambda s: (-s.revenue, s.name))
        return stats


class RevenueAnalyzer:
    """Revenue totals over converted clients and the monthly revenue series."""

    def analyze(self, clients: List[Client]) -> RevenueData:
        converted = [c for c in clients if c.journey_stage in CONVERTED_STAGES]
        total_revenue = sum(c.actual_price for c in converted)
        return RevenueData(
            total_revenue=total_revenue,
            cash_collected=sum(c.cash_collected for c in converted),
            outstanding_balance=sum(c.balance for c in converted),
            avg_deal_size=safe_div(total_revenue, len(converted)),
            total_deals=len(converted),
        )

    def monthly(self, clients: List[Client]) -> List[MonthlyRevenue]:
        buckets: Dict[str, Dict[str, float]] = defaultdict(
            lambda: {"revenue": 0.0, "cash_collected": 0.0, "deals": 0}
        )
        for client in clients:
            if client.actual_price <= 0:
                continue
            key = month_key(parse_iso_date(client.purchase_date))
            if key is None:
                continue
            bucket = buckets[key]
            bucket["revenue"] += client.actual_price
            bucket["cash_collected"] += client.cash_collected
            bucket["deals"] += 1

        return [
            MonthlyRevenue(
                month=key,
                revenue=bucket["revenue"],
                cash_collected=bucket["cash_collected"],
                deals=int(bucket["deals"]),
            )
            for key, bucket in sorted(buckets.items())
        ]


class ActionItemAnalyzer:
    """Worklists: no-shows to rescue, warm leads, unpaid balances, stale leads."""

    def analyze(
        self,
        clients: List[Client],
        now: datetime,
        config: Optional[Dict[str, Any]] = None,
    ) -> ActionItems:
        config = _merged_config(config)
        stale_cutoff = now - timedelta(days=config["stale_lead_threshold_days"])

        no_shows: List[Client] = []
        warm_leads: List[Client] = []
        unpaid: List[Client] = []
        stale: List[Client] = []

        for client in clients:
            if client.call_status == "No Show" and client.closed_status != "Closed":
                no_shows.append(client)
            if client.journey_stage == "attended" and client.closed_status != "Closed":
                warm_leads.append(client)
            if client.balance > 0:
                unpaid.append(client)
            if client.journey_stage == "booked":
                booked_at = parse_iso_date(client.booking_date)
                if booked_at is not None and booked_at < stale_cutoff:
                    stale.append(client)

        return ActionItems(
            no_shows_to_rescue=no_shows,
            warm_leads_to_close=warm_leads,
            unpaid_balances=unpaid,
            stale_leads=stale,
        )


class KPIAnalyzer:
    """Headline counts and rates."""

    def analyze(self, clients: List[Client], revenue: RevenueData) -> KPIs:
        counts = _stage_counts(clients)
        return KPIs(
            total_booked=counts["booked"],
            total_attended=counts["attended"],
            total_closed=counts["closed"],
            total_paid=counts["paid"],
            conversion_rate=safe_div(counts["closed"], counts["booked"]),
            attendance_rate=safe_div(counts["attended"], counts["booked"]),
            close_rate=safe_div(counts["closed"], counts["attended"]),
            total_revenue=revenue.total_revenue,
            avg_deal_size=revenue.avg_deal_size,
        )


class TrendAnalyzer:
    """Month-over-month change of the latest revenue month vs the one before."""

    @staticmethod
    def _change_pct(current: float, previous: float) -> float:
        if previous == 0:
            return 100.0 if current > 0 else 0.0
        return ((current - previous) / previous) * 100

    @staticmethod
    def _trend(change: float) -> TrendData:
        return TrendData(value=round_half_up(change, 1), is_positive=change >= 0)

    def analyze(self, monthly: List[MonthlyRevenue]) -> KPITrends:
        if len(monthly) < 2:
            return KPITrends()

        ordered = sorted(monthly, key=lambda m: m.month, reverse=True)
        current, previous = ordered[0], ordered[1]

        current_avg = safe_div(current.revenue, current.deals)
        previous_avg = safe_div(previous.revenue, previous.deals)

        return KPITrends(
            revenue=self._trend(self._change_pct(current.revenue, previous.revenue)),
            deals=self._trend(self._change_pct(current.deals, previous.deals)),
            avg_deal_size=self._trend(self._change_pct(current_avg, previous_avg)),
            cash_collected=self._trend(
                self._change_pct(current.cash_collected, previous.cash_collected)
            ),
        )

    @staticmethod
    def _month_label(month: str) -> str:
        parsed = parse_iso_date(f"{month}-01")
        if parsed is None:
            return month
        return parsed.strftime("%B %Y")

    def current_month_label(self, monthly: List[MonthlyRevenue]) -> str:
        if not monthly:
            return ""
        latest = max(monthly, key=lambda m: m.month)
        return self._month_label(latest.month)

    def previous_month_label(self, monthly: List[MonthlyRevenue]) -> str:
        if len(monthly) < 2:
            return ""
        ordered = sorted(monthly, key=lambda m: m.month, reverse=True)
        return self._month_label(ordered[1].month)


# ============================================================================
# Aggregation entry point
# ============================================================================

def aggregate(
    clients: List[Client],
    now: Optional[datetime] = None,
    config: Optional[Dict[str, Any]] = None,
    last_updated: Optional[str] = None,
) -> DashboardData:
    """Run every analyzer over ``clients`` and assemble the dashboard.

    Args:
        clients: Merged clients, already filtered to the period of interest.
        now: Reference instant for time-relative metrics. Defaults to the
            current local time.
        config: Overrides for DEFAULT_CONFIG.
        last_updated: Freshness stamp of the source data. Defaults to ``now``.

    Returns:
        DashboardData without period comparisons.
    """
    now = to_naive(now or datetime.now())
    config = _merged_config(config)

    logger.debug("Aggregating %d client(s)", len(clients))

    funnel_stages = FunnelAnalyzer().analyze(clients)
    closer_stats = CloserAnalyzer().analyze(clients)
    revenue_analyzer = RevenueAnalyzer()
    revenue_data = revenue_analyzer.analyze(clients)
    monthly_revenue = revenue_analyzer.monthly(clients)
    action_items = ActionItemAnalyzer().analyze(clients, now, config)
    kpis = KPIAnalyzer().analyze(clients, revenue_data)
    kpi_trends = TrendAnalyzer().analyze(monthly_revenue)

    return DashboardData(
        clients=list(clients),
        closer_stats=closer_stats,
        funnel_stages=funnel_stages,
        revenue_data=revenue_data,
        monthly_revenue=monthly_revenue,
        action_items=action_items,
        kpis=kpis,
        kpi_trends=kpi_trends,
        last_updated=last_updated if last_updated is not None else now.isoformat(),
    )
