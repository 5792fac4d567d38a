"""
Client Journey Merger
======================

Joins booked-call rows and sale-submission rows into one Client per person.

Matching is by normalized name only (lowercased, whitespace collapsed). Two
different people sharing a name are merged into one client; the sheets carry
no stable identifier on the booking side, so this is a known data-quality
limitation rather than something the merger tries to repair.

When a source holds several rows for the same name, the row with the latest
date wins: call_date for booked calls, purchase_date for sales. Dates are
zero-padded ISO strings, so plain string comparison orders them correctly.

Exports:
    normalize_name, determine_journey_stage, calculate_days_to_close,
    merge_clients
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from models.sales_models import CallRecord, Client, SaleRecord
from scripts.lib.utils import parse_iso_date

logger = logging.getLogger(__name__)

DEFAULT_CURRENCY = "USD"


def normalize_name(name: Optional[str]) -> str:
    """Canonical join key for a free-text client name."""
    if not name:
        return ""
    return " ".join(name.lower().split())


def determine_journey_stage(
    call: Optional[CallRecord],
    sale: Optional[SaleRecord],
) -> str:
    """Classify a client as booked, attended, closed or paid.

    Checked from the furthest stage down; the first match wins.
    """
    if sale is not None and sale.cash_collected > 0:
        return "paid"
    if call is not None and call.closed_status == "Closed":
        return "closed"
    if call is not None and call.call_status == "Attended":
        return "attended"
    return "booked"


def calculate_days_to_close(booking_date: Optional[str], purchase_date: Optional[str]) -> Optional[int]:
    """Whole days from booking to purchase, or None if either date is unusable."""
    booked = parse_iso_date(booking_date)
    purchased = parse_iso_date(purchase_date)
    if booked is None or purchased is None:
        return None
    return (purchased.date() - booked.date()).days


def _first(*values: Optional[str]) -> Optional[str]:
    """Return the first non-empty value, else None."""
    for value in values:
        if value:
            return value
    return None


def _build_client(call: Optional[CallRecord], sale: Optional[SaleRecord]) -> Client:
    journey_stage = determine_journey_stage(call, sale)

    name = _first(sale and sale.client_name, call and call.client_name) or ""
    booking_date = _first(call and call.booking_date, sale and sale.booking_date)
    purchase_date = _first(sale and sale.purchase_date)

    return Client(
        # Contact details prefer the sale form
        email=_first(sale and sale.client_email, call and call.client_email) or "",
        name=" ".join(name.split()),
        phone=_first(sale and sale.client_phone, call and call.client_phone) or "",
        booking_date=booking_date,
        call_date=_first(call and call.call_date),
        call_status=call.call_status if call else None,
        closer=_first(sale and sale.closer, call and call.closer),
        setter=_first(sale and sale.setter, call and call.setter),
        expected_package=_first(call and call.expected_package),
        expected_price=call.expected_price if call else 0.0,
        closed_status=call.closed_status if call else None,
        purchase_date=purchase_date,
        program=_first(sale and sale.program),
        actual_price=sale.price if sale else 0.0,
        cash_collected=sale.cash_collected if sale else 0.0,
        balance=sale.balance if sale else 0.0,
        payment_method=_first(sale and sale.payment_method),
        currency=_first(sale and sale.currency, call and call.currency) or DEFAULT_CURRENCY,
        journey_stage=journey_stage,
        days_to_close=calculate_days_to_close(booking_date, purchase_date),
        is_converted=journey_stage in ("closed", "paid"),
        vibe=call.vibe if call else None,
        objection=call.objection if call else None,
        last_contact=_first(call and call.last_contact),
        last_contact_notes=_first(call and call.last_contact_notes),
        city=_first(call and call.city),
        state=_first(call and call.state),
        payment_status=_first(sale and sale.payment_status),
        notes=_first(call and call.notes, sale and sale.notes),
    )


def merge_clients(
    call_records: List[CallRecord],
    sale_records: List[SaleRecord],
) -> List[Client]:
    """Merge both record sources into Clients, most recent first.

    Clients are ordered by booking date (falling back to purchase date);
    clients with neither date sort last.
    """
    calls: Dict[str, CallRecord] = {}
    sales: Dict[str, SaleRecord] = {}
    # Insertion order of keys across both sources, for stable tie-breaking
    keys: Dict[str, None] = {}
    skipped = 0
    duplicates = 0

    for call in call_records:
        key = normalize_name(call.client_name)
        if not key:
            skipped += 1
            continue
        keys.setdefault(key, None)
        existing = calls.get(key)
        if existing is None:
            calls[key] = call
            continue
        duplicates += 1
        if call.call_date and call.call_date > (existing.call_date or ""):
            calls[key] = call

    for sale in sale_records:
        key = normalize_name(sale.client_name)
        if not key:
            skipped += 1
            continue
        keys.setdefault(key, None)
        existing = sales.get(key)
        if existing is None:
            sales[key] = sale
            continue
        duplicates += 1
        if sale.purchase_date and sale.purchase_date > (existing.purchase_date or ""):
            sales[key] = sale

    if skipped:
        logger.warning("Skipped %d record(s) without a client name", skipped)
    if duplicates:
        logger.info("Collapsed %d duplicate record(s) by client name", duplicates)

    clients = [_build_client(calls.get(key), sales.get(key)) for key in keys]
    clients.sort(key=lambda c: c.booking_date or c.purchase_date or "", reverse=True)

    logger.info(
        "Merged %d call and %d sale record(s) into %d client(s)",
        len(call_records), len(sale_records), len(clients),
    )
    return clients
