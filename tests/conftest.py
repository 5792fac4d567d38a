"""Shared fixtures for the sales dashboard tests."""

import os

# Keep test runs from writing daily log files into the project
os.environ.setdefault("SALESOPS_LOG_TO_FILE", "false")

from datetime import datetime

import pytest

from models.sales_models import CallRecord, Client, RawSalesData, SaleRecord


@pytest.fixture
def now():
    """Monday 2026-10-19, mid-afternoon."""
    return datetime(2026, 10, 19, 15, 30)


@pytest.fixture
def make_call():
    def _make(name="Jane Doe", **fields):
        return CallRecord(client_name=name, **fields)
    return _make


@pytest.fixture
def make_sale():
    def _make(name="Jane Doe", **fields):
        return SaleRecord(client_name=name, **fields)
    return _make


@pytest.fixture
def make_client():
    def _make(name="Jane Doe", journey_stage="booked", **fields):
        fields.setdefault("is_converted", journey_stage in ("closed", "paid"))
        return Client(name=name, journey_stage=journey_stage, **fields)
    return _make


@pytest.fixture
def sample_raw():
    """Two clients in October 2026, three in September 2026."""
    return RawSalesData(
        booked_calls=[
            CallRecord(
                client_name="Alice Brown", booking_date="2026-10-05", call_date="2026-10-06",
                call_status="Attended", closed_status="Closed", closer="Dana",
            ),
            CallRecord(
                client_name="Ben Cole", booking_date="2026-10-10", call_date="2026-10-11",
                call_status="Attended", closed_status="Not Closed", closer="Eli",
            ),
            CallRecord(
                client_name="Cara Diaz", booking_date="2026-09-08", call_date="2026-09-09",
                call_status="Attended", closed_status="Closed", closer="Dana",
            ),
            CallRecord(
                client_name="Dev Patel", booking_date="2026-09-12", call_date="2026-09-13",
                call_status="No Show", closed_status="Not Closed", closer="Eli",
            ),
            CallRecord(
                client_name="Eve Stone", booking_date="2026-09-25", call_date="2026-09-26",
                call_status="Attended", closed_status="Not Closed", closer="Eli",
            ),
        ],
        sale_submissions=[
            SaleRecord(
                client_name="alice brown", purchase_date="2026-10-07", price=3000,
                cash_collected=1000, balance=2000, closer="Dana",
            ),
            SaleRecord(
                client_name="Cara Diaz", purchase_date="2026-09-10", price=2000,
                cash_collected=2000, balance=0, closer="Dana",
            ),
        ],
        last_updated="2026-10-19T08:00:00",
    )
