"""Tests for name normalization, journey classification and the client merge."""

from models.sales_models import JOURNEY_STAGES
from scripts.client_merger import (
    calculate_days_to_close,
    determine_journey_stage,
    merge_clients,
    normalize_name,
)


class TestNormalizeName:
    def test_lowercases_and_collapses_whitespace(self):
        assert normalize_name("  Jane \t  DOE \n") == "jane doe"

    def test_empty_and_missing_names(self):
        assert normalize_name("") == ""
        assert normalize_name("   ") == ""
        assert normalize_name(None) == ""

    def test_equal_keys_for_spacing_variants(self):
        assert normalize_name("Jane Doe") == normalize_name("jane   doe")


class TestDetermineJourneyStage:
    def test_paid_wins_over_closed(self, make_call, make_sale):
        call = make_call(call_status="Attended", closed_status="Closed")
        sale = make_sale(price=2500, cash_collected=500)
        assert determine_journey_stage(call, sale) == "paid"

    def test_closed_without_sale(self, make_call):
        call = make_call(call_status="Attended", closed_status="Closed")
        assert determine_journey_stage(call, None) == "closed"

    def test_sale_without_cash_falls_back_to_call(self, make_call, make_sale):
        call = make_call(call_status="Attended", closed_status="Pending")
        sale = make_sale(price=2500, cash_collected=0)
        assert determine_journey_stage(call, sale) == "attended"

    def test_attended(self, make_call):
        call = make_call(call_status="Attended", closed_status="Not Closed")
        assert determine_journey_stage(call, None) == "attended"

    def test_defaults_to_booked(self, make_call, make_sale):
        assert determine_journey_stage(make_call(call_status="No Show"), None) == "booked"
        assert determine_journey_stage(None, make_sale(cash_collected=0)) == "booked"
        assert determine_journey_stage(None, None) == "booked"


class TestDaysToClose:
    def test_whole_days_between_dates(self):
        assert calculate_days_to_close("2024-03-01", "2024-03-15") == 14

    def test_missing_or_malformed_dates(self):
        assert calculate_days_to_close(None, "2024-03-15") is None
        assert calculate_days_to_close("2024-03-01", "") is None
        assert calculate_days_to_close("03/01/2024", "2024-03-15") is None
        assert calculate_days_to_close("2024-02-30", "2024-03-15") is None


class TestMergeClients:
    def test_call_and_sale_merge_into_one_paid_client(self, make_call, make_sale):
        calls = [make_call("Jane Doe", call_status="Attended", closed_status="Closed")]
        sales = [make_sale("jane   doe", price=2500, cash_collected=2500, balance=0)]

        clients = merge_clients(calls, sales)

        assert len(clients) == 1
        client = clients[0]
        assert client.name == "jane doe"
        assert client.journey_stage == "paid"
        assert client.is_converted is True
        assert client.balance == 0
        assert client.actual_price == 2500

    def test_call_without_sale(self, make_call):
        calls = [make_call("Sam Lee", call_status="No Show", closed_status="Not Closed")]

        clients = merge_clients(calls, [])

        assert len(clients) == 1
        assert clients[0].journey_stage == "booked"
        assert clients[0].is_converted is False
        assert clients[0].actual_price == 0
        assert clients[0].purchase_date is None

    def test_rows_without_a_name_are_skipped(self, make_call, make_sale):
        clients = merge_clients(
            [make_call(""), make_call("   "), make_call("Real Person")],
            [make_sale("")],
        )
        assert [c.name for c in clients] == ["Real Person"]

    def test_duplicate_calls_keep_latest_call_date(self, make_call):
        calls = [
            make_call("Jane Doe", call_date="2024-03-10", call_status="No Show"),
            make_call("JANE DOE", call_date="2024-03-20", call_status="Attended"),
            make_call("jane doe", call_date="2024-03-15", call_status="Cancelled"),
        ]
        clients = merge_clients(calls, [])

        assert len(clients) == 1
        assert clients[0].call_date == "2024-03-20"
        assert clients[0].call_status == "Attended"

    def test_duplicate_call_without_date_does_not_replace(self, make_call):
        calls = [
            make_call("Jane Doe", call_date="2024-03-10", closer="First"),
            make_call("Jane Doe", call_date="", closer="Second"),
        ]
        assert merge_clients(calls, [])[0].closer == "First"

    def test_duplicate_sales_keep_latest_purchase_date(self, make_sale):
        sales = [
            make_sale("Jane Doe", purchase_date="2024-05-01", price=1000, cash_collected=1000),
            make_sale("Jane Doe", purchase_date="2024-04-01", price=9000, cash_collected=9000),
        ]
        client = merge_clients([], sales)[0]
        assert client.purchase_date == "2024-05-01"
        assert client.actual_price == 1000

    def test_contact_fields_prefer_sale_side(self, make_call, make_sale):
        calls = [make_call("Jane Doe", client_email="call@example.com", client_phone="555-0100")]
        sales = [make_sale("Jane Doe", client_email="sale@example.com", client_phone="")]

        client = merge_clients(calls, sales)[0]

        assert client.email == "sale@example.com"
        assert client.phone == "555-0100"

    def test_booking_fields_come_from_call(self, make_call, make_sale):
        calls = [make_call(
            "Jane Doe", booking_date="2024-03-01", expected_package="Gold",
            expected_price=4000, city="Austin", notes="call notes",
        )]
        sales = [make_sale(
            "Jane Doe", booking_date="2024-02-20", purchase_date="2024-03-15",
            program="Gold", notes="sale notes",
        )]

        client = merge_clients(calls, sales)[0]

        assert client.booking_date == "2024-03-01"
        assert client.expected_package == "Gold"
        assert client.expected_price == 4000
        assert client.city == "Austin"
        assert client.notes == "call notes"
        assert client.days_to_close == 14

    def test_closer_and_currency_precedence(self, make_call, make_sale):
        calls = [make_call("A One", closer="Call Closer"), make_call("B Two", closer="Only Call")]
        sales = [make_sale("A One", closer="Sale Closer", currency="GBP")]

        by_name = {c.name: c for c in merge_clients(calls, sales)}

        assert by_name["A One"].closer == "Sale Closer"
        assert by_name["A One"].currency == "GBP"
        assert by_name["B Two"].closer == "Only Call"
        assert by_name["B Two"].currency == "USD"

    def test_sorted_most_recent_first_with_undated_last(self, make_call, make_sale):
        calls = [
            make_call("Old Client", booking_date="2024-01-05"),
            make_call("No Date"),
            make_call("New Client", booking_date="2024-06-01"),
        ]
        sales = [make_sale("Sale Only", purchase_date="2024-03-01")]

        names = [c.name for c in merge_clients(calls, sales)]

        assert names == ["New Client", "Sale Only", "Old Client", "No Date"]

    def test_merge_is_deterministic(self, make_call, make_sale):
        calls = [
            make_call("Jane Doe", booking_date="2024-03-01", call_status="Attended"),
            make_call("John Roe", booking_date="2024-03-01"),
        ]
        sales = [make_sale("Jane Doe", purchase_date="2024-03-04", price=100, cash_collected=50)]

        assert merge_clients(calls, sales) == merge_clients(calls, sales)

    def test_inputs_are_not_modified(self, make_call, make_sale):
        calls = [make_call("Jane Doe", call_date="2024-03-10")]
        sales = [make_sale("Jane Doe", price=10)]
        snapshot = (list(calls), list(sales))

        merge_clients(calls, sales)

        assert (calls, sales) == snapshot

    def test_every_client_has_a_consistent_stage(self, make_call, make_sale):
        calls = [
            make_call("A", call_status="Attended", closed_status="Closed"),
            make_call("B", call_status="Attended"),
            make_call("C", call_status="No Show"),
        ]
        sales = [make_sale("D", cash_collected=100), make_sale("E", price=900)]

        for client in merge_clients(calls, sales):
            assert client.journey_stage in JOURNEY_STAGES
            assert client.is_converted == (client.journey_stage in ("closed", "paid"))
