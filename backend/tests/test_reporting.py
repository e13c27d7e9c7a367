"""
Reporting tests.

All functions under test are pure, so these run on plain dicts without a
database.
"""

import csv
import io
from datetime import date, datetime

import pytest

from snackbar import catalog
from snackbar.services import reporting_service as rs
from snackbar.validation import ValidationError


def order(items, created="2026-10-19T06:00:00Z", total=None, number=1):
    return {
        "orderNumber": number,
        "items": items,
        "totalAmount": sum(i["price"] * i["qty"] for i in items) if total is None else total,
        "createdAt": created,
    }


def refund(items, created="2026-10-19T08:00:00Z"):
    return {
        "orderNumber": 1,
        "refundedItems": items,
        "refundAmount": sum(i["price"] * i["qty"] for i in items),
        "createdAt": created,
    }


TEA = {"name": "Tea", "qty": 2, "price": 30, "category": "Hot Beverages"}


# =============================================================================
# AGGREGATION
# =============================================================================


class TestAggregation:

    def test_single_tea_order(self):
        result = rs.aggregate_by_category_and_item([order([TEA])])

        assert result["Hot Beverages"] == [{"name": "Tea", "totalQty": 2, "totalAmount": 60}]
        for category in catalog.CATEGORIES:
            assert category in result
            if category != "Hot Beverages":
                assert result[category] == []

    def test_items_sorted_by_name_and_summed(self):
        result = rs.aggregate_by_category_and_item([
            order([{"name": "Lemon Tea", "qty": 1, "price": 80, "category": "Hot Beverages"}, TEA]),
            order([TEA], number=2),
        ])
        assert [r["name"] for r in result["Hot Beverages"]] == ["Lemon Tea", "Tea"]
        assert result["Hot Beverages"][1] == {"name": "Tea", "totalQty": 4, "totalAmount": 120}

    def test_category_fallbacks(self):
        result = rs.aggregate_by_category_and_item([order([
            {"name": "Cold Coffee", "qty": 1, "price": 80},
            {"name": "Mystery Item", "qty": 1, "price": 10},
        ])])
        assert result["Cold Beverages"][0]["name"] == "Cold Coffee"
        assert result["Others"] == [{"name": "Mystery Item", "totalQty": 1, "totalAmount": 10}]

    def test_search_filter(self):
        result = rs.aggregate_by_category_and_item(
            [order([TEA, {"name": "ABC", "qty": 1, "price": 80, "category": "Juices"}])],
            search="ab",
        )
        assert result["Hot Beverages"] == []
        assert result["Juices"][0]["name"] == "ABC"

    def test_refund_aggregate(self):
        result = rs.refund_aggregate_by_category_and_item([refund([{**TEA, "qty": 1}])])
        assert result["Hot Beverages"] == [{"name": "Tea", "totalQty": 1, "totalRefund": 30}]


class TestCategoryPerformance:

    def test_orders_counted_once_per_category(self):
        orders = [
            order([TEA, {"name": "Lemon Tea", "qty": 1, "price": 80, "category": "Hot Beverages"}]),
            order([TEA], number=2),
        ]
        refunds = [refund([{**TEA, "qty": 1}])]

        rows = {r["category"]: r for r in rs.category_performance(orders, refunds)}

        assert rows["Hot Beverages"] == {
            "category": "Hot Beverages",
            "totalOrders": 2,
            "totalQty": 5,
            "totalSales": 200,
            "totalRefunds": 30,
            "net": 170,
        }

    def test_sales_share_sorted(self):
        share = rs.category_sales_share([order([
            TEA,
            {"name": "ABC", "qty": 2, "price": 80, "category": "Juices"},
        ])])
        assert share == [{"name": "Juices", "value": 160}, {"name": "Hot Beverages", "value": 60}]


class TestTimeline:

    def test_union_of_days_zero_filled(self):
        orders = [
            order([TEA], created="2026-10-18T06:00:00Z"),
            order([TEA], created="2026-10-19T06:00:00Z", number=2),
        ]
        refunds = [refund([{**TEA, "qty": 1}], created="2026-10-20T06:00:00Z")]

        timeline = rs.revenue_timeline(orders, refunds, tz_name="UTC")

        assert timeline == [
            {"date": "2026-10-18", "label": "18 Oct", "sales": 60, "refunds": 0},
            {"date": "2026-10-19", "label": "19 Oct", "sales": 60, "refunds": 0},
            {"date": "2026-10-20", "label": "20 Oct", "sales": 0, "refunds": 30},
        ]

    def test_days_bucketed_in_local_time(self):
        # 20:00 UTC is 01:30 next day in Kolkata
        timeline = rs.revenue_timeline([order([TEA], created="2026-10-18T20:00:00Z")], [], tz_name="Asia/Kolkata")
        assert timeline[0]["date"] == "2026-10-19"

    def test_employee_orders_add_no_sales(self):
        timeline = rs.revenue_timeline([order([TEA], total=0)], [], tz_name="UTC")
        assert timeline[0]["sales"] == 0


class TestKpis:

    def test_summary(self):
        kpis = rs.summary_kpis([order([TEA]), order([TEA], number=2)], [refund([{**TEA, "qty": 1}])])
        assert kpis == {"totalOrders": 2, "totalSales": 120, "totalRefunds": 30, "netRevenue": 90}


# =============================================================================
# DATE FILTERING
# =============================================================================


class TestDateRange:

    NOW = datetime(2026, 10, 19, 12, 0, 0)

    def test_all_is_unbounded(self):
        assert rs.resolve_range("all", tz_name="UTC", now=self.NOW) == (None, None)

    def test_today_starts_at_local_midnight(self):
        start, end = rs.resolve_range("today", tz_name="UTC", now=self.NOW)
        assert start == datetime(2026, 10, 19)
        assert end is None

    def test_week_and_month_windows(self):
        assert rs.resolve_range("week", tz_name="UTC", now=self.NOW)[0] == datetime(2026, 10, 12)
        assert rs.resolve_range("month", tz_name="UTC", now=self.NOW)[0] == datetime(2026, 9, 19)

    def test_single_day_is_inclusive(self):
        start, end = rs.resolve_range(day="2026-10-18", tz_name="UTC")
        records = [
            {"createdAt": "2026-10-17T23:59:59Z"},
            {"createdAt": "2026-10-18T00:00:00Z"},
            {"createdAt": "2026-10-18T23:59:59Z"},
            {"createdAt": "2026-10-19T00:00:00Z"},
        ]
        kept = rs.filter_by_date_range(records, start, end)
        assert [r["createdAt"] for r in kept] == ["2026-10-18T00:00:00Z", "2026-10-18T23:59:59Z"]

    def test_day_in_local_timezone(self):
        start, end = rs.resolve_range(day=date(2026, 10, 19), tz_name="Asia/Kolkata")
        assert start == datetime(2026, 10, 18, 18, 30)
        assert end.date() == date(2026, 10, 19)

    def test_bad_inputs(self):
        with pytest.raises(ValidationError):
            rs.resolve_range("year", tz_name="UTC")
        with pytest.raises(ValidationError):
            rs.resolve_range(day="19/10/2026", tz_name="UTC")

    def test_records_without_created_at_dropped_when_bounded(self):
        kept = rs.filter_by_date_range([{"createdAt": None}], datetime(2026, 1, 1), None)
        assert kept == []


# =============================================================================
# CSV EXPORT
# =============================================================================


class TestCsvExport:

    def test_category_section_has_items_then_total(self):
        aggregated = {
            "Bites": [
                {"name": "Fries", "totalQty": 1, "totalAmount": 50},
                {"name": "Nuggets", "totalQty": 1, "totalAmount": 30},
            ],
            "Juices": [],
        }

        rows = list(csv.reader(io.StringIO(rs.export_csv(aggregated))))

        assert rows[0] == ["Category", "Item", "Quantity", "Amount"]
        assert rows[1:] == [
            ["Bites", "Fries", "1", "50"],
            ["Bites", "Nuggets", "1", "30"],
            ["Bites", "Total", "2", "80"],
        ]

    def test_fields_with_commas_are_quoted(self):
        text = rs.export_csv({"Bites": [{"name": "Chips, Salted", "totalQty": 1, "totalAmount": 10}]})
        assert '"Chips, Salted"' in text

    def test_refund_header(self):
        text = rs.export_csv(
            {"Hot Beverages": [{"name": "Tea", "totalQty": 1, "totalRefund": 30}]},
            header=rs.REFUND_CSV_HEADER,
            amount_key="totalRefund",
        )
        assert text.splitlines()[0] == "Category,Item,Quantity,Refund Amount"
        assert text.splitlines()[-1] == "Hot Beverages,Total,1,30"

    def test_filename(self):
        assert rs.export_filename("orders", brand="SnackBar", on=date(2026, 10, 19)) == "SnackBar-Orders-19-10-2026.csv"
        assert rs.export_filename("refunds", brand="SnackBar", on=date(2026, 1, 2)) == "SnackBar-Refunds-02-01-2026.csv"
