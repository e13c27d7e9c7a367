# Overview: Report aggregation over serialized orders and refunds.

"""
Reporting

Every function here is pure: it takes already-fetched wire dicts
(Order.to_dict() / Refund.to_dict()) and returns plain data. Nothing touches
the database, so routes and the CLI fetch once and aggregate many ways.

Item category resolution: explicit line category, else the menu lookup by
name, else "Others".
"""

from __future__ import annotations

import csv
import io
from datetime import date, datetime, timedelta
from typing import Iterable

from .. import catalog
from ..validation import ValidationError
from snackbar.time_utils import coerce_utc, local_day_bounds, to_local, utcnow


RANGE_PRESETS = ("today", "week", "month", "all")

# Rolling windows, counted back from local midnight today
PRESET_DAYS = {"today": 0, "week": 7, "month": 30}

ORDER_CSV_HEADER = ["Category", "Item", "Quantity", "Amount"]
REFUND_CSV_HEADER = ["Category", "Item", "Quantity", "Refund Amount"]


def resolve_category(item: dict) -> str:
    return item.get("category") or catalog.category_for(item.get("name", "")) or catalog.OTHERS


def _matches(item: dict, search: str | None) -> bool:
    if not search:
        return True
    return search.strip().lower() in str(item.get("name", "")).lower()


# =============================================================================
# DATE FILTERING
# =============================================================================

def resolve_range(
    preset: str | None = "all",
    day: str | date | None = None,
    *,
    tz_name: str = "UTC",
    now: datetime | None = None,
) -> tuple[datetime | None, datetime | None]:
    """
    UTC-naive (start, end) bounds for a report window. None means unbounded.

    - day (YYYY-MM-DD): that local calendar day, inclusive; wins over preset
    - today: local midnight onwards
    - week / month: local midnight 7 / 30 days ago onwards
    - all: no bounds
    """
    if day:
        if isinstance(day, str):
            try:
                day = date.fromisoformat(day.strip())
            except ValueError:
                raise ValidationError(f"date must be YYYY-MM-DD; got {day!r}")
        return local_day_bounds(day, tz_name)

    preset = (preset or "all").strip().lower()
    if preset not in RANGE_PRESETS:
        raise ValidationError(f"range must be one of {', '.join(RANGE_PRESETS)}; got {preset!r}")
    if preset == "all":
        return None, None

    now = now or utcnow()
    today_local = to_local(now, tz_name).date()
    start, _ = local_day_bounds(today_local - timedelta(days=PRESET_DAYS[preset]), tz_name)
    return start, None


def filter_by_date_range(
    records: Iterable[dict],
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[dict]:
    """Keep records whose createdAt falls in [start, end]; records without one are dropped when bounded."""
    if start is None and end is None:
        return list(records)
    start = coerce_utc(start)
    end = coerce_utc(end)
    kept = []
    for record in records:
        created = coerce_utc(record.get("createdAt"))
        if created is None:
            continue
        if start is not None and created < start:
            continue
        if end is not None and created > end:
            continue
        kept.append(record)
    return kept


# =============================================================================
# AGGREGATION
# =============================================================================

def _aggregate(lines: Iterable[dict], amount_key: str, search: str | None) -> dict[str, list[dict]]:
    buckets: dict[str, dict[str, dict]] = {category: {} for category in catalog.CATEGORIES}
    for item in lines:
        if not _matches(item, search):
            continue
        category = resolve_category(item)
        by_name = buckets.setdefault(category, {})
        row = by_name.setdefault(item["name"], {"name": item["name"], "totalQty": 0, amount_key: 0})
        row["totalQty"] += item["qty"]
        row[amount_key] += item["price"] * item["qty"]

    return {
        category: sorted(by_name.values(), key=lambda r: r["name"])
        for category, by_name in buckets.items()
    }


def aggregate_by_category_and_item(orders: Iterable[dict], search: str | None = None) -> dict[str, list[dict]]:
    """
    {category: [{name, totalQty, totalAmount}]} over every order line.

    Every menu category is present, even when empty. Items sort by name.
    """
    return _aggregate(
        (item for order in orders for item in order.get("items") or []),
        "totalAmount",
        search,
    )


def refund_aggregate_by_category_and_item(refunds: Iterable[dict], search: str | None = None) -> dict[str, list[dict]]:
    """Same shape as the order aggregation, with totalRefund per item."""
    return _aggregate(
        (item for refund in refunds for item in refund.get("refundedItems") or []),
        "totalRefund",
        search,
    )


def category_performance(orders: Iterable[dict], refunds: Iterable[dict]) -> list[dict]:
    """
    Per category: totalOrders (distinct orders touching it), totalQty,
    totalSales, totalRefunds and net.
    """
    data: dict[str, dict] = {}

    def bucket(category: str) -> dict:
        return data.setdefault(
            category,
            {"category": category, "totalOrders": 0, "totalQty": 0, "totalSales": 0, "totalRefunds": 0},
        )

    for order in orders:
        seen = set()
        for item in order.get("items") or []:
            category = resolve_category(item)
            row = bucket(category)
            row["totalQty"] += item["qty"]
            row["totalSales"] += item["qty"] * item["price"]
            if category not in seen:
                row["totalOrders"] += 1
                seen.add(category)

    for refund in refunds:
        for item in refund.get("refundedItems") or []:
            bucket(resolve_category(item))["totalRefunds"] += item["qty"] * item["price"]

    for row in data.values():
        row["net"] = row["totalSales"] - row["totalRefunds"]
    return list(data.values())


def category_sales_share(orders: Iterable[dict]) -> list[dict]:
    """[{name, value}] sales per category, largest first (pie chart feed)."""
    totals: dict[str, int] = {}
    for order in orders:
        for item in order.get("items") or []:
            category = resolve_category(item)
            totals[category] = totals.get(category, 0) + item["price"] * item["qty"]
    return sorted(
        ({"name": name, "value": value} for name, value in totals.items()),
        key=lambda r: r["value"],
        reverse=True,
    )


def revenue_timeline(orders: Iterable[dict], refunds: Iterable[dict], *, tz_name: str = "UTC") -> list[dict]:
    """
    Daily [{date, label, sales, refunds}] over the union of days seen in
    either collection, oldest first. Sales use order totals, so employee
    orders contribute 0.
    """
    sales: dict[date, int] = {}
    refunded: dict[date, int] = {}

    for order in orders:
        created = coerce_utc(order.get("createdAt"))
        if created is None:
            continue
        day = to_local(created, tz_name).date()
        sales[day] = sales.get(day, 0) + (order.get("totalAmount") or 0)

    for refund in refunds:
        created = coerce_utc(refund.get("createdAt"))
        if created is None:
            continue
        day = to_local(created, tz_name).date()
        refunded[day] = refunded.get(day, 0) + (refund.get("refundAmount") or 0)

    return [
        {
            "date": day.isoformat(),
            "label": day.strftime("%d %b"),
            "sales": sales.get(day, 0),
            "refunds": refunded.get(day, 0),
        }
        for day in sorted(set(sales) | set(refunded))
    ]


def summary_kpis(orders: list[dict], refunds: list[dict]) -> dict:
    total_sales = sum(o.get("totalAmount") or 0 for o in orders)
    total_refunds = sum(r.get("refundAmount") or 0 for r in refunds)
    return {
        "totalOrders": len(orders),
        "totalSales": total_sales,
        "totalRefunds": total_refunds,
        "netRevenue": total_sales - total_refunds,
    }


# =============================================================================
# CSV EXPORT
# =============================================================================

def export_csv(
    aggregated: dict[str, list[dict]],
    *,
    header: list[str] | None = None,
    amount_key: str = "totalAmount",
) -> str:
    """
    Serialize an aggregation to CSV.

    One header row, then per non-empty category its item rows followed by
    [category, "Total", qty, amount]. Amounts are plain integers.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(header or ORDER_CSV_HEADER)

    for category, rows in aggregated.items():
        if not rows:
            continue
        total_qty = 0
        total_amount = 0
        for row in rows:
            writer.writerow([category, row["name"], row["totalQty"], row[amount_key]])
            total_qty += row["totalQty"]
            total_amount += row[amount_key]
        writer.writerow([category, "Total", total_qty, total_amount])

    return buffer.getvalue()


def export_filename(kind: str, *, brand: str = "SnackBar", on: date | None = None) -> str:
    """<Brand>-<Orders|Refunds>-<DD-MM-YYYY>.csv"""
    on = on or date.today()
    return f"{brand}-{kind.capitalize()}-{on.strftime('%d-%m-%Y')}.csv"
