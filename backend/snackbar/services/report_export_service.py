# Overview: Loads report windows from the database and renders CSV exports.

from __future__ import annotations

from ..validation import ValidationError
from snackbar.time_utils import to_local, utcnow
from . import order_service, refund_service, reporting_service


EXPORT_KINDS = ("orders", "refunds")


def load_window(preset: str | None = "all", day: str | None = None, *, tz_name: str = "UTC") -> tuple[list[dict], list[dict]]:
    """Serialized orders and refunds created inside the requested window."""
    start, end = reporting_service.resolve_range(preset, day, tz_name=tz_name)
    orders = [o.to_dict() for o in order_service.list_orders()]
    refunds = [r.to_dict() for r in refund_service.list_refunds()]
    return (
        reporting_service.filter_by_date_range(orders, start, end),
        reporting_service.filter_by_date_range(refunds, start, end),
    )


def build_summary(preset: str | None = "all", day: str | None = None, *, tz_name: str = "UTC", search: str | None = None) -> dict:
    orders, refunds = load_window(preset, day, tz_name=tz_name)
    return {
        "range": {"preset": None if day else (preset or "all"), "date": day},
        "kpis": reporting_service.summary_kpis(orders, refunds),
        "categoryShare": reporting_service.category_sales_share(orders),
        "categoryPerformance": reporting_service.category_performance(orders, refunds),
        "revenueTimeline": reporting_service.revenue_timeline(orders, refunds, tz_name=tz_name),
        "orders": reporting_service.aggregate_by_category_and_item(orders, search),
        "refunds": reporting_service.refund_aggregate_by_category_and_item(refunds, search),
    }


def render_csv(
    kind: str,
    preset: str | None = "all",
    day: str | None = None,
    *,
    tz_name: str = "UTC",
    brand: str = "SnackBar",
    search: str | None = None,
) -> tuple[str, str]:
    """Returns (filename, csv_text) for an orders or refunds export."""
    kind = (kind or "").strip().lower()
    if kind not in EXPORT_KINDS:
        raise ValidationError(f"kind must be one of {', '.join(EXPORT_KINDS)}; got {kind!r}")

    orders, refunds = load_window(preset, day, tz_name=tz_name)
    if kind == "orders":
        text = reporting_service.export_csv(
            reporting_service.aggregate_by_category_and_item(orders, search),
            header=reporting_service.ORDER_CSV_HEADER,
            amount_key="totalAmount",
        )
    else:
        text = reporting_service.export_csv(
            reporting_service.refund_aggregate_by_category_and_item(refunds, search),
            header=reporting_service.REFUND_CSV_HEADER,
            amount_key="totalRefund",
        )

    today_local = to_local(utcnow(), tz_name).date()
    return reporting_service.export_filename(kind, brand=brand, on=today_local), text
