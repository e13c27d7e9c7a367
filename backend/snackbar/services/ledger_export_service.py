# Overview: Mirrors confirmed orders and refunds into the spreadsheet ledger.

"""
Ledger Export Service

The spreadsheet is a best-effort bookkeeping mirror, never the source of truth.

RULES:
- Export runs only after the database commit.
- A failed export is logged and swallowed; the committed order/refund stands.
- Missed rows are reconciled out of band (see `flask ledger replay-*`).

ROW LAYOUT (orders tab), one row per category on the order:
    Order Number | Date | Category | (Item k, Qty k, Add-ons k) x N | Category Total | Status | Employee

A category with more than N lines continues on extra rows with the same
order number and category; only its first row carries the category total.

ROW LAYOUT (refunds tab), one row per refunded line:
    Order Number | Refund Date | Item Refunded | Quantity | Refund Amount | Status
"""

from __future__ import annotations

import google.auth.exceptions
import httpx
from flask import current_app
from google.auth.transport import requests as google_requests
from google.oauth2 import service_account

from snackbar.time_utils import coerce_utc, to_local
from ..validation import ExternalCollaboratorError


SHEETS_SCOPE = "https://www.googleapis.com/auth/spreadsheets"
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"

REFUND_STATUS = "REFUNDED"
EMPLOYEE_MARKER = "EMPLOYEE"

REFUND_HEADER = [
    "Order Number",
    "Refund Date",
    "Item Refunded",
    "Quantity",
    "Refund Amount",
    "Status",
]


# =============================================================================
# ROW BUILDERS (pure)
# =============================================================================

def column_letter(index: int) -> str:
    """1 -> A, 26 -> Z, 27 -> AA."""
    letters = ""
    while index > 0:
        index, rem = divmod(index - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


def order_header(items_per_row: int) -> list[str]:
    header = ["Order Number", "Date", "Category"]
    for k in range(1, items_per_row + 1):
        header += [f"Item {k}", f"Qty {k}", f"Add-ons {k}"]
    header += ["Category Total", "Status", "Employee"]
    return header


def _local_text(value, tz_name: str, fmt: str) -> str:
    dt = coerce_utc(value)
    if dt is None:
        return ""
    return to_local(dt, tz_name).strftime(fmt)


def build_order_rows(order: dict, *, items_per_row: int = 3, tz_name: str = "UTC") -> list[list]:
    """Ledger rows for one serialized order (see module docstring for layout)."""
    if items_per_row < 1:
        raise ValueError("items_per_row must be >= 1")

    date_text = _local_text(order.get("createdAt"), tz_name, "%d/%m/%Y")
    employee = bool(order.get("isEmployeeOrder"))
    items = order.get("items") or []

    categories = list(order.get("categories") or [])
    for item in items:
        if item["category"] not in categories:
            categories.append(item["category"])

    rows = []
    for category in categories:
        in_category = [i for i in items if i["category"] == category]
        if not in_category:
            continue
        category_total = 0 if employee else sum(i["price"] * i["qty"] for i in in_category)

        for start in range(0, len(in_category), items_per_row):
            chunk = in_category[start:start + items_per_row]
            slots = []
            for k in range(items_per_row):
                if k < len(chunk):
                    item = chunk[k]
                    slots += [item["name"], item["qty"], "+".join(item.get("addOns") or [])]
                else:
                    slots += ["", "", ""]
            rows.append([
                order["orderNumber"],
                date_text,
                category,
                *slots,
                category_total if start == 0 else "",
                order.get("status", ""),
                EMPLOYEE_MARKER if employee else "",
            ])
    return rows


def build_refund_rows(refund: dict, *, tz_name: str = "UTC") -> list[list]:
    """One ledger row per refunded line of a serialized refund."""
    when = _local_text(refund.get("createdAt"), tz_name, "%d/%m/%Y, %H:%M:%S")
    return [
        [
            refund["orderNumber"],
            when,
            item["name"],
            item["qty"],
            item["price"] * item["qty"],
            REFUND_STATUS,
        ]
        for item in refund.get("refundedItems") or []
    ]


# =============================================================================
# LEDGER BACKENDS
# =============================================================================

class NullLedger:
    """Used when no spreadsheet is configured. Accepts and drops everything."""

    enabled = False

    def export_order(self, order: dict) -> int:
        return 0

    def export_refund(self, refund: dict) -> int:
        return 0


class SheetsLedger:
    """
    Google Sheets v4 values API over httpx.

    Each export checks the tab's header row, writes it when absent, then
    appends the data rows. Any transport, token refresh or HTTP status
    failure is raised as ExternalCollaboratorError.

    AUTH: service-account `credentials` (google-auth) are refreshed whenever
    their token is missing or expired, so exports keep working past the
    one-hour token lifetime. A static `access_token` is only used when no
    credentials are given.
    """

    enabled = True

    def __init__(
        self,
        spreadsheet_id: str,
        *,
        credentials=None,
        access_token: str | None = None,
        api_base: str = "https://sheets.googleapis.com/v4",
        orders_sheet: str = "Sheet1",
        refunds_sheet: str = "Sheet2",
        items_per_row: int = 3,
        tz_name: str = "UTC",
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.spreadsheet_id = spreadsheet_id
        self.credentials = credentials
        self.access_token = access_token
        self.api_base = api_base.rstrip("/")
        self.orders_sheet = orders_sheet
        self.refunds_sheet = refunds_sheet
        self.items_per_row = items_per_row
        self.tz_name = tz_name
        self.timeout = timeout
        self.transport = transport

    def _bearer_token(self) -> str | None:
        if self.credentials is None:
            return self.access_token
        if not self.credentials.valid:
            try:
                self.credentials.refresh(google_requests.Request())
            except google.auth.exceptions.GoogleAuthError as exc:
                raise ExternalCollaboratorError(f"token refresh failed: {exc}") from exc
        return self.credentials.token

    def _client(self) -> httpx.Client:
        headers = {"Accept": "application/json"}
        token = self._bearer_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return httpx.Client(
            base_url=f"{self.api_base}/spreadsheets/{self.spreadsheet_id}",
            headers=headers,
            timeout=self.timeout,
            transport=self.transport,
        )

    def _write(self, sheet: str, header: list[str], rows: list[list]) -> int:
        if not rows:
            return 0
        last_col = column_letter(len(header))
        header_range = f"{sheet}!A1:{last_col}1"
        params = {"valueInputOption": "USER_ENTERED"}
        try:
            with self._client() as client:
                existing = client.get(f"/values/{header_range}")
                existing.raise_for_status()
                if not existing.json().get("values"):
                    client.put(
                        f"/values/{header_range}",
                        params=params,
                        json={"values": [header]},
                    ).raise_for_status()
                client.post(
                    f"/values/{sheet}!A:{last_col}:append",
                    params={**params, "insertDataOption": "INSERT_ROWS"},
                    json={"values": rows},
                ).raise_for_status()
        except httpx.HTTPError as exc:
            raise ExternalCollaboratorError(f"{sheet}: {exc}") from exc
        return len(rows)

    def export_order(self, order: dict) -> int:
        rows = build_order_rows(order, items_per_row=self.items_per_row, tz_name=self.tz_name)
        return self._write(self.orders_sheet, order_header(self.items_per_row), rows)

    def export_refund(self, refund: dict) -> int:
        rows = build_refund_rows(refund, tz_name=self.tz_name)
        return self._write(self.refunds_sheet, REFUND_HEADER, rows)


def load_service_account_credentials(client_email: str | None, private_key: str | None):
    """
    Service-account credentials scoped to Sheets, or None when unconfigured.

    Keys pasted into env files usually carry literal "\\n"; they are unescaped.
    """
    if not client_email or not private_key:
        return None
    info = {
        "type": "service_account",
        "client_email": client_email,
        "private_key": private_key.replace("\\n", "\n"),
        "token_uri": GOOGLE_TOKEN_URI,
    }
    return service_account.Credentials.from_service_account_info(info, scopes=[SHEETS_SCOPE])


def init_ledger(app) -> None:
    """Attach the configured ledger to app.extensions['ledger']."""
    spreadsheet_id = app.config.get("LEDGER_SPREADSHEET_ID")
    if not spreadsheet_id:
        app.extensions["ledger"] = NullLedger()
        app.logger.debug("Ledger export disabled (LEDGER_SPREADSHEET_ID not set)")
        return

    credentials = load_service_account_credentials(
        app.config.get("GOOGLE_SERVICE_ACCOUNT_EMAIL"),
        app.config.get("GOOGLE_SERVICE_ACCOUNT_PRIVATE_KEY"),
    )
    if credentials is None and not app.config.get("LEDGER_ACCESS_TOKEN"):
        app.logger.warning("Ledger spreadsheet set but no Google credentials configured")

    app.extensions["ledger"] = SheetsLedger(
        spreadsheet_id,
        credentials=credentials,
        access_token=app.config.get("LEDGER_ACCESS_TOKEN"),
        api_base=app.config.get("LEDGER_API_BASE", "https://sheets.googleapis.com/v4"),
        orders_sheet=app.config.get("LEDGER_ORDERS_SHEET", "Sheet1"),
        refunds_sheet=app.config.get("LEDGER_REFUNDS_SHEET", "Sheet2"),
        items_per_row=app.config.get("LEDGER_ITEMS_PER_ROW", 3),
        tz_name=app.config.get("REPORT_TIMEZONE", "UTC"),
        timeout=app.config.get("LEDGER_TIMEOUT_SECONDS", 10.0),
    )


def get_ledger():
    return current_app.extensions.get("ledger") or NullLedger()


# =============================================================================
# EXPORT HOOKS (called after commit)
# =============================================================================

def export_confirmed_order(order) -> bool:
    """
    Mirror a confirmed order. Returns False when the export failed.

    Never raises ExternalCollaboratorError: the confirmation is already committed.
    """
    try:
        written = get_ledger().export_order(order.to_dict())
    except ExternalCollaboratorError as exc:
        current_app.logger.warning(
            "Ledger export failed (confirm order #%s): %s", order.order_number, exc
        )
        return False
    current_app.logger.debug("Ledger: %s row(s) for order #%s", written, order.order_number)
    return True


def export_refund(refund) -> bool:
    """Mirror a recorded refund. Returns False when the export failed."""
    try:
        written = get_ledger().export_refund(refund.to_dict())
    except ExternalCollaboratorError as exc:
        current_app.logger.warning(
            "Ledger export failed (refund %s on order #%s): %s",
            refund.id, refund.order_number, exc,
        )
        return False
    current_app.logger.debug("Ledger: %s row(s) for refund %s", written, refund.id)
    return True
