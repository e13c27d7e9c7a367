# backend/snackbar/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/snackbar.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///snackbar.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Used for export filenames, e.g. SnackBar-Orders-19-10-2026.csv
    BRAND_NAME = os.environ.get("BRAND_NAME", "SnackBar")

    # Day boundaries for "today" / calendar-day report filters
    REPORT_TIMEZONE = os.environ.get("REPORT_TIMEZONE", "Asia/Kolkata")

    # Bounded retries when two checkouts race for the same order number
    ORDER_NUMBER_ATTEMPTS = int(os.environ.get("ORDER_NUMBER_ATTEMPTS", "5"))

    # Spreadsheet ledger. Export is disabled while no spreadsheet id is set.
    LEDGER_SPREADSHEET_ID = os.environ.get("LEDGER_SPREADSHEET_ID")
    # Service account with edit access to the spreadsheet (tokens refresh automatically)
    GOOGLE_SERVICE_ACCOUNT_EMAIL = os.environ.get("GOOGLE_SERVICE_ACCOUNT_EMAIL")
    GOOGLE_SERVICE_ACCOUNT_PRIVATE_KEY = os.environ.get("GOOGLE_SERVICE_ACCOUNT_PRIVATE_KEY")
    # Static bearer token, dev only (expires after about an hour)
    LEDGER_ACCESS_TOKEN = os.environ.get("LEDGER_ACCESS_TOKEN")
    LEDGER_API_BASE = os.environ.get("LEDGER_API_BASE", "https://sheets.googleapis.com/v4")
    LEDGER_ORDERS_SHEET = os.environ.get("LEDGER_ORDERS_SHEET", "Sheet1")
    LEDGER_REFUNDS_SHEET = os.environ.get("LEDGER_REFUNDS_SHEET", "Sheet2")
    LEDGER_ITEMS_PER_ROW = int(os.environ.get("LEDGER_ITEMS_PER_ROW", "3"))
    LEDGER_TIMEOUT_SECONDS = float(os.environ.get("LEDGER_TIMEOUT_SECONDS", "10"))

    # Staff sessions
    SESSION_ABSOLUTE_HOURS = int(os.environ.get("SESSION_ABSOLUTE_HOURS", "12"))
    SESSION_IDLE_HOURS = int(os.environ.get("SESSION_IDLE_HOURS", "2"))

    # Browser origins allowed to call the API (comma separated)
    CORS_ORIGINS = os.environ.get(
        "CORS_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000",
    )
