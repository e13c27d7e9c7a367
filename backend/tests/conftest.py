"""
Pytest fixtures for SnackBar backend tests.

Provides an in-memory database, a recording ledger, the test client and a
staff session.
"""

import pytest

from snackbar import create_app
from snackbar.extensions import db
from snackbar.services import auth_service, session_service
from snackbar.validation import ExternalCollaboratorError


class RecordingLedger:
    """Stands in for the spreadsheet; records exports, optionally fails them."""

    enabled = True

    def __init__(self):
        self.orders = []
        self.refunds = []
        self.fail = False

    def export_order(self, order: dict) -> int:
        if self.fail:
            raise ExternalCollaboratorError("spreadsheet unavailable")
        self.orders.append(order)
        return len(order.get("categories") or [])

    def export_refund(self, refund: dict) -> int:
        if self.fail:
            raise ExternalCollaboratorError("spreadsheet unavailable")
        self.refunds.append(refund)
        return len(refund.get("refundedItems") or [])


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'REPORT_TIMEZONE': 'Asia/Kolkata',
        'BRAND_NAME': 'SnackBar',
        'LEDGER_SPREADSHEET_ID': None,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def ledger(app, db_session):
    """Fresh recording ledger installed on the app for one test."""
    previous = app.extensions.get("ledger")
    recorder = RecordingLedger()
    app.extensions["ledger"] = recorder
    yield recorder
    app.extensions["ledger"] = previous


@pytest.fixture(scope='function')
def staff_user(db_session):
    """Active staff account (low bcrypt cost to keep tests fast)."""
    return auth_service.create_user("counter", "Counter123", rounds=4)


@pytest.fixture(scope='function')
def staff_headers(staff_user):
    _, token = session_service.create_session(staff_user.id)
    return auth_headers(token)


def tea(qty: int = 1, price: int = 30, **extra) -> dict:
    """Order line helper used across tests."""
    line = {"name": "Tea", "category": "Hot Beverages", "qty": qty, "price": price}
    line.update(extra)
    return line


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
