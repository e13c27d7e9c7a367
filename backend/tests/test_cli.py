"""
CLI command tests (flask test_cli_runner).
"""

import os

from snackbar.models import Order, User
from snackbar.services import order_service, refund_service


def tea(qty=1):
    return [{"name": "Tea", "category": "Hot Beverages", "qty": qty, "price": 30}]


class TestUsersCommands:

    def test_create_user(self, app, db_session):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["users", "create", "--username", "till", "--password", "Counter123"])

        assert result.exit_code == 0, result.output
        assert "PASS Created user: till" in result.output
        assert db_session.query(User).filter_by(username="till").count() == 1

    def test_weak_password_fails(self, app, db_session):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["users", "create", "--username", "till", "--password", "weak"])

        assert result.exit_code == 1
        assert "FAIL Password validation failed" in result.output

    def test_list_users(self, app, staff_user):
        result = app.test_cli_runner().invoke(args=["users", "list"])
        assert "counter" in result.output


class TestOrdersCommands:

    def test_purge(self, app, db_session):
        order_service.create_order(items=tea())
        result = app.test_cli_runner().invoke(args=["orders", "purge", "--yes"])

        assert result.exit_code == 0
        assert "Deleted 1 order(s)" in result.output
        assert db_session.query(Order).count() == 0

    def test_purge_aborts_without_confirmation(self, app, db_session):
        order_service.create_order(items=tea())
        result = app.test_cli_runner().invoke(args=["orders", "purge"], input="n\n")

        assert result.exit_code != 0
        assert db_session.query(Order).count() == 1


class TestLedgerCommands:

    def test_replay_confirmed_order(self, app, ledger):
        order = order_service.confirm_order(order_service.create_order(items=tea()).id)
        ledger.orders.clear()

        result = app.test_cli_runner().invoke(args=["ledger", "replay-order", str(order.order_number)])

        assert result.exit_code == 0, result.output
        assert len(ledger.orders) == 1

    def test_replay_pending_order_refused(self, app, ledger):
        order = order_service.create_order(items=tea())
        result = app.test_cli_runner().invoke(args=["ledger", "replay-order", str(order.order_number)])

        assert result.exit_code == 1
        assert ledger.orders == []

    def test_replay_refund_reports_failure(self, app, ledger):
        order = order_service.confirm_order(order_service.create_order(items=tea(2)).id)
        refund = refund_service.create_refund(order.order_number, [{"name": "Tea", "qty": 1}])
        ledger.fail = True

        result = app.test_cli_runner().invoke(args=["ledger", "replay-refund", str(refund.id)])

        assert result.exit_code == 1
        assert "FAIL Ledger export failed" in result.output

    def test_replay_unknown_refund(self, app, ledger):
        result = app.test_cli_runner().invoke(args=["ledger", "replay-refund", "999"])
        assert result.exit_code == 1


class TestReportsCommands:

    def test_export_to_directory(self, app, ledger, tmp_path):
        order_service.create_order(items=tea(2))

        result = app.test_cli_runner().invoke(
            args=["reports", "export", "--kind", "orders", "--output", str(tmp_path)]
        )

        assert result.exit_code == 0, result.output
        files = os.listdir(tmp_path)
        assert len(files) == 1
        assert files[0].startswith("SnackBar-Orders-")
        content = (tmp_path / files[0]).read_text(encoding="utf-8")
        assert "Hot Beverages,Total,2,60" in content

    def test_export_to_explicit_file(self, app, ledger, tmp_path):
        target = tmp_path / "refunds.csv"
        result = app.test_cli_runner().invoke(
            args=["reports", "export", "--kind", "refunds", "--output", str(target)]
        )

        assert result.exit_code == 0, result.output
        assert target.read_text(encoding="utf-8") == "Category,Item,Quantity,Refund Amount\n"
