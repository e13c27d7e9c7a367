# Overview: Flask CLI command groups for bootstrap, reconciliation, and exports.

# backend/snackbar/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Use: flask --app snackbar <group> <command> [options]
#
# System bootstrap/repair:
# - flask --app snackbar system init
#   Create all tables (idempotent). Use `flask db upgrade` when running migrations.
# - flask --app snackbar system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Staff accounts:
# - flask --app snackbar users create --username admin --password "Counter123"
#   Create a staff user (prompts if options are omitted).
# - flask --app snackbar users list
#
# Orders:
# - flask --app snackbar orders purge --yes
#   Delete every order (refunds are kept).
#
# Ledger reconciliation:
# - flask --app snackbar ledger replay-order 42
#   Re-send a confirmed order's rows to the spreadsheet.
# - flask --app snackbar ledger replay-refund 7
#   Re-send a refund's rows to the spreadsheet.
#
# Reports:
# - flask --app snackbar reports export --kind orders --range week --output ./exports
#   Write <Brand>-Orders-DD-MM-YYYY.csv (or an explicit file path).

import os

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .models.orders import ORDER_STATUS_PENDING
from .services import auth_service
from .services import ledger_export_service
from .services import order_service
from .services import refund_service
from .services import report_export_service
from .validation import NotFoundError, ValidationError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create all tables if they do not exist."""
    click.echo("START Initializing SnackBar database...")
    db.create_all()
    click.echo("PASS Tables ready")

    if not db.session.query(User).count():
        click.echo("WARN No staff users yet. Create one with 'flask users create'.")

    ledger = current_app.extensions.get("ledger")
    if ledger is None or not getattr(ledger, "enabled", False):
        click.echo("INFO Ledger export disabled (LEDGER_SPREADSHEET_ID not set)")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete.")


@click.group('users')
def users_group():
    """Staff account commands."""


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@with_appcontext
def create_user_cli(username, password):
    """
    Create a staff user.

    Password must be 8+ characters with at least one letter and one digit.
    """
    try:
        user = auth_service.create_user(username, password)
    except auth_service.PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        click.echo("Requirements: 8+ chars, at least one letter and one digit")
        raise SystemExit(1)
    except ValidationError as e:
        click.echo(f"FAIL Failed to create user: {str(e)}")
        raise SystemExit(1)

    click.echo(f"PASS Created user: {user.username} (ID: {user.id})")
    click.echo("SECURITY Password securely hashed with bcrypt")


@users_group.command('list')
@with_appcontext
def list_users():
    """List staff users with active status."""
    users = db.session.query(User).order_by(User.id).all()
    if not users:
        click.echo("No users found.")
        return
    for user in users:
        status = "active" if user.is_active else "inactive"
        click.echo(f"{user.id:>4}  {user.username:<24} {status}")


@click.group('orders')
def orders_group():
    """Order maintenance commands."""


@orders_group.command('purge')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def purge_orders(yes):
    """DANGER: delete every order. Refund records are kept."""
    if not yes:
        click.confirm("WARN This will DELETE ALL ORDERS. Are you sure?", abort=True)

    deleted = order_service.delete_all_orders()
    click.echo(f"PASS Deleted {deleted} order(s)")


@click.group('ledger')
def ledger_group():
    """Spreadsheet ledger reconciliation."""


@ledger_group.command('replay-order')
@click.argument('order_number', type=int)
@with_appcontext
def replay_order(order_number):
    """Re-export a confirmed or delivered order to the ledger."""
    try:
        order = order_service.get_order_by_number(order_number)
    except NotFoundError as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)

    if order.status == ORDER_STATUS_PENDING:
        click.echo(f"FAIL Order #{order_number} is PENDING; confirm it first")
        raise SystemExit(1)

    if not ledger_export_service.export_confirmed_order(order):
        click.echo(f"FAIL Ledger export failed for order #{order_number} (see log)")
        raise SystemExit(1)
    click.echo(f"PASS Order #{order_number} exported")


@ledger_group.command('replay-refund')
@click.argument('refund_id', type=int)
@with_appcontext
def replay_refund(refund_id):
    """Re-export a refund to the ledger."""
    try:
        refund = refund_service.get_refund(refund_id)
    except NotFoundError as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)

    if not ledger_export_service.export_refund(refund):
        click.echo(f"FAIL Ledger export failed for refund {refund_id} (see log)")
        raise SystemExit(1)
    click.echo(f"PASS Refund {refund_id} exported")


@click.group('reports')
def reports_group():
    """Report exports."""


@reports_group.command('export')
@click.option('--kind', type=click.Choice(['orders', 'refunds']), default='orders', show_default=True)
@click.option('--range', 'preset', type=click.Choice(['today', 'week', 'month', 'all']), default='all', show_default=True)
@click.option('--date', 'day', help='Single local day, YYYY-MM-DD (overrides --range)')
@click.option('--search', help='Case-insensitive item name filter')
@click.option('--output', type=click.Path(), default='.', show_default=True,
              help='Directory (file named automatically) or explicit .csv path')
@with_appcontext
def export_report(kind, preset, day, search, output):
    """Write an orders or refunds CSV export."""
    try:
        filename, text = report_export_service.render_csv(
            kind,
            preset,
            day,
            tz_name=current_app.config.get("REPORT_TIMEZONE", "UTC"),
            brand=current_app.config.get("BRAND_NAME", "SnackBar"),
            search=search,
        )
    except ValidationError as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)

    path = os.path.join(output, filename) if os.path.isdir(output) else output
    with open(path, "w", encoding="utf-8", newline="") as fh:
        fh.write(text)
    click.echo(f"PASS Wrote {path}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(orders_group)
    app.cli.add_command(ledger_group)
    app.cli.add_command(reports_group)
