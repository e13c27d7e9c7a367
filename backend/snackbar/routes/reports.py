from flask import Blueprint, Response, current_app, jsonify, request

from snackbar.decorators import require_auth
from snackbar.services import report_export_service
from snackbar.validation import ValidationError


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _window_args() -> dict:
    return {
        "preset": request.args.get("range", "all"),
        "day": request.args.get("date") or None,
        "tz_name": current_app.config.get("REPORT_TIMEZONE", "UTC"),
        "search": request.args.get("search") or None,
    }


@reports_bp.get("/summary")
@require_auth
def summary_report():
    try:
        return jsonify(report_export_service.build_summary(**_window_args())), 200
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400


def _csv_response(kind: str):
    try:
        filename, text = report_export_service.render_csv(
            kind,
            brand=current_app.config.get("BRAND_NAME", "SnackBar"),
            **_window_args(),
        )
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400
    return Response(
        text,
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@reports_bp.get("/orders.csv")
@require_auth
def orders_csv():
    return _csv_response("orders")


@reports_bp.get("/refunds.csv")
@require_auth
def refunds_csv():
    return _csv_response("refunds")
