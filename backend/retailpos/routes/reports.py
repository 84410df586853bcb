from flask import Blueprint, current_app, jsonify, request

from ..services import reporting_service
from ..services.sales_service import list_sales


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _sales_dicts(location_id):
    return [sale.to_dict() for sale in list_sales(location_id=location_id, order="asc")]


@reports_bp.get("/dashboard")
def dashboard():
    try:
        summary = reporting_service.dashboard_summary(
            location_id=request.args.get("location_id", type=int),
            window_days=request.args.get("days", type=int),
            top_n=request.args.get("top", 5, type=int),
        )
        return jsonify(summary), 200
    except reporting_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400


@reports_bp.get("/revenue-by-day")
def revenue_by_day():
    location_id = request.args.get("location_id", type=int)
    days = request.args.get("days", current_app.config.get("DASHBOARD_WINDOW_DAYS", 7), type=int)

    try:
        rows = reporting_service.revenue_by_day(_sales_dicts(location_id), days)
        return jsonify({"location_id": location_id, "days": days, "items": rows}), 200
    except reporting_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400


@reports_bp.get("/top-products")
def top_products():
    location_id = request.args.get("location_id", type=int)
    limit = request.args.get("limit", 5, type=int)

    try:
        rows = reporting_service.top_products(_sales_dicts(location_id), limit)
        return jsonify({"location_id": location_id, "items": rows}), 200
    except reporting_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400
