from flask import Blueprint, jsonify, request

from ..services import reporting_service


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _window():
    return reporting_service.resolve_period(
        request.args.get("period", "all"),
        start=request.args.get("start"),
        end=request.args.get("end"),
    )


@reports_bp.get("/summary")
def summary_report():
    try:
        start, end = _window()
        summary = reporting_service.sales_summary(start, end)
        return jsonify(summary.to_dict()), 200
    except reporting_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400


@reports_bp.get("/product-sales")
def product_sales_report():
    try:
        start, end = _window()
        stats = reporting_service.product_sales(start, end)
    except reporting_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400

    return jsonify({
        "items": [s.to_dict() for s in stats],
        "total_revenue": sum(s.revenue for s in stats),
    }), 200


@reports_bp.get("/orders")
def order_history_report():
    try:
        start, end = _window()
        history = reporting_service.order_history(start, end, status=request.args.get("status"))
    except reporting_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400

    return jsonify({"items": [h.to_dict() for h in history], "count": len(history)}), 200
