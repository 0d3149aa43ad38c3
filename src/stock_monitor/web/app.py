"""Flask application exposing the monitor to a browser front end."""
from __future__ import annotations

import logging
from datetime import UTC, datetime

from flask import Flask, Response, jsonify, request

from ..services.monitoring_service import MonitoringService

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def create_app(monitoring_service: MonitoringService) -> Flask:
    app = Flask(__name__)
    app.config["monitoring_service"] = monitoring_service

    @app.after_request
    def add_cors_headers(response: Response) -> Response:
        if request.path.startswith("/api/"):
            response.headers.update(CORS_HEADERS)
        return response

    @app.route("/api/check-status", methods=["POST", "OPTIONS"], provide_automatic_options=False)
    def check_status():
        if request.method == "OPTIONS":
            return Response(status=204)

        logger.info("Manual status check requested via API")
        try:
            monitoring_service.run_pass()
            statuses = monitoring_service.status_snapshot()
        except Exception as exc:
            logger.exception("Error in status check API")
            return jsonify({"success": False, "error": str(exc)}), 500
        return jsonify(
            {
                "success": True,
                "status": statuses,
                "timestamp": datetime.now(UTC).isoformat(),
            }
        )

    @app.route("/api/status", methods=["GET"])
    def stored_status():
        return jsonify(
            {
                "success": True,
                "status": monitoring_service.status_snapshot(),
                "timestamp": datetime.now(UTC).isoformat(),
            }
        )

    return app
