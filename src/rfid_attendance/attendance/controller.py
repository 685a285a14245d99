from __future__ import annotations

import logging

from flask import Flask, jsonify, request

from ..common.validators import require_date_key, require_non_empty
from ..container import Container
from ..core.exceptions import ValidationError
from .stats import summarize

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/health", methods=["GET"], endpoint="health")
    def health():
        return jsonify({"status": "ok"})

    @app.route("/api/scans", methods=["POST"], endpoint="api_scans")
    def api_scans():
        """Process one scan: {"studentId": "...", "timestamp": <epoch ms>}."""
        data = request.get_json(silent=True) or {}
        try:
            outcome = container.attendance_processor.process(data.get("studentId"), data.get("timestamp"))
        except ValidationError as e:
            return jsonify({"success": False, "message": str(e)}), 400
        except Exception:
            logger.error("Error processing scan", exc_info=True)
            return jsonify({"success": False, "message": "Error processing attendance"}), 500

        return jsonify({"success": True, **outcome.to_dict()}), 201 if outcome.written else 200

    @app.route("/api/attendance/<student_id>/summary", methods=["GET"], endpoint="api_attendance_summary")
    def api_attendance_summary(student_id: str):
        try:
            history = container.attendance_repo.get_all_days(require_non_empty(student_id, "studentId"))
        except ValidationError as e:
            return jsonify({"success": False, "message": str(e)}), 400
        return jsonify({"success": True, "studentId": student_id, "summary": summarize(history).to_dict()})

    @app.route("/api/attendance/<student_id>/<date_key>", methods=["GET"], endpoint="api_attendance_day")
    def api_attendance_day(student_id: str, date_key: str):
        try:
            student_id = require_non_empty(student_id, "studentId")
            date_key = require_date_key(date_key)
        except ValidationError as e:
            return jsonify({"success": False, "message": str(e)}), 400
        day = container.attendance_repo.get_day(student_id, date_key)
        return jsonify(
            {
                "success": True,
                "studentId": student_id,
                "dateKey": date_key,
                "classes": {key: rec.to_dict() for key, rec in sorted(day.items())},
            }
        )
