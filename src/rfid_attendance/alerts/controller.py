from __future__ import annotations

import logging
from dataclasses import asdict

from flask import Flask, jsonify

from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/absences/<student_id>/check", methods=["POST"], endpoint="api_absences_check")
    def api_absences_check(student_id: str):
        """Manual re-check of one student's absences (may send an alert)."""
        try:
            decision = container.absence_pipeline.check_student(student_id)
        except Exception:
            logger.error("Error checking absences for %s", student_id, exc_info=True)
            return jsonify({"success": False, "message": "Error checking absences"}), 500
        return jsonify({"success": True, **asdict(decision)})

    @app.route("/api/absences/<student_id>/alerts", methods=["GET"], endpoint="api_absences_alerts")
    def api_absences_alerts(student_id: str):
        alerts = container.alerts_repo.get_alerts(student_id)
        return jsonify({"success": True, "studentId": student_id, "alerts": [a.to_dict() for a in alerts]})
