from __future__ import annotations

import logging
from dataclasses import asdict

from flask import Flask, jsonify, request

from ..common.http import current_user_id, error_response, role_required
from ..core.enums import Role
from ..core.exceptions import DomainError
from ..container import Container
from ..tokens.qr import decode_qr_image
from .report_service import record_to_dict

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    student_required = role_required(Role.STUDENT)

    @app.route("/api/checkin", methods=["POST"], endpoint="api_checkin")
    @student_required
    def api_checkin():
        """Check in with the scanned QR content (JSON payload or bare token)."""
        data = request.get_json(silent=True) or {}
        qr_code = str(data.get("qr_code") or "").strip()
        if not qr_code:
            return jsonify({"success": False, "message": "qr_code is required"}), 400

        try:
            record = container.check_in_service.submit_check_in_payload(
                qr_code, current_user_id(), container.clock.now()
            )
            return jsonify({"success": True, "record": record_to_dict(record)}), 201
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("check-in failed")
            return jsonify({"success": False, "message": "Internal error while checking in"}), 500

    @app.route("/api/checkin/image", methods=["POST"], endpoint="api_checkin_image")
    @student_required
    def api_checkin_image():
        """Check in by uploading a photo of the QR code."""
        file = request.files.get("file")
        if not file or not file.filename:
            return jsonify({"success": False, "message": "file is required"}), 400

        try:
            scanned = decode_qr_image(file.stream)
            record = container.check_in_service.submit_check_in_payload(
                scanned, current_user_id(), container.clock.now()
            )
            return jsonify({"success": True, "record": record_to_dict(record)}), 201
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("check-in from image failed")
            return jsonify({"success": False, "message": "Internal error while checking in"}), 500

    @app.route("/api/me/attendance", methods=["GET"], endpoint="my_attendance")
    @student_required
    def my_attendance():
        class_id = request.args.get("class_id")
        class_id = int(class_id) if class_id and class_id.isdigit() else None

        try:
            student_id = current_user_id()
            now = container.clock.now()
            summary = container.report_service.student_summary(student_id, now, class_id=class_id)
            records = container.report_service.list_attendance_for_student(student_id, now, class_id=class_id)
            return jsonify(
                {
                    "success": True,
                    "records": [record_to_dict(r) for r in records],
                    "summary": asdict(summary),
                }
            )
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("failed to list attendance for current student")
            return jsonify({"success": False, "message": "Internal error while listing attendance"}), 500
