from __future__ import annotations

import io
import logging

from flask import Flask, jsonify, send_file

from ..attendance.report_service import record_to_dict, session_to_dict
from ..common.datetime_utils import format_iso
from ..common.http import error_response, role_required
from ..core.enums import Role
from ..core.exceptions import DomainError
from ..container import Container
from ..tokens.qr import build_qr_payload, render_qr_png

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    teacher_required = role_required(Role.TEACHER)

    @app.route("/api/classes/<int:class_id>/sessions", methods=["POST"], endpoint="open_session")
    @teacher_required
    def open_session(class_id: int):
        try:
            s = container.lifecycle.open_session(class_id, container.clock.now())
            body = session_to_dict(s)
            body.update({"token": s.token, "qr_payload": build_qr_payload(s)})
            return jsonify({"success": True, "session": body}), 201
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("failed to open session for class %s", class_id)
            return jsonify({"success": False, "message": "Internal error while opening session"}), 500

    @app.route("/api/classes/<int:class_id>/sessions", methods=["GET"], endpoint="list_sessions")
    @teacher_required
    def list_sessions(class_id: int):
        try:
            sessions = container.lifecycle.list_sessions_for_class(class_id, container.clock.now())
            return jsonify({"success": True, "sessions": [session_to_dict(s) for s in sessions]})
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("failed to list sessions for class %s", class_id)
            return jsonify({"success": False, "message": "Internal error while listing sessions"}), 500

    @app.route("/api/classes/<int:class_id>/attendance", methods=["GET"], endpoint="class_attendance")
    @teacher_required
    def class_attendance(class_id: int):
        """Every record across all sessions of the class."""
        try:
            records = container.report_service.list_attendance_for_class(class_id, container.clock.now())
            return jsonify({"success": True, "class_id": class_id, "records": [record_to_dict(r) for r in records]})
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("failed to list attendance for class %s", class_id)
            return jsonify({"success": False, "message": "Internal error while listing attendance"}), 500

    @app.route("/api/sessions/<int:session_id>/close", methods=["POST"], endpoint="close_session")
    @teacher_required
    def close_session(session_id: int):
        try:
            closure = container.lifecycle.end_session(session_id, container.clock.now())
            return jsonify(
                {
                    "success": True,
                    "session": session_to_dict(closure.session),
                    "absences_written": closure.absences_written,
                }
            )
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("failed to close session %s", session_id)
            return jsonify({"success": False, "message": "Internal error while closing session"}), 500

    @app.route("/api/sessions/<int:session_id>/attendance", methods=["GET"], endpoint="session_attendance")
    @teacher_required
    def session_attendance(session_id: int):
        try:
            data = container.report_service.list_attendance_for_session(session_id, container.clock.now())
            return jsonify(
                {
                    "success": True,
                    "session": session_to_dict(data.session),
                    "records": [record_to_dict(r) for r in data.records],
                }
            )
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("failed to list attendance for session %s", session_id)
            return jsonify({"success": False, "message": "Internal error while listing attendance"}), 500

    @app.route("/api/sessions/<int:session_id>/qr.png", methods=["GET"], endpoint="session_qr_image")
    @teacher_required
    def session_qr_image(session_id: int):
        try:
            now = container.clock.now()
            s = container.lifecycle.get_session(session_id, now)
            if not s.is_live(now):
                return jsonify({"success": False, "message": "Session is closed", "closed_at": format_iso(s.closed_at)}), 410
            png = render_qr_png(build_qr_payload(s))
            return send_file(io.BytesIO(png), mimetype="image/png")
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("failed to render QR for session %s", session_id)
            return jsonify({"success": False, "message": "Internal error while rendering QR code"}), 500
