from __future__ import annotations

from flask import Flask, request, send_file

from ..common.http import current_caller, json_body, ok, roles_required
from ..common.validators import parse_identity
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..container import Container
from . import qr

STAFF_ROLES = (Role.LECTURER, Role.ASSISTANT)


def register(app: Flask, container: Container) -> None:
    sessions = container.session_manager
    verifier = container.verifier
    recorder = container.recorder

    @app.route("/api/attendance/sessions", methods=["POST"], endpoint="api_open_session")
    @roles_required(*STAFF_ROLES)
    def open_session():
        data = json_body()
        session = sessions.open(
            opener_id=current_caller().user_id,
            entry_id=data.get("course_schedule_id"),
            verification_type=data.get("type"),
            session_date=data.get("date"),
            settings=data.get("settings"),
        )
        return ok(session.to_dict(), message="Attendance session opened", status=201)

    @app.route("/api/attendance/sessions/active", methods=["GET"], endpoint="api_active_sessions")
    @roles_required(*STAFF_ROLES)
    def active_sessions():
        rows = sessions.list_active_for_user(current_caller().user_id)
        return ok([s.to_dict() for s in rows])

    @app.route("/api/attendance/sessions", methods=["GET"], endpoint="api_list_sessions")
    @roles_required(*STAFF_ROLES)
    def list_sessions():
        rows = sessions.list_sessions_in_range(
            current_caller().user_id,
            start=request.args.get("start"),
            end=request.args.get("end"),
        )
        return ok([s.to_dict() for s in rows])

    @app.route("/api/attendance/sessions/<int:session_id>", methods=["GET"], endpoint="api_session_details")
    @roles_required(*STAFF_ROLES)
    def session_details(session_id: int):
        details = sessions.get_session_details(session_id, actor_id=current_caller().user_id)
        return ok(details.to_dict())

    @app.route("/api/attendance/sessions/<int:session_id>/close", methods=["PUT"], endpoint="api_close_session")
    @roles_required(*STAFF_ROLES)
    def close_session(session_id: int):
        session = sessions.close(session_id, actor_id=current_caller().user_id)
        return ok(session.to_dict(), message="Attendance session closed")

    @app.route("/api/attendance/sessions/<int:session_id>/cancel", methods=["PUT"], endpoint="api_cancel_session")
    @roles_required(*STAFF_ROLES)
    def cancel_session(session_id: int):
        session = sessions.cancel(session_id, actor_id=current_caller().user_id)
        return ok(session.to_dict(), message="Attendance session canceled")

    @app.route("/api/attendance/sessions/<int:session_id>/students", methods=["GET"], endpoint="api_session_students")
    @roles_required(*STAFF_ROLES)
    def session_students(session_id: int):
        rows = sessions.list_students(session_id, actor_id=current_caller().user_id)
        return ok([r.to_dict() for r in rows])

    @app.route(
        "/api/attendance/sessions/<int:session_id>/students/<int:student_id>",
        methods=["PUT"],
        endpoint="api_mark_student",
    )
    @roles_required(*STAFF_ROLES)
    def mark_student(session_id: int, student_id: int):
        data = json_body()
        record = verifier.mark_manually(
            session_id,
            actor_id=current_caller().user_id,
            student_id=student_id,
            status=data.get("status"),
            notes=data.get("notes") or "",
        )
        return ok(record.to_dict(), message="Attendance updated")

    @app.route("/api/attendance/qrcode/<int:session_id>", methods=["GET"], endpoint="api_session_qrcode")
    @roles_required(*STAFF_ROLES)
    def session_qrcode(session_id: int):
        payload = sessions.qr_payload(session_id, actor_id=current_caller().user_id)
        return send_file(qr.render_png(payload), mimetype="image/png")

    @app.route("/api/attendance/statistics/<int:entry_id>", methods=["GET"], endpoint="api_entry_statistics")
    @roles_required(*STAFF_ROLES)
    def entry_statistics(entry_id: int):
        stats = sessions.statistics(entry_id, actor_id=current_caller().user_id)
        return ok(stats.to_dict())

    @app.route(
        "/api/student/attendance/active-sessions", methods=["GET"], endpoint="api_student_active_sessions"
    )
    @roles_required(Role.STUDENT)
    def student_active_sessions():
        student_id = current_caller().user_id
        out = []
        for session in sessions.list_active_for_student(student_id):
            item = session.to_dict()
            record = recorder.get(session_id=session.session_id, student_id=student_id)
            item["attendance_status"] = record.status.value if record else None
            out.append(item)
        return ok(out)

    @app.route("/api/student/attendance/qr-submit", methods=["POST"], endpoint="api_student_qr_submit")
    @roles_required(Role.STUDENT)
    def student_qr_submit():
        data = json_body()
        method = str(data.get("verification_method") or "QR_CODE").strip().upper()
        if method != "QR_CODE":
            raise ValidationError("Only QR_CODE verification is supported here")

        record = verifier.mark_via_qr(
            data.get("session_id"),
            student_id=current_caller().user_id,
            raw_payload=data.get("qr_data"),
        )
        return ok(record.to_dict(), message="Attendance recorded")

    @app.route("/api/student/attendance/qr-image", methods=["POST"], endpoint="api_student_qr_image")
    @roles_required(Role.STUDENT)
    def student_qr_image():
        upload = request.files.get("image")
        if upload is None or not upload.filename:
            raise ValidationError("An image file is required")

        record = verifier.mark_via_qr_image(
            request.form.get("session_id"),
            student_id=current_caller().user_id,
            image=upload.stream,
        )
        return ok(record.to_dict(), message="Attendance recorded")

    @app.route("/api/student/attendance/history", methods=["GET"], endpoint="api_student_history")
    @roles_required(Role.STUDENT)
    def student_history():
        limit_raw = request.args.get("limit")
        limit = parse_identity(limit_raw, "limit") if limit_raw else DEFAULT_HISTORY_LIMIT
        rows = recorder.history_for_student(current_caller().user_id, limit=limit)
        return ok([r.to_dict() for r in rows])
