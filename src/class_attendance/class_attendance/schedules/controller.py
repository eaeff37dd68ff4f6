from __future__ import annotations

from flask import Flask, request

from ..common.http import current_caller, json_body, ok, roles_required
from ..core.enums import Role
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.timetable_service

    @app.route("/api/admin/schedules", methods=["GET"], endpoint="api_admin_schedules")
    @roles_required(Role.ADMIN)
    def list_schedules():
        entries = service.list_entries(
            course_id=request.args.get("course_id"),
            cohort_id=request.args.get("cohort_id"),
            room_id=request.args.get("room_id"),
            instructor_id=request.args.get("instructor_id"),
            period_id=request.args.get("period_id"),
        )
        return ok([e.to_dict() for e in entries])

    @app.route("/api/admin/schedules", methods=["POST"], endpoint="api_admin_schedules_create")
    @roles_required(Role.ADMIN)
    def create_schedule():
        saved = service.create(json_body())
        return ok(saved.to_dict(), message="Schedule created", status=201)

    @app.route("/api/admin/schedules/conflicts", methods=["POST"], endpoint="api_admin_schedules_conflicts")
    @roles_required(Role.ADMIN)
    def check_conflicts():
        report = service.check_conflicts(json_body())
        return ok(report.to_dict())

    @app.route("/api/admin/schedules/<int:entry_id>", methods=["GET"], endpoint="api_admin_schedule")
    @roles_required(Role.ADMIN)
    def get_schedule(entry_id: int):
        return ok(service.get(entry_id).to_dict())

    @app.route("/api/admin/schedules/<int:entry_id>", methods=["PUT"], endpoint="api_admin_schedule_update")
    @roles_required(Role.ADMIN)
    def update_schedule(entry_id: int):
        saved = service.update(entry_id, json_body())
        return ok(saved.to_dict(), message="Schedule updated")

    @app.route("/api/admin/schedules/<int:entry_id>", methods=["DELETE"], endpoint="api_admin_schedule_delete")
    @roles_required(Role.ADMIN)
    def delete_schedule(entry_id: int):
        service.delete(entry_id)
        return ok(message="Schedule deleted")

    @app.route("/api/student/schedules", methods=["GET"], endpoint="api_student_schedules")
    @roles_required(Role.STUDENT)
    def student_schedules():
        entries = service.list_for_student(current_caller().user_id)
        return ok([e.to_dict() for e in entries])
