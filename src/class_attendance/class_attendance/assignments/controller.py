from __future__ import annotations

from dataclasses import asdict

from flask import Flask, request

from ..common.http import current_caller, json_body, ok, roles_required
from ..core.enums import Role
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.assignment_service

    @app.route("/api/admin/assignments/instructors", methods=["GET"], endpoint="api_list_instructor_assignments")
    @roles_required(Role.ADMIN)
    def list_instructor_assignments():
        rows = service.list_instructor_assignments(
            course_id=request.args.get("course_id"),
            period_id=request.args.get("period_id"),
        )
        return ok([asdict(r) for r in rows])

    @app.route("/api/admin/assignments/instructors", methods=["POST"], endpoint="api_assign_instructor")
    @roles_required(Role.ADMIN)
    def assign_instructor():
        data = json_body()
        assignment = service.assign_instructor(
            user_id=data.get("user_id"),
            course_id=data.get("course_id"),
            period_id=data.get("period_id"),
        )
        return ok(asdict(assignment), message="Instructor assigned", status=201)

    @app.route(
        "/api/admin/assignments/instructors/<int:assignment_id>",
        methods=["DELETE"],
        endpoint="api_remove_instructor_assignment",
    )
    @roles_required(Role.ADMIN)
    def remove_instructor_assignment(assignment_id: int):
        service.remove_instructor_assignment(assignment_id)
        return ok(message="Instructor assignment removed")

    @app.route("/api/admin/assignments/assistants", methods=["GET"], endpoint="api_list_assistant_assignments")
    @roles_required(Role.ADMIN)
    def list_assistant_assignments():
        rows = service.list_assistant_assignments(
            course_id=request.args.get("course_id"),
            period_id=request.args.get("period_id"),
        )
        return ok([asdict(r) for r in rows])

    @app.route("/api/admin/assignments/assistants", methods=["POST"], endpoint="api_assign_assistant")
    @roles_required(Role.ADMIN)
    def assign_assistant():
        data = json_body()
        assignment = service.assign_assistant(
            user_id=data.get("user_id"),
            course_id=data.get("course_id"),
            period_id=data.get("period_id"),
            assigned_by=data.get("assigned_by") or current_caller().user_id,
        )
        return ok(asdict(assignment), message="Assistant assigned", status=201)

    @app.route(
        "/api/admin/assignments/assistants/<int:assignment_id>",
        methods=["DELETE"],
        endpoint="api_remove_assistant_assignment",
    )
    @roles_required(Role.ADMIN)
    def remove_assistant_assignment(assignment_id: int):
        service.remove_assistant_assignment(assignment_id)
        return ok(message="Assistant assignment removed")
