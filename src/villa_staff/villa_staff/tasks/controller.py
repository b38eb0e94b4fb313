from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import admin_required, current_role, current_user_id, json_body, login_required, parse_datetime_arg
from ..core.enums import TaskType
from ..core.exceptions import ValidationError
from ..container import Container
from .model import CompletionReport, NewTask, Task
from .service import action_label


def task_json(task: Task) -> dict:
    data = task.to_record()
    data["action_label"] = action_label(task)
    return data


def _new_task_from(payload: dict) -> NewTask:
    raw_type = payload.get("task_type") or ""
    try:
        task_type = TaskType(raw_type)
    except ValueError:
        raise ValidationError(f"Unknown task type: {raw_type or '-'}")
    return NewTask(
        task_type=task_type,
        title=str(payload.get("title") or ""),
        room=payload.get("room"),
        description=str(payload.get("description") or ""),
        assigned_to=payload.get("assigned_to"),
        assigned_to2=payload.get("assigned_to2"),
        duration=payload.get("duration", 30),
        points=payload.get("points", 10),
        deadline=parse_datetime_arg(payload.get("deadline"), "deadline"),
        requires_completion_photo=bool(payload.get("requires_completion_photo")),
        is_template=bool(payload.get("is_template")),
        is_recurring=bool(payload.get("is_recurring")),
    )


def register(app: Flask, container: Container) -> None:
    svc = container.task_service

    def _actor() -> dict:
        return {"current_user_id": current_user_id(), "current_role": current_role()}

    @app.route("/tasks", methods=["GET"], endpoint="list_tasks")
    @login_required
    def list_tasks():
        user = container.roster_service.get_user(current_user_id())
        if not user:
            raise ValidationError("Unknown user")
        return jsonify([task_json(t) for t in svc.list_visible_tasks(user)])

    @app.route("/tasks", methods=["POST"], endpoint="create_task")
    @admin_required
    def create_task():
        payload = json_body()
        task = svc.create_task(data=_new_task_from(payload), **_actor())
        return jsonify(task_json(task)), 201

    @app.route("/tasks/<task_id>", methods=["DELETE"], endpoint="delete_task")
    @admin_required
    def delete_task(task_id: str):
        svc.delete_task(current_role=current_role(), task_id=task_id)
        return jsonify({"success": True})

    @app.route("/tasks/<task_id>/start", methods=["POST"], endpoint="start_task")
    @login_required
    def start_task(task_id: str):
        return jsonify(task_json(svc.start(task_id, **_actor())))

    @app.route("/tasks/<task_id>/complete", methods=["POST"], endpoint="complete_task")
    @login_required
    def complete_task(task_id: str):
        payload = json_body()
        completion = CompletionReport(
            photo=payload.get("photo"),
            notes=payload.get("notes"),
            second_worker_involved=payload.get("second_worker_involved"),
        )
        return jsonify(task_json(svc.complete(task_id, completion=completion, **_actor())))

    @app.route("/tasks/<task_id>/approve", methods=["POST"], endpoint="approve_task")
    @login_required
    def approve_task(task_id: str):
        return jsonify(task_json(svc.approve(task_id, **_actor())))

    @app.route("/tasks/<task_id>/reject", methods=["POST"], endpoint="reject_task")
    @login_required
    def reject_task(task_id: str):
        payload = json_body()
        return jsonify(task_json(svc.reject(task_id, str(payload.get("reason") or ""), **_actor())))

    @app.route("/tasks/templates", methods=["GET"], endpoint="list_templates")
    @admin_required
    def list_templates():
        return jsonify([task_json(t) for t in svc.list_templates()])

    @app.route("/tasks/templates/<template_id>/instantiate", methods=["POST"], endpoint="instantiate_template")
    @admin_required
    def instantiate_template(template_id: str):
        task = svc.instantiate(template_id, current_role=current_role(), assigned_by=current_user_id())
        return jsonify(task_json(task)), 201
