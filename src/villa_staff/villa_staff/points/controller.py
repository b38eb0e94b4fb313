from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import admin_required, current_role, current_user_id, json_body, login_required, parse_datetime_arg
from ..core.enums import Period, Role, RuleCategory
from ..core.exceptions import ValidationError
from ..container import Container
from .model import PointEntry, PointRule


def rule_json(rule: PointRule) -> dict:
    return {
        "id": rule.id,
        "name": rule.name,
        "base_points": rule.base_points,
        "category": rule.category.value,
        "description": rule.description,
        "repeatable": rule.repeatable,
    }


def entry_json(entry: PointEntry) -> dict:
    return entry.to_record()


def parse_period(value, default: Period) -> Period:
    if not value:
        return default
    try:
        return Period(value)
    except ValueError:
        raise ValidationError(f"Unknown period: {value}")


def register(app: Flask, container: Container) -> None:
    ledger = container.points_ledger

    def _target_user_id() -> str:
        """Staff can only look at their own points."""
        requested = (request.args.get("user_id") or "").strip()
        if not requested or current_role() != Role.ADMIN:
            return current_user_id()
        return requested

    @app.route("/points/rules", methods=["GET"], endpoint="point_rules")
    @login_required
    def point_rules():
        raw = request.args.get("category")
        try:
            category = RuleCategory(raw) if raw else None
        except ValueError:
            raise ValidationError(f"Unknown category: {raw}")
        return jsonify([rule_json(r) for r in ledger.list_rules(category)])

    @app.route("/points/assign", methods=["POST"], endpoint="assign_points")
    @admin_required
    def assign_points():
        payload = json_body()
        items = payload.get("items") or []
        if not isinstance(items, list):
            raise ValidationError("items must be a list")
        entries = ledger.assign_points(str(payload.get("user_id") or ""), items, current_user_id())
        return jsonify({"success": True, "entries": [entry_json(e) for e in entries]}), 201

    @app.route("/points/custom", methods=["POST"], endpoint="assign_custom_points")
    @admin_required
    def assign_custom_points():
        payload = json_body()
        entry = ledger.assign_custom_points(
            str(payload.get("user_id") or ""),
            payload.get("points"),
            str(payload.get("reason") or ""),
            current_user_id(),
        )
        return jsonify({"success": True, "entry": entry_json(entry)}), 201

    @app.route("/points/preview", methods=["POST"], endpoint="preview_points")
    @admin_required
    def preview_points():
        payload = json_body()
        items = payload.get("items") or []
        if not isinstance(items, list):
            raise ValidationError("items must be a list")
        total = ledger.preview_cart_total(str(payload.get("user_id") or ""), items)
        return jsonify({"total": total})

    @app.route("/points/totals", methods=["GET"], endpoint="point_totals")
    @login_required
    def point_totals():
        totals = ledger.get_user_total(
            _target_user_id(),
            parse_period(request.args.get("period"), Period.TODAY),
            start=parse_datetime_arg(request.args.get("start"), "start"),
            end=parse_datetime_arg(request.args.get("end"), "end"),
        )
        return jsonify(totals.as_dict())

    @app.route("/points/entries", methods=["GET"], endpoint="point_entries")
    @login_required
    def point_entries():
        entries = ledger.list_user_entries(
            _target_user_id(),
            parse_period(request.args.get("period"), Period.THIS_MONTH),
            start=parse_datetime_arg(request.args.get("start"), "start"),
            end=parse_datetime_arg(request.args.get("end"), "end"),
        )
        return jsonify([entry_json(e) for e in entries])

    @app.route("/points/violations", methods=["GET"], endpoint="violation_counters")
    @admin_required
    def violation_counters():
        user_id = (request.args.get("user_id") or "").strip() or None
        return jsonify([c.to_record() for c in ledger.list_violation_counters(user_id)])
