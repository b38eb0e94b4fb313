from __future__ import annotations

import csv
import io
from datetime import timedelta

from flask import Flask, jsonify, request

from ..common.datetime_utils import now_local, start_of_month
from ..common.http import admin_required, current_user_id, login_required, parse_datetime_arg
from ..container import Container
from ..core.enums import Period
from ..points.controller import parse_period
from .service import STAFF_METRIC_FIELDS


def register(app: Flask, container: Container) -> None:
    svc = container.report_service

    def _range():
        """Defaults to the current month up to now."""
        now = now_local()
        start = parse_datetime_arg(request.args.get("start"), "start") or start_of_month(now)
        end = parse_datetime_arg(request.args.get("end"), "end")
        if end is None:
            end = now
        elif end == end.replace(hour=0, minute=0, second=0, microsecond=0):
            # A bare end date covers that whole day.
            end = end + timedelta(days=1) - timedelta(microseconds=1)
        return start, end

    def _write_metrics_csv(*, metrics, filename: str):
        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=STAFF_METRIC_FIELDS)
        writer.writeheader()
        for m in metrics:
            writer.writerow(m.as_row())

        csv_bytes = out.getvalue().encode("utf-8-sig")
        return app.response_class(
            csv_bytes,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.route("/reports/me", methods=["GET"], endpoint="my_report")
    @login_required
    def my_report():
        snapshot = svc.user_performance(
            current_user_id(),
            parse_period(request.args.get("period"), Period.TODAY),
            start=parse_datetime_arg(request.args.get("start"), "start"),
            end=parse_datetime_arg(request.args.get("end"), "end"),
        )
        return jsonify(snapshot.as_dict())

    @app.route("/reports/team", methods=["GET"], endpoint="team_report")
    @admin_required
    def team_report():
        snapshot = svc.team_performance(
            parse_period(request.args.get("period"), Period.THIS_MONTH),
            start=parse_datetime_arg(request.args.get("start"), "start"),
            end=parse_datetime_arg(request.args.get("end"), "end"),
        )
        return jsonify(snapshot.as_dict())

    @app.route("/reports/staff", methods=["GET"], endpoint="staff_report")
    @admin_required
    def staff_report():
        start, end = _range()
        return jsonify([m.as_row() for m in svc.staff_metrics(start=start, end=end)])

    @app.route("/reports/staff.csv", methods=["GET"], endpoint="staff_report_csv")
    @admin_required
    def staff_report_csv():
        start, end = _range()
        metrics = svc.staff_metrics(start=start, end=end)
        filename = f"staff_metrics_{start.strftime('%Y%m%d')}_{end.strftime('%Y%m%d')}.csv"
        return _write_metrics_csv(metrics=metrics, filename=filename)
