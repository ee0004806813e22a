from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import datetime_arg, int_arg, json_body, to_json
from ..container import Container
from ..core.enums import BreakKind
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    service = container.shift_service

    def _shift_payload(shift):
        payload = to_json(shift)
        payload["worked_minutes"] = service.worked_minutes(shift.shift_id, as_of=container.clock.now())
        return payload

    @app.route("/api/shifts", methods=["POST"], endpoint="create_shift")
    def create_shift():
        data = json_body()
        shift = service.create_shift(
            employee_id=int_arg(data, "employee_id"),
            planned_start_at=datetime_arg(data, "planned_start_at"),
            planned_end_at=datetime_arg(data, "planned_end_at"),
        )
        return jsonify(_shift_payload(shift)), 201

    @app.route("/api/shifts/<int:shift_id>", methods=["GET"], endpoint="get_shift")
    def get_shift(shift_id: int):
        return jsonify(_shift_payload(service.get_shift(shift_id)))

    @app.route("/api/shifts/<int:shift_id>/intervals", methods=["GET"], endpoint="shift_intervals")
    def shift_intervals(shift_id: int):
        service.get_shift(shift_id)
        return jsonify(to_json(container.interval_tracker.list_intervals(shift_id)))

    @app.route("/api/shifts/<int:shift_id>/start", methods=["POST"], endpoint="start_shift")
    def start_shift(shift_id: int):
        return jsonify(_shift_payload(service.start(shift_id)))

    @app.route("/api/shifts/<int:shift_id>/pause", methods=["POST"], endpoint="pause_shift")
    def pause_shift(shift_id: int):
        kind = json_body().get("kind") or BreakKind.LUNCH.value
        try:
            break_kind = BreakKind(kind)
        except ValueError:
            raise ValidationError(f"Unknown break kind: {kind}", field="kind")
        return jsonify(_shift_payload(service.pause(shift_id, break_kind)))

    @app.route("/api/shifts/<int:shift_id>/resume", methods=["POST"], endpoint="resume_shift")
    def resume_shift(shift_id: int):
        return jsonify(_shift_payload(service.resume(shift_id)))

    @app.route("/api/shifts/<int:shift_id>/end", methods=["POST"], endpoint="end_shift")
    def end_shift(shift_id: int):
        return jsonify(_shift_payload(service.end(shift_id)))

    @app.route("/api/shifts/<int:shift_id>/cancel", methods=["POST"], endpoint="cancel_shift")
    def cancel_shift(shift_id: int):
        return jsonify(_shift_payload(service.cancel(shift_id)))

    @app.route("/api/shifts/active", methods=["GET"], endpoint="active_shifts")
    def active_shifts():
        company_id = int_arg(request.args, "company_id")
        return jsonify([_shift_payload(s) for s in service.list_active_by_company(company_id)])

    @app.route("/api/shifts", methods=["GET"], endpoint="employee_shifts")
    def employee_shifts():
        shifts = service.list_by_employee(
            int_arg(request.args, "employee_id"),
            start=datetime_arg(request.args, "start"),
            end=datetime_arg(request.args, "end"),
        )
        return jsonify([_shift_payload(s) for s in shifts])

    @app.route("/api/shifts/monitor/scan", methods=["POST"], endpoint="scan_shifts")
    def scan_shifts():
        summary = container.shift_monitor.scan_company(int_arg(json_body(), "company_id"))
        return jsonify(to_json(summary))
