from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import datetime_arg, int_arg, json_body, required, to_json
from ..container import Container
from ..core.enums import ViolationSource
from ..core.exceptions import ValidationError


def _truthy(value) -> bool:
    return str(value).lower() in {"1", "true", "yes", "on"}


def register(app: Flask, container: Container) -> None:
    recorder = container.violation_recorder
    rules = container.rule_service

    @app.route("/api/violations", methods=["POST"], endpoint="record_violation")
    def record_violation():
        data = json_body()
        source = data.get("source") or ViolationSource.MANUAL.value
        try:
            source_enum = ViolationSource(source)
        except ValueError:
            raise ValidationError(f"Unknown violation source: {source}", field="source")

        violation = recorder.record_violation(
            employee_id=int_arg(data, "employee_id"),
            company_id=int_arg(data, "company_id"),
            rule_id=int_arg(data, "rule_id"),
            source=source_enum,
            reason=data.get("reason"),
            created_by=int_arg(data, "created_by", required_value=False),
            shift_id=int_arg(data, "shift_id", required_value=False),
        )
        return jsonify(to_json(violation)), 201

    @app.route("/api/violations", methods=["GET"], endpoint="list_violations")
    def list_violations():
        args = request.args
        if args.get("employee_id"):
            items = recorder.list_by_employee(
                int_arg(args, "employee_id"),
                start=datetime_arg(args, "start", required_value=False),
                end=datetime_arg(args, "end", required_value=False),
            )
        else:
            items = recorder.list_by_company(
                int_arg(args, "company_id"),
                start=datetime_arg(args, "start"),
                end=datetime_arg(args, "end"),
            )
        return jsonify(to_json(items))

    @app.route("/api/violation-rules", methods=["POST"], endpoint="create_violation_rule")
    def create_violation_rule():
        data = json_body()
        rule = rules.create_rule(
            company_id=int_arg(data, "company_id"),
            code=required(data, "code"),
            name=required(data, "name"),
            penalty_percent=required(data, "penalty_percent"),
            auto_detectable=bool(data.get("auto_detectable", False)),
        )
        return jsonify(to_json(rule)), 201

    @app.route("/api/violation-rules", methods=["GET"], endpoint="list_violation_rules")
    def list_violation_rules():
        company_id = int_arg(request.args, "company_id")
        active_only = _truthy(request.args.get("active_only", "0"))
        return jsonify(to_json(rules.list_rules(company_id, active_only=active_only)))

    @app.route("/api/violation-rules/<int:rule_id>", methods=["PATCH"], endpoint="update_violation_rule")
    def update_violation_rule(rule_id: int):
        data = json_body()
        rule = rules.update_rule(
            rule_id=rule_id,
            company_id=int_arg(data, "company_id"),
            name=data.get("name"),
            penalty_percent=data.get("penalty_percent"),
            auto_detectable=data.get("auto_detectable"),
            is_active=data.get("is_active"),
        )
        return jsonify(to_json(rule))

    @app.route("/api/violation-rules/<int:rule_id>", methods=["DELETE"], endpoint="deactivate_violation_rule")
    def deactivate_violation_rule(rule_id: int):
        company_id = int_arg(request.args, "company_id")
        return jsonify(to_json(rules.deactivate_rule(rule_id=rule_id, company_id=company_id)))
