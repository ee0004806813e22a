from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import int_arg, json_body, required, to_json
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/employees", methods=["POST"], endpoint="create_employee")
    def create_employee():
        data = json_body()
        telegram_user_id = data.get("telegram_user_id")
        employee = container.employee_service.create_employee(
            company_id=int_arg(data, "company_id"),
            full_name=required(data, "full_name"),
            position=data.get("position"),
            status=data.get("status") or "active",
            telegram_user_id=str(telegram_user_id) if telegram_user_id is not None else None,
            timezone=data.get("timezone"),
        )
        return jsonify(to_json(employee)), 201

    @app.route("/api/employees", methods=["GET"], endpoint="list_employees")
    def list_employees():
        company_id = int_arg(request.args, "company_id")
        return jsonify(to_json(container.employee_service.list_by_company(company_id)))

    @app.route("/api/employees/<int:employee_id>", methods=["GET"], endpoint="get_employee")
    def get_employee(employee_id: int):
        return jsonify(to_json(container.employee_service.get_employee(employee_id)))
