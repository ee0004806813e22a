from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import datetime_arg, int_arg, json_body, to_json
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.invite_service

    @app.route("/api/invites", methods=["POST"], endpoint="issue_invite")
    def issue_invite():
        data = json_body()
        invite = service.issue_invite(
            company_id=int_arg(data, "company_id"),
            full_name=data.get("full_name"),
            position=data.get("position"),
            expires_at=datetime_arg(data, "expires_at", required_value=False),
        )
        return jsonify(to_json(invite)), 201

    @app.route("/api/invites", methods=["GET"], endpoint="list_invites")
    def list_invites():
        company_id = int_arg(request.args, "company_id")
        unused_only = str(request.args.get("unused_only", "0")).lower() in {"1", "true", "yes"}
        return jsonify(to_json(service.list_by_company(company_id, unused_only=unused_only)))

    @app.route("/api/invites/<code>", methods=["GET"], endpoint="get_invite")
    def get_invite(code: str):
        return jsonify(to_json(service.get_by_code(code)))

    @app.route("/api/invites/<code>/redeem", methods=["POST"], endpoint="redeem_invite")
    def redeem_invite(code: str):
        data = json_body()
        telegram_user_id = data.get("telegram_user_id")
        redemption = service.redeem_invite(
            code,
            employee_id=int_arg(data, "employee_id", required_value=False),
            telegram_user_id=str(telegram_user_id) if telegram_user_id is not None else None,
        )
        return jsonify(to_json(redemption))

    @app.route("/api/invites/cleanup", methods=["POST"], endpoint="cleanup_invites")
    def cleanup_invites():
        return jsonify({"removed": service.cleanup_expired()})
