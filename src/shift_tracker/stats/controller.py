from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import to_json
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/companies/<int:company_id>/stats", methods=["GET"], endpoint="company_stats")
    def company_stats(company_id: int):
        return jsonify(to_json(container.stats_service.get_stats(company_id)))
