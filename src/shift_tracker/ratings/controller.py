from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import rating_periods
from ..common.http import date_arg, int_arg, json_body, required, to_json
from ..container import Container
from ..core.exceptions import NotFoundError


def register(app: Flask, container: Container) -> None:
    engine = container.rating_engine

    @app.route("/api/ratings/periods", methods=["GET"], endpoint="rating_periods")
    def list_rating_periods():
        today = date_arg(request.args, "today", required_value=False) or container.clock.now().date()
        return jsonify(to_json(rating_periods(today)))

    @app.route("/api/ratings/<int:employee_id>", methods=["GET"], endpoint="get_rating")
    def get_rating(employee_id: int):
        start = date_arg(request.args, "period_start", required_value=False)
        end = date_arg(request.args, "period_end", required_value=False)
        if start is None and end is None:
            rating = engine.get_current_period(employee_id)
        else:
            rating = engine.get_for_period(
                employee_id,
                period_start=date_arg(request.args, "period_start"),
                period_end=date_arg(request.args, "period_end"),
            )
        if rating is None:
            raise NotFoundError("EmployeeRating", employee_id)
        return jsonify(to_json(rating))

    @app.route("/api/ratings/<int:employee_id>/recalculate", methods=["POST"], endpoint="recalculate_rating")
    def recalculate_rating(employee_id: int):
        data = json_body()
        rating = engine.recalculate(
            employee_id,
            period_start=date_arg(data, "period_start", required_value=False),
            period_end=date_arg(data, "period_end", required_value=False),
            discard_adjustment=bool(data.get("discard_adjustment", False)),
        )
        return jsonify(to_json(rating))

    @app.route("/api/ratings/<int:employee_id>/adjust", methods=["POST"], endpoint="adjust_rating")
    def adjust_rating(employee_id: int):
        data = json_body()
        rating = engine.adjust_rating(
            employee_id,
            required(data, "delta"),
            period_start=date_arg(data, "period_start", required_value=False),
            period_end=date_arg(data, "period_end", required_value=False),
        )
        return jsonify(to_json(rating))

    @app.route("/api/ratings", methods=["GET"], endpoint="list_ratings")
    def list_ratings():
        ratings = engine.list_company_ratings(
            int_arg(request.args, "company_id"),
            period_start=date_arg(request.args, "period_start", required_value=False),
            period_end=date_arg(request.args, "period_end", required_value=False),
        )
        return jsonify(to_json(ratings))

    @app.route("/api/ratings/recalculate", methods=["POST"], endpoint="recalculate_company_ratings")
    def recalculate_company_ratings():
        data = json_body()
        ratings = engine.recalculate_company(
            int_arg(data, "company_id"),
            period_start=date_arg(data, "period_start", required_value=False),
            period_end=date_arg(data, "period_end", required_value=False),
        )
        return jsonify(to_json(ratings))
