from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.web import current_actor, json_body, json_endpoint, require_staff
from ..container import Container
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    svc = container.duty_hour_service

    @app.route("/api/schedules/<int:schedule_id>/duty-hours", methods=["GET"], endpoint="duty_hours_list")
    @json_endpoint
    def duty_hours_list(schedule_id: int):
        require_staff(current_actor())
        return jsonify([w.to_dict() for w in svc.list_duty_windows(schedule_id)])

    @app.route("/api/schedules/<int:schedule_id>/duty-hours", methods=["POST"], endpoint="duty_hours_add")
    @json_endpoint
    def duty_hours_add(schedule_id: int):
        data = json_body()
        window = svc.add_duty_window(
            actor=current_actor(),
            schedule_id=schedule_id,
            day=data.get("day") or "",
            start_time=data.get("start_time") or "",
            end_time=data.get("end_time") or "",
            location=data.get("location") or "",
            notes=data.get("notes"),
        )
        return jsonify({"message": "Duty hours added", "duty_hour": window.to_dict()}), 201

    @app.route("/api/schedules/<int:schedule_id>/duty-hours", methods=["DELETE"], endpoint="duty_hours_remove")
    @json_endpoint
    def duty_hours_remove(schedule_id: int):
        data = json_body()
        svc.remove_duty_window(
            actor=current_actor(),
            schedule_id=schedule_id,
            day=data.get("day") or "",
            start_time=data.get("start_time") or "",
            end_time=data.get("end_time") or "",
        )
        return jsonify({"message": "Duty hours removed"})

    @app.route("/api/schedules/<int:schedule_id>/map", methods=["GET"], endpoint="schedule_map")
    @json_endpoint
    def schedule_map(schedule_id: int):
        require_staff(current_actor())
        return jsonify(svc.get_schedule_map(schedule_id).to_dict())

    @app.route("/api/schedules/for-date", methods=["GET"], endpoint="schedule_for_date")
    @json_endpoint
    def schedule_for_date():
        actor = current_actor()
        user_id = request.args.get("user_id", type=int) or actor.user_id
        if user_id != actor.user_id:
            require_staff(actor)

        date_s = request.args.get("date")
        if not date_s:
            raise ValidationError("date is required")
        try:
            on_date = parse_iso_date(date_s)
        except ValueError:
            raise ValidationError("date must be YYYY-MM-DD")

        slots = svc.schedule_for_date(user_id=user_id, on_date=on_date)
        return jsonify({"date": on_date.strftime("%Y-%m-%d"), "slots": [s.to_dict() for s in slots]})
