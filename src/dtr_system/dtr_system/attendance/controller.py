from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.validators import optional_bool
from ..common.web import current_actor, json_body, json_endpoint, require_staff
from ..container import Container
from ..core.exceptions import AuthorizationError
from ..users.model import Actor
from .model import AttendanceRecord


def register(app: Flask, container: Container) -> None:
    svc = container.dtr_service

    def _require_owner(record: AttendanceRecord, actor: Actor) -> None:
        if record.user_id != actor.user_id:
            raise AuthorizationError("You can only change your own DTR")

    def _require_viewer(record: AttendanceRecord, actor: Actor) -> None:
        if record.user_id != actor.user_id and not actor.is_staff:
            raise AuthorizationError("You are not allowed to view this DTR")

    def _staff() -> Actor:
        actor = current_actor()
        require_staff(actor)
        return actor

    @app.route("/api/dtr/<int:year>/<int:month>", methods=["GET"], endpoint="dtr_get_or_create")
    @json_endpoint
    def dtr_get_or_create(year: int, month: int):
        actor = current_actor()
        record = svc.get_or_create(user_id=actor.user_id, month=month, year=year)
        return jsonify(record.to_dict())

    @app.route("/api/dtr/mine", methods=["GET"], endpoint="dtr_mine")
    @json_endpoint
    def dtr_mine():
        actor = current_actor()
        return jsonify([r.to_dict() for r in svc.list_for_user(actor.user_id)])

    @app.route("/api/dtr/submitted", methods=["GET"], endpoint="dtr_submitted")
    @json_endpoint
    def dtr_submitted():
        _staff()
        records = svc.list_submitted(
            month=request.args.get("month"),
            year=request.args.get("year"),
            status=request.args.get("status"),
        )
        return jsonify([r.to_dict() for r in records])

    @app.route("/api/dtr/stats", methods=["GET"], endpoint="dtr_stats")
    @json_endpoint
    def dtr_stats():
        actor = current_actor()
        user_id = request.args.get("user_id", type=int) or actor.user_id
        if user_id != actor.user_id:
            require_staff(actor)
        return jsonify(container.report_service.user_stats(user_id=user_id))

    @app.route("/api/dtr/<int:dtr_id>", methods=["GET"], endpoint="dtr_detail")
    @json_endpoint
    def dtr_detail(dtr_id: int):
        record = svc.get(dtr_id)
        _require_viewer(record, current_actor())
        return jsonify(record.to_dict())

    @app.route("/api/dtr/<int:dtr_id>", methods=["PATCH"], endpoint="dtr_update_header")
    @json_endpoint
    def dtr_update_header(dtr_id: int):
        _require_owner(svc.get(dtr_id), current_actor())
        data = json_body()
        record = svc.update_header(
            dtr_id=dtr_id,
            department=data.get("department"),
            duty_hours=data.get("duty_hours"),
            remarks=data.get("remarks"),
        )
        return jsonify(record.to_dict())

    @app.route("/api/dtr/<int:dtr_id>", methods=["DELETE"], endpoint="dtr_delete")
    @json_endpoint
    def dtr_delete(dtr_id: int):
        _require_owner(svc.get(dtr_id), current_actor())
        svc.delete(dtr_id=dtr_id)
        return jsonify({"message": "DTR deleted"})

    @app.route("/api/dtr/<int:dtr_id>/report", methods=["GET"], endpoint="dtr_report")
    @json_endpoint
    def dtr_report(dtr_id: int):
        record = svc.get(dtr_id)
        _require_viewer(record, current_actor())
        data = container.report_service.report_for(record)
        return jsonify({"rows": data.rows, "summary": data.summary})

    @app.route("/api/dtr/<int:dtr_id>/entries/<int:day>", methods=["PUT"], endpoint="dtr_edit_entry")
    @json_endpoint
    def dtr_edit_entry(dtr_id: int, day: int):
        _require_owner(svc.get(dtr_id), current_actor())
        entry = svc.edit_entry(dtr_id=dtr_id, day=day, fields=json_body())
        return jsonify(entry.to_dict())

    @app.route("/api/dtr/<int:dtr_id>/entries/<int:day>/office", methods=["PUT"], endpoint="dtr_edit_entry_office")
    @json_endpoint
    def dtr_edit_entry_office(dtr_id: int, day: int):
        actor = _staff()
        entry = svc.edit_entry_as_office(dtr_id=dtr_id, day=day, fields=json_body(), actor=actor)
        return jsonify(entry.to_dict())

    @app.route("/api/dtr/<int:dtr_id>/entries/<int:day>/confirm", methods=["POST"], endpoint="dtr_confirm_entry")
    @json_endpoint
    def dtr_confirm_entry(dtr_id: int, day: int):
        entry = svc.confirm_entry(dtr_id=dtr_id, day=day, actor=_staff())
        return jsonify(entry.to_dict())

    @app.route("/api/dtr/<int:dtr_id>/entries/<int:day>/unconfirm", methods=["POST"], endpoint="dtr_unconfirm_entry")
    @json_endpoint
    def dtr_unconfirm_entry(dtr_id: int, day: int):
        entry = svc.unconfirm_entry(dtr_id=dtr_id, day=day, actor=_staff())
        return jsonify(entry.to_dict())

    @app.route("/api/dtr/<int:dtr_id>/confirm-all", methods=["POST"], endpoint="dtr_confirm_all")
    @json_endpoint
    def dtr_confirm_all(dtr_id: int):
        count = svc.confirm_all_entries(dtr_id=dtr_id, actor=_staff())
        return jsonify({"message": f"Confirmed {count} entries", "confirmed": count})

    @app.route("/api/dtr/<int:dtr_id>/entries/<int:day>/excused", methods=["POST"], endpoint="dtr_mark_excused")
    @json_endpoint
    def dtr_mark_excused(dtr_id: int, day: int):
        data = json_body()
        entry = svc.mark_excused(
            dtr_id=dtr_id,
            day=day,
            actor=_staff(),
            excused=optional_bool(data.get("excused"), "excused", True),
            reason=data.get("reason"),
            confirmation=data.get("confirmation_status"),
        )
        return jsonify(entry.to_dict())

    @app.route("/api/dtr/<int:dtr_id>/entries/<int:day>/absent", methods=["POST"], endpoint="dtr_mark_absent")
    @json_endpoint
    def dtr_mark_absent(dtr_id: int, day: int):
        data = json_body()
        entry = svc.mark_absent(
            dtr_id=dtr_id,
            day=day,
            actor=_staff(),
            absent=optional_bool(data.get("absent"), "absent", True),
            confirmation=data.get("confirmation_status"),
        )
        return jsonify(entry.to_dict())

    @app.route("/api/dtr/<int:dtr_id>/entries/<int:day>/reconcile", methods=["GET"], endpoint="dtr_reconcile_day")
    @json_endpoint
    def dtr_reconcile_day(dtr_id: int, day: int):
        _require_viewer(svc.get(dtr_id), current_actor())
        return jsonify(svc.reconcile_day(dtr_id=dtr_id, day=day).to_dict())

    @app.route("/api/dtr/<int:dtr_id>/submit", methods=["POST"], endpoint="dtr_submit")
    @json_endpoint
    def dtr_submit(dtr_id: int):
        _require_owner(svc.get(dtr_id), current_actor())
        return jsonify(svc.submit(dtr_id=dtr_id).to_dict())

    @app.route("/api/dtr/<int:dtr_id>/approve", methods=["POST"], endpoint="dtr_approve")
    @json_endpoint
    def dtr_approve(dtr_id: int):
        record = svc.approve(dtr_id=dtr_id, actor=_staff(), remarks=json_body().get("remarks"))
        return jsonify(record.to_dict())

    @app.route("/api/dtr/<int:dtr_id>/reject", methods=["POST"], endpoint="dtr_reject")
    @json_endpoint
    def dtr_reject(dtr_id: int):
        data = json_body()
        record = svc.reject(
            dtr_id=dtr_id,
            actor=_staff(),
            remarks=data.get("remarks") or "",
            final=optional_bool(data.get("final"), "final", False),
        )
        return jsonify(record.to_dict())
