from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import csv_response, int_arg, json_payload, section_required, serialize
from ..container import Container
from ..core.enums import Section
from .fee_table import class_fee


def register(app: Flask, container: Container) -> None:
    @app.route("/api/fees/class-fee", methods=["GET"], endpoint="fees_class_fee")
    @section_required(Section.FEES)
    def fees_class_fee():
        class_name = request.args.get("class_name", "")
        return jsonify({"success": True, "class_name": class_name, "fee": class_fee(class_name)})

    @app.route("/api/fees/payments", methods=["POST"], endpoint="fees_add_payment")
    @section_required(Section.FEES)
    def fees_add_payment():
        data = json_payload()
        payment = container.fee_service.add_payment(
            container.term_service.active_context(),
            int_arg(data.get("student_id"), "student_id"),
            data.get("amount"),
        )
        return jsonify({"success": True, "payment": serialize(payment)}), 201

    @app.route("/api/fees/payments/<int:payment_id>", methods=["DELETE"], endpoint="fees_delete_payment")
    @section_required(Section.FEES)
    def fees_delete_payment(payment_id: int):
        container.fee_service.delete_payment(payment_id)
        return jsonify({"success": True, "message": "Deleted"})

    @app.route("/api/fees/students/<int:student_id>/history", methods=["GET"], endpoint="fees_history")
    @section_required(Section.FEES)
    def fees_history(student_id: int):
        rows = container.fee_service.student_history(container.term_service.active_context(), student_id)
        return jsonify({"success": True, "history": serialize(rows)})

    @app.route("/api/fees/broadsheet", methods=["GET"], endpoint="fees_broadsheet")
    @section_required(Section.FEES)
    def fees_broadsheet():
        class_name = request.args.get("class_name") or None
        rows = container.fee_service.class_broadsheet(container.term_service.active_context(), class_name)

        if request.args.get("format") == "csv":
            out = [
                {
                    "name": r.name,
                    "student_number": r.student_number,
                    "class_name": r.class_name,
                    "fee": r.fee,
                    "total_paid": r.total_paid,
                    "remaining": r.remaining,
                    "status": r.status.value,
                    "last_paid_at": r.last_paid_at.strftime("%Y-%m-%d") if r.last_paid_at else "",
                }
                for r in rows
            ]
            label = (class_name or "all").replace(" ", "_")
            return csv_response(
                app,
                rows=out,
                fieldnames=[
                    "name",
                    "student_number",
                    "class_name",
                    "fee",
                    "total_paid",
                    "remaining",
                    "status",
                    "last_paid_at",
                ],
                filename=f"fees_{label}.csv",
            )

        return jsonify({"success": True, "rows": serialize(rows)})

    @app.route("/api/fees/debtors", methods=["GET"], endpoint="fees_debtors")
    @section_required(Section.FEES)
    def fees_debtors():
        rows = container.fee_service.debtors(
            container.term_service.active_context(),
            request.args.get("class_name") or None,
        )
        return jsonify({"success": True, "rows": serialize(rows)})

    @app.route("/api/fees/unpaid", methods=["GET"], endpoint="fees_unpaid")
    @section_required(Section.FEES)
    def fees_unpaid():
        rows = container.fee_service.unpaid_students(
            container.term_service.active_context(),
            request.args.get("class_name") or None,
        )
        return jsonify({"success": True, "rows": serialize(rows)})

    @app.route("/api/fees/overview", methods=["GET"], endpoint="fees_overview")
    @section_required(Section.FEES)
    def fees_overview():
        overview = container.fee_service.fee_overview(container.term_service.active_context())
        return jsonify({"success": True, "overview": serialize(overview)})
