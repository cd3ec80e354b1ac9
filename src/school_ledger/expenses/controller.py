from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import normalized_day
from ..common.http import date_arg, json_payload, section_required, serialize
from ..container import Container
from ..core.enums import Section
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    def _fields(data: dict) -> dict:
        date_value = date_arg(data.get("date"), "date")
        return dict(
            name=data.get("name", ""),
            category=data.get("category", ""),
            description=data.get("description", ""),
            quantity=data.get("quantity", 1),
            unit_price=data.get("unit_price", 0),
            total=data.get("total") if data.get("total") not in (None, "") else None,
            expense_date=normalized_day(date_value) if date_value else None,
        )

    @app.route("/api/expenses", methods=["GET"], endpoint="expenses_list")
    @section_required(Section.EXPENSES)
    def expenses_list():
        term = container.term_service.active_context()
        expenses = container.expense_service.list_for_term(term)
        return jsonify(
            {
                "success": True,
                "expenses": serialize(expenses),
                "total": container.expense_service.total_for_term(term),
            }
        )

    @app.route("/api/expenses", methods=["POST"], endpoint="expenses_add")
    @section_required(Section.EXPENSES)
    def expenses_add():
        expense = container.expense_service.add_expense(container.term_service.active_context(), **_fields(json_payload()))
        return jsonify({"success": True, "expense": serialize(expense)}), 201

    @app.route("/api/expenses/<int:expense_id>", methods=["PUT"], endpoint="expenses_update")
    @section_required(Section.EXPENSES)
    def expenses_update(expense_id: int):
        expense = container.expense_service.update_expense(expense_id, **_fields(json_payload()))
        return jsonify({"success": True, "expense": serialize(expense)})

    @app.route("/api/expenses/<int:expense_id>", methods=["DELETE"], endpoint="expenses_delete")
    @section_required(Section.EXPENSES)
    def expenses_delete(expense_id: int):
        container.expense_service.delete_expense(expense_id)
        return jsonify({"success": True, "message": "Deleted"})

    @app.route("/api/expenses/total", methods=["GET"], endpoint="expenses_total")
    @section_required(Section.EXPENSES)
    def expenses_total():
        start = date_arg(request.args.get("start"), "start")
        end = date_arg(request.args.get("end"), "end")
        if start is None or end is None:
            raise ValidationError("start and end are required")
        total = container.expense_service.total_between(container.term_service.active_context(), start, end)
        return jsonify({"success": True, "total": total})
