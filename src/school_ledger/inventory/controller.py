from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import int_arg, json_payload, section_required, serialize
from ..container import Container
from ..core.enums import Section


def register(app: Flask, container: Container) -> None:
    def _parent(data: dict):
        raw = data.get("parent_id")
        return int_arg(raw, "parent_id") if raw not in (None, "") else None

    @app.route("/api/inventory/items", methods=["GET"], endpoint="inventory_items")
    @section_required(Section.INVENTORY)
    def inventory_items():
        return jsonify({"success": True, "items": serialize(container.inventory_service.list_tree())})

    @app.route("/api/inventory/stats", methods=["GET"], endpoint="inventory_stats")
    @section_required(Section.INVENTORY)
    def inventory_stats():
        return jsonify({"success": True, "stats": serialize(container.inventory_service.inventory_stats())})

    @app.route("/api/inventory/folders", methods=["POST"], endpoint="inventory_create_folder")
    @section_required(Section.INVENTORY)
    def inventory_create_folder():
        data = json_payload()
        folder_id = container.inventory_service.create_folder(data.get("name", ""), parent_id=_parent(data))
        return jsonify({"success": True, "folder_id": folder_id}), 201

    @app.route("/api/inventory/folders/<int:folder_id>", methods=["DELETE"], endpoint="inventory_delete_folder")
    @section_required(Section.INVENTORY)
    def inventory_delete_folder(folder_id: int):
        container.inventory_service.delete_folder(folder_id)
        return jsonify({"success": True, "message": "Folder deleted"})

    @app.route("/api/inventory/items", methods=["POST"], endpoint="inventory_create_item")
    @section_required(Section.INVENTORY)
    def inventory_create_item():
        data = json_payload()
        item_id = container.inventory_service.create_item(
            name=data.get("name", ""),
            parent_id=_parent(data),
            category=data.get("category", ""),
            description=data.get("description", ""),
            size=data.get("size", ""),
            stock_by_level=data.get("stock_by_level"),
            price_by_level=data.get("price_by_level"),
        )
        return jsonify({"success": True, "item_id": item_id}), 201

    @app.route("/api/inventory/items/<int:item_id>", methods=["PUT"], endpoint="inventory_update_item")
    @section_required(Section.INVENTORY)
    def inventory_update_item(item_id: int):
        data = json_payload()
        item = container.inventory_service.update_item(
            item_id,
            name=data.get("name", ""),
            parent_id=_parent(data),
            category=data.get("category", ""),
            description=data.get("description", ""),
            size=data.get("size", ""),
            stock_by_level=data.get("stock_by_level"),
            price_by_level=data.get("price_by_level"),
        )
        return jsonify({"success": True, "item": serialize(item)})

    @app.route("/api/inventory/items/<int:item_id>", methods=["DELETE"], endpoint="inventory_delete_item")
    @section_required(Section.INVENTORY)
    def inventory_delete_item(item_id: int):
        container.inventory_service.delete_item(item_id)
        return jsonify({"success": True, "message": "Item deleted"})

    @app.route("/api/inventory/checkout", methods=["POST"], endpoint="inventory_checkout")
    @section_required(Section.INVENTORY)
    def inventory_checkout():
        data = json_payload()
        tx = container.inventory_service.check_out(
            container.term_service.active_context(),
            item_id=int_arg(data.get("item_id"), "item_id"),
            level=data.get("level"),
            quantity=data.get("quantity", 1),
            student_id=int_arg(data.get("student_id"), "student_id"),
        )
        return jsonify({"success": True, "transaction": serialize(tx)}), 201

    @app.route("/api/inventory/transactions", methods=["GET"], endpoint="inventory_transactions")
    @section_required(Section.INVENTORY)
    def inventory_transactions():
        txs = container.inventory_service.transactions_for_term(container.term_service.active_context())
        return jsonify({"success": True, "transactions": serialize(txs)})

    @app.route(
        "/api/inventory/transactions/<int:transaction_id>/pay",
        methods=["POST"],
        endpoint="inventory_mark_paid",
    )
    @section_required(Section.INVENTORY)
    def inventory_mark_paid(transaction_id: int):
        tx = container.inventory_service.mark_paid(transaction_id)
        return jsonify({"success": True, "transaction": serialize(tx)})

    @app.route(
        "/api/inventory/transactions/<int:transaction_id>/return",
        methods=["POST"],
        endpoint="inventory_return",
    )
    @section_required(Section.INVENTORY)
    def inventory_return(transaction_id: int):
        refund = container.inventory_service.return_item(transaction_id)
        return jsonify({"success": True, "message": "Returned", "refund": serialize(refund)})

    @app.route("/api/inventory/refunds", methods=["GET"], endpoint="inventory_refunds")
    @section_required(Section.INVENTORY)
    def inventory_refunds():
        refunds = container.inventory_service.refunds_for_term(container.term_service.active_context())
        return jsonify({"success": True, "refunds": serialize(refunds)})

    @app.route(
        "/api/inventory/students/<int:student_id>/holdings",
        methods=["GET"],
        endpoint="inventory_student_holdings",
    )
    @section_required(Section.INVENTORY)
    def inventory_student_holdings(student_id: int):
        holdings = container.inventory_service.holdings_for_student(student_id)
        return jsonify({"success": True, "holdings": serialize(holdings)})

    @app.route("/api/inventory/holdings/<int:holding_id>", methods=["DELETE"], endpoint="inventory_delete_holding")
    @section_required(Section.INVENTORY)
    def inventory_delete_holding(holding_id: int):
        refund = container.inventory_service.delete_holding(holding_id, container.term_service.active_context())
        return jsonify({"success": True, "message": "Student inventory deleted", "refund": serialize(refund)})
