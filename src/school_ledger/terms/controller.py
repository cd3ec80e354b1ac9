from __future__ import annotations

from flask import Flask, jsonify

from ..common.datetime_utils import now_local
from ..common.http import section_required, serialize
from ..container import Container
from ..permissions.capability import DASHBOARD, TERM_ROLLOVER


def register(app: Flask, container: Container) -> None:
    @app.route("/api/terms", methods=["GET"], endpoint="terms_list")
    @section_required(DASHBOARD)
    def terms_list():
        return jsonify({"success": True, "terms": serialize(container.term_service.list_terms())})

    @app.route("/api/terms/active", methods=["GET"], endpoint="terms_active")
    @section_required(DASHBOARD)
    def terms_active():
        return jsonify({"success": True, "term": serialize(container.term_service.active_context())})

    @app.route("/api/terms/ensure", methods=["POST"], endpoint="terms_ensure")
    @section_required(DASHBOARD)
    def terms_ensure():
        return jsonify({"success": True, "term": serialize(container.term_service.ensure_active_term())})

    @app.route("/api/terms/<int:term_id>/snapshot", methods=["GET"], endpoint="terms_snapshot")
    @section_required(TERM_ROLLOVER)
    def terms_snapshot(term_id: int):
        return jsonify({"success": True, "snapshot": serialize(container.term_service.snapshot(term_id))})

    @app.route("/api/terms/<int:term_id>/report.html", methods=["GET"], endpoint="terms_report_html")
    @section_required(TERM_ROLLOVER)
    def terms_report_html(term_id: int):
        html = container.report_renderer.render(container.term_service.snapshot(term_id), now=now_local())
        return app.response_class(html, mimetype="text/html")

    @app.route("/api/terms/rollover", methods=["POST"], endpoint="terms_rollover")
    @section_required(TERM_ROLLOVER)
    def terms_rollover():
        result = container.term_service.close_and_start_new(container.report_renderer)
        return jsonify(
            {
                "success": True,
                "message": f"Term closed. New term: {result.new_term.term_name}",
                "closed_term_id": result.closed_term_id,
                "term": serialize(result.new_term),
                "snapshot": serialize(result.snapshot),
                "report_html": result.report_html,
            }
        )
