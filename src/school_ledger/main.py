from __future__ import annotations

import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from .attendance.controller import register as register_attendance
from .config import get_settings_module
from .container import Container, build_container
from .core.exceptions import (
    AuthorizationError,
    DomainError,
    InsufficientStockError,
    NotEmptyError,
    NotFoundError,
    OverpaymentError,
)
from .database.bootstrap import apply_schema, list_tables
from .directory.controller import register as register_directory
from .expenses.controller import register as register_expenses
from .fees.controller import register as register_fees
from .inventory.controller import register as register_inventory
from .reports.renderer import HtmlTermReportRenderer
from .terms.controller import register as register_terms

logger = logging.getLogger(__name__)


def _status_for(error: DomainError) -> int:
    if isinstance(error, AuthorizationError):
        return 403
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, NotEmptyError):
        return 409
    return 400


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(error: DomainError):
        body = {"success": False, "message": str(error)}
        if isinstance(error, OverpaymentError):
            body["remaining"] = error.remaining
        if isinstance(error, InsufficientStockError):
            body["available"] = error.available
        return jsonify(body), _status_for(error)

    @app.errorhandler(Exception)
    def handle_unexpected(error: Exception):
        if isinstance(error, HTTPException):
            return jsonify({"success": False, "message": error.description}), error.code
        logger.exception("unhandled error")
        return jsonify({"success": False, "message": "Internal error"}), 500


def create_app(container: Optional[Container] = None, *, settings_module: Optional[str] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if container is None:
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))

        renderer = HtmlTermReportRenderer(
            school_name=getattr(settings, "SCHOOL_NAME"),
            prepared_by=getattr(settings, "REPORT_PREPARED_BY"),
            approved_by=getattr(settings, "REPORT_APPROVED_BY"),
        )
        container = build_container(db_config=db_config, renderer=renderer)
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

    app.extensions["school_ledger"] = container
    _register_error_handlers(app)

    register_terms(app, container)
    register_directory(app, container)
    register_attendance(app, container)
    register_fees(app, container)
    register_inventory(app, container)
    register_expenses(app, container)

    return app
