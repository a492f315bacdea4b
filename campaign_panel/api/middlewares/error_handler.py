# campaign_panel/api/middlewares/error_handler.py
from flask import Flask, jsonify
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

from campaign_panel.config.settings import settings
from campaign_panel.core.exceptions import AppError
from campaign_panel.core.logging import get_logger

logger = get_logger(__name__)


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(AppError)
    def handle_app_error(err: AppError):
        return jsonify({"error": str(err), "kind": err.kind}), err.status_code

    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        details = [
            {"field": ".".join(str(p) for p in e["loc"]), "message": e["msg"]}
            for e in err.errors(include_url=False, include_context=False, include_input=False)
        ]
        return jsonify({"error": "Validation error", "kind": "validation_error", "details": details}), 400

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        kind = "not_found" if err.code == 404 else "http_error"
        return jsonify({"error": err.description, "kind": kind}), err.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        logger.exception("unhandled_error", error=err.__class__.__name__)

        if settings.debug:
            return jsonify({"error": str(err), "kind": "internal_error"}), 500

        return jsonify({"error": "Internal server error", "kind": "internal_error"}), 500
