"""
app/__init__.py — SplitBill app factory.

create_app(config_name) builds a fresh app per call; importing this module
has no side effects, so each test session gets its own isolated instance.

Setup order inside create_app:
  1. config class from config_by_name (production is validated fail-fast)
  2. log levels for app.logger and the splitbill.* module loggers
  3. splits, balances and health blueprints, all under /api/v1
  4. error handlers: AppError, marshmallow ValidationError, anything else
  5. CORS response headers

Decimal amounts leave the app as JSON strings, never as JS numbers.

The app is stateless: there is no database and no session. Every request
carries the data it is computed over.
"""

from __future__ import annotations

import logging
import traceback
from decimal import Decimal

from flask import Flask, jsonify, request
from flask.json.provider import DefaultJSONProvider
from marshmallow import ValidationError

from splitbill.config import active_config_name, config_by_name, validate_production_config


# ── Custom JSON provider ───────────────────────────────────────────────────

class DecimalJSONProvider(DefaultJSONProvider):
    """
    Serialises Decimal as its exact string form: Decimal("33.34") → "33.34".
    """

    # Participant order is meaningful (remainder absorption); keep it.
    sort_keys = False

    def default(self, o):
        if isinstance(o, Decimal):
            return str(o)
        return super().default(o)


# ── Application factory ────────────────────────────────────────────────────

def create_app(config_name: str | None = None) -> Flask:
    """
    Builds the SplitBill Flask app for the named environment.

    Args:
        config_name: "development", "testing" or "production". When omitted,
                     FLASK_ENV decides; unknown names fall back to development.
    """
    app = Flask(__name__)
    app.json_provider_class = DecimalJSONProvider
    app.json = DecimalJSONProvider(app)

    # ── Configuration ──────────────────────────────────────────────────────
    config_name = active_config_name(config_name)
    config_class = config_by_name[config_name]
    app.config.from_object(config_class)

    if config_name == "production":
        validate_production_config(app)  # raises ValueError if misconfigured

    _configure_logging(app)

    # ── Blueprints ─────────────────────────────────────────────────────────
    _register_blueprints(app)

    # ── Error handlers ─────────────────────────────────────────────────────
    _register_error_handlers(app)
    _register_cors(app)

    app.logger.debug("SplitBill app created with %s config", config_class.ENV_NAME)
    return app


def _configure_logging(app: Flask) -> None:
    """
    Applies LOG_LEVEL to app.logger and to the `splitbill` package logger.

    No handler is attached here. Service loggers (splitbill.app.services.*)
    sit under app.logger ("splitbill.app"), so their records reach Flask's
    default handler, or the host's root handlers when it configures logging.
    """
    level = app.config["LOG_LEVEL"]
    app.logger.setLevel(level)
    logging.getLogger("splitbill").setLevel(level)


def _register_blueprints(app: Flask) -> None:
    """
    Mounts the splits, balances and health blueprints under /api/v1.
    """
    from splitbill.app.routes.balances import balances_bp
    from splitbill.app.routes.health import health_bp
    from splitbill.app.routes.splits import splits_bp

    app.register_blueprint(splits_bp,   url_prefix="/api/v1/splits")
    app.register_blueprint(balances_bp, url_prefix="/api/v1/balances")
    app.register_blueprint(health_bp,   url_prefix="/api/v1/health")


def _first_error(messages) -> tuple[str | None, str]:
    """
    Walks marshmallow's nested messages to the first leaf error.

    Returns (dotted field path, message). Example:
        {"expenses": {0: {"amount": ["INVALID_AMOUNT_PRECISION"]}}}
        → ("expenses.0.amount", "INVALID_AMOUNT_PRECISION")
    """
    if isinstance(messages, dict):
        for key, value in messages.items():
            path, message = _first_error(value)
            if key == "_schema":
                return path, message
            return (f"{key}.{path}" if path else str(key)), message
        return None, "Invalid input."
    if isinstance(messages, list):
        if not messages:
            return None, "Invalid value."
        return _first_error(messages[0])
    return None, str(messages)


def _register_error_handlers(app: Flask) -> None:
    """
    Registers global error handlers.

    Handlers:
      AppError        → structured JSON error envelope with the correct HTTP status
      ValidationError → marshmallow schema errors formatted as MISSING_FIELD /
                        INVALID_FIELD / registered-code responses (400)
      Exception       → generic INTERNAL_ERROR (500); full traceback logged

    Stack traces never leave the server.
    """
    from splitbill.app.errors import AppError, ErrorCode

    registered_codes = {
        value for name, value in vars(ErrorCode).items() if not name.startswith("_")
    }

    @app.errorhandler(AppError)
    def handle_app_error(error: AppError):
        """
        Converts an AppError raised anywhere in the request lifecycle into
        the standard error envelope. Rejected input is not a system fault,
        so only 5xx errors are logged at ERROR.
        """
        if error.http_status >= 500:
            app.logger.error("%r on %s %s", error, request.method, request.path)
        else:
            app.logger.info("Rejected %s %s: %s", request.method, request.path, error.code)
        return jsonify(error.to_dict()), error.http_status

    @app.errorhandler(ValidationError)
    def handle_validation_error(error: ValidationError):
        """
        Converts marshmallow ValidationError into the standard error envelope.

        Returns the FIRST error only ("one error, not many"). If the message
        is a registered ErrorCode constant it is used as the code; otherwise
        MISSING_FIELD or INVALID_FIELD is chosen from the message text.
        """
        field, raw_message = _first_error(error.messages)

        if raw_message in registered_codes:
            code = raw_message
            message = _code_to_message(code)
        elif raw_message.startswith("Missing data for required field"):
            code = ErrorCode.MISSING_FIELD
            message = raw_message
        else:
            code = ErrorCode.INVALID_FIELD
            message = raw_message

        response_body = {"error": {"code": code, "message": message}}
        if field is not None:
            response_body["error"]["field"] = field

        app.logger.info("Rejected %s %s: %s", request.method, request.path, code)
        return jsonify(response_body), 400

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        """
        Catches all unhandled exceptions and returns a generic 500 response.
        HTTP errors raised by Flask itself (404, 405, 413) keep their status.
        """
        from werkzeug.exceptions import HTTPException

        if isinstance(error, HTTPException):
            return jsonify({
                "error": {
                    "code": ErrorCode.INVALID_FIELD if error.code == 400 else error.name.upper().replace(" ", "_"),
                    "message": error.description,
                }
            }), error.code

        app.logger.error(
            "Unhandled exception: %s\n%s",
            str(error),
            traceback.format_exc(),
        )
        return jsonify({
            "error": {
                "code": ErrorCode.INTERNAL_ERROR,
                "message": "An unexpected error occurred. Please try again later.",
            }
        }), 500


def _register_cors(app: Flask) -> None:
    """
    Adds CORS headers for origins listed in CORS_ALLOWED_ORIGINS.

    "*" reflects whatever Origin the browser sent (development and testing).
    """

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed = app.config.get("CORS_ALLOWED_ORIGINS") or ()

        if origin and ("*" in allowed or origin in allowed):
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
            response.headers["Access-Control-Allow-Headers"] = "Content-Type"

        return response


def _code_to_message(code: str) -> str:
    """
    Returns a human-readable default message for a known error code.
    Used when a ValidationError message IS the error code constant itself
    (e.g. INVALID_AMOUNT_PRECISION raised as ValidationError in schemas).
    """
    _messages = {
        "INVALID_AMOUNT_PRECISION": "Amount must have at most 2 decimal places.",
        "INVALID_SPLIT_METHOD": "split_method must be 'equal', 'percentage' or 'exact'.",
        "SELF_SETTLEMENT": "A settlement cannot be paid to the same member who paid it.",
    }
    return _messages.get(code, "Invalid input.")
