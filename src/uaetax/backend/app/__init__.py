"""Application factory for the UAE tax engine HTTP surface."""

import logging
import os
from warnings import warn

from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.exceptions import BadRequest

from uaetax.backend.config.validator import ensure_valid_configuration

from .errors import ConfigurationError, EncodingError, InvalidInput, ValidationFailure
from .http import problem_response, validation_problem
from .routes import register_routes
from .routes.config import get_configuration_metadata

_LOGGER = logging.getLogger(__name__)


def _parse_allowed_origins(raw: str | None) -> set[str]:
    """Convert an environment variable into a normalised set of origins."""

    if not raw:
        return set()

    return {origin.strip() for origin in raw.split(",") if origin.strip()}


def create_app() -> Flask:
    """Create and configure the Flask application instance.

    Every rate table declared in the manifest is loaded and checked first; a
    broken table raises ``ConfigurationError`` and no application is built.
    """

    ensure_valid_configuration()

    app = Flask(__name__)

    allowed_origins = _parse_allowed_origins(os.getenv("UAETAX_ALLOWED_ORIGINS"))

    if not allowed_origins:
        warn(
            "No allowed origins configured; cross-origin requests will be rejected.",
            stacklevel=1,
        )

    CORS(
        app,
        resources={r"/api/*": {"origins": sorted(allowed_origins)}},
        supports_credentials=False,
        methods=["GET", "OPTIONS", "POST"],
        allow_headers=["Content-Type"],
    )

    register_routes(app)

    @app.route("/health", methods=["GET"])
    def health_check():
        """Simple health check endpoint for infrastructure monitoring."""

        payload = {"status": "ok", **get_configuration_metadata()}
        return jsonify(payload)

    @app.errorhandler(BadRequest)
    def handle_bad_request(error: BadRequest):
        """Return consistent JSON responses for malformed payloads."""

        message = error.description or "Invalid request"
        return problem_response("bad_request", status=400, message=message).to_response()

    @app.errorhandler(InvalidInput)
    def handle_invalid_input(error: InvalidInput):
        extra = {"field": error.field} if error.field else {}
        return problem_response(
            "invalid_input", status=400, message=str(error), **extra
        ).to_response()

    @app.errorhandler(ValidationFailure)
    def handle_validation_failure(error: ValidationFailure):
        return validation_problem(error.issues).to_response()

    @app.errorhandler(EncodingError)
    def handle_encoding_error(error: EncodingError):
        return problem_response(
            "encoding_error", status=422, message=str(error)
        ).to_response()

    @app.errorhandler(FileNotFoundError)
    def handle_unknown_rates(error: FileNotFoundError):
        return problem_response("not_found", status=404, message=str(error)).to_response()

    @app.errorhandler(ConfigurationError)
    def handle_configuration_error(error: ConfigurationError):
        _LOGGER.error("Rate configuration is unusable: %s", error)
        return problem_response(
            "configuration_error", status=500, message="Rate configuration is unavailable"
        ).to_response()

    @app.errorhandler(ValueError)
    def handle_value_error(error: ValueError):
        """Gracefully surface domain validation errors to clients."""

        return problem_response(
            "validation_error", status=400, message=str(error)
        ).to_response()

    return app
