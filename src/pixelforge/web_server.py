"""
Web server for pixelforge.
Serves the browser interface and the image generation endpoint.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

from flask import Flask, jsonify, request
from flask_cors import CORS
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

from pixelforge.config import Settings, settings as default_settings
from pixelforge.core import GeneratorFactory, Sleep, generate_image_core
from pixelforge.errors import UNKNOWN_CREDITS, InvalidInput, PixelforgeError, UnexpectedError
from pixelforge.models import GenerationRequest
from pixelforge.providers.stability_provider import StabilityProvider

logger = logging.getLogger(__name__)

WEB_INTERFACE = Path(__file__).parent / "web_interface.html"


def _failure(error: PixelforgeError):
    return jsonify(error.to_envelope()), error.status_code


def _request_failed() -> UnexpectedError:
    return UnexpectedError(
        "Failed to process request",
        credits_used="0",
        remaining_credits=UNKNOWN_CREDITS,
    )


def _parse_request() -> GenerationRequest:
    try:
        data = request.get_json(force=True)
    except HTTPException as e:
        raise _request_failed() from e
    if not isinstance(data, dict):
        raise _request_failed()
    try:
        return GenerationRequest.model_validate(data)
    except ValidationError as e:
        raise InvalidInput("Prompt is required") from e


def create_app(
    settings: Optional[Settings] = None,
    generator_factory: Optional[GeneratorFactory] = None,
    sleep: Optional[Sleep] = None,
) -> Flask:
    if settings is None:
        settings = default_settings
    generator_factory = generator_factory or StabilityProvider
    sleep = sleep or asyncio.sleep

    app = Flask(__name__)
    CORS(app)
    app.config["MAX_CONTENT_LENGTH"] = 1024 * 1024
    app.extensions["pixelforge_settings"] = settings

    @app.route("/")
    def index():
        """Serve the browser interface"""
        try:
            return WEB_INTERFACE.read_text(encoding="utf-8")
        except FileNotFoundError:
            return "Web interface file not found.", 404

    @app.route("/api/health")
    def health():
        return jsonify({"status": "ok"})

    @app.route("/api/engine")
    def get_engine():
        """Report the upstream configuration without exposing the key"""
        return jsonify(
            {
                "engine": settings.engine_id,
                "api_host": settings.api_host,
                "api_key_set": settings.has_api_key,
                "max_retries": settings.max_retries,
                "backoff_base_seconds": settings.backoff_base_seconds,
                "request_timeout_seconds": settings.request_timeout_seconds,
            }
        )

    @app.route("/api/image-generator", methods=["POST"])
    def generate_image():
        """Generate one image for the posted prompt"""
        try:
            generation_request = _parse_request()
            logger.debug(f"Prompt received: {generation_request.prompt!r}")
            result = asyncio.run(
                generate_image_core(
                    generation_request.prompt,
                    settings,
                    generator_factory=generator_factory,
                    sleep=sleep,
                )
            )
            return jsonify(result.model_dump(by_alias=True, exclude_none=True))
        except PixelforgeError as e:
            logger.warning(f"Generation failed ({e.status_code}): {e.message}")
            return _failure(e)
        except Exception:
            logger.exception("Error generating image")
            return _failure(_request_failed())

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({"error": "Endpoint not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({"error": "Method not allowed"}), 405

    @app.errorhandler(500)
    def internal_error(error):
        return jsonify({"error": "Internal server error"}), 500

    return app


def run(settings: Optional[Settings] = None):
    if settings is None:
        settings = default_settings
    app = create_app(settings)
    logger.info(f"Engine: {settings.engine_id} (API key set: {settings.has_api_key})")
    logger.info(f"Web interface available at http://localhost:{settings.port}")
    app.run(host=settings.host, port=settings.port, debug=settings.debug, threaded=True)
