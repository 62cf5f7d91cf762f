from __future__ import annotations

import logging
from typing import Any, Optional

from flask import Flask, jsonify, request, send_from_directory
from flask_cors import CORS

from .config import AppConfig, load_config
from .models import (
    INTERNAL_ERROR_MESSAGE,
    MISSING_FIELDS_MESSAGE,
    NOT_FOUND_MESSAGE,
    ROLL_NUMBER_FORMAT_MESSAGE,
    ErrorResponse,
    ResultRequest,
    is_valid_roll_number,
)
from .portal.client import ResultPortalClient


logger = logging.getLogger(__name__)

CLIENT_EXTENSION_KEY = "result_portal_client"


class PayloadError(ValueError):
    """
    Raised when the inbound payload fails validation. The message is safe to return to the caller.
    """


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    # JSON numbers are accepted by their decimal form (`123456` -> "123456").
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return ""


def parse_result_request(payload: Any) -> ResultRequest:
    data = payload if isinstance(payload, dict) else {}

    course = _as_text(data.get("crsselect"))
    year = _as_text(data.get("yrselect"))
    roll_number = _as_text(data.get("textrollnum"))

    if not course or not year or roll_number is None:
        raise PayloadError(MISSING_FIELDS_MESSAGE)
    if not is_valid_roll_number(roll_number):
        raise PayloadError(ROLL_NUMBER_FORMAT_MESSAGE)

    return ResultRequest(course=course, year=year, roll_number=roll_number)


def _error(message: str, status: int = 200):
    return jsonify(ErrorResponse(error=message).model_dump()), status


def create_app(
    config: Optional[AppConfig] = None,
    *,
    client: Optional[ResultPortalClient] = None,
) -> Flask:
    cfg = config or load_config()
    static_dir = cfg.server.resolved_static_dir()

    app = Flask(__name__, static_folder=str(static_dir), static_url_path="")
    origins = cfg.server.cors_origins
    # Answer `*` rather than echoing the caller's Origin when every origin is allowed.
    CORS(app, origins=origins, send_wildcard="*" in origins)

    app.extensions[CLIENT_EXTENSION_KEY] = client or ResultPortalClient(config=cfg.portal)

    @app.get("/")
    def index():
        return send_from_directory(static_dir, "index.html")

    @app.get("/health")
    def health():
        return jsonify({"status": "ok"})

    @app.post("/get-result")
    def get_result():
        try:
            lookup = parse_result_request(request.get_json(silent=True))
        except PayloadError as e:
            return _error(str(e), 400)

        portal: ResultPortalClient = app.extensions[CLIENT_EXTENSION_KEY]
        try:
            record = portal.fetch_result(lookup)
        except Exception:
            logger.exception(
                "Result lookup failed (course=%s, year=%s)",
                lookup.course,
                lookup.year,
            )
            return _error(INTERNAL_ERROR_MESSAGE, 500)

        if not record.found:
            logger.info("No result for course=%s year=%s", lookup.course, lookup.year)
            return _error(NOT_FOUND_MESSAGE)

        return jsonify(record.model_dump())

    return app


def run_server(config: AppConfig, *, host: Optional[str] = None, port: Optional[int] = None) -> None:
    app = create_app(config)
    bind_host = host or config.server.host
    bind_port = port or config.server.port
    logger.info("Server running at http://%s:%d", bind_host, bind_port)
    # Each request thread starts its own Playwright driver; nothing is shared between them.
    app.run(host=bind_host, port=bind_port, threaded=True, use_reloader=False)
