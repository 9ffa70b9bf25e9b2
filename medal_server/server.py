import logging
import os
import re
from collections import namedtuple

from flask import Flask, Response, abort, request, send_from_directory
from werkzeug.security import safe_join

from .config import ServeConfig
from .decompiler import DEFAULT_ENCODE_KEY, DecompilerError, LifterDecompiler

logger = logging.getLogger(__name__)

MIN_BYTECODE_LENGTH = 4
CORS_MAX_AGE = 3600
FALLBACK_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]
ENCODE_KEY_PATTERN = re.compile(r"\+?[0-9]{1,3}")

Route = namedtuple("Route", "rule endpoint methods enabled view label")


class AppError(Exception):
    status_code = 500

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class BadRequest(AppError):
    status_code = 400


class InternalError(AppError):
    status_code = 500


def classify_error(error):
    """Map an AppError to ``(status_code, message)``.

    Only internal errors are logged; client errors are the caller's problem.
    """
    if isinstance(error, InternalError):
        logger.error(error.message)
    return error.status_code, error.message


def validate_bytecode(payload):
    if not payload:
        raise BadRequest("No bytecode provided")
    if len(payload) < MIN_BYTECODE_LENGTH:
        raise BadRequest(f"Bytecode too short (minimum {MIN_BYTECODE_LENGTH} bytes)")


def parse_encode_key(value):
    if value is None:
        return DEFAULT_ENCODE_KEY
    # plain ASCII decimal, optionally signed with "+"
    if not ENCODE_KEY_PATTERN.fullmatch(value) or int(value) > 255:
        raise BadRequest(f"Invalid encode_key {value!r} (expected 0-255)")
    return int(value)


def run_decompiler(decompiler, payload, encode_key, legacy):
    logger.info("Decompiling %d bytes (encode_key=%d, legacy=%s)", len(payload), encode_key, legacy)
    try:
        result = decompiler.decompile(payload, encode_key, legacy)
    except DecompilerError as e:
        raise InternalError(str(e)) from e

    if not result or not result.strip():
        raise InternalError("Empty decompilation result")
    return result


def text_response(body, status=200):
    return Response(body, status=status, mimetype="text/plain")


def apply_cors(response):
    response.headers["Access-Control-Allow-Origin"] = "*"
    response.headers["Access-Control-Allow-Methods"] = "*"
    response.headers["Access-Control-Allow-Headers"] = "*"
    response.headers["Access-Control-Max-Age"] = str(CORS_MAX_AGE)
    return response


def create_app(config=None, decompiler=None):
    config = config or ServeConfig.from_env()
    if decompiler is None:
        decompiler = LifterDecompiler(config.luau_lifter, config.lua51_lifter, config.lifter_timeout)

    app = Flask(__name__, static_folder=None)
    app.config["MAX_CONTENT_LENGTH"] = config.max_payload_bytes
    app.config["SERVE_CONFIG"] = config
    asset_root = os.path.abspath(config.asset_dir)

    def health():
        return text_response("OK")

    def decompile_luau():
        payload = request.get_data()
        validate_bytecode(payload)
        encode_key = parse_encode_key(request.args.get("encode_key"))
        return text_response(run_decompiler(decompiler, payload, encode_key, legacy=False))

    def decompile_lua51():
        payload = request.get_data()
        validate_bytecode(payload)
        return text_response(run_decompiler(decompiler, payload, DEFAULT_ENCODE_KEY, legacy=True))

    def serve_asset(path):
        if request.method not in ("GET", "HEAD"):
            abort(404)

        if path:
            target = safe_join(asset_root, path)
            if target is not None and os.path.isfile(target):
                return send_from_directory(asset_root, path)
            # a missing file with an extension is a real 404, anything else
            # is left to the client-side router in the default document
            if os.path.splitext(path.rstrip("/"))[1]:
                abort(404)

        index = safe_join(asset_root, config.index_file)
        if index is None or not os.path.isfile(index):
            abort(404)
        return send_from_directory(asset_root, config.index_file)

    routes = [
        Route("/health", "health", ["GET"], True, health, None),
        Route("/luau/decompile", "decompile_luau", ["POST"], config.luau, decompile_luau, "Luau"),
        Route("/lua51/decompile", "decompile_lua51", ["POST"], config.lua51, decompile_lua51, "Lua 5.1"),
    ]
    for route in routes:
        if not route.enabled:
            continue
        app.add_url_rule(route.rule, route.endpoint, route.view, methods=route.methods)
        if route.label:
            logger.info("%s endpoint active: %s", route.label, route.rule)

    app.add_url_rule("/", "assets", serve_asset, defaults={"path": ""}, methods=FALLBACK_METHODS)
    app.add_url_rule("/<path:path>", "assets", serve_asset, methods=FALLBACK_METHODS)

    @app.errorhandler(AppError)
    def handle_app_error(error):
        status, message = classify_error(error)
        return text_response(message, status)

    @app.errorhandler(413)
    def handle_too_large(error):
        return text_response(f"Payload too large (maximum {config.max_payload_bytes} bytes)", 413)

    app.after_request(apply_cors)
    return app
