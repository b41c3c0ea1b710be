from __future__ import annotations

import logging

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from . import settings
from .colors import Color, parse_hex
from .errors import DecodeError, DesignError, ValidationError
from .harmony import harmony
from .kubelka import blend, gradient
from .share import ShareableState, ShareRegistry, decode, encode

log = logging.getLogger(__name__)


def _int_arg(name: str, default: int) -> int:
    raw = request.args.get(name, default)
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer") from None


def _hex_arg(name: str, default: str) -> str:
    # query strings often drop the leading "#"
    raw = (request.args.get(name) or default).strip()
    return parse_hex(raw if raw.startswith("#") else "#" + raw)


# ----------------------------- Flask app ----------------------------------


def create_app(registry: ShareRegistry | None = None) -> Flask:
    app = Flask(__name__)
    logging.basicConfig(level=settings.LOG_LEVEL, format="%(levelname)s: %(message)s")
    shares = registry if registry is not None else ShareRegistry()

    @app.errorhandler(DesignError)
    def design_error(exc: DesignError):
        return jsonify({"error": str(exc)}), 400

    @app.errorhandler(Exception)
    def unexpected(exc: Exception):
        if isinstance(exc, HTTPException):
            return exc
        log.exception("Request failed")
        return jsonify({"error": "internal error"}), 500

    @app.route("/blend")
    def blend_route():
        a = Color(_hex_arg("a", "#FF0000"))
        b = Color(_hex_arg("b", "#0000FF"))
        colors = blend(a, b, _int_arg("n", 1))
        return jsonify([c.hex for c in colors])

    @app.route("/gradient")
    def gradient_route():
        a = _hex_arg("a", "#FF0000")
        b = _hex_arg("b", "#0000FF")
        return jsonify(gradient(a, b, _int_arg("n", 11)))

    @app.route("/harmony")
    def harmony_route():
        base = _hex_arg("base", "#FF0000")
        kind = (request.args.get("kind") or "complementary").lower()
        return jsonify(harmony(base, kind, _int_arg("n", 5)))

    @app.route("/share", methods=["POST"])
    def share_create():
        payload = request.get_json(silent=True)
        if payload is None:
            raise DecodeError("request body must be JSON")
        token = encode(ShareableState.from_dict(payload))
        short_id = shares.put(token)
        return jsonify({"token": token, "id": short_id}), 201

    @app.route("/share/<token>")
    def share_read(token: str):
        return jsonify(decode(token).to_dict())

    @app.route("/s/<short_id>")
    def share_short(short_id: str):
        token = shares.get(short_id)
        if token is None:
            return jsonify({"error": "share link not found"}), 404
        return jsonify(decode(token).to_dict())

    return app


if __name__ == "__main__":
    create_app().run(debug=False, threaded=True)
