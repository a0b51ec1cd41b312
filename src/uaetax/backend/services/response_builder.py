"""Utilities for serialising successful responses."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Tuple

from flask import Response, jsonify

ResponseTuple = Tuple[Any, int]

SVG_MIMETYPE = "image/svg+xml"


def build_json_response(payload: Mapping[str, Any], status: int = 200) -> ResponseTuple:
    """Return a Flask JSON response for ``payload``."""

    return jsonify(payload), status


def build_svg_response(image: bytes) -> Response:
    return Response(image, status=200, mimetype=SVG_MIMETYPE)
