"""Helpers for extracting JSON request bodies."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from flask import Request
from werkzeug.exceptions import BadRequest


def parse_json_payload(req: Request) -> dict[str, Any]:
    """Extract a JSON object from ``req`` or raise ``BadRequest``."""

    data = req.get_json(silent=True)
    if data is None:
        raise BadRequest("Request body must be valid JSON")
    if not isinstance(data, Mapping):
        raise BadRequest("Request JSON must be an object")

    return dict(data)
