"""Service-layer helpers shared by the HTTP blueprints."""

from .request_parser import parse_json_payload
from .response_builder import build_json_response, build_svg_response

__all__ = [
    "build_json_response",
    "build_svg_response",
    "parse_json_payload",
]
