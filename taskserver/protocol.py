"""HTTP/1.0 wire helpers: request-line parsing, route parsing and responses."""

from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Response:
    """A complete HTTP/1.0 response with a single body."""

    status: str
    body: bytes
    content_type: str = "text/plain"

    def to_bytes(self) -> bytes:
        """Serialise the status line, headers and body for the wire."""
        header = (
            f"HTTP/1.0 {self.status}\r\n"
            f"Content-Type: {self.content_type}\r\n"
            f"Content-Length: {len(self.body)}\r\n"
            "\r\n"
        )
        return header.encode("utf-8") + self.body


def text_response(status: str, body: str) -> Response:
    """Build a plain-text response."""
    return Response(status, body.encode("utf-8"), "text/plain")


def json_response(status: str, body: bytes | str) -> Response:
    """Build a JSON response from already serialised JSON."""
    if isinstance(body, str):
        body = body.encode("utf-8")
    return Response(status, body, "application/json")


def parse_request_line(request: str) -> tuple[str, str]:
    """Return the method and path of the first request line, or two empty strings."""
    first_line = request.split("\r\n")[0]
    parts = first_line.split(" ")
    if len(parts) >= 2:
        return parts[0], parts[1]
    return "", ""


def parse_route(path: str) -> tuple[str, dict[str, str]]:
    """Split a path into its route and its ``key=value`` query parameters.

    Pairs that do not hold exactly one ``=`` are ignored.
    """
    parts = path.split("?")
    route = parts[0]
    params: dict[str, str] = {}
    if len(parts) > 1:
        for pair in parts[1].split("&"):
            key_value = pair.split("=")
            if len(key_value) == 2:
                key, value = key_value
                params[key] = value
    logger.debug("Route: %s", route)
    logger.debug("Params: %s", params)
    return route, params