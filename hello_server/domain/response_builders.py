"""Pure HTTP response builders."""

import json
from typing import Any, Optional

from hello_server.domain.http_types import HttpRequest, HttpResponse, should_close

TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"
JSON_CONTENT_TYPE = "application/json; charset=utf-8"

STATUS_REASONS = {
    200: "OK",
    400: "Bad Request",
    404: "Not Found",
    405: "Method Not Allowed",
    413: "Payload Too Large",
    500: "Internal Server Error",
    503: "Service Unavailable",
}


def status_line(status: int) -> str:
    return f"HTTP/1.1 {status} {STATUS_REASONS[status]}"


def _close_for(request: Optional[HttpRequest]) -> bool:
    return should_close(request) if request is not None else True


def body_response(
    payload: bytes,
    request: HttpRequest,
    security_headers: dict[str, str],
    content_type: str = TEXT_CONTENT_TYPE,
    status: int = 200,
) -> HttpResponse:
    """Return a response carrying ``payload`` verbatim."""
    headers = {"Content-Type": content_type, **security_headers}
    return HttpResponse(status_line(status), headers, payload, _close_for(request))


def text_response(
    message: str,
    request: HttpRequest,
    security_headers: dict[str, str],
    status: int = 200,
) -> HttpResponse:
    """Return a text/plain response."""
    return body_response(
        message.encode(), request, security_headers, TEXT_CONTENT_TYPE, status
    )


def json_response(
    payload: dict[str, Any],
    request: HttpRequest,
    security_headers: dict[str, str],
) -> HttpResponse:
    """Return a JSON document with sorted keys and a trailing newline."""
    encoded = (json.dumps(payload, sort_keys=True) + "\n").encode()
    return body_response(encoded, request, security_headers, JSON_CONTENT_TYPE)


def error_response(
    status: int,
    message: str,
    request: Optional[HttpRequest],
    security_headers: dict[str, str],
) -> HttpResponse:
    """Produce a plain-text error response with a newline-terminated message."""
    headers = {"Content-Type": TEXT_CONTENT_TYPE, **security_headers}
    return HttpResponse(
        status_line(status), headers, f"{message}\n".encode(), _close_for(request)
    )


def not_found_response(
    request: HttpRequest, security_headers: dict[str, str]
) -> HttpResponse:
    """Return a 404 response reusing the connection preference."""
    return error_response(404, "404 page not found", request, security_headers)


def bad_request_response(
    request: Optional[HttpRequest],
    security_headers: dict[str, str],
    message: str = "bad request",
) -> HttpResponse:
    """Produce a 400 response honoring the caller's connection preference."""
    return error_response(400, message, request, security_headers)


def entity_too_large_response(security_headers: dict[str, str]) -> HttpResponse:
    """Produce a 413 response that always closes the connection."""
    return error_response(413, "request body too large", None, security_headers)


def method_not_allowed_response(
    request: HttpRequest, security_headers: dict[str, str], allowed_methods
) -> HttpResponse:
    """Produce a 405 response enumerating the supported HTTP methods."""
    allow_header = ", ".join(sorted(allowed_methods))
    headers = {"Allow": allow_header, **security_headers}
    return HttpResponse(status_line(405), headers, b"", should_close(request))


def draining_response(security_headers: dict[str, str]) -> HttpResponse:
    """Produce a 503 response indicating the server is draining."""
    headers = {"Connection": "close", **security_headers}
    return HttpResponse(status_line(503), headers, b"draining", True)
