"""Introspection handlers: greeting, request info, agent, headers, IP and echo."""

import logging

from hello_server.bootstrap.config import SECURITY_HEADERS
from hello_server.domain.client_ip import resolve_client_ip
from hello_server.domain.correlation_id import CorrelationLoggerAdapter
from hello_server.domain.http_types import HttpRequest, HttpResponse
from hello_server.domain.response_builders import (
    body_response,
    json_response,
    text_response,
)
from hello_server.domain.user_agent import classify_user_agent
from hello_server.transport.context import WorkerContext

DIAGNOSTIC_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("hello_server.handlers.diagnostic"), {}
)

DEFAULT_NAME = "Guest"


def client_ip_for(request: HttpRequest) -> str:
    return resolve_client_ip(request.headers, request.peer_address)


def handle_greeting(request: HttpRequest, _context: WorkerContext) -> HttpResponse:
    """Greet the caller by the ``name`` query parameter."""
    name = request.query_param("name") or DEFAULT_NAME
    DIAGNOSTIC_LOGGER.info(
        "Received request for %s",
        name,
        extra={"event": "greeting", "client": client_ip_for(request)},
    )
    return text_response(f"Hello, {name}\n", request, SECURITY_HEADERS)


def handle_info(request: HttpRequest, _context: WorkerContext) -> HttpResponse:
    info = {
        "client_ip": client_ip_for(request),
        "user_agent": request.user_agent,
        "accept_language": request.headers.get("Accept-Language"),
        "method": request.method,
        "path": request.path,
        "protocol": request.protocol,
    }
    return json_response(info, request, SECURITY_HEADERS)


def handle_agent(request: HttpRequest, _context: WorkerContext) -> HttpResponse:
    """Report the browser and OS guessed from the User-Agent header."""
    user_agent = request.user_agent
    result = classify_user_agent(user_agent)
    if DIAGNOSTIC_LOGGER.logger.isEnabledFor(logging.DEBUG):
        DIAGNOSTIC_LOGGER.debug(
            "User-agent classified",
            extra={
                "event": "user_agent_classified",
                "browser": result.browser,
                "os": result.os,
            },
        )
    payload = {
        "browser": result.browser,
        "os": result.os,
        "user_agent": user_agent,
        "client_ip": client_ip_for(request),
    }
    return json_response(payload, request, SECURITY_HEADERS)


def handle_headers(request: HttpRequest, _context: WorkerContext) -> HttpResponse:
    """Dump request headers, one ``Name: v1, v2`` line per header name."""
    lines = [f"{name}: {', '.join(values)}\n" for name, values in request.headers.items()]
    return text_response("".join(lines), request, SECURITY_HEADERS)


def handle_ip(request: HttpRequest, _context: WorkerContext) -> HttpResponse:
    return text_response(f"{client_ip_for(request)}\n", request, SECURITY_HEADERS)


def handle_echo(request: HttpRequest, _context: WorkerContext) -> HttpResponse:
    """Echo ``msg`` for GET and the raw body for POST."""
    if request.method == "GET":
        message = request.query_param("msg") or "no message"
        return text_response(f"{message}\n", request, SECURITY_HEADERS)

    if not request.body:
        return text_response("empty body\n", request, SECURITY_HEADERS)
    if DIAGNOSTIC_LOGGER.logger.isEnabledFor(logging.DEBUG):
        DIAGNOSTIC_LOGGER.debug(
            "Echoing request body",
            extra={"event": "echo_body", "bytes_in": len(request.body)},
        )
    return body_response(request.body, request, SECURITY_HEADERS)
