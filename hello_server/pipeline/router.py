"""Request routing logic."""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from hello_server.bootstrap.config import SECURITY_HEADERS
from hello_server.domain.correlation_id import CorrelationLoggerAdapter
from hello_server.domain.http_types import HttpRequest, HttpResponse
from hello_server.domain.response_builders import (
    method_not_allowed_response,
    not_found_response,
)
from hello_server.handlers.cache_handlers import handle_cache_lookup
from hello_server.handlers.diagnostic_handlers import (
    handle_agent,
    handle_echo,
    handle_greeting,
    handle_headers,
    handle_info,
    handle_ip,
)
from hello_server.transport.context import WorkerContext

ROUTER_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("hello_server.pipeline.router"), {}
)

CACHE_LOOKUP_PATH = "/redis"

Handler = Callable[[HttpRequest, WorkerContext], HttpResponse]


@dataclass(frozen=True)
class Route:
    handler: Handler
    methods: frozenset[str] = frozenset({"GET"})


ROUTES: dict[str, Route] = {
    "/": Route(handle_greeting),
    "/info": Route(handle_info),
    "/agent": Route(handle_agent),
    "/headers": Route(handle_headers),
    "/ip": Route(handle_ip),
    "/echo": Route(handle_echo, frozenset({"GET", "POST"})),
    CACHE_LOOKUP_PATH: Route(handle_cache_lookup),
}


def resolve_route(path: str, context: WorkerContext) -> Optional[Route]:
    """Return the route registered for ``path``; the cache route needs a cache."""
    if path == CACHE_LOOKUP_PATH and context.cache is None:
        return None
    return ROUTES.get(path)


def route_request(request: HttpRequest, context: WorkerContext) -> HttpResponse:
    """Route the request to the appropriate handler and return a response."""
    route = resolve_route(request.path, context)
    if route is None:
        ROUTER_LOGGER.info(
            "No matching route found",
            extra={
                "event": "route_not_found",
                "route": request.path,
                "method": request.method,
            },
        )
        return not_found_response(request, SECURITY_HEADERS)

    if request.method not in route.methods:
        ROUTER_LOGGER.info(
            "Method not allowed for route",
            extra={
                "event": "method_not_allowed",
                "route": request.path,
                "method": request.method,
            },
        )
        return method_not_allowed_response(request, SECURITY_HEADERS, route.methods)

    if ROUTER_LOGGER.logger.isEnabledFor(logging.DEBUG):
        ROUTER_LOGGER.debug(
            "Route matched", extra={"event": "route_matched", "route": request.path}
        )
    return route.handler(request, context)
