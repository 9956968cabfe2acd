"""Cache lookup handler backed by the shared cache client."""

import logging

from hello_server.bootstrap.config import SECURITY_HEADERS
from hello_server.domain.cache import CacheError, CacheMiss
from hello_server.domain.correlation_id import CorrelationLoggerAdapter
from hello_server.domain.http_types import HttpRequest, HttpResponse
from hello_server.domain.response_builders import error_response, text_response
from hello_server.transport.context import WorkerContext

CACHE_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("hello_server.handlers.cache"), {}
)


def handle_cache_lookup(request: HttpRequest, context: WorkerContext) -> HttpResponse:
    """Return the cached value stored under the ``key`` query parameter.

    Example: ``/redis?key=app:name``.
    """
    key = request.query_param("key")
    if not key:
        return error_response(
            400, "Query parameter 'key' is required", request, SECURITY_HEADERS
        )
    if context.cache is None:
        CACHE_LOGGER.error(
            "Cache lookup without a configured cache", extra={"event": "cache_missing"}
        )
        return error_response(
            500, "Failed to retrieve data from cache", request, SECURITY_HEADERS
        )

    try:
        value = context.cache.get(key)
    except CacheMiss:
        CACHE_LOGGER.info("Cache miss", extra={"event": "cache_miss", "key": key})
        return error_response(404, f"Key '{key}' not found", request, SECURITY_HEADERS)
    except CacheError as error:
        CACHE_LOGGER.error(
            "Cache GET failed",
            extra={
                "event": "cache_error",
                "key": key,
                "error_type": type(error).__name__,
                "error": str(error),
            },
        )
        return error_response(
            500, "Failed to retrieve data from cache", request, SECURITY_HEADERS
        )

    return text_response(f"{value}\n", request, SECURITY_HEADERS)
