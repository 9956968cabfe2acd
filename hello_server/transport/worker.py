"""Worker thread logic for handling individual client connections."""

import logging
import socket
import threading
import time
from dataclasses import dataclass
from typing import Optional

from hello_server.bootstrap.config import ALLOWED_METHODS, MAX_BODY_BYTES, SECURITY_HEADERS
from hello_server.domain.client_ip import format_peer_address, resolve_client_ip
from hello_server.domain.correlation_id import (
    CorrelationLoggerAdapter,
    clear_correlation_id,
    generate_correlation_id,
    set_correlation_id,
)
from hello_server.domain.http_types import HttpRequest
from hello_server.domain.response_builders import (
    bad_request_response,
    entity_too_large_response,
)
from hello_server.lifecycle.state import ServerLifecycle
from hello_server.pipeline.io import BodyReadError, receive_request, send_response
from hello_server.pipeline.router import route_request
from hello_server.pipeline.validation import RequestEntityTooLarge, validate_request
from hello_server.transport.context import WorkerContext

WORKER_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("hello_server.transport.worker"), {}
)

IDLE_POLL_NS = 250_000_000
DEFAULT_IDLE_TIMEOUT = 10


def _recv_with_deadline(client_socket: socket.socket, deadline_ns: int) -> bytes:
    """Receive data from socket with a deadline, raising TimeoutError if exceeded."""
    remaining_ns = deadline_ns - time.monotonic_ns()
    if remaining_ns <= 0:
        raise TimeoutError("Request deadline exceeded")
    timeout_seconds = remaining_ns / 1_000_000_000
    client_socket.settimeout(timeout_seconds)
    return client_socket.recv(4096)


def _await_request_start(
    client_socket: socket.socket,
    buffer: bytes,
    lifecycle: Optional[ServerLifecycle],
    idle_timeout: float,
) -> Optional[bytes]:
    """Wait for the first bytes of the next request.

    Returns None when the connection should be closed: the client hung up,
    the connection stayed idle past ``idle_timeout`` or the server is draining.
    Polls in short slices so idle keep-alive connections notice a shutdown.
    """
    if buffer:
        return buffer
    deadline_ns = time.monotonic_ns() + int(idle_timeout * 1_000_000_000)
    while True:
        if lifecycle is not None and lifecycle.is_draining():
            return None
        poll_deadline_ns = min(deadline_ns, time.monotonic_ns() + IDLE_POLL_NS)
        try:
            chunk = _recv_with_deadline(client_socket, poll_deadline_ns)
        except TimeoutError:
            if time.monotonic_ns() >= deadline_ns:
                return None
            continue
        return chunk or None


def _read_request(
    client_socket: socket.socket,
    buffer: bytes,
    peer_address: str,
) -> tuple[Optional[HttpRequest], bytes]:
    """Read a request from the socket, answering unreadable input directly.

    A None request means the connection must be closed.
    """
    try:
        return receive_request(client_socket, buffer, peer_address)
    except RequestEntityTooLarge:
        WORKER_LOGGER.warning(
            "Request body size exceeded limit",
            extra={
                "event": "body_size_exceeded",
                "client": peer_address,
                "limit": MAX_BODY_BYTES,
            },
        )
        send_response(client_socket, entity_too_large_response(SECURITY_HEADERS))
    except BodyReadError as error:
        WORKER_LOGGER.warning(
            "Failed to read request body",
            extra={"event": "body_read_failed", "client": peer_address, "error": str(error)},
        )
        send_response(
            client_socket,
            bad_request_response(None, SECURITY_HEADERS, "failed to read body"),
        )
    except ValueError:
        WORKER_LOGGER.warning(
            "Malformed request received",
            extra={"event": "malformed_request", "client": peer_address},
        )
        send_response(
            client_socket, bad_request_response(None, SECURITY_HEADERS, "malformed request")
        )
    return None, b""


def _process_request(
    request: HttpRequest,
    context: WorkerContext,
    client_socket: socket.socket,
) -> bool:
    """Validate, route and answer one request; return True to close the connection."""
    started = time.monotonic()
    response = validate_request(request, ALLOWED_METHODS, SECURITY_HEADERS)
    if response is None:
        response = route_request(request, context)
    if context.lifecycle is not None and context.lifecycle.is_draining():
        response.close_connection = True
    send_response(client_socket, response)

    WORKER_LOGGER.info(
        "Request handled",
        extra={
            "event": "request_handled",
            "method": request.method,
            "route": request.path,
            "status_code": response.status_code,
            "client": resolve_client_ip(request.headers, request.peer_address),
            "bytes_out": len(response.body),
            "duration_ms": round((time.monotonic() - started) * 1000, 3),
        },
    )
    return response.close_connection


def _prepare_worker(
    context: WorkerContext,
    current_thread: threading.Thread,
) -> Optional[ServerLifecycle]:
    lifecycle = context.lifecycle
    if lifecycle is not None:
        lifecycle.register_worker(current_thread)
    return lifecycle


@dataclass
class _WorkerResources:
    thread: threading.Thread
    client_socket: socket.socket
    peer_address: str


def _cleanup_worker(
    lifecycle: Optional[ServerLifecycle],
    resources: _WorkerResources,
) -> None:
    if lifecycle is not None:
        lifecycle.cleanup_worker(resources.thread)

    try:
        resources.client_socket.shutdown(socket.SHUT_WR)
    except OSError:
        pass
    resources.client_socket.close()

    WORKER_LOGGER.debug(
        "Socket closed",
        extra={"event": "socket_closed", "client": resources.peer_address},
    )
    clear_correlation_id()


def handle_client(
    client_socket: socket.socket,
    client_address: tuple,
    context: WorkerContext,
) -> None:
    """Process requests on a client socket until the connection is closed."""
    buffer = b""
    current_thread = threading.current_thread()
    lifecycle = _prepare_worker(context, current_thread)
    socket_timeout = (
        context.config.socket_timeout
        if context.config is not None
        else DEFAULT_IDLE_TIMEOUT
    )
    peer_address = format_peer_address(client_address)
    resources = _WorkerResources(current_thread, client_socket, peer_address)

    try:
        while True:
            set_correlation_id(generate_correlation_id())

            pending = _await_request_start(client_socket, buffer, lifecycle, socket_timeout)
            if pending is None:
                WORKER_LOGGER.debug(
                    "Closing idle connection",
                    extra={"event": "connection_idle_closed", "client": peer_address},
                )
                break
            client_socket.settimeout(socket_timeout)

            request, buffer = _read_request(client_socket, pending, peer_address)
            if request is None:
                break

            should_terminate_connection = _process_request(
                request, context, client_socket
            )
            clear_correlation_id()

            if should_terminate_connection:
                break
    except (
        ConnectionError,
        TimeoutError,
        OSError,
    ) as error:
        WORKER_LOGGER.error(
            "Error handling client connection",
            extra={
                "event": "connection_error",
                "client": peer_address,
                "error_type": type(error).__name__,
            },
        )
    except Exception as error:  # pylint: disable=broad-except
        WORKER_LOGGER.error(
            "Unexpected error in worker",
            extra={
                "event": "worker_error",
                "client": peer_address,
                "error_type": type(error).__name__,
                "error": str(error),
            },
            exc_info=True,
        )
    finally:
        _cleanup_worker(lifecycle, resources)
