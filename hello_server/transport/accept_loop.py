"""Main connection acceptance loop."""

import argparse
import logging
import socket
import threading
from typing import Optional

from hello_server.bootstrap.config import SECURITY_HEADERS, ServerConfig
from hello_server.bootstrap.socket_factory import create_server_socket
from hello_server.domain.cache import CacheClient
from hello_server.domain.correlation_id import CorrelationLoggerAdapter
from hello_server.domain.response_builders import draining_response
from hello_server.lifecycle.state import ServerLifecycle
from hello_server.pipeline.io import send_response
from hello_server.transport.context import WorkerContext
from hello_server.transport.worker import handle_client

ACCEPT_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("hello_server.transport.accept"), {}
)


def _reject_draining(client_socket: socket.socket) -> None:
    try:
        send_response(client_socket, draining_response(SECURITY_HEADERS))
    except OSError:
        pass
    client_socket.close()


def _handle_accepted_client(
    client_socket: socket.socket,
    client_address: tuple,
    handler_context: WorkerContext,
) -> None:
    """Hand a newly accepted connection to its own worker thread."""
    if ACCEPT_LOGGER.logger.isEnabledFor(logging.DEBUG):
        ACCEPT_LOGGER.debug(
            "Client connection accepted",
            extra={"event": "client_accepted", "client": client_address[0]},
        )

    # Daemon workers are abandoned once the shutdown grace period expires.
    thread = threading.Thread(
        target=handle_client,
        args=(client_socket, client_address, handler_context),
        daemon=True,
    )
    thread.start()


def run_server(
    args: argparse.Namespace,
    config: ServerConfig,
    lifecycle: ServerLifecycle,
    cache: Optional[CacheClient] = None,
) -> None:
    """Create listening socket and handle client lifecycle."""

    server_socket = create_server_socket(args)
    lifecycle.mark_listening()

    ACCEPT_LOGGER.info(
        "Server listening for connections",
        extra={
            "event": "server_listening",
            "host": args.host,
            "port": args.port,
            "cache_enabled": cache is not None,
        },
    )

    handler_context = WorkerContext(cache=cache, lifecycle=lifecycle, config=config)

    try:
        while not lifecycle.should_stop():
            try:
                client_socket, client_address = server_socket.accept()
            except socket.timeout:
                continue
            except OSError as error:
                if lifecycle.should_stop():
                    break
                ACCEPT_LOGGER.error(
                    "Socket accept failed",
                    extra={"event": "accept_error", "error_type": type(error).__name__},
                )
                continue

            if lifecycle.is_draining():
                _reject_draining(client_socket)
                break

            _handle_accepted_client(client_socket, client_address, handler_context)
    finally:
        server_socket.close()
        ACCEPT_LOGGER.info(
            "Waiting for active connections to complete",
            extra={
                "event": "shutdown_waiting",
                "shutdown_grace_seconds": config.shutdown_grace_seconds,
            },
        )
        drained = lifecycle.wait_for_workers(config.shutdown_grace_seconds)
        lifecycle.mark_terminated()
        ACCEPT_LOGGER.info(
            "Server shutdown complete",
            extra={"event": "server_stopped", "drained": drained},
        )
