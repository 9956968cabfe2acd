"""Listening socket creation."""

import argparse
import logging
import socket
import sys

from hello_server.domain.correlation_id import CorrelationLoggerAdapter

SOCKET_LOGGER = CorrelationLoggerAdapter(logging.getLogger("hello_server.socket"), {})

ACCEPT_POLL_SECONDS = 0.2


def create_server_socket(args: argparse.Namespace) -> socket.socket:
    """Bind the listening socket; a bind failure terminates the process."""
    try:
        server_socket = socket.create_server((args.host, args.port))
    except OSError as error:
        SOCKET_LOGGER.critical(
            "Failed to bind listening socket",
            extra={
                "event": "bind_failed",
                "host": args.host,
                "port": args.port,
                "error_type": type(error).__name__,
                "error": str(error),
            },
        )
        sys.exit(1)
    server_socket.settimeout(ACCEPT_POLL_SECONDS)
    return server_socket
