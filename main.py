"""Diagnostic HTTP server: greeting, request introspection, echo and cache lookup."""

import logging
import signal
import sys
from typing import Optional

from hello_server.bootstrap.cache_factory import connect_cache, seed_cache
from hello_server.bootstrap.config import (
    ConfigurationError,
    ServerConfig,
    load_cache_settings,
    load_log_settings,
    parse_cli_args,
)
from hello_server.bootstrap.logging_setup import configure_logging
from hello_server.domain.cache import RedisCache
from hello_server.domain.correlation_id import CorrelationLoggerAdapter
from hello_server.lifecycle.state import ServerLifecycle
from hello_server.transport.accept_loop import run_server

SERVER_LOGGER = CorrelationLoggerAdapter(logging.getLogger("hello_server.server"), {})


def _install_signal_handlers(lifecycle: ServerLifecycle) -> None:
    def shutdown_handler(signum: int, _frame) -> None:
        SERVER_LOGGER.info(
            "Received shutdown signal",
            extra={"event": "shutdown_signal", "signal": signal.Signals(signum).name},
        )
        lifecycle.begin_draining()

    signal.signal(signal.SIGTERM, shutdown_handler)
    signal.signal(signal.SIGINT, shutdown_handler)


def _connect_cache_if_enabled(enabled: bool) -> Optional[RedisCache]:
    if not enabled:
        SERVER_LOGGER.info("Cache disabled", extra={"event": "cache_disabled"})
        return None
    try:
        settings = load_cache_settings()
    except ConfigurationError as error:
        SERVER_LOGGER.critical(
            "Invalid cache configuration",
            extra={"event": "config_invalid", "error": str(error)},
        )
        sys.exit(1)
    cache = connect_cache(settings)
    seed_cache(cache)
    return cache


def main(argv: Optional[list[str]] = None) -> None:
    """Start the HTTP server and block until it has shut down."""
    args = parse_cli_args(sys.argv[1:] if argv is None else argv)
    configure_logging(
        args.log_level,
        args.log_destination,
        use_json=args.log_format == "json",
        settings=load_log_settings(),
    )

    config = ServerConfig(
        socket_timeout=args.socket_timeout,
        shutdown_grace_seconds=args.shutdown_grace_seconds,
    )
    lifecycle = ServerLifecycle()
    _install_signal_handlers(lifecycle)

    SERVER_LOGGER.info(
        "Starting HTTP server",
        extra={
            "event": "server_starting",
            "host": args.host,
            "port": args.port,
            "log_destination": args.log_destination,
            "log_level": args.log_level,
            "socket_timeout": config.socket_timeout,
            "shutdown_grace_seconds": config.shutdown_grace_seconds,
        },
    )
    cache = _connect_cache_if_enabled(args.cache)
    try:
        run_server(args, config, lifecycle, cache)
    finally:
        if cache is not None:
            cache.close()


if __name__ == "__main__":
    main()
