"""Server configuration sourced from the environment and CLI arguments."""

import argparse
import os
from dataclasses import dataclass
from typing import Optional


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value is not None else default


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "yes", "on"}


MAX_BODY_BYTES = _env_int("HELLO_SERVER_MAX_BODY_BYTES", 5 * 1024 * 1024)
DEFAULT_SOCKET_TIMEOUT = _env_int("HELLO_SERVER_SOCKET_TIMEOUT", 10)
DEFAULT_SHUTDOWN_GRACE_SECONDS = _env_int("HELLO_SERVER_SHUTDOWN_GRACE_SECONDS", 10)
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080

DEFAULT_REDIS_ADDR = "localhost:6379"

HEADER_DELIMITER = b"\r\n\r\n"
ALLOWED_METHODS = {"GET", "POST"}

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
}


@dataclass
class ServerConfig:
    """Server configuration including timeouts and shutdown settings."""

    socket_timeout: int
    shutdown_grace_seconds: int


@dataclass(frozen=True)
class CacheSettings:
    """Connection settings for the key-value cache."""

    host: str
    port: int
    db: int
    password: Optional[str] = None
    timeout_seconds: float = 5.0


@dataclass(frozen=True)
class LogSettings:
    """Rotation settings applied when logging to a file."""

    max_size_mb: int = 500
    max_backups: int = 3
    max_age_days: int = 28
    compress: bool = True


class ConfigurationError(ValueError):
    """Raised when an environment setting cannot be interpreted."""


def split_address(address: str, default_port: int = 6379) -> tuple[str, int]:
    """Split a ``host:port`` cache address, falling back to the default port.

    IPv6 hosts are written in brackets (``[::1]:6379``) and returned without them.
    """
    if address.startswith("["):
        end = address.find("]")
        if end < 0:
            raise ConfigurationError(f"Invalid cache address: {address!r}")
        host, rest = address[1:end], address[end + 1 :]
        if not rest:
            return host, default_port
        if not rest.startswith(":"):
            raise ConfigurationError(f"Invalid cache address: {address!r}")
        return host, _parse_port(rest[1:], address)

    host, sep, port = address.rpartition(":")
    if not sep:
        return address, default_port
    if ":" in host:
        raise ConfigurationError(
            f"IPv6 cache address must be bracketed: {address!r}"
        )
    return host, _parse_port(port, address)


def _parse_port(port: str, address: str) -> int:
    try:
        return int(port)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid cache address: {address!r}") from exc


def load_cache_settings() -> CacheSettings:
    """Build cache settings from REDIS_* environment variables."""
    host, port = split_address(os.getenv("REDIS_ADDR") or DEFAULT_REDIS_ADDR)
    db_value = os.getenv("REDIS_DB") or "0"
    try:
        db = int(db_value)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid Redis DB number: {db_value!r}") from exc
    timeout_value = os.getenv("REDIS_TIMEOUT_SECONDS") or "5"
    try:
        timeout_seconds = float(timeout_value)
    except ValueError as exc:
        raise ConfigurationError(
            f"Invalid Redis timeout: {timeout_value!r}"
        ) from exc
    return CacheSettings(
        host=host,
        port=port,
        db=db,
        password=os.getenv("REDIS_PASSWORD") or None,
        timeout_seconds=timeout_seconds,
    )


def load_log_settings() -> LogSettings:
    """Build log rotation settings from LOG_* environment variables."""
    return LogSettings(
        max_size_mb=_env_int("LOG_MAX_SIZE_MB", 500),
        max_backups=_env_int("LOG_MAX_BACKUPS", 3),
        max_age_days=_env_int("LOG_MAX_AGE_DAYS", 28),
        compress=_env_bool("LOG_COMPRESS", True),
    )


def parse_cli_args(argv: list[str]) -> argparse.Namespace:
    """Return parsed CLI arguments for server configuration."""
    parser = argparse.ArgumentParser(description="Diagnostic HTTP server")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    default_log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    default_destination = os.getenv("LOG_FILE_LOCATION") or "stdout"
    parser.add_argument(
        "--log-level",
        default=default_log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
    )
    parser.add_argument(
        "--log-destination",
        default=default_destination,
        help="stdout or a file path",
    )
    parser.add_argument(
        "--log-format",
        default=os.getenv("LOG_FORMAT", "json").lower(),
        choices=["json", "text"],
        type=str.lower,
    )
    parser.add_argument(
        "--socket-timeout",
        type=int,
        default=DEFAULT_SOCKET_TIMEOUT,
        help="Socket timeout in seconds for request processing",
    )
    parser.add_argument(
        "--shutdown-grace-seconds",
        type=int,
        default=DEFAULT_SHUTDOWN_GRACE_SECONDS,
        help="Grace period in seconds for graceful shutdown",
    )
    parser.add_argument(
        "--cache",
        action=argparse.BooleanOptionalAction,
        default=_env_bool("CACHE_ENABLED", True),
        help="Connect to the key-value cache and expose /redis",
    )
    return parser.parse_args(argv)
