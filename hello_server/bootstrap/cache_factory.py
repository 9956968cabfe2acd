"""Cache connection bootstrap and seed data."""

import logging
import sys

from hello_server.bootstrap.config import CacheSettings
from hello_server.domain.cache import CacheClient, CacheError, RedisCache
from hello_server.domain.correlation_id import CorrelationLoggerAdapter

CACHE_BOOTSTRAP_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("hello_server.cache"), {}
)

SEED_DATA = {
    "app:name": "hello-server",
    "user:1:name": "Cetriolo",
}


def connect_cache(settings: CacheSettings) -> RedisCache:
    """Connect to the cache and verify it answers; exit the process otherwise."""
    cache = RedisCache.from_settings(settings)
    try:
        cache.ping()
    except CacheError as error:
        CACHE_BOOTSTRAP_LOGGER.critical(
            "Could not connect to cache",
            extra={
                "event": "cache_connect_failed",
                "host": settings.host,
                "port": settings.port,
                "db": settings.db,
                "error_type": type(error).__name__,
                "error": str(error),
            },
        )
        sys.exit(1)
    CACHE_BOOTSTRAP_LOGGER.info(
        "Connected to cache",
        extra={
            "event": "cache_connected",
            "host": settings.host,
            "port": settings.port,
            "db": settings.db,
        },
    )
    return cache


def seed_cache(cache: CacheClient) -> int:
    """Store the predefined entries; failures are logged and skipped.

    Returns the number of entries written.
    """
    CACHE_BOOTSTRAP_LOGGER.info("Seeding cache with initial data", extra={"event": "cache_seed"})
    written = 0
    for key, value in SEED_DATA.items():
        try:
            cache.set(key, value)
        except CacheError as error:
            CACHE_BOOTSTRAP_LOGGER.warning(
                "Failed to seed cache entry",
                extra={
                    "event": "cache_seed_failed",
                    "key": key,
                    "error_type": type(error).__name__,
                    "error": str(error),
                },
            )
            continue
        written += 1
    return written
