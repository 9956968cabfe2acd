"""Shared fixtures for unit tests."""

import logging

import pytest

from hello_server.transport.context import WorkerContext
from tests.utils.fakes import FakeCache


@pytest.fixture(autouse=True)
def enable_log_propagation():
    """Ensure logs propagate to root so caplog can catch them."""
    logger = logging.getLogger("hello_server")
    old_propagate = logger.propagate
    logger.propagate = True
    yield
    logger.propagate = old_propagate


@pytest.fixture(name="fake_cache")
def fixture_fake_cache():
    """Cache double pre-loaded with one entry."""
    return FakeCache({"app:name": "hello-server"})


@pytest.fixture(name="context")
def fixture_context(fake_cache):
    """Worker context wired to the fake cache."""
    return WorkerContext(cache=fake_cache)
