"""Integration tests for /redis against a live cache, skipped when none is reachable."""

import os

import pytest
import redis
import requests

from tests.conftest import launch_server
from tests.utils.http import reserve_port

pytestmark = pytest.mark.integration

REDIS_ADDR = os.getenv("HELLO_SERVER_TEST_REDIS_ADDR", "127.0.0.1:6379")


@pytest.fixture
def cache_server(tmp_path, monkeypatch):
    host, _, port = REDIS_ADDR.rpartition(":")
    client = redis.Redis(host=host, port=int(port), socket_connect_timeout=0.5)
    try:
        client.ping()
    except redis.RedisError:
        pytest.skip(f"no Redis server reachable at {REDIS_ADDR}")
    finally:
        client.close()

    monkeypatch.setenv("REDIS_ADDR", REDIS_ADDR)
    monkeypatch.setenv("REDIS_DB", "0")
    server_port = reserve_port()
    yield from launch_server("127.0.0.1", server_port, tmp_path / "server.log", ["--cache"])


def test_seeded_key_is_returned(cache_server):
    response = requests.get(
        f"{cache_server['base_url']}/redis", params={"key": "user:1:name"}, timeout=5
    )
    assert response.status_code == 200
    assert response.text == "Cetriolo\n"


def test_missing_key_returns_404(cache_server):
    response = requests.get(
        f"{cache_server['base_url']}/redis",
        params={"key": "hello-server:test:absent"},
        timeout=5,
    )
    assert response.status_code == 404
    assert response.text == "Key 'hello-server:test:absent' not found\n"


def test_key_parameter_is_required(cache_server):
    response = requests.get(f"{cache_server['base_url']}/redis", timeout=5)
    assert response.status_code == 400
    assert response.text == "Query parameter 'key' is required\n"
