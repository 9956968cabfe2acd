"""Unit tests covering HTTP request parsing behavior."""

import pytest

from hello_server.domain.http_types import HttpRequest, HttpResponse
from hello_server.pipeline.io import (
    BodyReadError,
    parse_headers,
    parse_request_line,
    receive_request,
    send_response,
)
from hello_server.pipeline.validation import RequestEntityTooLarge
from tests.utils.fakes import FakeSocket


def test_parse_headers_canonicalizes_names_and_keeps_repeats():
    """Header parsing should canonicalize names and skip malformed lines."""

    headers, host = parse_headers(
        [
            "Host: localhost:8080",
            "content-length: 10",
            "User-Agent: ExampleClient",
            "x-custom: one",
            "X-Custom:two",
            "invalid-line",
        ]
    )
    assert host == "localhost:8080"
    assert "Host" not in headers
    assert dict(headers.items()) == {
        "Content-Length": ["10"],
        "User-Agent": ["ExampleClient"],
        "X-Custom": ["one", "two"],
    }


def test_header_lookup_is_case_insensitive():
    headers, _ = parse_headers(["x-forwarded-for: 1.2.3.4", "X-FORWARDED-FOR: 5.6.7.8"])
    assert "X-Forwarded-For" in headers
    assert "x-real-ip" not in headers
    assert headers.get("X-FORWARDED-FOR") == "1.2.3.4"
    assert headers.get("X-Real-Ip", "none") == "none"


def test_parse_request_line_extracts_query_and_protocol():
    method, path, query, protocol = parse_request_line(
        "GET /echo?msg=a%20b&msg=c&flag= HTTP/1.1"
    )
    assert method == "GET"
    assert path == "/echo"
    assert query == {"msg": ["a b", "c"], "flag": [""]}
    assert protocol == "HTTP/1.1"


@pytest.mark.parametrize("line", ["GET /", "GET / SPDY/3", "garbage"])
def test_parse_request_line_rejects_malformed_lines(line):
    with pytest.raises(ValueError):
        parse_request_line(line)


def test_receive_request_handles_partial_reads_and_leftover_bytes():
    """Receiving a request must tolerate partial socket reads."""

    request_bytes = (
        b"POST /echo HTTP/1.1\r\n"
        b"Host: localhost\r\n"
        b"Content-Length: 5\r\n\r\n"
        b"helloEXTRA"
    )
    socket_chunks = [request_bytes[:25], request_bytes[25:50], request_bytes[50:]]
    client = FakeSocket(socket_chunks)
    request, leftover = receive_request(client, b"", "10.0.0.1:4000")
    assert isinstance(request, HttpRequest)
    assert request.path == "/echo"
    assert request.body == b"hello"
    assert request.peer_address == "10.0.0.1:4000"
    assert leftover == b"EXTRA"


def test_receive_request_without_body_headers_has_empty_body():
    client = FakeSocket([b"POST /echo HTTP/1.1\r\nHost: x\r\n\r\n"])
    request, _ = receive_request(client, b"")
    assert request.body == b""


def test_receive_request_decodes_chunked_body():
    client = FakeSocket(
        [
            b"POST /echo HTTP/1.1\r\nTransfer-Encoding: chunked\r\n\r\n",
            b"6\r\nposted\r\n5;ext=1\r\n-data\r\n",
            b"0\r\nX-Trailer: yes\r\n\r\nNEXT",
        ]
    )
    request, leftover = receive_request(client, b"")
    assert request.body == b"posted-data"
    assert leftover == b"NEXT"


def test_receive_request_returns_none_when_socket_closes_early():
    """If the client disconnects early the parser should return nothing."""

    client = FakeSocket([b"GET / HTTP/1.1\r\n"])
    request, buffer = receive_request(client, b"")
    assert request is None
    assert buffer == b""


def test_truncated_body_is_a_read_failure():
    client = FakeSocket([b"POST /echo HTTP/1.1\r\nContent-Length: 10\r\n\r\nabc"])
    with pytest.raises(BodyReadError):
        receive_request(client, b"")


@pytest.mark.parametrize("length", ["abc", "-1"])
def test_invalid_content_length_is_a_read_failure(length):
    head = f"POST /echo HTTP/1.1\r\nContent-Length: {length}\r\n\r\n".encode()
    with pytest.raises(BodyReadError):
        receive_request(FakeSocket([head]), b"")


def test_invalid_chunk_size_is_a_read_failure():
    client = FakeSocket(
        [b"POST /echo HTTP/1.1\r\nTransfer-Encoding: chunked\r\n\r\nzz\r\n"]
    )
    with pytest.raises(BodyReadError):
        receive_request(client, b"")


def test_oversized_body_is_rejected(monkeypatch):
    monkeypatch.setattr("hello_server.pipeline.io.MAX_BODY_BYTES", 4)
    client = FakeSocket([b"POST /echo HTTP/1.1\r\nContent-Length: 5\r\n\r\nhello"])
    with pytest.raises(RequestEntityTooLarge):
        receive_request(client, b"")


def test_send_response_sets_length_and_close():
    client = FakeSocket([])
    send_response(
        client,
        HttpResponse("HTTP/1.1 200 OK", {"Content-Type": "text/plain"}, b"hi", True),
    )
    head, body = client.sent.split(b"\r\n\r\n", 1)
    lines = head.decode().split("\r\n")
    assert lines[0] == "HTTP/1.1 200 OK"
    assert "Content-Length: 2" in lines
    assert "Connection: close" in lines
    assert body == b"hi"


def test_expect_continue_is_answered_before_reading_body():
    client = FakeSocket(
        [
            b"POST /echo HTTP/1.1\r\nContent-Length: 5\r\nExpect: 100-continue\r\n\r\n",
            b"hello",
        ]
    )
    request, _ = receive_request(client, b"")
    assert client.sent == b"HTTP/1.1 100 Continue\r\n\r\n"
    assert request.body == b"hello"


def test_expect_continue_for_chunked_body():
    client = FakeSocket(
        [
            b"POST /echo HTTP/1.1\r\nTransfer-Encoding: chunked\r\n"
            b"Expect: 100-Continue\r\n\r\n",
            b"2\r\nhi\r\n0\r\n\r\n",
        ]
    )
    request, _ = receive_request(client, b"")
    assert client.sent == b"HTTP/1.1 100 Continue\r\n\r\n"
    assert request.body == b"hi"


@pytest.mark.parametrize(
    "raw",
    [
        # body already on the wire
        b"POST /echo HTTP/1.1\r\nContent-Length: 2\r\nExpect: 100-continue\r\n\r\nhi",
        # nothing to send
        b"GET / HTTP/1.1\r\nExpect: 100-continue\r\n\r\n",
        # HTTP/1.0 clients do not understand interim responses
        b"POST /echo HTTP/1.0\r\nContent-Length: 2\r\nExpect: 100-continue\r\n\r\n",
    ],
)
def test_no_interim_response_when_not_needed(raw):
    client = FakeSocket([raw, b"hi"])
    receive_request(client, b"")
    assert client.sent == b""


def test_oversized_body_is_refused_without_interim_response(monkeypatch):
    monkeypatch.setattr("hello_server.pipeline.io.MAX_BODY_BYTES", 4)
    client = FakeSocket(
        [b"POST /echo HTTP/1.1\r\nContent-Length: 5\r\nExpect: 100-continue\r\n\r\n"]
    )
    with pytest.raises(RequestEntityTooLarge):
        receive_request(client, b"")
    assert client.sent == b""
