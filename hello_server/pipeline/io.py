"""HTTP Input/Output operations."""

import logging
import socket
import urllib.parse
from typing import Optional, Tuple

from hello_server.bootstrap.config import HEADER_DELIMITER, MAX_BODY_BYTES
from hello_server.domain.correlation_id import (
    CorrelationLoggerAdapter,
    get_correlation_id,
    set_correlation_id,
)
from hello_server.domain.http_types import Headers, HttpRequest, HttpResponse
from hello_server.pipeline.validation import RequestEntityTooLarge

IO_LOGGER = CorrelationLoggerAdapter(logging.getLogger("hello_server.io"), {})

CRLF = b"\r\n"
SUPPORTED_PROTOCOLS = {"HTTP/1.0", "HTTP/1.1"}
CONTINUE_RESPONSE = b"HTTP/1.1 100 Continue\r\n\r\n"


class BodyReadError(Exception):
    """Raised when a request body cannot be read in full."""


def parse_headers(lines: list[str]) -> tuple[Headers, str]:
    """Convert raw header lines into a Headers mapping plus the Host value."""
    headers = Headers()
    host = ""
    for line in lines:
        name, sep, value = line.partition(":")
        if not sep or not name.strip():
            continue
        if name.strip().lower() == "host":
            host = value.strip()
            continue
        headers.add(name, value.strip())
    return headers, host


def parse_request_line(request_line: str) -> Tuple[str, str, dict[str, list[str]], str]:
    """Parse method, path, query parameters and protocol from the request line."""
    try:
        method, target, protocol = request_line.split(" ", 2)
    except ValueError as exc:
        raise ValueError("Invalid request line") from exc
    if protocol not in SUPPORTED_PROTOCOLS:
        raise ValueError("Unsupported protocol")

    parsed_target = urllib.parse.urlsplit(target)
    path = urllib.parse.unquote(parsed_target.path)
    query = urllib.parse.parse_qs(parsed_target.query, keep_blank_values=True)
    return method, path, query, protocol


def determine_content_length(headers: Headers) -> int:
    """Validate and return the declared Content-Length for the request."""
    header_value = headers.get("Content-Length")
    if not header_value:
        return 0
    try:
        content_length = int(header_value)
    except ValueError as exc:
        raise BodyReadError("Invalid Content-Length") from exc
    if content_length < 0:
        raise BodyReadError("Negative Content-Length")
    if content_length > MAX_BODY_BYTES:
        raise RequestEntityTooLarge
    return content_length


def _recv_more(client_socket: socket.socket, buffer: bytes) -> bytes:
    chunk = client_socket.recv(4096)
    if not chunk:
        raise BodyReadError("Connection closed before body completed")
    return buffer + chunk


def _read_fixed_body(
    client_socket: socket.socket, buffer: bytes, length: int
) -> tuple[bytes, bytes]:
    while len(buffer) < length:
        buffer = _recv_more(client_socket, buffer)
    return buffer[:length], buffer[length:]


def _read_line(client_socket: socket.socket, buffer: bytes) -> tuple[bytes, bytes]:
    while CRLF not in buffer:
        buffer = _recv_more(client_socket, buffer)
        if len(buffer) > MAX_BODY_BYTES:
            raise RequestEntityTooLarge
    line, rest = buffer.split(CRLF, 1)
    return line, rest


def _read_chunked_body(
    client_socket: socket.socket, buffer: bytes
) -> tuple[bytes, bytes]:
    """Decode a chunked transfer-encoded body, discarding any trailers."""
    chunks: list[bytes] = []
    total = 0
    while True:
        size_line, buffer = _read_line(client_socket, buffer)
        size_field = size_line.split(b";", 1)[0].strip()
        try:
            size = int(size_field, 16)
        except ValueError as exc:
            raise BodyReadError("Invalid chunk size") from exc
        if size < 0:
            raise BodyReadError("Invalid chunk size")
        if size == 0:
            break
        total += size
        if total > MAX_BODY_BYTES:
            raise RequestEntityTooLarge
        data, buffer = _read_fixed_body(client_socket, buffer, size + len(CRLF))
        if not data.endswith(CRLF):
            raise BodyReadError("Chunk missing terminator")
        chunks.append(data[:size])

    while True:
        trailer, buffer = _read_line(client_socket, buffer)
        if not trailer:
            break
    return b"".join(chunks), buffer


def _send_continue_if_expected(
    client_socket: socket.socket, headers: Headers, protocol: str
) -> None:
    """Answer ``Expect: 100-continue`` so the client starts sending the body."""
    if protocol != "HTTP/1.1":
        return
    if headers.get("Expect").lower() != "100-continue":
        return
    client_socket.sendall(CONTINUE_RESPONSE)
    IO_LOGGER.debug("Sent interim response", extra={"event": "continue_sent"})


def receive_request(
    client_socket: socket.socket, buffer: bytes, peer_address: str = ""
) -> Tuple[Optional[HttpRequest], bytes]:
    """Read bytes from the socket until a complete request is available.

    Returns ``(None, b"")`` when the client disconnects before sending a full
    header block. Raises ``ValueError`` for malformed heads, ``BodyReadError``
    when the body is unreadable and ``RequestEntityTooLarge`` above the cap.
    """
    while HEADER_DELIMITER not in buffer:
        chunk = client_socket.recv(4096)
        if not chunk:
            return None, b""
        buffer += chunk
        if len(buffer) > MAX_BODY_BYTES:
            raise RequestEntityTooLarge

    header_block, remainder = buffer.split(HEADER_DELIMITER, 1)
    header_lines = header_block.decode("latin-1").split("\r\n")
    method, path, query, protocol = parse_request_line(header_lines[0])
    headers, host = parse_headers(header_lines[1:])

    incoming_correlation_id = headers.get("X-Request-Id")
    if incoming_correlation_id:
        set_correlation_id(incoming_correlation_id)

    chunked = "chunked" in headers.get("Transfer-Encoding").lower()
    content_length = 0 if chunked else determine_content_length(headers)
    if (chunked or content_length) and not remainder:
        _send_continue_if_expected(client_socket, headers, protocol)

    if chunked:
        body, leftover = _read_chunked_body(client_socket, remainder)
    else:
        body, leftover = _read_fixed_body(client_socket, remainder, content_length)

    IO_LOGGER.debug(
        "Parsed request",
        extra={"event": "request_parsed", "method": method, "route": path},
    )
    request = HttpRequest(
        method=method,
        path=path,
        headers=headers,
        body=body,
        query=query,
        peer_address=peer_address,
        protocol=protocol,
        host=host,
    )
    return request, leftover


def send_response(client_socket: socket.socket, response: HttpResponse) -> None:
    """Serialize and send the HTTP response over the socket."""
    headers = dict(response.headers)

    correlation_id = get_correlation_id()
    if correlation_id:
        headers["X-Request-ID"] = correlation_id

    headers["Content-Length"] = str(len(response.body))
    if response.close_connection:
        headers["Connection"] = "close"
    header_lines = [response.status_line]
    header_lines.extend(f"{name}: {value}" for name, value in headers.items())
    header_block = "\r\n".join(header_lines).encode() + HEADER_DELIMITER
    client_socket.sendall(header_block + response.body)
    IO_LOGGER.debug(
        "Sent response",
        extra={"event": "response_sent", "status_code": response.status_code},
    )
