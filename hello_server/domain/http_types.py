"""Shared HTTP type definitions to avoid circular imports."""

from dataclasses import dataclass, field
from typing import Iterator, Optional


def canonical_header_name(name: str) -> str:
    """Return the canonical form of a header name, e.g. ``X-Forwarded-For``."""
    return "-".join(part.capitalize() for part in name.strip().split("-"))


class Headers:
    """Case-insensitive multi-valued header mapping preserving arrival order."""

    def __init__(self, pairs: Optional[list[tuple[str, str]]] = None) -> None:
        self._values: dict[str, list[str]] = {}
        for name, value in pairs or []:
            self.add(name, value)

    def add(self, name: str, value: str) -> None:
        """Append a value under the canonical form of ``name``."""
        self._values.setdefault(canonical_header_name(name), []).append(value)

    def get(self, name: str, default: str = "") -> str:
        """Return the first value for ``name`` or ``default``."""
        values = self._values.get(canonical_header_name(name))
        return values[0] if values else default

    def items(self) -> Iterator[tuple[str, list[str]]]:
        for name, values in self._values.items():
            yield name, list(values)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and canonical_header_name(name) in self._values

    def __repr__(self) -> str:
        return f"Headers({self._values!r})"


@dataclass
class HttpRequest:
    """Represents a parsed HTTP request."""

    method: str
    path: str
    headers: Headers
    body: bytes
    query: dict[str, list[str]] = field(default_factory=dict)
    peer_address: str = ""
    protocol: str = "HTTP/1.1"
    host: str = ""

    def query_param(self, name: str) -> str:
        """Return the first value of a query parameter, or an empty string."""
        values = self.query.get(name)
        return values[0] if values else ""

    @property
    def user_agent(self) -> str:
        return self.headers.get("User-Agent")


@dataclass
class HttpResponse:
    """Represents an HTTP response to be sent to a client."""

    status_line: str
    headers: dict[str, str]
    body: bytes
    close_connection: bool

    @property
    def status_code(self) -> int:
        return int(self.status_line.split(" ", 2)[1])


def should_close(request: HttpRequest) -> bool:
    """Determine whether the connection should be closed after responding."""
    connection = request.headers.get("Connection").lower()
    if request.protocol == "HTTP/1.0":
        return connection != "keep-alive"
    return connection == "close"
