"""Best-guess resolution of the originating client address."""

from typing import Optional

from hello_server.domain.http_types import Headers


def split_host_port(address: str) -> Optional[tuple[str, str]]:
    """Split ``host:port`` or ``[v6-host]:port``; return None when malformed."""
    if address.startswith("["):
        end = address.find("]")
        if end < 0 or address[end + 1 : end + 2] != ":":
            return None
        host, port = address[1:end], address[end + 2 :]
        if "[" in host or "]" in port or "[" in port:
            return None
        return host, port

    host, sep, port = address.rpartition(":")
    if not sep or ":" in host or "[" in address or "]" in address:
        return None
    return host, port


def resolve_client_ip(headers: Headers, peer_address: str) -> str:
    """Return the client IP, trusting forwarding headers over the peer address.

    ``X-Forwarded-For`` wins (first hop only), then ``X-Real-Ip``, then the
    host part of the peer address. Values are not validated as IP addresses.
    """
    forwarded_for = headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = headers.get("X-Real-Ip")
    if real_ip:
        return real_ip

    parts = split_host_port(peer_address)
    if parts is None:
        return peer_address
    return parts[0]


def format_peer_address(client_address: tuple) -> str:
    """Render a socket address tuple as ``host:port``, bracketing IPv6 hosts."""
    host, port = client_address[0], client_address[1]
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"
