"""Context object shared across worker threads."""

from dataclasses import dataclass
from typing import Optional

from hello_server.bootstrap.config import ServerConfig
from hello_server.domain.cache import CacheClient
from hello_server.lifecycle.state import ServerLifecycle


@dataclass
class WorkerContext:
    """Dependencies shared across handler threads.

    ``cache`` is None when the cache collaborator is disabled, in which case
    the cache lookup route is not served.
    """

    cache: Optional[CacheClient] = None
    lifecycle: Optional[ServerLifecycle] = None
    config: Optional[ServerConfig] = None
