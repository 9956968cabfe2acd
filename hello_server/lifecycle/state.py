"""Server lifecycle state management."""

import enum
import logging
import threading
import time

from hello_server.domain.correlation_id import CorrelationLoggerAdapter

LIFECYCLE_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("hello_server.lifecycle"), {}
)


class LifecycleState(enum.Enum):
    STARTING = "starting"
    LISTENING = "listening"
    SHUTTING_DOWN = "shutting_down"
    TERMINATED = "terminated"


class ServerLifecycle:
    """Manages server lifecycle state and worker thread tracking.

    State is derived from three flags that are only ever set, never cleared.
    ``begin_draining`` runs inside signal handlers on the main thread, so the
    flags are plain attributes and never guarded by ``_lock``; the lock only
    protects the worker registry.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._listening = False
        self._stop_requested = False
        self._terminated = False
        self._workers: set[threading.Thread] = set()

    @property
    def state(self) -> LifecycleState:
        if self._terminated:
            return LifecycleState.TERMINATED
        if self._stop_requested:
            return LifecycleState.SHUTTING_DOWN
        if self._listening:
            return LifecycleState.LISTENING
        return LifecycleState.STARTING

    def mark_listening(self) -> None:
        """Record that the listening socket is bound and accepting."""
        self._listening = True
        LIFECYCLE_LOGGER.info(
            "Server is listening", extra={"event": "state_listening"}
        )

    def should_stop(self) -> bool:
        """Check if the server should stop accepting new connections."""
        return self._stop_requested or self._terminated

    def is_draining(self) -> bool:
        """Check if the server is in draining mode."""
        return self.should_stop()

    def register_worker(self, thread: threading.Thread) -> None:
        """Register a worker thread for tracking."""
        with self._lock:
            self._workers.add(thread)

    def cleanup_worker(self, thread: threading.Thread) -> None:
        """Remove a worker thread from tracking."""
        with self._lock:
            self._workers.discard(thread)

    def has_worker(self, thread: threading.Thread) -> bool:
        """Return True when the worker is currently tracked."""
        with self._lock:
            return thread in self._workers

    def active_worker_count(self) -> int:
        """Return the number of currently tracked worker threads."""
        with self._lock:
            return len(self._workers)

    def begin_draining(self) -> None:
        """Signal the server to begin graceful shutdown. Safe in signal handlers."""
        if self._terminated or self._stop_requested:
            return
        self._stop_requested = True
        LIFECYCLE_LOGGER.info(
            "Beginning graceful shutdown", extra={"event": "state_shutting_down"}
        )

    def mark_terminated(self) -> None:
        self._terminated = True
        LIFECYCLE_LOGGER.info("Server terminated", extra={"event": "state_terminated"})

    def wait_for_workers(self, timeout: float) -> bool:
        """Wait for all worker threads to complete within the timeout."""
        deadline = time.monotonic() + timeout
        while True:
            with self._lock:
                self._workers = {w for w in self._workers if w.is_alive()}
                active_workers = list(self._workers)
            if not active_workers:
                return True
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                LIFECYCLE_LOGGER.warning(
                    "Shutdown timeout exceeded",
                    extra={
                        "event": "shutdown_timeout",
                        "remaining_workers": len(active_workers),
                    },
                )
                return False
            for worker in active_workers:
                worker.join(timeout=min(0.1, remaining))
                if time.monotonic() >= deadline:
                    break
