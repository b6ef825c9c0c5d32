"""In-memory fixed-window rate limiter for protecting the search endpoint.

Counts requests per client identifier in a dict guarded by a single lock.
A daemon thread sweeps expired entries so the store does not grow without
bound. Single-node only: every process keeps its own counts, and a restart
resets all quotas.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Mapping, Sequence

from fastapi import Request

logger = logging.getLogger(__name__)

# Edge headers in priority order: CDN > reverse proxy > forwarded chain
DEFAULT_CLIENT_ID_HEADERS = ("cf-connecting-ip", "x-real-ip", "x-forwarded-for")
UNKNOWN_CLIENT = "unknown"
DEFAULT_SWEEP_INTERVAL_SECONDS = 5 * 60


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class RateLimitConfig:
    """Per-call quota: at most ``max_requests`` per ``window_seconds``."""

    max_requests: int = 10
    window_seconds: int = 60

    def __post_init__(self):
        if self.max_requests <= 0:
            raise ValueError(f"max_requests must be positive, got {self.max_requests}")
        if self.window_seconds <= 0:
            raise ValueError(f"window_seconds must be positive, got {self.window_seconds}")

    @property
    def window_ms(self) -> int:
        return self.window_seconds * 1000


@dataclass
class RateLimitEntry:
    count: int
    reset_time: int  # epoch ms


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a single rate limit check."""

    allowed: bool
    limit: int
    remaining: int
    reset_time: int  # epoch ms

    def retry_after(self, now_ms: int) -> int:
        """Whole seconds until the window resets, rounded up."""
        return max(0, -(-(self.reset_time - now_ms) // 1000))


def get_client_id(
    request: Request,
    header_priority: Sequence[str] = DEFAULT_CLIENT_ID_HEADERS,
) -> str:
    """Derive a client identifier from edge-supplied headers.

    Headers are tried in order; the first non-empty one wins. Comma-separated
    values (an ``X-Forwarded-For`` chain) contribute only their first entry.
    Requests without any of the headers share the ``"unknown"`` bucket.
    """
    return client_id_from_headers(request.headers, header_priority)


def client_id_from_headers(
    headers: Mapping[str, str],
    header_priority: Sequence[str] = DEFAULT_CLIENT_ID_HEADERS,
) -> str:
    # Starlette's Headers is case-insensitive; names are lowercased for plain dicts
    for name in header_priority:
        value = headers.get(name.lower())
        if value:
            client_id = value.split(",")[0].strip()
            if client_id:
                return client_id
    return UNKNOWN_CLIENT


def create_rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    """Project a result onto the standard ``X-RateLimit-*`` response headers."""
    return {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(result.reset_time // 1000),
    }


class RateLimiter:
    """Fixed-window rate limiter keyed by client identifier.

    The window for a client starts at its first request (or its first request
    after the previous window expired) and lasts ``window_seconds``. Every
    check counts, including denied ones.

    Usage:
        with RateLimiter(RateLimitConfig(max_requests=20)) as limiter:
            result = limiter.check(request)
            if not result.allowed:
                ...
    """

    def __init__(
        self,
        config: RateLimitConfig | None = None,
        clock: Callable[[], int] = _now_ms,
        client_id_headers: Sequence[str] = DEFAULT_CLIENT_ID_HEADERS,
        sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
    ):
        self.config = config or RateLimitConfig()
        self.clock = clock
        self.client_id_headers = tuple(h.lower() for h in client_id_headers)
        self.sweep_interval_seconds = sweep_interval_seconds
        self._store: dict[str, RateLimitEntry] = {}
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    # ── Checks ───────────────────────────────────────────────────────

    def check(
        self, request: Request, config: RateLimitConfig | None = None
    ) -> RateLimitResult:
        """Record one request from the caller and report whether it is allowed."""
        client_id = get_client_id(request, self.client_id_headers)
        result = self.check_key(client_id, config)
        if not result.allowed:
            logger.info(
                "Rate limit exceeded for %s (%d per %ds)",
                client_id, result.limit, (config or self.config).window_seconds,
            )
        return result

    def check_key(
        self, client_id: str, config: RateLimitConfig | None = None
    ) -> RateLimitResult:
        """Same as :meth:`check` for an already-resolved client identifier."""
        config = config or self.config
        now = self.clock()

        with self._lock:
            entry = self._store.get(client_id)
            if entry is None or now > entry.reset_time:
                entry = RateLimitEntry(count=0, reset_time=now + config.window_ms)
                self._store[client_id] = entry
            entry.count += 1
            count = entry.count
            reset_time = entry.reset_time

        return RateLimitResult(
            allowed=count <= config.max_requests,
            limit=config.max_requests,
            remaining=max(0, config.max_requests - count),
            reset_time=reset_time,
        )

    # ── Store maintenance ────────────────────────────────────────────

    def sweep(self) -> int:
        """Evict entries whose window has fully elapsed. Returns eviction count."""
        now = self.clock()
        with self._lock:
            expired = [key for key, entry in self._store.items() if now > entry.reset_time]
            for key in expired:
                del self._store[key]
        if expired:
            logger.debug("Rate limit sweep evicted %d entries", len(expired))
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def __contains__(self, client_id: str) -> bool:
        with self._lock:
            return client_id in self._store

    def reset(self) -> None:
        """Forget all clients."""
        with self._lock:
            self._store.clear()

    # ── Lifecycle ────────────────────────────────────────────────────

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the background sweep thread. No-op if already running."""
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._sweep_loop, name="rate-limit-sweep", daemon=True
        )
        self._thread.start()
        logger.debug("Rate limit sweep started (every %ss)", self.sweep_interval_seconds)

    def stop(self) -> None:
        """Stop the sweep thread and wait for it to exit."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=5.0)
            self._thread = None

    def _sweep_loop(self) -> None:
        while not self._stop_event.wait(self.sweep_interval_seconds):
            try:
                self.sweep()
            except Exception:
                logger.exception("Rate limit sweep failed")

    def __enter__(self) -> "RateLimiter":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
