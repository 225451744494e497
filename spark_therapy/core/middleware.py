"""
Custom middleware and request throttling for the FastAPI application.
"""
import threading
import time
import logging
import uuid
from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import Tuple

from fastapi import Depends, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from ..config import settings
from ..auth.exceptions import RateLimitExceededException

# Set up logging
logger = logging.getLogger(__name__)

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for logging request and response information.
    """
    def __init__(self, app: ASGIApp):
        super().__init__(app)

    async def dispatch(self, request: Request, call_next):
        """
        Process the request and log information.

        Args:
            request: The incoming request
            call_next: The next middleware or endpoint handler

        Returns:
            Response: The response from the next handler
        """
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        client_host = request.client.host if request.client else "unknown"
        logger.info(f"Request {request_id} started: {request.method} {request.url.path} from {client_host}")

        start_time = time.time()

        try:
            response = await call_next(request)

            process_time = time.time() - start_time

            response.headers["X-Process-Time"] = str(process_time)
            response.headers["X-Request-ID"] = request_id

            logger.info(
                f"Request {request_id} completed: {request.method} {request.url.path} "
                f"- Status: {response.status_code} - Duration: {process_time:.4f}s"
            )

            return response
        except Exception as e:
            process_time = time.time() - start_time
            logger.error(
                f"Request {request_id} failed: {request.method} {request.url.path} "
                f"- Error: {str(e)} - Duration: {process_time:.4f}s"
            )
            raise


class RateLimiter(ABC):
    """
    Counter backend for login throttling.

    Implementations must be safe to share between requests; a multi-process
    deployment needs a shared store (e.g. Redis) behind this interface.
    """

    @abstractmethod
    def hit(self, key: str) -> bool:
        """Record one attempt for ``key``; return False when the limit is exceeded."""


class InMemoryRateLimiter(RateLimiter):
    """
    Fixed-window counter kept in process memory.

    Windows are kept in start order, so expired ones are dropped from the
    front on every hit. Suitable for a single worker only.
    """
    def __init__(self, max_attempts: int, window_seconds: int):
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self._windows: "OrderedDict[str, Tuple[float, int]]" = OrderedDict()  # key -> (window start, count)
        self._lock = threading.Lock()

    @property
    def tracked_keys(self) -> int:
        return len(self._windows)

    def _evict_expired(self, now: float) -> None:
        while self._windows:
            key, (window_start, _) = next(iter(self._windows.items()))
            if now - window_start < self.window_seconds:
                break
            del self._windows[key]

    def hit(self, key: str) -> bool:
        now = time.monotonic()
        with self._lock:
            self._evict_expired(now)
            window_start, count = self._windows.get(key, (now, 0))
            self._windows[key] = (window_start, count + 1)
            return count + 1 <= self.max_attempts


login_rate_limiter = InMemoryRateLimiter(
    max_attempts=settings.login_rate_limit_attempts,
    window_seconds=settings.login_rate_limit_window_seconds
)


def get_login_rate_limiter() -> RateLimiter:
    """Dependency returning the limiter used for credential endpoints."""
    return login_rate_limiter


def limit_login_attempts(request: Request, limiter: RateLimiter = Depends(get_login_rate_limiter)) -> None:
    """
    Per-IP brute force protection in front of login and registration.

    Raises:
        RateLimitExceededException: If the client IP used up its window
    """
    client_ip = request.client.host if request.client else "unknown"
    if not limiter.hit(client_ip):
        logger.warning(f"Login rate limit exceeded for IP: {client_ip}")
        raise RateLimitExceededException()


def setup_middlewares(app):
    """
    Set up all custom middlewares for the application.

    Args:
        app: FastAPI application instance
    """
    app.add_middleware(RequestLoggingMiddleware)
