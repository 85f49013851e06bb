"""HTTP client with retries, timeouts, and client-side rate limiting."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from types import TracebackType
from typing import Any, Callable

import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

from ham_station.common.constants import GEOCODE_MAX_ATTEMPTS, USER_AGENT
from ham_station.common.errors import GeocodeError


@dataclass(frozen=True)
class TimeoutConfig:
    connect: float = 10.0
    read: float = 30.0


@dataclass(frozen=True)
class RetryConfig:
    max_attempts: int = GEOCODE_MAX_ATTEMPTS
    multiplier: float = 1.0
    max_wait: float = 30.0


class TransportError(GeocodeError):
    """One HTTP attempt failed: the request raised or the status was not 200."""

    error_code = "TRANSPORT_ERROR"


class TokenBucket:
    def __init__(self, rate_per_sec: float, capacity: float | None = None) -> None:
        self.rate_per_sec = rate_per_sec
        self.capacity = capacity if capacity is not None else max(rate_per_sec, 1.0)
        self.tokens = self.capacity
        self.updated_at = time.monotonic()
        self.lock = threading.Lock()

    def acquire(self, tokens: float = 1.0) -> None:
        while True:
            with self.lock:
                now = time.monotonic()
                elapsed = now - self.updated_at
                self.tokens = min(self.capacity, self.tokens + elapsed * self.rate_per_sec)
                self.updated_at = now
                if self.tokens >= tokens:
                    self.tokens -= tokens
                    return
                wait_for = max((tokens - self.tokens) / self.rate_per_sec, 0.01)
            time.sleep(wait_for)


FailureHook = Callable[[int, TransportError], None]


class HttpClient:
    def __init__(
        self,
        *,
        timeout: TimeoutConfig | None = None,
        retry: RetryConfig | None = None,
        rate_per_sec: float | None = None,
    ) -> None:
        self.timeout = timeout or TimeoutConfig()
        self.retry = retry or RetryConfig()
        self.session = requests.Session()
        self.limiter = TokenBucket(rate_per_sec) if rate_per_sec else None

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _headers(self, headers: dict[str, str] | None) -> dict[str, str]:
        out = {"User-Agent": USER_AGENT, "Accept": "application/json"}
        if headers:
            out.update(headers)
        return out

    def _get_text_once(
        self,
        url: str,
        *,
        params: dict[str, Any] | None,
        headers: dict[str, str] | None,
    ) -> str:
        if self.limiter is not None:
            self.limiter.acquire()

        try:
            response = self.session.request(
                method="GET",
                url=url,
                params=params,
                headers=self._headers(headers),
                timeout=(self.timeout.connect, self.timeout.read),
            )
        except requests.RequestException as exc:
            raise TransportError(f"Http exception: {exc}") from exc

        if response.status_code != 200:
            reason = getattr(response, "reason", None) or ""
            raise TransportError(f"Status code {response.status_code} {reason}".rstrip())

        return response.text

    def get_text(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        on_failure: FailureHook | None = None,
    ) -> str:
        """GET ``url`` and return the body, retrying failed attempts.

        ``on_failure`` is called with the attempt number and the error after
        every failed attempt, including the last. The final ``TransportError``
        is re-raised once ``retry.max_attempts`` is reached.
        """
        attempts = 0

        @retry(
            stop=stop_after_attempt(self.retry.max_attempts),
            wait=wait_exponential_jitter(
                initial=self.retry.multiplier,
                max=self.retry.max_wait,
                jitter=1.0,
            ),
            retry=retry_if_exception_type(TransportError),
            reraise=True,
        )
        def _wrapped() -> str:
            nonlocal attempts
            attempts += 1
            try:
                return self._get_text_once(url, params=params, headers=headers)
            except TransportError as exc:
                if on_failure is not None:
                    on_failure(attempts, exc)
                raise

        return _wrapped()
