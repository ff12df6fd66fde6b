"""
Base client for NCBI E-utilities access.

Provides: rate limiting, bounded timeouts, transport-level retry with
exponential backoff, structured logging, and the exception taxonomy shared
by the normalization layer.
"""

import asyncio
import logging
import math
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any

import aiohttp
from pydantic import BaseModel

from pubminer.constants import DEFAULT_MAX_RETRIES, DEFAULT_TIMEOUT

logger = logging.getLogger("pubminer.data_sources")


def parse_retry_after(value: str | None) -> float | None:
    """Seconds to wait from a Retry-After header, or None if absent or unusable.

    The header is either delta-seconds or an HTTP-date.
    """
    if not value:
        return None
    value = value.strip()
    try:
        seconds = float(value)
    except ValueError:
        seconds = None
    if seconds is not None:
        return max(seconds, 0.0) if math.isfinite(seconds) else None
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring unparseable Retry-After header: %r", value)
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max((when - datetime.now(timezone.utc)).total_seconds(), 0.0)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class RetryConfig(BaseModel):
    """Retry behaviour for failed requests."""

    max_retries: int = DEFAULT_MAX_RETRIES
    base_delay: float = 1.0  # seconds
    max_delay: float = 30.0  # seconds
    backoff_factor: float = 2.0
    retryable_status_codes: set[int] = {429, 500, 502, 503, 504}


class RateLimitConfig(BaseModel):
    """Token-bucket rate limiter settings."""

    requests_per_second: float = 3.0
    burst: int = 3


class ClientConfig(BaseModel):
    """Top-level config aggregating retry and rate limit."""

    retry: RetryConfig = RetryConfig()
    rate_limit: RateLimitConfig = RateLimitConfig()
    timeout_seconds: float = DEFAULT_TIMEOUT


# ---------------------------------------------------------------------------
# Rate limiter (async token bucket)
# ---------------------------------------------------------------------------


class TokenBucketRateLimiter:
    """
    Async token-bucket rate limiter.

    Allows `burst` requests immediately, then refills at
    `requests_per_second`.  Callers await `acquire()` before
    making a request; it sleeps only when the bucket is empty.
    """

    def __init__(self, config: RateLimitConfig):
        self.rate = config.requests_per_second
        self.max_tokens = config.burst
        self.tokens = float(config.burst)
        self.last_refill = time.monotonic()
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        async with self._lock:
            now = time.monotonic()
            elapsed = now - self.last_refill
            self.tokens = min(self.max_tokens, self.tokens + elapsed * self.rate)
            self.last_refill = now

            if self.tokens < 1.0:
                wait = (1.0 - self.tokens) / self.rate
                logger.debug("Rate limiter: sleeping %.2fs", wait)
                await asyncio.sleep(wait)
                self.tokens = 0.0
                self.last_refill = time.monotonic()
            else:
                self.tokens -= 1.0


# ---------------------------------------------------------------------------
# Request context (for structured logging)
# ---------------------------------------------------------------------------


class RequestContext(BaseModel):
    """Metadata attached to every outgoing request for logging."""

    source: str  # e.g. "eutils"
    method: str  # e.g. "esearch", "efetch"
    record_id: str | None = None  # e.g. the PMC id of a detail fetch


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class DataSourceError(Exception):
    """Base exception for data source failures."""

    def __init__(self, source: str, message: str, status_code: int | None = None):
        self.source = source
        self.message = message
        self.status_code = status_code
        super().__init__(f"[{source}] {message}")


class TransportError(DataSourceError):
    """Network failure, timeout, or non-2xx response."""

    def __init__(
        self,
        source: str,
        message: str,
        status_code: int | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(source, message, status_code=status_code)
        self.cause = cause


class RateLimitError(TransportError):
    """Raised when rate limit is exceeded and retries are exhausted."""

    pass


class InvalidDocumentFormatError(DataSourceError):
    """A required field or shape is missing from an upstream document.

    ``step`` names the pipeline stage that produced the document ("search",
    "link", "summary", "detail", "parse"), ``record_id`` the record being
    processed when there is one, and ``fragment`` a short excerpt of the
    offending document for diagnosis.
    """

    def __init__(
        self,
        source: str,
        message: str,
        *,
        step: str,
        record_id: str | None = None,
        fragment: str | None = None,
    ):
        self.step = step
        self.record_id = record_id
        self.fragment = fragment
        where = f"{step}:{record_id}" if record_id else step
        super().__init__(source, f"invalid {where} document: {message}")


# ---------------------------------------------------------------------------
# Base client
# ---------------------------------------------------------------------------


class BaseClient(ABC):
    """
    Abstract base for E-utilities clients.

    Subclasses implement `_source_name` and their own typed methods that
    call `_rest_get()` (JSON endpoints) or `_rest_get_xml()` (efetch).
    """

    def __init__(self, config: ClientConfig | None = None):
        self.config = config or ClientConfig()
        self.rate_limiter = TokenBucketRateLimiter(self.config.rate_limit)
        self._session: aiohttp.ClientSession | None = None

    @property
    @abstractmethod
    def _source_name(self) -> str:
        """Identifier for this data source, e.g. 'eutils'."""
        ...

    # -- Session management --------------------------------------------------

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()

    # -- Core request with retry + rate limiting -----------------------------

    def _backoff(self, attempt: int) -> float:
        return min(
            self.config.retry.base_delay * (self.config.retry.backoff_factor**attempt),
            self.config.retry.max_delay,
        )

    async def _request(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        as_text: bool = False,
        context: RequestContext | None = None,
    ) -> Any:
        """
        Make an HTTP GET with rate limiting and retry.

        Parameters
        ----------
        url : str
            Full URL.
        params : dict, optional
            Query string parameters, sent in insertion order.
        as_text : bool
            Return the raw body text instead of decoded JSON.
        context : RequestContext, optional
            Logging context.

        Raises
        ------
        TransportError
            Timeout, connection failure, or non-2xx status once retries are
            exhausted.
        InvalidDocumentFormatError
            The body is not valid JSON when JSON was expected.
        """
        ctx = context or RequestContext(source=self._source_name, method="unknown")

        last_error: TransportError | None = None
        start = time.monotonic()

        for attempt in range(self.config.retry.max_retries + 1):
            try:
                await self.rate_limiter.acquire()
                session = await self._get_session()

                logger.info(
                    "Request [%s.%s] attempt=%d url=%s",
                    ctx.source,
                    ctx.method,
                    attempt + 1,
                    url,
                )

                resp = await session.get(url, params=params)

                # --- Handle HTTP errors ---
                if resp.status in self.config.retry.retryable_status_codes:
                    body = await resp.text()
                    logger.warning(
                        "Retryable %d from %s.%s: %s",
                        resp.status,
                        ctx.source,
                        ctx.method,
                        body[:200],
                    )
                    error_cls = RateLimitError if resp.status == 429 else TransportError
                    last_error = error_cls(
                        ctx.source,
                        f"HTTP {resp.status}: {body[:200]}",
                        status_code=resp.status,
                    )
                    if resp.status == 429:
                        # Respect Retry-After header if present
                        retry_after = parse_retry_after(resp.headers.get("Retry-After"))
                        if (
                            retry_after is not None
                            and attempt < self.config.retry.max_retries
                        ):
                            await asyncio.sleep(
                                min(retry_after, self.config.retry.max_delay)
                            )
                            continue

                    if attempt < self.config.retry.max_retries:
                        await asyncio.sleep(self._backoff(attempt))
                    continue

                if resp.status >= 400:
                    body = await resp.text()
                    raise TransportError(
                        ctx.source,
                        f"HTTP {resp.status}: {body[:500]}",
                        status_code=resp.status,
                    )

                # --- Success ---
                if as_text:
                    data = await resp.text()
                else:
                    try:
                        data = await resp.json(content_type=None)
                    except ValueError as e:
                        raise InvalidDocumentFormatError(
                            ctx.source,
                            f"response is not JSON: {e}",
                            step=ctx.method,
                            record_id=ctx.record_id,
                        ) from e
                elapsed = time.monotonic() - start

                logger.info(
                    "Success [%s.%s] elapsed=%.2fs",
                    ctx.source,
                    ctx.method,
                    elapsed,
                )
                return data

            except asyncio.TimeoutError as e:
                elapsed = time.monotonic() - start
                last_error = TransportError(
                    ctx.source, f"Timeout after {elapsed:.1f}s", cause=e
                )
                logger.warning(
                    "Timeout [%s.%s] attempt=%d elapsed=%.1fs",
                    ctx.source,
                    ctx.method,
                    attempt + 1,
                    elapsed,
                )

            except aiohttp.ClientError as e:
                last_error = TransportError(
                    ctx.source, f"Connection error: {e}", cause=e
                )
                logger.warning(
                    "Connection error [%s.%s] attempt=%d: %s",
                    ctx.source,
                    ctx.method,
                    attempt + 1,
                    e,
                )

            # Exponential backoff before next attempt
            if attempt < self.config.retry.max_retries:
                await asyncio.sleep(self._backoff(attempt))

        elapsed = time.monotonic() - start
        logger.error(
            "All retries exhausted [%s.%s] after %.1fs: %s",
            ctx.source,
            ctx.method,
            elapsed,
            last_error,
        )
        raise last_error

    # -- Convenience methods for subclasses ----------------------------------

    async def _rest_get(
        self,
        url: str,
        params: dict[str, Any],
        *,
        context: RequestContext | None = None,
    ) -> dict[str, Any]:
        """REST GET returning decoded JSON (esearch, elink, esummary)."""
        return await self._request(url, params=params, context=context)

    async def _rest_get_xml(
        self,
        url: str,
        params: dict[str, Any],
        *,
        context: RequestContext | None = None,
    ) -> str:
        """REST GET returning the raw XML body (efetch)."""
        return await self._request(url, params=params, as_text=True, context=context)
