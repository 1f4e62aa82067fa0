"""Request execution engine over ``httpx.AsyncClient``.

One ``RequestExecutor`` turns a ``RequestDescriptor`` into a network call with
a per-attempt deadline, status classification, sequential retries with
backoff, and sharing of identical in-flight GETs. It is the only place where
``httpx`` failures are translated: every failure that leaves it is a
``SpecStoryError``.
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import UTC, datetime
from time import perf_counter
from typing import Any, Awaitable, Callable

import httpx

from ..config.models import (
    DEFAULT_BASE_URL,
    DEFAULT_MAX_RETRIES,
    DEFAULT_TIMEOUT_SECONDS,
    validate_base_url,
)
from ..errors import (
    ErrorContext,
    SpecStoryError,
    classify_status,
    codes,
    invalid_body_error,
    invalid_json_error,
    invalid_url_error,
    network_error,
    timeout_error,
)
from ..logging import fields
from ..logging.context import log_context
from ..logging.debug import DebugLogger
from .backoff import BackoffPolicy
from .dedupe import RequestDeduplicator
from .request import RETRY_STATUS_CODES, RequestDescriptor, WithHeaders

SDK_NAME = "specstory-sdk"
SDK_VERSION = "0.1.0"
SDK_LANGUAGE = "python"

_LOGGER = logging.getLogger(__name__)


class RequestExecutor:
    """Execute logical API calls against one base URL with one credential."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        backoff: BackoffPolicy | None = None,
        debug: DebugLogger | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """Create an executor owning its own deduplication table."""
        if api_key.strip() == "":
            raise ValueError("api_key must not be empty")
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        if max_retries < 0:
            raise ValueError("max_retries must be zero or greater")
        self._api_key = api_key
        self._base_url = validate_base_url(base_url)
        self._timeout = timeout_seconds
        self._max_retries = max_retries
        self._backoff = BackoffPolicy() if backoff is None else backoff
        self._debug = debug
        self._sleep = sleep
        self._dedupe = RequestDeduplicator()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout_seconds,
            follow_redirects=False,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def timeout_seconds(self) -> float:
        return self._timeout

    @property
    def max_retries(self) -> int:
        return self._max_retries

    @property
    def deduplicator(self) -> RequestDeduplicator:
        return self._dedupe

    async def aclose(self) -> None:
        """Close underlying transport resources when owned."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> RequestExecutor:
        """Enter async context manager scope."""
        return self

    async def __aexit__(self, *_: object) -> None:
        """Exit async context manager scope and close client."""
        await self.aclose()

    async def request(self, descriptor: RequestDescriptor) -> Any:
        """Execute one call and return its decoded payload."""
        url = self.build_url(descriptor)
        if descriptor.method == "GET":
            result = await self._dedupe.dedupe(
                f"GET:{url}", lambda: self._perform(descriptor, url)
            )
        else:
            result = await self._perform(descriptor, url)
        return result.data

    async def request_with_headers(self, descriptor: RequestDescriptor) -> WithHeaders[Any]:
        """Execute one call and return payload plus response headers."""
        url = self.build_url(descriptor)
        if descriptor.method == "GET":
            return await self._dedupe.dedupe(
                f"GET:{url}:with-headers", lambda: self._perform(descriptor, url)
            )
        return await self._perform(descriptor, url)

    def build_url(self, descriptor: RequestDescriptor) -> str:
        """Return the absolute URL (with query string) for ``descriptor``."""
        url = f"{self._base_url}{descriptor.path}"
        if descriptor.params:
            params = {key: value for key, value in descriptor.params.items() if value is not None}
            if params:
                try:
                    url = str(httpx.URL(url).copy_merge_params(params))
                except httpx.InvalidURL as exc:
                    raise invalid_url_error(url, cause=exc) from exc
        return url

    def build_headers(self, descriptor: RequestDescriptor) -> httpx.Headers:
        """Return default headers with descriptor headers overriding on collision."""
        headers = httpx.Headers(
            {
                "Authorization": f"Bearer {self._api_key}",
                "Content-Type": "application/json",
                "User-Agent": f"{SDK_NAME}-{SDK_LANGUAGE}/{SDK_VERSION}",
                "X-SDK-Version": SDK_VERSION,
                "X-SDK-Language": SDK_LANGUAGE,
            }
        )
        if descriptor.idempotency_key:
            headers["Idempotency-Key"] = descriptor.idempotency_key
        headers.update(descriptor.headers)
        return headers

    async def _perform(self, descriptor: RequestDescriptor, url: str) -> WithHeaders[Any]:
        headers = self.build_headers(descriptor)
        content = self._encode_body(descriptor, url)
        trace_id = (
            self._debug.log_request(descriptor.method, url, dict(headers.items()), descriptor.body)
            if self._debug is not None
            else None
        )
        try:
            return await self._attempt(descriptor, url, headers, content, trace_id)
        finally:
            if self._debug is not None and trace_id is not None:
                self._debug.discard(trace_id)

    async def _attempt(
        self,
        descriptor: RequestDescriptor,
        url: str,
        headers: httpx.Headers,
        content: bytes | None,
        trace_id: str | None,
    ) -> WithHeaders[Any]:
        method = descriptor.method
        timeout = descriptor.timeout_seconds or self._timeout
        max_retries = self._max_retries if descriptor.retries is None else descriptor.retries
        started = perf_counter()

        attempt = 0
        while True:
            timed_out = False
            try:
                async with asyncio.timeout(timeout):
                    response = await self._client.request(
                        method, url, headers=headers, content=content, timeout=timeout
                    )
            except httpx.InvalidURL as exc:
                error = invalid_url_error(url, cause=exc)
                self._fail(error, trace_id)
                raise error from exc
            except (httpx.TimeoutException, TimeoutError) as exc:
                cause: BaseException = exc
                timed_out = True
            except (httpx.HTTPError, OSError) as exc:
                cause = exc
            else:
                if response.is_success:
                    return self._decode(descriptor, url, response, started, attempt, trace_id)

                context = self._context(method, url, started, attempt)
                error = classify_status(response.status_code, response.headers, context=context)
                if attempt < max_retries and _should_retry_status(descriptor, response.status_code):
                    await self._wait(method, url, attempt, error)
                    attempt += 1
                    continue
                if self._debug is not None and trace_id is not None:
                    self._debug.log_response(
                        trace_id, response.status_code, dict(response.headers.items())
                    )
                self._fail(error, trace_id)
                raise error

            if attempt < max_retries and descriptor.is_idempotent:
                await self._wait(method, url, attempt, cause)
                attempt += 1
                continue

            context = self._context(method, url, started, attempt)
            if timed_out:
                error = timeout_error(round(timeout * 1000), context=context, cause=cause)
            elif attempt > 0:
                error = network_error(
                    f"Request failed after {attempt + 1} attempts: {cause}",
                    cause=cause,
                    context=context,
                    code=codes.MAX_RETRIES_EXCEEDED,
                )
            else:
                error = network_error(f"Request failed: {cause}", cause=cause, context=context)
            self._fail(error, trace_id)
            raise error from cause

    def _decode(
        self,
        descriptor: RequestDescriptor,
        url: str,
        response: httpx.Response,
        started: float,
        attempt: int,
        trace_id: str | None,
    ) -> WithHeaders[Any]:
        status = response.status_code
        response_headers = dict(response.headers.items())
        if self._debug is not None and trace_id is not None:
            self._debug.log_response(trace_id, status, response_headers)

        if status == 204:
            return WithHeaders(data=None, headers=response_headers, status=status)
        if descriptor.method == "HEAD":
            return WithHeaders(
                data={"headers": response_headers, "status": status},
                headers=response_headers,
                status=status,
            )
        try:
            data = response.json()
        except ValueError as exc:
            error = invalid_json_error(
                status=status,
                context=self._context(descriptor.method, url, started, attempt),
                cause=exc,
            )
            self._fail(error, trace_id)
            raise error from exc
        return WithHeaders(data=data, headers=response_headers, status=status)

    def _encode_body(self, descriptor: RequestDescriptor, url: str) -> bytes | None:
        if descriptor.body is None:
            return None
        try:
            return json.dumps(descriptor.body, separators=(",", ":")).encode("utf-8")
        except (TypeError, ValueError) as exc:
            error = invalid_body_error(method=descriptor.method, url=url, cause=exc)
            self._fail(error)
            raise error from exc

    async def _wait(self, method: str, url: str, attempt: int, reason: object) -> None:
        delay = self._backoff.delay(attempt)
        with log_context(
            {
                fields.EVENT: fields.RETRY_EVENT,
                fields.METHOD: method,
                fields.URL: url,
                fields.ATTEMPT: attempt + 1,
                fields.DELAY_MS: round(delay * 1000, 1),
            }
        ):
            _LOGGER.warning("Retrying request after failure: %s", reason)
        await self._sleep(delay)

    def _fail(self, error: SpecStoryError, trace_id: str | None = None) -> None:
        if self._debug is not None:
            context = error.context.to_dict() if error.context is not None else None
            self._debug.log_error(error, context, request_id=trace_id)

    @staticmethod
    def _context(method: str, url: str, started: float, attempt: int) -> ErrorContext:
        return ErrorContext(
            method=method,
            url=url,
            timestamp=datetime.now(UTC),
            duration_ms=round((perf_counter() - started) * 1000, 3),
            retry_count=attempt,
        )


def _should_retry_status(descriptor: RequestDescriptor, status: int) -> bool:
    """Return True for statuses the executor retries while attempts remain."""
    if status in RETRY_STATUS_CODES:
        return True
    return descriptor.method == "POST" and bool(descriptor.idempotency_key) and status >= 500
