"""
REST HTTP client for the Devin API.

Every call returns an ``Outcome`` instead of raising: the retry loop and the
sessions layer branch on ``Outcome.kind``, and only the sessions layer turns
a failed outcome into an exception via ``unwrap()``.
"""

import asyncio
import errno
import logging
import socket
from typing import Any, Awaitable, Optional

import httpx

from devin_agent.credentials import sanitize_error_message
from devin_agent.errors import (
    AuthenticationError,
    DevinError,
    InsufficientCredits,
    NetworkError,
    RequestAborted,
    TransientServiceError,
)
from devin_agent.transport.signal import AbortSignal

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.devin.ai/v1"
DEFAULT_TIMEOUT = 30.0

CREDIT_EXHAUSTION_MARKERS = ("insufficient credits", "out of credits", "credit limit")


class Outcome:
    """Tagged result of one HTTP exchange."""

    __slots__ = ("kind", "value", "error")

    OK = "ok"
    AUTH = "auth"
    CREDITS = "credits"
    NETWORK = "network"
    TRANSIENT = "transient"
    ABORTED = "aborted"
    FAILED = "failed"

    def __init__(self, kind: str, value: Any = None, error: Optional[DevinError] = None):
        self.kind = kind
        self.value = value
        self.error = error

    @classmethod
    def success(cls, value: Any) -> "Outcome":
        return cls(cls.OK, value=value)

    @classmethod
    def failure(cls, kind: str, error: DevinError) -> "Outcome":
        return cls(kind, error=error)

    @property
    def ok(self) -> bool:
        return self.kind == self.OK

    @property
    def retryable(self) -> bool:
        return self.kind == self.TRANSIENT

    def unwrap(self) -> Any:
        if self.kind == self.OK:
            return self.value
        assert self.error is not None
        raise self.error

    def __repr__(self) -> str:
        return f"Outcome(kind={self.kind!r})"


def _error_detail(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200]
    if isinstance(body, dict):
        for key in ("error", "detail", "message"):
            value = body.get(key)
            if isinstance(value, str):
                return value
            if isinstance(value, dict) and isinstance(value.get("message"), str):
                return value["message"]
    return resp.text[:200]


def mentions_credit_exhaustion(text: str) -> bool:
    lowered = text.lower()
    return any(marker in lowered for marker in CREDIT_EXHAUSTION_MARKERS)


def classify_response(resp: httpx.Response) -> Outcome:
    """Map an error response (status >= 400) onto an outcome kind."""
    status = resp.status_code
    detail = sanitize_error_message(_error_detail(resp))
    if status in (401, 403):
        return Outcome.failure(Outcome.AUTH, AuthenticationError(status_code=status))
    if status == 402 or mentions_credit_exhaustion(detail):
        return Outcome.failure(Outcome.CREDITS, InsufficientCredits(status_code=status))
    if status == 429 or status >= 500:
        return Outcome.failure(
            Outcome.TRANSIENT,
            TransientServiceError(f"Devin AI API unavailable (HTTP {status}): {detail}", status),
        )
    return Outcome.failure(
        Outcome.FAILED,
        DevinError("http_error", f"HTTP {status}: {detail}", {"status_code": status}),
    )


def network_cause_code(exc: httpx.TransportError) -> str:
    """Best-effort low-level cause code (ECONNREFUSED, ENOTFOUND, ETIMEDOUT, ...)."""
    if isinstance(exc, httpx.TimeoutException):
        return "ETIMEDOUT"
    cause: Optional[BaseException] = exc
    while cause is not None:
        if isinstance(cause, socket.gaierror):
            return "ENOTFOUND"
        if isinstance(cause, OSError) and cause.errno in errno.errorcode:
            return errno.errorcode[cause.errno]
        cause = cause.__cause__ or cause.__context__
    if isinstance(exc, httpx.ConnectError):
        return "ECONNREFUSED"
    return type(exc).__name__


class HttpClient:
    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={
                "User-Agent": "devin-agent/0.1.0",
                "Accept": "application/json",
                "Authorization": f"Bearer {api_key}",
            },
            timeout=timeout,
            transport=transport,
        )

    async def get(self, path: str, signal: Optional[AbortSignal] = None) -> Outcome:
        return await self._send(self._client.get(path), signal)

    async def post(
        self, path: str, body: Optional[dict[str, Any]] = None, signal: Optional[AbortSignal] = None,
    ) -> Outcome:
        return await self._send(self._client.post(path, json=body), signal)

    async def upload(
        self, path: str, filename: str, content: bytes, mime_type: str, signal: Optional[AbortSignal] = None,
    ) -> Outcome:
        """Multipart form upload with a single ``file`` field."""
        return await self._send(self._client.post(path, files={"file": (filename, content, mime_type)}), signal)

    async def _send(self, request: Awaitable[httpx.Response], signal: Optional[AbortSignal]) -> Outcome:
        try:
            resp = await self._guarded(request, signal)
        except RequestAborted as e:
            return Outcome.failure(Outcome.ABORTED, e)
        except httpx.TransportError as e:
            code = network_cause_code(e)
            logger.debug(f"Transport failure ({code}): {sanitize_error_message(e)}")
            return Outcome.failure(Outcome.NETWORK, NetworkError(code))

        if resp.status_code >= 400:
            return classify_response(resp)
        if not resp.content:
            return Outcome.success({})
        try:
            return Outcome.success(resp.json())
        except ValueError:
            return Outcome.failure(
                Outcome.FAILED,
                DevinError("invalid_response", f"Invalid JSON from Devin AI API: {resp.text[:200]}"),
            )

    @staticmethod
    async def _guarded(request: Awaitable[httpx.Response], signal: Optional[AbortSignal]) -> httpx.Response:
        """Await ``request`` unless ``signal`` fires first, in which case the request is cancelled."""
        if signal is None:
            return await request
        if signal.aborted:
            if asyncio.iscoroutine(request):
                request.close()
            raise RequestAborted()
        task = asyncio.ensure_future(request)
        waiter = asyncio.ensure_future(signal.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not task.done():
                task.cancel()
                await asyncio.wait({task})
        if task.cancelled():
            raise RequestAborted()
        return task.result()

    async def close(self) -> None:
        await self._client.aclose()
