"""HTTP execution with bounded retries, exponential backoff, and per-attempt timeouts."""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

import httpx

from issue_responder import config
from issue_responder.tracing import log

T = TypeVar("T")

ERROR_BODY_PLACEHOLDER = "Failed to read error response"


@dataclass(frozen=True)
class RetryPolicy:
    """How many attempts to make, how long to wait between them, and how long each may take."""
    max_retries: int = 3
    retry_delay_ms: int = 1000
    timeout_ms: int = 5000

    def backoff_seconds(self, attempt: int) -> float:
        """Delay after a failed `attempt` (1-based): retry_delay_ms * 2^(attempt-1)."""
        return self.retry_delay_ms * 2 ** (attempt - 1) / 1000


def default_policy() -> RetryPolicy:
    return RetryPolicy(
        max_retries=config.HTTP_MAX_RETRIES,
        retry_delay_ms=config.HTTP_RETRY_DELAY_MS,
        timeout_ms=config.HTTP_TIMEOUT_MS,
    )


class HttpStatusError(Exception):
    """A response arrived but its status was not 2xx."""

    def __init__(self, url: str, status_code: int, reason: str, body: str):
        super().__init__(f"HTTP error! {{status: {status_code}, msg: {reason}, details: {body}}}")
        self.url = url
        self.status_code = status_code
        self.reason = reason
        self.body = body


class RetriesExhaustedError(Exception):
    """Every attempt for a URL failed with a transport error or timeout."""

    def __init__(self, url: str, attempts: int, last_error: BaseException | None):
        message = str(last_error) if last_error else "unknown error"
        super().__init__(f"Failed to fetch {url} after {attempts} attempts: {message}")
        self.url = url
        self.attempts = attempts
        self.last_error = last_error


async def _raise_for_status(response: httpx.Response, url: str) -> None:
    if response.is_success:
        return
    try:
        await response.aread()
        body = response.text
    except Exception:
        body = ERROR_BODY_PLACEHOLDER
    raise HttpStatusError(url, response.status_code, response.reason_phrase, body)


class RetryingHttpClient:
    """Wraps an `httpx.AsyncClient` with the retry/backoff/timeout loop.

    Every variant shares the same loop:
    - `execute()` returns a fully buffered `httpx.Response`
    - `execute_stream()` passes the unread response to a caller-supplied reader
    - `execute_streaming()` reads the body incrementally and returns the joined text

    The timeout applies to a whole attempt (connect, headers and body), not per chunk.
    """

    def __init__(self, client: httpx.AsyncClient | None = None, policy: RetryPolicy | None = None):
        self._owns_client = client is None
        # Attempt timeouts come from the policy, so httpx's own timeout is disabled
        self._client = client or httpx.AsyncClient(follow_redirects=True, timeout=None)
        self.policy = policy or default_policy()

    async def __aenter__(self) -> "RetryingHttpClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def execute(
        self,
        method: str,
        url: str,
        *,
        policy: RetryPolicy | None = None,
        **request_options: Any,
    ) -> httpx.Response:
        """Send a request and return the buffered response.

        Raises:
            HttpStatusError: the server answered with a non-2xx status
            RetriesExhaustedError: every attempt failed or timed out
        """
        async def attempt() -> httpx.Response:
            response = await self._client.request(method, url, **request_options)
            await _raise_for_status(response, url)
            return response

        return await self._run_with_retries(url, attempt, policy or self.policy, "Attempt")

    async def execute_streaming(
        self,
        method: str,
        url: str,
        *,
        policy: RetryPolicy | None = None,
        **request_options: Any,
    ) -> str:
        """Send a request, decode the streamed body chunk by chunk, and return the full text."""
        async def read_text(response: httpx.Response) -> str:
            chunks: list[str] = []
            async for chunk in response.aiter_text():
                log("📦", f"Streaming chunk ({len(chunk)} chars)", dim=True, stage="http")
                chunks.append(chunk)
            return "".join(chunks)

        return await self.execute_stream(method, url, read_text, policy=policy, **request_options)

    async def execute_stream(
        self,
        method: str,
        url: str,
        consume: Callable[[httpx.Response], Awaitable[T]],
        *,
        policy: RetryPolicy | None = None,
        **request_options: Any,
    ) -> T:
        """Send a request and hand the unread 2xx response to `consume`.

        `consume` runs inside the attempt, under its timeout, and may stop
        reading early by raising. Only transport errors and timeouts are retried.
        """
        async def attempt() -> T:
            async with self._client.stream(method, url, **request_options) as response:
                await _raise_for_status(response, url)
                return await consume(response)

        return await self._run_with_retries(url, attempt, policy or self.policy, "Streaming attempt")

    async def _run_with_retries(
        self,
        url: str,
        attempt_fn: Callable[[], Awaitable[T]],
        policy: RetryPolicy,
        label: str,
    ) -> T:
        max_attempts = max(1, policy.max_retries)
        timeout = policy.timeout_ms / 1000
        last_error: BaseException | None = None

        for attempt in range(1, max_attempts + 1):
            log("🌐", f"{label} {attempt}/{max_attempts} for {url}", dim=True, stage="http")
            try:
                return await asyncio.wait_for(attempt_fn(), timeout=timeout)
            except HttpStatusError:
                raise
            except TimeoutError:
                last_error = TimeoutError(f"Request timed out after {policy.timeout_ms} ms")
            except httpx.TransportError as e:
                last_error = e

            log("⚠️", f"{label} {attempt}/{max_attempts} failed: {last_error}", stage="http")

            if attempt < max_attempts:
                delay = policy.backoff_seconds(attempt)
                log("⏳", f"Retrying after {delay * 1000:.0f}ms", dim=True, stage="http")
                await asyncio.sleep(delay)

        raise RetriesExhaustedError(url, max_attempts, last_error)
