"""Pytest configuration and shared fixtures."""

import os

import httpx
import pytest

# Set dummy env vars before importing modules that require them
os.environ.setdefault("GITHUB_TOKEN", "test-token")

from issue_responder.attachments.resolver import RenderedHtmlSource
from issue_responder.http_client import RetryingHttpClient, RetryPolicy

SERVER = "https://github.com"


class FakeHtmlSource(RenderedHtmlSource):
    """Serves canned rendered HTML keyed by (accessor, id) and records every call."""

    def __init__(self, pages: dict[tuple, str | None] | None = None):
        self.pages = pages or {}
        self.calls: list[tuple] = []

    async def _lookup(self, key: tuple) -> str | None:
        self.calls.append(key)
        value = self.pages.get(key)
        if isinstance(value, Exception):
            raise value
        return value

    async def get_issue_comment_html(self, comment_id):
        return await self._lookup(("issue_comment", comment_id))

    async def get_review_comment_html(self, comment_id):
        return await self._lookup(("review_comment", comment_id))

    async def get_review_html(self, pull_number, review_id):
        return await self._lookup(("review_body", pull_number, review_id))

    async def get_issue_html(self, issue_number):
        return await self._lookup(("issue_body", issue_number))

    async def get_pull_request_html(self, pull_number):
        return await self._lookup(("pr_body", pull_number))


class FakeCdn:
    """MockTransport handler serving bytes per URL and counting requests."""

    def __init__(self, files: dict[str, bytes] | None = None):
        self.files = files or {}
        self.requests: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        if url not in self.files:
            return httpx.Response(404, text="Not Found")
        return httpx.Response(200, content=self.files[url])


def make_http(handler, max_retries: int = 3, timeout_ms: int = 2000) -> RetryingHttpClient:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return RetryingHttpClient(client, RetryPolicy(max_retries=max_retries, retry_delay_ms=0, timeout_ms=timeout_ms))


@pytest.fixture
def downloads_dir(tmp_path):
    """Create a temporary staging directory path for tests."""
    return str(tmp_path / "attachments")
