"""Resolve attachment references to signed URLs via the rendered HTML of the same text."""

import html
import re
from abc import ABC, abstractmethod
from functools import lru_cache
from typing import assert_never

from issue_responder.attachments.models import (
    IssueBody,
    IssueComment,
    PullRequestBody,
    ResolvedURL,
    ReviewBody,
    ReviewComment,
    SourceText,
    describe,
)
from issue_responder.tracing import log

IMAGE_HOST_MARKER = "user-images"


@lru_cache(maxsize=8)
def _signed_url_pattern(server_url: str) -> re.Pattern[str]:
    # Signed URL shapes found in rendered HTML, scanned together so matches keep document order:
    # 1. private image host with a short-lived JWT
    # 2. file attachments on the server itself (no token)
    # 3. legacy image host
    server = re.escape(server_url.rstrip("/"))
    return re.compile(
        r"https://private-user-images\.githubusercontent\.com/[^\"]+\?jwt=[^\"]+"
        rf"|{server}/user-attachments/files/[^\"'>\s]+"
        r"|https://user-images\.githubusercontent\.com/[^\"'>\s]+"
    )


class RenderedHtmlSource(ABC):
    """Fetches the rendered HTML for each kind of source text.

    Each accessor returns None when the platform has no rendered body.
    """

    @abstractmethod
    async def get_issue_comment_html(self, comment_id: int) -> str | None:
        pass

    @abstractmethod
    async def get_review_comment_html(self, comment_id: int) -> str | None:
        pass

    @abstractmethod
    async def get_review_html(self, pull_number: int, review_id: int) -> str | None:
        pass

    @abstractmethod
    async def get_issue_html(self, issue_number: int) -> str | None:
        pass

    @abstractmethod
    async def get_pull_request_html(self, pull_number: int) -> str | None:
        pass


async def fetch_rendered_html(text: SourceText, source: RenderedHtmlSource) -> str | None:
    match text:
        case IssueComment(id=comment_id):
            return await source.get_issue_comment_html(comment_id)
        case ReviewComment(id=comment_id):
            return await source.get_review_comment_html(comment_id)
        case ReviewBody(id=review_id, pull_number=pull_number):
            return await source.get_review_html(pull_number, review_id)
        case IssueBody(issue_number=issue_number):
            return await source.get_issue_html(issue_number)
        case PullRequestBody(pull_number=pull_number):
            return await source.get_pull_request_html(pull_number)
        case _:
            assert_never(text)


def extract_signed_urls(body_html: str, server_url: str = "https://github.com") -> list[ResolvedURL]:
    """Scan rendered HTML for signed URLs, deduplicated in first-seen order."""
    seen: dict[str, None] = {}
    for match in _signed_url_pattern(server_url).finditer(body_html):
        seen.setdefault(html.unescape(match.group(0)), None)
    return [
        ResolvedURL(url=url, ordinal=i, is_image_shaped=IMAGE_HOST_MARKER in url)
        for i, url in enumerate(seen)
    ]


async def resolve_urls(
    text: SourceText,
    source: RenderedHtmlSource,
    server_url: str = "https://github.com",
) -> list[ResolvedURL] | None:
    """Return the signed URLs for `text`, or None when it has no rendered HTML."""
    body_html = await fetch_rendered_html(text, source)
    if not body_html:
        log("⚠️", f"No HTML body found for {describe(text)}", stage="resolve")
        return None

    resolved = extract_signed_urls(body_html, server_url)
    log("🔗", f"Found {len(resolved)} signed URL(s) in {describe(text)}", dim=True, stage="resolve")
    return resolved
