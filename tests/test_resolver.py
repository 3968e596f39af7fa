"""Tests for rendered-HTML resolution of signed URLs."""

import pytest

from conftest import FakeHtmlSource
from issue_responder.attachments.models import (
    IssueBody,
    IssueComment,
    PullRequestBody,
    ReviewBody,
    ReviewComment,
)
from issue_responder.attachments.resolver import extract_signed_urls, resolve_urls

SIGNED_IMAGE = "https://private-user-images.githubusercontent.com/1/2-abc.jpeg?jwt=eyJ.tok.en"
SIGNED_FILE = "https://github.com/user-attachments/files/42/report.pdf"
LEGACY_IMAGE = "https://user-images.githubusercontent.com/1/legacy.png"


class TestExtractSignedUrls:
    """Tests for extract_signed_urls."""

    def test_extracts_all_three_shapes_in_document_order(self):
        body_html = (
            f'<p><a href="{SIGNED_FILE}">report.pdf</a></p>'
            f'<p><img src="{SIGNED_IMAGE}" alt="x"></p>'
            f'<p><img src="{LEGACY_IMAGE}"></p>'
        )

        resolved = extract_signed_urls(body_html)

        assert [r.url for r in resolved] == [SIGNED_FILE, SIGNED_IMAGE, LEGACY_IMAGE]
        assert [r.ordinal for r in resolved] == [0, 1, 2]
        assert [r.is_image_shaped for r in resolved] == [False, True, True]

    def test_deduplicates_keeping_first_seen(self):
        # Images are rendered as <a href=...><img src=...></a>, repeating the URL
        body_html = (
            f'<a href="{SIGNED_IMAGE}"><img src="{SIGNED_IMAGE}"></a>'
            f'<a href="{SIGNED_FILE}">file</a>'
        )

        resolved = extract_signed_urls(body_html)

        assert [r.url for r in resolved] == [SIGNED_IMAGE, SIGNED_FILE]
        assert [r.ordinal for r in resolved] == [0, 1]

    def test_unescapes_html_entities(self):
        body_html = '<img src="https://private-user-images.githubusercontent.com/1/a.png?jwt=t&amp;x=1">'

        resolved = extract_signed_urls(body_html)

        assert resolved[0].url == "https://private-user-images.githubusercontent.com/1/a.png?jwt=t&x=1"

    def test_private_image_without_token_is_ignored(self):
        body_html = '<img src="https://private-user-images.githubusercontent.com/1/a.png">'

        assert extract_signed_urls(body_html) == []

    def test_file_attachments_follow_server_url(self):
        enterprise_file = "https://ghe.example.com/user-attachments/files/7/trace.log"
        body_html = f'<a href="{enterprise_file}">trace.log</a><a href="{SIGNED_FILE}">other</a>'

        resolved = extract_signed_urls(body_html, "https://ghe.example.com/")

        assert [r.url for r in resolved] == [enterprise_file]
        assert resolved[0].is_image_shaped is False


class TestResolveUrls:
    """Tests for accessor dispatch per source text variant."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "text, key",
        [
            (IssueComment(id=11, body=""), ("issue_comment", 11)),
            (ReviewComment(id=12, body=""), ("review_comment", 12)),
            (ReviewBody(id=13, pull_number=7, body=""), ("review_body", 7, 13)),
            (IssueBody(issue_number=5, body=""), ("issue_body", 5)),
            (PullRequestBody(pull_number=7, body=""), ("pr_body", 7)),
        ],
    )
    async def test_dispatches_to_matching_accessor(self, text, key):
        source = FakeHtmlSource({key: f'<img src="{SIGNED_IMAGE}">'})

        resolved = await resolve_urls(text, source)

        assert source.calls == [key]
        assert [r.url for r in resolved] == [SIGNED_IMAGE]

    @pytest.mark.asyncio
    async def test_missing_html_returns_none(self, capsys):
        source = FakeHtmlSource({("issue_comment", 1): None})

        resolved = await resolve_urls(IssueComment(id=1, body=""), source)

        assert resolved is None
        assert "No HTML body found for issue_comment 1" in capsys.readouterr().out
