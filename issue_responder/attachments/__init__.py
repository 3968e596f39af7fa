"""Attachment resolution and download for issue/PR text."""

from .models import (
    AttachmentUrlMap,
    DownloadOptions,
    IssueBody,
    IssueComment,
    PullRequestBody,
    ReviewBody,
    ReviewComment,
    SourceText,
)
from .matcher import AttachmentMatcher, OrdinalMatcher
from .resolver import RenderedHtmlSource
from .pipeline import download_attachments
from .rewrite import replace_attachment_urls_with_local_paths

__all__ = [
    "download_attachments",
    "replace_attachment_urls_with_local_paths",
    "AttachmentUrlMap",
    "DownloadOptions",
    "SourceText",
    "IssueBody",
    "IssueComment",
    "PullRequestBody",
    "ReviewBody",
    "ReviewComment",
    "AttachmentMatcher",
    "OrdinalMatcher",
    "RenderedHtmlSource",
]
