"""Data model for attachment resolution."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal, assert_never


@dataclass(frozen=True)
class IssueBody:
    issue_number: int
    body: str
    type: Literal["issue_body"] = "issue_body"


@dataclass(frozen=True)
class PullRequestBody:
    pull_number: int
    body: str
    type: Literal["pr_body"] = "pr_body"


@dataclass(frozen=True)
class IssueComment:
    id: int
    body: str
    type: Literal["issue_comment"] = "issue_comment"


@dataclass(frozen=True)
class ReviewBody:
    id: int
    pull_number: int
    body: str
    type: Literal["review_body"] = "review_body"


@dataclass(frozen=True)
class ReviewComment:
    id: int
    body: str
    type: Literal["review_comment"] = "review_comment"


# One body of user-authored markdown that may contain attachment references
SourceText = IssueBody | PullRequestBody | IssueComment | ReviewBody | ReviewComment


def source_text_id(text: SourceText) -> int:
    """Identifier shown in logs: the issue/PR number for top-level bodies, else the comment id."""
    match text:
        case IssueBody(issue_number=number):
            return number
        case PullRequestBody(pull_number=number):
            return number
        case IssueComment(id=comment_id) | ReviewBody(id=comment_id) | ReviewComment(id=comment_id):
            return comment_id
        case _:
            assert_never(text)


def describe(text: SourceText) -> str:
    return f"{text.type} {source_text_id(text)}"


@dataclass(frozen=True)
class AttachmentReference:
    """An attachment URL as it literally appears in the markdown."""
    url: str
    ordinal: int


@dataclass(frozen=True)
class ResolvedURL:
    """A signed, time-limited URL taken from the rendered HTML."""
    url: str
    ordinal: int
    is_image_shaped: bool


@dataclass(frozen=True)
class MatchedAttachment:
    reference: AttachmentReference
    resolved: ResolvedURL

    @property
    def original_url(self) -> str:
        return self.reference.url

    @property
    def ordinal(self) -> int:
        return self.reference.ordinal


@dataclass(frozen=True)
class ClassifiedAttachment:
    matched: MatchedAttachment
    extension: str  # e.g. ".png"
    category: str  # e.g. "images"

    @property
    def original_url(self) -> str:
        return self.matched.original_url


@dataclass(frozen=True)
class DownloadedAttachment:
    classified: ClassifiedAttachment
    local_path: str
    size: int
    downloaded_at: datetime

    @property
    def original_url(self) -> str:
        return self.classified.original_url


@dataclass
class DownloadOptions:
    max_file_size: int = 50 * 1024 * 1024
    allowed_extensions: list[str] | None = None  # None means the classifier decides
    allowed_file_types: list[str] | None = None
    downloads_dir: str = "/tmp/github-attachments"
    server_url: str = "https://github.com"


class AttachmentUrlMap(dict[str, str]):
    """Original attachment URL -> absolute local path, built fresh for each run.

    Besides the mapping itself it keeps what happened to every other URL:
    `downloads` holds the full records, `failures` and `rejections` map a URL
    to the reason it is absent.
    """

    def __init__(self):
        super().__init__()
        self.downloads: list[DownloadedAttachment] = []
        self.failures: dict[str, str] = {}
        self.rejections: dict[str, str] = {}

    def register(self, downloaded: DownloadedAttachment) -> bool:
        """Add a download. The first writer for a URL wins; returns False for later ones."""
        if downloaded.original_url in self:
            return False
        self[downloaded.original_url] = downloaded.local_path
        self.downloads.append(downloaded)
        return True

    def record_failure(self, url: str, reason: str) -> None:
        self.failures[url] = reason

    def record_rejection(self, url: str, reason: str) -> None:
        self.rejections[url] = reason


__all__ = [
    "SourceText",
    "IssueBody",
    "PullRequestBody",
    "IssueComment",
    "ReviewBody",
    "ReviewComment",
    "AttachmentReference",
    "ResolvedURL",
    "MatchedAttachment",
    "ClassifiedAttachment",
    "DownloadedAttachment",
    "DownloadOptions",
    "AttachmentUrlMap",
    "source_text_id",
    "describe",
]
