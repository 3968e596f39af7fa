"""GitHub REST client for rendered bodies and the texts of an issue or pull request."""

from typing import Any

from issue_responder import config
from issue_responder.attachments.models import (
    IssueBody,
    IssueComment,
    PullRequestBody,
    ReviewBody,
    ReviewComment,
    SourceText,
)
from issue_responder.attachments.resolver import RenderedHtmlSource
from issue_responder.http_client import RetryingHttpClient

# Returns body, body_text and body_html in one response
FULL_MEDIA_TYPE = "application/vnd.github.full+json"
GITHUB_API_VERSION = "2022-11-28"
PAGE_SIZE = 100


class GitHubClient(RenderedHtmlSource):
    """Reads issues, pull requests, comments and reviews of one repository."""

    def __init__(
        self,
        owner: str,
        repo: str,
        token: str | None = None,
        api_url: str | None = None,
        http: RetryingHttpClient | None = None,
    ):
        self.owner = owner
        self.repo = repo
        self._token = token or config.get_github_token()
        self._api_url = (api_url or config.GITHUB_API_URL).rstrip("/")
        self._owns_http = http is None
        self._http = http or RetryingHttpClient()

    @classmethod
    def from_full_name(cls, full_name: str, **kwargs) -> "GitHubClient":
        """Build a client from "owner/repo"."""
        owner, _, repo = full_name.partition("/")
        if not owner or not repo:
            raise ValueError(f"Expected repository as owner/repo, got: {full_name!r}")
        return cls(owner, repo, **kwargs)

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._token}",
            "Accept": FULL_MEDIA_TYPE,
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }

    async def _get(self, path: str, params: dict | None = None) -> Any:
        url = f"{self._api_url}/repos/{self.owner}/{self.repo}{path}"
        response = await self._http.execute("GET", url, headers=self._headers(), params=params)
        return response.json()

    async def _get_paginated(self, path: str) -> list[dict]:
        items: list[dict] = []
        page = 1
        while True:
            batch = await self._get(path, params={"per_page": PAGE_SIZE, "page": page})
            items.extend(batch)
            if len(batch) < PAGE_SIZE:
                return items
            page += 1

    # --- Rendered HTML accessors ---

    async def get_issue_comment_html(self, comment_id: int) -> str | None:
        data = await self._get(f"/issues/comments/{comment_id}")
        return data.get("body_html")

    async def get_review_comment_html(self, comment_id: int) -> str | None:
        data = await self._get(f"/pulls/comments/{comment_id}")
        return data.get("body_html")

    async def get_review_html(self, pull_number: int, review_id: int) -> str | None:
        data = await self._get(f"/pulls/{pull_number}/reviews/{review_id}")
        return data.get("body_html")

    async def get_issue_html(self, issue_number: int) -> str | None:
        data = await self._get(f"/issues/{issue_number}")
        return data.get("body_html")

    async def get_pull_request_html(self, pull_number: int) -> str | None:
        data = await self._get(f"/pulls/{pull_number}")
        return data.get("body_html")

    # --- Source text collection ---

    async def collect_issue_source_texts(self, issue_number: int) -> list[SourceText]:
        """Issue body followed by its comments, oldest first."""
        issue = await self._get(f"/issues/{issue_number}")
        texts: list[SourceText] = [IssueBody(issue_number=issue_number, body=issue.get("body") or "")]
        for comment in await self._get_paginated(f"/issues/{issue_number}/comments"):
            texts.append(IssueComment(id=comment["id"], body=comment.get("body") or ""))
        return texts

    async def collect_pull_request_source_texts(self, pull_number: int) -> list[SourceText]:
        """PR body, conversation comments, review bodies and inline review comments."""
        pull = await self._get(f"/pulls/{pull_number}")
        texts: list[SourceText] = [PullRequestBody(pull_number=pull_number, body=pull.get("body") or "")]

        for comment in await self._get_paginated(f"/issues/{pull_number}/comments"):
            texts.append(IssueComment(id=comment["id"], body=comment.get("body") or ""))

        for review in await self._get_paginated(f"/pulls/{pull_number}/reviews"):
            if review.get("body"):
                texts.append(ReviewBody(id=review["id"], pull_number=pull_number, body=review["body"]))

        for comment in await self._get_paginated(f"/pulls/{pull_number}/comments"):
            texts.append(ReviewComment(id=comment["id"], body=comment.get("body") or ""))

        return texts


def source_texts_from_event(event_name: str, payload: dict) -> list[SourceText]:
    """Turn a webhook payload into the texts it touches: the top-level body, then the triggering text.

    Returns an empty list for events that carry no user-authored text.
    """
    if event_name == "issues":
        issue = payload.get("issue") or {}
        return [IssueBody(issue_number=issue["number"], body=issue.get("body") or "")]

    if event_name == "issue_comment":
        issue = payload.get("issue") or {}
        comment = payload.get("comment") or {}
        # Comments on a PR's conversation tab arrive as issue comments
        if "pull_request" in issue:
            parent: SourceText = PullRequestBody(pull_number=issue["number"], body=issue.get("body") or "")
        else:
            parent = IssueBody(issue_number=issue["number"], body=issue.get("body") or "")
        return [parent, IssueComment(id=comment["id"], body=comment.get("body") or "")]

    pull = payload.get("pull_request")
    if not pull:
        return []
    pr_body = PullRequestBody(pull_number=pull["number"], body=pull.get("body") or "")

    if event_name == "pull_request":
        return [pr_body]

    if event_name == "pull_request_review":
        review = payload.get("review") or {}
        return [pr_body, ReviewBody(id=review["id"], pull_number=pull["number"], body=review.get("body") or "")]

    if event_name == "pull_request_review_comment":
        comment = payload.get("comment") or {}
        return [pr_body, ReviewComment(id=comment["id"], body=comment.get("body") or "")]

    return []
