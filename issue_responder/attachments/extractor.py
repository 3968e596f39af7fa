"""Find attachment links in raw markdown."""

import re
from functools import lru_cache

from issue_responder.attachments.models import AttachmentReference


@lru_cache(maxsize=8)
def _attachment_pattern(server_url: str) -> re.Pattern[str]:
    # Matches both ![alt](url) and [label](url)
    server = re.escape(server_url.rstrip("/"))
    return re.compile(rf"\[[^\]]*\]\(({server}/user-attachments/(?:assets|files)/[^)]+)\)")


def extract_references(body: str, server_url: str = "https://github.com") -> list[AttachmentReference]:
    """Return attachment references in the order they appear in `body`."""
    if not body:
        return []
    urls = [match.group(1) for match in _attachment_pattern(server_url).finditer(body)]
    return [AttachmentReference(url=url, ordinal=i) for i, url in enumerate(urls)]
