"""Download classified attachments into the staging directory."""

import os
import time
from datetime import datetime
from pathlib import Path

import httpx

from issue_responder.attachments.models import (
    AttachmentUrlMap,
    ClassifiedAttachment,
    DownloadedAttachment,
    DownloadOptions,
)
from issue_responder.http_client import RetryingHttpClient
from issue_responder.tracing import log

DOWNLOAD_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; GitHub-Attachment-Downloader/1.0)",
    "Accept": "*/*",
}


class FileTooLargeError(Exception):
    def __init__(self, size: int, max_size: int):
        super().__init__(f"File too large: {size} bytes (max: {max_size} bytes)")
        self.size = size
        self.max_size = max_size


def generate_filename(original_url: str, index: int, extension: str, category: str) -> str:
    """Build `{category}-{url fragment}-{epoch ms}-{index}{extension}`, unique within one run."""
    timestamp = int(time.time() * 1000)
    url_hash = original_url.rstrip("/").rsplit("/", 1)[-1][:8] or "unknown"
    return f"{category}-{url_hash}-{timestamp}-{index}{extension}"


def _declared_length(headers) -> int | None:
    value = headers.get("content-length")
    if value and value.strip().isdigit():
        return int(value)
    return None


async def _read_limited(response: httpx.Response, max_size: int) -> bytes:
    """Read the body, giving up as soon as it is known to exceed `max_size`."""
    declared = _declared_length(response.headers)
    if declared is not None and declared > max_size:
        raise FileTooLargeError(declared, max_size)

    # Servers may omit content-length, so count the received bytes as well
    received = 0
    chunks: list[bytes] = []
    async for chunk in response.aiter_bytes():
        received += len(chunk)
        if received > max_size:
            raise FileTooLargeError(received, max_size)
        chunks.append(chunk)
    return b"".join(chunks)


async def download_attachment(
    classified: ClassifiedAttachment,
    url_map: AttachmentUrlMap,
    http: RetryingHttpClient,
    options: DownloadOptions,
) -> DownloadedAttachment | None:
    """Fetch one attachment, write it to disk and register it in `url_map`.

    Oversized files are recorded as rejections, every other error as a failure.
    Neither is raised, so one attachment can never abort its siblings.
    """
    matched = classified.matched
    original_url = classified.original_url
    kind = "image" if matched.resolved.is_image_shaped else "file"

    filename = generate_filename(original_url, matched.ordinal, classified.extension, classified.category)
    local_path = os.path.abspath(os.path.join(options.downloads_dir, filename))

    try:
        log("⬇️", f"Downloading {kind} ({classified.category}): {original_url}...", stage="download")

        content = await http.execute_stream(
            "GET",
            matched.resolved.url,
            lambda response: _read_limited(response, options.max_file_size),
            headers=DOWNLOAD_HEADERS,
        )
        Path(local_path).write_bytes(content)
    except FileTooLargeError as e:
        log("✗", f"Skipping {original_url}: {e}", stage="download")
        url_map.record_rejection(original_url, str(e))
        return None
    except Exception as e:
        log("✗", f"Failed to download {original_url}: {e}", stage="download")
        url_map.record_failure(original_url, str(e))
        return None

    downloaded = DownloadedAttachment(
        classified=classified,
        local_path=local_path,
        size=len(content),
        downloaded_at=datetime.now(),
    )
    url_map.register(downloaded)
    log("✓", f"Downloaded {kind} ({classified.category}): {filename} ({len(content)} bytes)", stage="download")
    return downloaded
