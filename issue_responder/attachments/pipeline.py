"""Attachment pipeline: extract, resolve, match, classify, download."""

import os

from issue_responder.attachments.classifier import classify, is_supported
from issue_responder.attachments.downloader import download_attachment
from issue_responder.attachments.extractor import extract_references
from issue_responder.attachments.matcher import AttachmentMatcher, OrdinalMatcher
from issue_responder.attachments.models import (
    AttachmentReference,
    AttachmentUrlMap,
    ClassifiedAttachment,
    DownloadOptions,
    SourceText,
    describe,
)
from issue_responder.attachments.resolver import RenderedHtmlSource, resolve_urls
from issue_responder.http_client import RetryingHttpClient
from issue_responder.tracing import log


def _rejection_reason(classified: ClassifiedAttachment, options: DownloadOptions) -> str | None:
    if not is_supported(classified):
        return f"unsupported file type ({classified.extension})"
    if options.allowed_extensions is not None and classified.extension not in options.allowed_extensions:
        return f"extension {classified.extension} not allowed"
    if options.allowed_file_types is not None and classified.category not in options.allowed_file_types:
        return f"file type {classified.category} not allowed"
    return None


async def _process_source_text(
    text: SourceText,
    references: list[AttachmentReference],
    html_source: RenderedHtmlSource,
    matcher: AttachmentMatcher,
    http: RetryingHttpClient,
    options: DownloadOptions,
    url_map: AttachmentUrlMap,
):
    resolved = await resolve_urls(text, html_source, options.server_url)
    if resolved is None:
        return

    log("📎", f"Processing {len(references)} attachment(s) for {describe(text)}", stage="download")

    for matched in matcher.match(references, resolved, url_map):
        classified = classify(matched)
        log(
            "🔍",
            f"Detected {'image' if matched.resolved.is_image_shaped else 'file'}: {matched.original_url} "
            f"-> extension: {classified.extension}, type: {classified.category}",
            dim=True,
            stage="download",
        )

        reason = _rejection_reason(classified, options)
        if reason:
            log("·", f"Skipping {matched.original_url} - {reason}", stage="download")
            url_map.record_rejection(matched.original_url, reason)
            continue

        await download_attachment(classified, url_map, http, options)


async def download_attachments(
    source_texts: list[SourceText],
    html_source: RenderedHtmlSource,
    options: DownloadOptions | None = None,
    *,
    http: RetryingHttpClient | None = None,
    matcher: AttachmentMatcher | None = None,
) -> AttachmentUrlMap:
    """Download every attachment referenced by `source_texts`.

    Texts are processed one at a time and attachments within a text in order.
    Attachment problems never raise: the returned map holds whatever was
    downloaded, with failures and rejections recorded on it.

    Args:
        source_texts: Issue/PR bodies, comments and reviews to scan
        html_source: Accessor for the rendered HTML of each text
        options: Size limit, allow-lists and staging directory
        http: Retrying client used for downloads (one is created if omitted)
        matcher: Strategy pairing references with signed URLs

    Returns:
        Map of original attachment URL -> absolute local path
    """
    options = options or DownloadOptions()
    matcher = matcher or OrdinalMatcher()
    url_map = AttachmentUrlMap()

    try:
        os.makedirs(options.downloads_dir, exist_ok=True)
    except OSError as e:
        log("❌", f"Cannot create downloads directory {options.downloads_dir}: {e}", stage="download")
        return url_map

    log("📥", f"Processing {len(source_texts)} text(s) for attachments...", stage="extract")

    pending: list[tuple[SourceText, list[AttachmentReference]]] = []
    for text in source_texts:
        references = extract_references(text.body, options.server_url)
        if references:
            pending.append((text, references))
            log("📎", f"Found {len(references)} attachment(s) in {describe(text)}", stage="extract")

    log("📎", f"Total texts with attachments: {len(pending)}", stage="extract")
    if not pending:
        return url_map

    owns_http = http is None
    http = http or RetryingHttpClient()
    try:
        for text, references in pending:
            try:
                await _process_source_text(text, references, html_source, matcher, http, options, url_map)
            except Exception as e:
                log("❌", f"Failed to process attachments for {describe(text)}: {e}", stage="resolve")
    finally:
        if owns_http:
            await http.aclose()

    log("✅", f"Final URL to path map size: {len(url_map)}", stage="download")
    return url_map
