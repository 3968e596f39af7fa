"""FastAPI webhook server for GitHub issue and pull request activity."""

import hashlib
import hmac
import time

from dotenv import load_dotenv
from fastapi import BackgroundTasks, FastAPI, HTTPException, Request

load_dotenv(override=True)

from issue_responder import config
from issue_responder.attachments import AttachmentUrlMap, DownloadOptions, SourceText, download_attachments
from issue_responder.github import GitHubClient, source_texts_from_event
from issue_responder.tracing import log

HANDLED_EVENTS = {
    "issues",
    "issue_comment",
    "pull_request",
    "pull_request_review",
    "pull_request_review_comment",
}
HANDLED_ACTIONS = {"opened", "edited", "created", "submitted"}

# GitHub redelivers on timeouts; remember recent delivery IDs
# Key: delivery id, Value: timestamp
_recent_deliveries: dict[str, float] = {}
DELIVERY_COOLDOWN_SECONDS = 300  # 5 minutes


app = FastAPI(
    title="GitHub Issue Responder",
    description="Resolves issue and pull request attachments for AI-assisted replies",
)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok"}


def _verify_signature(body: bytes, signature: str | None) -> bool:
    """Verify the X-Hub-Signature-256 header."""
    secret = config.GITHUB_WEBHOOK_SECRET
    if not secret:
        return True  # Skip verification if no secret configured
    if not signature:
        return False
    expected = "sha256=" + hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature)


def _was_recently_delivered(delivery_id: str) -> bool:
    now = time.time()

    expired = [k for k, v in _recent_deliveries.items() if now - v > DELIVERY_COOLDOWN_SECONDS]
    for k in expired:
        del _recent_deliveries[k]

    return delivery_id in _recent_deliveries


def _mark_delivered(delivery_id: str):
    _recent_deliveries[delivery_id] = time.time()


def build_download_options() -> DownloadOptions:
    return DownloadOptions(
        max_file_size=config.ATTACHMENTS_MAX_FILE_SIZE,
        allowed_extensions=config.ATTACHMENTS_ALLOWED_EXTENSIONS,
        allowed_file_types=config.ATTACHMENTS_ALLOWED_FILE_TYPES,
        downloads_dir=config.ATTACHMENTS_DIR,
        server_url=config.GITHUB_SERVER_URL,
    )


@app.post("/webhook/github")
async def github_webhook(request: Request, background_tasks: BackgroundTasks):
    """Handle GitHub webhook events."""
    body = await request.body()
    signature = request.headers.get("x-hub-signature-256")

    if not _verify_signature(body, signature):
        log("❌", "Signature verification failed", stage="webhook")
        raise HTTPException(status_code=401, detail="Invalid signature")

    event_name = request.headers.get("x-github-event", "")
    delivery_id = request.headers.get("x-github-delivery")
    try:
        payload = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON payload")
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Invalid JSON payload")
    action = payload.get("action")

    if event_name not in HANDLED_EVENTS or action not in HANDLED_ACTIONS:
        log("·", f"{event_name}/{action} → ignored", stage="webhook")
        return {"status": "ignored", "reason": f"Unhandled event: {event_name}/{action}"}

    if delivery_id and _was_recently_delivered(delivery_id):
        log("·", f"{event_name}/{action} → skipped (duplicate delivery {delivery_id})", stage="webhook")
        return {"status": "skipped", "reason": "Duplicate delivery"}

    repository = (payload.get("repository") or {}).get("full_name")
    if not repository:
        raise HTTPException(status_code=400, detail="Missing repository")

    try:
        texts = source_texts_from_event(event_name, payload)
    except KeyError as e:
        raise HTTPException(status_code=400, detail=f"Malformed payload: missing {e}")

    if not texts:
        return {"status": "ignored", "reason": "No text in event"}

    if delivery_id:
        _mark_delivered(delivery_id)

    log("▶", f"{event_name}/{action} on {repository}: {len(texts)} text(s)", stage="webhook")
    background_tasks.add_task(process_attachments, repository, texts)

    return {"status": "queued", "event": event_name, "repository": repository, "texts": len(texts)}


async def process_attachments(repository: str, texts: list[SourceText]) -> AttachmentUrlMap:
    """Resolve and download attachments for one event."""
    log("🔍", f"Resolving attachments for {repository}", stage="webhook")
    try:
        async with GitHubClient.from_full_name(repository) as github:
            url_map = await download_attachments(texts, github, build_download_options())
    except Exception as e:
        log("❌", f"Attachment processing failed for {repository}: {e}", stage="webhook")
        return AttachmentUrlMap()

    for url, path in url_map.items():
        log("📄", f"{url} → {path}", dim=True, stage="webhook")
    if url_map.failures:
        log("⚠️", f"{len(url_map.failures)} attachment(s) failed to download", stage="webhook")
    return url_map


def run_server(host: str = "0.0.0.0", port: int = 8000):
    """Run the API server."""
    import uvicorn
    print(f"🚀 Starting server on {host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level="info")


if __name__ == "__main__":
    run_server()
