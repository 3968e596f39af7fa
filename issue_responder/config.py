import os

GITHUB_API_URL = os.getenv("GITHUB_API_URL", "https://api.github.com")
GITHUB_SERVER_URL = os.getenv("GITHUB_SERVER_URL", "https://github.com")
GITHUB_WEBHOOK_SECRET = os.getenv("GITHUB_WEBHOOK_SECRET")

ATTACHMENTS_DIR = os.getenv("ATTACHMENTS_DIR", "/tmp/github-attachments")
ATTACHMENTS_MAX_FILE_SIZE = int(os.getenv("ATTACHMENTS_MAX_FILE_SIZE", str(50 * 1024 * 1024)))

HTTP_MAX_RETRIES = int(os.getenv("HTTP_MAX_RETRIES", "3"))
HTTP_RETRY_DELAY_MS = int(os.getenv("HTTP_RETRY_DELAY_MS", "1000"))
HTTP_TIMEOUT_MS = int(os.getenv("HTTP_TIMEOUT_MS", "30000"))


def _split_list(raw: str) -> list[str] | None:
    items = [item.strip() for item in raw.split(",") if item.strip()]
    return items or None


# Comma-separated allow-lists, e.g. ".png,.pdf" and "images,documents".
# Unset means the classifier alone decides.
ATTACHMENTS_ALLOWED_EXTENSIONS = _split_list(os.getenv("ATTACHMENTS_ALLOWED_EXTENSIONS", ""))
ATTACHMENTS_ALLOWED_FILE_TYPES = _split_list(os.getenv("ATTACHMENTS_ALLOWED_FILE_TYPES", ""))


def get_github_token() -> str:
    token = os.getenv("GITHUB_TOKEN") or os.getenv("GH_TOKEN")
    if not token:
        raise ValueError("GITHUB_TOKEN environment variable is not set")
    return token
