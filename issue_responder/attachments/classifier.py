"""Derive an extension and a coarse category for each matched attachment.

Image signed URLs carry the extension in the middle of the URL, before the token:
- Original: https://github.com/user-attachments/assets/416e686f-3fe1-40aa-885d-bb54c4a6cbdb
- Signed:   https://private-user-images.githubusercontent.com/.../416e686f-...-bb54c4a6cbdb.jpeg?jwt=...
File attachments keep the filename on the original URL instead:
- Original: https://github.com/user-attachments/files/17239843/report.pdf
"""

import re
from urllib.parse import urlsplit

from issue_responder.attachments.models import ClassifiedAttachment, MatchedAttachment

# Order matters: an extension listed twice belongs to the first category
FILE_TYPE_CATEGORIES: dict[str, list[str]] = {
    "images": [".png", ".jpg", ".jpeg", ".gif", ".webp", ".svg", ".bmp", ".ico", ".tiff", ".heic", ".avif"],
    "documents": [".pdf", ".doc", ".docx", ".txt", ".md", ".rtf", ".odt", ".pages"],
    "spreadsheets": [".xls", ".xlsx", ".csv", ".ods", ".numbers"],
    "presentations": [".ppt", ".pptx", ".odp", ".key"],
    "archives": [".zip", ".rar", ".7z", ".tar", ".gz", ".bz2", ".xz"],
    "code": [
        ".js", ".ts", ".py", ".java", ".cpp", ".c", ".h", ".css", ".html", ".xml",
        ".json", ".yaml", ".yml", ".go", ".rs", ".php", ".rb", ".swift",
    ],
    "data": [".json", ".xml", ".yaml", ".yml", ".sql", ".db", ".sqlite", ".csv", ".tsv"],
    "media": [".mp4", ".avi", ".mkv", ".mov", ".wmv", ".flv", ".mp3", ".wav", ".ogg", ".flac", ".aac"],
    "other": [".bin"],
}

UNSUPPORTED_CATEGORY = "other"
DEFAULT_IMAGE_EXTENSION = ".png"
IGNORE_EXTENSION = ".bin"

_TRAILING_EXTENSION = re.compile(r"/[^/]+\.([a-zA-Z0-9]+)$")
_ANY_EXTENSION = re.compile(r"\.([a-zA-Z0-9]+)")
_FILENAME_EXTENSION = re.compile(r"\.([a-zA-Z0-9]+)$")


def get_file_extension(original_url: str, signed_url: str, is_image_shaped: bool) -> str:
    """Return a lowercase extension including the dot."""
    if is_image_shaped:
        path = urlsplit(signed_url).path

        match = _TRAILING_EXTENSION.search(path)
        if match:
            return f".{match.group(1).lower()}"

        # Fallback: last extension-like token anywhere in the path
        tokens = _ANY_EXTENSION.findall(path)
        if tokens:
            return f".{tokens[-1].lower()}"

        return DEFAULT_IMAGE_EXTENSION

    filename = original_url.split("?", 1)[0].rstrip("/").rsplit("/", 1)[-1]
    match = _FILENAME_EXTENSION.search(filename)
    if match:
        return f".{match.group(1).lower()}"
    return IGNORE_EXTENSION


def categorise_extension(extension: str) -> str:
    ext = extension.lower()
    for category, extensions in FILE_TYPE_CATEGORIES.items():
        if ext in extensions:
            return category
    return UNSUPPORTED_CATEGORY


def classify(matched: MatchedAttachment) -> ClassifiedAttachment:
    extension = get_file_extension(
        matched.reference.url,
        matched.resolved.url,
        matched.resolved.is_image_shaped,
    )
    return ClassifiedAttachment(
        matched=matched,
        extension=extension,
        category=categorise_extension(extension),
    )


def is_supported(classified: ClassifiedAttachment) -> bool:
    return classified.category != UNSUPPORTED_CATEGORY
