"""Rewrite attachment URLs in text to the bare filenames of their local copies."""

import re
from collections.abc import Mapping


def replace_attachment_urls_with_local_paths(text: str, url_map: Mapping[str, str]) -> str:
    """Replace each mapped URL, in markdown links and in HTML src attributes, with its filename."""
    result = text
    for url, local_path in url_map.items():
        filename = local_path.rsplit("/", 1)[-1] or local_path
        escaped = re.escape(url)
        result = re.sub(rf"src=[\"']{escaped}[\"']", lambda _: f'src="{filename}"', result)
        result = re.sub(escaped, lambda _: filename, result)
    return result
