"""Real-time console logging for the attachment pipeline."""

import os
from datetime import datetime

# Short labels for pipeline stages
STAGE_LABELS = {
    "extract": "EXTRACT",
    "resolve": "RESOLVE",
    "download": "DL",
    "http": "HTTP",
    "webhook": "WH",
}


def log(icon: str, message: str, dim: bool = False, stage: str | None = None):
    timestamp = datetime.now().strftime("%H:%M:%S")
    # Skip ANSI codes in production (Docker/cloud) for cleaner logs
    use_ansi = os.getenv("TERM") is not None
    style = "\033[2m" if dim and use_ansi else ""
    reset = "\033[0m" if dim and use_ansi else ""

    label = ""
    if stage:
        short = STAGE_LABELS.get(stage, stage[:4].upper())
        label = f"[{short}] "

    print(f"{style}[{timestamp}] {label}{icon} {message}{reset}", flush=True)
