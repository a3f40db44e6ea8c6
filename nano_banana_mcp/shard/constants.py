"""Project constants shared by the executor, the OpenRouter engine and the tools."""

from __future__ import annotations

import re
from typing import Final

# ----------------------------- General defaults ----------------------------- #

# Model used when NANO_BANANA_MODEL_ID is not set.
DEFAULT_MODEL_ID: Final[str] = "google/gemini-3-pro-image-preview"

# Upper bound for context images per task (enforced by the tool schema).
MAX_CONTEXT_IMAGES: Final[int] = 12

# MIME type for context images whose extension is not recognized.
DEFAULT_MIME: Final[str] = "application/octet-stream"

EXTENSION_MIME_MAP: Final[dict[str, str]] = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
}

# `data:<mime>;base64,<payload>`; matched against the whole URL.
DATA_URL_PATTERN: Final[re.Pattern[str]] = re.compile(r"data:([^;]+);base64,(.+)")

# ------------------------------ Log redaction ------------------------------- #

REDACTED: Final[str] = "DATA_REDACTED"

# `data` strings longer than this are replaced in diagnostics.
REDACT_MIN_DATA_LENGTH: Final[int] = 100

# ----------------------------- User-facing text ----------------------------- #

NO_CONTENT_MESSAGE: Final[str] = "Model returned a successful response but no text or images were found."
SAVED_MESSAGE: Final[str] = "Successfully saved the generated image to: {path}"
SAVE_FAILED_MESSAGE: Final[str] = "Warning: Failed to save image to path: {reason}"
READ_FAILED_MESSAGE: Final[str] = "Error reading image {path}: {reason}"
UPSTREAM_ERROR_MESSAGE: Final[str] = "OpenRouter API error: {detail}"
