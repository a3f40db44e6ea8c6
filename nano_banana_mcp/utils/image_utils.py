from __future__ import annotations

import base64
import os
from dataclasses import dataclass

from loguru import logger

from ..shard import constants as C
from ..shard.enums import MessagePartType


# --------------------------- source classifiers --------------------------- #
def is_data_url(value: str) -> bool:
    return value.startswith("data:")


def guess_mime_from_path(path: str) -> str:
    """Map a file extension to an image MIME type; unknown extensions are binary."""
    _, ext = os.path.splitext(path)
    return C.EXTENSION_MIME_MAP.get(ext.lower(), C.DEFAULT_MIME)


def resolve_path(path: str) -> str:
    """Return ``path`` as-is when absolute, otherwise relative to the working directory."""
    if os.path.isabs(path):
        return path
    return os.path.abspath(os.path.join(os.getcwd(), path))


# --------------------------- data URLs ------------------------------------ #
def to_data_url(data: str, mime: str) -> str:
    return f"data:{mime};base64,{data}"


def parse_data_url(url: str) -> tuple[str, str] | None:
    """Split ``data:<mime>;base64,<payload>`` into ``(mime, payload)``.

    Returns None for anything else, including non-base64 data URLs.
    """
    if not is_data_url(url):
        return None
    match = C.DATA_URL_PATTERN.fullmatch(url)
    if match is None:
        return None
    return match.group(1), match.group(2)


# --------------------------- context images ------------------------------- #
@dataclass(frozen=True)
class ContextImage:
    path: str
    mime: str
    data: str

    def to_content_part(self) -> dict[str, object]:
        """Return an OpenAI-style ``image_url`` message part."""
        return {"type": MessagePartType.IMAGE_URL.value, "image_url": {"url": to_data_url(self.data, self.mime)}}


def read_context_image(path: str) -> ContextImage:
    """Read a local image and base64-encode it.

    Raises OSError when the file cannot be read, or ValueError when the path
    itself is rejected (e.g. an embedded NUL byte).
    """
    absolute_path = resolve_path(path)
    with open(absolute_path, "rb") as f:
        raw = f.read()
    return ContextImage(path=absolute_path, mime=guess_mime_from_path(path), data=base64.b64encode(raw).decode("ascii"))


# --------------------------- persistence ---------------------------------- #
def save_base64_image(data: str, output_path: str) -> str:
    """Decode base64 image data and write it to ``output_path``.

    Missing parent directories are created. Returns the absolute path written.

    Raises:
        OSError: If the directory or file cannot be written
        ValueError: If ``data`` is not valid base64
    """
    absolute_path = resolve_path(output_path)
    image_bytes = base64.b64decode(data)
    os.makedirs(os.path.dirname(absolute_path), exist_ok=True)
    with open(absolute_path, "wb") as f:
        f.write(image_bytes)
    logger.info(f"Saved image to {absolute_path}")
    return absolute_path


__all__ = [
    "is_data_url",
    "guess_mime_from_path",
    "resolve_path",
    "to_data_url",
    "parse_data_url",
    "ContextImage",
    "read_context_image",
    "save_base64_image",
]
