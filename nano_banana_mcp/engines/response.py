"""Normalization of OpenRouter chat-completion responses into content items.

Images can arrive in two places on the first choice's message:

- ``message.images``: a non-standard array used by Gemini image models on
  OpenRouter. Read best-effort; it is absent from the standard schema.
- ``message.content`` as an array of parts (OpenAI multimodal shape).

Both are always scanned, ``images`` first.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..schema import ContentItem, ImageItem, TextItem
from ..shard.enums import MessagePartType
from ..utils.image_utils import parse_data_url


def _first_message(resp_json: Mapping[str, Any]) -> Mapping[str, Any]:
    choices = resp_json.get("choices")
    if not isinstance(choices, list) or not choices:
        return {}
    choice = choices[0]
    if not isinstance(choice, Mapping):
        return {}
    message = choice.get("message")
    return message if isinstance(message, Mapping) else {}


def extract_images(entries: Any) -> list[ImageItem]:
    """Collect ``{type: image_url, image_url: {url: data:...}}`` entries in order."""
    images: list[ImageItem] = []
    if not isinstance(entries, list):
        return images
    for entry in entries:
        if not isinstance(entry, Mapping) or entry.get("type") != MessagePartType.IMAGE_URL:
            continue
        image_url = entry.get("image_url")
        url = image_url.get("url") if isinstance(image_url, Mapping) else None
        if not isinstance(url, str) or not url:
            continue
        parsed = parse_data_url(url)
        if parsed is None:
            continue
        mime, payload = parsed
        images.append(ImageItem(data=payload, mimeType=mime))
    return images


def normalize_response(resp_json: Mapping[str, Any]) -> list[ContentItem]:
    """Map a chat-completion response to an ordered list of Text/Image items.

    The list is empty when the response carries neither text nor images.
    """
    message = _first_message(resp_json)
    content = message.get("content")

    items: list[ContentItem] = []
    if isinstance(content, str) and content:
        items.append(TextItem(text=content))
    items.extend(extract_images(message.get("images")))
    if isinstance(content, list):
        items.extend(extract_images(content))
    return items


__all__ = ["extract_images", "normalize_response"]
