from __future__ import annotations

import json
from typing import Any

from openai import APIError, APIStatusError

from ..shard import constants as C


def describe_api_error(exc: APIError) -> str:
    """Return the provider's full response body as JSON, otherwise the client message.

    ``exc.body`` is already unwrapped to the inner ``error`` object by the SDK,
    so HTTP errors are read from the response itself.
    """
    if isinstance(exc, APIStatusError):
        try:
            return json.dumps(exc.response.json())
        except ValueError:
            if exc.response.text:
                return json.dumps(exc.response.text)
    body = exc.body
    return json.dumps(body if body else exc.message)


def redact_for_log(node: Any) -> Any:
    """Return a copy of a JSON-like structure with image payloads replaced.

    Long ``data`` strings and ``url`` strings holding data URLs become
    ``DATA_REDACTED`` so diagnostics never contain base64 image content.
    """
    if isinstance(node, dict):
        redacted: dict[str, Any] = {}
        for key, value in node.items():
            if key == "data" and isinstance(value, str) and len(value) > C.REDACT_MIN_DATA_LENGTH:
                redacted[key] = C.REDACTED
            elif key == "url" and isinstance(value, str) and value.startswith("data:"):
                redacted[key] = C.REDACTED
            else:
                redacted[key] = redact_for_log(value)
        return redacted
    if isinstance(node, list):
        return [redact_for_log(v) for v in node]
    return node


__all__ = ["describe_api_error", "redact_for_log"]
