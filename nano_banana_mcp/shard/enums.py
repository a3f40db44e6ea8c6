from __future__ import annotations

from enum import StrEnum


class BatchStatus(StrEnum):
    """Outcome of a single task inside a batch report."""

    SUCCESS = "success"
    FAILED = "failed"


class MessagePartType(StrEnum):
    """Chat-completion message part types sent to and read from OpenRouter."""

    TEXT = "text"
    IMAGE_URL = "image_url"


class Transport(StrEnum):
    """Transports accepted by the CLI entry point."""

    STDIO = "stdio"
    HTTP = "http"
    SSE = "sse"
    STREAMABLE_HTTP = "streamable-http"

    @property
    def is_http(self) -> bool:
        return self is not Transport.STDIO


__all__ = ["BatchStatus", "MessagePartType", "Transport"]
