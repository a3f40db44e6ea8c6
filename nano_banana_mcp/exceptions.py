from __future__ import annotations


class NanoBananaError(Exception):
    """Base error whose ``user_message`` is safe to show to MCP clients."""

    def __init__(self, user_message: str):
        self.user_message = user_message
        super().__init__(user_message)


class ConfigurationError(NanoBananaError):
    """Raised when required process configuration is missing or invalid."""


class UpstreamAPIError(NanoBananaError):
    """Raised when the OpenRouter call fails at the transport or HTTP level.

    ``detail`` holds the JSON-encoded response body when one was returned,
    otherwise the client's error message.
    """

    def __init__(self, detail: str, status_code: int | None = None):
        self.detail = detail
        self.status_code = status_code
        super().__init__(f"OpenRouter API error: {detail}")


class TaskFailedError(NanoBananaError):
    """Raised by tool handlers when a task produced an error-flagged result."""


__all__ = [
    "NanoBananaError",
    "ConfigurationError",
    "UpstreamAPIError",
    "TaskFailedError",
]
