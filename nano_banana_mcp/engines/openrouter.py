from __future__ import annotations

import json
from enum import StrEnum
from typing import Any

from loguru import logger
from openai import APIError, AsyncOpenAI

from ..exceptions import UpstreamAPIError
from ..settings import Settings
from ..utils.error_helpers import describe_api_error, redact_for_log

# OpenRouter-specific enums/constants


class OpenRouterEndpoint(StrEnum):
    """OpenRouter API endpoints."""

    BASE = "https://openrouter.ai/api/v1"


class OpenRouterHeader(StrEnum):
    """Attribution headers OpenRouter uses to identify the calling app."""

    REFERER = "HTTP-Referer"
    TITLE = "X-Title"


APP_REFERER = "https://github.com/modelcontextprotocol/nano-banana"
APP_TITLE = "Nano Banana MCP"


class OpenRouterEngine:
    """Single-request adapter for OpenRouter's chat-completions endpoint.

    Sends one blocking request per call with SDK retries disabled and returns
    the raw response JSON so that non-standard fields (``message.images``)
    survive untouched.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.model_id = settings.model_id
        self._async_client: AsyncOpenAI | None = None

    # HTTP client operations
    def _client(self) -> AsyncOpenAI:
        """Return the AsyncOpenAI client routed to the OpenRouter base URL."""
        if self._async_client is None:
            self._async_client = AsyncOpenAI(
                base_url=OpenRouterEndpoint.BASE.value,
                api_key=self.settings.openrouter_api_key,
                default_headers={
                    OpenRouterHeader.REFERER.value: APP_REFERER,
                    OpenRouterHeader.TITLE.value: APP_TITLE,
                },
                max_retries=0,
            )
        return self._async_client

    def build_payload(self, messages: list[dict[str, Any]]) -> dict[str, Any]:
        """Build the Chat Completions body: ``{model, messages}``."""
        return {"model": self.model_id, "messages": messages}

    async def complete(self, messages: list[dict[str, Any]]) -> dict[str, Any]:
        """POST ``/chat/completions`` and return the decoded JSON body.

        A successful reply that is not JSON yields an empty mapping, which
        normalizes to the no-content result.

        Raises:
            UpstreamAPIError: If the request fails at the transport or HTTP level
        """
        payload = self.build_payload(messages)
        logger.info(f"Sending request to OpenRouter with model: {self.model_id}")
        logger.opt(lazy=True).debug("Full request payload: {}", lambda: json.dumps(redact_for_log(payload)))

        try:
            raw = await self._client().chat.completions.with_raw_response.create(**payload)
        except APIError as e:
            detail = describe_api_error(e)
            logger.error(f"OpenRouter API error: {detail}")
            raise UpstreamAPIError(detail, status_code=getattr(e, "status_code", None)) from e

        logger.info(f"Received response from OpenRouter: {raw.status_code}")
        logger.opt(lazy=True).debug("OpenRouter response headers: {}", lambda: json.dumps(dict(raw.headers)))
        try:
            resp_json = raw.http_response.json()
        except ValueError:
            logger.warning(f"OpenRouter returned a non-JSON body with status {raw.status_code}")
            return {}
        if not isinstance(resp_json, dict):
            logger.warning(f"OpenRouter returned a non-object JSON body with status {raw.status_code}")
            return {}
        logger.opt(lazy=True).debug("Raw response data (redacted): {}", lambda: json.dumps(redact_for_log(resp_json)))
        return resp_json


__all__ = ["OpenRouterEngine", "OpenRouterEndpoint", "OpenRouterHeader"]
