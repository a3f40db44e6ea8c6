from __future__ import annotations

import asyncio
import base64
import os
import sys
from typing import Any

import pytest

# Add repository root to sys.path for `import nano_banana_mcp.*` in tests
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from nano_banana_mcp.settings import Settings  # noqa: E402

# 1x1 PNG
SAMPLE_PNG_B64 = "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChAI9Ecf1UQAAAABJRU5ErkJggg=="
SAMPLE_PNG_BYTES = base64.b64decode(SAMPLE_PNG_B64)
# 1x1 transparent PNG
OTHER_PNG_B64 = "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR4nGMAAQAABQAB/9k3WQAAAABJRU5ErkJggg=="


def data_url(b64: str, mime: str = "image/png") -> str:
    return f"data:{mime};base64,{b64}"


def chat_response(content: Any = None, images: list[dict[str, Any]] | None = None) -> dict[str, Any]:
    """Build a chat-completion response body the way OpenRouter returns it."""
    message: dict[str, Any] = {"role": "assistant", "content": content}
    if images is not None:
        message["images"] = images
    return {"id": "gen-test", "object": "chat.completion", "choices": [{"index": 0, "message": message, "finish_reason": "stop"}]}


def image_part(b64: str, mime: str = "image/png") -> dict[str, Any]:
    return {"type": "image_url", "image_url": {"url": data_url(b64, mime)}}


class FakeEngine:
    """Stands in for OpenRouterEngine; replays queued responses or exceptions."""

    model_id = "test/model"

    def __init__(self, *outcomes: Any) -> None:
        self.outcomes = list(outcomes)
        self.calls: list[list[dict[str, Any]]] = []

    async def complete(self, messages: list[dict[str, Any]]) -> dict[str, Any]:
        self.calls.append(messages)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class GatedEngine(FakeEngine):
    """FakeEngine that holds each call open until ``release`` is set."""

    def __init__(self, *outcomes: Any) -> None:
        super().__init__(*outcomes)
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.active = 0
        self.max_active = 0

    async def complete(self, messages: list[dict[str, Any]]) -> dict[str, Any]:
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        self.started.set()
        try:
            await self.release.wait()
            return await super().complete(messages)
        finally:
            self.active -= 1


@pytest.fixture
def settings(monkeypatch) -> Settings:
    monkeypatch.delenv("NANO_BANANA_MODEL_ID", raising=False)
    return Settings(openrouter_api_key="test-key")


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """Run the test with the temporary directory as the working directory."""
    monkeypatch.chdir(tmp_path)
    return tmp_path
