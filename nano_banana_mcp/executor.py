from __future__ import annotations

import asyncio
from typing import Any

from loguru import logger

from .engines import OpenRouterEngine, normalize_response
from .exceptions import UpstreamAPIError
from .schema import ContentItem, ImageItem, TaskDescriptor, TaskResult, TextItem
from .settings import Settings
from .shard import constants as C
from .shard.enums import MessagePartType
from .utils.image_utils import read_context_image, save_base64_image


class TaskExecutor:
    """Runs one image task: load context images, call OpenRouter, normalize, persist.

    Image-read failures and upstream API errors come back as error-flagged
    results. Any other exception propagates to the caller.
    """

    def __init__(self, settings: Settings, engine: OpenRouterEngine | None = None) -> None:
        self.settings = settings
        self.engine = engine or OpenRouterEngine(settings)
        # Held for a single task or for a whole batch; executions never overlap.
        self.lock = asyncio.Lock()

    async def execute(self, task: TaskDescriptor) -> TaskResult:
        async with self.lock:
            return await self.execute_locked(task)

    async def execute_locked(self, task: TaskDescriptor) -> TaskResult:
        """Run ``task`` without taking ``lock``; the caller must already hold it."""
        content_parts: list[dict[str, Any]] = [{"type": MessagePartType.TEXT.value, "text": task.prompt}]
        for image_path in task.image_paths:
            try:
                image = await asyncio.to_thread(read_context_image, image_path)
            except (OSError, ValueError) as e:
                logger.error(f"Failed to read context image {image_path}: {e}")
                return TaskResult.error(C.READ_FAILED_MESSAGE.format(path=image_path, reason=e))
            content_parts.append(image.to_content_part())

        messages = [{"role": "user", "content": content_parts}]

        try:
            resp_json = await self.engine.complete(messages)
        except UpstreamAPIError as e:
            return TaskResult.error(C.UPSTREAM_ERROR_MESSAGE.format(detail=e.detail))

        content = normalize_response(resp_json)
        if not content:
            logger.warning("OpenRouter response contained no text or images")
            return TaskResult(content=[TextItem(text=C.NO_CONTENT_MESSAGE)])

        image_count = sum(1 for c in content if isinstance(c, ImageItem))
        logger.info(f"Found {image_count} image(s) in OpenRouter response")

        if task.output_path:
            note = await self._persist_first_image(content, task.output_path)
            if note is not None:
                content.append(note)

        return TaskResult(content=content)

    async def _persist_first_image(self, content: list[ContentItem], output_path: str) -> TextItem | None:
        """Write the first image in ``content`` to ``output_path``.

        Returns a confirmation or warning item, or None when there is no image.
        """
        first_image = next((c for c in content if isinstance(c, ImageItem)), None)
        if first_image is None:
            return None
        try:
            saved_path = await asyncio.to_thread(save_base64_image, first_image.data, output_path)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to save image: {e}")
            return TextItem(text=C.SAVE_FAILED_MESSAGE.format(reason=e))
        return TextItem(text=C.SAVED_MESSAGE.format(path=saved_path))


__all__ = ["TaskExecutor"]
