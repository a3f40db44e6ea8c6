from __future__ import annotations

import argparse
import asyncio
import contextlib
import signal
from functools import lru_cache
from typing import Annotated, Any, NoReturn

from fastmcp import Context, FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.tools.tool import ToolResult
from loguru import logger
from mcp.types import TextContent
from pydantic import Field, ValidationError

from .batch import BatchRunner, ProgressCallback
from .exceptions import ConfigurationError, NanoBananaError, TaskFailedError
from .executor import TaskExecutor
from .schema import TaskDescriptor
from .settings import get_settings
from .shard import constants as C
from .shard.enums import Transport
from .shard.instructions import SERVER_INSTRUCTIONS, TOOL_DESCRIPTIONS
from .utils.logging import configure_logging

app = FastMCP("nano-banana-openrouter", instructions=SERVER_INSTRUCTIONS)


@lru_cache
def get_executor() -> TaskExecutor:
    """Build the process-wide executor from settings read once at startup."""
    try:
        settings = get_settings()
    except ValidationError as e:
        raise ConfigurationError("OPENROUTER_API_KEY environment variable is required") from e
    return TaskExecutor(settings)


def _handle_tool_error(e: Exception) -> NoReturn:
    """Convert an exception to a ToolError so the client sees isError=True.

    Known failures keep their user-facing message; anything else is logged
    with its traceback and reported generically.
    """
    if isinstance(e, ToolError):
        raise e
    if isinstance(e, NanoBananaError):
        raise ToolError(e.user_message)

    logger.opt(exception=e).error(f"Unexpected error: {type(e).__name__}: {e}")
    raise ToolError("An unexpected error occurred. Please try again.")


@app.tool(
    name="edit_or_create_image",
    description=TOOL_DESCRIPTIONS["edit_or_create_image"],
    annotations={
        "title": "Edit or Create Image",
        "readOnlyHint": False,
        "idempotentHint": False,
        "openWorldHint": True,
    },
)
async def mcp_edit_or_create_image(
    prompt: Annotated[
        str,
        Field(description="The instruction for image creation or editing. Reference existing images by their filenames."),
    ],
    imagePaths: Annotated[  # noqa: N803 - wire name
        list[str] | None,
        Field(max_length=C.MAX_CONTEXT_IMAGES, description=f"Local paths to images to be used as context (max {C.MAX_CONTEXT_IMAGES})."),
    ] = None,
    outputPath: Annotated[  # noqa: N803 - wire name
        str | None,
        Field(
            description=(
                "The local path where the generated image should be saved (e.g., 'output.png'). "
                "You should default to saving in the current project folder unless otherwise specified."
            )
        ),
    ] = None,
    ctx: Context | None = None,
) -> ToolResult:
    """Create or edit one image from a prompt and optional context images."""
    try:
        task = TaskDescriptor(prompt=prompt, image_paths=tuple(imagePaths or ()), output_path=outputPath)
        result = await get_executor().execute(task)
        if result.is_error:
            raise TaskFailedError(result.message)
        return ToolResult(content=result.to_mcp_content())
    except Exception as e:
        _handle_tool_error(e)


@app.tool(
    name="batch_edit_or_create_images",
    description=TOOL_DESCRIPTIONS["batch_edit_or_create_images"],
    annotations={
        "title": "Batch Edit or Create Images",
        "readOnlyHint": False,
        "idempotentHint": False,
        "openWorldHint": True,
    },
)
async def mcp_batch_edit_or_create_images(
    tasks: Annotated[
        list[TaskDescriptor],
        Field(min_length=1, description="Tasks to run in order; each has prompt, optional imagePaths and optional outputPath."),
    ],
    ctx: Context | None = None,
) -> ToolResult:
    """Run several image tasks sequentially and return a JSON report."""
    try:
        progress: ProgressCallback | None = None
        if ctx is not None:

            async def _report(completed: int, total: int) -> None:
                await ctx.report_progress(progress=completed, total=total)

            progress = _report

        report = await BatchRunner(get_executor()).run(tasks, progress=progress)
        return ToolResult(
            content=[TextContent(type="text", text=report.to_json())],
            structured_content=report.model_dump(mode="json"),
        )
    except Exception as e:
        _handle_tool_error(e)


async def _shutdown(server: asyncio.Task[Any]) -> None:
    """Let an in-flight task finish, then stop serving."""
    async with get_executor().lock:
        server.cancel()


async def serve(transport: Transport, host: str | None = None, port: int | None = None) -> None:
    """Run the MCP server until it exits or SIGINT is received."""
    loop = asyncio.get_running_loop()
    # FastMCP's stdio transport does not accept `host`/`port` kwargs.
    kwargs: dict[str, Any] = {"host": host, "port": port} if transport.is_http else {}
    server = asyncio.create_task(app.run_async(transport=transport.value, **kwargs))
    pending: set[asyncio.Task[None]] = set()

    def _on_interrupt() -> None:
        logger.info("Received SIGINT, shutting down MCP server")
        task = asyncio.create_task(_shutdown(server))
        pending.add(task)
        task.add_done_callback(pending.discard)

    with contextlib.suppress(NotImplementedError):
        loop.add_signal_handler(signal.SIGINT, _on_interrupt)

    try:
        await server
    except asyncio.CancelledError:
        logger.info("MCP server stopped")


def main() -> None:
    parser = argparse.ArgumentParser(description="Nano Banana MCP Server (OpenRouter)")
    parser.add_argument(
        "--transport",
        choices=[t.value for t in Transport],
        default=Transport.STDIO.value,
        help="Transport to use (stdio, sse, http, streamable-http). Default: stdio",
    )
    parser.add_argument("--host", help="Host to bind to")
    parser.add_argument("--port", type=int, help="Port to listen on")
    args = parser.parse_args()

    try:
        executor = get_executor()
    except ConfigurationError as e:
        logger.error(e.user_message)
        raise SystemExit(1) from e

    configure_logging(executor.settings.log_level)
    transport = Transport(args.transport)
    logger.info(f"Starting Nano Banana MCP server with {transport} transport, model {executor.settings.model_id}")

    asyncio.run(serve(transport, host=args.host, port=args.port))


if __name__ == "__main__":
    main()
