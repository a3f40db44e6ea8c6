from __future__ import annotations

from typing import Annotated, Literal

from mcp.types import ImageContent, TextContent
from pydantic import BaseModel, ConfigDict, Field

from .shard import constants as C
from .shard.enums import BatchStatus

# ------------------------------- Task input --------------------------------- #


class TaskDescriptor(BaseModel):
    """One image generation/edit request.

    Accepts the wire names used by the tool schema (``imagePaths``,
    ``outputPath``) as well as the Python field names.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    prompt: str = Field(description="The instruction for image creation or editing. Reference existing images by their filenames.")
    image_paths: tuple[str, ...] = Field(
        default=(),
        alias="imagePaths",
        max_length=C.MAX_CONTEXT_IMAGES,
        description=f"Local paths to images to be used as context (max {C.MAX_CONTEXT_IMAGES}).",
    )
    output_path: str | None = Field(
        default=None,
        alias="outputPath",
        description="The local path where the generated image should be saved (e.g., 'output.png').",
    )


# ----------------------------- Response content ----------------------------- #


class TextItem(BaseModel):
    type: Literal["text"] = "text"
    text: str

    def to_mcp(self) -> TextContent:
        return TextContent(type="text", text=self.text)


class ImageItem(BaseModel):
    """Generated image carried as base64 exactly as the provider returned it."""

    type: Literal["image"] = "image"
    data: str = Field(description="Base64-encoded image bytes.")
    mimeType: str = Field(description="MIME type taken from the data URL.")

    def to_mcp(self) -> ImageContent:
        return ImageContent(type="image", data=self.data, mimeType=self.mimeType)


ContentItem = Annotated[TextItem | ImageItem, Field(discriminator="type")]


class TaskResult(BaseModel):
    """Outcome of one task execution.

    Error results hold a single TextItem describing the failure; they are
    recoverable and reported to the caller rather than raised.
    """

    content: list[ContentItem] = Field(default_factory=list)
    is_error: bool = False

    @classmethod
    def error(cls, message: str) -> TaskResult:
        return cls(content=[TextItem(text=message)], is_error=True)

    @property
    def images(self) -> list[ImageItem]:
        return [c for c in self.content if isinstance(c, ImageItem)]

    @property
    def texts(self) -> list[str]:
        return [c.text for c in self.content if isinstance(c, TextItem)]

    @property
    def message(self) -> str:
        return "\n".join(self.texts)

    def to_mcp_content(self) -> list[TextContent | ImageContent]:
        """Convert into MCP content blocks in sequence order."""
        return [c.to_mcp() for c in self.content]


# ------------------------------- Batch report ------------------------------- #


class BatchResultRecord(BaseModel):
    index: int = Field(description="1-based position of the task in the batch.")
    prompt: str
    status: BatchStatus
    output: str | None = Field(default=None, description="Text returned for the task, including save confirmations.")
    image_count: int = Field(default=0, description="Number of images returned for the task.")
    error: str | None = None


class BatchReport(BaseModel):
    total: int
    succeeded: int
    failed: int
    results: list[BatchResultRecord] = Field(default_factory=list)

    @classmethod
    def from_records(cls, records: list[BatchResultRecord]) -> BatchReport:
        succeeded = sum(1 for r in records if r.status == BatchStatus.SUCCESS)
        return cls(total=len(records), succeeded=succeeded, failed=len(records) - succeeded, results=records)

    def to_json(self) -> str:
        return self.model_dump_json(indent=2)


__all__ = [
    "TaskDescriptor",
    "TextItem",
    "ImageItem",
    "ContentItem",
    "TaskResult",
    "BatchResultRecord",
    "BatchReport",
]
