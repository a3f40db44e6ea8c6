from __future__ import annotations

from .constants import MAX_CONTEXT_IMAGES

# Tool descriptions used by FastMCP when registering tools. Keep short and clear.
TOOL_DESCRIPTIONS: dict[str, str] = {
    "edit_or_create_image": (
        "Create or edit an image using the Gemini Nano-Banana model. "
        f"You can provide up to {MAX_CONTEXT_IMAGES} images as context. "
        "Final results should be saved to the current project folder by default."
    ),
    "batch_edit_or_create_images": (
        "Run several image creation/edit tasks one after another. Tasks run in order, so a later task "
        "may use an image saved by an earlier one. Returns a JSON report with one record per task."
    ),
}


# High-level, concise server instructions for agents.
SERVER_INSTRUCTIONS: str = (
    "Nano Banana image server (OpenRouter).\n"
    "Tools: edit_or_create_image for a single prompt, batch_edit_or_create_images for an ordered list of tasks.\n\n"
    "Rules:\n"
    f"- Pass at most {MAX_CONTEXT_IMAGES} local image paths as context; reference them by filename in the prompt.\n"
    "- Set outputPath to save the first generated image; default to the current project folder.\n"
    "- In a batch, a task may read a file written by an earlier task; tasks never run in parallel.\n"
    "- A failed task in a batch does not stop the remaining tasks; check each record's status."
)


__all__ = ["TOOL_DESCRIPTIONS", "SERVER_INSTRUCTIONS"]
