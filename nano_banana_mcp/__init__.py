"""
Nano Banana MCP Server

MCP server for image generation and editing through OpenRouter's
multimodal chat-completion API, built on FastMCP.
"""

__version__ = "0.1.0"

try:
    import importlib.metadata

    __version__ = importlib.metadata.version("nano-banana-mcp")
except (importlib.metadata.PackageNotFoundError, ImportError):
    # Fallback for development mode
    pass

__all__ = ["__version__"]
