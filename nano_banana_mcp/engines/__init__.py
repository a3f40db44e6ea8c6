from .openrouter import OpenRouterEngine
from .response import normalize_response

__all__ = ["OpenRouterEngine", "normalize_response"]
