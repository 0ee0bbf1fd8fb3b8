"""External service clients."""

from docnex.clients.gemini import GeminiClient
from docnex.clients.protocols import LLMClient


__all__ = ["GeminiClient", "LLMClient"]
