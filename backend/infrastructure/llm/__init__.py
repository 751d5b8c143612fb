"""LLM adapters."""

from .gemini_client import GeminiClient

__all__ = ["GeminiClient"]
