"""
Infrastructure layer: configuration, store/metadata/LLM adapters and wiring.
"""

__all__ = [
    "bootstrap",
    "config",
    "enrichment",
    "identity",
    "llm",
    "persistence",
    "utils",
]
