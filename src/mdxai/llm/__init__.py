"""Generation backends."""

from __future__ import annotations

from mdxai.llm.client import ChatMessage, LLMClient
from mdxai.llm.protocol import Backend, TextGeneration, Usage

__all__ = [
    "Backend",
    "ChatMessage",
    "LLMClient",
    "TextGeneration",
    "Usage",
]
