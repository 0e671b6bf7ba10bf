"""Infrastructure components for the interview system.

Low-level technical components: model clients, audio conversion and storage.
"""

# LLM infrastructure
from .llm import VertexRestClient, GeminiLiveConnector

# Audio conversion
from .audio import prepare_live_chunk

# Storage
from .data import JsonSessionStore

__all__ = ["VertexRestClient", "GeminiLiveConnector", "prepare_live_chunk", "JsonSessionStore"]
