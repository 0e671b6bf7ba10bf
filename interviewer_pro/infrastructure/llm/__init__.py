"""Model-service clients: one-shot REST streaming and live connections."""

from .client import VertexRestClient
from .live import GeminiLiveConnector, GeminiLiveConnection, LiveMessage, END_OF_TURN

__all__ = ["VertexRestClient", "GeminiLiveConnector", "GeminiLiveConnection", "LiveMessage", "END_OF_TURN"]
