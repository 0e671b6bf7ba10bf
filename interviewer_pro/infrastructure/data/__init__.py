"""
Data management infrastructure for interview sessions.
"""

from .store import JsonSessionStore

__all__ = ["JsonSessionStore"]
