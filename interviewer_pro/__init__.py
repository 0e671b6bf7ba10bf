"""
Interviewer Pro: AI mock-interview simulator.

Runs text and live-voice interviews against a Gemini model, giving structured
feedback on every answer.
"""

__version__ = "1.0.0"

# Main entry points
from .interview.orchestrator import InterviewOrchestrator
from .interview.services import InterviewSessionService, SubmitAnswerResult

__all__ = ["InterviewOrchestrator", "InterviewSessionService", "SubmitAnswerResult"]
