"""
Exception taxonomy.

`InterviewError` is the only thing callers of the procedure layer should see:
its message is generic and user-safe. The `InterviewFailure` subclasses carry
the precise internal cause; they are logged and chained as `__cause__`.
"""
from typing import Optional, Dict, Any


GENERIC_NEXT_QUESTION_ERROR = "Failed to get next question and feedback from AI."
GENERIC_FIRST_QUESTION_ERROR = "Failed to start interview simulation due to an AI error."
GENERIC_LIVE_SESSION_ERROR = "Failed to open live interview session."
GENERIC_LIVE_AUDIO_ERROR = "Failed to stream audio to live interview session."
GENERIC_TRANSCRIBE_ERROR = "Failed to transcribe audio."


class InterviewError(Exception):
    """Coarse, user-safe error raised across the procedure boundary."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class SessionNotFound(InterviewError):
    def __init__(self, session_id: str):
        super().__init__("Session not found", {"session_id": session_id})


class SessionNotAuthorized(InterviewError):
    def __init__(self, session_id: str):
        super().__init__("Not authorized to access this session", {"session_id": session_id})


class SessionCompleted(InterviewError):
    def __init__(self, session_id: str):
        super().__init__("Session is already completed", {"session_id": session_id})


class PersonaNotFound(InterviewError):
    def __init__(self, persona_id: str):
        super().__init__(f"Persona not found: {persona_id}", {"persona_id": persona_id})


class JdResumeNotFound(InterviewError):
    def __init__(self, user_id: str):
        super().__init__("JD/Resume text not found", {"user_id": user_id})


class EmptyAnswer(InterviewError):
    def __init__(self, session_id: str):
        super().__init__("Answer must not be empty", {"session_id": session_id})


class InterviewFailure(Exception):
    """Internal failure condition. Never shown to end users."""


class EmptyModelResponse(InterviewFailure):
    """The model call returned no usable content."""


class ModelCallFailed(InterviewFailure):
    """Transport or model-side failure during a model call."""


class StreamingConnectionFailed(InterviewFailure):
    """A live connection could not be opened or maintained."""
