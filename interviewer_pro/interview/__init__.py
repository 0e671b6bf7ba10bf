"""Interview system components.

Business logic for AI mock interviews: prompt building, reply parsing, the
text dialogue loop, live voice turns, and the session procedures on top.
"""

# Core orchestrator class
from .orchestrator import InterviewOrchestrator

# Data models
from .models import Persona, JdResumeText, AiResponse, ContinueResult, FirstQuestion, LiveTurnResult
from .schemas import SessionData, QuestionSegment, ConversationTurn

# Dialogue building blocks
from .parsing import parse_ai_response
from .prompts import build_system_instruction, build_prompt_contents
from .dialogue import DialogueTurnController
from .live import LiveVoiceTurnManager, LiveTurnState, open_live_interview_session, transcribe_audio_once

# Services
from .services import InterviewSessionService, SubmitAnswerResult

# Errors
from .errors import (
    InterviewError, SessionNotFound, SessionNotAuthorized, SessionCompleted,
    PersonaNotFound, JdResumeNotFound, EmptyAnswer,
)

# Event system
from .events import InterviewEventBus, EventLogger, InterviewMetrics, EventType, InterviewEvent

__all__ = [
    # Orchestrator
    "InterviewOrchestrator",

    # Data models
    "Persona", "JdResumeText", "AiResponse", "ContinueResult", "FirstQuestion", "LiveTurnResult",
    "SessionData", "QuestionSegment", "ConversationTurn",

    # Dialogue
    "parse_ai_response", "build_system_instruction", "build_prompt_contents",
    "DialogueTurnController",
    "LiveVoiceTurnManager", "LiveTurnState", "open_live_interview_session", "transcribe_audio_once",

    # Services
    "InterviewSessionService", "SubmitAnswerResult",

    # Errors
    "InterviewError", "SessionNotFound", "SessionNotAuthorized", "SessionCompleted",
    "PersonaNotFound", "JdResumeNotFound", "EmptyAnswer",

    # Events
    "InterviewEventBus", "EventLogger", "InterviewMetrics", "EventType", "InterviewEvent",
]
