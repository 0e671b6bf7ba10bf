"""
Data models for the interview system.
"""
from dataclasses import dataclass, field
from typing import Optional, List


@dataclass(frozen=True)
class Persona:
    """Interviewer persona the model adopts."""
    id: str
    name: str
    system_prompt: str
    greeting: Optional[str] = None
    description: Optional[str] = None


@dataclass
class JdResumeText:
    """One job description / resume pair per user."""
    id: str
    user_id: str
    jd_text: str
    resume_text: str


@dataclass
class AiResponse:
    """Structured fields extracted from a tagged model reply."""
    next_question: Optional[str] = None
    analysis: str = ""
    feedback_points: List[str] = field(default_factory=list)
    suggested_alternative: Optional[str] = None
    key_points: List[str] = field(default_factory=list)


@dataclass
class ContinueResult(AiResponse):
    """Parsed reply plus the untouched raw text, kept for prompt reconstruction."""
    raw_ai_response_text: str = ""

    @property
    def is_complete(self) -> bool:
        return not self.next_question


@dataclass
class FirstQuestion:
    """Opening question of a segment."""
    question: str
    key_points: List[str]
    raw_ai_response_text: str


@dataclass
class LiveTurnResult:
    """What one live voice turn produced."""
    transcript: str = ""
    model_text: str = ""
    timed_out: bool = False
