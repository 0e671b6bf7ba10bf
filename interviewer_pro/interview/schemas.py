"""
Persisted session shape.

These models are what the datastore holds, serialized as camelCase JSON. Raw
model replies are stored verbatim next to their derived display text so that
prompts can be rebuilt from persisted state alone.
"""
import uuid
from datetime import datetime, timezone
from typing import Optional, List, Literal, Dict, Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from .models import ContinueResult, FirstQuestion


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ConversationTurn(_CamelModel):
    """One utterance within a question segment."""
    id: str = Field(default_factory=lambda: new_id("turn"))
    role: Literal["user", "model"]
    text: str
    raw_ai_response_text: Optional[str] = None
    analysis: Optional[str] = None
    feedback_points: Optional[List[str]] = None
    suggested_alternative: Optional[str] = None
    timestamp: datetime = Field(default_factory=utcnow)

    @classmethod
    def user(cls, text: str) -> "ConversationTurn":
        return cls(role="user", text=text)

    @classmethod
    def from_question(cls, first: FirstQuestion) -> "ConversationTurn":
        return cls(role="model", text=first.question, raw_ai_response_text=first.raw_ai_response_text)

    @classmethod
    def from_reply(cls, result: ContinueResult) -> "ConversationTurn":
        # text mirrors the parsed question; "" when the reply ended the interview
        return cls(
            role="model",
            text=result.next_question or "",
            raw_ai_response_text=result.raw_ai_response_text,
            analysis=result.analysis,
            feedback_points=list(result.feedback_points),
            suggested_alternative=result.suggested_alternative,
        )


class QuestionSegment(_CamelModel):
    """One interview question and everything said about it."""
    question_id: str = Field(default_factory=lambda: new_id("q"))
    question_number: int = Field(ge=1)
    question: str
    key_points: List[str] = Field(default_factory=list)
    conversation: List[ConversationTurn] = Field(default_factory=list)
    completed: bool = False

    @model_validator(mode="after")
    def _opens_with_model_turn(self) -> "QuestionSegment":
        if self.conversation and self.conversation[0].role != "model":
            raise ValueError("A segment's conversation must open with the model presenting the question")
        return self

    def append(self, turn: ConversationTurn) -> None:
        if not self.conversation and turn.role != "model":
            raise ValueError("A segment's conversation must open with the model presenting the question")
        self.conversation.append(turn)


class SessionData(_CamelModel):
    """Aggregate root for one interview."""
    id: str = Field(default_factory=lambda: new_id("session"))
    user_id: str
    persona_id: str
    jd_resume_text_id: str
    duration_in_seconds: int = 0
    start_time: datetime = Field(default_factory=utcnow)
    end_time: Optional[datetime] = None
    current_question_index: int = 0
    question_segments: List[QuestionSegment] = Field(default_factory=list)
    overall_assessment: Optional[Dict[str, Any]] = None

    @model_validator(mode="after")
    def _index_in_range(self) -> "SessionData":
        if self.question_segments and not 0 <= self.current_question_index < len(self.question_segments):
            raise ValueError("currentQuestionIndex is out of range")
        return self

    @property
    def is_active(self) -> bool:
        return self.end_time is None

    @property
    def current_segment(self) -> Optional[QuestionSegment]:
        if not self.question_segments:
            return None
        return self.question_segments[self.current_question_index]

    def add_segment(self, first: FirstQuestion) -> QuestionSegment:
        segment = QuestionSegment(
            question_number=len(self.question_segments) + 1,
            question=first.question,
            key_points=list(first.key_points),
            conversation=[ConversationTurn.from_question(first)],
        )
        self.question_segments.append(segment)
        self.current_question_index = len(self.question_segments) - 1
        return segment

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "SessionData":
        return cls.model_validate(data)
