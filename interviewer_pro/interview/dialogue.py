"""
Text-mode dialogue turn controller.

One request/response cycle: build prompt, call the model, parse, validate.
Callers must not run two cycles concurrently for the same session; the
procedure layer serializes them.
"""
import asyncio
import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from .errors import (
    InterviewError, InterviewFailure, EmptyModelResponse, ModelCallFailed,
    GENERIC_NEXT_QUESTION_ERROR, GENERIC_FIRST_QUESTION_ERROR,
)
from .models import Persona, JdResumeText, ContinueResult, FirstQuestion
from .parsing import parse_ai_response
from .prompts import build_prompt_contents, build_first_question_contents, user_message
from .schemas import QuestionSegment
from ..config import MODEL_NAME_TEXT, TEXT_TEMPERATURE, MAX_OUTPUT_TOKENS

logger = logging.getLogger("dialogue")

DEFAULT_KEY_POINTS = [
    "Focus on your specific role and contributions",
    "Highlight technologies and tools you used",
    "Discuss challenges faced and how you overcame them",
]


class DialogueState(str, Enum):
    """Per-segment text-mode state."""
    AWAITING_ANSWER = "awaiting_answer"
    SUBMITTING = "submitting"
    COMPLETED = "completed"


def dialogue_state(segment: Optional[QuestionSegment],
                   session_active: bool = True,
                   submitting: bool = False) -> DialogueState:
    """Derive a segment's dialogue state from persisted data."""
    if not session_active or segment is None or segment.completed:
        return DialogueState.COMPLETED
    if submitting:
        return DialogueState.SUBMITTING
    return DialogueState.AWAITING_ANSWER


class DialogueTurnController:
    """Drives one-shot model calls and owns the empty/invalid response failure path."""

    def __init__(self,
                 model_client,
                 model_name: str = MODEL_NAME_TEXT,
                 temperature: float = TEXT_TEMPERATURE,
                 max_output_tokens: int = MAX_OUTPUT_TOKENS):
        self.model_client = model_client
        self.model_name = model_name
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens

    async def continue_interview(self,
                                 jd_resume_text: JdResumeText,
                                 persona: Persona,
                                 history: Sequence[Any],
                                 user_response_text: str) -> ContinueResult:
        """
        Send the user's answer and get the model's next turn.

        Args:
            jd_resume_text: The user's JD and resume
            persona: Interviewer persona
            history: Turns before the new answer, oldest first
            user_response_text: The answer being submitted

        Returns:
            ContinueResult; `next_question` is None when the interview is over

        Raises:
            InterviewError: generic failure; the precise cause is logged and chained
        """
        contents = build_prompt_contents(jd_resume_text, persona, history)
        contents.append(user_message(user_response_text))

        raw = await self._generate(contents, GENERIC_NEXT_QUESTION_ERROR)
        parsed = parse_ai_response(raw)
        if parsed.next_question is None:
            logger.info("Model reply carried no question; interview complete")

        return ContinueResult(
            next_question=parsed.next_question,
            analysis=parsed.analysis,
            feedback_points=parsed.feedback_points,
            suggested_alternative=parsed.suggested_alternative,
            key_points=parsed.key_points,
            raw_ai_response_text=raw,
        )

    async def get_first_question(self,
                                 jd_resume_text: JdResumeText,
                                 persona: Persona,
                                 previous_questions: Sequence[str] = ()) -> FirstQuestion:
        """Generate the opening question of a new segment."""
        contents = build_first_question_contents(jd_resume_text, persona, previous_questions)
        raw = await self._generate(contents, GENERIC_FIRST_QUESTION_ERROR)

        parsed = parse_ai_response(raw)
        if not parsed.next_question:
            failure = EmptyModelResponse("Model reply for first question had no <QUESTION> content")
            raise self._log_failure(failure, GENERIC_FIRST_QUESTION_ERROR, raw) from failure

        return FirstQuestion(
            question=parsed.next_question,
            key_points=parsed.key_points or list(DEFAULT_KEY_POINTS),
            raw_ai_response_text=raw,
        )

    def _drain(self, contents: List[Dict[str, Any]]) -> str:
        chunks = self.model_client.stream_generate_content(
            contents,
            model=self.model_name,
            temperature=self.temperature,
            max_output_tokens=self.max_output_tokens,
        )
        return "".join(chunks)

    async def _generate(self, contents: List[Dict[str, Any]], generic_message: str) -> str:
        # The whole stream is consumed before anything is parsed.
        try:
            raw = await asyncio.to_thread(self._drain, contents)
        except Exception as e:
            failure = ModelCallFailed(f"{type(e).__name__}: {e}")
            failure.__cause__ = e
            raise self._log_failure(failure, generic_message) from failure

        if not raw or not raw.strip():
            failure = EmptyModelResponse("Model returned an empty response")
            raise self._log_failure(failure, generic_message, raw) from failure
        return raw

    @staticmethod
    def _log_failure(failure: InterviewFailure,
                     generic_message: str,
                     raw: Optional[str] = None) -> InterviewError:
        """Log the precise cause and build the user-safe error to raise in its place."""
        logger.error("%s: %s (raw=%r)", type(failure).__name__, failure, raw, exc_info=failure.__cause__)
        return InterviewError(generic_message)
