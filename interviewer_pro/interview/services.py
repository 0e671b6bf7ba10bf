"""
Service classes for the interview system.

`InterviewSessionService` is the procedure layer: it authorizes every call
against the owning user, loads and saves `SessionData` through the store, and
drives the dialogue controller and live turn manager.
"""
import time
import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Callable, Awaitable, Set

from .dialogue import DialogueTurnController, DialogueState, dialogue_state
from .errors import (
    InterviewError, SessionNotFound, SessionNotAuthorized, SessionCompleted,
    PersonaNotFound, JdResumeNotFound, EmptyAnswer,
)
from .events import (
    InterviewEventBus, SessionStartedEvent, QuestionStartedEvent, TurnCompletedEvent,
    LiveTurnOpenedEvent, LiveTurnTimedOutEvent, InterviewCompletedEvent, ErrorOccurredEvent,
)
from .live import LiveVoiceTurnManager, transcribe_audio_once
from .models import ContinueResult, JdResumeText, LiveTurnResult, Persona
from .personas import get_persona
from .schemas import ConversationTurn, QuestionSegment, SessionData, new_id, utcnow
from ..config import Config
from ..infrastructure.data import JsonSessionStore

logger = logging.getLogger("services")


@dataclass
class SubmitAnswerResult(ContinueResult):
    """Controller reply plus where the session now stands."""
    is_complete: bool = False
    question_number: int = 1

    @classmethod
    def from_reply(cls, reply: ContinueResult, question_number: int) -> "SubmitAnswerResult":
        return cls(
            next_question=reply.next_question,
            analysis=reply.analysis,
            feedback_points=list(reply.feedback_points),
            suggested_alternative=reply.suggested_alternative,
            key_points=list(reply.key_points),
            raw_ai_response_text=reply.raw_ai_response_text,
            is_complete=reply.next_question is None,
            question_number=question_number,
        )


class InterviewSessionService:
    """
    Owns session lifecycle. One live turn manager is kept per session.

    Concurrent calls for the same session must be serialized by the caller.
    """

    def __init__(self,
                 store: JsonSessionStore,
                 controller: DialogueTurnController,
                 live_connector=None,
                 event_bus: Optional[InterviewEventBus] = None,
                 config: Optional[Config] = None,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        self.store = store
        self.controller = controller
        self.live_connector = live_connector
        self.event_bus = event_bus or InterviewEventBus()
        self.config = config or Config()
        self._sleep = sleep
        self._live_turns: Dict[str, LiveVoiceTurnManager] = {}
        self._submitting: Set[str] = set()

    # ------------------------------------------------------------------ #
    # JD / resume
    # ------------------------------------------------------------------ #

    def save_jd_resume_text(self, user_id: str, jd_text: str, resume_text: str) -> JdResumeText:
        """Create or replace the user's single JD/resume record."""
        existing = self.store.get_jd_resume(user_id)
        record = JdResumeText(
            id=existing.id if existing else new_id("jdr"),
            user_id=user_id,
            jd_text=jd_text,
            resume_text=resume_text,
        )
        self.store.save_jd_resume(record)
        logger.info(f"Saved JD/resume for user {user_id}")
        return record

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    def get_session(self, user_id: str, session_id: str) -> SessionData:
        session = self.store.get_session(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        if session.user_id != user_id:
            logger.warning(f"User {user_id} denied access to session {session_id}")
            raise SessionNotAuthorized(session_id)
        return session

    def list_sessions(self, user_id: str) -> List[SessionData]:
        return self.store.list_sessions(user_id)

    def dialogue_state(self, user_id: str, session_id: str) -> DialogueState:
        """Text-mode state of the current question."""
        session = self.get_session(user_id, session_id)
        return dialogue_state(session.current_segment, session.is_active, session_id in self._submitting)

    # ------------------------------------------------------------------ #
    # Text mode
    # ------------------------------------------------------------------ #

    async def create_session(self,
                             user_id: str,
                             persona_id: Optional[str] = None,
                             duration_in_seconds: Optional[int] = None) -> SessionData:
        """
        Start a session: generate the first question and open segment 1 with it.

        Raises:
            JdResumeNotFound: the user has not saved a JD/resume yet
            PersonaNotFound: unknown persona id
            InterviewError: the model could not produce a first question
        """
        persona_id = persona_id or self.config.default_persona_id
        jd_resume = self._require_jd_resume(user_id)
        persona = self._require_persona(persona_id)

        session_id = new_id("session")
        first = await self._with_error_event(
            session_id, "create_session",
            self.controller.get_first_question(jd_resume, persona),
        )

        session = SessionData(
            id=session_id,
            user_id=user_id,
            persona_id=persona.id,
            jd_resume_text_id=jd_resume.id,
            duration_in_seconds=duration_in_seconds or self.config.default_duration_seconds,
        )
        session.add_segment(first)
        self.store.save_session(session)

        logger.info(f"Created session {session.id} for user {user_id} with persona {persona.id}")
        self.event_bus.emit(SessionStartedEvent(
            session.id, time.time(), persona.id, session.duration_in_seconds
        ))
        return session

    async def submit_answer(self, user_id: str, session_id: str, answer: str) -> SubmitAnswerResult:
        """
        Submit a text answer for the current question.

        The user turn and the model turn are persisted together, in that order,
        only after the model replied. A reply without a question ends the interview.
        """
        if not answer or not answer.strip():
            raise EmptyAnswer(session_id)

        session = self._require_active(user_id, session_id)
        segment = session.current_segment
        jd_resume = self._require_jd_resume(user_id)
        persona = self._require_persona(session.persona_id)

        self._submitting.add(session_id)
        try:
            reply = await self._with_error_event(
                session_id, "submit_answer",
                self.controller.continue_interview(jd_resume, persona, list(segment.conversation), answer),
            )
        finally:
            self._submitting.discard(session_id)

        segment.append(ConversationTurn.user(answer))
        segment.append(ConversationTurn.from_reply(reply))
        result = SubmitAnswerResult.from_reply(reply, segment.question_number)

        if result.is_complete:
            segment.completed = True
            session.end_time = utcnow()
        self.store.save_session(session)

        self.event_bus.emit(TurnCompletedEvent(
            session_id, time.time(), segment.question_number, len(segment.conversation), "text"
        ))
        if result.is_complete:
            logger.info(f"Session {session_id} completed after {len(session.question_segments)} question(s)")
            self.event_bus.emit(InterviewCompletedEvent(
                session_id, time.time(), len(session.question_segments)
            ))
        return result

    async def next_question(self, user_id: str, session_id: str) -> QuestionSegment:
        """Close the current segment and open a new one with a fresh question."""
        session = self._require_active(user_id, session_id)
        jd_resume = self._require_jd_resume(user_id)
        persona = self._require_persona(session.persona_id)

        asked = [segment.question for segment in session.question_segments]
        first = await self._with_error_event(
            session_id, "next_question",
            self.controller.get_first_question(jd_resume, persona, asked),
        )

        session.current_segment.completed = True
        segment = session.add_segment(first)
        self.store.save_session(session)

        await self._close_live_turn(session_id)
        logger.info(f"Session {session_id} moved to question {segment.question_number}")
        self.event_bus.emit(QuestionStartedEvent(
            session_id, time.time(), segment.question_number, segment.question
        ))
        return segment

    # ------------------------------------------------------------------ #
    # Voice mode
    # ------------------------------------------------------------------ #

    async def open_live_turn(self, user_id: str, session_id: str) -> LiveVoiceTurnManager:
        """Open a live voice turn for the current question, replacing any open one."""
        if self.live_connector is None:
            raise InterviewError("Voice mode is not configured")

        session = self._require_active(user_id, session_id)
        segment = session.current_segment
        persona = self._require_persona(session.persona_id)

        await self._close_live_turn(session_id)
        manager = await LiveVoiceTurnManager.open(
            self.live_connector,
            segment.question,
            persona=persona,
            model=self.config.model_name_live,
            timeout_seconds=self.config.live_turn_timeout_seconds,
            sleep=self._sleep,
        )
        manager.on("timeout", lambda seconds: self.event_bus.emit(
            LiveTurnTimedOutEvent(session_id, time.time(), seconds)
        ))
        self._live_turns[session_id] = manager

        self.event_bus.emit(LiveTurnOpenedEvent(session_id, time.time(), segment.question_number))
        return manager

    async def finish_live_turn(self, user_id: str, session_id: str) -> LiveTurnResult:
        """
        End the open live turn, wait for the model to finish, close it, and
        store the spoken answer's transcript as a user turn.
        """
        session = self._require_active(user_id, session_id)
        manager = self._live_turns.pop(session_id, None)
        if manager is None:
            raise InterviewError("No live turn is open for this session", {"session_id": session_id})

        try:
            await manager.stop_turn()
            completed = await manager.wait_for_turn_complete(self.config.live_turn_complete_wait_seconds)
            if not completed:
                logger.warning(f"Model did not complete its live turn for session {session_id} in time")
        finally:
            await manager.close()

        result = manager.result()
        segment = session.current_segment
        if result.transcript:
            segment.append(ConversationTurn.user(result.transcript))
            self.store.save_session(session)
            self.event_bus.emit(TurnCompletedEvent(
                session_id, time.time(), segment.question_number, len(segment.conversation), "live"
            ))
        else:
            logger.info(f"Live turn for session {session_id} produced no transcript")
        return result

    async def transcribe_audio(self, buffer: bytes) -> str:
        if self.live_connector is None:
            raise InterviewError("Voice mode is not configured")
        return await transcribe_audio_once(self.live_connector, buffer, model=self.config.model_name_live)

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    async def end_session(self, user_id: str, session_id: str) -> SessionData:
        """End a session early. Ending an already-ended session is a no-op."""
        session = self.get_session(user_id, session_id)
        await self._close_live_turn(session_id)
        if session.is_active:
            session.end_time = utcnow()
            if session.current_segment is not None:
                session.current_segment.completed = True
            self.store.save_session(session)
            logger.info(f"Session {session_id} ended by user")
        return session

    async def reset_session(self, user_id: str, session_id: str) -> SessionData:
        """Keep each segment's opening question, drop everything said after it."""
        session = self._require_active(user_id, session_id)
        await self._close_live_turn(session_id)
        for segment in session.question_segments:
            segment.conversation = segment.conversation[:1]
            segment.completed = False
        session.current_question_index = 0
        self.store.save_session(session)
        logger.info(f"Session {session_id} reset")
        return session

    async def shutdown(self) -> None:
        """Close every open live turn."""
        for session_id in list(self._live_turns):
            await self._close_live_turn(session_id)

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _require_active(self, user_id: str, session_id: str) -> SessionData:
        session = self.get_session(user_id, session_id)
        if not session.is_active:
            raise SessionCompleted(session_id)
        return session

    def _require_jd_resume(self, user_id: str) -> JdResumeText:
        jd_resume = self.store.get_jd_resume(user_id)
        if jd_resume is None:
            raise JdResumeNotFound(user_id)
        return jd_resume

    def _require_persona(self, persona_id: str) -> Persona:
        persona = get_persona(persona_id)
        if persona is None:
            raise PersonaNotFound(persona_id)
        return persona

    async def _close_live_turn(self, session_id: str) -> None:
        manager = self._live_turns.pop(session_id, None)
        if manager is not None:
            await manager.close()

    async def _with_error_event(self, session_id: str, component: str, call):
        try:
            return await call
        except InterviewError as e:
            self.event_bus.emit(ErrorOccurredEvent(
                session_id, time.time(), type(e.__cause__ or e).__name__, e.message, component
            ))
            raise
