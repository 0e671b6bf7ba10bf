"""
Live voice turn manager.

Owns one streaming connection for exactly one interview question:

    CONNECTING -> OPEN -> CAPTURING -> FINALIZING -> CLOSED

The turn ends either on an explicit `stop_turn()` or when the per-question
timer fires, whichever comes first. Both go through `_begin_finalizing()`,
a check-and-set with no suspension point, so the end-of-turn payload is sent
at most once. `close()` releases everything from any state.

A forced timeout only ends the turn; the connection stays open until the
caller closes it or opens the next question.
"""
import asyncio
import inspect
import logging
from contextlib import suppress
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from .errors import (
    InterviewError, StreamingConnectionFailed, EmptyModelResponse,
    GENERIC_LIVE_SESSION_ERROR, GENERIC_LIVE_AUDIO_ERROR, GENERIC_TRANSCRIBE_ERROR,
)
from .models import Persona, LiveTurnResult
from .prompts import build_live_system_instruction
from ..config import LIVE_TURN_TIMEOUT_SECONDS, LIVE_INPUT_SAMPLE_RATE
from ..infrastructure.audio.processing import prepare_live_chunk
from ..infrastructure.llm.live import LiveMessage, END_OF_TURN, TRANSCRIPT, TURN_COMPLETE

logger = logging.getLogger("live_turn")

TRANSCRIBE_INSTRUCTION = (
    "You are a transcription service. Listen to the audio and do not respond conversationally."
)

LIVE_EVENTS = ("message", "text", "transcript", "audio", "turn_complete", "timeout", "state", "error", "closed")

Handler = Callable[[Any], Union[None, Awaitable[None]]]


class LiveTurnState(str, Enum):
    """Lifecycle of one live connection."""
    CONNECTING = "connecting"
    OPEN = "open"
    CAPTURING = "capturing"
    FINALIZING = "finalizing"
    CLOSED = "closed"


def as_live_message(raw: Union[LiveMessage, Dict[str, Any]]) -> LiveMessage:
    if isinstance(raw, LiveMessage):
        return raw
    return LiveMessage(
        text=raw.get("text"),
        transcript=raw.get("transcript"),
        type=raw.get("type"),
        audio=raw.get("audio"),
        role=raw.get("role"),
    )


def transcript_fragment(message: LiveMessage) -> Optional[str]:
    """Transcript text carried by a message, if it is a transcript record."""
    if message.transcript:
        return message.transcript
    if message.type == TRANSCRIPT and message.text:
        return message.text
    return None


async def _release(connection) -> None:
    try:
        await connection.close()
    except Exception as e:
        logger.warning("Error while closing live connection: %s", e)


class LiveVoiceTurnManager:
    """
    One question's live voice turn.

    Use `LiveVoiceTurnManager.open(...)` (or `open_live_interview_session`) to
    get a connected manager. Incoming model text and audio are dispatched to
    handlers registered with `on()`. The candidate's transcript is kept for
    persistence; "transcript" handlers are for storage and audit, never for
    echoing the spoken answer back to the candidate.
    """

    def __init__(self,
                 connector,
                 question_text: str,
                 persona: Optional[Persona] = None,
                 model: Optional[str] = None,
                 timeout_seconds: float = LIVE_TURN_TIMEOUT_SECONDS,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        self.connector = connector
        self.question_text = question_text
        self.persona = persona
        self.model = model
        self.timeout_seconds = timeout_seconds
        self._sleep = sleep

        self.state = LiveTurnState.CONNECTING
        self.timed_out = False
        self._connection = None
        self._timer_task: Optional[asyncio.Task] = None
        self._receive_task: Optional[asyncio.Task] = None
        self._send_lock = asyncio.Lock()
        self._turn_complete = asyncio.Event()
        self._handlers: Dict[str, List[Handler]] = {}
        self._transcript_parts: List[str] = []
        self._model_text_parts: List[str] = []

    @classmethod
    async def open(cls, connector, question_text: str, **kwargs) -> "LiveVoiceTurnManager":
        manager = cls(connector, question_text, **kwargs)
        await manager.start()
        return manager

    async def start(self) -> None:
        """
        Connect with a system instruction scoped to this question and start the turn timer.

        Raises:
            InterviewError: the connection could not be opened (no retry)
        """
        instruction = build_live_system_instruction(self.question_text, self.persona)
        try:
            connection = await self.connector.connect(instruction, model=self.model)
        except Exception as e:
            failure = StreamingConnectionFailed(f"Could not open live connection: {e}")
            logger.error("%s", failure, exc_info=e)
            await self.close()
            raise InterviewError(GENERIC_LIVE_SESSION_ERROR) from failure

        if self.state is LiveTurnState.CLOSED:
            # close() won the race while we were connecting
            await _release(connection)
            return

        self._connection = connection
        await self._set_state(LiveTurnState.OPEN)
        self._timer_task = asyncio.create_task(self._turn_timeout())
        self._receive_task = asyncio.create_task(self._receive_loop())
        logger.info("Live turn opened for question: %s", self.question_text[:80])

    def on(self, event: str, handler: Handler) -> None:
        """Register a handler (sync or async) for one of LIVE_EVENTS."""
        if event not in LIVE_EVENTS:
            raise ValueError(f"Unknown live event '{event}'. Valid events: {', '.join(LIVE_EVENTS)}")
        self._handlers.setdefault(event, []).append(handler)

    async def send_audio_chunk(self, data: bytes) -> None:
        """
        Forward one PCM16 chunk. Chunks arriving once the turn is finalizing
        (or before it opened) are dropped silently.
        """
        if not self._accepting_audio():
            logger.debug("Dropping %d-byte audio chunk in state %s", len(data), self.state.value)
            return

        async with self._send_lock:
            # the turn may have ended while we waited for the lock
            if not self._accepting_audio():
                logger.debug("Dropping %d-byte audio chunk in state %s", len(data), self.state.value)
                return
            if self.state is LiveTurnState.OPEN:
                await self._set_state(LiveTurnState.CAPTURING)
            try:
                await self._connection.send(bytes(data))
            except Exception as e:
                failure = StreamingConnectionFailed(f"Audio send failed: {e}")
                logger.error("%s", failure, exc_info=e)
                error = InterviewError(GENERIC_LIVE_AUDIO_ERROR)
                await self._dispatch("error", error)
                await self.close()
                raise error from failure

    async def send_audio_samples(self, samples, sample_rate: int = LIVE_INPUT_SAMPLE_RATE) -> None:
        """Convert float frames (any rate, mono or stereo) and forward them."""
        chunk = prepare_live_chunk(samples, sample_rate)
        if chunk:
            await self.send_audio_chunk(chunk)

    async def stop_turn(self) -> bool:
        """
        End the turn explicitly. Idempotent.

        Returns:
            True if this call sent the end-of-turn signal
        """
        return await self._end_turn(timed_out=False)

    async def wait_for_turn_complete(self, timeout: Optional[float] = None) -> bool:
        """Wait until the model finishes its turn or the stream ends."""
        try:
            await asyncio.wait_for(self._turn_complete.wait(), timeout)
            return True
        except asyncio.TimeoutError:
            return False

    async def close(self) -> None:
        """Release the connection from any state. Safe to call repeatedly."""
        already_closed = self.state is LiveTurnState.CLOSED
        if not already_closed:
            await self._set_state(LiveTurnState.CLOSED)

        current = asyncio.current_task()
        for task in (self._timer_task, self._receive_task):
            if task is not None and task is not current and not task.done():
                task.cancel()
                with suppress(asyncio.CancelledError):
                    await task
        self._timer_task = None
        self._receive_task = None

        connection, self._connection = self._connection, None
        if connection is not None:
            await _release(connection)
        self._turn_complete.set()

        if not already_closed:
            logger.info("Live turn closed")
            await self._dispatch("closed", self.result())

    @property
    def transcript(self) -> str:
        return "".join(self._transcript_parts).strip()

    @property
    def model_text(self) -> str:
        return "".join(self._model_text_parts).strip()

    def result(self) -> LiveTurnResult:
        return LiveTurnResult(transcript=self.transcript, model_text=self.model_text, timed_out=self.timed_out)

    def _accepting_audio(self) -> bool:
        return self._connection is not None and self.state in (LiveTurnState.OPEN, LiveTurnState.CAPTURING)

    def _begin_finalizing(self) -> bool:
        # No await in here: this is the single guard both end-of-turn triggers race on.
        if self.state not in (LiveTurnState.OPEN, LiveTurnState.CAPTURING):
            return False
        self.state = LiveTurnState.FINALIZING
        return True

    async def _end_turn(self, timed_out: bool) -> bool:
        if not self._begin_finalizing():
            return False

        if timed_out:
            self.timed_out = True
        else:
            self._cancel_timer()
        await self._dispatch("state", self.state)

        async with self._send_lock:
            connection = self._connection
            if connection is None:
                return True
            try:
                await connection.send(END_OF_TURN)
            except Exception as e:
                failure = StreamingConnectionFailed(f"End-of-turn send failed: {e}")
                logger.error("%s", failure, exc_info=e)
                error = InterviewError(GENERIC_LIVE_SESSION_ERROR)
                await self._dispatch("error", error)
                await self.close()
                raise error from failure

        logger.info("End-of-turn sent (%s)", "timeout" if timed_out else "manual stop")
        return True

    def _cancel_timer(self) -> None:
        task, self._timer_task = self._timer_task, None
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()

    async def _turn_timeout(self) -> None:
        await self._sleep(self.timeout_seconds)
        try:
            forced = await self._end_turn(timed_out=True)
        except InterviewError:
            # already logged and dispatched by _end_turn
            return
        if forced:
            logger.info("Live turn hit the %.0fs limit; turn ended automatically", self.timeout_seconds)
            await self._dispatch("timeout", self.timeout_seconds)

    async def _receive_loop(self) -> None:
        try:
            async for raw in self._connection:
                await self._handle_message(as_live_message(raw))
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if self.state is not LiveTurnState.CLOSED:
                failure = StreamingConnectionFailed(f"Live message stream failed: {e}")
                logger.error("%s", failure, exc_info=e)
                await self._dispatch("error", InterviewError(GENERIC_LIVE_SESSION_ERROR))
        finally:
            self._turn_complete.set()

    async def _handle_message(self, message: LiveMessage) -> None:
        await self._dispatch("message", message)

        fragment = transcript_fragment(message)
        if fragment:
            self._transcript_parts.append(fragment)
            logger.debug("Transcript fragment received (%d chars)", len(fragment))
            await self._dispatch("transcript", fragment)
        elif message.role == "model" and message.text:
            self._model_text_parts.append(message.text)
            await self._dispatch("text", message.text)

        if message.audio:
            await self._dispatch("audio", message.audio)

        if message.type == TURN_COMPLETE:
            self._turn_complete.set()
            await self._dispatch("turn_complete", self.result())

    async def _set_state(self, state: LiveTurnState) -> None:
        self.state = state
        await self._dispatch("state", state)

    async def _dispatch(self, event: str, payload: Any) -> None:
        for handler in list(self._handlers.get(event, [])):
            try:
                result = handler(payload)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error("Error in live '%s' handler: %s", event, e)


async def open_live_interview_session(connector, question_text: str, **kwargs) -> LiveVoiceTurnManager:
    """Open a live voice turn for one question."""
    return await LiveVoiceTurnManager.open(connector, question_text, **kwargs)


async def transcribe_audio_once(connector, buffer: bytes, model: Optional[str] = None) -> str:
    """
    One-shot transcription over a throwaway live connection.

    Sends the whole buffer plus an end-of-turn signal and returns the first
    transcript fragment. The connection is always closed.

    Raises:
        InterviewError: connection failure, or the stream ended without a transcript
    """
    try:
        connection = await connector.connect(TRANSCRIBE_INSTRUCTION, model=model)
    except Exception as e:
        failure = StreamingConnectionFailed(f"Could not open live connection: {e}")
        logger.error("%s", failure, exc_info=e)
        raise InterviewError(GENERIC_TRANSCRIBE_ERROR) from failure

    try:
        await connection.send(bytes(buffer))
        await connection.send(END_OF_TURN)
        async for raw in connection:
            fragment = transcript_fragment(as_live_message(raw))
            if fragment:
                return fragment
    except Exception as e:
        failure = StreamingConnectionFailed(f"Transcription stream failed: {e}")
        logger.error("%s", failure, exc_info=e)
        raise InterviewError(GENERIC_TRANSCRIBE_ERROR) from failure
    finally:
        await _release(connection)

    failure = EmptyModelResponse("Live stream ended without a transcript")
    logger.error("%s", failure)
    raise InterviewError(GENERIC_TRANSCRIBE_ERROR) from failure
