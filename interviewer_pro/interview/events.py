"""
Event-driven architecture for the interview system.
"""
import logging
from abc import ABC
from typing import Dict, Any, List, Callable, Optional
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger("events")


class EventType(str, Enum):
    """Types of interview events."""
    SESSION_STARTED = "session_started"
    QUESTION_STARTED = "question_started"
    TURN_COMPLETED = "turn_completed"
    LIVE_TURN_OPENED = "live_turn_opened"
    LIVE_TURN_TIMED_OUT = "live_turn_timed_out"
    INTERVIEW_COMPLETED = "interview_completed"
    ERROR_OCCURRED = "error_occurred"


@dataclass
class InterviewEvent(ABC):
    """Base class for all interview events."""
    event_type: EventType
    session_id: str
    timestamp: float
    data: Dict[str, Any]


@dataclass
class SessionStartedEvent(InterviewEvent):
    """Event fired when a session is created with its first question."""
    def __init__(self, session_id: str, timestamp: float, persona_id: str, duration_in_seconds: int):
        super().__init__(
            event_type=EventType.SESSION_STARTED,
            session_id=session_id,
            timestamp=timestamp,
            data={"persona_id": persona_id, "duration_in_seconds": duration_in_seconds}
        )


@dataclass
class QuestionStartedEvent(InterviewEvent):
    """Event fired when a new question segment begins."""
    def __init__(self, session_id: str, timestamp: float, question_number: int, question: str):
        super().__init__(
            event_type=EventType.QUESTION_STARTED,
            session_id=session_id,
            timestamp=timestamp,
            data={"question_number": question_number, "question": question}
        )


@dataclass
class TurnCompletedEvent(InterviewEvent):
    """Event fired when an answer has been submitted and the model replied."""
    def __init__(self, session_id: str, timestamp: float, question_number: int,
                 turn_count: int, mode: str):
        super().__init__(
            event_type=EventType.TURN_COMPLETED,
            session_id=session_id,
            timestamp=timestamp,
            data={"question_number": question_number, "turn_count": turn_count, "mode": mode}
        )


@dataclass
class LiveTurnOpenedEvent(InterviewEvent):
    """Event fired when a live voice connection opens for a question."""
    def __init__(self, session_id: str, timestamp: float, question_number: int):
        super().__init__(
            event_type=EventType.LIVE_TURN_OPENED,
            session_id=session_id,
            timestamp=timestamp,
            data={"question_number": question_number}
        )


@dataclass
class LiveTurnTimedOutEvent(InterviewEvent):
    """Event fired when a live turn is ended by its time limit."""
    def __init__(self, session_id: str, timestamp: float, timeout_seconds: float):
        super().__init__(
            event_type=EventType.LIVE_TURN_TIMED_OUT,
            session_id=session_id,
            timestamp=timestamp,
            data={"timeout_seconds": timeout_seconds}
        )


@dataclass
class InterviewCompletedEvent(InterviewEvent):
    """Event fired when the model signals the interview is over."""
    def __init__(self, session_id: str, timestamp: float, question_count: int):
        super().__init__(
            event_type=EventType.INTERVIEW_COMPLETED,
            session_id=session_id,
            timestamp=timestamp,
            data={"question_count": question_count}
        )


@dataclass
class ErrorOccurredEvent(InterviewEvent):
    """Event fired when an error occurs."""
    def __init__(self, session_id: str, timestamp: float, error_type: str,
                 error_message: str, component: str):
        super().__init__(
            event_type=EventType.ERROR_OCCURRED,
            session_id=session_id,
            timestamp=timestamp,
            data={
                "error_type": error_type,
                "error_message": error_message,
                "component": component
            }
        )


EventHandler = Callable[[InterviewEvent], None]


class InterviewEventBus:
    """Event bus for interview system communication."""

    def __init__(self):
        self._handlers: Dict[EventType, List[EventHandler]] = {}
        self._global_handlers: List[EventHandler] = []

    def subscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """
        Subscribe to specific event type.

        Args:
            event_type: Type of event to listen for
            handler: Function to call when event occurs
        """
        if event_type not in self._handlers:
            self._handlers[event_type] = []
        self._handlers[event_type].append(handler)
        logger.debug(f"Subscribed handler to {event_type}")

    def subscribe_all(self, handler: EventHandler) -> None:
        """Subscribe to all events."""
        self._global_handlers.append(handler)
        logger.debug("Subscribed global handler")

    def unsubscribe(self, event_type: EventType, handler: EventHandler) -> None:
        if event_type in self._handlers:
            try:
                self._handlers[event_type].remove(handler)
                logger.debug(f"Unsubscribed handler from {event_type}")
            except ValueError:
                logger.warning(f"Handler not found for {event_type}")

    def emit(self, event: InterviewEvent) -> None:
        """
        Emit an event to all subscribers. Handler errors are logged, never raised.

        Args:
            event: Event to emit
        """
        logger.debug(f"Emitting event: {event.event_type} for session {event.session_id}")

        for handler in self._handlers.get(event.event_type, []):
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in event handler for {event.event_type}: {e}")

        for handler in self._global_handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in global event handler: {e}")

    def clear_handlers(self) -> None:
        self._handlers.clear()
        self._global_handlers.clear()
        logger.debug("Cleared all event handlers")


class EventLogger:
    """Logs all events for debugging and analysis."""

    def __init__(self, log_level: int = logging.INFO):
        self.logger = logging.getLogger("event_logger")
        self.logger.setLevel(log_level)

    def handle_event(self, event: InterviewEvent) -> None:
        self.logger.info(f"Event: {event.event_type.value} | Session: {event.session_id} | Data: {event.data}")


class InterviewMetrics:
    """Collects counters from interview events."""

    _COUNTERS = {
        EventType.SESSION_STARTED: "sessions_started",
        EventType.QUESTION_STARTED: "questions_started",
        EventType.TURN_COMPLETED: "total_turns",
        EventType.LIVE_TURN_OPENED: "live_turns_opened",
        EventType.LIVE_TURN_TIMED_OUT: "live_turns_timed_out",
        EventType.INTERVIEW_COMPLETED: "interviews_completed",
        EventType.ERROR_OCCURRED: "errors_occurred",
    }

    def __init__(self):
        self._counts: Dict[str, int] = {}
        self.last_error: Optional[Dict[str, Any]] = None
        self.reset()

    def handle_event(self, event: InterviewEvent) -> None:
        """Update metrics based on event."""
        name = self._COUNTERS.get(event.event_type)
        if name is not None:
            self._counts[name] += 1
        if event.event_type == EventType.ERROR_OCCURRED:
            self.last_error = event.data

    def get_metrics(self) -> Dict[str, int]:
        """Get current metrics snapshot."""
        return dict(self._counts)

    def reset(self) -> None:
        self._counts = {name: 0 for name in self._COUNTERS.values()}
        self.last_error = None
