"""
Event-driven notifications for the interview session.
"""
import logging
from abc import ABC
from typing import Dict, Any, List, Callable, Optional
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger("events")


class EventType(str, Enum):
    """Types of session events."""
    SESSION_STARTED = "session_started"
    TURN_APPENDED = "turn_appended"
    EVALUATION_COMPLETED = "evaluation_completed"
    ERROR_OCCURRED = "error_occurred"
    SESSION_RESET = "session_reset"


@dataclass
class SessionEvent(ABC):
    """Base class for all session events."""
    event_type: EventType
    session_id: str
    timestamp: float
    data: Dict[str, Any]


@dataclass
class SessionStartedEvent(SessionEvent):
    """Event fired when the interviewer's opening turn arrives."""
    def __init__(self, session_id: str, timestamp: float, job_description_chars: int):
        super().__init__(
            event_type=EventType.SESSION_STARTED,
            session_id=session_id,
            timestamp=timestamp,
            data={"job_description_chars": job_description_chars}
        )


@dataclass
class TurnAppendedEvent(SessionEvent):
    """Event fired when a turn is added to the transcript."""
    def __init__(self, session_id: str, timestamp: float, turn_id: int, speaker: str, text: str):
        super().__init__(
            event_type=EventType.TURN_APPENDED,
            session_id=session_id,
            timestamp=timestamp,
            data={
                "turn_id": turn_id,
                "speaker": speaker,
                "text": text
            }
        )


@dataclass
class EvaluationCompletedEvent(SessionEvent):
    """Event fired when an evaluation has been stored."""
    def __init__(self, session_id: str, timestamp: float, turn_count: int,
                 score: int, recommendation: str, is_positive: bool):
        super().__init__(
            event_type=EventType.EVALUATION_COMPLETED,
            session_id=session_id,
            timestamp=timestamp,
            data={
                "turn_count": turn_count,
                "score": score,
                "recommendation": recommendation,
                "is_positive": is_positive
            }
        )


@dataclass
class ErrorOccurredEvent(SessionEvent):
    """Event fired when an error is surfaced to the user."""
    def __init__(self, session_id: str, timestamp: float, error_kind: str,
                 error_message: str, phase: str):
        super().__init__(
            event_type=EventType.ERROR_OCCURRED,
            session_id=session_id,
            timestamp=timestamp,
            data={
                "error_kind": error_kind,
                "error_message": error_message,
                "phase": phase
            }
        )


@dataclass
class SessionResetEvent(SessionEvent):
    """Event fired when the user discards the session."""
    def __init__(self, session_id: str, timestamp: float, abandoned_turns: int,
                 abandoned_request: Optional[str]):
        super().__init__(
            event_type=EventType.SESSION_RESET,
            session_id=session_id,
            timestamp=timestamp,
            data={
                "abandoned_turns": abandoned_turns,
                "abandoned_request": abandoned_request
            }
        )


EventHandler = Callable[[SessionEvent], None]


class SessionEventBus:
    """Fans session events out to per-type and catch-all handlers."""

    def __init__(self):
        self._handlers: Dict[EventType, List[EventHandler]] = {}
        self._global_handlers: List[EventHandler] = []

    def subscribe(self, event_type: EventType, handler: EventHandler) -> None:
        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug("Subscribed handler to %s", event_type.value)

    def subscribe_all(self, handler: EventHandler) -> None:
        self._global_handlers.append(handler)

    def emit(self, event: SessionEvent) -> None:
        """
        Deliver an event to its type's handlers, then to catch-all handlers.

        Handler failures are logged and never reach the session.
        """
        logger.debug("Emitting %s for session %s", event.event_type.value, event.session_id)

        handlers = self._handlers.get(event.event_type, []) + self._global_handlers
        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error("Event handler failed on %s: %s", event.event_type.value, e)


class EventLogger:
    """Writes every event to the ``event_logger`` logger."""

    def __init__(self, log_level: int = logging.INFO):
        self.logger = logging.getLogger("event_logger")
        self.logger.setLevel(log_level)

    def handle_event(self, event: SessionEvent) -> None:
        self.logger.info("%s | session=%s | %s", event.event_type.value, event.session_id, event.data)


_METRIC_NAMES = {
    EventType.SESSION_STARTED: "sessions_started",
    EventType.TURN_APPENDED: "turns_appended",
    EventType.EVALUATION_COMPLETED: "evaluations_completed",
    EventType.ERROR_OCCURRED: "errors_occurred",
    EventType.SESSION_RESET: "resets",
}


class SessionMetrics:
    """Per-session event counters."""

    def __init__(self):
        self._counts: Dict[str, int] = dict.fromkeys(_METRIC_NAMES.values(), 0)

    def handle_event(self, event: SessionEvent) -> None:
        self._counts[_METRIC_NAMES[event.event_type]] += 1

    def get_metrics(self) -> Dict[str, int]:
        return dict(self._counts)
