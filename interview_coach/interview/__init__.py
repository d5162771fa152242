"""Interview session components.

This module contains the business logic for running a simulated job
interview: the transcript, prompt construction, the session state machine
and evaluation parsing.
"""

# Session state machine
from .session import (
    InterviewSession, SessionState, Transition, reduce,
    SubmitJobDescription, SendAnswer, EndInterview, Reset,
    ModelReplied, ModelFailed
)

# Data models
from .models import (
    Turn, Speaker, SessionPhase, Evaluation, ErrorKind, SessionError,
    is_positive_recommendation
)
from .transcript import Transcript

# Prompts
from .prompts import InterviewPrompts, PromptFormatter, PromptBuilder, PromptRequest, RequestKind

# Structured output
from .schemas import EvaluationPayload, EvaluationParseError, parse_evaluation

# Event system
from .events import (
    SessionEventBus, EventLogger, SessionMetrics,
    EventType, SessionEvent, SessionStartedEvent,
    TurnAppendedEvent, EvaluationCompletedEvent,
    ErrorOccurredEvent, SessionResetEvent
)

__all__ = [
    # Session
    "InterviewSession", "SessionState", "Transition", "reduce",
    "SubmitJobDescription", "SendAnswer", "EndInterview", "Reset",
    "ModelReplied", "ModelFailed",

    # Data models
    "Turn", "Speaker", "SessionPhase", "Evaluation", "ErrorKind", "SessionError",
    "is_positive_recommendation", "Transcript",

    # Prompts
    "InterviewPrompts", "PromptFormatter", "PromptBuilder", "PromptRequest", "RequestKind",

    # Structured output
    "EvaluationPayload", "EvaluationParseError", "parse_evaluation",

    # Events
    "SessionEventBus", "EventLogger", "SessionMetrics",
    "EventType", "SessionEvent", "SessionStartedEvent",
    "TurnAppendedEvent", "EvaluationCompletedEvent",
    "ErrorOccurredEvent", "SessionResetEvent",
]
