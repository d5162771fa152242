"""
Interview session state machine.

The transitions live in a pure ``reduce(state, intent)`` function that returns
the next state plus, at most, one model request to run. ``InterviewSession``
owns the current state, runs requests through the gateway and feeds the
outcome back into the reducer as another intent.
"""
import logging
import time
import uuid
from dataclasses import dataclass, replace
from typing import Optional, Tuple, Union

from ..infrastructure.llm import GatewayError, GatewayErrorKind
from .events import (
    SessionEventBus, EventLogger, SessionMetrics,
    SessionStartedEvent, TurnAppendedEvent, EvaluationCompletedEvent,
    ErrorOccurredEvent, SessionResetEvent
)
from .models import ErrorKind, Evaluation, SessionError, SessionPhase, Speaker, Turn
from .prompts import PromptBuilder, PromptRequest, RequestKind
from .schemas import EvaluationParseError, parse_evaluation
from .transcript import Transcript

logger = logging.getLogger("session")

PARSE_FAILURE_MESSAGE = "Failed to parse feedback report"
MISSING_CREDENTIAL_NOTICE = (
    "Note: API Key is missing. Set GEMINI_API_KEY in your environment before starting."
)


# =============================================================================
# STATE
# =============================================================================

@dataclass(frozen=True)
class SessionState:
    """Snapshot of everything the rendering layer needs."""
    phase: SessionPhase = SessionPhase.SETUP
    job_description: str = ""
    transcript: Transcript = Transcript()
    evaluation: Optional[Evaluation] = None
    error: Optional[SessionError] = None
    pending: Optional[RequestKind] = None
    # Bumped on reset so replies to abandoned calls are dropped
    epoch: int = 0

    @property
    def is_loading(self) -> bool:
        return self.pending is not None

    @property
    def error_message(self) -> Optional[str]:
        return self.error.message if self.error else None


# =============================================================================
# INTENTS
# =============================================================================

@dataclass(frozen=True)
class SubmitJobDescription:
    text: str


@dataclass(frozen=True)
class SendAnswer:
    text: str


@dataclass(frozen=True)
class EndInterview:
    pass


@dataclass(frozen=True)
class Reset:
    pass


@dataclass(frozen=True)
class ModelReplied:
    """Gateway returned text for the request issued at ``epoch``."""
    epoch: int
    text: str


@dataclass(frozen=True)
class ModelFailed:
    """Gateway returned an error for the request issued at ``epoch``."""
    epoch: int
    error: GatewayError


Intent = Union[SubmitJobDescription, SendAnswer, EndInterview, Reset, ModelReplied, ModelFailed]


@dataclass(frozen=True)
class Transition:
    """Result of reducing one intent."""
    state: SessionState
    request: Optional[PromptRequest] = None


# =============================================================================
# REDUCER
# =============================================================================

def reduce(state: SessionState, intent: Intent) -> Transition:
    """
    Apply one intent to a session state.

    Intents that are not valid in the current state (wrong phase, blank text,
    a call already in flight, a stale reply) leave the state unchanged.
    """
    if isinstance(intent, Reset):
        return Transition(SessionState(epoch=state.epoch + 1))

    if isinstance(intent, (ModelReplied, ModelFailed)):
        if intent.epoch != state.epoch or state.pending is None:
            logger.info("Dropping reply for abandoned request (epoch %d, current %d)",
                        intent.epoch, state.epoch)
            return Transition(state)
        if isinstance(intent, ModelReplied):
            return Transition(_apply_reply(state, intent.text))
        return Transition(_apply_failure(state, SessionError(ErrorKind(intent.error.kind.value), intent.error.message)))

    if state.is_loading:
        logger.debug("Ignoring %s while %s request is outstanding", type(intent).__name__, state.pending.value)
        return Transition(state)

    if isinstance(intent, SubmitJobDescription):
        if state.phase is not SessionPhase.SETUP or not intent.text.strip():
            return Transition(state)
        new_state = replace(
            state,
            phase=SessionPhase.INTERVIEWING,
            job_description=intent.text,
            transcript=Transcript(),
            evaluation=None,
            error=None,
            pending=RequestKind.OPENING,
        )
        return Transition(new_state, PromptRequest(
            kind=RequestKind.OPENING, epoch=state.epoch, job_description=intent.text
        ))

    if isinstance(intent, SendAnswer):
        if state.phase is not SessionPhase.INTERVIEWING or not intent.text.strip():
            return Transition(state)
        # The candidate turn is recorded before the call and kept if it fails
        new_state = replace(
            state,
            transcript=state.transcript.append(Speaker.CANDIDATE, intent.text),
            error=None,
            pending=RequestKind.CONTINUATION,
        )
        return Transition(new_state, PromptRequest(
            kind=RequestKind.CONTINUATION,
            epoch=state.epoch,
            job_description=state.job_description,
            transcript=state.transcript,
            candidate_answer=intent.text,
        ))

    if isinstance(intent, EndInterview):
        if state.phase is not SessionPhase.INTERVIEWING:
            return Transition(state)
        new_state = replace(state, phase=SessionPhase.EVALUATING, error=None, pending=RequestKind.EVALUATION)
        return Transition(new_state, PromptRequest(
            kind=RequestKind.EVALUATION,
            epoch=state.epoch,
            job_description=state.job_description,
            transcript=state.transcript,
        ))

    raise TypeError(f"Unknown intent: {intent!r}")


def _apply_reply(state: SessionState, text: str) -> SessionState:
    if state.pending is RequestKind.EVALUATION:
        try:
            evaluation = parse_evaluation(text)
        except EvaluationParseError as e:
            logger.error("JSON Parse Error: %s", e)
            return _apply_failure(state, SessionError(ErrorKind.PARSE_FAILURE, PARSE_FAILURE_MESSAGE))
        return replace(state, phase=SessionPhase.EVALUATED, evaluation=evaluation, pending=None)

    return replace(
        state,
        transcript=state.transcript.append(Speaker.INTERVIEWER, text),
        pending=None,
    )


def _apply_failure(state: SessionState, error: SessionError) -> SessionState:
    if state.pending is RequestKind.OPENING:
        # Opening failed: back to setup with nothing recorded
        return replace(state, phase=SessionPhase.SETUP, transcript=Transcript(), error=error, pending=None)
    if state.pending is RequestKind.EVALUATION:
        return replace(state, phase=SessionPhase.INTERVIEWING, error=error, pending=None)
    return replace(state, error=error, pending=None)


# =============================================================================
# SESSION
# =============================================================================

class InterviewSession:
    """
    Single interview session driven by user intents.

    The gateway is any object with ``has_credential`` and
    ``send(prompt_text, structured_output) -> GatewayResult``. Calls are
    synchronous and one at a time; while one is running every intent other
    than reset is ignored.
    """

    def __init__(self,
                 gateway,
                 prompt_builder: Optional[PromptBuilder] = None,
                 event_bus: Optional[SessionEventBus] = None,
                 session_id: Optional[str] = None):
        self.gateway = gateway
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.session_id = session_id or uuid.uuid4().hex[:12]

        # Initialize event system
        if event_bus is None:
            event_bus = SessionEventBus()
            event_bus.subscribe_all(EventLogger().handle_event)
        self.event_bus = event_bus
        self.metrics = SessionMetrics()
        self.event_bus.subscribe_all(self.metrics.handle_event)

        self._state = SessionState()
        if not gateway.has_credential:
            logger.warning("Session %s created without an API key", self.session_id)
            self._state = replace(
                self._state,
                error=SessionError(ErrorKind.MISSING_CREDENTIAL, MISSING_CREDENTIAL_NOTICE),
            )

    # ------------------------------------------------------------------
    # Exposed state
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def phase(self) -> SessionPhase:
        return self._state.phase

    @property
    def job_description(self) -> str:
        return self._state.job_description

    @property
    def transcript(self) -> Tuple[Turn, ...]:
        return self._state.transcript.all()

    @property
    def is_loading(self) -> bool:
        return self._state.is_loading

    @property
    def error(self) -> Optional[SessionError]:
        return self._state.error

    @property
    def error_message(self) -> Optional[str]:
        return self._state.error_message

    @property
    def evaluation(self) -> Optional[Evaluation]:
        return self._state.evaluation

    def snapshot(self) -> SessionState:
        return self._state

    # ------------------------------------------------------------------
    # Intents
    # ------------------------------------------------------------------

    def submit_job_description(self, text: str) -> SessionState:
        return self.dispatch(SubmitJobDescription(text))

    def send_answer(self, text: str) -> SessionState:
        return self.dispatch(SendAnswer(text))

    def end_interview(self) -> SessionState:
        return self.dispatch(EndInterview())

    def reset(self) -> SessionState:
        return self.dispatch(Reset())

    def dispatch(self, intent: Intent) -> SessionState:
        """Reduce an intent, publish what changed and run any model request."""
        previous = self._state
        transition = reduce(previous, intent)
        self._state = transition.state
        self._publish(previous, transition.state, intent)

        if transition.request is not None:
            self._execute(transition.request)
        return self._state

    def _execute(self, request: PromptRequest) -> None:
        prompt = self.prompt_builder.build(request)
        logger.info("Issuing %s request (%d transcript turns)", request.kind.value, len(request.transcript))

        try:
            result = self.gateway.send(prompt, structured_output=request.structured_output)
        except Exception as e:
            # Unexpected exceptions count as transport failures
            logger.exception("Gateway raised during %s request", request.kind.value)
            self.dispatch(ModelFailed(request.epoch, GatewayError(
                GatewayErrorKind.TRANSPORT_FAILURE, f"Failed to connect to AI: {e}"
            )))
            return

        try:
            if result.ok:
                self.dispatch(ModelReplied(request.epoch, result.text))
            else:
                self.dispatch(ModelFailed(request.epoch, result.error))
        except Exception:
            logger.exception("Handling the %s reply raised", request.kind.value)
            self._abandon(request)

    def _abandon(self, request: PromptRequest) -> None:
        """Clear a request whose reply could not be applied."""
        previous = self._state
        if previous.epoch != request.epoch or previous.pending is not request.kind:
            return

        if request.kind is RequestKind.EVALUATION:
            error = SessionError(ErrorKind.PARSE_FAILURE, PARSE_FAILURE_MESSAGE)
        else:
            error = SessionError(ErrorKind.TRANSPORT_FAILURE, "Failed to process the AI response")
        self._state = _apply_failure(previous, error)
        self._publish(previous, self._state, None)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def _publish(self, previous: SessionState, current: SessionState, intent: Optional[Intent]) -> None:
        now = time.time()

        if isinstance(intent, Reset):
            self.event_bus.emit(SessionResetEvent(
                self.session_id, now, len(previous.transcript),
                previous.pending.value if previous.pending else None
            ))
            return

        if current is previous:
            return

        previous_count = len(previous.transcript)
        for turn in current.transcript.all()[previous_count:]:
            self.event_bus.emit(TurnAppendedEvent(
                self.session_id, now, turn.id, turn.speaker.value, turn.text
            ))

        if (previous.pending is RequestKind.OPENING and current.pending is None
                and current.phase is SessionPhase.INTERVIEWING):
            self.event_bus.emit(SessionStartedEvent(
                self.session_id, now, len(current.job_description)
            ))

        if current.evaluation is not None and previous.evaluation is None:
            evaluation = current.evaluation
            self.event_bus.emit(EvaluationCompletedEvent(
                self.session_id, now, len(current.transcript),
                evaluation.score, evaluation.recommendation, evaluation.is_positive
            ))

        if current.error is not None and current.error is not previous.error:
            self.event_bus.emit(ErrorOccurredEvent(
                self.session_id, now, current.error.kind.value,
                current.error.message, current.phase.value
            ))
