"""Tests for the interview session state machine."""

from unittest.mock import patch

import pytest

from interview_coach.infrastructure.llm import GatewayError, GatewayErrorKind, GeminiRestClient
from interview_coach.interview.models import ErrorKind, SessionError, SessionPhase, Speaker
from interview_coach.interview.prompts import PromptFormatter, RequestKind
from interview_coach.interview.session import (
    EndInterview, InterviewSession, ModelFailed, ModelReplied, Reset,
    SendAnswer, SessionState, SubmitJobDescription, reduce
)
from interview_coach.interview.testing import (
    SAMPLE_JOB_DESCRIPTION, MockGateway, create_evaluation_json,
    create_test_transcript, empty_response, transport_failure
)

OPENING = "Hi, I'm Dana. What drew you to this role?"


def started_session(*replies, **kwargs):
    gateway = MockGateway([OPENING] + list(replies), **kwargs)
    session = InterviewSession(gateway)
    session.submit_job_description(SAMPLE_JOB_DESCRIPTION)
    return session, gateway


# =============================================================================
# Reducer
# =============================================================================

def test_reducer_submit_issues_opening_request():
    transition = reduce(SessionState(), SubmitJobDescription("Data Engineer"))

    assert transition.state.phase is SessionPhase.INTERVIEWING
    assert transition.state.is_loading
    assert transition.request.kind is RequestKind.OPENING
    assert transition.request.job_description == "Data Engineer"


@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
def test_reducer_blank_job_description_is_noop(text):
    state = SessionState()

    transition = reduce(state, SubmitJobDescription(text))

    assert transition.state is state
    assert transition.request is None


def test_reducer_ignores_intents_while_loading():
    loading = reduce(SessionState(), SubmitJobDescription("Data Engineer")).state
    interviewing = reduce(loading, ModelReplied(loading.epoch, OPENING)).state
    waiting = reduce(interviewing, SendAnswer("First answer")).state

    for intent in (SendAnswer("Second answer"), EndInterview(), SubmitJobDescription("Other job")):
        transition = reduce(waiting, intent)
        assert transition.state is waiting
        assert transition.request is None


def test_reducer_continuation_request_sees_history_before_answer():
    state = reduce(SessionState(), SubmitJobDescription("Data Engineer")).state
    state = reduce(state, ModelReplied(state.epoch, OPENING)).state

    transition = reduce(state, SendAnswer("I like pipelines"))

    assert len(transition.state.transcript) == 2
    assert len(transition.request.transcript) == 1
    assert transition.request.candidate_answer == "I like pipelines"


def test_reducer_drops_stale_replies():
    state = reduce(SessionState(), SubmitJobDescription("Data Engineer")).state
    stale_epoch = state.epoch
    fresh = reduce(state, Reset()).state

    assert reduce(fresh, ModelReplied(stale_epoch, OPENING)).state is fresh
    failure = GatewayError(GatewayErrorKind.TRANSPORT_FAILURE, "API Error: 500")
    assert reduce(fresh, ModelFailed(stale_epoch, failure)).state is fresh


def test_reducer_rejects_unknown_intent():
    with pytest.raises(TypeError):
        reduce(SessionState(), object())


# =============================================================================
# Opening
# =============================================================================

def test_successful_opening_yields_one_interviewer_turn():
    session, gateway = started_session()

    assert session.phase is SessionPhase.INTERVIEWING
    assert not session.is_loading
    assert session.error is None
    assert len(session.transcript) == 1
    assert session.transcript[0].speaker is Speaker.INTERVIEWER
    assert session.transcript[0].text == OPENING
    assert session.transcript[0].id == 1
    assert SAMPLE_JOB_DESCRIPTION in gateway.prompts[0]
    assert gateway.request_history[0]["structured_output"] is False


@pytest.mark.parametrize("failure,kind", [
    (transport_failure(500), ErrorKind.TRANSPORT_FAILURE),
    (empty_response(), ErrorKind.EMPTY_RESPONSE),
])
def test_failed_opening_reverts_to_setup(failure, kind):
    session = InterviewSession(MockGateway([failure]))

    session.submit_job_description(SAMPLE_JOB_DESCRIPTION)

    assert session.phase is SessionPhase.SETUP
    assert session.transcript == ()
    assert session.error.kind is kind
    assert not session.is_loading
    # The job description is kept so the user can retry
    assert session.job_description == SAMPLE_JOB_DESCRIPTION


def test_retry_after_failed_opening_succeeds():
    session = InterviewSession(MockGateway([transport_failure(502), OPENING]))

    session.submit_job_description(SAMPLE_JOB_DESCRIPTION)
    session.submit_job_description(SAMPLE_JOB_DESCRIPTION)

    assert session.phase is SessionPhase.INTERVIEWING
    assert session.error is None
    assert [turn.text for turn in session.transcript] == [OPENING]


def test_missing_credential_blocks_setup_without_network():
    gateway = MockGateway([OPENING], has_credential=False)
    session = InterviewSession(gateway)

    # Notice is visible before the first intent
    assert session.error.kind is ErrorKind.MISSING_CREDENTIAL
    assert not session.error.is_retryable

    real_session = InterviewSession(GeminiRestClient(api_key=None))
    with patch("requests.post") as post:
        real_session.submit_job_description(SAMPLE_JOB_DESCRIPTION)

    post.assert_not_called()

    assert real_session.phase is SessionPhase.SETUP
    assert real_session.transcript == ()
    assert real_session.error.kind is ErrorKind.MISSING_CREDENTIAL


def test_submit_outside_setup_is_ignored():
    session, gateway = started_session()

    session.submit_job_description("Another job")

    assert session.job_description == SAMPLE_JOB_DESCRIPTION
    assert len(gateway.request_history) == 1


# =============================================================================
# Answers
# =============================================================================

def test_each_round_trip_appends_candidate_then_interviewer():
    session, gateway = started_session("Question two?", "Question three?")

    session.send_answer("First answer")
    assert len(session.transcript) == 3
    session.send_answer("Second answer")
    assert len(session.transcript) == 5

    assert [(turn.speaker, turn.text) for turn in session.transcript] == [
        (Speaker.INTERVIEWER, OPENING),
        (Speaker.CANDIDATE, "First answer"),
        (Speaker.INTERVIEWER, "Question two?"),
        (Speaker.CANDIDATE, "Second answer"),
        (Speaker.INTERVIEWER, "Question three?"),
    ]
    assert [turn.id for turn in session.transcript] == [1, 2, 3, 4, 5]
    assert '"Second answer"' in gateway.prompts[-1]


def test_failed_answer_keeps_candidate_turn_without_reply():
    session, _ = started_session(transport_failure(500))

    session.send_answer("My answer")

    assert session.phase is SessionPhase.INTERVIEWING
    assert [turn.speaker for turn in session.transcript] == [Speaker.INTERVIEWER, Speaker.CANDIDATE]
    assert session.error_message == "API Error: 500"

    # Resending adds a second candidate turn in a row
    session.send_answer("My answer")
    assert [turn.speaker for turn in session.transcript] == [
        Speaker.INTERVIEWER, Speaker.CANDIDATE, Speaker.CANDIDATE, Speaker.INTERVIEWER
    ]
    assert session.error is None


def test_blank_answer_is_ignored():
    session, gateway = started_session()

    session.send_answer("   ")

    assert len(session.transcript) == 1
    assert len(gateway.request_history) == 1


def test_send_while_call_outstanding_is_noop():
    observed = {}

    def reenter(prompt_text, structured_output):
        if "Candidate's latest response" in prompt_text and not observed:
            before = session.state
            session.send_answer("Interrupting answer")
            session.end_interview()
            observed["unchanged"] = session.state is before

    gateway = MockGateway([OPENING, "Next question?"], on_send=reenter)
    session = InterviewSession(gateway)
    session.submit_job_description(SAMPLE_JOB_DESCRIPTION)

    session.send_answer("Real answer")

    assert observed["unchanged"] is True
    assert [turn.text for turn in session.transcript] == [OPENING, "Real answer", "Next question?"]
    assert len(gateway.request_history) == 2


# =============================================================================
# Evaluation
# =============================================================================

def test_end_interview_embeds_every_turn_and_requests_json():
    replies = [f"Question {i}?" for i in range(8)] + [create_evaluation_json()]
    session, gateway = started_session(*replies)
    for i in range(8):
        session.send_answer(f"Answer {i}")
    turns = session.transcript
    assert len(turns) == 17

    session.end_interview()

    evaluation_prompt = gateway.prompts[-1]
    for turn in turns:
        assert PromptFormatter.format_turn(turn) in evaluation_prompt
    assert gateway.request_history[-1]["structured_output"] is True
    assert session.phase is SessionPhase.EVALUATED
    assert session.evaluation.score == 7
    assert session.evaluation.is_positive


def test_evaluating_is_an_explicit_phase_while_waiting():
    seen = []
    gateway = MockGateway([OPENING, create_evaluation_json()],
                          on_send=lambda prompt, structured: seen.append((session.phase, session.is_loading)))
    session = InterviewSession(gateway)
    session.submit_job_description(SAMPLE_JOB_DESCRIPTION)

    session.end_interview()

    assert seen[-1] == (SessionPhase.EVALUATING, True)
    assert seen[0] == (SessionPhase.INTERVIEWING, True)


def test_end_interview_with_only_opening_turn_still_evaluates():
    session, gateway = started_session(create_evaluation_json(recommendation="No Hire", score=3))

    session.end_interview()

    assert session.phase is SessionPhase.EVALUATED
    assert session.evaluation.is_positive is False
    assert session.evaluation.score_band == "weak"


@pytest.mark.parametrize("reply,kind", [
    ("not json", ErrorKind.PARSE_FAILURE),
    ('{"strengths": []}', ErrorKind.PARSE_FAILURE),
    (transport_failure(429), ErrorKind.TRANSPORT_FAILURE),
    (empty_response(), ErrorKind.EMPTY_RESPONSE),
])
def test_failed_evaluation_returns_to_interviewing(reply, kind):
    session, _ = started_session(reply, create_evaluation_json())

    session.end_interview()

    assert session.phase is SessionPhase.INTERVIEWING
    assert session.evaluation is None
    assert session.error.kind is kind
    assert session.error.is_retryable

    session.end_interview()

    assert session.phase is SessionPhase.EVALUATED
    assert session.error is None


def test_infinite_score_fails_evaluation_without_sticking():
    overflowing = create_evaluation_json(score=0).replace('"score": 0', '"score": 1e999')
    session, _ = started_session(overflowing, create_evaluation_json())

    session.end_interview()

    assert session.phase is SessionPhase.INTERVIEWING
    assert not session.is_loading
    assert session.error.kind is ErrorKind.PARSE_FAILURE

    session.end_interview()

    assert session.phase is SessionPhase.EVALUATED


def test_unexpected_error_while_applying_reply_clears_loading():
    session, _ = started_session(create_evaluation_json(), create_evaluation_json())

    with patch("interview_coach.interview.session.parse_evaluation", side_effect=OverflowError("too big")):
        session.end_interview()

    assert session.phase is SessionPhase.INTERVIEWING
    assert not session.is_loading
    assert session.error.kind is ErrorKind.PARSE_FAILURE
    assert session.error_message == "Failed to parse feedback report"

    session.end_interview()

    assert session.phase is SessionPhase.EVALUATED
    assert session.error is None


def test_end_interview_outside_interviewing_is_ignored():
    gateway = MockGateway()
    session = InterviewSession(gateway)

    session.end_interview()

    assert session.phase is SessionPhase.SETUP
    assert gateway.request_history == []


def test_gateway_exception_is_surfaced_as_transport_failure():
    class ExplodingGateway:
        has_credential = True

        def send(self, prompt_text, structured_output=False):
            raise RuntimeError("socket closed")

    session = InterviewSession(ExplodingGateway())

    session.submit_job_description(SAMPLE_JOB_DESCRIPTION)

    assert session.phase is SessionPhase.SETUP
    assert session.error.kind is ErrorKind.TRANSPORT_FAILURE
    assert "socket closed" in session.error_message


# =============================================================================
# Reset
# =============================================================================

def _assert_pristine(session):
    assert session.phase is SessionPhase.SETUP
    assert session.job_description == ""
    assert session.transcript == ()
    assert session.evaluation is None
    assert session.error is None
    assert not session.is_loading


def test_reset_from_interviewing_with_error():
    session, _ = started_session("Q2?", "Q3?", transport_failure(500))
    session.send_answer("A1")
    session.send_answer("A2")
    session.send_answer("A3")
    assert len(session.transcript) == 6
    assert session.error is not None

    session.reset()

    _assert_pristine(session)


def test_reset_from_evaluated():
    session, _ = started_session(create_evaluation_json())
    session.end_interview()
    assert session.evaluation is not None

    session.reset()

    _assert_pristine(session)


def test_reset_clears_startup_credential_notice():
    session = InterviewSession(MockGateway(has_credential=False))

    session.reset()

    _assert_pristine(session)


def test_reset_during_call_abandons_its_result():
    def reset_midway(prompt_text, structured_output):
        if "Candidate's latest response" in prompt_text:
            session.reset()

    gateway = MockGateway([OPENING, "Late reply"], on_send=reset_midway)
    session = InterviewSession(gateway)
    session.submit_job_description(SAMPLE_JOB_DESCRIPTION)

    session.send_answer("Answer")

    _assert_pristine(session)


def test_session_error_retryable_flag():
    assert SessionError(ErrorKind.TRANSPORT_FAILURE, "x").is_retryable
    assert not SessionError(ErrorKind.MISSING_CREDENTIAL, "x").is_retryable


def test_sample_transcript_helper_alternates_speakers():
    transcript = create_test_transcript(rounds=2)

    assert len(transcript) == 5
