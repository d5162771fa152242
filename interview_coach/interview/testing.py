"""
Testing infrastructure with mock services for the interview session.
"""
import json
from typing import Any, Callable, Dict, List, Optional, Union

from ..infrastructure.llm import GatewayErrorKind, GatewayResult
from .models import Speaker
from .transcript import Transcript

MockReply = Union[str, GatewayResult]


class MockGateway:
    """Mock model gateway for testing.

    Replies are consumed in order. A plain string is returned as successful
    text; a GatewayResult is returned as-is, which lets tests script failures.
    ``on_send`` runs before each reply is returned, so tests can re-enter the
    session while a call is outstanding.
    """

    def __init__(self,
                 mock_responses: Optional[List[MockReply]] = None,
                 has_credential: bool = True,
                 on_send: Optional[Callable[[str, bool], None]] = None):
        self.mock_responses = list(mock_responses or [])
        self.current_response_idx = 0
        self.has_credential = has_credential
        self.on_send = on_send
        self.request_history: List[Dict[str, Any]] = []

    def send(self, prompt_text: str, structured_output: bool = False) -> GatewayResult:
        """Return the next scripted reply."""
        self.request_history.append({
            "prompt": prompt_text,
            "structured_output": structured_output,
        })

        if self.on_send is not None:
            self.on_send(prompt_text, structured_output)

        if self.current_response_idx < len(self.mock_responses):
            response = self.mock_responses[self.current_response_idx]
            self.current_response_idx += 1
            if isinstance(response, GatewayResult):
                return response
            return GatewayResult.success(response)

        # Default fallback response
        return GatewayResult.success("Thanks. Could you tell me more about that?")

    @property
    def prompts(self) -> List[str]:
        return [request["prompt"] for request in self.request_history]


def transport_failure(status_code: int = 500) -> GatewayResult:
    """Scripted reply for a non-success HTTP status."""
    return GatewayResult.failure(
        GatewayErrorKind.TRANSPORT_FAILURE, f"API Error: {status_code}", status_code=status_code
    )


def empty_response() -> GatewayResult:
    """Scripted reply for a success body without text."""
    return GatewayResult.failure(GatewayErrorKind.EMPTY_RESPONSE, "No response from Gemini", status_code=200)


def create_evaluation_json(**overrides: Any) -> str:
    """Create a well-formed evaluation reply, optionally overriding fields."""
    payload = {
        "score": 7,
        "strengths": [
            "Clear communication",
            "Solid grasp of React state management",
            "Concrete examples from past projects"
        ],
        "improvements": [
            "Quantify impact of past work",
            "Go deeper on testing strategy",
            "Ask more questions about the team"
        ],
        "recommendation": "Hire",
        "summary": "A capable candidate with good fundamentals and room to grow."
    }
    payload.update(overrides)
    return json.dumps(payload)


def create_test_transcript(rounds: int = 3) -> Transcript:
    """Create a transcript opening with the interviewer, then ``rounds`` exchanges."""
    transcript = Transcript().append(
        Speaker.INTERVIEWER, "Hi, I'm Dana, the hiring manager. Tell me about your last project."
    )
    for i in range(1, rounds + 1):
        transcript = transcript.append(Speaker.CANDIDATE, f"Answer number {i}.")
        transcript = transcript.append(Speaker.INTERVIEWER, f"Follow-up question number {i}?")
    return transcript


SAMPLE_JOB_DESCRIPTION = (
    "Senior React Developer. You will own our component library, mentor two "
    "junior engineers and work closely with design on accessibility."
)
