"""
Data models for the interview session.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from ..config import SCORE_MIN, SCORE_MAX, STRONG_SCORE_THRESHOLD, FAIR_SCORE_THRESHOLD


class Speaker(str, Enum):
    """Who said a turn."""
    CANDIDATE = "candidate"
    INTERVIEWER = "interviewer"

    @property
    def label(self) -> str:
        return "Candidate" if self is Speaker.CANDIDATE else "Interviewer"


class SessionPhase(str, Enum):
    """Coarse lifecycle stage of a session."""
    SETUP = "setup"
    INTERVIEWING = "interviewing"
    EVALUATING = "evaluating"
    EVALUATED = "evaluated"


class ErrorKind(str, Enum):
    """Kinds of failure a session can surface."""
    MISSING_CREDENTIAL = "missing_credential"
    TRANSPORT_FAILURE = "transport_failure"
    EMPTY_RESPONSE = "empty_response"
    PARSE_FAILURE = "parse_failure"


@dataclass(frozen=True)
class Turn:
    """Represents a single conversation turn."""
    id: int
    speaker: Speaker
    text: str


@dataclass(frozen=True)
class SessionError:
    """User-facing error attached to the session state."""
    kind: ErrorKind
    message: str

    @property
    def is_retryable(self) -> bool:
        # The user can fix a missing key only by reconfiguring
        return self.kind is not ErrorKind.MISSING_CREDENTIAL


def is_positive_recommendation(recommendation: Optional[str]) -> bool:
    """
    Classify a free-text hiring recommendation.

    Positive means it mentions "hire" and nowhere contains "no". Phrases such
    as "Strongly hire, no hesitation" therefore come out non-positive.
    """
    text = (recommendation or "").lower()
    return "hire" in text and "no" not in text


@dataclass(frozen=True)
class Evaluation:
    """Final structured evaluation of the candidate."""
    score: int
    recommendation: str
    summary: str
    strengths: List[str] = field(default_factory=list)
    improvements: List[str] = field(default_factory=list)

    @property
    def is_positive(self) -> bool:
        return is_positive_recommendation(self.recommendation)

    @property
    def score_in_range(self) -> bool:
        return SCORE_MIN <= self.score <= SCORE_MAX

    @property
    def score_band(self) -> str:
        """Coarse rating used when rendering the score."""
        if self.score >= STRONG_SCORE_THRESHOLD:
            return "strong"
        if self.score >= FAIR_SCORE_THRESHOLD:
            return "fair"
        return "weak"
