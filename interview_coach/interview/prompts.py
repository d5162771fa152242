"""
Interview prompt templates and generation.

This module contains all the prompt templates sent to the model, keeping them
separate from the session logic for easier maintenance and editing. The
interviewer persona is only established by the opening prompt; later prompts
refer back to "the previous instructions" and carry recent history inline.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from ..config import HISTORY_WINDOW
from .models import Turn
from .transcript import Transcript


class RequestKind(str, Enum):
    """Which of the three prompt shapes a model request needs."""
    OPENING = "opening"
    CONTINUATION = "continuation"
    EVALUATION = "evaluation"


@dataclass(frozen=True)
class PromptRequest:
    """
    Everything needed to build one prompt.

    ``transcript`` is the history the prompt should see; for a continuation
    that is the transcript before the new answer was appended.
    """
    kind: RequestKind
    epoch: int
    job_description: str = ""
    transcript: Transcript = Transcript()
    candidate_answer: Optional[str] = None

    @property
    def structured_output(self) -> bool:
        return self.kind is RequestKind.EVALUATION


class InterviewPrompts:
    """Collection of all interview-related prompts."""

    @staticmethod
    def session_opening(job_description: str) -> str:
        """Prompt that sets up the hiring manager persona and starts the interview."""
        return f"""
System: You are an experienced, professional, but friendly Hiring Manager interviewing a candidate for the following Job Description.

JOB DESCRIPTION:
"{job_description}"

RULES:
1. Start by introducing yourself and asking the first relevant question based on the JD.
2. Ask only ONE question at a time.
3. Wait for the candidate's response before asking the next question.
4. Dig deeper if the answer is vague.
5. Keep your responses concise (under 3 sentences) unless explaining a complex scenario.
6. Do NOT break character. You are the interviewer.

Goal: Start the interview now.
        """.strip()

    @staticmethod
    def turn_continuation(recent_history: str, candidate_answer: str) -> str:
        """Prompt for the interviewer's reply to the candidate's latest answer."""
        return f"""
You are the Hiring Manager acting based on the previous instructions.

Context so far:
{recent_history}

Candidate's latest response:
"{candidate_answer}"

Respond naturally as the interviewer. Acknowledge the answer briefly and ask the next question or follow up.
        """.strip()

    @staticmethod
    def evaluation(conversation_history: str) -> str:
        """Prompt asking for the structured end-of-interview evaluation."""
        return f"""
The interview has ended. Here is the transcript:

{conversation_history}

TASK:
Please provide a structured evaluation of the candidate.
1. Give a score out of 10.
2. List 3 Strengths.
3. List 3 Areas for Improvement.
4. Final Hiring Recommendation (Hire, No Hire, Maybe).

Format the output as valid JSON with keys: score, strengths (array), improvements (array), recommendation, summary.
        """.strip()


class PromptFormatter:
    """Helper class for formatting transcript content into prompts."""

    @staticmethod
    def format_turn(turn: Turn) -> str:
        return f"{turn.speaker.label}: {turn.text}"

    @staticmethod
    def format_turns(turns: Iterable[Turn]) -> str:
        """Render turns oldest first, one ``Speaker: text`` line each."""
        return "\n".join(PromptFormatter.format_turn(turn) for turn in turns)


class PromptBuilder:
    """Builds the exact text payload for each kind of model request."""

    def __init__(self, history_window: int = HISTORY_WINDOW):
        self.history_window = history_window

    def build(self, request: PromptRequest) -> str:
        """Build the prompt text for a request, dispatching on its kind."""
        if request.kind is RequestKind.OPENING:
            return self.build_opening_prompt(request.job_description)
        if request.kind is RequestKind.CONTINUATION:
            return self.build_continuation_prompt(request.transcript, request.candidate_answer or "")
        return self.build_evaluation_prompt(request.transcript)

    def build_opening_prompt(self, job_description: str) -> str:
        return InterviewPrompts.session_opening(job_description)

    def build_continuation_prompt(self, transcript: Transcript, candidate_answer: str) -> str:
        """
        Build the prompt for a regular answer.

        Args:
            transcript: History *before* the new answer was recorded
            candidate_answer: The candidate's new text

        Only the last ``history_window`` turns are replayed; older turns are
        dropped without summarisation.
        """
        recent = PromptFormatter.format_turns(transcript.recent(self.history_window))
        return InterviewPrompts.turn_continuation(recent, candidate_answer)

    def build_evaluation_prompt(self, transcript: Transcript) -> str:
        """Build the evaluation prompt from the full, unwindowed transcript."""
        return InterviewPrompts.evaluation(PromptFormatter.format_turns(transcript.all()))
