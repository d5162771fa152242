"""
Interview Coach: mock job interviews with a Gemini-powered hiring manager.

Paste a job description, answer the interviewer's questions, and receive a
structured evaluation at the end.
"""

__version__ = "1.0.0"

# Main entry points
from .interview.session import InterviewSession
from .interview.models import Turn, Evaluation, SessionPhase

__all__ = ["InterviewSession", "Turn", "Evaluation", "SessionPhase"]
