"""
Interview Coach Configuration
=============================

This file contains ALL configuration for the interview coach.
- User settings at the top (things users might want to change)
- Internal constants at the bottom (technical defaults)
"""
import os
from dataclasses import dataclass
from typing import Optional


# =============================================================================
# USER SETTINGS - Edit these to customize the interviewer
# =============================================================================

# REQUIRED for live interviews: Gemini API key (or set GEMINI_API_KEY)
GEMINI_API_KEY = None

# Model
MODEL_NAME = "gemini-2.5-flash-preview-09-2025"
API_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

# Logging
LOG_FILE = "./_interviews/interview.log"
LOG_LEVEL = "INFO"


# =============================================================================
# INTERNAL CONSTANTS - Don't change these unless you know what you're doing
# =============================================================================

# LLM
LLM_TIMEOUT = 60

# Number of most recent turns replayed to the model on each answer
HISTORY_WINDOW = 10

# Evaluation score bounds
SCORE_MIN = 0
SCORE_MAX = 10
STRONG_SCORE_THRESHOLD = 8
FAIR_SCORE_THRESHOLD = 5


# =============================================================================
# MAIN CONFIG OBJECT
# =============================================================================

@dataclass
class Config:
    """Main configuration object."""
    api_key: Optional[str] = None
    model_name: str = MODEL_NAME
    api_base_url: str = API_BASE_URL
    llm_timeout: int = LLM_TIMEOUT
    history_window: int = HISTORY_WINDOW
    log_file: str = LOG_FILE
    log_level: str = LOG_LEVEL

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)


def _int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


def get_config() -> Config:
    """
    Load configuration from the environment.

    A missing API key is not an error here: the session reports it as a
    MissingCredential notice instead of refusing to start.
    """
    api_key = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY") or GEMINI_API_KEY

    return Config(
        api_key=api_key or None,
        model_name=os.getenv("GEMINI_MODEL") or MODEL_NAME,
        api_base_url=os.getenv("GEMINI_API_BASE_URL") or API_BASE_URL,
        llm_timeout=_int_from_env("LLM_TIMEOUT", LLM_TIMEOUT),
        history_window=_int_from_env("INTERVIEW_HISTORY_WINDOW", HISTORY_WINDOW),
        log_file=os.getenv("INTERVIEW_LOG_FILE") or LOG_FILE,
        log_level=os.getenv("INTERVIEW_LOG_LEVEL") or LOG_LEVEL,
    )
