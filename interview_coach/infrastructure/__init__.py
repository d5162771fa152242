"""Infrastructure components for the interview coach.

This module contains the low-level technical components the interview
session is built on.
"""

# LLM infrastructure
from .llm import GeminiRestClient, GatewayResult, GatewayError, GatewayErrorKind

__all__ = [
    # LLM client
    "GeminiRestClient", "GatewayResult", "GatewayError", "GatewayErrorKind"
]
