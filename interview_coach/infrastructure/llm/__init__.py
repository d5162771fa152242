"""Model gateway for the remote text-generation endpoint."""

from .client import (
    GeminiRestClient, GatewayResult, GatewayError, GatewayErrorKind,
    MISSING_CREDENTIAL_MESSAGE
)

__all__ = [
    "GeminiRestClient", "GatewayResult", "GatewayError", "GatewayErrorKind",
    "MISSING_CREDENTIAL_MESSAGE"
]
