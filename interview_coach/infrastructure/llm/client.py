"""
Gemini REST client for LLM interactions.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Dict, Any

import requests

from ...config import API_BASE_URL, MODEL_NAME, LLM_TIMEOUT

logger = logging.getLogger("llm_client")


class GatewayErrorKind(str, Enum):
    """Ways a model call can fail."""
    MISSING_CREDENTIAL = "missing_credential"
    TRANSPORT_FAILURE = "transport_failure"
    EMPTY_RESPONSE = "empty_response"


@dataclass(frozen=True)
class GatewayError:
    """Failure returned by the gateway instead of raising."""
    kind: GatewayErrorKind
    message: str
    status_code: Optional[int] = None


@dataclass(frozen=True)
class GatewayResult:
    """Outcome of a single model call: either text or an error."""
    text: Optional[str] = None
    error: Optional[GatewayError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, text: str) -> "GatewayResult":
        return cls(text=text)

    @classmethod
    def failure(cls, kind: GatewayErrorKind, message: str,
                status_code: Optional[int] = None) -> "GatewayResult":
        return cls(error=GatewayError(kind=kind, message=message, status_code=status_code))


MISSING_CREDENTIAL_MESSAGE = (
    "API Key is missing. Please set GEMINI_API_KEY in your environment variables."
)


class GeminiRestClient:
    """REST-based client for Gemini generateContent calls.

    Stateless between calls: every request carries its whole context in the
    prompt text. No retries and no caching.
    """

    def __init__(self,
                 api_key: Optional[str],
                 model: str = MODEL_NAME,
                 base_url: str = API_BASE_URL,
                 timeout: int = LLM_TIMEOUT):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @property
    def has_credential(self) -> bool:
        return bool(self.api_key)

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def send(self, prompt_text: str, structured_output: bool = False) -> GatewayResult:
        """
        Send one prompt and return the first generated text fragment.

        Args:
            prompt_text: Full prompt, including any history the model needs
            structured_output: Ask the service to constrain output to JSON.
                This is a hint only; callers must still parse defensively.

        Returns:
            GatewayResult holding either the text or a GatewayError
        """
        if not self.has_credential:
            logger.warning("No API key configured; skipping model call")
            return GatewayResult.failure(GatewayErrorKind.MISSING_CREDENTIAL, MISSING_CREDENTIAL_MESSAGE)

        body = self._build_body(prompt_text, structured_output)
        logger.debug("Sending prompt (%d chars, structured=%s) to %s",
                     len(prompt_text), structured_output, self.model)

        try:
            resp = requests.post(
                self.endpoint,
                headers={
                    "Content-Type": "application/json",
                    "x-goog-api-key": self.api_key,
                },
                json=body,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("LLM request failed: %s", e)
            return GatewayResult.failure(GatewayErrorKind.TRANSPORT_FAILURE, f"Failed to connect to AI: {e}")

        if resp.status_code < 200 or resp.status_code >= 300:
            logger.error("Gemini REST error %d: %s", resp.status_code, resp.text)
            return GatewayResult.failure(
                GatewayErrorKind.TRANSPORT_FAILURE, f"API Error: {resp.status_code}",
                status_code=resp.status_code,
            )

        try:
            payload = resp.json()
        except ValueError as e:
            logger.warning("Response body was not JSON: %s", e)
            payload = None

        text = self._parse_response_text(payload)
        if not text:
            logger.warning("No text fragment in response: %r", payload)
            return GatewayResult.failure(GatewayErrorKind.EMPTY_RESPONSE, "No response from Gemini",
                                         status_code=resp.status_code)

        logger.debug("Raw LLM output: %s", repr(text))
        return GatewayResult.success(text)

    @staticmethod
    def _build_body(prompt_text: str, structured_output: bool) -> Dict[str, Any]:
        generation_config: Dict[str, Any] = {}
        if structured_output:
            generation_config["responseMimeType"] = "application/json"

        return {
            "contents": [
                {
                    "role": "user",
                    "parts": [{"text": prompt_text}],
                }
            ],
            "generationConfig": generation_config,
        }

    @staticmethod
    def _parse_response_text(resp_json: Any) -> Optional[str]:
        """Extract candidates[0].content.parts[0].text, or None if absent."""
        if not isinstance(resp_json, dict):
            return None

        cands = resp_json.get("candidates")
        if not isinstance(cands, list) or not cands or not isinstance(cands[0], dict):
            return None

        content = cands[0].get("content")
        if not isinstance(content, dict):
            return None

        parts = content.get("parts")
        if not isinstance(parts, list) or not parts or not isinstance(parts[0], dict):
            return None

        text = parts[0].get("text")
        return text if isinstance(text, str) else None
