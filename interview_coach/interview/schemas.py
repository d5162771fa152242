"""
Structured schemas for model output.
"""
import json
import logging
import math
from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .models import Evaluation

logger = logging.getLogger("schemas")


class EvaluationParseError(ValueError):
    """Raised when the model's evaluation cannot be decoded."""


class EvaluationPayload(BaseModel):
    """Wire shape of the evaluation JSON returned by the model."""
    model_config = ConfigDict(extra="ignore")

    score: int
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    recommendation: str
    summary: str

    @field_validator("score", mode="before")
    @classmethod
    def coerce_score(cls, value: Any) -> Any:
        """Accept ints, whole or fractional numbers and numeric strings."""
        if isinstance(value, bool):
            raise ValueError("score must be a number, not a boolean")
        if isinstance(value, str):
            try:
                value = float(value.strip())
            except ValueError:
                raise ValueError(f"score is not numeric: {value!r}")
        if isinstance(value, float):
            if not math.isfinite(value):
                raise ValueError(f"score must be finite, got {value}")
            return int(round(value))
        return value

    @field_validator("strengths", "improvements", mode="before")
    @classmethod
    def default_missing_list(cls, value: Any) -> Any:
        return [] if value is None else value

    def to_evaluation(self) -> Evaluation:
        return Evaluation(
            score=self.score,
            strengths=list(self.strengths),
            improvements=list(self.improvements),
            recommendation=self.recommendation,
            summary=self.summary,
        )


def parse_evaluation(raw_response: str) -> Evaluation:
    """
    Parse the model's end-of-interview reply into an Evaluation.

    Args:
        raw_response: Raw text returned by the model

    Returns:
        Evaluation object

    Raises:
        EvaluationParseError: If the text is not a JSON object of the
            expected shape
    """
    try:
        data = json.loads(raw_response)
    except (TypeError, json.JSONDecodeError) as e:
        raise EvaluationParseError(f"Evaluation is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise EvaluationParseError(f"Evaluation must be a JSON object, got {type(data).__name__}")

    try:
        evaluation = EvaluationPayload.model_validate(data).to_evaluation()
    except ValidationError as e:
        raise EvaluationParseError(f"Invalid evaluation structure: {e}") from e

    # Out-of-range scores are kept as given and flagged for the caller
    if not evaluation.score_in_range:
        logger.warning("Evaluation score %d is outside 0-10", evaluation.score)

    return evaluation
