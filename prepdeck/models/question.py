"""
Question generation and browsing models.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from prepdeck.config import LANGUAGE_EXEMPT_ROUNDS
from .enums import Difficulty


def requires_language(round_name: Optional[str]) -> bool:
    """True unless the round is one of the language-exempt round types."""
    return round_name not in LANGUAGE_EXEMPT_ROUNDS


class Question(BaseModel):
    """A generated question as stored by the backend."""
    id: str
    question: str
    answer: Optional[str] = None
    difficulty: Optional[str] = None
    language: Optional[str] = None  # Absent for behavioral/HR/managerial rounds

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_text(cls, value):
        # Backends hand out integer or UUID ids; treat them as opaque text
        return str(value) if value is not None else value


class GenerationRequest(BaseModel):
    """Validated target of one generation attempt."""
    model_config = ConfigDict(populate_by_name=True)

    company_id: str = Field(alias="companyId")
    round_id: str = Field(alias="roundId")
    round_name: str = Field(alias="roundName")
    difficulty: Difficulty
    language: Optional[str] = None

    @model_validator(mode="after")
    def _check_language(self):
        if requires_language(self.round_name):
            if not self.language:
                raise ValueError(f"language is required for {self.round_name}")
        else:
            self.language = None
        return self

    def to_payload(self, user_id: Optional[str]) -> dict:
        """
        JSON body for the generate call.

        `language` is left out entirely when the round does not use one.
        """
        payload = {"userId": user_id} if user_id else {}
        payload.update(self.model_dump(mode="json", by_alias=True, exclude_none=True))
        return payload


class GeneratedSet(BaseModel):
    """The question set of the most recent successful generation."""
    questions: list[Question] = []
    results_path: Optional[str] = None
    saved_at: Optional[datetime] = None


class Explanation(BaseModel):
    """Structured explanation of a single question."""
    explanation: str
    key_points: list[str] = []
    actionable_insights: list[str] = []
    examples: list[str] = []


# Shown when the explain call fails so the dialog never renders empty
FALLBACK_EXPLANATION = Explanation(
    explanation=(
        "We're having trouble generating an explanation for this question. "
        "Please try again later."
    ),
    key_points=["This feature is currently experiencing issues."],
    actionable_insights=["Try refreshing the page or try again later."],
    examples=["Example not available at this time."],
)
