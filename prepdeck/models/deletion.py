"""
Bulk question deletion models.
"""
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator

from prepdeck.exceptions import ValidationError
from .enums import DeletionScope, Difficulty


class DeletionIntent(BaseModel):
    """
    The scope of one bulk delete against a round.

    Exactly one scope is active. Only the value belonging to that scope
    may be set:
        DeletionIntent.all_questions()
        DeletionIntent.by_language("go")
        DeletionIntent.by_difficulty(Difficulty.HARD)
    """
    model_config = ConfigDict(frozen=True)

    scope: DeletionScope
    language: Optional[str] = None
    difficulty: Optional[Difficulty] = None

    @model_validator(mode="after")
    def _check_scope(self):
        if self.scope == DeletionScope.BY_LANGUAGE:
            if not self.language or self.difficulty is not None:
                raise ValueError("language scope takes a language and nothing else")
        elif self.scope == DeletionScope.BY_DIFFICULTY:
            if self.difficulty is None or self.language is not None:
                raise ValueError("difficulty scope takes a difficulty and nothing else")
        elif self.language is not None or self.difficulty is not None:
            raise ValueError("the all-questions scope takes no filter")
        return self

    @classmethod
    def all_questions(cls) -> "DeletionIntent":
        return cls(scope=DeletionScope.ALL)

    @classmethod
    def by_language(cls, language: str) -> "DeletionIntent":
        return cls(scope=DeletionScope.BY_LANGUAGE, language=language)

    @classmethod
    def by_difficulty(cls, difficulty: Difficulty | str) -> "DeletionIntent":
        return cls(scope=DeletionScope.BY_DIFFICULTY, difficulty=difficulty)

    @property
    def endpoint(self) -> str:
        if self.scope == DeletionScope.BY_LANGUAGE:
            return "/question/delete-questions-by-language"
        if self.scope == DeletionScope.BY_DIFFICULTY:
            return "/question/delete-questions-by-difficulty"
        return "/question/delete-questions-by-roundId"

    def payload(self, company_id: str, round_id: str) -> dict:
        payload = {"companyId": company_id, "roundId": round_id}
        if self.scope == DeletionScope.BY_LANGUAGE:
            payload["language"] = self.language
        elif self.scope == DeletionScope.BY_DIFFICULTY:
            payload["difficulty"] = self.difficulty.value
        return payload

    def label(self) -> str:
        if self.scope == DeletionScope.BY_LANGUAGE:
            return f"Delete {self.language} questions"
        if self.scope == DeletionScope.BY_DIFFICULTY:
            return f"Delete {self.difficulty.value} difficulty questions"
        return "Delete all questions"

    def confirmation_message(self, round_name: Optional[str] = None) -> str:
        target = round_name or "this round"
        if self.scope == DeletionScope.BY_LANGUAGE:
            return f"Are you sure you want to delete all {self.language} questions from {target}?"
        if self.scope == DeletionScope.BY_DIFFICULTY:
            return (
                f"Are you sure you want to delete all {self.difficulty.value} "
                f"difficulty questions from {target}?"
            )
        return f"Are you sure you want to delete all questions from {target}?"


class DeletionSelection:
    """
    Form state behind the delete dialog.

    Selecting a scope clears whatever the other scopes held, so at most
    one intent can ever be produced.
    """

    def __init__(self):
        self.scope = DeletionScope.ALL
        self.language: Optional[str] = None
        self.difficulty: Optional[Difficulty] = None

    def select_all(self) -> None:
        self.scope = DeletionScope.ALL
        self.language = None
        self.difficulty = None

    def select_language(self, language: Optional[str] = None) -> None:
        self.scope = DeletionScope.BY_LANGUAGE
        self.language = language or None
        self.difficulty = None

    def select_difficulty(self, difficulty: Optional[Difficulty | str] = None) -> None:
        try:
            self.difficulty = Difficulty(difficulty) if difficulty else None
        except ValueError:
            raise ValidationError(f"Unknown difficulty: {difficulty}", field="difficulty")
        self.scope = DeletionScope.BY_DIFFICULTY
        self.language = None

    def intent(self) -> DeletionIntent:
        """Build the active intent, or raise if the chosen scope has no value yet."""
        if self.scope == DeletionScope.BY_LANGUAGE:
            if not self.language:
                raise ValidationError("Please select a language", field="language")
            return DeletionIntent.by_language(self.language)
        if self.scope == DeletionScope.BY_DIFFICULTY:
            if self.difficulty is None:
                raise ValidationError("Please select a difficulty", field="difficulty")
            return DeletionIntent.by_difficulty(self.difficulty)
        return DeletionIntent.all_questions()


class DeleteResult(BaseModel):
    """Body returned by the bulk delete endpoints."""
    model_config = ConfigDict(populate_by_name=True)

    status: bool
    message: Optional[str] = None
    deleted_count: Optional[int] = Field(None, alias="deletedCount")
