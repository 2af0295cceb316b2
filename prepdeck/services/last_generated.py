"""
Last generated question set.

Keeps the questions of the most recent successful generation so they
can be browsed again without a backend call. With `state_path` the set
survives restarts as a small JSON file, like the quota ledger.
"""
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError as PydanticValidationError

from prepdeck import config
from prepdeck.models import CollectionState, Difficulty, GeneratedSet, Question
from .question_collection import filter_questions, group_by_language

logger = logging.getLogger(__name__)


class LastGeneratedStore:
    """
    The last generated set, replaced on every successful generation.

    `state` is EMPTY until something has been saved, LOADED afterwards,
    and FAILED when a stored set could not be read back.
    """

    def __init__(self, state_path: Optional[Union[str, Path]] = None):
        self._path = Path(state_path) if state_path else None
        self.state = CollectionState.IDLE
        self._set = GeneratedSet()
        self.load()

    @classmethod
    def from_env(cls) -> "LastGeneratedStore":
        return cls(state_path=config.LAST_GENERATED_PATH)

    @property
    def questions(self) -> list[Question]:
        return list(self._set.questions)

    @property
    def results_path(self) -> Optional[str]:
        return self._set.results_path

    @property
    def saved_at(self) -> Optional[datetime]:
        return self._set.saved_at

    def save(self, questions: list[Question], results_path: Optional[str] = None) -> None:
        """Replace the stored set with `questions`."""
        self._set = GeneratedSet(
            questions=questions,
            results_path=results_path,
            saved_at=datetime.now(),
        )
        self.state = CollectionState.LOADED if questions else CollectionState.EMPTY
        if self._path:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(self._set.model_dump_json(indent=2), encoding="utf-8")
        logger.debug(f"Saved {len(questions)} last generated questions")

    def load(self) -> list[Question]:
        """(Re)read the stored set. An unreadable file leaves an empty, FAILED store."""
        if not self._path or not self._path.exists():
            self._set = GeneratedSet()
            self.state = CollectionState.EMPTY
            return []
        try:
            self._set = GeneratedSet.model_validate_json(self._path.read_text(encoding="utf-8"))
        except (OSError, PydanticValidationError) as e:
            logger.warning(f"Ignoring unreadable last generated set at {self._path}: {e}")
            self._set = GeneratedSet()
            self.state = CollectionState.FAILED
            return []
        self.state = CollectionState.LOADED if self._set.questions else CollectionState.EMPTY
        return self.questions

    def clear(self) -> None:
        self._set = GeneratedSet()
        self.state = CollectionState.EMPTY
        if self._path and self._path.exists():
            self._path.unlink()

    # =========================================================================
    # Browsing
    # =========================================================================

    def by_language(self) -> dict[Optional[str], list[Question]]:
        return group_by_language(self._set.questions)

    def difficulties(self) -> list[str]:
        seen: dict[str, None] = {}
        for q in self._set.questions:
            if q.difficulty:
                seen.setdefault(q.difficulty, None)
        return list(seen)

    def view(
        self,
        category: Optional[str] = None,
        difficulty: Optional[Difficulty | str] = None,
        search_text: Optional[str] = None,
    ) -> list[Question]:
        return filter_questions(self._set.questions, category, difficulty, search_text)
