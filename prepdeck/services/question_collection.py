"""
Question collection - browse, filter and bulk-delete the questions of a round.
"""
import logging
from typing import Iterable, Optional

from prepdeck.exceptions import BackendError, OperationInProgressError, PrepDeckError, RateLimitedError
from prepdeck.models import (
    FALLBACK_EXPLANATION,
    CollectionState,
    DeleteResult,
    DeletionIntent,
    Difficulty,
    Explanation,
    Question,
    ResultsLocation,
    Severity,
)
from .backend_client import BackendClient
from .notifications import NotificationSink

logger = logging.getLogger(__name__)


def group_by_language(questions: Iterable[Question]) -> dict[Optional[str], list[Question]]:
    """
    Group questions by language, keeping the order in which each
    language first appears. Questions without a language share the
    `None` group.
    """
    groups: dict[Optional[str], list[Question]] = {}
    for q in questions:
        groups.setdefault(q.language, []).append(q)
    return groups


def filter_questions(
    questions: Iterable[Question],
    category: Optional[str] = None,
    difficulty: Optional[Difficulty | str] = None,
    search_text: Optional[str] = None,
) -> list[Question]:
    """
    Questions matching every given criterion.

    category and difficulty are exact matches on language and difficulty;
    search_text is a case-insensitive substring match on the question
    text only, never the answer. Unset criteria match everything.
    """
    if isinstance(difficulty, Difficulty):
        difficulty = difficulty.value
    needle = search_text.lower() if search_text else None

    return [
        q for q in questions
        if (category is None or q.language == category)
        and (difficulty is None or q.difficulty == difficulty)
        and (needle is None or needle in q.question.lower())
    ]


class QuestionCollection:
    """
    The questions of one (company, round) pair.

    Holds the last loaded list and derives filtered views from it
    without ever changing it. Bulk deletes go to the backend and leave
    the list alone; call `load()` afterwards to see the result.
    """

    def __init__(
        self,
        client: BackendClient,
        notifier: NotificationSink,
        company_id: str,
        round_id: str,
        round_name: Optional[str] = None,
    ):
        self.client = client
        self.notifier = notifier
        self.company_id = company_id
        self.round_id = round_id
        self.round_name = round_name
        self.questions: list[Question] = []
        self.state = CollectionState.IDLE
        self.error: Optional[PrepDeckError] = None
        self._deleting = False

    @classmethod
    def for_location(
        cls,
        client: BackendClient,
        notifier: NotificationSink,
        location: ResultsLocation,
    ) -> "QuestionCollection":
        return cls(client, notifier, location.company_id, location.round_id, location.round_name)

    # =========================================================================
    # Loading
    # =========================================================================

    async def load(
        self,
        language: Optional[str] = None,
        difficulty: Optional[Difficulty | str] = None,
    ) -> list[Question]:
        """
        Fetch the round's questions, filtered server-side when filters are given.

        On failure the previous list is kept, `state` is FAILED and `error`
        holds the cause. An empty list is a normal EMPTY state.
        """
        try:
            questions = await self.client.fetch_questions_by_round(
                self.company_id, self.round_id, language=language, difficulty=difficulty
            )
        except (BackendError, RateLimitedError) as e:
            return self._load_failed(e)
        return self._loaded(questions)

    async def load_results(self, location: ResultsLocation) -> list[Question]:
        """Fetch the set a generation landed on, as addressed by its location."""
        try:
            questions = await self.client.fetch_questions(
                location.company_id,
                location.round_id,
                language=location.language,
                difficulty=location.difficulty,
            )
        except (BackendError, RateLimitedError) as e:
            return self._load_failed(e)
        return self._loaded(questions)

    def _loaded(self, questions: list[Question]) -> list[Question]:
        self.questions = questions
        self.error = None
        self.state = CollectionState.LOADED if questions else CollectionState.EMPTY
        logger.debug(f"Loaded {len(questions)} questions for round {self.round_id}")
        return questions

    def _load_failed(self, error: PrepDeckError) -> list[Question]:
        logger.error(f"Error fetching questions for round {self.round_id}: {error.message}")
        self.error = error
        self.state = CollectionState.FAILED
        self.notifier.notify(Severity.ERROR, "Error loading questions. Please try again.")
        return self.questions

    # =========================================================================
    # Derived views
    # =========================================================================

    def language_facets(self) -> dict[Optional[str], int]:
        """Question count per language, in first-seen order."""
        return {language: len(qs) for language, qs in group_by_language(self.questions).items()}

    def difficulties(self) -> list[str]:
        seen: dict[str, None] = {}
        for q in self.questions:
            if q.difficulty:
                seen.setdefault(q.difficulty, None)
        return list(seen)

    def view(
        self,
        category: Optional[str] = None,
        difficulty: Optional[Difficulty | str] = None,
        search_text: Optional[str] = None,
    ) -> list[Question]:
        return filter_questions(self.questions, category, difficulty, search_text)

    # =========================================================================
    # Mutations
    # =========================================================================

    async def request_deletion(self, intent: DeletionIntent) -> Optional[DeleteResult]:
        """
        Bulk-delete the questions `intent` selects.

        Returns the backend's result, or None if the delete failed or one
        is already running. The local list is never touched.
        """
        if self._deleting:
            error = OperationInProgressError("Question deletion")
            self.notifier.notify(Severity.WARNING, error.message)
            return None

        self._deleting = True
        try:
            result = await self.client.delete_questions(intent, self.company_id, self.round_id)
        except (BackendError, RateLimitedError) as e:
            logger.error(f"Error deleting questions ({intent.scope.value}): {e.message}")
            if e.status_code is None and not e.details:
                self.notifier.notify(Severity.ERROR, "An error occurred while deleting questions")
            else:
                self.notifier.notify(Severity.ERROR, e.message or "Failed to delete questions")
            return None
        finally:
            self._deleting = False

        self.notifier.notify(Severity.SUCCESS, result.message or "Questions deleted successfully")
        return result

    async def explain(self, question: Question) -> Explanation:
        """Structured explanation of a question, or a fixed fallback if it cannot be fetched."""
        try:
            return await self.client.explain_question(question.id, question.question)
        except (BackendError, RateLimitedError) as e:
            logger.warning(f"Explanation for question {question.id} unavailable: {e.message}")
            self.notifier.notify(Severity.ERROR, "Failed to fetch explanation")
            return FALLBACK_EXPLANATION.model_copy(deep=True)
