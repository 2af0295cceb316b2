"""
Generation service - runs one question generation attempt end to end.

Validates the selection, takes a unit of quota, calls the backend and
reconciles quota and state with whatever came back. Errors never leave
`generate()`: they are reported through the notification sink and
returned on the outcome.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional

from prepdeck import config
from prepdeck.exceptions import (
    BackendError,
    OperationInProgressError,
    PrepDeckError,
    QuotaExhaustedError,
    RateLimitedError,
    ValidationError,
)
from prepdeck.models import (
    Difficulty,
    GenerationRequest,
    GenerationState,
    Question,
    QuotaStatus,
    ResultsLocation,
    Severity,
    requires_language,
)
from .backend_client import BackendClient
from .last_generated import LastGeneratedStore
from .notifications import NotificationSink
from .quota_store import Moment, QuotaStore

logger = logging.getLogger(__name__)


def build_generation_request(
    company_id: str,
    round_id: str,
    round_name: str,
    difficulty: Optional[Difficulty | str],
    language: Optional[str] = None,
) -> GenerationRequest:
    """
    Validate a selection into a GenerationRequest.

    Language is required unless the round is language-exempt, in which
    case any language given is dropped.

    Raises:
        ValidationError: difficulty or language missing or unknown
    """
    if not difficulty:
        raise ValidationError("difficulty required", field="difficulty")
    try:
        difficulty = Difficulty(difficulty)
    except ValueError:
        raise ValidationError(f"Unknown difficulty: {difficulty}", field="difficulty")

    language = (language or "").strip() or None
    if requires_language(round_name):
        if language is None:
            raise ValidationError("language required", field="language")
    else:
        language = None

    return GenerationRequest(
        company_id=company_id,
        round_id=round_id,
        round_name=round_name,
        difficulty=difficulty,
        language=language,
    )


@dataclass
class GenerationOutcome:
    """What a single call to `generate()` ended in."""
    state: GenerationState
    request: Optional[GenerationRequest] = None
    questions: list[Question] = field(default_factory=list)
    results_path: Optional[str] = None
    error: Optional[PrepDeckError] = None
    quota: Optional[QuotaStatus] = None
    cancelled: bool = False

    @property
    def ok(self) -> bool:
        return self.state == GenerationState.READY


class GenerationCoordinator:
    """
    Orchestrates generation attempts for one user.

    Only one attempt runs at a time. The guard is a plain flag that is
    checked and set before the first await, so a double trigger is
    rejected rather than raced.
    """

    def __init__(
        self,
        client: BackendClient,
        quota: QuotaStore,
        notifier: NotificationSink,
        user_id: Optional[str] = None,
        track_server_quota: Optional[bool] = None,
        last_generated: Optional[LastGeneratedStore] = None,
    ):
        self.client = client
        self.quota = quota
        self.notifier = notifier
        self.user_id = user_id
        self.track_server_quota = (
            config.TRACK_SERVER_QUOTA if track_server_quota is None else track_server_quota
        )
        self.last_generated = last_generated
        self.state = GenerationState.IDLE
        self._in_flight = False
        self._request_task: Optional[asyncio.Task] = None
        self._cancel_requested = False

    @property
    def in_flight(self) -> bool:
        """True while an attempt is running; the trigger should be disabled."""
        return self._in_flight

    async def sync_quota(self, now: Moment = None) -> QuotaStatus:
        """
        Pull the backend's tracked usage into the local ledger.

        Called at start-up and after each successful generation. A failed
        read keeps the local count.
        """
        try:
            server = await self.client.track_generation_limit(self.user_id)
        except (BackendError, RateLimitedError) as e:
            logger.warning(f"Could not read server quota, keeping local count: {e.message}")
            return await self.quota.check_status(now)

        status = await self.quota.adopt(server, now)
        if not self._in_flight:
            if status.exhausted:
                self.state = GenerationState.BLOCKED
            elif self.state == GenerationState.BLOCKED:
                self.state = GenerationState.IDLE
        return status

    def cancel(self) -> bool:
        """Cancel the in-flight request, if any. Returns True if one was cancelled."""
        if self._request_task is None or self._request_task.done():
            return False
        self._cancel_requested = True
        self._request_task.cancel()
        return True

    async def generate(
        self,
        company_id: str,
        round_id: str,
        round_name: str,
        difficulty: Optional[Difficulty | str] = None,
        language: Optional[str] = None,
        now: Moment = None,
    ) -> GenerationOutcome:
        """Run one attempt: validate, take quota, request, reconcile."""
        if self._in_flight:
            error = OperationInProgressError("Question generation")
            self.notifier.notify(Severity.WARNING, error.message)
            return GenerationOutcome(state=self.state, error=error)

        self._in_flight = True
        self._cancel_requested = False
        try:
            return await self._run(company_id, round_id, round_name, difficulty, language, now)
        finally:
            self._in_flight = False
            self._request_task = None

    async def _run(
        self,
        company_id: str,
        round_id: str,
        round_name: str,
        difficulty: Optional[Difficulty | str],
        language: Optional[str],
        now: Moment,
    ) -> GenerationOutcome:
        # === Validating ===
        self.state = GenerationState.VALIDATING
        try:
            request = build_generation_request(company_id, round_id, round_name, difficulty, language)
        except ValidationError as e:
            self.state = GenerationState.IDLE
            self.notifier.notify(Severity.ERROR, e.message)
            return GenerationOutcome(state=GenerationState.IDLE, error=e)

        # === Quota check ===
        self.state = GenerationState.QUOTA_CHECK
        try:
            ticket = await self.quota.try_consume(now)
        except QuotaExhaustedError as e:
            self.state = GenerationState.BLOCKED
            self.notifier.notify(Severity.ERROR, e.message)
            return GenerationOutcome(
                state=GenerationState.BLOCKED,
                request=request,
                error=e,
                quota=await self.quota.check_status(now),
            )

        # === Requesting ===
        self.state = GenerationState.REQUESTING
        self._request_task = asyncio.create_task(
            self.client.generate_questions(request, self.user_id)
        )
        try:
            questions = await self._request_task
            ticket.commit()
        except asyncio.CancelledError:
            await ticket.rollback()
            self.state = GenerationState.IDLE
            if not self._cancel_requested:
                raise
            logger.info(f"Generation for round {round_id} cancelled")
            return GenerationOutcome(
                state=GenerationState.IDLE,
                request=request,
                cancelled=True,
                quota=await self.quota.check_status(now),
            )
        except RateLimitedError as e:
            await ticket.rollback()
            quota = await self.quota.block(e.message, e.reset_in, now)
            self.state = GenerationState.BLOCKED
            self.notifier.notify(Severity.ERROR, e.message)
            return GenerationOutcome(state=GenerationState.BLOCKED, request=request, error=e, quota=quota)
        except BackendError as e:
            await ticket.rollback()
            self.state = GenerationState.FAILED
            logger.error(f"Error generating questions: {e.message}")
            self.notifier.notify(Severity.ERROR, config.GENERATION_FAILURE_MESSAGE)
            return GenerationOutcome(
                state=GenerationState.FAILED,
                request=request,
                error=e,
                quota=await self.quota.check_status(now),
            )
        except Exception:
            self.state = GenerationState.FAILED
            logger.exception(f"Unexpected error generating questions for round {round_id}")
            raise
        finally:
            # No-op once committed or released
            await ticket.rollback()

        # === Ready ===
        self.state = GenerationState.READY
        location = ResultsLocation(
            company_id=request.company_id,
            round_id=request.round_id,
            round_name=request.round_name,
            difficulty=request.difficulty,
            language=request.language,
        )
        results_path = location.to_path()
        if self.last_generated is not None:
            try:
                self.last_generated.save(questions, results_path)
            except OSError as e:
                logger.warning(f"Could not store last generated questions: {e}")
        self.notifier.notify(Severity.SUCCESS, config.GENERATION_SUCCESS_MESSAGE)

        if self.track_server_quota:
            quota = await self.sync_quota(now)
        else:
            quota = await self.quota.check_status(now)

        return GenerationOutcome(
            state=GenerationState.READY,
            request=request,
            questions=questions,
            results_path=results_path,
            quota=quota,
        )
