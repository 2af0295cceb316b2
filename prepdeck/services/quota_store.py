"""
Generation quota bookkeeping.

Tracks how many generation requests were made in the current calendar
day against a fixed limit. The count is consumed optimistically before
the generate call and released again if that call fails. The backend's
tracked count is authoritative: whenever it reports a value, the local
ledger adopts it.

The window resets lazily: any read on a new day starts from zero, there
is no background timer.
"""
import asyncio
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Callable, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from prepdeck import config
from prepdeck.exceptions import QuotaExhaustedError
from prepdeck.models import EntryStatus, QuotaRecord, QuotaStatus, ServerQuota

logger = logging.getLogger(__name__)

Moment = Union[datetime, date, None]


def limit_reached_message(limit: int, reset_in: Optional[str] = None) -> str:
    when = f"in {reset_in}" if reset_in else "later"
    return f"You have reached the limit of {limit} requests. Please try again {when}."


class QuotaTicket:
    """
    One consumed unit of quota.

    `commit()` marks it kept (the count was already taken). `rollback()`
    gives it back exactly once.
    """

    def __init__(self, store: "QuotaStore", window_start: date):
        self._store = store
        self.window_start = window_start
        self.status = EntryStatus.PENDING

    def commit(self) -> None:
        if self.status == EntryStatus.PENDING:
            self.status = EntryStatus.COMMITTED
            self._store._pending.discard(self)

    async def rollback(self) -> bool:
        """Release the unit. Returns False if it was already committed or released."""
        if self.status != EntryStatus.PENDING:
            return False
        self.status = EntryStatus.ROLLED_BACK
        await self._store._release(self)
        return True


class QuotaStore:
    """
    Per-user generation quota with a daily window.

    Construct once per application and pass it to whatever needs it.
    With `state_path` the ledger survives restarts as a small JSON file.
    """

    def __init__(
        self,
        limit: Optional[int] = None,
        state_path: Optional[Union[str, Path]] = None,
        record: Optional[QuotaRecord] = None,
        today: Callable[[], date] = date.today,
    ):
        self.limit = config.GENERATION_LIMIT if limit is None else limit
        self._path = Path(state_path) if state_path else None
        self._today = today
        self._lock = asyncio.Lock()
        self._pending: set[QuotaTicket] = set()
        self._record = record.model_copy() if record else self._load()
        self._record.limit = self.limit

    @classmethod
    def from_env(cls) -> "QuotaStore":
        return cls(state_path=config.QUOTA_STATE_PATH)

    @property
    def record(self) -> QuotaRecord:
        """Snapshot of the ledger (no lazy reset applied)."""
        return self._record.model_copy()

    # =========================================================================
    # Public operations
    # =========================================================================

    async def check_status(self, now: Moment = None) -> QuotaStatus:
        """Current usage, resetting first if `now` falls on a new day."""
        async with self._lock:
            self._roll_over(self._day(now))
            return self._status()

    async def try_consume(self, now: Moment = None) -> QuotaTicket:
        """
        Take one unit of quota.

        The check and the increment happen under one lock so two
        overlapping attempts can never both pass at `used == limit - 1`.

        Raises:
            QuotaExhaustedError: no capacity left in this window
        """
        async with self._lock:
            self._roll_over(self._day(now))
            status = self._status()
            if status.exhausted:
                logger.info(f"Quota exhausted ({status.used}/{status.limit}), blocking generation")
                raise QuotaExhaustedError(status.message, reset_in=status.reset_in)

            self._record.used += 1
            self._save()
            logger.debug(f"Quota consumed: {self._record.used}/{self.limit}")
            ticket = QuotaTicket(self, self._record.window_start)
            self._pending.add(ticket)
            return ticket

    async def adopt(self, server: ServerQuota, now: Moment = None) -> QuotaStatus:
        """
        Mirror the backend's tracked count.

        Tickets still pending in this window are not in the server's count
        yet, so they are added on top; their rollback then lands back on
        the server figure.
        """
        async with self._lock:
            self._roll_over(self._day(now))
            if not server.success:
                logger.warning("Server quota response not successful, keeping local count")
                return self._status()

            pending = self._pending_in_window()
            self._record.used = max(server.used, 0) + pending
            self._record.reset_in = server.reset_in
            if server.remaining is not None and server.remaining <= 0:
                self._record.blocked_message = limit_reached_message(self.limit, server.reset_in)
            else:
                self._record.blocked_message = None
            self._save()
            logger.debug(
                f"Adopted server quota: used={server.used} remaining={server.remaining} pending={pending}"
            )
            return self._status()

    async def block(self, message: str, reset_in: Optional[str] = None, now: Moment = None) -> QuotaStatus:
        """Record a server-reported exhaustion. Lifted when the window rolls over."""
        async with self._lock:
            self._roll_over(self._day(now))
            self._record.blocked_message = message
            self._record.reset_in = reset_in
            self._save()
            logger.info(f"Quota blocked by server: {message}")
            return self._status()

    # =========================================================================
    # Internals (call with the lock held)
    # =========================================================================

    async def _release(self, ticket: QuotaTicket) -> None:
        async with self._lock:
            self._pending.discard(ticket)
            if ticket.window_start != self._record.window_start:
                # The window rolled over since the ticket was taken; that count is gone already
                return
            self._record.used = max(self._record.used - 1, 0)
            self._save()
            logger.debug(f"Quota released: {self._record.used}/{self.limit}")

    def _pending_in_window(self) -> int:
        return sum(1 for t in self._pending if t.window_start == self._record.window_start)

    def _day(self, now: Moment) -> date:
        if now is None:
            return self._today()
        if isinstance(now, datetime):
            return now.date()
        return now

    def _roll_over(self, day: date) -> None:
        if self._record.window_start == day:
            return
        logger.info(f"Quota window reset ({self._record.window_start} -> {day})")
        self._record = QuotaRecord(window_start=day, used=0, limit=self.limit)
        self._save()

    def _status(self) -> QuotaStatus:
        record = self._record
        blocked = record.blocked_message is not None
        exhausted = blocked or record.used >= self.limit
        remaining = 0 if blocked else max(self.limit - record.used, 0)

        message = None
        if blocked:
            message = record.blocked_message
        elif exhausted:
            message = limit_reached_message(self.limit, record.reset_in)

        return QuotaStatus(
            used=record.used,
            limit=self.limit,
            remaining=remaining,
            exhausted=exhausted,
            reset_in=record.reset_in,
            message=message,
        )

    def _load(self) -> QuotaRecord:
        fresh = QuotaRecord(window_start=self._today(), used=0, limit=self.limit)
        if not self._path or not self._path.exists():
            return fresh
        try:
            return QuotaRecord.model_validate_json(self._path.read_text(encoding="utf-8"))
        except (OSError, PydanticValidationError) as e:
            logger.warning(f"Ignoring unreadable quota state at {self._path}: {e}")
            return fresh

    def _save(self) -> None:
        if not self._path:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(self._record.model_dump_json(indent=2), encoding="utf-8")
