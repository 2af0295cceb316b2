"""
Tests for the generation quota ledger.

Run with: pytest tests/test_quota_store.py -v
"""
import asyncio
from datetime import date, datetime, timedelta

import pytest

from prepdeck.exceptions import QuotaExhaustedError
from prepdeck.models import EntryStatus, QuotaRecord, ServerQuota
from prepdeck.services import QuotaStore

from conftest import TODAY

YESTERDAY = TODAY - timedelta(days=1)


def store_with(used: int, window_start: date = TODAY, limit: int = 5, **kwargs) -> QuotaStore:
    record = QuotaRecord(window_start=window_start, used=used, limit=limit)
    return QuotaStore(limit=limit, record=record, today=lambda: TODAY, **kwargs)


class TestWindow:
    """Daily window and lazy reset."""

    @pytest.mark.asyncio
    async def test_fresh_store_has_full_quota(self, quota: QuotaStore):
        status = await quota.check_status()

        assert status.used == 0
        assert status.remaining == 5
        assert not status.exhausted
        assert status.message is None

    @pytest.mark.asyncio
    async def test_new_day_resets_exhausted_window(self):
        store = store_with(used=5, window_start=YESTERDAY)

        status = await store.check_status(TODAY)

        assert status.used == 0, "A read on a new day should start from zero"
        assert not status.exhausted
        assert store.record.window_start == TODAY

    @pytest.mark.asyncio
    async def test_same_day_keeps_count(self):
        store = store_with(used=3)

        status = await store.check_status(datetime(TODAY.year, TODAY.month, TODAY.day, 23, 59))

        assert status.used == 3
        assert status.remaining == 2

    @pytest.mark.asyncio
    async def test_consume_on_new_day_counts_from_zero(self):
        store = store_with(used=5, window_start=YESTERDAY)

        await store.try_consume(TODAY)

        assert store.record.used == 1


class TestConsume:
    """Pre-flight consumption and rollback."""

    @pytest.mark.asyncio
    async def test_consume_increments(self, quota: QuotaStore):
        ticket = await quota.try_consume()

        assert quota.record.used == 1
        assert ticket.status == EntryStatus.PENDING
        assert ticket.window_start == TODAY

    @pytest.mark.asyncio
    async def test_consume_at_limit_raises(self):
        store = store_with(used=5)

        with pytest.raises(QuotaExhaustedError) as exc_info:
            await store.try_consume()

        assert "You have reached the limit of 5 requests" in exc_info.value.message
        assert store.record.used == 5, "A refused attempt must not change the count"

    @pytest.mark.asyncio
    async def test_rollback_restores_previous_count(self):
        store = store_with(used=2)

        ticket = await store.try_consume()
        assert store.record.used == 3

        assert await ticket.rollback() is True
        assert store.record.used == 2
        assert ticket.status == EntryStatus.ROLLED_BACK

    @pytest.mark.asyncio
    async def test_rollback_only_releases_once(self):
        store = store_with(used=2)

        ticket = await store.try_consume()
        await ticket.rollback()

        assert await ticket.rollback() is False
        assert store.record.used == 2

    @pytest.mark.asyncio
    async def test_committed_ticket_cannot_be_rolled_back(self):
        store = store_with(used=0)

        ticket = await store.try_consume()
        ticket.commit()

        assert await ticket.rollback() is False
        assert store.record.used == 1
        assert ticket.status == EntryStatus.COMMITTED

    @pytest.mark.asyncio
    async def test_rollback_after_window_change_leaves_new_window_alone(self):
        current = {"day": YESTERDAY}
        store = QuotaStore(
            limit=5,
            record=QuotaRecord(window_start=YESTERDAY, used=4, limit=5),
            today=lambda: current["day"],
        )
        ticket = await store.try_consume()
        current["day"] = TODAY

        await store.try_consume()
        await ticket.rollback()

        assert store.record.window_start == TODAY
        assert store.record.used == 1, "Releasing a ticket from an old window must not touch today's count"

    @pytest.mark.asyncio
    async def test_concurrent_consumers_cannot_exceed_limit(self):
        store = store_with(used=4)

        results = await asyncio.gather(
            store.try_consume(), store.try_consume(), return_exceptions=True
        )

        tickets = [r for r in results if not isinstance(r, BaseException)]
        refusals = [r for r in results if isinstance(r, QuotaExhaustedError)]
        assert len(tickets) == 1, f"Exactly one attempt should pass at used=limit-1, got {results}"
        assert len(refusals) == 1
        assert store.record.used == 5


class TestServerReconciliation:
    """Adopting the backend's tracked count."""

    @pytest.mark.asyncio
    async def test_adopt_takes_server_count(self):
        store = store_with(used=1)

        status = await store.adopt(ServerQuota(success=True, used=3, remaining=2, reset_in="4 hours"))

        assert status.used == 3
        assert status.remaining == 2
        assert status.reset_in == "4 hours"
        assert not status.exhausted

    @pytest.mark.asyncio
    async def test_adopt_exhausted_server_blocks(self):
        store = store_with(used=1)

        status = await store.adopt(ServerQuota(success=True, used=5, remaining=0, reset_in="2 hours"))

        assert status.exhausted
        assert status.message == "You have reached the limit of 5 requests. Please try again in 2 hours."

    @pytest.mark.asyncio
    async def test_adopt_keeps_pending_ticket_on_top(self):
        store = store_with(used=2)
        ticket = await store.try_consume()

        status = await store.adopt(ServerQuota(success=True, used=2, remaining=3))

        assert status.used == 3, "The in-flight unit is not in the server count yet"
        await ticket.rollback()
        assert store.record.used == 2, "Rollback must land back on the server figure"

    @pytest.mark.asyncio
    async def test_committed_ticket_no_longer_added(self):
        store = store_with(used=2)
        ticket = await store.try_consume()
        ticket.commit()

        status = await store.adopt(ServerQuota(success=True, used=3, remaining=2))

        assert status.used == 3

    @pytest.mark.asyncio
    async def test_unsuccessful_server_response_keeps_local_count(self):
        store = store_with(used=2)

        status = await store.adopt(ServerQuota(success=False, used=0))

        assert status.used == 2

    @pytest.mark.asyncio
    async def test_block_exhausts_until_next_day(self):
        store = store_with(used=1)

        status = await store.block("Slow down", reset_in="1 hour")

        assert status.exhausted
        assert status.remaining == 0
        assert status.message == "Slow down"
        with pytest.raises(QuotaExhaustedError):
            await store.try_consume()

        tomorrow = TODAY + timedelta(days=1)
        status = await store.check_status(tomorrow)
        assert not status.exhausted
        assert status.message is None


class TestPersistence:
    """Ledger stored as JSON between runs."""

    @pytest.mark.asyncio
    async def test_count_survives_restart(self, tmp_path):
        path = tmp_path / "quota.json"
        store = QuotaStore(limit=5, state_path=path, today=lambda: TODAY)
        await store.try_consume()
        await store.try_consume()

        restarted = QuotaStore(limit=5, state_path=path, today=lambda: TODAY)

        assert restarted.record.used == 2
        assert (await restarted.check_status()).remaining == 3

    @pytest.mark.asyncio
    async def test_corrupt_state_file_starts_fresh(self, tmp_path):
        path = tmp_path / "quota.json"
        path.write_text("{not json", encoding="utf-8")

        store = QuotaStore(limit=5, state_path=path, today=lambda: TODAY)

        assert store.record.used == 0
        assert store.record.window_start == TODAY
