"""Unit tests for the history accessors."""

import asyncio
from datetime import timedelta

import pytest

from fraudshield.domains.fraud.history import (
    DeadlineTransactionHistory,
    HistoryUnavailableError,
    InMemoryTransactionHistory,
    stats_from_amounts,
)
from tests.conftest import NOW, make_record, minutes_ago


class SlowHistory(InMemoryTransactionHistory):
    async def latest_by_account(self, account_id):
        await asyncio.sleep(1)
        return None


class BrokenHistory(InMemoryTransactionHistory):
    async def all_amounts(self):
        raise ConnectionError("database unreachable")


class TestStatsFromAmounts:
    def test_empty(self):
        stats = stats_from_amounts([])
        assert stats.count == 0
        assert stats.mean == 0.0
        assert stats.stddev == 0.0

    def test_population_stddev(self):
        stats = stats_from_amounts([100, 100, 100, 100, 500])
        assert stats.count == 5
        assert stats.mean == pytest.approx(180.0)
        assert stats.stddev == pytest.approx(160.0)

    def test_identical_values_have_zero_spread(self):
        assert stats_from_amounts([0.1, 0.1, 0.1]).stddev == 0.0


class TestInMemoryTransactionHistory:
    @pytest.mark.asyncio
    async def test_add_assigns_id(self):
        history = InMemoryTransactionHistory()
        stored = history.add(make_record())
        assert stored.id is not None
        assert len(history) == 1

    @pytest.mark.asyncio
    async def test_count_and_find_since(self):
        history = InMemoryTransactionHistory(
            [
                make_record(timestamp=minutes_ago(10)),
                make_record(timestamp=minutes_ago(60 * 30)),
                make_record(account_id="acct-2", timestamp=minutes_ago(5)),
            ]
        )
        since = NOW - timedelta(hours=24)
        assert await history.count_by_account_since("acct-1", since) == 1
        found = await history.find_by_account_since("acct-1", since)
        assert [r.timestamp for r in found] == [minutes_ago(10)]

    @pytest.mark.asyncio
    async def test_latest_by_account(self):
        history = InMemoryTransactionHistory(
            [
                make_record(location="Boston", timestamp=minutes_ago(30)),
                make_record(location="Miami", timestamp=minutes_ago(1)),
                make_record(location="Paris", timestamp=minutes_ago(90)),
            ]
        )
        latest = await history.latest_by_account("acct-1")
        assert latest.location == "Miami"
        assert await history.latest_by_account("nobody") is None

    @pytest.mark.asyncio
    async def test_find_related_matches_account_or_description(self):
        history = InMemoryTransactionHistory(
            [
                make_record(description="own", timestamp=minutes_ago(3)),
                make_record(account_id="acct-2", description="Pay ACCT-1 back", timestamp=minutes_ago(1)),
                make_record(account_id="acct-3", description="unrelated", timestamp=minutes_ago(2)),
            ]
        )
        related = await history.find_related("acct-1", limit=10)
        assert [r.description for r in related] == ["Pay ACCT-1 back", "own"]

    @pytest.mark.asyncio
    async def test_find_related_respects_limit(self):
        history = InMemoryTransactionHistory(
            [make_record(timestamp=minutes_ago(i)) for i in range(15)]
        )
        related = await history.find_related("acct-1", limit=10)
        assert len(related) == 10
        assert related[0].timestamp == minutes_ago(0)

    @pytest.mark.asyncio
    async def test_amount_stats(self):
        history = InMemoryTransactionHistory(
            [make_record(amount=a) for a in (100, 100, 100, 100, 500)]
        )
        stats = await history.amount_stats()
        assert stats.mean == pytest.approx(180.0)


class TestDeadlineTransactionHistory:
    @pytest.mark.asyncio
    async def test_passes_through(self):
        inner = InMemoryTransactionHistory([make_record()])
        history = DeadlineTransactionHistory(inner, timeout=1.0)
        assert await history.all_amounts() == [100.0]
        assert (await history.latest_by_account("acct-1")).account_id == "acct-1"

    @pytest.mark.asyncio
    async def test_timeout_raises_history_unavailable(self):
        history = DeadlineTransactionHistory(SlowHistory(), timeout=0.01)
        with pytest.raises(HistoryUnavailableError, match="latest_by_account"):
            await history.latest_by_account("acct-1")

    @pytest.mark.asyncio
    async def test_backend_error_wrapped(self):
        history = DeadlineTransactionHistory(BrokenHistory(), timeout=1.0)
        with pytest.raises(HistoryUnavailableError, match="database unreachable"):
            await history.amount_stats()

    @pytest.mark.asyncio
    async def test_no_timeout(self):
        history = DeadlineTransactionHistory(InMemoryTransactionHistory(), timeout=None)
        assert await history.count_by_account_since("acct-1", NOW) == 0
