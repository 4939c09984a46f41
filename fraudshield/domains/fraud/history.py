"""Transaction history access used by the fraud detectors.

Detectors never talk to storage directly. They receive a ``TransactionHistory``
and call the handful of read-only queries below, so any store (SQL, document,
in-memory) can back the engine.
"""

import asyncio
import statistics
import uuid
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Iterable
from datetime import datetime

from .models import PopulationStats, TransactionRecord


class HistoryUnavailableError(Exception):
    """A history query failed or did not answer before its deadline."""


def stats_from_amounts(amounts: Iterable[float]) -> PopulationStats:
    values = [float(a) for a in amounts]
    if not values:
        return PopulationStats()
    return PopulationStats(
        count=len(values),
        mean=statistics.fmean(values),
        stddev=statistics.pstdev(values),
    )


class TransactionHistory(ABC):
    """Read-only queries over stored transactions."""

    @abstractmethod
    async def count_by_account_since(self, account_id: str, since: datetime) -> int:
        """Number of the account's transactions with timestamp >= since."""
        ...

    @abstractmethod
    async def find_by_account_since(
        self, account_id: str, since: datetime
    ) -> list[TransactionRecord]:
        """The account's transactions with timestamp >= since, in no guaranteed order."""
        ...

    @abstractmethod
    async def latest_by_account(self, account_id: str) -> TransactionRecord | None:
        ...

    @abstractmethod
    async def all_amounts(self) -> list[float]:
        ...

    @abstractmethod
    async def find_related(self, account_id: str, limit: int) -> list[TransactionRecord]:
        """Transactions of the account or mentioning it in their description.

        Matching on the description is a cheap stand-in for a real
        counterparty graph; results are newest first and at most ``limit``.
        """
        ...

    async def amount_stats(self) -> PopulationStats:
        """Mean and population stddev of every stored amount."""
        return stats_from_amounts(await self.all_amounts())


def _newest_first(records: Iterable[TransactionRecord]) -> list[TransactionRecord]:
    return sorted(
        records,
        key=lambda r: (r.timestamp is not None, r.timestamp or datetime.min),
        reverse=True,
    )


class InMemoryTransactionHistory(TransactionHistory):
    """List-backed history, used in tests and for embedded scoring."""

    def __init__(self, records: Iterable[TransactionRecord] = ()) -> None:
        self._records: list[TransactionRecord] = []
        for record in records:
            self.add(record)

    def add(self, record: TransactionRecord) -> TransactionRecord:
        if record.id is None:
            record = record.model_copy(update={"id": str(uuid.uuid4())})
        self._records.append(record)
        return record

    def __len__(self) -> int:
        return len(self._records)

    def _for_account_since(self, account_id: str, since: datetime) -> list[TransactionRecord]:
        return [
            r
            for r in self._records
            if r.account_id == account_id and r.timestamp is not None and r.timestamp >= since
        ]

    async def count_by_account_since(self, account_id: str, since: datetime) -> int:
        return len(self._for_account_since(account_id, since))

    async def find_by_account_since(
        self, account_id: str, since: datetime
    ) -> list[TransactionRecord]:
        return self._for_account_since(account_id, since)

    async def latest_by_account(self, account_id: str) -> TransactionRecord | None:
        matches = _newest_first(r for r in self._records if r.account_id == account_id)
        return matches[0] if matches else None

    async def all_amounts(self) -> list[float]:
        return [r.amount for r in self._records]

    async def find_related(self, account_id: str, limit: int) -> list[TransactionRecord]:
        needle = account_id.lower()
        related = (
            r
            for r in self._records
            if r.account_id == account_id or needle in r.description.lower()
        )
        return _newest_first(related)[:limit]


class DeadlineTransactionHistory(TransactionHistory):
    """Wraps another history and bounds every call by a deadline.

    Timeouts and backend errors both surface as ``HistoryUnavailableError``.
    A ``timeout`` of ``None`` disables the deadline.
    """

    def __init__(self, inner: TransactionHistory, timeout: float | None) -> None:
        self._inner = inner
        self._timeout = timeout if timeout and timeout > 0 else None

    async def _bounded(self, query: str, call: Awaitable):
        try:
            async with asyncio.timeout(self._timeout):
                return await call
        except TimeoutError as exc:
            raise HistoryUnavailableError(
                f"{query} did not complete within {self._timeout}s"
            ) from exc
        except HistoryUnavailableError:
            raise
        except Exception as exc:
            raise HistoryUnavailableError(f"{query} failed: {exc}") from exc

    async def count_by_account_since(self, account_id: str, since: datetime) -> int:
        return await self._bounded(
            "count_by_account_since", self._inner.count_by_account_since(account_id, since)
        )

    async def find_by_account_since(
        self, account_id: str, since: datetime
    ) -> list[TransactionRecord]:
        return await self._bounded(
            "find_by_account_since", self._inner.find_by_account_since(account_id, since)
        )

    async def latest_by_account(self, account_id: str) -> TransactionRecord | None:
        return await self._bounded("latest_by_account", self._inner.latest_by_account(account_id))

    async def all_amounts(self) -> list[float]:
        return await self._bounded("all_amounts", self._inner.all_amounts())

    async def amount_stats(self) -> PopulationStats:
        return await self._bounded("amount_stats", self._inner.amount_stats())

    async def find_related(self, account_id: str, limit: int) -> list[TransactionRecord]:
        return await self._bounded("find_related", self._inner.find_related(account_id, limit))
