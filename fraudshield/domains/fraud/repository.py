"""SQL-backed transaction history and transaction persistence."""

import math
import uuid
from datetime import datetime

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fraudshield.db.models import Transaction as TransactionDB

from .history import TransactionHistory
from .models import PopulationStats, ScoringResult, TransactionRecord

logger = structlog.get_logger()


def to_record(row: TransactionDB) -> TransactionRecord:
    return TransactionRecord(
        id=row.id,
        account_id=row.account_id,
        amount=row.amount,
        description=row.description or "",
        category=row.category or "",
        location=row.location or "",
        ip_address=row.ip_address or "",
        timestamp=row.timestamp,
        fraud_flags=row.fraud_flags or [],
    )


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SqlTransactionHistory(TransactionHistory):
    """Queries the transactions table.

    Each query runs in its own short-lived session so detectors can query
    concurrently; an AsyncSession must not be shared between tasks.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def count_by_account_since(self, account_id: str, since: datetime) -> int:
        stmt = select(func.count()).where(
            TransactionDB.account_id == account_id,
            TransactionDB.timestamp >= since,
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return result.scalar_one()

    async def find_by_account_since(
        self, account_id: str, since: datetime
    ) -> list[TransactionRecord]:
        stmt = select(TransactionDB).where(
            TransactionDB.account_id == account_id,
            TransactionDB.timestamp >= since,
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [to_record(row) for row in result.scalars().all()]

    async def latest_by_account(self, account_id: str) -> TransactionRecord | None:
        stmt = (
            select(TransactionDB)
            .where(TransactionDB.account_id == account_id)
            .order_by(TransactionDB.timestamp.desc())
            .limit(1)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            row = result.scalars().first()
            return to_record(row) if row else None

    async def all_amounts(self) -> list[float]:
        async with self._session_factory() as session:
            result = await session.execute(select(TransactionDB.amount))
            return [float(a) for a in result.scalars().all()]

    async def amount_stats(self) -> PopulationStats:
        """Population mean/stddev computed in the database, two passes."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(
                    func.count(TransactionDB.amount).label("cnt"),
                    func.avg(TransactionDB.amount).label("mean"),
                )
            )
            row = result.one()
            if not row.cnt:
                return PopulationStats()

            mean = float(row.mean)
            deviation = TransactionDB.amount - mean
            result = await session.execute(select(func.avg(deviation * deviation)))
            variance = float(result.scalar_one() or 0.0)

        return PopulationStats(count=row.cnt, mean=mean, stddev=math.sqrt(max(variance, 0.0)))

    async def find_related(self, account_id: str, limit: int) -> list[TransactionRecord]:
        pattern = f"%{_escape_like(account_id)}%"
        stmt = (
            select(TransactionDB)
            .where(
                or_(
                    TransactionDB.account_id == account_id,
                    TransactionDB.description.ilike(pattern, escape="\\"),
                )
            )
            .order_by(TransactionDB.timestamp.desc())
            .limit(limit)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [to_record(row) for row in result.scalars().all()]


async def save_transaction(
    session: AsyncSession,
    record: TransactionRecord,
    verdict: ScoringResult,
) -> TransactionRecord:
    """Persist a scored transaction and return it with its assigned id."""
    row = TransactionDB(
        id=record.id or str(uuid.uuid4()),
        account_id=record.account_id,
        amount=record.amount,
        description=record.description,
        category=record.category,
        location=record.location,
        ip_address=record.ip_address,
        timestamp=record.timestamp,
        is_fraudulent=verdict.is_fraudulent,
        fraud_flags=[f.value for f in verdict.fraud_flags],
        risk_tier=verdict.risk_tier.value,
    )
    session.add(row)
    await session.commit()
    await session.refresh(row)

    logger.info(
        "transaction_saved",
        transaction_id=row.id,
        account_id=row.account_id,
        is_fraudulent=row.is_fraudulent,
    )
    return to_record(row)


async def list_transactions(
    session: AsyncSession,
    limit: int = 50,
    offset: int = 0,
    fraudulent: bool | None = None,
) -> list[TransactionRecord]:
    stmt = select(TransactionDB)
    if fraudulent is not None:
        stmt = stmt.where(TransactionDB.is_fraudulent.is_(fraudulent))
    stmt = stmt.order_by(TransactionDB.timestamp.desc()).offset(offset).limit(limit)
    result = await session.execute(stmt)
    return [to_record(row) for row in result.scalars().all()]
