"""Dashboard summary statistics over stored transactions."""

from collections import Counter
from datetime import UTC, datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fraudshield.db.models import Transaction as TransactionDB

from .models import FraudFlag, RiskTier
from .repository import to_record

RECENT_LIMIT = 5
TOP_LOCATIONS_LIMIT = 5
TIMELINE_HOURS = 24


def _hour_bucket(value: datetime) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).replace(minute=0, second=0, microsecond=0)


def build_timeline(rows, now: datetime, hours: int = TIMELINE_HOURS) -> list[dict]:
    """Hourly transaction counts for the ``hours`` buckets ending at ``now``.

    ``rows`` are ``(timestamp, is_fraudulent)`` pairs. Empty hours are kept
    so the series has a fixed length.
    """
    end = _hour_bucket(now)
    buckets = [end - timedelta(hours=offset) for offset in range(hours - 1, -1, -1)]
    totals: Counter[datetime] = Counter()
    fraudulent: Counter[datetime] = Counter()
    for timestamp, is_fraudulent in rows:
        if timestamp is None:
            continue
        bucket = _hour_bucket(timestamp)
        totals[bucket] += 1
        if is_fraudulent:
            fraudulent[bucket] += 1

    return [
        {"time": bucket.isoformat(), "total": totals[bucket], "fraudulent": fraudulent[bucket]}
        for bucket in buckets
    ]


async def transaction_stats(session: AsyncSession, now: datetime | None = None) -> dict:
    now = now or datetime.now(UTC)

    total_result = await session.execute(select(func.count()).select_from(TransactionDB))
    total = total_result.scalar_one()

    fraud_result = await session.execute(
        select(func.count()).select_from(TransactionDB).where(TransactionDB.is_fraudulent.is_(True))
    )
    fraudulent = fraud_result.scalar_one()

    amount_result = await session.execute(select(func.coalesce(func.sum(TransactionDB.amount), 0.0)))
    total_amount = float(amount_result.scalar_one() or 0.0)

    tier_result = await session.execute(
        select(TransactionDB.risk_tier, func.count()).group_by(TransactionDB.risk_tier)
    )
    risk_distribution = {tier.value: 0 for tier in RiskTier}
    for tier, count in tier_result.all():
        if tier in risk_distribution:
            risk_distribution[tier] = count

    flags_result = await session.execute(
        select(TransactionDB.fraud_flags).where(TransactionDB.is_fraudulent.is_(True))
    )
    flag_counter: Counter[str] = Counter()
    for flags in flags_result.scalars().all():
        flag_counter.update(flags or [])

    recent_result = await session.execute(
        select(TransactionDB).order_by(TransactionDB.timestamp.desc()).limit(RECENT_LIMIT)
    )
    recent = [
        to_record(row).model_dump(mode="json", by_alias=True)
        for row in recent_result.scalars().all()
    ]

    location_count = func.count().label("cnt")
    locations_result = await session.execute(
        select(TransactionDB.location, location_count)
        .where(TransactionDB.location.is_not(None), TransactionDB.location != "")
        .group_by(TransactionDB.location)
        .order_by(location_count.desc(), TransactionDB.location)
        .limit(TOP_LOCATIONS_LIMIT)
    )
    top_locations = [{"name": name, "count": count} for name, count in locations_result.all()]

    since = _hour_bucket(now) - timedelta(hours=TIMELINE_HOURS - 1)
    timeline_result = await session.execute(
        select(TransactionDB.timestamp, TransactionDB.is_fraudulent).where(
            TransactionDB.timestamp >= since
        )
    )

    return {
        "totalTransactions": total,
        "fraudulentTransactions": fraudulent,
        "fraudulentPercentage": (fraudulent / total * 100) if total else 0.0,
        "totalAmount": total_amount,
        "riskDistribution": risk_distribution,
        "flagStats": {flag.value: flag_counter.get(flag.value, 0) for flag in FraudFlag},
        "recentTransactions": recent,
        "topLocations": top_locations,
        "timelineData": build_timeline(timeline_result.all(), now),
    }
