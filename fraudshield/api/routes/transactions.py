"""Transaction submission, listing and dashboard statistics."""

from datetime import UTC, datetime

import structlog
from fastapi import APIRouter, Depends, Query
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from fraudshield.api.dependencies import get_alert_dispatcher, get_history, get_scorer
from fraudshield.db.database import get_session
from fraudshield.db.models import Transaction as TransactionDB
from fraudshield.domains.fraud.alerts import AlertDispatcher
from fraudshield.domains.fraud.history import TransactionHistory
from fraudshield.domains.fraud.models import CamelModel, TransactionRecord, explain_flags
from fraudshield.domains.fraud.reporting import transaction_stats
from fraudshield.domains.fraud.repository import list_transactions, save_transaction, to_record
from fraudshield.domains.fraud.scorer import FraudScorer

logger = structlog.get_logger()
router = APIRouter(prefix="/api/v1/transactions", tags=["transactions"])


class TransactionCreate(CamelModel):
    account_id: str = Field(min_length=1)
    amount: float = Field(allow_inf_nan=False)
    description: str = Field(min_length=1)
    category: str = Field(min_length=1)
    location: str = Field(min_length=1)
    ip_address: str = Field(min_length=1)
    timestamp: datetime | None = None


def _transaction_response(record: TransactionRecord, risk_tier: str | None = None) -> dict:
    body = record.model_dump(mode="json", by_alias=True)
    body["reasons"] = explain_flags(record.fraud_flags)
    if risk_tier is not None:
        body["riskTier"] = risk_tier
    return body


@router.post("", status_code=201)
async def create_transaction(
    payload: TransactionCreate,
    session: AsyncSession = Depends(get_session),  # noqa: B008
    history: TransactionHistory = Depends(get_history),  # noqa: B008
    scorer: FraudScorer = Depends(get_scorer),  # noqa: B008
    dispatcher: AlertDispatcher = Depends(get_alert_dispatcher),  # noqa: B008
) -> dict:
    record = TransactionRecord(**payload.model_dump())
    if record.timestamp is None:
        record = record.model_copy(update={"timestamp": datetime.now(UTC)})

    # Score against history as it was before this transaction is stored
    verdict = await scorer.score(record, history=history)
    saved = await save_transaction(session, record, verdict)
    await dispatcher.dispatch(saved, verdict)

    return _transaction_response(saved, verdict.risk_tier.value)


@router.get("")
async def get_transactions(
    session: AsyncSession = Depends(get_session),  # noqa: B008
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    fraudulent: bool | None = None,
) -> list[dict]:
    records = await list_transactions(session, limit=limit, offset=offset, fraudulent=fraudulent)
    return [_transaction_response(r) for r in records]


@router.get("/stats")
async def get_stats(
    session: AsyncSession = Depends(get_session),  # noqa: B008
) -> dict:
    return await transaction_stats(session)


@router.get("/{transaction_id}")
async def get_transaction(
    transaction_id: str,
    session: AsyncSession = Depends(get_session),  # noqa: B008
) -> dict:
    row = await session.get(TransactionDB, transaction_id)
    if row is None:
        raise LookupError(f"transaction {transaction_id} not found")
    return _transaction_response(to_record(row))
