"""Fraud scoring facade: validate -> detectors -> verdict."""

import math
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any

import structlog
from pydantic import ValidationError

from .aggregator import DetectorAggregator
from .config import FraudConfig, default_config
from .history import DeadlineTransactionHistory, TransactionHistory
from .models import RiskTier, ScoringResult, ScoringStatus, TransactionRecord

logger = structlog.get_logger()

# (wire name, attribute name) of the fields scoring cannot run without
REQUIRED_FIELDS = (
    ("amount", "amount"),
    ("accountId", "account_id"),
    ("description", "description"),
    ("location", "location"),
)


class InvalidTransactionError(ValueError):
    """Raw input is not a scoreable transaction."""


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _lookup(raw: Mapping, wire_name: str, attr_name: str) -> Any:
    if wire_name in raw:
        return raw[wire_name]
    return raw.get(attr_name)


def _parse_amount(value: Any) -> float:
    if isinstance(value, bool):
        raise InvalidTransactionError("amount must be numeric")
    try:
        amount = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidTransactionError(f"amount must be numeric, got {value!r}") from exc
    if not math.isfinite(amount):
        raise InvalidTransactionError("amount must be finite")
    return amount


def parse_transaction(raw: Any, now: datetime) -> TransactionRecord:
    """Turn caller input into a TransactionRecord ready for scoring.

    Accepts a TransactionRecord or a mapping with camelCase or snake_case
    keys. A missing timestamp defaults to ``now``.

    Raises:
        InvalidTransactionError: input is not a record or lacks a required field.
    """
    if isinstance(raw, TransactionRecord):
        data: Mapping = raw.model_dump()
    elif isinstance(raw, Mapping):
        data = raw
    else:
        raise InvalidTransactionError(f"expected a transaction object, got {type(raw).__name__}")

    missing = [
        wire for wire, attr in REQUIRED_FIELDS if _is_blank(_lookup(data, wire, attr))
    ]
    if missing:
        raise InvalidTransactionError(f"missing required fields: {', '.join(missing)}")

    # Verdict fields on the input are outputs; scoring starts clean
    payload = {
        key: value
        for key, value in data.items()
        if key not in ("isFraudulent", "is_fraudulent", "fraudFlags", "fraud_flags")
    }
    amount = _parse_amount(_lookup(data, "amount", "amount"))
    # Zero counts as a missing amount
    if amount == 0:
        raise InvalidTransactionError("missing required fields: amount")
    payload["amount"] = amount
    if _is_blank(_lookup(data, "timestamp", "timestamp")):
        payload["timestamp"] = now

    try:
        return TransactionRecord.model_validate(payload)
    except ValidationError as exc:
        raise InvalidTransactionError(f"malformed transaction: {exc.error_count()} errors") from exc


class FraudScorer:
    """Entry point of the scoring engine.

    Holds only read-only configuration, a clock and the detector aggregator,
    so one instance can score any number of transactions concurrently.
    Every history call made on behalf of a scoring request is bounded by
    ``config.engine.history_timeout_seconds``.
    """

    def __init__(
        self,
        config: FraudConfig | None = None,
        history: TransactionHistory | None = None,
        clock: Callable[[], datetime] | None = None,
        aggregator: DetectorAggregator | None = None,
    ) -> None:
        self._config = config or default_config
        self._history = history
        self._clock = clock or _utcnow
        self._aggregator = aggregator or DetectorAggregator(config=self._config)

    @property
    def config(self) -> FraudConfig:
        return self._config

    @property
    def aggregator(self) -> DetectorAggregator:
        return self._aggregator

    def _rejected(self, reason: str) -> ScoringResult:
        return ScoringResult(
            fraud_flags=[],
            risk_tier=RiskTier.LOW,
            status=ScoringStatus.REJECTED,
            rejection_reason=reason,
        )

    async def score(
        self,
        raw_input: Any,
        history: TransactionHistory | None = None,
    ) -> ScoringResult:
        """Score raw caller input.

        Malformed input never raises: it yields a not-fraudulent, flag-free
        result with ``status == "rejected"``.
        """
        now = self._clock()
        try:
            record = parse_transaction(raw_input, now)
        except InvalidTransactionError as exc:
            logger.warning("transaction_rejected", reason=str(exc))
            return self._rejected(str(exc))

        return await self.score_record(record, history=history, now=now)

    async def score_record(
        self,
        record: TransactionRecord,
        history: TransactionHistory | None = None,
        now: datetime | None = None,
    ) -> ScoringResult:
        """Score an already validated record.

        Without a history (none passed, none configured) the result is the
        safe default verdict with ``status == "failed"``.
        """
        now = now or self._clock()
        if history is None:
            history = self._history
        if history is None:
            logger.error("scoring_failed", account_id=record.account_id, reason="no_history")
            return ScoringResult(status=ScoringStatus.FAILED)
        if record.timestamp is None:
            record = record.model_copy(update={"timestamp": now})

        bounded = DeadlineTransactionHistory(history, self._config.engine.history_timeout_seconds)
        try:
            verdict, _ = await self._aggregator.evaluate(record, bounded, now)
        except Exception:
            logger.exception("scoring_failed", account_id=record.account_id)
            return ScoringResult(status=ScoringStatus.FAILED)

        logger.info(
            "transaction_scored",
            account_id=record.account_id,
            is_fraudulent=verdict.is_fraudulent,
            fraud_flags=[f.value for f in verdict.fraud_flags],
            risk_tier=verdict.risk_tier.value,
        )
        return verdict
