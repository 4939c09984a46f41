"""Velocity-based fraud detectors."""

from datetime import datetime, timedelta

from ..config import FraudConfig
from ..history import TransactionHistory
from ..models import DetectorResult, FraudFlag, TransactionRecord
from .base import FraudDetector


class FrequencyAnomalyDetector(FraudDetector):
    """Triggers when the account's trailing-window transaction count exceeds the max."""

    detector_id = "frequency_anomaly"
    flag = FraudFlag.FREQUENCY_ANOMALY
    category = "velocity"

    async def detect(
        self,
        transaction: TransactionRecord,
        history: TransactionHistory,
        config: FraudConfig,
        now: datetime,
    ) -> DetectorResult:
        window_hours = config.velocity.frequency_window_hours
        threshold = config.velocity.frequency_max
        since = now - timedelta(hours=window_hours)

        count = await history.count_by_account_since(transaction.account_id, since)
        evidence = {"count": count, "threshold": threshold, "window_hours": window_hours}

        if count <= threshold:
            return self._not_triggered(evidence=evidence)

        return self._triggered(
            details=f"{count} transactions in last {window_hours}h (threshold: {threshold})",
            evidence=evidence,
        )


class TimeAnomalyDetector(FraudDetector):
    """Triggers on a burst of transactions ending at this transaction's timestamp."""

    detector_id = "time_anomaly"
    flag = FraudFlag.TIME_ANOMALY
    category = "velocity"

    async def detect(
        self,
        transaction: TransactionRecord,
        history: TransactionHistory,
        config: FraudConfig,
        now: datetime,
    ) -> DetectorResult:
        if not transaction.account_id or transaction.timestamp is None:
            return self._not_triggered()

        window_minutes = config.velocity.burst_window_minutes
        min_count = config.velocity.burst_min_count
        end = transaction.timestamp
        start = end - timedelta(minutes=window_minutes)

        # Query returns everything since start; the upper bound is applied here
        candidates = await history.find_by_account_since(transaction.account_id, start)
        count = sum(1 for r in candidates if r.timestamp is not None and start <= r.timestamp <= end)
        evidence = {"count": count, "min_count": min_count, "window_minutes": window_minutes}

        if count < min_count:
            return self._not_triggered(evidence=evidence)

        return self._triggered(
            details=f"{count} transactions within {window_minutes}min (threshold: {min_count})",
            evidence=evidence,
        )
