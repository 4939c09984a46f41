"""Amount-based fraud detectors."""

from datetime import datetime

from ..config import FraudConfig
from ..history import TransactionHistory
from ..models import DetectorResult, FraudFlag, TransactionRecord
from .base import FraudDetector


class HighValueDetector(FraudDetector):
    """Triggers for single transactions strictly above the high-value threshold."""

    detector_id = "high_value"
    flag = FraudFlag.HIGH_VALUE
    category = "amount"

    async def detect(
        self,
        transaction: TransactionRecord,
        history: TransactionHistory,
        config: FraudConfig,
        now: datetime,
    ) -> DetectorResult:
        amount = transaction.amount
        threshold = config.amount.high_value_threshold
        evidence = {"amount": amount, "threshold": threshold}

        if amount <= threshold:
            return self._not_triggered(evidence=evidence)

        return self._triggered(
            details=f"High-value transaction: ${amount:,.2f} (threshold: ${threshold:,.2f})",
            evidence=evidence,
        )


class StatisticalOutlierDetector(FraudDetector):
    """Triggers when the amount's z-score against all stored amounts is too high."""

    detector_id = "statistical_outlier"
    flag = FraudFlag.STATISTICAL_OUTLIER
    category = "amount"

    async def detect(
        self,
        transaction: TransactionRecord,
        history: TransactionHistory,
        config: FraudConfig,
        now: datetime,
    ) -> DetectorResult:
        stats = await history.amount_stats()
        threshold = config.amount.zscore_threshold

        # Need at least two amounts and some spread
        if stats.count < config.amount.min_population_size or stats.stddev == 0:
            return self._not_triggered(
                details="Population too small or without variance",
                evidence={"population": stats.count, "stddev": stats.stddev},
            )

        zscore = abs(transaction.amount - stats.mean) / stats.stddev
        evidence = {
            "zscore": zscore,
            "mean": stats.mean,
            "stddev": stats.stddev,
            "population": stats.count,
            "threshold": threshold,
        }

        if zscore <= threshold:
            return self._not_triggered(evidence=evidence)

        return self._triggered(
            details=f"Z-score {zscore:.2f} (mean: ${stats.mean:,.2f}, stddev: ${stats.stddev:,.2f})",
            evidence=evidence,
        )


class ClusterOutlierDetector(FraudDetector):
    """Triggers when the amount deviates from the population mean by more than k x mean."""

    detector_id = "cluster_outlier"
    flag = FraudFlag.CLUSTER_OUTLIER
    category = "amount"

    async def detect(
        self,
        transaction: TransactionRecord,
        history: TransactionHistory,
        config: FraudConfig,
        now: datetime,
    ) -> DetectorResult:
        stats = await history.amount_stats()
        if stats.count == 0:
            return self._not_triggered(details="No stored amounts")

        multiplier = config.amount.cluster_deviation_multiplier
        deviation = abs(transaction.amount - stats.mean)
        limit = stats.mean * multiplier
        evidence = {"deviation": deviation, "mean": stats.mean, "multiplier": multiplier}

        if deviation <= limit:
            return self._not_triggered(evidence=evidence)

        return self._triggered(
            details=(
                f"Amount deviates ${deviation:,.2f} from mean ${stats.mean:,.2f} "
                f"(limit: {multiplier:g}x mean)"
            ),
            evidence=evidence,
        )
