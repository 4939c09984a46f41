"""Runs the detector set and folds triggered flags into a verdict."""

import asyncio
from datetime import datetime

import structlog

from .config import FraudConfig, default_config
from .detectors import ALL_DETECTORS, FraudDetector
from .history import TransactionHistory
from .models import DetectorResult, RiskTier, ScoringResult, TransactionRecord, order_flags

logger = structlog.get_logger()


def classify_risk_tier(flag_count: int, config: FraudConfig) -> RiskTier:
    if flag_count >= config.tiers.high_min_flags:
        return RiskTier.HIGH
    if flag_count >= config.tiers.medium_min_flags:
        return RiskTier.MEDIUM
    return RiskTier.LOW


class DetectorAggregator:
    """Evaluates a transaction against every detector.

    1. Run all detectors (concurrently unless configured otherwise)
    2. A detector that raises degrades to "not triggered" and is logged
    3. Union triggered flags, ordered by the FraudFlag enumeration
    4. Risk tier from the number of distinct flags
    """

    def __init__(
        self,
        config: FraudConfig | None = None,
        detectors: list[FraudDetector] | None = None,
    ) -> None:
        self._config = config or default_config
        self._detectors = list(detectors) if detectors is not None else list(ALL_DETECTORS)
        logger.info("detector_aggregator_initialized", detector_count=len(self._detectors))

    @property
    def detectors(self) -> list[FraudDetector]:
        return list(self._detectors)

    async def _run_detector(
        self,
        detector: FraudDetector,
        transaction: TransactionRecord,
        history: TransactionHistory,
        now: datetime,
    ) -> DetectorResult:
        try:
            return await detector.detect(transaction, history, self._config, now)
        except Exception as exc:
            logger.warning(
                "detector_failed",
                detector_id=detector.detector_id,
                account_id=transaction.account_id,
                error=str(exc),
                exc_info=True,
            )
            return detector.failed(f"{type(exc).__name__}: {exc}")

    async def evaluate(
        self,
        transaction: TransactionRecord,
        history: TransactionHistory,
        now: datetime,
    ) -> tuple[ScoringResult, list[DetectorResult]]:
        """Evaluate a transaction against all detectors. Returns verdict and results."""
        if self._config.engine.concurrent_detectors:
            results = list(
                await asyncio.gather(
                    *(self._run_detector(d, transaction, history, now) for d in self._detectors)
                )
            )
        else:
            results = [
                await self._run_detector(d, transaction, history, now) for d in self._detectors
            ]

        flags = order_flags(r.flag for r in results if r.triggered)
        risk_tier = classify_risk_tier(len(flags), self._config)
        failed = [r.detector_id for r in results if r.error]

        verdict = ScoringResult(
            fraud_flags=flags,
            risk_tier=risk_tier,
            detector_results=results,
        )

        logger.info(
            "detectors_evaluated",
            account_id=transaction.account_id,
            fraud_flags=[f.value for f in flags],
            risk_tier=risk_tier.value,
            failed_detectors=failed,
        )

        return verdict, results
