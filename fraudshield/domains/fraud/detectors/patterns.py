"""Description pattern detectors."""

from datetime import datetime

from ..config import FraudConfig
from ..history import TransactionHistory
from ..models import DetectorResult, FraudFlag, TransactionRecord
from .base import FraudDetector


class KeywordPatternDetector(FraudDetector):
    """Triggers when the description contains a suspicious keyword.

    Matching is a case-insensitive substring test, so "abtcd" matches "btc".
    """

    detector_id = "pattern_match"
    flag = FraudFlag.PATTERN_MATCH
    category = "patterns"

    async def detect(
        self,
        transaction: TransactionRecord,
        history: TransactionHistory,
        config: FraudConfig,
        now: datetime,
    ) -> DetectorResult:
        description = (transaction.description or "").lower().strip()
        if not description:
            return self._not_triggered()

        found = [kw for kw in config.patterns.suspicious_keywords if kw.lower() in description]
        if not found:
            return self._not_triggered()

        return self._triggered(
            details=f"Suspicious keywords in description: {', '.join(found)}",
            evidence={"keywords": found},
        )
