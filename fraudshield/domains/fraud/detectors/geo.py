"""Location-based fraud detectors."""

from datetime import datetime

from ..config import FraudConfig
from ..history import TransactionHistory
from ..models import DetectorResult, FraudFlag, TransactionRecord
from .base import FraudDetector


def _normalize_location(location: str, mode: str) -> str:
    if mode == "normalized":
        return " ".join(location.split()).casefold()
    return location


class GeoAnomalyDetector(FraudDetector):
    """Triggers when the location differs from the account's latest prior transaction.

    This is a plain string comparison, not a distance check: "NYC" and
    "New York" count as different places.
    """

    detector_id = "geo_anomaly"
    flag = FraudFlag.GEO_ANOMALY
    category = "geo"

    async def detect(
        self,
        transaction: TransactionRecord,
        history: TransactionHistory,
        config: FraudConfig,
        now: datetime,
    ) -> DetectorResult:
        previous = await history.latest_by_account(transaction.account_id)
        if previous is None:
            return self._not_triggered(details="No prior transaction for account")

        mode = config.geo.location_match
        current = _normalize_location(transaction.location, mode)
        last = _normalize_location(previous.location, mode)
        evidence = {
            "current_location": transaction.location,
            "previous_location": previous.location,
            "match_mode": mode,
        }

        if current == last:
            return self._not_triggered(evidence=evidence)

        return self._triggered(
            details=f"Location changed from {previous.location!r} to {transaction.location!r}",
            evidence=evidence,
        )
