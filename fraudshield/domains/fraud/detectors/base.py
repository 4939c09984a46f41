"""Abstract base class for fraud detectors."""

from abc import ABC, abstractmethod
from datetime import datetime

from ..config import FraudConfig
from ..history import TransactionHistory
from ..models import DetectorResult, FraudFlag, TransactionRecord


class FraudDetector(ABC):
    """Base class for all fraud detectors.

    A detector answers a single yes/no question about one transaction and
    maps to exactly one flag, so every raised flag can be explained in one
    sentence. Detectors are async because most of them read history.
    """

    detector_id: str
    flag: FraudFlag
    category: str  # "amount" | "velocity" | "patterns" | "geo" | "network"

    @abstractmethod
    async def detect(
        self,
        transaction: TransactionRecord,
        history: TransactionHistory,
        config: FraudConfig,
        now: datetime,
    ) -> DetectorResult:
        """Evaluate this detector and return a DetectorResult."""
        ...

    def _not_triggered(self, details: str = "", evidence: dict | None = None) -> DetectorResult:
        return DetectorResult(
            detector_id=self.detector_id,
            flag=self.flag,
            triggered=False,
            category=self.category,
            details=details,
            evidence=evidence or {},
        )

    def _triggered(self, details: str, evidence: dict | None = None) -> DetectorResult:
        return DetectorResult(
            detector_id=self.detector_id,
            flag=self.flag,
            triggered=True,
            category=self.category,
            details=details,
            evidence=evidence or {},
        )

    def failed(self, error: str) -> DetectorResult:
        """Degraded result used when the detector could not run."""
        return DetectorResult(
            detector_id=self.detector_id,
            flag=self.flag,
            triggered=False,
            category=self.category,
            details="Detector evaluation failed",
            error=error,
        )
