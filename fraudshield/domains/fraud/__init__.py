"""Fraud detection domain."""

from .aggregator import DetectorAggregator
from .config import FraudConfig
from .detectors import ALL_DETECTORS
from .history import (
    DeadlineTransactionHistory,
    HistoryUnavailableError,
    InMemoryTransactionHistory,
    TransactionHistory,
)
from .models import (
    FLAG_REASONS,
    DetectorResult,
    FraudFlag,
    RiskTier,
    ScoringResult,
    ScoringStatus,
    TransactionRecord,
)
from .scorer import FraudScorer, InvalidTransactionError

__all__ = [
    "ALL_DETECTORS",
    "DeadlineTransactionHistory",
    "DetectorAggregator",
    "DetectorResult",
    "FLAG_REASONS",
    "FraudConfig",
    "FraudFlag",
    "FraudScorer",
    "HistoryUnavailableError",
    "InMemoryTransactionHistory",
    "InvalidTransactionError",
    "RiskTier",
    "ScoringResult",
    "ScoringStatus",
    "TransactionHistory",
    "TransactionRecord",
]
