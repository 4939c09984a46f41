"""Pydantic models for the fraud domain."""

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from pydantic.alias_generators import to_camel


class FraudFlag(StrEnum):
    HIGH_VALUE = "high_value"
    FREQUENCY_ANOMALY = "frequency_anomaly"
    STATISTICAL_OUTLIER = "statistical_outlier"
    PATTERN_MATCH = "pattern_match"
    CLUSTER_OUTLIER = "cluster_outlier"
    TIME_ANOMALY = "time_anomaly"
    GEO_ANOMALY = "geo_anomaly"
    GRAPH_ANOMALY = "graph_anomaly"


FLAG_REASONS: dict[FraudFlag, str] = {
    FraudFlag.HIGH_VALUE: "Transaction amount exceeds the high-value threshold.",
    FraudFlag.FREQUENCY_ANOMALY: "Unusually many transactions from this account in the last day.",
    FraudFlag.STATISTICAL_OUTLIER: "Amount deviates strongly from the population of stored amounts.",
    FraudFlag.PATTERN_MATCH: "Suspicious keywords detected in the transaction description.",
    FraudFlag.CLUSTER_OUTLIER: "Amount lies far outside the typical cluster of transaction amounts.",
    FraudFlag.TIME_ANOMALY: "Burst of transactions from this account within a few minutes.",
    FraudFlag.GEO_ANOMALY: "Location differs from the account's previous transaction.",
    FraudFlag.GRAPH_ANOMALY: "Repeated or densely connected counterparties among related transactions.",
}

_FLAG_ORDER = {flag: idx for idx, flag in enumerate(FraudFlag)}


def order_flags(flags) -> list[FraudFlag]:
    """Deduplicate flags and sort them in enumeration order."""
    return sorted({FraudFlag(f) for f in flags}, key=_FLAG_ORDER.__getitem__)


def explain_flags(flags) -> list[str]:
    return [FLAG_REASONS[flag] for flag in order_flags(flags)]


class RiskTier(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ScoringStatus(StrEnum):
    SCORED = "scored"
    REJECTED = "rejected"
    FAILED = "failed"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TransactionRecord(CamelModel):
    """A transaction under evaluation or read back from history."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str | None = None
    account_id: str
    amount: float
    description: str = ""
    category: str = ""
    location: str = ""
    ip_address: str = ""
    timestamp: datetime | None = None
    fraud_flags: list[FraudFlag] = Field(default_factory=list)

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @field_validator("fraud_flags")
    @classmethod
    def _unique_flags(cls, value: list[FraudFlag]) -> list[FraudFlag]:
        return order_flags(value)

    @computed_field(alias="isFraudulent")
    @property
    def is_fraudulent(self) -> bool:
        return len(self.fraud_flags) > 0


class DetectorResult(CamelModel):
    detector_id: str
    flag: FraudFlag
    triggered: bool
    category: str = ""
    details: str = ""
    evidence: dict = Field(default_factory=dict)
    error: str | None = None


class ScoringResult(CamelModel):
    """Verdict returned by the scoring engine.

    ``is_fraudulent`` is derived from ``fraud_flags`` so the pair can never
    disagree. A rejected result (malformed input) carries the same verdict
    fields as a clean one; only ``status`` and ``rejection_reason`` differ.
    """

    fraud_flags: list[FraudFlag] = Field(default_factory=list)
    risk_tier: RiskTier = RiskTier.LOW
    status: ScoringStatus = ScoringStatus.SCORED
    rejection_reason: str | None = None
    detector_results: list[DetectorResult] = Field(default_factory=list)

    @field_validator("fraud_flags")
    @classmethod
    def _unique_flags(cls, value: list[FraudFlag]) -> list[FraudFlag]:
        return order_flags(value)

    @computed_field(alias="isFraudulent")
    @property
    def is_fraudulent(self) -> bool:
        return len(self.fraud_flags) > 0

    @property
    def reasons(self) -> list[str]:
        return explain_flags(self.fraud_flags)


class PopulationStats(BaseModel):
    count: int = 0
    mean: float = 0.0
    stddev: float = 0.0
