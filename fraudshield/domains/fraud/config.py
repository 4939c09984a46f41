"""Fraud detection configuration with sensible defaults."""

import os
from dataclasses import dataclass, field, replace


@dataclass(frozen=True)
class AmountThresholds:
    high_value_threshold: float = 10_000.0
    zscore_threshold: float = 3.0
    min_population_size: int = 2
    cluster_deviation_multiplier: float = 2.0


@dataclass(frozen=True)
class VelocityThresholds:
    frequency_window_hours: int = 24
    frequency_max: int = 10
    burst_window_minutes: int = 5
    burst_min_count: int = 3


@dataclass(frozen=True)
class PatternThresholds:
    suspicious_keywords: tuple[str, ...] = (
        "crypto",
        "btc",
        "gift",
        "urgent",
        "emergency",
        "bitcoin",
        "eth",
        "help",
    )


@dataclass(frozen=True)
class GeoThresholds:
    # "exact": literal string inequality, "normalized": trimmed and case-insensitive
    location_match: str = "exact"


@dataclass(frozen=True)
class NetworkThresholds:
    graph_related_limit: int = 10
    network_related_limit: int = 20
    network_min_accounts: int = 3
    network_density_threshold: float = 2.0


@dataclass(frozen=True)
class TierThresholds:
    high_min_flags: int = 3
    medium_min_flags: int = 1


@dataclass(frozen=True)
class EngineSettings:
    history_timeout_seconds: float = 2.0
    concurrent_detectors: bool = True


@dataclass(frozen=True)
class FraudConfig:
    amount: AmountThresholds = field(default_factory=AmountThresholds)
    velocity: VelocityThresholds = field(default_factory=VelocityThresholds)
    patterns: PatternThresholds = field(default_factory=PatternThresholds)
    geo: GeoThresholds = field(default_factory=GeoThresholds)
    network: NetworkThresholds = field(default_factory=NetworkThresholds)
    tiers: TierThresholds = field(default_factory=TierThresholds)
    engine: EngineSettings = field(default_factory=EngineSettings)

    @classmethod
    def from_env(cls) -> "FraudConfig":
        """Load config with env var overrides. Env vars use FRAUD_ prefix."""
        config = cls()

        # Amount overrides
        amount = config.amount
        if v := os.getenv("FRAUD_HIGH_VALUE_THRESHOLD"):
            amount = replace(amount, high_value_threshold=float(v))
        if v := os.getenv("FRAUD_ZSCORE_THRESHOLD"):
            amount = replace(amount, zscore_threshold=float(v))
        if v := os.getenv("FRAUD_CLUSTER_DEVIATION_MULTIPLIER"):
            amount = replace(amount, cluster_deviation_multiplier=float(v))

        # Velocity overrides
        velocity = config.velocity
        if v := os.getenv("FRAUD_FREQUENCY_WINDOW_HOURS"):
            velocity = replace(velocity, frequency_window_hours=int(v))
        if v := os.getenv("FRAUD_FREQUENCY_MAX"):
            velocity = replace(velocity, frequency_max=int(v))
        if v := os.getenv("FRAUD_BURST_WINDOW_MINUTES"):
            velocity = replace(velocity, burst_window_minutes=int(v))
        if v := os.getenv("FRAUD_BURST_MIN_COUNT"):
            velocity = replace(velocity, burst_min_count=int(v))

        # Pattern / geo overrides
        patterns = config.patterns
        if v := os.getenv("FRAUD_SUSPICIOUS_KEYWORDS"):
            keywords = tuple(k.strip().lower() for k in v.split(",") if k.strip())
            patterns = replace(patterns, suspicious_keywords=keywords)
        geo = config.geo
        if v := os.getenv("FRAUD_GEO_MATCH"):
            if v not in ("exact", "normalized"):
                raise ValueError(f"FRAUD_GEO_MATCH must be 'exact' or 'normalized', got {v!r}")
            geo = replace(geo, location_match=v)

        # Network overrides
        network = config.network
        if v := os.getenv("FRAUD_NETWORK_DENSITY_THRESHOLD"):
            network = replace(network, network_density_threshold=float(v))
        if v := os.getenv("FRAUD_NETWORK_MIN_ACCOUNTS"):
            network = replace(network, network_min_accounts=int(v))

        # Engine overrides
        engine = config.engine
        if v := os.getenv("FRAUD_HISTORY_TIMEOUT_SECONDS"):
            engine = replace(engine, history_timeout_seconds=float(v))
        if v := os.getenv("FRAUD_CONCURRENT_DETECTORS"):
            engine = replace(engine, concurrent_detectors=v.lower() in ("1", "true", "yes"))

        return replace(
            config,
            amount=amount,
            velocity=velocity,
            patterns=patterns,
            geo=geo,
            network=network,
            engine=engine,
        )


# Module-level default instance
default_config = FraudConfig()
