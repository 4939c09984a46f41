"""Fraud detectors package.

Exports ALL_DETECTORS (every detector instance in evaluation order) and the
individual detector classes for direct use.
"""

from .amount import ClusterOutlierDetector, HighValueDetector, StatisticalOutlierDetector
from .base import FraudDetector
from .geo import GeoAnomalyDetector
from .network import GraphAnomalyDetector, NetworkDensityDetector
from .patterns import KeywordPatternDetector
from .velocity import FrequencyAnomalyDetector, TimeAnomalyDetector

# All detector instances in evaluation order
ALL_DETECTORS: list[FraudDetector] = [
    HighValueDetector(),
    FrequencyAnomalyDetector(),
    StatisticalOutlierDetector(),
    KeywordPatternDetector(),
    TimeAnomalyDetector(),
    GeoAnomalyDetector(),
    GraphAnomalyDetector(),
    ClusterOutlierDetector(),
    NetworkDensityDetector(),
]

__all__ = [
    "ALL_DETECTORS",
    "FraudDetector",
    # Amount
    "HighValueDetector",
    "StatisticalOutlierDetector",
    "ClusterOutlierDetector",
    # Velocity
    "FrequencyAnomalyDetector",
    "TimeAnomalyDetector",
    # Patterns
    "KeywordPatternDetector",
    # Geo
    "GeoAnomalyDetector",
    # Network
    "GraphAnomalyDetector",
    "NetworkDensityDetector",
]
