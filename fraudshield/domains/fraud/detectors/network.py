"""Related-transaction (graph) detectors.

"Related" transactions are those of the same account plus any whose
description mentions the account id. It approximates a counterparty graph;
it is not a real graph traversal.
"""

from datetime import datetime

from ..config import FraudConfig
from ..history import TransactionHistory
from ..models import DetectorResult, FraudFlag, TransactionRecord
from .base import FraudDetector


class GraphAnomalyDetector(FraudDetector):
    """Triggers when a description repeats among the newest related transactions."""

    detector_id = "graph_anomaly"
    flag = FraudFlag.GRAPH_ANOMALY
    category = "network"

    async def detect(
        self,
        transaction: TransactionRecord,
        history: TransactionHistory,
        config: FraudConfig,
        now: datetime,
    ) -> DetectorResult:
        related = await history.find_related(
            transaction.account_id, config.network.graph_related_limit
        )
        if len(related) < 2:
            return self._not_triggered(evidence={"related_count": len(related)})

        seen: set[str] = set()
        for position, record in enumerate(related):
            if record.description in seen:
                return self._triggered(
                    details=f"Repeated counterparty description {record.description!r}",
                    evidence={
                        "repeated_description": record.description,
                        "position": position,
                        "related_count": len(related),
                    },
                )
            seen.add(record.description)

        return self._not_triggered(evidence={"related_count": len(related)})


class NetworkDensityDetector(FraudDetector):
    """Triggers when related transactions are dense relative to the accounts involved."""

    detector_id = "network_density"
    flag = FraudFlag.GRAPH_ANOMALY
    category = "network"

    async def detect(
        self,
        transaction: TransactionRecord,
        history: TransactionHistory,
        config: FraudConfig,
        now: datetime,
    ) -> DetectorResult:
        cfg = config.network
        related = await history.find_related(transaction.account_id, cfg.network_related_limit)
        accounts = {r.account_id for r in related}

        if len(accounts) < cfg.network_min_accounts:
            return self._not_triggered(
                evidence={"related_count": len(related), "distinct_accounts": len(accounts)}
            )

        density = len(related) / len(accounts)
        evidence = {
            "related_count": len(related),
            "distinct_accounts": len(accounts),
            "density": density,
            "threshold": cfg.network_density_threshold,
        }

        if density <= cfg.network_density_threshold:
            return self._not_triggered(evidence=evidence)

        return self._triggered(
            details=(
                f"{len(related)} related transactions across {len(accounts)} accounts "
                f"(density {density:.2f}, threshold: {cfg.network_density_threshold:g})"
            ),
            evidence=evidence,
        )
