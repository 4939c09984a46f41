"""Fraud alert delivery: WebSocket push to dashboards and Kafka publishing."""

import json
from datetime import UTC, datetime

import structlog
from fastapi import WebSocket

from .models import ScoringResult, TransactionRecord, explain_flags

logger = structlog.get_logger()


def build_alert(record: TransactionRecord, verdict: ScoringResult) -> dict:
    """JSON-ready alert body for a fraudulent transaction."""
    return {
        "type": "fraud_alert",
        "transaction": record.model_dump(mode="json", by_alias=True),
        "riskTier": verdict.risk_tier.value,
        "reasons": explain_flags(verdict.fraud_flags),
        "createdAt": datetime.now(UTC).isoformat(),
    }


class AlertBroadcaster:
    """Keeps the connected dashboard sockets and fans alerts out to them."""

    def __init__(self) -> None:
        self._connections: set[WebSocket] = set()

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self._connections.add(websocket)
        logger.info("alert_client_connected", connections=len(self._connections))

    def disconnect(self, websocket: WebSocket) -> None:
        self._connections.discard(websocket)
        logger.info("alert_client_disconnected", connections=len(self._connections))

    async def broadcast(self, alert: dict) -> int:
        """Send an alert to every client. Returns the number of clients reached."""
        delivered = 0
        for websocket in list(self._connections):
            try:
                await websocket.send_json(alert)
                delivered += 1
            except Exception:
                logger.warning("alert_client_send_failed", exc_info=True)
                self.disconnect(websocket)

        logger.info(
            "fraud_alert_broadcast",
            transaction_id=alert.get("transaction", {}).get("id"),
            delivered=delivered,
        )
        return delivered


async def publish_alert(alert: dict, producer, topic: str) -> None:
    """Publish an alert to a Kafka topic for downstream consumption.

    Args:
        alert: Alert body built by ``build_alert``.
        producer: An aiokafka AIOKafkaProducer instance, or None.
        topic: Destination topic.
    """
    if producer is None:
        logger.debug("kafka_producer_not_available")
        return

    transaction = alert.get("transaction", {})
    account_id = transaction.get("accountId") or ""
    try:
        await producer.send_and_wait(
            topic,
            value=json.dumps(alert).encode("utf-8"),
            key=account_id.encode("utf-8"),
        )
        logger.info("alert_published_to_kafka", transaction_id=transaction.get("id"), topic=topic)
    except Exception:
        logger.exception("alert_publish_failed", transaction_id=transaction.get("id"), topic=topic)


class AlertDispatcher:
    """Sends an alert for every fraudulent transaction to all configured sinks."""

    def __init__(self, broadcaster: AlertBroadcaster, producer=None, topic: str = "") -> None:
        self.broadcaster = broadcaster
        self.producer = producer
        self.topic = topic

    async def dispatch(self, record: TransactionRecord, verdict: ScoringResult) -> dict | None:
        if not verdict.is_fraudulent:
            return None

        alert = build_alert(record, verdict)
        await self.broadcaster.broadcast(alert)
        if self.producer is not None:
            await publish_alert(alert, self.producer, self.topic)

        logger.warning(
            "fraud_alert_dispatched",
            transaction_id=record.id,
            account_id=record.account_id,
            fraud_flags=[f.value for f in verdict.fraud_flags],
            risk_tier=verdict.risk_tier.value,
        )
        return alert
