"""FastAPI dependency providers shared by the routers."""

from functools import lru_cache

from fraudshield.config import settings
from fraudshield.db.database import get_session_factory
from fraudshield.domains.fraud.alerts import AlertBroadcaster, AlertDispatcher
from fraudshield.domains.fraud.config import FraudConfig
from fraudshield.domains.fraud.history import TransactionHistory
from fraudshield.domains.fraud.repository import SqlTransactionHistory
from fraudshield.domains.fraud.scorer import FraudScorer

alert_broadcaster = AlertBroadcaster()
alert_dispatcher = AlertDispatcher(alert_broadcaster, producer=None, topic=settings.alerts_topic)


@lru_cache
def get_fraud_config() -> FraudConfig:
    """Fraud thresholds, read from the environment once per process."""
    return FraudConfig.from_env()


@lru_cache
def get_scorer() -> FraudScorer:
    return FraudScorer(config=get_fraud_config())


def get_history() -> TransactionHistory:
    return SqlTransactionHistory(get_session_factory())


def get_alert_dispatcher() -> AlertDispatcher:
    return alert_dispatcher


def get_alert_broadcaster() -> AlertBroadcaster:
    return alert_broadcaster
