"""FastAPI application entry point for FraudShield."""

import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fraudshield.api.dependencies import alert_dispatcher
from fraudshield.api.middleware.error_handler import global_exception_handler
from fraudshield.api.middleware.logging import StructuredLoggingMiddleware
from fraudshield.api.routes.fraud import router as fraud_router
from fraudshield.api.routes.fraud import ws_router as alerts_ws_router
from fraudshield.api.routes.health import router as health_router
from fraudshield.api.routes.transactions import router as transactions_router
from fraudshield.config import settings
from fraudshield.domains.fraud.history import HistoryUnavailableError
from fraudshield.shared.logging import setup_logging

logger = structlog.get_logger()

# Track app start time for uptime calculation
APP_START_TIME: float = 0.0


async def _start_alert_producer():
    from aiokafka import AIOKafkaProducer

    producer = AIOKafkaProducer(bootstrap_servers=settings.kafka_bootstrap_servers)
    await producer.start()
    return producer


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: startup and shutdown logic."""
    global APP_START_TIME
    APP_START_TIME = time.time()
    setup_logging(settings.log_level, json_logs=not settings.debug)

    logger.info(
        "fraudshield_starting",
        app_name=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
    )

    from fraudshield.db.database import init_db

    await init_db()

    producer = None
    if settings.kafka_alerts_enabled:
        try:
            producer = await _start_alert_producer()
            alert_dispatcher.producer = producer
            logger.info("kafka_alert_producer_started", topic=settings.alerts_topic)
        except Exception:
            logger.warning("kafka_alert_producer_failed_to_start", exc_info=True)

    yield

    if producer is not None:
        alert_dispatcher.producer = None
        await producer.stop()
    logger.info("fraudshield_shutting_down")


app = FastAPI(
    title="FraudShield",
    description="Real-time transaction fraud scoring service",
    version=settings.app_version,
    lifespan=lifespan,
)

# CORS for the dashboard during local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.debug else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(StructuredLoggingMiddleware)

for exc_class in (ValueError, LookupError, HistoryUnavailableError, Exception):
    app.add_exception_handler(exc_class, global_exception_handler)

app.include_router(health_router)
app.include_router(transactions_router)
app.include_router(fraud_router)
app.include_router(alerts_ws_router)


def get_uptime() -> int:
    """Get application uptime in seconds."""
    if APP_START_TIME == 0.0:
        return 0
    return int(time.time() - APP_START_TIME)
