"""Fraud scoring, detector catalogue and alert endpoints."""

from dataclasses import asdict
from typing import Any

import structlog
from fastapi import APIRouter, Body, Depends, Query, WebSocket, WebSocketDisconnect
from sqlalchemy.ext.asyncio import AsyncSession

from fraudshield.api.dependencies import (
    get_alert_broadcaster,
    get_fraud_config,
    get_history,
    get_scorer,
)
from fraudshield.db.database import get_session
from fraudshield.domains.fraud.alerts import AlertBroadcaster
from fraudshield.domains.fraud.config import FraudConfig
from fraudshield.domains.fraud.history import TransactionHistory
from fraudshield.domains.fraud.models import FLAG_REASONS, explain_flags
from fraudshield.domains.fraud.repository import list_transactions
from fraudshield.domains.fraud.scorer import FraudScorer

logger = structlog.get_logger()
router = APIRouter(prefix="/api/v1/fraud", tags=["fraud"])
ws_router = APIRouter(tags=["alerts"])


@router.post("/score")
async def score_transaction(
    raw: Any = Body(...),  # noqa: B008
    explain: bool = Query(default=False),
    history: TransactionHistory = Depends(get_history),  # noqa: B008
    scorer: FraudScorer = Depends(get_scorer),  # noqa: B008
) -> dict:
    """Score a transaction without storing it.

    Malformed input is not an HTTP error here: the engine answers with a
    clean verdict whose status is "rejected".
    """
    result = await scorer.score(raw, history=history)
    exclude = None if explain else {"detector_results"}
    body = result.model_dump(mode="json", by_alias=True, exclude=exclude)
    body["reasons"] = result.reasons
    return body


@router.get("/detectors")
async def list_detectors(
    scorer: FraudScorer = Depends(get_scorer),  # noqa: B008
    config: FraudConfig = Depends(get_fraud_config),  # noqa: B008
) -> dict:
    """Return the active detectors, their flags and the configured thresholds."""
    detectors = [
        {
            "detector_id": d.detector_id,
            "flag": d.flag.value,
            "category": d.category,
            "reason": FLAG_REASONS[d.flag],
        }
        for d in scorer.aggregator.detectors
    ]
    return {
        "detector_count": len(detectors),
        "detectors": detectors,
        "thresholds": asdict(config),
    }


@router.get("/alerts")
async def list_alerts(
    session: AsyncSession = Depends(get_session),  # noqa: B008
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
) -> dict:
    records = await list_transactions(session, limit=limit, offset=offset, fraudulent=True)
    return {
        "items": [
            {
                **r.model_dump(mode="json", by_alias=True),
                "reasons": explain_flags(r.fraud_flags),
            }
            for r in records
        ],
        "limit": limit,
        "offset": offset,
    }


@ws_router.websocket("/ws/alerts")
async def alerts_stream(
    websocket: WebSocket,
    broadcaster: AlertBroadcaster = Depends(get_alert_broadcaster),  # noqa: B008
) -> None:
    await broadcaster.connect(websocket)
    try:
        while True:
            # Clients do not send anything meaningful; keep the socket open
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        broadcaster.disconnect(websocket)
