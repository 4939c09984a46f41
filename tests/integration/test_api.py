"""Integration tests for the HTTP API (in-process ASGI, mocked storage)."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from fraudshield.api.dependencies import get_alert_dispatcher, get_history
from fraudshield.db.database import get_session
from fraudshield.domains.fraud.alerts import AlertDispatcher
from fraudshield.domains.fraud.detectors import ALL_DETECTORS
from fraudshield.domains.fraud.history import InMemoryTransactionHistory
from fraudshield.main import app
from tests.conftest import make_raw, make_record, minutes_ago, override_get_session

pytestmark = pytest.mark.integration

BASE_URL = "http://test"


@pytest.fixture
def history() -> InMemoryTransactionHistory:
    return InMemoryTransactionHistory()


@pytest.fixture
def broadcaster():
    mock = MagicMock()
    mock.broadcast = AsyncMock(return_value=0)
    return mock


@pytest_asyncio.fixture
async def client(mock_db_session, history, broadcaster):
    app.dependency_overrides[get_session] = override_get_session(mock_db_session)
    app.dependency_overrides[get_history] = lambda: history
    app.dependency_overrides[get_alert_dispatcher] = lambda: AlertDispatcher(broadcaster)
    try:
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url=BASE_URL) as c:
            yield c
    finally:
        app.dependency_overrides.clear()


class TestTransactionEndpoints:
    @pytest.mark.asyncio
    async def test_create_clean_transaction(self, client, mock_db_session, broadcaster):
        response = await client.post("/api/v1/transactions", json=make_raw())

        assert response.status_code == 201
        data = response.json()
        assert data["isFraudulent"] is False
        assert data["fraudFlags"] == []
        assert data["riskTier"] == "low"
        assert data["id"]
        mock_db_session.add.assert_called_once()
        broadcaster.broadcast.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create_fraudulent_transaction_alerts(self, client, history, broadcaster):
        history.add(make_record(location="Boston", timestamp=minutes_ago(10)))
        payload = make_raw(amount=25_000, description="urgent gift cards", location="Lagos")

        response = await client.post("/api/v1/transactions", json=payload)

        assert response.status_code == 201
        data = response.json()
        assert data["fraudFlags"] == ["high_value", "pattern_match", "cluster_outlier", "geo_anomaly"]
        assert data["riskTier"] == "high"
        assert len(data["reasons"]) == 4
        broadcaster.broadcast.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_zero_amount_is_stored_with_safe_verdict(self, client, history, broadcaster):
        history.add(make_record(location="Paris", timestamp=minutes_ago(10)))

        response = await client.post("/api/v1/transactions", json=make_raw(amount=0))

        assert response.status_code == 201
        data = response.json()
        assert data["isFraudulent"] is False
        assert data["fraudFlags"] == []
        broadcaster.broadcast.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_field_is_422(self, client):
        payload = make_raw()
        del payload["location"]
        response = await client.post("/api/v1/transactions", json=payload)
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_stats_on_empty_store(self, client):
        response = await client.get("/api/v1/transactions/stats")
        assert response.status_code == 200
        data = response.json()
        assert data["totalTransactions"] == 0
        assert data["riskDistribution"] == {"low": 0, "medium": 0, "high": 0}
        assert data["totalAmount"] == 0.0
        assert data["recentTransactions"] == []
        assert data["topLocations"] == []
        assert len(data["timelineData"]) == 24

    @pytest.mark.asyncio
    async def test_unknown_transaction_is_404(self, client):
        response = await client.get("/api/v1/transactions/does-not-exist")
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_list_transactions(self, client):
        response = await client.get("/api/v1/transactions", params={"limit": 5})
        assert response.status_code == 200
        assert response.json() == []


class TestFraudEndpoints:
    @pytest.mark.asyncio
    async def test_score_without_storing(self, client, mock_db_session):
        response = await client.post("/api/v1/fraud/score", json=make_raw(amount=12_000))

        assert response.status_code == 200
        data = response.json()
        assert data["fraudFlags"] == ["high_value"]
        assert data["riskTier"] == "medium"
        assert data["status"] == "scored"
        assert "detectorResults" not in data
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_score_with_explanation(self, client):
        response = await client.post(
            "/api/v1/fraud/score", params={"explain": "true"}, json=make_raw()
        )
        assert len(response.json()["detectorResults"]) == len(ALL_DETECTORS)

    @pytest.mark.asyncio
    async def test_malformed_score_request_is_rejected_verdict(self, client):
        response = await client.post("/api/v1/fraud/score", json={"accountId": "acct-1"})

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "rejected"
        assert data["isFraudulent"] is False
        assert data["fraudFlags"] == []
        assert data["rejectionReason"]

    @pytest.mark.asyncio
    async def test_detector_catalogue(self, client):
        response = await client.get("/api/v1/fraud/detectors")
        assert response.status_code == 200
        data = response.json()
        assert data["detector_count"] == len(ALL_DETECTORS)
        assert data["thresholds"]["amount"]["high_value_threshold"] == 10_000

    @pytest.mark.asyncio
    async def test_alerts_listing(self, client):
        response = await client.get("/api/v1/fraud/alerts")
        assert response.status_code == 200
        assert response.json() == {"items": [], "limit": 50, "offset": 0}


class TestHealthEndpoints:
    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "uptime_seconds" in data

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, client):
        response = await client.get("/health", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"

    @pytest.mark.asyncio
    async def test_ready_with_database(self, client):
        with patch("fraudshield.db.database.check_db", AsyncMock(return_value=True)):
            response = await client.get("/ready")
        assert response.status_code == 200
        assert response.json()["database"] is True

    @pytest.mark.asyncio
    async def test_ready_without_database(self, client):
        with patch("fraudshield.db.database.check_db", AsyncMock(return_value=False)):
            response = await client.get("/ready")
        assert response.status_code == 503
        assert response.json()["status"] == "degraded"
