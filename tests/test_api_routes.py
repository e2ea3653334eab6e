"""REST surface: envelopes, error mapping and engine settings."""

import asyncio

import pytest
from fastapi.testclient import TestClient

from forexai.container import create_test_container
from forexai.domain.entities.trade import Trade, TradeType
from forexai.domain.value_objects.tick import PriceTick
from forexai.infrastructure.persistence.repositories import InMemoryTradeRepository
from forexai.main import create_app
from tests.fakes import zigzag_uptrend


@pytest.fixture
def container():
    return create_test_container()


@pytest.fixture
def client(container):
    # Sin `with`: el lifespan (feed, pipeline) no arranca
    return TestClient(create_app(container))


class TestHealth:

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {
            "status": "success",
            "data": {"service": "forexai", "status": "ok"},
        }

    def test_status_before_start(self, client):
        data = client.get("/api/status").json()["data"]
        assert data["pipeline"]["running"] is False
        assert data["pipeline"]["feed"]["provider"] == "simulated"
        assert data["ws_clients"] == 0


class TestMarketData:

    def test_price_lookup(self, client, container):
        container.price_cache.update(PriceTick("EURUSD", 1.0852, 1.0851, 1.0853, 1_700_000_000.0))

        response = client.get("/api/prices/eurusd")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["symbol"] == "EURUSD"
        assert data["price"] == pytest.approx(1.0852)
        assert "EURUSD" in client.get("/api/prices").json()["data"]

    def test_unknown_price(self, client):
        response = client.get("/api/prices/GBPUSD")
        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    def test_candles_oldest_first(self, client, container):
        asyncio.run(container.market_data_repository.upsert_candles(zigzag_uptrend(60)))

        response = client.get("/api/candles/EURUSD", params={"timeframe": "5m", "limit": 10})

        data = response.json()["data"]
        assert data["count"] == 10
        timestamps = [c["timestamp"] for c in data["candles"]]
        assert timestamps == sorted(timestamps)

    def test_invalid_timeframe(self, client):
        response = client.get("/api/candles/EURUSD", params={"timeframe": "2m"})
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"


class TestAnalysis:

    def test_insufficient_data_is_hold(self, client):
        response = client.post("/api/analysis/EURUSD")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["action"] == "hold"
        assert data["confidence"] == 0.0

    def test_analysis_is_logged(self, client):
        client.post("/api/analysis/EURUSD")
        entries = client.get("/api/analysis/logs", params={"symbol": "EURUSD"}).json()["data"]
        assert len(entries) == 1


class TestTrades:

    def _open_trade(self, container):
        trade = Trade(
            trade_id="T-1", user_id="u-1", symbol="EURUSD", trade_type=TradeType.BUY,
            entry_price=1.1, amount=100.0, opened_at=1_700_000_000.0,
        )
        asyncio.run(container.trade_repository.add(trade))

    def test_close_and_double_close(self, client, container):
        self._open_trade(container)
        assert len(client.get("/api/trades/active").json()["data"]) == 1

        response = client.post("/api/trades/T-1/close", json={"exit_price": 1.111})
        assert response.status_code == 200
        assert response.json()["data"]["profit_loss"] == pytest.approx(1.0)
        assert client.get("/api/trades/active").json()["data"] == []

        again = client.post("/api/trades/T-1/close", json={"exit_price": 1.2})
        assert again.status_code == 400
        assert again.json()["code"] == "INVALID_TRADE"

    def test_user_history(self, client, container):
        self._open_trade(container)
        data = client.get("/api/trades", params={"user_id": "u-1"}).json()["data"]
        assert [t["trade_id"] for t in data] == ["T-1"]


class TestEngineSettings:

    def test_partial_update(self, client):
        response = client.put("/api/settings/engine", json={"confidence_threshold": 0.7})

        assert response.status_code == 200
        assert response.json()["data"]["confidence_threshold"] == 0.7
        current = client.get("/api/settings/engine").json()["data"]
        assert current["confidence_threshold"] == 0.7
        assert current["auto_trade_confidence_threshold"] == 0.8

    def test_invalid_update_keeps_config(self, client):
        response = client.put("/api/settings/engine", json={"confidence_threshold": 2.0})

        assert response.status_code == 422
        body = response.json()
        assert body["code"] == "CONFIG_VALIDATION"
        assert body["errors"][0]["field"] == "confidence_threshold"
        current = client.get("/api/settings/engine").json()["data"]
        assert current["confidence_threshold"] == 0.75

    def test_unknown_field_is_rejected(self, client):
        response = client.put("/api/settings/engine", json={"turbo": True})
        assert response.status_code == 422


class BrokenTradeRepository(InMemoryTradeRepository):

    async def list_by_user(self, user_id, limit=50):
        raise RuntimeError("database is gone")


class TestErrorEnvelope:

    def test_query_validation_uses_envelope(self, client):
        response = client.get("/api/trades", params={"user_id": "u-1", "limit": 0})

        assert response.status_code == 422
        body = response.json()
        assert body["status"] == "error"
        assert body["code"] == "VALIDATION_ERROR"
        assert body["errors"][0]["field"] == "query.limit"

    def test_missing_query_param_uses_envelope(self, client):
        response = client.get("/api/trades")
        assert response.status_code == 422
        assert response.json()["status"] == "error"

    def test_unexpected_error_uses_envelope(self):
        container = create_test_container(trade_repository=BrokenTradeRepository())
        client = TestClient(create_app(container), raise_server_exceptions=False)

        response = client.get("/api/trades", params={"user_id": "u-1"})

        assert response.status_code == 500
        assert response.json() == {
            "status": "error",
            "message": "Error interno del servidor",
            "code": "INTERNAL_ERROR",
        }
