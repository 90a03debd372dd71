"""
Basic tests for the premium engine API.
"""

import asyncio
import contextlib
from types import SimpleNamespace

import numpy as np
import pytest
from fastapi.testclient import TestClient
from premium_engine.main import app, drift_market_periodically

client = TestClient(app)

GOLDEN_PAYLOAD = {
    "age": 30,
    "years_licensed": 10,
    "accidents": 0,
    "violations": 0,
    "vehicle_type": "sedan",
    "vehicle_value": 25000,
    "location": "12345",
    "credit_score": 700,
    "annual_mileage": 12000,
    "coverage_level": "standard"
}

AS_OF = {"as_of": "2025-01-15T10:00:00"}


def test_root_endpoint():
    """Test the root endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["message"] == "Dynamic Premium Engine"


def test_health_endpoint():
    """Test the health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert "market_ticks" in response.json()


def test_request_id_header_is_echoed():
    """Test that the middleware returns the caller's request ID."""
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"
    assert "X-Response-Time-Ms" in response.headers


def test_quote_endpoint():
    """Test a quote for the reference applicant."""
    response = client.post("/v1/quotes", json=GOLDEN_PAYLOAD, params=AS_OF)
    assert response.status_code == 200

    body = response.json()
    assert body["risk_assessment"]["total_score"] == pytest.approx(0.15535)
    assert body["risk_assessment"]["risk_level"] == "Low"
    assert list(body["risk_assessment"]["breakdown"]) == [
        "age", "driving_history", "vehicle", "location", "credit", "mileage", "experience"
    ]
    assert body["pricing"]["risk_adjusted_premium"] == pytest.approx(1572.84)
    assert body["pricing"]["final_premium"] > 0
    assert body["explanation"]
    assert body["timestamp"].startswith("2025-01-15T10:00:00")


def test_quote_endpoint_is_idempotent_for_same_snapshot():
    """Test that repeating a request against the same market returns the same quote."""
    first = client.post("/v1/quotes", json=GOLDEN_PAYLOAD, params=AS_OF)
    second = client.post("/v1/quotes", json=GOLDEN_PAYLOAD, params=AS_OF)
    assert first.status_code == 200
    assert first.json() == second.json()


def test_quote_endpoint_rejects_out_of_range_credit_score():
    """Test that domain violations are rejected before pricing."""
    payload = {**GOLDEN_PAYLOAD, "credit_score": 900}
    response = client.post("/v1/quotes", json=payload)
    assert response.status_code == 422


def test_quote_endpoint_rejects_negative_mileage():
    payload = {**GOLDEN_PAYLOAD, "annual_mileage": -5}
    response = client.post("/v1/quotes", json=payload)
    assert response.status_code == 422


def test_quote_endpoint_accepts_unknown_categories():
    """Test that unknown vehicle type and coverage still produce a full quote."""
    payload = {**GOLDEN_PAYLOAD, "vehicle_type": "hovercraft", "coverage_level": "platinum"}
    response = client.post("/v1/quotes", json=payload, params=AS_OF)
    assert response.status_code == 200

    body = response.json()
    assert any("hovercraft" in w for w in body["risk_assessment"]["warnings"])
    assert body["pricing"]["multipliers"]["coverage"] == 1.0


def test_market_endpoint():
    """Test that the market endpoint returns state and analysis."""
    response = client.get("/v1/market")
    assert response.status_code == 200

    body = response.json()
    assert "competitive_index" in body["state"]
    assert body["analysis"]["adjustment"] > 0


def test_market_tick_endpoint():
    """Test that a forced tick advances the tick counter."""
    before = client.get("/v1/market").json()["state"]["tick_count"]
    response = client.post("/v1/market/tick")
    assert response.status_code == 200
    assert response.json()["tick_count"] == before + 1


def test_market_simulate_endpoint():
    response = client.post("/v1/market/simulate", json={"tick_count": 200, "seed": 7})
    assert response.status_code == 200

    body = response.json()
    assert body["tick_count"] == 200
    assert body["final_state"]["tick_count"] == 200
    stats = body["adjustment_statistics"]
    assert stats["min"] <= stats["mean"] <= stats["max"]


def test_market_simulate_endpoint_rejects_bad_tick_count():
    assert client.post("/v1/market/simulate", json={"tick_count": 0}).status_code == 422
    assert client.post("/v1/market/simulate", json={"tick_count": 20000}).status_code == 422


def test_startup_and_shutdown_manage_drift_ticker():
    """Test that the drift ticker starts with the app and is cancelled on shutdown."""
    with TestClient(app) as managed_client:
        assert app.state.drift_task is not None
        assert managed_client.get("/health").status_code == 200
    assert app.state.drift_task is None


def test_drift_ticker_survives_failed_tick(caplog):
    """Test that a failing tick is logged and the ticker keeps running."""

    class FailingMarket:
        calls = 0

        def drift(self, rng, now=None):
            self.calls += 1
            raise RuntimeError("drift failed")

    fake_app = SimpleNamespace(
        state=SimpleNamespace(market=FailingMarket(), drift_rng=np.random.default_rng(0))
    )

    async def run_ticker():
        task = asyncio.create_task(drift_market_periodically(fake_app, 0))
        while fake_app.state.market.calls < 3:
            await asyncio.sleep(0)
        assert not task.done()
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    asyncio.run(run_ticker())

    assert fake_app.state.market.calls >= 3
    assert "Market tick failed" in caplog.text
