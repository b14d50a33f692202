"""
Tests for the API functionality.
"""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from crypto_calculator.api.service import app, get_price_gateway, get_storage
from crypto_calculator.shared.errors import UpstreamUnavailableError

CALCULATION = {
    "ownerId": "user-1",
    "asset": "bitcoin",
    "investmentAmount": 1000,
    "purchasePrice": 25000,
    "currentPrice": 50000,
    "purchaseDate": "2024-01-01T00:00:00Z",
    "currency": "usd",
    "calculationType": "profit-loss",
    "results": {"totalProfit": 1000, "roiPercentage": 100},
}


class TestAPI:
    """Test cases for the API endpoints."""

    @pytest.fixture(autouse=True)
    def setup_client(self, gateway, memory_storage, fake_client, rate_limiter):
        """Set up test client with a stubbed upstream."""
        self.gateway = gateway
        self.storage = memory_storage
        self.upstream = fake_client
        self.rate_limiter = rate_limiter
        app.dependency_overrides[get_price_gateway] = lambda: gateway
        app.dependency_overrides[get_storage] = lambda: memory_storage
        self.client = TestClient(app)
        yield
        app.dependency_overrides.clear()

    def test_health_check(self):
        """Test the health check endpoint."""
        response = self.client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["cachedPrices"] == 0

    def test_404_endpoint(self):
        """Test non-existent endpoint."""
        response = self.client.get("/nonexistent")
        assert response.status_code == 404
        data = response.json()
        assert data["error"] == "not_found"

    def test_get_prices(self):
        """Test listing all prices with the default currency."""
        response = self.client.get("/prices")

        assert response.status_code == 200
        data = response.json()
        assert [item["asset"] for item in data] == [
            "bitcoin",
            "ethereum",
            "binance-coin",
        ]
        bitcoin = data[0]
        assert bitcoin["currency"] == "usd"
        assert bitcoin["price"] == 50000
        assert bitcoin["change24h"] == 2.5
        assert "lastUpdated" in bitcoin
        assert data[2]["change24h"] is None
        assert len(self.upstream.calls) == 1

    def test_get_prices_omits_missing_assets(self):
        """Test that assets missing upstream are left out of the list."""
        del self.upstream.simple_prices["ethereum"]

        response = self.client.get("/prices")

        assert response.status_code == 200
        assert [item["asset"] for item in response.json()] == [
            "bitcoin",
            "binance-coin",
        ]

    def test_get_prices_upstream_failure(self):
        """Test that upstream failures are 500s with a structured body."""
        self.upstream.error = UpstreamUnavailableError("CoinGecko API error: 429")

        response = self.client.get("/prices")

        assert response.status_code == 500
        assert response.json() == {
            "error": "upstream_unavailable",
            "message": "CoinGecko API error: 429",
        }

    def test_get_prices_unexpected_failure(self):
        """Test that unexpected failures are reported as internal errors."""
        self.upstream.error = RuntimeError("boom")

        response = self.client.get("/prices")

        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "internal_error"
        assert data["message"] == "Failed to fetch crypto prices"

    def test_get_price(self):
        """Test fetching one price and that it is cached."""
        response = self.client.get("/prices/bitcoin?currency=usd")

        assert response.status_code == 200
        data = response.json()
        assert data["asset"] == "bitcoin"
        assert data["price"] == 50000
        assert data["change24h"] == 2.5
        assert self.client.get("/").json()["cachedPrices"] == 1

    @pytest.mark.parametrize("currency", ["USD", "Usd", "uSD"])
    def test_currency_is_case_insensitive(self, currency):
        """Test that currency codes are normalized to lowercase."""
        response = self.client.get(f"/prices/bitcoin?currency={currency}")

        assert response.status_code == 200
        assert response.json()["currency"] == "usd"

    @pytest.mark.parametrize("currency", ["us", "usdt", "u$d", "123"])
    def test_invalid_currency(self, currency):
        """Test that malformed currency codes are rejected."""
        response = self.client.get(f"/prices/bitcoin?currency={currency}")

        assert response.status_code == 422
        assert self.upstream.calls == []

    def test_get_price_unknown_asset(self):
        """Test that unknown assets are 404 without any upstream call."""
        response = self.client.get("/prices/not-a-real-coin")

        assert response.status_code == 404
        assert response.json()["error"] == "unsupported_asset"
        assert self.upstream.calls == []
        assert self.rate_limiter.dispatches == []

    def test_get_price_missing_upstream_data(self):
        """Test that a price missing from the upstream response is a 404."""
        del self.upstream.simple_prices["ethereum"]

        response = self.client.get("/prices/ethereum")

        assert response.status_code == 404
        assert response.json()["error"] == "price_data_not_found"

    def test_get_price_upstream_failure(self):
        """Test that upstream failures are 500s."""
        self.upstream.error = UpstreamUnavailableError("CoinGecko API is unreachable")

        response = self.client.get("/prices/bitcoin")

        assert response.status_code == 500
        assert response.json()["error"] == "upstream_unavailable"

    def test_get_cached_price(self):
        """Test that the cached route serves the last price without upstream calls."""
        self.client.get("/prices/bitcoin")
        self.upstream.error = UpstreamUnavailableError("CoinGecko API error: 429")

        response = self.client.get("/prices/bitcoin/cached?currency=USD")

        assert response.status_code == 200
        data = response.json()
        assert data["asset"] == "bitcoin"
        assert data["price"] == 50000
        assert len(self.upstream.calls) == 1
        assert len(self.rate_limiter.dispatches) == 1

    def test_get_cached_price_not_cached(self):
        """Test that a pair never fetched is a 404 and does not hit upstream."""
        response = self.client.get("/prices/ethereum/cached")

        assert response.status_code == 404
        assert response.json()["error"] == "price_not_cached"
        assert self.upstream.calls == []

    def test_get_cached_price_unknown_asset(self):
        """Test that unknown assets are 404 on the cached route too."""
        response = self.client.get("/prices/not-a-real-coin/cached")

        assert response.status_code == 404
        assert response.json()["error"] == "unsupported_asset"

    def test_get_price_history(self):
        """Test the history response shape and ordering."""
        self.upstream.market_chart = {
            "prices": [
                [1704153600000, Decimal("45000.5")],
                [1704067200000, Decimal("44000")],
            ]
        }

        response = self.client.get("/prices/bitcoin/history?currency=eur&days=7")

        assert response.status_code == 200
        assert response.json() == {
            "asset": "bitcoin",
            "currency": "eur",
            "prices": [
                {
                    "timestamp": 1704067200000,
                    "price": 44000,
                    "date": "2024-01-01T00:00:00.000Z",
                },
                {
                    "timestamp": 1704153600000,
                    "price": 45000.5,
                    "date": "2024-01-02T00:00:00.000Z",
                },
            ],
        }
        assert self.upstream.calls == [("market_chart", "bitcoin", "eur", 7)]

    def test_get_price_history_defaults(self):
        """Test that history defaults to usd and 30 days."""
        response = self.client.get("/prices/bitcoin/history")

        assert response.status_code == 200
        assert self.upstream.calls == [("market_chart", "bitcoin", "usd", 30)]

    @pytest.mark.parametrize("days", ["0", "-1", "366", "abc"])
    def test_get_price_history_invalid_days(self, days):
        """Test that out-of-range day counts are rejected."""
        response = self.client.get(f"/prices/bitcoin/history?days={days}")
        assert response.status_code == 422

    def test_get_price_history_unknown_asset(self):
        """Test that unknown assets are 404."""
        response = self.client.get("/prices/not-a-real-coin/history")

        assert response.status_code == 404
        assert response.json()["error"] == "unsupported_asset"

    def test_get_price_history_upstream_failure(self):
        """Test that upstream failures are 500s."""
        self.upstream.error = UpstreamUnavailableError("CoinGecko API error: 500")

        response = self.client.get("/prices/bitcoin/history")

        assert response.status_code == 500

    def test_create_and_list_calculations(self):
        """Test saving a calculation and reading it back by owner."""
        response = self.client.post("/calculations", json=CALCULATION)

        assert response.status_code == 200
        created = response.json()
        assert created["id"]
        assert created["createdAt"]
        assert created["ownerId"] == "user-1"
        assert created["investmentAmount"] == 1000
        assert created["results"] == CALCULATION["results"]

        response = self.client.get("/calculations/user-1")

        assert response.status_code == 200
        assert response.json() == [created]

    def test_calculations_accept_snake_case(self):
        """Test that snake_case field names are accepted too."""
        body = {
            "owner_id": "user-2",
            "asset": "ethereum",
            "investment_amount": "500.25",
            "purchase_price": 1500,
            "current_price": 3000,
            "purchase_date": "2024-01-01",
            "calculation_type": "future-projection",
            "results": {},
        }

        response = self.client.post("/calculations", json=body)

        assert response.status_code == 200
        assert response.json()["investmentAmount"] == 500.25
        assert response.json()["currency"] == "usd"

    @pytest.mark.parametrize(
        "changes",
        [
            {"investmentAmount": -5},
            {"purchasePrice": 0},
            {"calculationType": "lottery"},
            {"currency": "dollars"},
            {"results": "not-an-object"},
            {"unexpected": True},
        ],
    )
    def test_create_calculation_invalid_body(self, changes):
        """Test that invalid bodies are 400s and nothing is stored."""
        response = self.client.post("/calculations", json={**CALCULATION, **changes})

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_input"
        assert self.client.get("/calculations/user-1").json() == []

    def test_create_calculation_missing_field(self):
        """Test that missing required fields are 400s."""
        body = {key: value for key, value in CALCULATION.items() if key != "results"}

        response = self.client.post("/calculations", json=body)

        assert response.status_code == 400
        assert "results" in response.json()["message"]

    def test_create_calculation_malformed_json(self):
        """Test that a body that is not JSON is a 400."""
        response = self.client.post(
            "/calculations",
            content=b"{not json",
            headers={"content-type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_input"

    def test_list_calculations_for_unknown_owner(self):
        """Test that an owner without calculations gets an empty list."""
        response = self.client.get("/calculations/nobody")

        assert response.status_code == 200
        assert response.json() == []

    def test_list_calculations_store_failure(self):
        """Test that store failures are 500s."""

        async def broken(_: str):
            raise RuntimeError("disk on fire")

        self.storage.get_calculations_by_owner = broken

        response = self.client.get("/calculations/user-1")

        assert response.status_code == 500
        assert response.json()["error"] == "internal_error"

    def test_calculate_profit_loss(self):
        """Test computing profit/loss without saving."""
        response = self.client.post(
            "/calculate",
            json={
                "calculationType": "profit-loss",
                "investmentAmount": 1000,
                "purchasePrice": 25000,
                "currentPrice": 50000,
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["coinAmount"] == 0.04
        assert data["currentValue"] == 2000
        assert data["profitLoss"] == 1000
        assert data["roiPercentage"] == 100

    def test_calculate_dca(self):
        """Test computing a DCA summary."""
        response = self.client.post(
            "/calculate",
            json={
                "calculationType": "dca",
                "currentPrice": 200,
                "entries": [
                    {"investment": 100, "price": 100},
                    {"investment": 100, "price": 200},
                ],
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["initialInvestment"] == 200
        assert data["coinAmount"] == 1.5
        assert data["currentValue"] == 300

    @pytest.mark.parametrize(
        "body",
        [
            {"calculationType": "profit-loss", "currentPrice": 10},
            {
                "calculationType": "future-projection",
                "investmentAmount": 10,
                "purchasePrice": 10,
                "currentPrice": 10,
            },
            {"calculationType": "dca", "currentPrice": 10, "entries": []},
            {"calculationType": "portfolio", "currentPrice": 10},
        ],
    )
    def test_calculate_invalid_input(self, body):
        """Test that incomplete calculation inputs are 400s."""
        response = self.client.post("/calculate", json=body)

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_input"
