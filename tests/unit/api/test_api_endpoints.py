"""Tests for the read-only HTTP API."""

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from cpamm import __version__
from cpamm.api.endpoints import get_deployment
from cpamm.api.main import app
from tests.helpers import ALICE, E18, add_liquidity


@pytest.fixture
def funded_pair(pair_setup):
    """5 token0 against 10 token1."""
    pair, token0, token1 = pair_setup
    add_liquidity(pair, ALICE.address, 5 * E18, 10 * E18)
    return pair, token0, token1


@pytest.fixture
def client(deployment) -> Iterator[TestClient]:
    """Test client serving the test deployment."""
    app.dependency_overrides[get_deployment] = lambda: deployment
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "version": __version__}


class TestPairsEndpoints:
    def test_empty_registry(self, client):
        response = client.get("/pairs")
        assert response.status_code == 200
        assert response.json() == {"pairs": [], "count": 0}

    def test_list_pairs(self, client, funded_pair):
        pair, token0, token1 = funded_pair

        response = client.get("/pairs")

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 1
        state = data["pairs"][0]
        assert state["address"] == pair.address
        assert (state["token0"], state["token1"]) == (token0.address, token1.address)
        assert state["reserve0"] == str(5 * E18)
        assert state["reserve1"] == str(10 * E18)
        assert state["totalSupply"] == str(pair.total_supply)
        assert state["kLast"] == "0"

    def test_lookup_in_either_order(self, client, funded_pair):
        pair, token0, token1 = funded_pair

        forward = client.get(f"/pairs/{token0.address}/{token1.address}")
        backward = client.get(f"/pairs/{token1.address}/{token0.address}")

        assert forward.status_code == backward.status_code == 200
        assert forward.json() == backward.json()
        assert forward.json()["address"] == pair.address

    def test_unknown_pair(self, client, token_a, token_b):
        response = client.get(f"/pairs/{token_a.address}/{token_b.address}")
        assert response.status_code == 404

    def test_malformed_identifier(self, client, token_a):
        response = client.get(f"/pairs/{token_a.address}/not-an-address")
        assert response.status_code == 422

    def test_identical_assets(self, client, token_a):
        response = client.get(f"/pairs/{token_a.address}/{token_a.address}")
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "IDENTICAL_ADDRESSES"


class TestQuoteEndpoint:
    def test_exact_in(self, client, funded_pair):
        _, token0, token1 = funded_pair
        request = {
            "path": [token0.address, token1.address],
            "kind": "exactIn",
            "amount": str(1 * E18),
        }

        response = client.post("/quote", json=request)

        assert response.status_code == 200
        data = response.json()
        assert data["amounts"] == [str(1 * E18), "1662497915624478906"]
        assert data["amountIn"] == str(1 * E18)
        assert data["amountOut"] == "1662497915624478906"

    def test_exact_out(self, client, funded_pair):
        _, token0, token1 = funded_pair
        request = {"path": [token0.address, token1.address], "kind": "exactOut", "amount": E18}

        response = client.post("/quote", json=request)

        assert response.status_code == 200
        assert response.json()["amountIn"] == "557227237267357629"
        assert response.json()["amountOut"] == str(1 * E18)

    def test_output_exceeding_reserve(self, client, funded_pair):
        _, token0, token1 = funded_pair
        request = {
            "path": [token0.address, token1.address],
            "kind": "exactOut",
            "amount": str(10 * E18),
        }

        response = client.post("/quote", json=request)

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INSUFFICIENT_LIQUIDITY"

    def test_missing_hop(self, client, funded_pair, token_a):
        _, token0, _ = funded_pair
        request = {"path": [token0.address, token_a.address], "amount": "1"}
        response = client.post("/quote", json=request)
        assert response.status_code == 404

    @pytest.mark.parametrize(
        "request_body",
        [
            {"path": ["0x" + "11" * 20], "amount": "1"},
            {"path": ["0x" + "11" * 20, "0x" + "22" * 20], "amount": "0"},
            {"path": ["0x" + "11" * 20, "0x" + "22" * 20], "amount": "-5"},
            {"path": ["0x" + "11" * 20, "0x" + "22" * 20], "amount": "1", "kind": "both"},
            {"path": ["0x11", "0x" + "22" * 20], "amount": "1"},
        ],
    )
    def test_invalid_request(self, client, request_body):
        response = client.post("/quote", json=request_body)
        assert response.status_code == 422
