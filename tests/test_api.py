"""Tests for the SerpApi proxy API."""

import pytest
import requests
from fastapi.testclient import TestClient
from unittest.mock import patch, Mock
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from api.main import app

client = TestClient(app)


@pytest.fixture
def api_key(monkeypatch):
    monkeypatch.setenv("SERPAPI_API_KEY", "test-key")
    return "test-key"


def upstream_response(status_code, body):
    resp = Mock()
    resp.status_code = status_code
    resp.json.return_value = body
    return resp


def test_health_endpoint():
    """Test the health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert "timestamp" in data
    assert "version" in data


def test_root_endpoint():
    """Test the root endpoint returns API info."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert "SerpApi Events Proxy" in data["name"]
    assert "docs" in data
    assert "health" in data


def test_search_requires_server_key(monkeypatch):
    """Test the proxy refuses to run without a server side key."""
    monkeypatch.delenv("SERPAPI_API_KEY", raising=False)
    response = client.get("/search", params={"q": "events"})
    assert response.status_code == 500
    assert "SERPAPI_API_KEY" in response.json()["error"]


def test_search_requires_query(api_key):
    """Test a missing q parameter is a client error."""
    response = client.get("/search")
    assert response.status_code == 400
    assert response.json() == {"error": "Missing required query param: q"}


def test_search_passes_results_through(api_key):
    """Test successful upstream results are returned unchanged."""
    body = {"events_results": [{"title": "Fall Festival"}]}
    with patch("ingest.serpapi_client.search", return_value=upstream_response(200, body)) as mock_search:
        response = client.get(
            "/search",
            params={"q": "events in Boerne, TX", "hl": "en", "start": 10},
        )

    assert response.status_code == 200
    assert response.json() == body
    mock_search.assert_called_once()
    params, key = mock_search.call_args[0]
    assert params["q"] == "events in Boerne, TX"
    assert params["hl"] == "en"
    assert params["start"] == 10
    assert params["location"] is None
    assert key == api_key


def test_search_passes_upstream_errors_through(api_key):
    """Test upstream error status and body are forwarded."""
    body = {"error": "Invalid API key."}
    with patch("ingest.serpapi_client.search", return_value=upstream_response(401, body)):
        response = client.get("/search", params={"q": "events"})

    assert response.status_code == 401
    assert response.json() == body


def test_search_network_failure(api_key):
    """Test transport failures become a 500 with the error message."""
    with patch(
        "ingest.serpapi_client.search",
        side_effect=requests.ConnectionError("connection refused"),
    ):
        response = client.get("/search", params={"q": "events"})

    assert response.status_code == 500
    assert response.json() == {"error": "connection refused"}
