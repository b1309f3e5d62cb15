"""
Unit tests for the HTTP transport.
"""
import asyncio

import pytest
import requests

from core.exceptions import FetchError
from core.network import NetworkService, build_query_params

URL = "https://tx.test/api/v1/about"


def make_response(status_code, body):
    response = requests.Response()
    response.status_code = status_code
    response._content = body.encode()
    response.url = URL
    return response


class FakeSession:
    """Returns queued responses or raises queued exceptions."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.requests = []

    def get(self, url, params=None, timeout=None):
        self.requests.append((url, params, timeout))
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def test_build_query_params():
    """Test booleans are lowercase and None values are dropped."""
    assert build_query_params({"trusted": False, "excludeSpam": True, "limit": 20, "offset": None}) == {
        "trusted": "false",
        "excludeSpam": "true",
        "limit": "20",
    }


def test_get_returns_json():
    """Test a 2xx JSON body is decoded."""
    session = FakeSession(make_response(200, '{"name": "Mainnet"}'))
    network = NetworkService(timeout=3, session=session)

    assert asyncio.run(network.get(URL, {"trusted": True})) == {"name": "Mainnet"}
    assert session.requests == [(URL, {"trusted": "true"}, 3)]


def test_http_error_becomes_fetch_error():
    """Test non-2xx responses carry their status code."""
    network = NetworkService(timeout=3, session=FakeSession(make_response(404, "not found")))

    with pytest.raises(FetchError) as exc_info:
        asyncio.run(network.get(URL))
    assert exc_info.value.status_code == 404


def test_invalid_json_becomes_fetch_error():
    """Test an undecodable body is a fetch failure."""
    network = NetworkService(timeout=3, session=FakeSession(make_response(200, "<html>")))
    with pytest.raises(FetchError):
        asyncio.run(network.get(URL))


def test_connection_errors_are_retried():
    """Test connection failures are retried up to the attempt limit."""
    session = FakeSession(
        requests.exceptions.ConnectionError("reset"),
        make_response(200, "[]"),
    )
    network = NetworkService(timeout=3, retry_attempts=2, session=session)

    assert asyncio.run(network.get(URL)) == []
    assert len(session.requests) == 2


def test_timeouts_are_not_retried():
    """Test a timeout fails immediately even with retries enabled."""
    session = FakeSession(requests.exceptions.ConnectTimeout("slow"), make_response(200, "[]"))
    network = NetworkService(timeout=3, retry_attempts=3, session=session)

    with pytest.raises(FetchError):
        asyncio.run(network.get(URL))
    assert len(session.requests) == 1
