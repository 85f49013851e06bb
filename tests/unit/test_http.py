from __future__ import annotations

import pytest
import requests

from ham_station.common.http import HttpClient, RetryConfig, TokenBucket, TransportError


class FakeResponse:
    def __init__(self, status_code: int, text: str = "", reason: str = ""):
        self.status_code = status_code
        self.text = text
        self.reason = reason


def test_http_get_text_success(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))
    seen = {}

    def fake_request(**kwargs):
        seen.update(kwargs)
        return FakeResponse(200, '{"status": "OK"}')

    monkeypatch.setattr(client.session, "request", fake_request)
    body = client.get_text("https://example.com/geocode", params={"address": "x"})

    assert body == '{"status": "OK"}'
    assert seen["method"] == "GET"
    assert seen["params"] == {"address": "x"}
    assert seen["headers"]["Accept"] == "application/json"


def test_http_non_200_is_transport_error(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(503, reason="Service Unavailable"))

    with pytest.raises(TransportError, match="503 Service Unavailable"):
        client.get_text("https://example.com")


def test_http_gives_up_after_max_attempts(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=5, max_wait=0))
    calls = []

    def failing(**kwargs):
        calls.append(kwargs)
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(client.session, "request", failing)
    failures = []

    with pytest.raises(TransportError, match="connection refused"):
        client.get_text("https://example.com", on_failure=lambda attempt, exc: failures.append(attempt))

    assert len(calls) == 5
    assert failures == [1, 2, 3, 4, 5]


def test_http_recovers_after_transient_failure(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=5, max_wait=0))
    responses = [FakeResponse(500), FakeResponse(200, "{}")]
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: responses.pop(0))
    failures = []

    body = client.get_text("https://example.com", on_failure=lambda attempt, exc: failures.append(attempt))

    assert body == "{}"
    assert failures == [1]


def test_token_bucket_allows_burst_up_to_capacity():
    bucket = TokenBucket(rate_per_sec=0.001, capacity=3)
    for _ in range(3):
        bucket.acquire()
    assert bucket.tokens < 1
