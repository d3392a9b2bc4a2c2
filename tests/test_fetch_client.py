"""Tests for the rate-limited fetch client"""
import pytest

from conftest import FakeResponse, FakeSession
from fight_notifier.services.fetch_client import FetchClient, RateLimiter


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


def make_client(responses, retries=2):
    sleeps = []
    session = FakeSession(responses)
    client = FetchClient(
        session=session,
        rate_limiter=RateLimiter(0),
        retries=retries,
        retry_delay=0.5,
        sleep=sleeps.append
    )
    return client, session, sleeps


def test_success_returns_parsed_json():
    client, session, sleeps = make_client([FakeResponse(200, {"ok": True})])

    assert client.fetch_json("https://example.com/a") == {"ok": True}
    assert session.calls == ["https://example.com/a"]
    assert sleeps == []


def test_server_errors_exhaust_budget_and_return_none():
    """Three 500s with a budget of two attempts yields None without raising"""
    client, session, sleeps = make_client([FakeResponse(500)] * 3)

    assert client.fetch_json("https://example.com/a") is None
    assert len(session.calls) == 2
    assert sleeps == [pytest.approx(0.5)]


def test_rate_limited_response_waits_double_delay_then_retries():
    client, session, sleeps = make_client([FakeResponse(429), FakeResponse(200, [1, 2])])

    assert client.fetch_json("https://example.com/a") == [1, 2]
    assert len(session.calls) == 2
    assert sleeps == [pytest.approx(1.0)]


def test_invalid_json_is_retried_with_growing_delay():
    client, session, sleeps = make_client([FakeResponse(200, invalid_json=True)], retries=3)

    assert client.fetch_json("https://example.com/a") is None
    assert len(session.calls) == 3
    assert sleeps == [pytest.approx(0.5), pytest.approx(1.0)]


def test_close_closes_session():
    client, session, _ = make_client([FakeResponse(200, {})])

    client.close()

    assert session.closed


def test_rate_limiter_spaces_consecutive_requests():
    clock = FakeClock()
    limiter = RateLimiter(0.05, clock=clock, sleep=clock.sleep)

    limiter.wait()
    limiter.wait()
    clock.now += 1.0
    limiter.wait()

    assert clock.sleeps == [pytest.approx(0.05)]
