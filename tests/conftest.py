"""Shared fakes for the HTTP layer and the Discord sink"""
import threading

import pytest
import requests

from fight_notifier.services.notification_service import NotificationService
from fight_notifier.storage.models import Fight, Fighter


class FakeResponse:
    """Minimal stand-in for requests.Response"""

    def __init__(self, status_code=200, payload=None, invalid_json=False):
        self.status_code = status_code
        self._payload = payload
        self._invalid_json = invalid_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def json(self):
        if self._invalid_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload


class FakeSession:
    """Returns queued responses in order; the last one repeats"""

    def __init__(self, responses):
        self.responses = list(responses)
        self.headers = {}
        self.calls = []
        self.closed = False

    def get(self, url, timeout=None):
        self.calls.append(url)
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]

    def close(self):
        self.closed = True


class FakeFetchClient:
    """
    URL -> JSON fake for FetchClient

    A list value is consumed one item per call, the last item repeating.
    Unknown URLs return None like an exhausted retry budget.
    """

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.calls = []
        self._lock = threading.Lock()

    def fetch_json(self, url):
        with self._lock:
            self.calls.append(url)
            value = self.responses.get(url)
            if isinstance(value, list):
                return value.pop(0) if len(value) > 1 else value[0]
            return value

    def close(self):
        pass


class RecordingDiscordClient:
    """Collects messages instead of posting them"""

    def __init__(self, succeed=True):
        self.messages = []
        self.succeed = succeed

    def send_message(self, content):
        self.messages.append(content)
        return self.succeed


def make_fighter(name, **kwargs):
    return Fighter(id=kwargs.pop("id", None), display_name=name, **kwargs)


def make_fight(fight_id, names, event_id="E1", event_name="UFC 300", event_date=None, weight_class=None):
    return Fight(
        fight_id=fight_id,
        event_id=event_id,
        event_name=event_name,
        event_date=event_date,
        participants=[make_fighter(n) for n in names],
        weight_class=weight_class
    )


@pytest.fixture
def discord_sink():
    return RecordingDiscordClient()


@pytest.fixture
def notifications(discord_sink):
    return NotificationService(discord_sink, display_tz="America/Los_Angeles")
