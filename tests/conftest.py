import json
from datetime import datetime

import pytest
import requests

from evolve_monitor.config import AppConfig, UpstreamConfig
from evolve_monitor.models import FetchResult
from evolve_monitor.session import SessionStore
from evolve_monitor.sources import MonitoringClient

# NIST SP 800-38A F.2.1, first block of CBC-AES128
KEY_HEX = "2b7e151628aed2a6abf7158809cf4f3c"
IV_HEX = "000102030405060708090a0b0c0d0e0f"
CIPHERTEXT_HEX = "7649abac8119b246cee98e9b12e9197d"
PLAINTEXT_HEX = "6bc1bee22e409f96e93d7e117393172a"

API_URL = "https://panel.test/api/userPanel.php?method=getMonitoring"


def challenge_page(*tokens: str) -> str:
    """Challenge page in the shape the panel serves, embedding the given hex strings."""
    args = ",".join(f'toNumbers("{t}")' for t in tokens)
    return (
        "<!DOCTYPE html><html><head>"
        '<script type="text/javascript" src="/aes.min.js"></script></head><body>'
        "<script>function toNumbers(d){var e=[];d.replace(/(..)/g,function(d){e.push(parseInt(d,16))});return e}"
        f"var abc=[{args}];"
        'document.cookie="R3ACTLB="+toHex(slowAES.decrypt(abc[2],2,abc[0],abc[1]))+"; path=/";'
        'location.href="/api/userPanel.php";</script></body></html>'
    )


def make_response(status: int = 200, json_body=None, text: str = "", headers: dict = None) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response.url = API_URL
    response.encoding = "utf-8"
    if json_body is not None:
        text = json.dumps(json_body)
        response.headers["Content-Type"] = "application/json"
    else:
        response.headers["Content-Type"] = "text/html"
    response.headers.update(headers or {})
    response._content = text.encode("utf-8")
    return response


class FakeHTTP:
    """Stands in for requests.Session: replays queued responses and records calls."""

    def __init__(self, *replies):
        self.headers = {}
        self.replies = list(replies)
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append({"url": url, **kwargs})
        if not self.replies:
            raise AssertionError("unexpected request")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    @property
    def cookies_sent(self):
        return [call["headers"]["Cookie"] for call in self.calls]


class FakeClock:
    def __init__(self, hour: int = 10):
        self.now = datetime(2024, 5, 1, hour, 15)

    def __call__(self) -> datetime:
        return self.now

    def set_hour(self, hour: int) -> None:
        self.now = self.now.replace(hour=hour)


class StubClient:
    """Monitoring client double returning queued FetchResults."""

    def __init__(self, *results: FetchResult):
        self.results = list(results)
        self.calls = []

    def fetch(self, category):
        self.calls.append(category)
        return self.results.pop(0)


class FailingChannel:
    """Channel that fails for some recipients and records the rest."""

    def __init__(self, failing=()):
        self.failing = set(failing)
        self.sent = []

    def send(self, recipient_id, text, rich_text=False):
        if recipient_id in self.failing:
            raise RuntimeError("chat not found")
        self.sent.append((recipient_id, text, rich_text))


@pytest.fixture()
def upstream_config():
    return UpstreamConfig(
        api_url=API_URL,
        cookies="PHPSESSID=abc; theme=dark",
        origin="https://panel.test",
        referer="https://panel.test/dashboard/monitoring",
        request_timeout=5,
        challenge_retry_delay=1.0,
    )


@pytest.fixture()
def app_config():
    return AppConfig(low_products_threshold=2000, message_max_length=4000, list_send_delay=0)


@pytest.fixture()
def sleeps():
    return []


@pytest.fixture()
def make_client(upstream_config, sleeps):
    def factory(*replies, cookies="PHPSESSID=abc; theme=dark"):
        http = FakeHTTP(*replies)
        store = SessionStore(initial_cookies=cookies)
        client = MonitoringClient(store, config=upstream_config, http=http, sleep=sleeps.append)
        return client, http, store
    return factory
