import pytest
import requests

import notify as notify_mod
from config import Settings
from notify import notify, split_message

CONFIGURED = Settings(telegram_bot_token="123:abc", telegram_chat_id="42")


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload if payload is not None else {"ok": True}
        self.text = text

    def json(self):
        return self._payload


@pytest.fixture(autouse=True)
def _no_sleep_no_ci(monkeypatch):
    monkeypatch.setattr(notify_mod.time, "sleep", lambda s: None)
    monkeypatch.delenv("GITHUB_REPOSITORY", raising=False)
    monkeypatch.delenv("GITHUB_RUN_ID", raising=False)


def test_not_configured_is_silent_success(monkeypatch):
    monkeypatch.setattr(notify_mod.requests, "post", lambda *a, **k: pytest.fail("no request expected"))
    assert notify("hello", Settings()) is True


def test_sends_message(monkeypatch):
    sent = []

    def post(url, json=None, timeout=None):
        sent.append((url, json))
        return FakeResponse()

    monkeypatch.setattr(notify_mod.requests, "post", post)
    assert notify("OK=3 FAIL=0", CONFIGURED) is True
    url, payload = sent[0]
    assert url == "https://api.telegram.org/bot123:abc/sendMessage"
    assert payload["chat_id"] == "42"
    assert payload["text"] == "OK=3 FAIL=0"


def test_retries_then_gives_up(monkeypatch):
    calls = []

    def post(url, json=None, timeout=None):
        calls.append(1)
        raise requests.ConnectionError("down")

    monkeypatch.setattr(notify_mod.requests, "post", post)
    assert notify("x", CONFIGURED) is False
    assert len(calls) == 3


def test_retry_recovers(monkeypatch):
    responses = [FakeResponse(502, text="bad gateway"), FakeResponse(200, {"ok": True})]
    monkeypatch.setattr(notify_mod.requests, "post", lambda *a, **k: responses.pop(0))
    assert notify("x", CONFIGURED) is True


def test_run_link_appended_on_github_actions(monkeypatch):
    sent = []
    monkeypatch.setenv("GITHUB_REPOSITORY", "shop/sync")
    monkeypatch.setenv("GITHUB_RUN_ID", "99")
    monkeypatch.setattr(notify_mod.requests, "post",
                        lambda url, json=None, timeout=None: sent.append(json) or FakeResponse())
    notify("done", CONFIGURED)
    assert sent[0]["text"].endswith("https://github.com/shop/sync/actions/runs/99")


def test_split_message():
    assert split_message("abcde", limit=2) == ["ab", "cd", "e"]
    assert split_message("") == [""]
