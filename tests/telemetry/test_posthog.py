from __future__ import annotations

import json
from typing import Any

import pytest
import requests

from cata.telemetry import Event
from cata.telemetry.posthog import CAPTURE_PATH, CaptureError, Posthog
from tests.telemetry.conftest import USER_ID


class DummyResponse:
    def __init__(self, status_code: int, payload: Any = None) -> None:
        self.status_code = status_code
        self._payload = payload or {"status": "Ok"}
        self.text = json.dumps(self._payload)

    def json(self) -> Any:
        return self._payload


class DummySession:
    def __init__(self, responses: list[DummyResponse] | None = None, error: Exception | None = None) -> None:
        self._responses = responses or []
        self._error = error
        self.calls: list[tuple[str, dict[str, Any], float | None]] = []

    def post(self, url: str, json: dict[str, Any] | None = None, timeout: float | None = None) -> DummyResponse:
        self.calls.append((url, json or {}, timeout))
        if self._error is not None:
            raise self._error
        if not self._responses:
            raise AssertionError("no more responses queued")
        return self._responses.pop(0)


def _event(**properties: Any) -> Event:
    props = {
        "name": "work",
        "$lib": "telemetry/python",
        "level": "info",
        "module": "app",
        "version": "1.0.0",
        **properties,
    }
    return Event(name="tool::activity", user_id=USER_ID, properties=props)


def test_capture_posts_event() -> None:
    session = DummySession([DummyResponse(200)])
    backend = Posthog("phc_key", name="tool", host="https://eu.example.com/", session=session, timeout=3)
    backend.capture(_event(activity="cmd::run"))

    assert len(session.calls) == 1
    url, body, timeout = session.calls[0]
    assert url == "https://eu.example.com" + CAPTURE_PATH
    assert timeout == 3
    assert body["api_key"] == "phc_key"
    assert body["event"] == "tool::activity"
    assert body["distinct_id"] == USER_ID
    assert body["properties"]["activity"] == "cmd::run"
    assert "timestamp" in body


def test_error_status_raises() -> None:
    session = DummySession([DummyResponse(401, {"error": "invalid key"})])
    backend = Posthog("bad", session=session)
    with pytest.raises(CaptureError, match="401"):
        backend.capture(_event())


def test_request_failure_raises() -> None:
    session = DummySession(error=requests.ConnectionError("refused"))
    backend = Posthog("phc_key", session=session)
    with pytest.raises(CaptureError, match="refused"):
        backend.capture(_event())


def test_invalid_event_is_not_sent() -> None:
    session = DummySession([DummyResponse(200)])
    backend = Posthog("phc_key", session=session)
    broken = Event(name="tool::activity", user_id="not-a-uuid", properties={"name": "x"})
    with pytest.raises(CaptureError, match="Invalid telemetry event"):
        backend.capture(broken)
    assert session.calls == []


def test_default_names_follow_tool_name() -> None:
    backend = Posthog("phc_key", name="deployer", session=DummySession())
    assert backend.names == ("deployer::activity", "deployer::error")
