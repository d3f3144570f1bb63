"""Shared fakes: scripted requests sessions, a fake clock and an event capture."""
from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Union

import pytest
import requests

from connectors.hubspot.auth import Credentials
from connectors.hubspot.executor import RequestExecutor
from connectors.runtime.events import RuntimeEvent, set_emitter


def make_response(
    status: int = 200,
    body: Any = None,
    *,
    headers: Optional[Dict[str, str]] = None,
    url: str = "https://api.hubapi.com/",
) -> requests.Response:
    r = requests.Response()
    r.status_code = status
    r.url = url
    r.encoding = "utf-8"
    r.headers["Content-Type"] = "application/json"
    if headers:
        r.headers.update(headers)
    if body is None:
        r._content = b""
    elif isinstance(body, bytes):
        r._content = body
    elif isinstance(body, str):
        r._content = body.encode("utf-8")
    else:
        r._content = json.dumps(body).encode("utf-8")
    return r


Scripted = Union[requests.Response, BaseException]


class ScriptedHttp:
    """
    Hands out FakeSessions that all pop from one shared script.

    The last scripted entry repeats once the script runs out, so "always 500"
    is a one-element script.
    """

    def __init__(self, *script: Scripted):
        self.script: List[Scripted] = list(script)
        self.calls: List[Dict[str, Any]] = []
        self.sessions_opened = 0
        self.sessions_closed = 0

    def push(self, *items: Scripted) -> None:
        self.script.extend(items)

    def next_outcome(self) -> Scripted:
        if not self.script:
            raise AssertionError("ScriptedHttp ran out of responses")
        if len(self.script) == 1:
            return self.script[0]
        return self.script.pop(0)

    def factory(self) -> "FakeSession":
        self.sessions_opened += 1
        return FakeSession(self)


class FakeSession:
    def __init__(self, http: ScriptedHttp):
        self._http = http

    def __enter__(self) -> "FakeSession":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        self._http.sessions_closed += 1

    def request(self, **kwargs: Any) -> requests.Response:
        self._http.calls.append(kwargs)
        outcome = self._http.next_outcome()
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class FakeClock:
    """monotonic() stand-in that only moves when sleep() is called."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_executor(clock: FakeClock):
    def _make(http: ScriptedHttp, credentials: Optional[Credentials] = None) -> RequestExecutor:
        return RequestExecutor(
            credentials or Credentials(api_key="test-key"),
            session_factory=http.factory,
            sleep=clock.sleep,
            clock=clock,
        )

    return _make


@pytest.fixture
def events():
    captured: List[RuntimeEvent] = []
    set_emitter(captured.append)
    yield captured
    set_emitter(None)
