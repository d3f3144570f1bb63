"""Request executor: credentials, status classification and retry policies."""
from __future__ import annotations

import pytest
import requests

from connectors.hubspot.auth import Credentials
from connectors.hubspot.errors import AuthorizationError, ClientError, RequestFailedError
from connectors.hubspot.executor import (
    READ_RETRY_POLICY,
    WRITE_RETRY_POLICY,
    HttpRequest,
    RequestExecutor,
    RetryPolicy,
)

from .conftest import ScriptedHttp, make_response

GET = HttpRequest(method="GET", url="https://api.hubapi.com/contacts/v1/lists", params=(("count", "100"),))


def test_read_succeeds_on_third_attempt(make_executor, clock) -> None:
    http = ScriptedHttp(make_response(500), make_response(500), make_response(200, {"lists": []}))
    resp = make_executor(http).execute(GET, READ_RETRY_POLICY)
    assert resp.status_code == 200
    assert len(http.calls) == 3
    # read path retries immediately
    assert clock.sleeps == []


def test_read_gives_up_after_three_attempts(make_executor) -> None:
    http = ScriptedHttp(make_response(503))
    with pytest.raises(RequestFailedError) as ei:
        make_executor(http).execute(GET, READ_RETRY_POLICY)
    assert ei.value.attempts == 3
    assert ei.value.last_status == 503
    assert len(http.calls) == 3


def test_403_fails_after_one_attempt(make_executor) -> None:
    http = ScriptedHttp(make_response(403, {"message": "forbidden"}))
    with pytest.raises(AuthorizationError) as ei:
        make_executor(http).execute(GET)
    assert ei.value.status_code == 403
    assert len(http.calls) == 1


def test_other_4xx_is_client_error(make_executor) -> None:
    http = ScriptedHttp(make_response(404, {"message": "nope"}))
    with pytest.raises(ClientError) as ei:
        make_executor(http).execute(GET)
    assert not isinstance(ei.value, AuthorizationError)
    assert ei.value.status_code == 404
    assert len(http.calls) == 1


def test_transport_failure_is_retried(make_executor) -> None:
    http = ScriptedHttp(requests.ConnectionError("reset"), make_response(200, {"lists": []}))
    assert make_executor(http).execute(GET).status_code == 200
    assert len(http.calls) == 2


def test_transport_failure_exhaustion_keeps_cause(make_executor) -> None:
    http = ScriptedHttp(requests.Timeout("slow"))
    with pytest.raises(RequestFailedError) as ei:
        make_executor(http).execute(GET, RetryPolicy(max_attempts=2))
    assert ei.value.last_status is None
    assert isinstance(ei.value.__cause__.__cause__, requests.Timeout)


def test_dropped_body_is_retried(make_executor) -> None:
    http = ScriptedHttp(
        requests.exceptions.ChunkedEncodingError("connection broken"),
        make_response(200, {"lists": []}),
    )
    assert make_executor(http).execute(GET).status_code == 200
    assert len(http.calls) == 2


def test_dropped_body_exhaustion_raises_request_failed(make_executor) -> None:
    http = ScriptedHttp(requests.exceptions.ChunkedEncodingError("connection broken"))
    with pytest.raises(RequestFailedError) as ei:
        make_executor(http).execute(GET, READ_RETRY_POLICY)
    assert ei.value.attempts == 3
    assert ei.value.last_status is None
    assert isinstance(ei.value.__cause__.__cause__, requests.exceptions.ChunkedEncodingError)


def test_undecodable_body_is_retried(make_executor) -> None:
    http = ScriptedHttp(requests.exceptions.ContentDecodingError("bad gzip"), make_response(200, {}))
    assert make_executor(http).execute(GET).status_code == 200
    assert len(http.calls) == 2


class TickingClock:
    """Advances a fixed step on every reading."""

    def __init__(self, step: float) -> None:
        self.now = 0.0
        self.step = step

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        return value


def test_elapsed_ms_uses_injected_clock(events) -> None:
    http = ScriptedHttp(make_response(200, {}))
    ex = RequestExecutor(
        Credentials(api_key="k"),
        session_factory=http.factory,
        sleep=lambda s: None,
        clock=TickingClock(0.25),
    )
    ex.execute(GET)
    ok = [e for e in events if e.message == "http.request.ok"]
    assert len(ok) == 1
    # one reading before the send, one after
    assert ok[0].fields["elapsed_ms"] == 250


def test_api_key_goes_first_in_query(make_executor) -> None:
    http = ScriptedHttp(make_response(200, {}))
    make_executor(http, Credentials(api_key="secret")).execute(GET)
    call = http.calls[0]
    assert call["params"] == [("hapikey", "secret"), ("count", "100")]
    assert "Authorization" not in call["headers"]


def test_bearer_token_wins_over_api_key(make_executor) -> None:
    http = ScriptedHttp(make_response(200, {}))
    make_executor(http, Credentials(api_key="secret", access_token="tok")).execute(GET)
    call = http.calls[0]
    assert call["headers"]["Authorization"] == "Bearer tok"
    assert ("hapikey", "secret") not in call["params"]


def test_fresh_session_per_execute(make_executor) -> None:
    http = ScriptedHttp(make_response(200, {}))
    ex = make_executor(http)
    ex.execute(GET)
    ex.execute(GET)
    assert http.sessions_opened == 2
    assert http.sessions_closed == 2


def test_retry_events_are_emitted(make_executor, events) -> None:
    http = ScriptedHttp(make_response(500), make_response(200, {}))
    make_executor(http).execute(GET)
    messages = [e.message for e in events]
    assert "http.request.retry" in messages
    assert messages.count("http.request.start") == 2


def test_retry_policy_requires_a_bound() -> None:
    with pytest.raises(ValueError):
        RetryPolicy(max_attempts=None, budget_s=None)
    with pytest.raises(ValueError):
        RetryPolicy(max_attempts=0)


def test_write_backoff_schedule() -> None:
    p = WRITE_RETRY_POLICY
    assert p.budget_s == 10.0
    assert [p.delay_after(n) for n in (1, 2, 3, 4)] == [1.0, 2.0, 4.0, 8.0]
    assert p.should_retry(attempt=3, elapsed_s=3.0, next_delay_s=4.0)
    assert not p.should_retry(attempt=4, elapsed_s=7.0, next_delay_s=8.0)
