"""Write submitter: POST shape and the time-budgeted backoff."""
from __future__ import annotations

import json

import pytest

from connectors.hubspot.config import load_config
from connectors.hubspot.errors import ClientError, ConfigurationError, RequestFailedError
from connectors.hubspot.writer import WriteSubmitter

from .conftest import ScriptedHttp, make_response

DEALS = {"object_type": "Deals", "api_key": "k"}


def test_posts_json_to_write_endpoint(make_executor) -> None:
    http = ScriptedHttp(make_response(200, {"dealId": 1}))
    submitter = WriteSubmitter(make_executor(http), load_config(DEALS))

    resp = submitter.submit('{"properties":[]}')

    assert resp.status_code == 200
    call = http.calls[0]
    assert call["method"] == "POST"
    assert call["url"] == "https://api.hubapi.com/deals/v1/deal"
    assert call["headers"]["Content-Type"] == "application/json"
    assert call["data"] == b'{"properties":[]}'


def test_mapping_records_are_serialised(make_executor) -> None:
    http = ScriptedHttp(make_response(204))
    WriteSubmitter(make_executor(http), load_config(DEALS)).submit({"properties": [{"name": "x"}]})
    assert json.loads(http.calls[0]["data"]) == {"properties": [{"name": "x"}]}


def test_three_500s_then_success(make_executor, clock) -> None:
    http = ScriptedHttp(make_response(500), make_response(500), make_response(500), make_response(200, {}))
    resp = WriteSubmitter(make_executor(http), load_config(DEALS)).submit("{}")
    assert resp.status_code == 200
    assert len(http.calls) == 4
    assert clock.sleeps == [1.0, 2.0, 4.0]


def test_continuous_500_exhausts_budget(make_executor, clock) -> None:
    http = ScriptedHttp(make_response(500))
    with pytest.raises(RequestFailedError) as ei:
        WriteSubmitter(make_executor(http), load_config(DEALS)).submit("{}")
    assert ei.value.last_status == 500
    assert ei.value.attempts == 4
    # next delay (8s) would overrun the 10s budget at t=7
    assert clock.now == 7.0


def test_write_client_error_is_not_retried(make_executor) -> None:
    http = ScriptedHttp(make_response(400, {"message": "bad property"}))
    with pytest.raises(ClientError):
        WriteSubmitter(make_executor(http), load_config(DEALS)).submit("{}")
    assert len(http.calls) == 1


def test_object_type_without_write_endpoint(make_executor) -> None:
    http = ScriptedHttp(make_response(200))
    submitter = WriteSubmitter(make_executor(http), load_config(DEALS))
    with pytest.raises(ConfigurationError, match="does not support writes"):
        submitter.submit("{}", object_type="Email Events")
    assert http.calls == []


def test_submit_row_uses_object_field(make_executor) -> None:
    http = ScriptedHttp(make_response(200, {}))
    cfg = load_config({**DEALS, "object_field": "payload"})
    WriteSubmitter(make_executor(http), cfg).submit_row({"payload": '{"a":1}', "other": "x"})
    assert http.calls[0]["data"] == b'{"a":1}'

    with pytest.raises(ConfigurationError, match="'payload'"):
        WriteSubmitter(make_executor(http), cfg).submit_row({"object": "{}"})
