"""Batch walker end to end over scripted HTTP."""
from __future__ import annotations

import pytest

from connectors.hubspot.config import load_config
from connectors.hubspot.errors import AuthorizationError
from connectors.hubspot.walker import HubSpotRecord, iter_records, to_record

from .conftest import ScriptedHttp, make_response


def test_contact_lists_end_to_end(make_executor) -> None:
    cfg = load_config({"object_type": "Contact Lists", "api_key": "k"})
    http = ScriptedHttp(
        make_response(200, {"lists": [{"testobj": 0}, {"testobj": 1}], "has-more": True, "offset": "2"}),
        make_response(200, {"lists": [{"testobj": 2}, {"testobj": 3}], "has-more": False}),
    )

    records = list(iter_records(make_executor(http), cfg.profile(), cfg))

    assert records == [HubSpotRecord("Contact Lists", '{"testobj":%d}' % i) for i in range(4)]
    assert records[0].as_row() == {"objectType": "Contact Lists", "object": '{"testobj":0}'}
    assert http.calls[0]["params"] == [("hapikey", "test-key"), ("count", "100")]
    assert http.calls[1]["params"] == [("hapikey", "test-key"), ("count", "100"), ("offset", "2")]


def test_errors_propagate(make_executor) -> None:
    cfg = load_config({"object_type": "Deals", "api_key": "k"})
    walker = iter_records(make_executor(ScriptedHttp(make_response(403))), cfg.profile(), cfg)
    with pytest.raises(AuthorizationError):
        list(walker)


def test_walker_counts_and_reports(make_executor, events) -> None:
    cfg = load_config({"object_type": "Deals", "api_key": "k"})
    http = ScriptedHttp(make_response(200, {"deals": [{"id": 1}, {"id": 2}], "hasMore": False, "offset": 2}))
    walker = iter_records(make_executor(http), cfg.profile(), cfg)
    assert len(list(walker)) == 2
    assert walker.records_emitted == 2
    counts = [e for e in events if e.message == "stream.records_emitted"]
    assert counts[-1].count == 2
    assert counts[-1].stream == "deals"


def test_record_json_is_compact_and_unicode() -> None:
    assert to_record("Deals", {"name": "Café", "n": [1, 2]}).object == '{"name":"Café","n":[1,2]}'
