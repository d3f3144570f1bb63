"""Endpoint profile table lookups."""
from __future__ import annotations

import pytest

from connectors.hubspot.errors import ConfigurationError
from connectors.hubspot.profiles import (
    ANALYTICS,
    CONTACT_LISTS,
    DEALS,
    EMAIL_EVENTS,
    EndpointProfile,
    ProfileTable,
    build_profile_table,
    stream_name,
)


def test_every_object_type_has_exactly_one_profile() -> None:
    table = build_profile_table()
    assert len(table) == 12
    for object_type, profile in table.items():
        assert profile.object_type == object_type


def test_duplicate_profiles_are_rejected() -> None:
    p = EndpointProfile(object_type="X", path_template="/x")
    with pytest.raises(ConfigurationError, match="Duplicate"):
        ProfileTable([p, p])


def test_unknown_object_type_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError, match="not a valid object type"):
        build_profile_table().lookup("Widgets")


def test_contact_lists_wire_names() -> None:
    p = build_profile_table().lookup(CONTACT_LISTS)
    assert p.read_path() == "/contacts/v1/lists"
    assert (p.items_field, p.more_field, p.offset_field) == ("lists", "has-more", "offset")
    assert (p.offset_param, p.limit_param) == ("offset", "count")
    assert p.default_page_size == 100


def test_analytics_path_needs_report_and_period() -> None:
    p = build_profile_table().lookup(ANALYTICS)
    assert p.read_path(report_type="sources", time_period="summarize/daily") == (
        "/analytics/v2/reports/sources/summarize/daily"
    )
    with pytest.raises(ConfigurationError):
        p.read_path(report_type="sources")


def test_writable_subset() -> None:
    table = build_profile_table()
    assert DEALS in table.writable()
    assert EMAIL_EVENTS not in table.writable()
    assert ANALYTICS not in table.writable()
    assert table.lookup(DEALS).write_path == "/deals/v1/deal"


def test_resolve_accepts_stream_names() -> None:
    table = build_profile_table()
    assert stream_name("Contact Lists") == "contact_lists"
    assert table.resolve("contact_lists").object_type == CONTACT_LISTS
    assert table.resolve(CONTACT_LISTS).object_type == CONTACT_LISTS
