# connectors/hubspot/profiles.py
"""
Endpoint profiles: one immutable record per HubSpot object type describing
where to read it, how the response envelope is shaped and where (if anywhere)
records of that type can be written.

Every per-object-type difference lives in this table. Page fetching, the
cursor and the write path only ever consult a profile.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Iterator, List, Mapping, Optional

from .constants import DEFAULT_PAGE_SIZE
from .errors import ConfigurationError

CONTACT_LISTS = "Contact Lists"
CONTACTS = "Contacts"
EMAIL_EVENTS = "Email Events"
EMAIL_SUBSCRIPTION = "Email Subscription"
RECENT_COMPANIES = "Recent Companies"
COMPANIES = "Companies"
DEALS = "Deals"
DEAL_PIPELINES = "Deal Pipelines"
MARKETING_EMAIL = "Marketing Email"
PRODUCTS = "Products"
TICKETS = "Tickets"
ANALYTICS = "Analytics"


@dataclass(frozen=True)
class EndpointProfile:
    object_type: str
    path_template: str
    items_field: Optional[str] = None
    more_field: Optional[str] = None
    offset_field: Optional[str] = None
    offset_param: Optional[str] = None
    limit_param: Optional[str] = None
    default_page_size: int = DEFAULT_PAGE_SIZE
    write_path: Optional[str] = None
    requires_report: bool = False

    @property
    def stream_name(self) -> str:
        return stream_name(self.object_type)

    @property
    def supports_write(self) -> bool:
        return self.write_path is not None

    def read_path(self, *, report_type: Optional[str] = None, time_period: Optional[str] = None) -> str:
        if not self.requires_report:
            return self.path_template
        if not report_type or not time_period:
            raise ConfigurationError(f"{self.object_type} requires report_type and time_period")
        return self.path_template.format(report_type=report_type, time_period=time_period)


def stream_name(object_type: str) -> str:
    """'Contact Lists' -> 'contact_lists' (used for dlt tables and state keys)."""
    return re.sub(r"[^a-z0-9]+", "_", (object_type or "").strip().lower()).strip("_")


class ProfileTable(Mapping[str, EndpointProfile]):
    """
    Read-only object type -> profile mapping.

    Build it once at startup and pass it down; there is no module-level lookup.
    """

    def __init__(self, profiles: List[EndpointProfile]):
        by_type: dict[str, EndpointProfile] = {}
        for p in profiles:
            if p.object_type in by_type:
                raise ConfigurationError(f"Duplicate endpoint profile for object type '{p.object_type}'")
            by_type[p.object_type] = p
        self._profiles = MappingProxyType(by_type)

    def __getitem__(self, object_type: str) -> EndpointProfile:
        return self._profiles[object_type]

    def __iter__(self) -> Iterator[str]:
        return iter(self._profiles)

    def __len__(self) -> int:
        return len(self._profiles)

    def lookup(self, object_type: Any) -> EndpointProfile:
        profile = self._profiles.get(object_type) if isinstance(object_type, str) else None
        if profile is None:
            raise ConfigurationError(
                f"'{object_type}' is not a valid object type. Select one of: {', '.join(self._profiles)}"
            )
        return profile

    def resolve(self, name: Any) -> EndpointProfile:
        """Accept either an object type ('Contact Lists') or its stream name ('contact_lists')."""
        if isinstance(name, str) and name not in self._profiles:
            for p in self._profiles.values():
                if p.stream_name == name:
                    return p
        return self.lookup(name)

    def writable(self) -> List[str]:
        return [name for name, p in self._profiles.items() if p.supports_write]


def build_profile_table() -> ProfileTable:
    return ProfileTable(
        [
            EndpointProfile(
                object_type=CONTACT_LISTS,
                path_template="/contacts/v1/lists",
                items_field="lists",
                more_field="has-more",
                offset_field="offset",
                offset_param="offset",
                limit_param="count",
                write_path="/contacts/v1/lists",
            ),
            EndpointProfile(
                object_type=CONTACTS,
                path_template="/contacts/v1/lists/all/contacts/all",
                items_field="contacts",
                more_field="has-more",
                offset_field="vid-offset",
                offset_param="vidOffset",
                limit_param="count",
                write_path="/contacts/v1/contact",
            ),
            EndpointProfile(
                object_type=EMAIL_EVENTS,
                path_template="/email/public/v1/events",
                items_field="events",
                more_field="hasMore",
                offset_field="offset",
                offset_param="offset",
                limit_param="limit",
            ),
            EndpointProfile(
                object_type=EMAIL_SUBSCRIPTION,
                path_template="/email/public/v1/subscriptions/timeline",
                items_field="timeline",
                more_field="hasMore",
                offset_field="offset",
                offset_param="offset",
                limit_param="limit",
            ),
            EndpointProfile(
                object_type=RECENT_COMPANIES,
                path_template="/companies/v2/companies/recent/modified",
                items_field="results",
                more_field="hasMore",
                offset_field="offset",
                offset_param="offset",
                limit_param="count",
            ),
            EndpointProfile(
                object_type=COMPANIES,
                path_template="/companies/v2/companies/paged",
                items_field="companies",
                more_field="has-more",
                offset_field="offset",
                offset_param="offset",
                limit_param="count",
                write_path="/companies/v2/companies",
            ),
            EndpointProfile(
                object_type=DEALS,
                path_template="/deals/v1/deal/paged",
                items_field="deals",
                more_field="hasMore",
                offset_field="offset",
                offset_param="offset",
                limit_param="limit",
                write_path="/deals/v1/deal",
            ),
            EndpointProfile(
                object_type=DEAL_PIPELINES,
                path_template="/crm-pipelines/v1/pipelines/deals",
                items_field="results",
                write_path="/crm-pipelines/v1/pipelines/deals",
            ),
            EndpointProfile(
                object_type=MARKETING_EMAIL,
                path_template="/marketing-emails/v1/emails",
                items_field="objects",
                offset_field="offset",
                offset_param="offset",
                limit_param="limit",
                write_path="/marketing-emails/v1/emails",
            ),
            EndpointProfile(
                object_type=PRODUCTS,
                path_template="/crm-objects/v1/objects/products/paged",
                items_field="objects",
                more_field="hasMore",
                offset_field="offset",
                offset_param="offset",
                write_path="/crm-objects/v1/objects/products",
            ),
            EndpointProfile(
                object_type=TICKETS,
                path_template="/crm-objects/v1/objects/tickets/paged",
                items_field="objects",
                more_field="hasMore",
                offset_field="offset",
                offset_param="offset",
                write_path="/crm-objects/v1/objects/tickets",
            ),
            EndpointProfile(
                object_type=ANALYTICS,
                path_template="/analytics/v2/reports/{report_type}/{time_period}",
                items_field="breakdowns",
                offset_field="offset",
                offset_param="offset",
                limit_param="limit",
                requires_report=True,
            ),
        ]
    )
