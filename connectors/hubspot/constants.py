# connectors/hubspot/constants.py
from __future__ import annotations

import os

CONNECTOR_NAME = "hubspot"

HUBSPOT_BASE_URL = os.getenv("HUBSPOT_API_BASE_URL") or "https://api.hubapi.com"

# v1/v2 list endpoints accept up to 100 per page for count/limit.
DEFAULT_PAGE_SIZE = 100

# timeouts: (connect, read)
DEFAULT_TIMEOUT = (10, int(os.getenv("CONNECTOR_HTTP_TIMEOUT_SECONDS") or "60"))

# Read path: fixed attempt count, no delay in between.
READ_MAX_ATTEMPTS = 3

# Write path: 1s, 2s, 4s ... until the wall-clock budget is spent.
WRITE_INITIAL_DELAY_S = 1.0
WRITE_BACKOFF_MULTIPLIER = 2.0
WRITE_BUDGET_S = 10.0

DEFAULT_PULL_FREQUENCY_MINUTES = 15

API_KEY_PARAM = "hapikey"
START_DATE_PARAM = "start"
END_DATE_PARAM = "end"
FILTER_PARAM = "f"
TOTAL_FIELD = "total"

DATE_FORMAT = "%Y%m%d"

# Analytics report types, grouped the way the API groups them.
ANALYTICS_REPORT_CATEGORIES = (
    "totals",
    "sessions",
    "sources",
    "geolocation",
    "utm-campaigns",
    "utm-contents",
    "utm-mediums",
    "utm-sources",
    "utm-terms",
)
ANALYTICS_REPORT_OBJECTS = ("event-completions", "forms", "pages", "social-assists")
ANALYTICS_REPORT_CONTENT = (
    "landing-pages",
    "standard-pages",
    "blog-posts",
    "listing-pages",
    "knowledge-articles",
)
ANALYTICS_REPORT_TYPES = ANALYTICS_REPORT_CATEGORIES + ANALYTICS_REPORT_OBJECTS + ANALYTICS_REPORT_CONTENT

ANALYTICS_TIME_PERIODS = (
    "total",
    "daily",
    "weekly",
    "monthly",
    "summarize/daily",
    "summarize/weekly",
    "summarize/monthly",
)
# Periods that break data down per bucket and therefore need at least one filter.
ANALYTICS_BUCKETED_PERIODS = ("daily", "weekly", "monthly")

# Object field holding the record JSON when writing rows.
DEFAULT_OBJECT_FIELD = "object"
