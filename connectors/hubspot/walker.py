# connectors/hubspot/walker.py
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, Optional

from .config import HubSpotConfig
from .events import info, records_seen
from .executor import RequestExecutor
from .pages import PagesCursor, page_fetcher
from .profiles import EndpointProfile, stream_name

LOG_EVERY_N_RECORDS = 1000


@dataclass(frozen=True)
class HubSpotRecord:
    """The only record shape the connector produces: type + raw JSON text."""
    object_type: str
    object: str

    def as_row(self) -> Dict[str, Any]:
        return {"objectType": self.object_type, "object": self.object}


def to_record(object_type: str, item: Any) -> HubSpotRecord:
    # Compact separators: "object" is compared byte-for-byte downstream.
    return HubSpotRecord(object_type=object_type, object=json.dumps(item, separators=(",", ":"), ensure_ascii=False))


class BatchWalker:
    """
    One-shot extraction: a fresh cursor drained to exhaustion, yielding every
    item once in page order then in-page order. Errors propagate unchanged.
    """

    def __init__(self, cursor_factory: Callable[[], PagesCursor], *, object_type: str):
        self._cursor_factory = cursor_factory
        self.object_type = object_type
        self.records_emitted = 0

    def __iter__(self) -> Iterator[HubSpotRecord]:
        stream = stream_name(self.object_type)
        info("stream.batch.start", stream=stream, object_type=self.object_type)

        cursor = self._cursor_factory()
        while cursor.has_next():
            yield to_record(self.object_type, cursor.next())
            self.records_emitted += 1
            if self.records_emitted % LOG_EVERY_N_RECORDS == 0:
                records_seen(stream=stream, count=self.records_emitted)

        records_seen(stream=stream, count=self.records_emitted)
        info("stream.batch.done", stream=stream, records=self.records_emitted, pages=cursor.pages_fetched)


def iter_records(
    executor: RequestExecutor,
    profile: EndpointProfile,
    config: HubSpotConfig,
    *,
    start_offset: Optional[str] = None,
) -> BatchWalker:
    fetch = page_fetcher(executor, profile, config)
    return BatchWalker(
        lambda: PagesCursor(fetch, start_offset=start_offset, stream=profile.stream_name),
        object_type=profile.object_type,
    )
