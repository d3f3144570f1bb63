# connectors/hubspot/pages.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from connectors.utils import is_html_response

from .config import HubSpotConfig
from .constants import END_DATE_PARAM, FILTER_PARAM, START_DATE_PARAM, TOTAL_FIELD
from .errors import MalformedResponseError
from .events import debug, paging_done, paging_start
from .executor import HttpRequest, RequestExecutor, RetryPolicy, read_policy
from .profiles import EndpointProfile
from .redaction import redact_text


@dataclass(frozen=True)
class Page:
    """
    One fetched batch.

    offset: continuation offset reported by the API (None when absent)
    has_more: None means the envelope does not say; the cursor treats it as terminal
    request_offset: the offset this page was requested at (None for the first page)
    """
    items: Tuple[Any, ...]
    offset: Optional[str] = None
    has_more: Optional[bool] = None
    request_offset: Optional[str] = None


@dataclass(frozen=True)
class StreamingCheckpoint:
    """
    Enough to resume without re-emitting: the page's request offset plus how
    many of its items were already delivered.
    """
    page_offset: Optional[str] = None
    position_in_page: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"page_offset": self.page_offset, "position_in_page": self.position_in_page}

    @classmethod
    def from_dict(cls, d: Any) -> Optional["StreamingCheckpoint"]:
        if not isinstance(d, dict):
            return None
        offset = d.get("page_offset")
        try:
            position = max(0, int(d.get("position_in_page") or 0))
        except (TypeError, ValueError):
            position = 0
        return cls(page_offset=str(offset) if offset is not None else None, position_in_page=position)


PageFetcher = Callable[[Optional[str]], Page]


def _offset_str(value: Any) -> str:
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def build_params(profile: EndpointProfile, config: HubSpotConfig, offset: Optional[str]) -> List[Tuple[str, str]]:
    params: List[Tuple[str, str]] = []
    if config.start_date:
        params.append((START_DATE_PARAM, config.start_date))
    if config.end_date:
        params.append((END_DATE_PARAM, config.end_date))
    for f in config.filter_list:
        params.append((FILTER_PARAM, f))
    if profile.limit_param:
        params.append((profile.limit_param, str(config.page_size_for(profile))))
    if offset is not None and profile.offset_param:
        params.append((profile.offset_param, offset))
    return params


def parse_page(profile: EndpointProfile, body: Any, *, request_offset: Optional[str] = None) -> Page:
    """
    Read one response envelope against its profile.

    Missing fields the profile declares are errors, never "no data": treating a
    missing `has-more` as False would silently end pagination.
    """
    where = f"{profile.object_type} response"

    if profile.items_field:
        if not isinstance(body, dict) or profile.items_field not in body:
            raise MalformedResponseError(f"{where} is missing items field '{profile.items_field}'")
        raw_items = body[profile.items_field]
        if not isinstance(raw_items, list):
            raise MalformedResponseError(
                f"{where} field '{profile.items_field}' is {type(raw_items).__name__}, expected array"
            )
        items: Tuple[Any, ...] = tuple(raw_items)
    else:
        items = (body,)

    has_more: Optional[bool] = None
    if profile.more_field:
        if not isinstance(body, dict) or profile.more_field not in body:
            raise MalformedResponseError(f"{where} is missing more-pages field '{profile.more_field}'")
        flag = body[profile.more_field]
        if not isinstance(flag, bool):
            raise MalformedResponseError(
                f"{where} field '{profile.more_field}' is {type(flag).__name__}, expected boolean"
            )
        has_more = flag

    offset: Optional[str] = None
    if profile.offset_field and isinstance(body, dict):
        raw_offset = body.get(profile.offset_field)
        if raw_offset is not None:
            offset = _offset_str(raw_offset)

        # No explicit flag: more pages while the offset has not reached the
        # reported total and is not "0". Without a total there is nothing to
        # compare against, so has_more stays None.
        if not profile.more_field and offset is not None and body.get(TOTAL_FIELD) is not None:
            has_more = offset != _offset_str(body[TOTAL_FIELD]) and offset != "0"

    return Page(items=items, offset=offset, has_more=has_more, request_offset=request_offset)


def fetch_page(
    executor: RequestExecutor,
    profile: EndpointProfile,
    config: HubSpotConfig,
    offset: Optional[str] = None,
    *,
    policy: Optional[RetryPolicy] = None,
) -> Page:
    stream = profile.stream_name
    limit = config.page_size_for(profile) if profile.limit_param else None
    paging_start(stream=stream, offset=offset, limit=limit)

    request = HttpRequest(
        method="GET",
        url=config.read_url(profile),
        params=tuple(build_params(profile, config, offset)),
        headers={"Accept": "application/json"},
        stream=stream,
    )
    resp = executor.execute(request, policy or read_policy(config))

    if not resp.content:
        raise MalformedResponseError(f"{profile.object_type} response body is empty")
    if is_html_response(resp):
        # Proxies and maintenance pages answer 200 with HTML.
        raise MalformedResponseError(f"{profile.object_type} response is HTML, expected JSON")
    try:
        body = resp.json()
    except ValueError as e:
        excerpt = redact_text(resp.text or "", max_len=300)
        raise MalformedResponseError(f"{profile.object_type} response is not valid JSON: {excerpt}") from e

    page = parse_page(profile, body, request_offset=offset)
    debug(
        "paging.page.ok",
        stream=stream,
        offset=offset,
        returned=len(page.items),
        next_offset=page.offset,
        has_more=page.has_more,
    )
    return page


def page_fetcher(
    executor: RequestExecutor,
    profile: EndpointProfile,
    config: HubSpotConfig,
    *,
    policy: Optional[RetryPolicy] = None,
) -> PageFetcher:
    def _fetch(offset: Optional[str]) -> Page:
        return fetch_page(executor, profile, config, offset, policy=policy)

    return _fetch


class PagesCursor:
    """
    Flat, resumable iteration over every item of every page.

    The first page is fetched on construction. has_next() moves to the next
    page only when the current one is drained and reports more pages; next()
    hands out items[index] and advances the index. Not thread-safe: one owner.
    """

    def __init__(self, fetch: PageFetcher, *, start_offset: Optional[str] = None, stream: str = "hubspot"):
        self._fetch = fetch
        self._stream = stream
        self._pages_fetched = 0
        self._done_reported = False
        self._page = self._load(start_offset)
        self._page_offset = start_offset
        self._index = 0

    @classmethod
    def from_checkpoint(
        cls,
        fetch: PageFetcher,
        checkpoint: StreamingCheckpoint,
        *,
        stream: str = "hubspot",
    ) -> "PagesCursor":
        cursor = cls(fetch, start_offset=checkpoint.page_offset, stream=stream)
        cursor._index = min(max(0, checkpoint.position_in_page), len(cursor._page.items))
        return cursor

    @property
    def current_page(self) -> Page:
        return self._page

    @property
    def page_offset(self) -> Optional[str]:
        return self._page_offset

    @property
    def index_in_page(self) -> int:
        return self._index

    @property
    def pages_fetched(self) -> int:
        return self._pages_fetched

    def _load(self, offset: Optional[str]) -> Page:
        page = self._fetch(offset)
        if page.has_more:
            if not page.items:
                raise MalformedResponseError(
                    f"{self._stream}: page at offset {offset!r} reports more pages but returned no items"
                )
            if page.offset is None:
                raise MalformedResponseError(
                    f"{self._stream}: page at offset {offset!r} reports more pages but has no continuation offset"
                )
            if page.offset == offset:
                raise MalformedResponseError(
                    f"{self._stream}: pagination is not advancing (offset {offset!r} repeated)"
                )
        self._pages_fetched += 1
        self._done_reported = False
        return page

    def has_next(self) -> bool:
        while self._index >= len(self._page.items):
            if not self._page.has_more:
                if not self._done_reported:
                    self._done_reported = True
                    paging_done(stream=self._stream, returned=len(self._page.items))
                return False
            next_offset = self._page.offset
            self._page = self._load(next_offset)
            self._page_offset = next_offset
            self._index = 0
        return True

    def next(self) -> Any:
        if not self.has_next():
            raise StopIteration
        item = self._page.items[self._index]
        self._index += 1
        return item

    def __iter__(self) -> Iterator[Any]:
        return self

    def __next__(self) -> Any:
        return self.next()

    def checkpoint(self) -> StreamingCheckpoint:
        return StreamingCheckpoint(page_offset=self._page_offset, position_in_page=self._index)

    def resume_at(self, checkpoint: StreamingCheckpoint) -> None:
        """
        Re-fetch the checkpoint's page and skip the items already delivered.

        A page that shrank since the checkpoint is treated as fully delivered.
        """
        page = self._load(checkpoint.page_offset)
        self._page = page
        self._page_offset = checkpoint.page_offset
        self._index = min(max(0, checkpoint.position_in_page), len(page.items))

    def reload(self) -> None:
        self.resume_at(self.checkpoint())
