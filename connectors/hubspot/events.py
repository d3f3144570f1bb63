# connectors/hubspot/events.py
from __future__ import annotations

from typing import Any, Dict, Optional

from connectors.runtime.events import emit

from .constants import CONNECTOR_NAME


def _emit(message: str, *, stream: Optional[str], level: str = "info", count: Optional[int] = None, **fields: Any) -> None:
    emit(
        "count" if count is not None else "message",
        message,
        connector=CONNECTOR_NAME,
        stream=stream,
        count=count,
        level=level,
        **fields,
    )


def debug(message: str, *, stream: Optional[str] = None, **fields: Any) -> None:
    _emit(message, stream=stream, level="debug", **fields)


def info(message: str, *, stream: Optional[str] = None, **fields: Any) -> None:
    _emit(message, stream=stream, level="info", **fields)


def warn(message: str, *, stream: Optional[str] = None, **fields: Any) -> None:
    _emit(message, stream=stream, level="warn", **fields)


def error(message: str, *, stream: Optional[str] = None, **fields: Any) -> None:
    _emit(message, stream=stream, level="error", **fields)


def http_start(*, stream: str, method: str, url: str, attempt: int, extra: Optional[Dict[str, Any]] = None) -> None:
    _emit(
        "http.request.start",
        stream=stream,
        level="debug",
        method=method,
        url=url,
        attempt=attempt,
        **(extra or {}),
    )


def http_ok(*, stream: str, method: str, url: str, status: int, elapsed_ms: int, attempt: int) -> None:
    _emit(
        "http.request.ok",
        stream=stream,
        level="debug",
        method=method,
        url=url,
        status=status,
        elapsed_ms=elapsed_ms,
        attempt=attempt,
    )


def http_error(
    *,
    stream: str,
    method: str,
    url: str,
    status: Optional[int],
    error: str,
    attempt: int,
    extra: Optional[Dict[str, Any]] = None,
) -> None:
    fields: Dict[str, Any] = dict(extra or {})
    fields.update({"method": method, "url": url, "status": status, "error": error, "attempt": attempt})
    _emit("http.request.error", stream=stream, level="warn", **fields)


def http_retry(*, stream: str, method: str, url: str, attempt: int, sleep_s: float, status: Optional[int]) -> None:
    _emit(
        "http.request.retry",
        stream=stream,
        level="warn",
        method=method,
        url=url,
        attempt=attempt,
        sleep_s=sleep_s,
        status=status,
    )


def paging_start(*, stream: str, offset: Optional[str], limit: Optional[int]) -> None:
    _emit("paging.page.start", stream=stream, level="debug", offset=offset, limit=limit)


def paging_done(*, stream: str, returned: int) -> None:
    _emit("paging.done.last_page", stream=stream, returned=returned)


def records_seen(*, stream: str, count: int) -> None:
    _emit("stream.records_emitted", stream=stream, count=count)
