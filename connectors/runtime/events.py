"""
Runtime event bus for connector -> host progress reporting.

Design rules:
- Host-agnostic: no printing here.
- Lightweight: connectors emit small structured messages without depending on a UI.
- Safe default: if no emitter is configured, events are ignored.
- Hosts without their own sink can install `logging_emitter()` to route events
  into stdlib logging.

Typical usage inside a connector:
  from connectors.runtime.events import emit

  emit("message", "paging.page.start", stream="contact_lists", offset="2")
  emit("count", "stream.records_emitted", stream="deals", count=250)
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

EventEmitter = Callable[["RuntimeEvent"], None]

_EMITTER: Optional[EventEmitter] = None

_LOG_LEVELS: Dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


@dataclass(frozen=True)
class RuntimeEvent:
    type: str
    message: str
    connector: Optional[str] = None
    stream: Optional[str] = None
    count: Optional[int] = None
    level: str = "info"  # info|warn|error|debug
    ts: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    fields: Dict[str, Any] = field(default_factory=dict)


def set_emitter(fn: Optional[EventEmitter]) -> None:
    """
    Install a process-wide event emitter.

    The host should set this before running a connector. Pass None to uninstall.
    """
    global _EMITTER
    _EMITTER = fn


def logging_emitter(logger: Optional[logging.Logger] = None) -> EventEmitter:
    """
    Build an emitter that writes each event as one stdlib logging record.

    Structured fields are attached under `extra={"event": ...}` so JSON log
    formatters can pick them up.
    """
    log = logger or logging.getLogger("connectors")

    def _emit(ev: RuntimeEvent) -> None:
        level = _LOG_LEVELS.get(ev.level, logging.INFO)
        if not log.isEnabledFor(level):
            return
        parts = [f"{k}={v}" for k, v in ev.fields.items()]
        if ev.count is not None:
            parts.insert(0, f"count={ev.count}")
        prefix = ".".join(p for p in (ev.connector, ev.stream) if p)
        text = f"[{prefix}] {ev.message}" if prefix else ev.message
        if parts:
            text = f"{text} " + " ".join(parts)
        log.log(level, text, extra={"event": ev})

    return _emit


def emit(
    event_type: str,
    message: str,
    *,
    connector: Optional[str] = None,
    stream: Optional[str] = None,
    count: Optional[int] = None,
    level: str = "info",
    **fields: Any,
) -> None:
    """
    Emit a runtime event. No-op if no emitter is installed.
    """
    fn = _EMITTER
    if fn is None:
        return

    try:
        fn(
            RuntimeEvent(
                type=str(event_type),
                message=str(message),
                connector=connector,
                stream=stream,
                count=count,
                level=str(level),
                fields=fields or {},
            )
        )
    except Exception:
        # Never allow progress reporting to crash a connector run.
        return
