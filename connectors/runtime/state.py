from __future__ import annotations

from typing import Any, Dict

STATE_VERSION = 1


def normalise_state(state: Any) -> Dict[str, Any]:
    """
    Coerce whatever the host stored into the connection-state shape:

      {
        "version": 1,
        "global": {...},
        "streams": {
          "<stream_name>": {"page_offset": ..., "position_in_page": ..., ...}
        }
      }

    Anything that is not a dict (None, a string left over from a bad write)
    becomes empty state, so the connector starts from the first page.
    """
    if not isinstance(state, dict):
        return {"version": STATE_VERSION, "global": {}, "streams": {}}

    g = state.get("global")
    s = state.get("streams")
    return {
        "version": int(state.get("version") or STATE_VERSION),
        "global": dict(g) if isinstance(g, dict) else {},
        "streams": {k: v for k, v in s.items() if isinstance(k, str) and k} if isinstance(s, dict) else {},
    }


def stream_state(state: Dict[str, Any], stream: str) -> Dict[str, Any]:
    """Mutable per-stream section of `state`, created on first use."""
    streams = state.get("streams")
    if not isinstance(streams, dict):
        streams = state["streams"] = {}
    s = streams.get(stream)
    if not isinstance(s, dict):
        s = streams[stream] = {}
    return s


def merge_state(previous_state: Any, state_updates: Any) -> Dict[str, Any]:
    """
    Fold a connector's state updates into the stored state.

    Keys are never deleted. Per-stream and global sections merge one level
    deep, so a checkpoint update for one stream leaves the others untouched.
    Non-dict values simply overwrite.
    """
    prev = normalise_state(previous_state)
    upd = normalise_state(state_updates)

    out: Dict[str, Any] = {
        "version": max(prev["version"], upd["version"]),
        "global": {**prev["global"], **upd["global"]},
        "streams": dict(prev["streams"]),
    }

    for name, update in upd["streams"].items():
        existing = out["streams"].get(name)
        if isinstance(existing, dict) and isinstance(update, dict):
            out["streams"][name] = {**existing, **update}
        else:
            out["streams"][name] = update

    return out
