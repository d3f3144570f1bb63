# connectors/hubspot/state.py
from __future__ import annotations

from typing import Any, Dict, Optional

from connectors.runtime.state import normalise_state, stream_state

from .pages import StreamingCheckpoint


def get_checkpoint(state: Any, stream: str) -> Optional[StreamingCheckpoint]:
    s = normalise_state(state)["streams"].get(stream)
    if not isinstance(s, dict) or "page_offset" not in s:
        return None
    return StreamingCheckpoint.from_dict(s)


def set_checkpoint(state: Dict[str, Any], stream: str, checkpoint: StreamingCheckpoint) -> None:
    stream_state(state, stream).update(checkpoint.to_dict())


def checkpoint_updates(stream: str, checkpoint: StreamingCheckpoint, *, end_offset: Optional[int] = None) -> Dict[str, Any]:
    """State blob in the shape merge_state() expects, for one stream."""
    body: Dict[str, Any] = checkpoint.to_dict()
    if end_offset is not None:
        body["end_offset"] = end_offset
    return {"streams": {stream: body}}
