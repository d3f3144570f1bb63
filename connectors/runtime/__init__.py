"""
Runtime package: connector protocol + helpers.

Exports:
- Protocol types: Connector, ConnectorCapabilities, ReadSelection, ReadResult
- Loader: load (and alias load_connector)
- Event bus: emit, set_emitter, logging_emitter
- State helpers: normalise_state, merge_state
"""
from __future__ import annotations

from .events import RuntimeEvent, emit, logging_emitter, set_emitter
from .loader import load, load as load_connector
from .protocol import Connector, ConnectorCapabilities, ReadResult, ReadSelection
from .state import merge_state, normalise_state, stream_state

__all__ = [
    "Connector",
    "ConnectorCapabilities",
    "ReadSelection",
    "ReadResult",
    "RuntimeEvent",
    "emit",
    "set_emitter",
    "logging_emitter",
    "load",
    "load_connector",
    "merge_state",
    "normalise_state",
    "stream_state",
]
