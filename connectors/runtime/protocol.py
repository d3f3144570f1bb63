from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional


@dataclass(frozen=True)
class ConnectorCapabilities:
    """
    Capability flags the host can use to adjust behaviour.

    selection: supports stream selection (subset reads)
    full_refresh: supports one-shot full reads
    streaming: can keep pulling new records until stopped (stream())
    write: can push single records back to the source (write())
    """
    selection: bool = False
    full_refresh: bool = True
    streaming: bool = False
    write: bool = False


@dataclass(frozen=True)
class ReadSelection:
    """
    Host-to-connector read intent.

    streams: optional list of stream names to sync (None => connector default)
    full_refresh: if True, ignore any stored checkpoint
    """
    streams: Optional[List[str]] = None
    full_refresh: bool = False


@dataclass(frozen=True)
class ReadResult:
    """
    Connector-to-host result.

    report_text: human readable summary
    refreshed_creds: optional rotated credentials to persist back to secrets
    state_updates: state blob to merge into connection state on success
    stats: optional machine-readable counters
    """
    report_text: str = ""
    refreshed_creds: Optional[Dict[str, Any]] = None
    state_updates: Optional[Dict[str, Any]] = None
    stats: Optional[Dict[str, Any]] = None

    def __post_init__(self) -> None:
        # Normalise None -> {} for merge-friendly behaviour
        if self.state_updates is None:
            object.__setattr__(self, "state_updates", {})
        if self.stats is None:
            object.__setattr__(self, "stats", {})


# Host callbacks for streaming: one receives each produced row, the other the
# state blob to persist after a checkpoint.
RowSink = Callable[[Dict[str, Any]], None]
StateSink = Callable[[Dict[str, Any]], None]


class Connector:
    """
    Minimal protocol connector interface.

    - check(creds) -> str
    - read(creds, schema, selection, state) -> ReadResult
    - stream(creds, state, sink, on_state) -> handle with stop()/join()
    - write(creds, record) -> None
    """

    capabilities: ConnectorCapabilities = ConnectorCapabilities()

    def check(self, creds: Dict[str, Any]) -> str:  # pragma: no cover
        raise NotImplementedError

    def read(  # pragma: no cover
        self,
        *,
        creds: Dict[str, Any],
        schema: str,
        selection: ReadSelection,
        state: Dict[str, Any],
    ) -> ReadResult:
        raise NotImplementedError

    def stream(  # pragma: no cover
        self,
        *,
        creds: Dict[str, Any],
        state: Dict[str, Any],
        sink: RowSink,
        on_state: Optional[StateSink] = None,
    ) -> Any:
        raise NotImplementedError(f"{type(self).__name__} does not support streaming")

    def write(self, *, creds: Dict[str, Any], record: Any) -> None:  # pragma: no cover
        raise NotImplementedError(f"{type(self).__name__} does not support writes")
