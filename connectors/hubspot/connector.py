# connectors/hubspot/connector.py
from __future__ import annotations

import os
from typing import Any, Dict, Optional

from connectors.runtime.protocol import (
    Connector,
    ConnectorCapabilities,
    ReadResult,
    ReadSelection,
    RowSink,
    StateSink,
)
from connectors.runtime.state import normalise_state

from .errors import AuthorizationError
from .executor import executor_for
from .pages import StreamingCheckpoint, page_fetcher
from .pipeline import config_for, run_pipeline, test_connection
from .state import checkpoint_updates, get_checkpoint
from .streaming import StreamingPoller, initial_offset_from_progress
from .writer import WriteSubmitter

NOT_ACCESSIBLE_MESSAGE = "Api endpoint not accessible with provided credentials."


class HubSpotConnector(Connector):
    name = "hubspot"
    capabilities = ConnectorCapabilities(selection=True, full_refresh=True, streaming=True, write=True)

    def check(self, creds: Dict[str, Any]) -> str:
        config = config_for(creds)
        try:
            return test_connection(config)
        except AuthorizationError as e:
            raise AuthorizationError(NOT_ACCESSIBLE_MESSAGE, status_code=e.status_code, body_excerpt=e.body_excerpt) from e

    def read(
        self,
        *,
        creds: Dict[str, Any],
        schema: str,
        selection: Optional[ReadSelection] = None,
        state: Optional[Dict[str, Any]] = None,
    ) -> ReadResult:
        state = normalise_state(state or {})
        destination = os.getenv("DLT_DESTINATION", "postgres")
        streams = selection.streams if selection is not None else None

        report, refreshed_creds, state_updates = run_pipeline(
            creds=creds,
            schema=schema,
            state=state,
            destination=destination,
            object_types=streams,
        )
        return ReadResult(report_text=report, refreshed_creds=refreshed_creds, state_updates=state_updates)

    def stream(
        self,
        *,
        creds: Dict[str, Any],
        state: Dict[str, Any],
        sink: RowSink,
        on_state: Optional[StateSink] = None,
        start_offset: Optional[int] = None,
    ) -> StreamingPoller:
        """
        Start a background poller for the configured object type and return it.

        A checkpoint in state wins over start_offset; with neither the poller
        starts at the first page. on_state receives merge-ready state updates
        after every checkpoint.
        """
        config = config_for(creds)
        profile = config.profile()
        stream_name = profile.stream_name
        checkpoint = get_checkpoint(state, stream_name)

        poller: Optional[StreamingPoller] = None

        def _on_checkpoint(cp: StreamingCheckpoint) -> None:
            if on_state is not None:
                on_state(checkpoint_updates(stream_name, cp, end_offset=poller.end_offset if poller else None))

        poller = StreamingPoller(
            page_fetcher(executor_for(config), profile, config),
            profile.object_type,
            lambda record: sink(record.as_row()),
            pull_frequency_minutes=config.pull_frequency_minutes,
            checkpoint=checkpoint,
            start_offset=(
                initial_offset_from_progress(start_offset) if checkpoint is None and start_offset is not None else None
            ),
            on_checkpoint=_on_checkpoint,
        )
        poller.start()
        return poller

    def write(self, *, creds: Dict[str, Any], record: Any) -> None:
        config = config_for(creds)
        config.validate_for_write()
        submitter = WriteSubmitter(executor_for(config), config)
        if isinstance(record, dict) and config.object_field in record:
            submitter.submit_row(record)
        else:
            submitter.submit(record)


def connector() -> HubSpotConnector:
    return HubSpotConnector()
