# connectors/hubspot/streaming.py
from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Callable, Optional

from .events import error, info
from .pages import PageFetcher, PagesCursor, StreamingCheckpoint
from .profiles import stream_name
from .walker import HubSpotRecord, to_record

logger = logging.getLogger(__name__)

RecordSink = Callable[[HubSpotRecord], None]
CheckpointSink = Callable[[StreamingCheckpoint], None]


class PollerState(str, Enum):
    DRAINING = "draining"
    IDLE_WAIT = "idle_wait"
    STOPPED = "stopped"


def initial_offset_from_progress(start: int) -> str:
    """
    Request offset for a host that tracks progress as "first offset to read".

    The API's offset is exclusive, so reading from `start` means asking for
    `start - 1`; zero stays zero.
    """
    if start < 0:
        raise ValueError(f"start offset must be >= 0, got {start}")
    return "0" if start == 0 else str(start - 1)


def _numeric(offset: Optional[str]) -> Optional[int]:
    if offset is None:
        return None
    try:
        return int(offset)
    except (TypeError, ValueError):
        return None


class StreamingPoller:
    """
    Drives one PagesCursor forever.

    DRAINING hands every available item to the sink. Once drained the poller
    goes IDLE_WAIT for pull_frequency_minutes, then re-fetches the current page
    at its own offset and carries on past the items it already delivered.

    The stop flag is looked at before each item and after each wake-up, never
    during a fetch. Any error ends the instance; the host restarts from the
    last published checkpoint.
    """

    def __init__(
        self,
        fetch: PageFetcher,
        object_type: str,
        sink: RecordSink,
        *,
        pull_frequency_minutes: float,
        checkpoint: Optional[StreamingCheckpoint] = None,
        start_offset: Optional[str] = None,
        on_checkpoint: Optional[CheckpointSink] = None,
        sleep: Optional[Callable[[float], object]] = None,
    ):
        if pull_frequency_minutes <= 0:
            raise ValueError("pull_frequency_minutes must be > 0")

        self.object_type = object_type
        self.stream = stream_name(object_type)
        self.pull_frequency_minutes = pull_frequency_minutes
        self.failure: Optional[BaseException] = None
        self.records_emitted = 0

        self._fetch = fetch
        self._sink = sink
        self._on_checkpoint = on_checkpoint
        self._initial_checkpoint = checkpoint
        self._start_offset = start_offset
        self._stop = threading.Event()
        self._sleep = sleep or self._stop.wait
        self._thread: Optional[threading.Thread] = None

        self._state = PollerState.DRAINING
        self._end_offset: Optional[int] = None
        self._checkpoint: Optional[StreamingCheckpoint] = checkpoint

    # ---------------------------
    # Observers (read from other threads; best effort)
    # ---------------------------

    @property
    def state(self) -> PollerState:
        return self._state

    @property
    def end_offset(self) -> Optional[int]:
        return self._end_offset

    @property
    def checkpoint(self) -> Optional[StreamingCheckpoint]:
        return self._checkpoint

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    # ---------------------------
    # Lifecycle
    # ---------------------------

    def start(self) -> threading.Thread:
        if self._thread is not None:
            raise RuntimeError(f"{self.stream}: poller already started")
        self._thread = threading.Thread(
            target=self._run_guarded,
            name=f"hubspot-poller-{self.stream}",
            daemon=True,
        )
        self._thread.start()
        return self._thread

    def stop(self) -> None:
        self._stop.set()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def _run_guarded(self) -> None:
        try:
            self.run()
        except Exception as e:
            self.failure = e
            logger.exception("HubSpot poller for %s stopped on error", self.stream)
            error("stream.poll.failed", stream=self.stream, error=f"{type(e).__name__}: {e}")

    # ---------------------------
    # State machine
    # ---------------------------

    def _open_cursor(self) -> PagesCursor:
        if self._initial_checkpoint is not None:
            return PagesCursor.from_checkpoint(self._fetch, self._initial_checkpoint, stream=self.stream)
        return PagesCursor(self._fetch, start_offset=self._start_offset, stream=self.stream)

    def _observe(self, cursor: PagesCursor) -> None:
        offset = _numeric(cursor.current_page.offset)
        if offset is not None and (self._end_offset is None or offset > self._end_offset):
            self._end_offset = offset

    def _publish(self, cursor: PagesCursor) -> None:
        cp = cursor.checkpoint()
        self._checkpoint = cp
        if self._on_checkpoint is not None:
            self._on_checkpoint(cp)

    def _halt(self) -> None:
        self._state = PollerState.STOPPED
        info("stream.poll.stopped", stream=self.stream, records=self.records_emitted, end_offset=self._end_offset)

    def run(self) -> None:
        """Run on the calling thread until stopped; errors propagate."""
        self._state = PollerState.DRAINING
        info("stream.poll.start", stream=self.stream, pull_frequency_minutes=self.pull_frequency_minutes)
        try:
            if self._stop.is_set():
                return
            cursor = self._open_cursor()
            self._observe(cursor)
            self._publish(cursor)

            while True:
                pages_seen = cursor.pages_fetched
                while True:
                    if self._stop.is_set():
                        self._publish(cursor)
                        return
                    if not cursor.has_next():
                        break
                    if cursor.pages_fetched != pages_seen:
                        pages_seen = cursor.pages_fetched
                        self._observe(cursor)
                        self._publish(cursor)
                    self._sink(to_record(self.object_type, cursor.next()))
                    self.records_emitted += 1

                self._observe(cursor)
                self._publish(cursor)

                self._state = PollerState.IDLE_WAIT
                self._sleep(self.pull_frequency_minutes * 60.0)
                if self._stop.is_set():
                    return

                cursor.reload()
                self._state = PollerState.DRAINING
        finally:
            self._halt()
