from __future__ import annotations

import logging
import queue
import threading
from typing import Any, Callable

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[dict[str, Any]], None]

MAX_PENDING_EVENTS = 32
FLUSH_TIMEOUT_S = 1.0
_POLL_INTERVAL_S = 0.05


class ProgressReporter:
    """Forwards stage/percent events to an optional observer.

    Percentages never decrease within one run; an event that would move progress
    backwards is dropped. Events go through a bounded queue drained by a daemon
    dispatcher thread, so the reporting thread never runs observer code. When the
    queue is full the update is dropped. An observer that raises is logged and
    the run carries on.
    """

    def __init__(self, callback: ProgressCallback | None = None, *, max_pending: int = MAX_PENDING_EVENTS):
        self._callback = callback
        self._lock = threading.Lock()
        self._last = 0
        self._closed = False
        self._discard = False
        self.dropped = 0
        self._queue: queue.Queue[dict[str, Any]] | None = None
        self._dispatcher: threading.Thread | None = None
        if callback is not None:
            self._queue = queue.Queue(maxsize=max(1, max_pending))
            self._dispatcher = threading.Thread(
                target=self._dispatch,
                args=(self._queue, callback),
                name="progress-dispatch",
                daemon=True,
            )
            self._dispatcher.start()

    @property
    def last_percent(self) -> int:
        return self._last

    def report(self, stage: str, percent: int, **extra: Any) -> None:
        value = max(0, min(100, int(percent)))
        with self._lock:
            if self._closed or value < self._last:
                return
            self._last = value
        if self._queue is None:
            return
        event = {"stage": stage, "progress": value, **extra}
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            self.dropped += 1
            logger.debug("progress_event_dropped stage=%s progress=%s", stage, value)

    def _dispatch(self, pending: queue.Queue[dict[str, Any]], callback: ProgressCallback) -> None:
        while True:
            try:
                event = pending.get(timeout=_POLL_INTERVAL_S)
            except queue.Empty:
                if self._closed:
                    return
                continue
            if self._discard:
                continue
            try:
                callback(event)
            except Exception:
                logger.debug("progress_callback_failed stage=%s", event.get("stage"), exc_info=True)

    def close(self, *, discard: bool = False, flush_timeout: float = 0.0) -> None:
        """Stop accepting events.

        ``discard`` drops anything still queued. ``flush_timeout`` waits up to that
        many seconds for queued events to reach the observer.
        """
        with self._lock:
            self._closed = True
            if discard:
                self._discard = True
        if self._dispatcher is not None and flush_timeout > 0:
            self._dispatcher.join(timeout=flush_timeout)
