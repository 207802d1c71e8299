"""Asynchronous progress reporting for long-running grid sweeps."""

from __future__ import annotations

import logging
import queue
import threading
from typing import Callable

logger = logging.getLogger(__name__)

ProgressSink = Callable[[float], None]

_STOP = object()


class ProgressReporter:
    """Forward grid-point completion percentages to a sink on a side thread.

    Percentages are strictly increasing; the compute loop only enqueues, so a
    slow or failing sink cannot block or alter the sweep. Use as a context
    manager: a clean exit emits a final 100.0 if it was not already sent.
    """

    def __init__(
        self,
        sink: ProgressSink | None,
        total: int,
        *,
        min_step: float = 0.0,
        close_timeout: float | None = 5.0,
    ) -> None:
        if int(total) <= 0:
            raise ValueError("total must be positive.")
        self.sink = sink
        self.total = int(total)
        self.min_step = float(min_step)
        self.close_timeout = close_timeout
        self.completed = 0
        self._last_emitted = -1.0
        self._lock = threading.Lock()
        self._queue: queue.SimpleQueue = queue.SimpleQueue()
        self._thread: threading.Thread | None = None

    def __enter__(self) -> ProgressReporter:
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close(finished=exc_type is None)

    def start(self) -> None:
        if self.sink is None or self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._dispatch, name="apslab-progress", daemon=True
        )
        self._thread.start()

    def advance(self, n: int = 1) -> None:
        with self._lock:
            self.completed = min(self.total, self.completed + int(n))
            pct = 100.0 * self.completed / self.total
            if pct >= 100.0 or pct - self._last_emitted >= self.min_step:
                self._emit_locked(pct)

    def close(self, *, finished: bool = True) -> None:
        with self._lock:
            if finished and self._last_emitted < 100.0:
                self._emit_locked(100.0)
        if self._thread is None:
            return
        self._queue.put(_STOP)
        self._thread.join(self.close_timeout)
        self._thread = None

    def _emit_locked(self, pct: float) -> None:
        if pct <= self._last_emitted:
            return
        self._last_emitted = pct
        if self.sink is not None:
            self._queue.put(pct)

    def _dispatch(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                return
            try:
                self.sink(item)
            except Exception as exc:  # progress is best-effort
                logger.warning("Progress sink failed at %.1f%%: %s", item, exc)
