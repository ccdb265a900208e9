"""Progress reporting for ingestion pipelines"""

import queue
from typing import Callable, Iterator, Optional

from ..models import ProgressEvent

ProgressCallback = Callable[[str, float], None]


class ProgressChannel:
    """
    Queue-backed progress sink.

    The pipeline calls the channel like a plain ``on_progress(stage, fraction)``
    callback from whatever thread it runs on; the caller drains events on
    its own thread with ``get``, ``drain`` or by iterating until ``close``.
    """

    _CLOSED = object()

    def __init__(self, maxsize: int = 0):
        self._queue: queue.Queue = queue.Queue(maxsize=maxsize)
        self._closed = False

    def __call__(self, stage: str, fraction: float, message: str = ""):
        self.publish(ProgressEvent(stage=stage, fraction=fraction, message=message))

    def publish(self, event: ProgressEvent):
        if self._closed:
            raise RuntimeError("Progress channel is closed")
        self._queue.put(event)

    def close(self):
        if not self._closed:
            self._closed = True
            self._queue.put(self._CLOSED)

    @property
    def closed(self) -> bool:
        return self._closed

    def get(self, timeout: Optional[float] = None) -> Optional[ProgressEvent]:
        """Next event, or None once the channel is closed and empty"""
        item = self._queue.get(timeout=timeout)
        if item is self._CLOSED:
            # Keep the sentinel for other readers
            self._queue.put(item)
            return None
        return item

    def drain(self) -> list[ProgressEvent]:
        """All events available right now, without blocking"""
        events = []
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                break
            if item is self._CLOSED:
                self._queue.put(item)
                break
            events.append(item)
        return events

    def __iter__(self) -> Iterator[ProgressEvent]:
        while True:
            event = self.get()
            if event is None:
                return
            yield event


def report(on_progress: Optional[ProgressCallback], stage: str, fraction: float):
    if on_progress is not None:
        on_progress(stage, fraction)
