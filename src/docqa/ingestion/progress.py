"""Optional upload-progress reporting.

``upload_document`` reports checkpoints to a :class:`ProgressObserver` when
the service context carries one.  :class:`UploadTracker` is the in-memory
implementation used by the HTTP layer; nothing here is durable.
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from collections.abc import Callable
from typing import Protocol

from docqa.ingestion.models import UploadProgress

logger = logging.getLogger(__name__)

ProgressListener = Callable[[UploadProgress], None]

FINISHED_STATUSES = frozenset({"completed", "failed"})


class ProgressObserver(Protocol):
    """Receives ``(file_name, percent, status)`` checkpoints."""

    def on_progress(self, file_name: str, percent: int, status: str) -> None: ...


class UploadTracker:
    """Thread-safe in-memory progress table with change listeners.

    Uploads still processing are always kept.  Only the ``max_finished``
    most recently finished (completed or failed) uploads are retained; older
    ones are evicted.

    Parameters
    ----------
    max_finished:
        Number of finished uploads to keep queryable.
    """

    def __init__(self, max_finished: int = 1000) -> None:
        if max_finished < 0:
            raise ValueError(f"max_finished must be >= 0, got {max_finished}")
        self.max_finished = max_finished
        self._active: dict[str, UploadProgress] = {}
        self._finished: OrderedDict[str, UploadProgress] = OrderedDict()
        self._listeners: list[ProgressListener] = []
        self._lock = threading.Lock()

    def on_progress(self, file_name: str, percent: int, status: str) -> None:
        self.update_progress(file_name, percent, status)

    def update_progress(self, file_name: str, percent: int, status: str) -> UploadProgress:
        snapshot = UploadProgress(file_name=file_name, progress=percent, status=status)
        with self._lock:
            if status in FINISHED_STATUSES:
                self._active.pop(file_name, None)
                self._finished.pop(file_name, None)
                self._finished[file_name] = snapshot
                while len(self._finished) > self.max_finished:
                    evicted, _ = self._finished.popitem(last=False)
                    logger.debug("Evicted progress for %s", evicted)
            else:
                self._finished.pop(file_name, None)
                self._active[file_name] = snapshot
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Progress listener failed for %s", file_name)
        return snapshot

    def get_progress(self, file_name: str) -> UploadProgress | None:
        with self._lock:
            return self._active.get(file_name) or self._finished.get(file_name)

    def clear_progress(self, file_name: str) -> None:
        with self._lock:
            self._active.pop(file_name, None)
            self._finished.pop(file_name, None)

    def subscribe(self, listener: ProgressListener) -> Callable[[], None]:
        """Register *listener*; the returned callable unsubscribes it."""
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe
