"""Helpers for running work on an event-loop thread and on worker threads."""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Callable

log = logging.getLogger(__name__)

MAX_PARALLEL_WORKERS = 8


class CallbackQueue:
    """Callbacks posted from any thread, run later on the thread that owns the queue.

    ``wakeup`` is called after each successful post to tell the owning thread
    that work is waiting. If it raises, the callback is taken back out and
    ``post`` reports failure.
    """

    def __init__(self, wakeup: Callable[[], object] | None = None) -> None:
        self._wakeup = wakeup
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], object]] = []
        self._closed = False

    def post(self, callback: Callable[[], object]) -> bool:
        """Queue ``callback``; False if the queue is closed or the wakeup failed."""
        with self._lock:
            if self._closed:
                return False
            self._callbacks.append(callback)

        if self._wakeup is None:
            return True

        try:
            self._wakeup()
        except Exception as e:
            log.warning("failed to wake up the loop: %s", e)
            with self._lock:
                for index, queued in enumerate(self._callbacks):
                    if queued is callback:
                        del self._callbacks[index]
                        break
            return False
        return True

    def run_pending(self) -> int:
        """Run every callback queued so far, in order; return how many ran.

        Callbacks posted while these run are kept for the next call.
        """
        with self._lock:
            to_run, self._callbacks = self._callbacks, []
        for callback in to_run:
            callback()
        return len(to_run)

    def close(self) -> None:
        """Refuse further posts and drop callbacks that have not run."""
        with self._lock:
            self._closed = True
            self._callbacks.clear()

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def __len__(self) -> int:
        with self._lock:
            return len(self._callbacks)


def _worker_count() -> int:
    cpus = os.cpu_count() or 0
    return min(max(cpus - 1, 0), MAX_PARALLEL_WORKERS)


def parallel_run(callback: Callable[[], object], wait: bool = False) -> list[threading.Thread]:
    """Run ``callback`` on one worker thread per spare CPU, at most eight.

    With ``wait`` the calling thread runs ``callback`` too and returns only
    when every worker has finished. The started threads are returned.
    """
    threads = [
        threading.Thread(target=callback, name=f"parallel-{i}", daemon=True)
        for i in range(_worker_count())
    ]
    for thread in threads:
        thread.start()

    if wait:
        callback()
        for thread in threads:
            thread.join()

    return threads