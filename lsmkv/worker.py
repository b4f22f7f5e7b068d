"""A single background thread that runs queued tasks in order."""

import threading
from collections import deque
from typing import Callable, Optional


class Worker:
    """Runs tasks one after another until stopped.

    Tasks still queued when the worker stops are dropped.
    """

    def __init__(self) -> None:
        self._tasks: deque[Callable[[], object]] = deque()
        self._cond = threading.Condition()
        self._closed = False
        self._thread: Optional[threading.Thread] = None

    @classmethod
    def start_background(cls) -> "Worker":
        """Create a worker and start running it on a new thread."""
        worker = cls()
        worker._thread = threading.Thread(target=worker.run, daemon=True)
        worker._thread.start()
        return worker

    @property
    def closed(self) -> bool:
        """Whether :meth:`stop` has been called."""
        return self._closed

    def add(self, task: Callable[[], object]) -> None:
        """Queue ``task`` and wake the worker."""
        with self._cond:
            self._tasks.append(task)
            self._cond.notify()

    def stop(self) -> None:
        """Ask the worker to finish after the task it is running."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def join(self) -> None:
        """Wait for the background thread to end."""
        if self._thread is None:
            raise RuntimeError("worker was not started in the background")
        self._thread.join()

    def run(self) -> None:
        """Run queued tasks on the calling thread until stopped."""
        while True:
            with self._cond:
                while not self._closed and not self._tasks:
                    self._cond.wait()
                if self._closed:
                    return
                task = self._tasks.popleft()
            # Tasks run without the lock so they may queue more work.
            task()

    __call__ = run