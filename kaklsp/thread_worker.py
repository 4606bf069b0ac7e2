"""A worker thread fed through a bounded queue, shut down on close."""

from __future__ import annotations

import logging
import queue
import threading
import time
from collections.abc import Callable, Iterator
from typing import Any

logger = logging.getLogger(__name__)

_CLOSED = object()
_POLL = 0.05


class Worker:
    """Runs ``target(incoming, emit)`` on a named thread.

    ``incoming`` yields sent items until the worker is closed; ``emit`` puts
    results on an unbounded output queue read with :meth:`receive`.
    """

    def __init__(
        self,
        name: str,
        capacity: int,
        target: Callable[[Iterator[Any], Callable[[Any], None]], None],
    ) -> None:
        self.name = name
        # Bounded input, unbounded output, so the worker can never stall on output.
        self._inbox: queue.Queue[Any] = queue.Queue(maxsize=capacity)
        self._outbox: queue.Queue[Any] = queue.Queue()
        self._closed = False
        self._error: BaseException | None = None
        self._thread = threading.Thread(
            target=self._run, args=(target,), name=name, daemon=True
        )
        self._thread.start()

    def _incoming(self) -> Iterator[Any]:
        while True:
            item = self._inbox.get()
            if item is _CLOSED:
                return
            yield item

    def _run(self, target: Callable[[Iterator[Any], Callable[[Any], None]], None]) -> None:
        try:
            target(self._incoming(), self._outbox.put)
        except BaseException as exc:
            self._error = exc

    def send(self, item: Any) -> None:
        """Queue an item for the worker, blocking while the queue is full."""
        if self._closed:
            raise RuntimeError(f"worker {self.name} is closed")
        while True:
            if not self._thread.is_alive():
                raise RuntimeError(f"worker {self.name} has stopped")
            try:
                self._inbox.put(item, timeout=_POLL)
                return
            except queue.Full:
                continue

    def receive(self, timeout: float | None = None) -> Any:
        """Return the next output item.

        Raises TimeoutError if nothing arrives in time and EOFError once the
        worker has finished and its output is drained.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            wait = _POLL
            if deadline is not None:
                wait = min(_POLL, max(0.0, deadline - time.monotonic()))
            try:
                return self._outbox.get(timeout=wait)
            except queue.Empty:
                if not self._thread.is_alive() and self._outbox.empty():
                    raise EOFError(f"worker {self.name} has finished") from None
                if deadline is not None and time.monotonic() >= deadline:
                    raise TimeoutError(f"no output from worker {self.name}") from None

    def close(self) -> None:
        """Stop input, wait for the thread and re-raise its failure, if any."""
        if not self._closed:
            self._closed = True
            while self._thread.is_alive():
                try:
                    self._inbox.put(_CLOSED, timeout=_POLL)
                    break
                except queue.Full:
                    continue
            logger.info("Waiting for %s to finish...", self.name)
            self._thread.join()
            logger.info(
                "... %s terminated with %s", self.name, "err" if self._error else "ok"
            )
        if self._error is not None:
            error, self._error = self._error, None
            raise error

    def __enter__(self) -> Worker:
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None:
            self.close()
        else:
            try:
                self.close()
            except Exception:
                logger.exception("worker %s failed while handling another error", self.name)
        return False