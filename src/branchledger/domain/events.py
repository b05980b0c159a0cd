"""Side-effect dispatch decoupled from the settlement commit path.

Events are queued and delivered by a background worker thread. Delivery is
best effort: a failing subscriber is logged and skipped, and nothing here
can fail or roll back the mutation that produced the event.
"""

import logging
import queue
from threading import Lock, Thread
from typing import Any, Callable, Optional, Protocol

logger = logging.getLogger(__name__)

OBLIGATION_CREATED = "ObligationCreated"
PAYMENT_RECORDED = "PaymentRecorded"
OBLIGATION_UPDATED = "ObligationUpdated"

Subscriber = Callable[[str, dict[str, Any]], None]

_STOP = object()


class SideEffectDispatcher(Protocol):
    """Outbound event port consumed by the settlement engine."""

    def emit(self, event_name: str, payload: dict[str, Any]) -> None: ...


class EventDispatcher:
    """Queue-backed dispatcher with a single delivery thread.

    Events are delivered to subscribers in emit order.
    """

    def __init__(self, name: str = "branchledger-events"):
        self._queue: queue.Queue = queue.Queue()
        self._subscribers: list[Subscriber] = []
        self._lock = Lock()
        self._name = name
        self._worker: Optional[Thread] = None
        self._closed = False

    def subscribe(self, subscriber: Subscriber) -> None:
        """Register a callable invoked as ``subscriber(event_name, payload)``."""
        with self._lock:
            self._subscribers.append(subscriber)

    def emit(self, event_name: str, payload: dict[str, Any]) -> None:
        """Queue an event and return immediately."""
        if self._closed:
            logger.warning("Dropping %s: dispatcher is closed", event_name)
            return
        self._ensure_worker()
        self._queue.put((event_name, payload))

    def flush(self) -> None:
        """Block until every queued event has been delivered."""
        self._queue.join()

    def close(self) -> None:
        """Deliver what is queued, then stop the worker."""
        if self._closed:
            return
        self._closed = True
        if self._worker is not None:
            self._queue.put(_STOP)
            self._worker.join()
            self._worker = None

    def _ensure_worker(self) -> None:
        with self._lock:
            if self._worker is None:
                self._worker = Thread(target=self._run, name=self._name, daemon=True)
                self._worker.start()

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                event_name, payload = item
                self._deliver(event_name, payload)
            finally:
                self._queue.task_done()

    def _deliver(self, event_name: str, payload: dict[str, Any]) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for subscriber in subscribers:
            try:
                subscriber(event_name, payload)
            except Exception:
                logger.exception("Subscriber %r failed on %s; event dropped", subscriber, event_name)


def log_event(event_name: str, payload: dict[str, Any]) -> None:
    """Subscriber that writes every event to the log."""
    logger.info("event %s %s", event_name, payload)
