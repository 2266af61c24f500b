"""
=============================================================================
CHANGE NOTIFIER
=============================================================================

Tells the display layer that the set of gallery images changed.

=============================================================================
CHANNEL, NOT CALLBACK
=============================================================================

Events are raised on HTTP worker threads. A display layer that repaints
from inside a worker thread would run UI code on the wrong thread, so the
notifier never calls consumers directly. Each subscriber owns a queue:

    ┌─────────────┐ publish()  ┌──────────────────────────────────────────┐
    │  worker #3  │──────────► │ ChangeNotifier                           │
    └─────────────┘            │                                          │
    ┌─────────────┐ publish()  │  Subscription A ── Queue(maxsize=1) ──►  │ display thread
    │  worker #7  │──────────► │  Subscription B ── Queue(maxsize=1) ──►  │ slideshow thread
    └─────────────┘            └──────────────────────────────────────────┘

publish() never blocks: a ChangeEvent carries no payload, so when a
subscriber has not yet picked up the previous event the new one is
folded into it. A consumer woken once re-reads the directory and sees
the result of every change that happened before.

With no subscribers, events are dropped.
=============================================================================
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional
import logging
import queue
import threading
import time


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangeEvent:
    """The gallery changed. Consumers re-list the directory to see how."""

    timestamp: float = field(default_factory=time.time)


class Subscription:
    """
    One consumer's end of the channel.

    Call get() from whichever thread should react to changes.
    """

    def __init__(self, notifier: "ChangeNotifier"):
        self._notifier = notifier
        self._queue: "queue.Queue[ChangeEvent]" = queue.Queue(maxsize=1)
        self.closed = False

    def _offer(self, event: ChangeEvent) -> None:
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            pass  # a pending event already covers this change

    def get(self, timeout: Optional[float] = None) -> Optional[ChangeEvent]:
        """
        Wait for the next change.

        Returns the event, or None when the timeout elapses.
        """
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def pending(self) -> bool:
        return not self._queue.empty()

    def close(self) -> None:
        self._notifier.unsubscribe(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *args) -> None:
        self.close()


class ChangeNotifier:
    """Fan-out of ChangeEvents to any number of subscriptions."""

    def __init__(self):
        self._subscribers: List[Subscription] = []
        self._lock = threading.Lock()

    def subscribe(self) -> Subscription:
        subscription = Subscription(self)
        with self._lock:
            self._subscribers.append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscribers:
                self._subscribers.remove(subscription)
        subscription.closed = True

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def publish(self, event: Optional[ChangeEvent] = None) -> None:
        """Hand an event to every subscriber without blocking."""
        event = event or ChangeEvent()
        with self._lock:
            subscribers = list(self._subscribers)

        if not subscribers:
            logger.debug("Gallery changed, no subscribers")
            return

        for subscription in subscribers:
            subscription._offer(event)

    def listen(
        self,
        callback: Callable[[ChangeEvent], None],
        name: str = "gallery-listener",
    ) -> Callable[[], None]:
        """
        Run callback for every change on a dedicated daemon thread.

        Returns a function that stops the listener. Exceptions raised by
        the callback are logged and the listener keeps running.
        """
        subscription = self.subscribe()
        stopped = threading.Event()

        def run() -> None:
            while not stopped.is_set():
                event = subscription.get(timeout=0.5)
                if event is None:
                    continue
                try:
                    callback(event)
                except Exception:
                    logger.exception(f"Change listener {name} failed")

        thread = threading.Thread(target=run, name=name, daemon=True)
        thread.start()

        def stop() -> None:
            stopped.set()
            subscription.close()
            if thread is not threading.current_thread():
                thread.join(timeout=2.0)

        return stop
