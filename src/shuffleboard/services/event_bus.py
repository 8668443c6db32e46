"""
Event Bus Service - Thread-safe in-process notifications

Key behaviors:
- Weak references for automatic subscriber cleanup
- No locks held during callback execution (deadlock prevention)
- Callback ID tracking for proper unsubscribe
- Worker thread dispatch once started, inline dispatch before that
- Queue capacity warnings at 80%
"""

import logging
import queue
import threading
import weakref
from collections.abc import Callable
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class Events(Enum):
    """Events published by the dashboard tree and recording controller"""

    # Diagnostics (operator-visible side channel)
    DIAGNOSTIC = "diagnostic.reported"

    # Dashboard tree
    TAB_CREATED = "tree.tab_created"
    LAYOUT_CREATED = "tree.layout_created"
    ACTUATORS_ENABLED = "tree.actuators_enabled"
    ACTUATORS_DISABLED = "tree.actuators_disabled"

    # Recording
    RECORDING_STARTED = "recording.started"
    RECORDING_STOPPED = "recording.stopped"
    RECORDING_FORMAT_CHANGED = "recording.format_changed"
    EVENT_MARKER_ADDED = "recording.event_marker"
    RECORDING_FILE_OPENED = "recording.file_opened"
    RECORDING_FILE_CLOSED = "recording.file_closed"


class EventBus:
    """
    Thread-safe event bus.

    Callbacks receive {"name": event.value, "data": data}.
    """

    def __init__(self, max_queue_size: int = 5000):
        # Subscribers stored as (callback_key, weak_ref_or_callback) tuples
        self._subscribers: dict[Events, list[tuple[Any, Any]]] = {}
        self._queue: queue.Queue = queue.Queue(maxsize=max_queue_size)
        self._processing = False
        self._thread: threading.Thread | None = None

        # Lock only for subscription management, not during callback execution
        self._sub_lock = threading.RLock()

        self._stats = {
            "events_published": 0,
            "events_processed": 0,
            "events_dropped": 0,
            "errors": 0,
        }

    def start(self) -> None:
        """Start event processing thread"""
        if not self._processing:
            self._processing = True
            self._thread = threading.Thread(
                target=self._process_events, daemon=True, name="shuffleboard-events"
            )
            self._thread.start()
            logger.info("EventBus started")

    def stop(self) -> None:
        """Stop event processing, draining what is already queued."""
        if not self._processing:
            return

        self._processing = False
        try:
            self._queue.put(None, timeout=0.5)  # Sentinel to wake thread
        except queue.Full:
            logger.warning("Event queue full, processing thread may stop late")

        if self._thread:
            self._thread.join(timeout=3.0)
            if self._thread.is_alive():
                logger.error("EventBus thread did not stop cleanly within timeout")
        self._thread = None
        logger.info("EventBus stopped")

    @property
    def is_running(self) -> bool:
        return self._processing

    def subscribe(self, event: Events, callback: Callable, weak: bool = True) -> None:
        """
        Subscribe to an event.

        Args:
            event: Event to subscribe to
            callback: Callback function
            weak: Use weak reference for automatic cleanup (default True)
        """
        with self._sub_lock:
            entries = self._subscribers.setdefault(event, [])
            cb_id = self._callback_key(callback)

            # Skip if already subscribed (prevent duplicates)
            for existing_id, ref in entries:
                if existing_id == cb_id and self._resolve_callback(ref) is not None:
                    logger.debug(f"Already subscribed to {event.value}, skipping duplicate")
                    return
            entries[:] = [(cid, ref) for cid, ref in entries if cid != cb_id]

            ref: Any = callback
            if weak:
                try:
                    if hasattr(callback, "__self__"):
                        ref = weakref.WeakMethod(callback)
                    else:
                        ref = weakref.ref(callback)
                except TypeError:
                    # Not weak-referenceable, store directly
                    ref = callback
            entries.append((cb_id, ref))
            logger.debug(f"Subscribed to {event.value}")

    def unsubscribe(self, event: Events, callback: Callable) -> None:
        """Unsubscribe from an event using callback ID matching."""
        with self._sub_lock:
            entries = self._subscribers.get(event)
            if not entries:
                return
            cb_id = self._callback_key(callback)
            remaining = [(cid, ref) for cid, ref in entries if cid != cb_id]
            if remaining:
                self._subscribers[event] = remaining
            else:
                self._subscribers.pop(event, None)
            logger.debug(f"Unsubscribed from {event.value}")

    def publish(self, event: Events, data: Any = None) -> None:
        """Publish an event to all subscribers."""
        self._stats["events_published"] += 1
        if not self._processing:
            self._dispatch(event, data)
            return

        try:
            self._queue.put_nowait((event, data))
            qsize = self._queue.qsize()
            max_size = self._queue.maxsize
            if max_size > 0 and qsize > max_size * 0.8:
                logger.warning(
                    f"EventBus queue at {qsize}/{max_size} ({qsize / max_size * 100:.0f}% capacity)"
                )
        except queue.Full:
            self._stats["events_dropped"] += 1
            logger.warning(f"Event queue full, dropping event: {event.value}")

    def _process_events(self) -> None:
        """Background thread to process events"""
        while True:
            try:
                item = self._queue.get(timeout=0.1)
            except queue.Empty:
                if not self._processing:
                    break
                continue
            if item is None:  # Sentinel
                break
            event, data = item
            self._dispatch(event, data)

    def _dispatch(self, event: Events, data: Any) -> None:
        """Dispatch to live subscribers. Lock released before callbacks run."""
        callbacks = []
        with self._sub_lock:
            alive = []
            for cb_id, ref in self._subscribers.get(event, []):
                callback = self._resolve_callback(ref)
                if callback is not None:
                    callbacks.append(callback)
                    alive.append((cb_id, ref))
            if event in self._subscribers:
                self._subscribers[event] = alive

        for callback in callbacks:
            try:
                callback({"name": event.value, "data": data})
                self._stats["events_processed"] += 1
            except Exception as e:
                self._stats["errors"] += 1
                logger.error(f"Error in callback for {event.value}: {e}", exc_info=True)

    @staticmethod
    def _callback_key(callback: Callable) -> Any:
        # Bound methods are re-created on every attribute access
        if hasattr(callback, "__self__") and hasattr(callback, "__func__"):
            return (id(callback.__self__), id(callback.__func__))
        return id(callback)

    @staticmethod
    def _resolve_callback(ref: Any) -> Callable | None:
        if isinstance(ref, weakref.ReferenceType):
            return ref()
        return ref if callable(ref) else None

    def has_subscribers(self, event: Events) -> bool:
        with self._sub_lock:
            return any(
                self._resolve_callback(ref) is not None
                for _, ref in self._subscribers.get(event, [])
            )

    def get_stats(self) -> dict[str, Any]:
        """Get event bus statistics including processing counters."""
        with self._sub_lock:
            stats = {
                "subscriber_count": sum(len(entries) for entries in self._subscribers.values()),
                "event_types": len(self._subscribers),
                "queue_size": self._queue.qsize(),
                "processing": self._processing,
            }
        stats.update(self._stats)
        return stats

    def clear_all(self) -> None:
        """Clear all subscribers (for testing/cleanup)."""
        with self._sub_lock:
            self._subscribers.clear()
            logger.debug("All subscribers cleared")
