"""
Event dispatcher for unsolicited modem events.

Holds at most one callback per event kind and keeps a bounded history of
dispatched events, in a thread-safe manner.
"""

import logging
import threading
from collections import deque
from enum import Enum
from typing import Any, Callable, Deque, Dict, Optional, Union

from ..types import DownlinkEvent, ConfirmationEvent, DiagnosticEvent

logger = logging.getLogger(__name__)

# Callback signatures:
#   JOIN_COMPLETED:    callback(success: bool)
#   DOWNLINK_RECEIVED: callback(port: int, rssi: int, snr: float, payload_hex: str)
#   SEND_CONFIRMED:    callback(rssi: int, snr: float)
#   DIAGNOSTIC:        callback(event: DiagnosticEvent)
EventCallback = Callable[..., None]

HistoryItem = Union[bool, DownlinkEvent, ConfirmationEvent, DiagnosticEvent]


class EventKind(Enum):
    """Kinds of events a caller can subscribe to."""
    JOIN_COMPLETED = "join_completed"
    DOWNLINK_RECEIVED = "downlink_received"
    SEND_CONFIRMED = "send_confirmed"
    DIAGNOSTIC = "diagnostic"


class EventDispatcher:
    """
    Fans modem events out to registered callbacks.

    Features:
    - Zero or one callback per event kind; an empty slot is a no-op
    - Bounded history of dispatched events
    - Callbacks run synchronously on the reader thread
    - A failing callback is logged and does not stop the reader
    """

    def __init__(self, max_history_size: int = 1000) -> None:
        """
        Initialize event dispatcher.

        Args:
            max_history_size: Maximum number of events kept in history
        """
        self._max_history_size = max_history_size
        self._history: Deque[tuple[EventKind, HistoryItem]] = deque(maxlen=max_history_size)
        self._callbacks: Dict[EventKind, EventCallback] = {}
        self._lock = threading.Lock()

        logger.info(f"Initialized event dispatcher (max_history_size={max_history_size})")

    def register_callback(self, kind: EventKind, callback: EventCallback) -> None:
        """
        Register the callback for an event kind, replacing any previous one.

        Args:
            kind: Event kind to subscribe to
            callback: Function to call; see EventCallback for signatures

        Example:

        .. code-block:: python

            dispatcher.register_callback(
                EventKind.JOIN_COMPLETED,
                lambda ok: print(f"Joined: {ok}")
            )
        """
        with self._lock:
            if kind in self._callbacks:
                logger.info(f"Replacing callback for {kind.value}")
            self._callbacks[kind] = callback
            logger.info(f"Registered callback for {kind.value}")

    def unregister_callback(self, kind: EventKind) -> bool:
        """
        Remove the callback for an event kind.

        Returns:
            True if callback was removed, False if none was registered
        """
        with self._lock:
            if kind in self._callbacks:
                del self._callbacks[kind]
                logger.info(f"Unregistered callback for {kind.value}")
                return True
            return False

    def clear_callbacks(self) -> None:
        """Clear all registered callbacks."""
        with self._lock:
            count = len(self._callbacks)
            self._callbacks.clear()
            logger.info(f"Cleared {count} callbacks")

    def join_completed(self, success: bool) -> None:
        """Dispatch a join result."""
        logger.info(f"Join completed: {'joined' if success else 'failed'}")
        self._dispatch(EventKind.JOIN_COMPLETED, success, success)

    def downlink_received(self, event: DownlinkEvent) -> None:
        """Dispatch a reassembled downlink."""
        logger.info(f"Downlink received: port {event.port} RSSI {event.rssi} "
                    f"SNR {event.snr} payload {event.payload}")
        self._dispatch(
            EventKind.DOWNLINK_RECEIVED, event,
            event.port, event.rssi, event.snr, event.payload
        )

    def send_confirmed(self, event: ConfirmationEvent) -> None:
        """Dispatch confirmation metrics for a confirmed uplink."""
        logger.info(f"Send confirmed: RSSI {event.rssi} SNR {event.snr}")
        self._dispatch(EventKind.SEND_CONFIRMED, event, event.rssi, event.snr)

    def diagnostic(self, event: DiagnosticEvent) -> None:
        """Dispatch a protocol diagnostic."""
        logger.warning(f"Diagnostic {event.kind.value}: {event.reason}")
        self._dispatch(EventKind.DIAGNOSTIC, event, event)

    def dispatch(self, event: Any) -> None:
        """Dispatch any reassembled event to the matching slot."""
        if isinstance(event, DownlinkEvent):
            self.downlink_received(event)
        elif isinstance(event, ConfirmationEvent):
            self.send_confirmed(event)
        elif isinstance(event, DiagnosticEvent):
            self.diagnostic(event)
        else:
            raise TypeError(f"Cannot dispatch {type(event).__name__}")

    def _dispatch(self, kind: EventKind, item: HistoryItem, *args: Any) -> None:
        """Record the event and call the registered callback, if any."""
        with self._lock:
            self._history.append((kind, item))
            callback: Optional[EventCallback] = self._callbacks.get(kind)

        # Callbacks run outside the lock
        if callback is None:
            return

        try:
            callback(*args)
            logger.debug(f"Callback for {kind.value} executed successfully")
        except Exception as e:
            logger.error(f"Callback for {kind.value} failed: {e}", exc_info=True)

    def get_history(self, kind: Optional[EventKind] = None) -> list[HistoryItem]:
        """
        Get a copy of the event history.

        Args:
            kind: Only return events of this kind (all kinds if None)

        Returns:
            Events, oldest first
        """
        with self._lock:
            return [item for k, item in self._history if kind is None or k is kind]

    def clear_history(self) -> int:
        """
        Clear the event history.

        Returns:
            Number of events that were cleared
        """
        with self._lock:
            count = len(self._history)
            self._history.clear()
            logger.info(f"Cleared {count} events from history")
            return count

    def get_callbacks(self) -> Dict[EventKind, EventCallback]:
        """
        Get registered callbacks (for debugging).

        Returns:
            Dictionary mapping event kinds to callbacks
        """
        with self._lock:
            return dict(self._callbacks)
