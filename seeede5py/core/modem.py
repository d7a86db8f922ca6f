"""
Core modem class coordinating transport, protocol, and event handling.

This is the foundation that feature managers build upon.
"""

import logging
import threading
from typing import Callable, Optional

from .transport import Transport
from .framing import LineFramer
from .classifier import (
    ResponseClassifier,
    JoinCompleted,
    CommandSucceeded,
    CommandFailed,
    MalformedLine,
    Ignored,
)
from .protocol import ATProtocol, DEFAULT_COMMAND_TIMEOUT
from .reassembler import DownlinkReassembler
from .events import EventDispatcher, EventKind, EventCallback
from ..exceptions import DeviceDisconnectedError, E5Error
from ..types import Outcome, DiagnosticEvent, DiagnosticKind

logger = logging.getLogger(__name__)

# How long stop() waits for the reader to finish its current line
READER_JOIN_TIMEOUT = 1.0


class ModemCore:
    """
    Core modem functionality.

    Coordinates:
    - Transport layer (serial communication)
    - Line framing and classification
    - Protocol layer (command transactions)
    - Downlink reassembly and event dispatch
    - Reader thread (continuous modem monitoring)

    This class provides the foundation for feature-specific managers.
    """

    def __init__(
        self,
        transport: Transport,
        timeout: float = DEFAULT_COMMAND_TIMEOUT,
        max_event_history: int = 1000,
        on_disconnect: Optional[Callable[[Exception], None]] = None
    ) -> None:
        """
        Initialize modem core.

        Args:
            transport: Transport instance for communication
            timeout: Default timeout for AT commands
            max_event_history: Maximum dispatched events to keep
            on_disconnect: Optional callback for disconnection events
        """
        self.transport = transport
        self.protocol = ATProtocol(transport, default_timeout=timeout)
        self.framer = LineFramer()
        self.classifier = ResponseClassifier()
        self.reassembler = DownlinkReassembler()
        self.dispatcher = EventDispatcher(max_history_size=max_event_history)

        # Reader thread management
        self._reader_thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._running = False
        self._on_disconnect = on_disconnect

        # Error handling
        self._consecutive_errors = 0
        self._max_consecutive_errors = 5
        self._disconnected = False

        logger.info("Initialized ModemCore")

    def start(self) -> None:
        """
        Start the modem reader thread.

        The reader thread continuously reads from the transport, frames the
        bytes into lines and routes each line to the protocol (command
        outcomes) or to the reassembler and dispatcher (unsolicited events).

        Raises:
            E5Error: If the reader of a previous session has not exited yet
        """
        if self._running:
            logger.warning("ModemCore already started")
            return

        previous = self._reader_thread
        if previous is not None:
            if previous.is_alive():
                raise E5Error("Previous reader thread is still running; try again once it exits")
            self._reader_thread = None
            self._reset_session_state()

        # Reset disconnected state on start
        self._disconnected = False
        self._consecutive_errors = 0

        self._stop_event.clear()
        self.protocol.open()
        self._reader_thread = threading.Thread(
            target=self._reader_loop,
            daemon=True,
            name="E5ReaderThread"
        )
        self._running = True
        self._reader_thread.start()
        logger.info("Started modem reader thread")

    def stop(self) -> None:
        """
        Stop the modem reader thread.

        A caller waiting on a command gets SESSION_CLOSED. The partial line
        and any half-built downlink are discarded once the reader has exited.
        """
        self.protocol.close()

        thread = self._reader_thread
        if thread is None:
            return

        logger.info("Stopping modem reader thread...")
        self._stop_event.set()

        if thread is not threading.current_thread():
            thread.join(timeout=READER_JOIN_TIMEOUT)

        self._running = False

        if thread.is_alive():
            # Framer and reassembler stay with the old reader until it exits
            logger.warning("Reader thread did not terminate in time")
            return

        self._reader_thread = None
        self._reset_session_state()
        logger.info("Stopped modem reader thread")

    def _reset_session_state(self) -> None:
        """Drop the partial line and any half-built downlink."""
        self.framer.reset()
        self.reassembler.reset()

    def close(self) -> None:
        """
        Close the modem connection.

        Stops the reader thread and closes the transport.
        """
        logger.info("Closing modem connection")
        self.stop()
        self.transport.close()
        logger.info("Modem connection closed")

    def _reader_loop(self) -> None:
        """
        Continuously read from the modem and process complete lines.
        """
        logger.debug("Reader thread started")

        while not self._stop_event.is_set():
            try:
                data = self.transport.read()

                # Reset error counter on successful read
                self._consecutive_errors = 0

                if not data:
                    continue

                for line in self.framer.feed(data):
                    if self._stop_event.is_set():
                        break
                    if not line.strip():
                        continue
                    logger.debug(f"Reader received: {line}")
                    self.process_line(line)

            except DeviceDisconnectedError as e:
                # Device is actually disconnected - stop the reader thread
                logger.error("Device disconnected, stopping reader thread")
                self._running = False
                self._disconnected = True
                self.protocol.close()

                if self._on_disconnect:
                    self._on_disconnect(e)

                break
            except Exception as e:
                # Handle consecutive errors with backoff
                self._consecutive_errors += 1
                logger.error(f"Error in reader loop ({self._consecutive_errors}/{self._max_consecutive_errors}): {e}")

                if self._consecutive_errors >= self._max_consecutive_errors:
                    logger.error(f"Too many consecutive errors ({self._consecutive_errors}), stopping reader thread")
                    self._running = False
                    self.protocol.close()
                    break

                # Exponential backoff: 0.1s, 0.2s, 0.4s, 0.8s, 1.6s
                backoff_time = 0.1 * (2 ** (self._consecutive_errors - 1))
                self._stop_event.wait(backoff_time)

        logger.debug("Reader thread stopped")

    def process_line(self, line: str) -> None:
        """
        Classify one line and route it to exactly one handler.

        Args:
            line: Complete line from the modem, terminator stripped
        """
        token, expected = self.protocol.pending_snapshot()
        event = self.classifier.classify(line, expected)

        if isinstance(event, Ignored):
            logger.debug(f"Ignoring line: {line}")
            return

        for reassembled in self.reassembler.observe(event, token):
            self.dispatcher.dispatch(reassembled)

        if isinstance(event, JoinCompleted):
            self.dispatcher.join_completed(event.success)
        elif isinstance(event, CommandSucceeded):
            if not self.protocol.resolve(token, Outcome.success(line)):
                logger.debug(f"Success line with no command waiting: {line}")
        elif isinstance(event, CommandFailed):
            outcome = Outcome.modem_error(event.error, raw_code=event.raw_code, line=line)
            if not self.protocol.resolve(token, outcome):
                logger.warning(f"Unsolicited modem error {event.error.name}: {line}")
        elif isinstance(event, MalformedLine):
            self.dispatcher.diagnostic(DiagnosticEvent(
                kind=DiagnosticKind.MALFORMED_LINE,
                reason=event.reason,
                line=line
            ))

    def register_callback(self, kind: EventKind, callback: EventCallback) -> None:
        """
        Register the callback for an event kind.

        Args:
            kind: Event kind (join completed, downlink, confirmation, diagnostic)
            callback: Function to call when the event happens

        Example:

        .. code-block:: python

            core.register_callback(EventKind.JOIN_COMPLETED, lambda ok: print(ok))
        """
        self.dispatcher.register_callback(kind, callback)

    def unregister_callback(self, kind: EventKind) -> bool:
        """
        Unregister the callback for an event kind.

        Returns:
            True if callback was removed
        """
        return self.dispatcher.unregister_callback(kind)

    def execute(
        self,
        command: str,
        expected_response: str,
        timeout: Optional[float] = None
    ) -> Outcome:
        """
        Send an AT command and wait for its outcome.

        This is a thin wrapper around protocol.execute().

        Args:
            command: AT command (e.g., "AT+PORT=15")
            expected_response: Exact success line (e.g., "+PORT: 15")
            timeout: Command timeout (uses default if None)

        Returns:
            Outcome of the transaction

        Raises:
            E5Error: If called from an event callback
            ModemNotStartedError: If the reader thread is not running
            TransactionPendingError: If another command is pending
        """
        if threading.current_thread() is self._reader_thread:
            raise E5Error(
                "Commands cannot be sent from an event callback",
                command=command
            )

        return self.protocol.execute(command, expected_response, timeout=timeout)

    def is_running(self) -> bool:
        """
        Check if the reader thread is running.

        Returns:
            True if running
        """
        return self._running

    def is_disconnected(self) -> bool:
        """
        Check if the device was disconnected during operation.

        Returns:
            True if device was disconnected, False otherwise
        """
        return self._disconnected

    def __enter__(self):
        """Context manager entry."""
        if not self._running:
            self.start()
        return self

    def __exit__(self, *exc):
        """Context manager exit."""
        self.close()
