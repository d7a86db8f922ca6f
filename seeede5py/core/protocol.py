"""
AT command protocol handler.

Owns the single pending command transaction: writes the command, waits for the
reader thread to resolve it, and turns silence into a timeout.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Optional

from .transport import Transport
from ..exceptions import TransactionPendingError, ModemNotStartedError
from ..types import Outcome

logger = logging.getLogger(__name__)

# The module answers most commands well inside this window
DEFAULT_COMMAND_TIMEOUT = 1.5


@dataclass
class PendingTransaction:
    """The command currently waiting for an answer."""
    token: int
    command: str
    expected_response: str
    done: threading.Event = field(default_factory=threading.Event)
    outcome: Optional[Outcome] = None


class ATProtocol:
    """
    AT command transaction coordinator.

    At most one transaction is pending. The reader thread resolves it through
    ``resolve`` using the token it read from ``pending_snapshot``; a token
    that no longer matches the slot (timed out, superseded) resolves nothing.
    """

    def __init__(
        self,
        transport: Transport,
        default_timeout: float = DEFAULT_COMMAND_TIMEOUT
    ) -> None:
        """
        Initialize AT protocol handler.

        Args:
            transport: Transport instance for communication
            default_timeout: Default timeout for AT commands in seconds
        """
        self.transport = transport
        self.default_timeout = default_timeout

        # Held for the whole of execute(); never waited on
        self._at_lock = threading.Lock()

        # Guards the slot, the token counter and the closed flag
        self._slot_lock = threading.Lock()
        self._pending: Optional[PendingTransaction] = None
        self._last_token = 0
        self._closed = True

        logger.info("Initialized AT protocol handler")

    def execute(
        self,
        command: str,
        expected_response: str,
        timeout: Optional[float] = None
    ) -> Outcome:
        """
        Send an AT command and wait for its outcome.

        Args:
            command: Command line without terminator (e.g., "AT+PORT=15")
            expected_response: Exact line that means success (e.g., "+PORT: 15")
            timeout: Seconds to wait (uses default if None)

        Returns:
            Outcome: SUCCESS, MODEM_ERROR, TIMEOUT or SESSION_CLOSED

        Raises:
            ValueError: If command or expected_response is empty
            TransactionPendingError: If another command is still pending
            ModemNotStartedError: If the session is not open
            TransportError: If the command cannot be written
        """
        if not command:
            raise ValueError("command cannot be empty")
        if not expected_response:
            raise ValueError("expected_response cannot be empty")

        if not self._at_lock.acquire(blocking=False):
            raise TransactionPendingError(
                "Another AT command is still pending",
                command=command
            )

        try:
            with self._slot_lock:
                if self._closed:
                    raise ModemNotStartedError(
                        "Session is not open; call start() first",
                        command=command
                    )
                self._last_token += 1
                pending = PendingTransaction(
                    token=self._last_token,
                    command=command,
                    expected_response=expected_response
                )
                self._pending = pending

            logger.debug(f"Sending AT command #{pending.token}: {command} "
                         f"(expecting {expected_response!r})")

            try:
                self.transport.write((command + "\r\n").encode("utf-8"))
            except Exception:
                with self._slot_lock:
                    if self._pending is pending:
                        self._pending = None
                raise

            timeout_val = timeout if timeout is not None else self.default_timeout
            pending.done.wait(timeout_val)

            # Clear the slot and fix the outcome in one step, so a line that
            # arrives now cannot resolve a transaction nobody waits for
            with self._slot_lock:
                if self._pending is pending:
                    self._pending = None
                if pending.outcome is None:
                    pending.outcome = Outcome.timeout()
                outcome = pending.outcome

            if outcome.is_success:
                logger.debug(f"AT command #{pending.token} succeeded: {command}")
            else:
                logger.warning(f"AT command {command} failed: {outcome}")

            return outcome
        finally:
            self._at_lock.release()

    def pending_snapshot(self) -> tuple[int, str]:
        """
        Get the token and success text of the pending transaction.

        Returns:
            (token, expected_response); (last token, "") when nothing is pending
        """
        with self._slot_lock:
            if self._pending is None or self._pending.outcome is not None:
                return self._last_token, ""
            return self._pending.token, self._pending.expected_response

    def resolve(self, token: int, outcome: Outcome) -> bool:
        """
        Resolve the pending transaction if it is still the one for ``token``.

        Args:
            token: Token returned by pending_snapshot() for the line
            outcome: Outcome to hand to the waiting caller

        Returns:
            True if a waiting caller received the outcome
        """
        with self._slot_lock:
            pending = self._pending
            if pending is None or pending.token != token or pending.outcome is not None:
                return False
            pending.outcome = outcome
            pending.done.set()
            return True

    @property
    def last_token(self) -> int:
        """Token of the most recently issued transaction (0 if none)."""
        with self._slot_lock:
            return self._last_token

    def is_response_pending(self) -> bool:
        """
        Check if a command is waiting for its outcome.

        Returns:
            True if response is pending
        """
        with self._slot_lock:
            return self._pending is not None and self._pending.outcome is None

    def open(self) -> None:
        """Accept transactions (called when the session starts)."""
        with self._slot_lock:
            self._closed = False

    def close(self) -> None:
        """
        Refuse new transactions and release any waiting caller.

        A caller blocked in execute() returns SESSION_CLOSED.
        """
        with self._slot_lock:
            self._closed = True
            pending = self._pending
            self._pending = None
            if pending is not None and pending.outcome is None:
                logger.warning(f"Session closed while {pending.command} was pending")
                pending.outcome = Outcome.session_closed()
                pending.done.set()
