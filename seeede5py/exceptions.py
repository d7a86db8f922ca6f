"""
Exceptions for the seeede5py library.

Modem-reported failures and timeouts are returned as ``Outcome`` values, not
raised. The exceptions below cover transport failures, malformed data and
caller misuse.
"""

from typing import Optional


class E5Error(Exception):
    """
    Base exception for LoRa-E5 driver errors.

    All seeede5py exceptions inherit from this class.
    """

    def __init__(
        self,
        message: str,
        command: Optional[str] = None,
        response: Optional[list[str]] = None
    ) -> None:
        """
        Initialize exception with context.

        Args:
            message: Error description
            command: AT command that caused the error (if applicable)
            response: Modem response lines (if applicable)
        """
        self.command = command
        self.response = response
        super().__init__(message)

    def __str__(self) -> str:
        """Format error message with context."""
        parts = [super().__str__()]

        if self.command:
            parts.append(f"Command: {self.command}")

        if self.response:
            parts.append(f"Response: {self.response}")

        return " | ".join(parts)


class TransportError(E5Error):
    """
    Raised when the transport layer fails.

    This indicates:
    - Serial port cannot be opened
    - Write or read failure
    - Hardware communication failure
    """
    pass


class DeviceDisconnectedError(TransportError):
    """
    Raised when the device is disconnected during operation.

    This is a fatal error that requires closing and reopening the connection.
    """
    pass


class ModemNotStartedError(E5Error):
    """
    Raised when a command is issued before the reader thread is running.
    """
    pass


class TransactionPendingError(E5Error):
    """
    Raised when a command is issued while another one is still pending.

    The module answers one command at a time, so the driver never queues.
    """
    pass


class ATParseError(E5Error):
    """
    Raised when a line from the modem cannot be parsed.

    This indicates:
    - Wrong number of delimited fields
    - Non-numeric port, RSSI or SNR
    - Invalid payload text
    """
    pass


class PayloadFormatError(ATParseError, ValueError):
    """
    Raised when a hex payload is malformed (odd length or non-hex characters).
    """
    pass
