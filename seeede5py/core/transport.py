"""
Transport layer abstraction for modem communication.

Provides abstractions for serial communication with dependency injection support.
"""

import logging
import threading
from abc import ABC, abstractmethod
from collections import deque
from typing import Deque, Optional, Union

import serial
from serial import SerialException

from ..exceptions import TransportError, DeviceDisconnectedError

logger = logging.getLogger(__name__)

# Phrases pyserial uses when the device has gone away
_DISCONNECT_PHRASES = (
    "device disconnected",
    "device reports readiness to read but returned no data",
    "no such device",
    "device not configured",
    "input/output error",
)


class Transport(ABC):
    """Abstract base class for a duplex byte channel to the module."""

    @abstractmethod
    def write(self, data: bytes) -> int:
        """
        Write data to the transport.

        Args:
            data: Bytes to write

        Returns:
            Number of bytes written

        Raises:
            TransportError: If write fails
        """
        pass

    @abstractmethod
    def read(self, timeout: Optional[float] = None) -> bytes:
        """
        Read whatever bytes are available.

        Blocks for at most ``timeout`` seconds waiting for the first byte.
        Chunks may end anywhere, including in the middle of a line.

        Args:
            timeout: Optional timeout in seconds

        Returns:
            Bytes read, or b"" if nothing arrived in time

        Raises:
            TransportError: If read fails
            DeviceDisconnectedError: If the device has gone away
        """
        pass

    @abstractmethod
    def reset_input_buffer(self) -> None:
        """Clear the input buffer."""
        pass

    @abstractmethod
    def is_open(self) -> bool:
        """Check if transport is open."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close the transport."""
        pass


class SerialTransport(Transport):
    """Serial port transport implementation."""

    def __init__(
        self,
        port: str,
        baudrate: int = 9600,
        parity: str = serial.PARITY_NONE,
        bytesize: int = serial.EIGHTBITS,
        stopbits: float = serial.STOPBITS_ONE,
        timeout: float = 0.1
    ) -> None:
        """
        Initialize serial transport.

        Args:
            port: Serial port path (e.g., /dev/ttyS0, COM3)
            baudrate: Baud rate (the LoRa-E5 ships at 9600)
            parity: pyserial parity constant
            bytesize: Data bits
            stopbits: Stop bits
            timeout: Read timeout in seconds

        Raises:
            TransportError: If serial port cannot be opened
        """
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout

        try:
            self._serial = serial.Serial(
                port=port,
                baudrate=baudrate,
                parity=parity,
                bytesize=bytesize,
                stopbits=stopbits,
                timeout=timeout
            )
            logger.info(f"Opened serial port {port} at {baudrate} baud")
        except SerialException as e:
            logger.error(f"Failed to open serial port {port}: {e}")
            raise TransportError(f"Failed to open serial port {port}: {e}") from e

        # Drop whatever the module printed before we opened the port
        self.reset_input_buffer()

    def write(self, data: bytes) -> int:
        """Write data to serial port."""
        try:
            written = self._serial.write(data)
            logger.debug(f"Wrote {written} bytes: {data}")
            return written
        except SerialException as e:
            raise self._translate(e, "write") from e

    def read(self, timeout: Optional[float] = None) -> bytes:
        """Read available bytes from the serial port."""
        try:
            original_timeout = None
            if timeout is not None:
                original_timeout = self._serial.timeout
                self._serial.timeout = timeout

            # Block for one byte, then take whatever else is already buffered
            data = self._serial.read(1)
            if data:
                waiting = self._serial.in_waiting
                if waiting:
                    data += self._serial.read(waiting)

            if original_timeout is not None:
                self._serial.timeout = original_timeout

            if data:
                logger.debug(f"Read {len(data)} bytes: {data}")

            return data
        except SerialException as e:
            raise self._translate(e, "read") from e

    def reset_input_buffer(self) -> None:
        """Clear the serial input buffer."""
        try:
            self._serial.reset_input_buffer()
            logger.debug("Reset input buffer")
        except SerialException as e:
            logger.error(f"Failed to reset input buffer: {e}")
            raise TransportError(f"Failed to reset input buffer: {e}") from e

    def is_open(self) -> bool:
        """Check if serial port is open."""
        return bool(self._serial and self._serial.is_open)

    def close(self) -> None:
        """Close the serial port."""
        if self._serial and self._serial.is_open:
            self._serial.close()
            logger.info(f"Closed serial port {self.port}")

    def _translate(self, error: SerialException, operation: str) -> TransportError:
        """Map a pyserial error onto the driver's exception hierarchy."""
        error_str = str(error).lower()

        if any(phrase in error_str for phrase in _DISCONNECT_PHRASES):
            logger.error(f"Device disconnected: {error}")
            return DeviceDisconnectedError(
                f"Serial device disconnected: {error}",
                response=[str(error)]
            )

        logger.error(f"Serial {operation} failed: {error}")
        return TransportError(f"Serial {operation} failed: {error}")


class MockTransport(Transport):
    """
    Mock transport for testing.

    Simulates the module without hardware. Lines queued with ``add_response``
    are released one batch per ``write``, the way the module answers a
    command. Lines pushed with ``feed`` arrive immediately, the way
    unsolicited events do.
    """

    def __init__(self, poll_interval: float = 0.05) -> None:
        """
        Initialize mock transport.

        Args:
            poll_interval: Longest time ``read`` waits when no timeout is given
        """
        self._open = True
        self._poll_interval = poll_interval
        self._chunks: Deque[bytes] = deque()
        self._response_queue: list[list[str]] = []
        self._cond = threading.Condition()
        self.written: list[bytes] = []
        logger.info("Initialized MockTransport")

    def add_response(self, lines: list[str]) -> None:
        """
        Queue a response released by the next write.

        Args:
            lines: Response lines (e.g., ["+PORT: 15"]); an empty list
                   means the next command gets no answer
        """
        with self._cond:
            self._response_queue.append(list(lines))
            logger.debug(f"Added mock response: {lines}")

    def feed(self, data: Union[bytes, str]) -> None:
        """
        Make raw data readable right away.

        Args:
            data: Bytes or text exactly as the module would send them
        """
        if isinstance(data, str):
            data = data.encode("utf-8")
        with self._cond:
            self._chunks.append(data)
            self._cond.notify_all()
        logger.debug(f"Mock feed: {data}")

    def feed_lines(self, lines: list[str]) -> None:
        """Make complete CR LF terminated lines readable right away."""
        self.feed("".join(line + "\r\n" for line in lines))

    def write(self, data: bytes) -> int:
        """Record written data and release the next queued response."""
        if not self._open:
            raise DeviceDisconnectedError(
                "MockTransport is closed (simulating device disconnection)",
                response=["MockTransport closed"]
            )

        logger.debug(f"Mock write: {data}")
        with self._cond:
            self.written.append(data)
            if self._response_queue:
                lines = self._response_queue.pop(0)
                if lines:
                    self._chunks.append("".join(l + "\r\n" for l in lines).encode("utf-8"))
                    self._cond.notify_all()
        return len(data)

    def read(self, timeout: Optional[float] = None) -> bytes:
        """Return the next chunk, waiting briefly if none is available."""
        if not self._open:
            raise DeviceDisconnectedError(
                "MockTransport is closed (simulating device disconnection)",
                response=["MockTransport closed"]
            )

        wait = self._poll_interval if timeout is None else min(timeout, self._poll_interval)
        with self._cond:
            if not self._chunks:
                self._cond.wait(wait)
            if self._chunks:
                data = self._chunks.popleft()
                logger.debug(f"Mock read: {data}")
                return data

        return b""

    def reset_input_buffer(self) -> None:
        """Clear pending mock input."""
        with self._cond:
            self._chunks.clear()
            logger.debug("Reset mock input buffer")

    def is_open(self) -> bool:
        """Check if mock transport is open."""
        return self._open

    def close(self) -> None:
        """Close mock transport."""
        self._open = False
        with self._cond:
            self._cond.notify_all()
        logger.info("Closed MockTransport")

    def clear_responses(self) -> None:
        """Clear all queued responses (useful for testing)."""
        with self._cond:
            self._response_queue.clear()
            logger.debug("Cleared mock response queue")

    @property
    def written_lines(self) -> list[str]:
        """Commands written so far, decoded and without terminators."""
        with self._cond:
            return [data.decode("utf-8").rstrip("\r\n") for data in self.written]
