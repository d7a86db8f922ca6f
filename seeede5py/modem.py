"""
Main SeeedE5Modem class.

User-facing API that coordinates all feature managers.
"""

import logging
from typing import Callable, Optional

import serial

from .core import ModemCore, SerialTransport, Transport, EventKind, EventCallback
from .core.protocol import DEFAULT_COMMAND_TIMEOUT
from .features import DeviceManager, NetworkManager, MessagingManager
from .types import Outcome

logger = logging.getLogger(__name__)


class SeeedE5Modem:
    """
    Main interface for Seeed LoRa-E5 module control.

    Provides a high-level API through feature managers:

    - device: Class, region, port, ADR, reset, low power
    - network: OTAA/ABP provisioning and join
    - messaging: Uplinks

    Unsolicited events (join result, downlinks, confirmations, diagnostics)
    are delivered to callbacks registered with ``register_callback``.

    Example usage with context manager:

    .. code-block:: python

        with SeeedE5Modem(port="/dev/ttyS0") as modem:
            modem.register_callback(
                EventKind.DOWNLINK_RECEIVED,
                lambda port, rssi, snr, payload: print(port, payload)
            )

            modem.device.set_region("AS923")
            modem.network.otaa_initialise(APP_EUI, APP_KEY)
            modem.network.join(force=True)

    Example usage with manual lifecycle management:

    .. code-block:: python

        modem = SeeedE5Modem(port="/dev/ttyS0")
        modem.start()
        # ... use modem ...
        modem.close()
    """

    def __init__(
        self,
        port: Optional[str] = None,
        transport: Optional[Transport] = None,
        baudrate: int = 9600,
        parity: str = serial.PARITY_NONE,
        bytesize: int = serial.EIGHTBITS,
        stopbits: float = serial.STOPBITS_ONE,
        timeout: float = DEFAULT_COMMAND_TIMEOUT,
        max_event_history: int = 1000,
        auto_start: bool = False,
        wakeup_on_start: bool = True,
        on_disconnect: Optional[Callable[[Exception], None]] = None
    ) -> None:
        """
        Initialize SeeedE5Modem.

        Args:
            port: Serial port path (e.g., "/dev/ttyS0"). Either port or transport required.
            transport: Custom transport instance (for testing). Overrides port if provided.
            baudrate: Serial port baud rate (default: 9600)
            parity: pyserial parity constant (default: none)
            bytesize: Data bits (default: 8)
            stopbits: Stop bits (default: 1)
            timeout: AT command timeout in seconds (default: 1.5)
            max_event_history: Maximum dispatched events to keep (default: 1000)
            auto_start: Automatically start reader thread (default: False)
            wakeup_on_start: Send a wakeup when starting; its outcome is only
                             logged (default: True)
            on_disconnect: Optional callback function called when device disconnects.
                          Signature: callback(exception: Exception) -> None

        Raises:
            ValueError: If neither port nor transport is provided
            TransportError: If serial port cannot be opened

        Example:

        .. code-block:: python

            # Using serial port
            modem = SeeedE5Modem(port="/dev/ttyS0")

            # With disconnect callback
            def on_disconnect(error):
                print(f"Modem disconnected: {error}")

            modem = SeeedE5Modem(port="/dev/ttyS0", on_disconnect=on_disconnect)

            # Using custom transport (for testing)
            from seeede5py.core import MockTransport
            modem = SeeedE5Modem(transport=MockTransport(), wakeup_on_start=False)
        """
        if transport is None and port is None:
            raise ValueError("Either 'port' or 'transport' must be provided")

        if transport is None:
            transport = SerialTransport(
                port=port,
                baudrate=baudrate,
                parity=parity,
                bytesize=bytesize,
                stopbits=stopbits
            )
            logger.info(f"Created serial transport for {port}")

        self._core = ModemCore(
            transport=transport,
            timeout=timeout,
            max_event_history=max_event_history,
            on_disconnect=on_disconnect
        )
        self._wakeup_on_start = wakeup_on_start

        self.device = DeviceManager(self._core)
        self.network = NetworkManager(self._core)
        self.messaging = MessagingManager(self._core)

        logger.info("Initialized SeeedE5Modem")

        if auto_start:
            self.start()

    def start(self) -> None:
        """
        Start the modem reader thread.

        Must be called before using the modem (unless auto_start=True or using
        context manager).
        """
        self._core.start()
        logger.info("Modem started")

        if self._wakeup_on_start:
            outcome = self.device.wakeup()
            if not outcome.is_success:
                logger.warning(f"Wakeup on start failed: {outcome}")

    def stop(self) -> None:
        """
        Stop the modem reader thread.

        Safe to call while a command is pending; that caller gets
        SESSION_CLOSED.
        """
        self._core.stop()
        logger.info("Modem stopped")

    def close(self) -> None:
        """
        Close the modem connection.

        Stops the reader thread and closes the transport.
        """
        self._core.close()
        logger.info("Modem closed")

    def register_callback(self, kind: EventKind, callback: EventCallback) -> None:
        """
        Register the callback for an event kind (one per kind).

        Args:
            kind: EventKind to subscribe to
            callback: Function to call. Signatures:
                      JOIN_COMPLETED(success: bool),
                      DOWNLINK_RECEIVED(port: int, rssi: int, snr: float, payload_hex: str),
                      SEND_CONFIRMED(rssi: int, snr: float),
                      DIAGNOSTIC(event: DiagnosticEvent)

        Callbacks run on the reader thread and must not send commands.

        Example:

        .. code-block:: python

            def on_join(success: bool):
                print(f"Join finished: {success}")

            modem.register_callback(EventKind.JOIN_COMPLETED, on_join)
        """
        self._core.register_callback(kind, callback)

    def unregister_callback(self, kind: EventKind) -> bool:
        """
        Unregister the callback for an event kind.

        Returns:
            True if callback was removed, False if none was registered
        """
        return self._core.unregister_callback(kind)

    def execute(
        self,
        command: str,
        expected_response: str,
        timeout: Optional[float] = None
    ) -> Outcome:
        """
        Send a raw AT command.

        For commands not covered by feature managers.

        Args:
            command: AT command (e.g., "AT+PORT=15")
            expected_response: Exact line meaning success (e.g., "+PORT: 15")
            timeout: Command timeout in seconds (uses default if None)

        Returns:
            Outcome of the command

        Example:

        .. code-block:: python

            outcome = modem.execute("AT+ADR=ON", "+ADR: ON")
            if not outcome.is_success:
                print(f"ADR failed: {outcome}")
        """
        return self._core.execute(command, expected_response, timeout=timeout)

    def get_event_history(self, kind: Optional[EventKind] = None) -> list:
        """
        Get dispatched events, oldest first.

        Args:
            kind: Only return events of this kind (all kinds if None)
        """
        return self._core.dispatcher.get_history(kind)

    @property
    def discarded_downlinks(self) -> int:
        """Number of half-built downlinks dropped so far."""
        return self._core.reassembler.discarded_downlinks

    @property
    def is_running(self) -> bool:
        """
        Check if the modem reader thread is running.

        Returns:
            True if running, False otherwise
        """
        return self._core.is_running()

    @property
    def is_disconnected(self) -> bool:
        """
        Check if the device was disconnected.

        Returns:
            True if device disconnected, False otherwise
        """
        return self._core.is_disconnected()

    def __enter__(self):
        """
        Context manager entry.

        Automatically starts the modem if not already running.
        """
        if not self.is_running:
            self.start()
        return self

    def __exit__(self, *exc):
        """
        Context manager exit.

        Automatically closes the modem connection.
        """
        self.close()

    def __repr__(self) -> str:
        """String representation of modem."""
        status = "running" if self.is_running else "stopped"
        return f"<SeeedE5Modem status={status}>"
