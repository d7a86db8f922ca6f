"""
Uplink messaging manager.

Sends hex payloads, confirmed or unconfirmed.
"""

import logging
from typing import TYPE_CHECKING, Optional, Union

from ..codec import bytes_to_hex, validate_hex
from ..types import Outcome

if TYPE_CHECKING:
    from ..core import ModemCore

logger = logging.getLogger(__name__)

MESSAGE_BYTES_MAXIMUM = 242


class MessagingManager:
    """
    Manages uplinks.

    A successful Outcome means the module started the transmission.
    Confirmation metrics and any downlink arrive later through callbacks.
    """

    def __init__(self, modem_core: "ModemCore") -> None:
        """
        Initialize messaging manager.

        Args:
            modem_core: ModemCore instance for AT command execution
        """
        self.modem = modem_core
        logger.debug("Initialized MessagingManager")

    def send(
        self,
        payload: Union[str, bytes],
        confirmed: bool = False,
        timeout: Optional[float] = None
    ) -> Outcome:
        """
        Send an uplink.

        Args:
            payload: Hex string (e.g., "0102A0") or raw bytes
            confirmed: Request a network acknowledgement
            timeout: Command timeout (uses default if None)

        Raises:
            PayloadFormatError: If a hex payload is malformed
            ValueError: If the payload is longer than 242 bytes

        Example:

        .. code-block:: python

            modem.messaging.send(b"\\x01\\x02", confirmed=True)
        """
        if isinstance(payload, (bytes, bytearray)):
            payload_hex = bytes_to_hex(payload)
        else:
            payload_hex = validate_hex(payload)

        if len(payload_hex) // 2 > MESSAGE_BYTES_MAXIMUM:
            raise ValueError(
                f"Payload is {len(payload_hex) // 2} bytes, maximum is {MESSAGE_BYTES_MAXIMUM}"
            )

        prefix = "CMSGHEX" if confirmed else "MSGHEX"
        command = f'AT+{prefix}="{payload_hex}"' if payload_hex else f"AT+{prefix}"

        logger.info(f"Sending {'confirmed' if confirmed else 'unconfirmed'} payload {payload_hex}")
        return self.modem.execute(command, f"+{prefix}: Start", timeout=timeout)
