"""
Device configuration manager.

Handles module-level settings: device class, region, port, ADR, reset and
low-power mode.
"""

import logging
import time
from typing import TYPE_CHECKING, Optional

from ..types import LoRaWANDeviceClass, Outcome

if TYPE_CHECKING:
    from ..core import ModemCore

logger = logging.getLogger(__name__)

REGION_ID_LENGTH = 5

# Port 0 carries MAC commands only; 224 and up are reserved
MESSAGE_PORT_MINIMUM = 1
MESSAGE_PORT_MAXIMUM = 223

# The module needs a moment after waking before it accepts commands
WAKEUP_SETTLE_SECONDS = 0.01


class DeviceManager:
    """
    Manages module configuration.

    Every method returns the Outcome of its command; invalid arguments raise
    ValueError before anything is sent.
    """

    def __init__(self, modem_core: "ModemCore") -> None:
        """
        Initialize device manager.

        Args:
            modem_core: ModemCore instance for AT command execution
        """
        self.modem = modem_core
        logger.debug("Initialized DeviceManager")

    def set_class(self, device_class: LoRaWANDeviceClass) -> Outcome:
        """
        Set the LoRaWAN device class.

        Args:
            device_class: LoRaWANDeviceClass.A, B or C

        Example:

        .. code-block:: python

            modem.device.set_class(LoRaWANDeviceClass.A)
        """
        if not isinstance(device_class, LoRaWANDeviceClass):
            raise ValueError(f"LoRa class value {device_class!r} invalid")

        logger.info(f"Setting device class {device_class.value}")
        return self.modem.execute(
            f"AT+CLASS={device_class.value}",
            f"+CLASS: {device_class.value}"
        )

    def set_region(self, region_id: str) -> Outcome:
        """
        Set the regional band plan.

        Args:
            region_id: Five character region name (e.g., "AS923", "EU868")
        """
        if region_id is None or len(region_id) != REGION_ID_LENGTH:
            raise ValueError(f"RegionID {region_id!r} length invalid, must be {REGION_ID_LENGTH} characters")

        logger.info(f"Setting region {region_id}")
        return self.modem.execute(f"AT+DR={region_id}", f"+DR: {region_id}")

    def set_port(self, port: int) -> Outcome:
        """
        Set the application port used for uplinks.

        Args:
            port: Port number 1..223
        """
        if not isinstance(port, int) or not MESSAGE_PORT_MINIMUM <= port <= MESSAGE_PORT_MAXIMUM:
            raise ValueError(
                f"port {port} invalid, must be between "
                f"{MESSAGE_PORT_MINIMUM} and {MESSAGE_PORT_MAXIMUM}"
            )

        logger.info(f"Setting port {port}")
        return self.modem.execute(f"AT+PORT={port}", f"+PORT: {port}")

    def adr_on(self) -> Outcome:
        """Enable adaptive data rate."""
        logger.info("Enabling ADR")
        return self.modem.execute("AT+ADR=ON", "+ADR: ON")

    def adr_off(self) -> Outcome:
        """Disable adaptive data rate."""
        logger.info("Disabling ADR")
        return self.modem.execute("AT+ADR=OFF", "+ADR: OFF")

    def reset(self, timeout: Optional[float] = None) -> Outcome:
        """
        Reboot the module.

        Args:
            timeout: Command timeout (uses default if None)
        """
        logger.info("Resetting module")
        return self.modem.execute("AT+RESET", "+RESET: OK", timeout=timeout)

    def sleep(self) -> Outcome:
        """Put the module into low-power mode."""
        logger.info("Putting module to sleep")
        return self.modem.execute("AT+LOWPOWER", "+LOWPOWER: SLEEP")

    def wakeup(self) -> Outcome:
        """
        Wake the module from low-power mode.

        Any character wakes it; the module then reports it is awake.
        """
        logger.info("Waking module")
        outcome = self.modem.execute("A", "+LOWPOWER: WAKEUP")
        if outcome.is_success:
            time.sleep(WAKEUP_SETTLE_SECONDS)
        return outcome
