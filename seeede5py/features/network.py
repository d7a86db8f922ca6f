"""
Network activation manager.

Handles OTAA and ABP provisioning and joining a LoRaWAN network.
"""

import logging
import re
from typing import TYPE_CHECKING, Optional

from ..types import Outcome

if TYPE_CHECKING:
    from ..core import ModemCore

logger = logging.getLogger(__name__)

APP_EUI_LENGTH = 16
APP_KEY_LENGTH = 32
DEV_ADDR_LENGTH = 8
NWKS_KEY_LENGTH = 32
APPS_KEY_LENGTH = 32

_HEX_RE = re.compile(r"[0-9A-Fa-f]+")


def _check_hex_field(name: str, value: str, length: int) -> None:
    """Raise ValueError unless value is hex text of the given length."""
    if value is None:
        raise ValueError(f"{name} cannot be None")
    if len(value) != length:
        raise ValueError(f"{name} invalid length must be {length} characters")
    if not _HEX_RE.fullmatch(value):
        raise ValueError(f"{name} must be hexadecimal")


def _colon_separated(value: str) -> str:
    """Format hex text the way the module echoes IDs: "0011AA" -> "00:11:AA"."""
    return ":".join(value[i:i + 2] for i in range(0, len(value), 2))


class NetworkManager:
    """
    Manages network activation.

    Multi-step operations stop at the first command that does not succeed and
    return its Outcome.
    """

    def __init__(self, modem_core: "ModemCore") -> None:
        """
        Initialize network manager.

        Args:
            modem_core: ModemCore instance for AT command execution
        """
        self.modem = modem_core
        logger.debug("Initialized NetworkManager")

    def otaa_initialise(self, app_eui: str, app_key: str) -> Outcome:
        """
        Configure over-the-air activation.

        Args:
            app_eui: JoinEUI/AppEUI, 16 hex characters
            app_key: AppKey, 32 hex characters

        Example:

        .. code-block:: python

            outcome = modem.network.otaa_initialise(
                "70B3D57ED0000000", "00112233445566778899AABBCCDDEEFF"
            )
            if outcome.is_success:
                modem.network.join()
        """
        _check_hex_field("app_eui", app_eui, APP_EUI_LENGTH)
        _check_hex_field("app_key", app_key, APP_KEY_LENGTH)

        logger.info("Configuring OTAA")
        # The module echoes IDs back colon separated
        app_eui = _colon_separated(app_eui)

        return self._run_steps([
            ("AT+MODE=LWOTAA", "+MODE: LWOTAA"),
            (f'AT+ID=APPEUI,"{app_eui}"', f"+ID: AppEui, {app_eui}"),
            (f"AT+KEY=APPKEY,{app_key}", f"+KEY: APPKEY {app_key}"),
        ])

    def abp_initialise(self, dev_addr: str, nwks_key: str, apps_key: str) -> Outcome:
        """
        Configure activation by personalisation.

        Args:
            dev_addr: DevAddr, 8 hex characters
            nwks_key: Network session key, 32 hex characters
            apps_key: Application session key, 32 hex characters
        """
        _check_hex_field("dev_addr", dev_addr, DEV_ADDR_LENGTH)
        _check_hex_field("nwks_key", nwks_key, NWKS_KEY_LENGTH)
        _check_hex_field("apps_key", apps_key, APPS_KEY_LENGTH)

        logger.info("Configuring ABP")
        dev_addr = _colon_separated(dev_addr)

        return self._run_steps([
            ("AT+MODE=LWABP", "+MODE: LWABP"),
            (f'AT+ID=DEVADDR,"{dev_addr}"', f"+ID: DevAddr, {dev_addr}"),
            (f"AT+KEY=NWKSKEY,{nwks_key}", f"+KEY: NWKSKEY {nwks_key}"),
            (f"AT+KEY=APPSKEY,{apps_key}", f"+KEY: APPSKEY {apps_key}"),
        ])

    def join(self, force: bool = False, timeout: Optional[float] = None) -> Outcome:
        """
        Start joining the network.

        Success only means the join started. The result arrives later
        through the JOIN_COMPLETED callback.

        Args:
            force: Rejoin even if already joined
            timeout: Command timeout (uses default if None)
        """
        command = "AT+JOIN=FORCE" if force else "AT+JOIN"
        logger.info(f"Starting join via {command}")
        return self.modem.execute(command, "+JOIN: Start", timeout=timeout)

    def _run_steps(self, steps: list[tuple[str, str]]) -> Outcome:
        """Execute (command, expected) pairs until one fails."""
        outcome = None
        for command, expected in steps:
            outcome = self.modem.execute(command, expected)
            if not outcome.is_success:
                logger.error(f"{command.split('=')[0]} failed: {outcome}")
                return outcome
        return outcome
