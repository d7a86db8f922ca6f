"""
seeede5py - Python driver for the Seeed LoRa-E5 LoRaWAN module.
"""

from .version import __version__
from .modem import SeeedE5Modem
from .core import EventKind, MockTransport
from .codec import bytes_to_hex, hex_to_bytes

from .types import (
    LoRaWANDeviceClass,
    ModemErrorCode,
    Outcome,
    OutcomeStatus,
    DownlinkEvent,
    ConfirmationEvent,
    DiagnosticEvent,
    DiagnosticKind,
)

from .exceptions import (
    E5Error,
    TransportError,
    DeviceDisconnectedError,
    ModemNotStartedError,
    TransactionPendingError,
    ATParseError,
    PayloadFormatError,
)

__all__ = [
    "__version__",
    "SeeedE5Modem",
    "EventKind",
    "MockTransport",
    "bytes_to_hex",
    "hex_to_bytes",
    "LoRaWANDeviceClass",
    "ModemErrorCode",
    "Outcome",
    "OutcomeStatus",
    "DownlinkEvent",
    "ConfirmationEvent",
    "DiagnosticEvent",
    "DiagnosticKind",
    "E5Error",
    "TransportError",
    "DeviceDisconnectedError",
    "ModemNotStartedError",
    "TransactionPendingError",
    "ATParseError",
    "PayloadFormatError",
]
