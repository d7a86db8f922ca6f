"""
Core modem infrastructure.

Provides low-level building blocks for modem communication:
- Transport: Serial communication abstraction
- LineFramer: Bytes to lines
- ResponseClassifier: Lines to events
- ATProtocol: Command transactions
- DownlinkReassembler: Payload and metrics lines to downlinks
- EventDispatcher: Callback fan-out
- ModemCore: Coordination of all core components
"""

from .transport import Transport, SerialTransport, MockTransport
from .framing import LineFramer
from .classifier import ResponseClassifier
from .protocol import ATProtocol, PendingTransaction, DEFAULT_COMMAND_TIMEOUT
from .reassembler import DownlinkReassembler
from .events import EventDispatcher, EventKind, EventCallback
from .modem import ModemCore

__all__ = [
    "Transport",
    "SerialTransport",
    "MockTransport",
    "LineFramer",
    "ResponseClassifier",
    "ATProtocol",
    "PendingTransaction",
    "DEFAULT_COMMAND_TIMEOUT",
    "DownlinkReassembler",
    "EventDispatcher",
    "EventKind",
    "EventCallback",
    "ModemCore",
]
