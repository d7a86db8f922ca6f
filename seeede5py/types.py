"""
Data types and structures for seeede5py.

Provides type-safe representations of command outcomes and modem events.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .codec import hex_to_bytes


class LoRaWANDeviceClass(Enum):
    """
    LoRaWAN device classes.

    A: uplink at any time, two short receive windows after each uplink.
    B: class A plus scheduled, beacon-synchronised receive slots.
    C: receive window kept open except while transmitting.
    """
    A = "A"
    B = "B"
    C = "C"


class ModemErrorCode(Enum):
    """Negative acknowledgements reported by the module."""
    # Status phrases
    MODEM_IS_BUSY = "modem is busy"
    DATA_RATE_ERROR = "data rate error"
    NETWORK_NOT_JOINED = "network not joined"
    NETWORK_JOIN_IN_PROGRESS = "network join in progress"
    NETWORK_ALREADY_JOINED = "network already joined"

    # ERROR(-N) suffixes
    PARAMETER_IS_INVALID = "parameter is invalid"
    COMMAND_IS_UNKNOWN = "command is unknown"
    COMMAND_IS_IN_WRONG_FORMAT = "command is in wrong format"
    COMMAND_IS_UNAVAILABLE_IN_CURRENT_MODE = "command is unavailable in current mode"
    COMMAND_HAS_TOO_MANY_PARAMETERS = "command has too many parameters"
    COMMAND_IS_TOO_LONG = "command is too long"
    RECEIVE_END_SYMBOL_TIMEOUT = "receive end symbol timeout"
    INVALID_CHARACTER_RECEIVED = "invalid character received"
    COMMAND_ERROR = "command error"
    NO_FREE_CHANNELS = "no free channels"

    UNRECOGNIZED = "unrecognized error"


# Numeric marker of " ERROR(N)" -> error code
ERROR_CODES: dict[int, ModemErrorCode] = {
    -1: ModemErrorCode.PARAMETER_IS_INVALID,
    -10: ModemErrorCode.COMMAND_IS_UNKNOWN,
    -11: ModemErrorCode.COMMAND_IS_IN_WRONG_FORMAT,
    -12: ModemErrorCode.COMMAND_IS_UNAVAILABLE_IN_CURRENT_MODE,
    -20: ModemErrorCode.COMMAND_HAS_TOO_MANY_PARAMETERS,
    -21: ModemErrorCode.COMMAND_IS_TOO_LONG,
    -22: ModemErrorCode.RECEIVE_END_SYMBOL_TIMEOUT,
    -23: ModemErrorCode.INVALID_CHARACTER_RECEIVED,
    -24: ModemErrorCode.COMMAND_ERROR,
    -70: ModemErrorCode.NO_FREE_CHANNELS,
}

# Whole-line status phrases -> error code
STATUS_PHRASES: dict[str, ModemErrorCode] = {
    "+MSG: LoRaWAN modem is busy": ModemErrorCode.MODEM_IS_BUSY,
    "+CMSG: LoRaWAN modem is busy": ModemErrorCode.MODEM_IS_BUSY,
    "+MSG: DR error": ModemErrorCode.DATA_RATE_ERROR,
    "+CMSG: DR error": ModemErrorCode.DATA_RATE_ERROR,
    "+MSGHEX: Please join network first": ModemErrorCode.NETWORK_NOT_JOINED,
    "+CMSGHEX: Please join network first": ModemErrorCode.NETWORK_NOT_JOINED,
    "+JOIN: LoRaWAN modem is busy": ModemErrorCode.NETWORK_JOIN_IN_PROGRESS,
    "+JOIN: Joined already": ModemErrorCode.NETWORK_ALREADY_JOINED,
}


class OutcomeStatus(Enum):
    """How a command transaction ended."""
    SUCCESS = "success"
    MODEM_ERROR = "modem_error"
    TIMEOUT = "timeout"
    SESSION_CLOSED = "session_closed"


@dataclass(frozen=True)
class Outcome:
    """
    Result of one command transaction.

    Attributes:
        status: How the transaction ended
        error: Modem error code (MODEM_ERROR only)
        raw_code: Numeric N of an " ERROR(N)" suffix, if that is what failed
        line: Modem line that resolved the transaction, if any
    """
    status: OutcomeStatus
    error: Optional[ModemErrorCode] = None
    raw_code: Optional[int] = None
    line: Optional[str] = None

    @classmethod
    def success(cls, line: Optional[str] = None) -> "Outcome":
        return cls(OutcomeStatus.SUCCESS, line=line)

    @classmethod
    def modem_error(
        cls,
        error: ModemErrorCode,
        raw_code: Optional[int] = None,
        line: Optional[str] = None
    ) -> "Outcome":
        return cls(OutcomeStatus.MODEM_ERROR, error=error, raw_code=raw_code, line=line)

    @classmethod
    def timeout(cls) -> "Outcome":
        return cls(OutcomeStatus.TIMEOUT)

    @classmethod
    def session_closed(cls) -> "Outcome":
        return cls(OutcomeStatus.SESSION_CLOSED)

    @property
    def is_success(self) -> bool:
        """Check if the module acknowledged the command."""
        return self.status is OutcomeStatus.SUCCESS

    def __str__(self) -> str:
        if self.status is OutcomeStatus.MODEM_ERROR and self.error is not None:
            return f"{self.status.value}({self.error.name})"
        return self.status.value


@dataclass(frozen=True)
class DownlinkEvent:
    """A downlink reassembled from its payload line and metrics line."""
    port: int
    rssi: int
    snr: float
    payload: str            # Upper-case hex text
    confirmed: bool = False

    @property
    def payload_bytes(self) -> bytes:
        """Decode the hex payload."""
        return hex_to_bytes(self.payload)


@dataclass(frozen=True)
class ConfirmationEvent:
    """Metrics reported for a confirmed uplink."""
    rssi: int
    snr: float


class DiagnosticKind(Enum):
    """Kinds of protocol diagnostics."""
    MALFORMED_LINE = "malformed_line"
    INCOMPLETE_DOWNLINK = "incomplete_downlink"


@dataclass(frozen=True)
class DiagnosticEvent:
    """
    Something the driver saw but could not deliver.

    Attributes:
        kind: Diagnostic category
        reason: Human-readable explanation
        line: Offending modem line, if any
    """
    kind: DiagnosticKind
    reason: str
    line: Optional[str] = None
