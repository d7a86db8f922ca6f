"""
Response classifier.

Decides what a single line from the module means, given the success text the
pending command is waiting for. The classifier is stateless; cross-line state
lives in ATProtocol and DownlinkReassembler.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional, Union

from ..exceptions import ATParseError
from ..parsers.downlink import (
    PAYLOAD_PREFIXES,
    METRICS_PREFIXES,
    PayloadLineParser,
    MetricsLineParser,
    is_confirmed_variant,
)
from ..types import ModemErrorCode, ERROR_CODES, STATUS_PHRASES

logger = logging.getLogger(__name__)

JOIN_SUCCEEDED_PREFIX = "+JOIN: Network joined"
JOIN_FAILED_PREFIX = "+JOIN: Join failed"

_ERROR_SUFFIX_RE = re.compile(r" ERROR\((-?\d+)\)$")


@dataclass(frozen=True)
class JoinCompleted:
    success: bool


@dataclass(frozen=True)
class CommandSucceeded:
    line: str


@dataclass(frozen=True)
class CommandFailed:
    error: ModemErrorCode
    line: str
    raw_code: Optional[int] = None


@dataclass(frozen=True)
class DownlinkPayloadSeen:
    port: int
    payload: str
    confirmed: bool


@dataclass(frozen=True)
class MetricsSeen:
    rssi: int
    snr: float
    confirmed: bool


@dataclass(frozen=True)
class MalformedLine:
    line: str
    reason: str


@dataclass(frozen=True)
class Ignored:
    line: str


LineEvent = Union[
    JoinCompleted,
    CommandSucceeded,
    CommandFailed,
    DownlinkPayloadSeen,
    MetricsSeen,
    MalformedLine,
    Ignored,
]


class ResponseClassifier:
    """
    Maps one line to exactly one LineEvent.

    Checks run in a fixed order and the first match wins:

    1. join succeeded / 2. join failed
    3. exact match of the pending command's success text
    4. downlink payload line / 5. downlink metrics line
    6. modem status phrases (busy, DR error, not joined, ...)
    7. " ERROR(N)" suffix
    8. anything else is ignored

    Error checks do not depend on a command being pending; the caller decides
    what an unsolicited error means.
    """

    def __init__(self) -> None:
        self._payload_parser = PayloadLineParser()
        self._metrics_parser = MetricsLineParser()

    def classify(self, line: str, expected: str = "") -> LineEvent:
        """
        Classify a line.

        Args:
            line: Complete line, terminator stripped
            expected: Success text of the pending command ("" if none)

        Returns:
            The event the line represents
        """
        if line.startswith(JOIN_SUCCEEDED_PREFIX):
            return JoinCompleted(True)

        if line.startswith(JOIN_FAILED_PREFIX):
            return JoinCompleted(False)

        if expected and line == expected:
            return CommandSucceeded(line)

        if line.startswith(PAYLOAD_PREFIXES):
            try:
                fields = self._payload_parser.parse(line)
            except ATParseError as e:
                logger.warning(f"Malformed downlink payload line {line!r}: {e}")
                return MalformedLine(line, f"payload: {e}")
            return DownlinkPayloadSeen(fields.port, fields.payload, is_confirmed_variant(line))

        if line.startswith(METRICS_PREFIXES):
            try:
                fields = self._metrics_parser.parse(line)
            except ATParseError as e:
                logger.warning(f"Malformed downlink metrics line {line!r}: {e}")
                return MalformedLine(line, f"metrics: {e}")
            return MetricsSeen(fields.rssi, fields.snr, is_confirmed_variant(line))

        status_error = STATUS_PHRASES.get(line)
        if status_error is not None:
            return CommandFailed(status_error, line)

        match = _ERROR_SUFFIX_RE.search(line)
        if match:
            raw_code = int(match.group(1))
            error = ERROR_CODES.get(raw_code, ModemErrorCode.UNRECOGNIZED)
            if error is ModemErrorCode.UNRECOGNIZED:
                logger.warning(f"Unrecognized modem error code {raw_code}: {line}")
            return CommandFailed(error, line, raw_code)

        return Ignored(line)
