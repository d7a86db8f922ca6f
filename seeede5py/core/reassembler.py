"""
Downlink reassembly.

The module reports a downlink as two lines: the port and payload first, then
the signal metrics. This module joins them into one DownlinkEvent.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from .classifier import (
    LineEvent,
    DownlinkPayloadSeen,
    MetricsSeen,
    Ignored,
)
from ..types import (
    DownlinkEvent,
    ConfirmationEvent,
    DiagnosticEvent,
    DiagnosticKind,
)

logger = logging.getLogger(__name__)

ReassembledEvent = Union[DownlinkEvent, ConfirmationEvent, DiagnosticEvent]


@dataclass(frozen=True)
class _AwaitingMetrics:
    port: int
    payload: str
    token: int


class DownlinkReassembler:
    """
    Two-state machine: Idle, or AwaitingMetrics(port, payload).

    Only the reader thread calls observe(). A half-built downlink is
    discarded, with an INCOMPLETE_DOWNLINK diagnostic, when anything other
    than its metrics line arrives or when a new command transaction has
    started since the payload line was seen.
    """

    def __init__(self) -> None:
        self._awaiting: Optional[_AwaitingMetrics] = None
        self.discarded_downlinks = 0
        self.delivered_downlinks = 0

    @property
    def is_awaiting_metrics(self) -> bool:
        return self._awaiting is not None

    def observe(self, event: LineEvent, token: int) -> list[ReassembledEvent]:
        """
        Feed one classified line.

        Args:
            event: Classifier output for the line
            token: Protocol transaction token current when the line was read

        Returns:
            Events to dispatch, in order
        """
        if isinstance(event, Ignored):
            return []

        out: list[ReassembledEvent] = []

        if self._awaiting is not None and self._awaiting.token != token:
            out.append(self._discard("superseded by a new command"))

        if isinstance(event, DownlinkPayloadSeen):
            if self._awaiting is not None:
                out.append(self._discard("another payload line arrived first"))
            logger.debug(f"Downlink payload on port {event.port}, waiting for metrics")
            self._awaiting = _AwaitingMetrics(event.port, event.payload, token)
            return out

        if isinstance(event, MetricsSeen):
            if self._awaiting is not None:
                downlink = DownlinkEvent(
                    port=self._awaiting.port,
                    rssi=event.rssi,
                    snr=event.snr,
                    payload=self._awaiting.payload,
                    confirmed=event.confirmed
                )
                self._awaiting = None
                self.delivered_downlinks += 1
                out.append(downlink)
                if event.confirmed:
                    out.append(ConfirmationEvent(rssi=event.rssi, snr=event.snr))
            else:
                # Metrics on their own acknowledge the last uplink
                logger.debug(f"Metrics without downlink: RSSI {event.rssi} SNR {event.snr}")
                out.append(ConfirmationEvent(rssi=event.rssi, snr=event.snr))
            return out

        if self._awaiting is not None:
            out.append(self._discard(f"interrupted by {type(event).__name__}"))

        return out

    def reset(self) -> None:
        """Forget any half-built downlink (session teardown)."""
        if self._awaiting is not None:
            logger.info("Dropping incomplete downlink on reset")
        self._awaiting = None

    def _discard(self, reason: str) -> DiagnosticEvent:
        awaiting = self._awaiting
        self._awaiting = None
        self.discarded_downlinks += 1
        logger.warning(
            f"Discarding incomplete downlink (port {awaiting.port}, "
            f"payload {awaiting.payload}): {reason}"
        )
        return DiagnosticEvent(
            kind=DiagnosticKind.INCOMPLETE_DOWNLINK,
            reason=f"port {awaiting.port} payload {awaiting.payload}: {reason}"
        )
