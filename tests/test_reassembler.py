"""
Tests for downlink reassembly.
"""

import pytest

from seeede5py.core import DownlinkReassembler
from seeede5py.core.classifier import (
    DownlinkPayloadSeen,
    MetricsSeen,
    CommandSucceeded,
    CommandFailed,
    JoinCompleted,
    MalformedLine,
    Ignored,
)
from seeede5py.types import (
    ModemErrorCode,
    DownlinkEvent,
    ConfirmationEvent,
    DiagnosticEvent,
    DiagnosticKind,
)


@pytest.fixture
def reassembler():
    return DownlinkReassembler()


def test_payload_then_metrics(reassembler):
    """Test the two halves make one downlink."""
    assert reassembler.observe(DownlinkPayloadSeen(3, "AB12", False), 1) == []
    assert reassembler.is_awaiting_metrics

    events = reassembler.observe(MetricsSeen(-42, 7.5, False), 1)

    assert events == [DownlinkEvent(port=3, rssi=-42, snr=7.5, payload="AB12")]
    assert not reassembler.is_awaiting_metrics
    assert reassembler.delivered_downlinks == 1


def test_ignored_lines_do_not_interrupt(reassembler):
    """Test noise between payload and metrics is harmless."""
    reassembler.observe(DownlinkPayloadSeen(3, "AB12", False), 1)

    assert reassembler.observe(Ignored("+MSGHEX: Done"), 1) == []
    events = reassembler.observe(MetricsSeen(-42, 7.5, False), 1)

    assert len(events) == 1
    assert isinstance(events[0], DownlinkEvent)


def test_confirmed_metrics_with_payload(reassembler):
    """Test a confirmed downlink also reports the confirmation."""
    reassembler.observe(DownlinkPayloadSeen(10, "01", True), 4)

    events = reassembler.observe(MetricsSeen(-80, -2.5, True), 4)

    assert events == [
        DownlinkEvent(port=10, rssi=-80, snr=-2.5, payload="01", confirmed=True),
        ConfirmationEvent(rssi=-80, snr=-2.5),
    ]


def test_confirmed_metrics_without_payload(reassembler):
    """Test an acknowledgement with no downlink data."""
    events = reassembler.observe(MetricsSeen(-60, 9.0, True), 2)

    assert events == [ConfirmationEvent(rssi=-60, snr=9.0)]
    assert reassembler.delivered_downlinks == 0


def test_unconfirmed_metrics_without_payload(reassembler):
    """Test stray metrics acknowledge the last uplink."""
    assert reassembler.observe(MetricsSeen(-60, 9.0, False), 2) == [ConfirmationEvent(rssi=-60, snr=9.0)]


@pytest.mark.parametrize("event", [
    CommandSucceeded("+ADR: ON"),
    CommandFailed(ModemErrorCode.COMMAND_ERROR, "+AT: ERROR(-24)", -24),
    JoinCompleted(True),
    MalformedLine("+MSGHEX: RXWIN1, RSSI x, SNR 1", "metrics: bad"),
])
def test_other_event_discards_partial_downlink(reassembler, event):
    """Test anything but metrics drops the half-built downlink."""
    reassembler.observe(DownlinkPayloadSeen(3, "AB12", False), 1)

    events = reassembler.observe(event, 1)

    assert len(events) == 1
    assert isinstance(events[0], DiagnosticEvent)
    assert events[0].kind is DiagnosticKind.INCOMPLETE_DOWNLINK
    assert not reassembler.is_awaiting_metrics
    assert reassembler.discarded_downlinks == 1

    # Metrics arriving afterwards are not glued to the dropped payload
    assert reassembler.observe(MetricsSeen(-42, 7.5, False), 1) == [ConfirmationEvent(rssi=-42, snr=7.5)]


def test_second_payload_replaces_first(reassembler):
    """Test a new payload line discards the unfinished one."""
    reassembler.observe(DownlinkPayloadSeen(3, "AB12", False), 1)

    events = reassembler.observe(DownlinkPayloadSeen(4, "CD34", False), 1)
    assert [e.kind for e in events] == [DiagnosticKind.INCOMPLETE_DOWNLINK]

    events = reassembler.observe(MetricsSeen(-42, 7.5, False), 1)
    assert events == [DownlinkEvent(port=4, rssi=-42, snr=7.5, payload="CD34")]


def test_new_transaction_discards_partial_downlink(reassembler):
    """Test a command issued in between supersedes the half-built downlink."""
    reassembler.observe(DownlinkPayloadSeen(3, "AB12", False), 1)

    events = reassembler.observe(MetricsSeen(-42, 7.5, False), 2)

    assert len(events) == 2
    assert events[0].kind is DiagnosticKind.INCOMPLETE_DOWNLINK
    assert "superseded" in events[0].reason
    assert events[1] == ConfirmationEvent(rssi=-42, snr=7.5)
    assert reassembler.discarded_downlinks == 1
    assert reassembler.delivered_downlinks == 0


def test_reset(reassembler):
    """Test reset forgets the partial downlink without a diagnostic."""
    reassembler.observe(DownlinkPayloadSeen(3, "AB12", False), 1)

    reassembler.reset()

    assert not reassembler.is_awaiting_metrics
    assert reassembler.discarded_downlinks == 0
    assert reassembler.observe(MetricsSeen(-42, 7.5, False), 1) == [ConfirmationEvent(rssi=-42, snr=7.5)]
