"""
Tests for AT command transactions.
"""

import threading
import time

import pytest

from seeede5py.core import ATProtocol, EventKind, MockTransport, ModemCore
from seeede5py.exceptions import (
    E5Error,
    ModemNotStartedError,
    TransactionPendingError,
)
from seeede5py.types import ModemErrorCode, Outcome, OutcomeStatus


def _execute_in_thread(target, *args, **kwargs):
    """Run target in a thread and return (thread, result dict)."""
    result = {}

    def run():
        try:
            result["outcome"] = target(*args, **kwargs)
        except Exception as e:
            result["error"] = e

    thread = threading.Thread(target=run, daemon=True)
    thread.start()
    return thread, result


def test_command_success(modem_core, mock_transport):
    """Test the success line resolves the command."""
    mock_transport.add_response(["+PORT: 15"])

    outcome = modem_core.execute("AT+PORT=15", "+PORT: 15")

    assert outcome.is_success
    assert outcome.line == "+PORT: 15"
    assert mock_transport.written == [b"AT+PORT=15\r\n"]


def test_command_success_after_noise(modem_core, mock_transport):
    """Test unrelated lines before the answer are skipped."""
    mock_transport.add_response(["", "+JOIN: NORMAL", "+JOIN: Start"])

    outcome = modem_core.execute("AT+JOIN", "+JOIN: Start")

    assert outcome.is_success


def test_command_modem_error(modem_core, mock_transport):
    """Test an ERROR(N) answer is returned, not raised."""
    mock_transport.add_response(["+MODE: ERROR(-12)"])

    outcome = modem_core.execute("AT+MODE=LWOTAA", "+MODE: LWOTAA")

    assert outcome.status is OutcomeStatus.MODEM_ERROR
    assert outcome.error is ModemErrorCode.COMMAND_IS_UNAVAILABLE_IN_CURRENT_MODE
    assert outcome.raw_code == -12
    assert not outcome.is_success


def test_command_status_phrase_error(modem_core, mock_transport):
    """Test a status phrase fails the pending send."""
    mock_transport.add_response(["+MSGHEX: Please join network first"])

    outcome = modem_core.execute('AT+MSGHEX="01"', "+MSGHEX: Start")

    assert outcome == Outcome.modem_error(
        ModemErrorCode.NETWORK_NOT_JOINED,
        line="+MSGHEX: Please join network first"
    )


def test_command_timeout(modem_core, mock_transport):
    """Test silence turns into TIMEOUT after the timeout, and the slot is freed."""
    mock_transport.add_response([])

    start = time.monotonic()
    outcome = modem_core.execute("AT+PORT=15", "+PORT: 15", timeout=0.2)
    elapsed = time.monotonic() - start

    assert outcome.status is OutcomeStatus.TIMEOUT
    assert elapsed >= 0.2
    assert not modem_core.protocol.is_response_pending()


def test_late_line_after_timeout_is_ignored(mock_transport):
    """Test an answer arriving after a timeout resolves nothing."""
    core = ModemCore(mock_transport, timeout=0.1)
    core.protocol.open()

    outcome = core.execute("AT+PORT=15", "+PORT: 15")
    assert outcome.status is OutcomeStatus.TIMEOUT

    # No reader thread: lines are processed by hand
    core.process_line("+PORT: 15")
    assert core.protocol.pending_snapshot() == (1, "")

    thread, result = _execute_in_thread(core.execute, "AT+PORT=15", "+PORT: 15", timeout=2.0)
    deadline = time.monotonic() + 2.0
    while not core.protocol.is_response_pending() and time.monotonic() < deadline:
        time.sleep(0.01)

    # A line read under the first token cannot resolve the second command
    assert core.protocol.resolve(1, Outcome.success("+PORT: 15")) is False
    assert core.protocol.is_response_pending()

    core.process_line("+PORT: 15")
    thread.join(timeout=2.0)
    assert result["outcome"].is_success

    core.protocol.close()


def test_stale_token_cannot_resolve():
    """Test resolve only accepts the current transaction's token."""
    transport = MockTransport()
    protocol = ATProtocol(transport, default_timeout=2.0)
    protocol.open()

    thread, result = _execute_in_thread(protocol.execute, "AT+ADR=ON", "+ADR: ON")

    deadline = time.monotonic() + 2.0
    while not protocol.is_response_pending() and time.monotonic() < deadline:
        time.sleep(0.01)

    token, expected = protocol.pending_snapshot()
    assert expected == "+ADR: ON"

    assert protocol.resolve(token - 1, Outcome.success()) is False
    assert protocol.is_response_pending()

    assert protocol.resolve(token, Outcome.success("+ADR: ON")) is True
    assert protocol.resolve(token, Outcome.timeout()) is False

    thread.join(timeout=2.0)
    assert result["outcome"].is_success
    assert protocol.pending_snapshot() == (token, "")

    transport.close()


def test_tokens_increase():
    """Test each transaction gets a new token."""
    transport = MockTransport()
    protocol = ATProtocol(transport, default_timeout=0.05)
    protocol.open()

    assert protocol.last_token == 0
    protocol.execute("AT+ADR=ON", "+ADR: ON")
    protocol.execute("AT+ADR=ON", "+ADR: ON")

    assert protocol.last_token == 2

    transport.close()


@pytest.mark.parametrize("command,expected", [
    ("", "+PORT: 15"),
    ("AT+PORT=15", ""),
])
def test_empty_arguments_rejected(modem_core, mock_transport, command, expected):
    """Test invalid arguments are rejected before anything is written."""
    with pytest.raises(ValueError):
        modem_core.execute(command, expected)

    assert mock_transport.written == []


def test_execute_before_start(mock_transport):
    """Test commands are refused until the session is opened."""
    protocol = ATProtocol(mock_transport)

    with pytest.raises(ModemNotStartedError):
        protocol.execute("AT+ADR=ON", "+ADR: ON")

    assert mock_transport.written == []


def test_concurrent_command_rejected(modem_core, mock_transport):
    """Test a second command while one is pending raises."""
    mock_transport.add_response([])
    thread, result = _execute_in_thread(
        modem_core.execute, "AT+JOIN", "+JOIN: Start", timeout=1.0
    )

    deadline = time.monotonic() + 2.0
    while not modem_core.protocol.is_response_pending() and time.monotonic() < deadline:
        time.sleep(0.01)

    with pytest.raises(TransactionPendingError):
        modem_core.execute("AT+ADR=ON", "+ADR: ON")

    mock_transport.feed_lines(["+JOIN: Start"])
    thread.join(timeout=2.0)

    assert result["outcome"].is_success
    assert mock_transport.written_lines == ["AT+JOIN"]


def test_stop_releases_pending_command(modem_core, mock_transport):
    """Test stopping the session while waiting returns SESSION_CLOSED."""
    mock_transport.add_response([])
    thread, result = _execute_in_thread(
        modem_core.execute, "AT+RESET", "+RESET: OK", timeout=5.0
    )

    deadline = time.monotonic() + 2.0
    while not modem_core.protocol.is_response_pending() and time.monotonic() < deadline:
        time.sleep(0.01)

    start = time.monotonic()
    modem_core.stop()
    thread.join(timeout=2.0)

    assert result["outcome"].status is OutcomeStatus.SESSION_CLOSED
    assert time.monotonic() - start < 2.0

    with pytest.raises(ModemNotStartedError):
        modem_core.execute("AT+ADR=ON", "+ADR: ON")


def test_execute_from_callback_rejected(modem_core, mock_transport, wait_for):
    """Test a callback cannot issue commands."""
    errors = []

    def on_join(success):
        try:
            modem_core.execute("AT+ADR=ON", "+ADR: ON")
        except E5Error as e:
            errors.append(e)

    modem_core.register_callback(EventKind.JOIN_COMPLETED, on_join)
    mock_transport.feed_lines(["+JOIN: Network joined"])

    assert wait_for(lambda: errors)
    assert "callback" in str(errors[0])
    assert mock_transport.written == []


def test_unsolicited_error_is_not_fatal(modem_core, mock_transport):
    """Test an error with nothing pending is dropped and the next command works."""
    mock_transport.feed_lines(["+MSG: LoRaWAN modem is busy"])
    mock_transport.add_response(["+ADR: ON"])

    assert modem_core.execute("AT+ADR=ON", "+ADR: ON").is_success
