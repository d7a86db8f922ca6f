"""
Tests for transport layer.
"""

import pytest
from seeede5py.core import MockTransport
from seeede5py.exceptions import E5Error, DeviceDisconnectedError


def test_mock_transport_write():
    """Test MockTransport write operation."""
    transport = MockTransport()

    written = transport.write(b"AT\r\n")
    assert written == 4  # AT\r\n is 4 bytes
    assert transport.written_lines == ["AT"]

    transport.close()


def test_mock_transport_response_released_by_write():
    """Test queued responses only become readable after a write."""
    transport = MockTransport()

    transport.add_response(["+PORT: 15"])
    assert transport.read(timeout=0.01) == b""

    transport.write(b"AT+PORT=15\r\n")
    assert transport.read() == b"+PORT: 15\r\n"

    transport.close()


def test_mock_transport_multiple_lines():
    """Test MockTransport with a multi-line response."""
    transport = MockTransport()

    transport.add_response(["+JOIN: Start", "+JOIN: NORMAL"])
    transport.write(b"AT+JOIN\r\n")

    assert transport.read() == b"+JOIN: Start\r\n+JOIN: NORMAL\r\n"

    transport.close()


def test_mock_transport_empty_response_list():
    """Test an empty response means the command goes unanswered."""
    transport = MockTransport()

    transport.add_response([])
    transport.add_response(["+ADR: ON"])

    transport.write(b"AT+PORT=15\r\n")
    assert transport.read(timeout=0.01) == b""

    transport.write(b"AT+ADR=ON\r\n")
    assert transport.read() == b"+ADR: ON\r\n"

    transport.close()


def test_mock_transport_feed():
    """Test fed data is readable immediately, in order."""
    transport = MockTransport()

    transport.feed(b"+JOIN: Net")
    transport.feed("work joined\r\n")

    assert transport.read() == b"+JOIN: Net"
    assert transport.read() == b"work joined\r\n"

    transport.close()


def test_mock_transport_empty_read():
    """Test MockTransport returns empty when no data."""
    transport = MockTransport()

    line = transport.read(timeout=0.01)
    assert line == b""

    transport.close()


def test_mock_transport_is_open():
    """Test MockTransport is_open status."""
    transport = MockTransport()

    assert transport.is_open() is True

    transport.close()
    assert transport.is_open() is False


def test_mock_transport_write_when_closed():
    """Test MockTransport raises error when writing to closed transport."""
    transport = MockTransport()
    transport.close()

    with pytest.raises(E5Error):
        transport.write(b"AT\r\n")


def test_mock_transport_read_when_closed():
    """Test MockTransport signals disconnection when read after close."""
    transport = MockTransport()
    transport.close()

    with pytest.raises(DeviceDisconnectedError):
        transport.read()


def test_mock_transport_reset_buffer():
    """Test MockTransport reset_input_buffer drops pending input."""
    transport = MockTransport()

    transport.feed_lines(["+MSGHEX: Done"])
    transport.reset_input_buffer()

    assert transport.read(timeout=0.01) == b""

    transport.close()


def test_mock_transport_clear_responses():
    """Test MockTransport clear_responses."""
    transport = MockTransport()

    # Add responses
    transport.add_response(["Line 1"])
    transport.add_response(["Line 2"])

    # Clear
    transport.clear_responses()

    # Should return empty now
    transport.write(b"AT\r\n")
    line = transport.read(timeout=0.01)
    assert line == b""

    transport.close()
