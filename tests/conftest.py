"""
Pytest configuration and fixtures.

Provides shared test fixtures for seeede5py tests.
"""

import time
import logging

import pytest

from seeede5py.core import MockTransport, ModemCore
from seeede5py import SeeedE5Modem


# Enable logging for tests
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


@pytest.fixture
def mock_transport():
    """
    Create a MockTransport instance for testing.

    Example:
        def test_something(mock_transport):
            mock_transport.add_response(["+PORT: 15"])
            # ... test code ...
    """
    transport = MockTransport()
    yield transport
    transport.close()


@pytest.fixture
def modem_core(mock_transport):
    """
    Create a started ModemCore instance with MockTransport.

    Example:
        def test_command(modem_core, mock_transport):
            mock_transport.add_response(["+PORT: 15"])
            outcome = modem_core.execute("AT+PORT=15", "+PORT: 15")
            assert outcome.is_success
    """
    core = ModemCore(transport=mock_transport, timeout=0.5)
    core.start()
    yield core
    core.close()


@pytest.fixture
def modem(mock_transport):
    """
    Create a started SeeedE5Modem instance with MockTransport.

    Example:
        def test_port(modem, mock_transport):
            mock_transport.add_response(["+PORT: 15"])
            assert modem.device.set_port(15).is_success
    """
    modem_instance = SeeedE5Modem(
        transport=mock_transport,
        timeout=0.5,
        wakeup_on_start=False
    )
    modem_instance.start()
    yield modem_instance
    modem_instance.close()


@pytest.fixture
def wait_for():
    """
    Poll a condition until it holds or a timeout expires.

    Example:
        def test_event(wait_for):
            assert wait_for(lambda: received)
    """
    def _wait_for(condition, timeout: float = 2.0, interval: float = 0.01) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if condition():
                return True
            time.sleep(interval)
        return condition()

    return _wait_for


@pytest.fixture
def payload_line():
    """Downlink payload line as the module prints it."""
    return '+MSGHEX: PORT: 3; RX: "AB12"'


@pytest.fixture
def metrics_line():
    """Downlink metrics line as the module prints it."""
    return "+MSGHEX: RXWIN1, RSSI -42, SNR 7.5"
