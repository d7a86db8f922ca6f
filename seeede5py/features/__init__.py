"""
Feature managers for modem functionality.

Provides high-level managers for different modem capabilities:
- DeviceManager: Class, region, port, ADR, reset, low power
- NetworkManager: OTAA/ABP provisioning and join
- MessagingManager: Uplinks
"""

from .device import DeviceManager
from .network import NetworkManager
from .messaging import MessagingManager

__all__ = [
    "DeviceManager",
    "NetworkManager",
    "MessagingManager",
]
