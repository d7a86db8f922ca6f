"""
OTAA join example.

Demonstrates configuring the module, joining with over-the-air activation and
sending one uplink.
"""

import threading

from seeede5py import SeeedE5Modem, EventKind, LoRaWANDeviceClass

# Replace with your serial port and network credentials
PORT = "/dev/ttyS0"
APP_EUI = "0000000000000000"
APP_KEY = "00000000000000000000000000000000"


def main():
    """Main function."""
    print("seeede5py - OTAA Join Example\n")

    joined = threading.Event()
    join_result = [False]

    def on_join(success: bool):
        join_result[0] = success
        joined.set()

    with SeeedE5Modem(port=PORT) as modem:
        modem.register_callback(EventKind.JOIN_COMPLETED, on_join)

        # Each step returns an Outcome; stop at the first failure
        for name, step in (
            ("Class A", lambda: modem.device.set_class(LoRaWANDeviceClass.A)),
            ("Region AS923", lambda: modem.device.set_region("AS923")),
            ("ADR on", modem.device.adr_on),
            ("Port 15", lambda: modem.device.set_port(15)),
            ("OTAA", lambda: modem.network.otaa_initialise(APP_EUI, APP_KEY)),
            ("Join", lambda: modem.network.join(force=True)),
        ):
            outcome = step()
            print(f"{name}: {outcome}")
            if not outcome.is_success:
                return

        print("\nWaiting for join result...")
        if not joined.wait(timeout=60) or not join_result[0]:
            print("Join failed")
            return

        print("Joined!\n")

        outcome = modem.messaging.send(b"\x01\x02\x03")
        print(f"Send: {outcome}")

    print("\nConnection closed.")


if __name__ == "__main__":
    main()
