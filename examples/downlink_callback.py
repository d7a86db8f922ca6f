"""
Downlink callback example.

Demonstrates registering callbacks for downlinks, confirmations and
diagnostics. Assumes the module has already joined.
"""

import time

from seeede5py import SeeedE5Modem, EventKind, DiagnosticEvent, hex_to_bytes

# Replace with your serial port
PORT = "/dev/ttyS0"


def on_downlink(port: int, rssi: int, snr: float, payload: str):
    """Handle a reassembled downlink."""
    print(f"\n[DOWNLINK] port {port} RSSI {rssi} SNR {snr} payload {payload} "
          f"({hex_to_bytes(payload)!r})")


def on_confirm(rssi: int, snr: float):
    """Handle a confirmed uplink acknowledgement."""
    print(f"\n[CONFIRMED] RSSI {rssi} SNR {snr}")


def on_diagnostic(event: DiagnosticEvent):
    """Handle a line the driver could not deliver."""
    print(f"\n[DIAGNOSTIC] {event.kind.value}: {event.reason}")


def main():
    """Main function."""
    print("seeede5py - Downlink Callback Example\n")

    with SeeedE5Modem(port=PORT) as modem:
        print("Registering callbacks...\n")

        modem.register_callback(EventKind.DOWNLINK_RECEIVED, on_downlink)
        modem.register_callback(EventKind.SEND_CONFIRMED, on_confirm)
        modem.register_callback(EventKind.DIAGNOSTIC, on_diagnostic)

        print("Sending confirmed uplinks every 60s (Ctrl+C to stop)...\n")
        print("Tip: Class A devices only receive downlinks right after an uplink.\n")

        try:
            while True:
                outcome = modem.messaging.send("01", confirmed=True)
                print(f"Send: {outcome}")
                time.sleep(60)

        except KeyboardInterrupt:
            print("\nStopping...")


if __name__ == "__main__":
    main()
