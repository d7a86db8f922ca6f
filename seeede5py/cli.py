"""
Command line client for seeede5py.

Configures the module, joins the network and sends a payload periodically,
printing join results, downlinks and confirmations as they arrive.
"""

import sys
import logging
import threading
import time
from datetime import datetime, timezone
from typing import Optional

from .modem import SeeedE5Modem
from .version import __version__
from .core import EventKind, Transport
from .codec import hex_to_bytes
from .exceptions import E5Error
from .types import LoRaWANDeviceClass, DiagnosticEvent

# How often the join wait checks that the reader is still running
JOIN_POLL_SECONDS = 0.5


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%H:%M:%S")


class E5Client:
    """Join-then-send loop."""

    def __init__(
        self,
        port: str,
        baudrate: int = 9600,
        region: str = "AS923",
        device_class: LoRaWANDeviceClass = LoRaWANDeviceClass.A,
        message_port: int = 15,
        otaa: Optional[tuple[str, str]] = None,
        abp: Optional[tuple[str, str, str]] = None,
        payload: str = "",
        confirmed: bool = False,
        interval: float = 300.0,
        count: int = 0,
        join_timeout: float = 120.0,
        transport: Optional[Transport] = None
    ):
        """
        Initialize client.

        Args:
            port: Serial port path
            baudrate: Baud rate
            region: Region ID for AT+DR
            device_class: LoRaWAN device class
            message_port: Application port for uplinks
            otaa: (app_eui, app_key) for over-the-air activation
            abp: (dev_addr, nwks_key, apps_key) for personalisation
            payload: Hex payload to send
            confirmed: Send confirmed uplinks
            interval: Seconds between uplinks
            count: Number of uplinks (0 = until interrupted)
            join_timeout: Seconds to wait for the join result
            transport: Transport to use instead of opening the serial port
        """
        self.port = port
        self.baudrate = baudrate
        self.region = region
        self.device_class = device_class
        self.message_port = message_port
        self.otaa = otaa
        self.abp = abp
        self.payload = payload
        self.confirmed = confirmed
        self.interval = interval
        self.count = count
        self.join_timeout = join_timeout
        self.transport = transport
        self.modem: Optional[SeeedE5Modem] = None
        self._joined = threading.Event()
        self._join_finished = threading.Event()

    def _on_join(self, success: bool) -> None:
        print(f"{_now()} Join finished: {success}")
        if success:
            self._joined.set()
        self._join_finished.set()

    def _on_downlink(self, port: int, rssi: int, snr: float, payload: str) -> None:
        print(f"{_now()} Receive Message RSSI:{rssi} SNR:{snr} Port:{port} "
              f"Payload:{payload} PayloadBytes:{hex_to_bytes(payload).hex('-')}")

    def _on_confirm(self, rssi: int, snr: float) -> None:
        print(f"{_now()} Send Confirm RSSI:{rssi} SNR:{snr}")

    def _on_diagnostic(self, event: DiagnosticEvent) -> None:
        print(f"{_now()} Diagnostic {event.kind.value}: {event.reason}")

    def _configure(self) -> bool:
        """Run the configuration steps, stopping at the first failure."""
        steps = [
            (f"Class {self.device_class.value}", lambda: self.modem.device.set_class(self.device_class)),
            (f"Region {self.region}", lambda: self.modem.device.set_region(self.region)),
            ("ADR on", self.modem.device.adr_on),
            (f"Port {self.message_port}", lambda: self.modem.device.set_port(self.message_port)),
        ]
        if self.otaa:
            steps.append(("OTAA", lambda: self.modem.network.otaa_initialise(*self.otaa)))
        if self.abp:
            steps.append(("ABP", lambda: self.modem.network.abp_initialise(*self.abp)))
        steps.append(("Join start", lambda: self.modem.network.join(force=True)))

        for name, step in steps:
            print(f"{_now()} {name}")
            outcome = step()
            if not outcome.is_success:
                print(f"{name} failed {outcome}")
                return False
        return True

    def _wait_for_join(self) -> bool:
        """Wait for the join result while the reader is alive."""
        deadline = time.monotonic() + self.join_timeout
        while not self._join_finished.wait(JOIN_POLL_SECONDS):
            if not self.modem.is_running:
                print(f"{_now()} Modem stopped while waiting for join")
                return False
            if time.monotonic() >= deadline:
                print(f"{_now()} No join result after {self.join_timeout}s")
                return False
        return self._joined.is_set()

    def run(self) -> int:
        """Run the client."""
        print(f"seeede5py client v{__version__}")
        print(f"Connecting to {self.port} at {self.baudrate} baud...")

        try:
            self.modem = SeeedE5Modem(
                port=self.port,
                baudrate=self.baudrate,
                transport=self.transport
            )
            self.modem.register_callback(EventKind.JOIN_COMPLETED, self._on_join)
            self.modem.register_callback(EventKind.DOWNLINK_RECEIVED, self._on_downlink)
            self.modem.register_callback(EventKind.SEND_CONFIRMED, self._on_confirm)
            self.modem.register_callback(EventKind.DIAGNOSTIC, self._on_diagnostic)
            self.modem.start()

            if not self._configure():
                return 1

            if not self._wait_for_join():
                return 1

            sent = 0
            stop = threading.Event()
            while not self.count or sent < self.count:
                print(f"{_now()} Send payload:{self.payload}")
                outcome = self.modem.messaging.send(self.payload, confirmed=self.confirmed)
                if not outcome.is_success:
                    print(f"Send failed {outcome}")
                sent += 1
                if self.count and sent >= self.count:
                    break
                stop.wait(self.interval)

        except KeyboardInterrupt:
            print("\nStopping...")
        except E5Error as e:
            print(f"\nError: {e}")
            return 1
        except Exception as e:
            print(f"\nUnexpected error: {e}")
            logging.exception("CLI error")
            return 1
        finally:
            if self.modem:
                print("\nClosing connection...")
                self.modem.close()

        return 0


def main(argv: Optional[list[str]] = None):
    """Main entry point for CLI."""
    import argparse

    parser = argparse.ArgumentParser(
        description="seeede5py client - join a LoRaWAN network and send uplinks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  seeede5-cli /dev/ttyS0 --otaa 70B3D57ED0000000 00112233445566778899AABBCCDDEEFF --payload 0102
  seeede5-cli COM3 --region EU868 --abp 26011234 <nwkskey> <appskey> --confirmed
        """
    )

    parser.add_argument(
        "port",
        help="Serial port (e.g., /dev/ttyS0, COM3)"
    )
    parser.add_argument(
        "-b", "--baudrate",
        type=int,
        default=9600,
        help="Baud rate (default: 9600)"
    )
    parser.add_argument(
        "--region",
        default="AS923",
        help="Region ID (default: AS923)"
    )
    parser.add_argument(
        "--class",
        dest="device_class",
        choices=[c.value for c in LoRaWANDeviceClass],
        default="A",
        help="LoRaWAN device class (default: A)"
    )
    parser.add_argument(
        "--message-port",
        dest="message_port",
        type=int,
        default=15,
        help="Application port for uplinks (default: 15)"
    )
    activation = parser.add_mutually_exclusive_group(required=True)
    activation.add_argument(
        "--otaa",
        nargs=2,
        metavar=("APP_EUI", "APP_KEY"),
        help="Over-the-air activation"
    )
    activation.add_argument(
        "--abp",
        nargs=3,
        metavar=("DEV_ADDR", "NWKS_KEY", "APPS_KEY"),
        help="Activation by personalisation"
    )
    parser.add_argument(
        "--payload",
        default="010203040506070809",
        help="Hex payload to send (default: 010203040506070809)"
    )
    parser.add_argument(
        "--confirmed",
        action="store_true",
        help="Send confirmed uplinks"
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=300.0,
        help="Seconds between uplinks (default: 300)"
    )
    parser.add_argument(
        "--count",
        type=int,
        default=0,
        help="Number of uplinks, 0 for unlimited (default: 0)"
    )
    parser.add_argument(
        "--join-timeout",
        dest="join_timeout",
        type=float,
        default=120.0,
        help="Seconds to wait for the join result (default: 120)"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )

    args = parser.parse_args(argv)

    # Setup logging
    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
    else:
        logging.basicConfig(
            level=logging.WARNING,
            format='%(levelname)s: %(message)s'
        )

    client = E5Client(
        port=args.port,
        baudrate=args.baudrate,
        region=args.region,
        device_class=LoRaWANDeviceClass(args.device_class),
        message_port=args.message_port,
        otaa=tuple(args.otaa) if args.otaa else None,
        abp=tuple(args.abp) if args.abp else None,
        payload=args.payload,
        confirmed=args.confirmed,
        interval=args.interval,
        count=args.count,
        join_timeout=args.join_timeout
    )

    return client.run()


if __name__ == "__main__":
    sys.exit(main())
