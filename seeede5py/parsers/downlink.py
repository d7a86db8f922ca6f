"""
Downlink line parsers.

Parses the two halves of a downlink report:

    +MSGHEX: PORT: 1; RX: "12345678"
    +MSGHEX: RXWIN1, RSSI -106, SNR 4.0

The confirmed-send variants use the +CMSGHEX prefix.
"""

import logging
from dataclasses import dataclass

from .base import LineParser, DelimitedFieldParser, parse_int, parse_float
from ..codec import validate_hex

logger = logging.getLogger(__name__)

PAYLOAD_PREFIXES = ("+MSGHEX: PORT: ", "+CMSGHEX: PORT: ")
METRICS_PREFIXES = ("+MSGHEX: RX", "+CMSGHEX: RX")
CONFIRMED_PREFIX = "+CMSGHEX"


@dataclass(frozen=True)
class PayloadFields:
    """Port and payload from a downlink payload line."""
    port: int
    payload: str


@dataclass(frozen=True)
class MetricsFields:
    """Signal metrics from a downlink metrics line."""
    rssi: int
    snr: float


class PayloadLineParser(LineParser[PayloadFields]):
    """Parser for '+MSGHEX: PORT: <port>; RX: "<hex>"' lines."""

    # Split on ':' and ';' gives: prefix, "PORT", port, "RX", payload
    PORT_FIELD = 2
    PAYLOAD_FIELD = 4

    def __init__(self) -> None:
        self._fields = DelimitedFieldParser(":;", min_fields=self.PAYLOAD_FIELD + 1)

    def parse(self, line: str) -> PayloadFields:
        fields = self._fields.parse(line)
        port = parse_int(fields[self.PORT_FIELD], "port", line)
        payload = validate_hex(fields[self.PAYLOAD_FIELD].strip(' "'))
        return PayloadFields(port=port, payload=payload)


class MetricsLineParser(LineParser[MetricsFields]):
    """Parser for '+MSGHEX: RXWIN1, RSSI <rssi>, SNR <snr>' lines."""

    # Split on ':', ',' and ' ' keeps empty fields between adjacent delimiters
    RSSI_FIELD = 5
    SNR_FIELD = 8

    def __init__(self) -> None:
        self._fields = DelimitedFieldParser(":, ", min_fields=self.SNR_FIELD + 1)

    def parse(self, line: str) -> MetricsFields:
        fields = self._fields.parse(line)
        rssi = parse_int(fields[self.RSSI_FIELD], "rssi", line)
        snr = parse_float(fields[self.SNR_FIELD], "snr", line)
        return MetricsFields(rssi=rssi, snr=snr)


def is_confirmed_variant(line: str) -> bool:
    """Check if a downlink line belongs to a confirmed send."""
    return line.startswith(CONFIRMED_PREFIX)
