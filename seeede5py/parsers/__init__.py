"""
Line parsers for modem output.

Provides type-safe parsing of modem lines into structured data.
"""

from .base import LineParser, DelimitedFieldParser, parse_int, parse_float
from .downlink import (
    PayloadFields,
    MetricsFields,
    PayloadLineParser,
    MetricsLineParser,
    PAYLOAD_PREFIXES,
    METRICS_PREFIXES,
    is_confirmed_variant,
)

__all__ = [
    "LineParser",
    "DelimitedFieldParser",
    "parse_int",
    "parse_float",
    "PayloadFields",
    "MetricsFields",
    "PayloadLineParser",
    "MetricsLineParser",
    "PAYLOAD_PREFIXES",
    "METRICS_PREFIXES",
    "is_confirmed_variant",
]
