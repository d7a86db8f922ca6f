"""
Base parser classes and utilities.

Provides reusable parsing functionality for modem lines.
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import TypeVar, Generic

from ..exceptions import ATParseError

logger = logging.getLogger(__name__)

T = TypeVar('T')


class LineParser(ABC, Generic[T]):
    """
    Abstract base class for line parsers.

    Parsers convert a single line from the modem into a typed value.
    """

    @abstractmethod
    def parse(self, line: str) -> T:
        """
        Parse a modem line.

        Args:
            line: One line from the modem, terminator stripped

        Returns:
            Parsed data structure

        Raises:
            ATParseError: If the line cannot be parsed
        """
        pass


class DelimitedFieldParser(LineParser[list[str]]):
    """Splits a line on a set of single-character delimiters."""

    def __init__(self, delimiters: str, min_fields: int = 0):
        """
        Initialize parser.

        Args:
            delimiters: Characters that separate fields (e.g. ":;")
            min_fields: Minimum number of fields required
        """
        self.delimiters = delimiters
        self.min_fields = min_fields
        self._split_re = re.compile("[" + re.escape(delimiters) + "]")

    def parse(self, line: str) -> list[str]:
        """Split the line, keeping empty fields so positions stay fixed."""
        fields = self._split_re.split(line)

        if len(fields) < self.min_fields:
            raise ATParseError(
                f"Expected at least {self.min_fields} fields, got {len(fields)}",
                response=[line]
            )

        return fields


def parse_int(value: str, name: str, line: str) -> int:
    """Convert a field to int, raising ATParseError with context."""
    try:
        return int(value.strip())
    except ValueError as e:
        raise ATParseError(f"Failed to parse {name}: {value!r}", response=[line]) from e


def parse_float(value: str, name: str, line: str) -> float:
    """Convert a field to float, raising ATParseError with context."""
    try:
        return float(value.strip())
    except ValueError as e:
        raise ATParseError(f"Failed to parse {name}: {value!r}", response=[line]) from e
