"""
Line framing for the module's byte stream.

Turns arbitrary byte chunks into complete CR LF terminated text lines.
"""

import logging

logger = logging.getLogger(__name__)


class LineFramer:
    """
    Splits a byte stream into lines.

    Chunks may end anywhere; the trailing partial line is kept until the
    chunk that completes it arrives. LF ends a line and a CR right before it
    is stripped.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding
        self._buffer = bytearray()

    def feed(self, data: bytes) -> list[str]:
        """
        Add a chunk and return the lines it completes.

        Args:
            data: Raw bytes from the transport

        Returns:
            Complete lines in arrival order, terminators stripped
        """
        if not data:
            return []

        self._buffer.extend(data)
        lines = []

        while True:
            index = self._buffer.find(b"\n")
            if index < 0:
                break

            raw = bytes(self._buffer[:index])
            del self._buffer[:index + 1]

            if raw.endswith(b"\r"):
                raw = raw[:-1]

            lines.append(raw.decode(self.encoding, errors="replace"))

        return lines

    def reset(self) -> int:
        """
        Discard the partial line.

        Returns:
            Number of bytes discarded
        """
        discarded = len(self._buffer)
        if discarded:
            logger.debug(f"Discarding {discarded} bytes of partial line: {bytes(self._buffer)}")
        self._buffer.clear()
        return discarded

    @property
    def pending(self) -> bytes:
        """Bytes of the line still being assembled."""
        return bytes(self._buffer)
