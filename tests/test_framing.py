"""
Tests for the line framer.
"""

from seeede5py.core import LineFramer


def test_single_complete_line():
    """Test a whole line in one chunk."""
    framer = LineFramer()

    assert framer.feed(b"+PORT: 15\r\n") == ["+PORT: 15"]
    assert framer.pending == b""


def test_line_split_across_chunks():
    """Test a line split mid-way is emitted once complete."""
    framer = LineFramer()

    assert framer.feed(b"+PO") == []
    assert framer.feed(b"RT: 1") == []
    assert framer.feed(b"5\r") == []
    assert framer.feed(b"\n") == ["+PORT: 15"]


def test_several_lines_in_one_chunk():
    """Test lines are emitted in arrival order and never merged."""
    framer = LineFramer()

    lines = framer.feed(b"+JOIN: Start\r\n+JOIN: NORMAL\r\n+JOIN: Netw")

    assert lines == ["+JOIN: Start", "+JOIN: NORMAL"]
    assert framer.pending == b"+JOIN: Netw"
    assert framer.feed(b"ork joined\r\n") == ["+JOIN: Network joined"]


def test_bare_lf_terminates_line():
    """Test LF without CR still ends a line."""
    framer = LineFramer()

    assert framer.feed(b"+ADR: ON\n") == ["+ADR: ON"]


def test_empty_lines_are_emitted():
    """Test blank lines come through as empty strings."""
    framer = LineFramer()

    assert framer.feed(b"\r\n+DR: AS923\r\n") == ["", "+DR: AS923"]


def test_invalid_utf8_is_replaced_not_dropped():
    """Test undecodable bytes still produce a line."""
    framer = LineFramer()

    lines = framer.feed(b"\xff+MSGHEX: Done\r\n")

    assert len(lines) == 1
    assert lines[0].endswith("+MSGHEX: Done")
    assert lines[0][0] == "�"


def test_reset_discards_partial_line():
    """Test reset drops only the unfinished line."""
    framer = LineFramer()

    framer.feed(b"+MSGHEX: PORT")
    assert framer.reset() == len(b"+MSGHEX: PORT")
    assert framer.pending == b""

    assert framer.feed(b"+RESET: OK\r\n") == ["+RESET: OK"]


def test_empty_chunk():
    """Test an empty read produces nothing."""
    framer = LineFramer()

    assert framer.feed(b"") == []
    assert framer.reset() == 0
