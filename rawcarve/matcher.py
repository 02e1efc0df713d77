"""
Pattern Matcher — locate fixed byte patterns in a buffer.

Built on the buffer's own find() (bytes, bytearray and mmap all provide
it), which is a sublinear-average single-pattern search implemented in C.
A pattern longer than the searched range simply never matches.
"""

from typing import Optional


def find_all(data, pattern: bytes, start: int = 0, end: Optional[int] = None) -> list[int]:
    """Return every start offset of `pattern` in `data[start:end]`, ascending.

    Matches may overlap: b"aaa" contains b"aa" at 0 and 1.
    """
    if not pattern:
        raise ValueError("pattern must not be empty")
    if end is None or end > len(data):
        end = len(data)
    positions = []
    pos = max(0, start)
    while end - pos >= len(pattern):
        pos = data.find(pattern, pos, end)
        if pos == -1:
            break
        positions.append(pos)
        pos += 1
    return positions


def find_first(data, pattern: bytes, start: int = 0) -> Optional[int]:
    """First offset of `pattern` at or after `start`, or None."""
    if not pattern:
        raise ValueError("pattern must not be empty")
    if start < 0:
        start = 0
    if len(data) - start < len(pattern):
        return None
    pos = data.find(pattern, start)
    return pos if pos != -1 else None
