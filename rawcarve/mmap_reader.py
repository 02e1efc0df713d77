"""
Medium Reader — expose a disk image / dump as one read-only buffer.

1. Memory-mapped I/O (mmap) so the OS pages the medium in on demand.
2. Fallback to a single plain read() if mmap fails (empty files,
   character devices, 32-bit address space).

Either way the carving engine sees an object supporting len(), slicing
and find().
"""

import os
import mmap
import logging
from contextlib import contextmanager
from typing import Optional, BinaryIO

logger = logging.getLogger(__name__)


class MediumReader:
    """
    Read-only view over a whole medium.

    Usage:
        with open(path, "rb") as fd:
            with MediumReader(fd, os.fstat(fd.fileno()).st_size) as reader:
                records = carve(reader.buffer)
    """

    def __init__(
        self,
        fd: BinaryIO,
        total_size: int,
        use_mmap: bool = True,
    ):
        self._fd = fd
        self._size = total_size
        self._mmap: Optional[mmap.mmap] = None
        self._data: Optional[bytes] = None
        self._using_mmap = False

        if use_mmap and total_size > 0:
            self._try_mmap()
        if not self._using_mmap:
            self._fd.seek(0)
            self._data = self._fd.read()
            self._size = len(self._data)

    def _try_mmap(self):
        """Attempt to memory-map the file/device."""
        try:
            self._mmap = mmap.mmap(
                self._fd.fileno(),
                0,  # Map entire file
                access=mmap.ACCESS_READ,
            )
            self._size = len(self._mmap)
            self._using_mmap = True
            logger.info(
                "mmap enabled: %d bytes (%.1f MB)",
                self._size, self._size / (1024 ** 2),
            )
        except (OSError, ValueError, OverflowError) as e:
            logger.info("mmap unavailable (%s), using buffered read", e)
            self._mmap = None
            self._using_mmap = False

    @property
    def is_mmap(self) -> bool:
        return self._using_mmap

    @property
    def size(self) -> int:
        return self._size

    @property
    def buffer(self):
        """The whole medium: an mmap or a bytes object."""
        if self._using_mmap:
            return self._mmap
        return self._data if self._data is not None else b""

    def read_at(self, offset: int, size: int) -> bytes:
        """Read `size` bytes starting at `offset`, clamped to the medium."""
        if offset < 0 or offset >= self._size:
            return b""
        size = min(size, self._size - offset)
        if size <= 0:
            return b""
        return self.buffer[offset:offset + size]

    def close(self):
        """Release mmap resources."""
        if self._mmap is not None:
            self._mmap.close()
            self._mmap = None
            self._using_mmap = False
        self._data = None

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


@contextmanager
def open_medium(path: str, use_mmap: bool = True):
    """Open `path` read-only and yield a MediumReader. OSError propagates."""
    with open(path, "rb") as fd:
        size = os.fstat(fd.fileno()).st_size
        reader = MediumReader(fd, size, use_mmap=use_mmap)
        try:
            yield reader
        finally:
            reader.close()
