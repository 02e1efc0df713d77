"""
Carving Engine — raw signature scan of an in-memory medium.

HOW FILE CARVING WORKS
──────────────────────
1.  Take the whole medium as one read-only buffer (bytes or mmap).
2.  For every catalog entry, in catalog order, find EVERY occurrence of
    its header (matcher.find_all).
3.  For every header hit, resolve the extent (footer or size bound).
4.  Emit one CandidateRecord per hit. Nothing is validated, merged or
    de-duplicated: two entries matching the same bytes give two records.

The scan is stateless. Carver adds progress callbacks and cooperative
cancellation between catalog entries on top of iter_carve().
"""

import time
import logging
from dataclasses import dataclass, field
from typing import Optional, Callable, Iterator

from .signatures import SignatureDescriptor, FILE_SIGNATURES
from .matcher import find_all
from .extent import resolve_extent

logger = logging.getLogger(__name__)

SECTOR_SIZE = 512


# ─────────────────────────────────────────────────────────────
#  Data Classes
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class CandidateRecord:
    """One header hit and the byte range resolved for it."""
    descriptor_index: int           # Position of the matching entry in the catalog
    offset: int                     # Byte offset of the header's first byte
    length: int                     # Resolved candidate size
    descriptor: Optional[SignatureDescriptor] = field(compare=False, repr=False, default=None)

    @property
    def extension(self) -> str:
        return self.descriptor.extension if self.descriptor else ""

    @property
    def end(self) -> int:
        return self.offset + self.length

    @property
    def sector(self) -> int:
        return self.offset // SECTOR_SIZE

    @property
    def size_human(self) -> str:
        return human_size(self.length)


@dataclass
class ScanProgress:
    descriptors_total: int = 0
    descriptors_done: int = 0
    candidates_found: int = 0
    total_bytes: int = 0
    elapsed_time: float = 0.0
    is_scanning: bool = False
    is_cancelled: bool = False
    status_message: str = "Ready"

    @property
    def progress_percent(self) -> float:
        if self.descriptors_total == 0:
            return 0.0
        return min(100.0, (self.descriptors_done / self.descriptors_total) * 100)


# ─────────────────────────────────────────────────────────────
#  Stateless engine
# ─────────────────────────────────────────────────────────────

def carve_descriptor(data, index: int, sig: SignatureDescriptor) -> list[CandidateRecord]:
    """All candidates for a single catalog entry, in offset order."""
    records = []
    for pos in find_all(data, sig.header):
        length = resolve_extent(data, pos, sig)
        records.append(CandidateRecord(index, pos, length, sig))
    return records


def iter_carve(data, catalog=FILE_SIGNATURES) -> Iterator[CandidateRecord]:
    """Yield candidates entry by entry; stopping between entries is safe."""
    for index, sig in enumerate(catalog):
        yield from carve_descriptor(data, index, sig)


def carve(data, catalog=FILE_SIGNATURES) -> list[CandidateRecord]:
    """Every candidate of every catalog entry, in catalog then offset order."""
    return list(iter_carve(data, catalog))


# ─────────────────────────────────────────────────────────────
#  Scanner
# ─────────────────────────────────────────────────────────────

class Carver:
    """
    Raw binary file carving scanner.

    Wraps the stateless engine with progress reporting and a cancel
    flag that is checked before each catalog entry is scanned.
    """

    # Progress is reported after each entry, and at most this often
    PROGRESS_INTERVAL = 0.1

    def __init__(self, catalog=FILE_SIGNATURES):
        self.catalog = tuple(catalog)
        self.progress = ScanProgress()
        self._on_progress: Optional[Callable] = None
        self._on_file_found: Optional[Callable] = None
        self._last_notify = 0.0

    def set_progress_callback(self, cb):
        self._on_progress = cb

    def set_file_found_callback(self, cb):
        self._on_file_found = cb

    def cancel(self):
        self.progress.is_cancelled = True

    def scan(self, data) -> list[CandidateRecord]:
        """Carve `data` against the catalog. Returns what was found before any cancel."""
        self.progress = ScanProgress(
            descriptors_total=len(self.catalog),
            total_bytes=len(data),
            is_scanning=True,
            status_message="Scanning...",
        )
        start = time.time()
        results: list[CandidateRecord] = []

        for index, sig in enumerate(self.catalog):
            if self.progress.is_cancelled:
                logger.info("Scan cancelled after %d/%d signatures",
                            index, len(self.catalog))
                break

            for rec in carve_descriptor(data, index, sig):
                results.append(rec)
                self.progress.candidates_found += 1
                logger.debug("Found %s signature at offset %d (%d bytes)",
                             sig.extension, rec.offset, rec.length)
                if self._on_file_found:
                    self._on_file_found(rec)

            self.progress.descriptors_done = index + 1
            self.progress.elapsed_time = time.time() - start
            self._notify_progress()

        self.progress.elapsed_time = time.time() - start
        self.progress.is_scanning = False
        self.progress.status_message = (
            "Cancelled" if self.progress.is_cancelled
            else f"Done: {len(results)} candidate(s)"
        )
        self._notify_progress(force=True)
        logger.info("Scanned %d bytes: %d candidate(s) in %.2fs",
                    len(data), len(results), self.progress.elapsed_time)
        return results

    def _notify_progress(self, force: bool = False):
        if not self._on_progress:
            return
        now = time.time()
        if force or now - self._last_notify >= self.PROGRESS_INTERVAL:
            self._last_notify = now
            self._on_progress(self.progress)


# ─────────────────────────────────────────────────────────────
#  Utility
# ─────────────────────────────────────────────────────────────

def human_size(nbytes: int) -> str:
    size = float(nbytes)
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"
