"""
Recovery Manager — Orchestrates loading, carving, saving, and reporting.

Two input modes:
  • scan_file      — one disk image / dump
  • scan_location  — every regular file directly inside a directory,
                     each carved into <output>/<file name>.carved/
"""

import os
import csv
import json
import time
import logging
from dataclasses import dataclass, field
from typing import Optional, Callable

from .signatures import FILE_SIGNATURES
from .scanner import Carver, CandidateRecord, human_size
from .parallel import ParallelScanConfig, carve_file_parallel
from .mmap_reader import open_medium
from .writer import write_candidate, compute_md5

logger = logging.getLogger(__name__)


@dataclass
class RecoveredFile:
    """A candidate together with what happened to it on output."""
    record: CandidateRecord
    source_path: str
    recovered_path: str = ""        # Empty in preview mode
    md5: str = ""

    @property
    def extension(self) -> str:
        return self.record.extension

    @property
    def category(self) -> str:
        return self.record.descriptor.category if self.record.descriptor else ""

    @property
    def description(self) -> str:
        return self.record.descriptor.description if self.record.descriptor else ""

    @property
    def offset(self) -> int:
        return self.record.offset

    @property
    def size(self) -> int:
        return self.record.length


@dataclass
class ScanSession:
    """Represents a complete scan session."""
    session_id: str
    source_path: str
    output_dir: str
    start_time: float = 0.0
    end_time: float = 0.0
    recovered_files: list[RecoveredFile] = field(default_factory=list)
    sources_scanned: list[str] = field(default_factory=list)
    total_bytes_scanned: int = 0
    was_cancelled: bool = False
    preview_only: bool = False

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    @property
    def duration_human(self) -> str:
        d = self.duration
        if d < 60:
            return f"{d:.1f}s"
        if d < 3600:
            return f"{d / 60:.1f}m"
        return f"{d / 3600:.1f}h"

    @property
    def total_recovered_size(self) -> int:
        return sum(f.size for f in self.recovered_files)

    @property
    def files_by_extension(self) -> dict:
        r: dict[str, list] = {}
        for f in self.recovered_files:
            r.setdefault(f.extension, []).append(f)
        return r

    @property
    def summary(self) -> dict:
        return {
            "total_files": len(self.recovered_files),
            "total_size": human_size(self.total_recovered_size),
            "duration": self.duration_human,
            "sources": len(self.sources_scanned),
            "extensions": {
                ext: len(files) for ext, files in sorted(self.files_by_extension.items())
            },
        }


class RecoveryManager:
    """High-level manager: medium in, recovered files and reports out."""

    LOG_NAME = "recovery_log.json"
    # Per-source output dirs in scan-location mode; never equal to LOG_NAME
    SOURCE_DIR_SUFFIX = ".carved"

    def __init__(
        self,
        catalog=FILE_SIGNATURES,
        parallel: Optional[ParallelScanConfig] = None,
        preview_only: bool = False,
    ):
        self.catalog = tuple(catalog)
        self.parallel = parallel
        self.preview_only = preview_only
        self.current_session: Optional[ScanSession] = None
        self._carver: Optional[Carver] = None
        self._on_progress: Optional[Callable] = None
        self._on_file_found: Optional[Callable] = None

    def set_callbacks(self, on_progress=None, on_file_found=None):
        self._on_progress = on_progress
        self._on_file_found = on_file_found

    def cancel_scan(self):
        if self._carver:
            self._carver.cancel()

    # ─── Input modes ─────────────────────────────────────────

    def scan_file(self, path: str, output_dir: str) -> ScanSession:
        """Single-file mode. OSError from reading or writing propagates."""
        session = self._new_session(path, output_dir)
        try:
            self._carve_source(session, path, output_dir)
        finally:
            self._finish_session(session)
        return session

    def scan_location(self, directory: str, output_dir: str) -> ScanSession:
        """Carve every regular file directly inside `directory`."""
        session = self._new_session(directory, output_dir)
        try:
            names = sorted(
                entry.name for entry in os.scandir(directory)
                if entry.is_file(follow_symlinks=False)
            )
            logger.info("Scan location %s: %d file(s)", directory, len(names))
            for name in names:
                if session.was_cancelled:
                    break
                self._carve_source(
                    session,
                    os.path.join(directory, name),
                    os.path.join(output_dir, name + self.SOURCE_DIR_SUFFIX),
                )
        finally:
            self._finish_session(session)
        return session

    # ─── Internals ───────────────────────────────────────────

    def _new_session(self, source: str, output_dir: str) -> ScanSession:
        if not self.preview_only:
            os.makedirs(output_dir, exist_ok=True)
        session = ScanSession(
            session_id=f"scan_{int(time.time())}",
            source_path=source,
            output_dir=output_dir,
            start_time=time.time(),
            preview_only=self.preview_only,
        )
        self.current_session = session
        return session

    def _finish_session(self, session: ScanSession):
        session.end_time = time.time()
        if not self.preview_only and session.recovered_files:
            self._save_log(os.path.join(session.output_dir, self.LOG_NAME))

    def _carve_source(self, session: ScanSession, path: str, output_dir: str):
        logger.info("Carving %s", path)
        if not self.preview_only:
            os.makedirs(output_dir, exist_ok=True)

        with open_medium(path) as reader:
            data = reader.buffer
            if self.parallel is not None:
                records = carve_file_parallel(path, self.catalog, self.parallel)
                self._report_records(records)
            else:
                self._carver = Carver(self.catalog)
                self._carver.set_progress_callback(self._on_progress)
                self._carver.set_file_found_callback(self._on_file_found)
                records = self._carver.scan(data)
                if self._carver.progress.is_cancelled:
                    session.was_cancelled = True

            for rec in records:
                rf = RecoveredFile(
                    record=rec,
                    source_path=path,
                    md5=compute_md5(data[rec.offset:rec.end]),
                )
                if not self.preview_only:
                    rf.recovered_path = write_candidate(data, rec, output_dir)
                session.recovered_files.append(rf)

            session.total_bytes_scanned += reader.size
        session.sources_scanned.append(path)

    def _report_records(self, records):
        if self._on_file_found:
            for rec in records:
                self._on_file_found(rec)

    # ─── Reports ──────────────────────────────────────────────

    def get_recovery_log(self) -> list[dict]:
        if not self.current_session:
            return []
        return [
            {
                "file_number": i,
                "source": rf.source_path,
                "type": rf.description,
                "extension": rf.extension,
                "catalog_index": rf.record.descriptor_index,
                "offset": rf.offset,
                "offset_hex": f"0x{rf.offset:X}",
                "sector": rf.record.sector,
                "size": rf.size,
                "size_human": rf.record.size_human,
                "md5": rf.md5,
                "saved_to": rf.recovered_path,
            }
            for i, rf in enumerate(self.current_session.recovered_files, 1)
        ]

    def _save_log(self, filepath):
        s = self.current_session
        data = {
            "session": s.session_id if s else "",
            "date": time.strftime("%Y-%m-%d %H:%M:%S"),
            "source": s.source_path if s else "",
            "log": self.get_recovery_log(),
        }
        with open(filepath, "w") as f:
            json.dump(data, f, indent=2, default=str)

    def export_report_csv(self, filepath):
        if not self.current_session:
            return
        with open(filepath, "w", newline="") as f:
            w = csv.writer(f)
            w.writerow([
                "#", "Source", "Category", "Extension", "Description",
                "Size", "Size (human)", "Offset (hex)", "Sector",
                "MD5", "Path",
            ])
            for i, rf in enumerate(self.current_session.recovered_files, 1):
                w.writerow([
                    i, rf.source_path, rf.category, rf.extension, rf.description,
                    rf.size, rf.record.size_human,
                    f"0x{rf.offset:X}", rf.record.sector,
                    rf.md5, rf.recovered_path,
                ])

    def export_report_json(self, filepath):
        if not self.current_session:
            return
        s = self.current_session
        report = {
            "session_id": s.session_id,
            "source": s.source_path,
            "date": time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(s.start_time)),
            "duration": s.duration_human,
            "bytes_scanned": s.total_bytes_scanned,
            "cancelled": s.was_cancelled,
            "preview": s.preview_only,
            "method": "Raw signature carving (header/footer)",
            "summary": s.summary,
            "files": self.get_recovery_log(),
        }
        with open(filepath, "w") as f:
            json.dump(report, f, indent=2, default=str)
