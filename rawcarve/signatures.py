"""
File Signature Catalog — header / footer / size bound per recoverable type.

DESIGN RATIONALE
────────────────
Each entry describes how to find the START of a file (fixed header bytes)
and how to decide where it ENDS:

  • Inclusive(footer)  — search for the footer after the header, keep it
  • Exclusive(footer)  — search for the footer after the header, stop before it
  • None               — no footer; take `size_bound` bytes

When a footer is configured but never found, the carve falls back to the
size bound (clamped to the end of the medium).

Exported for the scanner:
  • FILE_SIGNATURES     — ordered tuple of SignatureDescriptor
  • SignatureDescriptor — frozen dataclass describing one catalog entry
  • Inclusive / Exclusive — footer policies
  • UNBOUNDED           — size bound meaning "no cap"
"""

import sys
from dataclasses import dataclass
from typing import Optional, Union


# Largest representable size: "take everything up to end of medium"
UNBOUNDED = sys.maxsize


@dataclass(frozen=True)
class Inclusive:
    """Footer is part of the recovered file."""
    pattern: bytes

    @property
    def size_after_match(self) -> int:
        return len(self.pattern)


@dataclass(frozen=True)
class Exclusive:
    """Footer marks the first byte AFTER the recovered file."""
    pattern: bytes

    @property
    def size_after_match(self) -> int:
        return 0


FooterPolicy = Optional[Union[Inclusive, Exclusive]]


@dataclass(frozen=True)
class SignatureDescriptor:
    """Describes one recoverable file type."""
    extension: str                  # file extension without dot
    size_bound: int                 # max bytes when no footer is found
    header: bytes                   # magic bytes at the start of the file
    footer: FooterPolicy = None
    category: str = "Other"
    description: str = ""

    def __post_init__(self):
        if not self.header:
            raise ValueError(f"{self.extension}: header must not be empty")
        if self.size_bound < 0:
            raise ValueError(f"{self.extension}: negative size bound")
        if self.footer is not None and not self.footer.pattern:
            raise ValueError(f"{self.extension}: footer pattern must not be empty")

    @property
    def footer_pattern(self) -> Optional[bytes]:
        return self.footer.pattern if self.footer is not None else None


# ══════════════════════════════════════════════════════════════
#  C A T A L O G
# ══════════════════════════════════════════════════════════════
# Order only matters for output ordering: records are emitted
# catalog entry by catalog entry.

_10MB = 10_000_000

FILE_SIGNATURES: tuple[SignatureDescriptor, ...] = (
    # ── Archives ──
    SignatureDescriptor("zip", _10MB, b"PK\x03\x04", Inclusive(b"PK\x05\x06"),
                        "Archive", "ZIP Archive"),
    SignatureDescriptor("rar", _10MB, b"Rar!", Inclusive(b"\x00\x00\x00\x00"),
                        "Archive", "RAR Archive"),
    SignatureDescriptor("7z", _10MB, b"7z\xBC\xAF\x27\x1C", Inclusive(b"\x00\x00\x00\x00"),
                        "Archive", "7-Zip Archive"),
    SignatureDescriptor("tar", _10MB, b"ustar", Inclusive(b"\x00\x00\x00\x00"),
                        "Archive", "TAR Archive"),
    SignatureDescriptor("iso", _10MB, b"CD001", Inclusive(b"\x00\x00\x00\x00"),
                        "Archive", "ISO 9660 Disc Image"),

    # ── Documents ──
    # A compound file ends where the next one starts
    SignatureDescriptor("doc", _10MB, b"\xD0\xCF\x11\xE0\xA1\xB1\x1A\xE1\x00\x00",
                        Exclusive(b"\xD0\xCF\x11\xE0\xA1\xB1\x1A\xE1\x00\x00"),
                        "Document", "MS Office Document (OLE)"),
    SignatureDescriptor("doc", _10MB, b"\xD0\xCF\x11\xE0\xA1\xB1", None,
                        "Document", "MS Office Document (OLE, short header)"),
    SignatureDescriptor("html", _10MB, b"<html", Inclusive(b"</html>"),
                        "Document", "HTML Document"),
    SignatureDescriptor("html", _10MB, b"<!DOCTYPE html", Inclusive(b"</html>"),
                        "Document", "HTML Document (doctype)"),
    SignatureDescriptor("pdf", _10MB, b"%PDF-", Inclusive(b"%%EOF"),
                        "Document", "PDF Document"),
    SignatureDescriptor("rtf", _10MB, b"{\\rtf1", Inclusive(b"}"),
                        "Document", "Rich Text Format"),

    # ── Images ──
    SignatureDescriptor("bmp", _10MB, b"BM", None,
                        "Image", "BMP Image"),
    SignatureDescriptor("gif", 5_000_000, b"GIF87a", Inclusive(b"\x00\x3B"),
                        "Image", "GIF Image (87a)"),
    SignatureDescriptor("gif", 5_000_000, b"GIF89a", Inclusive(b"\x00\x00\x3B"),
                        "Image", "GIF Image (89a)"),
    SignatureDescriptor("jpg", 200_000_000, b"\xFF\xD8\xFF\xE0\x00\x10", Inclusive(b"\xFF\xD9"),
                        "Image", "JPEG Image (JFIF)"),
    SignatureDescriptor("jpg", 200_000_000, b"\xFF\xD8\xFF\xE1", Inclusive(b"\xFF\xD9"),
                        "Image", "JPEG Image (Exif)"),
    SignatureDescriptor("png", _10MB, b"\x89PNG\r\n\x1A\n", Inclusive(b"IEND\xAE\x42\x60\x82"),
                        "Image", "PNG Image"),
    SignatureDescriptor("tif", _10MB, b"II\x2A\x00", None,
                        "Image", "TIFF Image (LE)"),
    SignatureDescriptor("tif", _10MB, b"MM\x00\x2A", None,
                        "Image", "TIFF Image (BE)"),

    # ── Audio / Video ──
    SignatureDescriptor("avi", _10MB, b"RIFF\x00\x00\x00AVI ", None,
                        "Audio/Video", "AVI Video"),
    SignatureDescriptor("mov", _10MB, b"\x00\x00\x00\x20ftyp", None,
                        "Audio/Video", "MOV Video (QuickTime)"),
    SignatureDescriptor("mp3", _10MB, b"ID3", Inclusive(b"\x00\x00\xFF"),
                        "Audio/Video", "MP3 Audio (ID3v2)"),
    SignatureDescriptor("mp3", _10MB, b"\xFF\xFB\xD0", Inclusive(b"\xD1\x35\x51\xCC"),
                        "Audio/Video", "MP3 Audio (frame sync)"),
    SignatureDescriptor("mp3", _10MB, b"LAME", None,
                        "Audio/Video", "MP3 Audio (LAME tag)"),
    # Same header as mov: both are reported, nothing is suppressed
    SignatureDescriptor("mp4", _10MB, b"\x00\x00\x00\x20ftyp", None,
                        "Audio/Video", "MP4 Video"),
    SignatureDescriptor("wav", _10MB, b"RIFF\x00\x00\x00WAVE", None,
                        "Audio/Video", "WAV Audio"),
)


# ═════════════════════════════════════════════════════════════
#  Convenience helpers
# ═════════════════════════════════════════════════════════════

def get_all_categories(catalog=FILE_SIGNATURES) -> list[str]:
    """Return sorted unique categories."""
    return sorted(set(s.category for s in catalog))


def get_extensions(catalog=FILE_SIGNATURES) -> list[str]:
    return sorted(set(s.extension for s in catalog))


def select_signatures(
    catalog=FILE_SIGNATURES,
    extensions: Optional[set[str]] = None,
    categories: Optional[set[str]] = None,
) -> tuple[SignatureDescriptor, ...]:
    """Sub-catalog filtered by extension and/or category, order preserved."""
    selected = []
    for sig in catalog:
        if extensions and sig.extension not in extensions:
            continue
        if categories and sig.category not in categories:
            continue
        selected.append(sig)
    return tuple(selected)
