"""
Output Writer — persist candidate byte ranges as individual files.

Names are recovered_<offset>_<catalog index>.<extension>. The
(offset, catalog index) pair is unique within one scan, so two
candidates never share a file, and re-running a scan rewrites the same
names instead of piling up copies.
"""

import os
import hashlib
import logging

from .scanner import CandidateRecord

logger = logging.getLogger(__name__)


def output_name(record: CandidateRecord) -> str:
    return f"recovered_{record.offset}_{record.descriptor_index}.{record.extension}"


def write_candidate(data, record: CandidateRecord, output_dir: str) -> str:
    """Write the candidate's bytes under output_dir. Returns the path written."""
    path = os.path.join(output_dir, output_name(record))
    with open(path, "wb") as f:
        f.write(data[record.offset:record.offset + record.length])
    logger.debug("Saved %s (%d bytes)", path, record.length)
    return path


def compute_md5(data: bytes) -> str:
    return hashlib.md5(data).hexdigest()
