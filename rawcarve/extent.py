"""
Extent Resolver — turn a header hit into the byte range of a candidate file.

    footer None       → min(size_bound, bytes left)
    Inclusive(F) hit  → header + gap + len(F)
    Exclusive(F) hit  → header + gap
    footer not found  → min(size_bound, bytes left)

The footer search starts right after the header and runs to the end of
the buffer. The result never reaches past the end of the buffer.
"""

import logging

from .matcher import find_first
from .signatures import SignatureDescriptor

logger = logging.getLogger(__name__)


def resolve_extent(data, offset: int, sig: SignatureDescriptor) -> int:
    """Length of the candidate starting at `offset` (header position)."""
    remaining = len(data) - offset
    if remaining <= 0:
        return 0

    fallback = min(sig.size_bound, remaining)
    if sig.footer is None:
        return fallback

    header_len = len(sig.header)
    footer_pos = find_first(data, sig.footer.pattern, offset + header_len)
    if footer_pos is None:
        logger.debug(
            "%s at %d: footer not found, using size bound", sig.extension, offset,
        )
        return fallback

    # footer_pos - offset == header_len + relative footer offset
    return min(footer_pos - offset + sig.footer.size_after_match, remaining)
