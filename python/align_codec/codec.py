"""High-level conversions between alignment strings and aligned blocks.

These are the entry points feature-loading code calls:

* :func:`string_to_blocks` turns an alignment string for a feature into its
  gapped block array (or ``None`` for an ungapped alignment);
* :func:`blocks_to_string` writes a block array back out in any format.

Failures are logged as warnings naming the offending string and then
re-raised, so callers can decide whether to drop the feature or give up on
the whole load.

Examples
--------
>>> from align_codec.codec import blocks_to_string, string_to_blocks
>>> blocks = string_to_blocks('cigar_bam', '50M10N50M', '+', 100, 209, '+', 1, 100)
>>> blocks_to_string('Gap', blocks)
'M50 D10 M50'
>>> blocks_to_string('cigar_bam', blocks)
'50M10N50M'
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Union

from align_codec.blocks import blocks_to_canonical, canonical_to_blocks
from align_codec.errors import AlignmentError
from align_codec.model import AlignedBlock, AlignFormat, CanonicalAlignment, Strand
from align_codec.parsers import parse
from align_codec.serializers import serialize

_log = logging.getLogger(__name__)

FormatLike = Union[AlignFormat, str]


def string_to_canonical(fmt: FormatLike, text: str) -> CanonicalAlignment:
    """Parse *text* in format *fmt* into a new canonical alignment.

    Raises
    ------
    AlignmentError
        Any grammar, operator or format error from the parser.
    ValueError
        If *fmt* is not a known format name.
    """
    canonical = CanonicalAlignment(AlignFormat.from_name(fmt))
    try:
        return parse(text, canonical)
    except AlignmentError as exc:
        _log.warning(
            'Cannot convert alignment string to canonical format: %r (%s)', text, exc
        )
        raise


def canonical_to_string(
    canonical: CanonicalAlignment,
    fmt: Optional[FormatLike] = None,
) -> str:
    """Serialise *canonical* in *fmt* (default: the canonical's own format)."""
    return serialize(canonical, fmt)


def string_to_blocks(
    fmt: FormatLike,
    text: str,
    ref_strand: Union[Strand, str],
    ref_start: int,
    ref_end: int,
    query_strand: Union[Strand, str],
    query_start: int,
    query_end: int,
) -> Optional[list[AlignedBlock]]:
    """Convert an alignment string into an aligned-block array.

    Parameters
    ----------
    fmt : AlignFormat or str
        Format of *text*, e.g. ``'cigar_bam'`` or ``AlignFormat.GAP_GFF3``.
    text : str
        The alignment string.
    ref_strand : Strand or str
        Reference strand.
    ref_start, ref_end : int
        Reference range covered by the alignment, 1-based inclusive.
    query_strand : Strand or str
        Query strand.
    query_start, query_end : int
        Query range covered by the alignment, 1-based inclusive.

    Returns
    -------
    list[AlignedBlock] or None
        Blocks in walk order, or ``None`` for an ungapped alignment.

    Raises
    ------
    AlignmentError
        If the string cannot be parsed or mapped.
    """
    canonical = string_to_canonical(fmt, text)
    try:
        return canonical_to_blocks(
            canonical,
            ref_strand,
            query_strand,
            ref_start,
            ref_end,
            query_start,
            query_end,
        )
    except AlignmentError as exc:
        _log.warning('Cannot convert alignment string to align array: %r (%s)', text, exc)
        raise


def blocks_to_string(
    fmt: FormatLike,
    blocks: Optional[Sequence[AlignedBlock]],
) -> str:
    """Write an aligned-block array out as an alignment string.

    Parameters
    ----------
    fmt : AlignFormat or str
        Output format.
    blocks : sequence of AlignedBlock
        Blocks in walk order or sorted by target.  Pass a one-element list
        for an ungapped alignment.

    Returns
    -------
    str

    Raises
    ------
    AlignmentError
        If the blocks are inconsistent (or ``None``) or *fmt* has no
        serializer.
    """
    fmt = AlignFormat.from_name(fmt)
    try:
        canonical = blocks_to_canonical(blocks, fmt)
        return serialize(canonical, fmt)
    except AlignmentError as exc:
        _log.warning('Cannot convert align array to %s string (%s)', fmt.value, exc)
        raise
