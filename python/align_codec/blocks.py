"""Conversion between canonical operations and aligned-block arrays.

A walk along the canonical operations keeps one cursor on the reference
and one on the query.  Each cursor starts at the end of its range that the
strand is read from (the start on ``+``, the end on ``-``) and moves by
``strand.direction * length``:

* ``MATCH`` emits a block and advances both cursors;
* ``INSERTION`` advances the query cursor only;
* ``DELETION`` / ``GAP`` / ``INTRON`` advance the reference cursor only.

A walk that produces a single block describes an ungapped alignment and is
returned as ``None``; callers rely on that to tell gapped from ungapped
features.

Examples
--------
>>> canon = CanonicalAlignment(AlignFormat.CIGAR_BAM, [AlignOp('M', 50),
...     AlignOp('D', 10), AlignOp('M', 50)])
>>> blocks = canonical_to_blocks(canon, '+', '+', 100, 199, 1, 100)
>>> [(b.target_start, b.target_end) for b in blocks]
[(100, 149), (160, 209)]
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Iterable, Optional, Sequence, Union

from align_codec.errors import BlockError, UnsupportedOperatorError
from align_codec.model import (
    AlignedBlock,
    AlignFormat,
    AlignOp,
    AlignOperator,
    BoundaryType,
    CanonicalAlignment,
    HomolType,
    Strand,
)

_log = logging.getLogger(__name__)

StrandLike = Union[Strand, str]


def _ordered(a: int, b: int) -> tuple[int, int]:
    return (a, b) if a <= b else (b, a)


def canonical_to_blocks(
    canonical: CanonicalAlignment,
    ref_strand: StrandLike,
    query_strand: StrandLike,
    ref_start: int,
    ref_end: int,
    query_start: int,
    query_end: int,
) -> Optional[list[AlignedBlock]]:
    """Walk *canonical* over the given ranges and return its aligned blocks.

    Parameters
    ----------
    canonical : CanonicalAlignment
        Populated canonical alignment.
    ref_strand, query_strand : Strand or str
        Strands of the reference and query (``'+'`` or ``'-'``).
    ref_start, ref_end : int
        Reference range, 1-based inclusive.
    query_start, query_end : int
        Query range, 1-based inclusive.

    Returns
    -------
    list[AlignedBlock] or None
        Blocks in walk order, or ``None`` when the walk yields exactly one
        block (an ungapped alignment).

    Raises
    ------
    BlockError
        If the alignment contains no match operations.
    UnsupportedOperatorError
        If an operation is not one of the canonical operators.
    """
    ref_strand = Strand.coerce(ref_strand)
    query_strand = Strand.coerce(query_strand)
    ref_start, ref_end = _ordered(ref_start, ref_end)
    query_start, query_end = _ordered(query_start, query_end)
    ref_dir = ref_strand.direction
    query_dir = query_strand.direction

    curr_ref = ref_start if ref_strand is Strand.FORWARD else ref_end
    curr_query = query_start if query_strand is Strand.FORWARD else query_end

    blocks: list[AlignedBlock] = []
    boundary = BoundaryType.EDGE
    prev_match: Optional[int] = None

    for i, op in enumerate(canonical):
        n = op.length
        if op.operator is AlignOperator.INTRON:
            curr_ref += ref_dir * n
            boundary = BoundaryType.INTRON
        elif op.operator in (AlignOperator.DELETION, AlignOperator.GAP):
            curr_ref += ref_dir * n
            boundary = BoundaryType.DELETION
        elif op.operator is AlignOperator.INSERTION:
            curr_query += query_dir * n
            # Drawn butted up against the previous block.
            boundary = BoundaryType.MATCH
        elif op.operator is AlignOperator.MATCH:
            t_first, t_last = curr_ref, curr_ref + ref_dir * (n - 1)
            q_first, q_last = curr_query, curr_query + query_dir * (n - 1)
            curr_ref += ref_dir * n
            curr_query += query_dir * n
            t1, t2 = _ordered(t_first, t_last)
            blocks.append(
                AlignedBlock(
                    target_start=t1,
                    target_end=t2,
                    query_start=q_first,
                    query_end=q_last,
                    target_strand=ref_strand,
                    query_strand=query_strand,
                    start_boundary=boundary,
                    end_boundary=BoundaryType.EDGE,
                )
            )
            boundary = BoundaryType.MATCH
        else:
            raise UnsupportedOperatorError(repr(canonical), str(op.operator), op_index=i)

        if prev_match is not None:
            blocks[prev_match] = dataclasses.replace(
                blocks[prev_match], end_boundary=boundary
            )
        prev_match = len(blocks) - 1 if op.operator is AlignOperator.MATCH else None

    if not blocks:
        raise BlockError(f'{canonical!r} contains no match operations')

    _log.debug(
        'mapped %d operation(s) to %d block(s) (ref %s, query %s)',
        len(canonical),
        len(blocks),
        ref_strand.value,
        query_strand.value,
    )
    if len(blocks) == 1:
        return None
    return blocks


def _check_block(i: int, block: AlignedBlock) -> None:
    if block.target_start > block.target_end:
        raise BlockError(f'block {i} has target_start > target_end')
    if block.length != block.query_length:
        raise BlockError(
            f'block {i} spans {block.length} target but '
            f'{block.query_length} query positions'
        )
    if (block.query_end - block.query_start) * block.query_strand.direction < 0:
        raise BlockError(
            f'block {i} query coordinates run against the '
            f'{block.query_strand.value} strand'
        )


def blocks_to_canonical(
    blocks: Optional[Sequence[AlignedBlock]],
    fmt: Union[AlignFormat, str] = AlignFormat.CIGAR_EXONERATE,
) -> CanonicalAlignment:
    """Regenerate the canonical operations that produced *blocks*.

    This is the inverse of :func:`canonical_to_blocks`: reference gaps
    become ``INTRON`` when the following block starts at an intron and
    ``DELETION`` otherwise, query gaps become ``INSERTION``, and the order
    of the two follows the following block's start boundary.

    Parameters
    ----------
    blocks : sequence of AlignedBlock
        Blocks in walk order, as returned by :func:`canonical_to_blocks`,
        or sorted by target with :func:`sort_blocks`.  A single block
        describes an ungapped alignment.
    fmt : AlignFormat or str, optional
        Format label for the returned canonical alignment.

    Returns
    -------
    CanonicalAlignment

    Raises
    ------
    BlockError
        If *blocks* is ``None`` or empty, mixes strands, contains a block
        whose target and query spans differ, or has overlapping blocks.
    """
    if blocks is None:
        raise BlockError(
            'ungapped alignment has no block array; pass the single block instead'
        )
    blocks = list(blocks)
    if not blocks:
        raise BlockError('cannot build an alignment from an empty block array')

    t_strand = blocks[0].target_strand
    q_strand = blocks[0].query_strand
    for i, block in enumerate(blocks):
        if block.target_strand is not t_strand or block.query_strand is not q_strand:
            raise BlockError(f'block {i} is on a different strand from block 0')
        _check_block(i, block)

    # Target-sorted arrays run backwards on the reverse strand.
    blocks.sort(key=lambda b: b.target_walk_start * t_strand.direction)

    ops: list[AlignOp] = []
    for i, block in enumerate(blocks):
        ops.append(AlignOp(AlignOperator.MATCH, block.length))
        if i == len(blocks) - 1:
            break
        nxt = blocks[i + 1]
        ref_gap = (nxt.target_walk_start - block.target_walk_end) * t_strand.direction - 1
        query_gap = (nxt.query_start - block.query_end) * q_strand.direction - 1
        if ref_gap < 0 or query_gap < 0:
            raise BlockError(f'blocks {i} and {i + 1} overlap or are out of walk order')

        ref_op = (
            AlignOperator.INTRON
            if nxt.start_boundary is BoundaryType.INTRON
            else AlignOperator.DELETION
        )
        gap_ops: list[AlignOp] = []
        if query_gap:
            gap_ops.append(AlignOp(AlignOperator.INSERTION, query_gap))
        if ref_gap:
            gap_ops.append(AlignOp(ref_op, ref_gap))
        # The operator walked last decides the next block's start boundary.
        if nxt.start_boundary is BoundaryType.MATCH:
            gap_ops.reverse()
        ops.extend(gap_ops)

    canonical = CanonicalAlignment(AlignFormat.from_name(fmt))
    for op in ops:
        canonical.append(op)
    _log.debug('rebuilt %d operation(s) from %d block(s)', len(ops), len(blocks))
    return canonical


def is_perfect_alignment(
    blocks: Optional[Sequence[AlignedBlock]],
    allowed_gap: int = 0,
) -> bool:
    """Return ``True`` if consecutive blocks abut in query coordinates.

    Blocks are compared in the order given; sort them by target first
    (:func:`sort_blocks`).  Sorting by target can reverse the order of the
    query coordinates when the match is to the reverse strand, so each gap
    is measured between whichever ends are actually adjacent in query space.

    Parameters
    ----------
    blocks : sequence of AlignedBlock or None
        Block array.
    allowed_gap : int, optional
        Number of missing query bases tolerated between blocks.  The
        default of 0 requires blocks to follow on directly.

    Returns
    -------
    bool
        ``False`` when there are fewer than two blocks.

    Raises
    ------
    ValueError
        If *allowed_gap* is negative.
    """
    if allowed_gap < 0:
        raise ValueError(f'allowed_gap must be >= 0, got {allowed_gap}')
    if not blocks or len(blocks) < 2:
        return False

    last = blocks[0]
    for block in blocks[1:]:
        if block.query_high < last.query_low:
            prev_end, curr_start = block.query_high, last.query_low
        else:
            prev_end, curr_start = last.query_high, block.query_low
        # "- 1": zero missing bases when one block follows on from the last.
        if curr_start - prev_end - 1 > allowed_gap:
            return False
        last = block
    return True


def sort_blocks(blocks: Iterable[AlignedBlock]) -> list[AlignedBlock]:
    """Return *blocks* sorted by target coordinate."""
    return sorted(blocks, key=lambda b: (b.target_start, b.target_end))


def is_gapped(
    ref_start: int,
    ref_end: int,
    match_start: int,
    match_end: int,
    homol_type: Union[HomolType, str] = HomolType.DNA,
) -> bool:
    """Return ``True`` if the reference and match spans differ in length.

    Alignment features sometimes arrive without gap data even though they
    must be gapped; comparing the two spans catches that case.  Protein
    match lengths are counted in codons and so are tripled.

    Parameters
    ----------
    ref_start, ref_end : int
        Reference span, 1-based inclusive.
    match_start, match_end : int
        Match (query) span, 1-based inclusive.
    homol_type : HomolType or str, optional
        ``'dna'`` (default) or ``'protein'``.

    Returns
    -------
    bool
    """
    homol_type = HomolType(homol_type)
    ref_length = abs(ref_end - ref_start) + 1
    match_length = abs(match_end - match_start) + 1
    if homol_type is not HomolType.DNA:
        match_length *= 3
    return ref_length != match_length
