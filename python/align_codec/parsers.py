"""Alignment-string parsers: external text to canonical operations.

Each parser fills an empty :class:`~align_codec.model.CanonicalAlignment`
created for its format.  The string is validated first (see
:mod:`align_codec.grammar`), so a failed parse never leaves partial
operations behind.

Letter mappings
---------------
Exonerate CIGAR / GFF3 ``Gap``
    ``M``, ``I``, ``D`` map straight across.  Frameshifts (``F``, ``R``)
    have no canonical form.
Ensembl CIGAR
    ``D`` and ``I`` are exchanged: Ensembl ``D`` is a canonical insertion
    and Ensembl ``I`` a canonical deletion.
BAM CIGAR
    ``X`` is a match, ``N`` an intron, ``S`` and ``P`` are consumed without
    producing an operation, and ``H`` (hard clipping) is rejected.
Exonerate VULGAR
    Nucleotide triplets only: ``M``/``C``/``S`` are matches, ``G`` gaps,
    and ``5``/``I``/``3`` together form one intron.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Callable, Iterable

from align_codec.errors import (
    FormatMismatchError,
    GrammarError,
    UnimplementedFormatError,
    UnsupportedOperatorError,
)
from align_codec.grammar import cigar_tokens, vulgar_tokens
from align_codec.model import AlignFormat, AlignOp, AlignOperator, CanonicalAlignment

_log = logging.getLogger(__name__)

_EXONERATE_OPS = {
    'M': AlignOperator.MATCH,
    'I': AlignOperator.INSERTION,
    'D': AlignOperator.DELETION,
}

_ENSEMBL_OPS = {
    'M': AlignOperator.MATCH,
    'D': AlignOperator.INSERTION,
    'I': AlignOperator.DELETION,
}

_BAM_OPS = {
    'M': AlignOperator.MATCH,
    'X': AlignOperator.MATCH,
    'I': AlignOperator.INSERTION,
    'D': AlignOperator.DELETION,
    'N': AlignOperator.INTRON,
}
_BAM_IGNORED = frozenset('SP')


def _check_target(
    canonical: CanonicalAlignment,
    accepted: Iterable[AlignFormat],
    parser_name: str,
) -> None:
    if canonical.format not in accepted:
        raise FormatMismatchError(
            f'{parser_name} cannot fill a canonical alignment for format '
            f'{canonical.format.value!r}'
        )
    if not canonical.is_empty():
        raise FormatMismatchError(
            f'canonical alignment already holds {len(canonical)} operation(s); '
            f'{parser_name} only fills an empty one'
        )


def _commit(canonical: CanonicalAlignment, ops: list[AlignOp], text: str) -> None:
    for op in ops:
        canonical.append(op)
    _log.debug(
        'parsed %s string %r into %d operation(s)',
        canonical.format.value,
        text,
        len(ops),
    )


def exonerate_cigar_to_canonical(text: str, canonical: CanonicalAlignment) -> None:
    """Parse an exonerate CIGAR (or GFF3 ``Gap``) string into *canonical*.

    Parameters
    ----------
    text : str
        e.g. ``'M 8 D 3 M 22'`` or, for ``Gap``, ``'M8 D3 M22'``.
    canonical : CanonicalAlignment
        Empty canonical alignment for ``CIGAR_EXONERATE`` or ``GAP_GFF3``.

    Raises
    ------
    FormatMismatchError
        If *canonical* has the wrong format or is not empty.
    GrammarError
        If *text* is malformed.
    UnsupportedOperatorError
        For frameshift operators (``F``, ``R``) or letters outside ``MIDFR``.
    """
    _check_target(
        canonical,
        (AlignFormat.CIGAR_EXONERATE, AlignFormat.GAP_GFF3),
        'exonerate CIGAR parser',
    )
    ops: list[AlignOp] = []
    for i, (letter, length) in enumerate(cigar_tokens(canonical.format, text)):
        if letter not in _EXONERATE_OPS:
            raise UnsupportedOperatorError(text, letter, op_index=i)
        ops.append(AlignOp(_EXONERATE_OPS[letter], length))
    _commit(canonical, ops, text)


def ensembl_cigar_to_canonical(text: str, canonical: CanonicalAlignment) -> None:
    """Parse an Ensembl CIGAR string into *canonical*, swapping ``D`` and ``I``.

    Both ``8M3D22M`` and operator-first ``M8D3M22`` spellings are read; an
    omitted length means 1.

    Raises
    ------
    FormatMismatchError
        If *canonical* has the wrong format or is not empty.
    GrammarError
        If *text* is malformed.
    UnsupportedOperatorError
        For letters outside ``MID``.
    """
    _check_target(canonical, (AlignFormat.CIGAR_ENSEMBL,), 'Ensembl CIGAR parser')
    ops = [
        AlignOp(_ENSEMBL_OPS[letter], length)
        for letter, length in cigar_tokens(canonical.format, text)
    ]
    _commit(canonical, ops, text)


def bam_cigar_to_canonical(text: str, canonical: CanonicalAlignment) -> None:
    """Parse a BAM CIGAR string into *canonical*.

    Raises
    ------
    FormatMismatchError
        If *canonical* has the wrong format or is not empty.
    GrammarError
        If *text* is malformed.  An omitted length means 1.
    UnsupportedOperatorError
        For ``H`` (hard clipping is not handled) or unknown letters.
    """
    _check_target(canonical, (AlignFormat.CIGAR_BAM,), 'BAM CIGAR parser')
    ops: list[AlignOp] = []
    for i, (letter, length) in enumerate(cigar_tokens(canonical.format, text)):
        if letter in _BAM_IGNORED:
            continue
        if letter not in _BAM_OPS:
            raise UnsupportedOperatorError(text, letter, op_index=i)
        ops.append(AlignOp(_BAM_OPS[letter], length))
    if not ops:
        raise GrammarError(text, 'contains only clipping or padding operators')
    _commit(canonical, ops, text)


def vulgar_to_canonical(text: str, canonical: CanonicalAlignment) -> None:
    """Parse the operation part of an exonerate VULGAR string into *canonical*.

    Parameters
    ----------
    text : str
        ``op query_len target_len`` triplets, e.g.
        ``'M 10 10 5 0 2 I 0 96 3 0 2 M 20 20'``.
    canonical : CanonicalAlignment
        Empty canonical alignment for ``VULGAR_EXONERATE``.

    Raises
    ------
    FormatMismatchError
        If *canonical* has the wrong format or is not empty.
    GrammarError
        If *text* is malformed, a ``G`` triplet has two non-zero lengths,
        or a splice/intron triplet consumes query bases.
    UnsupportedOperatorError
        For protein-scaled match triplets (query and target lengths
        differ) and for ``N`` and ``F``.
    """
    _check_target(canonical, (AlignFormat.VULGAR_EXONERATE,), 'VULGAR parser')
    ops: list[AlignOp] = []
    for i, (letter, q_len, t_len) in enumerate(vulgar_tokens(text)):
        if q_len == 0 and t_len == 0:
            continue
        if letter in 'MCS':
            if q_len != t_len:
                raise UnsupportedOperatorError(text, letter, op_index=i)
            ops.append(AlignOp(AlignOperator.MATCH, t_len))
        elif letter == 'G':
            if t_len == 0:
                ops.append(AlignOp(AlignOperator.INSERTION, q_len))
            elif q_len == 0:
                ops.append(AlignOp(AlignOperator.DELETION, t_len))
            else:
                raise GrammarError(text, 'gap triplet has two non-zero lengths', op_index=i)
        elif letter in '5I3':
            if q_len != 0:
                raise GrammarError(
                    text,
                    f'{letter!r} triplet consumes query sequence',
                    op_index=i,
                )
            if ops and ops[-1].operator is AlignOperator.INTRON:
                ops[-1] = AlignOp(AlignOperator.INTRON, ops[-1].length + t_len)
            else:
                ops.append(AlignOp(AlignOperator.INTRON, t_len))
        else:
            raise UnsupportedOperatorError(text, letter, op_index=i)
    if not ops:
        raise GrammarError(text, 'contains only zero-length triplets')
    _commit(canonical, ops, text)


PARSERS: MappingProxyType = MappingProxyType(
    {
        AlignFormat.CIGAR_EXONERATE: exonerate_cigar_to_canonical,
        AlignFormat.GAP_GFF3: exonerate_cigar_to_canonical,
        AlignFormat.CIGAR_ENSEMBL: ensembl_cigar_to_canonical,
        AlignFormat.CIGAR_BAM: bam_cigar_to_canonical,
        AlignFormat.VULGAR_EXONERATE: vulgar_to_canonical,
    }
)


def parse(text: str, canonical: CanonicalAlignment) -> CanonicalAlignment:
    """Fill *canonical* from *text* using the parser for its format.

    Returns
    -------
    CanonicalAlignment
        *canonical*, now populated.

    Raises
    ------
    UnimplementedFormatError
        If no parser exists for the canonical's format.
    """
    parser: Callable[[str, CanonicalAlignment], None] | None = PARSERS.get(canonical.format)
    if parser is None:
        raise UnimplementedFormatError(canonical.format, 'parsing')
    parser(text, canonical)
    return canonical
