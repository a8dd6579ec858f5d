"""Alignment-string serializers: canonical operations to external text.

Lengths are always written out in full, even where a format would allow a
length of 1 to be omitted.  Formats without an intron letter write introns
as deletions.

================  =====================  =====  =====  ======  ======
Format            Example                Match  Ins    Del     Intron
================  =====================  =====  =====  ======  ======
exonerate CIGAR   ``M 8 D 3 M 22``       M      I      D       D
GFF3 Gap          ``M8 D3 M22``          M      I      D       D
Ensembl CIGAR     ``8M3I22M``            M      D      I       I
BAM CIGAR         ``8M3D22M``            M      I      D       N
VULGAR            ``M 8 8 G 0 3``        M n n  G n 0  G 0 n   I 0 n
================  =====================  =====  =====  ======  ======
"""

from __future__ import annotations

import logging
from types import MappingProxyType

from align_codec.errors import FormatMismatchError, UnimplementedFormatError
from align_codec.model import AlignFormat, AlignOp, AlignOperator, CanonicalAlignment

_log = logging.getLogger(__name__)

_EXONERATE_LETTERS = {
    AlignOperator.MATCH: 'M',
    AlignOperator.INSERTION: 'I',
    AlignOperator.DELETION: 'D',
    AlignOperator.GAP: 'D',
    AlignOperator.INTRON: 'D',
}

_ENSEMBL_LETTERS = {
    AlignOperator.MATCH: 'M',
    AlignOperator.INSERTION: 'D',
    AlignOperator.DELETION: 'I',
    AlignOperator.GAP: 'I',
    AlignOperator.INTRON: 'I',
}

_BAM_LETTERS = {
    AlignOperator.MATCH: 'M',
    AlignOperator.INSERTION: 'I',
    AlignOperator.DELETION: 'D',
    AlignOperator.GAP: 'D',
    AlignOperator.INTRON: 'N',
}


def _vulgar_triplet(op: AlignOp) -> str:
    n = op.length
    if op.operator is AlignOperator.MATCH:
        return f'M {n} {n}'
    if op.operator is AlignOperator.INSERTION:
        return f'G {n} 0'
    if op.operator is AlignOperator.INTRON:
        return f'I 0 {n}'
    return f'G 0 {n}'


def canonical_to_exonerate_cigar(canonical: CanonicalAlignment) -> str:
    """Return *canonical* as an exonerate CIGAR string, e.g. ``'M 8 D 3 M 22'``."""
    return ' '.join(
        f'{_EXONERATE_LETTERS[op.operator]} {op.length}' for op in canonical
    )


def canonical_to_gff3_gap(canonical: CanonicalAlignment) -> str:
    """Return *canonical* as a GFF3 ``Gap`` attribute value, e.g. ``'M8 D3 M22'``."""
    return ' '.join(f'{_EXONERATE_LETTERS[op.operator]}{op.length}' for op in canonical)


def canonical_to_ensembl_cigar(canonical: CanonicalAlignment) -> str:
    """Return *canonical* as an Ensembl CIGAR string with ``D``/``I`` exchanged."""
    return ''.join(f'{op.length}{_ENSEMBL_LETTERS[op.operator]}' for op in canonical)


def canonical_to_bam_cigar(canonical: CanonicalAlignment) -> str:
    """Return *canonical* as a BAM CIGAR string, e.g. ``'8M3D22M'``."""
    return ''.join(f'{op.length}{_BAM_LETTERS[op.operator]}' for op in canonical)


def canonical_to_vulgar(canonical: CanonicalAlignment) -> str:
    """Return *canonical* as the operation part of an exonerate VULGAR string."""
    return ' '.join(_vulgar_triplet(op) for op in canonical)


SERIALIZERS: MappingProxyType = MappingProxyType(
    {
        AlignFormat.CIGAR_EXONERATE: canonical_to_exonerate_cigar,
        AlignFormat.GAP_GFF3: canonical_to_gff3_gap,
        AlignFormat.CIGAR_ENSEMBL: canonical_to_ensembl_cigar,
        AlignFormat.CIGAR_BAM: canonical_to_bam_cigar,
        AlignFormat.VULGAR_EXONERATE: canonical_to_vulgar,
    }
)


def serialize(
    canonical: CanonicalAlignment,
    fmt: AlignFormat | str | None = None,
) -> str:
    """Write *canonical* out as an alignment string.

    Parameters
    ----------
    canonical : CanonicalAlignment
        Populated canonical alignment.
    fmt : AlignFormat or str, optional
        Output format.  Defaults to ``canonical.format``.

    Returns
    -------
    str
        The alignment string.

    Raises
    ------
    FormatMismatchError
        If *canonical* holds no operations.
    UnimplementedFormatError
        If no serializer exists for *fmt*.
    """
    fmt = canonical.format if fmt is None else AlignFormat.from_name(fmt)
    writer = SERIALIZERS.get(fmt)
    if writer is None:
        raise UnimplementedFormatError(fmt, 'serialization')
    if canonical.is_empty():
        raise FormatMismatchError('cannot serialize an empty canonical alignment')
    text = writer(canonical)
    _log.debug('serialized %d operation(s) as %s: %r', len(canonical), fmt.value, text)
    return text


def normalize(text: str) -> str:
    """Collapse runs of spaces in *text* and strip its ends.

    Exonerate CIGAR allows one or more spaces between fields; this gives
    the single-space spelling that :func:`serialize` produces.
    """
    return ' '.join(part for part in text.split(' ') if part)
