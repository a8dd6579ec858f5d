"""GFF3 alignment-record support.

Provides :class:`GffAlignment` for one GFF3 match line carrying a
``Target`` attribute and an alignment string, and :class:`GffAlignmentSet`
for loading and filtering a file of them.

The alignment string is taken from the first of these attributes present
on the line, which also fixes its format:

``Gap``
    GFF3 gap attribute (``M8 D3 M6``).
``cigar_exonerate``
    Exonerate CIGAR (``M 8 D 3 M 6``).
``cigar_ensembl``
    Ensembl CIGAR (``8M3D6M``).
``cigar_bam``
    BAM CIGAR (``8M3D6M``).

Coordinates are kept 1-based inclusive, as written in the file.

Examples
--------
>>> from align_codec.gff_io import GffAlignmentSet
>>> alns = GffAlignmentSet.from_file("est_hits.gff")
>>> alns.feature_types()
['EST_match', 'match_part']
>>> blocks = alns.records[0].blocks()
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from pathlib import Path
from typing import Generator, Iterable, Optional, Union
from urllib.parse import unquote

from align_codec.blocks import is_gapped, is_perfect_alignment, sort_blocks
from align_codec.codec import string_to_blocks
from align_codec.errors import AlignmentError
from align_codec.model import AlignedBlock, AlignFormat, HomolType, Strand

_log = logging.getLogger(__name__)

# Attribute name -> format, in order of preference.
GFF_ALIGN_ATTRIBUTES: tuple[tuple[str, AlignFormat], ...] = (
    ('Gap', AlignFormat.GAP_GFF3),
    ('cigar_exonerate', AlignFormat.CIGAR_EXONERATE),
    ('cigar_ensembl', AlignFormat.CIGAR_ENSEMBL),
    ('cigar_bam', AlignFormat.CIGAR_BAM),
)


def _parse_attributes(attr_str: str) -> dict[str, str]:
    """Split a GFF3 column-9 string into an unescaped ``{key: value}`` dict."""
    attrs: dict[str, str] = {}
    for item in attr_str.strip().split(';'):
        item = item.strip()
        if not item:
            continue
        key, sep, value = item.partition('=')
        if not sep:
            continue
        attrs[unquote(key.strip())] = unquote(value.strip())
    return attrs


def _parse_target(value: str) -> tuple[str, int, int, Strand]:
    """Parse a ``Target`` value: ``id start end [strand]``.

    Raises
    ------
    ValueError
        If the value does not have three or four fields.
    """
    parts = value.split()
    if len(parts) not in (3, 4):
        raise ValueError(f'malformed Target attribute {value!r}')
    target_strand = Strand.coerce(parts[3]) if len(parts) == 4 else Strand.FORWARD
    return parts[0], int(parts[1]), int(parts[2]), target_strand


@dataclass
class GffAlignment:
    """A single alignment record parsed from a GFF3 file.

    Parameters
    ----------
    seqname : str
        Reference sequence name (column 1).
    source : str
        Source field (column 2).
    feature_type : str
        Feature type (column 3), e.g. ``'EST_match'``.
    start : int
        Reference start, 1-based inclusive (column 4).
    end : int
        Reference end, 1-based inclusive (column 5).
    score : float or None
        Score, or ``None`` if the GFF field is ``'.'``.
    strand : str
        ``'+'``, ``'-'``, or ``'.'`` (column 7).
    target_id : str
        Query sequence name from ``Target``.
    target_start : int
        Query start from ``Target``.
    target_end : int
        Query end from ``Target``.
    target_strand : Strand
        Query strand from ``Target`` (forward when omitted).
    align_format : AlignFormat or None
        Format of :attr:`align_string`, or ``None`` when the line has no
        alignment string (an ungapped match).
    align_string : str or None
        The raw alignment string.
    attributes : dict[str, str]
        All column-9 attributes, unescaped.
    """

    seqname: str
    source: str
    feature_type: str
    start: int
    end: int
    score: Optional[float]
    strand: str
    target_id: str
    target_start: int
    target_end: int
    target_strand: Strand = Strand.FORWARD
    align_format: Optional[AlignFormat] = None
    align_string: Optional[str] = None
    attributes: dict[str, str] = field(default_factory=dict)

    @property
    def ref_strand(self) -> Strand:
        """Reference strand; unstranded (``'.'``) lines read as forward."""
        return Strand.REVERSE if self.strand == '-' else Strand.FORWARD

    def blocks(self) -> Optional[list[AlignedBlock]]:
        """Return the aligned blocks for this record.

        Returns
        -------
        list[AlignedBlock] or None
            Blocks in walk order, or ``None`` if the alignment is ungapped
            or the line carries no alignment string.

        Raises
        ------
        AlignmentError
            If the alignment string cannot be converted.
        """
        if self.align_string is None or self.align_format is None:
            return None
        return string_to_blocks(
            self.align_format,
            self.align_string,
            self.ref_strand,
            self.start,
            self.end,
            self.target_strand,
            self.target_start,
            self.target_end,
        )

    def is_gapped(self, homol_type: Union[HomolType, str] = HomolType.DNA) -> bool:
        """Return ``True`` if the reference and target spans differ in length."""
        return is_gapped(
            self.start, self.end, self.target_start, self.target_end, homol_type
        )


def parse_gff_alignments(
    gff_path: Union[str, Path],
) -> Generator[GffAlignment, None, None]:
    """Parse a GFF3 file and yield its alignment records.

    Comment lines, blank lines, lines with fewer than 9 tab-separated fields
    and lines without a ``Target`` attribute are skipped.  Lines whose
    ``Target`` cannot be parsed are skipped with a warning.

    Parameters
    ----------
    gff_path : str or Path
        Path to the GFF3 file.

    Yields
    ------
    GffAlignment
        One record per alignment line.

    Raises
    ------
    FileNotFoundError
        If *gff_path* does not exist.
    """
    with open(gff_path, encoding='utf-8') as fh:
        for line_no, line in enumerate(fh, start=1):
            line = line.rstrip('\n')
            if not line or line.startswith('#'):
                continue
            parts = line.split('\t')
            if len(parts) < 9:
                continue
            attrs = _parse_attributes(parts[8])
            if 'Target' not in attrs:
                continue
            try:
                target_id, t_start, t_end, t_strand = _parse_target(attrs['Target'])
            except ValueError as exc:
                _log.warning('%s:%d: skipping record: %s', gff_path, line_no, exc)
                continue

            align_format: Optional[AlignFormat] = None
            align_string: Optional[str] = None
            for attr_name, fmt in GFF_ALIGN_ATTRIBUTES:
                if attr_name in attrs:
                    align_format, align_string = fmt, attrs[attr_name]
                    break

            score_str = parts[5]
            yield GffAlignment(
                seqname=parts[0],
                source=parts[1],
                feature_type=parts[2],
                start=int(parts[3]),
                end=int(parts[4]),
                score=None if score_str == '.' else float(score_str),
                strand=parts[6],
                target_id=target_id,
                target_start=t_start,
                target_end=t_end,
                target_strand=t_strand,
                align_format=align_format,
                align_string=align_string,
                attributes=attrs,
            )


class GffAlignmentSet:
    """A collection of GFF3 alignment records.

    Parameters
    ----------
    records : list[GffAlignment]
        Pre-parsed alignment records.

    Examples
    --------
    >>> from align_codec.gff_io import GffAlignmentSet
    >>> alns = GffAlignmentSet.from_file("est_hits.gff")
    >>> alns.keep_feature_types(["EST_match"]).sequence_names()
    ['chr1', 'chr2']
    """

    def __init__(self, records: list[GffAlignment]) -> None:
        self._records: list[GffAlignment] = list(records)

    # ------------------------------------------------------------------
    # Class-method constructors
    # ------------------------------------------------------------------

    @classmethod
    def from_file(cls, gff_path: Union[str, Path]) -> 'GffAlignmentSet':
        """Load a GFF3 file and return a :class:`GffAlignmentSet`.

        Parameters
        ----------
        gff_path : str or Path
            Path to the GFF3 file.

        Returns
        -------
        GffAlignmentSet
            Populated collection.
        """
        return cls(list(parse_gff_alignments(gff_path)))

    @classmethod
    def from_records(cls, records: Iterable[GffAlignment]) -> 'GffAlignmentSet':
        """Construct from an iterable of :class:`GffAlignment` objects."""
        return cls(list(records))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def feature_types(self) -> list[str]:
        """Return sorted list of unique feature types.

        Returns
        -------
        list[str]
            Sorted unique feature type names.
        """
        return sorted({r.feature_type for r in self._records})

    def sequence_names(self) -> list[str]:
        """Return sorted list of unique reference sequence names.

        Returns
        -------
        list[str]
            Sorted unique sequence names.
        """
        return sorted({r.seqname for r in self._records})

    def target_ids(self) -> list[str]:
        """Return sorted list of unique query (``Target``) names."""
        return sorted({r.target_id for r in self._records})

    def keep_feature_types(self, feature_types: list[str]) -> 'GffAlignmentSet':
        """Return a new set containing only the specified feature types.

        Parameters
        ----------
        feature_types : list[str]
            Feature type names to retain.

        Returns
        -------
        GffAlignmentSet
            Filtered collection.
        """
        keep = set(feature_types)
        return GffAlignmentSet([r for r in self._records if r.feature_type in keep])

    def filter_by_sequence(self, sequence_names: list[str]) -> 'GffAlignmentSet':
        """Return a new set containing only records on the given sequences.

        Parameters
        ----------
        sequence_names : list[str]
            Reference sequence names to retain.

        Returns
        -------
        GffAlignmentSet
            Filtered collection.
        """
        keep = set(sequence_names)
        return GffAlignmentSet([r for r in self._records if r.seqname in keep])

    def get_alignments_for_sequence(self, seq_name: str) -> list[GffAlignment]:
        """Return all records on reference *seq_name*, in file order."""
        return [r for r in self._records if r.seqname == seq_name]

    def perfect_alignments(self, allowed_gap: int = 0) -> list[GffAlignment]:
        """Return the gapped records whose blocks abut in query space.

        Blocks are sorted by target coordinate before checking.  Records
        whose alignment string cannot be converted are skipped with a
        warning.

        Parameters
        ----------
        allowed_gap : int, optional
            Missing query bases tolerated between blocks.  Default 0.

        Returns
        -------
        list[GffAlignment]
            Records in file order.
        """
        perfect = []
        for rec in self._records:
            try:
                blocks = rec.blocks()
            except AlignmentError as exc:
                _log.warning(
                    'skipping %s alignment on %s:%d-%d: %s',
                    rec.target_id,
                    rec.seqname,
                    rec.start,
                    rec.end,
                    exc,
                )
                continue
            if blocks and is_perfect_alignment(sort_blocks(blocks), allowed_gap):
                perfect.append(rec)
        return perfect

    @property
    def records(self) -> list[GffAlignment]:
        """All records held by this collection.

        Returns
        -------
        list[GffAlignment]
            A copy of the internal record list.
        """
        return list(self._records)

    def __len__(self) -> int:
        """Return the number of records."""
        return len(self._records)

    def __repr__(self) -> str:
        """Return a string representation."""
        return (
            f'GffAlignmentSet('
            f'{len(self._records)} records, '
            f'{len(self.feature_types())} types)'
        )
