"""Core value types shared by every part of the codec.

The canonical representation of an alignment is an ordered list of
:class:`AlignOp` values held by a :class:`CanonicalAlignment`.  Parsers fill
one in from text, serializers write one back out, and the block mappers in
:mod:`align_codec.blocks` translate between it and :class:`AlignedBlock`
coordinate arrays.

Coordinates throughout are 1-based and inclusive, as in GFF.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import enum
from typing import Iterator, Union

from align_codec.errors import InvalidOperationError


class Strand(enum.Enum):
    """Strand of a sequence, with the direction a walk along it takes."""

    FORWARD = '+'
    REVERSE = '-'

    @property
    def direction(self) -> int:
        """``+1`` for the forward strand, ``-1`` for the reverse strand."""
        return 1 if self is Strand.FORWARD else -1

    @classmethod
    def coerce(cls, value: Union['Strand', str]) -> 'Strand':
        """Return *value* as a :class:`Strand`.

        Parameters
        ----------
        value : Strand or str
            A ``Strand`` or one of ``'+'`` / ``'-'``.

        Returns
        -------
        Strand

        Raises
        ------
        ValueError
            If *value* is not a recognised strand.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unknown strand {value!r}; expected '+' or '-'") from None


class AlignOperator(enum.Enum):
    """Canonical alignment operators.

    ``DELETION`` and ``GAP`` are two spellings of the same operation: bases
    present in the reference but absent from the query.
    """

    MATCH = 'M'
    INSERTION = 'I'
    DELETION = 'D'
    INTRON = 'N'
    GAP = 'G'

    @property
    def consumes_reference(self) -> bool:
        return self is not AlignOperator.INSERTION

    @property
    def consumes_query(self) -> bool:
        return self in (AlignOperator.MATCH, AlignOperator.INSERTION)


class BoundaryType(enum.Enum):
    """What lies at the start or end of an aligned block."""

    EDGE = 'edge'
    INTRON = 'intron'
    DELETION = 'deletion'
    MATCH = 'match'


class HomolType(enum.Enum):
    """Kind of sequence aligned against the reference."""

    DNA = 'dna'
    PROTEIN = 'protein'


class AlignFormat(enum.Enum):
    """External alignment-string formats.

    The value of each member is its short-text name, as used for GFF
    attribute names and on the command line.
    """

    CIGAR_EXONERATE = 'cigar_exonerate'
    CIGAR_ENSEMBL = 'cigar_ensembl'
    CIGAR_BAM = 'cigar_bam'
    GAP_GFF3 = 'Gap'
    VULGAR_EXONERATE = 'vulgar_exonerate'
    GAPS_ACEDB = 'gaps'

    @property
    def short_name(self) -> str:
        return self.value

    @classmethod
    def from_name(cls, name: Union['AlignFormat', str]) -> 'AlignFormat':
        """Look up a format by short name, case-insensitively.

        Parameters
        ----------
        name : AlignFormat or str
            A format or its short name, e.g. ``'cigar_bam'`` or ``'gap'``.

        Returns
        -------
        AlignFormat

        Raises
        ------
        ValueError
            If no format has that name.
        """
        if isinstance(name, cls):
            return name
        wanted = str(name).lower()
        for fmt in cls:
            if fmt.value.lower() == wanted:
                return fmt
        raise ValueError(
            f'Unknown alignment format {name!r}. '
            f'Choose from: {[f.value for f in cls]}'
        )

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class AlignOp:
    """One alignment step: an operator applied over ``length`` positions.

    Parameters
    ----------
    operator : AlignOperator or str
        Canonical operator, or its single-letter code.
    length : int
        Number of positions covered; must be at least 1.

    Raises
    ------
    InvalidOperationError
        If the operator is not canonical or the length is not positive.
    """

    operator: AlignOperator
    length: int

    def __post_init__(self) -> None:
        if not isinstance(self.operator, AlignOperator):
            try:
                op = AlignOperator(self.operator)
            except ValueError:
                raise InvalidOperationError(
                    f'{self.operator!r} is not a canonical alignment operator'
                ) from None
            object.__setattr__(self, 'operator', op)
        if isinstance(self.length, bool) or not isinstance(self.length, int):
            raise InvalidOperationError(
                f'operation length must be an int, got {self.length!r}'
            )
        if self.length < 1:
            raise InvalidOperationError(
                f'operation length must be >= 1, got {self.length}'
            )

    def __str__(self) -> str:
        return f'{self.operator.value}{self.length}'


@dataclass
class CanonicalAlignment:
    """Format-neutral, ordered list of alignment operations.

    A canonical alignment is created empty for a particular format, filled
    by a single parser call, and then consumed by a mapper or serializer.

    Parameters
    ----------
    format : AlignFormat
        The external format this alignment was (or will be) read from.
    operations : list[AlignOp], optional
        Initial operations.  The list is copied.

    Examples
    --------
    >>> canon = CanonicalAlignment(AlignFormat.CIGAR_BAM)
    >>> canon.append(AlignOp('M', 8))
    >>> len(canon)
    1
    """

    format: AlignFormat
    operations: list[AlignOp] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.format = AlignFormat.from_name(self.format)
        self.operations = [
            op if isinstance(op, AlignOp) else AlignOp(*op) for op in self.operations
        ]

    def append(self, op: AlignOp) -> None:
        """Add *op* to the end of the operation list."""
        if not isinstance(op, AlignOp):
            raise InvalidOperationError(f'expected an AlignOp, got {op!r}')
        self.operations.append(op)

    def is_empty(self) -> bool:
        return not self.operations

    def __len__(self) -> int:
        return len(self.operations)

    def __iter__(self) -> Iterator[AlignOp]:
        return iter(self.operations)

    def __getitem__(self, i: int) -> AlignOp:
        return self.operations[i]

    def __repr__(self) -> str:
        ops = ' '.join(str(op) for op in self.operations)
        return f'CanonicalAlignment(format={self.format.value!r}, ops=[{ops}])'


@dataclass(frozen=True)
class AlignedBlock:
    """One contiguous, ungapped run of an alignment.

    ``target_start <= target_end`` always holds.  The query coordinates are
    kept in walk order, so on the reverse query strand ``query_start`` is
    the *higher* coordinate.

    Parameters
    ----------
    target_start, target_end : int
        Reference span, 1-based inclusive.
    query_start, query_end : int
        Query span in the order the query strand is walked.
    target_strand, query_strand : Strand
        Strand of the reference and of the query.
    start_boundary, end_boundary : BoundaryType
        What precedes and follows this block.
    """

    target_start: int
    target_end: int
    query_start: int
    query_end: int
    target_strand: Strand = Strand.FORWARD
    query_strand: Strand = Strand.FORWARD
    start_boundary: BoundaryType = BoundaryType.EDGE
    end_boundary: BoundaryType = BoundaryType.EDGE

    def __post_init__(self) -> None:
        object.__setattr__(self, 'target_strand', Strand.coerce(self.target_strand))
        object.__setattr__(self, 'query_strand', Strand.coerce(self.query_strand))

    @property
    def length(self) -> int:
        """Number of reference bases covered."""
        return self.target_end - self.target_start + 1

    @property
    def query_length(self) -> int:
        return abs(self.query_end - self.query_start) + 1

    @property
    def query_low(self) -> int:
        return min(self.query_start, self.query_end)

    @property
    def query_high(self) -> int:
        return max(self.query_start, self.query_end)

    @property
    def target_walk_start(self) -> int:
        """First reference coordinate visited when walking the target strand."""
        if self.target_strand is Strand.FORWARD:
            return self.target_start
        return self.target_end

    @property
    def target_walk_end(self) -> int:
        if self.target_strand is Strand.FORWARD:
            return self.target_end
        return self.target_start
