"""
align-codec: gapped-alignment string codec for genome annotation features.

This package provides:
- Parsers and serializers for exonerate CIGAR, Ensembl CIGAR, BAM CIGAR,
  GFF3 ``Gap`` and exonerate VULGAR alignment strings
- A format-neutral canonical operation list shared by all formats
- Strand-aware mapping between canonical operations and aligned blocks
- A perfect-alignment check over block arrays
- A GFF3 reader that turns alignment records into blocks

Examples
--------
Basic usage:

>>> from align_codec import string_to_blocks, blocks_to_string
>>> blocks = string_to_blocks("cigar_bam", "50M10D50M", "+", 100, 209, "+", 1, 100)
>>> [(b.target_start, b.target_end) for b in blocks]
[(100, 149), (160, 209)]
>>> blocks_to_string("cigar_exonerate", blocks)
'M 50 D 10 M 50'
"""

from align_codec.blocks import (  # noqa: F401
    blocks_to_canonical,
    canonical_to_blocks,
    is_gapped,
    is_perfect_alignment,
    sort_blocks,
)
from align_codec.codec import (  # noqa: F401
    blocks_to_string,
    canonical_to_string,
    string_to_blocks,
    string_to_canonical,
)
from align_codec.errors import (  # noqa: F401
    AlignmentError,
    BlockError,
    FormatMismatchError,
    GrammarError,
    InvalidOperationError,
    UnimplementedFormatError,
    UnsupportedOperatorError,
)
from align_codec.grammar import validate, validate_format  # noqa: F401
from align_codec.model import (  # noqa: F401
    AlignedBlock,
    AlignFormat,
    AlignOp,
    AlignOperator,
    BoundaryType,
    CanonicalAlignment,
    HomolType,
    Strand,
)
from align_codec.parsers import parse  # noqa: F401
from align_codec.serializers import serialize  # noqa: F401

__version__ = '0.1.0'
__all__ = [
    'AlignedBlock',
    'AlignFormat',
    'AlignOp',
    'AlignOperator',
    'BoundaryType',
    'CanonicalAlignment',
    'HomolType',
    'Strand',
    'AlignmentError',
    'BlockError',
    'FormatMismatchError',
    'GrammarError',
    'InvalidOperationError',
    'UnimplementedFormatError',
    'UnsupportedOperatorError',
    'validate',
    'validate_format',
    'parse',
    'serialize',
    'canonical_to_blocks',
    'blocks_to_canonical',
    'is_perfect_alignment',
    'is_gapped',
    'sort_blocks',
    'string_to_blocks',
    'blocks_to_string',
    'string_to_canonical',
    'canonical_to_string',
]
