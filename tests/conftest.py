"""Pytest configuration and shared fixtures."""

import pytest

from align_codec.model import AlignFormat, AlignOp, CanonicalAlignment
from tests.test_data import GFF_ALIGNMENTS


@pytest.fixture
def gff_file(tmp_path):
    """Write a GFF3 file of alignment records and return its path."""
    path = tmp_path / 'alignments.gff3'
    path.write_text(GFF_ALIGNMENTS)
    return str(path)


@pytest.fixture
def make_canonical():
    """Build a canonical alignment from ``(letter, length)`` pairs."""

    def _make(*pairs, fmt=AlignFormat.CIGAR_EXONERATE):
        return CanonicalAlignment(fmt, [AlignOp(op, n) for op, n in pairs])

    return _make
