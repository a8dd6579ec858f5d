"""Tests for canonical/block conversion and the block utilities."""

import pytest

from align_codec.blocks import (
    blocks_to_canonical,
    canonical_to_blocks,
    is_gapped,
    is_perfect_alignment,
    sort_blocks,
)
from align_codec.errors import BlockError
from align_codec.model import (
    AlignedBlock,
    AlignFormat,
    AlignOp,
    BoundaryType,
    CanonicalAlignment,
    HomolType,
    Strand,
)

EDGE = BoundaryType.EDGE
DELETION = BoundaryType.DELETION
INTRON = BoundaryType.INTRON
MATCH = BoundaryType.MATCH
FWD = Strand.FORWARD
REV = Strand.REVERSE

# ---------------------------------------------------------------------------
# canonical_to_blocks
# ---------------------------------------------------------------------------


class TestCanonicalToBlocks:
    def test_deletion(self, make_canonical):
        canon = make_canonical(('M', 50), ('D', 10), ('M', 50))
        blocks = canonical_to_blocks(canon, '+', '+', 100, 199, 1, 100)
        assert blocks == [
            AlignedBlock(100, 149, 1, 50, FWD, FWD, EDGE, DELETION),
            AlignedBlock(160, 209, 51, 100, FWD, FWD, DELETION, EDGE),
        ]

    def test_single_match_is_ungapped(self, make_canonical):
        canon = make_canonical(('M', 50))
        assert canonical_to_blocks(canon, '+', '+', 1, 50, 1, 50) is None

    def test_single_match_between_gaps_is_ungapped(self, make_canonical):
        canon = make_canonical(('I', 2), ('M', 50), ('D', 3))
        assert canonical_to_blocks(canon, '+', '+', 1, 53, 1, 52) is None

    def test_adjacent_matches(self, make_canonical):
        canon = make_canonical(('M', 5), ('M', 5))
        blocks = canonical_to_blocks(canon, FWD, FWD, 1, 10, 1, 10)
        assert blocks == [
            AlignedBlock(1, 5, 1, 5, FWD, FWD, EDGE, MATCH),
            AlignedBlock(6, 10, 6, 10, FWD, FWD, MATCH, EDGE),
        ]

    def test_insertion(self, make_canonical):
        canon = make_canonical(('M', 10), ('I', 5), ('M', 10))
        blocks = canonical_to_blocks(canon, '+', '+', 1, 20, 1, 25)
        assert blocks == [
            AlignedBlock(1, 10, 1, 10, FWD, FWD, EDGE, MATCH),
            AlignedBlock(11, 20, 16, 25, FWD, FWD, MATCH, EDGE),
        ]

    def test_intron(self, make_canonical):
        canon = make_canonical(('M', 10), ('N', 100), ('M', 10))
        blocks = canonical_to_blocks(canon, '+', '+', 1000, 1119, 1, 20)
        assert blocks == [
            AlignedBlock(1000, 1009, 1, 10, FWD, FWD, EDGE, INTRON),
            AlignedBlock(1110, 1119, 11, 20, FWD, FWD, INTRON, EDGE),
        ]

    def test_gap_operator_acts_as_deletion(self, make_canonical):
        canon = make_canonical(('M', 4), ('G', 2), ('M', 4))
        blocks = canonical_to_blocks(canon, '+', '+', 1, 10, 1, 8)
        assert blocks[0].end_boundary is DELETION
        assert blocks[1].target_start == 7

    def test_leading_insertion(self, make_canonical):
        canon = make_canonical(('I', 3), ('M', 10), ('D', 2), ('M', 5))
        blocks = canonical_to_blocks(canon, '+', '+', 1, 17, 1, 18)
        assert blocks == [
            AlignedBlock(1, 10, 4, 13, FWD, FWD, MATCH, DELETION),
            AlignedBlock(13, 17, 14, 18, FWD, FWD, DELETION, EDGE),
        ]

    def test_last_gap_decides_boundary(self, make_canonical):
        canon = make_canonical(('M', 5), ('I', 3), ('D', 2), ('M', 5))
        blocks = canonical_to_blocks(canon, '+', '+', 1, 12, 1, 13)
        assert blocks == [
            AlignedBlock(1, 5, 1, 5, FWD, FWD, EDGE, MATCH),
            AlignedBlock(8, 12, 9, 13, FWD, FWD, DELETION, EDGE),
        ]

    def test_reverse_reference(self, make_canonical):
        canon = make_canonical(('M', 10), ('D', 5), ('M', 10))
        blocks = canonical_to_blocks(canon, '-', '+', 1, 25, 1, 20)
        assert blocks == [
            AlignedBlock(16, 25, 1, 10, REV, FWD, EDGE, DELETION),
            AlignedBlock(1, 10, 11, 20, REV, FWD, DELETION, EDGE),
        ]

    def test_reverse_query(self, make_canonical):
        canon = make_canonical(('M', 10), ('I', 5), ('M', 10))
        blocks = canonical_to_blocks(canon, '+', '-', 1, 20, 1, 25)
        assert blocks == [
            AlignedBlock(1, 10, 25, 16, FWD, REV, EDGE, MATCH),
            AlignedBlock(11, 20, 10, 1, FWD, REV, MATCH, EDGE),
        ]

    def test_swapped_range_ends(self, make_canonical):
        canon = make_canonical(('M', 50), ('D', 10), ('M', 50))
        assert canonical_to_blocks(canon, '+', '+', 199, 100, 100, 1) == (
            canonical_to_blocks(canon, '+', '+', 100, 199, 1, 100)
        )

    def test_no_matches(self, make_canonical):
        canon = make_canonical(('I', 3), ('D', 2))
        with pytest.raises(BlockError):
            canonical_to_blocks(canon, '+', '+', 1, 2, 1, 3)

    def test_bad_strand(self, make_canonical):
        canon = make_canonical(('M', 5), ('D', 1), ('M', 5))
        with pytest.raises(ValueError):
            canonical_to_blocks(canon, '.', '+', 1, 11, 1, 10)

    def test_block_spans_match_query_spans(self, make_canonical):
        canon = make_canonical(('M', 7), ('N', 40), ('M', 3), ('I', 2), ('M', 9))
        blocks = canonical_to_blocks(canon, '-', '-', 500, 558, 1, 21)
        assert [b.length for b in blocks] == [7, 3, 9]
        assert all(b.length == b.query_length for b in blocks)


# ---------------------------------------------------------------------------
# blocks_to_canonical
# ---------------------------------------------------------------------------

ROUND_TRIP_OPS = [
    [('M', 50), ('D', 10), ('M', 50)],
    [('M', 10), ('I', 5), ('M', 10)],
    [('M', 10), ('N', 100), ('M', 10)],
    [('M', 5), ('I', 3), ('D', 2), ('M', 5)],
    [('M', 5), ('D', 2), ('I', 3), ('M', 5)],
    [('M', 5), ('I', 2), ('N', 30), ('M', 5)],
    [('M', 5), ('M', 5)],
    [('M', 10), ('N', 50), ('M', 3), ('I', 2), ('M', 7)],
]


class TestBlocksToCanonical:
    @pytest.mark.parametrize('pairs', ROUND_TRIP_OPS)
    @pytest.mark.parametrize('ref_strand', ['+', '-'])
    @pytest.mark.parametrize('query_strand', ['+', '-'])
    def test_inverts_canonical_to_blocks(
        self, make_canonical, pairs, ref_strand, query_strand
    ):
        canon = make_canonical(*pairs)
        blocks = canonical_to_blocks(canon, ref_strand, query_strand, 1000, 2000, 1, 500)
        rebuilt = blocks_to_canonical(blocks)
        assert rebuilt.operations == canon.operations

    def test_single_block(self):
        canon = blocks_to_canonical([AlignedBlock(1, 10, 1, 10)], 'cigar_bam')
        assert canon.format is AlignFormat.CIGAR_BAM
        assert canon.operations == [AlignOp('M', 10)]

    def test_default_format(self):
        canon = blocks_to_canonical([AlignedBlock(1, 10, 1, 10)])
        assert canon.format is AlignFormat.CIGAR_EXONERATE

    def test_empty(self):
        with pytest.raises(BlockError):
            blocks_to_canonical([])

    def test_mixed_strands(self):
        blocks = [
            AlignedBlock(1, 10, 1, 10),
            AlignedBlock(21, 30, 11, 20, target_strand='-'),
        ]
        with pytest.raises(BlockError):
            blocks_to_canonical(blocks)

    def test_span_mismatch(self):
        with pytest.raises(BlockError):
            blocks_to_canonical([AlignedBlock(1, 10, 1, 8)])

    def test_overlap(self):
        blocks = [AlignedBlock(1, 10, 1, 10), AlignedBlock(8, 17, 11, 20)]
        with pytest.raises(BlockError):
            blocks_to_canonical(blocks)

    def test_query_against_strand(self):
        with pytest.raises(BlockError):
            blocks_to_canonical([AlignedBlock(1, 10, 10, 1)])

    def test_none(self):
        with pytest.raises(BlockError):
            blocks_to_canonical(None)

    @pytest.mark.parametrize('query_strand', ['+', '-'])
    def test_reverse_reference_sorted_by_target(self, make_canonical, query_strand):
        canon = make_canonical(('M', 10), ('D', 5), ('M', 10))
        blocks = canonical_to_blocks(canon, '-', query_strand, 1, 25, 1, 20)
        rebuilt = blocks_to_canonical(sort_blocks(blocks))
        assert rebuilt.operations == canon.operations


# ---------------------------------------------------------------------------
# is_perfect_alignment
# ---------------------------------------------------------------------------


class TestIsPerfectAlignment:
    @pytest.mark.parametrize('blocks', [None, [], [AlignedBlock(1, 10, 1, 10)]])
    def test_fewer_than_two_blocks(self, blocks):
        assert is_perfect_alignment(blocks) is False

    def test_abutting_blocks(self):
        blocks = [AlignedBlock(1, 10, 1, 10), AlignedBlock(21, 30, 11, 20)]
        assert is_perfect_alignment(blocks) is True

    def test_missing_query_base(self):
        blocks = [AlignedBlock(1, 10, 1, 10), AlignedBlock(21, 29, 12, 20)]
        assert is_perfect_alignment(blocks) is False
        assert is_perfect_alignment(blocks, allowed_gap=1) is True

    def test_reverse_query_sorted_by_target(self):
        blocks = [
            AlignedBlock(1, 10, 25, 16, query_strand='-'),
            AlignedBlock(21, 30, 15, 6, query_strand='-'),
        ]
        assert is_perfect_alignment(blocks) is True

    def test_from_canonical(self, make_canonical):
        deletion = canonical_to_blocks(
            make_canonical(('M', 50), ('D', 10), ('M', 50)), '+', '+', 100, 209, 1, 100
        )
        insertion = canonical_to_blocks(
            make_canonical(('M', 10), ('I', 5), ('M', 10)), '+', '+', 1, 20, 1, 25
        )
        assert is_perfect_alignment(deletion) is True
        assert is_perfect_alignment(insertion) is False
        assert is_perfect_alignment(insertion, allowed_gap=5) is True

    def test_reverse_reference_after_sorting(self, make_canonical):
        canon = make_canonical(('M', 10), ('D', 5), ('M', 10))
        blocks = canonical_to_blocks(canon, '-', '+', 1, 25, 1, 20)
        assert is_perfect_alignment(sort_blocks(blocks)) is True

    def test_negative_allowed_gap(self):
        with pytest.raises(ValueError):
            is_perfect_alignment([AlignedBlock(1, 10, 1, 10)], allowed_gap=-1)


# ---------------------------------------------------------------------------
# sort_blocks / is_gapped
# ---------------------------------------------------------------------------


class TestSortBlocks:
    def test_sorts_by_target(self):
        a = AlignedBlock(16, 25, 1, 10, target_strand='-')
        b = AlignedBlock(1, 10, 11, 20, target_strand='-')
        assert sort_blocks([a, b]) == [b, a]

    def test_accepts_iterables(self):
        blocks = (AlignedBlock(5, 6, 5, 6), AlignedBlock(1, 2, 1, 2))
        assert [b.target_start for b in sort_blocks(iter(blocks))] == [1, 5]


class TestIsGapped:
    def test_equal_dna_spans(self):
        assert is_gapped(1, 100, 1, 100) is False

    def test_unequal_dna_spans(self):
        assert is_gapped(1, 110, 1, 100) is True

    def test_protein_spans_are_tripled(self):
        assert is_gapped(1, 300, 1, 100, 'protein') is False
        assert is_gapped(1, 100, 1, 100, HomolType.PROTEIN) is True

    def test_reversed_coordinates(self):
        assert is_gapped(100, 1, 1, 100) is False

    def test_unknown_homol_type(self):
        with pytest.raises(ValueError):
            is_gapped(1, 10, 1, 10, 'rna')
