"""Tests for the row alignment engine."""

import pytest

from src.errors import AlignmentTooLargeError
from src.imaging.row_alignment import (
    GAP,
    AlignedImages,
    Real,
    align,
    compute_and_inject_diffs,
    compute_and_inject_diffs_async,
    row_fingerprint,
)
from src.models.snapshot import RasterImage

from conftest import BLACK, BLUE, GREEN, RED, WHITE, striped_image


def _reals(trace):
    return [entry.index for entry in trace if entry is not GAP]


class TestAlign:
    """Tests for fingerprint sequence alignment."""

    def test_identical_sequences_have_no_gaps(self):
        seq = list("abcdef")
        a, b = align(seq, seq)
        assert a == b == [Real(i) for i in range(6)]

    def test_empty_sequences(self):
        assert align([], []) == ([], [])

    def test_one_side_empty(self):
        a, b = align([], list("xyz"))
        assert a == [GAP, GAP, GAP]
        assert b == [Real(0), Real(1), Real(2)]

    def test_inserted_row_gets_gap_on_other_side(self):
        previous = list("abcdefghij")
        current = list("abcdeXfghij")
        a, b = align(previous, current)

        assert len(a) == len(b) == 11
        assert a[5] is GAP
        assert b[5] == Real(5)
        assert a.count(GAP) == 1
        assert b.count(GAP) == 0

    def test_removed_row_gets_gap_on_other_side(self):
        a, b = align(list("abcd"), list("abd"))
        assert a == [Real(0), Real(1), Real(2), Real(3)]
        assert b == [Real(0), Real(1), GAP, Real(2)]

    def test_replaced_row_prefers_removal_first(self):
        a, b = align(list("aXc"), list("aYc"))
        assert a == [Real(0), Real(1), GAP, Real(2)]
        assert b == [Real(0), GAP, Real(1), Real(2)]

    def test_matched_positions_have_equal_fingerprints(self):
        previous = list("abcabba")
        current = list("cbabac")
        a, b = align(previous, current)
        for pa, pb in zip(a, b):
            if pa is not GAP and pb is not GAP:
                assert previous[pa.index] == current[pb.index]
            else:
                assert (pa is GAP) != (pb is GAP)

    @pytest.mark.parametrize("previous,current", [
        ("abc", "xyz"),
        ("abcbdab", "bdcaba"),
        ("aaaa", "aa"),
        ("", "abc"),
        ("abcdef", "fedcba"),
    ])
    def test_length_bounds(self, previous, current):
        a, b = align(list(previous), list(current))
        assert len(a) == len(b)
        assert max(len(previous), len(current)) <= len(a) <= len(previous) + len(current)

    @pytest.mark.parametrize("previous,current", [("abcbdab", "bdcaba"), ("hello", "yellow")])
    def test_original_order_preserved(self, previous, current):
        a, b = align(list(previous), list(current))
        assert _reals(a) == list(range(len(previous)))
        assert _reals(b) == list(range(len(current)))

    def test_realigning_aligned_sequences_adds_no_gaps(self):
        previous = list("abcdeXfg")
        current = list("abYcdefgZ")
        a, b = align(previous, current)

        # gap positions are filled with the counterpart's fingerprint
        padded_previous = [previous[x.index] if x is not GAP else current[y.index] for x, y in zip(a, b)]
        padded_current = [current[y.index] if y is not GAP else previous[x.index] for x, y in zip(a, b)]
        a2, b2 = align(padded_previous, padded_current)

        assert GAP not in a2
        assert GAP not in b2
        assert len(a2) == len(a)


class TestRowFingerprint:

    def test_equal_rows_equal_fingerprint(self):
        assert row_fingerprint(b"\x01\x02\x03\x04") == row_fingerprint(bytes([1, 2, 3, 4]))

    def test_different_rows_differ(self):
        assert row_fingerprint(b"\x00" * 8) != row_fingerprint(b"\x00" * 7 + b"\x01")


class TestComputeAndInjectDiffs:
    """Tests for aligning raster images."""

    def test_identical_images_unchanged(self):
        image = striped_image([RED, GREEN, BLUE], width=4)
        result = compute_and_inject_diffs(image, image)
        assert result.previous == image
        assert result.current == image

    def test_inserted_line_pads_previous(self):
        # rows 0-4 match, row 5 is new in current, rows 6-9 shift down by one
        base = [RED, GREEN, BLUE, WHITE, BLACK, RED, GREEN, BLUE, WHITE, BLACK]
        previous = striped_image(base, width=5)
        current = striped_image(base[:5] + [(9, 9, 9, 255)] + base[5:] + [(7, 7, 7, 255)], width=5)
        assert previous.height == 10 and current.height == 12

        result = compute_and_inject_diffs(previous, current)

        assert result.previous.height == result.current.height == 12
        gap_row = bytes(5 * 4)
        previous_rows = list(result.previous.rows())
        current_rows = list(result.current.rows())
        assert previous_rows[5] == gap_row
        assert previous_rows.count(gap_row) == 2
        assert current_rows.count(gap_row) == 0
        assert current_rows == list(current.rows())

    def test_different_widths_padded_to_max(self):
        previous = striped_image([RED, GREEN], width=2)
        current = striped_image([RED, GREEN, BLUE], width=3)

        result = compute_and_inject_diffs(previous, current)

        assert result.previous.width == result.current.width == 3
        assert result.previous.height == result.current.height
        first_row = next(result.previous.rows())
        assert first_row == bytes(RED) * 2 + bytes(4)

    def test_gap_rows_fully_transparent(self):
        previous = striped_image([RED, BLUE], width=3)
        current = striped_image([GREEN], width=3)

        result = compute_and_inject_diffs(previous, current)

        assert result.previous.height == result.current.height == 3
        for row in result.current.rows():
            if row != bytes(GREEN) * 3:
                assert row == bytes(12)

    def test_inputs_not_mutated(self):
        previous = striped_image([RED, GREEN], width=2)
        current = striped_image([GREEN, BLUE], width=2)
        before = (previous.data, current.data)
        compute_and_inject_diffs(previous, current)
        assert (previous.data, current.data) == before

    def test_progress_milestones_in_order(self):
        seen = []
        image = striped_image([RED], width=1)
        compute_and_inject_diffs(image, image, progress=seen.append)
        assert seen == [20, 40, 60, 85, 100]

    def test_row_cap_enforced(self):
        image = striped_image([RED] * 5, width=1)
        with pytest.raises(AlignmentTooLargeError):
            compute_and_inject_diffs(image, image, max_rows=4)

    def test_message_shape(self):
        image = striped_image([RED], width=1)
        message = AlignedImages(previous=image, current=image).to_message()
        assert set(message) == {"previousData", "currentData"}
        assert message["currentData"] == {"data": image.data, "width": 1, "height": 1}


class TestComputeAndInjectDiffsAsync:

    @pytest.mark.asyncio
    async def test_runs_off_loop_and_reports_progress(self):
        seen = []
        previous = striped_image([RED, GREEN], width=2)
        current = striped_image([RED, BLUE, GREEN], width=2)

        result = await compute_and_inject_diffs_async(previous, current, progress=seen.append)

        assert result.previous.height == result.current.height == 3
        assert seen == [20, 40, 60, 85, 100]

    @pytest.mark.asyncio
    async def test_without_progress(self):
        image = striped_image([RED], width=1)
        result = await compute_and_inject_diffs_async(image, image)
        assert isinstance(result.previous, RasterImage)
