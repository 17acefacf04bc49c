"""Tests for per-clip subtitle extraction and the post-concat merge."""

import pytest

from shortsforge.editors.retime import (
    extract_clip_subtitles,
    merge_clip_subtitles,
    subtitles_for_clip,
)
from shortsforge.models import ClipSegment, TranscriptSegment


def _seg(start: int, end: int, text: str = "x") -> TranscriptSegment:
    return TranscriptSegment(start_time_ms=start, end_time_ms=end, text=text)


class TestExtractClipSubtitles:
    def test_full_length_clip_is_identity(self, transcript):
        assert extract_clip_subtitles(transcript, 0, 20_000) == transcript

    def test_outside_segments_excluded(self):
        transcript = [_seg(0, 5_000, "before"), _seg(30_000, 35_000, "after")]
        assert extract_clip_subtitles(transcript, 10_000, 30_000) == []

    def test_partial_overlap_clamped(self):
        transcript = [_seg(8_000, 12_000, "head"), _seg(28_000, 33_000, "tail")]
        assert extract_clip_subtitles(transcript, 10_000, 30_000) == [
            _seg(0, 2_000, "head"),
            _seg(18_000, 20_000, "tail"),
        ]

    def test_rezeroes_inner_segment(self):
        assert extract_clip_subtitles([_seg(12_000, 15_000)], 10_000, 30_000) == [
            _seg(2_000, 5_000)
        ]

    def test_zero_length_segment_dropped(self):
        transcript = [_seg(100_000, 100_000, "empty"), _seg(100_000, 101_000, "kept")]
        assert extract_clip_subtitles(transcript, 90_000, 120_000) == [
            _seg(10_000, 11_000, "kept")
        ]

    def test_touching_boundaries_excluded(self):
        transcript = [_seg(5_000, 10_000), _seg(30_000, 31_000)]
        assert extract_clip_subtitles(transcript, 10_000, 30_000) == []

    def test_clip_segment_helper(self, transcript):
        clip = ClipSegment(order_index=0, start_time_ms=4_000, end_time_ms=15_000, title="t")
        assert subtitles_for_clip(transcript, clip)[0] == _seg(0, 5_500, "Today we look at rockets")


class TestMergeClipSubtitles:
    def test_offsets_by_preceding_durations(self):
        blocks = [[_seg(1_000, 2_000, "a")], [_seg(5_000, 9_000, "b")]]
        merged = merge_clip_subtitles(blocks, [40_000, 35_000])
        assert merged == [_seg(1_000, 2_000, "a"), _seg(45_000, 49_000, "b")]

    def test_empty_block_still_advances_offset(self):
        blocks = [[_seg(0, 1_000, "a")], [], [_seg(500, 1_500, "c")]]
        merged = merge_clip_subtitles(blocks, [10_000, 20_000, 15_000])
        assert merged[-1] == _seg(30_500, 31_500, "c")

    def test_general_offsets(self):
        durations = [12_000, 30_000, 18_000, 25_000]
        blocks = [[_seg(100, 900, str(i))] for i in range(len(durations))]
        merged = merge_clip_subtitles(blocks, durations)
        for i, seg in enumerate(merged):
            offset = sum(durations[:i])
            assert (seg.start_time_ms, seg.end_time_ms) == (100 + offset, 900 + offset)

    def test_single_block_unchanged(self, transcript):
        assert merge_clip_subtitles([transcript], [20_000]) == transcript

    def test_length_mismatch(self):
        with pytest.raises(ValueError, match="clip durations"):
            merge_clip_subtitles([[]], [1, 2])
