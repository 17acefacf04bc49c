"""Tests for transcript decoding."""

import json

from shortsforge.analyzers.transcript import parse_transcript
from shortsforge.models import TranscriptSegment


class TestParseTranscript:
    def test_basic(self):
        raw = json.dumps([
            {"startTimeMs": 3000, "endTimeMs": 6000, "text": " second "},
            {"startTimeMs": 0, "endTimeMs": 3000, "text": "first"},
        ])
        assert parse_transcript(raw) == [
            TranscriptSegment(start_time_ms=0, end_time_ms=3000, text="first"),
            TranscriptSegment(start_time_ms=3000, end_time_ms=6000, text="second"),
        ]

    def test_missing_or_blank(self):
        assert parse_transcript(None) == []
        assert parse_transcript("   ") == []

    def test_invalid_json(self):
        assert parse_transcript("[{") == []

    def test_not_a_list(self):
        assert parse_transcript('{"segments": []}') == []

    def test_malformed_records_dropped(self):
        raw = json.dumps([
            {"startTimeMs": 0, "endTimeMs": 1000, "text": "ok"},
            {"startTimeMs": "soon", "endTimeMs": 2000, "text": "bad"},
            {"endTimeMs": 3000},
            "just a string",
        ])
        assert [s.text for s in parse_transcript(raw)] == ["ok"]

    def test_overflowing_times_dropped(self):
        raw = (
            '[{"startTimeMs": 0, "endTimeMs": 1e400, "text": "inf"},'
            ' {"startTimeMs": 500, "endTimeMs": 900, "text": "ok"}]'
        )
        assert [s.text for s in parse_transcript(raw)] == ["ok"]
