"""Tests for config loading and validation."""

import json
from pathlib import Path

import pytest

from shortsforge.config import EditConfig, PlanLimits, load_config


class TestPlanLimits:
    def test_defaults(self):
        limits = PlanLimits()
        assert limits.min_clip_duration_ms == 10_000
        assert limits.max_clips == 10
        assert limits.max_total_duration_ms == 210_000
        assert limits.fallback_start_ms == 30_000
        assert limits.fallback_duration_ms == 60_000


class TestEditConfig:
    def test_minimal(self):
        cfg = EditConfig(bucket="media")
        assert cfg.timeout_seconds == 300.0
        assert (cfg.output_width, cfg.output_height) == (1080, 1920)
        assert cfg.font_path is None
        assert cfg.limits == PlanLimits()


class TestLoadConfig:
    def test_load_sample(self, sample_config_path: Path):
        cfg = load_config(sample_config_path)
        assert cfg.bucket == "shorts-media"
        assert cfg.temp_dir == Path("/tmp/shortsforge-test")
        assert cfg.font_path == Path("/usr/share/fonts/noto/NotoSansKR-Bold.ttf")
        assert cfg.timeout_seconds == 120
        assert cfg.edited_videos_prefix == "edited"
        assert cfg.thumbnails_prefix == "thumbnails"
        assert cfg.limits.max_total_duration_ms == 180_000
        assert cfg.limits.max_clips == 10

    def test_load_invalid_json(self, tmp_path: Path):
        bad = tmp_path / "bad.json"
        bad.write_text("not json")
        with pytest.raises(json.JSONDecodeError):
            load_config(bad)

    def test_load_missing_bucket(self, tmp_path: Path):
        incomplete = tmp_path / "incomplete.json"
        incomplete.write_text('{"temp_dir": "/tmp"}')
        with pytest.raises(ValueError, match="bucket"):
            load_config(incomplete)

    def test_unknown_key_rejected(self, tmp_path: Path):
        path = tmp_path / "typo.json"
        path.write_text('{"bucket": "b", "timeout_secs": 5}')
        with pytest.raises(TypeError):
            load_config(path)
