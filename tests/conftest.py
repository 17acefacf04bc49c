"""Shared test fixtures."""

from pathlib import Path

import pytest

from shortsforge.models import SourceVideoInfo, TranscriptSegment

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def sample_config_path() -> Path:
    return FIXTURES_DIR / "sample_config.json"


@pytest.fixture
def sample_job_path() -> Path:
    return FIXTURES_DIR / "sample_job.json"


@pytest.fixture
def long_source() -> SourceVideoInfo:
    return SourceVideoInfo(duration_ms=600_000, width=1920, height=1080)


@pytest.fixture
def transcript() -> list[TranscriptSegment]:
    return [
        TranscriptSegment(start_time_ms=0, end_time_ms=4_000, text="Hello and welcome"),
        TranscriptSegment(start_time_ms=4_000, end_time_ms=9_500, text="Today we look at rockets"),
        TranscriptSegment(start_time_ms=9_500, end_time_ms=15_000, text="Why do they need stages?"),
        TranscriptSegment(start_time_ms=15_000, end_time_ms=20_000, text="Mass is the enemy"),
    ]
