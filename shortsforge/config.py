"""Pipeline configuration shared by the worker entry point and the engine."""

import json
from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class PlanLimits:
    """Bounds an edit plan must respect, and the fallback used when it doesn't."""

    min_clip_duration_ms: int = 10_000
    max_clips: int = 10
    max_total_duration_ms: int = 210_000
    fallback_start_ms: int = 30_000
    fallback_duration_ms: int = 60_000


@dataclass
class EditConfig:
    """Top-level settings for one worker process."""

    bucket: str
    temp_dir: Path = Path("/tmp/shortsforge")
    font_path: Path | None = None
    font_name: str = "Noto Sans KR"
    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"
    timeout_seconds: float = 300.0
    output_width: int = 1080
    output_height: int = 1920
    edited_videos_prefix: str = "edited-videos"
    thumbnails_prefix: str = "thumbnails"
    default_title: str = "Educational Content"
    presigned_url_ttl_seconds: int = 3600
    download_timeout_seconds: float = 60.0
    limits: PlanLimits = field(default_factory=PlanLimits)


def load_config(path: str | Path) -> EditConfig:
    """Load and validate a pipeline config from a JSON file."""
    path = Path(path)
    data = json.loads(path.read_text())

    if "bucket" not in data:
        raise ValueError("Config must contain a 'bucket' field")

    limits = PlanLimits(**data.pop("limits")) if "limits" in data else PlanLimits()
    if "temp_dir" in data:
        data["temp_dir"] = Path(data["temp_dir"])
    if data.get("font_path"):
        data["font_path"] = Path(data["font_path"])

    return EditConfig(limits=limits, **data)
