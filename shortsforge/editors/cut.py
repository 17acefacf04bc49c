"""Cut editor — extracts a plan's clips and joins them into one video."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from shortsforge import ffutil
from shortsforge.editors.retime import subtitles_for_clip
from shortsforge.models import EditPlan, TranscriptSegment
from shortsforge.workspace import JobWorkspace

logger = logging.getLogger(__name__)


@dataclass
class ExtractedClips:
    """Clip files in output order, with each clip's re-zeroed subtitles."""

    paths: list[Path] = field(default_factory=list)
    durations_ms: list[int] = field(default_factory=list)
    subtitle_blocks: list[list[TranscriptSegment]] = field(default_factory=list)


def extract_clips(
    source_path: Path,
    plan: EditPlan,
    transcript: list[TranscriptSegment],
    workspace: JobWorkspace,
    ffmpeg: str = "ffmpeg",
    timeout: float = ffutil.DEFAULT_TIMEOUT,
    on_progress: Callable[[float], None] | None = None,
) -> ExtractedClips:
    """Cut every clip of *plan* from the source, strictly in order_index order."""
    if not plan.clips:
        raise ValueError("Edit plan has no clips")

    ordered = sorted(plan.clips, key=lambda c: c.order_index)
    result = ExtractedClips()

    for i, clip in enumerate(ordered):
        clip_path = workspace.path(f"clip_{i:02d}.mp4")
        ffutil.clip(
            source_path, clip_path, clip.start_time_ms, clip.end_time_ms,
            ffmpeg=ffmpeg, timeout=timeout,
        )
        subs = subtitles_for_clip(transcript, clip)
        logger.debug(
            "Clip %d [%d, %d) -> %s, %d subtitle(s)",
            clip.order_index, clip.start_time_ms, clip.end_time_ms, clip_path, len(subs),
        )

        result.paths.append(clip_path)
        result.durations_ms.append(clip.duration_ms)
        result.subtitle_blocks.append(subs)
        if on_progress:
            on_progress((i + 1) / len(ordered))

    return result


def join_clips(
    clips: ExtractedClips,
    workspace: JobWorkspace,
    ffmpeg: str = "ffmpeg",
    timeout: float = ffutil.DEFAULT_TIMEOUT,
) -> Path:
    """Concatenate multiple clips; a single clip is used as-is."""
    if not clips.paths:
        raise ValueError("No clips to join")
    if len(clips.paths) == 1:
        return clips.paths[0]

    output = workspace.path("concat.mp4")
    ffutil.concat(clips.paths, output, ffmpeg=ffmpeg, timeout=timeout)
    return output
