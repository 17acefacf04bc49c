"""Write and read SRT subtitle files."""

import re
from pathlib import Path

from shortsforge.models import TranscriptSegment

_TIMESTAMP = re.compile(r"(\d+):(\d{2}):(\d{2})[,.](\d{3})")
_CUE_TIMING = re.compile(rf"^\s*{_TIMESTAMP.pattern}\s*-->\s*{_TIMESTAMP.pattern}")


def format_srt_time(ms: int) -> str:
    """Render milliseconds as ``HH:MM:SS,mmm``."""
    ms = max(int(ms), 0)
    h, rem = divmod(ms, 3_600_000)
    m, rem = divmod(rem, 60_000)
    s, ms = divmod(rem, 1000)
    return f"{h:02d}:{m:02d}:{s:02d},{ms:03d}"


def parse_srt_time(value: str) -> int:
    """Parse ``HH:MM:SS,mmm`` (or ``.mmm``) into milliseconds."""
    match = _TIMESTAMP.fullmatch(value.strip())
    if match is None:
        raise ValueError(f"Invalid SRT timestamp: {value!r}")
    h, m, s, ms = (int(g) for g in match.groups())
    return ((h * 60 + m) * 60 + s) * 1000 + ms


def format_srt(segments: list[TranscriptSegment]) -> str:
    lines: list[str] = []
    for i, seg in enumerate(segments, 1):
        lines.append(str(i))
        lines.append(
            f"{format_srt_time(seg.start_time_ms)} --> {format_srt_time(seg.end_time_ms)}"
        )
        lines.append(seg.text)
        lines.append("")
    return "\n".join(lines)


def parse_srt(content: str) -> list[TranscriptSegment]:
    """Parse SRT text back into segments.

    Cue indices are ignored; cues come back in file order. Blocks without a
    timing line are skipped.
    """
    content = content.lstrip("\ufeff").replace("\r\n", "\n").replace("\r", "\n")
    segments: list[TranscriptSegment] = []

    for block in re.split(r"\n\s*\n", content):
        lines = block.strip("\n").split("\n")
        # Leading index line is optional
        timing_at = next(
            (i for i, line in enumerate(lines[:2]) if _CUE_TIMING.match(line)), None
        )
        if timing_at is None:
            continue
        timing = _CUE_TIMING.match(lines[timing_at])
        groups = [int(g) for g in timing.groups()]
        start = ((groups[0] * 60 + groups[1]) * 60 + groups[2]) * 1000 + groups[3]
        end = ((groups[4] * 60 + groups[5]) * 60 + groups[6]) * 1000 + groups[7]
        text = "\n".join(lines[timing_at + 1:])
        segments.append(TranscriptSegment(start_time_ms=start, end_time_ms=end, text=text))
    return segments


def write_srt(segments: list[TranscriptSegment], path: Path) -> Path | None:
    """Write *segments* to *path*. Returns None (and writes nothing) if empty."""
    if not segments:
        return None
    path.write_text(format_srt(segments), encoding="utf-8")
    return path


def read_srt(path: Path) -> list[TranscriptSegment]:
    return parse_srt(path.read_text(encoding="utf-8"))
