"""FFmpeg/ffprobe subprocess helpers."""

import json
import logging
import math
import os
import shutil
import signal
import subprocess
from pathlib import Path

from shortsforge.models import SourceVideoInfo

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 300.0

# Title cue spans any realistic output length
_TITLE_CUE_END = "99:59:59,999"

_ENCODE_ARGS = [
    "-c:v", "libx264",
    "-preset", "fast",
    "-crf", "23",
    "-c:a", "aac",
    "-b:a", "128k",
]


class FFmpegNotFoundError(RuntimeError):
    pass


class FFmpegError(RuntimeError):
    """Base class for failures of an ffmpeg/ffprobe invocation."""

    def __init__(self, operation: str, message: str):
        super().__init__(f"{operation}: {message}")
        self.operation = operation


class TranscodeError(FFmpegError):
    """Raised when the tool exits non-zero."""

    def __init__(self, operation: str, returncode: int, stderr: str = ""):
        tail = stderr.strip()[-500:]
        message = f"failed with exit code {returncode}"
        if tail:
            message += f": {tail}"
        super().__init__(operation, message)
        self.returncode = returncode
        self.stderr = stderr


class TranscodeTimeoutError(FFmpegError):
    """Raised when the tool runs past its wall-clock budget and is killed."""

    def __init__(self, operation: str, timeout: float):
        super().__init__(operation, f"timed out after {timeout:g}s")
        self.timeout = timeout


class ProbeError(FFmpegError):
    """Raised when ffprobe cannot produce usable metadata."""

    def __init__(self, path: Path, message: str):
        super().__init__("probe", f"{path}: {message}")
        self.path = path


def check_ffmpeg(ffmpeg: str = "ffmpeg", ffprobe: str = "ffprobe") -> None:
    """Raise FFmpegNotFoundError if ffmpeg/ffprobe are not on PATH."""
    for cmd in (ffmpeg, ffprobe):
        if shutil.which(cmd) is None:
            raise FFmpegNotFoundError(f"{cmd} not found on PATH")


def run_command(cmd: list[str], operation: str, timeout: float = DEFAULT_TIMEOUT) -> str:
    """Run *cmd* to completion and return its stdout.

    The child gets its own session so that on timeout the whole process group
    is killed, not just the direct child.
    """
    logger.debug("%s: %s", operation, " ".join(cmd))
    proc = subprocess.Popen(
        cmd,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        encoding="utf-8",
        errors="replace",
        start_new_session=True,
    )
    try:
        stdout, stderr = proc.communicate(timeout=timeout)
    except subprocess.TimeoutExpired:
        _kill_group(proc)
        proc.communicate()
        logger.error("%s timed out after %gs", operation, timeout)
        raise TranscodeTimeoutError(operation, timeout) from None
    except BaseException:
        _kill_group(proc)
        proc.wait()
        raise

    if proc.returncode != 0:
        logger.error("%s failed (rc=%d): %s", operation, proc.returncode, (stderr or "")[-500:])
        raise TranscodeError(operation, proc.returncode, stderr or "")
    return stdout or ""


def _kill_group(proc: subprocess.Popen) -> None:
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass


def probe(
    input_path: Path, ffprobe: str = "ffprobe", timeout: float = DEFAULT_TIMEOUT
) -> SourceVideoInfo:
    """Extract duration and dimensions via ffprobe."""
    cmd = [
        ffprobe,
        "-v", "quiet",
        "-print_format", "json",
        "-show_format",
        "-show_streams",
        str(input_path),
    ]
    try:
        output = run_command(cmd, "probe", timeout)
    except TranscodeError as e:
        raise ProbeError(input_path, f"ffprobe exited with code {e.returncode}") from e

    try:
        data = json.loads(output)
    except json.JSONDecodeError as e:
        raise ProbeError(input_path, "ffprobe returned invalid JSON") from e

    video_stream = next(
        (s for s in data.get("streams", []) if s.get("codec_type") == "video"), None
    )
    if video_stream is None:
        raise ProbeError(input_path, "no video stream found")

    try:
        duration = float(data["format"]["duration"])
    except (KeyError, TypeError, ValueError):
        raise ProbeError(input_path, "duration not reported") from None
    if not math.isfinite(duration) or duration <= 0:
        raise ProbeError(input_path, f"unusable duration {duration}")

    try:
        width = int(video_stream["width"])
        height = int(video_stream["height"])
    except (KeyError, TypeError, ValueError):
        raise ProbeError(input_path, "video dimensions not reported") from None
    if width <= 0 or height <= 0:
        raise ProbeError(input_path, f"invalid video dimensions {width}x{height}")

    return SourceVideoInfo(
        duration_ms=int(round(duration * 1000)),
        width=width,
        height=height,
    )


def _seconds(ms: int) -> str:
    return f"{ms / 1000:.3f}"


def clip(
    input_path: Path,
    output_path: Path,
    start_ms: int,
    end_ms: int,
    ffmpeg: str = "ffmpeg",
    timeout: float = DEFAULT_TIMEOUT,
) -> Path:
    """Re-encode the ``[start_ms, end_ms)`` slice of *input_path*."""
    if end_ms <= start_ms:
        raise ValueError(f"clip end {end_ms}ms must be after start {start_ms}ms")

    cmd = [
        ffmpeg, "-y",
        "-ss", _seconds(start_ms),
        "-i", str(input_path),
        "-t", _seconds(end_ms - start_ms),
        *_ENCODE_ARGS,
        str(output_path),
    ]
    run_command(cmd, "clip", timeout)
    return output_path


def _concat_line(path: Path) -> str:
    escaped = str(path.resolve()).replace("'", "'\\''")
    return f"file '{escaped}'"


def write_concat_list(input_paths: list[Path], list_path: Path) -> Path:
    """Write an ffmpeg concat-demuxer list, one ``file '<abs-path>'`` per line."""
    list_path.write_text(
        "\n".join(_concat_line(p) for p in input_paths) + "\n", encoding="utf-8"
    )
    return list_path


def concat(
    input_paths: list[Path],
    output_path: Path,
    ffmpeg: str = "ffmpeg",
    timeout: float = DEFAULT_TIMEOUT,
) -> Path:
    """Join clips in list order without re-encoding.

    All inputs must share codec parameters; clips cut from the same source by
    :func:`clip` do.
    """
    if not input_paths:
        raise ValueError("concat called with empty input list")

    if len(input_paths) == 1:
        shutil.copyfile(input_paths[0], output_path)
        return output_path

    list_path = output_path.with_name(output_path.stem + "_concat.txt")
    write_concat_list(input_paths, list_path)
    try:
        cmd = [
            ffmpeg, "-y",
            "-f", "concat",
            "-safe", "0",
            "-i", str(list_path),
            "-c", "copy",
            str(output_path),
        ]
        run_command(cmd, "concat", timeout)
    finally:
        list_path.unlink(missing_ok=True)
    return output_path


def vertical_filter(width: int = 1080, height: int = 1920) -> str:
    """Scale to fit inside width x height, then pad to fill it, centered."""
    return (
        f"scale={width}:{height}:force_original_aspect_ratio=decrease,"
        f"pad={width}:{height}:(ow-iw)/2:(oh-ih)/2"
    )


def resize_vertical(
    input_path: Path,
    output_path: Path,
    width: int = 1080,
    height: int = 1920,
    ffmpeg: str = "ffmpeg",
    timeout: float = DEFAULT_TIMEOUT,
) -> Path:
    """Letterbox into a vertical frame."""
    cmd = [
        ffmpeg, "-y",
        "-i", str(input_path),
        "-vf", vertical_filter(width, height),
        *_ENCODE_ARGS,
        str(output_path),
    ]
    run_command(cmd, "resize_vertical", timeout)
    return output_path


def _escape_filter_path(path: Path) -> str:
    return str(path).replace("\\", "/").replace(":", "\\\\:").replace("'", "\\'")


def _subtitles_filter(
    subtitle_path: Path, style: dict[str, str | int], fonts_dir: Path | None
) -> str:
    force_style = ",".join(f"{k}={v}" for k, v in style.items())
    parts = [f"subtitles='{_escape_filter_path(subtitle_path)}'"]
    if fonts_dir is not None:
        parts.append(f"fontsdir='{_escape_filter_path(fonts_dir)}'")
    parts.append(f"force_style='{force_style}'")
    return ":".join(parts)


def overlay_filter(
    title_path: Path,
    subtitle_path: Path | None = None,
    font_path: Path | None = None,
    font_name: str = "Noto Sans KR",
) -> str:
    """Build the -vf chain: title pinned to the top, subtitles near the bottom."""
    fonts_dir = font_path.parent if font_path is not None else None
    filters = [
        _subtitles_filter(
            title_path,
            {
                "FontName": font_name,
                "FontSize": 20,
                "PrimaryColour": "&HFFFFFF",
                "OutlineColour": "&H000000",
                "Outline": 2,
                "BackColour": "&H80000000",
                "Bold": 1,
                "Alignment": 8,
                "MarginV": 15,
            },
            fonts_dir,
        )
    ]
    if subtitle_path is not None:
        filters.append(
            _subtitles_filter(
                subtitle_path,
                {
                    "FontName": font_name,
                    "FontSize": 14,
                    "PrimaryColour": "&HFFFFFF",
                    "OutlineColour": "&H000000",
                    "Outline": 1,
                    "Bold": 1,
                    "Alignment": 2,
                    "MarginV": 60,
                },
                fonts_dir,
            )
        )
    return ",".join(filters)


def add_text_overlay(
    input_path: Path,
    output_path: Path,
    title: str,
    subtitle_path: Path | None = None,
    font_path: Path | None = None,
    font_name: str = "Noto Sans KR",
    ffmpeg: str = "ffmpeg",
    timeout: float = DEFAULT_TIMEOUT,
) -> Path:
    """Burn in a persistent title and, if given, timed subtitles."""
    title_path = output_path.with_name(output_path.stem + "_title.srt")
    title_path.write_text(
        f"1\n00:00:00,000 --> {_TITLE_CUE_END}\n{title}\n", encoding="utf-8"
    )
    if subtitle_path is not None and not subtitle_path.exists():
        logger.warning("Subtitle file %s missing; burning title only", subtitle_path)
        subtitle_path = None

    try:
        cmd = [
            ffmpeg, "-y",
            "-i", str(input_path),
            "-vf", overlay_filter(title_path, subtitle_path, font_path, font_name),
            "-c:v", "libx264",
            "-preset", "fast",
            "-crf", "23",
            "-c:a", "copy",
            str(output_path),
        ]
        run_command(cmd, "add_text_overlay", timeout)
    finally:
        title_path.unlink(missing_ok=True)
    return output_path


def thumbnail(
    input_path: Path,
    output_path: Path,
    timestamp_ms: int,
    ffmpeg: str = "ffmpeg",
    timeout: float = DEFAULT_TIMEOUT,
) -> Path:
    """Grab a single frame at *timestamp_ms*."""
    cmd = [
        ffmpeg, "-y",
        "-ss", _seconds(max(timestamp_ms, 0)),
        "-i", str(input_path),
        "-vframes", "1",
        "-q:v", "2",
        str(output_path),
    ]
    run_command(cmd, "thumbnail", timeout)
    return output_path
