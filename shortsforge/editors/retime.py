"""Keep transcript timestamps in step with cut and joined clips."""

from shortsforge.models import ClipSegment, TranscriptSegment


def extract_clip_subtitles(
    transcript: list[TranscriptSegment], start_ms: int, end_ms: int
) -> list[TranscriptSegment]:
    """Select the segments overlapping ``[start_ms, end_ms)`` and re-zero them.

    Times are shifted so the clip starts at 0 and clamped to ``[0, end_ms -
    start_ms]``. Segments left with no duration after clamping are dropped.
    """
    clip_length = end_ms - start_ms
    retimed: list[TranscriptSegment] = []

    for seg in transcript:
        if seg.end_time_ms <= start_ms or seg.start_time_ms >= end_ms:
            continue
        new_start = max(seg.start_time_ms - start_ms, 0)
        new_end = min(seg.end_time_ms - start_ms, clip_length)
        if new_end <= new_start:
            continue
        retimed.append(
            TranscriptSegment(start_time_ms=new_start, end_time_ms=new_end, text=seg.text)
        )
    return retimed


def subtitles_for_clip(
    transcript: list[TranscriptSegment], clip: ClipSegment
) -> list[TranscriptSegment]:
    return extract_clip_subtitles(transcript, clip.start_time_ms, clip.end_time_ms)


def merge_clip_subtitles(
    blocks: list[list[TranscriptSegment]], durations_ms: list[int]
) -> list[TranscriptSegment]:
    """Lay per-clip subtitle blocks onto the concatenated timeline.

    ``blocks[i]`` is clip *i*'s re-zeroed track and ``durations_ms[i]`` its
    length; each block is shifted by the total length of the clips before it.
    An empty block still advances the offset.
    """
    if len(blocks) != len(durations_ms):
        raise ValueError(
            f"{len(blocks)} subtitle blocks but {len(durations_ms)} clip durations"
        )

    merged: list[TranscriptSegment] = []
    offset = 0
    for block, duration in zip(blocks, durations_ms):
        for seg in block:
            merged.append(
                TranscriptSegment(
                    start_time_ms=seg.start_time_ms + offset,
                    end_time_ms=seg.end_time_ms + offset,
                    text=seg.text,
                )
            )
        offset += duration
    return merged
