"""Decode the upstream speech-to-text segments stored on a job."""

import json
import logging

from shortsforge.models import TranscriptSegment

logger = logging.getLogger(__name__)


def parse_transcript(raw: str | None) -> list[TranscriptSegment]:
    """Decode a JSON array of ``{startTimeMs, endTimeMs, text}`` records.

    A missing or malformed transcript yields an empty list; subtitles are then
    skipped rather than failing the job. Individual malformed records are
    dropped.
    """
    if raw is None or not raw.strip():
        return []

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning("Transcript is not valid JSON, skipping subtitles: %s", e)
        return []

    if not isinstance(data, list):
        logger.warning("Transcript is a %s, expected a list; skipping subtitles", type(data).__name__)
        return []

    segments: list[TranscriptSegment] = []
    for i, record in enumerate(data):
        try:
            segments.append(
                TranscriptSegment(
                    start_time_ms=int(record["startTimeMs"]),
                    end_time_ms=int(record["endTimeMs"]),
                    text=str(record.get("text") or "").strip(),
                )
            )
        except (KeyError, TypeError, ValueError, OverflowError, AttributeError):
            logger.debug("Dropping malformed transcript record #%d: %r", i, record)

    segments.sort(key=lambda s: s.start_time_ms)
    return segments
