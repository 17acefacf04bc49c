"""Shared data types used across ShortsForge."""

import json
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class SourceVideoInfo:
    """Metadata probed from the downloaded source video."""

    duration_ms: int
    width: int
    height: int


@dataclass(frozen=True)
class TranscriptSegment:
    """One timed line of speech, in milliseconds."""

    start_time_ms: int
    end_time_ms: int
    text: str

    @property
    def duration_ms(self) -> int:
        return self.end_time_ms - self.start_time_ms


@dataclass(frozen=True)
class ClipSegment:
    """One ordered slice of the source to include in the output."""

    order_index: int
    start_time_ms: int
    end_time_ms: int
    title: str
    description: str | None = None
    keywords: tuple[str, ...] = ()

    @property
    def duration_ms(self) -> int:
        return self.end_time_ms - self.start_time_ms


@dataclass(frozen=True)
class EditPlan:
    """Ordered clips plus strategy metadata for one output video."""

    clips: tuple[ClipSegment, ...]
    total_duration_ms: int
    editing_strategy: str
    transition_style: str = "hard_cut"

    @classmethod
    def from_clips(
        cls,
        clips: list[ClipSegment],
        editing_strategy: str,
        transition_style: str = "hard_cut",
    ) -> "EditPlan":
        """Build a plan with clips in order_index order and a computed total."""
        ordered = tuple(sorted(clips, key=lambda c: c.order_index))
        return cls(
            clips=ordered,
            total_duration_ms=sum(c.duration_ms for c in ordered),
            editing_strategy=editing_strategy,
            transition_style=transition_style,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "clips": [
                {
                    "orderIndex": c.order_index,
                    "startTimeMs": c.start_time_ms,
                    "endTimeMs": c.end_time_ms,
                    "title": c.title,
                    "description": c.description,
                    "keywords": list(c.keywords),
                }
                for c in self.clips
            ],
            "totalDurationMs": self.total_duration_ms,
            "editingStrategy": self.editing_strategy,
            "transitionStyle": self.transition_style,
        }


class JobStatus(str, Enum):
    PENDING = "PENDING"
    CRAWLED = "CRAWLED"
    TRANSCRIBED = "TRANSCRIBED"
    ANALYZED = "ANALYZED"
    EDITED = "EDITED"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    PUBLISHED = "PUBLISHED"
    FAILED = "FAILED"


# camelCase record key -> Job attribute
_JOB_FIELDS = {
    "id": "id",
    "youtubeVideoId": "source_video_id",
    "rawVideoS3Key": "raw_video_key",
    "segments": "segments",
    "transcriptSegments": "transcript_segments",
    "generatedTitle": "generated_title",
    "editedVideoS3Key": "edited_video_key",
    "thumbnailS3Key": "thumbnail_key",
    "errorMessage": "error_message",
    "updatedBy": "updated_by",
}


def _parse_timestamp(value: str) -> datetime:
    # fromisoformat only accepts a "Z" suffix from Python 3.11
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


@dataclass(frozen=True)
class Job:
    """The job store's record for one source video.

    ``segments`` and ``transcript_segments`` hold the raw JSON text produced
    upstream; they are parsed by the analyzers, never here.
    """

    id: str
    source_video_id: str
    raw_video_key: str | None = None
    segments: str | None = None
    transcript_segments: str | None = None
    generated_title: str | None = None
    edited_video_key: str | None = None
    thumbnail_key: str | None = None
    status: JobStatus = JobStatus.ANALYZED
    error_message: str | None = None
    updated_at: datetime | None = None
    updated_by: str | None = "SYSTEM"

    def with_changes(self, **changes: Any) -> "Job":
        """Return a copy with *changes* applied and the audit fields stamped."""
        changes.setdefault("updated_at", datetime.now(timezone.utc))
        changes.setdefault("updated_by", "SYSTEM")
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Job":
        if "id" not in data or "youtubeVideoId" not in data:
            raise ValueError("Job record must contain 'id' and 'youtubeVideoId' fields")

        kwargs: dict[str, Any] = {}
        for key, attr in _JOB_FIELDS.items():
            if key in data and data[key] is not None:
                value = data[key]
                # segments may arrive already decoded
                if attr in ("segments", "transcript_segments") and not isinstance(value, str):
                    value = json.dumps(value)
                kwargs[attr] = str(value) if attr in ("id", "source_video_id") else value
        if data.get("status"):
            kwargs["status"] = JobStatus(data["status"])
        if data.get("updatedAt"):
            kwargs["updated_at"] = _parse_timestamp(data["updatedAt"])
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            key: getattr(self, attr) for key, attr in _JOB_FIELDS.items()
        }
        data["status"] = self.status.value
        data["updatedAt"] = self.updated_at.isoformat() if self.updated_at else None
        return data


class Outcome(str, Enum):
    EDITED = "EDITED"
    SKIPPED = "SKIPPED"
    FAILED = "FAILED"


@dataclass
class EditOutcome:
    """What the engine hands back to its caller for one job.

    ``retriable`` is set by the engine when the failure was a transcoder
    timeout rather than a bad input or a decode error.
    """

    outcome: Outcome
    job: Job
    plan: EditPlan | None = None
    error: Exception | None = None
    stages: list[str] = field(default_factory=list)
    retriable: bool = False
