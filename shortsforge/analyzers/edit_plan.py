"""Edit plan analyzer — turns upstream AI segment output into a usable EditPlan.

Upstream output arrives in one of two shapes:

* a native plan, ``{"clips": [...], "totalDurationMs": ..., "editingStrategy": ...}``
* a legacy ranked list of single segments, ``[{"startTimeMs": ..., ...}, ...]``

:func:`parse_plan_payload` classifies the raw JSON into exactly one of
:class:`NativeEditPlan`, :class:`LegacySegments` or :class:`ParseFailure`.
:func:`resolve_edit_plan` normalizes it, validates it against the probed
source, and substitutes a deterministic fallback when anything is missing or
wrong. Resolution never raises.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any

from shortsforge.config import PlanLimits
from shortsforge.models import ClipSegment, EditPlan, SourceVideoInfo

logger = logging.getLogger(__name__)

STRATEGY_SINGLE_CLIP = "single_clip"
STRATEGY_FALLBACK = "fallback"
STRATEGY_FALLBACK_DEFAULT = "fallback_default"
DEFAULT_STRATEGY = "highlight_compilation"
DEFAULT_TRANSITION = "hard_cut"


@dataclass(frozen=True)
class NativeEditPlan:
    clips: tuple[ClipSegment, ...]
    declared_total_ms: int | None
    editing_strategy: str
    transition_style: str


@dataclass(frozen=True)
class LegacySegments:
    segments: tuple[ClipSegment, ...]


@dataclass(frozen=True)
class ParseFailure:
    reason: str


ParsedPlan = NativeEditPlan | LegacySegments | ParseFailure


class _BadRecord(ValueError):
    pass


def _as_int(value: Any, name: str) -> int:
    if isinstance(value, bool) or value is None:
        raise _BadRecord(f"{name} must be a number, got {value!r}")
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        raise _BadRecord(f"{name} must be a number, got {value!r}") from None


def _as_clip(record: Any, position: int) -> ClipSegment:
    if not isinstance(record, dict):
        raise _BadRecord(f"clip #{position} is not an object")
    for key in ("startTimeMs", "endTimeMs"):
        if key not in record:
            raise _BadRecord(f"clip #{position} is missing {key}")

    keywords = record.get("keywords") or []
    return ClipSegment(
        order_index=_as_int(record.get("orderIndex", position), "orderIndex"),
        start_time_ms=_as_int(record["startTimeMs"], "startTimeMs"),
        end_time_ms=_as_int(record["endTimeMs"], "endTimeMs"),
        title=str(record.get("title") or ""),
        description=record.get("description") if isinstance(record.get("description"), str) else None,
        keywords=tuple(k for k in keywords if isinstance(k, str)) if isinstance(keywords, list) else (),
    )


def parse_plan_payload(raw: str | None) -> ParsedPlan:
    """Classify the raw ``segments`` field. Never raises."""
    if raw is None or not raw.strip():
        return ParseFailure("no segments supplied")

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        return ParseFailure(f"invalid JSON: {e}")

    try:
        if isinstance(data, dict) and "clips" in data:
            clips = data["clips"]
            if not isinstance(clips, list):
                return ParseFailure("'clips' is not a list")
            parsed = [_as_clip(c, i) for i, c in enumerate(clips)]
            declared = data.get("totalDurationMs")
            return NativeEditPlan(
                clips=tuple(sorted(parsed, key=lambda c: c.order_index)),
                declared_total_ms=None if declared is None else _as_int(declared, "totalDurationMs"),
                editing_strategy=str(data.get("editingStrategy") or DEFAULT_STRATEGY),
                transition_style=str(data.get("transitionStyle") or DEFAULT_TRANSITION),
            )
        if isinstance(data, list):
            if not data:
                return ParseFailure("empty segment list")
            return LegacySegments(
                segments=tuple(_as_clip(r, 0) for r in data)
            )
    except _BadRecord as e:
        return ParseFailure(str(e))

    return ParseFailure(f"unrecognized segments shape: {type(data).__name__}")


def legacy_plans(parsed: LegacySegments) -> list[EditPlan]:
    """One single-clip plan per legacy record, in upstream rank order."""
    return [
        EditPlan.from_clips([seg], editing_strategy=STRATEGY_SINGLE_CLIP)
        for seg in parsed.segments
    ]


def to_edit_plan(parsed: NativeEditPlan | LegacySegments) -> EditPlan:
    """Normalize a successfully parsed payload into the canonical EditPlan.

    Legacy payloads use their first (highest-ranked) record. The total is
    recomputed from the clips.
    """
    if isinstance(parsed, LegacySegments):
        return legacy_plans(parsed)[0]
    return EditPlan.from_clips(
        list(parsed.clips),
        editing_strategy=parsed.editing_strategy,
        transition_style=parsed.transition_style,
    )


def validate_plan(
    plan: EditPlan,
    source: SourceVideoInfo,
    limits: PlanLimits,
    declared_total_ms: int | None = None,
) -> str | None:
    """Return the first reason *plan* is unusable, or None if it is valid."""
    if not plan.clips:
        return "plan has no clips"
    if len(plan.clips) > limits.max_clips:
        return f"{len(plan.clips)} clips exceeds the limit of {limits.max_clips}"

    for clip in plan.clips:
        label = f"clip {clip.order_index}"
        if clip.start_time_ms < 0 or clip.end_time_ms > source.duration_ms:
            return (
                f"{label} [{clip.start_time_ms}, {clip.end_time_ms}) is outside "
                f"the source [0, {source.duration_ms})"
            )
        if clip.end_time_ms <= clip.start_time_ms:
            return f"{label} ends at or before its start"
        if clip.duration_ms < limits.min_clip_duration_ms:
            return (
                f"{label} is {clip.duration_ms}ms, shorter than "
                f"{limits.min_clip_duration_ms}ms"
            )

    computed_total = sum(c.duration_ms for c in plan.clips)
    for total in (plan.total_duration_ms, computed_total, declared_total_ms):
        if total is not None and total > limits.max_total_duration_ms:
            return (
                f"total duration {total}ms exceeds the cap of "
                f"{limits.max_total_duration_ms}ms"
            )
    return None


def fallback_plan(
    source: SourceVideoInfo, limits: PlanLimits, strategy: str = STRATEGY_FALLBACK
) -> EditPlan:
    """Deterministic single clip for when no usable plan exists.

    Starts at ``fallback_start_ms`` when the source leaves room for that
    offset plus a minimum-length clip, otherwise at 0, and runs for
    ``fallback_duration_ms`` capped at the end of the source.
    """
    duration = source.duration_ms
    if duration >= limits.fallback_start_ms + limits.min_clip_duration_ms:
        start = min(limits.fallback_start_ms, duration)
    else:
        start = 0
    end = min(start + limits.fallback_duration_ms, duration)

    clip = ClipSegment(order_index=0, start_time_ms=start, end_time_ms=end, title=strategy)
    return EditPlan.from_clips([clip], editing_strategy=strategy)


def resolve_edit_plan(
    raw_segments: str | None, source: SourceVideoInfo, limits: PlanLimits | None = None
) -> EditPlan:
    """Always return a plan whose clip boundaries are valid for *source*."""
    limits = limits or PlanLimits()
    parsed = parse_plan_payload(raw_segments)

    if isinstance(parsed, ParseFailure):
        logger.info("No usable edit plan (%s); using fallback", parsed.reason)
        plan = fallback_plan(source, limits, STRATEGY_FALLBACK)
    else:
        candidate = to_edit_plan(parsed)
        declared = parsed.declared_total_ms if isinstance(parsed, NativeEditPlan) else None
        reason = validate_plan(candidate, source, limits, declared_total_ms=declared)
        if reason is None:
            logger.info(
                "Using %s plan: %d clip(s), %dms",
                candidate.editing_strategy, len(candidate.clips), candidate.total_duration_ms,
            )
            return candidate
        logger.warning("Rejected edit plan: %s; using fallback", reason)
        plan = fallback_plan(source, limits, STRATEGY_FALLBACK_DEFAULT)

    clip = plan.clips[0]
    logger.info(
        "Fallback clip [%d, %d) for %dms source",
        clip.start_time_ms, clip.end_time_ms, source.duration_ms,
    )
    return plan
