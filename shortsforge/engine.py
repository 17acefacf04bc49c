"""Orchestrator — turns one analyzed job into an edited short and its thumbnail."""

import logging
from typing import Callable

from shortsforge import ffutil, storage
from shortsforge.analyzers.edit_plan import resolve_edit_plan
from shortsforge.analyzers.transcript import parse_transcript
from shortsforge.config import EditConfig
from shortsforge.editors.captions import write_srt
from shortsforge.editors.cut import extract_clips, join_clips
from shortsforge.editors.retime import merge_clip_subtitles
from shortsforge.models import EditOutcome, EditPlan, Job, JobStatus, Outcome
from shortsforge.storage import Storage
from shortsforge.workspace import JobWorkspace

logger = logging.getLogger(__name__)


def process_job(
    job: Job,
    store: Storage,
    config: EditConfig,
    on_progress: Callable[[str, float], None] | None = None,
) -> EditOutcome:
    """Run the full edit pipeline for *job*.

    Returns an EDITED outcome carrying the updated job, a SKIPPED outcome if
    the job has no source video, or a FAILED outcome if any stage raised. On
    failure nothing is uploaded and every temp file created so far is removed.

    Args:
        job: Analyzed job record.
        store: Object storage holding the source and receiving the results.
        config: Worker configuration.
        on_progress: Optional callback(stage_name, fraction_complete).
    """
    stages: list[str] = []

    def _progress(stage: str, frac: float) -> None:
        if not stages or stages[-1] != stage:
            stages.append(stage)
        if on_progress:
            on_progress(stage, frac)

    logger.info("Edit started: job=%s video=%s", job.id, job.source_video_id)

    if not job.raw_video_key:
        logger.warning("Job %s has no source video key; skipping", job.id)
        return EditOutcome(outcome=Outcome.SKIPPED, job=job, stages=stages)

    try:
        with JobWorkspace(config.temp_dir, job.id) as ws:
            plan, edited_key, thumb_key = _run_pipeline(job, store, config, ws, _progress)
    except Exception as e:
        logger.exception("Edit failed: job=%s", job.id)
        failed = job.with_changes(status=JobStatus.FAILED, error_message=str(e))
        return EditOutcome(
            outcome=Outcome.FAILED,
            job=failed,
            error=e,
            stages=stages,
            retriable=isinstance(e, ffutil.TranscodeTimeoutError),
        )

    _progress("Done", 1.0)
    logger.info("Edit finished: job=%s video=%s", job.id, edited_key)
    edited = job.with_changes(
        edited_video_key=edited_key,
        thumbnail_key=thumb_key,
        status=JobStatus.EDITED,
        error_message=None,
    )
    return EditOutcome(outcome=Outcome.EDITED, job=edited, plan=plan, stages=stages)


def _run_pipeline(
    job: Job,
    store: Storage,
    config: EditConfig,
    ws: JobWorkspace,
    _progress: Callable[[str, float], None],
) -> tuple[EditPlan, str, str]:
    ffmpeg = config.ffmpeg_path
    timeout = config.timeout_seconds

    def _sub_progress(stage: str, base: float, span: float):
        """Return a callback that maps a step's [0,1] to [base, base+span]."""
        def cb(frac: float) -> None:
            _progress(stage, base + frac * span)
        return cb

    ffutil.check_ffmpeg(ffmpeg, config.ffprobe_path)

    # --- Download & probe ---
    _progress("Downloading source", 0.0)
    source_path = ws.path("source.mp4")
    url = store.generate_presigned_download_url(job.raw_video_key)
    storage.download(url, source_path, timeout=config.download_timeout_seconds)

    _progress("Probing video metadata", 0.10)
    info = ffutil.probe(source_path, ffprobe=config.ffprobe_path, timeout=timeout)
    logger.debug(
        "Source %s: %dms %dx%d", job.raw_video_key, info.duration_ms, info.width, info.height
    )

    # --- Plan ---
    _progress("Resolving edit plan", 0.15)
    plan = resolve_edit_plan(job.segments, info, config.limits)
    transcript = parse_transcript(job.transcript_segments)

    # --- Cut & join ---
    _progress(f"Cutting {len(plan.clips)} clip(s)", 0.20)
    clips = extract_clips(
        source_path, plan, transcript, ws, ffmpeg=ffmpeg, timeout=timeout,
        on_progress=_sub_progress(f"Cutting {len(plan.clips)} clip(s)", 0.20, 0.30),
    )
    if len(clips.paths) > 1:
        _progress("Joining clips", 0.50)
    joined = join_clips(clips, ws, ffmpeg=ffmpeg, timeout=timeout)

    # --- Subtitles ---
    _progress("Building subtitles", 0.55)
    merged = merge_clip_subtitles(clips.subtitle_blocks, clips.durations_ms)
    srt_path = write_srt(merged, ws.path("subtitles.srt"))
    if srt_path is None:
        logger.info("No subtitles for job %s", job.id)

    # --- Format & overlay ---
    _progress("Resizing to vertical", 0.60)
    resized = ffutil.resize_vertical(
        joined, ws.path("resized.mp4"),
        width=config.output_width, height=config.output_height,
        ffmpeg=ffmpeg, timeout=timeout,
    )

    _progress("Burning in title and subtitles", 0.72)
    overlaid = ffutil.add_text_overlay(
        resized, ws.path("final.mp4"),
        title=job.generated_title or config.default_title,
        subtitle_path=srt_path,
        font_path=config.font_path,
        font_name=config.font_name,
        ffmpeg=ffmpeg, timeout=timeout,
    )

    _progress("Extracting thumbnail", 0.85)
    thumb = ffutil.thumbnail(
        overlaid, ws.path("thumbnail.jpg"), plan.total_duration_ms // 2,
        ffmpeg=ffmpeg, timeout=timeout,
    )

    # --- Upload ---
    _progress("Uploading", 0.90)
    edited_key = storage.edited_video_key(
        config.edited_videos_prefix, job.source_video_id, job.id
    )
    thumb_key = storage.thumbnail_key(config.thumbnails_prefix, job.source_video_id, job.id)
    store.upload(overlaid, edited_key, public_read=True)
    try:
        store.upload(thumb, thumb_key, public_read=True)
    except Exception:
        _discard_upload(store, edited_key)
        raise

    return plan, edited_key, thumb_key


def _discard_upload(store: Storage, key: str) -> None:
    """Best-effort removal of an artifact uploaded before a later stage failed."""
    try:
        store.delete(key)
    except Exception as e:
        logger.warning("Failed to remove partial upload %s: %s", key, e)
