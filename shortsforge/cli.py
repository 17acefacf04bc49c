"""Thin CLI entry point — loads a job and config, then calls the engine."""

import argparse
import json
import logging
import sys
from pathlib import Path

from shortsforge import ffutil
from shortsforge.analyzers.edit_plan import resolve_edit_plan
from shortsforge.config import PlanLimits, load_config
from shortsforge.engine import process_job
from shortsforge.models import Job, Outcome
from shortsforge.storage import S3Storage

EXIT_CODES = {Outcome.EDITED: 0, Outcome.FAILED: 1, Outcome.SKIPPED: 2}


def _load_job(path: Path) -> Job:
    return Job.from_dict(json.loads(path.read_text()))


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="shortsforge",
        description="ShortsForge: cut, join and caption long videos into vertical shorts.",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command")

    proc = sub.add_parser("process", help="Edit one analyzed job")
    proc.add_argument("job", type=Path, help="Job record JSON file")
    proc.add_argument("--config", "-c", type=Path, required=True, help="Pipeline config JSON file")
    proc.add_argument("--output", "-o", type=Path, help="Write the updated job here (default: stdout)")

    plan = sub.add_parser("plan", help="Show the edit plan a job would get for a local video")
    plan.add_argument("video", type=Path, help="Local source video")
    plan.add_argument("--job", "-j", type=Path, help="Job record JSON file with segments")
    plan.add_argument("--config", "-c", type=Path, help="Pipeline config JSON file")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "plan":
        config = load_config(args.config) if args.config else None
        segments = _load_job(args.job).segments if args.job else None
        info = ffutil.probe(args.video, ffprobe=config.ffprobe_path if config else "ffprobe")
        resolved = resolve_edit_plan(segments, info, config.limits if config else PlanLimits())
        print(json.dumps(resolved.to_dict(), indent=2, ensure_ascii=False))
        return 0

    config = load_config(args.config)
    job = _load_job(args.job)
    store = S3Storage(config.bucket, url_ttl_seconds=config.presigned_url_ttl_seconds)

    def on_progress(stage: str, frac: float) -> None:
        print(f"  [{frac:3.0%}] {stage}", file=sys.stderr)

    result = process_job(job, store, config, on_progress=on_progress)

    payload = json.dumps(result.job.to_dict(), indent=2, ensure_ascii=False)
    if args.output:
        args.output.write_text(payload + "\n", encoding="utf-8")
    else:
        print(payload)

    if result.outcome is Outcome.FAILED:
        hint = " (timeout, retriable)" if result.retriable else ""
        print(f"Failed{hint}: {result.error}", file=sys.stderr)
    return EXIT_CODES[result.outcome]


if __name__ == "__main__":
    sys.exit(main())
