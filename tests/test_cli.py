"""Tests for the command-line entry point."""

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

from shortsforge.cli import main
from shortsforge.models import EditOutcome, Job, JobStatus, Outcome, SourceVideoInfo


class TestProcessCommand:
    @patch("shortsforge.cli.S3Storage")
    @patch("shortsforge.cli.process_job")
    def test_writes_updated_job(self, mock_process, mock_storage, sample_job_path, sample_config_path, tmp_path):
        def fake(job, store, config, on_progress=None):
            return EditOutcome(
                Outcome.EDITED,
                job.with_changes(status=JobStatus.EDITED, edited_video_key="edited/clips/v/42.mp4"),
            )

        mock_process.side_effect = fake
        out = tmp_path / "job_out.json"

        code = main(["process", str(sample_job_path), "-c", str(sample_config_path), "-o", str(out)])

        assert code == 0
        data = json.loads(out.read_text())
        assert data["status"] == "EDITED"
        assert data["editedVideoS3Key"] == "edited/clips/v/42.mp4"
        mock_storage.assert_called_once_with("shorts-media", url_ttl_seconds=3600)

    @patch("shortsforge.cli.S3Storage", MagicMock())
    @patch("shortsforge.cli.process_job")
    def test_exit_codes(self, mock_process, sample_job_path, sample_config_path, capsys):
        job = Job(id="1", source_video_id="v")
        mock_process.return_value = EditOutcome(Outcome.SKIPPED, job)
        assert main(["process", str(sample_job_path), "-c", str(sample_config_path)]) == 2

        mock_process.return_value = EditOutcome(Outcome.FAILED, job, error=RuntimeError("boom"))
        assert main(["process", str(sample_job_path), "-c", str(sample_config_path)]) == 1
        assert "boom" in capsys.readouterr().err


class TestPlanCommand:
    @patch("shortsforge.cli.ffutil.probe")
    def test_prints_resolved_plan(self, mock_probe, sample_job_path, capsys):
        mock_probe.return_value = SourceVideoInfo(duration_ms=600_000, width=1920, height=1080)

        assert main(["plan", "video.mp4", "--job", str(sample_job_path)]) == 0

        plan = json.loads(capsys.readouterr().out)
        assert plan["editingStrategy"] == "story_flow"
        assert [c["title"] for c in plan["clips"]] == ["Setup", "Payoff"]
        assert plan["totalDurationMs"] == 75_000

    @patch("shortsforge.cli.ffutil.probe")
    def test_without_job_uses_fallback(self, mock_probe, capsys):
        mock_probe.return_value = SourceVideoInfo(duration_ms=20_000, width=1920, height=1080)
        assert main(["plan", "video.mp4"]) == 0
        plan = json.loads(capsys.readouterr().out)
        assert plan["editingStrategy"] == "fallback"
        assert plan["clips"][0]["endTimeMs"] == 20_000


class TestNoCommand:
    def test_prints_help(self, capsys):
        assert main([]) == 0
        assert "shortsforge" in capsys.readouterr().out
