"""Per-job scratch directory with registered temp files."""

import logging
import re
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


class JobWorkspace:
    """A private directory for one job invocation.

    Every path handed out by :meth:`path` is registered and deleted by
    :meth:`cleanup`, which runs on exit from the ``with`` block whether or not
    the pipeline failed. Deletion failures are logged and never raised, so they
    cannot mask the error that aborted the job.
    """

    def __init__(self, root: Path, job_id: str):
        self.root = Path(root)
        self.job_id = job_id
        self.dir: Path | None = None
        self._files: list[Path] = []

    def __enter__(self) -> "JobWorkspace":
        self.root.mkdir(parents=True, exist_ok=True)
        # mkdtemp keeps concurrent runs of the same job id apart
        safe_id = re.sub(r"[^\w-]", "_", str(self.job_id))
        self.dir = Path(tempfile.mkdtemp(prefix=f"job_{safe_id}_", dir=self.root))
        logger.debug("Workspace for job %s: %s", self.job_id, self.dir)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()

    def path(self, name: str) -> Path:
        """Return (and register) a file path inside the workspace."""
        if self.dir is None:
            raise RuntimeError("JobWorkspace used outside of its 'with' block")
        p = self.dir / name
        self._files.append(p)
        return p

    @property
    def files(self) -> list[Path]:
        return list(self._files)

    def cleanup(self) -> None:
        for p in self._files:
            try:
                p.unlink(missing_ok=True)
            except OSError as e:
                logger.warning("Failed to delete temp file %s: %s", p, e)
        self._files.clear()

        if self.dir is not None:
            try:
                self.dir.rmdir()
            except OSError as e:
                logger.warning("Failed to remove workspace %s: %s", self.dir, e)
            self.dir = None
