"""Background analysis jobs for the HTTP server.

Each POST /api/analyze starts one job on its own thread. The job record is the
only channel back to the caller: it is polled through GET /api/analyze/<id>.
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger("workflow_analyzer.api")

# Finished jobs kept for polling; the oldest are dropped past this count.
MAX_FINISHED_JOBS = 100


class JobStatus(Enum):
    RUNNING = "running"
    COMPLETE = "complete"
    ERROR = "error"


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class AnalysisJob:
    """One background board analysis."""

    id: str
    board_id: str
    project_id: Optional[str] = None
    status: JobStatus = JobStatus.RUNNING
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    started_at: str = field(default_factory=_utc_now)
    finished_at: Optional[str] = None

    _done: threading.Event = field(default_factory=threading.Event, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "jobId": self.id,
            "boardId": self.board_id,
            "projectId": self.project_id,
            "status": self.status.value,
            "startedAt": self.started_at,
        }
        if self.finished_at:
            payload["finishedAt"] = self.finished_at
        if self.result is not None:
            payload["result"] = self.result
        if self.error is not None:
            payload["error"] = self.error
        return payload

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._done.wait(timeout)


class JobRegistry:
    """Thread-safe store of analysis jobs.

    Running jobs are always kept. Once more than `max_finished` jobs have
    finished, the oldest finished ones are evicted.
    """

    def __init__(self, max_finished: int = MAX_FINISHED_JOBS) -> None:
        self._jobs: Dict[str, AnalysisJob] = {}
        self._lock = threading.Lock()
        self.max_finished = max_finished

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)

    def get(self, job_id: str) -> Optional[AnalysisJob]:
        with self._lock:
            return self._jobs.get(job_id)

    def start(
        self,
        work: Callable[[], Dict[str, Any]],
        *,
        board_id: str,
        project_id: Optional[str] = None,
    ) -> AnalysisJob:
        job = AnalysisJob(id=uuid.uuid4().hex, board_id=board_id, project_id=project_id)
        with self._lock:
            self._jobs[job.id] = job

        thread = threading.Thread(
            target=self._run, args=(job, work), name=f"analysis-{job.id[:8]}", daemon=True
        )
        thread.start()
        return job

    def _run(self, job: AnalysisJob, work: Callable[[], Dict[str, Any]]) -> None:
        try:
            result = work()
        except Exception as exc:
            logger.exception("Background analysis failed for board %s", job.board_id)
            with self._lock:
                job.status = JobStatus.ERROR
                job.error = str(exc)
                job.finished_at = _utc_now()
                self._evict_finished()
        else:
            logger.info(
                "Analysis completed for board %s, project %s", job.board_id, job.project_id or "unknown"
            )
            with self._lock:
                job.status = JobStatus.COMPLETE
                job.result = result
                job.finished_at = _utc_now()
                self._evict_finished()
        finally:
            job._done.set()

    def _evict_finished(self) -> None:
        # Caller holds the lock. Dict order is insertion order, oldest first.
        finished = [job_id for job_id, job in self._jobs.items() if job.status is not JobStatus.RUNNING]
        for job_id in finished[: max(0, len(finished) - self.max_finished)]:
            del self._jobs[job_id]
