"""
In-memory store for jobs, settings and ignore lists.
Process lifetime only - everything is lost on restart.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from ..errors import InternalError, NotFoundError
from .models import (
    Credentials, IgnoredId, Job, JobStatus, LogEntry, LogStatus, MarginRules,
    FAILED_ITEMS_MESSAGE, default_settings, utcnow_iso
)

logger = logging.getLogger(__name__)


class IgnoreList:
    """Insertion-ordered set of opaque identifiers."""

    def __init__(self):
        self._ids: Dict[IgnoredId, None] = {}

    def add(self, ids: Iterable[IgnoredId]) -> List[IgnoredId]:
        for item in ids:
            self._ids.setdefault(item, None)
        return self.items()

    def remove(self, ids: Iterable[IgnoredId]) -> List[IgnoredId]:
        for item in ids:
            self._ids.pop(item, None)
        return self.items()

    def items(self) -> List[IgnoredId]:
        return list(self._ids)

    def __contains__(self, item: IgnoredId) -> bool:
        return item in self._ids

    def __len__(self) -> int:
        return len(self._ids)


class MemoryStore:
    """
    Holds all mutable service state.

    One instance is built at startup and handed to the routes and the
    job runner. Job state transitions go through this object so the
    queued -> running -> completed/failed order is enforced in one place.
    """

    JOB_ID_PREFIX = "JOB-"

    def __init__(self):
        self._jobs: Dict[str, Job] = {}
        self._job_counter = 1
        self._settings: Dict[str, Any] = default_settings()
        self.ignored_suppliers = IgnoreList()
        self.ignored_categories = IgnoreList()

    # ===== Settings =====

    def get_settings(self) -> Dict[str, Any]:
        return dict(self._settings)

    def update_settings(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Shallow merge: top-level keys in `changes` replace whole sections."""
        self._settings = {**self._settings, **changes}
        return self.get_settings()

    def current_rules(self) -> MarginRules:
        """Parse the margin rules currently in effect."""
        return MarginRules.model_validate(self._settings.get("rules") or {})

    # ===== Jobs =====

    def _next_job_id(self) -> str:
        job_id = f"{self.JOB_ID_PREFIX}{self._job_counter:05d}"
        self._job_counter += 1
        return job_id

    def create_job(
        self,
        kind: Optional[str],
        product_codes: List[str],
        credentials: Credentials,
        rules: MarginRules,
    ) -> Job:
        """Create a queued job. Codes, credentials and rules are fixed from here on."""
        job = Job(
            id=self._next_job_id(),
            kind=kind,
            total=len(product_codes),
            product_codes=list(product_codes),
            credentials=credentials,
            rules=rules,
        )
        self._jobs[job.id] = job
        logger.info(f"Created job {job.id} ({kind}) for {job.total} products")
        return job

    def get_job(self, job_id: str) -> Job:
        job = self._jobs.get(job_id)
        if job is None:
            raise NotFoundError("Job not found.")
        return job

    def list_jobs(self) -> List[Job]:
        return list(self._jobs.values())

    def start_job(self, job_id: str) -> Job:
        job = self.get_job(job_id)
        if job.status != JobStatus.QUEUED:
            raise InternalError(f"Job {job_id} cannot start from status '{job.status.value}'")
        job.status = JobStatus.RUNNING
        return job

    def record_item(self, job_id: str, entry: LogEntry) -> Job:
        """Append one item outcome. Keeps len(logs) == done."""
        job = self.get_job(job_id)
        if job.status != JobStatus.RUNNING:
            raise InternalError(f"Job {job_id} is not running (status '{job.status.value}')")
        if job.done >= job.total:
            raise InternalError(f"Job {job_id} already processed all {job.total} items")

        job.logs.append(entry)
        job.done += 1
        if entry.status == LogStatus.FAILED and job.error is None:
            job.error = FAILED_ITEMS_MESSAGE
        return job

    def finish_job(self, job_id: str, error: Optional[str] = None) -> Job:
        """Move a running job to its terminal status. Only happens once."""
        job = self.get_job(job_id)
        if job.status.is_terminal:
            raise InternalError(f"Job {job_id} already finished with status '{job.status.value}'")

        if error and job.error is None:
            job.error = error
        job.status = JobStatus.FAILED if job.error else JobStatus.COMPLETED
        job.ended = utcnow_iso()
        return job
