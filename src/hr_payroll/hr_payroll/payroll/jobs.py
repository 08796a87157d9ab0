from __future__ import annotations

import logging
import threading
import uuid
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_PAYROLL_WORKERS, PAYROLL_JOB_HISTORY_LIMIT
from ..core.enums import JobStatus
from ..core.exceptions import NotFoundError
from .model import PayrollJob
from .service import PayrollService

logger = logging.getLogger(__name__)


class PayrollJobRunner:
    """Runs bulk payroll generation off the request thread.

    Jobs live in memory and are polled by id. Only the ``max_finished`` most recently
    finished jobs are kept; older ones are forgotten and polling them gives NotFoundError.
    Queued and running jobs are never evicted.
    """

    def __init__(
        self,
        payroll_service: PayrollService,
        *,
        max_workers: int = DEFAULT_PAYROLL_WORKERS,
        max_finished: int = PAYROLL_JOB_HISTORY_LIMIT,
        executor: Optional[ThreadPoolExecutor] = None,
        clock: Callable = now_local,
    ):
        self._service = payroll_service
        self._executor = executor or ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="payroll-job")
        self._clock = clock
        self._max_finished = max(int(max_finished), 1)
        self._jobs: dict[str, PayrollJob] = {}
        self._finished: deque[str] = deque()
        self._lock = threading.Lock()

    def submit(self, month: int, year: int) -> str:
        job = PayrollJob(job_id=uuid.uuid4().hex, month=int(month), year=int(year), submitted_at=self._clock())
        with self._lock:
            self._jobs[job.job_id] = job
        self._executor.submit(self._run, job.job_id)
        logger.info("Queued bulk payroll job %s for %02d/%s", job.job_id, job.month, job.year)
        return job.job_id

    def _run(self, job_id: str) -> None:
        with self._lock:
            job = self._jobs[job_id]
            job.status = JobStatus.RUNNING
        try:
            result = self._service.bulk_generate(job.month, job.year)
        except Exception as e:
            logger.exception("Bulk payroll job %s failed", job_id)
            with self._lock:
                job.status = JobStatus.FAILED
                job.error = str(e)
                self._finish(job)
            return

        with self._lock:
            job.result = result
            job.status = JobStatus.DONE
            self._finish(job)

    def _finish(self, job: PayrollJob) -> None:
        # Caller holds the lock.
        job.finished_at = self._clock()
        self._finished.append(job.job_id)
        while len(self._finished) > self._max_finished:
            evicted = self._finished.popleft()
            self._jobs.pop(evicted, None)
            logger.debug("Evicted finished payroll job %s", evicted)

    def get(self, job_id: str) -> PayrollJob:
        with self._lock:
            job = self._jobs.get(job_id)
            if not job:
                raise NotFoundError("Payroll job not found")
            return PayrollJob(**vars(job))

    def shutdown(self, *, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
