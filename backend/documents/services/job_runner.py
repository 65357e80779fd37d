"""
Checkpointed steps for background jobs.

A job is split into named steps. Once a step has completed its result is
stored under ``(job_id, name)``; when the job is retried the stored result is
returned and the step is not run again. Step results must be JSON
serialisable.
"""

import logging

from django.db import IntegrityError, transaction

from ..models import JobTask

logger = logging.getLogger(__name__)


class JobRunIO:
    """Durable step runner backed by the JobTask table."""

    def __init__(self, job_id: str):
        self.job_id = job_id

    def get_result(self, name: str):
        """Return (found, result) for a step of this job."""
        task = JobTask.objects.filter(job_id=self.job_id, name=name).first()
        if task is None:
            return False, None
        return True, task.result

    def run_task(self, name: str, callback, atomic: bool = False):
        """
        Run a step once per job.

        Args:
            name: step name, unique within the job
            callback: zero-argument callable producing the step result
            atomic: run the callback and record the checkpoint in one
                transaction, so either both commit or neither does

        Returns:
            The step result, fresh or from a previous run.
        """
        found, result = self.get_result(name)
        if found:
            logger.info("Job %s: step '%s' already done, reusing result", self.job_id, name)
            return result

        if atomic:
            with transaction.atomic():
                result = callback()
                JobTask.objects.create(job_id=self.job_id, name=name, result=result)
            return result

        result = callback()
        try:
            with transaction.atomic():
                JobTask.objects.create(job_id=self.job_id, name=name, result=result)
        except IntegrityError:
            # Another attempt recorded the step first; keep its result
            _found, result = self.get_result(name)

        return result


class LocalJobRunIO:
    """Step runner for synchronous calls without a job: every step runs once, in memory."""

    def __init__(self):
        self.results = {}

    def run_task(self, name: str, callback, atomic: bool = False):
        if name in self.results:
            return self.results[name]

        if atomic:
            with transaction.atomic():
                result = callback()
        else:
            result = callback()

        self.results[name] = result
        return result
