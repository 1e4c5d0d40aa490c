from .http_service import HTTPService
from .job_service import JobService
from .run_job_service import RUN_JOB_METHOD, RunJobService

__all__ = ["HTTPService", "JobService", "RunJobService", "RUN_JOB_METHOD"]
