from __future__ import annotations

import logging

from shared.protocol.constants import ENCODING
from shared.protocol.messages import JobRequest, JobResponse

logger = logging.getLogger(__name__)


class JobService:
    """Runs background jobs pushed by the supervisor; the demo job only logs its input."""

    def handle(self, request: JobRequest) -> JobResponse:
        logger.info("Running job %s (timeout=%sms)", request.name, request.timeout)
        logger.info("Job payload: %s", request.payload.decode(ENCODING, errors="replace"))
        logger.info("Job %s done", request.name)
        return JobResponse(payload=b"ok")
