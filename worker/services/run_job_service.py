from __future__ import annotations

import json
import logging

from client.core import RPCClient
from shared.protocol.constants import ENCODING
from shared.protocol.messages import HTTPRequest, HTTPResponse

logger = logging.getLogger(__name__)

RUN_JOB_METHOD = "RPCHandler.RunJob"


class RunJobService:
    """Answers HTTP requests after scheduling a job on the supervisor over RPC."""

    def __init__(self, rpc: RPCClient, job_name: str = "jobName", timeout: int = 1000) -> None:
        self.rpc = rpc
        self.job_name = job_name
        self.timeout = timeout

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        job = [self.job_name, request.body.decode(ENCODING, errors="replace"), self.timeout]
        result = self.rpc.call(RUN_JOB_METHOD, job)
        logger.debug("%s accepted %s: %r", RUN_JOB_METHOD, self.job_name, result)
        return HTTPResponse(
            status_code=200,
            headers={"Content-Type": "application/json"},
            body=json.dumps({"method": request.method}).encode(ENCODING),
        )
