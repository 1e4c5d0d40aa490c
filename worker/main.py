from __future__ import annotations

import logging
import sys

from client.core import RPCClient
from shared.protocol.commands import MsgType
from shared.protocol.errors import ExitCode
from worker.config import WORKER_CONFIG, load_worker_config
from worker.core import Dispatcher, HandlerRouter, typed_handler
from worker.services import HTTPService, JobService, RunJobService


def build_router(rpc: RPCClient) -> HandlerRouter:
    router = HandlerRouter()
    router.register("http", typed_handler(MsgType.HTTP_REQUEST, HTTPService().handle))
    router.register("job", typed_handler(MsgType.JOB_REQUEST, JobService().handle))
    router.register("runjob", typed_handler(MsgType.HTTP_REQUEST, RunJobService(rpc).handle))
    return router


def run_worker() -> ExitCode:
    load_worker_config()
    # stdout carries frames, so logs must stay on stderr.
    logging.basicConfig(level=WORKER_CONFIG["log_level"], stream=sys.stderr)
    logger = logging.getLogger("worker")

    rpc = RPCClient(WORKER_CONFIG["rpc_address"])
    router = build_router(rpc)
    handler = router.resolve(WORKER_CONFIG["handler"])
    logger.info("Starting worker with handler %s (on_error=%s)", WORKER_CONFIG["handler"], WORKER_CONFIG["on_error"])

    try:
        with Dispatcher(chunk_size=WORKER_CONFIG["chunk_size"], on_error=WORKER_CONFIG["on_error"]) as dispatcher:
            code = dispatcher.run(handler)
    finally:
        rpc.close()
    logger.info("Worker exiting with %s", code.name)
    return code


def main() -> None:
    sys.exit(int(run_worker()))


if __name__ == "__main__":
    main()
