from __future__ import annotations

import io
import json
import socketserver
import threading

import pytest

import worker.main
from client.core import RPCClient
from shared.protocol import (
    ExitCode,
    File,
    HTTPRequest,
    HTTPResponse,
    JobRequest,
    JobResponse,
    MsgType,
    Serializer,
    decode_frame,
    encode_frame,
)
from worker.config import DEFAULT_WORKER_CONFIG, WORKER_CONFIG
from worker.core import Dispatcher, HandlerRouter, typed_handler
from worker.services import RUN_JOB_METHOD, HTTPService, JobService, RunJobService


def _serve(handler, *payloads):
    dispatcher = Dispatcher(
        stdin=io.BytesIO(b"".join(encode_frame(p) for p in payloads)),
        stdout=io.BytesIO(),
        stderr=io.BytesIO(),
    )
    code = dispatcher.run(handler)
    out = dispatcher._out.getvalue()
    assert out.startswith(b"ok\n")
    frames = []
    rest = out[3:]
    while rest:
        frame, rest = decode_frame(rest)
        frames.append(frame)
    return code, frames


def test_http_echo_service():
    serializer = Serializer()
    request = HTTPRequest(
        method="POST",
        url="/form",
        headers={"Content-Type": "text/plain"},
        body=b"hello",
        files={"doc": File(filename="a.txt", tmp_path="/tmp/x", size=3)},
        form={"k": "v"},
    )
    handler = typed_handler(MsgType.HTTP_REQUEST, HTTPService().handle)
    code, frames = _serve(handler, serializer.encode(request))

    assert code is ExitCode.CLEAN
    response = serializer.decode(MsgType.HTTP_RESPONSE, frames[0])
    assert response.status_code == 200
    assert response.headers == {"Content-Type": "text/plain"}
    assert json.loads(response.body) == {
        "body": "hello",
        "files": {"doc": {"filename": "a.txt", "size": 3, "tmpPath": "/tmp/x"}},
        "form": {"k": "v"},
    }


def test_job_service_handles_several_jobs():
    serializer = Serializer()
    jobs = [JobRequest(name=f"job-{i}", payload=b"data", timeout=10) for i in range(3)]
    handler = typed_handler(MsgType.JOB_REQUEST, JobService().handle)
    code, frames = _serve(handler, *(serializer.encode(job) for job in jobs))

    assert code is ExitCode.CLEAN
    assert [serializer.decode(MsgType.JOB_RESPONSE, f) for f in frames] == [JobResponse(payload=b"ok")] * 3


def test_typed_handler_rejects_wrong_return_type():
    handler = typed_handler(MsgType.JOB_REQUEST, lambda request: b"raw")
    code, frames = _serve(handler, Serializer().encode(JobRequest(name="a")))
    assert code is ExitCode.HANDLER_FAILED
    assert frames == []


class RunJobPeer(socketserver.StreamRequestHandler):
    def handle(self):
        for line in self.rfile:
            request = json.loads(line)
            self.server.requests.append(request)
            reply = {"id": request["id"], "result": True, "error": self.server.error}
            self.wfile.write(json.dumps(reply).encode("utf-8") + b"\n")


@pytest.fixture
def job_peer():
    server = socketserver.ThreadingTCPServer(("127.0.0.1", 0), RunJobPeer)
    server.daemon_threads = True
    server.requests = []
    server.error = None
    threading.Thread(target=server.serve_forever, daemon=True).start()
    yield server
    server.shutdown()
    server.server_close()


def test_run_job_service_calls_back_over_rpc(job_peer):
    host, port = job_peer.server_address[:2]
    serializer = Serializer()
    with RPCClient(f"{host}:{port}") as rpc:
        handler = typed_handler(MsgType.HTTP_REQUEST, RunJobService(rpc).handle)
        code, frames = _serve(handler, serializer.encode(HTTPRequest(method="PUT", url="/", body=b"Data!")))

    assert code is ExitCode.CLEAN
    assert job_peer.requests[0]["method"] == RUN_JOB_METHOD
    assert job_peer.requests[0]["params"] == [["jobName", "Data!", 1000]]
    response = serializer.decode(MsgType.HTTP_RESPONSE, frames[0])
    assert response == HTTPResponse(
        status_code=200,
        headers={"Content-Type": "application/json"},
        body=b'{"method": "PUT"}',
    )


def test_run_job_remote_error_terminates_worker(job_peer):
    job_peer.error = "queue full"
    host, port = job_peer.server_address[:2]
    with RPCClient(f"{host}:{port}") as rpc:
        handler = typed_handler(MsgType.HTTP_REQUEST, RunJobService(rpc).handle)
        code, frames = _serve(handler, Serializer().encode(HTTPRequest(method="GET", url="/")))
    assert code is ExitCode.HANDLER_FAILED
    assert frames == []


def test_build_router_names():
    router = worker.main.build_router(RPCClient("127.0.0.1:6000"))
    assert router.names() == ["http", "job", "runjob"]
    with pytest.raises(KeyError):
        router.resolve("mail")


def test_handler_router_register_and_resolve():
    router = HandlerRouter()
    router.register("echo", lambda payload: payload)
    assert router.resolve("echo")(b"x") == b"x"


def test_run_worker_uses_configured_handler(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("WORKER_HANDLER", "job")
    stdout = io.BytesIO()
    request = Serializer().encode(JobRequest(name="resize", payload=b"img.png", timeout=1000))

    def fake_dispatcher(**kwargs):
        return Dispatcher(stdin=io.BytesIO(encode_frame(request)), stdout=stdout, stderr=io.BytesIO(), **kwargs)

    monkeypatch.setattr(worker.main, "Dispatcher", fake_dispatcher)
    try:
        code = worker.main.run_worker()
    finally:
        WORKER_CONFIG.clear()
        WORKER_CONFIG.update(DEFAULT_WORKER_CONFIG)

    assert code is ExitCode.CLEAN
    expected = Serializer().encode(JobResponse(payload=b"ok"))
    assert stdout.getvalue() == b"ok\n" + encode_frame(expected)
