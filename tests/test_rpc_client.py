from __future__ import annotations

import json
import socket
import socketserver
import threading

import pytest

from client.config import ConfigError
from client.core import RPCClient
from client.main import run_client
from shared.protocol import DecodeError, EncodeError, RPCMismatchError, RPCRemoteError, TransportError


class LinePeer(socketserver.StreamRequestHandler):
    """Test peer: one JSON request per line, reply chosen by server.responder."""

    def handle(self):
        self.server.connections += 1
        for line in self.rfile:
            request = json.loads(line)
            self.server.requests.append(request)
            reply = self.server.responder(request)
            if reply is None:
                return
            if isinstance(reply, bytes):
                self.wfile.write(reply)
            else:
                self.wfile.write(json.dumps(reply).encode("utf-8") + b"\n")


def _echo(request):
    return {"id": request["id"], "result": request["params"][0], "error": None}


@pytest.fixture
def peer():
    server = socketserver.ThreadingTCPServer(("127.0.0.1", 0), LinePeer)
    server.daemon_threads = True
    server.connections = 0
    server.requests = []
    server.responder = _echo
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    server.server_close()


def _address(server) -> str:
    host, port = server.server_address[:2]
    return f"{host}:{port}"


def test_send_echo_roundtrip(peer):
    with RPCClient(_address(peer)) as rpc:
        response = rpc.send("Echo.Run", {"a": 1})
    assert response.id == peer.requests[0]["id"]
    assert response.result == {"a": 1}
    assert response.error is None
    assert response.ok


def test_request_wire_shape(peer):
    with RPCClient(_address(peer)) as rpc:
        rpc.send("RPCHandler.RunJob", ["jobName", "data", 1000])
    assert peer.requests == [{"id": 1, "method": "RPCHandler.RunJob", "params": [["jobName", "data", 1000]]}]


def test_remote_error_is_decoded(peer):
    peer.responder = lambda request: {"id": request["id"], "result": None, "error": "boom"}
    with RPCClient(_address(peer)) as rpc:
        response = rpc.send("Echo.Run", {"a": 1})
        assert response.error == "boom"
        assert not response.ok
        with pytest.raises(RPCRemoteError) as info:
            rpc.call("Echo.Run", {"a": 1})
    assert info.value.error == "boom"
    assert info.value.method == "Echo.Run"


def test_reply_without_error_field(peer):
    peer.responder = lambda request: {"id": request["id"], "result": 5}
    with RPCClient(_address(peer)) as rpc:
        assert rpc.call("Math.Five") == 5


def test_connection_is_lazy_and_reused(peer):
    rpc = RPCClient(_address(peer))
    assert not rpc.connected
    assert peer.connections == 0
    rpc.send("Echo.Run", 1)
    rpc.send("Echo.Run", 2)
    assert rpc.connected
    assert peer.connections == 1
    assert [r["id"] for r in peer.requests] == [1, 2]
    rpc.close()
    assert not rpc.connected
    rpc.close()


def test_mismatched_reply_id_fails_and_closes(peer):
    peer.responder = lambda request: {"id": request["id"] + 100, "result": None}
    rpc = RPCClient(_address(peer))
    with pytest.raises(RPCMismatchError) as info:
        rpc.send("Echo.Run", 1)
    assert info.value.expected == 1
    assert info.value.received == 101
    assert not rpc.connected


def test_peer_closing_without_reply_is_transport_error(peer):
    peer.responder = lambda request: None
    rpc = RPCClient(_address(peer))
    with pytest.raises(TransportError):
        rpc.send("Echo.Run", 1)
    assert not rpc.connected


def test_invalid_reply_is_decode_error(peer):
    peer.responder = lambda request: b"not json\n"
    rpc = RPCClient(_address(peer))
    with pytest.raises(DecodeError):
        rpc.send("Echo.Run", 1)
    assert not rpc.connected


def test_reply_missing_id_is_decode_error(peer):
    peer.responder = lambda request: {"result": 1}
    rpc = RPCClient(_address(peer))
    with pytest.raises(DecodeError):
        rpc.send("Echo.Run", 1)


def test_oversized_reply_is_rejected(peer):
    peer.responder = lambda request: {"id": request["id"], "result": "x" * 1000}
    rpc = RPCClient(_address(peer), max_line_size=64)
    with pytest.raises(TransportError):
        rpc.send("Echo.Run", 1)
    assert not rpc.connected


def test_connection_refused_names_address():
    with socket.socket() as spare:
        spare.bind(("127.0.0.1", 0))
        port = spare.getsockname()[1]
    address = f"127.0.0.1:{port}"
    rpc = RPCClient(address)
    with pytest.raises(TransportError) as info:
        rpc.send("Echo.Run", 1)
    assert address in str(info.value)
    assert not rpc.connected


def test_invalid_request_is_encode_error_before_connecting(peer):
    rpc = RPCClient(_address(peer))
    with pytest.raises(EncodeError):
        rpc.send("", 1)
    assert not rpc.connected
    assert peer.connections == 0


def _failing_close(monkeypatch, target):
    real_close = socket.socket.close

    def close(self):
        if self is target:
            raise OSError("close failed")
        real_close(self)

    monkeypatch.setattr(socket.socket, "close", close)
    return real_close


def test_close_failure_is_transport_error(peer, monkeypatch):
    rpc = RPCClient(_address(peer))
    rpc.send("Echo.Run", 1)
    sock = rpc._socket
    real_close = _failing_close(monkeypatch, sock)
    with pytest.raises(TransportError) as info:
        rpc.close()
    assert "Could not close socket" in str(info.value)
    assert not rpc.connected
    real_close(sock)


def test_close_failure_after_lost_connection_keeps_original_error(peer, monkeypatch):
    peer.responder = lambda request: None
    rpc = RPCClient(_address(peer))
    sock = rpc.connect()
    real_close = _failing_close(monkeypatch, sock)
    with pytest.raises(TransportError) as info:
        rpc.send("Echo.Run", 1)
    assert "connection closed" in str(info.value)
    assert not rpc.connected
    real_close(sock)


@pytest.mark.parametrize("address", ["localhost", "localhost:", ":6000", "host:port", "host:70000"])
def test_bad_address_is_config_error(address):
    with pytest.raises(ConfigError):
        RPCClient(address)


def test_cli_prints_reply(peer, monkeypatch, tmp_path, capsys):
    monkeypatch.chdir(tmp_path)
    code = run_client(["Echo.Run", '{"a": 1}', "--address", _address(peer)])
    assert code == 0
    assert json.loads(capsys.readouterr().out) == {"id": 1, "result": {"a": 1}, "error": None}


def test_cli_exit_status_on_remote_error(peer, monkeypatch, tmp_path, capsys):
    peer.responder = lambda request: {"id": request["id"], "result": None, "error": "boom"}
    monkeypatch.chdir(tmp_path)
    assert run_client(["Echo.Run", "--address", _address(peer)]) == 1
    assert '"boom"' in capsys.readouterr().out


def test_cli_exit_status_on_invalid_method(peer, monkeypatch, tmp_path, capsys):
    monkeypatch.chdir(tmp_path)
    assert run_client(["", "1", "--address", _address(peer)]) == 1
    assert "RPC request validation failed" in capsys.readouterr().err
