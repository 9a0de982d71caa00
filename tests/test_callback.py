# Tests for auth/callback.py — one-shot loopback OAuth listener
# Created: 2026-10-18
#
# These bind real sockets on 127.0.0.1 (port 0, so the OS picks a free one).

import socket
import threading

import httpx
import pytest

from slackstatus.auth.callback import CallbackListener
from slackstatus.auth.tls import TLSMaterial, generate_self_signed
from slackstatus.errors import (
    ListenerBindError,
    ListenerTimeoutError,
    MissingAuthorizationCodeError,
)

HOST = "127.0.0.1"


def _start(listener: CallbackListener) -> tuple[threading.Thread, dict]:
    """Run listen_for_code() in the background and wait until it is bound."""
    outcome: dict = {}

    def target():
        try:
            outcome["code"] = listener.listen_for_code()
        except Exception as e:
            outcome["error"] = e

    thread = threading.Thread(target=target, daemon=True)
    thread.start()
    assert listener.ready.wait(5), "listener never became ready"
    return thread, outcome


def _url(listener: CallbackListener, path: str) -> str:
    return f"{listener.scheme}://{HOST}:{listener.bound_port}{path}"


class TestPlainHTTP:
    def test_captures_code(self):
        listener = CallbackListener(HOST, 0, "/auth", timeout=5)
        thread, outcome = _start(listener)

        resp = httpx.get(_url(listener, "/auth?code=abc123&state=x"))
        thread.join(5)

        assert resp.status_code == 200
        assert "Got code" in resp.text
        assert outcome == {"code": "abc123"}

    def test_listener_closed_after_code(self):
        listener = CallbackListener(HOST, 0, "/auth", timeout=5)
        thread, _ = _start(listener)
        httpx.get(_url(listener, "/auth?code=abc"))
        thread.join(5)
        assert not thread.is_alive()

        with pytest.raises(httpx.ConnectError):
            httpx.get(_url(listener, "/auth?code=again"), timeout=1)

    def test_missing_code(self):
        listener = CallbackListener(HOST, 0, "/auth", timeout=5)
        thread, outcome = _start(listener)

        resp = httpx.get(_url(listener, "/auth?error=access_denied"))
        thread.join(5)

        assert resp.status_code == 400
        assert "access_denied" in resp.text
        assert isinstance(outcome["error"], MissingAuthorizationCodeError)
        assert "access_denied" in str(outcome["error"])
        assert not thread.is_alive()

    def test_empty_code_is_missing(self):
        listener = CallbackListener(HOST, 0, "/auth", timeout=5)
        thread, outcome = _start(listener)
        httpx.get(_url(listener, "/auth?code="))
        thread.join(5)
        assert isinstance(outcome["error"], MissingAuthorizationCodeError)

    def test_other_paths_ignored(self):
        listener = CallbackListener(HOST, 0, "/auth", timeout=5)
        thread, outcome = _start(listener)

        resp = httpx.get(_url(listener, "/favicon.ico"))
        assert resp.status_code == 404
        assert thread.is_alive()

        httpx.get(_url(listener, "/auth?code=late"))
        thread.join(5)
        assert outcome == {"code": "late"}

    def test_timeout(self):
        listener = CallbackListener(HOST, 0, "/auth", timeout=0.3)
        thread, outcome = _start(listener)
        thread.join(5)
        assert isinstance(outcome["error"], ListenerTimeoutError)

    def test_scheme(self):
        assert CallbackListener(HOST, 0, "/auth").scheme == "http"


class TestTLS:
    def test_captures_code_over_https(self, tmp_path):
        material = generate_self_signed(tmp_path, 0)
        listener = CallbackListener(HOST, 0, "/auth", tls=material, timeout=5)
        assert listener.scheme == "https"
        thread, outcome = _start(listener)

        resp = httpx.get(_url(listener, "/auth?code=secure"), verify=False)
        thread.join(5)

        assert resp.status_code == 200
        assert outcome == {"code": "secure"}

    def test_invalid_material(self):
        listener = CallbackListener(HOST, 0, "/auth", tls=TLSMaterial(b"junk", b"junk", "test"))
        with pytest.raises(ListenerBindError, match="TLS"):
            listener.listen_for_code()


class TestBind:
    def test_port_in_use(self):
        blocker = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            blocker.bind((HOST, 0))
            blocker.listen(1)
            port = blocker.getsockname()[1]
            listener = CallbackListener(HOST, port, "/auth", timeout=1)
            with pytest.raises(ListenerBindError):
                listener.listen_for_code()
        finally:
            blocker.close()
