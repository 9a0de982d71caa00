# OAuth Callback Listener — a throwaway loopback HTTP(S) server that waits
# for exactly one redirect carrying ``?code=...``.
# Created: 2026-10-18
#
# The request handler never stops the server itself. It writes the reply,
# posts the outcome on a one-shot queue, and the thread that called
# listen_for_code() performs the shutdown once it sees the result.

from __future__ import annotations

import logging
import queue
import socket
import ssl
import tempfile
import threading
from dataclasses import dataclass
from http.server import BaseHTTPRequestHandler, HTTPServer
from pathlib import Path
from urllib.parse import parse_qs, urlsplit

from slackstatus.auth.tls import TLSMaterial
from slackstatus.errors import (
    ListenerBindError,
    ListenerError,
    ListenerTimeoutError,
    MissingAuthorizationCodeError,
)

logger = logging.getLogger(__name__)

HTTP_READ_TIMEOUT = 5.0
HTTP_WRITE_TIMEOUT = 10.0
DEFAULT_WAIT_TIMEOUT = 300.0


@dataclass
class _CallbackResult:
    code: str = ""
    error: ListenerError | None = None


def build_ssl_context(material: TLSMaterial) -> ssl.SSLContext:
    """Load a PEM pair into a server-side TLS context.

    ``load_cert_chain`` only accepts paths, so the PEM bytes are staged in a
    private temporary directory that is removed straight after loading.
    """
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    context.minimum_version = ssl.TLSVersion.TLSv1_2
    with tempfile.TemporaryDirectory(prefix="slack-status-tls-") as tmp:
        cert_path = Path(tmp) / "cert.pem"
        key_path = Path(tmp) / "key.pem"
        cert_path.write_bytes(material.cert_pem)
        key_path.write_bytes(material.key_pem)
        key_path.chmod(0o600)
        context.load_cert_chain(certfile=str(cert_path), keyfile=str(key_path))
    return context


class _CallbackServer(HTTPServer):
    """HTTPServer that wraps each accepted connection in TLS when configured."""

    allow_reuse_address = True

    def __init__(
        self,
        address: tuple[str, int],
        path: str,
        outbox: queue.Queue[_CallbackResult],
        tls_context: ssl.SSLContext | None = None,
    ) -> None:
        self.callback_path = path
        self.outbox = outbox
        self.tls_context = tls_context
        self.finished = threading.Event()
        super().__init__(address, _CallbackHandler)

    def get_request(self) -> tuple[socket.socket, tuple]:
        conn, addr = super().get_request()
        conn.settimeout(HTTP_READ_TIMEOUT)
        if self.tls_context is None:
            return conn, addr
        try:
            return self.tls_context.wrap_socket(conn, server_side=True), addr
        except OSError:
            # Usually the browser refusing the self-signed certificate
            conn.close()
            raise

    def handle_error(self, request, client_address) -> None:
        logger.debug("Error handling callback from %s", client_address, exc_info=True)

    def post(self, result: _CallbackResult) -> bool:
        """Publish the first result; later ones are dropped."""
        if self.finished.is_set():
            return False
        self.finished.set()
        self.outbox.put(result)
        return True


class _CallbackHandler(BaseHTTPRequestHandler):
    server: _CallbackServer
    timeout = HTTP_READ_TIMEOUT

    def do_GET(self) -> None:
        url = urlsplit(self.path)
        if url.path != self.server.callback_path:
            self._reply(404, "Not found")
            return
        if self.server.finished.is_set():
            self._reply(410, "This login link has already been used.")
            return

        params = parse_qs(url.query)
        codes = params.get("code")
        if not codes or not codes[0]:
            reason = params.get("error", ["no oauth code found in response"])[0]
            self._reply(400, f"Authentication failed: {reason}")
            error = MissingAuthorizationCodeError(f"no oauth code in callback: {reason}")
            self.server.post(_CallbackResult(error=error))
            return

        self._reply(200, "Got code, you can close this window and return to your terminal.")
        self.server.post(_CallbackResult(code=codes[0]))

    def _reply(self, status: int, body: str) -> None:
        data = body.encode("utf-8")
        self.connection.settimeout(HTTP_WRITE_TIMEOUT)
        self.send_response(status)
        self.send_header("Content-Type", "text/plain; charset=utf-8")
        self.send_header("Content-Length", str(len(data)))
        self.send_header("Connection", "close")
        self.end_headers()
        self.wfile.write(data)
        self.wfile.flush()

    def log_message(self, format: str, *args) -> None:
        logger.debug("callback %s - %s", self.address_string(), format % args)


class CallbackListener:
    """Wait on a loopback address for the OAuth redirect.

    Args:
        host: Interface to bind, normally ``localhost``.
        port: Port the redirect URI points at.
        path: Path the redirect URI points at, e.g. ``/auth``.
        tls: Certificate to serve with, or None for plain HTTP.
        timeout: Seconds to wait for the redirect; 0 or None waits forever.
    """

    def __init__(
        self,
        host: str,
        port: int,
        path: str,
        tls: TLSMaterial | None = None,
        timeout: float | None = DEFAULT_WAIT_TIMEOUT,
    ) -> None:
        self.host = host
        self.port = port
        self.path = path
        self.tls = tls
        self.timeout = timeout or None
        self.bound_port: int | None = None
        self.ready = threading.Event()

    @property
    def scheme(self) -> str:
        return "https" if self.tls is not None else "http"

    def listen_for_code(self) -> str:
        """Block until one authorization code arrives and return it.

        Raises:
            ListenerBindError: The address or TLS material could not be used.
            MissingAuthorizationCodeError: The redirect had no ``code``.
            ListenerTimeoutError: Nothing arrived within ``timeout``.
            ListenerError: The server loop died unexpectedly.
        """
        outbox: queue.Queue[_CallbackResult] = queue.Queue(maxsize=1)

        try:
            context = build_ssl_context(self.tls) if self.tls is not None else None
        except (OSError, ssl.SSLError) as e:
            raise ListenerBindError(f"failed loading TLS key pair: {e}") from e

        try:
            server = _CallbackServer((self.host, self.port), self.path, outbox, context)
        except OSError as e:
            raise ListenerBindError(f"cannot listen on {self.host}:{self.port}: {e}") from e

        self.bound_port = server.server_address[1]
        thread = threading.Thread(
            target=self._serve, args=(server,), name="oauth-callback", daemon=True
        )
        thread.start()
        logger.info(
            "Listening for OAuth callback on %s://%s:%d%s",
            self.scheme,
            self.host,
            self.bound_port,
            self.path,
        )
        self.ready.set()

        try:
            result = outbox.get(timeout=self.timeout)
        except queue.Empty:
            raise ListenerTimeoutError(
                f"no OAuth callback received within {self.timeout:g} seconds"
            ) from None
        finally:
            server.shutdown()
            server.server_close()
            thread.join()
            logger.debug("OAuth callback listener closed")

        if result.error is not None:
            raise result.error
        return result.code

    @staticmethod
    def _serve(server: _CallbackServer) -> None:
        try:
            server.serve_forever(poll_interval=0.2)
        except Exception as e:
            logger.debug("Callback server loop failed", exc_info=True)
            server.post(_CallbackResult(error=ListenerError(f"callback server stopped: {e}")))
