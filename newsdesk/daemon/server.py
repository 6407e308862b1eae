"""Background fetch daemon served over a unix socket.

Endpoints:
  - ``GET /health``: 200 immediately; liveness and latency check
  - ``POST /fetch``: fetch one article through the shared session
  - ``POST /shutdown``: stop accepting requests, finish in-flight work, exit

The fetching resource is not safe for concurrent use. Handler threads queue
on one lock, so at most one fetch is in flight at any time.
"""

from __future__ import annotations

import json
import os
import signal
import socket
import socketserver
import threading
import time
from http.server import BaseHTTPRequestHandler
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

from ..errors import DaemonAlreadyRunning
from ..models import Article
from ..utils.logging import get_logger
from .protocol import FetchRequest, error_response, success_response

logger = get_logger("nd.daemon.server")

READ_TIMEOUT = 30.0
LIVENESS_TIMEOUT = 1.0


class ArticleFetcher(Protocol):
    def fetch(self, url: str, *, debug: bool = False) -> Article:
        ...

    def close(self) -> None:
        ...


class _UnixHTTPServer(socketserver.ThreadingMixIn, socketserver.UnixStreamServer):
    daemon_threads = False
    block_on_close = True

    app: "FetchDaemon"


class _DaemonHandler(BaseHTTPRequestHandler):
    server_version = "newsdesk-daemon/1.0"
    timeout = READ_TIMEOUT
    server: _UnixHTTPServer

    def _send(self, status: int, body: bytes = b"", content_type: str = "text/plain") -> None:
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if body:
            self.wfile.write(body)

    def _send_json(self, payload: Dict[str, Any]) -> None:
        self._send(200, json.dumps(payload).encode("utf-8"), "application/json")

    def do_GET(self) -> None:  # noqa: N802 - http.server naming
        if self.path == "/health":
            self._send(200, b"ok")
        elif self.path in ("/fetch", "/shutdown"):
            self._send(405)
        else:
            self._send(404)

    def do_POST(self) -> None:  # noqa: N802 - http.server naming
        if self.path == "/fetch":
            self._handle_fetch()
        elif self.path == "/shutdown":
            self._send(200, b"ok")
            self.server.app.request_shutdown()
        elif self.path == "/health":
            self._send(405)
        else:
            self._send(404)

    def _handle_fetch(self) -> None:
        try:
            length = int(self.headers.get("Content-Length") or 0)
            request = FetchRequest.from_dict(json.loads(self.rfile.read(length) or b"null"))
        except ValueError as exc:
            logger.debug("Rejecting malformed fetch request: %s", exc)
            self._send(400)
            return
        self._send_json(self.server.app.handle_fetch(request))

    def log_message(self, format: str, *args: Any) -> None:  # noqa: A002 - signature from BaseHTTPRequestHandler
        # The default implementation reads client_address, which is empty on unix sockets.
        logger.debug("http: " + format, *args)


def socket_accepts(path: Path, timeout: float = LIVENESS_TIMEOUT) -> bool:
    """True when something is listening on the unix socket at ``path``."""
    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    sock.settimeout(timeout)
    try:
        sock.connect(str(path))
    except socket.timeout:
        # Backlog full: the listener exists but is busy.
        return True
    except OSError:
        return False
    finally:
        sock.close()
    return True


class FetchDaemon:
    """Owns the socket, the HTTP server and the single fetching resource."""

    def __init__(self, socket_path: Path | str, fetcher: ArticleFetcher) -> None:
        self.socket_path = Path(socket_path)
        self.fetcher = fetcher
        self._fetch_lock = threading.Lock()
        self._server: Optional[_UnixHTTPServer] = None
        self._shutdown_started = threading.Event()

    def bind(self) -> None:
        """Listen on the socket path, replacing a stale socket file.

        Raises ``DaemonAlreadyRunning`` when another daemon accepts
        connections there; its socket is left untouched.
        """
        self.socket_path.parent.mkdir(parents=True, exist_ok=True)
        if self.socket_path.exists() or self.socket_path.is_symlink():
            if socket_accepts(self.socket_path):
                raise DaemonAlreadyRunning(f"a daemon is already listening on {self.socket_path}")
            logger.info("Removing stale socket %s", self.socket_path)
            self.socket_path.unlink()
        server = _UnixHTTPServer(str(self.socket_path), _DaemonHandler)
        server.app = self
        os.chmod(self.socket_path, 0o600)
        self._server = server
        logger.info("Daemon listening on %s", self.socket_path)

    def serve_forever(self) -> None:
        if self._server is None:
            self.bind()
        assert self._server is not None
        try:
            self._server.serve_forever(poll_interval=0.2)
        finally:
            self._cleanup()

    def handle_fetch(self, request: FetchRequest) -> Dict[str, Any]:
        with self._fetch_lock:
            start = time.perf_counter()
            try:
                article = self.fetcher.fetch(request.url, debug=request.debug)
            except Exception as exc:  # noqa: BLE001 - reported to the client as error/error_type
                logger.warning("Fetch failed for %s: %s", request.url, exc)
                return error_response(exc)
            logger.info("Fetched %s in %.1fms", request.url, (time.perf_counter() - start) * 1000)
            return success_response(article)

    def request_shutdown(self) -> None:
        """Stop serving from any thread; in-flight fetches still complete."""
        if self._server is None or self._shutdown_started.is_set():
            return
        self._shutdown_started.set()
        logger.info("Daemon shutdown requested")
        threading.Thread(target=self._server.shutdown, name="daemon-shutdown", daemon=True).start()

    def _cleanup(self) -> None:
        if self._server is not None:
            # block_on_close joins handler threads, so a running fetch finishes first.
            self._server.server_close()
            self._server = None
        try:
            self.socket_path.unlink()
        except FileNotFoundError:
            pass
        self.fetcher.close()
        logger.info("Daemon stopped")


def run_daemon(socket_path: Path | str, fetcher: ArticleFetcher) -> None:
    """Serve in the foreground until ``/shutdown``, SIGTERM or Ctrl-C."""
    daemon = FetchDaemon(socket_path, fetcher)
    try:
        daemon.bind()
    except DaemonAlreadyRunning as exc:
        logger.info("Not starting: %s", exc)
        fetcher.close()
        return
    signal.signal(signal.SIGTERM, lambda *_: daemon.request_shutdown())
    try:
        daemon.serve_forever()
    except KeyboardInterrupt:
        logger.info("Interrupted")
