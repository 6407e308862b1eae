from __future__ import annotations

import os
import subprocess
import sys
import time
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import httpx

from ..errors import DaemonNotRunning, TransportError
from ..models import Article
from ..utils.logging import get_logger
from .protocol import FetchRequest, article_from_response

logger = get_logger("nd.daemon.client")

DEFAULT_FETCH_TIMEOUT = 45.0
PING_TIMEOUT = 2.0
SHUTDOWN_TIMEOUT = 5.0


def default_serve_command() -> List[str]:
    return [sys.executable, "-m", "newsdesk.main", "--serve"]


class DaemonClient:
    """Talks to the fetch daemon over its unix socket.

    A missing socket file, a refused connection and a timeout all surface as
    ``DaemonNotRunning``.
    """

    def __init__(
        self,
        socket_path: Path | str,
        *,
        log_path: Optional[Path | str] = None,
        serve_command: Optional[Sequence[str]] = None,
    ) -> None:
        self.socket_path = Path(socket_path)
        self.log_path = Path(log_path) if log_path else None
        self.serve_command = list(serve_command) if serve_command else default_serve_command()

    def _client(self, timeout: float) -> httpx.Client:
        if not self.socket_path.exists():
            raise DaemonNotRunning()
        transport = httpx.HTTPTransport(uds=str(self.socket_path))
        return httpx.Client(transport=transport, base_url="http://daemon", timeout=timeout)

    def _request(self, method: str, path: str, *, timeout: float, json: Optional[dict] = None) -> httpx.Response:
        with self._client(timeout) as client:
            try:
                resp = client.request(method, path, json=json)
            except (httpx.ConnectError, httpx.TimeoutException) as exc:
                raise DaemonNotRunning(f"daemon unavailable: {exc}") from exc
            except httpx.HTTPError as exc:
                raise TransportError(f"daemon request failed: {exc}") from exc
        if resp.status_code != 200:
            raise TransportError(f"daemon HTTP {resp.status_code}")
        return resp

    def ping(self, timeout: float = PING_TIMEOUT) -> float:
        """Round-trip ``/health`` and return the latency in seconds."""
        start = time.perf_counter()
        self._request("GET", "/health", timeout=timeout)
        return time.perf_counter() - start

    def status(self, timeout: float = PING_TIMEOUT) -> Tuple[float, bool]:
        try:
            return self.ping(timeout), True
        except DaemonNotRunning:
            return 0.0, False

    def is_running(self, timeout: float = PING_TIMEOUT) -> bool:
        try:
            self.ping(timeout)
        except (DaemonNotRunning, TransportError):
            return False
        return True

    def fetch(self, url: str, *, debug: bool = False, timeout: float = DEFAULT_FETCH_TIMEOUT) -> Article:
        resp = self._request("POST", "/fetch", timeout=timeout, json=FetchRequest(url, debug).to_dict())
        try:
            payload = resp.json()
        except ValueError as exc:
            raise TransportError(f"daemon returned invalid JSON: {exc}") from exc
        return article_from_response(payload)

    def shutdown(self, timeout: float = SHUTDOWN_TIMEOUT) -> None:
        self._request("POST", "/shutdown", timeout=timeout)

    def start_background(self) -> subprocess.Popen:
        """Spawn the daemon detached from this process group."""
        self.socket_path.parent.mkdir(parents=True, exist_ok=True)
        log_target = self.log_path or Path(os.devnull)
        try:
            log_file = open(log_target, "ab")
        except OSError:
            log_file = open(os.devnull, "ab")
        with log_file:
            logger.debug("Starting daemon: %s", " ".join(self.serve_command))
            return subprocess.Popen(
                self.serve_command,
                stdin=subprocess.DEVNULL,
                stdout=log_file,
                stderr=subprocess.STDOUT,
                start_new_session=True,
                close_fds=True,
            )

    def wait_for_ready(self, timeout: float = 2.0, interval: float = 0.2) -> bool:
        deadline = time.monotonic() + timeout
        while True:
            if self.is_running(timeout=max(interval, 0.05)):
                return True
            if time.monotonic() + interval > deadline:
                return False
            time.sleep(interval)
