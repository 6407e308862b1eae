"""Fetch daemon: wire protocol, unix-socket server and client."""

from .client import DaemonClient
from .server import FetchDaemon, run_daemon

__all__ = ["DaemonClient", "FetchDaemon", "run_daemon"]
