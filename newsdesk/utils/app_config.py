from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


def _default_home() -> str:
    return os.getenv("NEWSDESK_HOME") or str(Path.home() / ".config" / "newsdesk")


@dataclass(slots=True)
class AppConfig:
    home: str = field(default_factory=_default_home)
    cache_ttl_seconds: float = field(default_factory=lambda: float(os.getenv("NEWSDESK_CACHE_TTL", "3600")))
    fetch_timeout: float = field(default_factory=lambda: float(os.getenv("NEWSDESK_FETCH_TIMEOUT", "45")))
    ready_timeout: float = field(default_factory=lambda: float(os.getenv("NEWSDESK_READY_TIMEOUT", "2.0")))
    max_items: int = field(default_factory=lambda: int(os.getenv("NEWSDESK_MAX_ITEMS", "50")))

    @property
    def home_dir(self) -> Path:
        return Path(self.home).expanduser()

    @property
    def cache_dir(self) -> Path:
        return self.home_dir / "cache"

    @property
    def socket_path(self) -> Path:
        return self.home_dir / "serve.sock"

    @property
    def daemon_log_path(self) -> Path:
        return self.home_dir / "serve.log"

    @property
    def user_config_path(self) -> Path:
        return self.home_dir / "config.yaml"

    @property
    def log_path(self) -> Path:
        return self.home_dir / "logs" / "newsdesk.log"
