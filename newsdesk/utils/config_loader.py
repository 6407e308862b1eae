from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from ..errors import ConfigError

DEFAULT_FEED_URL_TEMPLATE = "https://www.economist.com/{path}/rss.xml"
DEFAULT_SECTION = "leaders"
DEFAULT_SECTIONS = ["leaders", "briefing", "business", "finance", "science", "culture"]

COOKIE_FIELDS = {"name", "value"}


@dataclass(slots=True)
class Cookie:
    name: str
    value: str
    domain: str = ""
    path: str = "/"


@dataclass(slots=True)
class UserConfig:
    """Persisted user settings: subscriber cookies and feed navigation."""

    cookies: List[Cookie] = field(default_factory=list)
    sections: List[str] = field(default_factory=lambda: list(DEFAULT_SECTIONS))
    feed_url_template: str = DEFAULT_FEED_URL_TEMPLATE
    default_section: str = DEFAULT_SECTION

    @property
    def is_logged_in(self) -> bool:
        return bool(self.cookies)

    def cookie_dict(self) -> Dict[str, str]:
        return {c.name: c.value for c in self.cookies}


def _validate_cookie(entry: object) -> None:
    if not isinstance(entry, dict):
        raise ConfigError(f"Each cookie must be a mapping, got: {type(entry)}")
    missing = COOKIE_FIELDS - set(entry)
    if missing:
        raise ConfigError(f"Cookie missing required fields: {sorted(missing)}")
    for key in ("name", "value", "domain", "path"):
        if key in entry and entry[key] is not None and not isinstance(entry[key], str):
            raise ConfigError(f"Cookie field '{key}' must be a string")


def _validate_config_dict(data: dict) -> None:
    """Validate the top-level mapping from YAML.

    Optional fields:
      - cookies: list of {name, value, domain?, path?}
      - sections: list[str], the order used by next/prev section navigation
      - feed_url_template: string containing ``{path}``
      - default_section: string
    """
    cookies = data.get("cookies")
    if cookies is not None:
        if not isinstance(cookies, list):
            raise ConfigError("'cookies' must be a list if provided")
        for entry in cookies:
            _validate_cookie(entry)

    sections = data.get("sections")
    if sections is not None:
        if not isinstance(sections, list) or not all(isinstance(s, str) and s.strip() for s in sections):
            raise ConfigError("'sections' must be a list of non-empty strings if provided")
        if not sections:
            raise ConfigError("'sections' must not be empty")

    template = data.get("feed_url_template")
    if template is not None:
        if not isinstance(template, str) or "{path}" not in template:
            raise ConfigError("'feed_url_template' must be a string containing '{path}'")

    default_section = data.get("default_section")
    if default_section is not None and (not isinstance(default_section, str) or not default_section.strip()):
        raise ConfigError("'default_section' must be a non-empty string")


def _coerce_config(data: dict) -> UserConfig:
    cfg = UserConfig()
    cfg.cookies = [
        Cookie(
            name=str(c["name"]),
            value=str(c["value"]),
            domain=str(c.get("domain") or ""),
            path=str(c.get("path") or "/"),
        )
        for c in (data.get("cookies") or [])
    ]
    if data.get("sections"):
        cfg.sections = [str(s).strip().lower() for s in data["sections"]]
    if data.get("feed_url_template"):
        cfg.feed_url_template = str(data["feed_url_template"]).strip()
    if data.get("default_section"):
        cfg.default_section = str(data["default_section"]).strip().lower()
    return cfg


def load_user_config(path: Optional[Path | str]) -> UserConfig:
    """Load ``config.yaml`` into a typed ``UserConfig``.

    A missing file yields defaults. Unknown top-level keys are ignored for
    forward compatibility.
    """
    if path is None:
        return UserConfig()
    config_path = Path(path)
    if not config_path.exists():
        return UserConfig()

    try:
        with config_path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError("Top-level configuration must be a mapping")
    _validate_config_dict(data)
    return _coerce_config(data)
