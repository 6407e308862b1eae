"""Request/response payloads exchanged with the fetch daemon.

``POST /fetch`` takes ``{"url": str, "debug": bool}`` and answers either
``{"article": {...}}`` or ``{"error": str, "error_type": "paywall"|"user"|""}``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..errors import PaywallError, TransportError, UserError
from ..models import Article

ERROR_PAYWALL = "paywall"
ERROR_USER = "user"
ERROR_UNSPECIFIED = ""


@dataclass(frozen=True, slots=True)
class FetchRequest:
    url: str
    debug: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "debug": self.debug}

    @classmethod
    def from_dict(cls, data: Any) -> "FetchRequest":
        if not isinstance(data, dict) or not isinstance(data.get("url"), str) or not data["url"]:
            raise ValueError("fetch request requires a non-empty 'url'")
        return cls(url=data["url"], debug=bool(data.get("debug", False)))


def error_kind(exc: BaseException) -> str:
    if isinstance(exc, PaywallError):
        return ERROR_PAYWALL
    if isinstance(exc, UserError):
        return ERROR_USER
    return ERROR_UNSPECIFIED


def success_response(article: Article) -> Dict[str, Any]:
    return {"article": article.to_payload()}


def error_response(exc: BaseException) -> Dict[str, Any]:
    return {"error": str(exc) or exc.__class__.__name__, "error_type": error_kind(exc)}


def article_from_response(payload: Any) -> Article:
    """Decode a ``/fetch`` response, raising the typed error it carries."""
    if not isinstance(payload, dict):
        raise TransportError("daemon returned a malformed response")

    message: Optional[str] = payload.get("error")
    if message:
        kind = payload.get("error_type") or ERROR_UNSPECIFIED
        if kind == ERROR_PAYWALL:
            raise PaywallError()
        if kind == ERROR_USER:
            raise UserError(message)
        raise TransportError(message)

    if not payload.get("article"):
        raise TransportError("daemon returned empty response")
    try:
        return Article.from_payload(payload["article"])
    except ValueError as exc:
        raise TransportError(f"daemon returned a malformed article: {exc}") from exc
