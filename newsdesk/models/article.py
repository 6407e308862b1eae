from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Optional


@dataclass(frozen=True, slots=True)
class Article:
    """Fully fetched, displayable content for one feed item.

    ``url`` always equals the link of the feed item it was requested for.
    """

    title: str
    url: str
    overtitle: str = ""
    subtitle: str = ""
    date_line: str = ""
    content: str = ""
    debug_artifact_path: Optional[str] = None

    def has_content(self) -> bool:
        return bool(self.content.strip())

    def without_debug(self) -> "Article":
        return replace(self, debug_artifact_path=None)

    def to_payload(self) -> Dict[str, Any]:
        """Shape shared by the daemon wire protocol and cache entries."""
        payload: Dict[str, Any] = {"title": self.title, "url": self.url}
        if self.overtitle:
            payload["overtitle"] = self.overtitle
        if self.subtitle:
            payload["subtitle"] = self.subtitle
        if self.date_line:
            payload["date_line"] = self.date_line
        if self.content:
            payload["content"] = self.content
        if self.debug_artifact_path:
            payload["debug_artifact_path"] = self.debug_artifact_path
        return payload

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "Article":
        if not isinstance(payload, dict):
            raise ValueError("article payload must be an object")
        if "url" not in payload:
            raise ValueError("article payload is missing 'url'")
        return cls(
            title=str(payload.get("title") or ""),
            url=str(payload["url"]),
            overtitle=str(payload.get("overtitle") or ""),
            subtitle=str(payload.get("subtitle") or ""),
            date_line=str(payload.get("date_line") or ""),
            content=str(payload.get("content") or ""),
            debug_artifact_path=payload.get("debug_artifact_path") or None,
        )

    def to_markdown(self) -> str:
        parts = [f"# {self.title}\n\n"]
        if self.subtitle:
            parts.append(f"*{self.subtitle}*\n\n")
        if self.date_line:
            parts.append(f"{self.date_line}\n\n")
        parts.append("---\n\n")
        parts.append(self.content)
        parts.append("\n\n---\n")
        parts.append(f"🔗 {self.url}\n")
        return "".join(parts)
