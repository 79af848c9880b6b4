from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

PLACEHOLDER = "#"
# Response key for per-target diagnostics; never a valid target id.
DETAILS_KEY = "_details"


class TargetSourceError(ValueError):
    pass


def _usable(url: Optional[str]) -> bool:
    return bool(url) and url.strip() != PLACEHOLDER


@dataclass(frozen=True)
class Target:
    id: str
    href: Optional[str] = None
    check_url: Optional[str] = None

    def __post_init__(self):
        if self.id == DETAILS_KEY:
            raise TargetSourceError(f"target id {DETAILS_KEY!r} is reserved")

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Target":
        if not isinstance(d, dict) or d.get("id") in (None, ""):
            raise TargetSourceError(f"target without id: {d!r}")
        check_url = d.get("checkUrl", d.get("check_url"))
        return cls(id=str(d["id"]), href=d.get("href"), check_url=check_url)

    @property
    def probe_url(self) -> Optional[str]:
        """checkUrl when set, else href; None when neither is usable."""
        url = self.check_url or self.href
        return url if _usable(url) else None

    @property
    def fallback_url(self) -> Optional[str]:
        """href, when it is usable and differs from the probe URL."""
        primary = self.probe_url
        if primary is None or not _usable(self.href) or self.href == primary:
            return None
        return self.href

    def as_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "href": self.href, "checkUrl": self.check_url}


def load_targets(path: str | Path) -> List[Target]:
    p = Path(path)
    data = yaml.safe_load(p.read_text(encoding="utf-8"))
    if not isinstance(data, dict) or not isinstance(data.get("targets"), list):
        raise TargetSourceError(f"{p}: expected a mapping with a 'targets' list")
    return [Target.from_dict(t) for t in data["targets"]]
