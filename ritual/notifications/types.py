from dataclasses import dataclass, field
from typing import Any, Dict

from ritual.schemas.notifications import NotificationKind


@dataclass(frozen=True)
class PushPayload:
    kind: NotificationKind
    user_id: str
    title: str
    body: str
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "user_id": self.user_id, "title": self.title, "body": self.body, "data": dict(self.data)}

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "PushPayload":
        return cls(
            kind=raw["kind"],
            user_id=raw["user_id"],
            title=raw["title"],
            body=raw["body"],
            data=dict(raw.get("data") or {}),
        )
