from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

VARIANTS = ("default", "destructive")


@dataclass(frozen=True)
class Notification:
    title: str
    description: str | None = None
    variant: str = "default"

    @property
    def is_error(self) -> bool:
        return self.variant == "destructive"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Notification":
        variant = data.get("variant") if data.get("variant") in VARIANTS else "default"
        return cls(title=str(data.get("title") or ""), description=data.get("description"), variant=variant)


class Notifier:
    def __init__(self) -> None:
        self.items: list[Notification] = []

    def notify(self, title: str, description: str | None = None, variant: str = "default") -> Notification:
        notification = Notification(title=title, description=description, variant=variant)
        self.items.append(notification)
        return notification

    def success(self, title: str, description: str | None = None) -> Notification:
        return self.notify(title, description)

    def error(self, title: str, description: str | None = None) -> Notification:
        return self.notify(title, description, variant="destructive")

    def drain(self) -> list[Notification]:
        items, self.items = self.items, []
        return items
