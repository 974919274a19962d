"""Registry notification models."""

from __future__ import annotations

from dataclasses import dataclass, field

PUSH_ACTION = "push"


@dataclass
class RegistryEvent:
    action: str
    repository: str
    tag: str | None = None


@dataclass
class RegistryNotification:
    events: list[RegistryEvent] = field(default_factory=list)

    def push_repositories(self) -> list[str]:
        """Repositories of push events in payload order, duplicates included."""
        return [e.repository for e in self.events if e.action == PUSH_ACTION]
