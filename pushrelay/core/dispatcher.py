"""Routes pushed repositories to the configured action."""

from __future__ import annotations

from dataclasses import dataclass

from pushrelay.actions.base import ActionError, BaseAction
from pushrelay.core.discovery import RouteLookup
from pushrelay.utils.logging import get_logger

log = get_logger(__name__)


@dataclass
class DispatchReport:
    triggered: int = 0
    ignored: int = 0
    failed: int = 0

    def as_dict(self) -> dict[str, int]:
        return {"triggered": self.triggered, "ignored": self.ignored, "failed": self.failed}


class Dispatcher:
    def __init__(self, lookup: RouteLookup, action: BaseAction) -> None:
        self._lookup = lookup
        self._action = action

    async def dispatch(self, repositories: list[str]) -> DispatchReport:
        """Handle pushed repositories one by one, in order.

        A miss or a failed action never stops the remaining repositories.
        """
        report = DispatchReport()
        for repository in repositories:
            try:
                target = await self._lookup.lookup(repository)
            except Exception:
                log.exception("lookup_error", repository=repository)
                report.failed += 1
                continue

            if target is None:
                log.warning("push_ignored", repository=repository, reason="no route")
                report.ignored += 1
                continue

            try:
                await self._action.execute(target)
            except ActionError as exc:
                log.error(
                    "action_failed",
                    action=self._action.name,
                    repository=repository,
                    target=target,
                    kind=exc.kind.value,
                    error=exc.message,
                )
                report.failed += 1
            except Exception:
                log.exception(
                    "action_error",
                    action=self._action.name,
                    repository=repository,
                    target=target,
                )
                report.failed += 1
            else:
                report.triggered += 1
        return report
