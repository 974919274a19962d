"""Action that only logs what would have been triggered."""

from __future__ import annotations

from pushrelay.actions.base import ActionResult, BaseAction
from pushrelay.utils.logging import get_logger

log = get_logger(__name__)


class DryRunAction(BaseAction):
    def __init__(self, wrapped: str) -> None:
        self._wrapped = wrapped

    @property
    def name(self) -> str:
        return f"dry-run:{self._wrapped}"

    async def execute(self, target: str) -> ActionResult:
        log.info("dry_run_action", action=self._wrapped, target=target)
        return ActionResult(action=self.name, target=target)
