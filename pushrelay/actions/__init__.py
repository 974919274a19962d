"""Actions triggered for a routed push."""

from __future__ import annotations

import httpx

from pushrelay.actions.base import (
    ActionError,
    ActionErrorKind,
    ActionResult,
    ApiError,
    BaseAction,
    NetworkError,
    StackNotFoundError,
)
from pushrelay.actions.dry_run import DryRunAction
from pushrelay.actions.forward import ForwardAction
from pushrelay.actions.redeploy import RedeployAction, StackDescriptor
from pushrelay.config import ActionMode, Settings

__all__ = [
    "ActionError",
    "ActionErrorKind",
    "ActionResult",
    "ApiError",
    "BaseAction",
    "DryRunAction",
    "ForwardAction",
    "NetworkError",
    "RedeployAction",
    "StackDescriptor",
    "StackNotFoundError",
    "create_action",
]


def create_action(settings: Settings, client: httpx.AsyncClient, dry_run: bool = False) -> BaseAction:
    """Build the action selected by settings.action."""
    if dry_run:
        return DryRunAction(settings.action.value)
    if settings.action is ActionMode.FORWARD:
        return ForwardAction(client)
    return RedeployAction(client, settings.portainer)
