"""Action interface and error taxonomy."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class ActionErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    API = "api"
    NETWORK = "network"


class ActionError(Exception):
    kind: ActionErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class StackNotFoundError(ActionError):
    kind = ActionErrorKind.NOT_FOUND

    def __init__(self, stack_name: str) -> None:
        super().__init__(f"stack not found: {stack_name}")
        self.stack_name = stack_name


class ApiError(ActionError):
    kind = ActionErrorKind.API

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NetworkError(ActionError):
    kind = ActionErrorKind.NETWORK


@dataclass
class ActionResult:
    action: str
    target: str
    status_code: int | None = None


class BaseAction(ABC):
    @property
    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    async def execute(self, target: str) -> ActionResult:
        """Run the action against a resolved target; raise ActionError on failure."""
        ...
