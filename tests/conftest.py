"""Shared fakes for the container runtime, lookups and actions."""

from __future__ import annotations

import asyncio

import pytest

from pushrelay.actions.base import ActionResult, BaseAction
from pushrelay.core.discovery import RouteLookup
from pushrelay.core.runtime import ContainerInfo, ContainerRuntime
from pushrelay.errors import RuntimeQueryError


class FakeRuntime(ContainerRuntime):
    def __init__(self, containers: list[ContainerInfo] | None = None, delay: float = 0) -> None:
        self.containers = list(containers or [])
        self.delay = delay
        self.fail = False
        self.calls: list[list[str]] = []

    async def list_labeled(self, label_keys: list[str]) -> list[ContainerInfo]:
        self.calls.append(list(label_keys))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RuntimeQueryError("daemon unavailable")
        return list(self.containers)


class DictLookup(RouteLookup):
    def __init__(self, routes: dict[str, str]) -> None:
        self.routes = routes
        self.queries: list[str] = []

    async def lookup(self, repository: str) -> str | None:
        self.queries.append(repository)
        return self.routes.get(repository)


class RecordingAction(BaseAction):
    def __init__(self, failures: dict[str, Exception] | None = None) -> None:
        self.calls: list[str] = []
        self.failures = failures or {}

    @property
    def name(self) -> str:
        return "recording"

    async def execute(self, target: str) -> ActionResult:
        self.calls.append(target)
        if target in self.failures:
            raise self.failures[target]
        return ActionResult(action=self.name, target=target)


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def compose_container(cid: str, image: str, project: str | None, labels: dict[str, str] | None = None) -> ContainerInfo:
    all_labels = dict(labels or {})
    if project is not None:
        all_labels["com.docker.compose.project"] = project
    return ContainerInfo(id=cid, image=image, labels=all_labels)


@pytest.fixture
def runtime():
    return FakeRuntime()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def action():
    return RecordingAction()
