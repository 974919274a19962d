"""Container runtime access via the Docker SDK."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import docker
from docker.errors import DockerException

from pushrelay.errors import RuntimeQueryError, StartupError
from pushrelay.utils.logging import get_logger

log = get_logger(__name__)


@dataclass
class ContainerInfo:
    id: str
    image: str = ""
    labels: dict[str, str] = field(default_factory=dict)


class ContainerRuntime(ABC):
    @abstractmethod
    async def list_labeled(self, label_keys: list[str]) -> list[ContainerInfo]:
        """Return all containers, stopped ones included, carrying any of label_keys."""
        ...


class DockerRuntime(ContainerRuntime):
    """Lists containers through a docker.DockerClient.

    The SDK is blocking, so every call runs in a worker thread.
    """

    def __init__(self, client: docker.DockerClient) -> None:
        self._client = client

    @classmethod
    def connect(cls) -> DockerRuntime:
        """Connect using the environment (DOCKER_HOST etc.) and verify with a ping."""
        try:
            client = docker.from_env()
            client.ping()
        except DockerException as exc:
            raise StartupError(f"cannot reach Docker daemon: {exc}") from exc
        log.info("docker_connected", base_url=client.api.base_url)
        return cls(client)

    def close(self) -> None:
        self._client.close()

    async def list_labeled(self, label_keys: list[str]) -> list[ContainerInfo]:
        return await asyncio.to_thread(self._list_labeled, label_keys)

    def _list_labeled(self, label_keys: list[str]) -> list[ContainerInfo]:
        # Docker ANDs repeated label filters, so query once per key and union
        seen: dict[str, ContainerInfo] = {}
        for key in label_keys:
            try:
                containers = self._client.containers.list(
                    all=True, sparse=True, filters={"label": key}
                )
            except Exception as exc:
                raise RuntimeQueryError(f"listing containers by label {key!r} failed: {exc}") from exc
            for container in containers:
                info = _container_info(container.attrs)
                seen.setdefault(info.id, info)
        return list(seen.values())


def _container_info(attrs: dict[str, Any]) -> ContainerInfo:
    # Sparse list results use the /containers/json shape
    return ContainerInfo(
        id=attrs.get("Id", ""),
        image=attrs.get("Image") or "",
        labels=dict(attrs.get("Labels") or {}),
    )
