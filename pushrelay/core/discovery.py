"""Label-driven discovery of push routes with a TTL cache."""

from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Iterable, Mapping

from pushrelay.config import DiscoveryConfig
from pushrelay.core.runtime import ContainerInfo, ContainerRuntime
from pushrelay.errors import RuntimeQueryError
from pushrelay.utils.logging import get_logger

log = get_logger(__name__)


class RouteLookup(ABC):
    @abstractmethod
    async def lookup(self, repository: str) -> str | None:
        """Return the target for repository, or None if nothing routes it."""
        ...


# ---------------------------------------------------------------------------
# Route derivation
# ---------------------------------------------------------------------------

def repo_from_image(image: str) -> str:
    """Derive a registry repository name from an image reference (host and tag stripped)."""
    name = image.split("@", 1)[0]

    # A ':' after the last '/' separates the tag; earlier ones belong to a host:port
    colon = name.rfind(":")
    if colon > name.rfind("/"):
        name = name[:colon]

    first, sep, rest = name.partition("/")
    if sep and ("." in first or ":" in first):
        return rest
    return name


def route_for_container(container: ContainerInfo, config: DiscoveryConfig) -> tuple[str, str] | None:
    """Return the (repository, target) row a container contributes, if any."""
    labels = container.labels

    if config.target_label in labels:
        target = labels[config.target_label]
        if not target:
            # Present but blank: never fall back to the group label
            log.warning(
                "container_target_label_empty",
                container=container.id[:12],
                label=config.target_label,
            )
            return None
    else:
        target = labels.get(config.group_label)
        if not target:
            return None

    if config.image_label in labels:
        repository = labels[config.image_label]
    elif config.marker_label in labels or config.target_label in labels:
        repository = repo_from_image(container.image)
    else:
        return None

    if not repository:
        return None
    return repository, target


def build_routing_table(containers: Iterable[ContainerInfo], config: DiscoveryConfig) -> dict[str, str]:
    table: dict[str, str] = {}
    for container in containers:
        row = route_for_container(container, config)
        if row is None:
            log.debug("container_skipped", container=container.id[:12], image=container.image)
            continue
        repository, target = row
        previous = table.get(repository)
        if previous is not None and previous != target:
            log.warning(
                "route_overridden",
                repository=repository,
                previous=previous,
                target=target,
                container=container.id[:12],
            )
        log.debug("route_discovered", repository=repository, target=target)
        table[repository] = target
    return table


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CacheState:
    table: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    refreshed_at: float | None = None

    def age(self, now: float) -> float | None:
        if self.refreshed_at is None:
            return None
        return now - self.refreshed_at


class DiscoveryCache(RouteLookup):
    """TTL-bound routing table rebuilt from container labels.

    Readers always see one complete snapshot: a refresh builds its table off
    to the side and swaps the whole CacheState in at once. The runtime query
    itself runs unlocked, so concurrent expired lookups may each refresh;
    the last swap wins.
    """

    def __init__(
        self,
        runtime: ContainerRuntime,
        config: DiscoveryConfig,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._runtime = runtime
        self._config = config
        self._ttl = config.cache_ttl_seconds
        self._clock = clock
        self._state = CacheState()
        self._swap_lock = asyncio.Lock()

    @property
    def state(self) -> CacheState:
        return self._state

    def is_fresh(self) -> bool:
        age = self._state.age(self._clock())
        return age is not None and age < self._ttl

    async def lookup(self, repository: str) -> str | None:
        if not self.is_fresh():
            await self.refresh()
        return self._state.table.get(repository)

    async def refresh(self) -> bool:
        """Rebuild the table from the runtime. Returns False if the query failed."""
        log.debug("discovery_refresh_started")
        try:
            containers = await self._runtime.list_labeled(self._config.query_labels)
        except RuntimeQueryError as exc:
            log.error("discovery_refresh_failed", error=str(exc))
            return False

        table = build_routing_table(containers, self._config)
        new_state = CacheState(table=MappingProxyType(table), refreshed_at=self._clock())
        async with self._swap_lock:
            self._state = new_state
        log.info("discovery_refreshed", routes=len(table), containers=len(containers))
        return True
