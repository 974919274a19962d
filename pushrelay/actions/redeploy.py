"""Stack redeploy through the Portainer API."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx

from pushrelay.actions.base import (
    ActionResult,
    ApiError,
    BaseAction,
    NetworkError,
    StackNotFoundError,
)
from pushrelay.config import PortainerConfig
from pushrelay.utils.logging import get_logger

log = get_logger(__name__)

API_KEY_HEADER = "X-API-Key"


def _field(data: dict[str, Any], name: str) -> Any:
    # Portainer answers in PascalCase; accept camelCase too
    if name in data:
        return data[name]
    camel = name[0].lower() + name[1:]
    if camel in data:
        return data[camel]
    raise KeyError(name)


@dataclass
class StackDescriptor:
    id: int
    name: str
    endpoint_id: int
    env: list[Any] = field(default_factory=list)
    file_content: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> StackDescriptor:
        try:
            env = _field(data, "Env")
        except KeyError:
            env = []
        return cls(
            id=int(_field(data, "Id")),
            name=str(_field(data, "Name")),
            endpoint_id=int(_field(data, "EndpointId")),
            env=list(env or []),
        )


class RedeployAction(BaseAction):
    """Refreshes a named stack: find it, fetch its file, PUT it back with pullImage.

    Each step must succeed before the next runs. Only the final PUT mutates
    anything, so an aborted sequence leaves the stack as it was.
    """

    def __init__(self, client: httpx.AsyncClient, config: PortainerConfig) -> None:
        self._client = client
        self._base_url = config.url.rstrip("/")
        self._headers = {API_KEY_HEADER: config.api_key}

    @property
    def name(self) -> str:
        return "redeploy"

    async def execute(self, target: str) -> ActionResult:
        log.info("stack_redeploying", stack=target)

        stack = await self.find_stack(target)
        stack.file_content = await self.fetch_stack_file(stack.id)
        resp = await self._request(
            "PUT",
            f"/api/stacks/{stack.id}",
            params={"endpointId": stack.endpoint_id},
            json={
                "env": stack.env,
                "pullImage": True,
                "prune": True,
                "stackFileContent": stack.file_content,
            },
        )

        log.info("stack_redeployed", stack=target, stack_id=stack.id, status=resp.status_code)
        return ActionResult(action=self.name, target=target, status_code=resp.status_code)

    async def find_stack(self, stack_name: str) -> StackDescriptor:
        resp = await self._request("GET", "/api/stacks")
        stacks = self._decode(resp)
        if not isinstance(stacks, list):
            raise ApiError("GET /api/stacks did not return a list", status_code=resp.status_code)

        for raw in stacks:
            if not isinstance(raw, dict):
                continue
            try:
                name = _field(raw, "Name")
            except KeyError:
                continue
            if name != stack_name:
                continue
            try:
                return StackDescriptor.from_api(raw)
            except (KeyError, TypeError, ValueError) as exc:
                raise ApiError(f"malformed stack entry for {stack_name}: {exc}") from exc

        raise StackNotFoundError(stack_name)

    async def fetch_stack_file(self, stack_id: int) -> str:
        resp = await self._request("GET", f"/api/stacks/{stack_id}/file")
        data = self._decode(resp)
        try:
            content = _field(data, "StackFileContent")
        except (KeyError, TypeError) as exc:
            raise ApiError(
                f"stack {stack_id} file response has no StackFileContent",
                status_code=resp.status_code,
            ) from exc
        if not isinstance(content, str):
            raise ApiError(f"stack {stack_id} file content is not a string", status_code=resp.status_code)
        return content

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = f"{self._base_url}{path}"
        try:
            resp = await self._client.request(method, url, headers=self._headers, **kwargs)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise NetworkError(f"{method} {path} failed: {exc}") from exc
        if resp.is_error:
            raise ApiError(
                f"{method} {path} returned {resp.status_code}: {resp.text[:200]}",
                status_code=resp.status_code,
            )
        return resp

    @staticmethod
    def _decode(resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError as exc:
            raise ApiError(
                f"{resp.request.method} {resp.request.url.path} returned invalid JSON",
                status_code=resp.status_code,
            ) from exc
