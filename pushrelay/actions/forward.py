"""Forward a push to a discovered webhook URL."""

from __future__ import annotations

import httpx

from pushrelay.actions.base import ActionResult, ApiError, BaseAction, NetworkError
from pushrelay.utils.logging import get_logger

log = get_logger(__name__)


class ForwardAction(BaseAction):
    """POSTs to the target URL once. No retries."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    @property
    def name(self) -> str:
        return "forward"

    async def execute(self, target: str) -> ActionResult:
        log.info("webhook_forwarding", url=target)
        try:
            resp = await self._client.post(target)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise NetworkError(f"POST {target} failed: {exc}") from exc

        if resp.is_error:
            raise ApiError(
                f"POST {target} returned {resp.status_code}",
                status_code=resp.status_code,
            )

        log.info("webhook_forwarded", url=target, status=resp.status_code)
        return ActionResult(action=self.name, target=target, status_code=resp.status_code)
